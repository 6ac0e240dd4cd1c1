"""
어댑터 공통 데이터 모델

외부 협력 서비스(판매/구매/지출)가 소유한 원천 문서를 표준화한 모델.
모든 금액은 Decimal 타입 사용.
"""

import json
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any

from core.ledger.types import Bucket
from core.types import (
    DOCUMENT_DIRECTION,
    DOCUMENT_SOURCE,
    DocumentKind,
    DocumentStatus,
    PaymentType,
    TransactionType,
)
from core.utils.timezone import business_day


@dataclass(frozen=True)
class SourcePayment:
    """원천 문서에 포함된 결제 행

    Attributes:
        type: 결제 수단 (cash/bank_transfer/card/credit)
        amount: 결제 금액
        date: 결제일 (문서에 기록된 값 그대로, 예: "2026-03-01T10:00:00Z")
        bank_account_id: 은행 계좌 ID (bank_transfer)
        card_id: 카드 ID (card)
    """

    type: PaymentType
    amount: Decimal
    date: str
    bank_account_id: str | None = None
    card_id: str | None = None

    @property
    def day(self) -> date:
        """결제 영업일 (문자열 날짜부 그대로)"""
        return business_day(self.date)

    @property
    def bucket(self) -> Bucket | None:
        """결제가 움직이는 버킷 (credit이면 None)"""
        return Bucket.from_payment(self.type, self.bank_account_id, self.card_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "amount": str(self.amount),
            "date": self.date,
            "bankAccountId": self.bank_account_id,
            "cardId": self.card_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SourcePayment":
        return cls(
            type=PaymentType(data["type"]),
            amount=Decimal(str(data["amount"])),
            date=str(data["date"]),
            bank_account_id=data.get("bankAccountId"),
            card_id=data.get("cardId"),
        )


@dataclass(frozen=True)
class SourceDocument:
    """원천 문서 (Sale / Purchase / Expense) - 읽기 전용 입력

    Attributes:
        kind: 문서 종류
        document_id: 문서 ID
        total: 문서 총액
        date: 문서의 논리적 날짜
        status: 상태 (completed 외에는 잔액에 반영하지 않음)
        payments: 결제 행 목록 (0개 이상)
        description: 설명
    """

    kind: DocumentKind
    document_id: str
    total: Decimal
    date: str
    status: str = DocumentStatus.COMPLETED.value
    payments: tuple[SourcePayment, ...] = field(default_factory=tuple)
    description: str = ""

    @property
    def source(self) -> str:
        """원장에 기록될 때의 출처 태그"""
        return DOCUMENT_SOURCE[self.kind].value

    @property
    def direction(self) -> TransactionType:
        return DOCUMENT_DIRECTION[self.kind]

    @property
    def is_completed(self) -> bool:
        """완료된 문서인지 (취소 등은 결제 행을 무시)"""
        return self.status == DocumentStatus.COMPLETED.value

    def payments_json(self) -> str:
        return json.dumps([p.to_dict() for p in self.payments])

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "SourceDocument":
        """DB 행에서 생성"""
        payments = tuple(
            SourcePayment.from_dict(item)
            for item in json.loads(row.get("payments_json") or "[]")
        )
        return cls(
            kind=DocumentKind(row["kind"]),
            document_id=row["document_id"],
            total=Decimal(str(row["total"])),
            date=row["doc_date"],
            status=row.get("status") or DocumentStatus.COMPLETED.value,
            payments=payments,
            description=row.get("description") or "",
        )
