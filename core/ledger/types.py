"""
원장 타입 정의

버킷, 원장 항목(BalanceTransaction), 잔액 스냅샷 등
원장/잔액 체인/리포트가 공유하는 데이터 구조
"""

import json
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterator

from core.constants import Defaults, Money
from core.errors import InvalidBucket
from core.types import BucketKind, PaymentType, TransactionType
from core.utils.timezone import from_db_ts


@dataclass(frozen=True)
class Bucket:
    """독립적으로 추적되는 잔액 단위 (현금 / 은행 계좌 하나 / 카드 하나)

    Attributes:
        kind: 버킷 종류
        ref_id: 은행 계좌 ID 또는 카드 ID (현금은 None)

    Raises:
        InvalidBucket: 종류가 잘못되었거나 참조 ID가 누락/불필요한 경우
    """

    kind: BucketKind
    ref_id: str | None = None

    def __post_init__(self) -> None:
        try:
            kind = BucketKind(self.kind)
        except ValueError as e:
            raise InvalidBucket(f"Unknown bucket kind: {self.kind!r}") from e
        object.__setattr__(self, "kind", kind)

        ref_id = self.ref_id.strip() if isinstance(self.ref_id, str) else self.ref_id
        if kind == BucketKind.CASH:
            if ref_id:
                raise InvalidBucket("Cash bucket does not take a reference id")
            object.__setattr__(self, "ref_id", None)
            return
        if not ref_id:
            label = "bankAccountId" if kind == BucketKind.BANK else "cardId"
            raise InvalidBucket(f"{label} is required for a {kind.value} bucket")
        object.__setattr__(self, "ref_id", str(ref_id))

    @classmethod
    def cash(cls) -> "Bucket":
        return cls(BucketKind.CASH)

    @classmethod
    def bank(cls, bank_account_id: str) -> "Bucket":
        return cls(BucketKind.BANK, bank_account_id)

    @classmethod
    def card(cls, card_id: str) -> "Bucket":
        return cls(BucketKind.CARD, card_id)

    @classmethod
    def from_payment(
        cls,
        payment_type: PaymentType | str,
        bank_account_id: str | None = None,
        card_id: str | None = None,
    ) -> "Bucket | None":
        """결제 수단으로부터 버킷 결정

        Args:
            payment_type: cash / bank_transfer / card / credit
            bank_account_id: 은행 계좌 ID (bank_transfer)
            card_id: 카드 ID (card)

        Returns:
            버킷 (credit이면 None - 어떤 버킷도 움직이지 않음)

        Raises:
            InvalidBucket: 알 수 없는 결제 수단이거나 참조 ID가 없는 경우
        """
        try:
            payment_type = PaymentType(payment_type)
        except ValueError as e:
            raise InvalidBucket(f"Unknown payment type: {payment_type!r}") from e

        if payment_type == PaymentType.CASH:
            return cls.cash()
        if payment_type == PaymentType.BANK_TRANSFER:
            return cls(BucketKind.BANK, bank_account_id)
        if payment_type == PaymentType.CARD:
            return cls(BucketKind.CARD, card_id)
        return None

    @property
    def payment_type(self) -> PaymentType:
        """DB 저장용 결제 수단"""
        if self.kind == BucketKind.BANK:
            return PaymentType.BANK_TRANSFER
        if self.kind == BucketKind.CARD:
            return PaymentType.CARD
        return PaymentType.CASH

    @property
    def label(self) -> str:
        """로그/에러/락 key용 라벨 (예: cash, bank:BA-1)"""
        if self.kind == BucketKind.CASH:
            return "cash"
        return f"{self.kind.value}:{self.ref_id}"

    def __str__(self) -> str:
        return self.label


@dataclass(frozen=True)
class Actor:
    """작업 수행자"""

    user_id: str = Defaults.SYSTEM_USER_ID
    user_name: str = Defaults.SYSTEM_USER_NAME


SYSTEM_ACTOR = Actor()


@dataclass(frozen=True)
class BalanceTransaction:
    """불변 원장 항목

    Attributes:
        transaction_id: 항목 ID (btx-...)
        date: 영향을 주는 논리적 날짜
        created_at: 실제 발생 시각 (UTC)
        type: income / expense
        amount: 금액 (0 이상)
        bucket: 대상 버킷
        description: 설명
        source: 출처 태그 (sale_payment 등)
        source_id: 원천 문서 ID (느슨한 참조)
        user_id: 수행자 ID
        user_name: 수행자 이름
        before_balance: 적용 전 잔액
        after_balance: 적용 후 잔액
        change_amount: 변동액 (income이면 +amount, expense면 -amount)
    """

    transaction_id: str
    date: date
    created_at: datetime
    type: TransactionType
    amount: Decimal
    bucket: Bucket
    description: str
    source: str
    source_id: str | None
    user_id: str | None
    user_name: str | None
    before_balance: Decimal
    after_balance: Decimal
    change_amount: Decimal

    def is_consistent(self) -> bool:
        """before/after/change 관계 검증"""
        expected = self.amount if self.type == TransactionType.INCOME else -self.amount
        return (
            self.change_amount == expected
            and self.after_balance == self.before_balance + self.change_amount
        )

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "BalanceTransaction":
        """DB 행에서 생성"""
        payment_type = PaymentType(row["payment_type"])
        ref = row.get("bank_account_id")
        bucket = Bucket.from_payment(payment_type, bank_account_id=ref, card_id=ref)
        if bucket is None:
            raise InvalidBucket(f"Ledger row has no bucket: {row['transaction_id']}")
        return cls(
            transaction_id=row["transaction_id"],
            date=date.fromisoformat(row["date"]),
            created_at=from_db_ts(row["created_at"]),
            type=TransactionType(row["type"]),
            amount=Decimal(row["amount"]),
            bucket=bucket,
            description=row.get("description") or "",
            source=row["source"],
            source_id=row.get("source_id"),
            user_id=row.get("user_id"),
            user_name=row.get("user_name"),
            before_balance=Decimal(row["before_balance"]),
            after_balance=Decimal(row["after_balance"]),
            change_amount=Decimal(row["change_amount"]),
        )


@dataclass
class BalanceSnapshot:
    """버킷 집합의 잔액 스냅샷 (개시/마감 잔액, 리포트 누적값 공통)

    Attributes:
        cash: 현금 잔액
        banks: bankAccountId → 잔액
        cards: cardId → 잔액
    """

    cash: Decimal = Money.ZERO
    banks: dict[str, Decimal] = field(default_factory=dict)
    cards: dict[str, Decimal] = field(default_factory=dict)

    def get(self, bucket: Bucket) -> Decimal:
        if bucket.kind == BucketKind.CASH:
            return self.cash
        if bucket.kind == BucketKind.BANK:
            return self.banks.get(bucket.ref_id or "", Money.ZERO)
        return self.cards.get(bucket.ref_id or "", Money.ZERO)

    def has(self, bucket: Bucket) -> bool:
        """버킷 값이 스냅샷에 명시되어 있는지 여부 (현금은 항상 True)"""
        if bucket.kind == BucketKind.CASH:
            return True
        if bucket.kind == BucketKind.BANK:
            return bucket.ref_id in self.banks
        return bucket.ref_id in self.cards

    def set(self, bucket: Bucket, value: Decimal) -> None:
        if bucket.kind == BucketKind.CASH:
            self.cash = value
        elif bucket.kind == BucketKind.BANK:
            self.banks[bucket.ref_id or ""] = value
        else:
            self.cards[bucket.ref_id or ""] = value

    def apply(self, bucket: Bucket, change: Decimal) -> Decimal:
        """변동액 적용 (처음 보는 하위 버킷은 0에서 시작)

        Returns:
            적용 후 잔액
        """
        after = self.get(bucket) + change
        self.set(bucket, after)
        return after

    def buckets(self) -> Iterator[Bucket]:
        yield Bucket.cash()
        for bank_account_id in self.banks:
            yield Bucket.bank(bank_account_id)
        for card_id in self.cards:
            yield Bucket.card(card_id)

    def copy(self) -> "BalanceSnapshot":
        return BalanceSnapshot(
            cash=self.cash,
            banks=dict(self.banks),
            cards=dict(self.cards),
        )

    def bank_list(self) -> list[dict[str, str]]:
        return [
            {"bankAccountId": k, "balance": str(v)} for k, v in self.banks.items()
        ]

    def card_list(self) -> list[dict[str, str]]:
        return [{"cardId": k, "balance": str(v)} for k, v in self.cards.items()]

    def bank_json(self) -> str:
        return json.dumps(self.bank_list())

    def card_json(self) -> str:
        return json.dumps(self.card_list())

    @classmethod
    def from_columns(
        cls,
        cash: str | Decimal,
        bank_json: str | None,
        card_json: str | None,
    ) -> "BalanceSnapshot":
        """DB 컬럼 값(현금 문자열 + JSON 배열)에서 복원"""
        banks = {
            item["bankAccountId"]: Decimal(str(item["balance"]))
            for item in json.loads(bank_json or "[]")
        }
        cards = {
            item["cardId"]: Decimal(str(item["balance"]))
            for item in json.loads(card_json or "[]")
        }
        return cls(cash=Decimal(str(cash)), banks=banks, cards=cards)

    @classmethod
    def from_lists(
        cls,
        cash: Decimal,
        bank_balances: list[dict[str, Any]] | None = None,
        card_balances: list[dict[str, Any]] | None = None,
    ) -> "BalanceSnapshot":
        """[{bankAccountId, balance}] / [{cardId, balance}] 형식 입력에서 생성"""
        # Bucket 생성으로 ID 누락 검증 (InvalidBucket)
        banks = {
            Bucket.bank(item.get("bankAccountId")).ref_id or "": Decimal(str(item["balance"]))
            for item in bank_balances or []
        }
        cards = {
            Bucket.card(item.get("cardId")).ref_id or "": Decimal(str(item["balance"]))
            for item in card_balances or []
        }
        return cls(cash=Decimal(str(cash)), banks=banks, cards=cards)
