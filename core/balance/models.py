"""
일별 잔액 모델

개시(기준) 잔액, 마감 잔액, 잔액 갱신 요청/결과 데이터 구조
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from core.ledger.types import BalanceSnapshot, Bucket
from core.types import BalanceSource, TransactionType
from core.utils.timezone import from_db_ts


@dataclass
class DailyOpeningBalance:
    """일별 개시(기준) 잔액

    Attributes:
        opening_id: 행 ID (저장되지 않은 합성 값이면 None)
        date: 영업일
        balances: 기준 잔액 스냅샷
        notes: 메모
        created_by: 생성자 ID
        created_by_name: 생성자 이름
        created_at: 생성 시각
        updated_at: 수정 시각
    """

    opening_id: str | None
    date: date
    balances: BalanceSnapshot
    notes: str | None = None
    created_by: str | None = None
    created_by_name: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_stored(self) -> bool:
        """DB에 저장된 행인지 (False면 전일 마감으로부터 합성된 값)"""
        return self.opening_id is not None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "DailyOpeningBalance":
        """DB 행에서 생성"""
        return cls(
            opening_id=row["opening_id"],
            date=date.fromisoformat(row["date"]),
            balances=BalanceSnapshot.from_columns(
                row["cash_balance"],
                row["bank_balances_json"],
                row["card_balances_json"],
            ),
            notes=row.get("notes"),
            created_by=row.get("created_by"),
            created_by_name=row.get("created_by_name"),
            created_at=from_db_ts(row["created_at"]),
            updated_at=from_db_ts(row["updated_at"]),
        )


@dataclass
class DailyClosingBalance:
    """일별 마감 잔액 (메모이즈된 Projection)

    Attributes:
        date: 영업일
        balances: 마감 잔액 스냅샷
        calculated_by: 계산 주체
        calculated_at: 계산 시각
    """

    date: date
    balances: BalanceSnapshot
    calculated_by: str | None = None
    calculated_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "DailyClosingBalance":
        """DB 행에서 생성"""
        return cls(
            date=date.fromisoformat(row["date"]),
            balances=BalanceSnapshot.from_columns(
                row["cash_balance"],
                row["bank_balances_json"],
                row["card_balances_json"],
            ),
            calculated_by=row.get("calculated_by"),
            calculated_at=from_db_ts(row["calculated_at"]),
        )


@dataclass(frozen=True)
class BalanceUpdate:
    """잔액 갱신 요청

    Attributes:
        bucket: 대상 버킷
        amount: 금액 (0 초과)
        direction: income / expense
        source: 출처 태그
        source_id: 원천 문서 ID
        description: 설명
        day: 논리적 날짜 (None이면 오늘)
    """

    bucket: Bucket
    amount: Decimal
    direction: TransactionType
    source: str = BalanceSource.MANUAL_ADJUSTMENT.value
    source_id: str | None = None
    description: str = ""
    day: date | None = None


@dataclass(frozen=True)
class BalanceUpdateResult:
    """잔액 갱신 결과"""

    before: Decimal
    after: Decimal
    change_amount: Decimal
    transaction_id: str


@dataclass
class OpeningBalanceUpdate:
    """기준 잔액 수정 결과

    Attributes:
        opening: 저장된 기준 잔액 (기준값 자체는 변하지 않음)
        adjustments: 변동분마다 기록된 원장 갱신 결과
    """

    opening: DailyOpeningBalance
    adjustments: list[BalanceUpdateResult] = field(default_factory=list)
