"""
리포트 스키마 (Pydantic)

일별/기간 리포트 직렬화.
호출 레이어(HTTP/CLI)에서는 model_dump(mode="json")로 변환하여 사용.
"""

import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, Field

from core.ledger.types import BalanceSnapshot


class BankBalanceItem(BaseModel):
    """은행 계좌별 잔액"""

    bank_account_id: str = Field(..., description="은행 계좌 ID")
    balance: Decimal = Field(..., description="잔액")


class CardBalanceItem(BaseModel):
    """카드별 잔액"""

    card_id: str = Field(..., description="카드 ID")
    balance: Decimal = Field(..., description="잔액")


class BalanceView(BaseModel):
    """현금/은행/카드 잔액 묶음"""

    cash: Decimal = Field(default=Decimal("0"), description="현금 잔액")
    bank_balances: list[BankBalanceItem] = Field(default_factory=list, description="은행 계좌별 잔액")
    card_balances: list[CardBalanceItem] = Field(default_factory=list, description="카드별 잔액")
    total: Decimal = Field(default=Decimal("0"), description="전체 합계")

    @classmethod
    def from_snapshot(cls, snapshot: BalanceSnapshot) -> "BalanceView":
        banks = [
            BankBalanceItem(bank_account_id=k, balance=v)
            for k, v in sorted(snapshot.banks.items())
        ]
        cards = [
            CardBalanceItem(card_id=k, balance=v)
            for k, v in sorted(snapshot.cards.items())
        ]
        total = snapshot.cash + sum(snapshot.banks.values(), Decimal("0")) + sum(
            snapshot.cards.values(), Decimal("0")
        )
        return cls(cash=snapshot.cash, bank_balances=banks, card_balances=cards, total=total)

    def bank(self, bank_account_id: str) -> Decimal:
        """은행 계좌 잔액 (없으면 0)"""
        for item in self.bank_balances:
            if item.bank_account_id == bank_account_id:
                return item.balance
        return Decimal("0")

    def card(self, card_id: str) -> Decimal:
        """카드 잔액 (없으면 0)"""
        for item in self.card_balances:
            if item.card_id == card_id:
                return item.balance
        return Decimal("0")


class ReportStep(BaseModel):
    """리포트 단계 (잔액을 움직인 사건 하나)

    recorded=False 인 단계는 원장에 없고 원천 문서 결제 행에서 합성된 것.
    """

    step: int = Field(..., description="단계 번호 (1부터, 1은 개시 잔액)")
    type: str = Field(..., description="opening_balance / income / expense")
    time: dt.datetime = Field(..., description="발생 시각 (사업장 시간)")
    date: dt.date = Field(..., description="논리적 날짜")
    source: str = Field(..., description="출처 태그")
    source_id: str | None = Field(default=None, description="원천 문서 ID")
    payment_type: str | None = Field(default=None, description="결제 수단")
    bucket: str | None = Field(default=None, description="버킷 라벨 (cash, bank:ID, card:ID)")
    amount: Decimal = Field(default=Decimal("0"), description="금액")
    balance_before: Decimal = Field(default=Decimal("0"), description="해당 버킷 적용 전 잔액")
    balance_after: Decimal = Field(default=Decimal("0"), description="해당 버킷 적용 후 잔액")
    cash_before: Decimal = Field(default=Decimal("0"), description="적용 전 현금")
    cash_after: Decimal = Field(default=Decimal("0"), description="적용 후 현금")
    balances_after: BalanceView = Field(..., description="적용 후 전체 잔액")
    description: str = Field(default="", description="설명")
    user_id: str | None = Field(default=None, description="수행자 ID")
    user_name: str | None = Field(default=None, description="수행자 이름")
    transaction_id: str | None = Field(default=None, description="원장 항목 ID")
    recorded: bool = Field(default=True, description="원장 기록 여부")


class PaymentBreakdown(BaseModel):
    """결제 수단별 합계 (판매/구매/지출)"""

    count: int = Field(default=0, description="구간 내 결제가 있는 문서 수")
    total: Decimal = Field(default=Decimal("0"), description="구간 내 결제 합계")
    cash: Decimal = Field(default=Decimal("0"), description="현금")
    bank_transfer: Decimal = Field(default=Decimal("0"), description="계좌 이체")
    card: Decimal = Field(default=Decimal("0"), description="카드")
    credit: Decimal = Field(default=Decimal("0"), description="외상")


class ReportSummary(BaseModel):
    """리포트 요약"""

    total_income: Decimal = Field(default=Decimal("0"), description="입금 합계")
    total_expense: Decimal = Field(default=Decimal("0"), description="출금 합계")
    net_change: Decimal = Field(default=Decimal("0"), description="순변동")
    step_count: int = Field(default=0, description="단계 수 (개시 단계 제외)")
    recorded_count: int = Field(default=0, description="원장 단계 수")
    synthesized_count: int = Field(default=0, description="원천 문서에서 합성된 단계 수")


class OpeningBalanceAddition(BaseModel):
    """구간 내 기준 잔액 추가 기록"""

    transaction_id: str = Field(..., description="원장 항목 ID")
    date: dt.date = Field(..., description="논리적 날짜")
    bucket: str = Field(..., description="버킷 라벨")
    amount: Decimal = Field(..., description="금액")
    description: str = Field(default="", description="설명")
    user_name: str | None = Field(default=None, description="수행자 이름")
    created_at: dt.datetime = Field(..., description="기록 시각 (UTC)")


class DailyReport(BaseModel):
    """일별 리포트"""

    date: dt.date = Field(..., description="영업일")
    opening_balance: BalanceView = Field(..., description="개시 잔액")
    closing_balance: BalanceView = Field(..., description="마감 잔액")
    closing_from_cache: bool = Field(default=False, description="마감 잔액이 체인 캐시 값인지")
    steps: list[ReportStep] = Field(default_factory=list, description="시간순 단계")
    summary: ReportSummary = Field(default_factory=ReportSummary, description="요약")
    sales: PaymentBreakdown = Field(default_factory=PaymentBreakdown, description="판매 결제")
    purchases: PaymentBreakdown = Field(default_factory=PaymentBreakdown, description="구매 결제")
    expenses: PaymentBreakdown = Field(default_factory=PaymentBreakdown, description="지출 결제")
    opening_balance_additions: list[OpeningBalanceAddition] = Field(
        default_factory=list, description="기준 잔액 추가 기록"
    )


class ReportFailure(BaseModel):
    """기간 리포트 중 실패한 날짜"""

    date: dt.date = Field(..., description="영업일")
    error: str = Field(..., description="오류 내용")


class DateRangeReport(BaseModel):
    """기간 리포트"""

    start_date: dt.date = Field(..., description="시작일")
    end_date: dt.date = Field(..., description="종료일")
    opening_balance: BalanceView = Field(..., description="시작일 개시 잔액")
    closing_balance: BalanceView = Field(..., description="종료일 마감 잔액")
    closing_from_cache: bool = Field(default=False, description="마감 잔액이 체인 캐시 값인지")
    steps: list[ReportStep] = Field(default_factory=list, description="시간순 단계")
    summary: ReportSummary = Field(default_factory=ReportSummary, description="요약")
    sales: PaymentBreakdown = Field(default_factory=PaymentBreakdown, description="판매 결제")
    purchases: PaymentBreakdown = Field(default_factory=PaymentBreakdown, description="구매 결제")
    expenses: PaymentBreakdown = Field(default_factory=PaymentBreakdown, description="지출 결제")
    opening_balance_additions: list[OpeningBalanceAddition] = Field(
        default_factory=list, description="기준 잔액 추가 기록"
    )
    daily_breakdown: list[DailyReport] = Field(default_factory=list, description="일별 리포트")
    failures: list[ReportFailure] = Field(default_factory=list, description="실패한 날짜")
