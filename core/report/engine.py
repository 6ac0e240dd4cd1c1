"""
Reconciliation / Report Engine

원장 재생 + 원천 문서 대사로 일별/기간 리포트를 구성한다 (읽기 전용).

구성 절차:
1. 기준 잔액 (저장된 개시 행 → 전일 마감 → 0)
2. 논리적 날짜가 구간에 속하는 원장 항목 (createdAt 오름차순)
3. 결제일이 구간에 속하는 원천 문서 결제 행 (외상/0원 제외)
4. composite key 집합 차이로 원장에 없는 결제 행만 합성 단계로 추가
5. 시각순 안정 정렬 후 누적 잔액 재생, 단계 번호 재부여
6. 마감 잔액 = 체인 캐시 행 (없으면 누적 결과)
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal

from adapters.interfaces import ISourceDocumentReader
from adapters.models import SourceDocument
from core.balance.chain import DailyBalanceChain, signed_amount
from core.ledger.reconcile import UnrecordedPayment, find_unrecorded_payments
from core.ledger.store import LedgerStore
from core.ledger.types import BalanceSnapshot, BalanceTransaction, Bucket
from core.report.models import (
    BalanceView,
    DailyReport,
    DateRangeReport,
    OpeningBalanceAddition,
    PaymentBreakdown,
    ReportFailure,
    ReportStep,
    ReportSummary,
)
from core.types import BalanceSource, DocumentKind, PaymentType, TransactionType
from core.utils.timezone import BUSINESS_TZ, payment_moment, to_business

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)


@dataclass
class _Movement:
    """정렬 전 단계 후보 (원장 항목 또는 합성 결제)"""

    time: datetime
    day: date
    type: TransactionType
    source: str
    source_id: str | None
    bucket: Bucket
    amount: Decimal
    description: str
    user_id: str | None = None
    user_name: str | None = None
    transaction_id: str | None = None
    recorded: bool = True

    @classmethod
    def from_entry(cls, entry: BalanceTransaction) -> "_Movement":
        return cls(
            time=to_business(entry.created_at),
            day=entry.date,
            type=entry.type,
            source=entry.source,
            source_id=entry.source_id,
            bucket=entry.bucket,
            amount=entry.amount,
            description=entry.description,
            user_id=entry.user_id,
            user_name=entry.user_name,
            transaction_id=entry.transaction_id,
        )

    @classmethod
    def from_unrecorded(cls, item: UnrecordedPayment) -> "_Movement":
        document = item.document
        return cls(
            time=payment_moment(item.payment.date),
            day=item.payment.day,
            type=document.direction,
            source=document.source,
            source_id=document.document_id,
            bucket=item.bucket,
            amount=item.payment.amount,
            description=document.description or f"{document.kind.value} {document.document_id}",
            recorded=False,
        )

    @property
    def change(self) -> Decimal:
        return self.amount if self.type == TransactionType.INCOME else -self.amount


@dataclass
class _Body:
    """일별/기간 리포트 공통 본문"""

    opening: BalanceSnapshot
    closing: BalanceSnapshot
    closing_from_cache: bool
    steps: list[ReportStep]
    summary: ReportSummary
    sales: PaymentBreakdown
    purchases: PaymentBreakdown
    expenses: PaymentBreakdown
    additions: list[OpeningBalanceAddition]


def build_steps(
    start: date,
    opening: BalanceSnapshot,
    movements: list[_Movement],
) -> tuple[list[ReportStep], BalanceSnapshot]:
    """정렬된 단계 목록과 누적 잔액 계산

    시각순 안정 정렬 (같은 시각이면 원장 항목이 합성 결제보다 앞).
    opening_balance 항목은 단계로는 남기되 잔액에는 반영하지 않는다.

    Args:
        start: 구간 시작일 (개시 단계 시각)
        opening: 기준 잔액 (변경되지 않음)
        movements: 단계 후보

    Returns:
        (단계 목록, 누적 결과 잔액)
    """
    ordered = sorted(movements, key=lambda m: (m.time, not m.recorded))
    running = opening.copy()

    steps = [
        ReportStep(
            step=1,
            type=BalanceSource.OPENING_BALANCE.value,
            time=datetime.combine(start, time.min, tzinfo=BUSINESS_TZ),
            date=start,
            source=BalanceSource.OPENING_BALANCE.value,
            cash_before=running.cash,
            cash_after=running.cash,
            balances_after=BalanceView.from_snapshot(running),
            description="Opening Balance",
        )
    ]

    for movement in ordered:
        cash_before = running.cash
        before = running.get(movement.bucket)
        if movement.source == BalanceSource.OPENING_BALANCE.value:
            after = before
        else:
            after = running.apply(movement.bucket, movement.change)
        steps.append(
            ReportStep(
                step=len(steps) + 1,
                type=movement.type.value,
                time=movement.time,
                date=movement.day,
                source=movement.source,
                source_id=movement.source_id,
                payment_type=movement.bucket.payment_type.value,
                bucket=movement.bucket.label,
                amount=movement.amount,
                balance_before=before,
                balance_after=after,
                cash_before=cash_before,
                cash_after=running.cash,
                balances_after=BalanceView.from_snapshot(running),
                description=movement.description,
                user_id=movement.user_id,
                user_name=movement.user_name,
                transaction_id=movement.transaction_id,
                recorded=movement.recorded,
            )
        )
    return steps, running


def summarize(steps: list[ReportStep]) -> ReportSummary:
    """단계 목록 요약 (개시 단계와 opening_balance 항목 제외)"""
    summary = ReportSummary()
    for step in steps[1:]:
        summary.step_count += 1
        if step.recorded:
            summary.recorded_count += 1
        else:
            summary.synthesized_count += 1
        if step.source == BalanceSource.OPENING_BALANCE.value:
            continue
        if step.type == TransactionType.INCOME.value:
            summary.total_income += step.amount
        else:
            summary.total_expense += step.amount
    summary.net_change = summary.total_income - summary.total_expense
    return summary


def payment_breakdown(
    documents: list[SourceDocument],
    kind: DocumentKind,
    start: date,
    end: date,
) -> PaymentBreakdown:
    """결제일이 구간에 속하는 결제 행의 결제 수단별 합계

    외상 결제도 합계에 포함한다 (잔액은 움직이지 않음). 0원 이하 결제 행과
    완료되지 않은 문서는 제외.
    """
    breakdown = PaymentBreakdown()
    for document in documents:
        if document.kind != kind or not document.is_completed:
            continue
        payments = [
            p for p in document.payments if start <= p.day <= end and p.amount > 0
        ]
        if not payments:
            continue
        breakdown.count += 1
        for payment in payments:
            breakdown.total += payment.amount
            if payment.type == PaymentType.CASH:
                breakdown.cash += payment.amount
            elif payment.type == PaymentType.BANK_TRANSFER:
                breakdown.bank_transfer += payment.amount
            elif payment.type == PaymentType.CARD:
                breakdown.card += payment.amount
            else:
                breakdown.credit += payment.amount
    return breakdown


def opening_additions(entries: list[BalanceTransaction]) -> list[OpeningBalanceAddition]:
    """기준 잔액 추가/차감 원장 항목 (최초 opening_balance 제외)"""
    additions = []
    for entry in entries:
        if entry.source not in (
            BalanceSource.ADD_OPENING_BALANCE.value,
            BalanceSource.OPENING_BALANCE_DEDUCTION.value,
        ):
            continue
        additions.append(
            OpeningBalanceAddition(
                transaction_id=entry.transaction_id,
                date=entry.date,
                bucket=entry.bucket.label,
                amount=signed_amount(entry),
                description=entry.description,
                user_name=entry.user_name,
                created_at=entry.created_at,
            )
        )
    return additions


class ReportEngine:
    """일별/기간 리포트 생성기

    Args:
        ledger: 원장 저장소
        chain: 일별 잔액 체인
        documents: 원천 문서 리더

    사용 예시:
    ```python
    engine = ReportEngine(ledger, chain, documents)
    report = await engine.get_daily_report(date(2026, 3, 1))
    print(report.closing_balance.cash)
    ```
    """

    def __init__(
        self,
        ledger: LedgerStore,
        chain: DailyBalanceChain,
        documents: ISourceDocumentReader,
    ):
        self.ledger = ledger
        self.chain = chain
        self.documents = documents

    async def get_daily_report(self, day: date) -> DailyReport:
        """일별 리포트

        Args:
            day: 영업일

        Returns:
            개시/마감 잔액, 단계, 요약, 문서별 결제 합계
        """
        body = await self._build(day, day)
        return DailyReport(
            date=day,
            opening_balance=BalanceView.from_snapshot(body.opening),
            closing_balance=BalanceView.from_snapshot(body.closing),
            closing_from_cache=body.closing_from_cache,
            steps=body.steps,
            summary=body.summary,
            sales=body.sales,
            purchases=body.purchases,
            expenses=body.expenses,
            opening_balance_additions=body.additions,
        )

    async def get_date_range_report(self, start: date, end: date) -> DateRangeReport:
        """기간 리포트

        구간 전체의 단계/요약과 함께 날짜별 일별 리포트를 포함한다.
        특정 날짜의 일별 리포트가 실패하면 기록하고 다음 날짜로 진행.

        Args:
            start: 시작일
            end: 종료일 (포함)

        Returns:
            기간 리포트

        Raises:
            ValueError: start > end
        """
        if start > end:
            raise ValueError(f"start_date must not be after end_date: {start} > {end}")

        body = await self._build(start, end)

        daily: list[DailyReport] = []
        failures: list[ReportFailure] = []
        current = start
        while current <= end:
            try:
                daily.append(await self.get_daily_report(current))
            except Exception as e:
                logger.exception(f"일별 리포트 생성 실패: {current}")
                failures.append(ReportFailure(date=current, error=str(e)))
            current += ONE_DAY

        if failures:
            logger.warning(
                f"기간 리포트 일부 실패: {start} ~ {end}",
                extra={"failed_days": [f.date.isoformat() for f in failures]},
            )

        return DateRangeReport(
            start_date=start,
            end_date=end,
            opening_balance=BalanceView.from_snapshot(body.opening),
            closing_balance=BalanceView.from_snapshot(body.closing),
            closing_from_cache=body.closing_from_cache,
            steps=body.steps,
            summary=body.summary,
            sales=body.sales,
            purchases=body.purchases,
            expenses=body.expenses,
            opening_balance_additions=body.additions,
            daily_breakdown=daily,
            failures=failures,
        )

    # -------------------------------------------------------------------------
    # 내부
    # -------------------------------------------------------------------------

    async def _build(self, start: date, end: date) -> _Body:
        baseline = await self.chain.get_baseline(start)
        opening = baseline.balances.copy()

        entries = await self.ledger.query(date_from=start, date_to=end)
        documents = await self._documents_for(start, end)
        unrecorded = find_unrecorded_payments(entries, documents, start, end)

        movements = [_Movement.from_entry(entry) for entry in entries]
        movements.extend(_Movement.from_unrecorded(item) for item in unrecorded)
        steps, running = build_steps(start, opening, movements)

        cached = await self.chain.get_cached_closing_balance(end)
        closing = cached.balances if cached is not None else running

        logger.debug(
            f"리포트 구성: {start} ~ {end}",
            extra={
                "ledger_steps": len(entries),
                "synthesized_steps": len(unrecorded),
                "closing_from_cache": cached is not None,
            },
        )

        return _Body(
            opening=opening,
            closing=closing,
            closing_from_cache=cached is not None,
            steps=steps,
            summary=summarize(steps),
            sales=payment_breakdown(documents, DocumentKind.SALE, start, end),
            purchases=payment_breakdown(documents, DocumentKind.PURCHASE, start, end),
            expenses=payment_breakdown(documents, DocumentKind.EXPENSE, start, end),
            additions=opening_additions(entries),
        )

    async def _documents_for(self, start: date, end: date) -> list[SourceDocument]:
        documents: list[SourceDocument] = []
        for kind in DocumentKind:
            documents.extend(await self.documents.list_documents(kind, start, end))
        return documents
