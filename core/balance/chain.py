"""
Daily Balance Chain

날짜별 개시(기준) 잔액 → 원장 재생 → 마감 잔액의 연쇄.

마감 잔액 행은 권위 있는 상태가 아니라 메모이즈된 캐시다.
- 캐시가 없으면 가장 가까운 기준점(캐시된 마감 / 저장된 개시 / 원장 시작 이전)까지
  거슬러 올라간 뒤 앞으로 채워 나간다 (재귀 없음, 날짜마다 한 번만 계산)
- 원장 항목/기준 잔액이 바뀌면 해당 날짜 이후 캐시를 무효화한다
- 카드 잔액은 캐시를 믿지 않고 읽을 때마다 원천 문서와 함께 다시 계산한다
"""

import dataclasses
import logging
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Callable

from adapters.db.sqlite_adapter import SQLiteAdapter
from adapters.interfaces import ISourceDocumentReader
from adapters.models import SourceDocument
from core.balance.models import DailyClosingBalance, DailyOpeningBalance
from core.balance.repository import DailyBalanceRepository
from core.constants import Defaults, Money
from core.ledger.reconcile import find_unrecorded_payments
from core.ledger.store import LedgerStore
from core.ledger.types import BalanceSnapshot, BalanceTransaction
from core.types import BalanceSource, BucketKind, DocumentKind, TransactionType
from core.utils.timezone import day_bounds_utc, now_utc

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)


def signed_amount(entry: BalanceTransaction) -> Decimal:
    """income이면 +amount, expense면 -amount"""
    return entry.amount if entry.type == TransactionType.INCOME else -entry.amount


def replay(baseline: BalanceSnapshot, entries: list[BalanceTransaction]) -> BalanceSnapshot:
    """기준 잔액 위에 원장 항목을 순서대로 적용

    opening_balance 항목은 기준값 설정 전용이므로 건너뛴다
    (add_opening_balance 등 나머지는 모두 적용).

    Args:
        baseline: 기준 잔액 (변경되지 않음)
        entries: created_at 오름차순 원장 항목

    Returns:
        적용 결과 스냅샷
    """
    result = baseline.copy()
    for entry in entries:
        if entry.source == BalanceSource.OPENING_BALANCE.value:
            continue
        result.apply(entry.bucket, signed_amount(entry))
    return result


class DailyBalanceChain:
    """일별 개시/마감 잔액 체인

    Args:
        db: SQLite 어댑터
        ledger: 원장 저장소
        repository: 일별 잔액 저장소
        documents: 원천 문서 리더 (없으면 카드 잔액을 원장만으로 계산)
        clock: 현재 시각 함수 (테스트에서 교체)
    """

    def __init__(
        self,
        db: SQLiteAdapter,
        ledger: LedgerStore,
        repository: DailyBalanceRepository,
        documents: ISourceDocumentReader | None = None,
        clock: Callable[[], datetime] = now_utc,
    ):
        self.db = db
        self.ledger = ledger
        self.repository = repository
        self.documents = documents
        self._clock = clock

    # -------------------------------------------------------------------------
    # 마감 잔액
    # -------------------------------------------------------------------------

    async def get_closing_balance(self, day: date) -> DailyClosingBalance:
        """날짜의 마감 잔액

        캐시가 있으면 현금/은행은 캐시 값을, 카드는 다시 계산한 값을 반환.
        없으면 계산 후 캐시에 저장.

        Args:
            day: 영업일

        Returns:
            마감 잔액
        """
        closing = await self.get_stored_closing_balance(day)
        return await self._with_live_cards(closing)

    async def get_previous_day_closing_balance(self, day: date) -> DailyClosingBalance:
        """전일 마감 잔액 (없으면 계산 후 캐시)"""
        return await self.get_closing_balance(day - ONE_DAY)

    async def get_cached_closing_balance(self, day: date) -> DailyClosingBalance | None:
        """캐시된 마감 잔액만 조회 (계산하지 않음, 카드는 다시 계산)"""
        closing = await self.repository.get_closing(day)
        if closing is None:
            return None
        return await self._with_live_cards(closing)

    async def get_stored_closing_balance(self, day: date) -> DailyClosingBalance:
        """원장 재생 결과 그대로의 마감 잔액 (카드 재계산 없음)"""
        closing = await self.repository.get_closing(day)
        if closing is not None:
            return closing

        async with self.db.transaction():
            # 락 대기 중 다른 Task가 채웠을 수 있음
            closing = await self.repository.get_closing(day)
            if closing is None:
                closing = await self._fill_until(day)
        return closing

    async def get_closing_balances(self, start: date, end: date) -> list[DailyClosingBalance]:
        """구간 내 캐시된 마감 잔액 목록"""
        return await self.repository.list_closings(start, end)

    async def recalculate(self, day: date, cascade: bool = False) -> DailyClosingBalance:
        """캐시를 버리고 다시 계산

        Args:
            day: 영업일
            cascade: True면 원장 시작일부터 전부 다시 계산

        Returns:
            다시 계산된 마감 잔액
        """
        async with self.db.transaction():
            start = day
            if cascade:
                floor = await self._floor_day()
                start = min(day, floor or day)
            await self.repository.delete_closings_from(start)

            # 개시 행이 중간에 있어도 start부터 모든 날짜를 다시 채움
            current = start
            while True:
                closing = await self._fill_until(current)
                if current >= day:
                    break
                current += ONE_DAY

        logger.info(
            f"마감 잔액 재계산: {day}",
            extra={"cash": str(closing.balances.cash), "cascade": cascade},
        )
        return await self._with_live_cards(closing)

    async def invalidate_from(self, day: date) -> int:
        """day 이후(포함) 마감 잔액 캐시 무효화"""
        deleted = await self.repository.delete_closings_from(day)
        if deleted:
            logger.debug(f"마감 잔액 캐시 무효화: {day}~ ({deleted}건)")
        return deleted

    # -------------------------------------------------------------------------
    # 기준 잔액
    # -------------------------------------------------------------------------

    async def get_baseline(self, day: date) -> DailyOpeningBalance:
        """날짜의 기준(개시) 잔액

        저장된 개시 잔액이 있으면 그대로, 없으면 전일 마감에서 합성 (저장하지 않음).
        """
        opening = await self.repository.get_opening(day)
        if opening is not None:
            return opening

        previous = await self.get_previous_day_closing_balance(day)
        return DailyOpeningBalance(
            opening_id=None,
            date=day,
            balances=previous.balances.copy(),
        )

    async def get_stored_baseline_snapshot(self, day: date) -> BalanceSnapshot:
        """체인 재생에 쓰이는 기준 스냅샷 (개시 행 또는 전일 마감 행, 카드 재계산 없음)"""
        opening = await self.repository.get_opening(day)
        if opening is not None:
            return opening.balances.copy()
        previous = await self.get_stored_closing_balance(day - ONE_DAY)
        return previous.balances.copy()

    # -------------------------------------------------------------------------
    # 내부
    # -------------------------------------------------------------------------

    async def _floor_day(self) -> date | None:
        """데이터가 존재하는 가장 이른 날짜 (이전 날짜는 모두 0)"""
        candidates = [
            d
            for d in (
                await self.ledger.earliest_day(),
                await self.repository.earliest_opening_day(),
            )
            if d is not None
        ]
        return min(candidates) if candidates else None

    async def _fill_until(self, day: date) -> DailyClosingBalance:
        """기준점까지 거슬러 올라간 뒤 day까지 앞으로 채움 (트랜잭션 내부에서 호출)"""
        floor = await self._floor_day()
        pending: list[date] = []
        cursor = day

        while True:
            pending.append(cursor)
            opening = await self.repository.get_opening(cursor)
            if opening is not None:
                baseline = opening.balances.copy()
                break
            if floor is None or cursor <= floor:
                baseline = BalanceSnapshot()
                break
            previous = await self.repository.get_closing(cursor - ONE_DAY)
            if previous is not None:
                baseline = previous.balances.copy()
                break
            cursor -= ONE_DAY

        if len(pending) > 1:
            logger.info(
                f"마감 잔액 체인 공백 채움: {pending[-1]} ~ {day} ({len(pending)}일)"
            )

        closing: DailyClosingBalance | None = None
        snapshot = baseline
        for current in reversed(pending):
            snapshot = await self._replay_day(current, snapshot)
            closing = DailyClosingBalance(
                date=current,
                balances=snapshot,
                calculated_by=Defaults.SYSTEM_USER_ID,
                calculated_at=self._clock(),
            )
            await self.repository.upsert_closing(closing)

        assert closing is not None
        return closing

    async def _replay_day(self, day: date, baseline: BalanceSnapshot) -> BalanceSnapshot:
        """발생일(created_at의 영업일)이 day인 원장 항목을 재생"""
        start, end = day_bounds_utc(day)
        entries = await self.ledger.query(created_from=start, created_to=end)
        return replay(baseline, entries)

    async def _with_live_cards(self, closing: DailyClosingBalance) -> DailyClosingBalance:
        """카드 잔액을 기준값 + 원장 + 원장에 없는 문서 결제로 다시 계산"""
        if self.documents is None:
            return closing

        day = closing.date
        cards = dict((await self.get_stored_baseline_snapshot(day)).cards)

        start, end = day_bounds_utc(day)
        for entry in await self.ledger.query(created_from=start, created_to=end):
            if entry.bucket.kind != BucketKind.CARD:
                continue
            if entry.source == BalanceSource.OPENING_BALANCE.value:
                continue
            ref = entry.bucket.ref_id or ""
            cards[ref] = cards.get(ref, Money.ZERO) + signed_amount(entry)

        logical_entries = await self.ledger.query(date_from=day, date_to=day)
        documents = await self._documents_for(day)
        for item in find_unrecorded_payments(logical_entries, documents, day, day):
            if item.bucket.kind != BucketKind.CARD:
                continue
            ref = item.bucket.ref_id or ""
            change = item.payment.amount
            if item.document.direction == TransactionType.EXPENSE:
                change = -change
            cards[ref] = cards.get(ref, Money.ZERO) + change

        live = {ref: value for ref, value in cards.items() if value > 0}
        balances = dataclasses.replace(closing.balances, cards=live)
        return dataclasses.replace(closing, balances=balances)

    async def _documents_for(self, day: date) -> list[SourceDocument]:
        assert self.documents is not None
        documents: list[SourceDocument] = []
        for kind in DocumentKind:
            documents.extend(await self.documents.list_documents(kind, day, day))
        return documents
