"""
Opening-Balance Manager

일별 기준(개시) 잔액 CRUD.
기준값은 생성 이후 직접 덮어쓰지 않고, 수정 요청은 변동분을 원장 항목
(add_opening_balance / opening_balance_deduction)으로 기록한다.
"""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.balance.chain import DailyBalanceChain, signed_amount
from core.balance.manager import BalanceManagementService
from core.balance.models import (
    BalanceUpdate,
    BalanceUpdateResult,
    DailyOpeningBalance,
    OpeningBalanceUpdate,
)
from core.balance.repository import DailyBalanceRepository
from core.errors import DuplicateBaseline, NotFound
from core.ledger.store import LedgerStore
from core.ledger.types import SYSTEM_ACTOR, Actor, BalanceSnapshot, Bucket
from core.types import BalanceSource, TransactionType
from core.utils.timezone import business_day, end_of_day_utc, now_utc

logger = logging.getLogger(__name__)

# 기준 잔액 조정으로 기록되는 원장 출처 태그
ADJUSTMENT_SOURCES = frozenset({
    BalanceSource.ADD_OPENING_BALANCE.value,
    BalanceSource.OPENING_BALANCE_DEDUCTION.value,
})


class OpeningBalanceManager:
    """기준(개시) 잔액 관리자

    Args:
        db: SQLite 어댑터
        repository: 일별 잔액 저장소
        chain: 일별 잔액 체인
        balances: 잔액 관리 서비스
        ledger: 원장 저장소
        clock: 현재 시각 함수 (테스트에서 교체)
    """

    def __init__(
        self,
        db: SQLiteAdapter,
        repository: DailyBalanceRepository,
        chain: DailyBalanceChain,
        balances: BalanceManagementService,
        ledger: LedgerStore,
        clock: Callable[[], datetime] = now_utc,
    ):
        self.db = db
        self.repository = repository
        self.chain = chain
        self.balances = balances
        self.ledger = ledger
        self._clock = clock

    async def create(
        self,
        day: date,
        cash_balance: Decimal | int | str,
        bank_balances: list[dict[str, Any]] | None = None,
        card_balances: list[dict[str, Any]] | None = None,
        notes: str | None = None,
        actor: Actor = SYSTEM_ACTOR,
    ) -> DailyOpeningBalance:
        """기준 잔액 생성 (원장 항목은 기록하지 않음)

        Args:
            day: 영업일
            cash_balance: 현금 기준 잔액
            bank_balances: [{"bankAccountId": ..., "balance": ...}]
            card_balances: [{"cardId": ..., "balance": ...}]
            notes: 메모
            actor: 수행자

        Returns:
            저장된 기준 잔액

        Raises:
            DuplicateBaseline: 해당 날짜에 이미 기준 잔액이 있는 경우
            ValueError: 현금 기준 잔액이 음수인 경우
            InvalidBucket: 은행 계좌/카드 ID가 비어 있는 경우
        """
        snapshot = BalanceSnapshot.from_lists(
            Decimal(str(cash_balance)), bank_balances, card_balances
        )
        if snapshot.cash < 0:
            raise ValueError("Cash balance cannot be negative")

        now = self._clock()
        async with self.db.transaction():
            if await self.repository.get_opening(day) is not None:
                raise DuplicateBaseline(f"Opening balance already exists for {day}")

            opening = await self.repository.insert_opening(
                DailyOpeningBalance(
                    opening_id=None,
                    date=day,
                    balances=snapshot,
                    notes=notes,
                    created_by=actor.user_id,
                    created_by_name=actor.user_name,
                    created_at=now,
                    updated_at=now,
                )
            )
            await self.chain.invalidate_from(day)

        return opening

    async def update(
        self,
        opening_id: str,
        new_cash: Decimal | int | str | None = None,
        new_bank_balances: list[dict[str, Any]] | None = None,
        notes: str | None = None,
        actor: Actor = SYSTEM_ACTOR,
    ) -> OpeningBalanceUpdate:
        """기준 잔액 수정 (변동분을 원장 항목으로 기록)

        변동분 = 요청 값 - 현재 유효 기준값 (저장된 기준값 + 그날 이미 기록된 조정분).
        같은 값으로 두 번 수정해도 두 번째는 아무것도 기록하지 않는다.

        Args:
            opening_id: 기준 잔액 ID
            new_cash: 새 현금 기준값
            new_bank_balances: 새 은행 기준값 목록 (목록에 없는 계좌는 그대로)
            notes: 새 메모 (None이면 그대로)
            actor: 수행자

        Returns:
            저장된 기준 잔액과 기록된 조정 결과

        Raises:
            NotFound: 기준 잔액이 없는 경우
            InsufficientBalance: 차감으로 잔액이 음수가 되는 경우
        """
        opening = await self.repository.get_opening_by_id(opening_id)
        if opening is None:
            raise NotFound(f"Opening balance not found: {opening_id}")

        effective = await self.get_effective_baseline(opening)
        targets: list[tuple[Bucket, Decimal]] = []
        if new_cash is not None:
            if Decimal(str(new_cash)) < 0:
                raise ValueError("Cash balance cannot be negative")
            targets.append((Bucket.cash(), Decimal(str(new_cash))))
        for item in new_bank_balances or []:
            targets.append(
                (Bucket.bank(item["bankAccountId"]), Decimal(str(item["balance"])))
            )

        updates = []
        for bucket, target in targets:
            delta = target - effective.get(bucket)
            if delta == 0:
                continue
            if delta > 0:
                updates.append(
                    BalanceUpdate(
                        bucket=bucket,
                        amount=delta,
                        direction=TransactionType.INCOME,
                        source=BalanceSource.ADD_OPENING_BALANCE.value,
                        source_id=opening.opening_id,
                        description="Opening balance adjustment",
                        day=opening.date,
                    )
                )
            else:
                updates.append(
                    BalanceUpdate(
                        bucket=bucket,
                        amount=-delta,
                        direction=TransactionType.EXPENSE,
                        source=BalanceSource.OPENING_BALANCE_DEDUCTION.value,
                        source_id=opening.opening_id,
                        description="Opening balance deduction",
                        day=opening.date,
                    )
                )

        adjustments = await self.balances.update_balances(updates, actor=actor)

        now = self._clock()
        if notes is not None:
            await self.repository.update_opening_notes(opening_id, notes, now)
        elif adjustments:
            await self.repository.touch_opening(opening_id, now)

        refreshed = await self.repository.get_opening_by_id(opening_id)
        assert refreshed is not None
        logger.info(
            f"기준 잔액 수정: {opening.date}",
            extra={"opening_id": opening_id, "adjustments": len(adjustments)},
        )
        return OpeningBalanceUpdate(opening=refreshed, adjustments=adjustments)

    async def add_to_opening_balance(
        self,
        day: date,
        amount: Decimal | int | str,
        bucket: Bucket,
        actor: Actor = SYSTEM_ACTOR,
    ) -> BalanceUpdateResult:
        """기준 잔액에 금액 추가 (원장 항목으로 기록)"""
        return await self.balances.add_to_opening_balance(day, amount, bucket, actor=actor)

    async def get_opening_balance(self, day: date) -> DailyOpeningBalance:
        """개시 잔액 조회 (저장된 행이면 현금/은행 값을 실시간 잔액으로 대체)

        저장된 행이 없으면 전일 마감 잔액에서 합성 (저장하지 않음).
        기준값 자체가 필요하면 get_baseline(), 특정 시각 잔액은 get_running_balance().
        """
        opening = await self.repository.get_opening(day)
        if opening is None:
            return await self.chain.get_baseline(day)

        live = opening.balances.copy()
        live.cash = await self.balances.get_balance(Bucket.cash(), day)
        for bank_account_id in list(live.banks):
            live.banks[bank_account_id] = await self.balances.get_balance(
                Bucket.bank(bank_account_id), day
            )
        opening.balances = live
        return opening

    async def get_baseline(self, day: date) -> DailyOpeningBalance:
        """날짜의 정적인 기준 잔액 (저장된 행 또는 전일 마감에서 합성)"""
        return await self.chain.get_baseline(day)

    async def get_running_balance(
        self,
        day: date,
        as_of: datetime | None = None,
    ) -> BalanceSnapshot:
        """날짜 내 특정 시각까지의 실시간 잔액

        Args:
            day: 영업일
            as_of: 기준 시각 (None이면 오늘은 현재, 다른 날은 그날 마지막 순간)

        Returns:
            기준 잔액에 등장하는 버킷 + 원장에 등장한 버킷의 잔액
        """
        if as_of is None:
            now = self._clock()
            as_of = now if business_day(now) == day else end_of_day_utc(day)

        baseline = await self.chain.get_baseline(day)
        buckets = {bucket.label: bucket for bucket in baseline.balances.buckets()}
        for bucket in await self.ledger.known_buckets():
            buckets.setdefault(bucket.label, bucket)

        running = BalanceSnapshot()
        for bucket in buckets.values():
            running.set(bucket, await self.balances.get_balance_at(bucket, as_of, day))
        return running

    async def get_effective_baseline(self, opening: DailyOpeningBalance) -> BalanceSnapshot:
        """저장된 기준값 + 그날 기록된 기준 잔액 조정분"""
        effective = opening.balances.copy()
        entries = await self.ledger.query(date_from=opening.date, date_to=opening.date)
        for entry in entries:
            if entry.source in ADJUSTMENT_SOURCES:
                effective.apply(entry.bucket, signed_amount(entry))
        return effective

    async def get(self, opening_id: str) -> DailyOpeningBalance:
        """ID로 조회

        Raises:
            NotFound: 기준 잔액이 없는 경우
        """
        opening = await self.repository.get_opening_by_id(opening_id)
        if opening is None:
            raise NotFound(f"Opening balance not found: {opening_id}")
        return opening

    async def get_by_date(self, day: date) -> DailyOpeningBalance | None:
        """저장된 기준 잔액만 조회 (합성하지 않음)"""
        return await self.repository.get_opening(day)

    async def list_openings(self, start: date, end: date) -> list[DailyOpeningBalance]:
        """구간 내 저장된 기준 잔액 목록"""
        return await self.repository.list_openings(start, end)

    async def delete(self, opening_id: str) -> None:
        """기준 잔액 삭제

        Raises:
            NotFound: 기준 잔액이 없는 경우
        """
        async with self.db.transaction():
            opening = await self.repository.get_opening_by_id(opening_id)
            if opening is None:
                raise NotFound(f"Opening balance not found: {opening_id}")
            await self.repository.delete_opening(opening_id)
            await self.chain.invalidate_from(opening.date)
