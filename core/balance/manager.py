"""
Balance Management Service

버킷별 잔액 조회와 원자적 잔액 갱신.

갱신 절차 (하나의 직렬화 트랜잭션):
1. 버킷 락 획득 (버킷마다 별도 asyncio.Lock - 다른 버킷끼리는 서로 막지 않음)
2. BEGIN IMMEDIATE
3. 그날의 마감 잔액 기준으로 before 계산
4. after < 0 이면 InsufficientBalance (아무것도 기록하지 않음)
5. 그날 개시 잔액 행이 없으면 기준 스냅샷으로 생성
6. 원장 항목 기록
7. 영향받는 날짜 이후 마감 잔액 캐시 무효화
8. COMMIT (실패 시 전부 ROLLBACK)
"""

import asyncio
import logging
from contextlib import AsyncExitStack, asynccontextmanager
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import AsyncIterator, Callable, Iterable

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.balance.chain import DailyBalanceChain
from core.balance.models import BalanceUpdate, BalanceUpdateResult, DailyOpeningBalance
from core.balance.repository import DailyBalanceRepository
from core.errors import InsufficientBalance, InvalidAmount
from core.ledger.store import LedgerStore
from core.ledger.types import SYSTEM_ACTOR, Actor, BalanceTransaction, Bucket
from core.types import BalanceSource, TransactionType
from core.utils.timezone import business_day, end_of_day_utc, now_utc

logger = logging.getLogger(__name__)


def to_amount(value: Decimal | int | str) -> Decimal:
    """금액 검증 및 Decimal 변환

    Raises:
        InvalidAmount: 숫자가 아니거나 0 이하인 경우
    """
    if isinstance(value, float):
        value = str(value)
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError) as e:
        raise InvalidAmount(f"Amount must be a number: {value!r}") from e
    if not amount.is_finite() or amount <= 0:
        raise InvalidAmount(f"Amount must be greater than zero: {value!r}")
    return amount


class BalanceManagementService:
    """잔액 관리 서비스

    Args:
        db: SQLite 어댑터
        ledger: 원장 저장소
        chain: 일별 잔액 체인
        repository: 일별 잔액 저장소
        clock: 현재 시각 함수 (테스트에서 교체)
    """

    def __init__(
        self,
        db: SQLiteAdapter,
        ledger: LedgerStore,
        chain: DailyBalanceChain,
        repository: DailyBalanceRepository,
        clock: Callable[[], datetime] = now_utc,
    ):
        self.db = db
        self.ledger = ledger
        self.chain = chain
        self.repository = repository
        self._clock = clock
        self._locks: dict[str, asyncio.Lock] = {}

    # -------------------------------------------------------------------------
    # 조회
    # -------------------------------------------------------------------------

    async def get_balance(self, bucket: Bucket, as_of: date | None = None) -> Decimal:
        """특정 날짜 시점의 버킷 잔액

        as_of가 오늘이면 현재 시각까지, 아니면 그날 마지막 순간까지 기준.

        Args:
            bucket: 대상 버킷
            as_of: 영업일 (None이면 오늘)

        Returns:
            잔액
        """
        now = self._clock()
        today = business_day(now)
        day = as_of or today
        cutoff = now if day == today else end_of_day_utc(day)
        return await self.get_balance_at(bucket, cutoff, day)

    async def get_balance_at(
        self,
        bucket: Bucket,
        moment: datetime,
        day: date | None = None,
    ) -> Decimal:
        """특정 시각의 버킷 잔액

        1. moment 이전 마지막 원장 항목의 after_balance
        2. 그날 개시 잔액 행의 값
        3. 전일 마감 잔액의 값 (필요 시 계산)
        4. 0

        Args:
            bucket: 대상 버킷
            moment: 기준 시각
            day: 2~3단계에 쓸 영업일 (None이면 moment의 영업일)
        """
        latest = await self.ledger.latest_for_bucket(bucket, moment)
        if latest is not None:
            return latest.after_balance

        day = day or business_day(moment)
        opening = await self.repository.get_opening(day)
        if opening is not None:
            return opening.balances.get(bucket)

        previous = await self.chain.get_previous_day_closing_balance(day)
        return previous.balances.get(bucket)

    async def get_balances(self, as_of: date | None = None) -> dict[str, Decimal]:
        """알려진 모든 버킷의 잔액 (라벨 → 잔액)"""
        day = as_of or business_day(self._clock())
        baseline = await self.chain.get_baseline(day)
        buckets: dict[str, Bucket] = {b.label: b for b in baseline.balances.buckets()}
        for bucket in await self.ledger.known_buckets():
            buckets.setdefault(bucket.label, bucket)

        return {
            label: await self.get_balance(bucket, day)
            for label, bucket in buckets.items()
        }

    # -------------------------------------------------------------------------
    # 갱신
    # -------------------------------------------------------------------------

    async def update_balance(
        self,
        bucket: Bucket,
        amount: Decimal | int | str,
        direction: TransactionType | str,
        *,
        source: BalanceSource | str = BalanceSource.MANUAL_ADJUSTMENT,
        source_id: str | None = None,
        description: str = "",
        date: date | None = None,
        actor: Actor = SYSTEM_ACTOR,
    ) -> BalanceUpdateResult:
        """버킷 잔액 갱신 (원자적)

        Args:
            bucket: 대상 버킷
            amount: 금액 (0 초과)
            direction: income / expense
            source: 출처 태그
            source_id: 원천 문서 ID
            description: 설명
            date: 논리적 날짜 (None이면 오늘)
            actor: 수행자

        Returns:
            before/after/change_amount/transaction_id

        Raises:
            InsufficientBalance: 잔액이 음수가 되는 경우
            InvalidAmount: 금액이 0 이하인 경우
            InvalidBucket: 버킷 참조가 잘못된 경우
        """
        update = BalanceUpdate(
            bucket=bucket,
            amount=to_amount(amount),
            direction=TransactionType(direction),
            source=source.value if isinstance(source, BalanceSource) else str(source),
            source_id=source_id,
            description=description,
            day=date,
        )
        results = await self.update_balances([update], actor=actor)
        return results[0]

    async def update_balances(
        self,
        updates: Iterable[BalanceUpdate],
        actor: Actor = SYSTEM_ACTOR,
    ) -> list[BalanceUpdateResult]:
        """여러 버킷 갱신을 하나의 트랜잭션으로 (전부 성공 또는 전부 취소)

        Args:
            updates: 갱신 요청 목록 (순서대로 적용)
            actor: 수행자

        Returns:
            요청 순서대로의 결과
        """
        updates = list(updates)
        if not updates:
            return []

        results: list[BalanceUpdateResult] = []
        async with self.bucket_locks(u.bucket for u in updates):
            async with self.db.transaction():
                for update in updates:
                    results.append(await self._apply(update, actor))

        for update, result in zip(updates, results):
            logger.info(
                f"잔액 갱신: {update.bucket.label} {result.before} → {result.after}",
                extra={
                    "transaction_id": result.transaction_id,
                    "source": update.source,
                    "source_id": update.source_id,
                    "user_id": actor.user_id,
                },
            )
        return results

    async def add_to_opening_balance(
        self,
        day: date,
        amount: Decimal | int | str,
        bucket: Bucket,
        actor: Actor = SYSTEM_ACTOR,
        description: str = "Added to opening balance",
    ) -> BalanceUpdateResult:
        """기준 잔액에 금액 추가 (add_opening_balance 원장 항목으로 기록)"""
        return await self.update_balance(
            bucket,
            amount,
            TransactionType.INCOME,
            source=BalanceSource.ADD_OPENING_BALANCE,
            description=description,
            date=day,
            actor=actor,
        )

    @asynccontextmanager
    async def bucket_locks(self, buckets: Iterable[Bucket]) -> AsyncIterator[None]:
        """버킷 락 획득 (라벨 정렬 순서로 획득하여 교착 방지)"""
        labels = sorted({bucket.label for bucket in buckets})
        async with AsyncExitStack() as stack:
            for label in labels:
                lock = self._locks.setdefault(label, asyncio.Lock())
                await stack.enter_async_context(lock)
            yield

    # -------------------------------------------------------------------------
    # 내부
    # -------------------------------------------------------------------------

    async def _apply(self, update: BalanceUpdate, actor: Actor) -> BalanceUpdateResult:
        """갱신 한 건 적용 (버킷 락 + 트랜잭션 내부에서 호출)"""
        now = self._clock()
        day = update.day or business_day(now)
        amount = to_amount(update.amount)
        change = amount if update.direction == TransactionType.INCOME else -amount

        # 하루 전체를 기준으로 한 잔액 (같은 날 갱신끼리 직렬화)
        closing = await self.chain.get_closing_balance(day)
        before = closing.balances.get(update.bucket)
        after = before + change
        if after < 0:
            raise InsufficientBalance(update.bucket.label, before, amount)

        await self._ensure_opening(day, actor, now)

        entry = await self.ledger.append(
            BalanceTransaction(
                transaction_id="",
                date=day,
                created_at=now,
                type=update.direction,
                amount=amount,
                bucket=update.bucket,
                description=update.description,
                source=update.source,
                source_id=update.source_id,
                user_id=actor.user_id,
                user_name=actor.user_name,
                before_balance=before,
                after_balance=after,
                change_amount=change,
            )
        )

        await self.chain.invalidate_from(min(day, business_day(now)))

        return BalanceUpdateResult(
            before=before,
            after=after,
            change_amount=change,
            transaction_id=entry.transaction_id,
        )

    async def _ensure_opening(self, day: date, actor: Actor, now: datetime) -> None:
        """그날 개시 잔액 행이 없으면 체인 기준 스냅샷으로 생성"""
        if await self.repository.get_opening(day) is not None:
            return

        baseline = await self.chain.get_stored_baseline_snapshot(day)
        await self.repository.insert_opening(
            DailyOpeningBalance(
                opening_id=None,
                date=day,
                balances=baseline,
                notes="Auto-created on first transaction of the day",
                created_by=actor.user_id,
                created_by_name=actor.user_name,
                created_at=now,
                updated_at=now,
            )
        )
