"""
Cashbook 서비스

호출 레이어(HTTP 핸들러, 스크립트)에 노출되는 연산을 한 객체로 묶는다.
구성 요소 간 의존성 주입(원장 → 체인 → 잔액 관리 → 기준 잔액 → 리포트)도 여기서 처리.

사용 예시:
```python
async with open_cashbook() as cashbook:
    await cashbook.record_payment(
        Bucket.cash(), Decimal("200"), "income",
        source="sale_payment", source_id="S-1",
    )
    report = await cashbook.get_daily_report(date(2026, 3, 1))
```
"""

import logging
from contextlib import asynccontextmanager
from datetime import date, datetime
from decimal import Decimal
from typing import Any, AsyncIterator, Callable

from adapters.db.source_documents import SQLiteSourceDocumentStore
from adapters.db.sqlite_adapter import SQLiteAdapter, init_schema
from adapters.interfaces import ISourceDocumentReader
from core.balance.chain import DailyBalanceChain
from core.balance.manager import BalanceManagementService
from core.balance.models import (
    BalanceUpdateResult,
    DailyClosingBalance,
    DailyOpeningBalance,
    OpeningBalanceUpdate,
)
from core.balance.opening import OpeningBalanceManager
from core.balance.repository import DailyBalanceRepository
from core.config.loader import Settings
from core.ledger.store import LedgerStore
from core.ledger.types import SYSTEM_ACTOR, Actor, Bucket
from core.report.engine import ReportEngine
from core.report.models import DailyReport, DateRangeReport
from core.types import BalanceSource, TransactionType
from core.utils.timezone import now_utc

logger = logging.getLogger(__name__)


class Cashbook:
    """원장/잔액/리포트 서비스 묶음

    Args:
        db: 연결된 SQLite 어댑터 (스키마 초기화 완료 상태)
        documents: 원천 문서 리더
        clock: 현재 시각 함수 (테스트에서 교체)
    """

    def __init__(
        self,
        db: SQLiteAdapter,
        documents: ISourceDocumentReader,
        clock: Callable[[], datetime] = now_utc,
    ):
        self.db = db
        self.documents = documents
        self.ledger = LedgerStore(db)
        self.repository = DailyBalanceRepository(db)
        self.chain = DailyBalanceChain(db, self.ledger, self.repository, documents, clock)
        self.balances = BalanceManagementService(
            db, self.ledger, self.chain, self.repository, clock
        )
        self.openings = OpeningBalanceManager(
            db, self.repository, self.chain, self.balances, self.ledger, clock
        )
        self.reports = ReportEngine(self.ledger, self.chain, documents)

    # -------------------------------------------------------------------------
    # 잔액
    # -------------------------------------------------------------------------

    async def record_payment(
        self,
        bucket: Bucket,
        amount: Decimal | int | str,
        direction: TransactionType | str,
        source: BalanceSource | str = BalanceSource.MANUAL_ADJUSTMENT,
        source_id: str | None = None,
        actor: Actor = SYSTEM_ACTOR,
        date: date | None = None,
        description: str = "",
    ) -> BalanceUpdateResult:
        """결제/조정 한 건을 원장에 기록하고 잔액 갱신"""
        return await self.balances.update_balance(
            bucket,
            amount,
            direction,
            source=source,
            source_id=source_id,
            description=description,
            date=date,
            actor=actor,
        )

    async def get_balance(self, bucket: Bucket, as_of: date | None = None) -> Decimal:
        return await self.balances.get_balance(bucket, as_of)

    async def get_balances(self, as_of: date | None = None) -> dict[str, Decimal]:
        return await self.balances.get_balances(as_of)

    # -------------------------------------------------------------------------
    # 리포트
    # -------------------------------------------------------------------------

    async def get_daily_report(self, day: date) -> DailyReport:
        return await self.reports.get_daily_report(day)

    async def get_date_range_report(self, start: date, end: date) -> DateRangeReport:
        return await self.reports.get_date_range_report(start, end)

    # -------------------------------------------------------------------------
    # 기준(개시) 잔액
    # -------------------------------------------------------------------------

    async def get_opening_balance(self, day: date) -> DailyOpeningBalance:
        return await self.openings.get_opening_balance(day)

    async def create_opening_balance(
        self,
        day: date,
        cash_balance: Decimal | int | str,
        bank_balances: list[dict[str, Any]] | None = None,
        card_balances: list[dict[str, Any]] | None = None,
        notes: str | None = None,
        actor: Actor = SYSTEM_ACTOR,
    ) -> DailyOpeningBalance:
        return await self.openings.create(
            day, cash_balance, bank_balances, card_balances, notes, actor
        )

    async def update_opening_balance(
        self,
        opening_id: str,
        new_cash: Decimal | int | str | None = None,
        new_bank_balances: list[dict[str, Any]] | None = None,
        notes: str | None = None,
        actor: Actor = SYSTEM_ACTOR,
    ) -> OpeningBalanceUpdate:
        return await self.openings.update(opening_id, new_cash, new_bank_balances, notes, actor)

    async def add_to_opening_balance(
        self,
        day: date,
        amount: Decimal | int | str,
        bucket: Bucket,
        actor: Actor = SYSTEM_ACTOR,
    ) -> BalanceUpdateResult:
        return await self.openings.add_to_opening_balance(day, amount, bucket, actor)

    async def delete_opening_balance(self, opening_id: str) -> None:
        await self.openings.delete(opening_id)

    # -------------------------------------------------------------------------
    # 마감 잔액
    # -------------------------------------------------------------------------

    async def recalculate_closing_balance(
        self,
        day: date,
        cascade: bool = False,
    ) -> DailyClosingBalance:
        """마감 잔액 재계산 (자정 cron 작업의 진입점)"""
        return await self.chain.recalculate(day, cascade=cascade)

    async def get_closing_balances(self, start: date, end: date) -> list[DailyClosingBalance]:
        """구간 내 캐시된 마감 잔액 (계산하지 않음)"""
        return await self.chain.get_closing_balances(start, end)


@asynccontextmanager
async def open_cashbook(
    settings: Settings | None = None,
    documents: ISourceDocumentReader | None = None,
    clock: Callable[[], datetime] = now_utc,
) -> AsyncIterator[Cashbook]:
    """설정에 따라 DB를 열고 Cashbook 생성 (종료 시 연결 닫음)

    Args:
        settings: 애플리케이션 설정 (None이면 기본 settings.yaml)
        documents: 원천 문서 리더 (None이면 같은 DB의 source_documents 테이블)
        clock: 현재 시각 함수
    """
    settings = settings or Settings()
    async with SQLiteAdapter(settings.db_path) as db:
        await init_schema(db)
        if documents is None:
            documents = SQLiteSourceDocumentStore(db, settings.source_lookback_days)
        logger.info("Cashbook 준비 완료", extra={"db_path": str(settings.db_path)})
        yield Cashbook(db, documents, clock)
