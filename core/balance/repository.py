"""
Daily Balance Repository

daily_opening_balances / daily_closing_balances 테이블 처리.
개시 잔액의 잔액 필드는 INSERT 이후 수정하지 않는다 (메모만 수정 가능).
"""

import logging
import uuid
from datetime import date, datetime
from typing import Any

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.balance.models import DailyClosingBalance, DailyOpeningBalance
from core.utils.timezone import now_utc, to_db_ts

logger = logging.getLogger(__name__)

_OPENING_COLUMNS = (
    "opening_id, date, cash_balance, bank_balances_json, card_balances_json, "
    "notes, created_by, created_by_name, created_at, updated_at"
)
_CLOSING_COLUMNS = (
    "date, cash_balance, bank_balances_json, card_balances_json, "
    "calculated_by, calculated_at"
)


def new_opening_id() -> str:
    """개시 잔액 행 ID 생성"""
    return f"ob-{uuid.uuid4().hex[:12]}"


class DailyBalanceRepository:
    """일별 개시/마감 잔액 저장소

    쓰기 메서드는 호출자의 트랜잭션에 합류한다 (없으면 자체 트랜잭션).

    Args:
        db: SQLite 어댑터
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    # -------------------------------------------------------------------------
    # 개시(기준) 잔액
    # -------------------------------------------------------------------------

    async def get_opening(self, day: date) -> DailyOpeningBalance | None:
        """날짜로 개시 잔액 조회"""
        rows = await self._select_openings("WHERE date = ?", (day.isoformat(),))
        return rows[0] if rows else None

    async def get_opening_by_id(self, opening_id: str) -> DailyOpeningBalance | None:
        """ID로 개시 잔액 조회"""
        rows = await self._select_openings("WHERE opening_id = ?", (opening_id,))
        return rows[0] if rows else None

    async def list_openings(self, start: date, end: date) -> list[DailyOpeningBalance]:
        """구간 내 개시 잔액 목록 (날짜 오름차순)"""
        return await self._select_openings(
            "WHERE date >= ? AND date <= ?",
            (start.isoformat(), end.isoformat()),
        )

    async def earliest_opening_day(self) -> date | None:
        """가장 이른 개시 잔액 날짜"""
        row = await self.db.fetchone("SELECT MIN(date) FROM daily_opening_balances")
        if row is None or row[0] is None:
            return None
        return date.fromisoformat(row[0])

    async def insert_opening(self, opening: DailyOpeningBalance) -> DailyOpeningBalance:
        """개시 잔액 저장

        Args:
            opening: 저장할 개시 잔액 (opening_id가 없으면 새로 부여)

        Returns:
            저장된 개시 잔액
        """
        if opening.opening_id is None:
            opening.opening_id = new_opening_id()

        created_at = opening.created_at or now_utc()
        opening.created_at = created_at
        opening.updated_at = opening.updated_at or created_at

        async with self.db.transaction():
            await self.db.execute(
                f"""
                INSERT INTO daily_opening_balances ({_OPENING_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    opening.opening_id,
                    opening.date.isoformat(),
                    str(opening.balances.cash),
                    opening.balances.bank_json(),
                    opening.balances.card_json(),
                    opening.notes,
                    opening.created_by,
                    opening.created_by_name,
                    to_db_ts(opening.created_at),
                    to_db_ts(opening.updated_at),
                ),
            )

        logger.info(
            f"개시 잔액 저장: {opening.date}",
            extra={"opening_id": opening.opening_id, "cash": str(opening.balances.cash)},
        )
        return opening

    async def update_opening_notes(
        self,
        opening_id: str,
        notes: str | None,
        updated_at: datetime,
    ) -> None:
        """메모 수정 (잔액 필드는 수정하지 않음)"""
        async with self.db.transaction():
            await self.db.execute(
                """
                UPDATE daily_opening_balances
                SET notes = ?, updated_at = ?
                WHERE opening_id = ?
                """,
                (notes, to_db_ts(updated_at), opening_id),
            )

    async def touch_opening(self, opening_id: str, updated_at: datetime) -> None:
        """수정 시각 갱신"""
        async with self.db.transaction():
            await self.db.execute(
                "UPDATE daily_opening_balances SET updated_at = ? WHERE opening_id = ?",
                (to_db_ts(updated_at), opening_id),
            )

    async def delete_opening(self, opening_id: str) -> bool:
        """개시 잔액 삭제

        Returns:
            삭제 여부
        """
        async with self.db.transaction():
            cursor = await self.db.execute(
                "DELETE FROM daily_opening_balances WHERE opening_id = ?",
                (opening_id,),
            )
            deleted = cursor.rowcount > 0

        if deleted:
            logger.info("개시 잔액 삭제", extra={"opening_id": opening_id})
        return deleted

    # -------------------------------------------------------------------------
    # 마감 잔액 (캐시)
    # -------------------------------------------------------------------------

    async def get_closing(self, day: date) -> DailyClosingBalance | None:
        """캐시된 마감 잔액 조회"""
        rows = await self._select_closings("WHERE date = ?", (day.isoformat(),))
        return rows[0] if rows else None

    async def list_closings(self, start: date, end: date) -> list[DailyClosingBalance]:
        """구간 내 캐시된 마감 잔액 목록 (날짜 오름차순)"""
        return await self._select_closings(
            "WHERE date >= ? AND date <= ?",
            (start.isoformat(), end.isoformat()),
        )

    async def upsert_closing(self, closing: DailyClosingBalance) -> None:
        """마감 잔액 저장 (있으면 덮어씀)"""
        calculated_at = closing.calculated_at or now_utc()
        async with self.db.transaction():
            await self.db.execute(
                f"""
                INSERT INTO daily_closing_balances ({_CLOSING_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(date) DO UPDATE SET
                    cash_balance = excluded.cash_balance,
                    bank_balances_json = excluded.bank_balances_json,
                    card_balances_json = excluded.card_balances_json,
                    calculated_by = excluded.calculated_by,
                    calculated_at = excluded.calculated_at
                """,
                (
                    closing.date.isoformat(),
                    str(closing.balances.cash),
                    closing.balances.bank_json(),
                    closing.balances.card_json(),
                    closing.calculated_by,
                    to_db_ts(calculated_at),
                ),
            )

    async def delete_closings_from(self, day: date) -> int:
        """day 이후(포함) 캐시된 마감 잔액 삭제

        Returns:
            삭제된 행 수
        """
        async with self.db.transaction():
            cursor = await self.db.execute(
                "DELETE FROM daily_closing_balances WHERE date >= ?",
                (day.isoformat(),),
            )
            return cursor.rowcount

    # -------------------------------------------------------------------------
    # 내부
    # -------------------------------------------------------------------------

    async def _select_openings(
        self,
        where: str,
        params: tuple[Any, ...],
    ) -> list[DailyOpeningBalance]:
        rows = await self.db.fetch_dicts(
            f"SELECT {_OPENING_COLUMNS} FROM daily_opening_balances {where} ORDER BY date",
            params,
        )
        return [DailyOpeningBalance.from_row(row) for row in rows]

    async def _select_closings(
        self,
        where: str,
        params: tuple[Any, ...],
    ) -> list[DailyClosingBalance]:
        rows = await self.db.fetch_dicts(
            f"SELECT {_CLOSING_COLUMNS} FROM daily_closing_balances {where} ORDER BY date",
            params,
        )
        return [DailyClosingBalance.from_row(row) for row in rows]
