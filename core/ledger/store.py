"""
원장 저장소

불변 잔액 원장 항목(BalanceTransaction)의 append 및 조회.
UPDATE / DELETE 연산은 존재하지 않는다.
"""

from __future__ import annotations

import dataclasses
import logging
import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from core.errors import NotFound
from core.ledger.types import BalanceTransaction, Bucket
from core.types import TransactionType
from core.utils.timezone import business_day, from_db_ts, to_db_ts

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)

_COLUMNS = (
    "transaction_id, date, created_at, type, amount, payment_type, "
    "bank_account_id, description, source, source_id, user_id, user_name, "
    "before_balance, after_balance, change_amount"
)


def new_transaction_id() -> str:
    """원장 항목 ID 생성"""
    return f"btx-{uuid.uuid4().hex[:16]}"


class LedgerStore:
    """원장 저장소

    항목은 한 번 기록되면 수정/삭제되지 않는다.
    정렬은 created_at 오름차순(동일 시각은 기록 순서)이 기본.

    Args:
        db: SQLite 어댑터
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def append(self, entry: BalanceTransaction) -> BalanceTransaction:
        """원장 항목 기록

        Args:
            entry: 기록할 항목 (transaction_id가 비어 있으면 새로 부여)

        Returns:
            ID가 부여된 항목

        Raises:
            ValueError: before/after/change 관계가 맞지 않는 경우
        """
        if not entry.transaction_id:
            entry = dataclasses.replace(entry, transaction_id=new_transaction_id())

        if not entry.is_consistent():
            raise ValueError(f"Inconsistent ledger entry: {entry.transaction_id}")

        async with self.db.transaction():
            await self.db.execute(
                f"""
                INSERT INTO balance_transactions ({_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.transaction_id,
                    entry.date.isoformat(),
                    to_db_ts(entry.created_at),
                    entry.type.value,
                    str(entry.amount),
                    entry.bucket.payment_type.value,
                    entry.bucket.ref_id,
                    entry.description,
                    entry.source,
                    entry.source_id,
                    entry.user_id,
                    entry.user_name,
                    str(entry.before_balance),
                    str(entry.after_balance),
                    str(entry.change_amount),
                ),
            )

        logger.debug(
            f"Appended ledger entry: {entry.transaction_id}",
            extra={"bucket": entry.bucket.label, "source": entry.source},
        )
        return entry

    async def get(self, transaction_id: str) -> BalanceTransaction:
        """단일 항목 조회

        Raises:
            NotFound: 항목이 없는 경우
        """
        rows = await self._select(
            "WHERE transaction_id = ?", [transaction_id], limit=None
        )
        if not rows:
            raise NotFound(f"Ledger entry not found: {transaction_id}")
        return rows[0]

    async def query(
        self,
        date_from: date | None = None,
        date_to: date | None = None,
        created_from: datetime | None = None,
        created_to: datetime | None = None,
        bucket: Bucket | None = None,
        type: TransactionType | None = None,
        source: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[BalanceTransaction]:
        """원장 항목 조회

        Args:
            date_from: 논리적 날짜 시작 (포함)
            date_to: 논리적 날짜 끝 (포함)
            created_from: 발생 시각 시작 (포함)
            created_to: 발생 시각 끝 (포함)
            bucket: 대상 버킷
            type: income / expense
            source: 출처 태그
            descending: True면 최신순
            limit: 최대 개수

        Returns:
            정렬된 항목 목록
        """
        conditions: list[str] = []
        params: list[Any] = []

        if date_from:
            conditions.append("date >= ?")
            params.append(date_from.isoformat())
        if date_to:
            conditions.append("date <= ?")
            params.append(date_to.isoformat())
        if created_from:
            conditions.append("created_at >= ?")
            params.append(to_db_ts(created_from))
        if created_to:
            conditions.append("created_at <= ?")
            params.append(to_db_ts(created_to))
        if bucket is not None:
            conditions.append("payment_type = ?")
            params.append(bucket.payment_type.value)
            if bucket.ref_id is None:
                conditions.append("bank_account_id IS NULL")
            else:
                conditions.append("bank_account_id = ?")
                params.append(bucket.ref_id)
        if type is not None:
            conditions.append("type = ?")
            params.append(TransactionType(type).value)
        if source:
            conditions.append("source = ?")
            params.append(source)

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        return await self._select(where, params, descending=descending, limit=limit)

    async def latest_for_bucket(
        self,
        bucket: Bucket,
        until: datetime,
    ) -> BalanceTransaction | None:
        """until 이전(포함) 마지막 항목 조회"""
        rows = await self.query(
            created_to=until, bucket=bucket, descending=True, limit=1
        )
        return rows[0] if rows else None

    async def earliest_day(self) -> date | None:
        """원장이 건드린 가장 이른 영업일 (논리적 날짜와 발생일 중 빠른 쪽)"""
        row = await self.db.fetchone(
            "SELECT MIN(date), MIN(created_at) FROM balance_transactions"
        )
        if row is None or row[0] is None:
            return None
        return min(date.fromisoformat(row[0]), business_day(from_db_ts(row[1])))

    async def known_buckets(self) -> list[Bucket]:
        """원장에 한 번이라도 등장한 버킷 목록"""
        rows = await self.db.fetchall(
            """
            SELECT DISTINCT payment_type, bank_account_id
            FROM balance_transactions
            ORDER BY payment_type, bank_account_id
            """
        )
        buckets = []
        for payment_type, ref in rows:
            bucket = Bucket.from_payment(payment_type, bank_account_id=ref, card_id=ref)
            if bucket is not None:
                buckets.append(bucket)
        return buckets

    async def _select(
        self,
        where: str,
        params: list[Any],
        descending: bool = False,
        limit: int | None = None,
    ) -> list[BalanceTransaction]:
        order = "DESC" if descending else "ASC"
        sql = f"""
            SELECT {_COLUMNS}
            FROM balance_transactions
            {where}
            ORDER BY created_at {order}, seq {order}
        """
        if limit is not None:
            sql += " LIMIT ?"
            params = [*params, limit]

        rows = await self.db.fetch_dicts(sql, tuple(params))
        return [BalanceTransaction.from_row(row) for row in rows]
