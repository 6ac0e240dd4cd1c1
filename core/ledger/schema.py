"""
원장 스키마 초기화

시작 시 자동으로 원장 / 일별 잔액 테이블 생성.
CREATE IF NOT EXISTS 패턴으로 안전하게 동작.
"""

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


async def init_ledger_schema(db: "SQLiteAdapter") -> None:
    """원장 스키마 초기화

    Args:
        db: SQLiteAdapter 인스턴스
    """
    await _create_ledger_tables(db)
    await _create_daily_balance_tables(db)
    await _create_indexes(db)
    logger.info("원장 스키마 초기화 완료")


async def _create_ledger_tables(db: "SQLiteAdapter") -> None:
    """balance_transactions 테이블 생성 (append-only)"""

    # bank_account_id: 은행 계좌 ID 또는 카드 ID (payment_type으로 구분)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS balance_transactions (
            seq              INTEGER PRIMARY KEY AUTOINCREMENT,
            transaction_id   TEXT NOT NULL UNIQUE,
            date             TEXT NOT NULL,
            created_at       TEXT NOT NULL,

            type             TEXT NOT NULL,
            amount           TEXT NOT NULL,
            payment_type     TEXT NOT NULL,
            bank_account_id  TEXT,

            description      TEXT,
            source           TEXT NOT NULL,
            source_id        TEXT,

            user_id          TEXT,
            user_name        TEXT,

            before_balance   TEXT NOT NULL,
            after_balance    TEXT NOT NULL,
            change_amount    TEXT NOT NULL
        )
    """)


async def _create_daily_balance_tables(db: "SQLiteAdapter") -> None:
    """일별 개시/마감 잔액 테이블 생성"""

    # daily_opening_balances (기준 잔액)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS daily_opening_balances (
            opening_id          TEXT PRIMARY KEY,
            date                TEXT NOT NULL UNIQUE,
            cash_balance        TEXT NOT NULL DEFAULT '0',
            bank_balances_json  TEXT NOT NULL DEFAULT '[]',
            card_balances_json  TEXT NOT NULL DEFAULT '[]',
            notes               TEXT,

            created_by          TEXT,
            created_by_name     TEXT,
            created_at          TEXT NOT NULL,
            updated_at          TEXT NOT NULL
        )
    """)

    # daily_closing_balances (메모이즈된 Projection - 언제든 재계산 가능)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS daily_closing_balances (
            date                TEXT PRIMARY KEY,
            cash_balance        TEXT NOT NULL DEFAULT '0',
            bank_balances_json  TEXT NOT NULL DEFAULT '[]',
            card_balances_json  TEXT NOT NULL DEFAULT '[]',

            calculated_by       TEXT,
            calculated_at       TEXT NOT NULL
        )
    """)


async def _create_indexes(db: "SQLiteAdapter") -> None:
    """인덱스 생성"""

    await db.execute("""
        CREATE INDEX IF NOT EXISTS ix_balance_tx_date
        ON balance_transactions(date)
    """)

    await db.execute("""
        CREATE INDEX IF NOT EXISTS ix_balance_tx_created
        ON balance_transactions(created_at)
    """)

    await db.execute("""
        CREATE INDEX IF NOT EXISTS ix_balance_tx_bucket
        ON balance_transactions(payment_type, bank_account_id, created_at)
    """)

    await db.execute("""
        CREATE INDEX IF NOT EXISTS ix_balance_tx_source
        ON balance_transactions(source, source_id)
    """)
