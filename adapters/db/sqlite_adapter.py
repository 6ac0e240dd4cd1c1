"""
SQLite 어댑터

WAL 모드로 SQLite 연결 관리.
쓰기 트랜잭션은 BEGIN IMMEDIATE로 시작하여 DB 쓰기 잠금을 즉시 확보 (직렬화).

주의: SQLite alias로 time, count 사용 금지 (예약어)
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

import aiosqlite

from core.constants import Paths

logger = logging.getLogger(__name__)


def get_db_path(path: Path | str | None = None) -> Path:
    """DB 경로 반환

    Args:
        path: 명시적 경로 (None이면 기본 경로)

    Returns:
        DB 파일 경로 (Path 타입)
    """
    if path is None:
        return Paths.DB_FILE
    return Path(path)


async def create_connection(db_path: Path | str) -> aiosqlite.Connection:
    """SQLite 연결 생성 (WAL 모드)

    Args:
        db_path: DB 파일 경로 (상위 디렉토리가 없으면 생성)

    Returns:
        aiosqlite 연결 객체
    """
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = await aiosqlite.connect(str(db_path))

    await conn.execute("PRAGMA journal_mode=WAL")
    await conn.execute("PRAGMA busy_timeout=30000")  # 30초 대기
    await conn.execute("PRAGMA foreign_keys=ON")

    logger.info(
        "SQLite 연결 생성",
        extra={"db_path": str(db_path)},
    )

    return conn


class SQLiteAdapter:
    """SQLite 어댑터

    WAL 모드로 SQLite 연결 관리.
    트랜잭션 컨텍스트 매니저 제공.

    하나의 연결을 여러 코루틴이 공유하므로 쓰기 트랜잭션은 연결 단위
    asyncio.Lock으로 한 번에 하나만 열린다. 같은 Task 안에서 중첩된
    transaction()은 바깥 트랜잭션에 합류한다 (커밋/롤백은 바깥에서).

    Args:
        db_path: DB 파일 경로

    사용 예시:
    ```python
    adapter = SQLiteAdapter(db_path)
    await adapter.connect()

    async with adapter.transaction():
        await adapter.execute("INSERT INTO ...")

    await adapter.close()
    ```
    """

    def __init__(self, db_path: Path | str):
        self.db_path = Path(db_path)
        self._conn: aiosqlite.Connection | None = None
        self._write_lock = asyncio.Lock()
        self._tx_owner: asyncio.Task[Any] | None = None

    @property
    def is_connected(self) -> bool:
        """연결 상태 확인"""
        return self._conn is not None

    @property
    def in_transaction(self) -> bool:
        """현재 Task가 쓰기 트랜잭션을 보유 중인지 여부"""
        return self._tx_owner is not None and self._tx_owner is asyncio.current_task()

    async def connect(self) -> None:
        """연결 생성"""
        if self._conn is not None:
            return

        self._conn = await create_connection(self.db_path)

    async def close(self) -> None:
        """연결 종료"""
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
            logger.info("SQLite 연결 종료")

    @asynccontextmanager
    async def _read_guard(self) -> AsyncIterator[aiosqlite.Connection]:
        """다른 Task의 쓰기 트랜잭션이 끝날 때까지 대기

        연결을 공유하므로 대기 없이 읽으면 커밋 전(롤백될 수 있는) 행이 보인다.
        트랜잭션을 보유한 Task는 자기 쓰기를 그대로 읽는다.
        """
        if self._conn is None:
            raise RuntimeError("Not connected to database")

        if self.in_transaction:
            yield self._conn
            return

        async with self._write_lock:
            yield self._conn

    async def execute(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> aiosqlite.Cursor:
        """SQL 실행 (쓰기용, 조회는 fetch* 사용)"""
        async with self._read_guard() as conn:
            return await conn.execute(sql, parameters or ())

    async def fetchone(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> tuple[Any, ...] | None:
        """단일 행 조회"""
        async with self._read_guard() as conn:
            cursor = await conn.execute(sql, parameters or ())
            return await cursor.fetchone()

    async def fetchall(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> list[tuple[Any, ...]]:
        """전체 행 조회"""
        async with self._read_guard() as conn:
            cursor = await conn.execute(sql, parameters or ())
            return list(await cursor.fetchall())

    async def fetch_dicts(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> list[dict[str, Any]]:
        """전체 행을 {컬럼명: 값} dict로 조회"""
        async with self._read_guard() as conn:
            cursor = await conn.execute(sql, parameters or ())
            rows = await cursor.fetchall()
            columns = [desc[0] for desc in cursor.description]
        return [dict(zip(columns, row)) for row in rows]

    async def commit(self) -> None:
        """커밋"""
        if self._conn is not None:
            await self._conn.commit()

    async def rollback(self) -> None:
        """롤백"""
        if self._conn is not None:
            await self._conn.rollback()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """쓰기 트랜잭션 컨텍스트 매니저

        BEGIN IMMEDIATE로 시작. 성공 시 자동 커밋, 예외 시 자동 롤백 후 재발생.
        이미 같은 Task에서 트랜잭션이 열려 있으면 그대로 합류.

        사용 예시:
        ```python
        async with adapter.transaction() as conn:
            await conn.execute("INSERT INTO ...")
            # 성공 시 자동 커밋
        ```
        """
        if self._conn is None:
            raise RuntimeError("Not connected to database")

        if self.in_transaction:
            yield self._conn
            return

        async with self._write_lock:
            self._tx_owner = asyncio.current_task()
            try:
                await self._conn.execute("BEGIN IMMEDIATE")
                try:
                    yield self._conn
                    await self._conn.commit()
                except BaseException:
                    await self._conn.rollback()
                    raise
            finally:
                self._tx_owner = None

    async def table_exists(self, table_name: str) -> bool:
        """테이블 존재 여부 확인"""
        result = await self.fetchone(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
            (table_name,),
        )
        return result is not None

    async def column_names(self, table_name: str) -> list[str]:
        """테이블 컬럼 이름 목록 (정의 순서)"""
        rows = await self.fetchall(f"PRAGMA table_info({table_name})")
        return [row[1] for row in rows]

    # -------------------------------------------------------------------------
    # 컨텍스트 매니저
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> "SQLiteAdapter":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


async def init_schema(adapter: SQLiteAdapter) -> None:
    """스키마 초기화 (테이블 생성)

    원천 문서 테이블 + 원장/일별 잔액 테이블 생성.
    이미 존재하는 경우 안전하게 건너뜀 (IF NOT EXISTS).

    Args:
        adapter: 연결된 SQLiteAdapter
    """
    from core.ledger.schema import init_ledger_schema

    # source_documents (판매/구매/지출 - 외부 서비스 소유, 읽기 전용 입력)
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS source_documents (
            kind             TEXT NOT NULL,
            document_id      TEXT NOT NULL,
            doc_date         TEXT NOT NULL,
            total            TEXT NOT NULL,
            status           TEXT NOT NULL DEFAULT 'completed',
            description      TEXT,
            payments_json    TEXT NOT NULL DEFAULT '[]',

            created_at       TEXT NOT NULL DEFAULT (datetime('now')),

            PRIMARY KEY (kind, document_id)
        )
    """)

    await adapter.execute("""
        CREATE INDEX IF NOT EXISTS ix_source_documents_date
        ON source_documents(kind, doc_date)
    """)

    await init_ledger_schema(adapter)

    await adapter.commit()
    logger.info("스키마 초기화 완료", extra={"db_path": str(adapter.db_path)})
