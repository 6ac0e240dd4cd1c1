"""
SQLite 어댑터 테스트

SQLiteAdapter 및 관련 함수 테스트.
"""

import asyncio
from pathlib import Path

import pytest
import pytest_asyncio

from adapters.db.sqlite_adapter import (
    SQLiteAdapter,
    create_connection,
    get_db_path,
    init_schema,
)
from core.constants import Paths


class TestGetDbPath:
    """get_db_path 테스트"""

    def test_default(self) -> None:
        """기본 경로"""
        path = get_db_path()

        assert path == Paths.DB_FILE
        assert isinstance(path, Path)

    def test_explicit(self, tmp_path: Path) -> None:
        """명시 경로 (문자열 허용)"""
        assert get_db_path(str(tmp_path / "x.db")) == tmp_path / "x.db"


class TestCreateConnection:
    """create_connection 테스트"""

    @pytest.mark.asyncio
    async def test_create_connection(self, tmp_path: Path) -> None:
        """연결 생성"""
        conn = await create_connection(tmp_path / "test.db")

        # WAL 모드 확인
        cursor = await conn.execute("PRAGMA journal_mode")
        row = await cursor.fetchone()
        assert row[0].upper() == "WAL"

        await conn.close()

    @pytest.mark.asyncio
    async def test_creates_parent_directory(self, tmp_path: Path) -> None:
        """부모 디렉토리 생성"""
        db_path = tmp_path / "subdir" / "test.db"

        conn = await create_connection(db_path)

        assert db_path.parent.exists()

        await conn.close()


class TestSQLiteAdapter:
    """SQLiteAdapter 테스트"""

    @pytest_asyncio.fixture
    async def adapter(self, tmp_path: Path) -> SQLiteAdapter:
        """어댑터 픽스처"""
        adapter = SQLiteAdapter(tmp_path / "test.db")
        await adapter.connect()
        await adapter.execute("CREATE TABLE tx_test (id INTEGER)")
        await adapter.commit()
        yield adapter
        await adapter.close()

    @pytest.mark.asyncio
    async def test_connect_and_close(self, tmp_path: Path) -> None:
        """연결 및 종료"""
        adapter = SQLiteAdapter(tmp_path / "test.db")

        assert adapter.is_connected is False

        await adapter.connect()
        assert adapter.is_connected is True

        await adapter.close()
        assert adapter.is_connected is False

    @pytest.mark.asyncio
    async def test_not_connected(self, tmp_path: Path) -> None:
        """연결 전 실행"""
        adapter = SQLiteAdapter(tmp_path / "test.db")

        with pytest.raises(RuntimeError):
            await adapter.execute("SELECT 1")

    @pytest.mark.asyncio
    async def test_transaction_commit(self, adapter: SQLiteAdapter) -> None:
        """트랜잭션 커밋"""
        async with adapter.transaction() as conn:
            await conn.execute("INSERT INTO tx_test (id) VALUES (1)")
            await conn.execute("INSERT INTO tx_test (id) VALUES (2)")

        rows = await adapter.fetchall("SELECT id FROM tx_test")
        assert len(rows) == 2
        assert adapter.in_transaction is False

    @pytest.mark.asyncio
    async def test_transaction_rollback(self, adapter: SQLiteAdapter) -> None:
        """예외 시 롤백 후 재발생"""
        with pytest.raises(ValueError):
            async with adapter.transaction() as conn:
                await conn.execute("INSERT INTO tx_test (id) VALUES (1)")
                raise ValueError("의도적 에러")

        rows = await adapter.fetchall("SELECT id FROM tx_test")
        assert len(rows) == 0

    @pytest.mark.asyncio
    async def test_nested_transaction_joins_outer(self, adapter: SQLiteAdapter) -> None:
        """중첩 트랜잭션은 바깥 트랜잭션에 합류"""
        async with adapter.transaction():
            await adapter.execute("INSERT INTO tx_test (id) VALUES (1)")
            async with adapter.transaction():
                assert adapter.in_transaction is True
                await adapter.execute("INSERT INTO tx_test (id) VALUES (2)")

        rows = await adapter.fetchall("SELECT id FROM tx_test ORDER BY id")
        assert [row[0] for row in rows] == [1, 2]

    @pytest.mark.asyncio
    async def test_nested_failure_rolls_back_everything(self, adapter: SQLiteAdapter) -> None:
        """안쪽에서 발생한 예외는 바깥까지 전부 롤백"""
        with pytest.raises(ValueError):
            async with adapter.transaction():
                await adapter.execute("INSERT INTO tx_test (id) VALUES (1)")
                async with adapter.transaction():
                    await adapter.execute("INSERT INTO tx_test (id) VALUES (2)")
                    raise ValueError("의도적 에러")

        rows = await adapter.fetchall("SELECT id FROM tx_test")
        assert rows == []

    @pytest.mark.asyncio
    async def test_transactions_serialized_across_tasks(self, adapter: SQLiteAdapter) -> None:
        """다른 Task의 트랜잭션은 순서대로 실행"""
        order: list[str] = []

        async def writer(name: str, value: int) -> None:
            async with adapter.transaction():
                order.append(f"{name}-start")
                await adapter.execute("INSERT INTO tx_test (id) VALUES (?)", (value,))
                await asyncio.sleep(0.01)
                order.append(f"{name}-end")

        await asyncio.gather(writer("a", 1), writer("b", 2))

        assert order == ["a-start", "a-end", "b-start", "b-end"]
        rows = await adapter.fetchall("SELECT id FROM tx_test")
        assert len(rows) == 2

    @pytest.mark.asyncio
    async def test_reader_never_sees_uncommitted_rows(self, adapter: SQLiteAdapter) -> None:
        """다른 Task의 조회는 트랜잭션 종료(롤백)까지 대기"""
        inserted = asyncio.Event()

        async def writer() -> None:
            async with adapter.transaction():
                await adapter.execute("INSERT INTO tx_test (id) VALUES (1)")
                inserted.set()
                await asyncio.sleep(0.05)
                raise RuntimeError("롤백")

        async def reader() -> list[tuple]:
            await inserted.wait()
            return await adapter.fetchall("SELECT id FROM tx_test")

        results = await asyncio.gather(writer(), reader(), return_exceptions=True)

        assert isinstance(results[0], RuntimeError)
        assert results[1] == []

    @pytest.mark.asyncio
    async def test_fetch_dicts(self, adapter: SQLiteAdapter) -> None:
        """컬럼명 dict로 조회"""
        async with adapter.transaction():
            await adapter.execute("INSERT INTO tx_test (id) VALUES (7)")

        assert await adapter.fetch_dicts("SELECT id FROM tx_test") == [{"id": 7}]

    @pytest.mark.asyncio
    async def test_table_exists(self, adapter: SQLiteAdapter) -> None:
        """테이블 존재 확인"""
        assert await adapter.table_exists("nonexistent") is False
        assert await adapter.table_exists("tx_test") is True

    @pytest.mark.asyncio
    async def test_context_manager(self, tmp_path: Path) -> None:
        """컨텍스트 매니저"""
        async with SQLiteAdapter(tmp_path / "ctx_test.db") as adapter:
            assert adapter.is_connected is True

        assert adapter.is_connected is False


class TestInitSchema:
    """init_schema 테스트"""

    @pytest.mark.asyncio
    async def test_init_schema_creates_tables(self, tmp_path: Path) -> None:
        """스키마 초기화 - 테이블 생성"""
        async with SQLiteAdapter(tmp_path / "schema_test.db") as adapter:
            await init_schema(adapter)

            for table in (
                "source_documents",
                "balance_transactions",
                "daily_opening_balances",
                "daily_closing_balances",
            ):
                assert await adapter.table_exists(table) is True

    @pytest.mark.asyncio
    async def test_init_schema_idempotent(self, tmp_path: Path) -> None:
        """두 번 실행해도 안전"""
        async with SQLiteAdapter(tmp_path / "schema_twice.db") as adapter:
            await init_schema(adapter)
            await init_schema(adapter)

            columns = set(await adapter.column_names("balance_transactions"))
            assert {"transaction_id", "before_balance", "after_balance"} <= columns
