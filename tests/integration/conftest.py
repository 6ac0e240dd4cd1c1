"""
통합 테스트 fixture

임시 SQLite DB, 고정 시계, Mock 원천 문서 리더, Cashbook 조립
"""

from pathlib import Path
from typing import AsyncGenerator

import pytest
import pytest_asyncio

from adapters.db.sqlite_adapter import SQLiteAdapter, init_schema
from adapters.mock.source_documents import MockSourceDocumentReader
from core.service import Cashbook
from tests.integration.utils.helpers import DAY1, FakeClock, at


@pytest_asyncio.fixture
async def db(tmp_path: Path) -> AsyncGenerator[SQLiteAdapter, None]:
    """스키마가 초기화된 임시 DB"""
    adapter = SQLiteAdapter(tmp_path / "cashbook_test.db")
    await adapter.connect()
    await init_schema(adapter)
    yield adapter
    await adapter.close()


@pytest.fixture
def clock() -> FakeClock:
    """DAY1 10:00 (사업장 시간)에서 시작하는 시계"""
    return FakeClock(at(DAY1, 10))


@pytest.fixture
def documents() -> MockSourceDocumentReader:
    """빈 원천 문서 리더"""
    return MockSourceDocumentReader()


@pytest.fixture
def cashbook(
    db: SQLiteAdapter,
    documents: MockSourceDocumentReader,
    clock: FakeClock,
) -> Cashbook:
    """Mock 문서 리더와 고정 시계로 조립한 Cashbook"""
    return Cashbook(db, documents, clock)
