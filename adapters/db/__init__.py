"""
데이터베이스 어댑터

SQLite WAL 모드 연결 관리 및 원천 문서 저장소.
"""

from adapters.db.source_documents import SQLiteSourceDocumentStore
from adapters.db.sqlite_adapter import (
    SQLiteAdapter,
    create_connection,
    get_db_path,
    init_schema,
)

__all__ = [
    "SQLiteAdapter",
    "SQLiteSourceDocumentStore",
    "create_connection",
    "get_db_path",
    "init_schema",
]
