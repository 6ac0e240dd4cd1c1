"""
어댑터 레이어

외부 저장소(DB)와의 연동을 담당.
"""

from adapters.db import SQLiteAdapter, init_schema

__all__ = [
    "SQLiteAdapter",
    "init_schema",
]
