"""
Source Document Repository

source_documents 테이블 처리.
판매/구매/지출 서비스가 기록한 문서를 원장 대사용으로 읽는다.
"""

import logging
from datetime import date, timedelta
from typing import Any

from adapters.db.sqlite_adapter import SQLiteAdapter
from adapters.models import SourceDocument
from core.constants import Defaults
from core.errors import NotFound
from core.types import DocumentKind
from core.utils.timezone import business_day_str

logger = logging.getLogger(__name__)


class SQLiteSourceDocumentStore:
    """SQLite 기반 원천 문서 저장소 (ISourceDocumentReader 구현)

    Args:
        db: SQLite 어댑터
        lookback_days: 조회 구간 시작일 이전으로 거슬러 올라가는 일수
            (문서 날짜보다 늦게 들어온 결제 행을 놓치지 않기 위함)
    """

    def __init__(
        self,
        db: SQLiteAdapter,
        lookback_days: int = Defaults.SOURCE_LOOKBACK_DAYS,
    ):
        self.db = db
        self.lookback_days = lookback_days

    async def save(self, document: SourceDocument) -> None:
        """문서 저장 (같은 kind/ID가 있으면 덮어씀)

        문서 소유 서비스와 데이터 적재 스크립트용.
        """
        async with self.db.transaction():
            await self.db.execute(
                """
                INSERT INTO source_documents (
                    kind, document_id, doc_date, total, status,
                    description, payments_json
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(kind, document_id) DO UPDATE SET
                    doc_date = excluded.doc_date,
                    total = excluded.total,
                    status = excluded.status,
                    description = excluded.description,
                    payments_json = excluded.payments_json
                """,
                (
                    document.kind.value,
                    document.document_id,
                    business_day_str(document.date),
                    str(document.total),
                    document.status,
                    document.description,
                    document.payments_json(),
                ),
            )

        logger.debug(
            f"Saved source document: {document.kind.value}/{document.document_id}",
            extra={"payments": len(document.payments)},
        )

    async def get(self, kind: DocumentKind, document_id: str) -> SourceDocument:
        """문서 단건 조회

        Raises:
            NotFound: 문서가 없는 경우
        """
        rows = await self._select(
            "WHERE kind = ? AND document_id = ?",
            (DocumentKind(kind).value, document_id),
        )
        if not rows:
            raise NotFound(f"Source document not found: {kind}/{document_id}")
        return rows[0]

    async def list_documents(
        self,
        kind: DocumentKind,
        start: date,
        end: date,
    ) -> list[SourceDocument]:
        """[start - lookback, end] 문서 날짜 구간의 문서 목록"""
        window_start = start - timedelta(days=self.lookback_days)
        return await self._select(
            "WHERE kind = ? AND doc_date >= ? AND doc_date <= ?",
            (DocumentKind(kind).value, window_start.isoformat(), end.isoformat()),
        )

    async def _select(
        self,
        where: str,
        params: tuple[Any, ...],
    ) -> list[SourceDocument]:
        rows = await self.db.fetch_dicts(
            f"""
            SELECT kind, document_id, doc_date, total, status,
                   description, payments_json
            FROM source_documents
            {where}
            ORDER BY doc_date, created_at, document_id
            """,
            params,
        )
        return [SourceDocument.from_row(row) for row in rows]
