"""
Mock 원천 문서 리더

테스트용 인메모리 문서 저장소.
ISourceDocumentReader Protocol 준수.
"""

from datetime import date

from adapters.models import SourceDocument
from core.types import DocumentKind
from core.utils.timezone import business_day


class MockSourceDocumentReader:
    """Mock 원천 문서 리더

    ISourceDocumentReader Protocol 구현.
    조회 호출을 기록하여 테스트에서 검증 가능.

    사용 예시:
    ```python
    reader = MockSourceDocumentReader()
    reader.add(SourceDocument(kind=DocumentKind.SALE, ...))

    # 특정 날짜 조회 시 실패 (에러 시나리오 테스트용)
    reader.fail_on_days.add(date(2026, 3, 2))
    ```
    """

    def __init__(self, documents: list[SourceDocument] | None = None):
        self.documents: list[SourceDocument] = list(documents or [])
        self.fail_on_days: set[date] = set()
        self.calls: list[tuple[DocumentKind, date, date]] = []

    def add(self, document: SourceDocument) -> None:
        """문서 추가"""
        self.documents.append(document)

    async def list_documents(
        self,
        kind: DocumentKind,
        start: date,
        end: date,
    ) -> list[SourceDocument]:
        """문서 날짜가 end 이전인 같은 종류의 문서 전체"""
        self.calls.append((kind, start, end))
        if start == end and start in self.fail_on_days:
            raise RuntimeError(f"Source document service unavailable for {start}")

        return sorted(
            (
                doc
                for doc in self.documents
                if doc.kind == kind and business_day(doc.date) <= end
            ),
            key=lambda doc: business_day(doc.date),
        )
