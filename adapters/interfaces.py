"""
어댑터 인터페이스 정의

Protocol 기반으로 정의하여 의존성 주입 및 Mock 교체 가능.
모든 구현체는 이 Protocol을 준수해야 함.
"""

from datetime import date
from typing import Protocol, runtime_checkable

from adapters.models import SourceDocument
from core.types import DocumentKind


@runtime_checkable
class ISourceDocumentReader(Protocol):
    """원천 문서(판매/구매/지출) 읽기 인터페이스

    원천 문서는 외부 협력 서비스가 소유하며 이 시스템은 읽기만 한다.
    """

    async def list_documents(
        self,
        kind: DocumentKind,
        start: date,
        end: date,
    ) -> list[SourceDocument]:
        """[start, end] 구간에 결제 행이 있을 수 있는 문서 목록

        결제일은 문서 날짜 이후일 수 있으므로 구현체는 문서 날짜 기준으로
        충분히 넓게 조회해야 한다. 결제일 필터링은 호출자가 수행.

        Args:
            kind: 문서 종류
            start: 구간 시작일
            end: 구간 종료일

        Returns:
            문서 목록 (문서 날짜 오름차순)
        """
        ...
