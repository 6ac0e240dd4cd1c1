"""
open_cashbook 통합 테스트

설정 파일 → DB 초기화 → Cashbook 조립 → 원천 문서 저장소 연동
"""

from datetime import datetime
from decimal import Decimal
from pathlib import Path

import pytest

from adapters.db.source_documents import SQLiteSourceDocumentStore
from adapters.models import SourceDocument, SourcePayment
from core.config.loader import Settings
from core.ledger.types import Bucket
from core.service import open_cashbook
from core.types import DocumentKind, PaymentType
from tests.integration.utils.helpers import DAY1, at


def fixed_clock() -> datetime:
    return at(DAY1, 10)


class TestOpenCashbook:
    """open_cashbook 테스트"""

    @pytest.mark.asyncio
    async def test_uses_settings(self, temp_settings_file: Path, temp_dir: Path) -> None:
        """설정의 DB 경로와 lookback 사용"""
        settings = Settings(temp_settings_file)

        async with open_cashbook(settings, clock=fixed_clock) as cashbook:
            assert isinstance(cashbook.documents, SQLiteSourceDocumentStore)
            assert cashbook.documents.lookback_days == 30
            assert await cashbook.db.table_exists("balance_transactions")

        assert (temp_dir / "cashbook.db").exists()

    @pytest.mark.asyncio
    async def test_persists_between_sessions(self, temp_settings_file: Path) -> None:
        """닫았다 다시 열어도 원장 유지"""
        settings = Settings(temp_settings_file)

        async with open_cashbook(settings, clock=fixed_clock) as cashbook:
            await cashbook.record_payment(Bucket.cash(), "100", "income")

        async with open_cashbook(settings, clock=fixed_clock) as cashbook:
            assert await cashbook.get_balance(Bucket.cash()) == Decimal("100")

    @pytest.mark.asyncio
    async def test_report_with_stored_documents(self, temp_settings_file: Path) -> None:
        """DB에 저장된 원천 문서가 리포트에 합성"""
        settings = Settings(temp_settings_file)

        async with open_cashbook(settings, clock=fixed_clock) as cashbook:
            await cashbook.record_payment(Bucket.cash(), "100", "income")
            await cashbook.documents.save(
                SourceDocument(
                    kind=DocumentKind.SALE,
                    document_id="S-10",
                    total=Decimal("40"),
                    date="2026-03-01",
                    payments=(
                        SourcePayment(
                            type=PaymentType.CASH,
                            amount=Decimal("40"),
                            date="2026-03-01T16:00:00Z",
                        ),
                    ),
                )
            )

            report = await cashbook.get_daily_report(DAY1)

        assert [s.recorded for s in report.steps[1:]] == [True, False]
        assert report.closing_balance.cash == Decimal("140")
