"""
대사 / 리포트

원장 재생과 원천 문서 대사로 일별/기간 리포트 생성 (읽기 전용).
"""

from core.report.engine import ReportEngine
from core.report.models import (
    BalanceView,
    DailyReport,
    DateRangeReport,
    PaymentBreakdown,
    ReportFailure,
    ReportStep,
    ReportSummary,
)

__all__ = [
    "ReportEngine",
    "BalanceView",
    "DailyReport",
    "DateRangeReport",
    "PaymentBreakdown",
    "ReportFailure",
    "ReportStep",
    "ReportSummary",
]
