"""
통합 테스트 헬퍼

테스트에서 공통으로 사용하는 영업일 상수, 사업장 시각 변환, 고정 시계.
"""

from datetime import date, datetime, timedelta, timezone

from core.utils.timezone import BUSINESS_TZ

# 기본 영업일
DAY1 = date(2026, 3, 1)
DAY2 = date(2026, 3, 2)


def at(day: date, hour: int, minute: int = 0) -> datetime:
    """사업장 벽시계 시각 → UTC datetime"""
    local = datetime(day.year, day.month, day.day, hour, minute, tzinfo=BUSINESS_TZ)
    return local.astimezone(timezone.utc)


class FakeClock:
    """테스트용 시계 (호출 시 현재 설정값 반환)"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set(self, now: datetime) -> None:
        self.now = now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now
