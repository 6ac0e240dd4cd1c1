"""
타임존 / 영업일 유틸리티

내부 저장: UTC | 날짜 비교: 사업장 고정 오프셋(PKT, UTC+5) 원칙 준수를 위한 헬퍼 함수.
"어느 날의 일인가"는 반드시 business_day() 하나로만 판정한다.
"""

from datetime import date, datetime, time, timedelta, timezone

from core.constants import Defaults

# 사업장 타임존 (고정 오프셋)
BUSINESS_TZ = timezone(
    timedelta(hours=Defaults.BUSINESS_UTC_OFFSET_HOURS),
    Defaults.BUSINESS_TZ_NAME,
)

# DB 저장용 UTC 타임스탬프 포맷 (고정 길이 → 문자열 정렬 = 시간 정렬)
DB_TS_FORMAT = "%Y-%m-%dT%H:%M:%S.%f+00:00"


def now_utc() -> datetime:
    """현재 UTC 시간 반환 (타임존 명시)

    Returns:
        현재 UTC 시간 (tzinfo=timezone.utc)
    """
    return datetime.now(timezone.utc)


def to_business(dt: datetime) -> datetime:
    """datetime을 사업장 타임존으로 변환

    Args:
        dt: datetime 객체 (naive면 UTC로 간주)

    Returns:
        사업장 타임존의 datetime

    Example:
        >>> to_business(datetime(2026, 3, 1, 20, 0, tzinfo=timezone.utc)).day
        2  # 다음날 01:00
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(BUSINESS_TZ)


def business_day(value: date | datetime | str) -> date:
    """값이 속한 영업일(달력 날짜) 반환

    날짜 비교가 필요한 모든 곳에서 이 함수만 사용한다.

    - tz-aware datetime (원장 createdAt 등): 사업장 타임존으로 변환 후 날짜
    - naive datetime: 벽시계 시간 그대로의 날짜
    - 문자열 (원천 문서의 결제일 등): 앞의 YYYY-MM-DD를 그대로 사용.
      "...Z" 로 끝나는 UTC 문자열도 타임존 연산을 하지 않는다 (하루 밀림 방지)
    - date: 그대로

    Args:
        value: 날짜/시각 값

    Returns:
        영업일

    Raises:
        ValueError: 날짜로 해석할 수 없는 문자열

    Example:
        >>> business_day("2026-01-19T23:22:06.000Z")
        datetime.date(2026, 1, 19)
        >>> business_day(datetime(2026, 1, 19, 20, 0, tzinfo=timezone.utc))
        datetime.date(2026, 1, 20)
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.date()
        return value.astimezone(BUSINESS_TZ).date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError as e:
            raise ValueError(f"날짜 형식이 잘못되었습니다: {value!r}") from e
    raise TypeError(f"지원하지 않는 날짜 타입: {type(value).__name__}")


def business_day_str(value: date | datetime | str) -> str:
    """business_day()의 YYYY-MM-DD 문자열 형태 (DB 키/대사 키용)"""
    return business_day(value).isoformat()


def day_bounds_utc(day: date) -> tuple[datetime, datetime]:
    """영업일의 [시작, 끝] UTC 구간 반환

    Args:
        day: 영업일

    Returns:
        (00:00:00.000000, 23:59:59.999999) 사업장 시간을 UTC로 변환한 튜플
    """
    start = datetime.combine(day, time.min, tzinfo=BUSINESS_TZ)
    end = datetime.combine(day, time.max, tzinfo=BUSINESS_TZ)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def end_of_day_utc(day: date) -> datetime:
    """영업일의 마지막 순간 (UTC)"""
    return day_bounds_utc(day)[1]


def payment_moment(value: datetime | str) -> datetime:
    """원천 문서 결제일 값을 정렬용 시각으로 변환

    결제일 문자열의 벽시계 시간을 사업장 시간으로 취급한다
    (business_day()와 같은 이유로 타임존 변환을 하지 않음).

    Args:
        value: 결제일 ("2026-01-19", "2026-01-19T10:00:00Z" 등)

    Returns:
        사업장 타임존의 datetime
    """
    if isinstance(value, datetime):
        return value.replace(tzinfo=BUSINESS_TZ)
    text = value.strip()
    if len(text) <= 10:
        return datetime.combine(business_day(text), time.min, tzinfo=BUSINESS_TZ)
    # 오프셋/Z 표기를 제거한 벽시계 부분만 사용
    wall = text[:19].replace(" ", "T")
    try:
        parsed = datetime.fromisoformat(wall)
    except ValueError:
        return datetime.combine(business_day(text), time.min, tzinfo=BUSINESS_TZ)
    return parsed.replace(tzinfo=BUSINESS_TZ)


def to_db_ts(dt: datetime) -> str:
    """datetime을 DB 저장용 UTC 문자열로 변환

    Args:
        dt: datetime 객체 (naive면 UTC로 간주)

    Returns:
        고정 길이 ISO 문자열 (예: '2026-03-01T05:00:00.000000+00:00')
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).strftime(DB_TS_FORMAT)


def from_db_ts(value: str) -> datetime:
    """DB 저장 문자열을 UTC datetime으로 복원"""
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt
