"""
유틸리티 패키지

영업일 판정, 대사 key 생성 등 공통 유틸리티
"""

from core.utils.dedup import (
    make_payment_base_key,
    normalize_amount,
    with_occurrence,
)
from core.utils.timezone import (
    BUSINESS_TZ,
    business_day,
    business_day_str,
    day_bounds_utc,
    end_of_day_utc,
    from_db_ts,
    now_utc,
    payment_moment,
    to_business,
    to_db_ts,
)

__all__ = [
    "BUSINESS_TZ",
    "business_day",
    "business_day_str",
    "day_bounds_utc",
    "end_of_day_utc",
    "from_db_ts",
    "now_utc",
    "payment_moment",
    "to_business",
    "to_db_ts",
    "make_payment_base_key",
    "normalize_amount",
    "with_occurrence",
]
