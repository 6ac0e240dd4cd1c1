"""
하드코딩 상수 - 변경될 일이 거의 없는 고정값

중요: 경로는 반드시 pathlib.Path 사용 (Windows/Linux 크로스 플랫폼)
"""

from decimal import Decimal
from pathlib import Path


# 프로젝트 루트 (이 파일 기준 2단계 상위: core/constants.py → cashbook/)
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent


class Defaults:
    """기본값 상수"""

    # 사업장 고정 UTC 오프셋 (PKT, UTC+5)
    BUSINESS_UTC_OFFSET_HOURS: int = 5
    BUSINESS_TZ_NAME: str = "PKT"

    # 원천 문서 조회 시 범위 시작일 이전으로 거슬러 올라가는 일수
    SOURCE_LOOKBACK_DAYS: int = 365

    LOG_LEVEL: str = "INFO"

    # 시스템이 기록하는 원장 항목의 actor
    SYSTEM_USER_ID: str = "system"
    SYSTEM_USER_NAME: str = "System"


class Money:
    """금액 관련 상수"""

    ZERO: Decimal = Decimal("0")
    # 리포트/대사 키 비교 단위 (소수점 2자리)
    QUANTUM: Decimal = Decimal("0.01")


class Paths:
    """프로젝트 경로 상수 (pathlib 사용 - OS 독립적)"""

    # 디렉토리
    CONFIG_DIR: Path = PROJECT_ROOT / "config"
    DATA_DIR: Path = PROJECT_ROOT / "data"
    LOGS_DIR: Path = PROJECT_ROOT / "logs"

    # 설정 파일
    SETTINGS_FILE: Path = CONFIG_DIR / "settings.yaml"

    # DB 파일
    DB_FILE: Path = DATA_DIR / "cashbook.db"
