"""
설정 로더

settings.yaml 로드 및 애플리케이션 설정 생성
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from core.constants import Defaults, Paths


@dataclass(frozen=True)
class AppConfig:
    """애플리케이션 설정 (settings.yaml에서 로드)

    불변 데이터 구조로 설정 변경 방지
    """

    db_path: Path
    source_lookback_days: int
    log_dir: Path
    console_level: int
    file_level: int


class ConfigLoadError(Exception):
    """설정 로드 실패 예외"""

    pass


def _resolve_path(value: str | None, default: Path) -> Path:
    """상대 경로는 프로젝트 루트 기준으로 해석"""
    if not value:
        return default
    path = Path(value)
    if not path.is_absolute():
        path = Paths.CONFIG_DIR.parent / path
    return path


def _parse_level(section: dict[str, Any], key: str) -> int:
    name = str(section.get(key, Defaults.LOG_LEVEL)).upper()
    level = logging.getLevelName(name)
    if not isinstance(level, int):
        raise ConfigLoadError(f"settings.yaml의 logging.{key} 값이 잘못되었습니다: '{name}'")
    return level


def load_config(path: Path | None = None) -> AppConfig:
    """settings.yaml 파일 로드

    Args:
        path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        AppConfig 인스턴스

    Raises:
        ConfigLoadError: 파일이 없거나 형식/값이 잘못된 경우
    """
    if path is None:
        path = Paths.SETTINGS_FILE

    if not path.exists():
        raise ConfigLoadError(f"settings.yaml 파일을 찾을 수 없습니다: {path}")

    try:
        content = path.read_text(encoding="utf-8")
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigLoadError(f"settings.yaml 파싱 실패: {e}") from e

    if data is None:
        raise ConfigLoadError("settings.yaml이 비어 있습니다")
    if not isinstance(data, dict):
        raise ConfigLoadError("settings.yaml 최상위는 매핑이어야 합니다")

    database = data.get("database") or {}
    sources = data.get("sources") or {}
    logging_config = data.get("logging") or {}

    lookback = sources.get("lookback_days", Defaults.SOURCE_LOOKBACK_DAYS)
    if isinstance(lookback, bool) or not isinstance(lookback, int) or lookback < 0:
        raise ConfigLoadError(
            f"settings.yaml의 sources.lookback_days는 0 이상의 정수여야 합니다: {lookback!r}"
        )

    return AppConfig(
        db_path=_resolve_path(database.get("path"), Paths.DB_FILE),
        source_lookback_days=lookback,
        log_dir=_resolve_path(logging_config.get("dir"), Paths.LOGS_DIR),
        console_level=_parse_level(logging_config, "console_level"),
        file_level=_parse_level(logging_config, "file_level"),
    )


class Settings:
    """애플리케이션 설정 (싱글턴 패턴)

    settings.yaml을 로드하고 관련 설정을 제공
    """

    _instance: "Settings | None" = None
    _config: AppConfig | None = None

    def __new__(cls, config_path: Path | None = None) -> "Settings":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, config_path: Path | None = None) -> None:
        if self._config is None:
            type(self)._config = load_config(config_path)

    @property
    def config(self) -> AppConfig:
        assert self._config is not None
        return self._config

    @property
    def db_path(self) -> Path:
        """DB 파일 경로"""
        return self.config.db_path

    @property
    def source_lookback_days(self) -> int:
        """원천 문서 조회 시 거슬러 올라가는 일수"""
        return self.config.source_lookback_days

    @property
    def log_dir(self) -> Path:
        """로그 디렉토리"""
        return self.config.log_dir

    @classmethod
    def reset(cls) -> None:
        """싱글턴 인스턴스 초기화 (테스트용)"""
        cls._instance = None
        cls._config = None


def get_settings(config_path: Path | None = None) -> Settings:
    """Settings 인스턴스 반환

    Args:
        config_path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        Settings 싱글턴 인스턴스
    """
    return Settings(config_path)
