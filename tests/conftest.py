"""
pytest 공통 fixture 정의

설정 파일 / 임시 디렉토리 fixture
"""

import tempfile
from pathlib import Path

import pytest

from core.config.loader import Settings


@pytest.fixture
def temp_dir() -> Path:
    """OS 독립적인 임시 디렉토리 생성"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(autouse=True)
def reset_settings() -> None:
    """테스트 간 Settings 싱글턴 격리"""
    Settings.reset()
    yield
    Settings.reset()


@pytest.fixture
def temp_settings_file(temp_dir: Path) -> Path:
    """테스트용 settings.yaml 파일 생성"""
    settings_content = f"""# 테스트용 settings.yaml
database:
  path: "{(temp_dir / 'cashbook.db').as_posix()}"

sources:
  lookback_days: 30

logging:
  dir: "{(temp_dir / 'logs').as_posix()}"
  console_level: WARNING
  file_level: DEBUG
"""
    settings_path = temp_dir / "settings.yaml"
    settings_path.write_text(settings_content, encoding="utf-8")
    return settings_path


@pytest.fixture
def temp_settings_file_minimal(temp_dir: Path) -> Path:
    """섹션이 모두 생략된 settings.yaml (기본값 사용)"""
    settings_path = temp_dir / "settings_minimal.yaml"
    settings_path.write_text("database: {}\n", encoding="utf-8")
    return settings_path


@pytest.fixture
def temp_settings_file_invalid_lookback(temp_dir: Path) -> Path:
    """lookback_days가 음수인 settings.yaml"""
    settings_path = temp_dir / "settings_invalid.yaml"
    settings_path.write_text("sources:\n  lookback_days: -1\n", encoding="utf-8")
    return settings_path
