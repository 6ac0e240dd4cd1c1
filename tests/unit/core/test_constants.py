"""
core/constants.py 테스트

모든 경로가 pathlib.Path 타입이고, 상수가 정상적으로 접근 가능한지 확인
"""

from decimal import Decimal
from pathlib import Path

from core.constants import PROJECT_ROOT, Defaults, Money, Paths


class TestProjectRoot:
    """PROJECT_ROOT 테스트"""

    def test_project_root_is_path(self) -> None:
        """PROJECT_ROOT가 Path 타입인지 확인"""
        assert isinstance(PROJECT_ROOT, Path)

    def test_project_root_is_absolute(self) -> None:
        """PROJECT_ROOT가 절대 경로인지 확인"""
        assert PROJECT_ROOT.is_absolute()

    def test_project_root_contains_core_directory(self) -> None:
        """PROJECT_ROOT에 core 디렉토리가 있는지 확인"""
        assert (PROJECT_ROOT / "core").exists()


class TestPaths:
    """Paths 테스트"""

    def test_all_paths_are_path_type(self) -> None:
        """모든 경로가 Path 타입인지 확인"""
        for value in (
            Paths.CONFIG_DIR,
            Paths.DATA_DIR,
            Paths.LOGS_DIR,
            Paths.SETTINGS_FILE,
            Paths.DB_FILE,
        ):
            assert isinstance(value, Path)

    def test_paths_under_project_root(self) -> None:
        """모든 경로가 PROJECT_ROOT 하위인지 확인"""
        assert Paths.SETTINGS_FILE.parent == Paths.CONFIG_DIR
        assert Paths.DB_FILE.parent == Paths.DATA_DIR
        assert Paths.CONFIG_DIR.parent == PROJECT_ROOT


class TestDefaults:
    """Defaults 테스트"""

    def test_business_offset(self) -> None:
        """사업장 고정 오프셋 (UTC+5)"""
        assert Defaults.BUSINESS_UTC_OFFSET_HOURS == 5

    def test_lookback(self) -> None:
        """원천 문서 lookback 기본값"""
        assert Defaults.SOURCE_LOOKBACK_DAYS > 0


class TestMoney:
    """Money 테스트"""

    def test_values(self) -> None:
        """금액 상수"""
        assert Money.ZERO == Decimal("0")
        assert Money.QUANTUM == Decimal("0.01")
