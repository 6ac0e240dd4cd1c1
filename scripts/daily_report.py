"""
리포트 출력

일별 또는 기간 리포트를 JSON으로 출력.

사용법:
    python -m scripts.daily_report --date 2026-03-01
    python -m scripts.daily_report --start 2026-03-01 --end 2026-03-07
"""

import argparse
import asyncio
import logging
from datetime import date
from pathlib import Path

# 프로젝트 루트를 Python 경로에 추가
import sys
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from core.config.loader import get_settings
from core.logging import setup_logging
from core.service import open_cashbook
from core.utils.timezone import business_day, now_utc

logger = logging.getLogger(__name__)


async def main(
    day: date | None,
    start: date | None,
    end: date | None,
    config_path: Path | None,
) -> int:
    """리포트 생성 후 stdout으로 출력

    Returns:
        종료 코드 (기간 리포트에 실패한 날짜가 있으면 1)
    """
    settings = get_settings(config_path)
    # stdout은 JSON 전용
    setup_logging("daily_report", settings.config, console_level=logging.WARNING)

    async with open_cashbook(settings) as cashbook:
        if start is not None or end is not None:
            range_start = start or end
            range_end = end or start
            assert range_start is not None and range_end is not None
            report = await cashbook.get_date_range_report(range_start, range_end)
            print(report.model_dump_json(indent=2))
            return 1 if report.failures else 0

        daily = await cashbook.get_daily_report(day or business_day(now_utc()))
        print(daily.model_dump_json(indent=2))
        return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="일별/기간 리포트 출력")
    parser.add_argument(
        "--date",
        type=date.fromisoformat,
        default=None,
        help="영업일 YYYY-MM-DD (기본: 오늘)",
    )
    parser.add_argument("--start", type=date.fromisoformat, default=None, help="기간 시작일")
    parser.add_argument("--end", type=date.fromisoformat, default=None, help="기간 종료일")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="settings.yaml 경로 (기본: config/settings.yaml)",
    )
    args = parser.parse_args()

    if args.date is not None and (args.start is not None or args.end is not None):
        parser.error("--date 와 --start/--end 는 함께 사용할 수 없습니다")

    sys.exit(asyncio.run(main(args.date, args.start, args.end, args.config)))
