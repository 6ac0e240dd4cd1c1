"""
마감 잔액 재계산

자정 cron에서 전일 마감 잔액을 확정할 때 사용.

사용법:
    python -m scripts.recalculate_closing
    python -m scripts.recalculate_closing --date 2026-03-01
    python -m scripts.recalculate_closing --date 2026-03-01 --cascade
"""

import argparse
import asyncio
import logging
from datetime import date, timedelta
from pathlib import Path

# 프로젝트 루트를 Python 경로에 추가
import sys
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from core.config.loader import get_settings
from core.logging import setup_logging
from core.service import open_cashbook
from core.utils.timezone import business_day, now_utc

logger = logging.getLogger(__name__)


async def main(day: date | None, config_path: Path | None, cascade: bool) -> None:
    """재계산 실행

    Args:
        day: 영업일 (None이면 전일)
        config_path: settings.yaml 경로
        cascade: 원장 시작일부터 전부 다시 계산할지 여부
    """
    settings = get_settings(config_path)
    setup_logging("recalculate_closing", settings.config)

    target = day or business_day(now_utc()) - timedelta(days=1)
    logger.info(f"마감 잔액 재계산 시작: {target} (cascade={cascade})")

    async with open_cashbook(settings) as cashbook:
        closing = await cashbook.recalculate_closing_balance(target, cascade=cascade)
        if cascade:
            refreshed = await cashbook.get_closing_balances(date.min, target)
            logger.info(f"  - 다시 채운 날짜: {len(refreshed)}일")

    balances = closing.balances
    logger.info(f"  - 현금: {balances.cash}")
    for bank_account_id, balance in sorted(balances.banks.items()):
        logger.info(f"  - 은행 {bank_account_id}: {balance}")
    for card_id, balance in sorted(balances.cards.items()):
        logger.info(f"  - 카드 {card_id}: {balance}")
    logger.info("마감 잔액 재계산 완료 ✓")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="마감 잔액 재계산")
    parser.add_argument(
        "--date",
        type=date.fromisoformat,
        default=None,
        help="영업일 YYYY-MM-DD (기본: 전일)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="settings.yaml 경로 (기본: config/settings.yaml)",
    )
    parser.add_argument(
        "--cascade",
        action="store_true",
        help="원장 시작일부터 전부 다시 계산",
    )
    args = parser.parse_args()

    asyncio.run(main(args.date, args.config, args.cascade))
