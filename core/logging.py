"""
로깅 설정 유틸리티

스크립트/서비스에서 사용하는 공통 로깅 설정.
- 콘솔: stdout (레벨은 settings.yaml logging.console_level)
- 파일: 프로세스별 파일, 매일 자정 롤링 (logging.file_level)

원장/잔액 모듈은 logger.info("...", extra={"transaction_id": ...}) 형태로
문맥을 남기므로, 포맷터가 extra 필드를 "key=value" 꼬리로 붙여 출력한다.

사용법:
    from core.logging import setup_logging
    setup_logging("recalculate_closing", settings.config)
"""

import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING

from core.constants import Paths

if TYPE_CHECKING:
    from core.config.loader import AppConfig


LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_BACKUP_COUNT = 7  # 최대 7일치 파일 유지

# DB 쿼리/이벤트 루프 단위 로그를 남기는 로거 (WARNING 이상만)
NOISY_LOGGERS = [
    "aiosqlite",
    "asyncio",
]

# LogRecord 기본 속성 (extra로 들어온 필드만 골라내기 위함)
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime", "taskName"}


class ContextFormatter(logging.Formatter):
    """extra 필드를 메시지 뒤에 붙이는 포맷터

    Example:
        2026-03-01 10:00:00 | INFO     | core.balance.manager | 잔액 갱신: cash 0 → 200
        | source=sale_payment transaction_id=btx-1a2b
    """

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        }
        if not context:
            return line
        tail = " ".join(f"{key}={value}" for key, value in sorted(context.items()))
        return f"{line} | {tail}"


def setup_logging(
    process_name: str,
    config: "AppConfig | None" = None,
    *,
    console_level: int | None = None,
) -> logging.Logger:
    """루트 로거 초기화

    기존 핸들러는 닫고 교체한다 (같은 프로세스에서 두 번 호출해도 중복 출력 없음).

    Args:
        process_name: 프로세스 이름 (로그 파일명)
        config: 애플리케이션 설정 (None이면 INFO / 기본 로그 디렉토리)
        console_level: 콘솔 레벨 강제 지정 (stdout을 결과 출력에 쓰는 스크립트용)

    Returns:
        설정된 루트 Logger
    """
    file_level = config.file_level if config else logging.INFO
    if console_level is None:
        console_level = config.console_level if config else logging.INFO

    log_file = get_log_file_path(process_name, config.log_dir if config else None)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(min(console_level, file_level))

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    formatter = ContextFormatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    file_handler = TimedRotatingFileHandler(
        filename=log_file,
        when="midnight",
        backupCount=LOG_FILE_BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.suffix = "%Y-%m-%d"  # recalculate_closing.log.2026-03-01
    file_handler.setLevel(file_level)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    root_logger.info(
        f"로깅 초기화 완료: {process_name}",
        extra={
            "console": logging.getLevelName(console_level),
            "file": str(log_file),
            "file_level": logging.getLevelName(file_level),
        },
    )
    return root_logger


def get_log_file_path(process_name: str, log_dir: Path | None = None) -> Path:
    """로그 파일 경로 반환 (log_dir가 없으면 기본 logs/)"""
    return (log_dir or Paths.LOGS_DIR) / f"{process_name}.log"
