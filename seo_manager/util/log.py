"""簡易ロギング。一括処理のサマリを必ず出せるようにする。"""
import logging
import sys
from typing import Any

def setup_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )

def log_operation_summary(
    logger: logging.Logger,
    operation: str,
    requested_count: int,
    accepted_count: int,
    success: bool,
    elapsed_sec: float,
    notes: str = "",
    **extra: Any,
) -> None:
    logger.info(
        "operation_summary operation=%s requested=%s accepted=%s success=%s elapsed=%.2fs notes=%s",
        operation,
        requested_count,
        accepted_count,
        success,
        elapsed_sec,
        notes or "(none)",
        extra=extra,
    )
