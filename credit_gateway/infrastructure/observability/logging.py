"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

from pythonjsonlogger import jsonlogger

from credit_gateway.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_sync(
    request_id: str,
    address: str,
    outcome: str,
    duration_ms: float,
    trade_count: int | None = None,
    confirmation_id: str | None = None,
) -> None:
    """Log structured sync outcome for analysis"""
    logging.info(
        "Score sync completed",
        extra={
            "request_id": request_id,
            "address": address,
            "step": "sync_complete",
            "sync_outcome": outcome,
            "trade_count": trade_count,
            "confirmation_id": confirmation_id,
            "duration_ms": duration_ms,
        },
    )


def log_lending_action(
    request_id: str,
    address: str,
    action: str,
    outcome: str,
    duration_ms: float,
    confirmation_id: str | None = None,
) -> None:
    """Log structured borrow/repay outcome"""
    logging.info(
        "Lending action completed",
        extra={
            "request_id": request_id,
            "address": address,
            "step": f"{action}_complete",
            "action_outcome": outcome,
            "confirmation_id": confirmation_id,
            "duration_ms": duration_ms,
        },
    )
