"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger

from donation_gateway.config import settings


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


def log_donation_intent(
    request_id: str,
    charge_id: str,
    donation_type: str,
    plan: str,
    amount_cents: int,
    duration_ms: float,
) -> None:
    """Log the prepared initial charge"""
    logging.info(
        "Payment intent created",
        extra={
            "request_id": request_id,
            "charge_id": charge_id,
            "step": "payment_intent_created",
            "donation_type": donation_type,
            "plan": plan,
            "amount_cents": amount_cents,
            "duration_ms": duration_ms,
        },
    )


def log_follow_up(
    event_id: str,
    charge_id: str,
    kind: str,
    customer_id: str,
    unit_amount_cents: int,
    iterations: Optional[int],
) -> None:
    """Log the billing object created after a succeeded charge"""
    logging.info(
        "Follow-up billing created",
        extra={
            "event_id": event_id,
            "charge_id": charge_id,
            "step": "follow_up_created",
            "kind": kind,
            "customer_id": customer_id,
            "unit_amount_cents": unit_amount_cents,
            "iterations": iterations,
        },
    )
