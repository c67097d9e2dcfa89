"""
Structured logging for the scheduling service.

Booking, reservation and provider identifiers passed through ``extra`` are
grouped under a single ``scheduling`` key in JSON output so a slot's history
can be followed across services.
"""
import logging
import sys
from typing import Any, Dict

from pythonjsonlogger import jsonlogger

from core.config import settings


SCHEDULING_FIELDS = (
    "booking_id",
    "reservation_id",
    "provider_id",
    "requester_id",
    "slot_date",
    "slot_time",
)


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter that adds source location and scheduling context."""

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any]
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record['timestamp'] = self.formatTime(record, self.datefmt)
        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        log_record['module'] = record.module
        log_record['function'] = record.funcName
        log_record['line'] = record.lineno

        log_record['app_name'] = settings.app_name
        log_record['environment'] = settings.app_env
        log_record['clinic_timezone'] = settings.default_timezone

        scheduling = {
            field: str(log_record.pop(field))
            for field in SCHEDULING_FIELDS
            if log_record.get(field) is not None
        }
        if scheduling:
            log_record['scheduling'] = scheduling

        if record.exc_info:
            log_record['exc_info'] = self.formatException(record.exc_info)


def setup_logging() -> None:
    """
    Configure the root logger for the API process.

    JSON lines in staging and production, plain text while developing.
    SQL echo follows ``debug`` in development only.
    """
    use_json = settings.app_env in ["production", "staging"]

    if use_json:
        formatter: logging.Formatter = CustomJsonFormatter(
            fmt='%(timestamp)s %(level)s %(name)s %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
    else:
        formatter = logging.Formatter(
            fmt='%(asctime)s %(levelname)-7s [%(name)s] %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.log_level))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.is_development and settings.debug else logging.WARNING
    )

    logging.info(
        "Scheduling logging configured",
        extra={
            "log_level": settings.log_level,
            "environment": settings.app_env,
            "json_logging": use_json,
        }
    )


def get_logger(name: str) -> logging.Logger:
    """Module logger; handlers come from ``setup_logging``."""
    return logging.getLogger(name)
