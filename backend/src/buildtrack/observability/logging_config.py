"""Structured logging for the isolation layer.

Each record carries the request id and the tenant pair of the request being
served. Values passed explicitly via ``extra={"company_id": ...}`` win over
the request context, so a store call made for another tenant (e.g. a
background cleanup) is still logged under the right company.
"""

import json
import logging
import sys
from datetime import datetime, timezone

from .request_id import get_request_id, get_tenant_ids

PLAIN_FORMAT = "%(asctime)s %(levelname)-7s [%(request_id)s] [%(company_id)s] %(name)s: %(message)s"


class RequestIDFilter(logging.Filter):
    """Attach request_id, company_id and user_id to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id()
        user_id, company_id = get_tenant_ids()
        if getattr(record, "company_id", None) is None:
            record.company_id = company_id
        if getattr(record, "user_id", None) is None:
            record.user_id = user_id
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per line; tenant fields are omitted when unknown."""

    CONTEXT_FIELDS = ("company_id", "user_id", "resource_type", "resource_id", "action", "client_ip")

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "request_id": getattr(record, "request_id", None) or get_request_id(),
            "module": record.module,
            "function": record.funcName,
            "message": record.getMessage(),
        }
        for field in self.CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = str(value)
        if record.exc_info:
            payload["error"] = repr(record.exc_info[1])
            payload["traceback"] = self.formatException(record.exc_info)
        return json.dumps(payload)


class PlainFormatter(logging.Formatter):
    """Human-readable format for local runs and tests."""

    def __init__(self):
        super().__init__(PLAIN_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        if getattr(record, "company_id", None) is None:
            record.company_id = "-"
        if not hasattr(record, "request_id"):
            record.request_id = get_request_id()
        return super().format(record)


def configure_logging(level: str = "INFO", json_format: bool = True) -> None:
    """Install one stdout handler on the root logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR)
        json_format: JSON lines when True, PLAIN_FORMAT otherwise
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if json_format else PlainFormatter())
    handler.addFilter(RequestIDFilter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(numeric_level)

    for noisy in ("uvicorn.access", "sqlalchemy.engine", "botocore", "boto3", "s3transfer"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
