"""Unit tests for tenant-aware log formatting"""

import json
import logging
import sys

import pytest

from buildtrack.observability.logging_config import JSONFormatter, PlainFormatter, RequestIDFilter
from buildtrack.observability.request_id import (
    NO_REQUEST_ID,
    request_id_var,
    set_request_id,
    set_tenant_ids,
)


@pytest.fixture(autouse=True)
def clean_context():
    set_request_id(None)
    set_tenant_ids(None, None)
    yield
    set_request_id(None)
    set_tenant_ids(None, None)


def _record(message="hello", **extra) -> logging.LogRecord:
    record = logging.LogRecord("buildtrack.test", logging.WARNING, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    RequestIDFilter().filter(record)
    return record


class TestRequestIDFilter:

    def test_context_values_are_attached(self):
        set_request_id("req-1")
        set_tenant_ids("alice", "acme")

        record = _record()

        assert record.request_id == "req-1"
        assert record.company_id == "acme"
        assert record.user_id == "alice"

    def test_explicit_extra_wins(self):
        set_tenant_ids("alice", "acme")

        record = _record(company_id="globex")

        assert record.company_id == "globex"
        assert record.user_id == "alice"

    def test_without_request(self):
        record = _record()

        assert record.request_id == NO_REQUEST_ID
        assert record.company_id is None
        assert request_id_var.get() is None


class TestFormatters:

    def test_json_line(self):
        set_request_id("req-2")
        set_tenant_ids("alice", "acme")

        payload = json.loads(JSONFormatter().format(_record("denied", resource_type="tasks")))

        assert payload["message"] == "denied"
        assert payload["level"] == "WARNING"
        assert payload["request_id"] == "req-2"
        assert payload["company_id"] == "acme"
        assert payload["resource_type"] == "tasks"
        assert "resource_id" not in payload

    def test_json_includes_exception(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = logging.LogRecord("t", logging.ERROR, __file__, 1, "failed", None, sys.exc_info())
        RequestIDFilter().filter(record)

        payload = json.loads(JSONFormatter().format(record))

        assert "boom" in payload["error"]
        assert "ValueError" in payload["traceback"]

    def test_plain_line_marks_missing_tenant(self):
        line = PlainFormatter().format(_record("started"))

        assert "[-]" in line
        assert "started" in line
