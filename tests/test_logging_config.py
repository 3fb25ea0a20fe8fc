"""Log formatters: request and report context on each record."""

import json
import logging

from testcraft.middleware.logging_config import JSONFormatter, ReadableFormatter


def _record(msg="Report computed", **extra):
    record = logging.makeLogRecord({
        "name": "testcraft.services.report_engine",
        "levelname": "INFO",
        "levelno": logging.INFO,
        "msg": msg,
    })
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def test_report_context(self):
        entry = json.loads(JSONFormatter().format(
            _record(project_id=7, report="status-breakdown"),
        ))
        assert entry["msg"] == "Report computed"
        assert entry["logger"] == "testcraft.services.report_engine"
        assert entry["project_id"] == 7
        assert entry["report"] == "status-breakdown"

    def test_absent_context_omitted(self):
        entry = json.loads(JSONFormatter().format(_record()))
        assert set(entry) == {"ts", "level", "logger", "msg"}

    def test_request_context_without_client_address(self):
        entry = json.loads(JSONFormatter().format(_record(
            "Request", method="GET", path="/api/v1/projects/7/stats",
            status=200, duration_ms=3.5, request_id="abc123", remote_addr="10.0.0.1",
        )))
        assert entry["status"] == 200
        assert entry["request_id"] == "abc123"
        assert "remote_addr" not in entry


class TestReadableFormatter:
    def test_tags_project_and_report(self):
        line = ReadableFormatter().format(_record(project_id=7, report="export"))
        assert "[p#7 export] Report computed" in line

    def test_no_tags(self):
        line = ReadableFormatter().format(_record())
        assert "[" not in line
        assert line.endswith("testcraft.services.report_engine Report computed")
