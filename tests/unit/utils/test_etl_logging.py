"""Unit tests for structured logging and credential redaction."""

import json
import logging
from pathlib import Path

import pytest

from etl_toolbox.config.settings import Settings
from etl_toolbox.utils.logging import _file_handler, get_logger, sanitize_for_logging


def _events(caplog, name):
    payloads = []
    for record in caplog.records:
        try:
            data = json.loads(record.getMessage())
        except ValueError:
            continue
        if data.get("event") == name:
            payloads.append(data)
    return payloads


@pytest.mark.unit
def test_get_logger_returns_bound_logger():
    logger = get_logger("etl_toolbox.test")

    assert hasattr(logger, "bind")
    assert hasattr(logger, "warning")


@pytest.mark.unit
def test_json_output_structure(caplog):
    caplog.set_level(logging.INFO)

    get_logger("etl_toolbox.test").info("mapping.completed", record_count=3)

    (payload,) = _events(caplog, "mapping.completed")
    assert payload["record_count"] == 3
    assert payload["level"] == "info"
    assert payload["logger"] == "etl_toolbox.test"
    assert "timestamp" in payload


@pytest.mark.unit
@pytest.mark.parametrize(
    "key",
    ["password", "DB_PASSWORD", "access_token", "client_secret", "connection_string", "dsn", "database_uri"],
)
def test_sensitive_keys_are_redacted(key):
    sanitized = sanitize_for_logging({key: "value", "table": "sales"})

    assert sanitized[key] == "[REDACTED]"
    assert sanitized["table"] == "sales"


@pytest.mark.unit
def test_nested_dicts_are_sanitized():
    sanitized = sanitize_for_logging({"engine": {"dsn": "postgresql://u:p@h/db"}})

    assert sanitized["engine"]["dsn"] == "[REDACTED]"


@pytest.mark.unit
def test_redaction_applies_to_emitted_events(caplog):
    caplog.set_level(logging.INFO)

    get_logger("etl_toolbox.test").info("sink.connected", dsn="postgresql://u:p@h/db")

    (payload,) = _events(caplog, "sink.connected")
    assert payload["dsn"] == "[REDACTED]"


@pytest.mark.unit
def test_file_handler_writes_into_configured_directory(tmp_path, monkeypatch):
    monkeypatch.setenv("ETL_LOG_FILE_DIR", str(tmp_path / "logs"))

    handler = _file_handler(Settings(), logging.INFO)
    try:
        path = Path(handler.baseFilename)
        assert path.parent == tmp_path / "logs"
        assert path.name.startswith("etl-toolbox-")
        assert handler.level == logging.INFO
    finally:
        handler.close()
