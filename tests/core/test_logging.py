from __future__ import annotations

import json
import logging
import sys

from edutrack.core.logging import _ContainerFormatter, _JsonFormatter, setup_logging


def _record(level: int, msg: str = "hello", *, lineno: int = 1) -> logging.LogRecord:
    return logging.LogRecord(
        name="edutrack.test",
        level=level,
        pathname="svc.py",
        lineno=lineno,
        msg=msg,
        args=(),
        exc_info=None,
    )


def test_setup_logging_sets_root_level() -> None:
    setup_logging("debug")
    assert logging.getLogger().level == logging.DEBUG

    setup_logging("warning")
    assert logging.getLogger().level == logging.WARNING


def test_setup_logging_defaults_to_info_for_unknown_level() -> None:
    setup_logging("nonexistent")
    assert logging.getLogger().level == logging.INFO


def test_setup_logging_quiets_uvicorn_at_debug() -> None:
    setup_logging("debug")
    assert logging.getLogger("uvicorn").level == logging.WARNING


def test_setup_logging_allows_uvicorn_at_error() -> None:
    setup_logging("error")
    assert logging.getLogger("uvicorn").level == logging.ERROR


def test_setup_logging_picks_formatter() -> None:
    setup_logging("info", json_format=True)
    (handler,) = logging.getLogger().handlers
    assert isinstance(handler.formatter, _JsonFormatter)

    setup_logging("info")
    (handler,) = logging.getLogger().handlers
    assert isinstance(handler.formatter, _ContainerFormatter)


def test_formatter_excludes_location_for_info() -> None:
    output = _ContainerFormatter().format(_record(logging.INFO))
    assert "hello" in output
    assert "[svc.py:" not in output


def test_formatter_includes_location_for_warning() -> None:
    output = _ContainerFormatter().format(_record(logging.WARNING, "refused", lineno=42))
    assert "refused" in output
    assert "[svc.py:42]" in output


def test_json_formatter_produces_valid_json() -> None:
    parsed = json.loads(_JsonFormatter().format(_record(logging.INFO, "Lesson planned")))
    assert parsed["level"] == "INFO"
    assert parsed["logger"] == "edutrack.test"
    assert parsed["message"] == "Lesson planned"
    assert "timestamp" in parsed


def test_json_formatter_includes_request_context() -> None:
    record = _record(logging.INFO)
    record.request_id = "abc-123"  # type: ignore[attr-defined]
    record.user_id = 7  # type: ignore[attr-defined]
    record.role = "inspector"  # type: ignore[attr-defined]
    record.status_code = 409  # type: ignore[attr-defined]

    parsed = json.loads(_JsonFormatter().format(record))
    assert parsed["request_id"] == "abc-123"
    assert parsed["user_id"] == 7
    assert parsed["role"] == "inspector"
    assert parsed["status_code"] == 409
    assert "path" not in parsed


def test_json_formatter_includes_exception() -> None:
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = logging.LogRecord(
            name="edutrack.test",
            level=logging.ERROR,
            pathname="svc.py",
            lineno=1,
            msg="failed",
            args=(),
            exc_info=sys.exc_info(),
        )
    parsed = json.loads(_JsonFormatter().format(record))
    assert "RuntimeError: boom" in parsed["exception"]
