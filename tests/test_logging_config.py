from __future__ import annotations

import io
import json
import logging

import pytest

from snaproom.logging_config import (
    JsonLineFormatter,
    LogContextFilter,
    bind_log_context,
    current_log_context,
    init_logging,
    unbind_log_context,
)


def _capture_logger(name: str) -> tuple[logging.Logger, io.StringIO]:
    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(JsonLineFormatter())
    handler.addFilter(LogContextFilter())
    logger = logging.getLogger(name)
    logger.handlers = [handler]
    logger.propagate = False
    logger.setLevel(logging.DEBUG)
    return logger, stream


def test_records_carry_connection_and_room() -> None:
    logger, stream = _capture_logger("snaproom.test.json")
    outer = bind_log_context(connection="conn-42")
    inner = bind_log_context(room="abc123")
    try:
        logger.info("Layer update in room %s", "abc123", extra={"recipients": 2})
    finally:
        unbind_log_context(inner)
        unbind_log_context(outer)

    record = json.loads(stream.getvalue().strip())
    assert record["level"] == "INFO"
    assert record["logger"] == "snaproom.test.json"
    assert record["message"] == "Layer update in room abc123"
    assert record["connection"] == "conn-42"
    assert record["room"] == "abc123"
    assert record["extra"] == {"recipients": 2}
    assert current_log_context() == {}


def test_unbinding_restores_the_outer_context() -> None:
    outer = bind_log_context(connection="conn-1", room="first")
    inner = bind_log_context(room=None)
    assert current_log_context() == {"connection": "conn-1"}
    unbind_log_context(inner)
    assert current_log_context() == {"connection": "conn-1", "room": "first"}
    unbind_log_context(outer)


def test_unknown_context_field_is_rejected() -> None:
    with pytest.raises(TypeError):
        bind_log_context(user="someone")


def test_unserialisable_extras_fall_back_to_repr() -> None:
    logger, stream = _capture_logger("snaproom.test.extra")
    logger.warning("odd", extra={"members": frozenset({"a"})})

    record = json.loads(stream.getvalue().strip())
    assert record["extra"]["members"] == repr(frozenset({"a"}))
    assert "connection" not in record
    assert "room" not in record


def test_init_logging_creates_log_file(tmp_path) -> None:
    log_path = init_logging(tmp_path / "logs", level="debug", filename="test.log")
    token = bind_log_context(connection="conn-7")
    try:
        logging.getLogger("snaproom.test.file").info("hello")
    finally:
        unbind_log_context(token)
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert log_path == (tmp_path / "logs" / "test.log").resolve()
    lines = log_path.read_text(encoding="utf-8").strip().splitlines()
    last = json.loads(lines[-1])
    assert last["message"] == "hello"
    assert last["connection"] == "conn-7"
    assert logging.getLogger().level == logging.DEBUG
