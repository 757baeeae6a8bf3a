from __future__ import annotations

import io
import logging
import sys
from pathlib import Path

import pytest

from macula.services.console.logger import hold_stderr_logs


@pytest.fixture
def stderr_handler(monkeypatch: pytest.MonkeyPatch):
    stream = io.StringIO()
    monkeypatch.setattr(sys, "stderr", stream)
    # pytest's output capture re-binds sys.stderr when the test body starts,
    # undoing the patch above; sys.__stderr__ is left alone by it.
    monkeypatch.setattr(sys, "__stderr__", stream)
    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
    root = logging.getLogger()
    root.addHandler(handler)
    yield stream, handler
    root.removeHandler(handler)


def test_stderr_records_are_held_until_screen_is_released(stderr_handler) -> None:
    stream, handler = stderr_handler
    log = logging.getLogger("macula.test.hold")

    with hold_stderr_logs():
        log.warning("Disconnected from NATS")
        assert stream.getvalue() == ""
        assert handler not in logging.getLogger().handlers

    assert "WARNING Disconnected from NATS" in stream.getvalue()
    assert handler in logging.getLogger().handlers


def test_held_records_keep_only_the_newest(stderr_handler) -> None:
    stream, _ = stderr_handler
    log = logging.getLogger("macula.test.hold")

    with hold_stderr_logs(capacity=3):
        for n in range(10):
            log.warning("record %d", n)

    lines = stream.getvalue().splitlines()
    assert lines[-1] == "WARNING record 9"
    assert "WARNING record 0" not in lines
    assert len(lines) <= 4


def test_records_replayed_when_loop_fails(stderr_handler) -> None:
    stream, _ = stderr_handler

    with pytest.raises(RuntimeError):
        with hold_stderr_logs():
            logging.getLogger("macula.test.hold").warning("before failure")
            raise RuntimeError("render failed")

    assert "before failure" in stream.getvalue()


def test_log_file_handlers_are_not_held(tmp_path: Path) -> None:
    log_file = tmp_path / "console.log"
    file_handler = logging.FileHandler(log_file)
    root = logging.getLogger()
    root.addHandler(file_handler)
    try:
        with hold_stderr_logs():
            logging.getLogger("macula.test.hold").warning("written straight away")
            file_handler.flush()
            assert "written straight away" in log_file.read_text()
            assert file_handler in root.handlers
    finally:
        root.removeHandler(file_handler)
        file_handler.close()
