import logging
import logging.config
import logging.handlers
import os
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import yaml

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(debug: bool = False, log_file: Optional[Path] = None, env_key: str = "MACULA_LOG_CFG") -> None:
    """
    Setup logging for the operator console.

    A YAML file named by ``env_key`` with a ``logging`` section wins; otherwise
    records go to ``log_file`` (or stderr) at DEBUG with ``debug`` set and
    WARNING without, so the full-screen UI is not overdrawn by routine logs.
    """
    level = logging.DEBUG if debug else logging.WARNING
    path = os.getenv(env_key)
    if path and os.path.exists(path):
        with open(path, "rt", encoding="utf-8") as f:
            config = yaml.safe_load(f.read()) or {}
        if "logging" in config:
            logging.config.dictConfig(config["logging"])
            return

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logging.basicConfig(level=level, format=LOG_FORMAT, filename=str(log_file), force=True)
    else:
        logging.basicConfig(level=level, format=LOG_FORMAT, force=True)
    # nats-py is chatty at DEBUG about every reconnect attempt.
    logging.getLogger("nats").setLevel(max(level, logging.INFO))


class _HeldRecords(logging.handlers.MemoryHandler):
    """Buffers records until flushed, keeping the newest ``capacity`` of them."""

    def shouldFlush(self, record: logging.LogRecord) -> bool:
        if len(self.buffer) > self.capacity:
            del self.buffer[0]
        return False


def _is_stderr_handler(handler: logging.Handler) -> bool:
    return (
        type(handler) is logging.StreamHandler
        and getattr(handler, "stream", None) in (sys.stderr, sys.__stderr__)
    )


@contextmanager
def hold_stderr_logs(capacity: int = 1000) -> Iterator[None]:
    """
    Hold back records bound for stderr while the full-screen UI owns the
    terminal and replay them once it has been restored.

    File handlers and handlers on other streams keep writing as usual.
    """
    root = logging.getLogger()
    held = [handler for handler in root.handlers if _is_stderr_handler(handler)]
    buffers = []
    for handler in held:
        buffer = _HeldRecords(capacity, flushLevel=logging.CRITICAL + 1, target=handler)
        buffer.setLevel(handler.level)
        root.removeHandler(handler)
        root.addHandler(buffer)
        buffers.append(buffer)
    try:
        yield
    finally:
        for handler, buffer in zip(held, buffers):
            root.removeHandler(buffer)
            root.addHandler(handler)
            buffer.flush()
            buffer.close()


logger = logging.getLogger("macula_console")
