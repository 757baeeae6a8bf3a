"""Keyboard input for the console loop.

The terminal is switched to cbreak mode for the lifetime of a
:class:`KeyboardInput` and restored on close, whichever way the loop exits.
"""

from __future__ import annotations

import os
import select
import sys
import termios
import tty
from dataclasses import dataclass
from typing import Optional

from macula.services.console.errors import TerminalUnavailableError


@dataclass(frozen=True)
class InputEvent:
    kind: str
    key: str = ""


_SPECIAL_KEYS = {
    "\x1b[A": "up",
    "\x1b[B": "down",
    "\x1b[C": "right",
    "\x1b[D": "left",
    "\x1b[Z": "backtab",
    "\x1bOA": "up",
    "\x1bOB": "down",
    "\x1bOC": "right",
    "\x1bOD": "left",
}

_CONTROL_KEYS = {
    "\t": "tab",
    "\r": "enter",
    "\n": "enter",
    "\x03": "ctrl+c",
}


def parse_keys(buffer: str, flush: bool = False) -> tuple[list[InputEvent], str]:
    """Split raw terminal input into key events.

    Returns the parsed events and the unconsumed tail: an escape sequence, or a
    lone escape, that may still be completed by the next read. With ``flush``
    nothing is held back; a lone escape becomes ``esc`` and a cut-off sequence
    is discarded.
    """
    events: list[InputEvent] = []
    while buffer:
        if buffer.startswith("\x1b"):
            if len(buffer) == 1:
                if flush:
                    events.append(InputEvent(kind="key", key="esc"))
                    buffer = ""
                break
            if buffer[1] == "O":
                if len(buffer) < 3:
                    break
                token, buffer = buffer[:3], buffer[3:]
                key = _SPECIAL_KEYS.get(token)
                events.append(InputEvent(kind="key", key=key) if key else InputEvent(kind="noop"))
                continue
            if buffer[1] == "[":
                end = _csi_end(buffer)
                if end is None:
                    break
                token, buffer = buffer[: end + 1], buffer[end + 1 :]
                key = _SPECIAL_KEYS.get(token)
                events.append(InputEvent(kind="key", key=key) if key else InputEvent(kind="noop"))
                continue
            events.append(InputEvent(kind="key", key="esc"))
            buffer = buffer[1:]
            continue
        char, buffer = buffer[0], buffer[1:]
        events.append(InputEvent(kind="key", key=_CONTROL_KEYS.get(char, char)))
    if flush and buffer:
        events.append(InputEvent(kind="noop"))
        buffer = ""
    return events, buffer


def _csi_end(buffer: str) -> Optional[int]:
    # CSI sequences end with a byte in the range "@".."~".
    for index in range(2, len(buffer)):
        if "@" <= buffer[index] <= "~":
            return index
    return None


class KeyboardInput:
    """cbreak-mode keyboard reader polled with a timeout."""

    def __init__(self) -> None:
        self._fd = sys.stdin.fileno()
        self._old_attrs = termios.tcgetattr(self._fd)
        self._buffer = ""
        self._closed = False
        tty.setcbreak(self._fd)

    @classmethod
    def is_supported(cls) -> tuple[bool, str]:
        if not sys.stdin.isatty() or not sys.stdout.isatty():
            return False, "stdin/stdout is not TTY"
        if os.getenv("TERM", "").lower() == "dumb":
            return False, "TERM=dumb"
        return True, ""

    @classmethod
    def open(cls) -> KeyboardInput:
        ok, reason = cls.is_supported()
        if not ok:
            raise TerminalUnavailableError(reason)
        try:
            return cls()
        except termios.error as exc:
            raise TerminalUnavailableError(f"cannot switch terminal to cbreak mode: {exc}") from exc

    def __enter__(self) -> KeyboardInput:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def poll_events(self, timeout_ms: int) -> list[InputEvent]:
        if self._closed:
            return []
        timeout_s = max(0.0, timeout_ms / 1000.0)
        ready, _, _ = select.select([self._fd], [], [], timeout_s)
        if not ready:
            # A quiet poll ends whatever escape sequence was pending.
            events, self._buffer = parse_keys(self._buffer, flush=True)
            return events
        chunk = os.read(self._fd, 4096).decode("utf-8", errors="ignore")
        if not chunk:
            return []
        events, self._buffer = parse_keys(self._buffer + chunk)
        return events

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        termios.tcsetattr(self._fd, termios.TCSADRAIN, self._old_attrs)
