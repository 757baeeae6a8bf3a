"""Logs view - real-time log viewer over a bounded ring of entries."""

from __future__ import annotations

from collections import deque
from datetime import datetime, timezone
from typing import Deque, List, Optional

from rich.console import RenderableType
from rich.panel import Panel
from rich.style import Style
from rich.text import Text

from macula.services.console.events import DomainEvent, LogReceived
from macula.services.console.ui.theme import Theme
from macula.services.console.ui.widgets import Region, placeholder
from macula.shared.models import LogEntry

MAX_LOG_ENTRIES = 1000
# Lines kept above the newest entry by "jump to bottom".
BOTTOM_PAGE = 20
LEVEL_FILTERS = (None, "error", "warn", "info", "debug")

_LEVEL_ALIASES = {"err": "error", "warning": "warn"}


def normalize_level(level: str) -> str:
    low = level.strip().lower()
    return _LEVEL_ALIASES.get(low, low)


def level_style(level: str, theme: Theme) -> Style:
    low = normalize_level(level)
    if low == "error":
        return theme.error_style()
    if low == "warn":
        return theme.warning_style()
    if low == "info":
        return theme.success_style()
    if low in {"debug", "trace"}:
        return theme.muted_style()
    return Style()


def format_timestamp(ts: int) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%H:%M:%S")


class LogsView:
    """Holds at most ``capacity`` entries; the oldest is evicted on each overflow.

    ``scroll`` is a view position only. It may point past the end after a
    clear or a filter change and is clamped when rendering.
    """

    def __init__(self, capacity: int = MAX_LOG_ENTRIES) -> None:
        self.entries: Deque[LogEntry] = deque(maxlen=capacity)
        self.scroll = 0
        self.filter_level: Optional[str] = None
        self.filter_service: Optional[str] = None

    @property
    def capacity(self) -> int:
        assert self.entries.maxlen is not None
        return self.entries.maxlen

    def apply(self, event: DomainEvent) -> None:
        if isinstance(event, LogReceived):
            self.add_entry(event.entry)

    def add_entry(self, entry: LogEntry) -> None:
        self.entries.append(entry)

    def scroll_down(self) -> None:
        self.scroll += 1

    def scroll_up(self) -> None:
        self.scroll = max(self.scroll - 1, 0)

    def scroll_to_bottom(self) -> None:
        self.scroll = max(len(self.entries) - BOTTOM_PAGE, 0)

    def clear(self) -> None:
        self.entries.clear()
        self.scroll = 0

    def cycle_level_filter(self) -> None:
        index = LEVEL_FILTERS.index(self.filter_level)
        self.filter_level = LEVEL_FILTERS[(index + 1) % len(LEVEL_FILTERS)]

    def cycle_service_filter(self) -> None:
        """Step through the services seen so far, then back to no filter."""
        services = sorted({entry.service for entry in self.entries if entry.service})
        if self.filter_service in services:
            position = services.index(self.filter_service) + 1
            self.filter_service = services[position] if position < len(services) else None
        else:
            self.filter_service = services[0] if services else None

    def filtered_entries(self) -> List[LogEntry]:
        return [
            entry
            for entry in self.entries
            if (self.filter_level is None or normalize_level(entry.level) == self.filter_level)
            and (self.filter_service is None or entry.service == self.filter_service)
        ]

    def visible_offset(self, total: int, rows: int) -> int:
        return min(self.scroll, max(total - rows, 0))

    def _title(self) -> str:
        filters = []
        if self.filter_level:
            filters.append(f"level={self.filter_level}")
        if self.filter_service:
            filters.append(f"service={self.filter_service}")
        suffix = f" [{', '.join(filters)}]" if filters else ""
        return f"Logs ({len(self.entries)}){suffix}"

    def render(self, area: Region, theme: Theme) -> RenderableType:
        filtered = self.filtered_entries()
        if not filtered:
            return placeholder(self._title(), ["No log entries", "Waiting for log messages..."], theme)

        rows = max(area.height - 2, 1)
        offset = self.visible_offset(len(filtered), rows)
        body = Text(no_wrap=True, overflow="ellipsis")
        for line_no, entry in enumerate(filtered[offset : offset + rows]):
            if line_no:
                body.append("\n")
            body.append(format_timestamp(entry.timestamp), style=theme.muted_style())
            body.append(" ")
            body.append(f"{entry.level:5}", style=level_style(entry.level, theme))
            body.append(" ")
            body.append(f"[{entry.service}]", style=theme.primary_style())
            body.append(" ")
            body.append(entry.message)
        return Panel(body, title=Text(self._title()), title_align="left", border_style=theme.border_style())
