"""Small rich renderables shared by the console views."""

from __future__ import annotations

from typing import NamedTuple, Optional, Sequence

from rich.align import Align
from rich.console import RenderableType
from rich.panel import Panel
from rich.text import Text

from .theme import Theme

LOGO_LINES = (
    r"  __  __                  _       ",
    r" |  \/  | __ _  ___ _   _| | __ _ ",
    r" | |\/| |/ _` |/ __| | | | |/ _` |",
    r" | |  | | (_| | (__| |_| | | (_| |",
    r" |_|  |_|\__,_|\___|\__,_|_|\__,_|",
    r"                                  ",
    r"     Decentralized Edge Platform  ",
)
LOGO_HEIGHT = len(LOGO_LINES)


class Region(NamedTuple):
    """Size of the area a view is drawn into, in terminal cells."""

    width: int
    height: int


def logo(theme: Theme) -> RenderableType:
    return Align.center(Text("\n".join(LOGO_LINES), style=theme.primary_style()))


def tab_bar(titles: Sequence[str], active: int, theme: Theme) -> Text:
    bar = Text()
    for index, title in enumerate(titles):
        style = theme.selected_style() if index == active else theme.muted_style()
        bar.append(f" {index + 1} {title} ", style=style)
        if index < len(titles) - 1:
            bar.append("│", style=theme.border_style())
    return bar


def help_bar(hints: str, theme: Theme, status: Optional[str] = None) -> Text:
    line = Text(hints, style=theme.muted_style())
    if status:
        line.append("  │  ", style=theme.border_style())
        line.append(status, style=theme.warning_style())
    return line


def gauge(title: str, percent: float, caption: str, theme: Theme, width: int = 10) -> Text:
    """ASCII bar such as ``CPU [████░░░░░░] 42.0%``."""
    percent = max(0.0, min(percent, 100.0))
    filled = int(percent / 100.0 * width)
    line = Text(f"{title} ", style="bold")
    line.append(f"[{'█' * filled}{'░' * (width - filled)}]", style=theme.percent_style(percent))
    line.append(f" {caption}")
    return line


def placeholder(title: str, lines: Sequence[str], theme: Theme) -> Panel:
    body = Text("\n" + "\n\n".join(lines), style=theme.muted_style())
    return Panel(body, title=Text(title), title_align="left", border_style=theme.border_style())
