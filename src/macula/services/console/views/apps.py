"""Apps view - installed application management."""

from __future__ import annotations

from typing import Optional

from rich.console import RenderableType
from rich.panel import Panel
from rich.style import Style
from rich.table import Table
from rich.text import Text

from macula.services.console.events import AppStatusReceived, DomainEvent
from macula.services.console.ui.theme import Theme
from macula.services.console.ui.widgets import Region, placeholder
from macula.shared.models import AppRunState, AppStatus

from .base import KeyedListModel, visible_window

STATUS_ICONS = {
    AppRunState.RUNNING: "[R]",
    AppRunState.STOPPED: "[S]",
    AppRunState.ERROR: "[E]",
}


def status_style(state: AppRunState, theme: Theme) -> Style:
    if state is AppRunState.RUNNING:
        return theme.success_style()
    if state is AppRunState.ERROR:
        return theme.error_style()
    return theme.muted_style()


def format_resources(app: AppStatus) -> str:
    if app.cpu_percent is None or app.memory_mb is None:
        return ""
    return f"CPU: {app.cpu_percent:.1f}% | Mem: {app.memory_mb} MB"


class AppsView:
    """Managed applications keyed by app id. Apps are never removed here."""

    def __init__(self) -> None:
        self.model: KeyedListModel[AppStatus] = KeyedListModel(key=lambda app: app.app_id)

    @property
    def apps(self) -> list[AppStatus]:
        return self.model.items

    @property
    def selected(self) -> Optional[int]:
        return self.model.selected

    def apply(self, event: DomainEvent) -> None:
        if isinstance(event, AppStatusReceived):
            self.model.upsert(event.app)

    def select_next(self) -> None:
        self.model.select_next()

    def select_previous(self) -> None:
        self.model.select_previous()

    def selected_app_id(self) -> Optional[str]:
        app = self.model.selected_item()
        return None if app is None else app.app_id

    def render(self, area: Region, theme: Theme) -> RenderableType:
        title = f"Apps ({len(self.apps)})"
        if not self.apps:
            return placeholder(title, ["No applications installed", "Install apps via Macula Console"], theme)

        table = Table(box=None, expand=True, header_style=theme.muted_style(), pad_edge=False)
        table.add_column("", width=2, no_wrap=True)
        table.add_column("", width=3, no_wrap=True)
        table.add_column("Name", no_wrap=True)
        table.add_column("Status", no_wrap=True)
        table.add_column("App ID", no_wrap=True)
        table.add_column("Resources", no_wrap=True)

        selected = self.model.selected_index()
        for index in visible_window(len(self.apps), selected, area.height - 3):
            app = self.apps[index]
            is_selected = index == selected
            style = status_style(app.status, theme)
            table.add_row(
                ">" if is_selected else "",
                Text(STATUS_ICONS[app.status], style=style),
                Text(app.name, style=theme.primary_style()),
                Text(app.status.value, style=style),
                Text(app.app_id, style=theme.muted_style()),
                Text(format_resources(app), style=theme.muted_style()),
                style=theme.selected_style() if is_selected else None,
            )
        return Panel(table, title=title, title_align="left", border_style=theme.border_style())
