"""Dashboard view - node overview and connection indicator."""

from __future__ import annotations

from typing import Optional

from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from macula.services.console.events import (
    BusConnected,
    BusDisconnected,
    BusError,
    DomainEvent,
    NodeStatusReceived,
)
from macula.services.console.ui.theme import Theme
from macula.services.console.ui.widgets import Region, gauge
from macula.shared.models import NodeStatus


def format_uptime(secs: int) -> str:
    days, rest = divmod(secs, 86400)
    hours, rest = divmod(rest, 3600)
    minutes = rest // 60
    if days > 0:
        return f"{days}d {hours}h {minutes}m"
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


class DashboardView:
    """Last known node snapshot plus bus connection state."""

    def __init__(self) -> None:
        self.node_status: Optional[NodeStatus] = None
        self.peer_count = 0
        self.connected = False
        self.last_error: Optional[str] = None

    def apply(self, event: DomainEvent) -> None:
        if isinstance(event, NodeStatusReceived):
            self.node_status = event.status
        elif isinstance(event, BusConnected):
            self.connected = True
        elif isinstance(event, BusDisconnected):
            self.connected = False
        elif isinstance(event, BusError):
            self.last_error = event.message

    def render(self, area: Region, theme: Theme) -> RenderableType:
        return Group(
            self._render_node_info(theme),
            self._render_resources(theme),
            self._render_mesh(theme),
        )

    def _render_node_info(self, theme: Theme) -> Panel:
        status = self.node_status
        node_id = status.node_id if status else "Unknown"
        realm = status.realm if status else "Unknown"
        uptime = format_uptime(status.uptime_secs) if status else "Unknown"

        text = Text()
        text.append("Node ID: ", style="bold")
        text.append(node_id, style=theme.primary_style())
        text.append("\nRealm: ", style="bold")
        text.append(realm)
        text.append("  |  ")
        text.append("Status: ", style="bold")
        if self.connected:
            text.append("Connected", style=theme.success_style())
        else:
            text.append("Disconnected", style=theme.error_style())
        text.append("  |  ")
        text.append("Uptime: ", style="bold")
        text.append(uptime)
        if self.last_error:
            text.append("\nLast error: ", style="bold")
            text.append(self.last_error, style=theme.error_style())
        return Panel(text, title="Node Info", title_align="left", border_style=theme.border_style())

    def _render_resources(self, theme: Theme) -> Panel:
        status = self.node_status
        grid = Table.grid(expand=True)
        grid.add_column(ratio=1)
        grid.add_column(ratio=1)
        grid.add_column(ratio=1)
        if status is None:
            grid.add_row(
                gauge("CPU", 0.0, "0.0%", theme),
                gauge("Memory", 0.0, "0/0 MB", theme),
                gauge("Disk", 0.0, "0.0/0.0 GB", theme),
            )
        else:
            grid.add_row(
                gauge("CPU", status.cpu_percent, f"{status.cpu_percent:.1f}%", theme),
                gauge("Memory", status.memory_percent, f"{status.memory_mb}/{status.memory_total_mb} MB", theme),
                gauge("Disk", status.disk_percent, f"{status.disk_used_gb:.1f}/{status.disk_total_gb:.1f} GB", theme),
            )
        return Panel(grid, title="Resources", title_align="left", border_style=theme.border_style())

    def _render_mesh(self, theme: Theme) -> Panel:
        text = Text("Peers: ", style="bold")
        text.append(str(self.peer_count), style=theme.success_style() if self.peer_count > 0 else theme.warning_style())
        return Panel(text, title="Mesh Status", title_align="left", border_style=theme.border_style())
