"""Peers view - mesh peer connections."""

from __future__ import annotations

from typing import Optional

from rich.console import RenderableType
from rich.panel import Panel
from rich.style import Style
from rich.table import Table
from rich.text import Text

from macula.services.console.events import DomainEvent, PeerDisconnected, PeerDiscovered
from macula.services.console.ui.theme import Theme
from macula.services.console.ui.widgets import Region, placeholder
from macula.shared.models import PeerInfo

from .base import KeyedListModel, visible_window

NODE_ID_WIDTH = 24


def truncate_id(node_id: str, max_len: int = NODE_ID_WIDTH) -> str:
    if len(node_id) <= max_len:
        return node_id
    return node_id[: max_len - 3] + "..."


def format_latency(latency_ms: Optional[int]) -> str:
    return "?" if latency_ms is None else f"{latency_ms}ms"


def latency_style(latency_ms: Optional[int], theme: Theme) -> Style:
    if latency_ms is None:
        return theme.muted_style()
    if latency_ms < 50:
        return theme.success_style()
    if latency_ms < 150:
        return theme.warning_style()
    return theme.error_style()


class PeersView:
    """Mesh peers keyed by node id."""

    def __init__(self) -> None:
        self.model: KeyedListModel[PeerInfo] = KeyedListModel(key=lambda peer: peer.node_id)

    @property
    def peers(self) -> list[PeerInfo]:
        return self.model.items

    @property
    def selected(self) -> Optional[int]:
        return self.model.selected

    def apply(self, event: DomainEvent) -> None:
        if isinstance(event, PeerDiscovered):
            self.model.upsert(event.peer)
        elif isinstance(event, PeerDisconnected):
            self.model.remove(event.node_id)

    def select_next(self) -> None:
        self.model.select_next()

    def select_previous(self) -> None:
        self.model.select_previous()

    def render(self, area: Region, theme: Theme) -> RenderableType:
        title = f"Peers ({len(self.peers)})"
        if not self.peers:
            return placeholder(title, ["No peers connected", "Waiting for mesh discovery..."], theme)

        table = Table(box=None, expand=True, header_style=theme.muted_style(), pad_edge=False)
        table.add_column("", width=2, no_wrap=True)
        table.add_column("Node", no_wrap=True)
        table.add_column("Address", no_wrap=True)
        table.add_column("Latency", justify="right", no_wrap=True)

        selected = self.model.selected_index()
        # Borders and the header row take three lines.
        for index in visible_window(len(self.peers), selected, area.height - 3):
            peer = self.peers[index]
            is_selected = index == selected
            table.add_row(
                ">" if is_selected else "",
                Text(truncate_id(peer.node_id), style=theme.primary_style()),
                Text(peer.address),
                Text(format_latency(peer.latency_ms), style=latency_style(peer.latency_ms, theme)),
                style=theme.selected_style() if is_selected else None,
            )
        return Panel(table, title=title, title_align="left", border_style=theme.border_style())
