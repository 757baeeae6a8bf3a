from __future__ import annotations

import pytest

from console_fakes import render_text
from macula.services.console.events import BusConnected, BusDisconnected, BusError, NodeStatusReceived
from macula.services.console.ui.theme import DEFAULT_THEME
from macula.services.console.ui.widgets import Region
from macula.services.console.views.dashboard import DashboardView, format_uptime
from macula.shared.models import NodeStatus

AREA = Region(120, 20)


def _status(**overrides) -> NodeStatus:
    values = dict(
        node_id="node-a",
        realm="io.macula",
        uptime_secs=93_780,
        peer_count=2,
        cpu_percent=50.0,
        memory_mb=512,
        memory_total_mb=1024,
        disk_used_gb=8.0,
        disk_total_gb=32.0,
    )
    values.update(overrides)
    return NodeStatus(**values)


@pytest.mark.parametrize(
    "secs,expected",
    [
        (0, "0m"),
        (59, "0m"),
        (60, "1m"),
        (3_600, "1h 0m"),
        (3_720, "1h 2m"),
        (86_400, "1d 0h 0m"),
        (93_780, "1d 2h 3m"),
    ],
)
def test_format_uptime(secs: int, expected: str) -> None:
    assert format_uptime(secs) == expected


def test_initial_render_is_disconnected_and_unknown() -> None:
    text = render_text(DashboardView().render(AREA, DEFAULT_THEME))
    assert "Disconnected" in text
    assert "Node ID: Unknown" in text
    assert "Peers: 0" in text


def test_connection_events_toggle_indicator() -> None:
    view = DashboardView()
    view.apply(BusConnected("nats://x"))
    assert view.connected
    text = render_text(view.render(AREA, DEFAULT_THEME))
    assert "Connected" in text
    assert "Disconnected" not in text

    view.apply(BusDisconnected("connection lost"))
    assert not view.connected
    assert "Disconnected" in render_text(view.render(AREA, DEFAULT_THEME))


def test_node_status_is_shown() -> None:
    view = DashboardView()
    view.apply(NodeStatusReceived(_status()))
    view.peer_count = 3

    text = render_text(view.render(AREA, DEFAULT_THEME))
    assert "node-a" in text
    assert "io.macula" in text
    assert "1d 2h 3m" in text
    assert "[█████░░░░░] 50.0%" in text
    assert "512/1024 MB" in text
    assert "8.0/32.0 GB" in text
    assert "Peers: 3" in text


def test_latest_status_wins() -> None:
    view = DashboardView()
    view.apply(NodeStatusReceived(_status(node_id="old")))
    view.apply(NodeStatusReceived(_status(node_id="new")))
    assert view.node_status is not None
    assert view.node_status.node_id == "new"


def test_bus_error_is_displayed() -> None:
    view = DashboardView()
    view.apply(BusError("stale connection"))
    assert "Last error: stale connection" in render_text(view.render(AREA, DEFAULT_THEME))


def test_zero_totals_render_empty_gauges() -> None:
    view = DashboardView()
    view.apply(NodeStatusReceived(_status(memory_total_mb=0, memory_mb=0, disk_total_gb=0.0, disk_used_gb=0.0)))
    text = render_text(view.render(AREA, DEFAULT_THEME))
    assert "Memory [░░░░░░░░░░]" in text
