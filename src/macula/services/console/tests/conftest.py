"""
Shared pytest fixtures for the operator console tests.
"""

from __future__ import annotations

from typing import Any

import pytest

from console_fakes import FakeNatsClient, RecordingBridge
from macula.services.console.app import ConsoleApp
from macula.services.console.clients import nats_bridge
from macula.services.console.clients.nats_bridge import TopicBridge
from macula.services.console.events import EventQueue


@pytest.fixture
def fake_nats(monkeypatch: pytest.MonkeyPatch) -> FakeNatsClient:
    """Patch ``nats.connect`` to hand out an in-memory client."""
    client = FakeNatsClient()

    async def fake_connect(**kwargs: Any) -> FakeNatsClient:
        client.connect_kwargs = kwargs
        return client

    monkeypatch.setattr(nats_bridge.nats, "connect", fake_connect)
    return client


@pytest.fixture
def bridge() -> TopicBridge:
    """A bridge that never connected."""
    return TopicBridge("nats://127.0.0.1:1", EventQueue(100))


@pytest.fixture
def recording_bridge() -> RecordingBridge:
    return RecordingBridge(EventQueue(100))


@pytest.fixture
def app(recording_bridge: RecordingBridge) -> ConsoleApp:
    return ConsoleApp(recording_bridge)


@pytest.fixture
def disconnected_app(bridge: TopicBridge) -> ConsoleApp:
    return ConsoleApp(bridge)
