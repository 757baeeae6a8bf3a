from __future__ import annotations

import asyncio
import json
import logging

import pytest

from console_fakes import FakeNatsClient, wait_for_queue
from macula.services.console.clients import nats_bridge
from macula.services.console.clients.nats_bridge import (
    SUBJECT_DECODERS,
    TopicBridge,
    decode_app_status,
    decode_log_entry,
    decode_node_status,
    decode_peer_disconnected,
    decode_peer_discovered,
)
from macula.services.console.errors import BridgeConnectionError, CommandSendError
from macula.services.console.events import (
    AppStatusReceived,
    BusConnected,
    BusDisconnected,
    BusError,
    EventQueue,
    LogReceived,
    NodeStatusReceived,
    PeerDisconnected,
    PeerDiscovered,
)
from macula.shared.models import AppRunState, RestartNodeCommand, StartAppCommand
from macula.shared.nats_subjects import (
    APP_STATUS,
    COMMANDS,
    CONSOLE_SUBSCRIPTIONS,
    LOGS_WILDCARD,
    NODE_STATUS,
    PEER_DISCONNECTED,
    PEER_DISCOVERED,
)

NODE_STATUS_PAYLOAD = {
    "node_id": "did:macula:node-1",
    "realm": "io.macula",
    "uptime_secs": 3725,
    "peer_count": 2,
    "cpu_percent": 12.5,
    "memory_mb": 512,
    "memory_total_mb": 2048,
    "disk_used_gb": 3.5,
    "disk_total_gb": 32.0,
}


def _json(payload: dict) -> bytes:
    return json.dumps(payload).encode()


def test_every_console_subject_has_a_decoder() -> None:
    assert set(SUBJECT_DECODERS) == set(CONSOLE_SUBSCRIPTIONS)


def test_decode_node_status() -> None:
    event = decode_node_status(NODE_STATUS, _json(NODE_STATUS_PAYLOAD))
    assert isinstance(event, NodeStatusReceived)
    assert event.status.node_id == "did:macula:node-1"
    assert event.status.uptime_secs == 3725


def test_decode_peer_discovered_with_and_without_latency() -> None:
    event = decode_peer_discovered(PEER_DISCOVERED, _json({"node_id": "p1", "address": "10.0.0.2", "latency_ms": 42}))
    assert isinstance(event, PeerDiscovered)
    assert event.peer.latency_ms == 42

    event = decode_peer_discovered(PEER_DISCOVERED, _json({"node_id": "p2", "address": "10.0.0.3"}))
    assert isinstance(event, PeerDiscovered)
    assert event.peer.latency_ms is None


def test_decode_peer_disconnected_bare_identifier() -> None:
    assert decode_peer_disconnected(PEER_DISCONNECTED, b"p1\n") == PeerDisconnected("p1")
    assert decode_peer_disconnected(PEER_DISCONNECTED, b"   ") is None
    assert decode_peer_disconnected(PEER_DISCONNECTED, b"\xff\xfe") is None


def test_decode_log_entry_fills_service_from_subject() -> None:
    payload = {"timestamp": 1_700_000_000, "level": "warn", "message": "disk almost full"}
    event = decode_log_entry("macula.logs.storage", _json(payload))
    assert isinstance(event, LogReceived)
    assert event.entry.service == "storage"

    payload["service"] = "node"
    event = decode_log_entry("macula.logs.storage", _json(payload))
    assert isinstance(event, LogReceived)
    assert event.entry.service == "node"


def test_decode_app_status() -> None:
    event = decode_app_status(APP_STATUS, _json({"app_id": "a1", "name": "Grafana", "status": "stopped"}))
    assert isinstance(event, AppStatusReceived)
    assert event.app.status is AppRunState.STOPPED


@pytest.mark.parametrize(
    "decoder, payload",
    [
        (decode_node_status, b"not json"),
        (decode_node_status, b'{"node_id": "n1"}'),
        (decode_peer_discovered, b'{"address": "10.0.0.2"}'),
        (decode_log_entry, b"[]"),
        (decode_app_status, b'{"app_id": "a1", "name": "x", "status": "paused"}'),
    ],
)
def test_malformed_payloads_decode_to_none(decoder, payload: bytes) -> None:
    assert decoder("macula.test", payload) is None


@pytest.mark.asyncio
async def test_connect_subscribes_to_all_subjects(fake_nats: FakeNatsClient) -> None:
    bridge = TopicBridge("nats://node:4222", EventQueue(10))

    await bridge.connect()

    assert set(fake_nats.subs) == set(CONSOLE_SUBSCRIPTIONS)
    assert fake_nats.connect_kwargs["servers"] == ["nats://node:4222"]
    assert bridge.is_connected is True
    assert bridge.events.drain() == [BusConnected("nats://node:4222")]
    await bridge.close()
    assert fake_nats.closed is True
    assert bridge.is_connected is False


@pytest.mark.asyncio
async def test_connect_failure_raises_bridge_connection_error(monkeypatch: pytest.MonkeyPatch) -> None:
    async def refuse(**kwargs):
        raise ConnectionRefusedError("connection refused")

    monkeypatch.setattr(nats_bridge.nats, "connect", refuse)
    bridge = TopicBridge("nats://127.0.0.1:1")

    with pytest.raises(BridgeConnectionError):
        await bridge.connect()

    assert bridge.is_connected is False
    assert len(bridge.events) == 0


@pytest.mark.asyncio
async def test_refused_port_gives_up_within_budget() -> None:
    bridge = TopicBridge("nats://127.0.0.1:1", EventQueue(100), connect_timeout=1.0)

    with pytest.raises(BridgeConnectionError, match="127.0.0.1:1"):
        await asyncio.wait_for(bridge.connect(), timeout=5.0)

    assert bridge.nc is None
    assert bridge.is_connected is False


@pytest.mark.asyncio
async def test_unanswered_first_connect_times_out(monkeypatch: pytest.MonkeyPatch) -> None:
    async def never_answers(**kwargs):
        await asyncio.sleep(60)

    monkeypatch.setattr(nats_bridge.nats, "connect", never_answers)
    bridge = TopicBridge("nats://node:4222", connect_timeout=0.1)

    with pytest.raises(BridgeConnectionError, match="no answer within 0.1s"):
        await bridge.connect()


@pytest.mark.asyncio
async def test_errors_during_first_connect_are_not_logged_as_errors(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    bridge = TopicBridge("nats://node:4222", EventQueue(10), connect_timeout=0.1)

    async def failing_attempts(**kwargs):
        await kwargs["error_cb"](ConnectionRefusedError("refused"))
        await asyncio.sleep(60)

    monkeypatch.setattr(nats_bridge.nats, "connect", failing_attempts)

    with caplog.at_level(logging.DEBUG, logger=nats_bridge.__name__):
        with pytest.raises(BridgeConnectionError):
            await bridge.connect()

    assert not [r for r in caplog.records if r.levelno >= logging.ERROR]
    assert bridge.events.drain() == [BusError("refused")]


@pytest.mark.asyncio
async def test_subscribe_failure_closes_connection(fake_nats: FakeNatsClient) -> None:
    fake_nats.fail_subscribe = True
    bridge = TopicBridge("nats://node:4222")

    with pytest.raises(BridgeConnectionError):
        await bridge.connect()

    assert fake_nats.closed is True
    assert bridge.nc is None


@pytest.mark.asyncio
async def test_receive_loop_drops_malformed_and_keeps_order(fake_nats: FakeNatsClient) -> None:
    bridge = TopicBridge("nats://node:4222", EventQueue(50))
    await bridge.connect()
    bridge.events.drain()

    sub = fake_nats.subs[PEER_DISCOVERED]
    sub.feed(_json({"node_id": "p1", "address": "10.0.0.2"}))
    sub.feed(b"{garbage")
    sub.feed(_json({"node_id": "p2", "address": "10.0.0.3"}))
    sub.feed(_json({"node_id": "p3", "address": "10.0.0.4"}))

    await wait_for_queue(bridge.events, 3)
    events = bridge.events.drain()
    assert [event.peer.node_id for event in events] == ["p1", "p2", "p3"]
    await bridge.close()


@pytest.mark.asyncio
async def test_log_wildcard_uses_concrete_subject(fake_nats: FakeNatsClient) -> None:
    bridge = TopicBridge("nats://node:4222", EventQueue(10))
    await bridge.connect()
    bridge.events.drain()

    fake_nats.subs[LOGS_WILDCARD].feed(
        _json({"timestamp": 1, "level": "info", "message": "booted"}), subject="macula.logs.mesh"
    )

    await wait_for_queue(bridge.events, 1)
    (event,) = bridge.events.drain()
    assert isinstance(event, LogReceived)
    assert event.entry.service == "mesh"
    await bridge.close()


@pytest.mark.asyncio
async def test_send_command_publishes_tagged_json(fake_nats: FakeNatsClient) -> None:
    bridge = TopicBridge("nats://node:4222")
    await bridge.connect()

    await bridge.send_command(StartAppCommand(app_id="grafana"))
    await bridge.send_command(RestartNodeCommand())

    assert [subject for subject, _ in fake_nats.published] == [COMMANDS, COMMANDS]
    assert json.loads(fake_nats.published[0][1]) == {"type": "app.start", "app_id": "grafana"}
    assert json.loads(fake_nats.published[1][1]) == {"type": "node.restart"}
    await bridge.close()


@pytest.mark.asyncio
async def test_send_command_without_connection_fails(bridge: TopicBridge) -> None:
    with pytest.raises(CommandSendError, match="Not connected"):
        await bridge.send_command(StartAppCommand(app_id="grafana"))


@pytest.mark.asyncio
async def test_send_command_publish_error_is_wrapped(fake_nats: FakeNatsClient) -> None:
    bridge = TopicBridge("nats://node:4222")
    await bridge.connect()
    fake_nats.fail_publish = True

    with pytest.raises(CommandSendError):
        await bridge.send_command(StartAppCommand(app_id="grafana"))
    await bridge.close()


@pytest.mark.asyncio
async def test_connection_callbacks_become_events(fake_nats: FakeNatsClient) -> None:
    bridge = TopicBridge("nats://node:4222", EventQueue(10))
    await bridge.connect()
    bridge.events.drain()

    await fake_nats.connect_kwargs["disconnected_cb"]()
    await fake_nats.connect_kwargs["reconnected_cb"]()
    await fake_nats.connect_kwargs["error_cb"](RuntimeError("slow consumer"))

    assert bridge.events.drain() == [
        BusDisconnected("connection lost"),
        BusConnected("nats://node:4222"),
        BusError("slow consumer"),
    ]
    await bridge.close()


@pytest.mark.asyncio
async def test_close_without_connect_is_a_no_op(bridge: TopicBridge) -> None:
    await bridge.close()
    assert bridge.nc is None
