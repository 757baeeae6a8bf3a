"""
Topic bridge between the Macula NATS bus and the operator console.

Owns the NATS connection, runs one receive task per subscribed subject and
turns every successfully decoded message into a domain event on the shared
:class:`EventQueue`. Malformed messages are dropped; they never stop a
receive loop.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

import nats
from nats.errors import Error as NatsError
from pydantic import ValidationError

from macula.services.console.errors import BridgeConnectionError, CommandSendError
from macula.services.console.events import (
    AppStatusReceived,
    BusConnected,
    BusDisconnected,
    BusError,
    DomainEvent,
    EventQueue,
    LogReceived,
    NodeStatusReceived,
    PeerDisconnected,
    PeerDiscovered,
)
from macula.shared.config import DEFAULT_NATS_URL
from macula.shared.models import AppStatus, Command, LogEntry, NodeStatus, PeerInfo, encode_command
from macula.shared.nats_subjects import (
    APP_STATUS,
    COMMANDS,
    LOGS_PREFIX,
    LOGS_WILDCARD,
    NODE_STATUS,
    PEER_DISCONNECTED,
    PEER_DISCOVERED,
)

logger = logging.getLogger(__name__)

# Budget for the first connection; after that nats-py reconnects on its own.
FIRST_CONNECT_TIMEOUT_S = 5.0

Decoder = Callable[[str, bytes], Optional[DomainEvent]]


def decode_node_status(subject: str, data: bytes) -> Optional[DomainEvent]:
    try:
        return NodeStatusReceived(NodeStatus.model_validate_json(data))
    except ValidationError as exc:
        logger.debug("Dropping malformed node status on %s: %s", subject, exc)
        return None


def decode_peer_discovered(subject: str, data: bytes) -> Optional[DomainEvent]:
    try:
        return PeerDiscovered(PeerInfo.model_validate_json(data))
    except ValidationError as exc:
        logger.debug("Dropping malformed peer record on %s: %s", subject, exc)
        return None


def decode_peer_disconnected(subject: str, data: bytes) -> Optional[DomainEvent]:
    # Payload is the bare node id, not JSON.
    try:
        node_id = data.decode("utf-8").strip()
    except UnicodeDecodeError:
        logger.debug("Dropping non-UTF-8 peer id on %s", subject)
        return None
    if not node_id:
        return None
    return PeerDisconnected(node_id)


def decode_log_entry(subject: str, data: bytes) -> Optional[DomainEvent]:
    try:
        entry = LogEntry.model_validate_json(data)
    except ValidationError as exc:
        logger.debug("Dropping malformed log record on %s: %s", subject, exc)
        return None
    if not entry.service and subject.startswith(LOGS_PREFIX + "."):
        entry = entry.model_copy(update={"service": subject.rsplit(".", 1)[-1]})
    return LogReceived(entry)


def decode_app_status(subject: str, data: bytes) -> Optional[DomainEvent]:
    try:
        return AppStatusReceived(AppStatus.model_validate_json(data))
    except ValidationError as exc:
        logger.debug("Dropping malformed app status on %s: %s", subject, exc)
        return None


SUBJECT_DECODERS: Dict[str, Decoder] = {
    NODE_STATUS: decode_node_status,
    PEER_DISCOVERED: decode_peer_discovered,
    PEER_DISCONNECTED: decode_peer_disconnected,
    LOGS_WILDCARD: decode_log_entry,
    APP_STATUS: decode_app_status,
}


class TopicBridge:
    """NATS subscriber/publisher feeding the console's event queue."""

    def __init__(
        self,
        url: str = DEFAULT_NATS_URL,
        events: Optional[EventQueue] = None,
        connect_timeout: float = FIRST_CONNECT_TIMEOUT_S,
    ) -> None:
        self.url = url
        self.connect_timeout = connect_timeout
        self._connecting = False
        self.events = events if events is not None else EventQueue()
        self.nc: Optional[nats.NATS] = None
        self.subscriptions: Dict[str, Any] = {}
        self._tasks: List[asyncio.Task] = []

    @property
    def is_connected(self) -> bool:
        return self.nc is not None and bool(self.nc.is_connected)

    async def connect(self) -> None:
        """Connect, subscribe to every console subject and start receive tasks.

        Raises:
            BridgeConnectionError: the server is unreachable or a subscription
                could not be created.
        """
        self._connecting = True
        try:
            # With unlimited reconnects nats-py retries the first connect forever.
            self.nc = await asyncio.wait_for(
                nats.connect(
                    servers=[self.url],
                    connect_timeout=min(self.connect_timeout, 5),
                    reconnect_time_wait=1,
                    max_reconnect_attempts=-1,
                    disconnected_cb=self._on_disconnected,
                    reconnected_cb=self._on_reconnected,
                    error_cb=self._on_error,
                ),
                timeout=self.connect_timeout,
            )
        except (NatsError, OSError, asyncio.TimeoutError) as exc:
            self.nc = None
            reason = str(exc) or f"no answer within {self.connect_timeout:g}s"
            raise BridgeConnectionError(f"Failed to connect to NATS at {self.url}: {reason}") from exc
        finally:
            self._connecting = False

        try:
            for subject, decoder in SUBJECT_DECODERS.items():
                sub = await self.nc.subscribe(subject)
                self.subscriptions[subject] = sub
                self._tasks.append(
                    asyncio.create_task(self._receive(subject, sub, decoder), name=f"recv:{subject}")
                )
        except (NatsError, OSError) as exc:
            await self.close()
            raise BridgeConnectionError(f"Failed to subscribe: {exc}") from exc

        logger.info("Connected to NATS at %s (%d subscriptions)", self.url, len(self.subscriptions))
        self.events.push(BusConnected(self.url))

    async def _receive(self, subject: str, sub: Any, decoder: Decoder) -> None:
        async for msg in sub.messages:
            event = decoder(msg.subject or subject, msg.data)
            if event is not None:
                self.events.push(event)
        logger.debug("Subscription %s finished", subject)

    async def send_command(self, command: Command) -> None:
        """Publish ``command`` on the commands subject. Never retried.

        Raises:
            CommandSendError: there is no live connection or publishing failed.
        """
        if not self.is_connected:
            raise CommandSendError("Not connected to NATS")
        assert self.nc is not None
        try:
            await self.nc.publish(COMMANDS, encode_command(command))
        except (NatsError, OSError) as exc:
            raise CommandSendError(f"Failed to publish {command.type}: {exc}") from exc
        logger.info("Published %s to %s", command.type, COMMANDS)

    async def close(self) -> None:
        """Stop receive tasks and close the connection, best-effort."""
        for task in self._tasks:
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()
        self.subscriptions.clear()
        if self.nc is not None:
            try:
                await self.nc.close()
            except NatsError as exc:
                logger.debug("Error while closing NATS connection: %s", exc)
            self.nc = None

    async def _on_disconnected(self) -> None:
        logger.warning("Disconnected from NATS at %s", self.url)
        self.events.push(BusDisconnected("connection lost"))

    async def _on_reconnected(self) -> None:
        logger.info("Reconnected to NATS at %s", self.url)
        self.events.push(BusConnected(self.url))

    async def _on_error(self, exc: Exception) -> None:
        if self._connecting:
            logger.debug("NATS connect attempt failed: %s", exc)
        else:
            logger.error("NATS error: %s", exc)
        self.events.push(BusError(str(exc) or type(exc).__name__))
