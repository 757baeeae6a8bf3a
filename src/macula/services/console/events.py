"""Domain events produced by the topic bridge and consumed by the controller.

Receive tasks only ever push into an :class:`EventQueue`; the controller is its
single consumer and drains it once per loop iteration.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Union

from macula.shared.models import AppStatus, LogEntry, NodeStatus, PeerInfo

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_CAPACITY = 100


@dataclass(frozen=True)
class NodeStatusReceived:
    status: NodeStatus


@dataclass(frozen=True)
class PeerDiscovered:
    peer: PeerInfo


@dataclass(frozen=True)
class PeerDisconnected:
    node_id: str


@dataclass(frozen=True)
class LogReceived:
    entry: LogEntry


@dataclass(frozen=True)
class AppStatusReceived:
    app: AppStatus


@dataclass(frozen=True)
class BusConnected:
    url: str = ""


@dataclass(frozen=True)
class BusDisconnected:
    reason: str = ""


@dataclass(frozen=True)
class BusError:
    message: str


DomainEvent = Union[
    NodeStatusReceived,
    PeerDiscovered,
    PeerDisconnected,
    LogReceived,
    AppStatusReceived,
    BusConnected,
    BusDisconnected,
    BusError,
]


class EventQueue:
    """Bounded multi-producer/single-consumer queue of domain events.

    When the queue is full a newly arriving event is dropped and the events
    already queued are kept, so a stalled consumer cannot grow memory.
    """

    def __init__(self, capacity: int = DEFAULT_QUEUE_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.capacity = capacity
        self.dropped = 0
        self._queue: asyncio.Queue[DomainEvent] = asyncio.Queue(maxsize=capacity)

    def __len__(self) -> int:
        return self._queue.qsize()

    def push(self, event: DomainEvent) -> bool:
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            self.dropped += 1
            logger.debug("Event queue full (%d), dropping %s", self.capacity, type(event).__name__)
            return False
        return True

    def drain(self) -> list[DomainEvent]:
        """Return every queued event in arrival order without waiting."""
        events: list[DomainEvent] = []
        while True:
            try:
                events.append(self._queue.get_nowait())
            except asyncio.QueueEmpty:
                return events
