"""Wire models for the Macula node bus.

Payloads on every inbound subject are JSON objects validated by these models;
commands are published as JSON objects tagged by ``type``.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class _WireModel(BaseModel):
    # Node services may add fields before the console learns about them.
    model_config = ConfigDict(extra="ignore", frozen=True)


class AppRunState(str, Enum):
    RUNNING = "running"
    STOPPED = "stopped"
    ERROR = "error"


class NodeStatus(_WireModel):
    """Snapshot of the local node published on ``macula.node.status``."""

    node_id: str
    realm: str
    uptime_secs: int = Field(ge=0)
    peer_count: int = Field(default=0, ge=0)
    cpu_percent: float = Field(ge=0.0)
    memory_mb: int = Field(ge=0)
    memory_total_mb: int = Field(ge=0)
    disk_used_gb: float = Field(ge=0.0)
    disk_total_gb: float = Field(ge=0.0)

    @property
    def memory_percent(self) -> float:
        if self.memory_total_mb <= 0:
            return 0.0
        return min(self.memory_mb / self.memory_total_mb * 100.0, 100.0)

    @property
    def disk_percent(self) -> float:
        if self.disk_total_gb <= 0:
            return 0.0
        return min(self.disk_used_gb / self.disk_total_gb * 100.0, 100.0)


class PeerInfo(_WireModel):
    node_id: str = Field(min_length=1)
    address: str
    # None means "not measured yet", never zero.
    latency_ms: Optional[int] = Field(default=None, ge=0)
    connected_at: Optional[int] = None


class LogEntry(_WireModel):
    timestamp: int = Field(ge=0)
    level: str
    service: str = ""
    message: str


class AppStatus(_WireModel):
    app_id: str = Field(min_length=1)
    name: str
    status: AppRunState
    cpu_percent: Optional[float] = None
    memory_mb: Optional[int] = None


class StartAppCommand(_WireModel):
    type: Literal["app.start"] = "app.start"
    app_id: str


class StopAppCommand(_WireModel):
    type: Literal["app.stop"] = "app.stop"
    app_id: str


class RestartAppCommand(_WireModel):
    type: Literal["app.restart"] = "app.restart"
    app_id: str


class RestartNodeCommand(_WireModel):
    type: Literal["node.restart"] = "node.restart"


Command = Annotated[
    Union[StartAppCommand, StopAppCommand, RestartAppCommand, RestartNodeCommand],
    Field(discriminator="type"),
]

COMMAND_ADAPTER: TypeAdapter[Command] = TypeAdapter(Command)


def encode_command(command: Command) -> bytes:
    return command.model_dump_json().encode("utf-8")


def decode_command(payload: bytes) -> Command:
    return COMMAND_ADAPTER.validate_json(payload)
