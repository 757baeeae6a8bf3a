from .console import (
    AppRunState,
    AppStatus,
    Command,
    LogEntry,
    NodeStatus,
    PeerInfo,
    RestartAppCommand,
    RestartNodeCommand,
    StartAppCommand,
    StopAppCommand,
    decode_command,
    encode_command,
)

__all__ = [
    "AppRunState",
    "AppStatus",
    "Command",
    "LogEntry",
    "NodeStatus",
    "PeerInfo",
    "RestartAppCommand",
    "RestartNodeCommand",
    "StartAppCommand",
    "StopAppCommand",
    "decode_command",
    "encode_command",
]
