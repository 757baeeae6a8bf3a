from .console import CONFIGURED_MARKER, DEFAULT_NATS_URL, ConsoleSettings

__all__ = ["CONFIGURED_MARKER", "DEFAULT_NATS_URL", "ConsoleSettings"]
