"""Exceptions raised by the operator console."""


class ConsoleError(Exception):
    """Base class for operator console errors."""


class BridgeConnectionError(ConsoleError):
    """The initial bus connection or subscription setup failed."""


class CommandSendError(ConsoleError):
    """A command could not be published to the bus."""


class TerminalUnavailableError(ConsoleError):
    """stdin/stdout are not an interactive terminal."""
