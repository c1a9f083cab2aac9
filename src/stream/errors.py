"""
Caller-visible errors raised by streaming channels.

Only precondition failures surface to callers. Transport faults and
malformed data are absorbed by the connection engine.
"""


class StreamError(Exception):
    """Base class for channel precondition errors."""

    def __init__(self, channel: str, message: str) -> None:
        """
        Initialize the error.

        Args:
            channel: Name of the channel that rejected the call
            message: Human-readable description

        """
        self.channel = channel
        super().__init__(f"[{channel}] {message}")


class AlreadyRunningError(StreamError):
    """Raised when start() is called on a running channel."""

    def __init__(self, channel: str) -> None:
        super().__init__(channel, "channel already running")


class NotConnectedError(StreamError):
    """Raised when a dynamic subscription is attempted without a connection."""

    def __init__(self, channel: str) -> None:
        super().__init__(channel, "channel not connected")


class AuthRequiredError(StreamError):
    """Raised when a private channel is started without credentials."""

    def __init__(self, channel: str) -> None:
        super().__init__(channel, "authentication required")
