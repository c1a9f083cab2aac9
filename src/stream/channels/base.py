"""
Channel facade over the connection engine.

A channel bundles one supervisor, its registry and its dispatcher behind
the public operations callers use: callbacks, auth, lifecycle and
subscription management.
"""

from collections.abc import Callable, Iterable
from datetime import timedelta
from typing import Any

from src.stream.config import StreamConfig
from src.stream.connection.dispatcher import DropCallback, MessageDispatcher
from src.stream.connection.registry import SubscriptionRegistry
from src.stream.connection.spec import ChannelSpec
from src.stream.connection.supervisor import ConnectionSupervisor
from src.stream.model.auth import Credential
from src.stream.model.stats import ChannelStats
from src.stream.protocols.transport import Connector


class StreamChannel:
    """
    One resilient channel built from a ChannelSpec.

    Callbacks run synchronously on the read loop, in the order frames
    arrive. A callback should return quickly; long work belongs on a queue
    owned by the caller.
    """

    def __init__(
        self,
        spec: ChannelSpec,
        config: StreamConfig | None = None,
        connector: Connector | None = None,
    ) -> None:
        """
        Initialize the channel.

        Args:
            spec: Channel specification
            config: Stream configuration (defaults from environment)
            connector: Dial function override, mainly for tests

        """
        self.spec = spec
        self.config = config or StreamConfig.from_env()
        self._auth: Credential | None = None
        self.dispatcher = MessageDispatcher(spec, self.config.dispatch)
        self.supervisor = ConnectionSupervisor(
            spec,
            self.dispatcher,
            config=self.config.connection,
            connector=connector,
            auth=lambda: self._auth,
        )

    @property
    def name(self) -> str:
        """Get the channel name."""
        return self.spec.name

    @property
    def registry(self) -> SubscriptionRegistry:
        """Get the channel's subscription registry."""
        return self.supervisor.registry

    @property
    def stats(self) -> ChannelStats:
        """Get a snapshot of the channel's counters."""
        return self.supervisor.stats

    def set_auth(self, auth: Credential | None) -> None:
        """Set the credential sent with subscribe frames."""
        self._auth = auth

    def set_on_drop(self, callback: DropCallback | None) -> None:
        """
        Set the callback for dropped frames and messages.

        Only called when ``dispatch.report_dropped`` is enabled.
        """
        self.dispatcher.on_drop = callback

    def set_on_outage_end(self, callback: Callable[[timedelta], None] | None) -> None:
        """Set the callback receiving each outage's duration on reconnect."""
        self.supervisor.on_outage_end = callback

    def _set_callback(self, handler: str, callback: Callable[[Any], None] | None) -> None:
        self.dispatcher.set_callback(handler, callback)

    def start(self, ids: Iterable[str] | None = None) -> None:
        """
        Start streaming and return immediately.

        Raises:
            AlreadyRunningError: If the channel is already running
            AuthRequiredError: If the channel needs a credential and has none

        """
        self.supervisor.start(ids)

    async def stop(self) -> None:
        """Stop streaming. Safe to call repeatedly and before start()."""
        await self.supervisor.stop()

    def is_running(self) -> bool:
        """Check if the channel is running."""
        return self.supervisor.is_running()

    def is_connected(self) -> bool:
        """Check if a connection is currently open."""
        return self.supervisor.is_connected()

    async def update_subscription(self, ids: Iterable[str]) -> None:
        """Replace the subscription and resend it if connected."""
        await self.supervisor.update_subscription(ids)
