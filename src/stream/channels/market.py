"""
Market and user channels.

The market channel streams public order-book depth, reduced to top of book
per asset. The user channel is an independently started sibling that
streams the caller's order and trade updates under the same credential.
"""

from collections.abc import Callable, Iterable

from src.stream.channels.base import StreamChannel
from src.stream.channels.specs import (
    BOOK_HANDLER,
    ORDER_HANDLER,
    TRADE_HANDLER,
    market_spec,
    user_spec,
)
from src.stream.config import StreamConfig
from src.stream.connection.dispatcher import MessageDispatcher
from src.stream.connection.supervisor import ConnectionSupervisor
from src.stream.model.auth import AuthCredential
from src.stream.model.book import BookSnapshot
from src.stream.model.events import OrderEvent, TradeEvent
from src.stream.model.stats import ChannelStats
from src.stream.protocols.transport import Connector

BookCallback = Callable[[str, BookSnapshot], None]


class MarketChannel(StreamChannel):
    """
    Order-book channel with an attached user channel.

    Usage:
        channel = MarketChannel()
        channel.set_on_book_update(lambda asset_id, book: ...)
        channel.start(["123", "456"])
        await channel.subscribe_assets(["789"])
        ...
        await channel.stop()
    """

    def __init__(
        self,
        config: StreamConfig | None = None,
        connector: Connector | None = None,
    ) -> None:
        """
        Initialize the market channel and its user sibling.

        Args:
            config: Stream configuration (defaults from environment)
            connector: Dial function override, mainly for tests

        """
        config = config or StreamConfig.from_env()
        super().__init__(market_spec(config.connection), config, connector)

        spec = user_spec(config.connection)
        self.user_dispatcher = MessageDispatcher(spec, config.dispatch)
        self.user_supervisor = ConnectionSupervisor(
            spec,
            self.user_dispatcher,
            config=config.connection,
            connector=connector,
            auth=lambda: self._auth,
        )

    def set_auth(self, auth: AuthCredential | None) -> None:  # type: ignore[override]
        """
        Set the credential for both channels.

        Optional for market data, required before start_user_channel().
        """
        self._auth = auth

    def set_on_book_update(self, callback: BookCallback | None) -> None:
        """Set the callback receiving (asset_id, snapshot) per book message."""
        if callback is None:
            self._set_callback(BOOK_HANDLER, None)
            return

        def _deliver(snapshot: BookSnapshot) -> None:
            callback(snapshot.asset_id, snapshot)

        self._set_callback(BOOK_HANDLER, _deliver)

    def set_on_order_update(self, callback: Callable[[OrderEvent], None] | None) -> None:
        """Set the user-channel callback for order status updates."""
        self.user_dispatcher.set_callback(ORDER_HANDLER, callback)

    def set_on_trade_update(self, callback: Callable[[TradeEvent], None] | None) -> None:
        """Set the user-channel callback for trade updates."""
        self.user_dispatcher.set_callback(TRADE_HANDLER, callback)

    async def subscribe_assets(self, asset_ids: Iterable[str]) -> None:
        """
        Subscribe to additional assets on the open connection.

        Raises:
            NotConnectedError: If the market channel is not connected

        """
        await self.supervisor.subscribe(asset_ids)

    async def unsubscribe_assets(self, asset_ids: Iterable[str]) -> None:
        """
        Unsubscribe from assets on the open connection.

        Raises:
            NotConnectedError: If the market channel is not connected

        """
        await self.supervisor.unsubscribe(asset_ids)

    # User channel

    def start_user_channel(self) -> None:
        """
        Start the user channel.

        Raises:
            AuthRequiredError: If no credential is set
            AlreadyRunningError: If the user channel is already running

        """
        self.user_supervisor.start()

    async def stop_user_channel(self) -> None:
        """Stop the user channel. Safe to call repeatedly."""
        await self.user_supervisor.stop()

    def is_user_channel_running(self) -> bool:
        """Check if the user channel is running."""
        return self.user_supervisor.is_running()

    @property
    def user_stats(self) -> ChannelStats:
        """Get a snapshot of the user channel's counters."""
        return self.user_supervisor.stats

    async def close(self) -> None:
        """Stop both channels."""
        await self.stop_user_channel()
        await self.stop()
