"""
Third-party price and comment feed.

The feed tracks two independent streams, ``prices`` (token ids) and
``comments`` (market ids). Both are resent after every reconnect.
"""

from collections.abc import Callable, Iterable

from src.stream.channels.base import StreamChannel
from src.stream.channels.specs import (
    COMMENT_HANDLER,
    COMMENTS_STREAM,
    PRICE_HANDLER,
    PRICES_STREAM,
    feed_spec,
)
from src.stream.config import StreamConfig
from src.stream.model.auth import FeedToken
from src.stream.model.events import CommentEvent, PriceEvent
from src.stream.protocols.transport import Connector


class FeedChannel(StreamChannel):
    """Price/comment feed with per-stream subscriptions."""

    def __init__(
        self,
        config: StreamConfig | None = None,
        connector: Connector | None = None,
    ) -> None:
        config = config or StreamConfig.from_env()
        super().__init__(feed_spec(config.connection), config, connector)

    def set_auth(self, auth: FeedToken | None) -> None:  # type: ignore[override]
        """Set the bearer token sent right after each dial."""
        self._auth = auth

    def set_on_price_update(self, callback: Callable[[PriceEvent], None] | None) -> None:
        """Set the callback for price updates."""
        self._set_callback(PRICE_HANDLER, callback)

    def set_on_comment_update(
        self, callback: Callable[[CommentEvent], None] | None
    ) -> None:
        """Set the callback for comment updates."""
        self._set_callback(COMMENT_HANDLER, callback)

    def start(  # type: ignore[override]
        self,
        token_ids: Iterable[str] | None = None,
        market_ids: Iterable[str] | None = None,
    ) -> None:
        """
        Start streaming with optional initial price and comment subscriptions.

        Raises:
            AlreadyRunningError: If the channel is already running

        """
        self.supervisor.start(token_ids, PRICES_STREAM)
        if market_ids is not None:
            self.registry.replace(market_ids, COMMENTS_STREAM)

    async def update_subscription(  # type: ignore[override]
        self, ids: Iterable[str], stream: str = PRICES_STREAM
    ) -> None:
        """Replace one stream's subscription and resend it if connected."""
        await self.supervisor.update_subscription(ids, stream)

    async def subscribe_prices(self, token_ids: Iterable[str]) -> None:
        """Subscribe to price updates for more tokens."""
        await self.supervisor.subscribe(token_ids, PRICES_STREAM)

    async def unsubscribe_prices(self, token_ids: Iterable[str]) -> None:
        """Unsubscribe from price updates."""
        await self.supervisor.unsubscribe(token_ids, PRICES_STREAM)

    async def subscribe_comments(self, market_ids: Iterable[str]) -> None:
        """Subscribe to comment updates for more markets."""
        await self.supervisor.subscribe(market_ids, COMMENTS_STREAM)

    async def unsubscribe_comments(self, market_ids: Iterable[str]) -> None:
        """Unsubscribe from comment updates."""
        await self.supervisor.unsubscribe(market_ids, COMMENTS_STREAM)
