"""
Specifications of the venue's four channels.

Each builder returns the engine parameters for one channel: endpoint, auth
policy, subscribe-frame shape and routing table.
"""

from src.stream.config import ConnectionConfig
from src.stream.connection.spec import ChannelSpec, EventRoute
from src.stream.enums import ChannelKind, EventType, FrameStyle
from src.stream.model.book import reduce_book
from src.stream.model.events import (
    CommentEvent,
    OrderEvent,
    PriceEvent,
    SportsEvent,
    TradeEvent,
)

# Callback slot names
BOOK_HANDLER = "book"
ORDER_HANDLER = "order"
TRADE_HANDLER = "trade"
SPORTS_HANDLER = "sports"
PRICE_HANDLER = "price"
COMMENT_HANDLER = "comment"

# Feed stream names
PRICES_STREAM = EventType.PRICES.value
COMMENTS_STREAM = EventType.COMMENTS.value


def market_spec(config: ConnectionConfig) -> ChannelSpec:
    """Public order-book channel; auth optional, no frame without assets."""
    return ChannelSpec(
        name="market",
        kind=ChannelKind.MARKET,
        url=config.market_url,
        subscribe_type="MARKET",
        id_field="assets_ids",
        subscribe_when_empty=False,
        routes=(
            EventRoute(
                value=EventType.BOOK.value, handler=BOOK_HANDLER, parser=reduce_book
            ),
        ),
    )


def user_spec(config: ConnectionConfig) -> ChannelSpec:
    """Private order/trade channel; auth mandatory."""
    return ChannelSpec(
        name="user",
        kind=ChannelKind.USER,
        url=config.user_url,
        subscribe_type="USER",
        auth_required=True,
        routes=(
            EventRoute(
                value=EventType.ORDER.value,
                handler=ORDER_HANDLER,
                parser=OrderEvent.model_validate,
            ),
            EventRoute(
                value=EventType.TRADE.value,
                handler=TRADE_HANDLER,
                parser=TradeEvent.model_validate,
            ),
        ),
    )


def sports_spec(config: ConnectionConfig) -> ChannelSpec:
    """Venue-wide sports event channel; auth optional."""
    return ChannelSpec(
        name="sports",
        kind=ChannelKind.SPORTS,
        url=config.sports_url,
        subscribe_type="SPORTS",
        routes=(
            EventRoute(
                value=EventType.SPORTS.value,
                handler=SPORTS_HANDLER,
                parser=SportsEvent.model_validate,
            ),
        ),
    )


def feed_spec(config: ConnectionConfig) -> ChannelSpec:
    """Third-party price/comment feed; routed by ``stream``."""
    return ChannelSpec(
        name="feed",
        kind=ChannelKind.FEED,
        url=config.feed_url,
        frame_style=FrameStyle.STREAM,
        streams=(PRICES_STREAM, COMMENTS_STREAM),
        subscribe_when_empty=False,
        discriminant="stream",
        routes=(
            EventRoute(
                value=EventType.PRICES.value,
                handler=PRICE_HANDLER,
                parser=PriceEvent.model_validate,
            ),
            EventRoute(
                value=EventType.COMMENTS.value,
                handler=COMMENT_HANDLER,
                parser=CommentEvent.model_validate,
            ),
        ),
    )
