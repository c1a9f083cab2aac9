"""
Channel construction service.

This module provides a single entry point for building any channel by kind.
It hides which class implements which channel from the rest of the
application.
"""

from src.stream.channels.base import StreamChannel
from src.stream.channels.feed import FeedChannel
from src.stream.channels.market import MarketChannel
from src.stream.channels.sports import SportsChannel
from src.stream.config import StreamConfig
from src.stream.enums import ChannelKind
from src.stream.protocols.transport import Connector


def open_channel(
    kind: ChannelKind | str,
    config: StreamConfig | None = None,
    connector: Connector | None = None,
) -> StreamChannel:
    """
    Build a channel of the given kind.

    The user channel has no standalone class: it is started from the
    market channel that shares its credential.

    Args:
        kind: Channel kind (``market``, ``sports`` or ``feed``)
        config: Stream configuration (defaults from environment)
        connector: Dial function override

    Returns:
        Unstarted channel

    Raises:
        ValueError: If the kind is unknown or has no standalone channel

    """
    config = config or StreamConfig.from_env()

    match ChannelKind(kind):
        case ChannelKind.MARKET:
            return MarketChannel(config, connector)
        case ChannelKind.SPORTS:
            return SportsChannel(config, connector)
        case ChannelKind.FEED:
            return FeedChannel(config, connector)
        case _:
            raise ValueError(
                f"No standalone channel for {kind}; use MarketChannel.start_user_channel()"
            )
