"""
WebSocket dialing for streaming channels.

Connections use TLS with the default certificate verification, a bounded
opening handshake, IPv4 only when configured, and the proxy given by the
standard ``HTTPS_PROXY``/``HTTP_PROXY`` environment variables.
"""

import logging
import socket
from typing import Any

from websockets.asyncio.client import connect

from src.stream.config import ConnectionConfig
from src.stream.protocols.transport import Connector, StreamConnection

logger = logging.getLogger(__name__)


async def dial(url: str, config: ConnectionConfig) -> StreamConnection:
    """
    Open a WebSocket connection.

    Args:
        url: Endpoint to dial (``wss://...``)
        config: Connection settings

    Returns:
        Open websockets client connection

    """
    kwargs: dict[str, Any] = {
        "open_timeout": config.handshake_timeout,
        "close_timeout": config.close_timeout,
        # Liveness is the application-level PING probe
        "ping_interval": None,
        "max_size": None,
        # Honour HTTPS_PROXY / HTTP_PROXY / NO_PROXY
        "proxy": True,
    }
    if config.prefer_ipv4:
        kwargs["family"] = socket.AF_INET

    logger.debug(f"Dialing {url}")
    return await connect(url, **kwargs)


def websocket_connector(config: ConnectionConfig) -> Connector:
    """Build the default connector bound to a configuration."""

    async def _connect(url: str) -> StreamConnection:
        return await dial(url, config)

    return _connect
