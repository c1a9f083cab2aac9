"""
Transport Protocol Layer for streaming channels.

This module defines the structural contract the connection engine needs
from a duplex connection. The websockets client connection satisfies it
directly; tests and alternative transports satisfy it through structure,
not inheritance.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Protocol, runtime_checkable


@runtime_checkable
class StreamConnection(Protocol):
    """
    Protocol for one open duplex text connection.

    Semantic Role: Exclusive physical link owned by a supervisor
    Relationships:
    - Created by: Connector
    - Written by: supervisor (subscribe frames), heartbeat, dynamic subscribe
    - Read by: read loop only
    """

    async def send(self, message: str) -> None:
        """
        Send one text frame.

        Raises:
            Exception: Any transport error; callers treat it as a fault

        """
        ...

    async def recv(self) -> str | bytes:
        """
        Receive the next frame.

        Returns:
            Text frames as str, binary frames as bytes

        Raises:
            Exception: When the connection is closed or broken

        """
        ...

    async def close(self) -> None:
        """Close the connection. Must be safe to call more than once."""
        ...


# Dials a URL and returns an open connection
Connector = Callable[[str], Awaitable[StreamConnection]]
