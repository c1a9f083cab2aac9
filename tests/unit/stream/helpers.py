"""Test helpers for streaming channel tests."""

import asyncio
import json
from collections.abc import Callable
from typing import Any

from src.stream.config import ConnectionConfig, DispatchConfig, StreamConfig


class FakeConnection:
    """
    In-memory duplex connection.

    This allows us to:
    - Feed inbound frames to the read loop
    - Inspect every frame the engine sent
    - Simulate a dropped connection or failing writes
    """

    def __init__(self, url: str) -> None:
        """Initialize an open connection."""
        self.url = url
        self.sent: list[str] = []
        self.closed = False
        self.fail_sends = False
        self._inbound: asyncio.Queue[str | bytes | Exception] = asyncio.Queue()

    async def send(self, message: str) -> None:
        """Record an outbound frame or fail like a dead socket."""
        if self.closed or self.fail_sends:
            raise ConnectionError("connection is closed")
        self.sent.append(message)

    async def recv(self) -> str | bytes:
        """Return the next fed frame or raise the fed error."""
        item = await self._inbound.get()
        if isinstance(item, Exception):
            raise item
        return item

    async def close(self) -> None:
        """Close and wake any pending recv()."""
        if not self.closed:
            self.closed = True
            self._inbound.put_nowait(ConnectionError("connection closed"))

    def feed(self, frame: str | bytes | dict[str, Any] | list[Any]) -> None:
        """Queue an inbound frame; dicts and lists are JSON-encoded."""
        if isinstance(frame, dict | list):
            frame = json.dumps(frame)
        self._inbound.put_nowait(frame)

    def drop(self) -> None:
        """Simulate the peer going away."""
        self._inbound.put_nowait(ConnectionError("connection reset by peer"))

    @property
    def sent_json(self) -> list[Any]:
        """Get the outbound frames decoded."""
        return [json.loads(frame) for frame in self.sent]


class FakeConnector:
    """Connector that hands out FakeConnections and records dials."""

    def __init__(self, fail_first: int = 0, broken_writes: int = 0) -> None:
        """
        Initialize the connector.

        Args:
            fail_first: Number of initial dials that raise OSError
            broken_writes: Number of following connections whose writes fail

        """
        self.fail_first = fail_first
        self.broken_writes = broken_writes
        self.dials = 0
        self.urls: list[str] = []
        self.connections: list[FakeConnection] = []

    async def __call__(self, url: str) -> FakeConnection:
        """Dial a fake connection."""
        self.dials += 1
        self.urls.append(url)
        if self.dials <= self.fail_first:
            raise OSError("connection refused")
        connection = FakeConnection(url)
        if self.broken_writes > 0:
            self.broken_writes -= 1
            connection.fail_sends = True
        self.connections.append(connection)
        return connection

    @property
    def latest(self) -> FakeConnection:
        """Get the most recent connection."""
        return self.connections[-1]


async def eventually(
    predicate: Callable[[], object], timeout: float = 2.0, interval: float = 0.005
) -> None:
    """Wait until predicate() is true or fail the test."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(interval)


def fast_config(
    reconnect_delay: float = 0.01,
    heartbeat_interval: float = 60.0,
    report_dropped: bool = False,
) -> StreamConfig:
    """Build a configuration with test-friendly timings."""
    return StreamConfig(
        connection=ConnectionConfig(
            reconnect_delay=reconnect_delay,
            heartbeat_interval=heartbeat_interval,
            close_timeout=1.0,
        ),
        dispatch=DispatchConfig(report_dropped=report_dropped),
    )


def book_message(
    asset_id: str = "123",
    bids: list[tuple[Any, Any]] | None = None,
    asks: list[tuple[Any, Any]] | None = None,
) -> dict[str, Any]:
    """Build a raw ``book`` message."""
    return {
        "event_type": "book",
        "asset_id": asset_id,
        "market": "0xabc",
        "bids": [{"price": p, "size": s} for p, s in (bids or [])],
        "asks": [{"price": p, "size": s} for p, s in (asks or [])],
        "timestamp": "1700000000000",
    }


def connections_for(connector: FakeConnector, url: str) -> list[FakeConnection]:
    """Get every connection a connector dialed to one endpoint."""
    return [c for c in connector.connections if c.url == url]
