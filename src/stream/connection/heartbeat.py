"""
Application-level liveness probing.

The transport may not notice a silently dead peer for a long time. The
heartbeat writes a PING probe on a fixed interval; a failed write ends the
monitor with an error, which the supervisor treats as a connection fault.
"""

import asyncio
import logging

from src.stream.connection.codec import PING_FRAME
from src.stream.protocols.transport import StreamConnection

logger = logging.getLogger(__name__)


class HeartbeatError(ConnectionError):
    """Raised when a liveness probe cannot be written."""


class HeartbeatMonitor:
    """
    Periodic PING writer bound to one connection.

    A monitor lives exactly as long as its connection: the supervisor
    creates one per successful dial and cancels it on teardown, so monitors
    never leak across reconnects.
    """

    def __init__(
        self, connection: StreamConnection, interval: float, channel: str
    ) -> None:
        """
        Initialize the monitor.

        Args:
            connection: Connection to probe
            interval: Seconds between probes
            channel: Channel name for log messages

        """
        self.connection = connection
        self.interval = interval
        self.channel = channel
        self.probes_sent = 0

    async def run(self) -> None:
        """
        Send probes until cancelled or a write fails.

        Raises:
            HeartbeatError: When a probe cannot be written

        """
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.connection.send(PING_FRAME)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.warning(f"[{self.channel}] Heartbeat failed: {e}")
                raise HeartbeatError(str(e)) from e
            self.probes_sent += 1
