"""
Resilient WebSocket connection with automatic reconnection.

This module provides the connection engine shared by every channel:
- Reconnects indefinitely with a fixed delay until stopped
- Re-sends the registry's current subscriptions after every dial
- Probes liveness with a heartbeat and treats probe failures as faults
- Absorbs transport errors without surfacing them to the caller
"""

import asyncio
import contextlib
import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from src.stream.config import ConnectionConfig
from src.stream.connection.dispatcher import MessageDispatcher
from src.stream.connection.frames import FrameBuilder
from src.stream.connection.heartbeat import HeartbeatMonitor
from src.stream.connection.registry import SubscriptionRegistry
from src.stream.connection.spec import ChannelSpec
from src.stream.connection.transport import websocket_connector
from src.stream.enums import RunState, SubscriptionOperation
from src.stream.errors import AlreadyRunningError, AuthRequiredError, NotConnectedError
from src.stream.model.auth import Credential
from src.stream.model.stats import ChannelStats
from src.stream.protocols.transport import Connector, StreamConnection

logger = logging.getLogger(__name__)


class ConnectionLostError(ConnectionError):
    """Raised when the read loop ends without an error of its own."""


@dataclass
class _ChannelState:
    """Mutable engine state, guarded by the supervisor's lock."""

    run_state: RunState = RunState.STOPPED
    stop: asyncio.Event | None = None
    task: asyncio.Task[None] | None = None
    connection: StreamConnection | None = None
    outage_started_at: datetime | None = None
    last_connected_at: datetime | None = None
    connects: int = 0
    faults: int = 0


class ConnectionSupervisor:
    """
    Keeps at most one healthy connection open while running.

    The supervisor owns the live connection. Other operations (heartbeat,
    dynamic subscriptions) borrow it under the lock for a single write and
    never keep it. A fresh stop token is minted by every start() and
    consumed by exactly one stop().
    """

    def __init__(
        self,
        spec: ChannelSpec,
        dispatcher: MessageDispatcher,
        registry: SubscriptionRegistry | None = None,
        config: ConnectionConfig | None = None,
        connector: Connector | None = None,
        auth: Callable[[], Credential | None] | None = None,
    ) -> None:
        """
        Initialize the supervisor.

        Args:
            spec: Channel specification
            dispatcher: Routes inbound frames to callbacks
            registry: Subscription state; created from the spec if omitted
            config: Connection settings
            connector: Dial function; defaults to the websockets dialer
            auth: Returns the credential to send at dial time

        """
        self.spec = spec
        self.dispatcher = dispatcher
        self.registry = registry or SubscriptionRegistry(spec.streams)
        self.config = config or ConnectionConfig()
        self.connector = connector or websocket_connector(self.config)
        self.frames = FrameBuilder(spec)
        self._auth = auth or (lambda: None)

        self.on_outage_end: Callable[[timedelta], None] | None = None

        self._lock = threading.Lock()
        self._state = _ChannelState()

    @property
    def name(self) -> str:
        """Get the channel name."""
        return self.spec.name

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(
        self, ids: Iterable[str] | None = None, stream: str | None = None
    ) -> None:
        """
        Start the supervisory loop and return immediately.

        Must be called from inside a running event loop.

        Args:
            ids: Initial subscription, replacing the stream's identifiers
            stream: Registry stream the ids belong to

        Raises:
            AlreadyRunningError: If the channel is already running
            AuthRequiredError: If the channel needs a credential and has none

        """
        loop = asyncio.get_running_loop()
        stop = asyncio.Event()

        with self._lock:
            if self._state.run_state is RunState.RUNNING:
                raise AlreadyRunningError(self.name)
            if self.spec.auth_required and self._auth() is None:
                raise AuthRequiredError(self.name)
            self._state = _ChannelState(run_state=RunState.RUNNING, stop=stop)

        if ids is not None:
            self.registry.replace(ids, stream)

        task = loop.create_task(self._run(stop), name=f"{self.name}-supervisor")
        with self._lock:
            self._state.task = task

        logger.info(f"[{self.name}] Started ({self.registry.count()} subscriptions)")

    async def stop(self) -> None:
        """
        Stop the channel and wait for its tasks to finish.

        Idempotent: a no-op when the channel is not running.
        """
        with self._lock:
            if self._state.run_state is RunState.STOPPED:
                return
            self._state.run_state = RunState.STOPPED
            stop = self._state.stop
            task = self._state.task
            connection = self._state.connection

        if stop is not None:
            stop.set()
        if connection is not None:
            await self._close(connection)

        if task is not None and task is not asyncio.current_task():
            done, _ = await asyncio.wait({task}, timeout=self.config.close_timeout)
            if not done:
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task

        logger.info(f"[{self.name}] Stopped")

    def is_running(self) -> bool:
        """Check if the channel is running."""
        with self._lock:
            return self._state.run_state is RunState.RUNNING

    def is_connected(self) -> bool:
        """Check if a connection is currently open."""
        return self._connection() is not None

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    async def update_subscription(
        self, ids: Iterable[str], stream: str | None = None
    ) -> None:
        """
        Replace a stream's identifiers and resend the full snapshot.

        The registry is replaced even when disconnected; the next dial
        carries the new set.
        """
        self.registry.replace(ids, stream)
        connection = self._connection()
        if connection is None:
            return

        for frame in self.frames.snapshot_frames(
            self.registry.ids(stream), self._auth(), stream
        ):
            await self._send(connection, frame)

    async def subscribe(self, ids: Iterable[str], stream: str | None = None) -> None:
        """
        Add identifiers and send a delta subscribe frame.

        Raises:
            NotConnectedError: If no connection is open

        """
        await self._send_delta(SubscriptionOperation.SUBSCRIBE, list(ids), stream)

    async def unsubscribe(
        self, ids: Iterable[str], stream: str | None = None
    ) -> None:
        """
        Remove identifiers and send a delta unsubscribe frame.

        Raises:
            NotConnectedError: If no connection is open

        """
        await self._send_delta(SubscriptionOperation.UNSUBSCRIBE, list(ids), stream)

    async def _send_delta(
        self,
        operation: SubscriptionOperation,
        ids: list[str],
        stream: str | None,
    ) -> None:
        connection = self._connection()
        if connection is None:
            raise NotConnectedError(self.name)

        if operation is SubscriptionOperation.SUBSCRIBE:
            self.registry.add(ids, stream)
        else:
            self.registry.remove(ids, stream)

        frame = self.frames.delta_frame(operation, ids, self._auth(), stream)
        await self._send(connection, frame)

    async def _send(self, connection: StreamConnection, frame: str) -> None:
        # A failed write means the connection is dying; the read loop
        # notices and the next dial resends the registry
        try:
            await connection.send(frame)
        except Exception as e:
            logger.warning(f"[{self.name}] Send failed, awaiting reconnect: {e}")

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    @property
    def stats(self) -> ChannelStats:
        """Get a snapshot of the channel's counters."""
        with self._lock:
            state = self._state
            return ChannelStats(
                channel=self.name,
                run_state=state.run_state,
                connected=state.connection is not None,
                connects=state.connects,
                faults=state.faults,
                frames_received=self.dispatcher.frames_received,
                messages_dispatched=self.dispatcher.messages_dispatched,
                messages_dropped=self.dispatcher.messages_dropped,
                subscriptions=self.registry.count(),
                outage_started_at=state.outage_started_at,
                last_connected_at=state.last_connected_at,
            )

    # ------------------------------------------------------------------
    # Supervisory loop
    # ------------------------------------------------------------------

    async def _run(self, stop: asyncio.Event) -> None:
        """Dial, listen and redial until the stop token fires."""
        stats_task = None
        if self.config.stats_interval > 0:
            stats_task = asyncio.create_task(self._log_stats(stop))

        try:
            while not stop.is_set():
                try:
                    await self._connect_and_listen(stop)
                except Exception as e:
                    if stop.is_set():
                        break
                    self._record_fault(e)
                    await self._wait_reconnect(stop)
        finally:
            if stats_task is not None:
                stats_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await stats_task

    async def _connect_and_listen(self, stop: asyncio.Event) -> None:
        """
        Run one connection from dial to teardown.

        Returns normally only when the stop token fires; every fault is
        raised to the supervisory loop.
        """
        connection = await self.connector(self.spec.url)

        with self._lock:
            if stop.is_set():
                stopped = True
            else:
                stopped = False
                self._state.connection = connection
        if stopped:
            await self._close(connection)
            return

        try:
            # Snapshot is taken now, so it matches the live registry
            for frame in self.frames.dial_frames(
                self.registry.snapshot(), self._auth()
            ):
                await connection.send(frame)

            # The outage ends only once the channel is subscribed again
            self._record_connected()

            heartbeat = HeartbeatMonitor(
                connection, self.config.heartbeat_interval, self.name
            )
            reader = asyncio.create_task(self._read_loop(connection))
            prober = asyncio.create_task(heartbeat.run())
            stopper = asyncio.create_task(stop.wait())

            done, pending = await asyncio.wait(
                {reader, prober, stopper}, return_when=asyncio.FIRST_COMPLETED
            )
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

            # Retrieve every outcome, including the reader error a stop causes
            errors = [
                task.exception()
                for task in (prober, reader)
                if task in done and not task.cancelled()
            ]
            if stopper in done or stop.is_set():
                return
            for error in errors:
                if error is not None:
                    raise error
            raise ConnectionLostError("read loop ended")
        finally:
            with self._lock:
                if self._state.connection is connection:
                    self._state.connection = None
            await self._close(connection)

    async def _read_loop(self, connection: StreamConnection) -> None:
        """Receive frames and dispatch them until the connection fails."""
        while True:
            frame = await connection.recv()
            self.dispatcher.dispatch_frame(frame)

    async def _wait_reconnect(self, stop: asyncio.Event) -> None:
        """Sleep the reconnect delay, waking early on stop."""
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(stop.wait(), timeout=self.config.reconnect_delay)

    async def _close(self, connection: StreamConnection) -> None:
        try:
            await connection.close()
        except Exception as e:
            logger.debug(f"[{self.name}] Error closing connection: {e}")

    def _connection(self) -> StreamConnection | None:
        with self._lock:
            return self._state.connection

    def _record_fault(self, error: Exception) -> None:
        """Mark the outage start (first fault only) and log the fault."""
        now = datetime.now(UTC)
        with self._lock:
            self._state.faults += 1
            if self._state.outage_started_at is None:
                self._state.outage_started_at = now
            outage = now - self._state.outage_started_at

        if outage.total_seconds() > self.config.outage_warning_after:
            logger.warning(
                f"[{self.name}] Disconnected for {outage}, "
                f"reconnecting in {self.config.reconnect_delay}s: {error}"
            )
        else:
            logger.info(
                f"[{self.name}] Connection fault, "
                f"reconnecting in {self.config.reconnect_delay}s: {error}"
            )

    def _record_connected(self) -> None:
        """Clear any outage and report its duration."""
        now = datetime.now(UTC)
        with self._lock:
            started = self._state.outage_started_at
            self._state.outage_started_at = None
            self._state.last_connected_at = now
            self._state.connects += 1

        if started is None:
            logger.info(f"[{self.name}] Connected to {self.spec.url}")
            return

        duration = now - started
        logger.info(f"[{self.name}] Reconnected after {duration}")
        if self.on_outage_end is not None:
            try:
                self.on_outage_end(duration)
            except Exception:
                logger.exception(f"[{self.name}] Outage callback failed")

    async def _log_stats(self, stop: asyncio.Event) -> None:
        """Periodically log the subscription count."""
        while not stop.is_set():
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(
                    stop.wait(), timeout=self.config.stats_interval
                )
            logger.debug(self.stats.to_log_entry())
