"""
Test the resilient connection supervisor.

These tests drive the engine through an in-memory connector so that drops,
dial failures and heartbeat faults can be injected deterministically.
"""

import asyncio
import gc
import logging
from datetime import timedelta
from unittest.mock import Mock

import pytest

from src.stream.channels.specs import (
    BOOK_HANDLER,
    TRADE_HANDLER,
    market_spec,
    user_spec,
)
from src.stream.connection.dispatcher import MessageDispatcher
from src.stream.connection.supervisor import ConnectionSupervisor
from src.stream.errors import AlreadyRunningError, AuthRequiredError, NotConnectedError
from src.stream.model.auth import AuthCredential
from tests.unit.stream.helpers import (
    FakeConnector,
    book_message,
    eventually,
    fast_config,
)


def _supervisor(
    connector: FakeConnector, reconnect_delay: float = 0.01, heartbeat: float = 60.0
) -> ConnectionSupervisor:
    config = fast_config(reconnect_delay=reconnect_delay, heartbeat_interval=heartbeat)
    spec = market_spec(config.connection)
    return ConnectionSupervisor(
        spec,
        MessageDispatcher(spec, config.dispatch),
        config=config.connection,
        connector=connector,
    )


class TestLifecycle:
    """Test start/stop state transitions."""

    @pytest.mark.asyncio
    async def test_start_dials_and_subscribes(self) -> None:
        """Start returns immediately and the dial sends the snapshot."""
        # Given
        connector = FakeConnector()
        supervisor = _supervisor(connector)

        # When
        supervisor.start(["A", "B"])

        try:
            # Then
            assert supervisor.is_running()
            await eventually(lambda: len(connector.connections) == 1)
            await eventually(lambda: connector.latest.sent != [])
            assert connector.latest.sent_json == [
                {"type": "MARKET", "assets_ids": ["A", "B"]}
            ]
            assert supervisor.is_connected()
        finally:
            await supervisor.stop()

    @pytest.mark.asyncio
    async def test_double_start_rejected(self) -> None:
        """A running channel cannot be started again."""
        supervisor = _supervisor(FakeConnector())
        supervisor.start(["A"])

        try:
            with pytest.raises(AlreadyRunningError):
                supervisor.start(["B"])
            assert supervisor.registry.ids() == ["A"]
        finally:
            await supervisor.stop()

    @pytest.mark.asyncio
    async def test_clean_stop_leaves_no_task_errors(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Closing the live connection on stop is not reported as an error."""
        # Given
        connector = FakeConnector()
        supervisor = _supervisor(connector)
        supervisor.start(["A"])
        await eventually(supervisor.is_connected)

        # When
        with caplog.at_level(logging.ERROR, logger="asyncio"):
            await supervisor.stop()
            await asyncio.sleep(0)
            gc.collect()

        # Then
        assert connector.latest.closed
        assert [r for r in caplog.records if r.name == "asyncio"] == []

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self) -> None:
        """Stop before start and repeated stops are no-ops."""
        # Given
        connector = FakeConnector()
        supervisor = _supervisor(connector)

        # When
        await supervisor.stop()
        supervisor.start(["A"])
        await eventually(supervisor.is_connected)
        await supervisor.stop()
        await supervisor.stop()

        # Then
        assert not supervisor.is_running()
        assert not supervisor.is_connected()
        assert connector.latest.closed

    @pytest.mark.asyncio
    async def test_restart_after_stop(self) -> None:
        """A stopped channel can be started again with a fresh dial."""
        connector = FakeConnector()
        supervisor = _supervisor(connector)

        supervisor.start(["A"])
        await eventually(supervisor.is_connected)
        await supervisor.stop()
        supervisor.start()

        try:
            await eventually(lambda: len(connector.connections) == 2)
            await eventually(lambda: connector.latest.sent != [])
            assert connector.latest.sent_json[0]["assets_ids"] == ["A"]
        finally:
            await supervisor.stop()

    @pytest.mark.asyncio
    async def test_stop_interrupts_backoff(self) -> None:
        """Stop does not wait out a long reconnect delay."""
        # Given - every dial fails and the delay is long
        connector = FakeConnector(fail_first=1000)
        supervisor = _supervisor(connector, reconnect_delay=30.0)
        supervisor.start(["A"])
        await eventually(lambda: connector.dials >= 1)

        # When / Then
        await asyncio.wait_for(supervisor.stop(), timeout=2.0)
        assert not supervisor.is_running()

    @pytest.mark.asyncio
    async def test_auth_required_fails_fast(self) -> None:
        """A private channel without a credential never dials."""
        # Given
        config = fast_config()
        connector = FakeConnector()
        spec = user_spec(config.connection)
        supervisor = ConnectionSupervisor(
            spec,
            MessageDispatcher(spec),
            config=config.connection,
            connector=connector,
        )

        # When / Then
        with pytest.raises(AuthRequiredError):
            supervisor.start()
        assert not supervisor.is_running()
        assert connector.dials == 0

    @pytest.mark.asyncio
    async def test_auth_sent_with_private_subscribe(self) -> None:
        """A private channel with a credential subscribes with it."""
        config = fast_config()
        connector = FakeConnector()
        spec = user_spec(config.connection)
        auth = AuthCredential(address="0xabc", signature="sig")
        supervisor = ConnectionSupervisor(
            spec,
            MessageDispatcher(spec),
            config=config.connection,
            connector=connector,
            auth=lambda: auth,
        )

        supervisor.start()
        try:
            await eventually(lambda: connector.connections and connector.latest.sent)
            assert connector.latest.sent_json == [
                {"type": "USER", "auth": {"address": "0xabc", "signature": "sig"}}
            ]
        finally:
            await supervisor.stop()


class TestResilience:
    """Test reconnection and resubscription."""

    @pytest.mark.asyncio
    async def test_resubscribes_union_after_drop(self) -> None:
        """Ids added while connected are part of the next dial's snapshot."""
        # Given
        connector = FakeConnector()
        supervisor = _supervisor(connector)
        supervisor.start(["A"])

        try:
            await eventually(supervisor.is_connected)
            await supervisor.subscribe(["B"])
            first = connector.latest

            # When - the peer goes away
            first.drop()

            # Then
            await eventually(lambda: len(connector.connections) == 2)
            second = connector.latest
            await eventually(lambda: second.sent != [])
            assert first.closed
            assert first.sent_json[1] == {"assets_ids": ["B"], "operation": "subscribe"}
            assert second.sent_json[0] == {"type": "MARKET", "assets_ids": ["A", "B"]}
        finally:
            await supervisor.stop()

    @pytest.mark.asyncio
    async def test_heartbeat_failure_triggers_redial(self) -> None:
        """A failed PING write is a fault; the redial resends the same snapshot."""
        # Given
        connector = FakeConnector()
        supervisor = _supervisor(connector, heartbeat=0.02)
        supervisor.start(["A"])

        try:
            await eventually(lambda: connector.connections and connector.latest.sent)
            first = connector.latest

            # When - writes start failing on a connection that still reads
            first.fail_sends = True

            # Then
            await eventually(lambda: len(connector.connections) == 2)
            second = connector.latest
            await eventually(lambda: second.sent != [])
            assert second.sent_json[0] == first.sent_json[0]
            assert supervisor.stats.faults >= 1
        finally:
            await supervisor.stop()

    @pytest.mark.asyncio
    async def test_heartbeat_sends_ping(self) -> None:
        """A healthy connection receives periodic PING probes."""
        connector = FakeConnector()
        supervisor = _supervisor(connector, heartbeat=0.01)
        supervisor.start(["A"])

        try:
            await eventually(
                lambda: connector.connections and '"PING"' in connector.latest.sent
            )
        finally:
            await supervisor.stop()

    @pytest.mark.asyncio
    async def test_dial_failures_retry_and_report_outage(self) -> None:
        """Failed dials are retried; the outage length is reported on reconnect."""
        # Given
        connector = FakeConnector(fail_first=2)
        supervisor = _supervisor(connector)
        on_outage_end = Mock()
        supervisor.on_outage_end = on_outage_end

        # When
        supervisor.start(["A"])

        try:
            # Then
            await eventually(lambda: on_outage_end.called)
            assert connector.dials == 3
            stats = supervisor.stats
            assert stats.faults == 2
            assert stats.connects == 1
            assert stats.outage_started_at is None
            on_outage_end.assert_called_once()
            assert isinstance(on_outage_end.call_args.args[0], timedelta)
        finally:
            await supervisor.stop()

    @pytest.mark.asyncio
    async def test_outage_outlasts_failed_subscribe(self) -> None:
        """A dial whose subscribe write fails does not end the outage."""
        # Given - one refused dial, then one connection that cannot write
        connector = FakeConnector(fail_first=1, broken_writes=1)
        supervisor = _supervisor(connector)
        on_outage_end = Mock()
        supervisor.on_outage_end = on_outage_end

        # When
        supervisor.start(["A"])

        try:
            # Then - only the third dial subscribes and ends the outage
            await eventually(lambda: on_outage_end.called)
            assert connector.dials == 3
            assert connector.connections[0].sent == []
            assert connector.latest.sent_json == [
                {"type": "MARKET", "assets_ids": ["A"]}
            ]
            on_outage_end.assert_called_once()
            stats = supervisor.stats
            assert stats.faults == 2
            assert stats.connects == 1
        finally:
            await supervisor.stop()

    @pytest.mark.asyncio
    async def test_outage_marked_while_disconnected(self) -> None:
        """The outage start is recorded on the first fault."""
        connector = FakeConnector(fail_first=1000)
        supervisor = _supervisor(connector, reconnect_delay=0.01)
        supervisor.start(["A"])

        try:
            await eventually(lambda: connector.dials >= 3)
            stats = supervisor.stats
            assert not stats.connected
            assert stats.outage_started_at is not None
            assert stats.outage_duration is not None
        finally:
            await supervisor.stop()


class TestSubscriptions:
    """Test dynamic subscription changes."""

    @pytest.mark.asyncio
    async def test_unsubscribe_before_connect(self) -> None:
        """Dynamic changes without a connection fail and leave the registry alone."""
        # Given
        supervisor = _supervisor(FakeConnector())
        supervisor.registry.add(["A"])

        # When / Then
        with pytest.raises(NotConnectedError):
            await supervisor.unsubscribe(["A"])
        with pytest.raises(NotConnectedError):
            await supervisor.subscribe(["B"])
        assert supervisor.registry.ids() == ["A"]

    @pytest.mark.asyncio
    async def test_update_subscription_offline_applies_on_dial(self) -> None:
        """Replacing the set offline takes effect at the next dial."""
        # Given
        connector = FakeConnector()
        supervisor = _supervisor(connector)

        # When
        await supervisor.update_subscription(["X", "Y"])
        supervisor.start()

        try:
            # Then
            await eventually(lambda: connector.connections and connector.latest.sent)
            assert connector.latest.sent_json == [
                {"type": "MARKET", "assets_ids": ["X", "Y"]}
            ]
        finally:
            await supervisor.stop()

    @pytest.mark.asyncio
    async def test_update_subscription_online_resends_snapshot(self) -> None:
        """Replacing the set on a live connection resends the full snapshot."""
        connector = FakeConnector()
        supervisor = _supervisor(connector)
        supervisor.start(["A"])

        try:
            await eventually(supervisor.is_connected)
            await supervisor.update_subscription(["C"])

            assert connector.latest.sent_json[-1] == {
                "type": "MARKET",
                "assets_ids": ["C"],
            }
            assert supervisor.registry.ids() == ["C"]
        finally:
            await supervisor.stop()

    @pytest.mark.asyncio
    async def test_send_failure_is_absorbed(self) -> None:
        """A failed delta write is left to the reconnect to repair."""
        connector = FakeConnector()
        supervisor = _supervisor(connector, reconnect_delay=30.0)
        supervisor.start(["A"])

        try:
            await eventually(supervisor.is_connected)
            connector.latest.fail_sends = True

            await supervisor.subscribe(["B"])

            assert supervisor.registry.ids() == ["A", "B"]
        finally:
            await supervisor.stop()


class TestDispatch:
    """Test inbound frames flowing to callbacks."""

    @pytest.mark.asyncio
    async def test_frames_reach_callback(self) -> None:
        """Frames read from the connection are dispatched in order."""
        # Given
        connector = FakeConnector()
        supervisor = _supervisor(connector)
        received: list[str] = []
        supervisor.dispatcher.set_callback(
            BOOK_HANDLER, lambda book: received.append(book.asset_id)
        )
        supervisor.start(["1", "2"])

        try:
            await eventually(supervisor.is_connected)

            # When
            connector.latest.feed("PONG")
            connector.latest.feed([book_message("1"), book_message("2")])
            connector.latest.feed(book_message("0x3"))

            # Then
            await eventually(lambda: len(received) == 3)
            assert received == ["1", "2", "3"]
            assert supervisor.stats.frames_received == 3
        finally:
            await supervisor.stop()

    @pytest.mark.asyncio
    async def test_garbage_frames_keep_connection(self) -> None:
        """Malformed frames are dropped without a reconnect."""
        connector = FakeConnector()
        supervisor = _supervisor(connector)
        supervisor.start(["1"])

        try:
            await eventually(supervisor.is_connected)
            connector.latest.feed("{{{")
            connector.latest.feed(b"\x00")

            await eventually(lambda: supervisor.stats.messages_dropped == 2)
            assert connector.dials == 1
            assert supervisor.is_connected()
        finally:
            await supervisor.stop()

    @pytest.mark.asyncio
    async def test_malformed_message_keeps_connection(self) -> None:
        """A message that cannot be parsed is dropped; the rest of the frame arrives."""
        # Given
        config = fast_config()
        connector = FakeConnector()
        spec = user_spec(config.connection)
        auth = AuthCredential(address="0xabc", signature="sig")
        dispatcher = MessageDispatcher(spec)
        trades: list[str] = []
        dispatcher.set_callback(TRADE_HANDLER, lambda t: trades.append(t.trade_id))
        supervisor = ConnectionSupervisor(
            spec,
            dispatcher,
            config=config.connection,
            connector=connector,
            auth=lambda: auth,
        )
        supervisor.start()

        try:
            await eventually(supervisor.is_connected)

            # When - the first trade's timestamp is out of range
            connector.latest.feed(
                '[{"event_type": "trade", "id": "t1", "timestamp": 1e400},'
                ' {"event_type": "trade", "id": "t2"}]'
            )
            connector.latest.feed("[" * 100000)

            # Then
            await eventually(lambda: supervisor.stats.frames_received == 2)
            assert trades == ["t2"]
            assert supervisor.stats.messages_dropped == 2
            assert connector.dials == 1
            assert supervisor.is_connected()
        finally:
            await supervisor.stop()
