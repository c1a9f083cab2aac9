"""Point-in-time counters for one channel connection."""

from datetime import UTC, datetime, timedelta

from pydantic import BaseModel, ConfigDict, Field

from src.stream.enums import RunState


class ChannelStats(BaseModel):
    """
    Snapshot of a channel's connection health.

    Diagnostic only: nothing in the engine depends on these values.
    """

    channel: str
    run_state: RunState
    connected: bool = False
    connects: int = Field(default=0, description="Successful dials in this run")
    faults: int = Field(default=0, description="Dial, read and heartbeat faults")
    frames_received: int = 0
    messages_dispatched: int = 0
    messages_dropped: int = 0
    subscriptions: int = 0
    outage_started_at: datetime | None = None
    last_connected_at: datetime | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def outage_duration(self) -> timedelta | None:
        """Get how long the current outage has lasted."""
        if self.outage_started_at is None:
            return None
        return datetime.now(UTC) - self.outage_started_at

    def to_log_entry(self) -> str:
        """Generate a log-friendly representation."""
        state = "connected" if self.connected else self.run_state.value
        return (
            f"[{self.channel}] {state} connects={self.connects} "
            f"faults={self.faults} frames={self.frames_received} "
            f"dispatched={self.messages_dispatched} "
            f"dropped={self.messages_dropped} subscriptions={self.subscriptions}"
        )
