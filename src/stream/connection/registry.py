"""
Subscription registry shared across reconnects.

The registry is the single source of truth for what a channel should be
subscribed to, whether or not a connection currently exists. It never
performs I/O; callers send frames after mutating it.
"""

import threading
from collections.abc import Iterable

# Stream name used by channels with a single identifier set
DEFAULT_STREAM = "default"


class SubscriptionRegistry:
    """
    Lock-guarded identifier sets, one per logical stream.

    Identifiers keep first-insertion order so snapshots are stable, but
    order carries no meaning. All operations are safe for concurrent use
    and hold the lock only for in-memory work.
    """

    def __init__(self, streams: Iterable[str] = (DEFAULT_STREAM,)) -> None:
        """
        Initialize the registry.

        Args:
            streams: Names of the streams this channel tracks

        """
        self._lock = threading.Lock()
        self._ids: dict[str, dict[str, None]] = {name: {} for name in streams}
        if not self._ids:
            raise ValueError("Registry needs at least one stream")

    @property
    def streams(self) -> tuple[str, ...]:
        """Get the tracked stream names."""
        return tuple(self._ids)

    def _bucket(self, stream: str | None) -> dict[str, None]:
        name = stream or next(iter(self._ids))
        try:
            return self._ids[name]
        except KeyError:
            raise ValueError(f"Unknown stream: {name}") from None

    def add(self, ids: Iterable[str], stream: str | None = None) -> None:
        """Add identifiers; already-present ids are left as they are."""
        new_ids = list(ids)
        with self._lock:
            bucket = self._bucket(stream)
            for asset_id in new_ids:
                bucket.setdefault(asset_id, None)

    def remove(self, ids: Iterable[str], stream: str | None = None) -> None:
        """Remove identifiers; absent ids are ignored."""
        old_ids = list(ids)
        with self._lock:
            bucket = self._bucket(stream)
            for asset_id in old_ids:
                bucket.pop(asset_id, None)

    def replace(self, ids: Iterable[str], stream: str | None = None) -> None:
        """Replace the whole identifier set of a stream."""
        fresh = dict.fromkeys(ids)
        with self._lock:
            name = stream or next(iter(self._ids))
            self._bucket(name)
            self._ids[name] = fresh

    def ids(self, stream: str | None = None) -> list[str]:
        """Get a copy of one stream's identifiers."""
        with self._lock:
            return list(self._bucket(stream))

    def snapshot(self) -> dict[str, list[str]]:
        """Get a copy of every stream's identifiers."""
        with self._lock:
            return {name: list(bucket) for name, bucket in self._ids.items()}

    def count(self) -> int:
        """Get the total number of subscribed identifiers."""
        with self._lock:
            return sum(len(bucket) for bucket in self._ids.values())

    def __contains__(self, asset_id: object) -> bool:
        """Check if an identifier is subscribed on any stream."""
        with self._lock:
            return any(asset_id in bucket for bucket in self._ids.values())
