"""Sports event channel."""

from collections.abc import Callable, Iterable

from src.stream.channels.base import StreamChannel
from src.stream.channels.specs import SPORTS_HANDLER, sports_spec
from src.stream.config import StreamConfig
from src.stream.model.auth import AuthCredential
from src.stream.model.events import SportsEvent
from src.stream.protocols.transport import Connector


class SportsChannel(StreamChannel):
    """Streams venue-wide sports events; no identifiers to subscribe."""

    def __init__(
        self,
        config: StreamConfig | None = None,
        connector: Connector | None = None,
    ) -> None:
        config = config or StreamConfig.from_env()
        super().__init__(sports_spec(config.connection), config, connector)

    def set_auth(self, auth: AuthCredential | None) -> None:  # type: ignore[override]
        """Set the optional credential."""
        self._auth = auth

    def set_on_sports_update(
        self, callback: Callable[[SportsEvent], None] | None
    ) -> None:
        """Set the callback for sports event updates."""
        self._set_callback(SPORTS_HANDLER, callback)

    def start(self, ids: Iterable[str] | None = None) -> None:
        """Start streaming; the channel has no subscription identifiers."""
        super().start(None)
