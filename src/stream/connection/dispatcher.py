"""
Inbound message dispatch.

Turns one physical frame into zero or more callback invocations: decode,
normalize to message objects, route each by its discriminant, build the
event and call the registered callback on the read loop, in wire order.
"""

import logging
from collections.abc import Callable
from typing import Any


from src.stream.config import DispatchConfig
from src.stream.connection.codec import decode_frame
from src.stream.connection.spec import ChannelSpec, EventRoute
from src.stream.enums import DropReason

logger = logging.getLogger(__name__)

# Receives the drop reason and the offending frame or message
DropCallback = Callable[[DropReason, Any], None]


class MessageDispatcher:
    """
    Routes decoded messages to typed callbacks.

    Callbacks run synchronously in frame arrival order. A callback that
    raises is logged and skipped; the read loop continues with the next
    message. Messages whose route has no callback are not parsed at all.
    """

    def __init__(
        self, spec: ChannelSpec, config: DispatchConfig | None = None
    ) -> None:
        """
        Initialize the dispatcher.

        Args:
            spec: Channel specification providing the routing table
            config: Drop reporting settings

        """
        self.spec = spec
        self.config = config or DispatchConfig()
        self._routes: dict[str, EventRoute] = {
            route.value: route for route in spec.routes
        }
        self._callbacks: dict[str, Callable[[Any], None] | None] = dict.fromkeys(
            spec.handlers
        )
        self.on_drop: DropCallback | None = None

        self.frames_received = 0
        self.messages_dispatched = 0
        self.messages_dropped = 0

    def set_callback(self, handler: str, callback: Callable[[Any], None] | None) -> None:
        """
        Register the callback for a handler slot.

        Replaces any previous callback; None unregisters.
        """
        if handler not in self._callbacks:
            raise ValueError(f"Unknown handler for {self.spec.name}: {handler}")
        self._callbacks[handler] = callback

    def get_callback(self, handler: str) -> Callable[[Any], None] | None:
        """Get the callback registered for a handler slot."""
        return self._callbacks.get(handler)

    def dispatch_frame(self, frame: str | bytes) -> int:
        """
        Process one inbound frame.

        Returns:
            Number of callbacks invoked

        """
        self.frames_received += 1
        decoded = decode_frame(frame)
        for reason in decoded.dropped:
            self._drop(reason, frame)

        invoked = 0
        for message in decoded.messages:
            if self.dispatch_message(message):
                invoked += 1
        return invoked

    def dispatch_message(self, message: dict[str, Any]) -> bool:
        """
        Route one message object.

        Returns:
            True if a callback was invoked

        """
        route = self._routes.get(str(message.get(self.spec.discriminant, "")))
        if route is None:
            self._drop(DropReason.UNROUTED, message)
            return False

        callback = self._callbacks.get(route.handler)
        if callback is None:
            return False

        try:
            event = route.parser(message)
        except Exception as e:
            logger.debug(f"[{self.spec.name}] Invalid {route.value} message: {e}")
            self._drop(DropReason.INVALID_PAYLOAD, message)
            return False
        if event is None:
            self._drop(DropReason.INVALID_PAYLOAD, message)
            return False

        try:
            callback(event)
        except Exception:
            logger.exception(f"[{self.spec.name}] {route.handler} callback failed")
        self.messages_dispatched += 1
        return True

    def _drop(self, reason: DropReason, payload: Any) -> None:
        self.messages_dropped += 1
        logger.debug(f"[{self.spec.name}] Dropped message: {reason.value}")
        if self.config.report_dropped and self.on_drop is not None:
            try:
                self.on_drop(reason, payload)
            except Exception:
                logger.exception(f"[{self.spec.name}] Drop callback failed")
