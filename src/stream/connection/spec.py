"""
Channel specifications.

One connection engine serves every channel. What differs between channels
is captured here as a frozen value object: endpoint, auth policy, frame
shape and the discriminant routing table.
"""

from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.stream.connection.registry import DEFAULT_STREAM
from src.stream.enums import ChannelKind, FrameStyle

# Builds an event from a decoded message; None means the message is unusable
EventParser = Callable[[dict[str, Any]], Any]


class EventRoute(BaseModel):
    """Maps one discriminant value to a callback slot and a parser."""

    value: str = Field(description="Discriminant value, e.g. 'book'")
    handler: str = Field(description="Callback slot name")
    parser: EventParser = Field(description="Message to event conversion")

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)


class ChannelSpec(BaseModel):
    """
    Instantiation parameters of the connection engine.

    Attributes:
        name: Channel name used in logs and errors
        kind: Logical channel kind
        url: Endpoint to dial
        frame_style: Shape of outbound subscription frames
        subscribe_type: ``type`` value of CLOB snapshot frames
        id_field: Field carrying identifiers in CLOB frames (None = no ids)
        streams: Registry streams tracked by the channel
        auth_required: Refuse to start without a credential
        subscribe_when_empty: Send the dial-time frame with an empty id set
        discriminant: Message field selecting the route
        routes: Routing table

    """

    name: str
    kind: ChannelKind
    url: str
    frame_style: FrameStyle = FrameStyle.CLOB
    subscribe_type: str | None = None
    id_field: str | None = None
    streams: tuple[str, ...] = (DEFAULT_STREAM,)
    auth_required: bool = False
    subscribe_when_empty: bool = True
    discriminant: str = "event_type"
    routes: tuple[EventRoute, ...] = ()

    model_config = ConfigDict(frozen=True)

    @property
    def handlers(self) -> tuple[str, ...]:
        """Get the callback slot names this channel routes to."""
        return tuple(route.handler for route in self.routes)
