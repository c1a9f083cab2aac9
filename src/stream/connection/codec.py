"""
Frame codec for streaming channels.

Inbound frames are either the plain ``PONG`` control token or JSON holding
one message object or an array of message objects. Decoding normalizes both
shapes into an ordered list of message dicts and reports what was dropped.
"""

import json
from typing import Any, NamedTuple

from src.stream.enums import DropReason

PONG = "PONG"

# The liveness probe is the JSON string "PING", not an object
PING_FRAME = json.dumps("PING")


class DecodedFrame(NamedTuple):
    """Messages recovered from one frame plus the reasons for any drops."""

    messages: list[dict[str, Any]]
    dropped: list[DropReason]


def is_control(message: dict[str, Any]) -> bool:
    """Check if a decoded object is a liveness ack."""
    return message.get("type") == PONG


def decode_frame(frame: str | bytes) -> DecodedFrame:
    """
    Decode one inbound frame.

    Args:
        frame: Raw frame as received from the transport

    Returns:
        Message objects in wire order, with control acks removed

    """
    if isinstance(frame, bytes | bytearray):
        return DecodedFrame([], [DropReason.NOT_TEXT])

    if frame.strip() == PONG:
        return DecodedFrame([], [])

    try:
        value = json.loads(frame)
    except (ValueError, RecursionError):
        return DecodedFrame([], [DropReason.INVALID_JSON])

    match value:
        case dict():
            items: list[Any] = [value]
        case list():
            items = value
        case str() if value == PONG:
            return DecodedFrame([], [])
        case _:
            return DecodedFrame([], [DropReason.UNEXPECTED_SHAPE])

    messages: list[dict[str, Any]] = []
    dropped: list[DropReason] = []
    for item in items:
        if not isinstance(item, dict):
            dropped.append(DropReason.UNEXPECTED_SHAPE)
        elif not is_control(item):
            messages.append(item)
    return DecodedFrame(messages, dropped)


def encode_frame(payload: Any) -> str:
    """Encode an outbound payload as a compact JSON text frame."""
    return json.dumps(payload, separators=(",", ":"))
