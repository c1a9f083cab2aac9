"""Resilient streaming connection engine."""

from src.stream.connection.codec import decode_frame, encode_frame
from src.stream.connection.dispatcher import MessageDispatcher
from src.stream.connection.frames import FrameBuilder
from src.stream.connection.heartbeat import HeartbeatError, HeartbeatMonitor
from src.stream.connection.registry import DEFAULT_STREAM, SubscriptionRegistry
from src.stream.connection.spec import ChannelSpec, EventRoute
from src.stream.connection.supervisor import ConnectionSupervisor

__all__ = [
    "DEFAULT_STREAM",
    "ChannelSpec",
    "ConnectionSupervisor",
    "EventRoute",
    "FrameBuilder",
    "HeartbeatError",
    "HeartbeatMonitor",
    "MessageDispatcher",
    "SubscriptionRegistry",
    "decode_frame",
    "encode_frame",
]
