"""
Outbound subscription frames.

Builds the dial-time snapshot frames and the incremental delta frames for a
channel from its specification, so every channel shares one implementation.
"""

from typing import Any

from src.stream.connection.codec import encode_frame
from src.stream.connection.spec import ChannelSpec
from src.stream.enums import FrameStyle, SubscriptionOperation
from src.stream.model.auth import AuthCredential, Credential, FeedToken


class FrameBuilder:
    """Encodes subscription frames in a channel's wire shape."""

    def __init__(self, spec: ChannelSpec) -> None:
        """Initialize with the channel specification."""
        self.spec = spec

    def dial_frames(
        self, snapshot: dict[str, list[str]], auth: Credential | None
    ) -> list[str]:
        """
        Get the frames sent right after a successful dial.

        Args:
            snapshot: Registry snapshot taken at dial time
            auth: Credential configured on the channel, if any

        Returns:
            Frames in send order (possibly empty)

        """
        if self.spec.frame_style is FrameStyle.STREAM:
            frames = []
            if isinstance(auth, FeedToken):
                frames.append(encode_frame(auth.to_wire()))
            for stream in self.spec.streams:
                ids = snapshot.get(stream, [])
                if ids or self.spec.subscribe_when_empty:
                    frames.extend(self.snapshot_frames(ids, auth, stream))
            return frames

        stream = self.spec.streams[0]
        ids = snapshot.get(stream, [])
        if not ids and not self.spec.subscribe_when_empty:
            return []
        return self.snapshot_frames(ids, auth, stream)

    def snapshot_frames(
        self, ids: list[str], auth: Credential | None, stream: str | None = None
    ) -> list[str]:
        """Get the full-snapshot subscribe frames for one stream."""
        stream = stream or self.spec.streams[0]
        payload: dict[str, Any]

        if self.spec.frame_style is FrameStyle.STREAM:
            payload = {
                "type": SubscriptionOperation.SUBSCRIBE.value,
                "stream": stream,
                "ids": list(ids),
            }
            return [encode_frame(payload)]

        payload = {}
        if self.spec.subscribe_type is not None:
            payload["type"] = self.spec.subscribe_type
        if self.spec.id_field is not None:
            payload[self.spec.id_field] = list(ids)
        if isinstance(auth, AuthCredential):
            payload["auth"] = auth.to_wire()
        return [encode_frame(payload)]

    def delta_frame(
        self,
        operation: SubscriptionOperation,
        ids: list[str],
        auth: Credential | None,
        stream: str | None = None,
    ) -> str:
        """Get the incremental subscribe/unsubscribe frame for changed ids."""
        stream = stream or self.spec.streams[0]

        if self.spec.frame_style is FrameStyle.STREAM:
            return encode_frame(
                {"type": operation.value, "stream": stream, "ids": list(ids)}
            )

        payload: dict[str, Any] = {
            self.spec.id_field or "ids": list(ids),
            "operation": operation.value,
        }
        if isinstance(auth, AuthCredential):
            payload["auth"] = auth.to_wire()
        return encode_frame(payload)
