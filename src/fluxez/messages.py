"""Message parsing and construction for the realtime protocol."""

from __future__ import annotations

import dataclasses
import json
import time
from dataclasses import dataclass, field
from typing import Any, Literal

from .exceptions import ProtocolError

MessageKind = Literal["subscribe", "unsubscribe", "publish", "application"]


class MessageTypes:
    """Protocol-level message types."""

    SUBSCRIBE = "subscribe"
    UNSUBSCRIBE = "unsubscribe"
    PUBLISH = "publish"

    INTENTS = frozenset({SUBSCRIBE, UNSUBSCRIBE, PUBLISH})


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


@dataclass
class Message:
    """Envelope for every frame on the realtime connection."""

    type: str
    channel: str
    data: Any = field(default_factory=dict)
    timestamp: int | None = None
    id: str | None = None

    @property
    def kind(self) -> MessageKind:
        """The protocol intent, or 'application' for payload traffic."""
        if self.type in MessageTypes.INTENTS:
            return self.type  # type: ignore[return-value]
        return "application"

    @classmethod
    def from_json(cls, raw: str) -> "Message":
        """Parse JSON message from server."""
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ProtocolError(f"Invalid JSON frame: {e}") from e

        if not isinstance(parsed, dict):
            raise ProtocolError(f"Expected a JSON object, got {type(parsed).__name__}")

        channel = parsed.get("channel")
        if not isinstance(channel, str):
            raise ProtocolError("Message has no channel")

        return cls(
            type=str(parsed.get("type", "")),
            channel=channel,
            data=parsed.get("data"),
            timestamp=parsed.get("timestamp"),
            id=parsed.get("id"),
        )

    def to_json(self) -> str:
        """Serialize to JSON for sending."""
        msg: dict[str, Any] = {
            "type": self.type,
            "channel": self.channel,
            "data": self.data,
        }
        if self.timestamp is not None:
            msg["timestamp"] = self.timestamp
        if self.id is not None:
            msg["id"] = self.id
        return json.dumps(msg)

    def stamped(self) -> "Message":
        """Copy of this message with the timestamp filled in."""
        if self.timestamp:
            return self
        return dataclasses.replace(self, timestamp=now_ms())


class Messages:
    """Factory for creating protocol messages."""

    @staticmethod
    def subscribe(channel: str) -> Message:
        """Create subscription message."""
        return Message(type=MessageTypes.SUBSCRIBE, channel=channel, data={})

    @staticmethod
    def unsubscribe(channel: str) -> Message:
        """Create unsubscription message."""
        return Message(type=MessageTypes.UNSUBSCRIBE, channel=channel, data={})

    @staticmethod
    def publish(channel: str, data: Any) -> Message:
        """Create a publish message."""
        return Message(type=MessageTypes.PUBLISH, channel=channel, data=data)
