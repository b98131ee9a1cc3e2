"""Presence payload models."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .exceptions import ProtocolError

JOIN_PATH = "/realtime/presence/join"
LEAVE_PATH = "/realtime/presence/leave"
PRESENCE_PATH = "/realtime/presence"


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


class PresenceEntry(BaseModel):
    """A participant on a presence channel."""

    model_config = ConfigDict(extra="allow")

    user_id: str
    metadata: Optional[dict[str, Any]] = None
    joined_at: str = Field(default_factory=_utcnow)


def presence_list(body: Any) -> list[PresenceEntry]:
    """
    Parse a presence listing, unwrapping a {"data": [...]} envelope.

    Raises:
        ProtocolError: If the body is not a list of presence entries
    """
    if isinstance(body, dict):
        body = body.get("data")
    if not body:
        return []
    if not isinstance(body, list):
        raise ProtocolError(f"Expected a presence list, got {type(body).__name__}")
    try:
        return [PresenceEntry.model_validate(item) for item in body]
    except ValidationError as e:
        raise ProtocolError(f"Invalid presence entry: {e}") from e
