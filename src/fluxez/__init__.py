"""
Fluxez Realtime - Async channel pub/sub client for the Fluxez realtime API.

Example:
    from fluxez import RealtimeClient

    async def main():
        async with RealtimeClient(api_key="service_...") as client:
            client.subscribe("orders", handle_order)
            await client.listen()
"""

from fluxez.channels import Subscription, SubscriptionRegistry
from fluxez.client import RealtimeClient, RealtimeStatus
from fluxez.config import FluxezConfig, RealtimeOptions
from fluxez.connection import Connection
from fluxez.exceptions import (
    ApiError,
    ConnectionError,
    ErrorCodes,
    FluxezError,
    ProtocolError,
)
from fluxez.messages import Message, Messages, MessageTypes
from fluxez.presence import PresenceEntry
from fluxez.types import MessageCallback, MessageFilter

__version__ = "0.1.0"

__all__ = [
    # Main client
    "RealtimeClient",
    "RealtimeStatus",
    "FluxezConfig",
    "RealtimeOptions",
    # Transport
    "Connection",
    # Subscriptions
    "Subscription",
    "SubscriptionRegistry",
    # Messages
    "Message",
    "Messages",
    "MessageTypes",
    # Presence
    "PresenceEntry",
    # Exceptions
    "FluxezError",
    "ConnectionError",
    "ProtocolError",
    "ApiError",
    "ErrorCodes",
    # Types
    "MessageCallback",
    "MessageFilter",
]
