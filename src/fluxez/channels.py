"""Channel subscription registry and message fan-out."""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass

from .messages import Message
from .types import MessageCallback, MessageFilter

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class Subscription:
    """A callback (with optional filter) registered against a channel."""

    channel: str
    callback: MessageCallback
    filter: MessageFilter | None = None

    def matches(self, message: Message) -> bool:
        """Whether this subscription wants the message."""
        return self.filter is None or bool(self.filter(message))


class SubscriptionRegistry:
    """
    Maps channel names to their subscriptions.

    A channel is present only while it has at least one subscription.
    Subscriptions are kept in registration order.
    """

    def __init__(self) -> None:
        self._channels: dict[str, list[Subscription]] = {}

    @property
    def channels(self) -> list[str]:
        """Channels with at least one subscription."""
        return list(self._channels)

    def __len__(self) -> int:
        return len(self._channels)

    def __contains__(self, channel: object) -> bool:
        return channel in self._channels

    def get(self, channel: str) -> list[Subscription]:
        """Subscriptions for a channel (copy)."""
        return list(self._channels.get(channel, []))

    def snapshot(self) -> dict[str, list[Subscription]]:
        """All subscriptions by channel (copy)."""
        return {name: list(subs) for name, subs in self._channels.items()}

    def add(
        self,
        channel: str,
        callback: MessageCallback,
        filter: MessageFilter | None = None,
    ) -> Subscription:
        """Register a subscription and return it."""
        subscription = Subscription(channel=channel, callback=callback, filter=filter)
        self._channels.setdefault(channel, []).append(subscription)
        return subscription

    def remove(self, channel: str, callback: MessageCallback | None = None) -> bool:
        """
        Remove subscription(s) from a channel.

        Args:
            channel: Channel name
            callback: Remove only the first subscription with this callback,
                or None to remove every subscription on the channel

        Returns:
            True if the channel no longer has any subscriptions as a result
            of this call
        """
        subs = self._channels.get(channel)
        if subs is None:
            return False

        if callback is not None:
            for index, sub in enumerate(subs):
                if sub.callback == callback:
                    del subs[index]
                    break
            if subs:
                return False

        del self._channels[channel]
        return True

    def clear(self) -> None:
        """Drop every subscription."""
        self._channels.clear()

    async def dispatch(self, message: Message) -> int:
        """
        Deliver a message to the matching subscriptions of its channel.

        A failing filter or callback is logged and skipped; delivery to the
        remaining subscriptions continues.

        Returns:
            Number of callbacks invoked
        """
        delivered = 0
        for sub in self.get(message.channel):
            try:
                if not sub.matches(message):
                    continue
                delivered += 1
                result = sub.callback(message)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"Subscription callback error on '{message.channel}': {e}")
        return delivered
