"""Type definitions for Fluxez Realtime."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Awaitable, Callable, Protocol, TypeAlias

if TYPE_CHECKING:
    from .messages import Message

# Subscriber callback; may be a plain function or a coroutine function
MessageCallback: TypeAlias = Callable[["Message"], Any]

# Per-subscription predicate
MessageFilter: TypeAlias = Callable[["Message"], bool]

# Transport lifecycle callbacks
OpenCallback: TypeAlias = Callable[[], Awaitable[None]]
RawMessageCallback: TypeAlias = Callable[[str], Awaitable[None]]
CloseCallback: TypeAlias = Callable[[int, str], Awaitable[None]]
ErrorCallback: TypeAlias = Callable[[Exception], Awaitable[None]]


class TransportProtocol(Protocol):
    """Protocol for a single physical realtime connection."""

    def start(self) -> None:
        """Begin connecting; returns without waiting for the handshake."""
        ...

    def send(self, payload: str) -> None:
        """Queue a text frame."""
        ...

    async def close(self) -> None:
        """Close without emitting a close event."""
        ...


class TransportFactory(Protocol):
    """Builds a transport bound to the given lifecycle callbacks."""

    def __call__(
        self,
        url: str,
        headers: dict[str, str],
        *,
        on_open: OpenCallback,
        on_message: RawMessageCallback,
        on_close: CloseCallback,
        on_error: ErrorCallback,
    ) -> TransportProtocol: ...
