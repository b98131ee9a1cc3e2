"""Main RealtimeClient class: channel pub/sub over a single WebSocket."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from functools import partial
from typing import Any, Literal
from urllib.parse import quote

from .channels import Subscription, SubscriptionRegistry
from .config import FluxezConfig, RealtimeOptions
from .connection import Connection
from .exceptions import ApiError, ConnectionError, ProtocolError
from .http import HttpClient
from .messages import Message, Messages
from .presence import JOIN_PATH, LEAVE_PATH, PRESENCE_PATH, PresenceEntry, presence_list
from .types import MessageCallback, MessageFilter, TransportFactory, TransportProtocol

logger = logging.getLogger(__name__)

ConnectionState = Literal["disconnected", "connecting", "connected"]


@dataclass(frozen=True)
class RealtimeStatus:
    """Diagnostic snapshot of a RealtimeClient."""

    connected: bool
    reconnect_attempts: int
    subscriptions: int


class RealtimeClient:
    """
    Multiplexes channel subscriptions over one realtime connection.

    Subscriptions are declarative: they can be made before connecting and
    survive reconnects, being re-announced to the server each time a
    connection opens.

    Example:
        async with RealtimeClient(api_key="service_...") as client:
            client.subscribe("orders", handle_order)
            await client.listen()
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        *,
        config: FluxezConfig | None = None,
        transport_factory: TransportFactory | None = None,
        http: HttpClient | None = None,
    ) -> None:
        """
        Initialize the realtime client.

        Args:
            api_key: Fluxez API key (or use FLUXEZ_API_KEY env var)
            base_url: HTTP API base URL (or use FLUXEZ_BASE_URL env var)
            config: Optional FluxezConfig instance (overrides individual params)
            transport_factory: Builds the transport for each connection attempt
            http: Control-plane HTTP client used for presence calls
        """
        if config is not None:
            self._config = config
        else:
            config_kwargs: dict[str, Any] = {}
            if api_key is not None:
                config_kwargs["api_key"] = api_key
            if base_url is not None:
                config_kwargs["base_url"] = base_url

            self._config = FluxezConfig(**config_kwargs)

        logging.basicConfig(level=getattr(logging, self._config.log_level.upper()))

        self._options = self._config.realtime_options()
        self._transport_factory: TransportFactory = transport_factory or partial(
            Connection,
            ping_interval=self._config.ping_interval,
            ping_timeout=self._config.ping_timeout,
            open_timeout=self._config.open_timeout,
        )
        self._http = http or HttpClient(self._config)

        self._subscriptions = SubscriptionRegistry()

        # Connection state
        self._transport: TransportProtocol | None = None
        self._state: ConnectionState = "disconnected"
        self._generation = 0
        self._reconnect_attempts = 0
        self._reconnect_task: asyncio.Task[None] | None = None

    @property
    def config(self) -> FluxezConfig:
        return self._config

    @property
    def options(self) -> RealtimeOptions:
        """Connection options currently in effect."""
        return self._options

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        """Whether currently connected to the realtime server."""
        return self._state == "connected"

    @property
    def subscriptions(self) -> dict[str, list[Subscription]]:
        """Subscriptions by channel name."""
        return self._subscriptions.snapshot()

    def get_status(self) -> RealtimeStatus:
        """Snapshot of the connection for diagnostics."""
        return RealtimeStatus(
            connected=self.is_connected,
            reconnect_attempts=self._reconnect_attempts,
            subscriptions=len(self._subscriptions),
        )

    async def connect(self, options: RealtimeOptions | None = None, **overrides: Any) -> None:
        """
        Open a connection to the realtime server.

        Returns once the transport is started; the handshake completes in the
        background. Any existing connection is replaced.

        Args:
            options: Options to merge into the current ones
            **overrides: Individual RealtimeOptions fields to merge
        """
        if options is not None:
            self._options = self._options.merge(options)
        if overrides:
            self._options = self._options.merge(RealtimeOptions(**overrides))

        await self._cancel_reconnect()
        await self._open()

    async def disconnect(self) -> None:
        """Close the connection and drop every subscription."""
        logger.info("Disconnecting from realtime server...")
        await self._cancel_reconnect()

        # Invalidate callbacks from the transport being closed
        self._generation += 1
        await self._close_transport()

        self._state = "disconnected"
        self._subscriptions.clear()

    async def close(self) -> None:
        """Disconnect and release the HTTP session."""
        await self.disconnect()
        await self._http.close()

    def subscribe(
        self,
        channel: str,
        callback: MessageCallback,
        filter: MessageFilter | None = None,
    ) -> Subscription:
        """
        Subscribe a callback to a channel.

        Args:
            channel: Channel name
            callback: Called with each matching Message (sync or async)
            filter: Optional predicate; the callback only sees messages it accepts

        Returns:
            The registered Subscription
        """
        subscription = self._subscriptions.add(channel, callback, filter)

        if self.is_connected:
            self.send(Messages.subscribe(channel))

        logger.debug(f"Subscribed to channel: {channel}")
        return subscription

    def unsubscribe(self, channel: str, callback: MessageCallback | None = None) -> None:
        """
        Unsubscribe from a channel.

        Args:
            channel: Channel name
            callback: Remove only this callback, or None to remove all
        """
        if channel not in self._subscriptions:
            return

        self._subscriptions.remove(channel, callback)

        # Sent even when other local subscribers remain on the channel
        if self.is_connected:
            self.send(Messages.unsubscribe(channel))

        logger.debug(f"Unsubscribed from channel: {channel}")

    def send(self, message: Message) -> None:
        """Send a raw message. Dropped with a warning when not connected."""
        if not self.is_connected or self._transport is None:
            logger.warning("Cannot send message: not connected")
            return

        message = message.stamped()
        self._transport.send(message.to_json())
        logger.debug(f"Sent {message.type} on '{message.channel}'")

    def publish(self, channel: str, data: Any) -> None:
        """
        Publish data to a channel.

        Raises:
            ConnectionError: If not connected
        """
        if not self.is_connected:
            raise ConnectionError("Not connected to realtime server")

        self.send(Messages.publish(channel, data))

    async def join_presence(
        self,
        channel: str,
        presence_data: PresenceEntry | dict[str, Any],
        callback: MessageCallback | None = None,
    ) -> None:
        """
        Announce presence on a channel and subscribe to it.

        Args:
            channel: Channel name
            presence_data: The caller's presence entry
            callback: Receives channel traffic (defaults to debug logging)
        """
        entry = PresenceEntry.model_validate(presence_data)
        try:
            await self._http.post(
                JOIN_PATH,
                json={"channel": channel, "presence_data": entry.model_dump(exclude_none=True)},
            )
        except ApiError as e:
            logger.error(f"Failed to join presence channel '{channel}': {e}")
            raise

        self.subscribe(channel, callback or self._log_presence_message)
        logger.info(f"Joined presence channel: {channel}")

    async def leave_presence(self, channel: str) -> None:
        """Withdraw presence from a channel and unsubscribe from it."""
        try:
            await self._http.post(LEAVE_PATH, json={"channel": channel})
        except ApiError as e:
            logger.error(f"Failed to leave presence channel '{channel}': {e}")
            raise

        self.unsubscribe(channel)
        logger.info(f"Left presence channel: {channel}")

    async def get_presence(self, channel: str) -> list[PresenceEntry]:
        """List the participants currently present on a channel."""
        try:
            body = await self._http.get(f"{PRESENCE_PATH}/{quote(channel, safe='')}")
        except ApiError as e:
            logger.error(f"Failed to get presence for '{channel}': {e}")
            raise

        try:
            return presence_list(body)
        except ProtocolError as e:
            logger.error(f"Invalid presence listing for '{channel}': {e}")
            raise

    async def listen(self) -> None:
        """
        Block while connected or reconnecting.

        Returns once the client is disconnected with no reconnect pending.
        """
        logger.info("Starting message listener...")
        try:
            while self._transport is not None or self._reconnect_task is not None:
                await asyncio.sleep(0.1)
        except asyncio.CancelledError:
            logger.info("Listener cancelled")
            raise

    async def _open(self) -> None:
        """Replace the current transport with a new one."""
        self._generation += 1
        generation = self._generation
        await self._close_transport()

        url = self._options.url or self._config.build_url()
        logger.debug(f"Opening realtime transport to {url}")
        self._state = "connecting"

        try:
            transport = self._transport_factory(
                url,
                self._config.transport_headers(),
                on_open=partial(self._handle_open, generation),
                on_message=partial(self._handle_message, generation),
                on_close=partial(self._handle_close, generation),
                on_error=partial(self._handle_error, generation),
            )
            transport.start()
        except Exception as e:
            logger.error(f"Failed to connect to realtime server: {e}")
            self._state = "disconnected"
            raise

        self._transport = transport

    async def _close_transport(self) -> None:
        transport, self._transport = self._transport, None
        if transport is not None:
            await transport.close()

    async def _cancel_reconnect(self) -> None:
        task, self._reconnect_task = self._reconnect_task, None
        if task is None or task.done():
            return
        task.cancel()
        if task is asyncio.current_task():
            return
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _reconnect_later(self) -> None:
        await asyncio.sleep(self._options.reconnect_interval)
        self._reconnect_task = None
        logger.info(f"Reconnecting to realtime server (attempt {self._reconnect_attempts})")
        try:
            await self._open()
        except Exception as e:
            logger.error(f"Reconnection failed: {e}")

    async def _handle_open(self, generation: int) -> None:
        """Handle connection established."""
        if generation != self._generation:
            return

        self._state = "connected"
        self._reconnect_attempts = 0
        logger.info("Connected to realtime server")

        # Re-subscribe to channels after (re)connection
        for channel in self._subscriptions.channels:
            logger.debug(f"Re-subscribing to channel: {channel}")
            self.send(Messages.subscribe(channel))

    async def _handle_message(self, generation: int, raw: str) -> None:
        """Handle incoming frame from the transport."""
        if generation != self._generation:
            return

        try:
            message = Message.from_json(raw)
        except ProtocolError as e:
            logger.error(f"Failed to parse realtime message: {e}")
            return

        logger.debug(f"Handling message: {message.type} on {message.channel}")
        await self._subscriptions.dispatch(message)

    async def _handle_close(self, generation: int, code: int, reason: str) -> None:
        """Handle connection loss."""
        if generation != self._generation:
            return

        self._state = "disconnected"
        self._transport = None
        logger.warning(f"Realtime connection closed (code={code}, reason={reason!r})")

        if (
            self._options.reconnect
            and self._reconnect_attempts < self._options.max_reconnect_attempts
        ):
            self._reconnect_attempts += 1
            self._reconnect_task = asyncio.create_task(self._reconnect_later())
        else:
            logger.error("Max reconnection attempts reached or reconnection disabled")

    async def _handle_error(self, generation: int, error: Exception) -> None:
        """Handle transport error; the close event drives reconnection."""
        if generation != self._generation:
            return
        logger.error(f"Realtime connection error: {error}")

    def _log_presence_message(self, message: Message) -> None:
        logger.debug(f"Presence message received on '{message.channel}': {message.type}")

    async def __aenter__(self) -> "RealtimeClient":
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Async context manager exit."""
        await self.close()
