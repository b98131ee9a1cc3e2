"""WebSocket transport for the realtime client."""

from __future__ import annotations

import asyncio
import logging

import websockets
from websockets.asyncio.client import ClientConnection, connect

from .types import CloseCallback, ErrorCallback, OpenCallback, RawMessageCallback

logger = logging.getLogger(__name__)

ABNORMAL_CLOSURE = 1006


class Connection:
    """
    Low-level WebSocket connection.

    Handles:
    - Connection establishment with the authentication headers
    - Ordered outbound frames through a send queue
    - Lifecycle callbacks (open, message, close, error)

    A Connection is single-use; reconnection is driven by the owner, which
    creates a new Connection per attempt.
    """

    def __init__(
        self,
        url: str,
        headers: dict[str, str],
        *,
        on_open: OpenCallback,
        on_message: RawMessageCallback,
        on_close: CloseCallback,
        on_error: ErrorCallback,
        ping_interval: float | None = 30.0,
        ping_timeout: float | None = 10.0,
        open_timeout: float | None = 10.0,
    ) -> None:
        self.url = url
        self._headers = headers
        self._on_open = on_open
        self._on_message = on_message
        self._on_close = on_close
        self._on_error = on_error
        self._ping_interval = ping_interval
        self._ping_timeout = ping_timeout
        self._open_timeout = open_timeout

        self._ws: ClientConnection | None = None
        self._outbox: asyncio.Queue[str] = asyncio.Queue()
        self._task: asyncio.Task[None] | None = None
        self._writer_task: asyncio.Task[None] | None = None
        self._closing = False

    @property
    def is_open(self) -> bool:
        """Whether the socket is open."""
        if self._ws is None or self._closing:
            return False
        try:
            return self._ws.state.name == "OPEN"
        except Exception:
            return False

    @property
    def pending(self) -> int:
        """Frames queued but not yet written."""
        return self._outbox.qsize()

    def start(self) -> None:
        """Start connecting in the background."""
        if self._task is not None:
            raise RuntimeError("Connection already started")
        self._task = asyncio.create_task(self._run())

    def send(self, payload: str) -> None:
        """Queue a text frame for sending."""
        self._outbox.put_nowait(payload)

    async def close(self) -> None:
        """
        Close the connection. No close callback is emitted.

        May be called from inside a callback. The calling task is never
        cancelled; the receive loop ends on its own once the socket closes.
        """
        self._closing = True
        current = asyncio.current_task()

        for task in (self._writer_task, self._task):
            if task is None or task.done() or task is current:
                continue
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        ws, self._ws = self._ws, None
        if ws is not None:
            try:
                await ws.close()
            except Exception as e:
                logger.debug(f"Error closing websocket: {e}")

    async def _run(self) -> None:
        """Open the socket and pump inbound frames until it closes."""
        logger.info(f"Connecting to {self.url}")
        try:
            ws = await connect(
                self.url,
                additional_headers=self._headers,
                ping_interval=self._ping_interval,
                ping_timeout=self._ping_timeout,
                open_timeout=self._open_timeout,
            )
        except Exception as e:
            logger.error(f"Connection failed: {e}")
            await self._on_error(e)
            await self._on_close(ABNORMAL_CLOSURE, str(e))
            return

        self._ws = ws
        await self._on_open()
        if self._closing:
            return
        self._writer_task = asyncio.create_task(self._write_loop())

        code, reason = ABNORMAL_CLOSURE, ""
        try:
            async for raw in ws:
                if isinstance(raw, bytes):
                    raw = raw.decode("utf-8", errors="replace")
                await self._on_message(raw)
                if self._closing:
                    break
            code = ws.close_code or code
            reason = ws.close_reason or ""
        except websockets.ConnectionClosed as e:
            if e.rcvd is not None:
                code, reason = e.rcvd.code, e.rcvd.reason
        except Exception as e:
            logger.error(f"Receive loop error: {e}")
            await self._on_error(e)
        finally:
            if self._writer_task and not self._writer_task.done():
                self._writer_task.cancel()

        if self._ws is ws:
            self._ws = None
        if not self._closing:
            await self._on_close(code, reason)

    async def _write_loop(self) -> None:
        """Write queued frames in order."""
        while True:
            payload = await self._outbox.get()
            if self._ws is None:
                return
            try:
                await self._ws.send(payload)
            except websockets.ConnectionClosed:
                # Receive loop reports the close
                return
            except Exception as e:
                logger.error(f"Send error: {e}")
                await self._on_error(e)
