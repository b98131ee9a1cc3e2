"""HTTP client for the Fluxez control-plane API."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import aiohttp

from .config import FluxezConfig
from .exceptions import ApiError

logger = logging.getLogger(__name__)


class HttpClient:
    """
    Minimal JSON client for the control-plane API.

    Retries network errors, timeouts, 5xx, 408 and 429 responses with
    exponential backoff, and raises ApiError on failure.
    """

    def __init__(
        self,
        config: FluxezConfig,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._config = config
        self._session = session
        self._owns_session = session is None
        self._headers = {
            "Content-Type": "application/json",
            "User-Agent": f"{config.client_name}/{config.client_version}",
            **config.auth_headers(),
        }

    def url_for(self, path: str) -> str:
        """Resolve a path against the configured base URL."""
        return f"{self._config.base_url.rstrip('/')}/{path.lstrip('/')}"

    async def get(self, path: str) -> Any:
        """Send a GET request and return the decoded body."""
        return await self.request("GET", path)

    async def post(self, path: str, json: Any = None) -> Any:
        """Send a POST request and return the decoded body."""
        return await self.request("POST", path, json=json)

    async def request(self, method: str, path: str, json: Any = None) -> Any:
        """Send a request, retrying transient failures."""
        url = self.url_for(path)
        attempt = 0

        while True:
            try:
                return await self._send(method, url, json)
            except ApiError as e:
                if not e.is_retryable or attempt >= self._config.max_retries:
                    raise
                attempt += 1
                delay = self._config.retry_delay * (2 ** (attempt - 1))
                logger.warning(
                    f"{method} {url} failed ({e.code}), "
                    f"retrying in {delay:.1f}s ({attempt}/{self._config.max_retries})"
                )
                await asyncio.sleep(delay)

    async def close(self) -> None:
        """Close the underlying session if this client created it."""
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    async def _send(self, method: str, url: str, payload: Any) -> Any:
        session = self._get_session()
        logger.debug(f"{method} {url}")
        try:
            async with session.request(method, url, json=payload, headers=self._headers) as resp:
                body = _decode(await resp.text())
                if resp.status >= 400:
                    raise ApiError.from_response(resp.status, body)
                return body
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ApiError.network(e) from e

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._config.http_timeout),
            )
            self._owns_session = True
        return self._session


def _decode(text: str) -> Any:
    """JSON body if parseable, raw text otherwise, None when empty."""
    if not text:
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text
