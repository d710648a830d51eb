"""HTTP client whose requests are spaced out by a scheduler."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from .completion import CompletionHandle
from .scheduler import Scheduler

LOGGER = logging.getLogger(__name__)


class PacedClient:
    """Thin async wrapper around HTTPX that sends one request per interval."""

    def __init__(
        self,
        scheduler: Scheduler,
        *,
        base_url: str = "",
        headers: Optional[Dict[str, str]] = None,
        timeout: float = 20.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        raise_for_status: bool = True,
    ) -> None:
        self.scheduler = scheduler
        self.raise_for_status = raise_for_status
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "PacedClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    def request(self, method: str, url: str, **kwargs: Any) -> CompletionHandle[httpx.Response]:
        """Queue a request; the handle settles with the response once it is sent."""

        return self.scheduler.add(self._send, method, url, **kwargs)

    def get(self, url: str, **kwargs: Any) -> CompletionHandle[httpx.Response]:
        return self.request("GET", url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> CompletionHandle[httpx.Response]:
        return self.request("POST", url, **kwargs)

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        LOGGER.debug("Sending %s %s", method, url)
        response = await self._client.request(method, url, **kwargs)
        if self.raise_for_status:
            response.raise_for_status()
        return response


__all__ = ["PacedClient"]
