from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx


class JsonHttpClient:
    """
    Minimal JSON-over-HTTP client shared by the upstream adapters.

    - Every request is bounded by a timeout (read + connect).
    - get_json() retries transport failures and non-2xx responses with
      exponential backoff: backoff_base_s * 2**attempt between attempts.
      Pass retries=1 for a single attempt (listing pages are not retried).
    """

    def __init__(
        self,
        *,
        timeout_s: float = 10.0,
        connect_timeout_s: float = 5.0,
        user_agent: str = "api-dex-sync/0.1",
        max_retries: int = 3,
        backoff_base_s: float = 0.5,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        logger: logging.Logger | None = None,
    ) -> None:
        self._max_retries = max(1, int(max_retries))
        self._backoff_base_s = float(backoff_base_s)
        self._sleep = sleep
        self._logger = logger or logging.getLogger(self.__class__.__name__)
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_s, connect=connect_timeout_s),
            headers={"User-Agent": user_agent, "Accept": "application/json"},
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get_json(
        self,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        retries: Optional[int] = None,
    ) -> Any:
        attempts = self._max_retries if retries is None else max(1, int(retries))

        attempt = 0
        while True:
            try:
                r = await self._client.get(url, params=params)
                r.raise_for_status()
                return r.json()
            except (httpx.TransportError, httpx.HTTPStatusError) as exc:
                self._logger.warning(
                    "GET %s failed (attempt %s/%s): %s",
                    url,
                    attempt + 1,
                    attempts,
                    exc,
                )
                if attempt >= attempts - 1:
                    raise
            await self._sleep(self._backoff_base_s * (2 ** attempt))
            attempt += 1
