import asyncio
import logging
from typing import Any, Dict, Optional

import httpx

from config import StartGGCredentials
from query import StartGGError, auth_headers

logger = logging.getLogger(__name__)


class StartGGClient:
    """Async start.gg GraphQL transport.

    Same retry policy as `query.run_query`, but non-blocking so several
    head-to-head fetches can be in flight at once. Pass `http` to share or
    mock the underlying httpx client.
    """

    def __init__(
        self,
        credentials: StartGGCredentials,
        *,
        http: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
        max_retries: int = 5,
        rate_limit_base_sleep: float = 30.0,
        unavailable_sleep: float = 60.0,
        connection_retry_sleep: float = 30.0,
    ):
        self._creds = credentials
        self._http = http or httpx.AsyncClient(timeout=timeout)
        self._owns_http = http is None
        self._max_retries = max_retries
        self._rate_limit_base_sleep = rate_limit_base_sleep
        self._unavailable_sleep = unavailable_sleep
        self._connection_retry_sleep = connection_retry_sleep

    async def __aenter__(self) -> "StartGGClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def execute(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        rate_limited = 0
        unavailable = 0
        connection_failures = 0
        while True:
            try:
                response = await self._http.post(
                    self._creds.api_url,
                    json={"query": query, "variables": variables},
                    headers=auth_headers(self._creds),
                )
            except httpx.TransportError as err:
                connection_failures += 1
                if connection_failures > self._max_retries:
                    raise StartGGError(f"Max connection retries reached: {err}") from err
                logger.warning(
                    "Connection error (%s), retrying (%s/%s) in %.1fs",
                    type(err).__name__,
                    connection_failures,
                    self._max_retries,
                    self._connection_retry_sleep,
                )
                await asyncio.sleep(self._connection_retry_sleep)
                continue

            if response.status_code == 200:
                return response.json()
            if response.status_code == 429 and rate_limited < self._max_retries:
                sleep_time = self._rate_limit_base_sleep * (2 ** rate_limited)
                rate_limited += 1
                logger.warning("Rate limit exceeded. Waiting %.1fs before retrying...", sleep_time)
                await asyncio.sleep(sleep_time)
                continue
            if response.status_code == 503 and unavailable < self._max_retries:
                unavailable += 1
                logger.warning("Service unavailable. Waiting %.1fs before retrying...", self._unavailable_sleep)
                await asyncio.sleep(self._unavailable_sleep)
                continue
            raise StartGGError(f"Query failed to run with a status code of {response.status_code}.")
