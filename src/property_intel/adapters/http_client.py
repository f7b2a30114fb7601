from __future__ import annotations

import asyncio
import json
import logging
import os
import random
from typing import Any, Callable, Dict, Optional

import httpx

from ..errors import AdapterError, ErrorKind

logger = logging.getLogger("pi.http")

RETRY_STATUS = {429, 500, 502, 503, 504}
USER_AGENT = "property-intel/0.1 (+open-data aggregation)"


class RetryConfig:
    def __init__(self, retries=1, base_delay=0.2, factor=2.0, jitter=0.1):
        self.retries = retries
        self.base_delay = base_delay
        self.factor = factor
        self.jitter = jitter


def compute_backoff_delays(
    retries, base_delay=0.2, factor=2.0, jitter=0.1, rand_fn=None
):
    delays = []
    current = base_delay
    rand_fn = rand_fn or random.random
    for _ in range(retries):
        noise = (rand_fn() * 2 - 1) * jitter
        delays.append(max(0.0, current + noise))
        current *= factor
    return delays


class AsyncJsonClient:
    """Small JSON-over-HTTP client that maps failures onto `ErrorKind`.

    A fresh `httpx.AsyncClient` is opened per request so the client can be
    shared across event loops and concurrent aggregations.
    """

    def __init__(
        self,
        timeout: float = 10.0,
        retry_config: Optional[RetryConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep_fn: Optional[Callable[[float], Any]] = None,
    ):
        self.timeout = timeout
        self.retry_config = retry_config or RetryConfig()
        self.transport = transport
        self._sleep = sleep_fn or asyncio.sleep

    def _client(self) -> httpx.AsyncClient:
        use_no_proxy = (
            os.environ.get("NO_PROXY_LOOKUP") == "1"
            or os.environ.get("CI") == "1"
        )
        return httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            trust_env=not use_no_proxy,
            transport=self.transport,
            headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
        )

    async def request_json(
        self,
        url: str,
        *,
        method: str = "GET",
        data: Optional[Any] = None,
        provider: Optional[str] = None,
    ) -> Any:
        delays = compute_backoff_delays(
            self.retry_config.retries,
            self.retry_config.base_delay,
            self.retry_config.factor,
            self.retry_config.jitter,
        )
        attempts = len(delays) + 1
        last_error: Optional[AdapterError] = None
        async with self._client() as client:
            for attempt in range(attempts):
                try:
                    response = await client.request(method, url, data=data)
                except httpx.TimeoutException as exc:
                    raise AdapterError(ErrorKind.TIMEOUT, f"timeout: {exc}", provider=provider) from exc
                except httpx.HTTPError as exc:
                    last_error = AdapterError(
                        ErrorKind.UNAVAILABLE, f"transport error: {exc}", provider=provider
                    )
                    if attempt < len(delays):
                        await self._sleep(delays[attempt])
                    continue
                status = response.status_code
                if status in RETRY_STATUS and attempt < len(delays):
                    logger.debug("retrying %s after HTTP %s", provider or url, status)
                    await self._sleep(delays[attempt])
                    continue
                if status >= 400:
                    raise AdapterError(ErrorKind.UNAVAILABLE, f"HTTP {status}", provider=provider)
                try:
                    return response.json()
                except (json.JSONDecodeError, UnicodeDecodeError) as exc:
                    raise AdapterError(
                        ErrorKind.INVALID_RESPONSE, f"invalid JSON: {exc}", provider=provider
                    ) from exc
        if last_error is None:
            last_error = AdapterError(ErrorKind.UNAVAILABLE, "retries exhausted", provider=provider)
        raise last_error


def require(data: Dict[str, Any], *keys: str, provider: Optional[str] = None) -> Any:
    """Walk nested keys, raising INVALID_RESPONSE when one is missing."""

    node: Any = data
    for key in keys:
        if not isinstance(node, dict) or key not in node:
            path = ".".join(keys)
            raise AdapterError(ErrorKind.INVALID_RESPONSE, f"missing field {path}", provider=provider)
        node = node[key]
    return node
