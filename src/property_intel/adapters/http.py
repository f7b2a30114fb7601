from __future__ import annotations

from abc import abstractmethod
from typing import Any, Optional, Tuple

import httpx

from ..errors import AdapterError, ErrorKind
from ..models import ProviderDescriptor, Query
from ..payloads import Payload
from .base import ProviderAdapter
from .http_client import AsyncJsonClient, RetryConfig


class HttpJsonAdapter(ProviderAdapter):
    """Adapter backed by one JSON HTTP request per fetch."""

    method = "GET"

    def __init__(
        self,
        descriptor: ProviderDescriptor,
        *,
        retries: int = 1,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        client: Optional[AsyncJsonClient] = None,
    ):
        super().__init__(descriptor)
        self.client = client or AsyncJsonClient(
            timeout=descriptor.timeout,
            retry_config=RetryConfig(retries=retries),
            transport=transport,
        )

    @abstractmethod
    def build_request(self, query: Query) -> Tuple[str, Optional[Any]]:
        """Return (url, body) for the query."""

    @abstractmethod
    def parse(self, data: Any, query: Query) -> Payload:
        raise NotImplementedError

    async def fetch(self, query: Query) -> Payload:
        url, body = self.build_request(query)
        data = await self.client.request_json(url, method=self.method, data=body, provider=self.name)
        try:
            payload = self.parse(data, query)
        except AdapterError as exc:
            if exc.provider is None:
                exc.provider = self.name
            raise
        except (KeyError, IndexError, TypeError, ValueError, AttributeError) as exc:
            raise AdapterError(
                ErrorKind.INVALID_RESPONSE, f"unparseable response: {exc}", provider=self.name
            ) from exc
        return self.check_payload(payload)
