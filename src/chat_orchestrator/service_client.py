"""HTTP client for the downstream banking services the tools call into."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """Base error for downstream service calls."""


class ServiceConfigurationError(ServiceError):
    """No base URL is configured for the requested service key."""


class ServiceRequestError(ServiceError):
    """The downstream service answered with a non-2xx status.

    ``data`` holds the decoded error body (JSON when possible, text otherwise).
    """

    def __init__(self, service: str, status_code: int, data: Any) -> None:
        self.service = service
        self.status_code = status_code
        self.data = data
        super().__init__(f"{service} responded with HTTP {status_code}")


@dataclass(frozen=True)
class UserHeaders:
    """Identity forwarded to downstream services."""

    user_id: str = "anonymous"
    email: str = ""

    def as_headers(self) -> dict[str, str]:
        return {"X-User-Id": self.user_id, "X-User-Email": self.email}


def _decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class ServiceClient:
    """
    Sends requests to downstream services keyed by name (``accountService``, ...).

    Transport errors propagate as ``httpx.HTTPError``; non-2xx answers raise
    ServiceRequestError carrying the decoded body.
    """

    def __init__(
        self,
        base_urls: Mapping[str, str],
        timeout_seconds: float = 15.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_urls = dict(base_urls)
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds)

    def _url(self, service: str, endpoint: str) -> str:
        base_url = self._base_urls.get(service)
        if not base_url:
            logger.error("Service URL not found for key: %s", service)
            raise ServiceConfigurationError(f"Configuration for service '{service}' not found")
        return f"{base_url.rstrip('/')}{endpoint}"

    async def post(self, service: str, endpoint: str, body: Any, user: UserHeaders) -> Any:
        url = self._url(service, endpoint)
        logger.info("Sending POST request to %s at %s", service, url)
        response = await self._client.post(url, json=body, headers=user.as_headers())
        return self._handle(service, response)

    async def get(self, service: str, endpoint: str, params: Mapping[str, Any], user: UserHeaders) -> Any:
        url = self._url(service, endpoint)
        logger.info("Sending GET request to %s at %s", service, url)
        response = await self._client.get(url, params=dict(params), headers=user.as_headers())
        return self._handle(service, response)

    @staticmethod
    def _handle(service: str, response: httpx.Response) -> Any:
        data = _decode_body(response)
        if response.is_success:
            return data
        logger.error("Error communicating with %s: HTTP %d", service, response.status_code)
        raise ServiceRequestError(service, response.status_code, data)

    async def aclose(self) -> None:
        await self._client.aclose()
