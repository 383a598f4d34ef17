from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from .config import settings
from .errors import (
    AuthorizationExpired,
    ConnectionRefused,
    EndpointNotFound,
    PermissionDenied,
    RequestTimeout,
    ServerError,
    TransportError,
    UnknownTransportError,
)


logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = settings.request_timeout_seconds


def classify_error(exc: BaseException) -> TransportError:
    """Map an httpx failure onto the diagnostic categories shown to users."""
    if isinstance(exc, TransportError):
        return exc
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        if status == 401:
            return AuthorizationExpired()
        if status == 403:
            return PermissionDenied()
        if status == 404:
            return EndpointNotFound()
        return ServerError(status)
    if isinstance(exc, httpx.TimeoutException):
        return RequestTimeout()
    if isinstance(exc, httpx.ConnectError):
        return ConnectionRefused()
    return UnknownTransportError(str(exc) or type(exc).__name__)


class Transport:
    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = REQUEST_TIMEOUT,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        # URLs are joined per request so an unconfigured host only fails when used.
        self._client = httpx.AsyncClient(timeout=timeout, transport=http_transport)

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def is_closed(self) -> bool:
        return self._client.is_closed

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        try:
            resp = await self._client.request(
                method, f"{self._base_url}{path}", params=params, headers=headers, json=json
            )
            resp.raise_for_status()
            return resp
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            err = classify_error(e)
            logger.debug("%s %s failed: %s", method, path, err.message)
            raise err from e

    async def aclose(self) -> None:
        await self._client.aclose()
