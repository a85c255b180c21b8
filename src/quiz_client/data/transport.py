"""Thin async HTTP client for the quiz backend."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

import httpx

__all__ = ["ApiClient", "DEFAULT_TIMEOUT_SECONDS"]

DEFAULT_TIMEOUT_SECONDS = 30.0


class ApiClient:
    """JSON-over-HTTP access to the backend rooted at ``base_url``.

    Faults are not handled here: connection problems and non-2xx statuses
    surface as :class:`httpx.HTTPError` and undecodable bodies as
    :class:`ValueError`, for the repository layer to convert.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._logger = logger or logging.getLogger(__name__)
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout_seconds,
            transport=transport,
            headers={"Accept": "application/json"},
            event_hooks={
                "request": [self._log_request],
                "response": [self._log_response],
            },
        )

    @property
    def base_url(self) -> str:
        return str(self._client.base_url)

    async def get_json(
        self, path: str, params: Optional[Mapping[str, Any]] = None
    ) -> Any:
        """GET ``path`` relative to the base URL and decode the JSON body.

        ``None`` values in ``params`` are dropped so optional filters are
        simply omitted from the query string.
        """

        query = {
            key: value
            for key, value in (params or {}).items()
            if value is not None
        }
        response = await self._client.get(path, params=query or None)
        response.raise_for_status()
        return response.json()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _log_request(self, request: httpx.Request) -> None:
        self._logger.debug(
            "HTTP request",
            extra={"method": request.method, "url": str(request.url)},
        )

    async def _log_response(self, response: httpx.Response) -> None:
        self._logger.debug(
            "HTTP response",
            extra={
                "method": response.request.method,
                "url": str(response.request.url),
                "status_code": response.status_code,
            },
        )
