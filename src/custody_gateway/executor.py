"""
HTTP request executor shared by the REST-style adapters.

One attempt per call, no retries. Every failure leaves as a typed
BackendError subclass.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

import httpx
from loguru import logger

from custody_gateway import __version__
from custody_gateway.errors import DecodeError, HttpError, NetworkError

# Timeout for a single backend call (seconds)
DEFAULT_REQUEST_TIMEOUT = 30.0

DEFAULT_HEADERS: dict[str, str] = {
    "Accept": "application/json",
    "Content-Type": "application/json",
    "User-Agent": f"custody-gateway/{__version__}",
}

QueryValue = str | int | float | bool | None | list[str] | tuple[str, ...]


def merge_headers(caller: Mapping[str, str] | None) -> dict[str, str]:
    """
    Overlay caller headers on the defaults.

    A caller header replaces a default with the same (case-insensitive) name;
    caller headers keep their own order and spelling.
    """
    caller = caller or {}
    overridden = {name.lower() for name in caller}
    merged = {
        name: value for name, value in DEFAULT_HEADERS.items() if name.lower() not in overridden
    }
    merged.update(caller)
    return merged


def encode_query(query: Mapping[str, QueryValue] | None) -> list[tuple[str, str]]:
    params: list[tuple[str, str]] = []
    for key, value in (query or {}).items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            params.extend((key, str(item)) for item in value)
        elif isinstance(value, bool):
            params.append((key, "true" if value else "false"))
        else:
            params.append((key, str(value)))
    return params


class RequestExecutor:
    """
    Performs authenticated GET requests against a REST custody provider.

    The httpx client may be injected (tests pass one built on
    httpx.MockTransport); otherwise the executor owns its own client. The
    timeout is applied per request, so it also bounds an injected client.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        backend: str | None = None,
    ) -> None:
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout)
        self.timeout = timeout
        self.backend = backend

    async def execute(
        self,
        base_url: str,
        path: str,
        query: Mapping[str, QueryValue] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        """
        Issue one GET request and return the decoded JSON body.

        Args:
            base_url: Provider root, e.g. https://app.bitgo-test.com/api/v2
            path: Already-encoded path starting with "/"
            query: Query parameters (None values are dropped)
            headers: Caller headers, merged over DEFAULT_HEADERS

        Raises:
            NetworkError: The request never got a response
            HttpError: Non-2xx status, with the raw response text
            DecodeError: The body could not be decoded, or is not JSON
        """
        url = f"{base_url.rstrip('/')}{path}"
        params = encode_query(query)
        logger.debug(f"Making request to: {url}")

        try:
            response = await self.client.get(
                url, params=params, headers=merge_headers(headers), timeout=self.timeout
            )
        except httpx.DecodingError as e:
            logger.error(f"Undecodable response body from {url}: {e}")
            raise DecodeError(
                f"Undecodable response body from {url}: {e}", backend=self.backend
            ) from e
        except httpx.RequestError as e:
            logger.error(f"Request to {url} failed: {type(e).__name__}: {e}")
            raise NetworkError(
                f"Request to {url} failed: {type(e).__name__}: {e}", backend=self.backend
            ) from e

        if not response.is_success:
            body = response.text
            logger.error(f"API Error: {response.status_code} - {body}")
            raise HttpError(response.status_code, body, backend=self.backend)

        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.error(f"Malformed JSON from {url}: {e}")
            raise DecodeError(
                f"Malformed JSON from {url}: {e}", body=response.text, backend=self.backend
            ) from e

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()
