"""
Stateful SDK-style client for the custody provider.

Mirrors the shape of the provider's own SDK: a root client hands out
coin-scoped sub-clients (``client.coin("tbtc")``), which in turn expose
``wallets().get/list`` and wallet objects with ``transfers()`` and
``get_transfer()``. Errors are the SDK's own; the adapter wrapping this
client translates them.
"""

from __future__ import annotations

import json
from typing import Any
from urllib.parse import quote

import httpx
from loguru import logger

from custody_gateway.coins import CoinRegistry
from custody_gateway.errors import InvalidCoinError
from custody_gateway.models import CoinInfo, TokenInfo

SDK_ENVIRONMENTS: dict[str, str] = {
    "test": "https://app.bitgo-test.com",
    "prod": "https://app.bitgo.com",
}

DEFAULT_SDK_TIMEOUT = 30.0


class SdkError(Exception):
    pass


class UnsupportedCoinError(SdkError):
    def __init__(self, coin: str) -> None:
        super().__init__(f"Coin or token type {coin} not supported or not compiled")
        self.coin = coin


class ApiResponseError(SdkError):
    def __init__(self, status: int, body: str) -> None:
        super().__init__(f"{status} {body}")
        self.status = status
        self.body = body


class ApiDecodeError(SdkError):
    def __init__(self, message: str, body: str) -> None:
        super().__init__(message)
        self.body = body


class CustodyClient:
    def __init__(
        self,
        access_token: str = "",
        env: str = "test",
        coins: CoinRegistry | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_SDK_TIMEOUT,
    ) -> None:
        if env not in SDK_ENVIRONMENTS:
            raise ValueError(f"Unknown SDK environment: {env}")
        self.env = env
        self.root_url = SDK_ENVIRONMENTS[env]
        self.registry = coins or CoinRegistry()
        self._access_token = access_token
        self._owns_client = client is None
        self.http = client or httpx.AsyncClient(timeout=timeout)
        self.timeout = timeout
        self._coin_clients: dict[str, CoinClient] = {}

    def url(self, path: str, version: int = 2) -> str:
        return f"{self.root_url}/api/v{version}{path}"

    async def get(self, url: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """
        GET a provider URL and return its JSON object.

        Raises ApiResponseError on non-2xx and ApiDecodeError when the body is
        not a JSON object.
        """
        params = {key: value for key, value in (params or {}).items() if value is not None}
        headers = {"Authorization": f"Bearer {self._access_token}"}
        logger.debug(f"SDK request: {url}")
        try:
            response = await self.http.get(
                url, params=params, headers=headers, timeout=self.timeout
            )
        except httpx.DecodingError as e:
            raise ApiDecodeError(f"Undecodable response body from {url}: {e}", "") from e
        if not response.is_success:
            raise ApiResponseError(response.status_code, response.text)
        try:
            data = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ApiDecodeError(f"Invalid JSON from {url}: {e}", response.text) from e
        if not isinstance(data, dict):
            raise ApiDecodeError(
                f"Expected a JSON object from {url}, got {type(data).__name__}", response.text
            )
        return data

    def coin(self, name: str) -> CoinClient:
        """Coin-scoped sub-client; unknown coins raise UnsupportedCoinError."""
        if name not in self._coin_clients:
            try:
                info = self.registry.coin(name)
            except InvalidCoinError:
                raise UnsupportedCoinError(name) from None
            self._coin_clients[name] = CoinClient(self, info)
        return self._coin_clients[name]

    def token_config(self, name: str) -> TokenInfo:
        try:
            return self.registry.token(name)
        except InvalidCoinError:
            raise UnsupportedCoinError(name) from None

    async def list_all_wallets(self, enterprise: str | None = None) -> dict[str, Any]:
        return await self.get(self.url("/wallets"), {"enterprise": enterprise})

    async def close(self) -> None:
        if self._owns_client:
            await self.http.aclose()


class CoinClient:
    def __init__(self, client: CustodyClient, info: CoinInfo) -> None:
        self.client = client
        self.info = info

    @property
    def name(self) -> str:
        return self.info.name

    def url(self, path: str) -> str:
        return self.client.url(f"/{self.name}{path}")

    def wallets(self) -> Wallets:
        return Wallets(self)

    def get_token_config(self, symbol: str) -> TokenInfo:
        return self.client.token_config(symbol)


class Wallets:
    def __init__(self, coin: CoinClient) -> None:
        self.coin = coin

    async def get(self, id: str, all_tokens: bool = False) -> SdkWallet:
        url = self.coin.url(f"/wallet/{quote(id, safe='')}")
        data = await self.coin.client.get(url, {"allTokens": True if all_tokens else None})
        return SdkWallet(self.coin, data)

    async def list(
        self, enterprise: str | None = None, search_label: str | None = None
    ) -> list[SdkWallet]:
        data = await self.coin.client.get(
            self.coin.url("/wallet"), {"enterprise": enterprise, "searchLabel": search_label}
        )
        items = data.get("wallets")
        if not isinstance(items, list):
            return []
        return [SdkWallet(self.coin, item) for item in items if isinstance(item, dict)]


class SdkWallet:
    """A wallet object as handed out by the SDK; its raw data stays private."""

    def __init__(self, coin: CoinClient, data: dict[str, Any]) -> None:
        self.coin = coin
        self._wallet = data

    def id(self) -> str:
        return str(self._wallet.get("id") or "")

    def label(self) -> str | None:
        return self._wallet.get("label")

    def balance_string(self) -> str | None:
        return self._wallet.get("balanceString")

    def confirmed_balance_string(self) -> str | None:
        return self._wallet.get("confirmedBalanceString")

    def spendable_balance_string(self) -> str | None:
        return self._wallet.get("spendableBalanceString")

    def to_json(self) -> dict[str, Any]:
        return dict(self._wallet)

    def _path(self, *segments: str) -> str:
        return "/wallet/" + "/".join(quote(segment, safe="") for segment in segments)

    async def transfers(self, **options: Any) -> dict[str, Any]:
        return await self.coin.client.get(self.coin.url(self._path(self.id(), "transfer")), options)

    async def get_transfer(self, id: str) -> dict[str, Any]:
        return await self.coin.client.get(self.coin.url(self._path(self.id(), "transfer", id)))
