"""
Custody backend over the stateful SDK-style client.

Coin-scoped sub-clients are resolved once, at construction, into a read-only
registry; every call looks its coin up there instead of asking the client.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from contextlib import contextmanager
from types import MappingProxyType
from typing import Any

import httpx
from loguru import logger

from custody_gateway.backends.base import WALLET_CAPABILITIES, Capability, CustodyBackend
from custody_gateway.coins import resolve_coin_client
from custody_gateway.errors import (
    BackendError,
    DecodeError,
    HttpError,
    InvalidCoinError,
    NetworkError,
)
from custody_gateway.models import (
    BackendKind,
    CoinInfo,
    TokenBalance,
    TokenInfo,
    Transaction,
    TransactionPage,
    Wallet,
    WalletFilter,
    WalletRef,
)
from custody_gateway.normalize import (
    normalize_token_balances,
    normalize_transaction,
    normalize_transaction_page,
    normalize_wallet,
    normalize_wallet_list,
)
from custody_gateway.pagination import (
    SDK_CONTINUATION_PAGE_SIZE,
    PagePolicy,
    PageRequest,
    raise_for_cursor,
)
from custody_gateway.sdk import (
    ApiDecodeError,
    ApiResponseError,
    CoinClient,
    CustodyClient,
    SdkWallet,
    UnsupportedCoinError,
)

SDK_PAGE_POLICY = PagePolicy(max_limit=500, continuation_limit=SDK_CONTINUATION_PAGE_SIZE)


def build_coin_clients(client: CustodyClient, coins: Iterable[str]) -> Mapping[str, CoinClient]:
    """Resolve a sub-client per coin; coins the client rejects are left out."""
    registry: dict[str, CoinClient] = {}
    for coin in coins:
        try:
            registry[coin] = client.coin(coin)
        except UnsupportedCoinError as e:
            logger.warning(f"Skipping coin {coin}: {e}")
    return MappingProxyType(registry)


def _wallet_payload(wallet: SdkWallet) -> dict[str, Any]:
    # Display strings come from the SDK's formatting methods
    return {
        **wallet.to_json(),
        "balanceString": wallet.balance_string(),
        "confirmedBalanceString": wallet.confirmed_balance_string(),
        "spendableBalanceString": wallet.spendable_balance_string(),
    }


class LegacySdkAdapter(CustodyBackend):
    capabilities = WALLET_CAPABILITIES | {Capability.LIST_ALL_WALLETS}

    def __init__(
        self,
        client: CustodyClient,
        coins: Iterable[str] | None = None,
        name: str = "bitgo",
        page_policy: PagePolicy = SDK_PAGE_POLICY,
    ) -> None:
        super().__init__(name, page_policy)
        self.client = client
        self.coin_clients = build_coin_clients(
            client, coins if coins is not None else client.registry.coin_names
        )

    @property
    def kind(self) -> BackendKind:
        return BackendKind.LEGACY_SDK

    @contextmanager
    def _sdk_errors(self, page: PageRequest | None = None) -> Iterator[None]:
        """Translate SDK and transport exceptions into the typed taxonomy."""
        try:
            yield
        except BackendError:
            raise
        except UnsupportedCoinError as e:
            raise InvalidCoinError(e.coin, backend=self.name) from e
        except ApiResponseError as e:
            error = HttpError(e.status, e.body, backend=self.name)
            raise_for_cursor(error, page or PageRequest())
            raise error from e
        except ApiDecodeError as e:
            raise DecodeError(str(e), body=e.body, backend=self.name) from e
        except httpx.RequestError as e:
            raise NetworkError(f"{type(e).__name__}: {e}", backend=self.name) from e

    def _coin(self, coin: str) -> CoinClient:
        return resolve_coin_client(self.coin_clients, coin, backend=self.name)

    async def _wallet(self, coin: str, wallet_id: str, all_tokens: bool = False) -> SdkWallet:
        return await self._coin(coin).wallets().get(id=wallet_id, all_tokens=all_tokens)

    async def list_wallets(self, coin: str, filter: WalletFilter | None = None) -> list[Wallet]:
        filter = filter or WalletFilter()
        logger.info(f"Fetching wallets for coin: {coin}")
        try:
            with self._sdk_errors():
                wallets = await self._coin(coin).wallets().list(
                    enterprise=filter.enterprise, search_label=filter.search_label
                )
        except BackendError as e:
            logger.error(f"Error fetching wallets for {coin}: {e}")
            raise
        return [normalize_wallet(_wallet_payload(wallet), self.kind) for wallet in wallets]

    async def get_wallet(self, coin: str, wallet_id: str) -> Wallet:
        logger.info(f"Fetching wallet {wallet_id} for coin: {coin}")
        try:
            with self._sdk_errors():
                wallet = await self._wallet(coin, wallet_id)
        except BackendError as e:
            logger.error(f"Error fetching wallet {wallet_id}: {e}")
            raise
        return normalize_wallet(_wallet_payload(wallet), self.kind, wallet_id=wallet_id)

    async def list_transactions(
        self, coin: str, wallet_id: str, page: PageRequest | None = None
    ) -> TransactionPage:
        page = page or PageRequest()
        options: dict[str, Any] = {"limit": self.page_policy.effective_limit(page)}
        if page.cursor is not None:
            options["prevId"] = page.cursor
            options["allTokens"] = True
        logger.info(f"Fetching transactions for wallet {wallet_id} ({coin})")

        try:
            with self._sdk_errors():
                wallet = await self._wallet(coin, wallet_id)
            with self._sdk_errors(page):
                raw = await wallet.transfers(**options)
        except BackendError as e:
            logger.error(f"Error fetching transactions for wallet {wallet_id}: {e}")
            raise

        result = normalize_transaction_page(raw, self.kind, coin=coin, wallet_id=wallet_id)
        logger.info(f"Found {len(result.items)} transactions for wallet {wallet_id}")
        return result

    async def get_transaction(self, coin: str, wallet_id: str, transfer_id: str) -> Transaction:
        logger.info(f"Fetching transaction {transfer_id} for wallet {wallet_id} ({coin})")
        try:
            with self._sdk_errors():
                wallet = await self._wallet(coin, wallet_id)
                raw = await wallet.get_transfer(id=transfer_id)
        except BackendError as e:
            logger.error(f"Error fetching transaction {transfer_id}: {e}")
            raise
        ref = WalletRef(backend=self.kind.value, coin=coin, wallet_id=wallet_id)
        return normalize_transaction(raw, self.kind, wallet_ref=ref)

    async def get_wallet_tokens(self, coin: str, wallet_id: str) -> list[TokenBalance]:
        logger.info(f"Fetching tokens for wallet {wallet_id} on coin: {coin}")
        try:
            with self._sdk_errors():
                coin_client = self._coin(coin)
                wallet = await self._wallet(coin, wallet_id, all_tokens=True)
        except BackendError as e:
            logger.error(f"Error fetching tokens for wallet {wallet_id}: {e}")
            raise
        return normalize_token_balances(
            wallet.to_json(), self.kind, lookup=coin_client.get_token_config
        )

    async def get_coin_info(self, coin: str) -> CoinInfo:
        return self._coin(coin).info

    async def get_token_info(self, token_name: str) -> TokenInfo:
        with self._sdk_errors():
            return self.client.token_config(token_name)

    async def list_all_wallets(self, enterprise: str | None = None) -> list[Wallet]:
        suffix = f" for enterprise {enterprise}" if enterprise else ""
        logger.info(f"Fetching all wallets{suffix}")
        try:
            with self._sdk_errors():
                raw = await self.client.list_all_wallets(enterprise)
        except BackendError as e:
            logger.error(f"Error fetching wallets: {e}")
            raise
        wallets = normalize_wallet_list(raw, self.kind)
        logger.info(f"Found {len(wallets)} wallets")
        return wallets

    async def close(self) -> None:
        await self.client.close()
