"""
Custody backend talking to the provider's REST API directly (no SDK).
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx
from loguru import logger

from custody_gateway.backends.base import WALLET_CAPABILITIES, Capability, CustodyBackend
from custody_gateway.coins import CoinRegistry
from custody_gateway.errors import BackendError, InvalidCoinError
from custody_gateway.executor import DEFAULT_REQUEST_TIMEOUT, QueryValue, RequestExecutor
from custody_gateway.models import (
    BackendKind,
    CoinInfo,
    TokenBalance,
    TokenInfo,
    Transaction,
    TransactionPage,
    TransferFilter,
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
from custody_gateway.pagination import PagePolicy, PageRequest, raise_for_cursor

DEFAULT_API_URL = "https://app.bitgo-test.com/api/v2"

# Enterprise transfer listing accepts 1-500 results and defaults to 500
ENTERPRISE_PAGE_POLICY = PagePolicy(default_limit=500, max_limit=500)


def encode_path(*segments: str) -> str:
    """Join path segments, URL-encoding each one (``/`` included)."""
    return "".join(f"/{quote(segment, safe='')}" for segment in segments)


class DirectRestAdapter(CustodyBackend):
    capabilities = WALLET_CAPABILITIES | {
        Capability.LIST_ALL_WALLETS,
        Capability.LIST_ENTERPRISE_TRANSACTIONS,
    }

    def __init__(
        self,
        access_token: str = "",
        base_url: str = DEFAULT_API_URL,
        registry: CoinRegistry | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        name: str = "bitgo-no-sdk",
        page_policy: PagePolicy | None = None,
    ) -> None:
        super().__init__(name, page_policy)
        self.base_url = base_url.rstrip("/")
        self.registry = registry or CoinRegistry()
        self.executor = RequestExecutor(client, timeout=timeout, backend=name)
        self._access_token = access_token

    @property
    def kind(self) -> BackendKind:
        return BackendKind.DIRECT_REST

    async def _request(self, path: str, query: dict[str, QueryValue] | None = None) -> Any:
        headers = {"Authorization": f"Bearer {self._access_token}"}
        return await self.executor.execute(self.base_url, path, query, headers)

    async def list_wallets(self, coin: str, filter: WalletFilter | None = None) -> list[Wallet]:
        filter = filter or WalletFilter()
        logger.info(f"Fetching wallets for coin: {coin}")
        try:
            raw = await self._request(
                encode_path(coin, "wallet"),
                {"enterprise": filter.enterprise, "searchLabel": filter.search_label},
            )
        except BackendError as e:
            logger.error(f"Error fetching wallets for {coin}: {e}")
            raise
        return normalize_wallet_list(raw, self.kind)

    async def get_wallet(self, coin: str, wallet_id: str) -> Wallet:
        logger.info(f"Fetching wallet {wallet_id} for coin: {coin}")
        try:
            raw = await self._request(encode_path(coin, "wallet", wallet_id))
        except BackendError as e:
            logger.error(f"Error fetching wallet {wallet_id}: {e}")
            raise
        return normalize_wallet(raw, self.kind, wallet_id=wallet_id)

    async def get_wallet_tokens(self, coin: str, wallet_id: str) -> list[TokenBalance]:
        logger.info(f"Fetching tokens for wallet {wallet_id} on coin: {coin}")
        try:
            raw = await self._request(
                encode_path(coin, "wallet", wallet_id),
                {"allTokens": True, "includeBalance": True},
            )
        except BackendError as e:
            logger.error(f"Error fetching tokens for wallet {wallet_id}: {e}")
            raise
        return normalize_token_balances(raw, self.kind, lookup=self.registry.token)

    async def list_transactions(
        self, coin: str, wallet_id: str, page: PageRequest | None = None
    ) -> TransactionPage:
        page = page or PageRequest()
        logger.info(f"Fetching transactions for wallet {wallet_id} ({coin})")
        try:
            raw = await self._request(
                encode_path(coin, "wallet", wallet_id, "transfer"),
                {"limit": self.page_policy.effective_limit(page), "prevId": page.cursor},
            )
        except BackendError as e:
            logger.error(f"Error fetching transactions for wallet {wallet_id}: {e}")
            raise_for_cursor(e, page)
            raise

        result = normalize_transaction_page(raw, self.kind, coin=coin, wallet_id=wallet_id)
        logger.info(f"Found {len(result.items)} transactions for wallet {wallet_id}")
        return result

    async def get_transaction(self, coin: str, wallet_id: str, transfer_id: str) -> Transaction:
        logger.info(f"Fetching transaction {transfer_id} for wallet {wallet_id} ({coin})")
        try:
            raw = await self._request(
                encode_path(coin, "wallet", wallet_id, "transfer", transfer_id)
            )
        except BackendError as e:
            logger.error(f"Error fetching transaction {transfer_id}: {e}")
            raise
        ref = WalletRef(backend=self.kind.value, coin=coin, wallet_id=wallet_id)
        return normalize_transaction(raw, self.kind, wallet_ref=ref)

    async def get_coin_info(self, coin: str) -> CoinInfo:
        try:
            return self.registry.coin(coin)
        except InvalidCoinError:
            raise InvalidCoinError(coin, backend=self.name) from None

    async def get_token_info(self, token_name: str) -> TokenInfo:
        try:
            return self.registry.token(token_name)
        except InvalidCoinError:
            raise InvalidCoinError(token_name, backend=self.name) from None

    async def list_all_wallets(self, enterprise: str | None = None) -> list[Wallet]:
        suffix = f" for enterprise {enterprise}" if enterprise else ""
        logger.info(f"Fetching all wallets{suffix}")
        try:
            raw = await self._request("/wallets", {"enterprise": enterprise})
        except BackendError as e:
            logger.error(f"Error fetching wallets: {e}")
            raise
        wallets = normalize_wallet_list(raw, self.kind)
        logger.info(f"Found {len(wallets)} wallets")
        return wallets

    async def list_enterprise_transactions(
        self,
        enterprise_id: str,
        filter: TransferFilter | None = None,
        page: PageRequest | None = None,
    ) -> TransactionPage:
        filter = filter or TransferFilter()
        page = page or PageRequest()
        query: dict[str, QueryValue] = {
            "coin": list(filter.coins),
            "state": list(filter.states),
            "type": filter.type,
            "address": list(filter.addresses),
            "dateGte": filter.date_gte,
            "dateLt": filter.date_lt,
            "id": filter.id,
            "txid": filter.txid,
            "limit": ENTERPRISE_PAGE_POLICY.effective_limit(page),
            "prevId": page.cursor,
        }
        logger.info(f"Fetching transactions for enterprise {enterprise_id}")
        try:
            raw = await self._request(encode_path("enterprise", enterprise_id, "transfer"), query)
        except BackendError as e:
            logger.error(f"Error fetching transactions for enterprise {enterprise_id}: {e}")
            raise_for_cursor(e, page)
            raise
        return normalize_transaction_page(raw, self.kind)

    async def close(self) -> None:
        await self.executor.close()
