"""
Vault-oriented custody backend (Anchorage REST API).

Authenticates with an ``Api-Access-Key`` header and addresses vaults rather
than coin/wallet pairs, so only the vault capabilities are implemented.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx
from loguru import logger

from custody_gateway.backends.base import Capability, CustodyBackend
from custody_gateway.errors import BackendError
from custody_gateway.executor import DEFAULT_REQUEST_TIMEOUT, QueryValue, RequestExecutor
from custody_gateway.models import AssetType, BackendKind, TransactionPage, Wallet
from custody_gateway.normalize import (
    normalize_asset_types,
    normalize_transaction_page,
    normalize_wallet_list,
)
from custody_gateway.pagination import PagePolicy, PageRequest, raise_for_cursor

DEFAULT_API_URL = "https://api.anchorage-staging.com"

ANCHORAGE_PAGE_POLICY = PagePolicy(default_limit=25, max_limit=100)


class AnchorageAdapter(CustodyBackend):
    capabilities = frozenset(
        {
            Capability.LIST_ASSET_TYPES,
            Capability.LIST_VAULT_WALLETS,
            Capability.LIST_VAULT_TRANSACTIONS,
        }
    )

    def __init__(
        self,
        api_key: str = "",
        base_url: str = DEFAULT_API_URL,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        name: str = "anchorage",
        page_policy: PagePolicy = ANCHORAGE_PAGE_POLICY,
    ) -> None:
        super().__init__(name, page_policy)
        self.base_url = base_url.rstrip("/")
        self.executor = RequestExecutor(client, timeout=timeout, backend=name)
        self._api_key = api_key

    @property
    def kind(self) -> BackendKind:
        return BackendKind.ANCHORAGE

    async def _request(self, path: str, query: dict[str, QueryValue] | None = None) -> Any:
        headers = {"Api-Access-Key": self._api_key, "accept": "application/json"}
        return await self.executor.execute(self.base_url, path, query, headers)

    async def list_asset_types(self) -> list[AssetType]:
        logger.info("Fetching asset types from Anchorage")
        try:
            raw = await self._request("/v2/asset-types")
        except BackendError as e:
            logger.error(f"Error fetching asset types: {e}")
            raise
        asset_types = normalize_asset_types(raw)
        logger.info(f"Found {len(asset_types)} asset types")
        return asset_types

    async def list_vault_wallets(self, vault_id: str) -> list[Wallet]:
        logger.info(f"Fetching wallets for vault {vault_id} from Anchorage")
        try:
            raw = await self._request(f"/v2/vaults/{quote(vault_id, safe='')}/wallets")
        except BackendError as e:
            logger.error(f"Error fetching wallets for vault {vault_id}: {e}")
            raise
        wallets = normalize_wallet_list(raw, self.kind)
        logger.info(f"Found {len(wallets)} wallets for vault {vault_id}")
        return wallets

    async def list_vault_transactions(
        self, vault_id: str, page: PageRequest | None = None
    ) -> TransactionPage:
        page = page or PageRequest()
        logger.info(f"Fetching transactions for vault {vault_id} from Anchorage")
        try:
            raw = await self._request(
                "/v2/transactions",
                {
                    "vaultId": vault_id,
                    "limit": self.page_policy.effective_limit(page),
                    "afterId": page.cursor,
                },
            )
        except BackendError as e:
            logger.error(f"Error fetching transactions for vault {vault_id}: {e}")
            raise_for_cursor(e, page)
            raise

        result = normalize_transaction_page(raw, self.kind, wallet_id=vault_id)
        logger.info(f"Found {len(result.items)} transactions for vault {vault_id}")
        return result

    async def close(self) -> None:
        await self.executor.close()
