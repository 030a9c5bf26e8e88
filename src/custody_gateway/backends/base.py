"""
Base custody backend interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import NoReturn

from custody_gateway.errors import UnsupportedOperationError
from custody_gateway.models import (
    AssetType,
    BackendKind,
    CoinInfo,
    TokenBalance,
    TokenInfo,
    Transaction,
    TransactionPage,
    TransferFilter,
    Wallet,
    WalletFilter,
)
from custody_gateway.pagination import PagePolicy, PageRequest


class Capability(str, Enum):
    LIST_WALLETS = "list_wallets"
    GET_WALLET = "get_wallet"
    LIST_TRANSACTIONS = "list_transactions"
    GET_TRANSACTION = "get_transaction"
    GET_WALLET_TOKENS = "get_wallet_tokens"
    GET_COIN_INFO = "get_coin_info"
    GET_TOKEN_INFO = "get_token_info"
    LIST_ALL_WALLETS = "list_all_wallets"
    LIST_ENTERPRISE_TRANSACTIONS = "list_enterprise_transactions"
    LIST_ASSET_TYPES = "list_asset_types"
    LIST_VAULT_WALLETS = "list_vault_wallets"
    LIST_VAULT_TRANSACTIONS = "list_vault_transactions"


WALLET_CAPABILITIES = frozenset(
    {
        Capability.LIST_WALLETS,
        Capability.GET_WALLET,
        Capability.LIST_TRANSACTIONS,
        Capability.GET_TRANSACTION,
        Capability.GET_WALLET_TOKENS,
        Capability.GET_COIN_INFO,
        Capability.GET_TOKEN_INFO,
    }
)


class CustodyBackend(ABC):
    """
    Abstract custody backend interface.

    Every capability has a default implementation that raises
    UnsupportedOperationError; a variant overrides the capabilities it lists
    in ``capabilities``. Implementations raise only BackendError subclasses.
    """

    capabilities: frozenset[Capability] = frozenset()

    def __init__(self, name: str, page_policy: PagePolicy | None = None) -> None:
        self.name = name
        self.page_policy = page_policy or PagePolicy()

    @property
    @abstractmethod
    def kind(self) -> BackendKind:
        """Payload family this backend speaks (drives normalization)"""

    def supports(self, capability: Capability) -> bool:
        return capability in self.capabilities

    def _unsupported(self, capability: Capability) -> NoReturn:
        raise UnsupportedOperationError(self.name, capability.value)

    async def list_wallets(self, coin: str, filter: WalletFilter | None = None) -> list[Wallet]:
        """List the wallets of one coin"""
        self._unsupported(Capability.LIST_WALLETS)

    async def get_wallet(self, coin: str, wallet_id: str) -> Wallet:
        """Get one wallet with its balances"""
        self._unsupported(Capability.GET_WALLET)

    async def list_transactions(
        self, coin: str, wallet_id: str, page: PageRequest | None = None
    ) -> TransactionPage:
        """Get one page of a wallet's transfers (first page when page.cursor is None)"""
        self._unsupported(Capability.LIST_TRANSACTIONS)

    async def get_transaction(self, coin: str, wallet_id: str, transfer_id: str) -> Transaction:
        """Get one transfer of a wallet"""
        self._unsupported(Capability.GET_TRANSACTION)

    async def get_wallet_tokens(self, coin: str, wallet_id: str) -> list[TokenBalance]:
        """Get the token balances held by a wallet"""
        self._unsupported(Capability.GET_WALLET_TOKENS)

    async def get_coin_info(self, coin: str) -> CoinInfo:
        """Get static metadata for a coin"""
        self._unsupported(Capability.GET_COIN_INFO)

    async def get_token_info(self, token_name: str) -> TokenInfo:
        """Get static metadata for a token"""
        self._unsupported(Capability.GET_TOKEN_INFO)

    async def list_all_wallets(self, enterprise: str | None = None) -> list[Wallet]:
        """List wallets across all coins, optionally for one enterprise"""
        self._unsupported(Capability.LIST_ALL_WALLETS)

    async def list_enterprise_transactions(
        self,
        enterprise_id: str,
        filter: TransferFilter | None = None,
        page: PageRequest | None = None,
    ) -> TransactionPage:
        """Get one page of transfers across an enterprise"""
        self._unsupported(Capability.LIST_ENTERPRISE_TRANSACTIONS)

    async def list_asset_types(self) -> list[AssetType]:
        """List the asset types the provider supports"""
        self._unsupported(Capability.LIST_ASSET_TYPES)

    async def list_vault_wallets(self, vault_id: str) -> list[Wallet]:
        """List the wallets of a vault"""
        self._unsupported(Capability.LIST_VAULT_WALLETS)

    async def list_vault_transactions(
        self, vault_id: str, page: PageRequest | None = None
    ) -> TransactionPage:
        """Get one page of a vault's transactions"""
        self._unsupported(Capability.LIST_VAULT_TRANSACTIONS)

    async def close(self) -> None:
        """Close backend connections"""
        pass
