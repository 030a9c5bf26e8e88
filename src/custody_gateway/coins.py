"""
Static coin and token table.

The custody provider's SDK ships its coin metadata locally instead of serving
it over the API; this module plays the same role for every adapter. The
registry is built once at startup and is read-only afterwards.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import TypeVar

from custody_gateway.errors import InvalidCoinError
from custody_gateway.models import CoinInfo, TokenInfo

ClientT = TypeVar("ClientT")

DEFAULT_COINS: tuple[CoinInfo, ...] = tuple(
    CoinInfo(name=name, full_name=full_name, family=family, network=network, decimals=decimals)
    for name, full_name, family, network, decimals in (
        ("btc", "Bitcoin", "btc", "mainnet", 8),
        ("tbtc", "Testnet Bitcoin", "btc", "testnet", 8),
        ("tbtc4", "Testnet4 Bitcoin", "btc", "testnet", 8),
        ("ltc", "Litecoin", "ltc", "mainnet", 8),
        ("tltc", "Testnet Litecoin", "ltc", "testnet", 8),
        ("eth", "Ethereum", "eth", "mainnet", 18),
        ("teth", "Testnet Ethereum", "eth", "testnet", 18),
        ("hteth", "Holesky Testnet Ethereum", "eth", "testnet", 18),
        ("sol", "Solana", "sol", "mainnet", 9),
        ("tsol", "Testnet Solana", "sol", "testnet", 9),
        ("xrp", "Ripple", "xrp", "mainnet", 6),
        ("txrp", "Testnet Ripple", "xrp", "testnet", 6),
    )
)

DEFAULT_TOKENS: tuple[TokenInfo, ...] = (
    TokenInfo(
        name="usdc",
        full_name="USD Coin",
        coin="eth",
        decimals=6,
        contract_address="0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48",
    ),
    TokenInfo(
        name="usdt",
        full_name="Tether USD",
        coin="eth",
        decimals=6,
        contract_address="0xdac17f958d2ee523a2206206994597c13d831ec7",
    ),
    TokenInfo(
        name="terc",
        full_name="Test ERC Token",
        coin="teth",
        decimals=0,
        contract_address="0x945ac907cf021a6bcd07852bb3b8c087051706a9",
    ),
    TokenInfo(
        name="hteth:usdc",
        full_name="Holesky Test USD Coin",
        coin="hteth",
        decimals=6,
        contract_address=None,
    ),
    TokenInfo(
        name="tsol:usdc",
        full_name="Testnet Solana USD Coin",
        coin="tsol",
        decimals=6,
        contract_address="4zMMC9srt5Ri5X14GAgXhaHii3GnPAEERYPJgZJDncDU",
    ),
)


class CoinRegistry:
    """Read-only lookup of coin and token metadata by name."""

    def __init__(
        self,
        coins: Iterable[CoinInfo] = DEFAULT_COINS,
        tokens: Iterable[TokenInfo] = DEFAULT_TOKENS,
    ) -> None:
        self._coins: Mapping[str, CoinInfo] = MappingProxyType({c.name: c for c in coins})
        self._tokens: Mapping[str, TokenInfo] = MappingProxyType({t.name: t for t in tokens})

    def coin(self, name: str) -> CoinInfo:
        try:
            return self._coins[name]
        except KeyError:
            raise InvalidCoinError(name) from None

    def token(self, name: str) -> TokenInfo:
        try:
            return self._tokens[name]
        except KeyError:
            raise InvalidCoinError(name) from None

    def is_supported(self, name: str) -> bool:
        return name in self._coins or name in self._tokens

    @property
    def coin_names(self) -> list[str]:
        return list(self._coins)

    @property
    def token_names(self) -> list[str]:
        return list(self._tokens)


def resolve_coin_client(
    registry: Mapping[str, ClientT], coin: str, backend: str | None = None
) -> ClientT:
    """Look up the coin-scoped client for ``coin``; unknown coins raise InvalidCoinError."""
    try:
        return registry[coin]
    except KeyError:
        raise InvalidCoinError(coin, backend=backend) from None
