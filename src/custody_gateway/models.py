"""
Normalized data models returned by every backend adapter.

All models are frozen pydantic models: they are read-only projections of
remote state, built fresh per request.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field, computed_field

from custody_gateway.errors import ErrorKind


class BackendKind(str, Enum):
    LEGACY_SDK = "legacy_sdk"
    DIRECT_REST = "direct_rest"
    ANCHORAGE = "anchorage"


class TransactionState(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"
    UNKNOWN = "unknown"


class WalletRef(BaseModel):
    backend: str
    coin: str
    wallet_id: str

    model_config = {"frozen": True}


class Wallet(BaseModel):
    """
    A custody wallet with its balances.

    Integer balances are minor units (None when the backend only reports
    formatted amounts). Display strings are the provider's own formatting.
    """

    id: str
    label: str | None = None
    coin: str | None = None
    balance: int | None = None
    confirmed_balance: int | None = None
    spendable_balance: int | None = None
    balance_display: str | None = None
    confirmed_balance_display: str | None = None
    spendable_balance_display: str | None = None

    model_config = {"frozen": True}


class LedgerEntry(BaseModel):
    address: str | None = None
    value: int | None = None
    value_display: str | None = None
    wallet: str | None = None

    model_config = {"frozen": True}


class Transaction(BaseModel):
    id: str
    coin: str | None = None
    wallet_ref: WalletRef | None = None
    chain_tx_id: str | None = None
    block_height: int | None = None
    block_height_id: str | None = None
    timestamp: datetime | None = None
    confirmations: int | None = None
    value: int | None = None
    value_display: str | None = None
    fee_display: str | None = None
    pay_go_fee_display: str | None = None
    fiat_value: float | None = None
    fiat_rate: float | None = None
    state: TransactionState = TransactionState.UNKNOWN
    tags: frozenset[str] = Field(default_factory=frozenset)
    history: tuple[dict[str, Any], ...] = ()
    comment: str | None = None
    entries: tuple[LedgerEntry, ...] = ()

    model_config = {"frozen": True}


class TransactionPage(BaseModel):
    coin: str | None = None
    wallet_id: str | None = None
    items: tuple[Transaction, ...] = ()
    next_cursor: str | None = None

    model_config = {"frozen": True}


class CoinInfo(BaseModel):
    name: str
    full_name: str
    family: str
    network: Literal["mainnet", "testnet"]
    decimals: int = Field(..., ge=0)

    model_config = {"frozen": True}


class TokenInfo(BaseModel):
    name: str
    full_name: str
    coin: str
    decimals: int = Field(..., ge=0)
    contract_address: str | None = None

    model_config = {"frozen": True}


class TokenBalance(BaseModel):
    symbol: str
    balance: int | None = None
    balance_display: str | None = None
    token_config: TokenInfo | None = None

    model_config = {"frozen": True}


class AssetType(BaseModel):
    asset_type: str
    name: str | None = None
    network_id: str | None = None
    decimals: int | None = None

    model_config = {"frozen": True}


class WalletFilter(BaseModel):
    enterprise: str | None = None
    search_label: str | None = None

    model_config = {"frozen": True}


class TransferFilter(BaseModel):
    """Filters for enterprise-wide transfer listing."""

    coins: tuple[str, ...] = ()
    states: tuple[str, ...] = ()
    type: Literal["send", "receive"] | None = None
    addresses: tuple[str, ...] = ()
    date_gte: str | None = None
    date_lt: str | None = None
    id: str | None = None
    txid: str | None = None

    model_config = {"frozen": True}


class Success(BaseModel):
    status: Literal["success"] = "success"
    target: str
    value: Any
    count: int = Field(default=1, ge=0)

    model_config = {"frozen": True}


class Failure(BaseModel):
    """A failed per-target call; carries zero-valued accounting fields."""

    status: Literal["failure"] = "failure"
    target: str
    error_kind: ErrorKind
    message: str
    count: int = 0
    items: tuple[Any, ...] = ()

    model_config = {"frozen": True}


class AggregateResult(BaseModel):
    """Per-target outcomes in the order the targets were requested."""

    per_target: list[Success | Failure] = Field(default_factory=list)

    model_config = {"frozen": True}

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_succeeded(self) -> int:
        return sum(1 for result in self.per_target if isinstance(result, Success))

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_failed(self) -> int:
        return len(self.per_target) - self.total_succeeded

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_items(self) -> int:
        return sum(result.count for result in self.per_target)

    @property
    def successes(self) -> list[Success]:
        return [result for result in self.per_target if isinstance(result, Success)]

    @property
    def failures(self) -> list[Failure]:
        return [result for result in self.per_target if isinstance(result, Failure)]

    def targets(self) -> Sequence[str]:
        return [result.target for result in self.per_target]
