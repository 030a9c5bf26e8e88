"""
Normalization of provider payloads into the stable result models.

Every function here is pure and tolerant: absent optional fields map to None
or an empty collection, and no amount is ever converted between units.
Display strings are passed through exactly as the provider formatted them.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from loguru import logger

from custody_gateway.models import (
    AssetType,
    BackendKind,
    LedgerEntry,
    TokenBalance,
    TokenInfo,
    Transaction,
    TransactionPage,
    TransactionState,
    Wallet,
    WalletRef,
)
from custody_gateway.pagination import after_id_cursor, batch_cursor

TokenLookup = Callable[[str], TokenInfo | None]

_STATE_MAP: dict[str, TransactionState] = {
    "confirmed": TransactionState.CONFIRMED,
    "completed": TransactionState.CONFIRMED,
    "unconfirmed": TransactionState.PENDING,
    "signed": TransactionState.PENDING,
    "pendingapproval": TransactionState.PENDING,
    "initialized": TransactionState.PENDING,
    "pending": TransactionState.PENDING,
    "processing": TransactionState.PENDING,
    "failed": TransactionState.FAILED,
    "rejected": TransactionState.FAILED,
    "removed": TransactionState.FAILED,
    "canceled": TransactionState.FAILED,
}


def _dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _str(value: Any) -> str | None:
    if value is None or isinstance(value, (dict, list)):
        return None
    return str(value)


def _int(value: Any) -> int | None:
    """Integer minor units from an int, an integral float or a digit string."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _timestamp(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.debug(f"Ignoring unparseable timestamp: {value}")
        return None


def _list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def map_state(value: Any) -> TransactionState:
    if not isinstance(value, str):
        return TransactionState.UNKNOWN
    return _STATE_MAP.get(value.lower(), TransactionState.UNKNOWN)


# Wallets


def normalize_wallet(raw: Any, kind: BackendKind, wallet_id: str | None = None) -> Wallet:
    """Map one wallet payload; ``wallet_id`` fills in an id the payload omits."""
    raw = _dict(raw)
    if kind is BackendKind.ANCHORAGE:
        assets = [_dict(asset) for asset in _list(raw.get("assets"))]
        first = assets[0] if assets else {}
        return Wallet(
            id=_str(raw.get("walletId")) or wallet_id or "",
            label=_str(raw.get("walletName")),
            coin=_str(raw.get("networkId")) or _str(first.get("assetType")),
            balance_display=_str(_dict(first.get("totalBalance")).get("quantity")),
            spendable_balance_display=_str(_dict(first.get("availableBalance")).get("quantity")),
        )

    return Wallet(
        id=_str(raw.get("id")) or wallet_id or "",
        label=_str(raw.get("label")),
        coin=_str(raw.get("coin")),
        balance=_int(raw.get("balance")),
        confirmed_balance=_int(raw.get("confirmedBalance")),
        spendable_balance=_int(raw.get("spendableBalance")),
        balance_display=_str(raw.get("balanceString")),
        confirmed_balance_display=_str(raw.get("confirmedBalanceString")),
        spendable_balance_display=_str(raw.get("spendableBalanceString")),
    )


def normalize_wallet_list(raw: Any, kind: BackendKind) -> list[Wallet]:
    if isinstance(raw, list):
        items = raw
    elif kind is BackendKind.ANCHORAGE:
        items = _list(_dict(raw).get("data"))
    else:
        items = _list(_dict(raw).get("wallets"))
    return [normalize_wallet(item, kind) for item in items if isinstance(item, dict)]


# Transactions


def _ledger_entry(raw: Any) -> LedgerEntry:
    raw = _dict(raw)
    return LedgerEntry(
        address=_str(raw.get("address")),
        value=_int(raw.get("value")),
        value_display=_str(raw.get("valueString")),
        wallet=_str(raw.get("wallet")),
    )


def normalize_transaction(
    raw: Any, kind: BackendKind, wallet_ref: WalletRef | None = None
) -> Transaction:
    raw = _dict(raw)

    if kind is BackendKind.ANCHORAGE:
        amount = _dict(raw.get("amount"))
        return Transaction(
            id=_str(raw.get("transactionId")) or "",
            coin=_str(raw.get("assetType")) or _str(amount.get("assetType")),
            wallet_ref=wallet_ref,
            chain_tx_id=_str(raw.get("blockchainTxId")),
            timestamp=_timestamp(raw.get("createdAt")),
            value_display=_str(amount.get("quantity")),
            fee_display=_str(_dict(raw.get("fee")).get("quantity")),
            fiat_value=_float(amount.get("currentUSDValue")),
            fiat_rate=_float(amount.get("currentPrice")),
            state=map_state(raw.get("status")),
            comment=_str(raw.get("memo")),
        )

    coin = _str(raw.get("coin"))
    wallet_id = _str(raw.get("wallet"))
    if wallet_ref is None and coin and wallet_id:
        wallet_ref = WalletRef(backend=kind.value, coin=coin, wallet_id=wallet_id)

    return Transaction(
        id=_str(raw.get("id")) or "",
        coin=coin,
        wallet_ref=wallet_ref,
        chain_tx_id=_str(raw.get("txid")),
        block_height=_int(raw.get("height")),
        block_height_id=_str(raw.get("heightId")),
        timestamp=_timestamp(raw.get("date")),
        confirmations=_int(raw.get("confirmations")),
        value=_int(raw.get("value")),
        value_display=_str(raw.get("valueString")),
        fee_display=_str(raw.get("feeString")),
        pay_go_fee_display=_str(raw.get("payGoFeeString")),
        fiat_value=_float(raw.get("usd")),
        fiat_rate=_float(raw.get("usdRate")),
        state=map_state(raw.get("state")),
        tags=frozenset(tag for tag in _list(raw.get("tags")) if isinstance(tag, str)),
        history=tuple(event for event in _list(raw.get("history")) if isinstance(event, dict)),
        comment=_str(raw.get("comment")),
        entries=tuple(_ledger_entry(entry) for entry in _list(raw.get("entries"))),
    )


def normalize_transaction_page(
    raw: Any,
    kind: BackendKind,
    coin: str | None = None,
    wallet_id: str | None = None,
) -> TransactionPage:
    """Normalize one listing page, keeping the backend's item order."""
    raw = _dict(raw)
    if kind is BackendKind.ANCHORAGE:
        items = _list(raw.get("data"))
        cursor = after_id_cursor(raw)
    else:
        items = _list(raw.get("transfers"))
        cursor = batch_cursor(raw)
        coin = coin or _str(raw.get("coin"))

    return TransactionPage(
        coin=coin,
        wallet_id=wallet_id,
        items=tuple(normalize_transaction(item, kind) for item in items if isinstance(item, dict)),
        next_cursor=cursor,
    )


# Token reports


@dataclass(frozen=True)
class TokenListReport:
    """Current API generation: ``tokens`` is an array of token objects."""

    entries: list[dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class TokenMapReport:
    """Legacy SDK generation: ``tokens`` maps token symbol to its balances."""

    entries: dict[str, dict[str, Any]] = field(default_factory=dict)


TokenReport = TokenListReport | TokenMapReport


def parse_token_report(raw: Any, kind: BackendKind) -> TokenReport:
    tokens = _dict(raw).get("tokens")
    if kind is BackendKind.LEGACY_SDK:
        if tokens is not None and not isinstance(tokens, dict):
            logger.warning(f"Expected a token map from {kind.value}, got {type(tokens).__name__}")
        return TokenMapReport(
            entries={
                str(symbol): entry
                for symbol, entry in _dict(tokens).items()
                if isinstance(entry, dict)
            }
        )

    if tokens is not None and not isinstance(tokens, list):
        logger.warning(f"Expected a token array from {kind.value}, got {type(tokens).__name__}")
    return TokenListReport(entries=[entry for entry in _list(tokens) if isinstance(entry, dict)])


def _safe_lookup(lookup: TokenLookup | None, symbol: str) -> TokenInfo | None:
    if lookup is None:
        return None
    try:
        return lookup(symbol)
    except Exception as e:
        logger.warning(f"Token config lookup failed for {symbol}: {e}")
        return None


def _token_balance(symbol: str, entry: dict[str, Any], lookup: TokenLookup | None) -> TokenBalance:
    return TokenBalance(
        symbol=symbol,
        balance=_int(entry.get("balance")),
        balance_display=_str(entry.get("balanceString")),
        token_config=_safe_lookup(lookup, symbol),
    )


def normalize_token_balances(
    raw: Any, kind: BackendKind, lookup: TokenLookup | None = None
) -> list[TokenBalance]:
    """
    Fold either token-report shape into an ordered list of TokenBalance.

    ``lookup`` resolves a token's chain configuration; a failing lookup leaves
    ``token_config`` as None instead of failing the whole report.
    """
    report = parse_token_report(raw, kind)
    if isinstance(report, TokenMapReport):
        return [
            _token_balance(symbol, entry, lookup) for symbol, entry in report.entries.items()
        ]

    balances = []
    for entry in report.entries:
        symbol = _str(entry.get("token"))
        if not symbol:
            logger.debug(f"Skipping token entry without a symbol: {entry}")
            continue
        balances.append(_token_balance(symbol, entry, lookup))
    return balances


# Vault asset types


def normalize_asset_types(raw: Any) -> list[AssetType]:
    if isinstance(raw, list):
        items = raw
    else:
        envelope = _dict(raw)
        items = _list(envelope.get("data")) or _list(envelope.get("assetTypes"))

    asset_types = []
    for item in items:
        item = _dict(item)
        asset_type = _str(item.get("assetType"))
        if not asset_type:
            continue
        asset_types.append(
            AssetType(
                asset_type=asset_type,
                name=_str(item.get("name")),
                network_id=_str(item.get("networkId")),
                decimals=_int(item.get("decimals")),
            )
        )
    return asset_types
