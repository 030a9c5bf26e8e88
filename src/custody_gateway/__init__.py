"""
custody-gateway: one read-only query surface over several custody backends.
"""

__version__ = "0.1.0"

from custody_gateway.aggregator import aggregate, collect_wallet_balances, with_deadline
from custody_gateway.errors import (
    BackendError,
    DecodeError,
    ErrorKind,
    HttpError,
    InvalidCoinError,
    InvalidCursorError,
    NetworkError,
    UnsupportedOperationError,
    classify,
)
from custody_gateway.models import (
    AggregateResult,
    BackendKind,
    Failure,
    Success,
    Transaction,
    TransactionPage,
    Wallet,
    WalletRef,
)
from custody_gateway.pagination import PageRequest

__all__ = [
    "AggregateResult",
    "BackendError",
    "BackendKind",
    "DecodeError",
    "ErrorKind",
    "Failure",
    "HttpError",
    "InvalidCoinError",
    "InvalidCursorError",
    "NetworkError",
    "PageRequest",
    "Success",
    "Transaction",
    "TransactionPage",
    "UnsupportedOperationError",
    "Wallet",
    "WalletRef",
    "aggregate",
    "classify",
    "collect_wallet_balances",
    "with_deadline",
]
