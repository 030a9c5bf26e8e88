"""
Error taxonomy shared by every backend adapter.

Adapters only ever raise subclasses of BackendError; raw transport and SDK
exceptions are translated at the adapter boundary.
"""

from __future__ import annotations

import asyncio
from enum import Enum

import httpx


class ErrorKind(str, Enum):
    NETWORK = "network"
    HTTP = "http"
    DECODE = "decode"
    INVALID_COIN = "invalid_coin"
    INVALID_CURSOR = "invalid_cursor"
    UNSUPPORTED_OPERATION = "unsupported_operation"
    BACKEND = "backend"


class BackendError(Exception):
    """Base exception for custody backend failures (also the catch-all kind)."""

    kind: ErrorKind = ErrorKind.BACKEND

    def __init__(
        self, message: str, kind: ErrorKind | None = None, backend: str | None = None
    ) -> None:
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind
        self.backend = backend

    def __str__(self) -> str:
        if self.backend:
            return f"[{self.backend}] {self.message}"
        return self.message


class NetworkError(BackendError):
    """The request never produced a response (DNS, timeout, connection reset)."""

    kind = ErrorKind.NETWORK


class HttpError(BackendError):
    kind = ErrorKind.HTTP

    def __init__(self, status: int, body: str, backend: str | None = None) -> None:
        super().__init__(f"HTTP {status}: {body}", backend=backend)
        self.status = status
        self.body = body


class DecodeError(BackendError):
    """A successful response whose body is not valid JSON."""

    kind = ErrorKind.DECODE

    def __init__(self, message: str, body: str = "", backend: str | None = None) -> None:
        super().__init__(message, backend=backend)
        self.body = body


class InvalidCoinError(BackendError):
    kind = ErrorKind.INVALID_COIN

    def __init__(self, coin: str, backend: str | None = None) -> None:
        super().__init__(f"Unknown coin: {coin}", backend=backend)
        self.coin = coin


class InvalidCursorError(BackendError):
    kind = ErrorKind.INVALID_CURSOR

    def __init__(self, cursor: str, reason: str = "", backend: str | None = None) -> None:
        message = f"Invalid pagination cursor: {cursor}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message, backend=backend)
        self.cursor = cursor


class UnsupportedOperationError(BackendError):
    kind = ErrorKind.UNSUPPORTED_OPERATION

    def __init__(self, backend: str, capability: str) -> None:
        super().__init__(f"Backend '{backend}' does not support {capability}", backend=backend)
        self.capability = capability


def classify(exc: BaseException) -> ErrorKind:
    """Map any exception raised by a per-target call onto an ErrorKind."""
    if isinstance(exc, BackendError):
        return exc.kind
    if isinstance(exc, (httpx.TransportError, asyncio.TimeoutError, TimeoutError)):
        return ErrorKind.NETWORK
    return ErrorKind.BACKEND
