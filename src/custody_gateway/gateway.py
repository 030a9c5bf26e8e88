"""
Facade over the configured custody backends.

This is the surface outer code (HTTP routes, the CLI) calls into.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from contextlib import AsyncExitStack
from types import TracebackType

import httpx
from loguru import logger

from custody_gateway.aggregator import aggregate, collect_wallet_balances
from custody_gateway.backends import (
    AnchorageAdapter,
    CustodyBackend,
    DirectRestAdapter,
    LegacySdkAdapter,
)
from custody_gateway.coins import CoinRegistry
from custody_gateway.config import Settings
from custody_gateway.errors import UnsupportedOperationError
from custody_gateway.models import AggregateResult, WalletFilter
from custody_gateway.pagination import SDK_CONTINUATION_PAGE_SIZE, PagePolicy
from custody_gateway.sdk import CustodyClient


class CustodyGateway:
    def __init__(self, backends: Mapping[str, CustodyBackend]) -> None:
        self.backends = dict(backends)

    @classmethod
    def from_settings(
        cls, settings: Settings, client: httpx.AsyncClient | None = None
    ) -> CustodyGateway:
        """Build the SDK, direct REST and vault backends from settings."""
        registry = CoinRegistry()
        page_size = settings.transaction_page_size

        sdk_client = CustodyClient(
            access_token=settings.access_token,
            env=settings.bitgo_env,
            coins=registry,
            client=client,
            timeout=settings.request_timeout,
        )
        backends: list[CustodyBackend] = [
            LegacySdkAdapter(
                sdk_client,
                page_policy=PagePolicy(
                    default_limit=page_size, continuation_limit=SDK_CONTINUATION_PAGE_SIZE
                ),
            ),
            DirectRestAdapter(
                access_token=settings.access_token,
                base_url=settings.bitgo_api_url,
                registry=registry,
                client=client,
                timeout=settings.request_timeout,
                page_policy=PagePolicy(default_limit=page_size),
            ),
            AnchorageAdapter(
                api_key=settings.anchorage_api_key,
                base_url=settings.anchorage_api_url,
                client=client,
                timeout=settings.request_timeout,
            ),
        ]
        if not settings.access_token:
            logger.warning("ACCESS_TOKEN is not set; provider requests will be unauthenticated")
        return cls({backend.name: backend for backend in backends})

    @property
    def names(self) -> list[str]:
        return list(self.backends)

    def backend(self, name: str) -> CustodyBackend:
        try:
            return self.backends[name]
        except KeyError:
            raise UnsupportedOperationError(name, "any operation (unknown backend)") from None

    async def balances(
        self, backend: str, coins: Sequence[str], filter: WalletFilter | None = None
    ) -> AggregateResult:
        return await collect_wallet_balances(self.backend(backend), coins, filter)

    async def vault_wallets(
        self, vault_ids: Sequence[str], backend: str = "anchorage"
    ) -> AggregateResult:
        adapter = self.backend(backend)
        return await aggregate(vault_ids, adapter.list_vault_wallets)

    async def close(self) -> None:
        """Close every backend; a failing close does not skip the others."""
        async with AsyncExitStack() as stack:
            for backend in self.backends.values():
                stack.push_async_callback(backend.close)

    async def __aenter__(self) -> CustodyGateway:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()
