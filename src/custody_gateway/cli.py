"""
Custody gateway CLI - query wallets, transfers and balances across custody backends.
"""

from __future__ import annotations

import asyncio
import json
import sys
from collections.abc import Awaitable, Callable
from typing import Any

import typer
from loguru import logger
from pydantic import BaseModel

from custody_gateway.config import get_settings
from custody_gateway.errors import BackendError
from custody_gateway.gateway import CustodyGateway
from custody_gateway.models import TransactionPage, WalletFilter
from custody_gateway.pagination import PageRequest, iterate_pages

app = typer.Typer(
    name="custody-gateway",
    help="Unified read-only access to custody providers",
    add_completion=False,
)

BACKEND_HELP = "Backend: bitgo | bitgo-no-sdk | anchorage"


def setup_logging(level: str = "INFO") -> None:
    """Configure loguru logging."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
    )


def build_gateway() -> CustodyGateway:
    return CustodyGateway.from_settings(get_settings())


def _dump(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, list | tuple):
        return [_dump(item) for item in value]
    return value


def _run(call: Callable[[CustodyGateway], Awaitable[Any]], log_level: str) -> None:
    setup_logging(log_level)

    async def _helper() -> Any:
        async with build_gateway() as gateway:
            return await call(gateway)

    try:
        result = asyncio.run(_helper())
    except BackendError as e:
        logger.error(f"{e.kind.value}: {e}")
        raise typer.Exit(1) from None

    typer.echo(json.dumps(_dump(result), indent=2))


def _page(limit: int | None, cursor: str | None) -> PageRequest:
    return PageRequest(limit=limit, cursor=cursor or None)


async def _collect_pages(
    fetch: Callable[[PageRequest], Awaitable[TransactionPage]], first: PageRequest
) -> list[Any]:
    items: list[Any] = []
    async for result in iterate_pages(fetch, first):
        items.extend(result.items)
    return items


@app.command()
def wallets(
    coin: str = typer.Argument(..., help="Coin symbol, e.g. tbtc"),
    backend: str = typer.Option("bitgo", "--backend", "-b", help=BACKEND_HELP),
    enterprise: str | None = typer.Option(None, "--enterprise", "-e"),
    label: str | None = typer.Option(None, "--label", help="Search wallets by label"),
    log_level: str = typer.Option("INFO", "--log-level", "-l"),
) -> None:
    """List the wallets of one coin."""
    filter = WalletFilter(enterprise=enterprise, search_label=label)
    _run(lambda gw: gw.backend(backend).list_wallets(coin, filter), log_level)


@app.command()
def all_wallets(
    backend: str = typer.Option("bitgo", "--backend", "-b", help=BACKEND_HELP),
    enterprise: str | None = typer.Option(None, "--enterprise", "-e"),
    log_level: str = typer.Option("INFO", "--log-level", "-l"),
) -> None:
    """List wallets across every coin."""
    _run(lambda gw: gw.backend(backend).list_all_wallets(enterprise), log_level)


@app.command()
def wallet(
    coin: str = typer.Argument(...),
    wallet_id: str = typer.Argument(...),
    backend: str = typer.Option("bitgo", "--backend", "-b", help=BACKEND_HELP),
    log_level: str = typer.Option("INFO", "--log-level", "-l"),
) -> None:
    """Show one wallet with its balances."""
    _run(lambda gw: gw.backend(backend).get_wallet(coin, wallet_id), log_level)


@app.command()
def tokens(
    coin: str = typer.Argument(...),
    wallet_id: str = typer.Argument(...),
    backend: str = typer.Option("bitgo", "--backend", "-b", help=BACKEND_HELP),
    log_level: str = typer.Option("INFO", "--log-level", "-l"),
) -> None:
    """Show the token balances held by a wallet."""
    _run(lambda gw: gw.backend(backend).get_wallet_tokens(coin, wallet_id), log_level)


@app.command()
def transactions(
    coin: str = typer.Argument(...),
    wallet_id: str = typer.Argument(...),
    limit: int | None = typer.Option(None, "--limit", "-n", min=1),
    cursor: str | None = typer.Option(None, "--cursor", "-c", help="Cursor of a previous page"),
    all_pages: bool = typer.Option(False, "--all", help="Follow cursors until exhausted"),
    backend: str = typer.Option("bitgo", "--backend", "-b", help=BACKEND_HELP),
    log_level: str = typer.Option("INFO", "--log-level", "-l"),
) -> None:
    """List a wallet's transfers, one page or all of them."""

    async def fetch(gw: CustodyGateway) -> Any:
        adapter = gw.backend(backend)

        async def one(page: PageRequest) -> TransactionPage:
            return await adapter.list_transactions(coin, wallet_id, page)

        if all_pages:
            return await _collect_pages(one, _page(limit, cursor))
        return await one(_page(limit, cursor))

    _run(fetch, log_level)


@app.command()
def transaction(
    coin: str = typer.Argument(...),
    wallet_id: str = typer.Argument(...),
    transfer_id: str = typer.Argument(...),
    backend: str = typer.Option("bitgo", "--backend", "-b", help=BACKEND_HELP),
    log_level: str = typer.Option("INFO", "--log-level", "-l"),
) -> None:
    """Show one transfer of a wallet."""
    _run(
        lambda gw: gw.backend(backend).get_transaction(coin, wallet_id, transfer_id),
        log_level,
    )


@app.command()
def balances(
    coins: str | None = typer.Option(
        None, "--coins", help="Comma-separated coins (default: DEFAULT_COINS)"
    ),
    backend: str = typer.Option("bitgo", "--backend", "-b", help=BACKEND_HELP),
    enterprise: str | None = typer.Option(None, "--enterprise", "-e"),
    log_level: str = typer.Option("INFO", "--log-level", "-l"),
) -> None:
    """Fetch wallet balances for several coins concurrently."""
    if coins:
        coin_list = [coin.strip() for coin in coins.split(",") if coin.strip()]
    else:
        coin_list = get_settings().get_default_coins()
    filter = WalletFilter(enterprise=enterprise)
    _run(lambda gw: gw.balances(backend, coin_list, filter), log_level)


@app.command()
def coin_info(
    coin: str = typer.Argument(...),
    backend: str = typer.Option("bitgo", "--backend", "-b", help=BACKEND_HELP),
    log_level: str = typer.Option("INFO", "--log-level", "-l"),
) -> None:
    """Show static metadata for a coin."""
    _run(lambda gw: gw.backend(backend).get_coin_info(coin), log_level)


@app.command()
def token_info(
    token: str = typer.Argument(...),
    backend: str = typer.Option("bitgo", "--backend", "-b", help=BACKEND_HELP),
    log_level: str = typer.Option("INFO", "--log-level", "-l"),
) -> None:
    """Show static metadata for a token."""
    _run(lambda gw: gw.backend(backend).get_token_info(token), log_level)


@app.command()
def asset_types(
    backend: str = typer.Option("anchorage", "--backend", "-b", help=BACKEND_HELP),
    log_level: str = typer.Option("INFO", "--log-level", "-l"),
) -> None:
    """List the asset types a vault provider supports."""
    _run(lambda gw: gw.backend(backend).list_asset_types(), log_level)


@app.command()
def vault_wallets(
    vault_ids: list[str] = typer.Argument(..., help="One or more vault ids"),
    backend: str = typer.Option("anchorage", "--backend", "-b", help=BACKEND_HELP),
    log_level: str = typer.Option("INFO", "--log-level", "-l"),
) -> None:
    """List the wallets of one or more vaults concurrently."""
    _run(lambda gw: gw.vault_wallets(vault_ids, backend), log_level)


@app.command()
def vault_transactions(
    vault_id: str = typer.Argument(...),
    limit: int | None = typer.Option(None, "--limit", "-n", min=1),
    cursor: str | None = typer.Option(None, "--cursor", "-c"),
    all_pages: bool = typer.Option(False, "--all", help="Follow cursors until exhausted"),
    backend: str = typer.Option("anchorage", "--backend", "-b", help=BACKEND_HELP),
    log_level: str = typer.Option("INFO", "--log-level", "-l"),
) -> None:
    """List a vault's transactions."""

    async def fetch(gw: CustodyGateway) -> Any:
        adapter = gw.backend(backend)

        async def one(page: PageRequest) -> TransactionPage:
            return await adapter.list_vault_transactions(vault_id, page)

        if all_pages:
            return await _collect_pages(one, _page(limit, cursor))
        return await one(_page(limit, cursor))

    _run(fetch, log_level)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
