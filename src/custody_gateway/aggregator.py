"""
Concurrent fan-out of one logical query over many targets.

Every target runs as its own task; failures are captured per target and never
abort the batch. Results come back in the order the targets were given.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence, Sized
from typing import TYPE_CHECKING, Any

from loguru import logger

from custody_gateway.errors import NetworkError, classify
from custody_gateway.models import AggregateResult, Failure, Success, WalletFilter

if TYPE_CHECKING:
    from custody_gateway.backends.base import CustodyBackend

PerTargetCall = Callable[[str], Awaitable[Any]]


def _default_count(value: Any) -> int:
    return len(value) if isinstance(value, Sized) and not isinstance(value, str) else 1


async def aggregate(
    targets: Sequence[str],
    call: PerTargetCall,
    count: Callable[[Any], int] | None = None,
) -> AggregateResult:
    """
    Run ``call(target)`` for every target concurrently and fold the outcomes.

    Args:
        targets: Targets in the order results must come back in
        call: Per-target coroutine function
        count: Item count of a successful value (defaults to len() for sized values)

    Returns:
        AggregateResult with one Success or Failure per target, in input order
    """
    targets = list(targets)
    count = count or _default_count

    async def run(target: str) -> Any:
        return await call(target)

    logger.debug(f"Fanning out over {len(targets)} targets: {', '.join(targets)}")
    outcomes = await asyncio.gather(*(run(target) for target in targets), return_exceptions=True)

    per_target: list[Success | Failure] = []
    for target, outcome in zip(targets, outcomes, strict=True):
        if isinstance(outcome, Exception):
            logger.warning(f"Failed to fetch {target}: {outcome}")
            per_target.append(
                Failure(
                    target=target,
                    error_kind=classify(outcome),
                    message=str(outcome) or type(outcome).__name__,
                )
            )
        elif isinstance(outcome, BaseException):
            raise outcome
        else:
            per_target.append(Success(target=target, value=outcome, count=count(outcome)))

    result = AggregateResult(per_target=per_target)
    logger.info(
        f"Aggregated {len(targets)} targets: {result.total_succeeded} succeeded, "
        f"{result.total_failed} failed, {result.total_items} items"
    )
    return result


def with_deadline(call: PerTargetCall, seconds: float) -> PerTargetCall:
    """Bound each per-target call; an expired deadline fails as a NetworkError."""

    async def bounded(target: str) -> Any:
        try:
            return await asyncio.wait_for(call(target), timeout=seconds)
        except TimeoutError as e:
            raise NetworkError(f"No response for {target} within {seconds}s") from e

    return bounded


async def collect_wallet_balances(
    backend: CustodyBackend,
    coins: Sequence[str],
    filter: WalletFilter | None = None,
    deadline: float | None = None,
) -> AggregateResult:
    """Wallets (with balances) for every coin, one Success/Failure per coin."""
    logger.info(f"Fetching wallet balances for coins: {', '.join(coins)}")

    async def wallets_for(coin: str) -> Any:
        return await backend.list_wallets(coin, filter)

    call = with_deadline(wallets_for, deadline) if deadline is not None else wallets_for
    return await aggregate(coins, call)
