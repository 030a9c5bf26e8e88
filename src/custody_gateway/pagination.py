"""
Cursor pagination for transaction listings.

Cursors are opaque: they are read from one response and handed back
unchanged on the next request.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import httpx
from loguru import logger
from pydantic import BaseModel, Field

from custody_gateway.errors import BackendError, HttpError, InvalidCursorError
from custody_gateway.models import TransactionPage

DEFAULT_PAGE_SIZE = 25

# Continuation pages on the SDK backend are always fetched 20 at a time
SDK_CONTINUATION_PAGE_SIZE = 20


class PageRequest(BaseModel):
    limit: int | None = Field(default=None, ge=1)
    cursor: str | None = Field(default=None, min_length=1)

    model_config = {"frozen": True}

    @property
    def is_continuation(self) -> bool:
        return self.cursor is not None


@dataclass(frozen=True)
class PagePolicy:
    """Page-size negotiation rules of one backend."""

    default_limit: int = DEFAULT_PAGE_SIZE
    max_limit: int = 500
    continuation_limit: int | None = None

    def effective_limit(self, page: PageRequest) -> int:
        if page.is_continuation and self.continuation_limit is not None:
            return self.continuation_limit
        return min(page.limit or self.default_limit, self.max_limit)


def batch_cursor(raw: Any) -> str | None:
    """Next cursor of a transfer listing (``nextBatchPrevId``)."""
    if not isinstance(raw, dict):
        return None
    cursor = raw.get("nextBatchPrevId")
    return str(cursor) if cursor else None


def after_id_cursor(raw: Any) -> str | None:
    """Next cursor of a vault listing: the ``afterId`` parameter of ``page.next``."""
    if not isinstance(raw, dict):
        return None
    page = raw.get("page")
    if not isinstance(page, dict) or not page.get("next"):
        return None
    try:
        cursor = httpx.URL(str(page["next"])).params.get("afterId")
    except httpx.InvalidURL:
        logger.warning(f"Unparseable next-page link: {page['next']}")
        return None
    return cursor or None


def raise_for_cursor(exc: BackendError, page: PageRequest) -> None:
    """Re-raise a 400 answer to a continuation request as InvalidCursorError."""
    if page.cursor is not None and isinstance(exc, HttpError) and exc.status == 400:
        raise InvalidCursorError(page.cursor, reason=exc.body, backend=exc.backend) from exc


async def iterate_pages(
    fetch: Callable[[PageRequest], Awaitable[TransactionPage]],
    first: PageRequest | None = None,
) -> AsyncIterator[TransactionPage]:
    """
    Walk every page, feeding each ``next_cursor`` into the following request.

    Raises:
        InvalidCursorError: The backend handed back the cursor it was given
    """
    page = first or PageRequest()
    while True:
        result = await fetch(page)
        yield result
        if result.next_cursor is None:
            return
        if result.next_cursor == page.cursor:
            raise InvalidCursorError(result.next_cursor, reason="backend repeated the cursor")
        logger.debug(f"Following cursor {result.next_cursor}")
        page = PageRequest(limit=page.limit, cursor=result.next_cursor)
