"""
Tests for cursor pagination helpers.
"""

import pytest
from pydantic import ValidationError

from custody_gateway.errors import HttpError, InvalidCursorError, NetworkError
from custody_gateway.models import TransactionPage
from custody_gateway.pagination import (
    PagePolicy,
    PageRequest,
    after_id_cursor,
    batch_cursor,
    iterate_pages,
    raise_for_cursor,
)


class TestPageRequest:
    def test_defaults(self) -> None:
        page = PageRequest()
        assert page.limit is None
        assert page.cursor is None
        assert not page.is_continuation

    def test_rejects_non_positive_limit(self) -> None:
        with pytest.raises(ValidationError):
            PageRequest(limit=0)

    def test_rejects_empty_cursor(self) -> None:
        with pytest.raises(ValidationError):
            PageRequest(cursor="")


class TestPagePolicy:
    def test_default_and_cap(self) -> None:
        policy = PagePolicy(default_limit=25, max_limit=100)
        assert policy.effective_limit(PageRequest()) == 25
        assert policy.effective_limit(PageRequest(limit=50)) == 50
        assert policy.effective_limit(PageRequest(limit=1000)) == 100

    def test_continuation_override(self) -> None:
        policy = PagePolicy(continuation_limit=20)
        assert policy.effective_limit(PageRequest(limit=200)) == 200
        assert policy.effective_limit(PageRequest(limit=200, cursor="c1")) == 20

    def test_continuation_without_override_uses_limit(self) -> None:
        policy = PagePolicy()
        assert policy.effective_limit(PageRequest(limit=7, cursor="c1")) == 7


class TestCursorExtraction:
    def test_batch_cursor(self) -> None:
        assert batch_cursor({"nextBatchPrevId": "t42"}) == "t42"
        assert batch_cursor({"nextBatchPrevId": ""}) is None
        assert batch_cursor({}) is None
        assert batch_cursor(None) is None

    def test_after_id_cursor(self) -> None:
        raw = {"page": {"next": "https://api.example.com/v2/transactions?afterId=tx9&limit=25"}}
        assert after_id_cursor(raw) == "tx9"

    def test_after_id_cursor_absent(self) -> None:
        assert after_id_cursor({"page": {"next": None}}) is None
        assert after_id_cursor({"data": []}) is None


class TestRaiseForCursor:
    def test_400_with_cursor_becomes_invalid_cursor(self) -> None:
        with pytest.raises(InvalidCursorError) as exc_info:
            raise_for_cursor(HttpError(400, "bad prevId"), PageRequest(cursor="zzz"))
        assert exc_info.value.cursor == "zzz"

    def test_400_without_cursor_is_left_alone(self) -> None:
        raise_for_cursor(HttpError(400, "bad"), PageRequest())

    def test_other_errors_are_left_alone(self) -> None:
        raise_for_cursor(HttpError(500, "bad"), PageRequest(cursor="c"))
        raise_for_cursor(NetworkError("down"), PageRequest(cursor="c"))


class TestIteratePages:
    @pytest.mark.asyncio
    async def test_follows_cursors_until_exhausted(self) -> None:
        pages = {
            None: TransactionPage(next_cursor="c1"),
            "c1": TransactionPage(next_cursor="c2"),
            "c2": TransactionPage(next_cursor=None),
        }
        requested: list[str | None] = []

        async def fetch(page: PageRequest) -> TransactionPage:
            requested.append(page.cursor)
            return pages[page.cursor]

        results = [result async for result in iterate_pages(fetch, PageRequest(limit=5))]

        assert len(results) == 3
        assert requested == [None, "c1", "c2"]

    @pytest.mark.asyncio
    async def test_repeated_cursor_raises(self) -> None:
        async def fetch(page: PageRequest) -> TransactionPage:
            return TransactionPage(next_cursor="stuck")

        with pytest.raises(InvalidCursorError):
            async for _ in iterate_pages(fetch):
                pass
