"""
Tests for the direct REST custody adapter.
"""

from typing import Any

import httpx
import pytest

from custody_gateway.backends.base import Capability
from custody_gateway.backends.direct_rest import DirectRestAdapter, encode_path
from custody_gateway.errors import DecodeError, HttpError, InvalidCoinError, InvalidCursorError
from custody_gateway.models import BackendKind, TransferFilter
from custody_gateway.pagination import PageRequest, iterate_pages

BASE_URL = "https://app.bitgo-test.com/api/v2"


def make_adapter(client: httpx.AsyncClient) -> DirectRestAdapter:
    return DirectRestAdapter(access_token="tok", base_url=BASE_URL, client=client)


def transfers(*ids: str, cursor: str | None = None) -> dict[str, Any]:
    body: dict[str, Any] = {"coin": "tbtc", "transfers": [{"id": tx_id} for tx_id in ids]}
    if cursor:
        body["nextBatchPrevId"] = cursor
    return body


def test_encode_path() -> None:
    assert encode_path("tbtc", "wallet", "a/b c") == "/tbtc/wallet/a%2Fb%20c"


def test_capabilities() -> None:
    adapter = DirectRestAdapter()
    assert adapter.kind == BackendKind.DIRECT_REST
    assert adapter.name == "bitgo-no-sdk"
    assert adapter.supports(Capability.LIST_ENTERPRISE_TRANSACTIONS)
    assert not adapter.supports(Capability.LIST_ASSET_TYPES)


class TestWallets:
    @pytest.mark.asyncio
    async def test_get_wallet_encodes_path_segments(
        self, sample_wallet_data: dict[str, Any]
    ) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=sample_wallet_data)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            wallet = await make_adapter(client).get_wallet("tbtc", "a/b c")

        assert wallet.label == "Treasury"
        assert seen[0].url.raw_path.startswith(b"/api/v2/tbtc/wallet/a%2Fb%20c")
        assert seen[0].headers["Authorization"] == "Bearer tok"

    @pytest.mark.asyncio
    async def test_not_found_keeps_body(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, text="wallet not found")

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(HttpError) as exc_info:
                await make_adapter(client).get_wallet("tbtc", "missing")

        assert exc_info.value.status == 404
        assert exc_info.value.body == "wallet not found"
        assert exc_info.value.backend == "bitgo-no-sdk"

    @pytest.mark.asyncio
    async def test_list_all_wallets(self, sample_wallet_data: dict[str, Any]) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"wallets": [sample_wallet_data, sample_wallet_data]})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            wallets = await make_adapter(client).list_all_wallets("ent1")

        assert len(wallets) == 2
        assert seen[0].url.path == "/api/v2/wallets"
        assert seen[0].url.params["enterprise"] == "ent1"

    @pytest.mark.asyncio
    async def test_get_wallet_without_id_uses_requested_id(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"label": "No id", "coin": "tbtc"})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            wallet = await make_adapter(client).get_wallet("tbtc", "w42")

        assert wallet.id == "w42"
        assert wallet.label == "No id"

    @pytest.mark.asyncio
    async def test_corrupt_gzip_body_is_a_decode_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, headers={"Content-Encoding": "gzip"}, content=b"not gzip")

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(DecodeError):
                await make_adapter(client).get_wallet("tbtc", "w1")

    @pytest.mark.asyncio
    async def test_wallet_tokens_array_shape(self) -> None:
        seen: list[httpx.Request] = []
        payload = {
            "id": "w1",
            "coin": "teth",
            "tokens": [
                {"token": "terc", "balance": "3", "balanceString": "3"},
                {"token": "unlisted", "balanceString": "9"},
            ],
        }

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=payload)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            tokens = await make_adapter(client).get_wallet_tokens("teth", "w1")

        assert seen[0].url.params["allTokens"] == "true"
        assert seen[0].url.params["includeBalance"] == "true"
        assert [t.symbol for t in tokens] == ["terc", "unlisted"]
        assert tokens[0].token_config is not None
        assert tokens[1].token_config is None


class TestTransactions:
    @pytest.mark.asyncio
    async def test_pages_do_not_overlap(self) -> None:
        requests: list[httpx.Request] = []
        pages = {
            None: transfers("t5", "t4", cursor="t4"),
            "t4": transfers("t3", "t2", cursor="t2"),
            "t2": transfers("t1"),
        }

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json=pages[request.url.params.get("prevId")])

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            adapter = make_adapter(client)

            async def fetch(page: PageRequest) -> Any:
                return await adapter.list_transactions("tbtc", "w1", page)

            ids = [
                tx.id
                async for result in iterate_pages(fetch, PageRequest(limit=2))
                for tx in result.items
            ]

        assert ids == ["t5", "t4", "t3", "t2", "t1"]
        assert len(set(ids)) == len(ids)
        assert [r.url.params["limit"] for r in requests] == ["2", "2", "2"]
        assert requests[0].url.path == "/api/v2/tbtc/wallet/w1/transfer"

    @pytest.mark.asyncio
    async def test_invalid_cursor(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, text='{"error":"invalid prevId"}')

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            adapter = make_adapter(client)
            with pytest.raises(InvalidCursorError) as exc_info:
                await adapter.list_transactions("tbtc", "w1", PageRequest(cursor="bogus"))
            assert exc_info.value.cursor == "bogus"

            with pytest.raises(HttpError):
                await adapter.list_transactions("tbtc", "w1")

    @pytest.mark.asyncio
    async def test_get_transaction(self, sample_transfer_data: dict[str, Any]) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=sample_transfer_data)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            tx = await make_adapter(client).get_transaction("tbtc", "w1", "tr1")

        assert seen[0].url.path == "/api/v2/tbtc/wallet/w1/transfer/tr1"
        assert tx.wallet_ref is not None
        assert tx.wallet_ref.wallet_id == "w1"

    @pytest.mark.asyncio
    async def test_enterprise_transactions_query(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=transfers("e1"))

        filter = TransferFilter(coins=["tbtc", "teth"], states=["confirmed"], type="send")
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            page = await make_adapter(client).list_enterprise_transactions("ent1", filter)

        params = seen[0].url.params
        assert seen[0].url.path == "/api/v2/enterprise/ent1/transfer"
        assert params.get_list("coin") == ["tbtc", "teth"]
        assert params["state"] == "confirmed"
        assert params["type"] == "send"
        assert params["limit"] == "500"
        assert "prevId" not in params
        assert [tx.id for tx in page.items] == ["e1"]


class TestStatics:
    @pytest.mark.asyncio
    async def test_coin_info(self) -> None:
        adapter = DirectRestAdapter()
        assert (await adapter.get_coin_info("teth")).decimals == 18
        with pytest.raises(InvalidCoinError) as exc_info:
            await adapter.get_coin_info("unknownCoin")
        assert exc_info.value.backend == "bitgo-no-sdk"

    @pytest.mark.asyncio
    async def test_token_info(self) -> None:
        adapter = DirectRestAdapter()
        assert (await adapter.get_token_info("terc")).coin == "teth"
        with pytest.raises(InvalidCoinError):
            await adapter.get_token_info("nope")
