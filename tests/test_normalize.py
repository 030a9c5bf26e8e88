"""
Tests for payload normalization.
"""

from datetime import UTC, datetime
from typing import Any

from custody_gateway.errors import InvalidCoinError
from custody_gateway.models import BackendKind, TokenInfo, TransactionState, WalletRef
from custody_gateway.normalize import (
    TokenListReport,
    TokenMapReport,
    map_state,
    normalize_asset_types,
    normalize_token_balances,
    normalize_transaction,
    normalize_transaction_page,
    normalize_wallet,
    normalize_wallet_list,
    parse_token_report,
)

TERC = TokenInfo(name="terc", full_name="Test ERC Token", coin="teth", decimals=0)


def lookup(symbol: str) -> TokenInfo:
    if symbol == "terc":
        return TERC
    raise InvalidCoinError(symbol)


class TestMapState:
    def test_known_states(self) -> None:
        assert map_state("confirmed") == TransactionState.CONFIRMED
        assert map_state("completed") == TransactionState.CONFIRMED
        assert map_state("unconfirmed") == TransactionState.PENDING
        assert map_state("pendingApproval") == TransactionState.PENDING
        assert map_state("failed") == TransactionState.FAILED
        assert map_state("removed") == TransactionState.FAILED

    def test_case_insensitive(self) -> None:
        assert map_state("COMPLETED") == TransactionState.CONFIRMED

    def test_unknown(self) -> None:
        assert map_state("teleported") == TransactionState.UNKNOWN
        assert map_state(None) == TransactionState.UNKNOWN
        assert map_state(3) == TransactionState.UNKNOWN


class TestNormalizeWallet:
    def test_sdk_wallet(self, sample_wallet_data: dict[str, Any]) -> None:
        wallet = normalize_wallet(sample_wallet_data, BackendKind.LEGACY_SDK)
        assert wallet.id == sample_wallet_data["id"]
        assert wallet.label == "Treasury"
        assert wallet.coin == "tbtc"
        assert wallet.balance == 150000
        assert wallet.spendable_balance == 140000
        assert wallet.spendable_balance_display == "140000"

    def test_display_strings_pass_through_unchanged(self) -> None:
        wallet = normalize_wallet(
            {"id": "w", "balance": 10**20, "balanceString": "100000000000000000000"},
            BackendKind.DIRECT_REST,
        )
        assert wallet.balance == 10**20
        assert wallet.balance_display == "100000000000000000000"

    def test_requested_id_fills_a_missing_id(self) -> None:
        wallet = normalize_wallet({"label": "x"}, BackendKind.DIRECT_REST, wallet_id="w9")
        assert wallet.id == "w9"
        kept = normalize_wallet({"id": "w1"}, BackendKind.DIRECT_REST, wallet_id="w9")
        assert kept.id == "w1"

    def test_missing_optionals_are_none(self) -> None:
        wallet = normalize_wallet({"id": "w1"}, BackendKind.DIRECT_REST)
        assert wallet.label is None
        assert wallet.balance is None
        assert wallet.confirmed_balance_display is None

    def test_vault_wallet(self, sample_vault_wallet_data: dict[str, Any]) -> None:
        wallet = normalize_wallet(sample_vault_wallet_data, BackendKind.ANCHORAGE)
        assert wallet.id == "vw1"
        assert wallet.label == "Cold storage"
        assert wallet.coin == "BTC_T"
        assert wallet.balance is None
        assert wallet.balance_display == "1.5"
        assert wallet.spendable_balance_display == "1.25"

    def test_wallet_list_envelopes(self, sample_wallet_data: dict[str, Any]) -> None:
        wallets = normalize_wallet_list({"wallets": [sample_wallet_data]}, BackendKind.DIRECT_REST)
        assert len(wallets) == 1
        assert normalize_wallet_list({"data": []}, BackendKind.ANCHORAGE) == []
        assert normalize_wallet_list({}, BackendKind.LEGACY_SDK) == []


class TestNormalizeTransaction:
    def test_transfer_fields(self, sample_transfer_data: dict[str, Any]) -> None:
        tx = normalize_transaction(sample_transfer_data, BackendKind.DIRECT_REST)
        assert tx.id == "tr1"
        assert tx.chain_tx_id == "a" * 64
        assert tx.block_height == 2500000
        assert tx.confirmations == 6
        assert tx.value == -20000
        assert tx.fee_display == "1200"
        assert tx.fiat_rate == 42500.0
        assert tx.state == TransactionState.CONFIRMED
        assert tx.timestamp == datetime(2024, 1, 2, 3, 4, 5, tzinfo=UTC)
        assert tx.comment == "payout"
        assert len(tx.entries) == 1
        assert tx.entries[0].address == "tb1qexample"
        assert tx.wallet_ref == WalletRef(
            backend="direct_rest", coin="tbtc", wallet_id=sample_transfer_data["wallet"]
        )

    def test_explicit_wallet_ref_wins(self, sample_transfer_data: dict[str, Any]) -> None:
        ref = WalletRef(backend="legacy_sdk", coin="tbtc", wallet_id="other")
        tx = normalize_transaction(sample_transfer_data, BackendKind.LEGACY_SDK, wallet_ref=ref)
        assert tx.wallet_ref == ref

    def test_minimal_transfer(self) -> None:
        tx = normalize_transaction({"id": "t"}, BackendKind.DIRECT_REST)
        assert tx.state == TransactionState.UNKNOWN
        assert tx.tags == frozenset()
        assert tx.entries == ()
        assert tx.timestamp is None
        assert tx.wallet_ref is None

    def test_vault_transaction(self) -> None:
        raw = {
            "transactionId": "vt1",
            "assetType": "BTC_T",
            "blockchainTxId": "b" * 64,
            "createdAt": "2024-03-01T00:00:00Z",
            "amount": {"quantity": "0.5", "currentUSDValue": "30000.5", "currentPrice": "60001"},
            "fee": {"quantity": "0.0001"},
            "status": "COMPLETED",
            "memo": "rebalance",
        }
        tx = normalize_transaction(raw, BackendKind.ANCHORAGE)
        assert tx.id == "vt1"
        assert tx.coin == "BTC_T"
        assert tx.value is None
        assert tx.value_display == "0.5"
        assert tx.fee_display == "0.0001"
        assert tx.fiat_value == 30000.5
        assert tx.state == TransactionState.CONFIRMED
        assert tx.comment == "rebalance"


class TestNormalizeTransactionPage:
    def test_keeps_order_and_cursor(self) -> None:
        raw = {
            "coin": "tbtc",
            "transfers": [{"id": "t3"}, {"id": "t2"}, {"id": "t1"}],
            "nextBatchPrevId": "t1",
        }
        page = normalize_transaction_page(raw, BackendKind.DIRECT_REST, wallet_id="w1")
        assert [tx.id for tx in page.items] == ["t3", "t2", "t1"]
        assert page.next_cursor == "t1"
        assert page.coin == "tbtc"
        assert page.wallet_id == "w1"

    def test_last_page_has_no_cursor(self) -> None:
        page = normalize_transaction_page({"transfers": []}, BackendKind.LEGACY_SDK)
        assert page.items == ()
        assert page.next_cursor is None


class TestTokenReports:
    def test_sdk_reports_map_shape(self) -> None:
        report = parse_token_report({"tokens": {"terc": {"balance": "5"}}}, BackendKind.LEGACY_SDK)
        assert isinstance(report, TokenMapReport)

    def test_rest_reports_array_shape(self) -> None:
        report = parse_token_report({"tokens": [{"token": "terc"}]}, BackendKind.DIRECT_REST)
        assert isinstance(report, TokenListReport)

    def test_shape_mismatch_is_empty(self) -> None:
        assert normalize_token_balances({"tokens": []}, BackendKind.LEGACY_SDK) == []
        assert normalize_token_balances({"tokens": {"a": {}}}, BackendKind.DIRECT_REST) == []

    def test_map_balances_with_lookup(self) -> None:
        raw = {
            "tokens": {
                "terc": {"balance": "100", "balanceString": "100"},
                "mystery": {"balance": "1", "balanceString": "1"},
            }
        }
        balances = normalize_token_balances(raw, BackendKind.LEGACY_SDK, lookup=lookup)
        assert [b.symbol for b in balances] == ["terc", "mystery"]
        assert balances[0].balance == 100
        assert balances[0].token_config == TERC
        assert balances[1].token_config is None

    def test_array_balances_skip_entries_without_symbol(self) -> None:
        raw = {"tokens": [{"token": "terc", "balanceString": "7"}, {"balanceString": "1"}]}
        balances = normalize_token_balances(raw, BackendKind.DIRECT_REST, lookup=lookup)
        assert len(balances) == 1
        assert balances[0].balance_display == "7"
        assert balances[0].token_config == TERC

    def test_no_tokens(self) -> None:
        assert normalize_token_balances({}, BackendKind.DIRECT_REST) == []


class TestAssetTypes:
    def test_data_envelope(self) -> None:
        raw = {
            "data": [
                {"assetType": "BTC_T", "name": "Bitcoin Testnet", "decimals": 8},
                {"name": "no asset type"},
            ]
        }
        asset_types = normalize_asset_types(raw)
        assert len(asset_types) == 1
        assert asset_types[0].asset_type == "BTC_T"
        assert asset_types[0].decimals == 8

    def test_bare_list(self) -> None:
        assert normalize_asset_types([{"assetType": "ETH"}])[0].asset_type == "ETH"
