"""
Test fixtures and configuration.
"""

from typing import Any

import pytest


@pytest.fixture
def sample_wallet_data() -> dict[str, Any]:
    return {
        "id": "5f1a2b3c4d5e6f7a8b9c0d1e",
        "label": "Treasury",
        "coin": "tbtc",
        "balance": 150000,
        "confirmedBalance": 150000,
        "spendableBalance": 140000,
        "balanceString": "150000",
        "confirmedBalanceString": "150000",
        "spendableBalanceString": "140000",
    }


@pytest.fixture
def sample_transfer_data() -> dict[str, Any]:
    return {
        "id": "tr1",
        "coin": "tbtc",
        "wallet": "5f1a2b3c4d5e6f7a8b9c0d1e",
        "txid": "a" * 64,
        "height": 2500000,
        "heightId": "002500000-abc",
        "date": "2024-01-02T03:04:05.000Z",
        "confirmations": 6,
        "value": -20000,
        "valueString": "-20000",
        "feeString": "1200",
        "payGoFeeString": "0",
        "usd": -8.5,
        "usdRate": 42500.0,
        "state": "confirmed",
        "tags": ["5f1a2b3c4d5e6f7a8b9c0d1e"],
        "history": [{"date": "2024-01-02T03:04:05.000Z", "action": "confirmed"}],
        "comment": "payout",
        "entries": [
            {"address": "tb1qexample", "value": -20000, "valueString": "-20000"},
        ],
    }


@pytest.fixture
def sample_vault_wallet_data() -> dict[str, Any]:
    return {
        "walletId": "vw1",
        "walletName": "Cold storage",
        "networkId": "BTC_T",
        "assets": [
            {
                "assetType": "BTC_T",
                "totalBalance": {"quantity": "1.5", "assetType": "BTC_T"},
                "availableBalance": {"quantity": "1.25", "assetType": "BTC_T"},
            }
        ],
    }
