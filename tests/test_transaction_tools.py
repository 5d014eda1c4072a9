import json

from app.tools.transactions import (
    TRANSACTION_SCAN_MAX_ROW,
    TRANSACTION_SCAN_MIN_ROW,
    handle_get_transaction,
    handle_list_transactions,
)
from execution.luno_client import LunoAPIError

TRANSACTIONS = {
    "id": "12345",
    "transactions": [
        {"row_index": 1, "description": "Deposit", "currency": "ZAR", "balance_delta": "100"},
        {"row_index": 2, "description": "Bought BTC", "currency": "XBT", "balance_delta": "0.001"},
    ],
}


def test_list_transactions_defaults(auth_config, fake_client):
    handle_list_transactions(auth_config, {"account_id": "12345"})
    assert fake_client.calls == [("list_transactions", (12345, 1, 100), {})]


def test_list_transactions_custom_window(auth_config, fake_client):
    fake_client.responses["list_transactions"] = TRANSACTIONS
    out = handle_list_transactions(auth_config, {"account_id": "12345", "min_row": 10.0, "max_row": 20})
    assert json.loads(out) == TRANSACTIONS
    assert fake_client.calls == [("list_transactions", (12345, 10, 20), {})]


def test_list_transactions_rejects_non_numeric_account(auth_config, fake_client):
    res = json.loads(handle_list_transactions(auth_config, {"account_id": "abc"}))
    assert res["error"]["code"] == "invalid_param"
    assert res["error"]["data"]["field"] == "account_id"
    assert fake_client.calls == []


def test_get_transaction_found(auth_config, fake_client):
    fake_client.responses["list_transactions"] = TRANSACTIONS
    out = json.loads(handle_get_transaction(auth_config, {"account_id": "12345", "transaction_id": "2"}))
    assert out["description"] == "Bought BTC"
    assert fake_client.calls == [
        ("list_transactions", (12345, TRANSACTION_SCAN_MIN_ROW, TRANSACTION_SCAN_MAX_ROW), {})
    ]


def test_get_transaction_not_found(auth_config, fake_client):
    fake_client.responses["list_transactions"] = TRANSACTIONS
    res = json.loads(handle_get_transaction(auth_config, {"account_id": "12345", "transaction_id": "99"}))
    assert res["ok"] is False
    assert res["error"]["code"] == "not_found"
    assert "99" in res["error"]["message"]


def test_get_transaction_empty_window(auth_config, fake_client):
    fake_client.responses["list_transactions"] = {"transactions": None}
    res = json.loads(handle_get_transaction(auth_config, {"account_id": "1", "transaction_id": "1"}))
    assert res["error"]["code"] == "not_found"


def test_get_transaction_upstream_failure_is_not_not_found(auth_config, fake_client):
    fake_client.errors["list_transactions"] = LunoAPIError("ErrUnauthorized", "unauthorized", 401)
    res = json.loads(handle_get_transaction(auth_config, {"account_id": "1", "transaction_id": "1"}))
    assert res["error"]["code"] == "auth_error"


def test_get_transaction_rejects_non_numeric_id(auth_config, fake_client):
    res = json.loads(handle_get_transaction(auth_config, {"account_id": "1", "transaction_id": "tx-1"}))
    assert res["error"]["data"]["field"] == "transaction_id"
    assert fake_client.calls == []
