import os
import sys
from typing import Any, Dict, List, Optional, Tuple

import pytest

# Add root directory to sys.path to allow imports from top-level modules
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from app.core.config import Config  # noqa: E402
from execution.base import IExchangeClient  # noqa: E402

LUNO_ENV_VARS = (
    "LUNO_API_KEY_ID",
    "LUNO_API_SECRET",
    "LUNO_API_DOMAIN",
    "LUNO_API_DEBUG",
    "LUNO_MCP_LOG_LEVEL",
    "LOG_LEVEL",
    "LUNO_MCP_SERVICE_NAME",
)


class FakeLunoClient(IExchangeClient):
    """
    Records every call; returns canned responses or raises canned errors per operation.
    """

    def __init__(self, responses: Optional[Dict[str, Any]] = None, errors: Optional[Dict[str, Exception]] = None):
        self.responses = dict(responses or {})
        self.errors = dict(errors or {})
        self.calls: List[Tuple[str, tuple, dict]] = []
        self.base_url = "https://api.luno.com"
        self.transport = None
        self.auth: Optional[Tuple[str, str]] = None
        self.debug = False
        self.auth_error: Optional[Exception] = None

    def _call(self, op: str, *args, **kwargs):
        self.calls.append((op, args, kwargs))
        if op in self.errors:
            raise self.errors[op]
        return self.responses.get(op, {})

    def ops(self) -> List[str]:
        return [c[0] for c in self.calls]

    def set_base_url(self, base_url: str) -> None:
        self.base_url = base_url

    def set_transport(self, transport) -> None:
        self.transport = transport

    def set_auth(self, api_key_id: str, api_key_secret: str) -> None:
        if self.auth_error is not None:
            raise self.auth_error
        self.auth = (api_key_id, api_key_secret)

    def set_debug(self, debug: bool) -> None:
        self.debug = debug

    def get_balances(self, assets=None):
        return self._call("get_balances")

    def get_ticker(self, pair):
        return self._call("get_ticker", pair)

    def get_tickers(self, pairs=None):
        return self._call("get_tickers", pairs)

    def get_order_book(self, pair):
        return self._call("get_order_book", pair)

    def list_trades(self, pair, since=None):
        return self._call("list_trades", pair, since=since)

    def get_candles(self, pair, duration, since):
        return self._call("get_candles", pair, duration, since)

    def markets(self, pairs=None):
        return self._call("markets", pairs)

    def post_limit_order(self, pair, order_type, volume, price):
        return self._call("post_limit_order", pair, order_type, volume, price)

    def stop_order(self, order_id):
        return self._call("stop_order", order_id)

    def list_orders(self, pair=None, limit=None):
        return self._call("list_orders", pair=pair, limit=limit)

    def list_transactions(self, account_id, min_row, max_row):
        return self._call("list_transactions", account_id, min_row, max_row)


@pytest.fixture(autouse=True)
def clean_luno_env(monkeypatch):
    for name in LUNO_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def fake_client():
    return FakeLunoClient()


@pytest.fixture
def public_config(fake_client):
    return Config(client=fake_client, is_authenticated=False)


@pytest.fixture
def auth_config(fake_client):
    return Config(client=fake_client, is_authenticated=True)
