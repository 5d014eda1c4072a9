from __future__ import annotations

import platform
from decimal import Decimal
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import BaseAdapter

from execution.base import IExchangeClient
from observability.logging import build_log_context, log_event

DEFAULT_BASE_URL = "https://api.luno.com"
DEFAULT_TIMEOUT_SEC = 10.0
CLIENT_VERSION = "0.1.0"


class LunoAPIError(Exception):
    """
    Error reported by the Luno API (either an error body or a non-2xx status).
    """

    def __init__(self, code: str, message: str, status: Optional[int] = None):
        super().__init__(f"luno: {code}: {message}" if code else f"luno: {message}")
        self.code = code
        self.message = message
        self.status = status


def _default_user_agent() -> str:
    return (
        f"LunoPythonSDK/{CLIENT_VERSION} python{platform.python_version()} "
        f"{platform.system().lower()} {platform.machine().lower()}"
    )


def _form_value(value: Any) -> str:
    # Plain notation: str(Decimal("1E+3")) would send "1E+3".
    if isinstance(value, Decimal):
        return format(value, "f")
    return str(value)


def _has_control_chars(value: str) -> bool:
    return any(ord(ch) < 32 or ord(ch) == 127 for ch in value)


class LunoClient(IExchangeClient):
    """
    Minimal Luno REST client (requests based).

    Only the endpoints the MCP tools need are implemented. Configuration setters are
    meant to be called once at startup; after that the client holds no per-call state,
    so a single instance can serve concurrent tool calls.
    """

    def __init__(self, base_url: str = DEFAULT_BASE_URL, timeout: float = DEFAULT_TIMEOUT_SEC):
        self.session = requests.Session()
        self.session.headers["User-Agent"] = _default_user_agent()
        self.timeout = timeout
        self.debug = False
        self._auth: Optional[tuple] = None
        self.set_base_url(base_url)

    # --- configuration ---

    def set_base_url(self, base_url: str) -> None:
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")

    def set_transport(self, transport: BaseAdapter) -> None:
        self.session.mount("https://", transport)
        self.session.mount("http://", transport)

    def set_auth(self, api_key_id: str, api_key_secret: str) -> None:
        if not api_key_id or not api_key_secret:
            raise ValueError("luno: API key ID and secret must both be non-empty")
        if ":" in api_key_id:
            raise ValueError("luno: API key ID must not contain ':'")
        if _has_control_chars(api_key_id) or _has_control_chars(api_key_secret):
            raise ValueError("luno: API credentials contain control characters")
        self._auth = (api_key_id, api_key_secret)

    def set_debug(self, debug: bool) -> None:
        self.debug = bool(debug)

    @property
    def is_authenticated(self) -> bool:
        return self._auth is not None

    # --- transport ---

    def _do(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
        auth: bool = False,
    ) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        clean_params = {k: v for k, v in (params or {}).items() if v is not None}
        clean_data = {k: _form_value(v) for k, v in (data or {}).items() if v is not None}
        kwargs: Dict[str, Any] = {"timeout": self.timeout, "params": clean_params or None}
        if clean_data:
            kwargs["data"] = clean_data
        if auth and self._auth is not None:
            kwargs["auth"] = self._auth

        resp = self.session.request(method, url, **kwargs)

        if self.debug:
            log_event(
                "luno_request",
                ctx=build_log_context(tool="luno_client"),
                data={"method": method, "path": path, "status": resp.status_code},
                level="info",
            )

        try:
            body = resp.json()
        except ValueError:
            raise LunoAPIError("", f"unexpected response (HTTP {resp.status_code})", resp.status_code)

        if isinstance(body, dict) and body.get("error"):
            raise LunoAPIError(str(body.get("error_code") or ""), str(body.get("error")), resp.status_code)
        if resp.status_code >= 400:
            raise LunoAPIError("", f"HTTP {resp.status_code}", resp.status_code)
        return body

    # --- market data ---

    def get_ticker(self, pair: str) -> Dict[str, Any]:
        return self._do("GET", "/api/1/ticker", params={"pair": pair})

    def get_tickers(self, pairs: Optional[List[str]] = None) -> Dict[str, Any]:
        return self._do("GET", "/api/1/tickers", params={"pair": list(pairs) if pairs else None})

    def get_order_book(self, pair: str) -> Dict[str, Any]:
        return self._do("GET", "/api/1/orderbook", params={"pair": pair})

    def list_trades(self, pair: str, since: Optional[int] = None) -> Dict[str, Any]:
        return self._do("GET", "/api/1/trades", params={"pair": pair, "since": since})

    def get_candles(self, pair: str, duration: int, since: int) -> Dict[str, Any]:
        return self._do(
            "GET",
            "/api/exchange/1/candles",
            params={"pair": pair, "duration": duration, "since": since},
            auth=True,
        )

    def markets(self, pairs: Optional[List[str]] = None) -> Dict[str, Any]:
        return self._do("GET", "/api/exchange/1/markets", params={"pair": list(pairs) if pairs else None})

    # --- account / trading ---

    def get_balances(self, assets: Optional[List[str]] = None) -> Dict[str, Any]:
        return self._do("GET", "/api/1/balance", params={"assets": list(assets) if assets else None}, auth=True)

    def post_limit_order(self, pair: str, order_type: str, volume: Decimal, price: Decimal) -> Dict[str, Any]:
        return self._do(
            "POST",
            "/api/1/postorder",
            data={"pair": pair, "type": order_type, "volume": volume, "price": price},
            auth=True,
        )

    def stop_order(self, order_id: str) -> Dict[str, Any]:
        return self._do("POST", "/api/1/stoporder", data={"order_id": order_id}, auth=True)

    def list_orders(self, pair: Optional[str] = None, limit: Optional[int] = None) -> Dict[str, Any]:
        return self._do(
            "GET",
            "/api/exchange/2/listorders",
            params={"pair": pair or None, "limit": limit},
            auth=True,
        )

    def list_transactions(self, account_id: int, min_row: int, max_row: int) -> Dict[str, Any]:
        return self._do(
            "GET",
            f"/api/1/accounts/{int(account_id)}/transactions",
            params={"min_row": min_row, "max_row": max_row},
            auth=True,
        )
