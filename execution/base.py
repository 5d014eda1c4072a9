from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, Dict, List, Optional

from requests.adapters import BaseAdapter


class IExchangeClient(ABC):
    """
    Interface for exchange REST clients consumed by the MCP tools.
    Every operation returns the decoded JSON response body.
    """

    @abstractmethod
    def set_base_url(self, base_url: str) -> None:
        """Point the client at a different API host."""
        pass

    @abstractmethod
    def set_transport(self, transport: BaseAdapter) -> None:
        """Install the HTTP transport used for all outbound requests."""
        pass

    @abstractmethod
    def set_auth(self, api_key_id: str, api_key_secret: str) -> None:
        """Configure API credentials. Raises ValueError if they are malformed."""
        pass

    @abstractmethod
    def set_debug(self, debug: bool) -> None:
        """Toggle verbose request logging."""
        pass

    @abstractmethod
    def get_balances(self, assets: Optional[List[str]] = None) -> Dict[str, Any]:
        pass

    @abstractmethod
    def get_ticker(self, pair: str) -> Dict[str, Any]:
        pass

    @abstractmethod
    def get_tickers(self, pairs: Optional[List[str]] = None) -> Dict[str, Any]:
        pass

    @abstractmethod
    def get_order_book(self, pair: str) -> Dict[str, Any]:
        pass

    @abstractmethod
    def list_trades(self, pair: str, since: Optional[int] = None) -> Dict[str, Any]:
        pass

    @abstractmethod
    def get_candles(self, pair: str, duration: int, since: int) -> Dict[str, Any]:
        pass

    @abstractmethod
    def markets(self, pairs: Optional[List[str]] = None) -> Dict[str, Any]:
        pass

    @abstractmethod
    def post_limit_order(self, pair: str, order_type: str, volume: Decimal, price: Decimal) -> Dict[str, Any]:
        pass

    @abstractmethod
    def stop_order(self, order_id: str) -> Dict[str, Any]:
        pass

    @abstractmethod
    def list_orders(self, pair: Optional[str] = None, limit: Optional[int] = None) -> Dict[str, Any]:
        pass

    @abstractmethod
    def list_transactions(self, account_id: int, min_row: int, max_row: int) -> Dict[str, Any]:
        pass
