import time
from typing import Annotated, Any, Dict, Optional, Union

from fastmcp import FastMCP
from pydantic import Field

from app.core.config import Config
from app.tools.common import (
    GET_CANDLES,
    GET_MARKETS_INFO,
    GET_ORDER_BOOK,
    GET_TICKER,
    GET_TICKERS,
    LIST_TRADES,
    PAIR_DESC,
    PAIR_LIST_DESC,
    call_in_thread,
    json_ok,
    tool_handler,
    upstream_err,
)
from app.tools.params import optional_int, optional_str, require_int, require_str
from common.errors import InvalidParamError
from common.pairs import normalize_pair, normalize_pair_list

CANDLES_DEFAULT_LOOKBACK_MS = 24 * 60 * 60 * 1000


def _now_ms() -> int:
    return int(time.time() * 1000)


@tool_handler(GET_TICKER)
def handle_get_ticker(config: Config, params: Dict[str, Any]) -> str:
    pair = normalize_pair(require_str(params, "pair"))
    try:
        ticker = config.client.get_ticker(pair)
    except Exception as e:
        return upstream_err("getting ticker", e, {"pair": pair})
    return json_ok(ticker)


@tool_handler(GET_TICKERS)
def handle_get_tickers(config: Config, params: Dict[str, Any]) -> str:
    pairs = normalize_pair_list(optional_str(params, "pair"))
    try:
        tickers = config.client.get_tickers(pairs or None)
    except Exception as e:
        return upstream_err("getting tickers", e, {"pairs": pairs})
    return json_ok(tickers)


@tool_handler(GET_ORDER_BOOK)
def handle_get_order_book(config: Config, params: Dict[str, Any]) -> str:
    pair = normalize_pair(require_str(params, "pair"))
    try:
        order_book = config.client.get_order_book(pair)
    except Exception as e:
        return upstream_err("getting order book", e, {"pair": pair})
    return json_ok(order_book)


@tool_handler(LIST_TRADES)
def handle_list_trades(config: Config, params: Dict[str, Any]) -> str:
    pair = normalize_pair(require_str(params, "pair"))
    since = optional_int(params, "since")
    try:
        trades = config.client.list_trades(pair, since=since)
    except Exception as e:
        return upstream_err("listing trades", e, {"pair": pair})
    return json_ok(trades)


@tool_handler(GET_CANDLES)
def handle_get_candles(config: Config, params: Dict[str, Any]) -> str:
    pair = normalize_pair(require_str(params, "pair"))
    duration = require_int(params, "duration")
    if duration <= 0:
        raise InvalidParamError("duration", f"must be a positive number of seconds, got {duration}")
    since = optional_int(params, "since", 0)
    if not since:
        since = _now_ms() - CANDLES_DEFAULT_LOOKBACK_MS
    try:
        candles = config.client.get_candles(pair, duration, since)
    except Exception as e:
        return upstream_err("getting candles", e, {"pair": pair, "duration": duration})
    return json_ok(candles)


@tool_handler(GET_MARKETS_INFO)
def handle_get_markets_info(config: Config, params: Dict[str, Any]) -> str:
    pairs = normalize_pair_list(optional_str(params, "pair"))
    try:
        markets = config.client.markets(pairs or None)
    except Exception as e:
        return upstream_err("getting markets info", e, {"pairs": pairs})
    return json_ok(markets)


def register_market_tools(mcp: FastMCP, config: Config):

    @mcp.tool(name=GET_TICKER, description="Get ticker information for a trading pair")
    async def get_ticker(pair: Annotated[str, Field(description=PAIR_DESC)]) -> str:
        return await call_in_thread(handle_get_ticker, config, {"pair": pair})

    @mcp.tool(name=GET_TICKERS, description="List tickers for all currency pairs, or for the given pairs")
    async def get_tickers(pair: Annotated[Optional[str], Field(description=PAIR_LIST_DESC)] = None) -> str:
        return await call_in_thread(handle_get_tickers, config, {"pair": pair})

    @mcp.tool(name=GET_ORDER_BOOK, description="Get order book for a trading pair")
    async def get_order_book(pair: Annotated[str, Field(description=PAIR_DESC)]) -> str:
        return await call_in_thread(handle_get_order_book, config, {"pair": pair})

    @mcp.tool(name=LIST_TRADES, description="List recent trades for a currency pair")
    async def list_trades(
        pair: Annotated[str, Field(description=PAIR_DESC)],
        since: Annotated[
            Optional[Union[str, int]],
            Field(description="Fetch trades executed after this timestamp (Unix milliseconds)"),
        ] = None,
    ) -> str:
        return await call_in_thread(handle_list_trades, config, {"pair": pair, "since": since})

    @mcp.tool(name=GET_CANDLES, description="Get candlestick market data for a currency pair")
    async def get_candles(
        pair: Annotated[str, Field(description=PAIR_DESC)],
        duration: Annotated[
            float, Field(description="Candle duration in seconds (e.g., 60 for 1m, 300 for 5m, 3600 for 1h)")
        ],
        since: Annotated[
            Optional[float],
            Field(description="Filter to candles starting on or after this timestamp (Unix milliseconds). "
                              "Defaults to 24 hours ago."),
        ] = None,
    ) -> str:
        return await call_in_thread(
            handle_get_candles, config, {"pair": pair, "duration": duration, "since": since}
        )

    @mcp.tool(name=GET_MARKETS_INFO, description="List all supported markets parameter information")
    async def get_markets_info(pair: Annotated[Optional[str], Field(description=PAIR_LIST_DESC)] = None) -> str:
        return await call_in_thread(handle_get_markets_info, config, {"pair": pair})
