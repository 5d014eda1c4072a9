from typing import Annotated, Any, Dict, List, Optional

from fastmcp import FastMCP
from pydantic import Field

from app.core.config import Config
from app.tools.common import (
    CANCEL_ORDER,
    CREATE_ORDER,
    GET_BALANCES,
    LIST_ORDERS,
    PAIR_DESC,
    call_in_thread,
    json_dump,
    json_err,
    json_ok,
    require_auth,
    tool_handler,
    upstream_err,
)
from app.tools.params import optional_int, optional_str, require_choice, require_decimal, require_str
from common.errors import AppError, InvalidParamError, classify_exception
from common.pairs import normalize_pair
from observability.logging import get_current_context, log_event

ORDER_SIDES = {"BUY": "BID", "SELL": "ASK"}
LIST_ORDERS_DEFAULT_LIMIT = 100

_MARKET_INFO_FIELDS = (
    ("Status", "trading_status"),
    ("Base currency", "base_currency"),
    ("Counter currency", "counter_currency"),
    ("Minimum volume", "min_volume"),
    ("Maximum volume", "max_volume"),
    ("Volume scale", "volume_scale"),
    ("Minimum price", "min_price"),
    ("Maximum price", "max_price"),
    ("Price scale", "price_scale"),
)


def _log(event: str, data: Dict[str, Any], level: str = "info") -> None:
    ctx = get_current_context() or {"tool": CREATE_ORDER}
    log_event(event, ctx=ctx, data=data, level=level)


def get_market_info(config: Config, pair: str) -> str:
    """
    Fetch market parameters for `pair` and render them as a short human-readable block.
    Raises AppError if the markets call fails or the pair is not listed.
    """
    try:
        resp = config.client.markets([pair])
    except Exception as e:
        raise classify_exception(e) from e
    markets = (resp or {}).get("markets") or []
    market = next((m for m in markets if m.get("market_id") == pair), None)
    if market is None:
        raise AppError("market_not_found", f"Market {pair} is not listed on the exchange", {"pair": pair})

    lines = [f"Market information for {pair}:"]
    for label, key in _MARKET_INFO_FIELDS:
        if market.get(key) is not None:
            lines.append(f"- {label}: {market[key]}")
    return "\n".join(lines)


@tool_handler(GET_BALANCES)
def handle_get_balances(config: Config, params: Dict[str, Any]) -> str:
    err = require_auth(config)
    if err:
        return err
    try:
        resp = config.client.get_balances()
    except Exception as e:
        return upstream_err("getting balances", e)

    balances: List[Dict[str, Any]] = []
    for b in (resp or {}).get("balance") or []:
        balances.append(
            {
                "account_id": str(b.get("account_id", "")),
                "asset": b.get("asset", ""),
                "balance": str(b.get("balance", "0")),
                "reserved": str(b.get("reserved", "0")),
                "unconfirmed": str(b.get("unconfirmed", "0")),
                "name": b.get("name", ""),
            }
        )
    return json_ok(balances)


@tool_handler(CREATE_ORDER)
def handle_create_order(config: Config, params: Dict[str, Any]) -> str:
    err = require_auth(config)
    if err:
        return err

    raw_pair = require_str(params, "pair")
    pair = normalize_pair(raw_pair)
    side = require_choice(params, "type", ORDER_SIDES.keys())
    volume = require_decimal(params, "volume")
    price = require_decimal(params, "price")
    order_type = ORDER_SIDES[side]

    try:
        market_info = get_market_info(config, pair)
    except AppError as e:
        _log("market_info_error", {"pair": pair, "error": e.message}, level="error")
        return json_err(
            "market_info_unavailable",
            f"Unable to create order: failed to retrieve market information for pair {pair}. Details: {e.message}",
            {"pair": pair, "cause": e.code},
        )

    _log("create_order", {"pair": pair, "type": order_type, "volume": str(volume), "price": str(price)})

    try:
        order = config.client.post_limit_order(pair, order_type, volume, price)
    except Exception as e:
        ae = classify_exception(e)
        return json_err(
            "order_failed",
            f"Failed to create limit order: {ae.message}\n\n"
            f"Here's what we know about this market:\n{market_info}\n\n"
            "This may be due to insufficient balance, market conditions, or API limits.",
            {"pair": pair, "type": order_type, "cause": ae.code},
        )

    try:
        order_json = json_dump(order)
    except (TypeError, ValueError) as e:
        return json_err("serialization_error", f"Failed to serialize order result: {e}")
    return f"Order created successfully!\n\n{order_json}\n\n{market_info}"


@tool_handler(CANCEL_ORDER)
def handle_cancel_order(config: Config, params: Dict[str, Any]) -> str:
    err = require_auth(config)
    if err:
        return err
    order_id = require_str(params, "order_id")
    try:
        result = config.client.stop_order(order_id)
    except Exception as e:
        return upstream_err("cancelling order", e, {"order_id": order_id})
    return json_ok(result)


@tool_handler(LIST_ORDERS)
def handle_list_orders(config: Config, params: Dict[str, Any]) -> str:
    err = require_auth(config)
    if err:
        return err
    # Empty pair means all markets.
    raw_pair = optional_str(params, "pair")
    pair = normalize_pair(raw_pair) if raw_pair else None
    limit = optional_int(params, "limit", LIST_ORDERS_DEFAULT_LIMIT)
    if limit <= 0:
        raise InvalidParamError("limit", f"must be a positive integer, got {limit}")
    try:
        orders = config.client.list_orders(pair=pair, limit=limit)
    except Exception as e:
        return upstream_err("listing orders", e, {"pair": pair, "limit": limit})
    return json_ok(orders)


def register_trading_tools(mcp: FastMCP, config: Config):

    @mcp.tool(name=GET_BALANCES, description="Get balances for all Luno accounts")
    async def get_balances() -> str:
        return await call_in_thread(handle_get_balances, config, {})

    @mcp.tool(name=CREATE_ORDER, description="Create a new limit order")
    async def create_order(
        pair: Annotated[str, Field(description=PAIR_DESC)],
        type: Annotated[
            str, Field(description="Order type (BUY or SELL)", json_schema_extra={"enum": list(ORDER_SIDES)})
        ],
        volume: Annotated[str, Field(description="Order volume (amount of cryptocurrency to buy or sell)")],
        price: Annotated[str, Field(description="Limit price as a decimal string")],
    ) -> str:
        return await call_in_thread(
            handle_create_order, config, {"pair": pair, "type": type, "volume": volume, "price": price}
        )

    @mcp.tool(name=CANCEL_ORDER, description="Cancel an order")
    async def cancel_order(order_id: Annotated[str, Field(description="Order ID to cancel")]) -> str:
        return await call_in_thread(handle_cancel_order, config, {"order_id": order_id})

    @mcp.tool(name=LIST_ORDERS, description="List open orders")
    async def list_orders(
        pair: Annotated[Optional[str], Field(description=PAIR_DESC)] = None,
        limit: Annotated[Optional[float], Field(description="Maximum number of orders to return (default: 100)")] = None,
    ) -> str:
        return await call_in_thread(handle_list_orders, config, {"pair": pair, "limit": limit})
