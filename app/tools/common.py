import asyncio
import functools
import json
import time
from typing import Any, Callable, Dict, Optional, Type

from fastmcp.exceptions import FastMCPError, ToolError

from app.core.config import Config
from common.errors import AppError, classify_exception
from observability.logging import build_log_context, log_event, set_current_context

# Tool IDs
GET_BALANCES = "get_balances"
GET_TICKER = "get_ticker"
GET_TICKERS = "get_tickers"
GET_ORDER_BOOK = "get_order_book"
LIST_TRADES = "list_trades"
GET_CANDLES = "get_candles"
GET_MARKETS_INFO = "get_markets_info"
CREATE_ORDER = "create_order"
CANCEL_ORDER = "cancel_order"
LIST_ORDERS = "list_orders"
LIST_TRANSACTIONS = "list_transactions"
GET_TRANSACTION = "get_transaction"

# Error messages
ERR_CREDENTIALS_REQUIRED = (
    "API credentials are required for this operation. "
    "Please set LUNO_API_KEY_ID and LUNO_API_SECRET environment variables."
)
PAIR_DESC = "Trading pair (e.g., XBTZAR)"
PAIR_LIST_DESC = "Comma-separated list of trading pairs (e.g., XBTZAR,ETHZAR)"


def json_dump(data: Any) -> str:
    return json.dumps(data, indent=2, sort_keys=True, default=str)


def json_ok(data: Any) -> str:
    """
    Render a successful exchange response as indented JSON.
    """
    try:
        return json_dump(data)
    except (TypeError, ValueError) as e:
        return json_err("serialization_error", f"Failed to serialize response: {e}")


class ErrorPayload(str):
    """
    A rendered error response. Marks handler output that must reach the host as a failed call.
    """


def json_err(code: str, message: str, data: Dict[str, Any] | None = None) -> ErrorPayload:
    payload = {"ok": False, "error": {"code": code, "message": message, "data": data or {}}}
    return ErrorPayload(json.dumps(payload, indent=2, sort_keys=True, default=str))


def app_err(e: AppError) -> ErrorPayload:
    return json_err(e.code, e.message, e.data)


def require_auth(config: Config) -> Optional[ErrorPayload]:
    """
    Return a credentials_required error payload when the client has no API keys.
    """
    if not config.is_authenticated:
        return json_err("credentials_required", ERR_CREDENTIALS_REQUIRED)
    return None


def upstream_err(operation: str, e: Exception, data: Dict[str, Any] | None = None) -> ErrorPayload:
    """
    Wrap an exchange/network failure with the operation that failed.
    """
    ae = classify_exception(e)
    payload = {"operation": operation}
    payload.update(data or {})
    return json_err(ae.code, f"Failed {operation}: {ae.message}", payload)


def tool_handler(tool: str):
    """
    Mark `fn(config, params) -> str` as the handler for `tool` and run it under run_tool.
    """

    def decorator(fn: Callable[[Config, Dict[str, Any]], str]) -> Callable[..., str]:
        @functools.wraps(fn)
        def wrapper(config: Config, params: Optional[Dict[str, Any]] = None) -> str:
            return run_tool(tool, lambda: fn(config, dict(params or {})))

        wrapper.tool_id = tool
        return wrapper

    return decorator


def run_tool(tool: str, fn: Callable[[], str]) -> str:
    """
    Run a tool handler with structured start/end logs.

    Handlers report their own errors as payloads; anything that still escapes is
    logged and converted so it never reaches the MCP host as a raw exception.
    """
    ctx = build_log_context(tool=tool)
    started = time.time()
    log_event("tool_start", ctx=ctx, level="info")
    set_current_context(ctx)
    try:
        return fn()
    except AppError as e:
        log_event("tool_error", ctx=ctx, data={"code": e.code, "error": e.message}, level="error")
        return app_err(e)
    except Exception as e:
        log_event("tool_error", ctx=ctx, data={"error": str(e)}, level="error")
        return json_err("internal_error", f"{tool} failed unexpectedly: {e}")
    finally:
        elapsed_ms = (time.time() - started) * 1000.0
        log_event("tool_end", ctx=ctx, data={"elapsed_ms": round(elapsed_ms, 3)}, level="info")
        set_current_context(None)


async def call_in_thread(
    handler: Callable[..., str],
    config: Config,
    params: Dict[str, Any],
    error_cls: Type[FastMCPError] = ToolError,
) -> str:
    """
    Run a blocking handler off the event loop. Error payloads are raised as `error_cls`
    so the host receives them as failed calls; the JSON body is unchanged.
    """
    out = await asyncio.to_thread(handler, config, params)
    if isinstance(out, ErrorPayload):
        raise error_cls(str(out))
    return out
