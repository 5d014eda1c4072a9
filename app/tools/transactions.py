from typing import Annotated, Any, Dict, Optional

from fastmcp import FastMCP
from pydantic import Field

from app.core.config import Config
from app.tools.common import (
    GET_TRANSACTION,
    LIST_TRANSACTIONS,
    call_in_thread,
    json_err,
    json_ok,
    require_auth,
    tool_handler,
    upstream_err,
)
from app.tools.params import optional_int, require_int

LIST_TRANSACTIONS_DEFAULT_MIN_ROW = 1
LIST_TRANSACTIONS_DEFAULT_MAX_ROW = 100

# The API has no single-transaction lookup, so get_transaction scans this window.
TRANSACTION_SCAN_MIN_ROW = 0
TRANSACTION_SCAN_MAX_ROW = 1000


@tool_handler(LIST_TRANSACTIONS)
def handle_list_transactions(config: Config, params: Dict[str, Any]) -> str:
    err = require_auth(config)
    if err:
        return err
    account_id = require_int(params, "account_id")
    min_row = optional_int(params, "min_row", LIST_TRANSACTIONS_DEFAULT_MIN_ROW)
    max_row = optional_int(params, "max_row", LIST_TRANSACTIONS_DEFAULT_MAX_ROW)
    try:
        transactions = config.client.list_transactions(account_id, min_row, max_row)
    except Exception as e:
        return upstream_err(
            "listing transactions", e, {"account_id": account_id, "min_row": min_row, "max_row": max_row}
        )
    return json_ok(transactions)


@tool_handler(GET_TRANSACTION)
def handle_get_transaction(config: Config, params: Dict[str, Any]) -> str:
    err = require_auth(config)
    if err:
        return err
    account_id = require_int(params, "account_id")
    transaction_id = require_int(params, "transaction_id")
    try:
        resp = config.client.list_transactions(account_id, TRANSACTION_SCAN_MIN_ROW, TRANSACTION_SCAN_MAX_ROW)
    except Exception as e:
        return upstream_err("getting transactions", e, {"account_id": account_id})

    for txn in (resp or {}).get("transactions") or []:
        if txn.get("row_index") == transaction_id:
            return json_ok(txn)

    return json_err(
        "not_found",
        f"Transaction not found: {transaction_id}",
        {
            "account_id": account_id,
            "transaction_id": transaction_id,
            "scanned_rows": [TRANSACTION_SCAN_MIN_ROW, TRANSACTION_SCAN_MAX_ROW],
        },
    )


def register_transaction_tools(mcp: FastMCP, config: Config):

    @mcp.tool(name=LIST_TRANSACTIONS, description="List transactions for an account")
    async def list_transactions(
        account_id: Annotated[str, Field(description="Account ID")],
        min_row: Annotated[
            Optional[float], Field(description="Minimum row ID to return (for pagination, inclusive)")
        ] = None,
        max_row: Annotated[
            Optional[float], Field(description="Maximum row ID to return (for pagination, exclusive)")
        ] = None,
    ) -> str:
        return await call_in_thread(
            handle_list_transactions,
            config,
            {"account_id": account_id, "min_row": min_row, "max_row": max_row},
        )

    @mcp.tool(name=GET_TRANSACTION, description="Get details of a specific transaction")
    async def get_transaction(
        account_id: Annotated[str, Field(description="Account ID")],
        transaction_id: Annotated[str, Field(description="Transaction ID")],
    ) -> str:
        return await call_in_thread(
            handle_get_transaction, config, {"account_id": account_id, "transaction_id": transaction_id}
        )
