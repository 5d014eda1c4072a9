from fastmcp import FastMCP
from fastmcp.exceptions import ResourceError

from app.core.config import Config
from app.tools.common import call_in_thread
from app.tools.market_data import handle_get_markets_info
from app.tools.trading import handle_get_balances
from app.tools.transactions import (
    LIST_TRANSACTIONS_DEFAULT_MAX_ROW,
    LIST_TRANSACTIONS_DEFAULT_MIN_ROW,
    handle_list_transactions,
)

WALLETS_URI = "luno://wallets"
MARKETS_URI = "luno://markets"
TRANSACTIONS_URI = "luno://transactions/{account_id}"


def register_resources(mcp: FastMCP, config: Config):
    """
    Read-only views over the same handlers the tools use.
    """

    @mcp.resource(WALLETS_URI, name="wallets", description="Balances for all Luno accounts", mime_type="application/json")
    async def wallets() -> str:
        return await call_in_thread(handle_get_balances, config, {}, ResourceError)

    @mcp.resource(MARKETS_URI, name="markets", description="Parameters for all supported markets", mime_type="application/json")
    async def markets() -> str:
        return await call_in_thread(handle_get_markets_info, config, {}, ResourceError)

    @mcp.resource(
        TRANSACTIONS_URI,
        name="transactions",
        description=(
            f"Transactions in rows {LIST_TRANSACTIONS_DEFAULT_MIN_ROW} to {LIST_TRANSACTIONS_DEFAULT_MAX_ROW} "
            "of an account (the first rows, oldest first)"
        ),
        mime_type="application/json",
    )
    async def transactions(account_id: str) -> str:
        return await call_in_thread(
            handle_list_transactions,
            config,
            {
                "account_id": account_id,
                "min_row": LIST_TRANSACTIONS_DEFAULT_MIN_ROW,
                "max_row": LIST_TRANSACTIONS_DEFAULT_MAX_ROW,
            },
            ResourceError,
        )
