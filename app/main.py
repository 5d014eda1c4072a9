import argparse
import sys
from typing import List, Optional

from fastmcp import FastMCP

from app.core.config import Config, load_config, settings
from app.tools.market_data import register_market_tools
from app.tools.resources import register_resources
from app.tools.trading import register_trading_tools
from app.tools.transactions import register_transaction_tools
from common.errors import ConfigError
from observability.logging import build_log_context, log_event, set_min_level

TRANSPORTS = ("stdio", "sse", "streamable-http")


def create_server(config: Config) -> FastMCP:
    mcp = FastMCP(settings.PROJECT_NAME)

    # Register Tools
    register_market_tools(mcp, config)
    register_trading_tools(mcp, config)
    register_transaction_tools(mcp, config)
    register_resources(mcp, config)
    return mcp


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=settings.PROJECT_NAME,
        description="MCP server exposing the Luno exchange API as tools and resources",
    )
    parser.add_argument("--transport", choices=TRANSPORTS, default="stdio", help="Transport to serve on (default: stdio)")
    parser.add_argument("--host", default="localhost", help="Host for HTTP transports (default: localhost)")
    parser.add_argument("--port", type=int, default=8080, help="Port for HTTP transports (default: 8080)")
    parser.add_argument("--domain", default="", help="Luno API domain override (e.g. staging.api.luno.com)")
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        default=None,
        help="Minimum log level (default: LUNO_MCP_LOG_LEVEL or info)",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.log_level:
        set_min_level(args.log_level)

    ctx = build_log_context(tool="main")
    try:
        config = load_config(args.domain or None)
    except ConfigError as e:
        log_event("config_error", ctx=ctx, data={"error": e.message}, level="error")
        return 1

    mcp = create_server(config)
    log_event(
        "server_start",
        ctx=ctx,
        data={
            "transport": args.transport,
            "version": settings.VERSION,
            "domain": config.domain,
            "authenticated": config.is_authenticated,
        },
    )
    if args.transport == "stdio":
        mcp.run(transport="stdio")
    else:
        mcp.run(transport=args.transport, host=args.host, port=args.port)
    return 0


if __name__ == "__main__":
    sys.exit(main())
