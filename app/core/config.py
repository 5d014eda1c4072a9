import os
from dataclasses import dataclass
from typing import Callable, Optional

from dotenv import load_dotenv

from common.errors import ConfigError
from common.transport import IdentifyingTransport
from execution.base import IExchangeClient
from execution.luno_client import LunoClient
from observability.logging import build_log_context, log_event

load_dotenv()


class Settings:
    PROJECT_NAME: str = "luno-mcp"
    VERSION: str = "0.1.0"

    # Environment variable names
    ENV_API_KEY_ID: str = "LUNO_API_KEY_ID"
    ENV_API_SECRET: str = "LUNO_API_SECRET"
    ENV_API_DOMAIN: str = "LUNO_API_DOMAIN"
    ENV_API_DEBUG: str = "LUNO_API_DEBUG"

    DEFAULT_DOMAIN: str = "api.luno.com"
    DEFAULT_TIMEOUT_SEC: float = float(os.getenv("LUNO_API_TIMEOUT_SEC", "10"))

    # Fixed mask width, so masked values do not reveal the secret length.
    MASK_PREFIX_LEN: int = 4
    MASK_WIDTH: int = 8


settings = Settings()


@dataclass(frozen=True)
class Config:
    """
    Process-wide, read-only state shared by every tool handler.
    is_authenticated=False means only public market data is available.
    """

    client: IExchangeClient
    is_authenticated: bool
    domain: str = Settings.DEFAULT_DOMAIN
    debug: bool = False


def _env(name: str) -> str:
    return (os.getenv(name.strip()) or "").strip()


def mask_value(value: str) -> str:
    """
    Show at most the first few characters followed by a fixed-width mask.
    """
    if len(value) <= settings.MASK_PREFIX_LEN:
        return "*" * settings.MASK_WIDTH
    return value[: settings.MASK_PREFIX_LEN] + "*" * settings.MASK_WIDTH


def parse_debug_flag(raw: Optional[str]) -> bool:
    return (raw or "").strip().lower() in {"true", "1", "yes"}


def resolve_domain(domain_override: Optional[str] = None) -> str:
    """
    Precedence: explicit override > LUNO_API_DOMAIN > built-in default.
    """
    override = (domain_override or "").strip()
    if override:
        return override
    return _env(settings.ENV_API_DOMAIN) or settings.DEFAULT_DOMAIN


def load_config(
    domain_override: Optional[str] = None,
    *,
    client_factory: Optional[Callable[[], IExchangeClient]] = None,
) -> Config:
    """
    Build the exchange client from environment state.

    Missing credentials are not an error (public-data mode); credentials the client
    rejects raise ConfigError.
    """
    ctx = build_log_context(tool="config")
    api_key_id = _env(settings.ENV_API_KEY_ID)
    api_key_secret = _env(settings.ENV_API_SECRET)

    for name, value in ((settings.ENV_API_KEY_ID, api_key_id), (settings.ENV_API_SECRET, api_key_secret)):
        log_event(
            "credential_env",
            ctx=ctx,
            data={"env": name, "present": bool(value), "masked": mask_value(value) if value else ""},
            level="debug",
        )

    if client_factory is None:
        client = LunoClient(timeout=settings.DEFAULT_TIMEOUT_SEC)
    else:
        client = client_factory()
    client.set_transport(IdentifyingTransport(None, settings.PROJECT_NAME, settings.VERSION))

    domain = resolve_domain(domain_override)
    if domain != settings.DEFAULT_DOMAIN:
        client.set_base_url(f"https://{domain}")
        log_event("domain_override", ctx=ctx, data={"domain": domain}, level="info")

    is_authenticated = False
    if api_key_id and api_key_secret:
        try:
            client.set_auth(api_key_id, api_key_secret)
        except ValueError as e:
            raise ConfigError(f"Failed to set Luno API credentials: {e}") from e
        is_authenticated = True
        log_event("auth_configured", ctx=ctx, data={"authenticated": True}, level="info")
    else:
        log_event(
            "auth_missing",
            ctx=ctx,
            data={"authenticated": False, "message": "Operating in unauthenticated mode (public data only)."},
            level="info",
        )

    debug = parse_debug_flag(_env(settings.ENV_API_DEBUG))
    if debug:
        log_event("debug_enabled", ctx=ctx, level="info")
    client.set_debug(debug)

    return Config(client=client, is_authenticated=is_authenticated, domain=domain, debug=debug)
