from __future__ import annotations

import contextvars
import json
import os
import sys
import time
import uuid
from typing import Any, Dict, Optional

_CURRENT_CTX: contextvars.ContextVar[Optional[Dict[str, Any]]] = contextvars.ContextVar(
    "luno_mcp_log_ctx",
    default=None,
)


def get_current_context() -> Optional[Dict[str, Any]]:
    return _CURRENT_CTX.get()


def set_current_context(ctx: Optional[Dict[str, Any]]) -> None:
    _CURRENT_CTX.set(ctx)


_LEVELS = {"debug": 10, "info": 20, "warn": 30, "warning": 30, "error": 40}

_MIN_LEVEL_OVERRIDE: Optional[int] = None


def _level_value(level: str) -> int:
    return _LEVELS.get(str(level or "").strip().lower(), 20)


def _min_level_value() -> int:
    if _MIN_LEVEL_OVERRIDE is not None:
        return _MIN_LEVEL_OVERRIDE
    # Prefer explicit LUNO_MCP_LOG_LEVEL, fallback to LOG_LEVEL.
    raw = (os.getenv("LUNO_MCP_LOG_LEVEL") or os.getenv("LOG_LEVEL") or "info").strip().lower()
    return _level_value(raw)


def set_min_level(level: Optional[str]) -> None:
    """
    Override the env-derived minimum level (used by the CLI --log-level flag).
    Passing None restores env lookup.
    """
    global _MIN_LEVEL_OVERRIDE
    _MIN_LEVEL_OVERRIDE = None if level is None else _level_value(level)


def is_enabled(level: str) -> bool:
    return _level_value(level) >= _min_level_value()


_SENSITIVE_KEYWORDS = (
    "secret",
    "password",
    "token",
    "private",
    "api_key",
    "apikey",
    "key_id",
    "authorization",
    "cookie",
)


def redact(value: Any) -> Any:
    """
    Best-effort redaction for logs. Callers should avoid passing credentials in the first place.
    """
    if isinstance(value, dict):
        out: Dict[str, Any] = {}
        for k, v in value.items():
            ks = str(k).lower()
            if any(x in ks for x in _SENSITIVE_KEYWORDS):
                out[k] = "***REDACTED***"
            else:
                out[k] = redact(v)
        return out
    if isinstance(value, list):
        return [redact(x) for x in value]
    if isinstance(value, tuple):
        return [redact(x) for x in value]
    return value


def build_log_context(*, tool: str, request_id: str | None = None) -> Dict[str, Any]:
    """
    Build a per-invocation context object for structured logs.

    Kept minimal to avoid leaking sensitive data.
    """
    return {
        "tool": tool,
        "request_id": str(request_id or uuid.uuid4()),
        "ts_ms": int(time.time() * 1000),
        "service": os.getenv("LUNO_MCP_SERVICE_NAME", "luno-mcp"),
    }


def log_event(event: str, *, ctx: Dict[str, Any], data: Optional[Dict[str, Any]] = None, level: str = "info") -> None:
    """
    Emit a single-line JSON log event to stderr (stdout carries the stdio MCP transport).
    """
    if not is_enabled(level):
        return
    payload = dict(ctx)
    payload["level"] = str(level).upper()
    payload["event"] = event
    if data:
        payload["data"] = redact(data)
    print(json.dumps(payload, sort_keys=True, default=str), file=sys.stderr)
