from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict


@dataclass
class AppError(Exception):
    code: str
    message: str
    data: Dict[str, Any]

    def __str__(self) -> str:
        return self.message


class ConfigError(AppError):
    def __init__(self, message: str = "Invalid configuration", data: Dict[str, Any] = None):
        super().__init__("config_error", message, data or {})


class InvalidParamError(AppError):
    def __init__(self, field: str, reason: str, data: Dict[str, Any] = None):
        payload = {"field": field}
        payload.update(data or {})
        super().__init__("invalid_param", f"Invalid parameter '{field}': {reason}", payload)
        self.field = field
        self.reason = reason


class NotFoundError(AppError):
    def __init__(self, message: str = "Not found", data: Dict[str, Any] = None):
        super().__init__("not_found", message, data or {})


def classify_exception(e: Exception) -> AppError:
    """
    Map exchange / network issues into stable error codes.
    """
    if isinstance(e, AppError):
        return e

    err_str = str(e).lower()
    status = getattr(e, "status", None)

    if status == 429 or "rate limit" in err_str or "too many requests" in err_str:
        return AppError("rate_limited", str(e), {})
    if "timeout" in err_str or "timed out" in err_str:
        return AppError("timeout", str(e), {})
    if status in (401, 403) or "unauthorized" in err_str or "forbidden" in err_str or "api key" in err_str:
        return AppError("auth_error", str(e), {})
    if "network" in err_str or "connection" in err_str:
        return AppError("network_error", str(e), {})

    return AppError("upstream_error", str(e), {})
