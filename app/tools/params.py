"""
Typed extraction of tool parameters.

Tool calls arrive as a flat mapping of loosely typed values. These helpers turn that
mapping into concrete Python values, raising InvalidParamError (which names the field)
instead of letting a bad value reach the exchange.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Optional

from common.errors import InvalidParamError


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def require_str(params: Mapping[str, Any], name: str) -> str:
    value = params.get(name)
    if _is_blank(value):
        raise InvalidParamError(name, "is required")
    if not isinstance(value, str):
        raise InvalidParamError(name, "must be a string", {"value": repr(value)})
    return value.strip()


def optional_str(params: Mapping[str, Any], name: str, default: str = "") -> str:
    value = params.get(name)
    if _is_blank(value):
        return default
    if not isinstance(value, str):
        raise InvalidParamError(name, "must be a string", {"value": repr(value)})
    return value.strip()


def _to_int(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise InvalidParamError(name, "must be an integer", {"value": repr(value)})
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not value.is_integer():
            raise InvalidParamError(name, "must be an integer", {"value": repr(value)})
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip(), 10)
        except ValueError:
            raise InvalidParamError(name, f"'{value}' is not a valid integer", {"value": value})
    raise InvalidParamError(name, "must be an integer", {"value": repr(value)})


def require_int(params: Mapping[str, Any], name: str) -> int:
    value = params.get(name)
    if _is_blank(value):
        raise InvalidParamError(name, "is required")
    return _to_int(name, value)


def optional_int(params: Mapping[str, Any], name: str, default: Optional[int] = None) -> Optional[int]:
    value = params.get(name)
    if _is_blank(value):
        return default
    return _to_int(name, value)


def require_decimal(params: Mapping[str, Any], name: str, *, positive: bool = True) -> Decimal:
    """
    Parse an exact decimal amount. Floats are rejected so no binary rounding leaks in.
    """
    value = params.get(name)
    if _is_blank(value):
        raise InvalidParamError(name, "is required")
    if not isinstance(value, (str, int)) or isinstance(value, bool):
        raise InvalidParamError(name, "must be a decimal string", {"value": repr(value)})
    raw = str(value).strip()
    try:
        dec = Decimal(raw)
    except InvalidOperation:
        raise InvalidParamError(name, f"invalid {name} format '{raw}'", {"value": raw})
    if not dec.is_finite():
        raise InvalidParamError(name, f"invalid {name} format '{raw}'", {"value": raw})
    if positive and dec <= 0:
        raise InvalidParamError(name, f"must be greater than zero, got '{raw}'", {"value": raw})
    return dec


def require_choice(params: Mapping[str, Any], name: str, choices: Iterable[str]) -> str:
    allowed = tuple(choices)
    value = require_str(params, name)
    if value not in allowed:
        raise InvalidParamError(
            name,
            f"must be one of {', '.join(repr(c) for c in allowed)}, got '{value}'",
            {"value": value, "allowed": list(allowed)},
        )
    return value
