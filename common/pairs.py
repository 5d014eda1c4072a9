"""
Currency pair normalization.

Luno names markets by concatenating asset codes (e.g. XBTZAR) and uses XBT for Bitcoin,
so user-supplied pairs like "btc/zar" are rewritten before they reach the exchange.
"""

from __future__ import annotations

from collections import OrderedDict
from typing import List

from observability.logging import build_log_context, log_event

PAIR_SEPARATORS = ("-", "_", "/")

# Applied in insertion order by plain substring replacement. Keys must not appear
# inside another entry's replacement value.
PAIR_ALIASES: "OrderedDict[str, str]" = OrderedDict(
    [
        ("BTC", "XBT"),
        ("BITCOIN", "XBT"),
    ]
)


def normalize_pair(pair: str) -> str:
    original = pair
    for sep in PAIR_SEPARATORS:
        pair = pair.replace(sep, "")
    pair = pair.upper()
    for common, canonical in PAIR_ALIASES.items():
        pair = pair.replace(common, canonical)

    log_event(
        "pair_normalized",
        ctx=build_log_context(tool="normalize_pair"),
        data={"original": original, "normalized": pair},
        level="debug",
    )
    return pair


def normalize_pair_list(raw: str) -> List[str]:
    """
    Split a comma-separated list of pairs and normalize each one.
    Empty items are dropped; an empty input yields an empty list.
    """
    if not raw or not raw.strip():
        return []
    return [normalize_pair(p.strip()) for p in raw.split(",") if p.strip()]
