from __future__ import annotations

from typing import Dict, List, Sequence

MARKET_SUFFIX: Dict[str, str] = {
    "IDX": ".JK",
    "NASDAQ": "",
    "NYSE": "",
    "CRYPTO": "-USD",
}

DEFAULT_MARKET = "NASDAQ"


def normalize_symbol(symbol: str, market: str = DEFAULT_MARKET) -> str:
    """Upper-case and append the market suffix unless it is already there."""
    s = symbol.strip().upper()
    suffix = MARKET_SUFFIX.get((market or DEFAULT_MARKET).upper(), "")
    if not suffix or s.endswith(suffix):
        return s
    return s + suffix


def normalize_symbols(symbols: Sequence[str], market: str = DEFAULT_MARKET) -> List[str]:
    return [normalize_symbol(s, market) for s in symbols if s and s.strip()]


def detect_market(symbol: str) -> str:
    s = symbol.strip().upper()
    if s.endswith(".JK"):
        return "IDX"
    if s.endswith("-USD"):
        return "CRYPTO"
    return DEFAULT_MARKET
