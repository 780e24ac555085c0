from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from .indicators.oscillators import ATR_PERIOD, atr_percent
from .models import Candle, FilterResult
from .series import average, volumes


FILTER_REASON_PREFIXES = ("Average volume", "ATR ", "Insufficient data to calculate ATR")


def format_number(v: float) -> str:
    """Thousands separators, at most three decimals ("1,234.5")."""
    s = f"{v:,.3f}".rstrip("0").rstrip(".")
    return s or "0"


def _pct(v: float) -> str:
    return f"{v:g}"


def check_liquidity(candles: Sequence[Candle], min_volume: float) -> FilterResult:
    avg_volume = average(volumes(candles))
    if avg_volume < min_volume:
        return FilterResult(
            passed=False,
            reason=f"Average volume ({format_number(avg_volume)}) below minimum ({format_number(min_volume)})",
        )
    return FilterResult(passed=True)


def check_volatility(
    candles: Sequence[Candle],
    atr_min_pct: Optional[float] = None,
    atr_max_pct: Optional[float] = None,
) -> FilterResult:
    if atr_min_pct is None and atr_max_pct is None:
        return FilterResult(passed=True)

    pct = atr_percent(candles, ATR_PERIOD)
    if pct is None:
        return FilterResult(passed=False, reason="Insufficient data to calculate ATR")
    if atr_min_pct is not None and pct < atr_min_pct:
        return FilterResult(passed=False, reason=f"ATR {pct:.2f}% below minimum {_pct(atr_min_pct)}%")
    if atr_max_pct is not None and pct > atr_max_pct:
        return FilterResult(passed=False, reason=f"ATR {pct:.2f}% above maximum {_pct(atr_max_pct)}%")
    return FilterResult(passed=True)


def apply_filters(
    candles: Sequence[Candle],
    min_volume: float,
    atr_min_pct: Optional[float] = None,
    atr_max_pct: Optional[float] = None,
) -> Tuple[FilterResult, FilterResult, List[str]]:
    """Both filters run independently; returns (liquidity, volatility, failure reasons)."""
    liquidity = check_liquidity(candles, min_volume)
    volatility = check_volatility(candles, atr_min_pct, atr_max_pct)
    failures = [r.reason for r in (liquidity, volatility) if not r.passed and r.reason]
    return liquidity, volatility, failures
