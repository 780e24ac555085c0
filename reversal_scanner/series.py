from __future__ import annotations
from typing import List, Optional, Sequence
import math

from .models import Candle

Series = List[Optional[float]]


def closes(candles: Sequence[Candle]) -> List[float]:
    return [c.close for c in candles]


def highs(candles: Sequence[Candle]) -> List[float]:
    return [c.high for c in candles]


def lows(candles: Sequence[Candle]) -> List[float]:
    return [c.low for c in candles]


def volumes(candles: Sequence[Candle]) -> List[float]:
    return [c.volume for c in candles]


def latest(values: Sequence[Optional[float]]) -> Optional[float]:
    return values[-1] if values else None


def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def average(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return sum(values) / float(len(values))


def standard_deviation(values: Sequence[float]) -> float:
    """Population standard deviation."""
    if not values:
        return 0.0
    avg = average(values)
    return math.sqrt(average([(v - avg) ** 2 for v in values]))


def true_range(candles: Sequence[Candle]) -> List[float]:
    out: List[float] = []
    for i, c in enumerate(candles):
        if i == 0:
            out.append(c.high - c.low)
            continue
        prev_close = candles[i - 1].close
        out.append(max(c.high - c.low, abs(c.high - prev_close), abs(c.low - prev_close)))
    return out


def window(values: Sequence[Optional[float]], end: int, length: int) -> Optional[List[float]]:
    """Values[end-length+1 .. end] or None if the window is short or holds a missing value."""
    start = end - length + 1
    if length <= 0 or start < 0:
        return None
    out = values[start:end + 1]
    if any(v is None for v in out):
        return None
    return list(out)  # type: ignore[arg-type]


def slope(values: Sequence[Optional[float]], period: int = 5) -> float:
    """Least-squares slope of the last `period` samples (0.0 when unavailable)."""
    if period < 2 or len(values) < period:
        return 0.0
    recent = values[-period:]
    if any(v is None for v in recent):
        return 0.0
    n = len(recent)
    sum_x = sum_y = sum_xy = sum_x2 = 0.0
    for i, y in enumerate(recent):
        sum_x += i
        sum_y += y
        sum_xy += i * y
        sum_x2 += i * i
    return (n * sum_xy - sum_x * sum_y) / (n * sum_x2 - sum_x * sum_x)


def _tail(fast: Sequence[Optional[float]], slow: Sequence[Optional[float]]):
    if len(fast) < 2 or len(slow) < 2:
        return None
    pf, cf, ps, cs = fast[-2], fast[-1], slow[-2], slow[-1]
    if pf is None or cf is None or ps is None or cs is None:
        return None
    return pf, cf, ps, cs


def crossover(fast: Sequence[Optional[float]], slow: Sequence[Optional[float]]) -> bool:
    """fast crosses above slow on the last bar."""
    t = _tail(fast, slow)
    if t is None:
        return False
    pf, cf, ps, cs = t
    return pf <= ps and cf > cs


def crossunder(fast: Sequence[Optional[float]], slow: Sequence[Optional[float]]) -> bool:
    """fast crosses below slow on the last bar."""
    t = _tail(fast, slow)
    if t is None:
        return False
    pf, cf, ps, cs = t
    return pf >= ps and cf < cs


def crosses_above_level(values: Sequence[Optional[float]], level: float) -> bool:
    return crossover(values, [level, level])


def crosses_below_level(values: Sequence[Optional[float]], level: float) -> bool:
    return crossunder(values, [level, level])
