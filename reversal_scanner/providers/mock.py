from __future__ import annotations

import random
import zlib
from typing import List, Optional

from ..models import Candle
from ..trading_types import TIMEFRAME_MINUTES

# Fixed anchor so generated series do not depend on the wall clock.
MOCK_END_MS = 1_700_000_000_000

TRENDS = ("up", "down", "sideways")
PATTERNS = ("oversold-reversal", "overbought-reversal", "strong-trend")

_TREND_BIAS = {"up": 0.3, "down": 0.7, "sideways": 0.5}


def _interval_ms(timeframe: str) -> int:
    return TIMEFRAME_MINUTES.get(timeframe, 5) * 60_000


def _bar(rng: random.Random, ts: int, price: float, change: float, base_volume: float, volume_span: float) -> Candle:
    open_ = price
    close = max(0.01, price + change)
    high = max(open_, close) + rng.random() * 0.5
    low = max(0.005, min(open_, close) - rng.random() * 0.5)
    return Candle(
        timestamp_ms=ts,
        open=round(open_, 2),
        high=round(high, 2),
        low=round(low, 2),
        close=round(close, 2),
        volume=float(int(base_volume + rng.random() * volume_span)),
    )


def generate_candles(
    timeframe: str,
    count: int = 200,
    trend: str = "up",
    *,
    seed: int = 7,
    start_price: float = 100.0,
    end_ms: int = MOCK_END_MS,
) -> List[Candle]:
    if trend not in _TREND_BIAS:
        raise ValueError(f"trend must be one of {TRENDS} (got {trend!r})")
    rng = random.Random(seed)
    step = _interval_ms(timeframe)
    bias = _TREND_BIAS[trend]
    out: List[Candle] = []
    price = start_price
    for i in range(count - 1, -1, -1):
        change = (rng.random() - bias) * 2.0
        c = _bar(rng, end_ms - i * step, price, change, 1_000_000, 2_000_000)
        out.append(c)
        price = c.close
    return out


def _pattern_change(rng: random.Random, pattern: str, bars_left: int) -> float:
    if pattern == "oversold-reversal":
        if bars_left > 30:
            return (rng.random() - 0.7) * 3.0
        if bars_left > 20:
            return (rng.random() - 0.4) * 1.5
        return (rng.random() - 0.2) * 2.0
    if pattern == "overbought-reversal":
        if bars_left > 30:
            return (rng.random() - 0.3) * 3.0
        if bars_left > 20:
            return (rng.random() - 0.4) * 1.5
        return (rng.random() - 0.7) * 2.0
    return (rng.random() - 0.25) * 2.5


def generate_pattern(
    pattern: str,
    count: int = 200,
    *,
    timeframe: str = "5m",
    seed: int = 7,
    start_price: float = 100.0,
    end_ms: int = MOCK_END_MS,
) -> List[Candle]:
    """Downtrend-then-rebound, uptrend-then-rollover, or a steady uptrend."""
    if pattern not in PATTERNS:
        raise ValueError(f"pattern must be one of {PATTERNS} (got {pattern!r})")
    rng = random.Random(seed)
    step = _interval_ms(timeframe)
    out: List[Candle] = []
    # Oversold pattern starts higher so the long decline stays positive.
    price = start_price * 3 if pattern == "oversold-reversal" else start_price
    for i in range(count - 1, -1, -1):
        c = _bar(rng, end_ms - i * step, price, _pattern_change(rng, pattern, i), 1_500_000, 1_500_000)
        out.append(c)
        price = c.close
    return out


def symbol_seed(symbol: str, base: int = 0) -> int:
    return zlib.crc32(symbol.encode("utf-8")) ^ base


class MockProvider:
    """Synthetic candles, deterministic per (seed, symbol, timeframe)."""

    name = "mock"

    def __init__(self, seed: int = 7, trend: str = "up", pattern: Optional[str] = None):
        self.seed = seed
        self.trend = trend
        self.pattern = pattern

    async def fetch_candles(self, symbol: str, timeframe: str, limit: int = 200) -> List[Candle]:
        seed = symbol_seed(f"{symbol}:{timeframe}", self.seed)
        if self.pattern is not None:
            return generate_pattern(self.pattern, limit, timeframe=timeframe, seed=seed)
        return generate_candles(timeframe, limit, self.trend, seed=seed)

    async def is_available(self) -> bool:
        return True

    async def close(self) -> None:
        return None
