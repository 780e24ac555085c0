from __future__ import annotations

from typing import List, Sequence

from ..models import Candle


class ProviderError(RuntimeError):
    pass


def valid_candle(c: Candle) -> bool:
    return (
        c.timestamp_ms > 0
        and c.open > 0
        and c.high >= max(c.open, c.close)
        and c.low <= min(c.open, c.close)
        and c.volume >= 0
    )


def validate_candles(candles: Sequence[Candle]) -> bool:
    return bool(candles) and all(valid_candle(c) for c in candles)


def sort_candles(candles: Sequence[Candle]) -> List[Candle]:
    return sorted(candles, key=lambda c: c.timestamp_ms)
