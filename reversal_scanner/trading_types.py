from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

SCALP = "scalp"
DAY = "day"
SWING = "swing"

ALIGN_PARTIAL = "partial"
ALIGN_MODERATE = "moderate"
ALIGN_STRICT = "strict"

TIMEFRAME_MINUTES: Dict[str, int] = {
    "1m": 1,
    "5m": 5,
    "15m": 15,
    "1h": 60,
    "1d": 1440,
}

# Candles to fetch per timeframe; enough for the longest lookback plus warmup.
CANDLE_COUNTS: Dict[str, int] = {
    "1m": 300,
    "5m": 200,
    "15m": 200,
    "1h": 150,
    "1d": 150,
}


@dataclass(frozen=True)
class TradingTypeRules:
    name: str
    primary_timeframe: str
    confirmation_timeframe: str
    trend_weight: int
    oscillator_weight: int
    min_score: int
    # (volume ratio threshold, bonus) ascending by threshold
    volume_bonus_table: Tuple[Tuple[float, int], ...]
    atr_ideal_min: float
    atr_ideal_max: float
    max_volatility_bonus: float
    confirmation_bonus: int
    alignment: str

    def candles_for(self, timeframe: str) -> int:
        return CANDLE_COUNTS.get(timeframe, 200)


TRADING_TYPES: Dict[str, TradingTypeRules] = {
    SCALP: TradingTypeRules(
        name=SCALP,
        primary_timeframe="1m",
        confirmation_timeframe="5m",
        trend_weight=30,
        oscillator_weight=70,
        min_score=65,
        volume_bonus_table=((1.5, 3), (2.0, 5), (3.0, 7)),
        atr_ideal_min=1.0,
        atr_ideal_max=5.0,
        max_volatility_bonus=8.0,
        confirmation_bonus=5,
        alignment=ALIGN_PARTIAL,
    ),
    DAY: TradingTypeRules(
        name=DAY,
        primary_timeframe="5m",
        confirmation_timeframe="15m",
        trend_weight=40,
        oscillator_weight=60,
        min_score=70,
        volume_bonus_table=((1.5, 5), (2.0, 8), (3.0, 10)),
        atr_ideal_min=0.5,
        atr_ideal_max=3.0,
        max_volatility_bonus=6.0,
        confirmation_bonus=7,
        alignment=ALIGN_MODERATE,
    ),
    SWING: TradingTypeRules(
        name=SWING,
        primary_timeframe="1h",
        confirmation_timeframe="1d",
        trend_weight=60,
        oscillator_weight=40,
        min_score=75,
        volume_bonus_table=((1.5, 5), (2.0, 8), (3.0, 10)),
        atr_ideal_min=0.5,
        atr_ideal_max=2.0,
        max_volatility_bonus=5.0,
        confirmation_bonus=10,
        alignment=ALIGN_STRICT,
    ),
}


def rules_for(trading_type: str) -> TradingTypeRules:
    try:
        return TRADING_TYPES[trading_type]
    except KeyError:
        raise ValueError(f"Unknown trading type: {trading_type!r} (use scalp, day or swing)") from None
