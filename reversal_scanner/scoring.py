from __future__ import annotations

from typing import Optional

from .models import BUY, NO_TRADE, SELL, SPECULATIVE, STRONG_BUY, SignalScore
from .series import round_half_up
from .trading_types import TradingTypeRules

RATING_THRESHOLDS = (
    (85, STRONG_BUY),
    (75, BUY),
    (65, SPECULATIVE),
)


def calculate_score(
    trend_score: float,
    oscillator_score: float,
    trend_weight: float,
    oscillator_weight: float,
    volume_bonus: float = 0.0,
    volatility_bonus: float = 0.0,
    confirmation_bonus: float = 0.0,
) -> SignalScore:
    base = trend_score * trend_weight / 100.0 + oscillator_score * oscillator_weight / 100.0
    final = min(100.0, base + volume_bonus + volatility_bonus + confirmation_bonus)
    return SignalScore(
        trend_score=trend_score,
        oscillator_score=oscillator_score,
        volume_bonus=volume_bonus,
        volatility_bonus=volatility_bonus,
        confirmation_bonus=confirmation_bonus,
        final_score=max(0, round_half_up(final)),
    )


def volume_bonus(current_volume: float, avg_volume: float, rules: TradingTypeRules) -> int:
    if avg_volume <= 0:
        return 0
    ratio = current_volume / avg_volume
    for threshold, bonus in reversed(rules.volume_bonus_table):
        if ratio >= threshold:
            return bonus
    return 0


def volatility_bonus(atr_pct: Optional[float], rules: TradingTypeRules) -> int:
    """Peaks at the middle of the ideal ATR% band and decays linearly to its edges."""
    if atr_pct is None:
        return 0
    lo, hi = rules.atr_ideal_min, rules.atr_ideal_max
    if not lo <= atr_pct <= hi or hi <= lo:
        return 0
    position = (atr_pct - lo) / (hi - lo)
    return round_half_up(rules.max_volatility_bonus * (1.0 - abs(0.5 - position)))


def confirmation_bonus(primary_direction: str, trend_direction: str, rules: TradingTypeRules) -> int:
    if primary_direction in (BUY, SELL) and primary_direction == trend_direction:
        return rules.confirmation_bonus
    return 0


def assign_rating(score: float) -> str:
    for threshold, rating in RATING_THRESHOLDS:
        if score >= threshold:
            return rating
    return NO_TRADE


def meets_minimum_score(score: float, min_score: float) -> bool:
    return score >= min_score
