from __future__ import annotations

from typing import Optional, Sequence

from .models import BUY, Candle, TradeLevels
from .series import highs, lows, round_half_up

LOOKBACK = 20
STOP_LOSS_ATR_MULTIPLIER = 2.0
RISK_REWARD_RATIO = 2.0


def support(candles: Sequence[Candle], price: float, lookback: int = LOOKBACK) -> float:
    recent = sorted(lows(candles[-lookback:]))
    for low in recent:
        if low <= price * 0.99:
            return low
    return recent[0]


def resistance(candles: Sequence[Candle], price: float, lookback: int = LOOKBACK) -> float:
    recent = sorted(highs(candles[-lookback:]), reverse=True)
    for high in recent:
        if high >= price * 1.01:
            return high
    return recent[0]


def stop_loss(entry: float, atr: Optional[float], direction: str, multiplier: float = STOP_LOSS_ATR_MULTIPLIER) -> Optional[float]:
    if atr is None:
        return None
    distance = atr * multiplier
    return entry - distance if direction == BUY else entry + distance


def take_profit(entry: float, sl: Optional[float], direction: str, rr: float = RISK_REWARD_RATIO) -> Optional[float]:
    if sl is None:
        return None
    distance = abs(entry - sl) * rr
    return entry + distance if direction == BUY else entry - distance


def estimate_win_rate(final_score: float, confirmation_bonus: float, volume_bonus: float) -> int:
    base = 40.0 + final_score * 0.4
    boost = (5.0 if confirmation_bonus > 0 else 0.0) + (5.0 if volume_bonus > 0 else 0.0)
    return round_half_up(min(95.0, base + boost))


def calculate_levels(
    candles: Sequence[Candle],
    direction: str,
    atr: Optional[float],
    final_score: float,
    confirmation_bonus: float,
    volume_bonus: float,
) -> TradeLevels:
    """Entry is the last close; candles must be non-empty."""
    entry = candles[-1].close
    sl = stop_loss(entry, atr, direction)
    return TradeLevels(
        entry=entry,
        support=support(candles, entry),
        resistance=resistance(candles, entry),
        stop_loss=sl,
        take_profit=take_profit(entry, sl, direction),
        risk_reward_ratio=RISK_REWARD_RATIO,
        win_rate=estimate_win_rate(final_score, confirmation_bonus, volume_bonus),
    )
