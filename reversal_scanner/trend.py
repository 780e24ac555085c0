from __future__ import annotations

from typing import List, Optional, Sequence

from .indicators.trend import MovingAverageSpec, moving_averages
from .models import BUY, NEUTRAL, SELL, Candle, TrendResult
from .series import closes, latest, round_half_up, slope
from .trading_types import ALIGN_MODERATE, ALIGN_PARTIAL, ALIGN_STRICT, TradingTypeRules, rules_for

PRICE_VOTE = 1.0
SLOPE_VOTE = 0.5
MODERATE_ALIGNMENT_VOTE = 1.5
STRICT_ALIGNMENT_VOTE = 2.0


class TrendEngine:
    """Votes a directional bias from moving averages on the confirmation series."""

    def __init__(self, rules: TradingTypeRules):
        self.rules = rules

    def analyze(self, candles: Sequence[Candle], specs: Sequence[MovingAverageSpec]) -> TrendResult:
        if not candles:
            return TrendResult(
                direction=NEUTRAL,
                score=0,
                details=["Insufficient data for trend analysis"],
                ma_alignment=False,
                slope=0.0,
            )

        price = candles[-1].close
        details: List[str] = []
        bull = 0.0
        bear = 0.0
        valid = 0

        mas = moving_averages(candles, specs)
        for label, values in mas.items():
            value = latest(values)
            if value is None:
                continue
            valid += 1

            if price > value:
                bull += PRICE_VOTE
                details.append(f"Price > {label} ({value:.2f})")
            elif price < value:
                bear += PRICE_VOTE
                details.append(f"Price < {label} ({value:.2f})")

            s = slope(values, 5)
            if s > 0:
                bull += SLOPE_VOTE
                details.append(f"{label} slope ↑")
            elif s < 0:
                bear += SLOPE_VOTE
                details.append(f"{label} slope ↓")

        # alignment only counts EMAs the profile asked for
        e10 = latest(mas.get("EMA10", []))
        e20 = latest(mas.get("EMA20", []))
        e50 = latest(mas.get("EMA50", []))
        aligned, d_bull, d_bear, note = self._alignment(e10, e20, e50)
        bull += d_bull
        bear += d_bear
        if note:
            details.append(note)

        if bull > bear:
            direction = BUY
        elif bear > bull:
            direction = SELL
        else:
            direction = NEUTRAL

        max_votes = valid * (PRICE_VOTE + SLOPE_VOTE) + STRICT_ALIGNMENT_VOTE
        score = min(100.0, max(bull, bear) / max_votes * 100.0)

        return TrendResult(
            direction=direction,
            score=round_half_up(score),
            details=details,
            ma_alignment=aligned,
            slope=slope(closes(candles), 10),
        )

    def _alignment(self, e10: Optional[float], e20: Optional[float], e50: Optional[float]):
        """Returns (aligned, bullish votes, bearish votes, detail line)."""
        req = self.rules.alignment
        if req == ALIGN_PARTIAL:
            return True, 0.0, 0.0, None

        if req == ALIGN_MODERATE:
            if e10 is None or e20 is None:
                return False, 0.0, 0.0, None
            if e10 > e20:
                return True, MODERATE_ALIGNMENT_VOTE, 0.0, "EMA10 > EMA20"
            if e10 < e20:
                return True, 0.0, MODERATE_ALIGNMENT_VOTE, "EMA10 < EMA20"
            return False, 0.0, 0.0, None

        if req == ALIGN_STRICT:
            if e10 is None or e20 is None or e50 is None:
                return False, 0.0, 0.0, None
            if e10 > e20 > e50:
                return True, STRICT_ALIGNMENT_VOTE, 0.0, "EMA10 > EMA20 > EMA50 (strong bullish alignment)"
            if e10 < e20 < e50:
                return True, 0.0, STRICT_ALIGNMENT_VOTE, "EMA10 < EMA20 < EMA50 (strong bearish alignment)"
            return False, 0.0, 0.0, None

        return False, 0.0, 0.0, None


def analyze_trend(
    candles: Sequence[Candle],
    specs: Sequence[MovingAverageSpec],
    trading_type: str,
) -> TrendResult:
    return TrendEngine(rules_for(trading_type)).analyze(candles, specs)
