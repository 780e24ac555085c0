from __future__ import annotations

from typing import Dict, List, Optional

from .indicators import oscillators as osc
from .models import BUY, OscillatorLayerResult, TrendResult
from .trading_types import TRADING_TYPES


def build_explanation(
    direction: str,
    trend: TrendResult,
    oscillators: OscillatorLayerResult,
    volume_bonus: float,
) -> str:
    """One-sentence reason attached to every emitted signal."""
    parts: List[str] = []
    if trend.score > 60:
        parts.append(f"{'Bullish' if direction == BUY else 'Bearish'} trend confirmed on higher timeframe")
    elif trend.score > 30:
        parts.append("Mixed trend signals")
    if oscillators.trigger:
        parts.append("reversal signals detected" if direction == BUY else "weakness signals detected")
    if oscillators.confirmation:
        parts.append("momentum and trend strength support the move")
    if volume_bonus > 5:
        parts.append("above-average volume")
    if not parts:
        return "Signal detected based on indicators."
    return ", ".join(parts) + "."


def _trading_types_text() -> str:
    lines = ["Trading types", ""]
    for name, r in TRADING_TYPES.items():
        lines.append(
            f"{name.upper():<6} primary={r.primary_timeframe} confirmation={r.confirmation_timeframe} "
            f"weights={r.trend_weight}/{r.oscillator_weight} min_score={r.min_score} "
            f"alignment={r.alignment} confirmation_bonus=+{r.confirmation_bonus}"
        )
    lines.append("")
    lines.append("The trading type picks the timeframes, weights, bonus tables and minimum score.")
    return "\n".join(lines)


TOPICS: Dict[str, str] = {
    "rsi": (
        "RSI (Relative Strength Index)\n\n"
        "Speed and size of recent price changes, 0..100 (Wilder smoothing).\n\n"
        f"  Condition:    RSI < {osc.RSI_OVERSOLD:g} (BUY) / RSI > {osc.RSI_OVERBOUGHT:g} (SELL)\n"
        f"  Trigger:      RSI crosses back above {osc.RSI_OVERSOLD:g} / below {osc.RSI_OVERBOUGHT:g}\n"
        "  Confirmation: ADX strength on the confirmation timeframe, momentum sign\n\n"
        "An oversold reading alone is never an entry.\n\n"
        f"Period: {osc.RSI_PERIOD}"
    ),
    "stochastic": (
        "Stochastic oscillator\n\n"
        "Where the close sits inside the recent high/low range, 0..100.\n\n"
        f"  Condition:    %K < {osc.STOCH_OVERSOLD:g} (BUY) / %K > {osc.STOCH_OVERBOUGHT:g} (SELL)\n"
        "  Trigger:      %K crosses above %D (BUY) / below %D (SELL)\n\n"
        f"K={osc.STOCH_K} D={osc.STOCH_D} smooth={osc.STOCH_SMOOTH}"
    ),
    "macd": (
        "MACD (Moving Average Convergence Divergence)\n\n"
        "Difference of a fast and slow EMA, its signal EMA and the histogram between them.\n\n"
        "  Trigger: MACD crosses its signal line, or the histogram flips sign\n\n"
        f"fast={osc.MACD_FAST} slow={osc.MACD_SLOW} signal={osc.MACD_SIGNAL}"
    ),
    "adx": (
        "ADX (Average Directional Index)\n\n"
        "Trend strength, not direction. Computed on the confirmation timeframe.\n\n"
        f"  ADX >= {osc.ADX_THRESHOLD:g} (or the profile's min_adx) counts as one confirmation.\n\n"
        f"Period: {osc.ADX_PERIOD}"
    ),
    "momentum": (
        "Momentum\n\n"
        "close[i] - close[i - period].\n\n"
        "  Trigger:      crosses above 0 (BUY) / below 0 (SELL)\n"
        "  Confirmation: current value positive (BUY) / negative (SELL)\n\n"
        f"Period: {osc.MOMENTUM_PERIOD}"
    ),
    "cci": (
        "CCI (Commodity Channel Index)\n\n"
        "Deviation of the typical price from its mean, scaled by mean absolute deviation.\n\n"
        f"  Condition: CCI < {osc.CCI_OVERSOLD:g} (BUY) / CCI > {osc.CCI_OVERBOUGHT:g} (SELL)\n\n"
        f"Period: {osc.CCI_PERIOD}"
    ),
    "williams": (
        "Williams %R\n\n"
        "Close relative to the high/low range, -100..0.\n\n"
        f"  Condition: %R < {osc.WILLIAMS_OVERSOLD:g} (BUY) / %R > {osc.WILLIAMS_OVERBOUGHT:g} (SELL)\n\n"
        f"Period: {osc.WILLIAMS_PERIOD}"
    ),
    "layers": (
        "Three-layer reversal logic\n\n"
        "  1. CONDITION     zone detection (RSI, Stochastic, CCI, Williams %R); no score on its own\n"
        "  2. TRIGGER       a crossing event (RSI level, Stochastic, MACD, histogram, momentum)\n"
        "  3. CONFIRMATION  ADX strength on the higher timeframe, momentum sign\n\n"
        "A direction is valid only with at least one trigger AND one confirmation.\n"
        "score = min(10*conditions, 30) + min(15*triggers, 40) + min(15*confirmations, 30)"
    ),
    "scoring": (
        "Scoring\n\n"
        "  base  = trend*trend_weight/100 + oscillator*oscillator_weight/100\n"
        "  final = round(min(100, base + volume + volatility + confirmation bonuses))\n\n"
        "  >= 85 STRONG BUY, >= 75 BUY, >= 65 SPECULATIVE, else NO TRADE\n\n"
        "A signal is emitted only when both filters pass, the oscillators are valid\n"
        "and the final score reaches the profile's min_score."
    ),
}


def topic_text(name: str) -> Optional[str]:
    key = (name or "").strip().lower()
    if key in ("trading-type", "trading-types"):
        return _trading_types_text()
    return TOPICS.get(key)


def topic_names() -> List[str]:
    return list(TOPICS) + ["trading-type"]
