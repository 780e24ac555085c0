"""Three-layer reversal detection on the primary timeframe.

Layer 1 (condition) looks for oversold/overbought zones, layer 2 (trigger)
for a crossing event, layer 3 (confirmation) for trend strength on the
confirmation timeframe and momentum agreeing with the candidate direction.
A direction is only valid with both a trigger and a confirmation.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from .indicators import oscillators as osc
from .models import BUY, SELL, Candle, OscillatorLayerResult
from .series import Series, latest

ALL_OSCILLATORS = frozenset(["RSI", "STOCHASTIC", "MACD", "MOMENTUM", "ADX", "CCI", "WILLIAMS_R"])

CONDITION_POINTS, CONDITION_CAP = 10, 30
TRIGGER_POINTS, TRIGGER_CAP = 15, 40
CONFIRMATION_POINTS, CONFIRMATION_CAP = 15, 30


@dataclass(frozen=True)
class OscillatorReadings:
    """Indicator series for one symbol, computed once and shared by both directions."""

    rsi: Series
    stoch: osc.StochasticResult
    macd: osc.MacdResult
    momentum: Series
    cci: Series
    williams_r: Series
    adx: Series  # confirmation timeframe

    @classmethod
    def compute(cls, primary: Sequence[Candle], confirmation: Sequence[Candle]) -> "OscillatorReadings":
        return cls(
            rsi=osc.rsi(primary),
            stoch=osc.stochastic(primary),
            macd=osc.macd(primary),
            momentum=osc.momentum(primary),
            cci=osc.cci(primary),
            williams_r=osc.williams_r(primary),
            adx=osc.adx(confirmation).adx,
        )


def layer_score(condition_count: int, trigger_count: int, confirmation_count: int) -> int:
    if not (trigger_count > 0 and confirmation_count > 0):
        return 0
    score = (
        min(condition_count * CONDITION_POINTS, CONDITION_CAP)
        + min(trigger_count * TRIGGER_POINTS, TRIGGER_CAP)
        + min(confirmation_count * CONFIRMATION_POINTS, CONFIRMATION_CAP)
    )
    return min(100, score)


def _fmt(v: Optional[float], digits: int = 1) -> str:
    return f"{v:.{digits}f}"


class OscillatorEngine:
    def __init__(self, min_adx: float = osc.ADX_THRESHOLD, enabled: Optional[Iterable[str]] = None):
        self.min_adx = float(min_adx)
        self.enabled = frozenset(s.upper() for s in enabled) if enabled else ALL_OSCILLATORS

    def _on(self, name: str) -> bool:
        return name in self.enabled

    def analyze(self, direction: str, r: OscillatorReadings) -> OscillatorLayerResult:
        bullish = direction == BUY
        zone = "oversold" if bullish else "overbought"
        details: List[str] = []

        # Layer 1: condition
        cond: List[str] = []
        rsi_now = latest(r.rsi)
        k_now = latest(r.stoch.k)
        cci_now = latest(r.cci)
        wr_now = latest(r.williams_r)
        if self._on("RSI") and (osc.is_rsi_oversold(rsi_now) if bullish else osc.is_rsi_overbought(rsi_now)):
            cond.append(f"RSI {zone} ({_fmt(rsi_now)})")
        if self._on("STOCHASTIC") and (
            osc.is_stochastic_oversold(k_now) if bullish else osc.is_stochastic_overbought(k_now)
        ):
            cond.append(f"Stochastic {zone} (%K: {_fmt(k_now)})")
        if self._on("CCI") and (osc.is_cci_oversold(cci_now) if bullish else osc.is_cci_overbought(cci_now)):
            cond.append(f"CCI {zone} ({_fmt(cci_now)})")
        if self._on("WILLIAMS_R") and (
            osc.is_williams_oversold(wr_now) if bullish else osc.is_williams_overbought(wr_now)
        ):
            cond.append(f"Williams %R {zone} ({_fmt(wr_now)})")
        if cond:
            details.append("CONDITION: " + ", ".join(cond))

        # Layer 2: trigger
        trig: List[str] = []
        if self._on("RSI"):
            if bullish and osc.rsi_crosses_above_oversold(r.rsi):
                trig.append(f"RSI crossed above {osc.RSI_OVERSOLD:g}")
            elif not bullish and osc.rsi_crosses_below_overbought(r.rsi):
                trig.append(f"RSI crossed below {osc.RSI_OVERBOUGHT:g}")
        if self._on("STOCHASTIC"):
            if bullish and osc.stochastic_bullish_cross(r.stoch.k, r.stoch.d):
                trig.append("Stochastic %K crossed above %D")
            elif not bullish and osc.stochastic_bearish_cross(r.stoch.k, r.stoch.d):
                trig.append("Stochastic %K crossed below %D")
        if self._on("MACD"):
            if bullish and osc.macd_bullish_cross(r.macd.macd, r.macd.signal):
                trig.append("MACD crossed above signal line")
            elif not bullish and osc.macd_bearish_cross(r.macd.macd, r.macd.signal):
                trig.append("MACD crossed below signal line")
            if bullish and osc.histogram_turned_positive(r.macd.histogram):
                trig.append("MACD histogram turned positive")
            elif not bullish and osc.histogram_turned_negative(r.macd.histogram):
                trig.append("MACD histogram turned negative")
        if self._on("MOMENTUM"):
            if bullish and osc.momentum_crosses_above_zero(r.momentum):
                trig.append("Momentum crossed above 0")
            elif not bullish and osc.momentum_crosses_below_zero(r.momentum):
                trig.append("Momentum crossed below 0")
        if trig:
            details.append("TRIGGER: " + ", ".join(trig))

        # Layer 3: confirmation
        conf: List[str] = []
        adx_now = latest(r.adx)
        if self._on("ADX") and osc.is_strong_trend(adx_now, self.min_adx):
            conf.append(f"ADX >= {self.min_adx:g} ({_fmt(adx_now)})")
        mom_now = latest(r.momentum)
        if self._on("MOMENTUM") and mom_now is not None:
            if bullish and mom_now > 0:
                conf.append(f"Momentum positive ({_fmt(mom_now, 2)})")
            elif not bullish and mom_now < 0:
                conf.append(f"Momentum negative ({_fmt(mom_now, 2)})")
        if conf:
            details.append("CONFIRMATION: " + ", ".join(conf))

        return OscillatorLayerResult(
            condition=bool(cond),
            trigger=bool(trig),
            confirmation=bool(conf),
            score=layer_score(len(cond), len(trig), len(conf)),
            details=details,
            condition_count=len(cond),
            trigger_count=len(trig),
            confirmation_count=len(conf),
        )

    def analyze_buy(self, primary: Sequence[Candle], confirmation: Sequence[Candle]) -> OscillatorLayerResult:
        return self.analyze(BUY, OscillatorReadings.compute(primary, confirmation))

    def analyze_sell(self, primary: Sequence[Candle], confirmation: Sequence[Candle]) -> OscillatorLayerResult:
        return self.analyze(SELL, OscillatorReadings.compute(primary, confirmation))
