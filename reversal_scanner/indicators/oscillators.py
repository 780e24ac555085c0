from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..models import Candle
from ..series import (
    Series,
    closes,
    crosses_above_level,
    crosses_below_level,
    crossover,
    crossunder,
    latest,
    true_range,
)
from .trend import ema_values, sma_values

RSI_PERIOD = 14
RSI_OVERSOLD = 30.0
RSI_OVERBOUGHT = 70.0

STOCH_K = 14
STOCH_D = 3
STOCH_SMOOTH = 3
STOCH_OVERSOLD = 20.0
STOCH_OVERBOUGHT = 80.0

MACD_FAST = 12
MACD_SLOW = 26
MACD_SIGNAL = 9

MOMENTUM_PERIOD = 10

ADX_PERIOD = 14
ADX_THRESHOLD = 20.0

CCI_PERIOD = 20
CCI_OVERSOLD = -100.0
CCI_OVERBOUGHT = 100.0

WILLIAMS_PERIOD = 14
WILLIAMS_OVERSOLD = -80.0
WILLIAMS_OVERBOUGHT = -20.0

ATR_PERIOD = 14


# --- RSI ---------------------------------------------------------------------

def _rsi_value(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        return 100.0
    rs = avg_gain / avg_loss
    return 100.0 - (100.0 / (1.0 + rs))


def rsi(candles: Sequence[Candle], period: int = RSI_PERIOD) -> Series:
    """Wilder RSI. First value lands on index `period` (needs period+1 closes)."""
    cl = closes(candles)
    out: Series = [None] * len(cl)
    if period <= 0 or len(cl) < period + 1:
        return out

    gains: List[float] = [0.0]
    losses: List[float] = [0.0]
    for i in range(1, len(cl)):
        ch = cl[i] - cl[i - 1]
        gains.append(ch if ch > 0 else 0.0)
        losses.append(-ch if ch < 0 else 0.0)

    avg_gain = sum(gains[1:period + 1]) / period
    avg_loss = sum(losses[1:period + 1]) / period
    out[period] = _rsi_value(avg_gain, avg_loss)
    for i in range(period + 1, len(cl)):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period
        out[i] = _rsi_value(avg_gain, avg_loss)
    return out


def is_rsi_oversold(value: Optional[float], level: float = RSI_OVERSOLD) -> bool:
    return value is not None and value < level


def is_rsi_overbought(value: Optional[float], level: float = RSI_OVERBOUGHT) -> bool:
    return value is not None and value > level


def rsi_crosses_above_oversold(values: Sequence[Optional[float]], level: float = RSI_OVERSOLD) -> bool:
    if len(values) < 2 or values[-2] is None or values[-1] is None:
        return False
    return values[-2] < level and values[-1] >= level


def rsi_crosses_below_overbought(values: Sequence[Optional[float]], level: float = RSI_OVERBOUGHT) -> bool:
    if len(values) < 2 or values[-2] is None or values[-1] is None:
        return False
    return values[-2] > level and values[-1] <= level


# --- Stochastic --------------------------------------------------------------

@dataclass(frozen=True)
class StochasticResult:
    k: Series
    d: Series


def stochastic(
    candles: Sequence[Candle],
    k_period: int = STOCH_K,
    d_period: int = STOCH_D,
    smooth: int = STOCH_SMOOTH,
) -> StochasticResult:
    raw: Series = []
    for i in range(len(candles)):
        start = i - k_period + 1
        if k_period <= 0 or start < 0:
            raw.append(None)
            continue
        chunk = candles[start:i + 1]
        hh = max(c.high for c in chunk)
        ll = min(c.low for c in chunk)
        rng = hh - ll
        raw.append(50.0 if rng == 0 else (candles[i].close - ll) / rng * 100.0)

    k = sma_values(raw, smooth) if smooth > 1 else raw
    d = sma_values(k, d_period)
    return StochasticResult(k=k, d=d)


def is_stochastic_oversold(k: Optional[float], level: float = STOCH_OVERSOLD) -> bool:
    return k is not None and k < level


def is_stochastic_overbought(k: Optional[float], level: float = STOCH_OVERBOUGHT) -> bool:
    return k is not None and k > level


def stochastic_bullish_cross(k: Sequence[Optional[float]], d: Sequence[Optional[float]]) -> bool:
    return crossover(k, d)


def stochastic_bearish_cross(k: Sequence[Optional[float]], d: Sequence[Optional[float]]) -> bool:
    return crossunder(k, d)


# --- MACD --------------------------------------------------------------------

@dataclass(frozen=True)
class MacdResult:
    macd: Series
    signal: Series
    histogram: Series


def macd(
    candles: Sequence[Candle],
    fast: int = MACD_FAST,
    slow: int = MACD_SLOW,
    signal: int = MACD_SIGNAL,
) -> MacdResult:
    cl = closes(candles)
    fast_ema = ema_values(cl, fast)
    slow_ema = ema_values(cl, slow)
    line: Series = []
    for f, s in zip(fast_ema, slow_ema):
        line.append(None if f is None or s is None else f - s)

    if any(v is None for v in line):
        sig: Series = [None] * len(line)
    else:
        sig = ema_values(line, signal)  # type: ignore[arg-type]

    hist: Series = []
    for m, s in zip(line, sig):
        hist.append(None if m is None or s is None else m - s)
    return MacdResult(macd=line, signal=sig, histogram=hist)


def macd_bullish_cross(line: Sequence[Optional[float]], signal: Sequence[Optional[float]]) -> bool:
    return crossover(line, signal)


def macd_bearish_cross(line: Sequence[Optional[float]], signal: Sequence[Optional[float]]) -> bool:
    return crossunder(line, signal)


def histogram_turned_positive(hist: Sequence[Optional[float]]) -> bool:
    return crosses_above_level(hist, 0.0)


def histogram_turned_negative(hist: Sequence[Optional[float]]) -> bool:
    return crosses_below_level(hist, 0.0)


# --- Momentum ----------------------------------------------------------------

def momentum(candles: Sequence[Candle], period: int = MOMENTUM_PERIOD) -> Series:
    cl = closes(candles)
    return [None if period <= 0 or i < period else cl[i] - cl[i - period] for i in range(len(cl))]


def momentum_crosses_above_zero(values: Sequence[Optional[float]]) -> bool:
    return crosses_above_level(values, 0.0)


def momentum_crosses_below_zero(values: Sequence[Optional[float]]) -> bool:
    return crosses_below_level(values, 0.0)


# --- ADX ---------------------------------------------------------------------

@dataclass(frozen=True)
class AdxResult:
    adx: Series
    plus_di: Series
    minus_di: Series


def _wilder_sum(values: Sequence[float], period: int) -> Series:
    """Wilder running sum seeded with the plain sum of the first `period` values."""
    out: Series = []
    for i in range(len(values)):
        if i < period - 1:
            out.append(None)
        elif i == period - 1:
            out.append(sum(values[:period]))
        else:
            prev = out[-1]
            out.append(prev - prev / period + values[i])
    return out


def adx(candles: Sequence[Candle], period: int = ADX_PERIOD) -> AdxResult:
    n = len(candles)
    if period <= 0:
        empty: Series = [None] * n
        return AdxResult(adx=empty, plus_di=list(empty), minus_di=list(empty))

    plus_dm: List[float] = []
    minus_dm: List[float] = []
    for i in range(n):
        if i == 0:
            plus_dm.append(0.0)
            minus_dm.append(0.0)
            continue
        up = candles[i].high - candles[i - 1].high
        down = candles[i - 1].low - candles[i].low
        if up > down and up > 0:
            plus_dm.append(up)
            minus_dm.append(0.0)
        elif down > up and down > 0:
            plus_dm.append(0.0)
            minus_dm.append(down)
        else:
            plus_dm.append(0.0)
            minus_dm.append(0.0)

    s_tr = _wilder_sum(true_range(candles), period)
    s_plus = _wilder_sum(plus_dm, period)
    s_minus = _wilder_sum(minus_dm, period)

    plus_di: Series = []
    minus_di: Series = []
    dx: Series = []
    for i in range(n):
        tr_i = s_tr[i]
        if tr_i is None or tr_i == 0:
            plus_di.append(None)
            minus_di.append(None)
            dx.append(None)
            continue
        p = s_plus[i] / tr_i * 100.0
        m = s_minus[i] / tr_i * 100.0
        plus_di.append(p)
        minus_di.append(m)
        total = p + m
        dx.append(0.0 if total == 0 else abs(p - m) / total * 100.0)

    out: Series = []
    first = 2 * period - 2
    for i in range(n):
        if i < first:
            out.append(None)
        elif i == first:
            valid = [v for v in dx[period - 1:first + 1] if v is not None]
            out.append(sum(valid) / period)
        else:
            prev = out[-1]
            out.append(None if prev is None or dx[i] is None else (prev * (period - 1) + dx[i]) / period)
    return AdxResult(adx=out, plus_di=plus_di, minus_di=minus_di)


def is_strong_trend(value: Optional[float], threshold: float = ADX_THRESHOLD) -> bool:
    return value is not None and value >= threshold


# --- CCI ---------------------------------------------------------------------

def cci(candles: Sequence[Candle], period: int = CCI_PERIOD) -> Series:
    tp = [(c.high + c.low + c.close) / 3.0 for c in candles]
    out: Series = []
    for i in range(len(tp)):
        start = i - period + 1
        if period <= 0 or start < 0:
            out.append(None)
            continue
        chunk = tp[start:i + 1]
        mean = sum(chunk) / period
        mean_dev = sum(abs(v - mean) for v in chunk) / period
        out.append(0.0 if mean_dev == 0 else (tp[i] - mean) / (0.015 * mean_dev))
    return out


def is_cci_oversold(value: Optional[float], level: float = CCI_OVERSOLD) -> bool:
    return value is not None and value < level


def is_cci_overbought(value: Optional[float], level: float = CCI_OVERBOUGHT) -> bool:
    return value is not None and value > level


# --- Williams %R -------------------------------------------------------------

def williams_r(candles: Sequence[Candle], period: int = WILLIAMS_PERIOD) -> Series:
    out: Series = []
    for i in range(len(candles)):
        start = i - period + 1
        if period <= 0 or start < 0:
            out.append(None)
            continue
        chunk = candles[start:i + 1]
        hh = max(c.high for c in chunk)
        ll = min(c.low for c in chunk)
        rng = hh - ll
        out.append(-50.0 if rng == 0 else (hh - candles[i].close) / rng * -100.0)
    return out


def is_williams_oversold(value: Optional[float], level: float = WILLIAMS_OVERSOLD) -> bool:
    return value is not None and value < level


def is_williams_overbought(value: Optional[float], level: float = WILLIAMS_OVERBOUGHT) -> bool:
    return value is not None and value > level


# --- ATR ---------------------------------------------------------------------

def atr(candles: Sequence[Candle], period: int = ATR_PERIOD) -> Series:
    """Wilder ATR with SMA seed at the first full window."""
    trs = true_range(candles)
    out: Series = []
    for i in range(len(trs)):
        if period <= 0 or i < period - 1:
            out.append(None)
        elif i == period - 1:
            out.append(sum(trs[:period]) / float(period))
        else:
            out.append((out[-1] * (period - 1) + trs[i]) / period)
    return out


def latest_atr(candles: Sequence[Candle], period: int = ATR_PERIOD) -> Optional[float]:
    return latest(atr(candles, period))


def atr_percent(candles: Sequence[Candle], period: int = ATR_PERIOD) -> Optional[float]:
    """Latest ATR as a percentage of the latest close."""
    if not candles:
        return None
    a = latest_atr(candles, period)
    price = candles[-1].close
    if a is None or price == 0:
        return None
    return a / price * 100.0
