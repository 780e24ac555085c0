from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import math
import re
from typing import Callable, Dict, Optional, Sequence

from ..models import Candle
from ..series import Series, closes, window


def sma_values(values: Sequence[Optional[float]], period: int) -> Series:
    out: Series = []
    for i in range(len(values)):
        w = window(values, i, period)
        out.append(None if w is None else sum(w) / float(period))
    return out


def ema_values(values: Sequence[float], period: int) -> Series:
    """EMA whose first `period` outputs are the running mean of the prefix."""
    out: Series = []
    if period <= 0:
        return [None] * len(values)
    alpha = 2.0 / (period + 1.0)
    running = 0.0
    for i, x in enumerate(values):
        if i < period:
            running += x
            out.append(running / float(i + 1))
        else:
            prev = out[-1]
            out.append(prev + alpha * (x - prev))
    return out


def wma_values(values: Sequence[Optional[float]], period: int) -> Series:
    """Linear-weighted MA, weight = 1-indexed position in the window."""
    out: Series = []
    denom = period * (period + 1) / 2.0
    for i in range(len(values)):
        w = window(values, i, period)
        if w is None:
            out.append(None)
            continue
        out.append(sum(v * (j + 1) for j, v in enumerate(w)) / denom)
    return out


def sma(candles: Sequence[Candle], period: int) -> Series:
    return sma_values(closes(candles), period)


def ema(candles: Sequence[Candle], period: int) -> Series:
    return ema_values(closes(candles), period)


def hma(candles: Sequence[Candle], period: int) -> Series:
    """Hull MA: WMA(2*WMA(n/2) - WMA(n), floor(sqrt(n)))."""
    cl = closes(candles)
    half = wma_values(cl, period // 2)
    full = wma_values(cl, period)
    diff: Series = []
    for h, f in zip(half, full):
        diff.append(None if h is None or f is None else 2.0 * h - f)
    return wma_values(diff, int(math.floor(math.sqrt(period))))


def vwma(candles: Sequence[Candle], period: int) -> Series:
    out: Series = []
    for i in range(len(candles)):
        start = i - period + 1
        if period <= 0 or start < 0:
            out.append(None)
            continue
        chunk = candles[start:i + 1]
        vol = sum(c.volume for c in chunk)
        if vol <= 0:
            out.append(None)
        else:
            out.append(sum(c.close * c.volume for c in chunk) / vol)
    return out


class MAKind(Enum):
    SMA = "SMA"
    EMA = "EMA"
    HMA = "HMA"
    VWMA = "VWMA"


@dataclass(frozen=True)
class MovingAverageSpec:
    kind: MAKind
    period: int

    @property
    def label(self) -> str:
        return f"{self.kind.value}{self.period}"


MA_FUNCTIONS: Dict[MAKind, Callable[[Sequence[Candle], int], Series]] = {
    MAKind.SMA: sma,
    MAKind.EMA: ema,
    MAKind.HMA: hma,
    MAKind.VWMA: vwma,
}

_MA_RE = re.compile(r"^(SMA|EMA|HMA|VWMA)(\d+)$")


def parse_ma_spec(name: str) -> MovingAverageSpec:
    m = _MA_RE.match((name or "").strip().upper())
    if not m or int(m.group(2)) <= 0:
        raise ValueError(f"Unsupported trend indicator: {name!r} (use e.g. EMA10, SMA20, HMA9, VWMA20)")
    return MovingAverageSpec(kind=MAKind(m.group(1)), period=int(m.group(2)))


def moving_average(candles: Sequence[Candle], spec: MovingAverageSpec) -> Series:
    return MA_FUNCTIONS[spec.kind](candles, spec.period)


def moving_averages(candles: Sequence[Candle], specs: Sequence[MovingAverageSpec]) -> Dict[str, Series]:
    out: Dict[str, Series] = {}
    for spec in specs:
        if spec.label not in out:
            out[spec.label] = moving_average(candles, spec)
    return out
