from reversal_scanner.indicators.trend import parse_ma_spec
from reversal_scanner.models import BUY, NEUTRAL, SELL, Candle
from reversal_scanner.trading_types import rules_for
from reversal_scanner.trend import TrendEngine, analyze_trend


def _c(idx: int, o: float, h: float, l: float, c: float, v: float = 1000.0) -> Candle:
    return Candle(timestamp_ms=(idx + 1) * 60_000, open=o, high=h, low=l, close=c, volume=v)


def _line(n: int, start: float, step: float):
    out = []
    for i in range(n):
        c = start + step * i
        o = c - step
        out.append(_c(i, o, max(o, c) + 0.5, min(o, c) - 0.5, c))
    return out


EMAS = [parse_ma_spec(s) for s in ("EMA10", "EMA20", "EMA50")]


def test_rising_series_swing_full_alignment():
    res = analyze_trend(_line(60, 100.0, 1.0), EMAS, "swing")
    assert res.direction == BUY
    assert res.score == 100
    assert res.ma_alignment
    assert "EMA10 > EMA20 > EMA50 (strong bullish alignment)" in res.details
    assert any(d.startswith("Price > EMA10 (") for d in res.details)
    assert "EMA50 slope ↑" in res.details
    assert res.slope > 0


def test_rising_series_day_moderate_alignment():
    # 3 MAs * 1.5 + 1.5 alignment = 6.0 of 6.5 possible
    res = analyze_trend(_line(60, 100.0, 1.0), EMAS, "day")
    assert res.direction == BUY
    assert res.score == 92
    assert res.ma_alignment
    assert "EMA10 > EMA20" in res.details


def test_scalp_partial_alignment_adds_no_votes():
    res = analyze_trend(_line(60, 100.0, 1.0), EMAS, "scalp")
    assert res.direction == BUY
    assert res.score == 69
    assert res.ma_alignment


def test_falling_series_is_bearish():
    res = analyze_trend(_line(60, 200.0, -1.0), EMAS, "swing")
    assert res.direction == SELL
    assert res.score == 100
    assert "EMA10 < EMA20 < EMA50 (strong bearish alignment)" in res.details
    assert res.slope < 0


def test_flat_series_ties_to_neutral():
    flat = [_c(i, 50, 51, 49, 50) for i in range(60)]
    res = analyze_trend(flat, EMAS, "swing")
    assert res.direction == NEUTRAL
    assert res.score == 0
    assert not res.ma_alignment


def test_unfilled_averages_are_skipped():
    # SMA200 never fills on 60 bars and no EMAs were requested, so nothing votes
    res = TrendEngine(rules_for("swing")).analyze(_line(60, 100.0, 1.0), [parse_ma_spec("SMA200")])
    assert res.details == []
    assert res.direction == NEUTRAL
    assert res.score == 0
    assert not res.ma_alignment


def test_alignment_needs_requested_emas():
    # 1.5 votes of 1.5 + 2 possible, no alignment vote
    res = analyze_trend(_line(60, 100.0, 1.0), [parse_ma_spec("SMA20")], "day")
    assert res.direction == BUY
    assert res.score == 43
    assert not res.ma_alignment
    assert res.details == ["Price > SMA20 (149.50)", "SMA20 slope ↑"]


def test_strict_alignment_needs_ema50():
    specs = [parse_ma_spec("EMA10"), parse_ma_spec("EMA20")]
    res = analyze_trend(_line(60, 100.0, 1.0), specs, "swing")
    assert res.score == 60
    assert not res.ma_alignment
    assert not any("alignment" in d for d in res.details)


def test_empty_series():
    res = analyze_trend([], EMAS, "day")
    assert res.direction == NEUTRAL
    assert res.score == 0
    assert res.details
