from reversal_scanner.levels import (
    calculate_levels,
    estimate_win_rate,
    resistance,
    stop_loss,
    support,
    take_profit,
)
from reversal_scanner.models import BUY, SELL, Candle


def _c(idx: int, o: float, h: float, l: float, c: float, v: float = 1_000_000.0) -> Candle:
    return Candle(timestamp_ms=(idx + 1) * 60_000, open=o, high=h, low=l, close=c, volume=v)


def _staircase():
    return [_c(i, 90 + i + 1, 92 + i, 90 + i, 90 + i + 1) for i in range(25)]


def test_support_and_resistance_use_last_20_bars():
    candles = _staircase()
    price = candles[-1].close  # 115
    assert support(candles, price) == 95
    assert resistance(candles, price) == 116


def test_levels_fall_back_to_window_extremes():
    candles = [_c(i, 100, 100.5, 99.5, 100) for i in range(20)]
    assert support(candles, 100) == 99.5
    assert resistance(candles, 100) == 100.5


def test_stop_loss_and_take_profit():
    assert stop_loss(100, 2.0, BUY) == 96
    assert take_profit(100, 96, BUY) == 108
    assert stop_loss(100, 2.0, SELL) == 104
    assert take_profit(100, 104, SELL) == 92


def test_levels_without_atr():
    assert stop_loss(100, None, BUY) is None
    assert take_profit(100, None, BUY) is None


def test_win_rate():
    assert estimate_win_rate(80, 7, 5) == 82
    assert estimate_win_rate(72, 0, 0) == 69
    assert estimate_win_rate(100, 10, 10) == 90


def test_calculate_levels():
    lv = calculate_levels(_staircase(), BUY, 1.5, 80, 7, 0)
    assert lv.entry == 115
    assert lv.stop_loss == 112
    assert lv.take_profit == 121
    assert lv.risk_reward_ratio == 2.0
    assert lv.win_rate == 77
