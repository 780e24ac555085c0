import pytest

from reversal_scanner.models import Candle
from reversal_scanner.series import (
    average,
    crossover,
    crossunder,
    crosses_above_level,
    crosses_below_level,
    round_half_up,
    slope,
    standard_deviation,
    true_range,
    window,
)


def _c(idx: int, o: float, h: float, l: float, c: float, v: float = 1000.0) -> Candle:
    return Candle(timestamp_ms=(idx + 1) * 60_000, open=o, high=h, low=l, close=c, volume=v)


def test_crossover_two_sample_rule():
    assert crossover([1.0, 3.0], [2.0, 2.0])
    assert crossover([2.0, 3.0], [2.0, 2.0])  # touching on prev bar counts
    assert not crossover([3.0, 4.0], [2.0, 2.0])
    assert not crossover([1.0, 2.0], [2.0, 2.0])  # equal on current bar is not a cross


def test_crossunder_two_sample_rule():
    assert crossunder([3.0, 1.0], [2.0, 2.0])
    assert crossunder([2.0, 1.0], [2.0, 2.0])
    assert not crossunder([1.0, 0.5], [2.0, 2.0])


def test_cross_needs_two_valid_samples():
    assert not crossover([3.0], [2.0])
    assert not crossover([], [])
    assert not crossover([None, 3.0], [2.0, 2.0])
    assert not crossunder([3.0, None], [2.0, 2.0])
    assert not crosses_above_level([None, 1.0], 0.0)


def test_level_crosses():
    assert crosses_above_level([-1.0, 0.5], 0.0)
    assert crosses_below_level([0.0, -0.5], 0.0)
    assert not crosses_above_level([0.5, 1.0], 0.0)


def test_slope_linear_and_unavailable():
    assert slope([1, 2, 3, 4, 5], 5) == pytest.approx(1.0)
    assert slope([10, 8, 6, 4, 2], 5) == pytest.approx(-2.0)
    assert slope([1, 2], 5) == 0.0
    assert slope([1, None, 3, 4, 5], 5) == 0.0
    # only the tail matters
    assert slope([100, 0, 1, 2, 3, 4], 5) == pytest.approx(1.0)


def test_window():
    assert window([1.0, 2.0, 3.0], 2, 2) == [2.0, 3.0]
    assert window([1.0, 2.0, 3.0], 0, 2) is None
    assert window([1.0, None, 3.0], 2, 2) is None


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(84.5) == 85
    assert round_half_up(84.49) == 84
    assert round_half_up(0.5) == 1


def test_average_and_std():
    assert average([]) == 0.0
    assert average([1.0, 2.0, 3.0]) == pytest.approx(2.0)
    assert standard_deviation([2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0]) == pytest.approx(2.0)


def test_true_range_first_bar_is_high_minus_low():
    candles = [_c(0, 10, 11, 9, 9), _c(1, 11, 12, 10, 11)]
    assert true_range(candles) == [pytest.approx(2.0), pytest.approx(3.0)]
