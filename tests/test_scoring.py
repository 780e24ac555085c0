import pytest

from reversal_scanner.models import BUY, NEUTRAL, NO_TRADE, SELL, SPECULATIVE, STRONG_BUY
from reversal_scanner.scoring import (
    assign_rating,
    calculate_score,
    confirmation_bonus,
    meets_minimum_score,
    volatility_bonus,
    volume_bonus,
)
from reversal_scanner.trading_types import TRADING_TYPES

DAY = TRADING_TYPES["day"]
SCALP = TRADING_TYPES["scalp"]
SWING = TRADING_TYPES["swing"]


@pytest.mark.parametrize(
    "score,rating",
    [(85, STRONG_BUY), (84, BUY), (75, BUY), (74, SPECULATIVE), (65, SPECULATIVE), (64, NO_TRADE), (0, NO_TRADE)],
)
def test_rating_thresholds(score, rating):
    assert assign_rating(score) == rating


def test_weighted_score():
    s = calculate_score(80, 90, 40, 60)
    assert s.final_score == 86
    assert s.trend_score == 80 and s.oscillator_score == 90


def test_score_rounds_half_up():
    assert calculate_score(84.5, 84.5, 50, 50).final_score == 85


def test_bonuses_are_capped_at_100():
    assert calculate_score(100, 100, 40, 60, 10, 6, 7).final_score == 100


def test_score_is_monotone_in_each_input():
    base = calculate_score(50, 50, 40, 60, 2, 2, 2).final_score
    assert calculate_score(60, 50, 40, 60, 2, 2, 2).final_score >= base
    assert calculate_score(50, 60, 40, 60, 2, 2, 2).final_score >= base
    assert calculate_score(50, 50, 40, 60, 5, 2, 2).final_score >= base


def test_minimum_score_is_inclusive():
    assert meets_minimum_score(70, 70)
    assert not meets_minimum_score(69, 70)


@pytest.mark.parametrize("ratio,bonus", [(1.4, 0), (1.5, 5), (2.5, 8), (3.0, 10), (6.0, 10)])
def test_volume_bonus_day(ratio, bonus):
    assert volume_bonus(ratio * 1000, 1000, DAY) == bonus


def test_volume_bonus_scalp_and_zero_average():
    assert volume_bonus(3500, 1000, SCALP) == 7
    assert volume_bonus(3500, 0, DAY) == 0


@pytest.mark.parametrize("pct,bonus", [(1.75, 6), (0.5, 3), (3.0, 3), (3.1, 0), (0.4, 0), (None, 0)])
def test_volatility_bonus_day(pct, bonus):
    assert volatility_bonus(pct, DAY) == bonus


def test_volatility_bonus_swing_edge_rounds_up():
    assert volatility_bonus(0.5, SWING) == 3


def test_confirmation_bonus():
    assert confirmation_bonus(BUY, BUY, DAY) == 7
    assert confirmation_bonus(SELL, SELL, SWING) == 10
    assert confirmation_bonus(BUY, SELL, DAY) == 0
    assert confirmation_bonus(BUY, NEUTRAL, DAY) == 0
