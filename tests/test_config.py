from pathlib import Path

import pytest

from reversal_scanner.config import (
    ProfileError,
    list_profiles,
    load_profile,
    profile_path_for,
)


def _write(tmp_path: Path, text: str, name: str = "profile.yaml") -> str:
    p = tmp_path / name
    p.write_text(text, encoding="utf-8")
    return str(p)


BASE = """
trading_type: day
timeframes: {primary: 5m, confirmation: 15m}
indicators:
  trend: [EMA10, EMA20, SMA50]
weights: {trend: 40, oscillator: 60}
filters: {min_volume: 1000000, min_adx: 20}
scoring: {min_score: 70}
"""


def test_bundled_profiles_are_valid():
    names = [p.stem for p in list_profiles()]
    assert {"scalp", "day", "swing"} <= set(names)
    for path in list_profiles():
        profile = load_profile(str(path))
        assert profile.trading_type == path.stem
        assert profile.weights.trend + profile.weights.oscillator == 100
        assert profile.trend_specs


def test_default_profile_is_day():
    assert load_profile().trading_type == "day"


def test_trend_names_are_parsed(tmp_path):
    profile = load_profile(_write(tmp_path, BASE))
    assert [s.label for s in profile.trend_specs] == ["EMA10", "EMA20", "SMA50"]


def test_weights_must_sum_to_100(tmp_path):
    path = _write(tmp_path, BASE.replace("oscillator: 60", "oscillator: 40").replace("trend: 40", "trend: 50"))
    with pytest.raises(ProfileError, match="must sum to 100"):
        load_profile(path)


def test_unknown_trend_indicator(tmp_path):
    path = _write(tmp_path, BASE.replace("SMA50", "FOO10"))
    with pytest.raises(ProfileError, match="Unsupported trend indicator"):
        load_profile(path)


def test_all_errors_are_reported_together(tmp_path):
    text = BASE.replace("trading_type: day", "trading_type: hodl").replace("min_score: 70", "min_score: 170")
    with pytest.raises(ProfileError) as exc:
        load_profile(_write(tmp_path, text))
    msg = str(exc.value)
    assert "trading_type" in msg
    assert "scoring.min_score" in msg


def test_unknown_section_key(tmp_path):
    path = _write(tmp_path, BASE + "app: {colour: blue}\n")
    with pytest.raises(ProfileError, match="section 'app'"):
        load_profile(path)


def test_unreadable_profiles(tmp_path):
    with pytest.raises(ProfileError, match="Failed to load"):
        load_profile(str(tmp_path / "missing.yaml"))
    with pytest.raises(ProfileError, match="Failed to parse"):
        load_profile(_write(tmp_path, "weights: [1, 2\n"))


def test_datasource_fallback(tmp_path):
    ds = Path(_write(tmp_path, "provider: mock\nmarket: IDX\ndefault_symbols: [BBRI, TLKM]\n", "ds.yaml"))
    profile = load_profile(_write(tmp_path, BASE), datasource_path=ds)
    assert profile.data_source.provider == "mock"
    assert profile.data_source.market == "IDX"
    assert profile.data_source.default_symbols == ["BBRI", "TLKM"]

    none = load_profile(_write(tmp_path, BASE), datasource_path=tmp_path / "nope.yaml")
    assert none.data_source is None


def test_inline_datasource_wins(tmp_path):
    ds = Path(_write(tmp_path, "provider: mock\n", "ds.yaml"))
    text = BASE + "data_source: {provider: yahoo, market: NYSE}\n"
    profile = load_profile(_write(tmp_path, text), datasource_path=ds)
    assert profile.data_source.provider == "yahoo"
    assert profile.data_source.market == "NYSE"


def test_env_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv("SCANNER_LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("SCANNER_PROVIDER", "mock")
    profile = load_profile(_write(tmp_path, BASE), datasource_path=tmp_path / "nope.yaml")
    assert profile.app.log_level == "DEBUG"
    assert profile.data_source.provider == "mock"


def test_bad_market_from_env(tmp_path, monkeypatch):
    monkeypatch.setenv("SCANNER_MARKET", "LSE")
    with pytest.raises(ProfileError, match="data_source.market"):
        load_profile(_write(tmp_path, BASE))


def test_profile_path_for(tmp_path):
    assert profile_path_for("swing", tmp_path) == tmp_path / "swing.yaml"
    assert list_profiles(tmp_path / "empty") == []
