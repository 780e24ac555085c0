import asyncio

import pytest

from reversal_scanner.models import Candle
from reversal_scanner.providers.base import ProviderError, valid_candle, validate_candles
from reversal_scanner.providers.factory import create_provider
from reversal_scanner.providers.mock import (
    MOCK_END_MS,
    PATTERNS,
    MockProvider,
    generate_candles,
    generate_pattern,
)
from reversal_scanner.providers.symbols import detect_market, normalize_symbol, normalize_symbols
from reversal_scanner.providers.yahoo import YahooProvider, parse_chart, range_for


def test_mock_series_are_deterministic():
    assert generate_candles("5m", 120, "up", seed=3) == generate_candles("5m", 120, "up", seed=3)
    assert generate_candles("5m", 120, "up", seed=3) != generate_candles("5m", 120, "up", seed=4)


@pytest.mark.parametrize("pattern", PATTERNS)
def test_mock_patterns_are_valid_ohlcv(pattern):
    candles = generate_pattern(pattern, 200, timeframe="15m", seed=11)
    assert len(candles) == 200
    assert validate_candles(candles)
    assert candles[-1].timestamp_ms == MOCK_END_MS
    steps = {b.timestamp_ms - a.timestamp_ms for a, b in zip(candles, candles[1:])}
    assert steps == {15 * 60_000}


def test_mock_rejects_unknown_shapes():
    with pytest.raises(ValueError):
        generate_candles("5m", 10, "zigzag")
    with pytest.raises(ValueError):
        generate_pattern("double-top", 10)


def test_mock_provider_fetch():
    provider = MockProvider(seed=5)

    async def _run():
        a = await provider.fetch_candles("AAPL", "5m", 50)
        b = await provider.fetch_candles("AAPL", "5m", 50)
        c = await provider.fetch_candles("MSFT", "5m", 50)
        ok = await provider.is_available()
        await provider.close()
        return a, b, c, ok

    a, b, c, ok = asyncio.run(_run())
    assert len(a) == 50
    assert a == b
    assert a != c
    assert ok


def _payload(rows, volumes=None):
    ts = [r[0] for r in rows]
    quote = {
        "open": [r[1] for r in rows],
        "high": [r[2] for r in rows],
        "low": [r[3] for r in rows],
        "close": [r[4] for r in rows],
        "volume": volumes if volumes is not None else [1000] * len(rows),
    }
    return {"chart": {"result": [{"timestamp": ts, "indicators": {"quote": [quote]}}], "error": None}}


def test_parse_chart_drops_null_rows():
    payload = _payload(
        [
            (1_700_000_000, 10.0, 11.0, 9.5, 10.5),
            (1_700_000_060, None, None, None, None),
            (1_700_000_120, 10.5, 11.5, 10.0, 11.0),
        ],
        volumes=[1000, None, None],
    )
    candles = parse_chart(payload, 10)
    assert [c.timestamp_ms for c in candles] == [1_700_000_000_000, 1_700_000_120_000]
    assert candles[0].volume == 1000.0
    assert candles[1].volume == 0.0


def test_parse_chart_keeps_last_limit_sorted():
    rows = [(1_700_000_000 + 60 * i, 10.0, 11.0, 9.0, 10.0) for i in range(5)]
    candles = parse_chart(_payload(list(reversed(rows))), 3)
    assert [c.timestamp_ms // 1000 for c in candles] == [r[0] for r in rows[-3:]]


def test_parse_chart_errors():
    with pytest.raises(ProviderError):
        parse_chart({"chart": {"result": None, "error": {"code": "Not Found"}}}, 10)
    with pytest.raises(ProviderError, match="Invalid data"):
        parse_chart(_payload([(1_700_000_000, 10.0, 9.0, 9.5, 10.5)]), 10)


@pytest.mark.parametrize(
    "tf,limit,expected",
    [("1m", 300, "5d"), ("5m", 200, "5d"), ("1h", 150, "3mo"), ("1d", 150, "1y")],
)
def test_range_for(tf, limit, expected):
    assert range_for(tf, limit) == expected


def test_yahoo_rejects_unknown_timeframe():
    with pytest.raises(ProviderError, match="Unsupported timeframe"):
        asyncio.run(YahooProvider().fetch_candles("AAPL", "2h"))


def test_valid_candle():
    assert valid_candle(Candle(1, 10, 11, 9, 10.5, 0))
    assert not valid_candle(Candle(1, 10, 10.2, 9, 10.5, 0))
    assert not validate_candles([])


def test_symbol_normalization():
    assert normalize_symbol("bbri", "IDX") == "BBRI.JK"
    assert normalize_symbol("BBRI.JK", "IDX") == "BBRI.JK"
    assert normalize_symbol("btc", "CRYPTO") == "BTC-USD"
    assert normalize_symbol(" aapl ") == "AAPL"
    assert normalize_symbols(["tlkm", " ", "icbp"], "IDX") == ["TLKM.JK", "ICBP.JK"]
    assert detect_market("TLKM.JK") == "IDX"
    assert detect_market("ETH-USD") == "CRYPTO"
    assert detect_market("MSFT") == "NASDAQ"


def test_create_provider():
    assert isinstance(create_provider("mock", seed=3), MockProvider)
    assert isinstance(create_provider("YAHOO"), YahooProvider)
    with pytest.raises(ValueError, match="Unknown data provider"):
        create_provider("bloomberg")
