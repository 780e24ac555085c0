from dataclasses import replace

from reversal_scanner.config import Filters, Profile, Scoring, validate_profile
from reversal_scanner.formatters import format_one_line, format_rejection, format_signal_detail, format_table
from reversal_scanner.models import BUY, Candle, RejectedAnalysis
from reversal_scanner.report import render_dashboard, tradingview_symbol, write_dashboard
from reversal_scanner.scan_log import ScanLog
from reversal_scanner.scanner import analyze


def _c(idx: int, o: float, h: float, l: float, c: float, v: float = 2_000_000.0) -> Candle:
    return Candle(timestamp_ms=(idx + 1) * 300_000, open=o, high=h, low=l, close=c, volume=v)


def _signal():
    closes = [100.0 - i * (30.0 / 29.0) for i in range(30)] + [70.0 + (i - 29) for i in range(30, 35)]
    primary = []
    prev = closes[0]
    for i, c in enumerate(closes):
        primary.append(_c(i, prev, max(prev, c) + 0.2, min(prev, c) - 0.2, c))
        prev = c
    confirmation = [_c(i, 9.5 + i, 11 + i, 9 + i, 10 + i) for i in range(60)]
    profile = validate_profile(
        Profile(trading_type="day", filters=Filters(min_volume=1_000_000), scoring=Scoring(min_score=60))
    )
    return analyze("BBRI.JK", primary, confirmation, profile).signal


def _rejected(**kw) -> RejectedAnalysis:
    base = dict(
        symbol="TLKM.JK",
        direction=BUY,
        trend_score=40,
        oscillator_score=0,
        final_score=30,
        volume_bonus=0,
        volatility_bonus=0,
        confirmation_bonus=0,
        liquidity_pass=True,
        volatility_pass=True,
        trend_details=[],
        oscillator_details=[],
        failure_reasons=["No reversal signals detected in oscillators", "Score 30 below minimum threshold 70"],
        min_score_threshold=70,
    )
    base.update(kw)
    return RejectedAnalysis(**base)


def test_scan_log_counts_rejections():
    ticks = iter([1000.0, 1002.5])
    scan_log = ScanLog(clock=lambda: next(ticks))
    scan_log.start("day", "5m", "15m", ["TLKM.JK", "ICBP.JK", "BBRI.JK"])
    scan_log.result(_rejected())
    scan_log.result(
        _rejected(
            symbol="ICBP.JK",
            liquidity_pass=False,
            failure_reasons=["Average volume (500,000) below minimum (1,000,000)"],
        )
    )
    scan_log.result(replace(_rejected(), symbol="X"))
    scan_log.error("BAD", "ProviderError('boom')")
    scan_log.summary()

    assert scan_log.rejections == {"liquidity": 1, "volatility": 0, "low_score": 3, "no_reversal": 3}
    text = scan_log.text()
    assert "REVERSAL SCAN LOG - " in text
    assert "Symbols to Scan: TLKM.JK, ICBP.JK, BBRI.JK" in text
    assert "Average volume (500,000) below minimum (1,000,000) (hard constraint)" in text
    assert "Final Score: N/A (Filtered)" in text
    assert "Score 30 below minimum threshold 70\n" in text
    assert "Errors: 1" in text
    assert "Duration: 2.50s" in text


def test_scan_log_signal_and_write(tmp_path):
    sig = _signal()
    scan_log = ScanLog(clock=lambda: 0.0)
    scan_log.start("day", "5m", "15m", [sig.symbol])
    scan_log.signal(sig)
    scan_log.summary()
    out = scan_log.write(str(tmp_path / "logs" / "scan.log"))
    text = out.read_text(encoding="utf-8")
    assert "[BBRI.JK] SIGNAL FOUND" in text
    assert "Signals Found: 1" in text


def test_formatters():
    sig = _signal()
    table = format_table([sig])
    assert table.splitlines()[0].startswith("SYMBOL")
    assert "BBRI.JK" in table and "▲ BUY" in table
    detail = format_signal_detail(sig)
    assert "Final Score: " in detail
    assert "RSI crossed above 30" in detail
    assert format_one_line(sig) == f"BBRI.JK: {sig.rating} (Score: {sig.score}) - BUY"


def test_format_rejection():
    text = format_rejection(_rejected())
    assert "Score (30) below minimum (70)" in text
    assert "No reversal signals detected in oscillators" in text
    assert "Filter failures" not in text

    filtered = format_rejection(
        _rejected(volatility_pass=False, failure_reasons=["ATR 9.00% above maximum 5%"], oscillator_score=20)
    )
    assert "• ATR 9.00% above maximum 5%" in filtered


def test_tradingview_symbol():
    assert tradingview_symbol("BBRI.JK") == "IDX:BBRI"
    assert tradingview_symbol("AAPL") == "AAPL"


def test_dashboard_escapes_text(tmp_path):
    sig = replace(_signal(), explanation="<script>alert(1)</script>")
    page = render_dashboard([sig], title="Scan & Co")
    assert "<script>" not in page
    assert "&lt;script&gt;" in page
    assert "Scan &amp; Co" in page
    assert 'id="total">1<' in page
    assert 'id="buy">1<' in page
    assert "IDX:BBRI" in page

    out = write_dashboard([], str(tmp_path / "dash.html"))
    assert "No signals in this scan." in out.read_text(encoding="utf-8")
