from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional, Sequence

from .filters import FILTER_REASON_PREFIXES
from .models import BUY, SELL, AnalysisResult, TradingSignal


def _fmt_ms(ts_ms: int) -> str:
    dt = datetime.fromtimestamp(ts_ms / 1000.0, tz=timezone.utc)
    return dt.strftime("%Y-%m-%d %H:%M UTC")


def _fmt_price(val: Optional[float]) -> str:
    if val is None:
        return "-"
    if abs(val) >= 1000:
        return f"{val:,.2f}"
    return f"{val:.4g}" if abs(val) < 1 else f"{val:.2f}"


def _fmt_bonus(val: float) -> str:
    return f"+{val:g}"


def _arrow(direction: str) -> str:
    if direction == BUY:
        return "▲ BUY"
    if direction == SELL:
        return "▼ SELL"
    return "─ " + direction


def section(title: str) -> str:
    return f"\n{title}\n" + "─" * len(title)


_COLUMNS = (
    ("SYMBOL", 12),
    ("DIRECTION", 11),
    ("SCORE", 7),
    ("RATING", 13),
    ("ENTRY", 11),
    ("SUPPORT", 11),
    ("RESIST", 11),
    ("SL", 11),
    ("TP", 11),
    ("RR", 6),
    ("WIN%", 5),
)


def format_table(signals: Sequence[TradingSignal]) -> str:
    header = "".join(name.ljust(width) for name, width in _COLUMNS).rstrip()
    lines = [header, "─" * len(header)]
    for s in signals:
        cells = [
            s.symbol,
            _arrow(s.direction),
            str(s.score),
            s.rating,
            _fmt_price(s.entry),
            _fmt_price(s.levels.support),
            _fmt_price(s.levels.resistance),
            _fmt_price(s.stop_loss),
            _fmt_price(s.take_profit),
            f"1:{s.risk_reward_ratio:g}",
            f"{s.win_rate}%",
        ]
        lines.append("".join(c.ljust(w) for c, (_, w) in zip(cells, _COLUMNS)).rstrip())
    return "\n".join(lines)


def format_signal_detail(s: TradingSignal) -> str:
    """Multi-line breakdown of one signal."""
    lines: List[str] = [
        f"Symbol: {s.symbol}",
        f"Trading Type: {s.trading_type.upper()}",
        f"Direction: {s.direction}",
        f"Timestamp: {_fmt_ms(s.timestamp_ms)} ({s.timeframe})",
        "",
        "Trend Analysis (confirmation timeframe):",
    ]
    if s.details.trend.details:
        lines.extend(f"  - {d}" for d in s.details.trend.details)
    else:
        lines.append("  - No clear trend")
    lines.append("")
    lines.append("Oscillator Analysis (primary timeframe):")
    if s.details.oscillators.details:
        lines.extend(f"  - {d}" for d in s.details.oscillators.details)
    else:
        lines.append("  - No signals detected")
    lines += [
        "",
        "Filters:",
        f"  - Liquidity: {'PASS' if s.details.liquidity_pass else 'FAIL'}",
        f"  - Volatility: {'PASS' if s.details.volatility_pass else 'FAIL'}",
        "",
        "Score Breakdown:",
        f"  - Trend Score: {s.trend_score}/100",
        f"  - Oscillator Score: {s.oscillator_score}/100",
        f"  - Volume Bonus: {_fmt_bonus(s.volume_bonus)}",
        f"  - Volatility Bonus: {_fmt_bonus(s.volatility_bonus)}",
        f"  - Confirmation Bonus: {_fmt_bonus(s.confirmation_bonus)}",
        f"  - Final Score: {s.score}/100",
        "",
        "Levels:",
        f"  - Entry: {_fmt_price(s.entry)}",
        f"  - Support: {_fmt_price(s.levels.support)} | Resistance: {_fmt_price(s.levels.resistance)}",
        f"  - Stop Loss: {_fmt_price(s.stop_loss)} | Take Profit: {_fmt_price(s.take_profit)}",
        f"  - Risk/Reward: 1:{s.risk_reward_ratio:g} | Est. Win Rate: {s.win_rate}%",
        "",
        f"Rating: {s.rating}",
        "",
        "Reason:",
        s.explanation,
    ]
    return "\n".join(lines)


def format_one_line(s: TradingSignal) -> str:
    return f"{s.symbol}: {s.rating} (Score: {s.score}) - {s.direction}"


def format_rejection(r: AnalysisResult) -> str:
    lines = [f"{r.symbol}: Signal REJECTED"]
    if r.final_score < r.min_score_threshold:
        lines.append(f"  - Score ({r.final_score}) below minimum ({r.min_score_threshold:g})")
    filter_failures = [f for f in r.failure_reasons if not r.filters_pass and _is_filter_reason(f)]
    if filter_failures:
        lines.append("  - Filter failures:")
        lines.extend(f"    • {f}" for f in filter_failures)
    if r.oscillator_score == 0:
        lines.append("  - No reversal signals detected in oscillators")
    return "\n".join(lines)


def _is_filter_reason(reason: str) -> bool:
    return reason.startswith(FILTER_REASON_PREFIXES)
