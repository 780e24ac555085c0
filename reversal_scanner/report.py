from __future__ import annotations

from datetime import datetime, timezone
import html
import logging
from pathlib import Path
import tempfile
from typing import List, Optional, Sequence

from .models import BUY, SELL, TradingSignal
from .series import round_half_up

log = logging.getLogger("report")

DEFAULT_DASHBOARD_NAME = "reversal-dashboard.html"

_STYLE = """
body { font-family: -apple-system, Segoe UI, Helvetica, Arial, sans-serif; background: #0f172a; color: #e2e8f0; margin: 2rem; }
h1 { font-size: 1.4rem; margin-bottom: 0.2rem; }
.meta { color: #94a3b8; margin-bottom: 1.5rem; }
.cards { display: flex; gap: 1rem; margin-bottom: 1.5rem; }
.card { background: #1e293b; border-radius: 8px; padding: 0.8rem 1.2rem; min-width: 8rem; }
.card .v { font-size: 1.6rem; font-weight: 600; }
table { border-collapse: collapse; width: 100%; }
th, td { text-align: left; padding: 0.45rem 0.6rem; border-bottom: 1px solid #334155; vertical-align: top; }
th { color: #94a3b8; font-weight: 500; }
.buy { color: #22c55e; } .sell { color: #ef4444; }
ul { margin: 0; padding-left: 1rem; color: #cbd5e1; font-size: 0.85rem; }
"""


def tradingview_symbol(symbol: str) -> str:
    if symbol.endswith(".JK"):
        return "IDX:" + symbol[: -len(".JK")]
    return symbol


def _e(v) -> str:
    return html.escape(str(v), quote=True)


def _price(v: Optional[float]) -> str:
    return "-" if v is None else f"{v:,.2f}"


def _row(s: TradingSignal) -> str:
    cls = "buy" if s.direction == BUY else "sell"
    details = "".join(f"<li>{_e(d)}</li>" for d in list(s.trend_details) + list(s.oscillator_details))
    return (
        "<tr>"
        f"<td>{_e(tradingview_symbol(s.symbol))}</td>"
        f"<td class=\"{cls}\">{_e(s.direction)}</td>"
        f"<td>{_e(s.rating)}</td>"
        f"<td>{s.score}</td>"
        f"<td>T {s.trend_score} / O {s.oscillator_score} / +{s.volume_bonus:g} +{s.volatility_bonus:g} +{s.confirmation_bonus:g}</td>"
        f"<td>{_e(_price(s.entry))}</td>"
        f"<td>{_e(_price(s.stop_loss))}</td>"
        f"<td>{_e(_price(s.take_profit))}</td>"
        f"<td>{_e(_price(s.levels.support))} / {_e(_price(s.levels.resistance))}</td>"
        f"<td>1:{s.risk_reward_ratio:g}</td>"
        f"<td>{s.win_rate}%</td>"
        f"<td>{_e(s.explanation)}<ul>{details}</ul></td>"
        "</tr>"
    )


def render_dashboard(signals: Sequence[TradingSignal], title: str = "Reversal Scanner", scan_time: Optional[datetime] = None) -> str:
    total = len(signals)
    buys = sum(1 for s in signals if s.direction == BUY)
    sells = sum(1 for s in signals if s.direction == SELL)
    avg = round_half_up(sum(s.score for s in signals) / total) if total else 0
    when = (scan_time or datetime.now(timezone.utc)).strftime("%Y-%m-%d %H:%M %Z").strip()

    parts: List[str] = [
        "<!DOCTYPE html>",
        "<html lang=\"en\"><head><meta charset=\"utf-8\">",
        f"<title>{_e(title)}</title>",
        f"<style>{_STYLE}</style>",
        "</head><body>",
        f"<h1>{_e(title)}</h1>",
        f"<div class=\"meta\">Scan time: {_e(when)}</div>",
        "<div class=\"cards\">",
        f"<div class=\"card\"><div>Total signals</div><div class=\"v\" id=\"total\">{total}</div></div>",
        f"<div class=\"card\"><div>BUY</div><div class=\"v buy\" id=\"buy\">{buys}</div></div>",
        f"<div class=\"card\"><div>SELL</div><div class=\"v sell\" id=\"sell\">{sells}</div></div>",
        f"<div class=\"card\"><div>Average score</div><div class=\"v\" id=\"avg\">{avg}</div></div>",
        "</div>",
    ]
    if signals:
        parts.append(
            "<table><thead><tr><th>Symbol</th><th>Direction</th><th>Rating</th><th>Score</th>"
            "<th>Breakdown</th><th>Entry</th><th>Stop</th><th>Target</th><th>S / R</th>"
            "<th>RR</th><th>Win</th><th>Why</th></tr></thead><tbody>"
        )
        parts.extend(_row(s) for s in signals)
        parts.append("</tbody></table>")
    else:
        parts.append("<p>No signals in this scan.</p>")
    parts.append("</body></html>")
    return "\n".join(parts) + "\n"


def write_dashboard(signals: Sequence[TradingSignal], path: Optional[str] = None, title: str = "Reversal Scanner") -> Path:
    out = Path(path) if path else Path(tempfile.gettempdir()) / DEFAULT_DASHBOARD_NAME
    with open(out, "w", encoding="utf-8") as f:
        f.write(render_dashboard(signals, title=title))
    log.info("dashboard_written path=%s signals=%d", out, len(signals))
    return out
