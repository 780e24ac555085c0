from __future__ import annotations

from datetime import datetime
import logging
import os
from pathlib import Path
import tempfile
import time
from typing import Dict, List, Optional, Sequence

from .filters import FILTER_REASON_PREFIXES
from .models import AnalysisResult, TradingSignal

log = logging.getLogger("scan_log")

DEFAULT_LOG_NAME = "reversal-scan.log"
RULE = "=" * 80
THIN = "-" * 80


def default_log_path() -> Path:
    return Path(tempfile.gettempdir()) / DEFAULT_LOG_NAME


class ScanLog:
    """Human-readable report of one scan run, written to a file at the end."""

    def __init__(self, clock=time.time):
        self._clock = clock
        self._started = clock()
        self.lines: List[str] = []
        self.signals = 0
        self.errors = 0
        self.rejections: Dict[str, int] = {
            "liquidity": 0,
            "volatility": 0,
            "low_score": 0,
            "no_reversal": 0,
        }

    def start(self, trading_type: str, primary_tf: str, confirmation_tf: str, symbols: Sequence[str]) -> None:
        now = datetime.fromtimestamp(self._started).strftime("%Y-%m-%d %H:%M:%S")
        self.lines += [
            RULE,
            f"REVERSAL SCAN LOG - {now}",
            RULE,
            "",
            f"Trading Type: {trading_type.upper()}",
            f"Primary Timeframe: {primary_tf}",
            f"Confirmation Timeframe: {confirmation_tf}",
            f"Symbols to Scan: {', '.join(symbols)}",
            f"Total Symbols: {len(symbols)}",
            "",
            THIN,
            "",
        ]

    def _breakdown(self, r) -> None:
        self.lines += [
            "  Score Breakdown:",
            f"    - Trend: {r.trend_score}/100",
            f"    - Oscillator: {r.oscillator_score}/100",
            f"    - Volume Bonus: +{r.volume_bonus:g}",
            f"    - Volatility Bonus: +{r.volatility_bonus:g}",
            f"    - Confirmation Bonus: +{r.confirmation_bonus:g}",
        ]

    def signal(self, s: TradingSignal) -> None:
        self.signals += 1
        self.lines += [
            f"[{s.symbol}] SIGNAL FOUND",
            f"  Direction: {s.direction}",
            f"  Rating: {s.rating}",
            f"  Final Score: {s.score}/100",
        ]
        self._breakdown(s)
        if s.trend_details:
            self.lines.append("  Trend Details:")
            self.lines += [f"    - {d}" for d in s.trend_details]
        if s.oscillator_details:
            self.lines.append("  Oscillator Details:")
            self.lines += [f"    - {d}" for d in s.oscillator_details]
        self.lines += ["  Filters:", "    - Liquidity: PASS", "    - Volatility: PASS", ""]

    def rejection(self, r: AnalysisResult) -> None:
        self.lines += [f"[{r.symbol}] NO SIGNAL", "  Direction: NONE", "  Rating: NO TRADE"]
        if not r.filters_pass:
            self.lines += ["  Final Score: N/A (Filtered)", "  Status: FILTER REJECTED"]
        else:
            status = "(Meets Threshold)" if r.final_score >= r.min_score_threshold else "(Below Threshold)"
            self.lines += [
                f"  Final Score: {r.final_score}/100 {status}",
                f"  Required Score: >= {r.min_score_threshold:g}",
            ]
        self.lines.append("")
        self._breakdown(r)
        self.lines.append("")

        if r.failure_reasons:
            self.lines.append("  Failed Conditions:")
            for reason in r.failure_reasons:
                suffix = " (hard constraint)" if reason.startswith(FILTER_REASON_PREFIXES) else ""
                self.lines.append(f"    - {reason}{suffix}")
            self.lines.append("")
            if not r.filters_pass:
                self.lines += ["  Note:", "    - Analysis stopped due to hard constraint violation", ""]

        self.lines += [
            "  Filters:",
            f"    - Liquidity: {'PASS' if r.liquidity_pass else 'FAIL (Hard constraint)'}",
            f"    - Volatility: {'PASS' if r.volatility_pass else 'FAIL (Hard constraint)'}",
            "",
        ]

        if not r.liquidity_pass:
            self.rejections["liquidity"] += 1
        if not r.volatility_pass:
            self.rejections["volatility"] += 1
        if r.oscillator_score == 0:
            self.rejections["no_reversal"] += 1
        if r.final_score < r.min_score_threshold:
            self.rejections["low_score"] += 1

    def result(self, r: AnalysisResult) -> None:
        if r.signal is not None:
            self.signal(r.signal)
        else:
            self.rejection(r)

    def error(self, symbol: str, err: str) -> None:
        self.errors += 1
        self.lines += [f"[{symbol}] ERROR", f"  Error: {err}", ""]

    def summary(self) -> None:
        elapsed = self._clock() - self._started
        self.lines += [
            THIN,
            "SCAN SUMMARY",
            THIN,
            f"Signals Found: {self.signals}",
            f"Errors: {self.errors}",
            f"Duration: {elapsed:.2f}s",
            "",
            "Rejections by category:",
            f"  - Liquidity filter: {self.rejections['liquidity']}",
            f"  - Volatility filter: {self.rejections['volatility']}",
            f"  - Score below threshold: {self.rejections['low_score']}",
            f"  - No reversal detected: {self.rejections['no_reversal']}",
            RULE,
        ]

    def text(self) -> str:
        return "\n".join(self.lines) + "\n"

    def write(self, path: Optional[str] = None) -> Path:
        out = Path(path) if path else default_log_path()
        if out.parent and not out.parent.exists():
            os.makedirs(out.parent, exist_ok=True)
        with open(out, "w", encoding="utf-8") as f:
            f.write(self.text())
        log.info("scan_log_written path=%s lines=%d", out, len(self.lines))
        return out
