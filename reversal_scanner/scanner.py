from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
import logging
from typing import List, Sequence, Tuple

from .config import Profile
from .explain import build_explanation
from .filters import apply_filters
from .indicators.oscillators import ATR_PERIOD, atr_percent, latest_atr
from .levels import calculate_levels
from .models import (
    BUY,
    SELL,
    AnalysisResult,
    Candle,
    OscillatorLayerResult,
    QualifiedAnalysis,
    RejectedAnalysis,
    SignalDetails,
    TradingSignal,
)
from .oscillator import OscillatorEngine, OscillatorReadings
from .scoring import (
    assign_rating,
    calculate_score,
    confirmation_bonus,
    meets_minimum_score,
    volatility_bonus,
    volume_bonus,
)
from .series import average, volumes
from .trading_types import rules_for
from .trend import TrendEngine

log = logging.getLogger("scanner")

NO_REVERSAL = "No reversal signals detected in oscillators"

DIRECTION_FILTERS = ("buy", "sell", "both")


def pick_direction(buy: OscillatorLayerResult, sell: OscillatorLayerResult) -> Tuple[str, OscillatorLayerResult]:
    """SELL wins only on a strictly higher score; ties keep BUY."""
    if sell.score > buy.score:
        return SELL, sell
    return BUY, buy


def analyze(
    symbol: str,
    primary: Sequence[Candle],
    confirmation: Sequence[Candle],
    profile: Profile,
) -> AnalysisResult:
    """Score one symbol. Never raises for structurally valid input."""
    rules = rules_for(profile.trading_type)
    min_score = profile.scoring.min_score
    failures: List[str] = []

    liquidity, volatility, filter_failures = apply_filters(
        primary,
        profile.filters.min_volume,
        profile.filters.atr_min_pct,
        profile.filters.atr_max_pct,
    )
    failures.extend(filter_failures)

    trend = TrendEngine(rules).analyze(confirmation, profile.trend_specs)

    engine = OscillatorEngine(min_adx=profile.filters.min_adx, enabled=profile.indicators.oscillators)
    readings = OscillatorReadings.compute(primary, confirmation)
    direction, oscillators = pick_direction(engine.analyze(BUY, readings), engine.analyze(SELL, readings))
    if oscillators.score == 0:
        failures.append(NO_REVERSAL)

    vol = volumes(primary)
    vol_bonus = volume_bonus(vol[-1], average(vol), rules) if vol else 0
    atr_pct = atr_percent(primary, ATR_PERIOD)
    vola_bonus = volatility_bonus(atr_pct, rules)
    conf_bonus = confirmation_bonus(direction, trend.direction, rules)

    score = calculate_score(
        trend.score,
        oscillators.score,
        profile.weights.trend,
        profile.weights.oscillator,
        vol_bonus,
        vola_bonus,
        conf_bonus,
    )
    meets = meets_minimum_score(score.final_score, min_score)
    if not meets:
        failures.append(f"Score {score.final_score} below minimum threshold {min_score:g}")

    common = dict(
        symbol=symbol,
        direction=direction,
        trend_score=trend.score,
        oscillator_score=oscillators.score,
        final_score=score.final_score,
        volume_bonus=vol_bonus,
        volatility_bonus=vola_bonus,
        confirmation_bonus=conf_bonus,
        liquidity_pass=liquidity.passed,
        volatility_pass=volatility.passed,
        trend_details=list(trend.details),
        oscillator_details=list(oscillators.details),
        failure_reasons=failures,
        min_score_threshold=min_score,
    )

    if not (liquidity.passed and volatility.passed and oscillators.score > 0 and meets):
        log.debug("rejected symbol=%s score=%d reasons=%s", symbol, score.final_score, failures)
        return RejectedAnalysis(**common)

    last = primary[-1]
    levels = calculate_levels(
        primary,
        direction,
        latest_atr(primary, ATR_PERIOD),
        score.final_score,
        conf_bonus,
        vol_bonus,
    )
    signal = TradingSignal(
        symbol=symbol,
        direction=direction,
        score=score.final_score,
        rating=assign_rating(score.final_score),
        timestamp_ms=last.timestamp_ms,
        timeframe=profile.timeframes.primary,
        price=last.close,
        trading_type=profile.trading_type,
        trend_score=trend.score,
        oscillator_score=oscillators.score,
        volume_bonus=vol_bonus,
        volatility_bonus=vola_bonus,
        confirmation_bonus=conf_bonus,
        trend_details=list(trend.details),
        oscillator_details=list(oscillators.details),
        explanation=build_explanation(direction, trend, oscillators, vol_bonus),
        levels=levels,
        details=SignalDetails(
            trend=trend,
            oscillators=oscillators,
            liquidity_pass=liquidity.passed,
            volatility_pass=volatility.passed,
        ),
    )
    log.debug("signal symbol=%s direction=%s score=%d rating=%s", symbol, direction, signal.score, signal.rating)
    return QualifiedAnalysis(trading_signal=signal, **common)


@dataclass
class ScanReport:
    """One scan run: per-symbol results in input order plus fetch failures."""

    results: List[AnalysisResult] = field(default_factory=list)
    errors: List[Tuple[str, str]] = field(default_factory=list)
    direction_filter: str = "both"

    @property
    def signals(self) -> List[TradingSignal]:
        out: List[TradingSignal] = []
        for r in self.results:
            sig = r.signal
            if sig is None:
                continue
            if self.direction_filter == "buy" and sig.direction != BUY:
                continue
            if self.direction_filter == "sell" and sig.direction != SELL:
                continue
            out.append(sig)
        return out

    @property
    def rejected(self) -> List[AnalysisResult]:
        return [r for r in self.results if r.signal is None]


class Scanner:
    """Fetches both timeframes per symbol from a provider and analyzes them."""

    def __init__(self, profile: Profile, provider, *, fetch_concurrency: int = 4):
        self.profile = profile
        self.provider = provider
        self.rules = rules_for(profile.trading_type)
        self.fetch_concurrency = max(1, int(fetch_concurrency))

    async def _fetch_pair(self, symbol: str, sem: asyncio.Semaphore):
        tf_p = self.profile.timeframes.primary
        tf_c = self.profile.timeframes.confirmation
        try:
            async with sem:
                primary = await self.provider.fetch_candles(symbol, tf_p, self.rules.candles_for(tf_p))
                confirmation = await self.provider.fetch_candles(symbol, tf_c, self.rules.candles_for(tf_c))
            return symbol, primary, confirmation, None
        except Exception as e:
            return symbol, None, None, repr(e)

    async def scan(self, symbols: Sequence[str], direction_filter: str = "both") -> ScanReport:
        if direction_filter not in DIRECTION_FILTERS:
            raise ValueError(f"direction must be one of {DIRECTION_FILTERS} (got {direction_filter!r})")

        report = ScanReport(direction_filter=direction_filter)
        log.info(
            "scan_start symbols=%d trading_type=%s timeframes=%s/%s",
            len(symbols),
            self.profile.trading_type,
            self.profile.timeframes.primary,
            self.profile.timeframes.confirmation,
        )

        sem = asyncio.Semaphore(self.fetch_concurrency)
        fetched = await asyncio.gather(*[self._fetch_pair(s, sem) for s in symbols])

        # analysis is sequential, in input order
        for symbol, primary, confirmation, err in fetched:
            if err is not None:
                log.warning("fetch_failed symbol=%s err=%s", symbol, err)
                report.errors.append((symbol, err))
                continue
            if not primary or not confirmation:
                report.errors.append((symbol, "no data returned"))
                log.warning("fetch_empty symbol=%s", symbol)
                continue
            report.results.append(analyze(symbol, primary, confirmation, self.profile))

        log.info(
            "scan_done analyzed=%d signals=%d errors=%d",
            len(report.results),
            len(report.signals),
            len(report.errors),
        )
        return report
