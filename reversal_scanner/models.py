from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional

BUY = "BUY"
SELL = "SELL"
NEUTRAL = "NEUTRAL"

STRONG_BUY = "STRONG BUY"
SPECULATIVE = "SPECULATIVE"
NO_TRADE = "NO TRADE"


@dataclass(frozen=True)
class Candle:
    timestamp_ms: int
    open: float
    high: float
    low: float
    close: float
    volume: float


@dataclass(frozen=True)
class TrendResult:
    direction: str  # BUY | SELL | NEUTRAL
    score: int
    details: List[str]
    ma_alignment: bool
    slope: float


@dataclass(frozen=True)
class OscillatorLayerResult:
    condition: bool
    trigger: bool
    confirmation: bool
    score: int
    details: List[str]
    condition_count: int = 0
    trigger_count: int = 0
    confirmation_count: int = 0

    @property
    def valid(self) -> bool:
        return self.trigger and self.confirmation


@dataclass(frozen=True)
class SignalScore:
    trend_score: float
    oscillator_score: float
    volume_bonus: float
    volatility_bonus: float
    confirmation_bonus: float
    final_score: int


@dataclass(frozen=True)
class FilterResult:
    passed: bool
    reason: Optional[str] = None


@dataclass(frozen=True)
class TradeLevels:
    entry: float
    support: float
    resistance: float
    stop_loss: Optional[float]  # None when ATR is unavailable
    take_profit: Optional[float]
    risk_reward_ratio: float
    win_rate: int


@dataclass(frozen=True)
class SignalDetails:
    trend: TrendResult
    oscillators: OscillatorLayerResult
    liquidity_pass: bool
    volatility_pass: bool


@dataclass(frozen=True)
class TradingSignal:
    symbol: str
    direction: str  # BUY or SELL
    score: int
    rating: str
    timestamp_ms: int
    timeframe: str
    price: float
    trading_type: str
    trend_score: int
    oscillator_score: int
    volume_bonus: float
    volatility_bonus: float
    confirmation_bonus: float
    trend_details: List[str]
    oscillator_details: List[str]
    explanation: str
    levels: TradeLevels
    details: SignalDetails

    @property
    def entry(self) -> float:
        return self.levels.entry

    @property
    def stop_loss(self) -> Optional[float]:
        return self.levels.stop_loss

    @property
    def take_profit(self) -> Optional[float]:
        return self.levels.take_profit

    @property
    def win_rate(self) -> int:
        return self.levels.win_rate

    @property
    def risk_reward_ratio(self) -> float:
        return self.levels.risk_reward_ratio


@dataclass(frozen=True)
class AnalysisResult:
    """Scores and filter outcomes for one symbol, qualified or not."""

    symbol: str
    direction: str
    trend_score: int
    oscillator_score: int
    final_score: int
    volume_bonus: float
    volatility_bonus: float
    confirmation_bonus: float
    liquidity_pass: bool
    volatility_pass: bool
    trend_details: List[str]
    oscillator_details: List[str]
    failure_reasons: List[str]
    min_score_threshold: float

    @property
    def filters_pass(self) -> bool:
        return self.liquidity_pass and self.volatility_pass

    @property
    def qualified(self) -> bool:
        return self.signal is not None

    @property
    def signal(self) -> Optional[TradingSignal]:
        return None


@dataclass(frozen=True)
class RejectedAnalysis(AnalysisResult):
    pass


@dataclass(frozen=True)
class QualifiedAnalysis(AnalysisResult):
    trading_signal: TradingSignal

    @property
    def signal(self) -> Optional[TradingSignal]:
        return self.trading_signal
