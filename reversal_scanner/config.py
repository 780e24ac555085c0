from __future__ import annotations

from dataclasses import dataclass, field
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .indicators.trend import MovingAverageSpec, parse_ma_spec
from .trading_types import TIMEFRAME_MINUTES, TRADING_TYPES

log = logging.getLogger("config")

PROFILE_DIR = Path(__file__).resolve().parent.parent / "profiles"
DATASOURCE_PATH = PROFILE_DIR.parent / "config" / "datasource.yaml"
DEFAULT_TRADING_TYPE = "day"

OSCILLATORS = ("RSI", "STOCHASTIC", "MACD", "MOMENTUM", "ADX", "CCI", "WILLIAMS_R")
MARKETS = ("IDX", "NASDAQ", "NYSE", "CRYPTO")


class ProfileError(ValueError):
    pass


def _env_override(value: Any, env_key: str) -> Any:
    env_val = os.getenv(env_key)
    if env_val is None or not env_val.strip():
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        try:
            return int(env_val)
        except ValueError:
            return value
    if isinstance(value, float):
        try:
            return float(env_val)
        except ValueError:
            return value
    return env_val.strip()


@dataclass
class Timeframes:
    primary: str = "5m"
    confirmation: str = "15m"


@dataclass
class IndicatorsConfig:
    trend: List[str] = field(default_factory=lambda: ["EMA10", "EMA20", "EMA50"])
    oscillators: List[str] = field(default_factory=lambda: list(OSCILLATORS))


@dataclass
class Weights:
    trend: float = 40
    oscillator: float = 60


@dataclass
class Filters:
    min_volume: float = 1_000_000
    min_adx: float = 20.0
    atr_min_pct: Optional[float] = None
    atr_max_pct: Optional[float] = None


@dataclass
class Scoring:
    min_score: float = 70


@dataclass
class DataSource:
    provider: str = "yahoo"
    market: Optional[str] = None
    api_key: str = ""
    default_symbols: List[str] = field(default_factory=list)


@dataclass
class AppConfig:
    name: str = "Reversal Scanner"
    log_level: str = "INFO"


@dataclass
class Profile:
    trading_type: str = DEFAULT_TRADING_TYPE
    timeframes: Timeframes = field(default_factory=Timeframes)
    indicators: IndicatorsConfig = field(default_factory=IndicatorsConfig)
    weights: Weights = field(default_factory=Weights)
    filters: Filters = field(default_factory=Filters)
    scoring: Scoring = field(default_factory=Scoring)
    data_source: Optional[DataSource] = None
    app: AppConfig = field(default_factory=AppConfig)
    source_path: Optional[str] = None
    # filled by validate_profile()
    trend_specs: List[MovingAverageSpec] = field(default_factory=list)


def _section(raw: Dict[str, Any], key: str, cls, path: str):
    data = raw.get(key) or {}
    if not isinstance(data, dict):
        raise ProfileError(f"{path}: section '{key}' must be a mapping")
    try:
        return cls(**data)
    except TypeError as e:
        raise ProfileError(f"{path}: section '{key}': {e}") from None


def validate_profile(profile: Profile) -> Profile:
    """Check every field range and resolve trend indicator names; raises ProfileError."""
    errs: List[str] = []

    if profile.trading_type not in TRADING_TYPES:
        errs.append(f"trading_type must be one of {sorted(TRADING_TYPES)} (got {profile.trading_type!r})")

    for name in ("primary", "confirmation"):
        tf = getattr(profile.timeframes, name)
        if tf not in TIMEFRAME_MINUTES:
            errs.append(f"timeframes.{name} must be one of {list(TIMEFRAME_MINUTES)} (got {tf!r})")

    w = profile.weights
    for name in ("trend", "oscillator"):
        v = getattr(w, name)
        if not isinstance(v, (int, float)) or not 0 <= v <= 100:
            errs.append(f"weights.{name} must be within [0, 100] (got {v!r})")
    if isinstance(w.trend, (int, float)) and isinstance(w.oscillator, (int, float)):
        if w.trend + w.oscillator != 100:
            errs.append(f"Trend and oscillator weights must sum to 100 (got {w.trend} + {w.oscillator})")

    f = profile.filters
    if not isinstance(f.min_volume, (int, float)) or f.min_volume <= 0:
        errs.append(f"filters.min_volume must be positive (got {f.min_volume!r})")
    if not isinstance(f.min_adx, (int, float)) or not 0 <= f.min_adx <= 100:
        errs.append(f"filters.min_adx must be within [0, 100] (got {f.min_adx!r})")
    for name in ("atr_min_pct", "atr_max_pct"):
        v = getattr(f, name)
        if v is not None and (not isinstance(v, (int, float)) or v <= 0):
            errs.append(f"filters.{name} must be positive (got {v!r})")
    if (
        isinstance(f.atr_min_pct, (int, float))
        and isinstance(f.atr_max_pct, (int, float))
        and f.atr_min_pct > f.atr_max_pct
    ):
        errs.append(f"filters.atr_min_pct ({f.atr_min_pct}) exceeds atr_max_pct ({f.atr_max_pct})")

    ms = profile.scoring.min_score
    if not isinstance(ms, (int, float)) or not 0 <= ms <= 100:
        errs.append(f"scoring.min_score must be within [0, 100] (got {ms!r})")

    specs: List[MovingAverageSpec] = []
    for name in profile.indicators.trend or []:
        try:
            specs.append(parse_ma_spec(str(name)))
        except ValueError as e:
            errs.append(str(e))
    for name in profile.indicators.oscillators or []:
        if str(name).upper() not in OSCILLATORS:
            errs.append(f"Unsupported oscillator: {name!r} (use one of {', '.join(OSCILLATORS)})")

    ds = profile.data_source
    if ds is not None and ds.market is not None and ds.market not in MARKETS:
        errs.append(f"data_source.market must be one of {list(MARKETS)} (got {ds.market!r})")

    if errs:
        where = profile.source_path or "<profile>"
        raise ProfileError(f"Invalid profile {where}: " + "; ".join(errs))

    profile.trend_specs = specs
    return profile


def _load_datasource(path: Path) -> Optional[DataSource]:
    if not path.is_file():
        return None
    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    log.debug("datasource fallback path=%s", path)
    return _section({"data_source": raw}, "data_source", DataSource, str(path))


def load_profile(path: Optional[str] = None, datasource_path: Optional[Path] = None) -> Profile:
    """Load a YAML profile (default: bundled day profile), apply env overrides, validate."""
    cfg_path = Path(path) if path else profile_path_for(DEFAULT_TRADING_TYPE)
    try:
        with open(cfg_path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except OSError as e:
        raise ProfileError(f"Failed to load profile from {cfg_path}: {e}") from e
    except yaml.YAMLError as e:
        raise ProfileError(f"Failed to parse profile {cfg_path}: {e}") from e
    if not isinstance(raw, dict):
        raise ProfileError(f"Failed to load profile from {cfg_path}: top level must be a mapping")

    where = str(cfg_path)
    profile = Profile(
        trading_type=str(raw.get("trading_type", DEFAULT_TRADING_TYPE)),
        timeframes=_section(raw, "timeframes", Timeframes, where),
        indicators=_section(raw, "indicators", IndicatorsConfig, where),
        weights=_section(raw, "weights", Weights, where),
        filters=_section(raw, "filters", Filters, where),
        scoring=_section(raw, "scoring", Scoring, where),
        data_source=_section(raw, "data_source", DataSource, where) if raw.get("data_source") else None,
        app=_section(raw, "app", AppConfig, where),
        source_path=where,
    )

    if profile.data_source is None:
        profile.data_source = _load_datasource(datasource_path or DATASOURCE_PATH)

    # env overrides (useful on servers)
    profile.app.log_level = _env_override(profile.app.log_level, "SCANNER_LOG_LEVEL")
    provider_env = os.getenv("SCANNER_PROVIDER")
    market_env = os.getenv("SCANNER_MARKET")
    if provider_env or market_env:
        if profile.data_source is None:
            profile.data_source = DataSource()
        profile.data_source.provider = _env_override(profile.data_source.provider, "SCANNER_PROVIDER")
        profile.data_source.market = _env_override(profile.data_source.market, "SCANNER_MARKET")

    return validate_profile(profile)


def profile_path_for(trading_type: str, profile_dir: Optional[Path] = None) -> Path:
    return (profile_dir or PROFILE_DIR) / f"{trading_type}.yaml"


def list_profiles(profile_dir: Optional[Path] = None) -> List[Path]:
    d = profile_dir or PROFILE_DIR
    if not d.is_dir():
        return []
    return sorted(d.glob("*.yaml"))
