from __future__ import annotations

import argparse
import asyncio
from dataclasses import asdict
import logging
from typing import List, Optional

import yaml

from .config import DEFAULT_TRADING_TYPE, Profile, ProfileError, list_profiles, load_profile, profile_path_for
from .explain import topic_names, topic_text
from .formatters import format_one_line, format_rejection, format_signal_detail, format_table, section
from .providers.factory import PROVIDERS, create_provider
from .providers.mock import generate_pattern, symbol_seed
from .providers.symbols import DEFAULT_MARKET, MARKET_SUFFIX, normalize_symbols
from .report import write_dashboard
from .scan_log import ScanLog
from .scanner import DIRECTION_FILTERS, ScanReport, Scanner, analyze
from .trading_types import TRADING_TYPES

log = logging.getLogger("main")

SIMULATION_SYMBOLS = ("BBRI.JK", "ICBP.JK", "TLKM.JK")


def _setup_logging(level: str) -> None:
    lvl = getattr(logging, (level or "INFO").upper(), logging.INFO)
    logging.basicConfig(
        level=lvl,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


def _resolve_profile(args) -> Profile:
    path = getattr(args, "profile", None)
    if not path and getattr(args, "trade_type", None):
        path = str(profile_path_for(args.trade_type))
    return load_profile(path)


def _symbols_for(args, profile: Profile) -> List[str]:
    raw: List[str] = []
    if args.symbol:
        raw.append(args.symbol)
    for chunk in args.symbols or []:
        raw.extend(s for s in chunk.split(",") if s.strip())
    ds = profile.data_source
    if not raw and ds is not None:
        raw = list(ds.default_symbols or [])
    market = args.market or (ds.market if ds is not None and ds.market else DEFAULT_MARKET)
    return normalize_symbols(raw, market)


def _print_signals(report_signals, verbose: bool) -> None:
    if not report_signals:
        print("\nNo signals found meeting criteria\n")
        return
    print(section("TRADING SIGNALS"))
    print(format_table(report_signals))
    print(f"\nTotal signals: {len(report_signals)}\n")
    if verbose:
        for s in report_signals:
            print(section(f"DETAIL {s.symbol}"))
            print(format_signal_detail(s))


def _finish(report: ScanReport, profile: Profile, symbols: List[str], args) -> None:
    _print_signals(report.signals, args.verbose)

    if args.verbose:
        for r in report.rejected:
            print(format_rejection(r))
    for sym, err in report.errors:
        print(f"{sym}: ERROR {err}")

    if args.log is not None:
        scan_log = ScanLog()
        scan_log.start(profile.trading_type, profile.timeframes.primary, profile.timeframes.confirmation, symbols)
        for r in report.results:
            scan_log.result(r)
        for sym, err in report.errors:
            scan_log.error(sym, err)
        scan_log.summary()
        path = scan_log.write(args.log or None)
        print(f"Scan log saved: {path}")

    if args.html is not None:
        path = write_dashboard(report.signals, args.html or None, title=profile.app.name)
        print(f"Dashboard saved: {path}")


def cmd_scan(args) -> int:
    profile = _resolve_profile(args)
    _setup_logging("DEBUG" if args.verbose else profile.app.log_level)

    symbols = _symbols_for(args, profile)
    if not symbols:
        log.error("no symbols given and the profile has no default_symbols")
        return 1

    provider_name = args.provider or (profile.data_source.provider if profile.data_source else "yahoo")
    provider = create_provider(provider_name)
    scanner = Scanner(profile, provider)

    async def _run() -> ScanReport:
        try:
            return await scanner.scan(symbols, args.direction)
        finally:
            await provider.close()

    report = asyncio.run(_run())
    _finish(report, profile, symbols, args)
    return 0


def cmd_simulate(args) -> int:
    profile = _resolve_profile(args)
    _setup_logging("DEBUG" if args.verbose else profile.app.log_level)
    print(f"Profile: {profile.trading_type}")
    print(f"Primary timeframe: {profile.timeframes.primary}")
    print(f"Confirmation timeframe: {profile.timeframes.confirmation}")

    report = ScanReport()
    for sym in SIMULATION_SYMBOLS:
        seed = symbol_seed(sym, args.seed)
        primary = generate_pattern("oversold-reversal", 200, timeframe=profile.timeframes.primary, seed=seed)
        confirmation = generate_pattern(
            "strong-trend", 200, timeframe=profile.timeframes.confirmation, seed=seed + 1
        )
        report.results.append(analyze(sym, primary, confirmation, profile))

    _print_signals(report.signals, args.verbose)
    if args.verbose:
        for r in report.rejected:
            print(format_rejection(r))
    for s in report.signals:
        print(format_one_line(s))
    return 0


def _profile_dict(profile: Profile) -> dict:
    d = asdict(profile)
    d.pop("trend_specs", None)
    d.pop("source_path", None)
    return d


def cmd_profile(args) -> int:
    if args.list:
        print(section("AVAILABLE PROFILES"))
        for p in list_profiles():
            print(f"  {p.stem}")
        return 0

    if args.show:
        target = args.show
        if "/" not in target and not target.endswith((".yaml", ".yml")):
            target = str(profile_path_for(target))
        profile = load_profile(target)
        print(section(f"PROFILE: {profile.trading_type.upper()}"))
        print(yaml.safe_dump(_profile_dict(profile), sort_keys=False).rstrip())
        return 0

    if args.validate:
        return _validate(args.validate)

    log.error("specify an action: --list, --show or --validate")
    return 1


def _validate(path: str) -> int:
    try:
        load_profile(path)
    except ProfileError as e:
        print(f"Profile is invalid: {e}")
        return 1
    print(f"Profile is valid: {path}")
    return 0


def cmd_validate(args) -> int:
    return _validate(args.profile or str(profile_path_for(DEFAULT_TRADING_TYPE)))


def cmd_explain(args) -> int:
    if not args.topic:
        print(section("AVAILABLE EXPLANATIONS"))
        for name in topic_names():
            print(f"  {name}")
        print("\nUsage: reversal-scanner explain <topic>")
        return 0
    text = topic_text(args.topic)
    if text is None:
        print(f"No explanation available for: {args.topic}")
        return 1
    print(text)
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="reversal-scanner", description="Reversal Scanner - multi-timeframe reversal signals")
    sub = p.add_subparsers(dest="command", required=True)

    def _profile_opts(sp) -> None:
        sp.add_argument("-t", "--trade-type", choices=sorted(TRADING_TYPES), help="Trading type: scalp, day or swing")
        sp.add_argument("-p", "--profile", help="Path to a YAML profile")
        sp.add_argument("-v", "--verbose", action="store_true", help="Detailed output")

    sp = sub.add_parser("scan", help="Scan market data for reversal signals")
    _profile_opts(sp)
    sp.add_argument("-s", "--symbol", help="Single symbol to scan")
    sp.add_argument("-l", "--symbols", nargs="+", help="Symbols to scan (space or comma separated)")
    sp.add_argument("-m", "--market", choices=sorted(MARKET_SUFFIX), help="Market for symbol suffixes")
    sp.add_argument("-d", "--direction", choices=DIRECTION_FILTERS, default="both", help="Direction filter")
    sp.add_argument("--provider", choices=PROVIDERS, help="Data provider (default: profile data_source)")
    sp.add_argument("--log", nargs="?", const="", default=None, metavar="PATH", help="Write a scan log")
    sp.add_argument("--html", nargs="?", const="", default=None, metavar="PATH", help="Write an HTML dashboard")
    sp.set_defaults(func=cmd_scan)

    sp = sub.add_parser("simulate", help="Run the scanner on synthetic data")
    _profile_opts(sp)
    sp.add_argument("--seed", type=int, default=7, help="Seed for the synthetic series")
    sp.set_defaults(func=cmd_simulate)

    sp = sub.add_parser("profile", help="List, show or validate profiles")
    g = sp.add_mutually_exclusive_group()
    g.add_argument("--list", action="store_true", help="List bundled profiles")
    g.add_argument("--show", metavar="NAME|PATH", help="Show a profile")
    g.add_argument("--validate", metavar="PATH", help="Validate a profile file")
    sp.set_defaults(func=cmd_profile)

    sp = sub.add_parser("validate", help="Validate a profile (default: bundled day profile)")
    sp.add_argument("-p", "--profile", help="Path to a YAML profile")
    sp.set_defaults(func=cmd_validate)

    sp = sub.add_parser("explain", help="Explain an indicator or concept")
    sp.add_argument("topic", nargs="?", help="Topic name (omit to list)")
    sp.set_defaults(func=cmd_explain)

    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return int(args.func(args))
    except KeyboardInterrupt:
        return 0
    except ProfileError as e:
        print(str(e))
        return 1
    except Exception as e:
        logging.getLogger("main").exception("fatal err=%s", e)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
