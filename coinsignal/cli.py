"""coinsignal.cli

Command line interface entry point for coinsignal.

Design constraints:
- argparse-based.
- Lazy imports: do not import numpy/httpx at parse time.
"""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

EPILOG = "Past performance is a replay, not a promise."


@dataclass(frozen=True)
class CliContext:
    repo_root: Path


def _repo_root_from_cwd() -> Path:
    return Path.cwd()


def _param(raw: str) -> tuple[str, float]:
    key, sep, value = raw.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"expected key=value, got {raw!r}")
    try:
        return key.strip(), float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"parameter {key} must be numeric, got {value!r}") from None


def _date(raw: str) -> datetime:
    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected ISO date, got {raw!r}") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="coinsignal",
        description="Replay historical crypto prices through trading strategies.",
        epilog=EPILOG,
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print version and exit.",
    )

    sub = parser.add_subparsers(dest="command")

    p_bt = sub.add_parser("backtest", help="Run one backtest")
    p_bt.add_argument("--crypto-id", required=True, help="CoinGecko coin id, e.g. bitcoin")
    p_bt.add_argument("--strategy", required=True, help="Strategy name, see `coinsignal strategies`")
    p_bt.add_argument("--start", required=True, type=_date)
    p_bt.add_argument("--end", required=True, type=_date)
    p_bt.add_argument("--timeframe", default="1d")
    p_bt.add_argument("--capital", type=float, default=None, help="Initial capital (default from config)")
    p_bt.add_argument("--param", action="append", type=_param, default=[], metavar="KEY=VALUE")
    p_bt.add_argument("--csv", type=Path, default=None, help="Read candles from CSV instead of CoinGecko")
    p_bt.add_argument("--json", action="store_true", help="Emit the report as JSON")

    sub.add_parser("strategies", help="List available strategies")

    return parser


def _print_version() -> None:
    from coinsignal import __version__

    print(f"coinsignal v{__version__}")


def _load_config(repo_root: Path) -> Any:
    from coinsignal.core.config import Config

    cfg_path = repo_root / "config" / "default.yaml"
    return Config.from_yaml(cfg_path) if cfg_path.exists() else Config()


def _cmd_backtest(ctx: CliContext, args: argparse.Namespace) -> int:
    # Lazy imports
    from coinsignal.backtest.engine import run_backtest
    from coinsignal.backtest.io import CsvSeriesLoader
    from coinsignal.backtest.loader import CoinGeckoSeriesLoader, SeriesLoader
    from coinsignal.backtest.schemas import BacktestErrorOut, BacktestReport
    from coinsignal.backtest.types import BacktestParameters
    from coinsignal.core.exceptions import BacktestError, ConfigError
    from coinsignal.core.log import configure_logging

    def _fail(e: BacktestError | ConfigError) -> int:
        if args.json:
            print(json.dumps(BacktestErrorOut(code=e.code, detail=str(e)).model_dump()))
        else:
            print(f"backtest failed ({e.code}): {e}", file=sys.stderr)
        return 1

    try:
        config = _load_config(ctx.repo_root)
    except ConfigError as e:
        return _fail(e)
    configure_logging(config.logging)

    params = BacktestParameters(
        crypto_id=args.crypto_id,
        strategy_name=args.strategy,
        start_date=args.start,
        end_date=args.end,
        timeframe=args.timeframe,
        parameters=dict(args.param),
        initial_capital=args.capital,
    )
    loader: SeriesLoader = CsvSeriesLoader(args.csv) if args.csv else CoinGeckoSeriesLoader(config.data)

    try:
        result = run_backtest(params, loader=loader, cfg=config.backtest)
    except BacktestError as e:
        return _fail(e)

    report = BacktestReport.from_result(result)
    if args.json:
        print(json.dumps(report.to_payload(), indent=2))
        return 0

    print(f"coinsignal backtest: {params.crypto_id} / {params.strategy_name} ({params.timeframe})")
    print(f"- total trades: {report.total_trades}")
    print(f"- win rate: {report.win_rate:.2%}")
    print(f"- profit factor: {report.profit_factor:.2f}")
    print(f"- max drawdown: {report.max_drawdown:.2%}")
    print(f"- sharpe: {report.sharpe:.2f}")
    print(f"- net profit: {report.net_profit:.2f}")
    if report.total_trades == 0:
        print("No signals in range.")
    return 0


def _cmd_strategies(ctx: CliContext, args: argparse.Namespace) -> int:
    from coinsignal.backtest.strategies import list_strategies

    for name in list_strategies():
        print(name)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        _print_version()
        return 0

    if not args.command:
        parser.print_help()
        return 2

    ctx = CliContext(repo_root=_repo_root_from_cwd())

    dispatch: dict[str, Callable[[CliContext, argparse.Namespace], int]] = {
        "backtest": _cmd_backtest,
        "strategies": _cmd_strategies,
    }

    fn = dispatch.get(str(args.command))
    if fn is None:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 2

    return int(fn(ctx, args))


if __name__ == "__main__":
    raise SystemExit(main())
