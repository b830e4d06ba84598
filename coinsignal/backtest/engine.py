"""coinsignal.backtest.engine

Backtest entry point.

One run, fixed order:
- resolve the strategy and check parameters (before any fetch)
- load the series
- replay it through the strategy
- evaluate the trades

Every run starts from scratch. Failures raise a BacktestError subclass and are
terminal for that run; a run that trades zero times is a valid result.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from coinsignal.backtest.evaluator import evaluate
from coinsignal.backtest.loader import SeriesLoader, timeframe_ms
from coinsignal.backtest.strategies import Strategy, get_strategy
from coinsignal.backtest.types import BacktestParameters, BacktestResult, Candle, validate_candles
from coinsignal.core.config import BacktestConfig
from coinsignal.core.exceptions import (
    BacktestError,
    DataUnavailableError,
    InsufficientHistoryError,
    InvalidDateRangeError,
    InvalidParameterError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PreparedRun:
    params: BacktestParameters
    strategy: Strategy
    initial_capital: float


def prepare(params: BacktestParameters, cfg: BacktestConfig | None = None) -> PreparedRun:
    """Validate everything that can be validated without data."""

    cfg = cfg or BacktestConfig()
    strategy = get_strategy(params.strategy_name, params.parameters)

    if params.start_date >= params.end_date:
        raise InvalidDateRangeError(
            f"start_date ({params.start_date.isoformat()}) must be before end_date ({params.end_date.isoformat()})"
        )
    timeframe_ms(params.timeframe)

    capital = cfg.initial_capital if params.initial_capital is None else float(params.initial_capital)
    if not capital > 0:
        raise InvalidParameterError(f"initial_capital must be > 0, got {capital}")

    return PreparedRun(params=params, strategy=strategy, initial_capital=capital)


def run_backtest_on_candles(
    candles: Sequence[Candle],
    *,
    strategy: Strategy,
    initial_capital: float,
    cfg: BacktestConfig | None = None,
) -> BacktestResult:
    """Pure core: an already-resolved series in, a result out."""

    cfg = cfg or BacktestConfig()
    res = strategy.run(candles)
    return evaluate(
        res.trades,
        initial_capital=initial_capital,
        sample_size=cfg.trade_sample_size,
        periods_per_year=cfg.annualization,
        profit_factor_cap=cfg.profit_factor_cap,
    )


def run_backtest(
    params: BacktestParameters,
    *,
    loader: SeriesLoader,
    cfg: BacktestConfig | None = None,
) -> BacktestResult:
    cfg = cfg or BacktestConfig()
    run = prepare(params, cfg)

    log_extra = {"crypto_id": params.crypto_id, "strategy": str(run.strategy.name), "timeframe": params.timeframe}
    logger.info("backtest_started", extra=log_extra)
    start = time.perf_counter()

    try:
        candles = loader.load(params.crypto_id, params.start_date, params.end_date, params.timeframe)
        if len(candles) < cfg.min_history:
            raise InsufficientHistoryError(
                f"not enough historical data for backtesting: {len(candles)} candles, need {cfg.min_history}",
                available=len(candles),
                required=cfg.min_history,
            )
        try:
            validate_candles(candles)
        except InvalidParameterError as e:
            raise DataUnavailableError(f"loader returned an invalid series: {e}") from e
        result = run_backtest_on_candles(candles, strategy=run.strategy, initial_capital=run.initial_capital, cfg=cfg)
    except BacktestError as e:
        logger.warning("backtest_failed", extra={**log_extra, "code": e.code, "error": str(e)})
        raise

    logger.info(
        "backtest_completed",
        extra={
            **log_extra,
            "candles": len(candles),
            "total_trades": result.total_trades,
            "duration_ms": int((time.perf_counter() - start) * 1000),
        },
    )
    return result


@dataclass(frozen=True, slots=True)
class BacktestOutcome:
    params: BacktestParameters
    result: BacktestResult | None = None
    error: BacktestError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def run_backtests(
    params_list: Sequence[BacktestParameters],
    *,
    loader: SeriesLoader,
    cfg: BacktestConfig | None = None,
    max_workers: int | None = None,
) -> list[BacktestOutcome]:
    """Run independent backtests on a thread pool.

    Runs share nothing but the loader. Outcomes come back in input order; a
    failed run yields an outcome carrying its error instead of aborting the batch.
    """

    cfg = cfg or BacktestConfig()

    def _one(p: BacktestParameters) -> BacktestOutcome:
        try:
            return BacktestOutcome(params=p, result=run_backtest(p, loader=loader, cfg=cfg))
        except BacktestError as e:
            return BacktestOutcome(params=p, error=e)

    if not params_list:
        return []
    with ThreadPoolExecutor(max_workers=max_workers or cfg.max_workers) as pool:
        return list(pool.map(_one, params_list))
