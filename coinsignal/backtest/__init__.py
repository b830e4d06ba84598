"""coinsignal.backtest

Backtest engine.

Loader -> indicators -> strategy state machine -> evaluator, driven by
``run_backtest``. Data ingestion beyond the loader protocol (caching,
persistence) is intentionally out of scope.
"""

from coinsignal.backtest.engine import BacktestOutcome, run_backtest, run_backtest_on_candles, run_backtests
from coinsignal.backtest.evaluator import evaluate
from coinsignal.backtest.types import BacktestParameters, BacktestResult, Candle, Position, Side, Trade

__all__ = [
    "BacktestOutcome",
    "BacktestParameters",
    "BacktestResult",
    "Candle",
    "Position",
    "Side",
    "Trade",
    "evaluate",
    "run_backtest",
    "run_backtest_on_candles",
    "run_backtests",
]
