"""coinsignal.core

Core primitives.

Backtest modules depend on this package; this package depends on nothing in
``coinsignal.backtest``.
"""

from .config import Config
from .exceptions import BacktestError, CoinsignalError, DataSourceError
from .log import configure_logging

__all__ = [
    "BacktestError",
    "CoinsignalError",
    "Config",
    "DataSourceError",
    "configure_logging",
]
