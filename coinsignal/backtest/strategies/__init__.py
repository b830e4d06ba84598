"""coinsignal.backtest.strategies

Strategy library. Two long-only baselines behind a closed enum.
"""

from coinsignal.backtest.strategies.base import Action, Strategy, StrategyName, StrategyResult, Transition
from coinsignal.backtest.strategies.registry import STRATEGIES, get_strategy, list_strategies, resolve_name
from coinsignal.backtest.strategies.rsi_threshold import RSIThresholdStrategy
from coinsignal.backtest.strategies.sma_crossover import SMACrossoverStrategy

__all__ = [
    "Action",
    "STRATEGIES",
    "RSIThresholdStrategy",
    "SMACrossoverStrategy",
    "Strategy",
    "StrategyName",
    "StrategyResult",
    "Transition",
    "get_strategy",
    "list_strategies",
    "resolve_name",
]
