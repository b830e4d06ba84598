"""coinsignal.backtest.strategies.registry

Closed dispatch from StrategyName to implementation.

Adding a strategy means adding a StrategyName member and an entry here.
A missing entry fails at import, not at request time.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Final

from coinsignal.backtest.strategies.base import Strategy, StrategyName
from coinsignal.backtest.strategies.rsi_threshold import RSIThresholdStrategy
from coinsignal.backtest.strategies.sma_crossover import SMACrossoverStrategy
from coinsignal.core.exceptions import UnknownStrategyError

STRATEGIES: Final[dict[StrategyName, type[Strategy]]] = {
    StrategyName.SMA_CROSSOVER: SMACrossoverStrategy,
    StrategyName.RSI_OVERSOLD_OVERBOUGHT: RSIThresholdStrategy,
}

_missing = set(StrategyName) - set(STRATEGIES)
if _missing:
    raise RuntimeError(f"strategies without implementation: {sorted(_missing)}")


def resolve_name(name: str | StrategyName) -> StrategyName:
    try:
        return StrategyName(name)
    except ValueError:
        raise UnknownStrategyError(f"unknown strategy: {name!r}") from None


def get_strategy(name: str | StrategyName, params: Mapping[str, Any] | None = None) -> Strategy:
    """Build a validated strategy instance for ``name``."""

    return STRATEGIES[resolve_name(name)].from_params(params)


def list_strategies() -> list[str]:
    return [str(n) for n in StrategyName]
