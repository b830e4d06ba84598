"""coinsignal.backtest.strategies.sma_crossover

Moving average crossover (long-only):
- enter when the fast SMA crosses above the slow SMA
- exit on the cross back below

A cross needs both SMAs defined on the previous and current candle.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

import numpy as np

from coinsignal.backtest.indicators import sma
from coinsignal.backtest.strategies.base import Action, Indicators, Strategy, StrategyName
from coinsignal.backtest.types import Side
from coinsignal.core.exceptions import InvalidParameterError


@dataclass(frozen=True, slots=True)
class SMACrossoverStrategy(Strategy):
    name: ClassVar[StrategyName] = StrategyName.SMA_CROSSOVER
    fast: int = 10
    slow: int = 30

    def validate(self) -> None:
        if self.fast <= 0 or self.slow <= 0:
            raise InvalidParameterError("sma periods must be > 0")
        if self.fast >= self.slow:
            raise InvalidParameterError(f"fast period ({self.fast}) must be below slow period ({self.slow})")

    @property
    def warmup(self) -> int:
        # slow - 1 is the first defined slow SMA; a cross compares it with the next one.
        return self.slow

    def indicators(self, close: np.ndarray) -> Indicators:
        return {"fast": sma(close, self.fast), "slow": sma(close, self.slow)}

    def decide(self, i: int, side: Side, ind: Indicators) -> Action:
        f, s = ind["fast"], ind["slow"]
        if not np.isfinite([f[i - 1], s[i - 1], f[i], s[i]]).all():
            return Action.HOLD

        if side is Side.FLAT and f[i - 1] <= s[i - 1] and f[i] > s[i]:
            return Action.ENTER_LONG
        if side is Side.LONG and f[i - 1] >= s[i - 1] and f[i] < s[i]:
            return Action.EXIT_LONG
        return Action.HOLD
