"""coinsignal.backtest.strategies.rsi_threshold

RSI oversold/overbought (long-only):
- enter when RSI < oversold
- exit when RSI > overbought
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

import numpy as np

from coinsignal.backtest.indicators import rsi
from coinsignal.backtest.strategies.base import Action, Indicators, Strategy, StrategyName
from coinsignal.backtest.types import Side
from coinsignal.core.exceptions import InvalidParameterError


@dataclass(frozen=True, slots=True)
class RSIThresholdStrategy(Strategy):
    name: ClassVar[StrategyName] = StrategyName.RSI_OVERSOLD_OVERBOUGHT
    period: int = 14
    oversold: float = 30.0
    overbought: float = 70.0

    def validate(self) -> None:
        if self.period <= 0:
            raise InvalidParameterError("rsi period must be > 0")
        if not (0.0 <= self.oversold < self.overbought <= 100.0):
            raise InvalidParameterError(
                f"rsi thresholds must satisfy 0 <= oversold < overbought <= 100, got {self.oversold}/{self.overbought}"
            )

    @property
    def warmup(self) -> int:
        return self.period

    def indicators(self, close: np.ndarray) -> Indicators:
        return {"rsi": rsi(close, self.period)}

    def decide(self, i: int, side: Side, ind: Indicators) -> Action:
        r = ind["rsi"][i]
        if not np.isfinite(r):
            return Action.HOLD

        if side is Side.FLAT and r < self.oversold:
            return Action.ENTER_LONG
        if side is Side.LONG and r > self.overbought:
            return Action.EXIT_LONG
        return Action.HOLD
