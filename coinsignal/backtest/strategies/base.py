"""coinsignal.backtest.strategies.base

Backtest strategy contract.

A strategy is a two-state machine (FLAT, LONG) driven once per candle in
chronological order. Subclasses only answer "what would you do here?" via
``decide``; the loop in ``Strategy.run`` owns the position and enforces:

- at most one open position (no pyramiding)
- a candle can enter or exit, never both
- no entry on the final candle
- an open position at series end is force-closed at the last close

Entry and exit fill at the candle close.
"""

from __future__ import annotations

import dataclasses
import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, ClassVar

import numpy as np

from coinsignal.backtest.types import Candle, Position, Side, Trade, closes
from coinsignal.core.exceptions import InvalidParameterError


class StrategyName(StrEnum):
    SMA_CROSSOVER = "SMA Crossover"
    RSI_OVERSOLD_OVERBOUGHT = "RSI Oversold/Overbought"


class Action(StrEnum):
    HOLD = "hold"
    ENTER_LONG = "enter_long"
    EXIT_LONG = "exit_long"


@dataclass(frozen=True, slots=True)
class Transition:
    index: int
    previous: Side
    new: Side
    forced: bool = False


@dataclass(frozen=True, slots=True)
class StrategyResult:
    trades: tuple[Trade, ...]
    transitions: tuple[Transition, ...]


Indicators = dict[str, np.ndarray]


class Strategy:
    name: ClassVar[StrategyName]

    def validate(self) -> None:
        """Raise InvalidParameterError for inconsistent parameters."""

    @property
    def warmup(self) -> int:
        """Index of the first candle at which a transition can be evaluated."""
        raise NotImplementedError

    def indicators(self, close: np.ndarray) -> Indicators:
        raise NotImplementedError

    def decide(self, i: int, side: Side, ind: Indicators) -> Action:
        raise NotImplementedError

    @classmethod
    def from_params(cls, params: Mapping[str, Any] | None = None) -> Strategy:
        params = dict(params or {})
        known = {f.name: f for f in dataclasses.fields(cls)}  # type: ignore[arg-type]
        unknown = sorted(set(params) - set(known))
        if unknown:
            raise InvalidParameterError(f"{cls.name}: unknown parameter(s): {', '.join(unknown)}")

        kwargs: dict[str, Any] = {}
        for key, value in params.items():
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise InvalidParameterError(f"{cls.name}: parameter {key} must be a number")
            if isinstance(value, float) and not math.isfinite(value):
                raise InvalidParameterError(f"{cls.name}: parameter {key} must be finite, got {value}")
            if known[key].type in ("int", int):
                if float(value) != int(value):
                    raise InvalidParameterError(f"{cls.name}: parameter {key} must be an integer")
                kwargs[key] = int(value)
            else:
                kwargs[key] = float(value)

        strategy = cls(**kwargs)
        strategy.validate()
        return strategy

    def run(self, candles: Sequence[Candle]) -> StrategyResult:
        n = len(candles)
        if n <= self.warmup:
            return StrategyResult(trades=(), transitions=())

        ind = self.indicators(closes(candles))
        position = Position()
        trades: list[Trade] = []
        transitions: list[Transition] = []

        for i in range(self.warmup, n):
            action = self.decide(i, position.side, ind)
            if action is Action.ENTER_LONG and position.is_flat and i < n - 1:
                position = position.open_long(candles[i])
                transitions.append(Transition(index=i, previous=Side.FLAT, new=Side.LONG))
            elif action is Action.EXIT_LONG and not position.is_flat:
                position, trade = position.close(candles[i])
                trades.append(trade)
                transitions.append(Transition(index=i, previous=Side.LONG, new=Side.FLAT))

        if not position.is_flat:
            position, trade = position.close(candles[-1], forced=True)
            trades.append(trade)
            transitions.append(Transition(index=n - 1, previous=Side.LONG, new=Side.FLAT, forced=True))

        return StrategyResult(trades=tuple(trades), transitions=tuple(transitions))
