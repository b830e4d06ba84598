"""coinsignal.backtest.types

Lightweight dataclasses for the backtest hot path.

Pydantic models own IO boundaries (see ``schemas``); dataclasses keep the
engine lean. Everything here is frozen: a run never mutates its inputs.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import StrEnum
from types import MappingProxyType
from typing import Any

import numpy as np

from coinsignal.core.exceptions import InvalidParameterError


@dataclass(frozen=True, slots=True)
class Candle:
    timestamp: int  # epoch ms
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0


def validate_candles(candles: Sequence[Candle]) -> None:
    """Raise InvalidParameterError if the series breaks an OHLC invariant."""

    prev_ts: int | None = None
    for i, c in enumerate(candles):
        prices = (c.open, c.high, c.low, c.close)
        if not all(math.isfinite(p) and p > 0 for p in prices):
            raise InvalidParameterError(f"candle {i}: prices must be positive and finite")
        if not (c.low <= min(c.open, c.close) and max(c.open, c.close) <= c.high):
            raise InvalidParameterError(f"candle {i}: low <= open/close <= high violated")
        if not math.isfinite(c.volume) or c.volume < 0:
            raise InvalidParameterError(f"candle {i}: volume must be non-negative")
        if prev_ts is not None and c.timestamp <= prev_ts:
            raise InvalidParameterError(f"candle {i}: timestamps must be strictly increasing")
        prev_ts = c.timestamp


def closes(candles: Sequence[Candle]) -> np.ndarray:
    return np.array([c.close for c in candles], dtype=np.float64)


class Side(StrEnum):
    FLAT = "flat"
    LONG = "long"


@dataclass(frozen=True, slots=True)
class Trade:
    entry_time: int
    exit_time: int
    entry_price: float
    exit_price: float
    direction: str = "long"
    forced_exit: bool = False

    @property
    def profit(self) -> float:
        return self.exit_price - self.entry_price

    @property
    def profit_percent(self) -> float:
        # Fraction, not percent points.
        return self.profit / self.entry_price


@dataclass(frozen=True, slots=True)
class Position:
    """The only mutable-looking state of a run, passed around by value."""

    side: Side = Side.FLAT
    entry_price: float = 0.0
    entry_timestamp: int = 0

    @property
    def is_flat(self) -> bool:
        return self.side is Side.FLAT

    def open_long(self, candle: Candle) -> Position:
        if not self.is_flat:
            raise ValueError("Invalid transition long -> long")
        return Position(side=Side.LONG, entry_price=candle.close, entry_timestamp=candle.timestamp)

    def close(self, candle: Candle, *, forced: bool = False) -> tuple[Position, Trade]:
        if self.is_flat:
            raise ValueError("Invalid transition flat -> flat")
        trade = Trade(
            entry_time=self.entry_timestamp,
            exit_time=candle.timestamp,
            entry_price=self.entry_price,
            exit_price=candle.close,
            forced_exit=forced,
        )
        return Position(), trade


def _as_utc(dt: datetime) -> datetime:
    return dt.replace(tzinfo=UTC) if dt.tzinfo is None else dt


@dataclass(frozen=True, slots=True)
class BacktestParameters:
    crypto_id: str
    strategy_name: str
    start_date: datetime
    end_date: datetime
    timeframe: str = "1d"
    parameters: Mapping[str, Any] = field(default_factory=dict)
    initial_capital: float | None = None  # None -> config default
    crypto_symbol: str | None = None

    def __post_init__(self) -> None:
        # Naive datetimes are read as UTC.
        object.__setattr__(self, "start_date", _as_utc(self.start_date))
        object.__setattr__(self, "end_date", _as_utc(self.end_date))
        object.__setattr__(self, "parameters", MappingProxyType(dict(self.parameters)))

    def with_capital(self, capital: float) -> BacktestParameters:
        return replace(self, initial_capital=capital)


@dataclass(frozen=True, slots=True)
class BacktestResult:
    win_rate: float
    profit_factor: float
    max_drawdown: float
    sharpe: float
    total_trades: int
    trades: tuple[Trade, ...] = ()
    winning_trades: int = 0
    losing_trades: int = 0
    net_profit: float = 0.0
    final_capital: float = 0.0

    @property
    def has_trades(self) -> bool:
        return self.total_trades > 0
