"""coinsignal.backtest.schemas

IO boundary models.

Consumers already speak camelCase (``winRate``, ``totalTrades``, ...), so the
aliases here are the wire contract. Internals stay snake_case dataclasses.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from coinsignal.backtest.types import BacktestParameters, BacktestResult, Trade


class _Camel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class BacktestRequest(_Camel):
    crypto_id: str = Field(min_length=1)
    crypto_symbol: str | None = None
    strategy_name: str
    timeframe: str = "1d"
    start_date: datetime
    end_date: datetime
    parameters: dict[str, Any] = Field(default_factory=dict)
    initial_capital: float | None = None

    def to_parameters(self) -> BacktestParameters:
        return BacktestParameters(
            crypto_id=self.crypto_id,
            crypto_symbol=self.crypto_symbol,
            strategy_name=self.strategy_name,
            timeframe=self.timeframe,
            start_date=self.start_date,
            end_date=self.end_date,
            parameters=dict(self.parameters),
            initial_capital=self.initial_capital,
        )


class TradeOut(_Camel):
    entry_time: int
    exit_time: int
    entry_price: float
    exit_price: float
    direction: str
    profit: float
    profit_percent: float
    forced_exit: bool = False

    @classmethod
    def from_trade(cls, t: Trade) -> TradeOut:
        return cls(
            entry_time=t.entry_time,
            exit_time=t.exit_time,
            entry_price=t.entry_price,
            exit_price=t.exit_price,
            direction=t.direction,
            profit=t.profit,
            profit_percent=t.profit_percent,
            forced_exit=t.forced_exit,
        )


class BacktestReport(_Camel):
    win_rate: float = Field(ge=0.0, le=1.0)
    profit_factor: float = Field(ge=0.0)
    max_drawdown: float = Field(ge=0.0, le=1.0)
    sharpe: float
    total_trades: int = Field(ge=0)
    trades: list[TradeOut] = Field(default_factory=list)
    winning_trades: int = 0
    losing_trades: int = 0
    net_profit: float = 0.0
    final_capital: float = 0.0

    @classmethod
    def from_result(cls, r: BacktestResult) -> BacktestReport:
        return cls(
            win_rate=r.win_rate,
            profit_factor=r.profit_factor,
            max_drawdown=r.max_drawdown,
            sharpe=r.sharpe,
            total_trades=r.total_trades,
            trades=[TradeOut.from_trade(t) for t in r.trades],
            winning_trades=r.winning_trades,
            losing_trades=r.losing_trades,
            net_profit=r.net_profit,
            final_capital=r.final_capital,
        )

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class BacktestErrorOut(_Camel):
    code: str
    detail: str
