"""coinsignal.backtest.evaluator

Trade list + starting capital -> BacktestResult.

Pure reduction. Metrics always come from the full trade list; the returned
``trades`` are truncated afterwards, purely to bound payload size.

Sharpe here is a simplification: mean over population std of per-trade
returns, annualized by a fixed constant regardless of timeframe. No risk-free
rate. Useful for ranking runs, not for a prospectus.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from coinsignal.backtest.types import BacktestResult, Trade

PROFIT_FACTOR_CAP = 999.0
# Relative std below which returns count as identical (float residue, not dispersion).
STD_EPSILON = 1e-12
ANNUALIZATION = 252
TRADE_SAMPLE_SIZE = 20


def profit_factor(trades: Sequence[Trade], *, cap: float = PROFIT_FACTOR_CAP) -> float:
    gross_profit = sum(t.profit for t in trades if t.profit > 0)
    gross_loss = abs(sum(t.profit for t in trades if t.profit < 0))
    if gross_loss > 0:
        return float(gross_profit / gross_loss)
    return float(cap) if gross_profit > 0 else 0.0


def max_drawdown(trades: Sequence[Trade], *, initial_capital: float) -> float:
    """Largest peak-to-trough decline of running capital, as a fraction of the peak.

    Per-unit losses can exceed the capital; anything past zero is a total loss (1.0).
    """

    if not trades:
        return 0.0
    capital = initial_capital + np.cumsum([t.profit for t in trades], dtype=np.float64)
    equity = np.concatenate(([initial_capital], capital))
    peak = np.maximum.accumulate(equity)
    dd = (peak - equity) / peak
    return float(min(max(dd.max(), 0.0), 1.0))


def sharpe(trades: Sequence[Trade], *, periods_per_year: int = ANNUALIZATION) -> float:
    if not trades:
        return 0.0
    r = np.array([t.profit_percent for t in trades], dtype=np.float64)
    mu = float(np.mean(r))
    sd = float(np.std(r))  # population
    if sd <= STD_EPSILON * max(1.0, abs(mu)):
        return 0.0
    return float((mu / sd) * np.sqrt(periods_per_year))


def evaluate(
    trades: Sequence[Trade],
    *,
    initial_capital: float,
    sample_size: int = TRADE_SAMPLE_SIZE,
    periods_per_year: int = ANNUALIZATION,
    profit_factor_cap: float = PROFIT_FACTOR_CAP,
) -> BacktestResult:
    total = len(trades)
    if total == 0:
        return BacktestResult(
            win_rate=0.0,
            profit_factor=0.0,
            max_drawdown=0.0,
            sharpe=0.0,
            total_trades=0,
            final_capital=float(initial_capital),
        )

    wins = sum(1 for t in trades if t.profit > 0)
    losses = sum(1 for t in trades if t.profit < 0)
    net = float(sum(t.profit for t in trades))

    return BacktestResult(
        win_rate=wins / total,
        profit_factor=profit_factor(trades, cap=profit_factor_cap),
        max_drawdown=max_drawdown(trades, initial_capital=initial_capital),
        sharpe=sharpe(trades, periods_per_year=periods_per_year),
        total_trades=total,
        trades=tuple(trades[:sample_size]),
        winning_trades=wins,
        losing_trades=losses,
        net_profit=net,
        final_capital=float(initial_capital) + net,
    )
