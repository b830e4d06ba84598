from __future__ import annotations

import math

import pytest

from coinsignal.backtest.evaluator import PROFIT_FACTOR_CAP, evaluate, max_drawdown, profit_factor, sharpe
from coinsignal.backtest.types import Trade


def _trade(i: int, entry: float, exit_: float) -> Trade:
    return Trade(entry_time=i * 10, exit_time=i * 10 + 5, entry_price=entry, exit_price=exit_)


def test_zero_trades_is_neutral():
    r = evaluate([], initial_capital=10_000.0)
    assert (r.win_rate, r.profit_factor, r.max_drawdown, r.sharpe, r.total_trades) == (0.0, 0.0, 0.0, 0.0, 0)
    assert r.trades == ()
    assert r.final_capital == 10_000.0


def test_mixed_trades_metrics():
    trades = [_trade(0, 100, 110), _trade(1, 110, 105), _trade(2, 105, 125)]
    r = evaluate(trades, initial_capital=1_000.0)

    assert r.total_trades == 3
    assert r.win_rate == pytest.approx(2 / 3)
    assert r.profit_factor == pytest.approx(30.0 / 5.0)
    assert (r.winning_trades, r.losing_trades) == (2, 1)
    assert r.net_profit == pytest.approx(25.0)
    assert r.final_capital == pytest.approx(1_025.0)
    # peak 1010 -> 1005
    assert r.max_drawdown == pytest.approx(5.0 / 1010.0)


def test_profit_factor_sentinel_and_zero():
    assert profit_factor([_trade(0, 100, 120)]) == PROFIT_FACTOR_CAP == 999.0
    assert profit_factor([_trade(0, 100, 100)]) == 0.0
    assert profit_factor([_trade(0, 100, 120)], cap=50.0) == 50.0


def test_breakeven_trade_is_neither_win_nor_loss():
    r = evaluate([_trade(0, 100, 100)], initial_capital=1_000.0)
    assert r.win_rate == 0.0
    assert (r.winning_trades, r.losing_trades) == (0, 0)
    assert r.profit_factor == 0.0


@pytest.mark.parametrize("capital", [10.0, 1_000.0, 10_000.0])
def test_drawdown_bounded_for_all_losing_sequences(capital: float):
    trades = [_trade(i, 100.0, 60.0) for i in range(10)]
    dd = max_drawdown(trades, initial_capital=capital)
    assert 0.0 <= dd <= 1.0
    r = evaluate(trades, initial_capital=capital)
    assert 0.0 <= r.max_drawdown <= 1.0
    assert r.win_rate == 0.0
    assert r.profit_factor == 0.0


def test_drawdown_total_loss_clamps_to_one():
    assert max_drawdown([_trade(0, 500.0, 100.0)], initial_capital=100.0) == 1.0


def test_sharpe_population_std():
    trades = [_trade(0, 100, 110), _trade(1, 100, 90)]
    # returns +0.1 / -0.1 -> mean 0
    assert sharpe(trades) == pytest.approx(0.0)

    trades = [_trade(0, 100, 110), _trade(1, 100, 130)]
    # returns 0.1, 0.3 -> mean 0.2, population std 0.1
    assert sharpe(trades) == pytest.approx(2.0 * math.sqrt(252))
    assert sharpe(trades, periods_per_year=365) == pytest.approx(2.0 * math.sqrt(365))


def test_sharpe_zero_std():
    assert sharpe([_trade(0, 100, 110)]) == 0.0
    assert sharpe([_trade(0, 100, 110), _trade(1, 200, 220)]) == 0.0


@pytest.mark.parametrize("n", [3, 7, 25])
def test_sharpe_identical_inexact_returns_is_zero(n: int):
    # 10% does not round-trip through binary; np.std leaves a tiny residue.
    trades = [_trade(i, 100.0, 110.0) for i in range(n)]
    assert sharpe(trades) == 0.0
    assert evaluate(trades, initial_capital=1_000.0).sharpe == 0.0


def test_trade_sample_is_capped_after_metrics():
    trades = [_trade(i, 100.0, 101.0 if i % 2 else 99.0) for i in range(50)]
    r = evaluate(trades, initial_capital=10_000.0, sample_size=20)

    assert r.total_trades == 50
    assert len(r.trades) == 20
    assert r.trades == tuple(trades[:20])
    assert r.win_rate == pytest.approx(0.5)


def test_total_matches_sample_under_cap():
    trades = [_trade(i, 100.0, 101.0) for i in range(7)]
    r = evaluate(trades, initial_capital=10_000.0)
    assert r.total_trades == len(r.trades) == 7
