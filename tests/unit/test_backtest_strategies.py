from __future__ import annotations

import numpy as np
import pytest

from coinsignal.backtest.strategies import (
    RSIThresholdStrategy,
    SMACrossoverStrategy,
    StrategyName,
    get_strategy,
    list_strategies,
)
from coinsignal.backtest.types import Side
from coinsignal.core.exceptions import InvalidParameterError, UnknownStrategyError
from tests.unit._backtest_helpers import make_candles, single_cross_closes


def _zigzag(n: int = 200, seed: int = 3) -> list[float]:
    rng = np.random.default_rng(seed)
    t = np.arange(n)
    return list(100.0 + 15.0 * np.sin(t / 6.0) + rng.normal(0.0, 1.5, n))


def test_registry_covers_every_name():
    assert list_strategies() == ["SMA Crossover", "RSI Oversold/Overbought"]
    assert isinstance(get_strategy("SMA Crossover"), SMACrossoverStrategy)
    assert isinstance(get_strategy(StrategyName.RSI_OVERSOLD_OVERBOUGHT), RSIThresholdStrategy)


def test_unknown_strategy_name():
    with pytest.raises(UnknownStrategyError):
        get_strategy("MACD Divergence")


def test_params_override_defaults():
    s = get_strategy("SMA Crossover", {"fast": 5, "slow": 20.0})
    assert (s.fast, s.slow) == (5, 20)
    r = get_strategy("RSI Oversold/Overbought", {"oversold": 25, "overbought": 75})
    assert (r.period, r.oversold, r.overbought) == (14, 25.0, 75.0)


@pytest.mark.parametrize(
    "name,params",
    [
        ("SMA Crossover", {"fast": 0}),
        ("SMA Crossover", {"fast": 30, "slow": 10}),
        ("SMA Crossover", {"fast": 2.5}),
        ("SMA Crossover", {"window": 5}),
        ("SMA Crossover", {"fast": "ten"}),
        ("SMA Crossover", {"fast": float("nan")}),
        ("SMA Crossover", {"slow": float("inf")}),
        ("RSI Oversold/Overbought", {"oversold": float("-inf")}),
        ("RSI Oversold/Overbought", {"period": -1}),
        ("RSI Oversold/Overbought", {"oversold": 80, "overbought": 70}),
        ("RSI Oversold/Overbought", {"overbought": 120}),
    ],
)
def test_invalid_parameters(name: str, params: dict):
    with pytest.raises(InvalidParameterError):
        get_strategy(name, params)


def test_sma_crossover_single_cross_forced_exit():
    candles = make_candles(single_cross_closes())
    res = SMACrossoverStrategy().run(candles)

    assert len(res.trades) == 1
    t = res.trades[0]
    assert t.entry_price == 110.0
    assert t.entry_time == candles[30].timestamp
    assert t.exit_price == 134.0
    assert t.exit_time == candles[-1].timestamp
    assert t.forced_exit is True
    assert t.profit == pytest.approx(24.0)
    assert t.profit_percent == pytest.approx(24.0 / 110.0)


def test_sma_crossover_flat_series_has_no_trades():
    res = SMACrossoverStrategy().run(make_candles([100.0] * 40))
    assert res.trades == ()
    assert res.transitions == ()


@pytest.mark.parametrize("price,n", [(67123.89, 40), (0.1, 2000), (1.7, 200)])
def test_sma_crossover_flat_fractional_price_has_no_trades(price: float, n: int):
    res = SMACrossoverStrategy().run(make_candles([price] * n))
    assert res.trades == ()


def test_sma_crossover_too_short_series_has_no_trades():
    closes = single_cross_closes()[:29]
    assert SMACrossoverStrategy().run(make_candles(closes)).trades == ()


def test_sma_crossover_cross_below_exits():
    closes = [100.0] * 30 + [110.0, 120.0, 130.0] + [80.0] * 10
    res = SMACrossoverStrategy().run(make_candles(closes))
    assert len(res.trades) == 1
    assert res.trades[0].forced_exit is False
    assert res.trades[0].exit_price == 80.0


def test_rsi_enters_oversold_and_exits_overbought():
    closes = [float(x) for x in range(130, 100, -1)] + [float(x) for x in range(101, 131)]
    res = RSIThresholdStrategy().run(make_candles(closes))

    assert len(res.trades) == 1
    t = res.trades[0]
    # First defined RSI (index 14) on a falling series is 0 -> enter.
    assert t.entry_price == closes[14]
    assert t.forced_exit is False
    # 3 losses, a flat step and 10 gains in the window: RSI ~76.9, first print above 70.
    assert t.exit_price == closes[40]
    assert t.profit < 0


def test_no_entry_on_last_candle():
    # RSI only drops below 30 on the final candle.
    closes = [100.0 + i for i in range(20)] + [60.0]
    res = RSIThresholdStrategy(period=3, oversold=30, overbought=70).run(make_candles(closes))
    assert res.trades == ()


@pytest.mark.parametrize("name", list_strategies())
@pytest.mark.parametrize("seed", [1, 2, 3])
def test_single_position_invariant(name: str, seed: int):
    candles = make_candles(_zigzag(seed=seed))
    res = get_strategy(name).run(candles)

    sides = [tr.new for tr in res.transitions]
    for a, b in zip(sides, sides[1:], strict=False):
        assert a != b
    if sides:
        assert sides[0] is Side.LONG
        assert sides[-1] is Side.FLAT

    entries = sum(1 for s in sides if s is Side.LONG)
    exits = sum(1 for s in sides if s is Side.FLAT)
    assert entries == exits == len(res.trades)
    assert sum(1 for tr in res.transitions if tr.forced) <= 1

    for t in res.trades:
        assert t.exit_time > t.entry_time
    for prev, nxt in zip(res.trades, res.trades[1:], strict=False):
        assert nxt.entry_time >= prev.exit_time
