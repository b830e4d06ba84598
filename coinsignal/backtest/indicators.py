"""coinsignal.backtest.indicators

Pure indicator functions over close prices.

Output is always aligned index-for-index with the input. Positions inside the
warm-up window are NaN: "not yet available", never zero.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from coinsignal.core.exceptions import InvalidParameterError


def _as_array(values: Sequence[float] | np.ndarray) -> np.ndarray:
    return np.asarray(values, dtype=np.float64)


def sma(values: Sequence[float] | np.ndarray, period: int) -> np.ndarray:
    """Simple moving average.

    ``period`` larger than the series is tolerated: the whole output is NaN.
    """

    if period <= 0:
        raise InvalidParameterError(f"sma period must be > 0, got {period}")

    x = _as_array(values)
    out = np.full_like(x, np.nan, dtype=np.float64)
    if x.size < period:
        return out

    # Mean of deviations from each window's first value: a flat window comes
    # back exactly equal to its price, with no prefix-sum drift.
    win = np.lib.stride_tricks.sliding_window_view(x, period)
    anchor = win[:, 0]
    out[period - 1 :] = anchor + (win - anchor[:, None]).mean(axis=1)
    return out


def rsi(values: Sequence[float] | np.ndarray, period: int = 14) -> np.ndarray:
    """Relative strength index, rolling-window form.

    Not Wilder-smoothed: at index ``i`` the average gain and loss are taken over
    the ``period`` price changes ending at ``i`` and divided by ``period``.
    This keeps results reproducible against earlier reports computed the same way.
    """

    if period <= 0:
        raise InvalidParameterError(f"rsi period must be > 0, got {period}")

    x = _as_array(values)
    out = np.full_like(x, np.nan, dtype=np.float64)
    if x.size <= period:
        return out

    diff = np.diff(x)  # diff[k] = x[k+1] - x[k]
    gains = np.maximum(diff, 0.0)
    losses = np.maximum(-diff, 0.0)

    for i in range(period, x.size):
        window = slice(i - period, i)  # changes into x[i-period+1 .. i]
        avg_gain = float(np.sum(gains[window])) / period
        avg_loss = float(np.sum(losses[window])) / period
        if avg_loss == 0.0:
            out[i] = 100.0
        else:
            out[i] = 100.0 - 100.0 / (1.0 + avg_gain / avg_loss)
    return out
