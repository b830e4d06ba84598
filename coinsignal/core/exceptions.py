"""coinsignal.core.exceptions

Errors are part of the interface.

Every backtest failure is terminal for its run. Each error carries a stable
``code`` so callers can branch without string matching on messages.
A run that produced zero trades is not an error and never raises.
"""

from __future__ import annotations


class CoinsignalError(Exception):
    """Base exception for coinsignal."""

    code: str = "error"


class ConfigError(CoinsignalError):
    """Configuration is missing, invalid, or inconsistent."""

    code = "config_error"


class BacktestError(CoinsignalError):
    """A backtest run was rejected or could not complete."""

    code = "backtest_error"


class InvalidDateRangeError(BacktestError):
    """Start is not before end. Time only moves one way."""

    code = "invalid_date_range"


class InsufficientHistoryError(BacktestError):
    """Fetched series is shorter than the minimum usable length."""

    code = "insufficient_history"

    def __init__(self, message: str, *, available: int = 0, required: int = 0) -> None:
        super().__init__(message)
        self.available = available
        self.required = required


class UnknownStrategyError(BacktestError):
    """Strategy name is not one of the registered variants."""

    code = "unknown_strategy"


class InvalidParameterError(BacktestError):
    """Indicator or strategy parameter is malformed."""

    code = "invalid_parameter"


class DataSourceError(BacktestError):
    """Series loader could not deliver candles."""

    code = "data_source_error"


class DataUnavailableError(DataSourceError):
    """Upstream returned nothing usable."""

    code = "data_unavailable"


class RateLimitedError(DataSourceError):
    """Upstream said slow down. We listen."""

    code = "rate_limited"

    def __init__(self, message: str, *, retry_after_s: float | None = None) -> None:
        super().__init__(message)
        self.retry_after_s = retry_after_s
