"""coinsignal.backtest.loader

Series loaders: the one boundary where the engine touches the outside world.

A loader turns (symbol, start, end, timeframe) into candles, oldest first, or
raises DataUnavailableError / RateLimitedError. The engine never retries a
loader; any retry budget lives in the HTTP client underneath it.

CoinGecko's ``market_chart/range`` endpoint returns raw price samples, not
candles. We bucket them by timeframe: open = first sample, high = max,
low = min, close = last.
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Sequence
from datetime import datetime
from typing import Any, Final, Protocol, runtime_checkable

import httpx

from coinsignal.backtest.types import Candle
from coinsignal.core.client import CircuitBreaker, ClientConfig, DataClient, TokenBucket
from coinsignal.core.config import DataConfig
from coinsignal.core.exceptions import DataUnavailableError, InvalidParameterError

logger = logging.getLogger(__name__)

TIMEFRAMES: Final[dict[str, int]] = {
    "1h": 3_600_000,
    "4h": 4 * 3_600_000,
    "1d": 86_400_000,
}


def timeframe_ms(timeframe: str) -> int:
    try:
        return TIMEFRAMES[timeframe]
    except KeyError:
        raise InvalidParameterError(f"unsupported timeframe: {timeframe!r} (expected one of {sorted(TIMEFRAMES)})") from None


@runtime_checkable
class SeriesLoader(Protocol):
    def load(self, symbol: str, start: datetime, end: datetime, timeframe: str) -> list[Candle]: ...


def _sample(row: Any) -> tuple[int, float]:
    if not isinstance(row, (list, tuple)) or len(row) < 2:
        raise DataUnavailableError(f"malformed sample: {row!r}")
    try:
        ts, value = int(row[0]), float(row[1])
    except (TypeError, ValueError) as e:
        raise DataUnavailableError(f"malformed sample: {row!r}") from e
    return ts, value


def bucket_prices(
    prices: Sequence[Any],
    *,
    timeframe: str = "1d",
    volumes: Sequence[Any] | None = None,
) -> list[Candle]:
    """Aggregate ``[[ms, price], ...]`` samples into OHLC candles.

    Buckets are aligned to UTC multiples of the timeframe and keyed by their
    start. Volume is the last volume sample seen in the bucket, 0 if none.
    """

    step = timeframe_ms(timeframe)

    buckets: dict[int, list[float]] = {}
    for ts, price in sorted((_sample(r) for r in prices), key=lambda s: s[0]):
        if not math.isfinite(price) or price <= 0:
            continue
        buckets.setdefault(ts - ts % step, []).append(price)

    vol: dict[int, float] = {}
    for ts, v in sorted((_sample(r) for r in volumes or ()), key=lambda s: s[0]):
        if math.isfinite(v) and v >= 0:
            vol[ts - ts % step] = v

    return [
        Candle(
            timestamp=key,
            open=px[0],
            high=max(px),
            low=min(px),
            close=px[-1],
            volume=vol.get(key, 0.0),
        )
        for key, px in sorted(buckets.items())
    ]


class CoinGeckoSeriesLoader:
    """Historical candles from CoinGecko's market_chart/range endpoint.

    Each load opens its own HTTP session (``load`` may run on any thread, each
    with its own event loop). Pacing and the circuit breaker belong to the
    loader, so every run in a batch shares one request budget.
    """

    def __init__(self, config: DataConfig | None = None, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.config = config or DataConfig()
        self._transport = transport
        self._client_config = ClientConfig(
            rate_limit_rps=self.config.rate_limit_rps,
            max_retries=self.config.max_retries,
            timeout_s=self.config.timeout_s,
            circuit_breaker_threshold=self.config.circuit_breaker_threshold,
            circuit_breaker_cooldown_s=self.config.circuit_breaker_cooldown_s,
            max_backoff_s=self.config.max_backoff_s,
        )
        self.bucket = TokenBucket(self.config.rate_limit_rps)
        self.breaker = CircuitBreaker(
            threshold=self.config.circuit_breaker_threshold,
            cooldown_s=self.config.circuit_breaker_cooldown_s,
        )

    def _client(self) -> DataClient:
        return DataClient(self._client_config, transport=self._transport, bucket=self.bucket, breaker=self.breaker)

    async def aload(self, symbol: str, start: datetime, end: datetime, timeframe: str) -> list[Candle]:
        timeframe_ms(timeframe)

        url = f"{self.config.base_url.rstrip('/')}/coins/{symbol}/market_chart/range"
        params = {
            "vs_currency": self.config.vs_currency,
            "from": int(start.timestamp()),
            "to": int(end.timestamp()),
        }
        headers = {"x-cg-demo-api-key": self.config.api_key} if self.config.api_key else {}

        async with self._client() as client:
            data = await client.request_json("GET", url, params=params, headers=headers, expected=dict)

        prices = data.get("prices")
        if not isinstance(prices, list):
            raise DataUnavailableError(f"no price history for {symbol}")
        volumes = data.get("total_volumes")

        candles = bucket_prices(prices, timeframe=timeframe, volumes=volumes if isinstance(volumes, list) else None)
        logger.info(
            "series_loaded",
            extra={"symbol": symbol, "timeframe": timeframe, "samples": len(prices), "candles": len(candles)},
        )
        return candles

    def load(self, symbol: str, start: datetime, end: datetime, timeframe: str) -> list[Candle]:
        return asyncio.run(self.aload(symbol, start, end, timeframe))
