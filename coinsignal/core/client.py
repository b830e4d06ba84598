"""coinsignal.core.client

Shared HTTP client for market-data fetches with:
- rate limiting (token bucket)
- retries (exponential backoff) for transient failures
- simple circuit breaker

HTTP 429 is not retried: it surfaces as RateLimitedError immediately.
Everything else that survives the retry budget becomes DataUnavailableError.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any

import httpx

from coinsignal.core.exceptions import DataUnavailableError, RateLimitedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ClientConfig:
    rate_limit_rps: float = 1.0
    max_retries: int = 3
    timeout_s: float = 20.0
    circuit_breaker_threshold: int = 5
    circuit_breaker_cooldown_s: float = 30.0
    max_backoff_s: float = 8.0


class TokenBucket:
    """Single-token bucket: at most one request per ``1 / rate`` seconds.

    Callers reserve a slot under a thread lock and sleep outside it, so one
    bucket can pace clients running on different threads and event loops.
    """

    def __init__(self, rate_per_sec: float) -> None:
        self.rate = max(rate_per_sec, 0.001)
        self.tokens = 1.0
        self.updated_at = time.monotonic()
        self._lock = threading.Lock()

    def reserve(self) -> float:
        """Take a token, possibly on credit. Returns seconds to wait before using it."""

        with self._lock:
            now = time.monotonic()
            self.tokens = min(1.0, self.tokens + (now - self.updated_at) * self.rate)
            self.updated_at = now
            self.tokens -= 1.0
            return 0.0 if self.tokens >= 0.0 else -self.tokens / self.rate

    async def acquire(self) -> None:
        wait_s = self.reserve()
        if wait_s > 0.0:
            await asyncio.sleep(wait_s)


class CircuitBreaker:
    """Opens after ``threshold`` consecutive failures; half-opens after cooldown."""

    def __init__(self, threshold: int, cooldown_s: float) -> None:
        self.threshold = threshold
        self.cooldown_s = cooldown_s
        self.failures = 0
        self.opened_at: float | None = None
        self._lock = threading.Lock()

    @property
    def is_open(self) -> bool:
        return self.opened_at is not None

    def allow(self) -> bool:
        with self._lock:
            if self.opened_at is None:
                return True
            if time.monotonic() - self.opened_at < self.cooldown_s:
                return False
            self.failures = 0
            self.opened_at = None
            return True

    def on_success(self) -> None:
        with self._lock:
            self.failures = 0
            self.opened_at = None

    def on_failure(self) -> None:
        with self._lock:
            self.failures += 1
            if self.failures < self.threshold or self.opened_at is not None:
                return
            self.opened_at = time.monotonic()
        logger.warning("circuit_breaker_opened", extra={"failures": self.failures})


def _retry_after(resp: httpx.Response) -> float | None:
    raw = resp.headers.get("retry-after")
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError:
        return None


class DataClient:
    """One HTTP session.

    ``bucket`` and ``breaker`` may be shared between clients so pacing and
    failure counting span sessions; by default each client gets its own.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        bucket: TokenBucket | None = None,
        breaker: CircuitBreaker | None = None,
    ) -> None:
        self.config = config or ClientConfig()
        self._bucket = bucket or TokenBucket(self.config.rate_limit_rps)
        self._breaker = breaker or CircuitBreaker(
            threshold=self.config.circuit_breaker_threshold,
            cooldown_s=self.config.circuit_breaker_cooldown_s,
        )
        self._client = httpx.AsyncClient(timeout=self.config.timeout_s, transport=transport)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> DataClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        if not self._breaker.allow():
            raise DataUnavailableError("circuit breaker open")

        last_exc: Exception | None = None
        for attempt in range(self.config.max_retries + 1):
            await self._bucket.acquire()
            try:
                resp = await self._client.request(method, url, **kwargs)
                if resp.status_code == 429:
                    logger.warning("upstream_rate_limited", extra={"url": url})
                    raise RateLimitedError(f"rate limited by upstream: {url}", retry_after_s=_retry_after(resp))
                resp.raise_for_status()
                await resp.aread()
                self._breaker.on_success()
                return resp
            except (httpx.TimeoutException, httpx.NetworkError, httpx.HTTPStatusError, httpx.TransportError) as e:
                last_exc = e
                self._breaker.on_failure()
                logger.warning("upstream_request_failed", extra={"url": url, "attempt": attempt, "error": type(e).__name__})
                if attempt >= self.config.max_retries:
                    break
                await asyncio.sleep(min(2**attempt, self.config.max_backoff_s))

        raise DataUnavailableError(f"upstream request failed after {self.config.max_retries + 1} attempts: {last_exc}") from last_exc

    async def request_json(
        self,
        method: str,
        url: str,
        *,
        expected: type | tuple[type, ...] | None = None,
        max_bytes: int = 8 * 1024 * 1024,
        **kwargs: Any,
    ) -> Any:
        """Request and parse JSON with basic safety caps.

        - max_bytes: hard cap on response body
        - expected: required top-level JSON type
        """

        resp = await self.request(method, url, **kwargs)
        size = len(resp.content)
        if size > int(max_bytes):
            raise DataUnavailableError(f"response_too_large:{size}")
        try:
            data: Any = resp.json()
        except ValueError as e:
            raise DataUnavailableError("response_not_json") from e
        if expected is not None and not isinstance(data, expected):
            raise DataUnavailableError("response_schema_mismatch")
        return data
