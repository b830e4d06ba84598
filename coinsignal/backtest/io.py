"""coinsignal.backtest.io

CSV candles, for offline runs and fixtures.

CSV schema:
- required: timestamp (epoch ms or ISO-8601), open, high, low, close
- optional: volume

All price columns must be numeric.
"""

from __future__ import annotations

import csv
from datetime import UTC, datetime
from pathlib import Path

from coinsignal.backtest.types import Candle, validate_candles
from coinsignal.core.exceptions import DataUnavailableError, InvalidParameterError

REQUIRED_COLUMNS = ("timestamp", "open", "high", "low", "close")


def _parse_ts(raw: str) -> int:
    if raw.lstrip("-").isdigit():
        return int(raw)
    dt = datetime.fromisoformat(raw)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return int(dt.timestamp() * 1000)


def load_candles_csv(path: str | Path) -> list[Candle]:
    p = Path(path)
    with p.open("r", encoding="utf-8") as f:
        r = csv.DictReader(f)
        rows = [{k.strip().lower(): (v or "").strip() for k, v in row.items() if k is not None} for row in r]
        header = [h.strip().lower() for h in (r.fieldnames or [])]

    missing = [c for c in REQUIRED_COLUMNS if c not in header]
    if missing:
        raise InvalidParameterError(f"CSV missing required column(s): {', '.join(missing)}")

    out: list[Candle] = []
    for n, row in enumerate(rows, start=2):
        try:
            out.append(
                Candle(
                    timestamp=_parse_ts(row["timestamp"]),
                    open=float(row["open"]),
                    high=float(row["high"]),
                    low=float(row["low"]),
                    close=float(row["close"]),
                    volume=float(row["volume"]) if row.get("volume") else 0.0,
                )
            )
        except ValueError as e:
            raise InvalidParameterError(f"{p}:{n}: {e}") from e

    out.sort(key=lambda c: c.timestamp)
    validate_candles(out)
    return out


class CsvSeriesLoader:
    """SeriesLoader over a local CSV. The symbol is ignored; the file is the series."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self, symbol: str, start: datetime, end: datetime, timeframe: str) -> list[Candle]:
        try:
            candles = load_candles_csv(self.path)
        except OSError as e:
            raise DataUnavailableError(f"cannot read {self.path}: {e.strerror or e}") from e
        lo = int(start.timestamp() * 1000)
        hi = int(end.timestamp() * 1000)
        return [c for c in candles if lo <= c.timestamp <= hi]
