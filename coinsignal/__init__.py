"""coinsignal

The backtesting core.

Historical candles in, a performance report out. Everything around it
(UI, routing, persistence, caching) is someone else's problem.
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "1.0.0"
