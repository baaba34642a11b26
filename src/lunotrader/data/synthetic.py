"""
Synthetic candle sources.

Without an exchange connection the paper loop still needs candles.
`synthetic_candle` builds a small bullish bar around a single price,
the same way a ticker's last trade is turned into a candle, and
`RandomWalkFeed` produces a stream of such bars from a seeded random
walk.
"""

from __future__ import annotations

import random
import time
from typing import Iterator, Optional

from ..execution.models import PriceCandle


def synthetic_candle(price: float, timestamp: int, volume: float = 1.0) -> PriceCandle:
    """Build a candle spanning a narrow range around `price`.

    open = 0.999 * price, close = 1.001 * price, high and low extend
    0.05 % beyond the body.
    """
    open_ = price * 0.999
    close = price * 1.001
    return PriceCandle(
        timestamp=timestamp,
        open=open_,
        high=max(open_, close) * 1.0005,
        low=min(open_, close) * 0.9995,
        close=close,
        volume=volume,
    )


class RandomWalkFeed:
    """Infinite iterator of candles following a Gaussian random walk.

    Each step moves the price by ``N(0, volatility_pct)`` percent and
    emits a full OHLC bar whose open is the previous close.
    """

    def __init__(
        self,
        start_price: float,
        volatility_pct: float = 0.3,
        interval_ms: int = 60_000,
        seed: Optional[int] = None,
        start_ms: Optional[int] = None,
    ) -> None:
        if start_price <= 0:
            raise ValueError(f"start_price must be positive, got {start_price}")
        self.price = float(start_price)
        self.volatility_pct = volatility_pct
        self.interval_ms = interval_ms
        self._rng = random.Random(seed)
        self._next_ms = int(start_ms if start_ms is not None else time.time() * 1000)

    def __iter__(self) -> Iterator[PriceCandle]:
        return self

    def __next__(self) -> PriceCandle:
        open_ = self.price
        step = self._rng.gauss(0.0, self.volatility_pct / 100.0)
        close = max(open_ * (1.0 + step), 1e-9)
        wick = abs(self._rng.gauss(0.0, self.volatility_pct / 200.0))
        candle = PriceCandle(
            timestamp=self._next_ms,
            open=open_,
            high=max(open_, close) * (1.0 + wick),
            low=min(open_, close) * (1.0 - wick),
            close=close,
            volume=round(self._rng.uniform(0.1, 5.0), 4),
        )
        self.price = close
        self._next_ms += self.interval_ms
        return candle
