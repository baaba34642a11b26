"""Price indicators used by the EMA crossover strategy."""

from __future__ import annotations

from typing import Sequence

import pandas as pd


def ema(values: Sequence[float], period: int) -> pd.Series:
    """Exponential moving average with a flat seed.

    The first ``min(period, len(values))`` points are all set to the simple
    mean of those values; from there on the usual recurrence
    ``ema[i] = alpha * x[i] + (1 - alpha) * ema[i - 1]`` applies with
    ``alpha = 2 / (period + 1)``.
    """
    if period <= 0:
        raise ValueError(f"EMA period must be positive, got {period}")
    n = len(values)
    if n == 0:
        return pd.Series(dtype=float)
    seed_len = min(period, n)
    seed = sum(values[:seed_len]) / seed_len
    seeded = pd.Series([seed] * seed_len + list(values[seed_len:]), dtype=float)
    return seeded.ewm(alpha=2.0 / (period + 1), adjust=False).mean()


def average_body(opens: Sequence[float], closes: Sequence[float], lookback: int = 20) -> float:
    """Mean of the non-zero candle bodies over the last `lookback` bars.

    Returns 1.0 when every body in the window is zero.
    """
    bodies = (pd.Series(closes[-lookback:], dtype=float) - pd.Series(opens[-lookback:], dtype=float)).abs()
    bodies = bodies[bodies > 0]
    if bodies.empty:
        return 1.0
    return float(bodies.mean())
