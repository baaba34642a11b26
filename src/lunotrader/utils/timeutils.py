"""
Timestamp and trading day utilities.

Candles carry their timestamp as integer epoch milliseconds.  This
module centralises the conversions the engine needs: turning those
millis into timezone-aware pandas timestamps for reports, and deriving
the UTC day key the risk manager uses to reset its daily counters.
"""

from __future__ import annotations

import pandas as pd


DAY_MS = 86_400_000


def millis_to_timestamp(millis: int, tz_name: str = "UTC") -> pd.Timestamp:
    """Convert epoch milliseconds to a `pandas.Timestamp` in `tz_name`."""
    ts = pd.Timestamp(int(millis), unit="ms", tz="UTC")
    return ts.tz_convert(tz_name)


def utc_day_key(millis: int) -> int:
    """Return the number of whole UTC days between the epoch and `millis`.

    Plain integer arithmetic, so any integer timestamp has a key; there is
    no calendar range to overflow.
    """
    return int(millis) // DAY_MS
