"""
CSV candle loader.

This module loads historical OHLCV data from a CSV file and turns it
into `PriceCandle` objects for replay.  Two schemas are accepted:

```
time,open,high,low,close,volume
timestamp,open,high,low,close,volume
```

`time` holds ISO-formatted datetimes (naive values are read as UTC)
and `timestamp` holds epoch milliseconds.  The `volume` column is
optional; other columns are ignored.
"""

from __future__ import annotations

from pathlib import Path
from typing import List
import logging
import pandas as pd

from ..execution.models import PriceCandle


logger = logging.getLogger(__name__)

REQUIRED_PRICE_COLUMNS = ["open", "high", "low", "close"]


class CSVCandleLoader:
    """Load candles from a CSV file for backtesting.

    Parameters
    ----------
    csv_path : str
        Path to the CSV file.
    """

    def __init__(self, csv_path: str) -> None:
        self.csv_path = Path(csv_path)

    def load_frame(self) -> pd.DataFrame:
        """Read the file into a DataFrame indexed by epoch millis, sorted by time.

        Raises
        ------
        FileNotFoundError
            If the file does not exist.
        ValueError
            If a required column is missing or timestamps cannot be parsed.
        """
        if not self.csv_path.exists():
            raise FileNotFoundError(f"Candle CSV not found: {self.csv_path}")

        df = pd.read_csv(self.csv_path)
        df.columns = [str(c).strip().lower() for c in df.columns]

        missing = [c for c in REQUIRED_PRICE_COLUMNS if c not in df.columns]
        if missing:
            raise ValueError(
                f"Unrecognized CSV format in {self.csv_path}. Missing columns: {missing}. "
                f"Found columns: {list(df.columns)}"
            )

        if "timestamp" in df.columns:
            parsed = pd.to_numeric(df["timestamp"], errors="coerce")
        elif "time" in df.columns:
            parsed = pd.to_datetime(df["time"], utc=True, errors="coerce")
        else:
            raise ValueError(f"CSV {self.csv_path} needs a 'time' or 'timestamp' column")

        if parsed.isna().any():
            bad = df.index[parsed.isna()].tolist()[:5]
            raise ValueError(f"Could not parse timestamps in {self.csv_path} at rows {bad}")

        if "timestamp" in df.columns:
            millis = parsed
        else:
            millis = (parsed - pd.Timestamp(0, tz="UTC")) // pd.Timedelta(milliseconds=1)

        out = pd.DataFrame(
            {
                "open": df["open"].astype(float),
                "high": df["high"].astype(float),
                "low": df["low"].astype(float),
                "close": df["close"].astype(float),
                "volume": df["volume"].astype(float) if "volume" in df.columns else 0.0,
            }
        )
        out.index = pd.Index(millis.astype("int64"), name="timestamp")
        return out.sort_index()

    def load(self) -> List[PriceCandle]:
        """Return the file's candles in chronological order."""
        df = self.load_frame()
        candles = [
            PriceCandle(
                timestamp=int(ts),
                open=float(row.open),
                high=float(row.high),
                low=float(row.low),
                close=float(row.close),
                volume=float(row.volume),
            )
            for ts, row in zip(df.index, df.itertuples(index=False))
        ]
        logger.info("Loaded %d candles from %s", len(candles), self.csv_path)
        return candles
