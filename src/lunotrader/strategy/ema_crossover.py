"""
EMA crossover entry strategy.

The strategy opens a long position when the fast EMA crosses above
the slow EMA on the most recent bar, the latest close confirms by
sitting above both averages, and the latest candle body is not tiny
compared with recent bodies.  It never proposes shorts.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from ..execution.models import PriceCandle
from .indicators import average_body, ema


FAST_PERIOD = 9
SLOW_PERIOD = 21
MIN_HISTORY = 25
BODY_LOOKBACK = 20
MIN_BODY_RATIO = 0.5


@dataclass(frozen=True)
class SignalDecision:
    """Entry decision plus the diagnostics that produced it.

    `label` is informational only.
    """
    should_open_long: bool
    label: str
    fast_ema: Optional[float] = None
    slow_ema: Optional[float] = None
    crossover: bool = False
    price_above_emas: bool = False
    body_ok: bool = False


class EmaCrossoverStrategy:
    """Dual-EMA crossover with a candle body noise filter."""

    def __init__(
        self,
        fast_period: int = FAST_PERIOD,
        slow_period: int = SLOW_PERIOD,
        min_history: int = MIN_HISTORY,
    ) -> None:
        self.fast_period = fast_period
        self.slow_period = slow_period
        self.min_history = min_history

    def decide(self, candles: Sequence[PriceCandle]) -> SignalDecision:
        """Evaluate the full chronological history, newest candle last.

        Parameters
        ----------
        candles : sequence of PriceCandle
            Candle history including the bar that just closed.

        Returns
        -------
        SignalDecision
            ``should_open_long`` is ``True`` only if the crossover, price
            confirmation and body filter all pass.
        """
        n = len(candles)
        if n < self.min_history:
            return SignalDecision(
                should_open_long=False,
                label=f"INSUFFICIENT_HISTORY: need {self.min_history} candles, have {n}.",
            )

        closes = [c.close for c in candles]
        opens = [c.open for c in candles]
        fast = ema(closes, self.fast_period)
        slow = ema(closes, self.slow_period)

        fast_prev, fast_now = float(fast.iloc[-2]), float(fast.iloc[-1])
        slow_prev, slow_now = float(slow.iloc[-2]), float(slow.iloc[-1])

        crossover = fast_prev <= slow_prev and fast_now > slow_now
        last = candles[-1]
        price_above = last.close > fast_now and last.close > slow_now
        body_ratio = last.body / average_body(opens, closes, BODY_LOOKBACK)
        body_ok = body_ratio >= MIN_BODY_RATIO

        should_open = crossover and price_above and body_ok
        label = (
            f"{'OPEN_LONG' if should_open else 'HOLD'}: "
            f"EMA{self.fast_period}={fast_now:.2f}, EMA{self.slow_period}={slow_now:.2f}, "
            f"crossover={crossover}, priceAboveEMAs={price_above}, "
            f"bodyOk={body_ok} (body/avg={body_ratio:.2f})."
        )
        return SignalDecision(
            should_open_long=should_open,
            label=label,
            fast_ema=fast_now,
            slow_ema=slow_now,
            crossover=crossover,
            price_above_emas=price_above,
            body_ok=body_ok,
        )
