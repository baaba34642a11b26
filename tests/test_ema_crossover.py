import os
import sys

CURRENT_DIR = os.path.dirname(__file__)
SRC_DIR = os.path.abspath(os.path.join(CURRENT_DIR, os.pardir, "src"))
if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

from lunotrader.execution.models import PriceCandle
from lunotrader.strategy.ema_crossover import EmaCrossoverStrategy
from lunotrader.strategy.indicators import average_body, ema

import unittest

T0 = 1_704_067_200_000
MINUTE = 60_000


def _bar(i: int, open_: float, close: float) -> PriceCandle:
    return PriceCandle(
        timestamp=T0 + i * MINUTE,
        open=open_,
        high=max(open_, close),
        low=min(open_, close),
        close=close,
        volume=1.0,
    )


def declining_then(last_open: float, last_close: float) -> list:
    """24 bars falling 0.5 per bar from 100, then one custom bar."""
    candles = []
    prev = 100.0
    for i in range(24):
        close = 100.0 - 0.5 * i
        candles.append(_bar(i, prev, close))
        prev = close
    candles.append(_bar(24, last_open, last_close))
    return candles


class TestIndicators(unittest.TestCase):
    def test_ema_flat_seed_then_recurrence(self) -> None:
        out = ema([1.0, 2.0, 3.0, 4.0, 5.0], 3)
        self.assertEqual(len(out), 5)
        for value in out.iloc[:3]:
            self.assertAlmostEqual(value, 2.0)
        self.assertAlmostEqual(out.iloc[3], 3.0)
        self.assertAlmostEqual(out.iloc[4], 4.0)

    def test_ema_period_longer_than_series(self) -> None:
        out = ema([1.0, 2.0, 3.0], 5)
        self.assertEqual(list(out.round(10)), [2.0, 2.0, 2.0])

    def test_ema_empty(self) -> None:
        self.assertTrue(ema([], 9).empty)

    def test_average_body_ignores_zero_bodies(self) -> None:
        opens = [1.0, 1.0, 2.0, 5.0]
        closes = [1.0, 2.0, 2.0, 2.0]
        self.assertAlmostEqual(average_body(opens, closes), 2.0)

    def test_average_body_all_zero_is_one(self) -> None:
        self.assertEqual(average_body([3.0] * 5, [3.0] * 5), 1.0)

    def test_average_body_uses_lookback_window(self) -> None:
        opens = [0.0] + [1.0] * 20
        closes = [100.0] + [2.0] * 20
        self.assertAlmostEqual(average_body(opens, closes, lookback=20), 1.0)


class TestEmaCrossoverStrategy(unittest.TestCase):
    def setUp(self) -> None:
        self.strategy = EmaCrossoverStrategy()

    def test_insufficient_history(self) -> None:
        candles = [_bar(i, 100.0, 100.0) for i in range(24)]
        decision = self.strategy.decide(candles)
        self.assertFalse(decision.should_open_long)
        self.assertTrue(decision.label.startswith("INSUFFICIENT_HISTORY"))
        self.assertIsNone(decision.fast_ema)

    def test_flat_market_holds(self) -> None:
        candles = [_bar(i, 100.0, 100.0) for i in range(25)]
        decision = self.strategy.decide(candles)
        self.assertFalse(decision.should_open_long)
        self.assertTrue(decision.label.startswith("HOLD"))

    def test_bullish_crossover_opens_long(self) -> None:
        decision = self.strategy.decide(declining_then(88.5, 140.0))
        self.assertTrue(decision.crossover)
        self.assertTrue(decision.price_above_emas)
        self.assertTrue(decision.body_ok)
        self.assertTrue(decision.should_open_long)
        self.assertTrue(decision.label.startswith("OPEN_LONG"))
        self.assertAlmostEqual(decision.fast_ema, 100.4, places=6)
        self.assertAlmostEqual(decision.slow_ema, 2.0 / 22 * 140.0 + 20.0 / 22 * 93.5, places=6)

    def test_small_body_is_filtered(self) -> None:
        # Gap up with a tiny body: crossover and price pass, body does not
        decision = self.strategy.decide(declining_then(139.9, 140.0))
        self.assertTrue(decision.crossover)
        self.assertTrue(decision.price_above_emas)
        self.assertFalse(decision.body_ok)
        self.assertFalse(decision.should_open_long)

    def test_no_crossover_in_downtrend(self) -> None:
        decision = self.strategy.decide(declining_then(88.5, 88.0))
        self.assertFalse(decision.crossover)
        self.assertFalse(decision.should_open_long)

    def test_crossover_only_checked_on_last_two_bars(self) -> None:
        candles = declining_then(88.5, 140.0)
        candles.append(_bar(25, 140.0, 150.0))
        decision = self.strategy.decide(candles)
        self.assertFalse(decision.crossover)
        self.assertFalse(decision.should_open_long)

    def test_non_finite_close_never_opens(self) -> None:
        candles = declining_then(88.5, float("nan"))
        self.assertFalse(self.strategy.decide(candles).should_open_long)


if __name__ == '__main__':
    unittest.main()
