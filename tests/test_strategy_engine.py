import os
import sys

CURRENT_DIR = os.path.dirname(__file__)
SRC_DIR = os.path.abspath(os.path.join(CURRENT_DIR, os.pardir, "src"))
if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

from lunotrader.config.schema import RiskConfig
from lunotrader.execution.models import AccountSnapshot, CloseReason, PriceCandle
from lunotrader.execution.paper_engine import PaperTradingEngine
from lunotrader.risk.risk_manager import RiskManager
from lunotrader.strategy.engine import StrategyEngine

import unittest

T0 = 1_704_067_200_000
MINUTE = 60_000


def _bar(i: int, open_: float, close: float, high: float = None, low: float = None) -> PriceCandle:
    return PriceCandle(
        timestamp=T0 + i * MINUTE,
        open=open_,
        high=max(open_, close) if high is None else high,
        low=min(open_, close) if low is None else low,
        close=close,
        volume=1.0,
    )


def crossover_series() -> list:
    """24 falling bars and a strong bullish bar that triggers a long at 140."""
    candles = []
    prev = 100.0
    for i in range(24):
        close = 100.0 - 0.5 * i
        candles.append(_bar(i, prev, close))
        prev = close
    candles.append(_bar(24, 88.5, 140.0))
    return candles


class TestStrategyEngine(unittest.TestCase):
    def setUp(self) -> None:
        self.rm = RiskManager()
        self.engine = StrategyEngine(paper_engine=PaperTradingEngine(self.rm))
        self.account = AccountSnapshot(total_equity_myr=10_000.0, free_balance_myr=10_000.0)
        self.risk = RiskConfig(risk_per_trade_percent=1.0)

    def _feed(self, candles):
        return [self.engine.run_once(c, self.account, self.risk) for c in candles]

    def test_warm_up_has_no_entries(self) -> None:
        results = self._feed([_bar(i, 100.0, 100.0) for i in range(24)])
        for result in results:
            self.assertIn("INSUFFICIENT_HISTORY", result.decision_label)
            self.assertTrue(result.decision_label.endswith("No new entries."))
            self.assertIsNone(result.newly_opened_trade)
        self.assertEqual(len(self.engine.history), 24)

    def test_signal_opens_trade_and_narrates(self) -> None:
        result = self._feed(crossover_series())[-1]
        trade = result.newly_opened_trade
        self.assertIsNotNone(trade)
        self.assertTrue(result.decision_label.endswith("NEW LONG opened."))
        self.assertAlmostEqual(trade.entry_price, 140.0)
        self.assertAlmostEqual(trade.stop_loss_price, 139.3)
        self.assertAlmostEqual(trade.take_profit_price, 141.4)
        # Exits run before the entry, so the opening bar cannot stop it out
        self.assertEqual(len(result.open_trades), 1)
        self.assertEqual(result.closed_trades, [])
        lines = result.human_signal.splitlines()
        self.assertTrue(lines[0].startswith("Candle @ %d" % (T0 + 24 * MINUTE)))
        self.assertIn("C=140.00", lines[0])
        self.assertIn("Opened new LONG XBTMYR @ 140.00", result.human_signal)
        self.assertIn("Open simulated trades: 1.", lines[-1])

    def test_exit_is_reported_on_following_tick(self) -> None:
        self._feed(crossover_series())
        result = self.engine.run_once(_bar(25, 140.0, 141.0, high=142.0, low=140.0), self.account, self.risk)
        self.assertEqual(len(result.closed_trades), 1)
        self.assertEqual(result.closed_trades[0].reason, CloseReason.TAKE_PROFIT)
        self.assertAlmostEqual(result.total_realized_pnl, 200.0, places=6)
        self.assertEqual(result.open_trades, [])
        self.assertIn("Closed trades this run: 1.", result.human_signal)
        self.assertIn("TAKE_PROFIT @ 141.40", result.human_signal)
        self.assertIn("Win rate: 100.00%", result.human_signal)
        self.assertAlmostEqual(self.engine.total_realized_pnl(), 200.0, places=6)
        self.assertEqual(self.engine.snapshot_performance().winning_trades, 1)
        self.assertEqual(len(self.engine.snapshot_closed_trades(limit=1)), 1)

    def test_blocked_entry_is_labelled(self) -> None:
        self.risk = RiskConfig(max_trades_per_day=1, live_trading_enabled=True)
        self.rm.register_opened_trade(T0)
        result = self._feed(crossover_series())[-1]
        self.assertIsNone(result.newly_opened_trade)
        self.assertIn("New LONG blocked: Max trades per day reached", result.decision_label)
        self.assertEqual(self.engine.snapshot_open_trades(), [])

    def test_reset_session_clears_history_and_ledger(self) -> None:
        self._feed(crossover_series())
        self.engine.reset_session()
        self.assertEqual(self.engine.history, [])
        self.assertEqual(self.engine.snapshot_open_trades(), [])
        self.assertEqual(self.engine.total_realized_pnl(), 0.0)
        self.assertEqual(self.rm.daily_state.trades_opened_today, 1)

    def test_history_is_bounded(self) -> None:
        engine = StrategyEngine(history_limit=30)
        for i in range(40):
            engine.run_once(_bar(i, 100.0, 100.0), self.account, self.risk)
        self.assertEqual(len(engine.history), 30)
        self.assertEqual(engine.history[-1].timestamp, T0 + 39 * MINUTE)


if __name__ == '__main__':
    unittest.main()
