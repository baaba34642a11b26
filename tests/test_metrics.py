import os
import sys

CURRENT_DIR = os.path.dirname(__file__)
SRC_DIR = os.path.abspath(os.path.join(CURRENT_DIR, os.pardir, "src"))
if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

from lunotrader.execution.models import (
    ClosedTrade,
    CloseReason,
    EquityPoint,
    SimulatedTrade,
    TradeDirection,
    TradeStatus,
)
from lunotrader.reporting.metrics import PerformanceSnapshot, compute_metrics, compute_performance, max_drawdown

import unittest


def _closed(i: int, pnl: float, risk: float = 100.0) -> ClosedTrade:
    trade = SimulatedTrade(
        id=i,
        pair="XBTMYR",
        direction=TradeDirection.LONG,
        entry_price=100.0,
        stop_loss_price=99.5,
        take_profit_price=101.0,
        quantity_base=200.0,
        risk_amount=risk,
        opened_at=i,
        status=TradeStatus.CLOSED,
    )
    reason = CloseReason.TAKE_PROFIT if pnl > 0 else CloseReason.STOP_LOSS
    return ClosedTrade(trade=trade, close_price=100.0 + pnl / 200.0, closed_at=i + 1, pnl=pnl, reason=reason)


class TestPerformance(unittest.TestCase):
    def test_empty_ledger(self) -> None:
        perf = compute_performance([])
        self.assertEqual(perf, PerformanceSnapshot())
        self.assertIsNone(perf.average_r_multiple)

    def test_counts_and_totals(self) -> None:
        trades = [_closed(i, pnl) for i, pnl in enumerate([100.0, -50.0, 0.0, 200.0, -300.0])]
        perf = compute_performance(trades)
        self.assertEqual(perf.total_trades, 5)
        self.assertEqual(perf.winning_trades, 2)
        self.assertEqual(perf.losing_trades, 2)
        self.assertEqual(perf.breakeven_trades, 1)
        self.assertAlmostEqual(perf.win_rate_percent, 40.0)
        self.assertAlmostEqual(perf.gross_profit, 300.0)
        self.assertAlmostEqual(perf.gross_loss, 350.0)
        self.assertAlmostEqual(perf.net_profit, -50.0)
        self.assertAlmostEqual(perf.max_drawdown, 300.0)
        self.assertAlmostEqual(perf.average_r_multiple, -0.1)

    def test_r_multiple_skips_trades_without_risk(self) -> None:
        trades = [_closed(0, 100.0, risk=0.0), _closed(1, 50.0, risk=100.0)]
        self.assertAlmostEqual(compute_performance(trades).average_r_multiple, 0.5)

    def test_drawdown_starts_from_zero(self) -> None:
        self.assertAlmostEqual(max_drawdown([-40.0, -10.0]), 50.0)
        self.assertEqual(max_drawdown([10.0, 20.0]), 0.0)


class TestComputeMetrics(unittest.TestCase):
    def test_equity_curve_metrics(self) -> None:
        trades = [_closed(0, 200.0), _closed(1, -100.0)]
        curve = [
            EquityPoint(0, 10_000.0),
            EquityPoint(1, 10_200.0),
            EquityPoint(2, 10_100.0),
        ]
        metrics = compute_metrics(trades, curve)
        self.assertAlmostEqual(metrics['total_return'], 0.01)
        self.assertAlmostEqual(metrics['max_drawdown_pct'], 100.0 / 10_200.0)
        self.assertAlmostEqual(metrics['profit_factor'], 2.0)
        self.assertEqual(metrics['total_trades'], 2)

    def test_empty_inputs(self) -> None:
        metrics = compute_metrics([], [])
        self.assertEqual(metrics['total_return'], 0.0)
        self.assertEqual(metrics['sharpe'], 0.0)
        self.assertEqual(metrics['profit_factor'], 0.0)


if __name__ == '__main__':
    unittest.main()
