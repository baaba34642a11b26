"""
Backtest execution engine.

This module contains the `BacktestEngine` class which replays a
sequence of historical candles through a `StrategyEngine` exactly as
the live loop would feed them: one candle per tick, with an account
snapshot rebuilt from the starting equity plus realized P&L before
every tick.  It records the equity curve after each closing trade for
reporting.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence
import logging

from ..config.schema import Config
from ..data.csv_data import CSVCandleLoader
from ..execution.models import (
    AccountSnapshot,
    BalanceSnapshot,
    ClosedTrade,
    EquityPoint,
    PriceCandle,
)
from ..reporting.metrics import PerformanceSnapshot
from ..strategy.engine import StrategyEngine


logger = logging.getLogger(__name__)


@dataclass
class BacktestResult:
    """Everything produced by one replay."""
    closed_trades: List[ClosedTrade] = field(default_factory=list)
    equity_curve: List[EquityPoint] = field(default_factory=list)
    performance: PerformanceSnapshot = field(default_factory=PerformanceSnapshot)
    ticks: int = 0
    trades_opened: int = 0


class BacktestEngine:
    """Replay historical candles through the paper trading core."""

    def __init__(self, config: Config, engine: Optional[StrategyEngine] = None) -> None:
        self.config = config
        self.engine = engine if engine is not None else StrategyEngine(
            pair=config.pair,
            currency=config.currency,
            history_limit=config.history_limit,
        )

    def _account_snapshot(self) -> AccountSnapshot:
        """Starting equity plus realized P&L; open positions tie up free balance."""
        equity = self.config.account.initial_equity_myr + self.engine.total_realized_pnl()
        start_free = self.config.account.free_balance_myr
        if start_free is None:
            start_free = self.config.account.initial_equity_myr
        in_positions = sum(t.entry_price * t.quantity_base for t in self.engine.snapshot_open_trades())
        free = max(0.0, start_free + self.engine.total_realized_pnl() - in_positions)
        return AccountSnapshot(
            total_equity_myr=equity,
            free_balance_myr=free,
            balances=(BalanceSnapshot(self.config.currency, free),),
        )

    def run(self, candles: Optional[Sequence[PriceCandle]] = None) -> BacktestResult:
        """Execute the backtest.

        Parameters
        ----------
        candles : sequence of PriceCandle, optional
            Candles to replay.  When omitted they are loaded from
            ``config.data.csv_path``.

        Returns
        -------
        BacktestResult
            Closed trades, equity curve and the final performance snapshot.
        """
        if candles is None:
            candles = CSVCandleLoader(self.config.data.csv_path).load()

        result = BacktestResult()
        if not candles:
            logger.warning("No candles to replay")
            return result

        result.equity_curve.append(
            EquityPoint(timestamp=candles[0].timestamp, equity=self.config.account.initial_equity_myr)
        )
        for candle in candles:
            account = self._account_snapshot()
            run = self.engine.run_once(candle, account, self.config.risk)
            result.ticks += 1
            if run.newly_opened_trade is not None:
                result.trades_opened += 1
            if run.closed_trades:
                result.equity_curve.append(
                    EquityPoint(
                        timestamp=candle.timestamp,
                        equity=self.config.account.initial_equity_myr + run.total_realized_pnl,
                    )
                )

        result.closed_trades = self.engine.snapshot_closed_trades()
        result.performance = self.engine.snapshot_performance()
        logger.info(
            "Backtest finished: %d candles, %d trades opened, %d closed, net P&L %.2f %s",
            result.ticks,
            result.trades_opened,
            result.performance.total_trades,
            result.performance.net_profit,
            self.config.currency,
        )
        return result
