"""
Periodic paper trading loop.

`PaperLoop` pulls one candle per interval from a candle source (the
random-walk feed by default), builds the account snapshot from the
configured starting equity plus realized P&L and runs the strategy
engine on it.  State lives in memory only; stopping the loop ends the
session.

The core is single-writer, so every tick goes through a non-blocking
lock.  A tick that arrives while another is still running (for
example a manual trigger overlapping the timer) is skipped instead of
entering the engine twice.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Iterator, Optional

from ..config.schema import Config
from ..data.synthetic import RandomWalkFeed
from ..execution.models import AccountSnapshot, BalanceSnapshot, PriceCandle
from ..strategy.engine import StrategyEngine, StrategyRunResult


logger = logging.getLogger(__name__)


class PaperLoop:
    """Drive a `StrategyEngine` from a candle source on a fixed interval."""

    def __init__(
        self,
        config: Config,
        engine: Optional[StrategyEngine] = None,
        feed: Optional[Iterator[PriceCandle]] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self.engine = engine if engine is not None else StrategyEngine(
            pair=config.pair,
            currency=config.currency,
            history_limit=config.history_limit,
        )
        self.feed = feed if feed is not None else RandomWalkFeed(
            start_price=config.paper.start_price,
            volatility_pct=config.paper.volatility_pct,
            interval_ms=int(config.paper.poll_seconds * 1000),
            seed=config.paper.seed,
        )
        self._sleep = sleep
        self._lock = threading.Lock()
        self._stop = threading.Event()

    def account_snapshot(self) -> AccountSnapshot:
        equity = self.config.account.initial_equity_myr + self.engine.total_realized_pnl()
        return AccountSnapshot(
            total_equity_myr=equity,
            free_balance_myr=equity,
            balances=(BalanceSnapshot(self.config.currency, equity),),
        )

    def run_once(self, candle: Optional[PriceCandle] = None) -> Optional[StrategyRunResult]:
        """Run a single tick.

        Returns ``None`` if another tick is still being processed.
        """
        if not self._lock.acquire(blocking=False):
            logger.warning("Previous tick still running, skipping this one")
            return None
        try:
            if candle is None:
                candle = next(self.feed)
            return self.engine.run_once(candle, self.account_snapshot(), self.config.risk)
        finally:
            self._lock.release()

    def stop(self) -> None:
        self._stop.set()

    def run(self, max_ticks: Optional[int] = None) -> int:
        """Main loop.

        Runs until `stop()` is called, `max_ticks` ticks have been
        processed or the feed is exhausted.  Press Ctrl+C to stop.

        Returns
        -------
        int
            Number of ticks processed.  A tick skipped because the previous
            one was still running is not counted; a tick that raised is.
        """
        logger.info(
            "Starting paper loop on %s (poll=%ss, live_trading_enabled=%s)",
            self.config.pair,
            self.config.paper.poll_seconds,
            self.config.risk.live_trading_enabled,
        )
        ticks = 0
        try:
            while not self._stop.is_set():
                if max_ticks is not None and ticks >= max_ticks:
                    break
                skipped = False
                try:
                    result = self.run_once()
                    skipped = result is None
                except StopIteration:
                    logger.info("Candle feed exhausted")
                    break
                except Exception:
                    # A bad tick must not end the session
                    logger.exception("Tick failed")
                    result = None
                if not skipped:
                    ticks += 1
                if result is not None:
                    logger.info("%s", result.human_signal)
                if max_ticks is None or ticks < max_ticks:
                    self._sleep(self.config.paper.poll_seconds)
        except KeyboardInterrupt:
            logger.info("Shutting down paper loop...")
        finally:
            perf = self.engine.snapshot_performance()
            logger.info(
                "Paper session ended after %d ticks: %d closed trades, net P&L %.2f %s",
                ticks, perf.total_trades, perf.net_profit, self.config.currency,
            )
        return ticks
