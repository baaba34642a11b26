"""
Paper trading engine.

`PaperTradingEngine` owns the simulated positions of a session: it
opens long trades sized by the risk manager, closes them when a candle
touches the stop-loss or take-profit level, keeps the closed-trade
ledger and the running realized P&L.  It never touches a real account.

The engine has no internal locking.  All mutating calls must come from
a single caller, one at a time.  Snapshot methods return copies that
later ticks cannot change.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from ..config.schema import RiskConfig
from ..reporting.metrics import PerformanceSnapshot, compute_performance
from ..risk.risk_manager import RiskManager, compute_max_risk_amount
from .models import (
    AccountSnapshot,
    ClosedTrade,
    CloseReason,
    PaperUpdateResult,
    PriceCandle,
    SimulatedTrade,
    TradeDirection,
    TradeStatus,
)
from .position_sizer import compute_position_size


logger = logging.getLogger(__name__)

# Fixed 0.5 % stop and 1 % target (2R)
STOP_LOSS_PCT = 0.005
TAKE_PROFIT_PCT = 0.01


class OpenStatus(str, Enum):
    OPENED = "OPENED"
    DECLINED = "DECLINED"
    INVALID_INPUT = "INVALID_INPUT"


@dataclass(frozen=True)
class OpenOutcome:
    """Result of an attempt to open a trade.

    `trade` is set only when `status` is ``OPENED``.  A ``DECLINED``
    outcome is the normal "no trade" answer (risk gate, zero budget,
    sizing); ``INVALID_INPUT`` means the candle or account was unusable.
    """
    status: OpenStatus
    trade: Optional[SimulatedTrade] = None
    reason: Optional[str] = None

    @property
    def opened(self) -> bool:
        return self.status == OpenStatus.OPENED


def _is_finite_candle(candle: PriceCandle) -> bool:
    return all(math.isfinite(v) for v in (candle.open, candle.high, candle.low, candle.close))


class PaperTradingEngine:
    """Lifecycle of simulated trades and the closed-trade ledger."""

    def __init__(self, risk_manager: Optional[RiskManager] = None) -> None:
        self.risk_manager = risk_manager if risk_manager is not None else RiskManager()
        self._open_trades: List[SimulatedTrade] = []
        self._closed_history: List[ClosedTrade] = []
        self._total_realized_pnl = 0.0
        self._next_trade_id = 1

    def attempt_open_long(
        self,
        pair: str,
        candle: PriceCandle,
        account: AccountSnapshot,
        risk_config: RiskConfig,
    ) -> OpenOutcome:
        """Try to open a long at the candle close.

        Steps: equity sanity, risk gate, risk budget, entry sanity, fixed
        stop/target, sizing.  Only a fully successful attempt mutates the
        open set and the risk manager's daily counters.
        """
        now = candle.timestamp
        equity = account.total_equity_myr

        if not math.isfinite(equity) or equity < 0:
            logger.warning("Refusing to open %s: account equity is %s", pair, equity)
            return OpenOutcome(OpenStatus.INVALID_INPUT, reason=f"Invalid account equity {equity}.")

        decision = self.risk_manager.can_open_new_trade(risk_config, account, now)
        if not decision.can_open:
            logger.debug("Long on %s declined by risk gate: %s", pair, decision.reason)
            return OpenOutcome(OpenStatus.DECLINED, reason=decision.reason)

        risk_amount = compute_max_risk_amount(risk_config, account)
        if risk_amount <= 0:
            logger.debug("Long on %s declined: no risk budget", pair)
            return OpenOutcome(OpenStatus.DECLINED, reason="Risk budget is zero.")

        entry = candle.close
        if not _is_finite_candle(candle) or entry <= 0:
            logger.warning("Refusing to open %s on invalid candle %s", pair, candle)
            return OpenOutcome(OpenStatus.INVALID_INPUT, reason=f"Invalid entry price {entry}.")

        stop_loss = entry * (1.0 - STOP_LOSS_PCT)
        take_profit = entry * (1.0 + TAKE_PROFIT_PCT)
        if not stop_loss < entry < take_profit:
            return OpenOutcome(OpenStatus.INVALID_INPUT, reason="Stop/target ordering is invalid.")

        quantity = compute_position_size(risk_amount, entry, stop_loss)
        if quantity <= 0:
            logger.debug("Long on %s declined: position size is zero", pair)
            return OpenOutcome(OpenStatus.DECLINED, reason="Position size is zero.")

        trade = SimulatedTrade(
            id=self._next_trade_id,
            pair=pair,
            direction=TradeDirection.LONG,
            entry_price=entry,
            stop_loss_price=stop_loss,
            take_profit_price=take_profit,
            quantity_base=quantity,
            risk_amount=risk_amount,
            opened_at=now,
        )
        self.risk_manager.register_opened_trade(now)
        self._next_trade_id += 1
        self._open_trades.append(trade)
        logger.info(
            "Opened LONG #%d %s qty=%.8f @ %.2f (SL=%.2f, TP=%.2f, risk=%.2f)",
            trade.id, pair, quantity, entry, stop_loss, take_profit, risk_amount,
        )
        return OpenOutcome(OpenStatus.OPENED, trade=trade.copy())

    def try_open_long(
        self,
        pair: str,
        candle: PriceCandle,
        account: AccountSnapshot,
        risk_config: RiskConfig,
    ) -> Optional[SimulatedTrade]:
        """Open a long and return a copy of it, or ``None`` if no trade was opened."""
        return self.attempt_open_long(pair, candle, account, risk_config).trade

    def update_open_trades(
        self,
        candle: PriceCandle,
        risk_config: Optional[RiskConfig] = None,
    ) -> PaperUpdateResult:
        """Close every open trade whose stop or target lies within the candle range.

        A candle that spans both levels closes the trade at the stop.
        `risk_config` is accepted so callers can pass the tick's inputs
        uniformly; exits do not depend on it.

        Each close is registered with the risk manager before the trade
        leaves the open set, so if registration raises, that trade and
        the ledger stay exactly as they were.
        """
        closed_now: List[ClosedTrade] = []

        for trade in list(self._open_trades):
            if trade.direction == TradeDirection.LONG:
                hit_stop = candle.low <= trade.stop_loss_price
                hit_target = candle.high >= trade.take_profit_price
            else:
                hit_stop = candle.high >= trade.stop_loss_price
                hit_target = candle.low <= trade.take_profit_price

            if not hit_stop and not hit_target:
                continue

            if hit_stop:
                reason = CloseReason.STOP_LOSS
                close_price = trade.stop_loss_price
            else:
                reason = CloseReason.TAKE_PROFIT
                close_price = trade.take_profit_price

            pnl = trade.pnl_at(close_price)
            self.risk_manager.register_closed_trade(pnl, candle.timestamp)

            self._open_trades.remove(trade)
            self._total_realized_pnl += pnl
            trade.status = TradeStatus.CLOSED
            closed = ClosedTrade(
                trade=trade.copy(),
                close_price=close_price,
                closed_at=candle.timestamp,
                pnl=pnl,
                reason=reason,
            )
            closed_now.append(closed)
            self._closed_history.append(closed)
            logger.info(
                "Closed %s #%d %s at %.2f due to %s, pnl=%.2f",
                trade.direction.value, trade.id, trade.pair, close_price, reason.value, pnl,
            )

        return PaperUpdateResult(
            closed_trades=[ct.copy() for ct in closed_now],
            open_trades=self.snapshot_open_trades(),
            total_realized_pnl=self._total_realized_pnl,
        )

    def snapshot_open_trades(self) -> List[SimulatedTrade]:
        return [t.copy() for t in self._open_trades]

    def snapshot_closed_trades(self, limit: Optional[int] = None) -> List[ClosedTrade]:
        """Closed trades in closing order.

        With a positive `limit` smaller than the ledger, only the most
        recent `limit` trades are returned.
        """
        history = self._closed_history
        if limit is not None and 0 < limit < len(history):
            history = history[-limit:]
        return [ct.copy() for ct in history]

    def snapshot_performance(self) -> PerformanceSnapshot:
        return compute_performance(self._closed_history)

    def total_realized_pnl(self) -> float:
        return self._total_realized_pnl

    def reset_session(self) -> None:
        """Forget all trades and restart ids at 1.

        The risk manager's daily counters are left untouched.
        """
        self._open_trades = []
        self._closed_history = []
        self._total_realized_pnl = 0.0
        self._next_trade_id = 1
        logger.info("Paper session reset")
