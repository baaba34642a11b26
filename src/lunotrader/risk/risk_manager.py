"""
Risk sizing and daily trade gating.

`compute_max_risk_amount` is a pure function turning the risk
configuration and an account snapshot into the currency amount that
may be lost on one trade.  `RiskManager` keeps a small day-bounded
ledger (trades opened, realized losses) and decides whether a new
trade may be opened.  Nothing in this module raises: a refusal is a
`RiskDecision` with `can_open=False` and a reason, and an unusable
sizing input yields a risk amount of zero.

The day key is the UTC day number of the timestamp passed to each call, so
a replay of historical candles resets on candle days rather than on
the wall clock.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from typing import Optional

from ..config.schema import RiskConfig
from ..execution.models import AccountSnapshot
from ..utils.timeutils import utc_day_key


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RiskDecision:
    """Answer of the trade gate."""
    can_open: bool
    reason: Optional[str] = None


@dataclass
class DailyRiskState:
    """Counters for the current UTC day."""
    current_day_key: Optional[int] = None  # whole days since the epoch
    trades_opened_today: int = 0
    realized_loss_today: float = 0.0  # always <= 0


def compute_max_risk_amount(config: RiskConfig, account: AccountSnapshot) -> float:
    """Return the maximum amount (quote currency) risked on a single trade.

    Example: equity 10 000 with ``risk_per_trade_percent = 1`` gives 100.
    Non-finite inputs give 0, which callers treat as "cannot open".
    """
    equity = account.total_equity_myr
    pct = config.risk_per_trade_percent
    if not (math.isfinite(equity) and math.isfinite(pct)):
        return 0.0
    return max(0.0, equity) * max(0.0, pct) / 100.0


class RiskManager:
    """Stateful daily gate.  One instance per simulation session."""

    def __init__(self) -> None:
        self._state = DailyRiskState()

    @property
    def daily_state(self) -> DailyRiskState:
        """Copy of the current daily counters."""
        return replace(self._state)

    def reset_day_state(self) -> None:
        self._state = DailyRiskState()

    def _sync_day(self, now_millis: int) -> None:
        try:
            day = utc_day_key(now_millis)
        except (TypeError, ValueError, OverflowError):
            logger.warning("Unusable timestamp %r, keeping daily risk counters", now_millis)
            return
        if day != self._state.current_day_key:
            if self._state.current_day_key is not None:
                logger.debug("New UTC day %s, resetting daily risk counters", day)
            self._state = DailyRiskState(current_day_key=day)

    def can_open_new_trade(
        self,
        config: RiskConfig,
        account: AccountSnapshot,
        now_millis: int,
    ) -> RiskDecision:
        """Decide whether a new trade may be opened at `now_millis`.

        Calling this may reset the daily counters when `now_millis` falls
        on a new UTC day, even if no trade is registered afterwards.
        """
        self._sync_day(now_millis)
        state = self._state

        if not config.live_trading_enabled:
            return RiskDecision(True, "Paper mode: daily risk limits not enforced.")

        if config.max_trades_per_day > 0 and state.trades_opened_today >= config.max_trades_per_day:
            return RiskDecision(
                False,
                f"Max trades per day reached ({state.trades_opened_today}/{config.max_trades_per_day}).",
            )

        if config.daily_loss_limit_percent > 0 and state.realized_loss_today < 0:
            equity = account.total_equity_myr
            if not math.isfinite(equity):
                return RiskDecision(False, "Account equity is not a finite number.")
            loss_pct = abs(state.realized_loss_today) / max(equity, 1.0) * 100.0
            if loss_pct >= config.daily_loss_limit_percent:
                return RiskDecision(
                    False,
                    f"Daily loss limit reached ({loss_pct:.2f}% >= {config.daily_loss_limit_percent:.2f}%).",
                )

        return RiskDecision(True)

    def register_opened_trade(self, now_millis: int) -> None:
        self._sync_day(now_millis)
        self._state.trades_opened_today += 1

    def register_closed_trade(self, pnl: float, closed_at_millis: int) -> None:
        """Record a close.  Only losses count toward the daily cap."""
        self._sync_day(closed_at_millis)
        if pnl < 0:
            self._state.realized_loss_today += pnl
