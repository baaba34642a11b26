"""
Run coordinator.

`StrategyEngine` is called once per tick with a freshly closed candle,
the current account snapshot and the risk configuration.  It resolves
exits on the open trades first, then appends the candle to its rolling
history, asks the EMA crossover strategy for a decision and, if the
strategy wants a long, asks the paper engine to open it.  The returned
`StrategyRunResult` is everything a display or notification layer
needs; its `human_signal` text is meant for people, not for parsing.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Deque, List, Optional
import logging

from ..config.schema import RiskConfig
from ..execution.models import AccountSnapshot, ClosedTrade, PaperUpdateResult, PriceCandle, SimulatedTrade
from ..execution.paper_engine import OpenOutcome, PaperTradingEngine
from ..reporting.metrics import PerformanceSnapshot
from .ema_crossover import EmaCrossoverStrategy, MIN_HISTORY


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StrategyRunResult:
    """Result of one tick."""
    decision_label: str
    human_signal: str
    open_trades: List[SimulatedTrade]
    newly_opened_trade: Optional[SimulatedTrade] = None
    closed_trades: List[ClosedTrade] = field(default_factory=list)
    total_realized_pnl: float = 0.0


def _fmt(value: float) -> str:
    return f"{value:,.2f}"


class StrategyEngine:
    """Wire candle history, the entry strategy and the paper engine together."""

    def __init__(
        self,
        strategy: Optional[EmaCrossoverStrategy] = None,
        paper_engine: Optional[PaperTradingEngine] = None,
        pair: str = "XBTMYR",
        currency: str = "MYR",
        history_limit: int = 500,
    ) -> None:
        self.strategy = strategy if strategy is not None else EmaCrossoverStrategy()
        self.paper_engine = paper_engine if paper_engine is not None else PaperTradingEngine()
        self.pair = pair
        self.currency = currency
        self._history: Deque[PriceCandle] = deque(maxlen=max(history_limit, MIN_HISTORY))

    @property
    def history(self) -> List[PriceCandle]:
        return list(self._history)

    def run_once(
        self,
        candle: PriceCandle,
        account: AccountSnapshot,
        risk_config: RiskConfig,
    ) -> StrategyRunResult:
        """Process one candle: exits, then the entry decision."""
        update = self.paper_engine.update_open_trades(candle, risk_config)

        self._history.append(candle)
        decision = self.strategy.decide(self._history)

        outcome: Optional[OpenOutcome] = None
        label = decision.label
        if decision.should_open_long:
            outcome = self.paper_engine.attempt_open_long(self.pair, candle, account, risk_config)
            if outcome.opened:
                label += " | NEW LONG opened."
            else:
                label += f" | New LONG blocked: {outcome.reason}"
        else:
            label += " | No new entries."
        logger.debug("Tick %d: %s", candle.timestamp, label)

        new_trade = outcome.trade if outcome is not None else None
        open_trades = self.paper_engine.snapshot_open_trades()
        human = self._build_human_signal(candle, label, update, new_trade, open_trades)

        return StrategyRunResult(
            decision_label=label,
            human_signal=human,
            open_trades=open_trades,
            newly_opened_trade=new_trade,
            closed_trades=update.closed_trades,
            total_realized_pnl=self.paper_engine.total_realized_pnl(),
        )

    def snapshot_open_trades(self) -> List[SimulatedTrade]:
        return self.paper_engine.snapshot_open_trades()

    def snapshot_closed_trades(self, limit: Optional[int] = None) -> List[ClosedTrade]:
        return self.paper_engine.snapshot_closed_trades(limit)

    def snapshot_performance(self) -> PerformanceSnapshot:
        return self.paper_engine.snapshot_performance()

    def total_realized_pnl(self) -> float:
        return self.paper_engine.total_realized_pnl()

    def reset_session(self) -> None:
        """Clear candle history and the paper session.  Daily risk counters survive."""
        self._history.clear()
        self.paper_engine.reset_session()

    def _build_human_signal(
        self,
        candle: PriceCandle,
        label: str,
        update: PaperUpdateResult,
        new_trade: Optional[SimulatedTrade],
        open_trades: List[SimulatedTrade],
    ) -> str:
        lines = [
            f"Candle @ {candle.timestamp} | O={_fmt(candle.open)}, H={_fmt(candle.high)}, "
            f"L={_fmt(candle.low)}, C={_fmt(candle.close)}.",
            label,
        ]
        if update.closed_trades:
            lines.append(f"Closed trades this run: {len(update.closed_trades)}.")
            for closed in update.closed_trades:
                lines.append(
                    f" - {closed.trade.pair} {closed.reason.value} @ {_fmt(closed.close_price)} | "
                    f"PnL: {_fmt(closed.pnl)} {self.currency}."
                )
        if new_trade is not None:
            lines.append(
                f"Opened new LONG {new_trade.pair} @ {_fmt(new_trade.entry_price)} | "
                f"SL={_fmt(new_trade.stop_loss_price)}, TP={_fmt(new_trade.take_profit_price)}, "
                f"Risk~{_fmt(new_trade.risk_amount)} {self.currency}."
            )
        perf = self.paper_engine.snapshot_performance()
        lines.append(
            f"Open simulated trades: {len(open_trades)}. "
            f"Total realized P&L (paper): {_fmt(self.paper_engine.total_realized_pnl())} {self.currency}. "
            f"Closed trades: {perf.total_trades}, Win rate: {_fmt(perf.win_rate_percent)}%."
        )
        return "\n".join(lines)
