"""
Candle, account and trade models.

These dataclasses represent the objects passed between the strategy,
the risk manager and the paper trading engine.  Keeping them in a
separate module improves readability and makes unit testing easier.

Inputs (candles, account snapshots) and closed-trade records are
frozen.  `SimulatedTrade` is the only mutable entity and is owned by
the paper engine; everything handed out to callers is a copy.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional, Tuple


class TradeDirection(str, Enum):
    LONG = "LONG"
    SHORT = "SHORT"  # modelled, never proposed by the strategy


class TradeStatus(str, Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"


class CloseReason(str, Enum):
    STOP_LOSS = "STOP_LOSS"
    TAKE_PROFIT = "TAKE_PROFIT"


@dataclass(frozen=True)
class PriceCandle:
    """One OHLCV bar.  `timestamp` is epoch milliseconds."""
    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0

    @property
    def body(self) -> float:
        return abs(self.close - self.open)


@dataclass(frozen=True)
class BalanceSnapshot:
    """Balance of a single asset."""
    asset: str
    amount: float


@dataclass(frozen=True)
class AccountSnapshot:
    """Account state supplied by the caller on every tick."""
    total_equity_myr: float
    free_balance_myr: float
    balances: Tuple[BalanceSnapshot, ...] = field(default_factory=tuple)


@dataclass
class SimulatedTrade:
    """A paper position.  Mutated only by the paper engine."""
    id: int
    pair: str
    direction: TradeDirection
    entry_price: float
    stop_loss_price: float
    take_profit_price: float
    quantity_base: float
    risk_amount: float
    opened_at: int
    status: TradeStatus = TradeStatus.OPEN

    def copy(self) -> SimulatedTrade:
        return replace(self)

    def pnl_at(self, price: float) -> float:
        """Realized P&L if the trade were closed at `price`."""
        if self.direction == TradeDirection.SHORT:
            return (self.entry_price - price) * self.quantity_base
        return (price - self.entry_price) * self.quantity_base


@dataclass(frozen=True)
class ClosedTrade:
    """Immutable record appended to the ledger when a trade closes."""
    trade: SimulatedTrade
    close_price: float
    closed_at: int
    pnl: float
    reason: CloseReason

    @property
    def r_multiple(self) -> Optional[float]:
        """P&L expressed in units of the amount risked at open."""
        if self.trade.risk_amount <= 0:
            return None
        return self.pnl / self.trade.risk_amount

    def copy(self) -> ClosedTrade:
        # The nested trade is mutable, so hand out a fresh one.
        return replace(self, trade=self.trade.copy())


@dataclass(frozen=True)
class PaperUpdateResult:
    """Outcome of running exits against one candle."""
    closed_trades: List[ClosedTrade]
    open_trades: List[SimulatedTrade]
    total_realized_pnl: float


@dataclass(frozen=True)
class EquityPoint:
    """Account equity at a given time."""
    timestamp: int
    equity: float
