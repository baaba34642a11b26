"""
Performance metrics calculations.

`compute_performance` derives the session `PerformanceSnapshot` from
the closed-trade ledger; the paper engine calls it on demand and the
result depends on nothing else.  `compute_metrics` adds equity-curve
based figures (total return, percentage drawdown, Sharpe) for the
backtest summary.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import List, Optional, Sequence
import math

from ..execution.models import ClosedTrade, EquityPoint


@dataclass(frozen=True)
class PerformanceSnapshot:
    """Statistics over all closed trades of a session.

    Attributes
    ----------
    total_trades : int
        Number of closed trades.
    winning_trades, losing_trades, breakeven_trades : int
        Trades with positive, negative and exactly zero P&L.
    win_rate_percent : float
        Winning trades as a percentage of all closed trades.
    gross_profit : float
        Sum of positive P&L.
    gross_loss : float
        Sum of negative P&L, reported as a positive number.
    net_profit : float
        Sum of all P&L.
    max_drawdown : float
        Largest peak-to-trough decline of the cumulative realized P&L,
        starting from zero, in currency.
    average_r_multiple : float or None
        Mean of P&L / risk amount over trades that had a risk amount.
    """

    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    breakeven_trades: int = 0
    win_rate_percent: float = 0.0
    gross_profit: float = 0.0
    gross_loss: float = 0.0
    net_profit: float = 0.0
    max_drawdown: float = 0.0
    average_r_multiple: Optional[float] = None

    def to_dict(self) -> dict:
        return asdict(self)


def max_drawdown(pnls: Sequence[float]) -> float:
    """Peak-to-trough decline of the cumulative sum of `pnls`, from zero."""
    peak = 0.0
    equity = 0.0
    worst = 0.0
    for pnl in pnls:
        equity += pnl
        if equity > peak:
            peak = equity
        if peak - equity > worst:
            worst = peak - equity
    return worst


def compute_performance(closed_trades: Sequence[ClosedTrade]) -> PerformanceSnapshot:
    """Build a `PerformanceSnapshot` from closed trades in closing order."""
    if not closed_trades:
        return PerformanceSnapshot()

    pnls = [ct.pnl for ct in closed_trades]
    wins = [p for p in pnls if p > 0]
    losses = [p for p in pnls if p < 0]
    total = len(pnls)
    r_values = [ct.r_multiple for ct in closed_trades if ct.r_multiple is not None]

    return PerformanceSnapshot(
        total_trades=total,
        winning_trades=len(wins),
        losing_trades=len(losses),
        breakeven_trades=total - len(wins) - len(losses),
        win_rate_percent=len(wins) / total * 100.0,
        gross_profit=sum(wins),
        gross_loss=-sum(losses),
        net_profit=sum(pnls),
        max_drawdown=max_drawdown(pnls),
        average_r_multiple=sum(r_values) / len(r_values) if r_values else None,
    )


def compute_metrics(closed_trades: Sequence[ClosedTrade], equity_curve: List[EquityPoint]) -> dict:
    """Compute the summary statistics written by the backtest report.

    Parameters
    ----------
    closed_trades : sequence of ClosedTrade
        Completed trades in closing order.
    equity_curve : list of EquityPoint
        Account equity, starting with the initial equity.

    Returns
    -------
    dict
        The performance snapshot fields plus ``total_return``,
        ``max_drawdown_pct``, ``sharpe`` and ``profit_factor``.
    """
    perf = compute_performance(closed_trades)
    metrics = perf.to_dict()

    if equity_curve:
        starting_equity = equity_curve[0].equity
        ending_equity = equity_curve[-1].equity
        total_return = (ending_equity - starting_equity) / starting_equity if starting_equity else 0.0
        max_equity = starting_equity
        max_dd_pct = 0.0
        for point in equity_curve:
            if point.equity > max_equity:
                max_equity = point.equity
            drawdown = (max_equity - point.equity) / max_equity if max_equity else 0.0
            if drawdown > max_dd_pct:
                max_dd_pct = drawdown
    else:
        total_return = 0.0
        max_dd_pct = 0.0

    # Sharpe on per-trade returns relative to notional
    returns: List[float] = []
    for ct in closed_trades:
        notional = ct.trade.entry_price * ct.trade.quantity_base
        if notional != 0:
            returns.append(ct.pnl / notional)
    if returns:
        mean_ret = sum(returns) / len(returns)
        variance = sum((r - mean_ret) ** 2 for r in returns) / len(returns)
        std_dev = math.sqrt(variance)
        sharpe = (mean_ret / std_dev) * math.sqrt(len(returns)) if std_dev > 0 else 0.0
    else:
        sharpe = 0.0

    metrics.update({
        'total_return': total_return,
        'max_drawdown_pct': max_dd_pct,
        'sharpe': sharpe,
        'profit_factor': perf.gross_profit / perf.gross_loss if perf.gross_loss > 0 else 0.0,
    })
    return metrics
