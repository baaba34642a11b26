"""
Report generation utilities.

This module turns backtest results into human-readable artefacts:
CSV files of closed trades and the equity curve, a JSON summary of
performance metrics and a PNG chart of the equity curve.
"""

from __future__ import annotations

import os
import json
from typing import List, Sequence
import pandas as pd
import matplotlib

# Use non-interactive backend for environments without display
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from ..execution.models import ClosedTrade, EquityPoint
from ..utils.timeutils import millis_to_timestamp
from .metrics import compute_metrics


def trades_frame(closed_trades: Sequence[ClosedTrade]) -> pd.DataFrame:
    """One row per closed trade."""
    return pd.DataFrame(
        [
            {
                'id': ct.trade.id,
                'pair': ct.trade.pair,
                'direction': ct.trade.direction.value,
                'timestamp_entry': millis_to_timestamp(ct.trade.opened_at).isoformat(),
                'timestamp_exit': millis_to_timestamp(ct.closed_at).isoformat(),
                'quantity': ct.trade.quantity_base,
                'entry': ct.trade.entry_price,
                'stop_loss': ct.trade.stop_loss_price,
                'take_profit': ct.trade.take_profit_price,
                'exit': ct.close_price,
                'risk_amount': ct.trade.risk_amount,
                'pnl': ct.pnl,
                'r_multiple': ct.r_multiple,
                'reason': ct.reason.value,
            }
            for ct in closed_trades
        ]
    )


def generate_backtest_report(
    closed_trades: Sequence[ClosedTrade],
    equity_curve: List[EquityPoint],
    out_dir: str = "results",
) -> dict:
    """Generate report files for a backtest run.

    Creates the output directory if it does not exist and writes the
    following files:

    - `trades.csv` – closed trades
    - `equity_curve.csv` – account equity after each closing tick
    - `summary.json` – performance metrics
    - `equity_curve.png` – line chart of the equity curve

    Returns the metrics written to `summary.json`.
    """
    os.makedirs(out_dir, exist_ok=True)

    trades_frame(closed_trades).to_csv(os.path.join(out_dir, 'trades.csv'), index=False)

    df_eq = pd.DataFrame(
        [
            {
                'timestamp': millis_to_timestamp(pt.timestamp).isoformat(),
                'equity': pt.equity,
            }
            for pt in equity_curve
        ]
    )
    df_eq.to_csv(os.path.join(out_dir, 'equity_curve.csv'), index=False)

    metrics = compute_metrics(closed_trades, equity_curve)
    with open(os.path.join(out_dir, 'summary.json'), 'w', encoding='utf-8') as fh:
        json.dump(metrics, fh, indent=2, ensure_ascii=False)

    fig, ax = plt.subplots(figsize=(10, 4))
    if not df_eq.empty:
        ax.plot(pd.to_datetime(df_eq['timestamp']), df_eq['equity'], linewidth=1.5)
        ax.set_title('Equity Curve (paper)')
        ax.set_xlabel('Time')
        ax.set_ylabel('Equity')
        fig.autofmt_xdate()
    fig.tight_layout()
    fig.savefig(os.path.join(out_dir, 'equity_curve.png'))
    plt.close(fig)

    return metrics
