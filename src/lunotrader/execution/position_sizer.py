"""
Position sizing.

Converts a currency risk amount into a base-asset quantity so that a
move from entry to stop loses exactly that amount.
"""

from __future__ import annotations

import math


def compute_position_size(risk_amount: float, entry_price: float, stop_loss_price: float) -> float:
    """Return ``risk_amount / |entry_price - stop_loss_price|``.

    Returns ``0.0`` when the stop distance is not positive or the result
    is not a finite positive number.  Callers treat ``0.0`` as "no trade".
    """
    distance = abs(entry_price - stop_loss_price)
    if not distance > 0:
        return 0.0
    size = risk_amount / distance
    if not math.isfinite(size) or size <= 0:
        return 0.0
    return size
