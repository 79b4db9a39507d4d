# src/twmonitor/alerts/rules.py
from __future__ import annotations
from dataclasses import dataclass

@dataclass(slots=True, frozen=True)
class AlertRules:
    """
    Thresholds for the four daily conditions.
    - panic_drop_points: A fires when open - price > this (index points, not percent)
    - bleed_points:      B fires when cumulative + intraday drop > this
    - rsi_oversold:      C fires when RSI(rsi_period) < this
    - deviation_pct:     D fires when bias vs SMA(sma_period) < this (percent)
    """
    panic_drop_points: float = 200.0
    bleed_points: float = 300.0
    min_bleed_history: int = 2
    rsi_period: int = 14
    rsi_oversold: float = 30.0
    sma_period: int = 20
    deviation_pct: float = -5.0
