from __future__ import annotations

from typing import Sequence

from twmonitor.alerts.rules import AlertRules
from twmonitor.utils.types import Alert, AlertCondition, InstrumentSnapshot

BATCH_HEADER = "===== Market Monitor Alert ====="

def format_alert_message(
    condition: AlertCondition,
    snap: InstrumentSnapshot,
    value: float,
    rules: AlertRules,
) -> str:
    """Human text for one triggered condition; `value` is the figure that tripped it."""
    if condition is AlertCondition.PANIC_SELL:
        return (f"{snap.name} fell more than {rules.panic_drop_points:.0f} points intraday. "
                f"Current drop: {value:.2f}")
    if condition is AlertCondition.CHRONIC_BLEED:
        return (f"{snap.name} cumulative decline exceeded {rules.bleed_points:.0f} points. "
                f"Running total: {value:.2f} points")
    if condition is AlertCondition.FUND_OVERSOLD:
        return f"{snap.name} ({snap.symbol}) entered oversold territory. RSI: {value:.2f}"
    if condition is AlertCondition.FUND_DEVIATION:
        return (f"{snap.name} ({snap.symbol}) is more than {abs(rules.deviation_pct):.0f}% below "
                f"its {rules.sma_period}-day average. Bias: {value:.2f}%")
    raise ValueError(f"Unsupported condition: {condition}")

def format_alert_line(alert: Alert) -> str:
    return f"[{alert.condition.tag}] {alert.message}"

def format_batch(alerts: Sequence[Alert]) -> str:
    lines = [BATCH_HEADER]
    lines.extend(format_alert_line(a) for a in alerts)
    return "\n".join(lines)

def format_failure(err: BaseException) -> str:
    return f"Monitor run failed: {type(err).__name__}: {err}"
