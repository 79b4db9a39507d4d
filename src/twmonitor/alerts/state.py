from __future__ import annotations
from dataclasses import dataclass, field

@dataclass(slots=True)
class MonitorState:
    """
    Cross-invocation state, loaded from the store at the start of a run and
    written back by the caller. Nothing here survives in memory between runs.
    """
    cumulative_drop: float = 0.0                 # benchmark only: sum of consecutive red-day losses
    last_processed_day_for_bleed: str = ""       # guard for the once-daily accumulation step
    notified_today: set[str] = field(default_factory=set)   # "symbol|condition" keys
    last_reset_day: str = ""                     # guard for the once-daily dedup clear
