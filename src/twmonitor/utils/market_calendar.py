from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time as dtime, timedelta
from typing import Literal, Optional
from zoneinfo import ZoneInfo

from twmonitor.utils.time import utc_now

TPE = ZoneInfo("Asia/Taipei")

# TWSE regular session, close minute inclusive
SESSION_OPEN = dtime(9, 0)
SESSION_CLOSE = dtime(13, 30)


def to_local(now: Optional[datetime] = None) -> datetime:
    """Venue-local (Asia/Taipei) view of an aware datetime; defaults to now."""
    now = now or utc_now()
    if now.tzinfo is None:
        raise ValueError("datetime must be timezone-aware")
    return now.astimezone(TPE)


def trading_date(now: Optional[datetime] = None) -> str:
    """ISO date (YYYY-MM-DD) of the venue-local calendar day."""
    return to_local(now).date().isoformat()


def _minute_of_day(t: dtime) -> int:
    return t.hour * 60 + t.minute


def is_trading_hours(now: Optional[datetime] = None) -> bool:
    """
    True on weekdays between 09:00 and 13:30 Taipei time (both inclusive,
    minute resolution). Holidays are not modelled.
    """
    local = to_local(now)
    if local.weekday() >= 5:
        return False
    m = _minute_of_day(local.time())
    return _minute_of_day(SESSION_OPEN) <= m <= _minute_of_day(SESSION_CLOSE)


# -------- session state & next transition (useful for logs) ------ #

@dataclass(frozen=True)
class SessionState:
    phase: Literal["closed", "premarket", "regular"]
    seconds_to_next: Optional[int]  # None if unknown


def _next_weekday_open(local: datetime) -> datetime:
    d = local.date() + timedelta(days=1)
    while d.weekday() >= 5:
        d += timedelta(days=1)
    return datetime.combine(d, SESSION_OPEN, tzinfo=TPE)


def session_state(now: Optional[datetime] = None) -> SessionState:
    local = to_local(now)
    if is_trading_hours(local):
        close_at = datetime.combine(local.date(), SESSION_CLOSE, tzinfo=TPE) + timedelta(minutes=1)
        return SessionState("regular", max(0, int((close_at - local).total_seconds())))
    if local.weekday() < 5 and local.time() < SESSION_OPEN:
        open_at = datetime.combine(local.date(), SESSION_OPEN, tzinfo=TPE)
        return SessionState("premarket", max(0, int((open_at - local).total_seconds())))
    nxt = _next_weekday_open(local)
    return SessionState("closed", max(0, int((nxt - local).total_seconds())))
