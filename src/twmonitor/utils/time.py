from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Timezone-aware UTC now; callers convert to Asia/Taipei themselves."""
    return datetime.now(tz=timezone.utc)
