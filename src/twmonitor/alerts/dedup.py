from __future__ import annotations

from twmonitor.utils.types import AlertCondition, dedupe_key

class DailyDeduper:
    """
    Same-day dedupe over the persisted notified set. No TTL: the set is
    cleared once per day by the day-boundary gate, not by expiry here.
    Mutates the set it is given.
    """
    def __init__(self, notified: set[str]):
        self._seen = notified

    @staticmethod
    def key(symbol: str, condition: AlertCondition) -> str:
        return dedupe_key(symbol, condition)

    def seen(self, key: str) -> bool:
        return key in self._seen

    def mark(self, key: str) -> None:
        self._seen.add(key)
