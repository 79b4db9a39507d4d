# src/storage/redis_state.py
from __future__ import annotations
import json
from typing import Any, Optional

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

from twmonitor.alerts.state import MonitorState

log = structlog.get_logger("state_store")

# Stable key names shared with every invocation
KEY_CUMULATIVE_DROP = "cumulativeTwiiDrop"
KEY_LAST_BLEED_DAY = "lastProcessedDayForBleed"
KEY_NOTIFIED_TODAY = "notifiedToday"
KEY_LAST_RESET_DAY = "lastResetDay"

def redis_from_url(url: str) -> Redis:
    return Redis.from_url(url, decode_responses=True)

class StateStore:
    """
    Typed get/set/delete over a Redis keyspace. Values are JSON-encoded.

    Reads fail soft: a connection error or an undecodable value is logged and
    the caller's default is returned. Writes and deletes propagate.
    No multi-key transaction is used; concurrent invocations may race.
    """
    def __init__(self, redis: Redis):
        self.redis = redis

    # ---------- raw ----------

    async def get(self, key: str) -> Optional[Any]:
        try:
            raw = await self.redis.get(key)
        except RedisError as e:
            log.warning("state_read_failed", key=key, err=str(e))
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError as e:
            log.warning("state_decode_failed", key=key, err=str(e))
            return None

    async def set(self, key: str, value: Any) -> None:
        await self.redis.set(key, json.dumps(value))

    async def delete(self, key: str) -> None:
        await self.redis.delete(key)

    # ---------- typed ----------

    async def get_float(self, key: str, default: float = 0.0) -> float:
        v = await self.get(key)
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            return default
        return float(v)

    async def get_str(self, key: str, default: str = "") -> str:
        v = await self.get(key)
        return v if isinstance(v, str) else default

    async def get_str_set(self, key: str) -> set[str]:
        v = await self.get(key)
        if not isinstance(v, list):
            return set()
        return {x for x in v if isinstance(x, str)}

    # ---------- monitor state ----------

    async def load_state(self) -> MonitorState:
        return MonitorState(
            cumulative_drop=await self.get_float(KEY_CUMULATIVE_DROP),
            last_processed_day_for_bleed=await self.get_str(KEY_LAST_BLEED_DAY),
            notified_today=await self.get_str_set(KEY_NOTIFIED_TODAY),
            last_reset_day=await self.get_str(KEY_LAST_RESET_DAY),
        )

    async def save_bleed(self, state: MonitorState) -> None:
        await self.set(KEY_CUMULATIVE_DROP, state.cumulative_drop)
        await self.set(KEY_LAST_BLEED_DAY, state.last_processed_day_for_bleed)

    async def save_evaluation(self, state: MonitorState) -> None:
        await self.set(KEY_CUMULATIVE_DROP, state.cumulative_drop)
        await self.set(KEY_NOTIFIED_TODAY, sorted(state.notified_today))

    async def reset_dedup(self, today: str) -> None:
        await self.delete(KEY_NOTIFIED_TODAY)
        await self.set(KEY_LAST_RESET_DAY, today)
