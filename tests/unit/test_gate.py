import json

import pytest

from storage.redis_state import KEY_LAST_RESET_DAY, KEY_NOTIFIED_TODAY, StateStore
from twmonitor.alerts.gate import DayBoundaryGate

from tests.helpers.fake_redis import FakeRedis
from tests.helpers.fakes import AFTER_CLOSE, IN_SESSION, NEXT_DAY_IDLE


@pytest.mark.asyncio
async def test_idle_clears_dedup_once_per_day():
    r = FakeRedis({KEY_NOTIFIED_TODAY: json.dumps(["^TWII|PANIC_SELL"]),
                   KEY_LAST_RESET_DAY: json.dumps("2025-03-04")})
    gate = DayBoundaryGate(StateStore(r))

    assert await gate.check(AFTER_CLOSE) is False
    assert KEY_NOTIFIED_TODAY not in r.data
    assert json.loads(r.data[KEY_LAST_RESET_DAY]) == "2025-03-05"
    assert len(r.mutations) == 2

    # someone alerts later the same day; a second idle run must not wipe it
    r.data[KEY_NOTIFIED_TODAY] = json.dumps(["0050.TW|FUND_OVERSOLD"])
    assert await gate.check(AFTER_CLOSE) is False
    assert len(r.mutations) == 2
    assert KEY_NOTIFIED_TODAY in r.data

@pytest.mark.asyncio
async def test_idle_on_next_day_resets_again():
    r = FakeRedis({KEY_LAST_RESET_DAY: json.dumps("2025-03-05")})
    gate = DayBoundaryGate(StateStore(r))
    assert await gate.check(AFTER_CLOSE) is False
    assert r.mutations == []
    assert await gate.check(NEXT_DAY_IDLE) is False
    assert json.loads(r.data[KEY_LAST_RESET_DAY]) == "2025-03-06"

@pytest.mark.asyncio
async def test_in_session_never_resets():
    r = FakeRedis({KEY_NOTIFIED_TODAY: json.dumps(["x|Y"])})
    gate = DayBoundaryGate(StateStore(r))
    assert await gate.check(IN_SESSION) is True
    assert r.mutations == []
    assert r.reads == []

@pytest.mark.asyncio
async def test_custom_session_predicate():
    r = FakeRedis()
    gate = DayBoundaryGate(StateStore(r), is_open=lambda now: False)
    assert await gate.check(IN_SESSION) is False
    assert json.loads(r.data[KEY_LAST_RESET_DAY]) == "2025-03-05"
