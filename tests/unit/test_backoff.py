import pytest

from twmonitor.utils.backoff import retry_schedule, spread

def test_schedule_has_one_delay_per_retry():
    assert retry_schedule(0.25, 4.0, 3) == [0.25, 0.5, 1.0]
    assert retry_schedule(0.25, 4.0, 0) == []
    assert retry_schedule(0.25, 4.0, -1) == []

def test_initial_above_cap_is_clamped():
    assert retry_schedule(10.0, 4.0, 2) == [4.0, 4.0]

def test_negative_delays_rejected():
    with pytest.raises(ValueError):
        retry_schedule(-1.0, 4.0, 2)

def test_spread_stays_within_ratio():
    assert spread(2.0, rand=lambda: 0.0) == pytest.approx(1.6)
    assert spread(2.0, rand=lambda: 1.0) == pytest.approx(2.4)
    assert spread(2.0, ratio=0.0, rand=lambda: 0.7) == pytest.approx(2.0)
