import pytest

from solargain.geo.rate_limit import SlidingWindowRateLimiter


class FakeTime:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


def test_budget_refills_as_window_slides():
    clock = FakeTime()
    limiter = SlidingWindowRateLimiter(max_requests=3, window_s=60, time_fn=clock)
    assert [limiter.try_acquire() for _ in range(4)] == [True, True, True, False]
    assert limiter.remaining() == 0

    clock.now = 59.9
    assert limiter.try_acquire() is False
    clock.now = 60.0
    assert limiter.remaining() == 3
    assert limiter.try_acquire() is True


def test_no_more_than_max_in_any_window():
    clock = FakeTime()
    limiter = SlidingWindowRateLimiter(max_requests=10, window_s=60, time_fn=clock)
    granted = []
    for step in range(240):
        clock.now = step * 0.5
        if limiter.try_acquire():
            granted.append(clock.now)
    for start in granted:
        assert sum(1 for t in granted if start <= t < start + 60) <= 10


@pytest.mark.parametrize("kwargs", [{"max_requests": 0}, {"window_s": 0}])
def test_invalid_configuration(kwargs):
    with pytest.raises(ValueError):
        SlidingWindowRateLimiter(**kwargs)
