from insider_lens.cache import TTLCache
from insider_lens.util.throttle import RateLimiter


def test_first_call_never_waits(clock):
    limiter = RateLimiter(1.0, clock=clock, sleep=clock.sleep)

    assert limiter.wait() == 0.0
    assert clock.sleeps == []


def test_back_to_back_calls_are_spaced(clock):
    limiter = RateLimiter(1.0, clock=clock, sleep=clock.sleep)

    limiter.wait()
    clock.advance(0.25)
    slept = limiter.wait()

    assert slept == 0.75
    assert clock.sleeps == [0.75]


def test_no_wait_after_interval_elapsed(clock):
    limiter = RateLimiter(1.0, clock=clock, sleep=clock.sleep)

    limiter.wait()
    clock.advance(2.0)

    assert limiter.wait() == 0.0
    assert limiter.calls == 2


def test_zero_interval_never_sleeps(clock):
    limiter = RateLimiter(0, clock=clock, sleep=clock.sleep)
    for _ in range(5):
        limiter.wait()

    assert clock.sleeps == []
    assert limiter.calls == 5


def test_cache_hit_and_expiry(clock):
    cache = TTLCache(300, clock=clock)
    cache.set(("TSLA", "standard"), {"ticker": "TSLA"})

    clock.advance(299)
    assert cache.get(("TSLA", "standard")) == {"ticker": "TSLA"}
    assert cache.get(("TSLA", "extended")) is None

    clock.advance(1)
    assert cache.get(("TSLA", "standard")) is None
    assert len(cache) == 0


def test_cache_disabled_with_zero_ttl(clock):
    cache = TTLCache(0, clock=clock)
    cache.set("k", 1)

    assert cache.get("k") is None
    assert len(cache) == 0


def test_expired_keys_are_purged_on_write(clock):
    cache = TTLCache(300, clock=clock)
    for i in range(1000):
        cache.set(("T%d" % i, "standard"), i)

    clock.advance(10000)
    cache.set(("TSLA", "standard"), "fresh")

    assert len(cache) == 1
    assert cache.get(("TSLA", "standard")) == "fresh"


def test_live_keys_survive_a_write(clock):
    cache = TTLCache(300, clock=clock)
    cache.set("old", 1)
    clock.advance(200)
    cache.set("new", 2)

    assert len(cache) == 2
    assert cache.get("old") == 1
