import types

import pytest

from rate_limiter import (
    DAY_SEC, HOUR_SEC, InMemoryUsageStore, RateLimiter, RedisUsageStore, client_id_from_request,
)

LIMITS = {
    'questionGeneration': {'hourly': 2, 'daily': 3},
    'answerAnalysis': {'hourly': 3, 'daily': 5},
}


class Clock:
    def __init__(self, now=1_000_000.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture(params=['memory', 'redis'])
def store(request, fake_redis_server):
    if request.param == 'redis':
        return RedisUsageStore(fake_redis_server)
    return InMemoryUsageStore()


def test_fresh_client_has_full_quota(store):
    limiter = RateLimiter(store=store, limits=LIMITS, clock=Clock())
    status = limiter.check_rate_limit('1.2.3.4', 'answerAnalysis')
    assert status.allowed
    assert status.remaining == {'daily': 5, 'hourly': 3}
    assert status.message is None


def test_hourly_limit_then_window_reset(store):
    clock = Clock()
    limiter = RateLimiter(store=store, limits=LIMITS, clock=clock)
    for _ in range(2):
        limiter.record_usage('c', 'questionGeneration')

    blocked = limiter.check_rate_limit('c', 'questionGeneration')
    assert not blocked.allowed
    assert '시간당 2회' in blocked.message

    # windows reset only once they have fully elapsed
    clock.now += HOUR_SEC
    assert not limiter.check_rate_limit('c', 'questionGeneration').allowed
    clock.now += 1
    status = limiter.check_rate_limit('c', 'questionGeneration')
    assert status.allowed
    assert status.remaining == {'daily': 1, 'hourly': 2}


def test_daily_limit(store):
    clock = Clock()
    limiter = RateLimiter(store=store, limits=LIMITS, clock=clock)
    for _ in range(3):
        limiter.record_usage('c', 'questionGeneration')
        clock.now += HOUR_SEC + 1

    status = limiter.check_rate_limit('c', 'questionGeneration')
    assert not status.allowed
    assert '일일 3회' in status.message

    clock.now += DAY_SEC
    assert limiter.check_rate_limit('c', 'questionGeneration').allowed


def test_kinds_and_clients_are_independent(store):
    limiter = RateLimiter(store=store, limits=LIMITS, clock=Clock())
    for _ in range(2):
        limiter.record_usage('a', 'questionGeneration')
    assert not limiter.check_rate_limit('a', 'questionGeneration').allowed
    assert limiter.check_rate_limit('a', 'answerAnalysis').allowed
    assert limiter.check_rate_limit('b', 'questionGeneration').allowed


def test_reset_clears_client(store):
    limiter = RateLimiter(store=store, limits=LIMITS, clock=Clock())
    for _ in range(2):
        limiter.record_usage('a', 'questionGeneration')
    store.reset('a')
    assert limiter.check_rate_limit('a', 'questionGeneration').allowed


def test_usage_stats(store):
    limiter = RateLimiter(store=store, limits=LIMITS, clock=Clock())
    limiter.record_usage('a', 'answerAnalysis')
    stats = limiter.usage('a')
    assert stats['answerAnalysis'] == {'hourly': 1, 'daily': 1}
    assert stats['questionGeneration'] == {'hourly': 0, 'daily': 0}
    assert stats['limits'] == LIMITS


def test_redis_keys_expire(fake_redis_server):
    limiter = RateLimiter(store=RedisUsageStore(fake_redis_server), limits=LIMITS, clock=Clock())
    limiter.record_usage('a', 'answerAnalysis')
    ttl = fake_redis_server.ttl('usage:a:answerAnalysis')
    assert 0 < ttl <= 2 * DAY_SEC


def test_in_memory_cleanup():
    store = InMemoryUsageStore()
    clock = Clock()
    limiter = RateLimiter(store=store, limits=LIMITS, clock=clock)
    limiter.record_usage('old', 'answerAnalysis')
    clock.now += DAY_SEC
    limiter.record_usage('new', 'answerAnalysis')
    assert store.cleanup(clock.now + DAY_SEC + 1) == 1


@pytest.mark.parametrize('headers, remote_addr, expected', [
    ({'X-Forwarded-For': '10.0.0.1, 172.16.0.1'}, '127.0.0.1', '10.0.0.1'),
    ({'X-Real-IP': '10.0.0.2'}, '127.0.0.1', '10.0.0.2'),
    ({}, '127.0.0.1', '127.0.0.1'),
    ({}, None, 'unknown'),
])
def test_client_id_from_request(headers, remote_addr, expected):
    req = types.SimpleNamespace(headers=headers, remote_addr=remote_addr)
    assert client_id_from_request(req) == expected
