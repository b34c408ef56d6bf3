"""Per-client usage limits with hourly and daily windows.

The counters live behind a small store interface so the orchestrator can be
tested without global state: `InMemoryUsageStore` for a single process,
`RedisUsageStore` when several app instances share limits.
"""
import logging
import threading
import time
from dataclasses import dataclass
from typing import Optional

from config import RATE_LIMITS

logger = logging.getLogger(__name__)

HOUR_SEC = 60 * 60
DAY_SEC = 24 * HOUR_SEC


@dataclass
class UsageCounter:
    hourly: int = 0
    daily: int = 0
    hourly_reset: float = 0.0
    daily_reset: float = 0.0

    def roll(self, now: float) -> bool:
        """Reset windows that have fully elapsed. Returns True if anything changed."""
        changed = False
        if now - self.daily_reset > DAY_SEC:
            self.daily = 0
            self.daily_reset = now
            changed = True
        if now - self.hourly_reset > HOUR_SEC:
            self.hourly = 0
            self.hourly_reset = now
            changed = True
        return changed

    def to_dict(self):
        return {
            'hourly': str(self.hourly),
            'daily': str(self.daily),
            'hourly_reset': str(self.hourly_reset),
            'daily_reset': str(self.daily_reset),
        }

    @classmethod
    def from_dict(cls, d: dict):
        return cls(
            hourly=int(d.get('hourly', '0') or 0),
            daily=int(d.get('daily', '0') or 0),
            hourly_reset=float(d.get('hourly_reset', '0') or 0.0),
            daily_reset=float(d.get('daily_reset', '0') or 0.0),
        )


@dataclass
class RateLimitStatus:
    allowed: bool
    remaining: Optional[dict] = None
    message: Optional[str] = None


class InMemoryUsageStore:
    def __init__(self):
        self._counters = {}
        self._lock = threading.Lock()

    def get(self, client_id: str, kind: str, now: float) -> UsageCounter:
        with self._lock:
            counter = self._counters.get((client_id, kind))
            if counter is None:
                counter = UsageCounter(hourly_reset=now, daily_reset=now)
                self._counters[(client_id, kind)] = counter
            counter.roll(now)
            return UsageCounter(**vars(counter))

    def increment(self, client_id: str, kind: str, now: float) -> UsageCounter:
        with self._lock:
            counter = self._counters.setdefault(
                (client_id, kind), UsageCounter(hourly_reset=now, daily_reset=now)
            )
            counter.roll(now)
            counter.hourly += 1
            counter.daily += 1
            return UsageCounter(**vars(counter))

    def reset(self, client_id: str):
        with self._lock:
            for key in [k for k in self._counters if k[0] == client_id]:
                del self._counters[key]

    def cleanup(self, now: float, max_age: float = 2 * DAY_SEC) -> int:
        """Drop counters whose daily window started more than `max_age` ago."""
        with self._lock:
            stale = [k for k, c in self._counters.items() if now - c.daily_reset > max_age]
            for key in stale:
                del self._counters[key]
        return len(stale)


class RedisUsageStore:
    """One hash per client/kind; keys expire two days after the last write."""
    key_ttl = 2 * DAY_SEC

    def __init__(self, r):
        self.r = r

    @staticmethod
    def redis_key(client_id: str, kind: str) -> str:
        return f"usage:{client_id}:{kind}"

    def _load(self, key: str, now: float) -> UsageCounter:
        data = self.r.hgetall(key)
        if not data:
            return UsageCounter(hourly_reset=now, daily_reset=now)
        return UsageCounter.from_dict(data)

    def _store(self, key: str, counter: UsageCounter):
        self.r.hset(key, mapping=counter.to_dict())
        self.r.expire(key, self.key_ttl)

    def get(self, client_id: str, kind: str, now: float) -> UsageCounter:
        key = self.redis_key(client_id, kind)
        counter = self._load(key, now)
        if counter.roll(now):
            self._store(key, counter)
        return counter

    def increment(self, client_id: str, kind: str, now: float) -> UsageCounter:
        key = self.redis_key(client_id, kind)
        counter = self._load(key, now)
        counter.roll(now)
        counter.hourly += 1
        counter.daily += 1
        self._store(key, counter)
        return counter

    def reset(self, client_id: str):
        keys = [self.redis_key(client_id, kind) for kind in RATE_LIMITS]
        self.r.delete(*keys)


class RateLimiter:
    def __init__(self, store=None, limits=None, clock=time.time):
        self.store = store if store is not None else InMemoryUsageStore()
        self.limits = limits or RATE_LIMITS
        self.clock = clock

    def check_rate_limit(self, client_id: str, kind: str) -> RateLimitStatus:
        limits = self.limits[kind]
        usage = self.store.get(client_id, kind, self.clock())

        # Hourly first so the shorter wait is reported
        if usage.hourly >= limits['hourly']:
            logger.info("[rate] %s hourly limit hit for %s", kind, client_id)
            return RateLimitStatus(
                allowed=False,
                remaining={'hourly': 0, 'daily': max(0, limits['daily'] - usage.daily)},
                message=f"시간당 {limits['hourly']}회 제한을 초과했습니다. 잠시 후 다시 시도해주세요.",
            )
        if usage.daily >= limits['daily']:
            logger.info("[rate] %s daily limit hit for %s", kind, client_id)
            return RateLimitStatus(
                allowed=False,
                remaining={'hourly': max(0, limits['hourly'] - usage.hourly), 'daily': 0},
                message=f"일일 {limits['daily']}회 제한을 초과했습니다. 내일 다시 시도해주세요.",
            )
        return RateLimitStatus(
            allowed=True,
            remaining={
                'daily': limits['daily'] - usage.daily,
                'hourly': limits['hourly'] - usage.hourly,
            },
        )

    def record_usage(self, client_id: str, kind: str):
        self.store.increment(client_id, kind, self.clock())

    def usage(self, client_id: str) -> dict:
        now = self.clock()
        stats = {}
        for kind in self.limits:
            counter = self.store.get(client_id, kind, now)
            stats[kind] = {'hourly': counter.hourly, 'daily': counter.daily}
        stats['limits'] = self.limits
        return stats


def client_id_from_request(req) -> str:
    """Identify a client by originating address, honouring proxy headers."""
    forwarded = req.headers.get('X-Forwarded-For')
    if forwarded:
        first = forwarded.split(',')[0].strip()
        if first:
            return first
    real_ip = req.headers.get('X-Real-IP')
    if real_ip:
        return real_ip
    return req.remote_addr or 'unknown'
