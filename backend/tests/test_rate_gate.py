import pytest
import pytest_asyncio
from fakeredis import FakeAsyncRedis
from redis.exceptions import ConnectionError as RedisConnectionError

from origo.services.rate_gate import RateClass, RateGate, RateLimit
from origo.utils.cache import MemoryWindowStore, RedisWindowStore, WindowStore


class BrokenStore(WindowStore):
    def __init__(self):
        self.calls = 0

    async def hit(self, key, max_hits, window_ms):
        self.calls += 1
        raise RedisConnectionError("connection refused")


@pytest.mark.asyncio
async def test_sixth_request_in_window_is_rejected(rate_gate):
    decisions = [await rate_gate.admit("acct-1", RateClass.GENERATE) for _ in range(6)]

    assert all(d.allowed for d in decisions[:5])
    assert [d.remaining for d in decisions[:5]] == [4, 3, 2, 1, 0]
    rejected = decisions[5]
    assert not rejected.allowed
    assert rejected.remaining == 0
    assert rejected.retry_after_seconds > 0
    assert rejected.headers()["Retry-After"] == str(rejected.retry_after_seconds)


@pytest.mark.asyncio
async def test_window_reopens_after_expiry(rate_gate, clock):
    for _ in range(5):
        await rate_gate.admit("acct-1", RateClass.GENERATE)
    assert not (await rate_gate.admit("acct-1", RateClass.GENERATE)).allowed

    clock.advance(61)
    decision = await rate_gate.admit("acct-1", RateClass.GENERATE)
    assert decision.allowed
    assert decision.remaining == 4


@pytest.mark.asyncio
async def test_retry_after_counts_down(rate_gate, clock):
    for _ in range(5):
        await rate_gate.admit("acct-1", RateClass.GENERATE)
    clock.advance(45)

    decision = await rate_gate.admit("acct-1", RateClass.GENERATE)
    assert decision.retry_after_seconds == 15


@pytest.mark.asyncio
async def test_identifiers_and_classes_are_independent(rate_gate):
    for _ in range(5):
        await rate_gate.admit("acct-1", RateClass.GENERATE)

    assert (await rate_gate.admit("acct-2", RateClass.GENERATE)).allowed
    assert (await rate_gate.admit("acct-1", RateClass.CHECKOUT)).allowed


@pytest.mark.asyncio
async def test_falls_back_to_local_store_when_shared_store_fails(clock, caplog):
    shared = BrokenStore()
    gate = RateGate(
        shared=shared,
        local=MemoryWindowStore(clock=clock),
        limits={RateClass.GENERATE: RateLimit(2, 60)},
        clock=clock,
    )

    results = [await gate.admit("acct-1", RateClass.GENERATE) for _ in range(3)]

    assert shared.calls == 3
    assert [d.allowed for d in results] == [True, True, False]
    assert "Shared rate store unavailable" in caplog.text


@pytest.mark.asyncio
async def test_rejected_hits_do_not_extend_the_count(clock):
    store = MemoryWindowStore(clock=clock)
    for _ in range(4):
        hit = await store.hit("k", 2, 1000)

    assert not hit.allowed
    assert hit.count == 2


@pytest.mark.asyncio
async def test_expired_windows_are_purged_on_access(clock):
    store = MemoryWindowStore(purge_interval_seconds=300, clock=clock)
    await store.hit("a", 5, 1000)
    await store.hit("b", 5, 1000)
    assert len(store) == 2

    clock.advance(301)
    await store.hit("c", 5, 1000)
    assert len(store) == 1


@pytest.mark.asyncio
async def test_purge_expired_keeps_live_windows(clock):
    store = MemoryWindowStore(clock=clock)
    await store.hit("short", 5, 1000)
    await store.hit("long", 5, 60_000)
    clock.advance(2)

    assert store.purge_expired() == 1
    assert len(store) == 1


@pytest_asyncio.fixture
async def redis_client():
    client = FakeAsyncRedis()
    yield client
    await client.flushall()
    await client.aclose()


@pytest.mark.asyncio
async def test_redis_window_rejects_after_max_and_freezes_count(redis_client):
    store = RedisWindowStore(redis_client)

    hits = [await store.hit("generate:acct", 5, 60_000) for _ in range(6)]

    assert [h.allowed for h in hits] == [True] * 5 + [False]
    assert [h.count for h in hits] == [1, 2, 3, 4, 5, 5]
    assert await redis_client.get("origo:ratelimit:generate:acct") == b"5"
    ttl = await redis_client.pttl("origo:ratelimit:generate:acct")
    assert 0 < ttl <= 60_000


@pytest.mark.asyncio
async def test_instances_sharing_redis_share_one_window(redis_client):
    limits = {RateClass.GENERATE: RateLimit(3, 60)}
    first = RateGate(shared=RedisWindowStore(redis_client), limits=limits)
    second = RateGate(shared=RedisWindowStore(redis_client), limits=limits)

    assert (await first.admit("acct", RateClass.GENERATE)).allowed
    assert (await second.admit("acct", RateClass.GENERATE)).allowed
    assert (await first.admit("acct", RateClass.GENERATE)).remaining == 0

    rejected = await second.admit("acct", RateClass.GENERATE)
    assert not rejected.allowed
    assert rejected.retry_after_seconds > 0
    assert len(second.local) == 0


@pytest.mark.asyncio
async def test_redis_window_expiry_opens_new_window(redis_client):
    store = RedisWindowStore(redis_client)
    for _ in range(2):
        await store.hit("k", 2, 60_000)
    await redis_client.delete("origo:ratelimit:k")

    hit = await store.hit("k", 2, 60_000)
    assert (hit.allowed, hit.count) == (True, 1)
