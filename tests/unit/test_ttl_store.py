import asyncio

from redis.exceptions import ConnectionError as RedisConnectionError

from salesbot.memory.store import InMemoryTTLStore, RedisTTLStore, create_ttl_store


class FakeClock:
    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now


class BrokenRedisClient:
    async def get(self, key):
        raise RedisConnectionError("connection refused")

    async def set(self, key, value, ex=None):
        raise RedisConnectionError("connection refused")

    async def delete(self, key):
        raise RedisConnectionError("connection refused")

    async def ping(self):
        raise RedisConnectionError("connection refused")

    async def aclose(self):
        return None


def test_in_memory_store_expires_entries():
    clock = FakeClock()
    store = InMemoryTTLStore(clock=clock)

    assert asyncio.run(store.set("session", {"turns": 1}, ttl_seconds=10)) is True
    assert asyncio.run(store.get("session")) == {"turns": 1}

    clock.now += 10
    assert asyncio.run(store.get("session")) is None
    assert len(store) == 0


def test_in_memory_store_without_ttl_keeps_value():
    clock = FakeClock()
    store = InMemoryTTLStore(clock=clock)
    asyncio.run(store.set("forever", [1, 2, 3]))

    clock.now += 1_000_000
    assert asyncio.run(store.get("forever")) == [1, 2, 3]


def test_in_memory_store_returns_copies():
    store = InMemoryTTLStore()
    value = {"items": ["a"]}
    asyncio.run(store.set("key", value))

    value["items"].append("b")
    cached = asyncio.run(store.get("key"))
    cached["items"].append("c")

    assert asyncio.run(store.get("key")) == {"items": ["a"]}


def test_in_memory_store_rejects_unserialisable_values():
    store = InMemoryTTLStore()
    assert asyncio.run(store.set("key", object())) is False
    assert asyncio.run(store.get("key")) is None


def test_in_memory_store_delete():
    store = InMemoryTTLStore()
    asyncio.run(store.set("key", "value"))

    assert asyncio.run(store.delete("key")) is True
    assert asyncio.run(store.delete("key")) is False


def test_redis_store_failures_become_misses():
    store = RedisTTLStore("redis://localhost:6379/0")
    store._client = BrokenRedisClient()

    assert asyncio.run(store.get("key")) is None
    assert asyncio.run(store.set("key", {"a": 1}, ttl_seconds=5)) is False
    assert asyncio.run(store.delete("key")) is False
    assert asyncio.run(store.ping()) is False


def test_create_ttl_store_falls_back_to_memory():
    assert isinstance(create_ttl_store(None), InMemoryTTLStore)
    assert isinstance(create_ttl_store("   "), InMemoryTTLStore)
    assert isinstance(create_ttl_store("http://not-redis:6379"), InMemoryTTLStore)
    assert isinstance(create_ttl_store("redis://localhost:6379/0"), RedisTTLStore)
