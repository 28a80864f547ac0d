from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from todo_api.keyvalue.memory import MemoryStorage
from todo_api.keyvalue.redis import RedisStorage
from todo_api.keyvalue.storage import (
    ValueNotFoundForKey,
    close_storage,
    get_store,
    init_storage,
)


class TestMemoryStorage:
    """Test the in-process storage"""

    @pytest.mark.asyncio
    async def test_put_get_delete(self):
        store = MemoryStorage()

        await store.put("key", {"a": 1})
        assert await store.get("key") == {"a": 1}

        await store.delete("key")
        with pytest.raises(ValueNotFoundForKey):
            await store.get("key")

    @pytest.mark.asyncio
    async def test_values_are_copied(self):
        store = MemoryStorage()
        value = {"a": 1}
        await store.put("key", value)

        value["a"] = 2
        (await store.get("key"))["a"] = 3

        assert await store.get("key") == {"a": 1}

    @pytest.mark.asyncio
    async def test_counters(self):
        store = MemoryStorage()

        await store.incr_by("count", 5)
        await store.decr_by("count", 2)
        await store.decr_by("missing", 1)

        assert await store.get("count") == 3
        assert await store.get("missing") == -1


class TestRedisStorage:
    """Test the redis backed storage against a mocked client"""

    @pytest.fixture
    def redis(self):
        return AsyncMock()

    @pytest.fixture
    def redis_store(self, redis):
        settings = SimpleNamespace(keyvalue_namespace="todo:")
        return RedisStorage(settings, redis=redis)

    @pytest.mark.asyncio
    async def test_put_serializes_json(self, redis_store, redis):
        await redis_store.put("activeusers", {"1": 12.5})

        redis.set.assert_awaited_once_with("todo:activeusers", '{"1": 12.5}')

    @pytest.mark.asyncio
    async def test_get_deserializes_json(self, redis_store, redis):
        redis.get.return_value = "42"

        assert await redis_store.get("taskcount") == 42
        redis.get.assert_awaited_once_with("todo:taskcount")

    @pytest.mark.asyncio
    async def test_get_plain_string(self, redis_store, redis):
        redis.get.return_value = "not json"

        assert await redis_store.get("key") == "not json"

    @pytest.mark.asyncio
    async def test_get_missing(self, redis_store, redis):
        redis.get.return_value = None

        with pytest.raises(ValueNotFoundForKey):
            await redis_store.get("key")

    @pytest.mark.asyncio
    async def test_counters(self, redis_store, redis):
        await redis_store.incr_by("listcount", 2)
        await redis_store.decr_by("listcount", 1)

        redis.incrby.assert_awaited_once_with("todo:listcount", 2)
        redis.decrby.assert_awaited_once_with("todo:listcount", 1)

    @pytest.mark.asyncio
    async def test_delete(self, redis_store, redis):
        await redis_store.delete("key")

        redis.delete.assert_awaited_once_with("todo:key")

    @pytest.mark.asyncio
    async def test_close(self, redis_store, redis):
        await redis_store.close()

        redis.aclose.assert_awaited_once()


class TestInitStorage:
    """Test picking the backend from the settings"""

    @pytest.mark.asyncio
    async def test_memory(self, settings):
        settings.keyvalue_type = "memory"

        assert isinstance(init_storage(settings), MemoryStorage)
        assert isinstance(get_store(), MemoryStorage)

    @pytest.mark.asyncio
    async def test_redis(self, settings):
        settings.keyvalue_type = "redis"

        store = init_storage(settings)

        assert isinstance(store, RedisStorage)
        await close_storage()

    @pytest.mark.asyncio
    async def test_unknown_falls_back_to_memory(self, settings):
        settings.keyvalue_type = "etcd"

        assert isinstance(init_storage(settings), MemoryStorage)
