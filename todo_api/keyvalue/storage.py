"""
Pluggable key-value storage.

The backing store is picked from ``settings.keyvalue_type`` the first time it
is needed: ``memory`` keeps values in the process, ``redis`` shares them
between workers.
"""

import abc
import logging
from typing import Any

from todo_api.core.config import get_settings

logger = logging.getLogger(__name__)


class ValueNotFoundForKey(KeyError):
    def __init__(self, key: str):
        self.key = key
        super().__init__(f"No value found for key {key}")


class Storage(abc.ABC):
    @abc.abstractmethod
    async def put(self, key: str, value: Any) -> None: ...

    @abc.abstractmethod
    async def get(self, key: str) -> Any:
        """Return the value stored under key or raise ValueNotFoundForKey."""

    @abc.abstractmethod
    async def delete(self, key: str) -> None: ...

    @abc.abstractmethod
    async def incr_by(self, key: str, update: int) -> None: ...

    @abc.abstractmethod
    async def decr_by(self, key: str, update: int) -> None: ...

    async def close(self) -> None:
        pass


_store: Storage | None = None


def init_storage(settings=None) -> Storage:
    """Create the configured storage backend, replacing any previous one."""
    global _store
    settings = settings or get_settings()

    if settings.keyvalue_type == "redis":
        from todo_api.keyvalue.redis import RedisStorage

        _store = RedisStorage(settings)
    else:
        if settings.keyvalue_type != "memory":
            logger.warning(
                "Unknown keyvalue type %r, falling back to memory",
                settings.keyvalue_type,
            )
        from todo_api.keyvalue.memory import MemoryStorage

        _store = MemoryStorage()

    logger.info("Key-value storage initialized (%s)", type(_store).__name__)
    return _store


def get_store() -> Storage:
    if _store is None:
        return init_storage()
    return _store


async def close_storage():
    global _store
    if _store is not None:
        await _store.close()
        _store = None
