import asyncio
import copy
from typing import Any

from todo_api.keyvalue.storage import Storage, ValueNotFoundForKey


class MemoryStorage(Storage):
    """Process-local storage, values are lost on restart"""

    def __init__(self):
        self._store: dict[str, Any] = {}
        self._lock = asyncio.Lock()

    async def put(self, key: str, value: Any) -> None:
        async with self._lock:
            self._store[key] = copy.deepcopy(value)

    async def get(self, key: str) -> Any:
        async with self._lock:
            if key not in self._store:
                raise ValueNotFoundForKey(key)
            return copy.deepcopy(self._store[key])

    async def delete(self, key: str) -> None:
        async with self._lock:
            self._store.pop(key, None)

    async def incr_by(self, key: str, update: int) -> None:
        async with self._lock:
            self._store[key] = int(self._store.get(key, 0)) + update

    async def decr_by(self, key: str, update: int) -> None:
        async with self._lock:
            self._store[key] = int(self._store.get(key, 0)) - update
