"""
Usage metrics.

Totals of lists, users, namespaces, tasks and teams are kept as counters in
the key-value store so every worker reports the same number. They are seeded
from the database at startup and adjusted by the services on create/delete.
The Prometheus gauges are refreshed from the store right before exposition.
"""

import logging
import time

from prometheus_client import CollectorRegistry, Gauge, generate_latest
from sqlmodel import func, select

from todo_api.core.config import get_settings
from todo_api.keyvalue.storage import ValueNotFoundForKey, get_store

logger = logging.getLogger(__name__)

LIST_COUNT_KEY = "listcount"
USER_COUNT_KEY = "usercount"
NAMESPACE_COUNT_KEY = "namespacecount"
TASK_COUNT_KEY = "taskcount"
TEAM_COUNT_KEY = "teamcount"
ACTIVE_USERS_KEY = "activeusers"

SECONDS_UNTIL_INACTIVE = 30

registry = CollectorRegistry()

_GAUGES = {
    LIST_COUNT_KEY: Gauge(
        "todo_list_count", "The number of lists on this instance", registry=registry
    ),
    USER_COUNT_KEY: Gauge(
        "todo_user_count", "The total number of users on this instance", registry=registry
    ),
    NAMESPACE_COUNT_KEY: Gauge(
        "todo_namespace_count",
        "The total number of namespaces on this instance",
        registry=registry,
    ),
    TASK_COUNT_KEY: Gauge(
        "todo_task_count", "The total number of tasks on this instance", registry=registry
    ),
    TEAM_COUNT_KEY: Gauge(
        "todo_team_count", "The total number of teams on this instance", registry=registry
    ),
}

ACTIVE_USERS = Gauge(
    "todo_active_users", "The currently active users on this instance", registry=registry
)


async def get_count(key: str) -> int:
    try:
        return int(await get_store().get(key))
    except ValueNotFoundForKey:
        return 0


async def set_count(count: int, key: str):
    await get_store().put(key, count)


async def update_count(update: int, key: str):
    """Add update (which may be negative) to a counter, if metrics are enabled."""
    if not get_settings().enable_metrics:
        return
    store = get_store()
    try:
        if update > 0:
            await store.incr_by(key, update)
        elif update < 0:
            await store.decr_by(key, -update)
    except Exception as e:
        logger.error(f"Could not update {key}: {e}")


async def _get_active_users() -> dict:
    try:
        return await get_store().get(ACTIVE_USERS_KEY)
    except ValueNotFoundForKey:
        return {}


async def set_user_active(user_id: int):
    """Mark a user as seen now and forget the ones that went quiet."""
    now = time.time()
    active = await _get_active_users()
    active[str(user_id)] = now
    active = {
        uid: seen
        for uid, seen in active.items()
        if now - seen < SECONDS_UNTIL_INACTIVE
    }
    await get_store().put(ACTIVE_USERS_KEY, active)


async def get_active_users_count() -> int:
    now = time.time()
    active = await _get_active_users()
    return sum(1 for seen in active.values() if now - seen < SECONDS_UNTIL_INACTIVE)


async def init_metrics(db):
    """Seed every counter with the current table totals."""
    from todo_api.models.namespace import Namespace
    from todo_api.models.task import Task
    from todo_api.models.team import Team
    from todo_api.models.todo_list import TodoList
    from todo_api.models.user import User

    await get_store().put(ACTIVE_USERS_KEY, {})

    for key, model in (
        (LIST_COUNT_KEY, TodoList),
        (USER_COUNT_KEY, User),
        (NAMESPACE_COUNT_KEY, Namespace),
        (TASK_COUNT_KEY, Task),
        (TEAM_COUNT_KEY, Team),
    ):
        total = (await db.exec(select(func.count()).select_from(model))).one()
        await set_count(total, key)
        logger.debug(f"Initial count for {key}: {total}")


async def metrics_latest() -> bytes:
    """Return the Prometheus text exposition with fresh values."""
    for key, gauge in _GAUGES.items():
        gauge.set(await get_count(key))
    ACTIVE_USERS.set(await get_active_users_count())
    return generate_latest(registry)
