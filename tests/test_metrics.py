import pytest

from todo_api import metrics
from todo_api.models.namespace import NamespaceCreate
from todo_api.models.user import User
from todo_api.services.namespace_service import NamespaceService


@pytest.fixture
def enable_metrics(settings):
    settings.enable_metrics = True
    return settings


class TestCounters:
    """Test the totals kept in the key-value store"""

    @pytest.mark.asyncio
    async def test_init_metrics(self, db, enable_metrics):
        await metrics.init_metrics(db)

        assert await metrics.get_count(metrics.USER_COUNT_KEY) == 6
        assert await metrics.get_count(metrics.NAMESPACE_COUNT_KEY) == 6
        assert await metrics.get_count(metrics.LIST_COUNT_KEY) == 9
        assert await metrics.get_count(metrics.TASK_COUNT_KEY) == 7
        assert await metrics.get_count(metrics.TEAM_COUNT_KEY) == 2

    @pytest.mark.asyncio
    async def test_missing_counter_is_zero(self):
        assert await metrics.get_count(metrics.TASK_COUNT_KEY) == 0

    @pytest.mark.asyncio
    async def test_update_count(self, enable_metrics):
        await metrics.set_count(3, metrics.TASK_COUNT_KEY)

        await metrics.update_count(2, metrics.TASK_COUNT_KEY)
        await metrics.update_count(-4, metrics.TASK_COUNT_KEY)

        assert await metrics.get_count(metrics.TASK_COUNT_KEY) == 1

    @pytest.mark.asyncio
    async def test_update_count_disabled(self, settings):
        settings.enable_metrics = False

        await metrics.update_count(2, metrics.TASK_COUNT_KEY)

        assert await metrics.get_count(metrics.TASK_COUNT_KEY) == 0

    @pytest.mark.asyncio
    async def test_services_update_counts(self, db, enable_metrics):
        await metrics.init_metrics(db)

        await NamespaceService.create(
            NamespaceCreate(title="counted"), await db.get(User, 1), db
        )

        assert await metrics.get_count(metrics.NAMESPACE_COUNT_KEY) == 7


class TestActiveUsers:
    """Test tracking of recently active users"""

    @pytest.mark.asyncio
    async def test_set_user_active(self):
        await metrics.set_user_active(1)
        await metrics.set_user_active(2)
        await metrics.set_user_active(1)

        assert await metrics.get_active_users_count() == 2

    @pytest.mark.asyncio
    async def test_inactive_users_expire(self, monkeypatch):
        await metrics.set_user_active(1)

        now = metrics.time.time()
        monkeypatch.setattr(
            metrics.time, "time", lambda: now + metrics.SECONDS_UNTIL_INACTIVE + 1
        )

        assert await metrics.get_active_users_count() == 0

    @pytest.mark.asyncio
    async def test_requests_mark_users_active(self, client, user1_headers, enable_metrics):
        await client.get("/api/v1/user", headers=user1_headers)

        assert await metrics.get_active_users_count() == 1


class TestExposition:
    """Test the Prometheus output"""

    @pytest.mark.asyncio
    async def test_metrics_latest(self, db, enable_metrics):
        await metrics.init_metrics(db)
        await metrics.set_user_active(1)

        output = (await metrics.metrics_latest()).decode()

        assert "todo_user_count 6.0" in output
        assert "todo_list_count 9.0" in output
        assert "todo_active_users 1.0" in output
