import pytest

from todo_api.core.errors import (
    ErrSavedFilterDoesNotExist,
    ErrSavedFilterNotAvailableForLinkShare,
)
from todo_api.models.link_sharing import LinkSharing
from todo_api.models.saved_filter import SavedFilterCreate, SavedFilterUpdate
from todo_api.models.task import TaskFilter
from todo_api.models.todo_list import (
    get_list_id_from_saved_filter_id,
    get_saved_filter_id_from_list_id,
)
from todo_api.models.user import User
from todo_api.services.namespace_service import NamespaceService
from todo_api.services.saved_filter_service import SavedFilterService


class TestSavedFilterIds:
    """Test mapping saved filters to pseudo list ids"""

    @pytest.mark.parametrize("filter_id, list_id", [(1, -2), (2, -3), (10, -11)])
    def test_round_trip(self, filter_id, list_id):
        assert get_list_id_from_saved_filter_id(filter_id) == list_id
        assert get_saved_filter_id_from_list_id(list_id) == filter_id

    @pytest.mark.parametrize("list_id", [-1, 0, 5])
    def test_regular_list_ids(self, list_id):
        assert get_saved_filter_id_from_list_id(list_id) == 0


class TestSavedFilterService:
    """Test saved filter management"""

    @pytest.mark.asyncio
    async def test_create_shows_up_as_pseudo_list(self, db):
        user = await db.get(User, 1)
        saved = await SavedFilterService.create(
            SavedFilterCreate(
                title="urgent",
                filters=TaskFilter(filter_by=["priority"], filter_value=["5"]),
            ),
            user,
            db,
        )

        lists = await NamespaceService.get_lists(-3, user, db)
        assert saved.id == 2
        assert [pseudo.id for pseudo in lists] == [-2, -3]

    @pytest.mark.asyncio
    async def test_create_as_link_share(self, db):
        with pytest.raises(ErrSavedFilterNotAvailableForLinkShare):
            await SavedFilterService.can_create(await db.get(LinkSharing, 1), db)

    @pytest.mark.asyncio
    async def test_read_one(self, db):
        saved = await SavedFilterService.read_one(1, db)

        assert saved.filters.filter_by == ["done"]
        assert saved.owner.username == "user1"

    @pytest.mark.asyncio
    async def test_update(self, db):
        saved = await SavedFilterService.update(
            1,
            SavedFilterUpdate(filters=TaskFilter(filter_by=["done"], filter_value=["true"])),
            db,
        )

        assert saved.title == "testfilter1"
        assert saved.filters.filter_value == ["true"]

    @pytest.mark.asyncio
    async def test_delete(self, db):
        await SavedFilterService.delete(1, db)

        with pytest.raises(ErrSavedFilterDoesNotExist):
            await SavedFilterService.read_one(1, db)

    @pytest.mark.asyncio
    async def test_only_owner_has_access(self, db):
        assert await SavedFilterService.can_read(1, await db.get(User, 1), db)
        assert not await SavedFilterService.can_update(1, await db.get(User, 2), db)


class TestSavedFilterAPI:
    """Test the saved filter endpoints"""

    @pytest.mark.asyncio
    async def test_create(self, client, user1_headers):
        response = await client.post(
            "/api/v1/filters",
            json={"title": "done tasks", "filters": {"filter_by": ["done"], "filter_value": ["true"]}},
            headers=user1_headers,
        )

        assert response.status_code == 201
        assert response.json()["filters"]["filter_by"] == ["done"]

    @pytest.mark.asyncio
    async def test_get_as_other_user(self, client, auth_headers):
        response = await client.get("/api/v1/filters/1", headers=auth_headers(2))

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_get_as_link_share(self, client, share_headers):
        response = await client.get("/api/v1/filters/1", headers=await share_headers(1))

        assert response.status_code == 412
        assert response.json()["code"] == 11002

    @pytest.mark.asyncio
    async def test_tasks_of_saved_filter(self, client, user1_headers):
        response = await client.get("/api/v1/lists/-2/tasks", headers=user1_headers)

        assert response.status_code == 200
        assert [t["id"] for t in response.json()] == [1, 3, 4, 7]

    @pytest.mark.asyncio
    async def test_nonexistent(self, client, user1_headers):
        response = await client.get("/api/v1/filters/9999", headers=user1_headers)

        assert response.status_code == 404
        assert response.json()["code"] == 11001
