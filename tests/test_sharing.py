import pytest

from todo_api.core.errors import (
    ErrInvalidRight,
    ErrTeamAlreadyHasAccess,
    ErrTeamAlreadyHasNamespaceAccess,
    ErrTeamDoesNotHaveAccessToList,
    ErrTeamDoesNotHaveAccessToNamespace,
    ErrUserAlreadyHasAccess,
    ErrUserAlreadyHasNamespaceAccess,
    ErrUserDoesNotHaveAccessToList,
    ErrUserDoesNotHaveAccessToNamespace,
)
from todo_api.models.common import Right
from todo_api.models.sharing import ShareUpdate, TeamShareCreate, UserShareCreate
from todo_api.models.user import User
from todo_api.services.list_service import ListService
from todo_api.services.namespace_service import NamespaceService
from todo_api.services.sharing_service import (
    ListUserService,
    NamespaceUserService,
    TeamListService,
    TeamNamespaceService,
)


class TestTeamNamespaceShares:
    """Test sharing namespaces with teams"""

    @pytest.mark.asyncio
    async def test_create_grants_access(self, db):
        share = await TeamNamespaceService.create(
            1, TeamShareCreate(team_id=2, right=Right.READ), db
        )

        assert share.team_id == 2
        assert await NamespaceService.can_read(1, await db.get(User, 3), db)

    @pytest.mark.asyncio
    async def test_create_twice(self, db):
        with pytest.raises(ErrTeamAlreadyHasNamespaceAccess):
            await TeamNamespaceService.create(5, TeamShareCreate(team_id=1), db)

    @pytest.mark.asyncio
    async def test_invalid_right(self, db):
        with pytest.raises(ErrInvalidRight):
            await TeamNamespaceService.create(1, TeamShareCreate(team_id=2, right=3), db)

    @pytest.mark.asyncio
    async def test_read_all(self, db):
        teams, count, total = await TeamNamespaceService.read_all(5, db)

        assert [(t.id, t.right) for t in teams] == [(1, Right.WRITE)]
        assert count == total == 1

    @pytest.mark.asyncio
    async def test_update(self, db):
        share = await TeamNamespaceService.update(5, 1, ShareUpdate(right=Right.ADMIN), db)

        assert share.right == Right.ADMIN
        assert await NamespaceService.is_admin(5, await db.get(User, 1), db)

    @pytest.mark.asyncio
    async def test_delete(self, db):
        await TeamNamespaceService.delete(5, 1, db)

        assert not await NamespaceService.can_read(5, await db.get(User, 1), db)

    @pytest.mark.asyncio
    async def test_delete_missing_share(self, db):
        with pytest.raises(ErrTeamDoesNotHaveAccessToNamespace):
            await TeamNamespaceService.delete(1, 2, db)


class TestNamespaceUserShares:
    """Test sharing namespaces with single users"""

    @pytest.mark.asyncio
    async def test_create(self, db):
        share = await NamespaceUserService.create(
            1, UserShareCreate(username="user2", right=Right.WRITE), db
        )

        assert share.user_id == 2
        assert await NamespaceService.can_write(1, await db.get(User, 2), db)

    @pytest.mark.asyncio
    async def test_share_with_owner(self, db):
        with pytest.raises(ErrUserAlreadyHasNamespaceAccess):
            await NamespaceUserService.create(1, UserShareCreate(username="user1"), db)

    @pytest.mark.asyncio
    async def test_read_all(self, db):
        users, _, _ = await NamespaceUserService.read_all(6, db)

        assert [(u.username, u.right) for u in users] == [("user1", Right.ADMIN)]

    @pytest.mark.asyncio
    async def test_update_missing_share(self, db):
        with pytest.raises(ErrUserDoesNotHaveAccessToNamespace):
            await NamespaceUserService.update(6, "user2", ShareUpdate(right=0), db)

    @pytest.mark.asyncio
    async def test_delete(self, db):
        await NamespaceUserService.delete(6, "user1", db)

        assert not await NamespaceService.can_read(6, await db.get(User, 1), db)


class TestTeamListShares:
    """Test sharing lists with teams"""

    @pytest.mark.asyncio
    async def test_create(self, db):
        await TeamListService.create(9, TeamShareCreate(team_id=1, right=Right.WRITE), db)

        assert await ListService.can_write(9, await db.get(User, 2), db)

    @pytest.mark.asyncio
    async def test_create_twice(self, db):
        with pytest.raises(ErrTeamAlreadyHasAccess):
            await TeamListService.create(3, TeamShareCreate(team_id=1), db)

    @pytest.mark.asyncio
    async def test_update_grants_write(self, db):
        await TeamListService.update(3, 1, ShareUpdate(right=Right.WRITE), db)

        assert await ListService.can_write(3, await db.get(User, 1), db)

    @pytest.mark.asyncio
    async def test_delete_missing_share(self, db):
        with pytest.raises(ErrTeamDoesNotHaveAccessToList):
            await TeamListService.delete(1, 1, db)

    @pytest.mark.asyncio
    async def test_read_all(self, db):
        teams, _, _ = await TeamListService.read_all(3, db)

        assert [t.name for t in teams] == ["testteam1"]
        assert [m.username for m in teams[0].members] == ["user1", "user2", "user3"]


class TestListUserShares:
    """Test sharing lists with single users"""

    @pytest.mark.asyncio
    async def test_create(self, db):
        await ListUserService.create(1, UserShareCreate(username="user6"), db)

        readable, right = await ListService.can_read(1, await db.get(User, 6), db)
        assert readable
        assert right == Right.READ

    @pytest.mark.asyncio
    async def test_create_twice(self, db):
        with pytest.raises(ErrUserAlreadyHasAccess):
            await ListUserService.create(4, UserShareCreate(username="user1"), db)

    @pytest.mark.asyncio
    async def test_update(self, db):
        share = await ListUserService.update(4, "user1", ShareUpdate(right=Right.ADMIN), db)

        assert share.right == Right.ADMIN

    @pytest.mark.asyncio
    async def test_delete_missing_share(self, db):
        with pytest.raises(ErrUserDoesNotHaveAccessToList):
            await ListUserService.delete(4, "user2", db)


class TestSharingAPI:
    """Test the sharing endpoints"""

    @pytest.mark.asyncio
    async def test_share_namespace_needs_admin(self, client, auth_headers):
        response = await client.post(
            "/api/v1/namespaces/5/users",
            json={"username": "user4"},
            headers=auth_headers(2),
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_share_list_with_user(self, client, user1_headers):
        response = await client.post(
            "/api/v1/lists/1/users",
            json={"username": "user2", "right": 1},
            headers=user1_headers,
        )

        assert response.status_code == 201
        assert response.json()["right"] == 1

    @pytest.mark.asyncio
    async def test_get_list_teams(self, client, auth_headers):
        response = await client.get("/api/v1/lists/3/teams", headers=auth_headers(2))

        assert response.status_code == 200
        assert response.json()[0]["right"] == 0
        assert response.headers["x-pagination-result-count"] == "1"

    @pytest.mark.asyncio
    async def test_invalid_right(self, client, auth_headers):
        response = await client.patch(
            "/api/v1/lists/4/users/user1", json={"right": 7}, headers=auth_headers(3)
        )

        assert response.status_code == 400
        assert response.json()["code"] == 7001
