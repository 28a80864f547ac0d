"""
Shares of namespaces and lists with teams and single users.

All four kinds work the same way: a row links a team or user to a namespace
or list with a right. The services below only differ in their tables and
errors and share the helpers of this module.
"""

from sqlmodel import col, func, select
from sqlmodel.ext.asyncio.session import AsyncSession

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
from todo_api.core.pagination import get_limit_from_page_index
from todo_api.models.auth import Auth
from todo_api.models.common import Right
from todo_api.models.sharing import (
    ListUser,
    NamespaceUser,
    ShareUpdate,
    TeamList,
    TeamNamespace,
    TeamShareCreate,
    TeamShareResponse,
    TeamWithRight,
    UserShareCreate,
    UserShareResponse,
    UserWithRight,
)
from todo_api.models.team import Team
from todo_api.models.user import User
from todo_api.services.list_service import ListService
from todo_api.services.namespace_service import NamespaceService
from todo_api.services.team_service import TeamService
from todo_api.services.user_service import UserService


def _check_right(right: int):
    if not Right.is_valid(right):
        raise ErrInvalidRight(right=right)


async def _paginate(
    query, order_by, db: AsyncSession, search_column, search: str, page: int, per_page: int
):
    if search:
        query = query.where(col(search_column).contains(search))
    total = (await db.exec(select(func.count()).select_from(query.subquery()))).one()
    query = query.order_by(order_by)
    limit, start = get_limit_from_page_index(page, per_page)
    if limit > 0:
        query = query.offset(start).limit(limit)
    return (await db.exec(query)).all(), total


async def _find(
    db: AsyncSession,
    model,
    target_field: str,
    target_id: int,
    subject_field: str,
    subject_id: int,
):
    result = await db.exec(
        select(model).where(
            getattr(model, target_field) == target_id,
            getattr(model, subject_field) == subject_id,
        )
    )
    return result.first()


class TeamNamespaceService:
    @staticmethod
    async def create(namespace_id: int, data: TeamShareCreate, db: AsyncSession):
        _check_right(data.right)
        namespace = await NamespaceService.get_simple_by_id(namespace_id, db)
        team = await TeamService.get_by_id(data.team_id, db)

        if await _find(db, TeamNamespace, "namespace_id", namespace.id, "team_id", team.id):
            raise ErrTeamAlreadyHasNamespaceAccess(
                team_id=team.id, namespace_id=namespace.id
            )

        share = TeamNamespace(team_id=team.id, namespace_id=namespace.id, right=data.right)
        db.add(share)
        await db.commit()
        await db.refresh(share)
        return TeamShareResponse.model_validate(share, from_attributes=True)

    @staticmethod
    async def read_all(
        namespace_id: int,
        db: AsyncSession,
        search: str = "",
        page: int = -1,
        per_page: int = 0,
    ) -> tuple[list[TeamWithRight], int, int]:
        namespace = await NamespaceService.get_simple_by_id(namespace_id, db)
        query = (
            select(Team, TeamNamespace.right)
            .join(TeamNamespace, col(TeamNamespace.team_id) == Team.id)
            .where(TeamNamespace.namespace_id == namespace.id)
        )
        rows, total = await _paginate(query, Team.id, db, Team.name, search, page, per_page)
        teams = await TeamService.add_details([team for team, _ in rows], db)
        result = [
            TeamWithRight(**team.model_dump(), right=right)
            for team, (_, right) in zip(teams, rows)
        ]
        return result, len(result), total

    @staticmethod
    async def update(namespace_id: int, team_id: int, data: ShareUpdate, db: AsyncSession):
        _check_right(data.right)
        share = await _find(db, TeamNamespace, "namespace_id", namespace_id, "team_id", team_id)
        if share is None:
            raise ErrTeamDoesNotHaveAccessToNamespace(
                team_id=team_id, namespace_id=namespace_id
            )
        share.right = data.right
        share.touch()
        await db.commit()
        await db.refresh(share)
        return TeamShareResponse.model_validate(share, from_attributes=True)

    @staticmethod
    async def delete(namespace_id: int, team_id: int, db: AsyncSession):
        team = await TeamService.get_by_id(team_id, db)
        share = await _find(db, TeamNamespace, "namespace_id", namespace_id, "team_id", team.id)
        if share is None:
            raise ErrTeamDoesNotHaveAccessToNamespace(
                team_id=team_id, namespace_id=namespace_id
            )
        await db.delete(share)
        await db.commit()

    @staticmethod
    async def can_read(namespace_id: int, auth: Auth, db: AsyncSession) -> bool:
        return await NamespaceService.can_read(namespace_id, auth, db)

    @staticmethod
    async def can_manage(namespace_id: int, auth: Auth, db: AsyncSession) -> bool:
        return await NamespaceService.is_admin(namespace_id, auth, db)


class NamespaceUserService:
    @staticmethod
    async def create(namespace_id: int, data: UserShareCreate, db: AsyncSession):
        _check_right(data.right)
        namespace = await NamespaceService.get_simple_by_id(namespace_id, db)
        user = await UserService.get_user_by_username(data.username, db)

        # The owner has access anyway
        if namespace.owner_id == user.id or await _find(
            db, NamespaceUser, "namespace_id", namespace.id, "user_id", user.id
        ):
            raise ErrUserAlreadyHasNamespaceAccess(
                user_id=user.id, namespace_id=namespace.id
            )

        share = NamespaceUser(user_id=user.id, namespace_id=namespace.id, right=data.right)
        db.add(share)
        await db.commit()
        await db.refresh(share)
        return UserShareResponse.model_validate(share, from_attributes=True)

    @staticmethod
    async def read_all(
        namespace_id: int,
        db: AsyncSession,
        search: str = "",
        page: int = -1,
        per_page: int = 0,
    ) -> tuple[list[UserWithRight], int, int]:
        namespace = await NamespaceService.get_simple_by_id(namespace_id, db)
        query = (
            select(User, NamespaceUser.right)
            .join(NamespaceUser, col(NamespaceUser.user_id) == User.id)
            .where(NamespaceUser.namespace_id == namespace.id)
        )
        rows, total = await _paginate(query, User.id, db, User.username, search, page, per_page)
        result = [
            UserWithRight.model_validate(user, update={"right": right})
            for user, right in rows
        ]
        return result, len(result), total

    @staticmethod
    async def update(namespace_id: int, username: str, data: ShareUpdate, db: AsyncSession):
        _check_right(data.right)
        user = await UserService.get_user_by_username(username, db)
        share = await _find(db, NamespaceUser, "namespace_id", namespace_id, "user_id", user.id)
        if share is None:
            raise ErrUserDoesNotHaveAccessToNamespace(
                user_id=user.id, namespace_id=namespace_id
            )
        share.right = data.right
        share.touch()
        await db.commit()
        await db.refresh(share)
        return UserShareResponse.model_validate(share, from_attributes=True)

    @staticmethod
    async def delete(namespace_id: int, username: str, db: AsyncSession):
        user = await UserService.get_user_by_username(username, db)
        share = await _find(db, NamespaceUser, "namespace_id", namespace_id, "user_id", user.id)
        if share is None:
            raise ErrUserDoesNotHaveAccessToNamespace(
                user_id=user.id, namespace_id=namespace_id
            )
        await db.delete(share)
        await db.commit()

    can_read = TeamNamespaceService.can_read
    can_manage = TeamNamespaceService.can_manage


class TeamListService:
    @staticmethod
    async def create(list_id: int, data: TeamShareCreate, db: AsyncSession):
        _check_right(data.right)
        todo_list = await ListService.get_simple_by_id(list_id, db)
        team = await TeamService.get_by_id(data.team_id, db)

        if await _find(db, TeamList, "list_id", todo_list.id, "team_id", team.id):
            raise ErrTeamAlreadyHasAccess(team_id=team.id, list_id=todo_list.id)

        share = TeamList(team_id=team.id, list_id=todo_list.id, right=data.right)
        db.add(share)
        await db.commit()
        await db.refresh(share)
        return TeamShareResponse.model_validate(share, from_attributes=True)

    @staticmethod
    async def read_all(
        list_id: int,
        db: AsyncSession,
        search: str = "",
        page: int = -1,
        per_page: int = 0,
    ) -> tuple[list[TeamWithRight], int, int]:
        todo_list = await ListService.get_simple_by_id(list_id, db)
        query = (
            select(Team, TeamList.right)
            .join(TeamList, col(TeamList.team_id) == Team.id)
            .where(TeamList.list_id == todo_list.id)
        )
        rows, total = await _paginate(query, Team.id, db, Team.name, search, page, per_page)
        teams = await TeamService.add_details([team for team, _ in rows], db)
        result = [
            TeamWithRight(**team.model_dump(), right=right)
            for team, (_, right) in zip(teams, rows)
        ]
        return result, len(result), total

    @staticmethod
    async def update(list_id: int, team_id: int, data: ShareUpdate, db: AsyncSession):
        _check_right(data.right)
        share = await _find(db, TeamList, "list_id", list_id, "team_id", team_id)
        if share is None:
            raise ErrTeamDoesNotHaveAccessToList(team_id=team_id, list_id=list_id)
        share.right = data.right
        share.touch()
        await db.commit()
        await db.refresh(share)
        return TeamShareResponse.model_validate(share, from_attributes=True)

    @staticmethod
    async def delete(list_id: int, team_id: int, db: AsyncSession):
        team = await TeamService.get_by_id(team_id, db)
        share = await _find(db, TeamList, "list_id", list_id, "team_id", team.id)
        if share is None:
            raise ErrTeamDoesNotHaveAccessToList(team_id=team_id, list_id=list_id)
        await db.delete(share)
        await db.commit()

    @staticmethod
    async def can_read(list_id: int, auth: Auth, db: AsyncSession) -> bool:
        can_read, _ = await ListService.can_read(list_id, auth, db)
        return can_read

    @staticmethod
    async def can_manage(list_id: int, auth: Auth, db: AsyncSession) -> bool:
        return await ListService.is_admin(list_id, auth, db)


class ListUserService:
    @staticmethod
    async def create(list_id: int, data: UserShareCreate, db: AsyncSession):
        _check_right(data.right)
        todo_list = await ListService.get_simple_by_id(list_id, db)
        user = await UserService.get_user_by_username(data.username, db)

        if todo_list.owner_id == user.id or await _find(
            db, ListUser, "list_id", todo_list.id, "user_id", user.id
        ):
            raise ErrUserAlreadyHasAccess(user_id=user.id, list_id=todo_list.id)

        share = ListUser(user_id=user.id, list_id=todo_list.id, right=data.right)
        db.add(share)
        await db.commit()
        await db.refresh(share)
        return UserShareResponse.model_validate(share, from_attributes=True)

    @staticmethod
    async def read_all(
        list_id: int,
        db: AsyncSession,
        search: str = "",
        page: int = -1,
        per_page: int = 0,
    ) -> tuple[list[UserWithRight], int, int]:
        todo_list = await ListService.get_simple_by_id(list_id, db)
        query = (
            select(User, ListUser.right)
            .join(ListUser, col(ListUser.user_id) == User.id)
            .where(ListUser.list_id == todo_list.id)
        )
        rows, total = await _paginate(query, User.id, db, User.username, search, page, per_page)
        result = [
            UserWithRight.model_validate(user, update={"right": right})
            for user, right in rows
        ]
        return result, len(result), total

    @staticmethod
    async def update(list_id: int, username: str, data: ShareUpdate, db: AsyncSession):
        _check_right(data.right)
        user = await UserService.get_user_by_username(username, db)
        share = await _find(db, ListUser, "list_id", list_id, "user_id", user.id)
        if share is None:
            raise ErrUserDoesNotHaveAccessToList(user_id=user.id, list_id=list_id)
        share.right = data.right
        share.touch()
        await db.commit()
        await db.refresh(share)
        return UserShareResponse.model_validate(share, from_attributes=True)

    @staticmethod
    async def delete(list_id: int, username: str, db: AsyncSession):
        user = await UserService.get_user_by_username(username, db)
        share = await _find(db, ListUser, "list_id", list_id, "user_id", user.id)
        if share is None:
            raise ErrUserDoesNotHaveAccessToList(user_id=user.id, list_id=list_id)
        await db.delete(share)
        await db.commit()

    can_read = TeamListService.can_read
    can_manage = TeamListService.can_manage
