"""
Right resolution shared by the services.

A user reaches a namespace by owning it or through a team or user share; a
list additionally through its namespace or a direct team or user share. The
effective right is the highest one among every path.
"""

from sqlmodel import col, or_, select
from sqlmodel.ext.asyncio.session import AsyncSession

from todo_api.models.common import Right
from todo_api.models.namespace import Namespace
from todo_api.models.sharing import ListUser, NamespaceUser, TeamList, TeamNamespace
from todo_api.models.team import TeamMember
from todo_api.models.todo_list import TodoList


def team_ids_of_user(user_id: int):
    return select(TeamMember.team_id).where(TeamMember.user_id == user_id)


def accessible_namespaces_condition(user_id: int):
    """Namespaces a user owns or that are shared with them"""
    via_team = select(TeamNamespace.namespace_id).where(
        col(TeamNamespace.team_id).in_(team_ids_of_user(user_id))
    )
    via_user = select(NamespaceUser.namespace_id).where(
        NamespaceUser.user_id == user_id
    )
    return or_(
        Namespace.owner_id == user_id,
        col(Namespace.id).in_(via_team),
        col(Namespace.id).in_(via_user),
    )


def directly_shared_lists_condition(user_id: int):
    """Lists shared with a user through a team or directly, not via a namespace"""
    via_team = select(TeamList.list_id).where(
        col(TeamList.team_id).in_(team_ids_of_user(user_id))
    )
    via_user = select(ListUser.list_id).where(ListUser.user_id == user_id)
    return or_(col(TodoList.id).in_(via_team), col(TodoList.id).in_(via_user))


def accessible_lists_condition(user_id: int):
    """Every list a user can at least read"""
    namespace_ids = select(Namespace.id).where(accessible_namespaces_condition(user_id))
    return or_(
        TodoList.owner_id == user_id,
        col(TodoList.namespace_id).in_(namespace_ids),
        directly_shared_lists_condition(user_id),
    )


async def _max_right(db: AsyncSession, *queries) -> Right | None:
    best = None
    for query in queries:
        for right in (await db.exec(query)).all():
            if best is None or right > best:
                best = right
    return Right(best) if best is not None else None


async def namespace_right(
    user_id: int, namespace: Namespace, db: AsyncSession
) -> Right | None:
    """The right a user holds on a namespace, None without any access"""
    if namespace.owner_id == user_id:
        return Right.ADMIN

    return await _max_right(
        db,
        select(TeamNamespace.right).where(
            TeamNamespace.namespace_id == namespace.id,
            col(TeamNamespace.team_id).in_(team_ids_of_user(user_id)),
        ),
        select(NamespaceUser.right).where(
            NamespaceUser.namespace_id == namespace.id,
            NamespaceUser.user_id == user_id,
        ),
    )


async def list_right(user_id: int, todo_list: TodoList, db: AsyncSession) -> Right | None:
    """The right a user holds on a list, None without any access"""
    if todo_list.owner_id == user_id:
        return Right.ADMIN

    namespace = await db.get(Namespace, todo_list.namespace_id)
    if namespace and namespace.owner_id == user_id:
        return Right.ADMIN

    return await _max_right(
        db,
        select(TeamList.right).where(
            TeamList.list_id == todo_list.id,
            col(TeamList.team_id).in_(team_ids_of_user(user_id)),
        ),
        select(ListUser.right).where(
            ListUser.list_id == todo_list.id, ListUser.user_id == user_id
        ),
        select(TeamNamespace.right).where(
            TeamNamespace.namespace_id == todo_list.namespace_id,
            col(TeamNamespace.team_id).in_(team_ids_of_user(user_id)),
        ),
        select(NamespaceUser.right).where(
            NamespaceUser.namespace_id == todo_list.namespace_id,
            NamespaceUser.user_id == user_id,
        ),
    )
