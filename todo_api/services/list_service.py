from sqlmodel import col, func, select
from sqlmodel.ext.asyncio.session import AsyncSession

from todo_api import metrics
from todo_api.core.errors import (
    ErrListDoesNotExist,
    ErrListIdentifierIsNotUnique,
    ErrListIsArchived,
    ErrListTitleCannotBeEmpty,
    ErrNamespaceDoesNotExist,
    ErrNamespaceIsArchived,
    ErrTaskDoesNotExist,
)
from todo_api.core.pagination import get_limit_from_page_index
from todo_api.models.auth import Auth
from todo_api.models.bucket import DEFAULT_BUCKET_TITLE, Bucket
from todo_api.models.common import Right
from todo_api.models.link_sharing import LinkSharing
from todo_api.models.namespace import Namespace
from todo_api.models.sharing import ListUser, TeamList
from todo_api.models.task import Task, TaskAssignee
from todo_api.models.todo_list import (
    FAVORITES_PSEUDO_LIST_ID,
    ListCreate,
    ListResponse,
    ListUpdate,
    TodoList,
    favorites_pseudo_list,
    get_saved_filter_id_from_list_id,
)
from todo_api.models.user import UserResponse
from todo_api.services import permissions
from todo_api.services.saved_filter_service import SavedFilterService
from todo_api.services.user_service import UserService


class ListService:
    @staticmethod
    async def get_simple_by_id(list_id: int, db: AsyncSession) -> TodoList:
        """Get a list without any details, more or less only checks it exists"""
        todo_list = await db.get(TodoList, list_id) if list_id > 0 else None
        if not todo_list:
            raise ErrListDoesNotExist(list_id=list_id)
        return todo_list

    @staticmethod
    async def get_simple_by_task_id(task_id: int, db: AsyncSession) -> TodoList:
        task = await db.get(Task, task_id) if task_id > 0 else None
        if not task:
            raise ErrTaskDoesNotExist(task_id=task_id)
        return await ListService.get_simple_by_id(task.list_id, db)

    @staticmethod
    async def get_lists_by_namespace_id(
        namespace_id: int, db: AsyncSession, is_archived: bool = True
    ) -> list[TodoList]:
        query = select(TodoList).where(TodoList.namespace_id == namespace_id)
        if not is_archived:
            query = query.where(col(TodoList.is_archived).is_(False))
        result = await db.exec(query.order_by(TodoList.id))
        return result.all()

    @staticmethod
    async def add_list_details(lists, db: AsyncSession) -> list[ListResponse]:
        """Turn lists into responses carrying their owners"""
        owners = await UserService.get_users_by_ids({l.owner_id for l in lists}, db)
        responses = []
        for todo_list in lists:
            response = ListResponse.model_validate(todo_list)
            owner = owners.get(todo_list.owner_id)
            if owner is not None:
                response.owner = UserResponse.model_validate(owner)
            responses.append(response)
        return responses

    @staticmethod
    async def count_favorite_tasks(list_ids, db: AsyncSession) -> int:
        """Count favorite tasks in the lists selected by list_ids"""
        query = (
            select(func.count())
            .select_from(Task)
            .where(col(Task.is_favorite).is_(True), col(Task.list_id).in_(list_ids))
        )
        return (await db.exec(query)).one()

    @staticmethod
    async def read_one(list_id: int, auth: Auth, db: AsyncSession) -> ListResponse:
        if list_id == FAVORITES_PSEUDO_LIST_ID:
            favorites = favorites_pseudo_list()
            doer = await UserService.get_from_auth(auth, db)
            favorites.owner = UserResponse.model_validate(doer)
            return favorites

        filter_id = get_saved_filter_id_from_list_id(list_id)
        if filter_id > 0:
            saved_filter = await SavedFilterService.get_by_id(filter_id, db)
            owner = await UserService.get_user_by_id(saved_filter.owner_id, db)
            return SavedFilterService.to_list(saved_filter, owner)

        todo_list = await ListService.get_simple_by_id(list_id, db)
        return (await ListService.add_list_details([todo_list], db))[0]

    @staticmethod
    async def read_all(
        auth: Auth,
        db: AsyncSession,
        search: str = "",
        page: int = -1,
        per_page: int = 0,
        is_archived: bool = False,
    ) -> tuple[list[ListResponse], int, int]:
        """
        Get all lists a principal has access to.

        A link share only ever sees its own list. Users get every list they
        own, that lives in a namespace they can access or that was shared with
        them directly, with the favorites pseudo list in front whenever they
        have favorite tasks.
        """
        if isinstance(auth, LinkSharing):
            todo_list = await ListService.get_simple_by_id(auth.list_id, db)
            return await ListService.add_list_details([todo_list], db), 1, 1

        doer = await UserService.get_from_auth(auth, db)

        condition = permissions.accessible_lists_condition(doer.id)
        query = select(TodoList).where(condition)
        if search:
            query = query.where(col(TodoList.title).contains(search))
        if not is_archived:
            archived_namespaces = select(Namespace.id).where(
                col(Namespace.is_archived).is_(True)
            )
            query = query.where(
                col(TodoList.is_archived).is_(False),
                col(TodoList.namespace_id).not_in(archived_namespaces),
            )

        total = (
            await db.exec(select(func.count()).select_from(query.subquery()))
        ).one()

        query = query.order_by(TodoList.id)
        limit, start = get_limit_from_page_index(page, per_page)
        if limit > 0:
            query = query.offset(start).limit(limit)
        lists = (await db.exec(query)).all()

        responses = await ListService.add_list_details(lists, db)

        accessible_ids = select(TodoList.id).where(condition)
        if await ListService.count_favorite_tasks(accessible_ids, db) > 0:
            favorites = favorites_pseudo_list()
            favorites.owner = UserResponse.model_validate(doer)
            responses.insert(0, favorites)

        return responses, len(responses), total

    @staticmethod
    async def _check_identifier_unique(
        identifier: str, db: AsyncSession, list_id: int | None = None
    ):
        if not identifier:
            return
        query = select(TodoList.id).where(TodoList.identifier == identifier)
        if list_id is not None:
            query = query.where(TodoList.id != list_id)
        if (await db.exec(query)).first() is not None:
            raise ErrListIdentifierIsNotUnique(identifier=identifier)

    @staticmethod
    async def _get_writable_namespace(namespace_id: int, db: AsyncSession) -> Namespace:
        namespace = await db.get(Namespace, namespace_id) if namespace_id > 0 else None
        if not namespace:
            raise ErrNamespaceDoesNotExist(namespace_id=namespace_id)
        if namespace.is_archived:
            raise ErrNamespaceIsArchived(namespace_id=namespace_id)
        return namespace

    @staticmethod
    async def create(
        data: ListCreate, namespace_id: int, auth: Auth, db: AsyncSession
    ) -> ListResponse:
        doer = await UserService.get_from_auth(auth, db)

        if not data.title:
            raise ErrListTitleCannotBeEmpty()
        await ListService._get_writable_namespace(namespace_id, db)
        await ListService._check_identifier_unique(data.identifier, db)

        todo_list = TodoList.model_validate(
            data, update={"namespace_id": namespace_id, "owner_id": doer.id}
        )
        db.add(todo_list)
        await db.flush()

        # Every list starts with one bucket new tasks land in
        db.add(
            Bucket(
                title=DEFAULT_BUCKET_TITLE,
                list_id=todo_list.id,
                created_by_id=doer.id,
            )
        )
        await db.commit()
        await db.refresh(todo_list)

        await metrics.update_count(1, metrics.LIST_COUNT_KEY)
        return (await ListService.add_list_details([todo_list], db))[0]

    @staticmethod
    async def update(list_id: int, data: ListUpdate, db: AsyncSession) -> ListResponse:
        todo_list = await ListService.get_simple_by_id(list_id, db)

        update_data = data.model_dump(exclude_unset=True)
        if "title" in update_data and not update_data["title"]:
            raise ErrListTitleCannotBeEmpty(list_id=list_id)

        if todo_list.is_archived and update_data.get("is_archived", True):
            raise ErrListIsArchived(list_id=list_id)

        namespace_id = update_data.pop("namespace_id", None)
        if namespace_id is not None and namespace_id != todo_list.namespace_id:
            await ListService._get_writable_namespace(namespace_id, db)
            todo_list.namespace_id = namespace_id

        if "identifier" in update_data:
            await ListService._check_identifier_unique(
                update_data["identifier"], db, list_id=list_id
            )

        todo_list.sqlmodel_update(update_data)
        todo_list.touch()
        await db.commit()
        await db.refresh(todo_list)
        return (await ListService.add_list_details([todo_list], db))[0]

    @staticmethod
    async def delete_lists(lists, db: AsyncSession):
        """Delete lists with everything hanging off them. Does not commit."""
        list_ids = [l.id for l in lists]
        if not list_ids:
            return

        tasks = (await db.exec(select(Task).where(col(Task.list_id).in_(list_ids)))).all()
        task_ids = [t.id for t in tasks]
        if task_ids:
            assignees = await db.exec(
                select(TaskAssignee).where(col(TaskAssignee.task_id).in_(task_ids))
            )
            for assignee in assignees.all():
                await db.delete(assignee)
        for task in tasks:
            await db.delete(task)

        for model in (Bucket, TeamList, ListUser, LinkSharing):
            rows = await db.exec(select(model).where(col(model.list_id).in_(list_ids)))
            for row in rows.all():
                await db.delete(row)

        # Tasks and their dependents have to be gone before the lists are
        await db.flush()
        for todo_list in lists:
            await db.delete(todo_list)

        await metrics.update_count(-len(tasks), metrics.TASK_COUNT_KEY)
        await metrics.update_count(-len(list_ids), metrics.LIST_COUNT_KEY)

    @staticmethod
    async def delete(list_id: int, db: AsyncSession):
        todo_list = await ListService.get_simple_by_id(list_id, db)
        await ListService.delete_lists([todo_list], db)
        await db.commit()

    # Rights

    @staticmethod
    async def _is_archived(todo_list: TodoList, db: AsyncSession) -> bool:
        if todo_list.is_archived:
            return True
        namespace = await db.get(Namespace, todo_list.namespace_id)
        return bool(namespace and namespace.is_archived)

    @staticmethod
    async def can_read(list_id: int, auth: Auth, db: AsyncSession) -> tuple[bool, int]:
        """Whether the principal can see the list and with which right"""
        if list_id == FAVORITES_PSEUDO_LIST_ID:
            if isinstance(auth, LinkSharing):
                return False, 0
            return True, Right.READ

        filter_id = get_saved_filter_id_from_list_id(list_id)
        if filter_id > 0:
            if isinstance(auth, LinkSharing):
                return False, 0
            saved_filter = await SavedFilterService.get_by_id(filter_id, db)
            return saved_filter.owner_id == auth.id, Right.ADMIN

        todo_list = await ListService.get_simple_by_id(list_id, db)

        if isinstance(auth, LinkSharing):
            return todo_list.id == auth.list_id, auth.right

        right = await permissions.list_right(auth.id, todo_list, db)
        if right is None:
            return False, 0
        return True, right

    @staticmethod
    async def can_write(list_id: int, auth: Auth, db: AsyncSession) -> bool:
        """Write access, raising ErrListIsArchived for read-only lists"""
        if list_id < 0:
            return False
        todo_list = await ListService.get_simple_by_id(list_id, db)

        if await ListService._is_archived(todo_list, db):
            raise ErrListIsArchived(list_id=list_id)

        if isinstance(auth, LinkSharing):
            return todo_list.id == auth.list_id and auth.right in (
                Right.WRITE,
                Right.ADMIN,
            )

        right = await permissions.list_right(auth.id, todo_list, db)
        return right is not None and right >= Right.WRITE

    @staticmethod
    async def is_admin(list_id: int, auth: Auth, db: AsyncSession) -> bool:
        if list_id < 0:
            return False
        todo_list = await ListService.get_simple_by_id(list_id, db)

        if isinstance(auth, LinkSharing):
            return todo_list.id == auth.list_id and auth.right == Right.ADMIN

        return await permissions.list_right(auth.id, todo_list, db) == Right.ADMIN

    @staticmethod
    async def can_create(namespace_id: int, auth: Auth, db: AsyncSession) -> bool:
        """Lists are created in a namespace the principal can write to"""
        if isinstance(auth, LinkSharing):
            return False
        namespace = await ListService._get_writable_namespace(namespace_id, db)
        right = await permissions.namespace_right(auth.id, namespace, db)
        return right is not None and right >= Right.WRITE

    @staticmethod
    async def can_update(
        list_id: int, data: ListUpdate, auth: Auth, db: AsyncSession
    ) -> bool:
        if list_id < 0:
            return False
        todo_list = await ListService.get_simple_by_id(list_id, db)

        moving = (
            data.namespace_id is not None and data.namespace_id != todo_list.namespace_id
        )

        if isinstance(auth, LinkSharing):
            # Link shares have no right on any namespace
            if moving:
                return False
            return await ListService.can_write(list_id, auth, db)

        # Moving a list needs write access to the new namespace as well
        if moving:
            namespace = await ListService._get_writable_namespace(data.namespace_id, db)
            right = await permissions.namespace_right(auth.id, namespace, db)
            if right is None or right < Right.WRITE:
                return False

        # Only admins may take a list out of the archive
        unarchiving = "is_archived" in data.model_fields_set and not data.is_archived
        if todo_list.is_archived and unarchiving:
            return await ListService.is_admin(list_id, auth, db)

        return await ListService.can_write(list_id, auth, db)

    @staticmethod
    async def can_delete(list_id: int, auth: Auth, db: AsyncSession) -> bool:
        return await ListService.is_admin(list_id, auth, db)
