from sqlmodel import col, func, select
from sqlmodel.ext.asyncio.session import AsyncSession

from todo_api import metrics
from todo_api.core.errors import (
    ErrGenericForbidden,
    ErrNamespaceDoesNotExist,
    ErrNamespaceIsArchived,
    ErrNamespaceNameCannotBeEmpty,
)
from todo_api.core.pagination import get_limit_from_page_index
from todo_api.models.auth import Auth
from todo_api.models.common import Right
from todo_api.models.link_sharing import LinkSharing
from todo_api.models.namespace import (
    FAVORITES_PSEUDO_NAMESPACE_ID,
    PSEUDO_NAMESPACE_IDS,
    SAVED_FILTERS_PSEUDO_NAMESPACE_ID,
    SHARED_LISTS_PSEUDO_NAMESPACE_ID,
    Namespace,
    NamespaceCreate,
    NamespaceResponse,
    NamespaceUpdate,
    NamespaceWithLists,
    favorites_pseudo_namespace,
    saved_filters_pseudo_namespace,
    shared_lists_pseudo_namespace,
)
from todo_api.models.sharing import NamespaceUser, TeamNamespace
from todo_api.models.todo_list import (
    FAVORITES_PSEUDO_LIST_ID,
    ListResponse,
    TodoList,
    favorites_pseudo_list,
)
from todo_api.models.user import UserResponse
from todo_api.services import permissions
from todo_api.services.list_service import ListService
from todo_api.services.saved_filter_service import SavedFilterService
from todo_api.services.user_service import UserService


class NamespaceService:
    @staticmethod
    async def get_simple_by_id(namespace_id: int, db: AsyncSession) -> Namespace:
        namespace = await db.get(Namespace, namespace_id) if namespace_id > 0 else None
        if not namespace:
            raise ErrNamespaceDoesNotExist(namespace_id=namespace_id)
        return namespace

    @staticmethod
    async def check_is_archived(namespace_id: int, db: AsyncSession):
        namespace = await NamespaceService.get_simple_by_id(namespace_id, db)
        if namespace.is_archived:
            raise ErrNamespaceIsArchived(namespace_id=namespace_id)

    @staticmethod
    async def _with_owner(namespace: Namespace, db: AsyncSession) -> NamespaceResponse:
        response = NamespaceResponse.model_validate(namespace)
        owner = await UserService.get_user_by_id(namespace.owner_id, db)
        response.owner = UserResponse.model_validate(owner)
        return response

    @staticmethod
    async def read_one(
        namespace_id: int, auth: Auth, db: AsyncSession
    ) -> NamespaceResponse:
        if namespace_id == SHARED_LISTS_PSEUDO_NAMESPACE_ID:
            pseudo = shared_lists_pseudo_namespace()
        elif namespace_id == FAVORITES_PSEUDO_NAMESPACE_ID:
            pseudo = favorites_pseudo_namespace()
        elif namespace_id == SAVED_FILTERS_PSEUDO_NAMESPACE_ID:
            pseudo = saved_filters_pseudo_namespace()
        else:
            namespace = await NamespaceService.get_simple_by_id(namespace_id, db)
            return await NamespaceService._with_owner(namespace, db)

        doer = await UserService.get_from_auth(auth, db)
        pseudo.owner = UserResponse.model_validate(doer)
        return NamespaceResponse.model_validate(pseudo.model_dump(exclude={"lists"}))

    @staticmethod
    async def read_all(
        auth: Auth,
        db: AsyncSession,
        search: str = "",
        page: int = -1,
        per_page: int = 0,
        is_archived: bool = False,
    ) -> tuple[list[NamespaceWithLists], int, int]:
        """
        Get every namespace a user has access to, each with its lists.

        Next to the real namespaces the result carries up to three pseudo
        namespaces: "Shared Lists" (-1) with lists shared with the user
        directly or through a team, "Favorites" (-2) with the favorites pseudo
        list and all favorited lists, and "Filters" (-3) with the saved filters
        of the user. Empty pseudo namespaces are left out. Everything is sorted
        by id, so the pseudo namespaces come first.

        Returns the namespaces, their number and the total number of real
        namespaces matching the search.
        """
        if isinstance(auth, LinkSharing):
            raise ErrGenericForbidden()

        doer = await UserService.get_from_auth(auth, db)
        doer_response = UserResponse.model_validate(doer)

        query = select(Namespace).where(
            permissions.accessible_namespaces_condition(doer.id)
        )
        if search:
            query = query.where(col(Namespace.title).contains(search))
        if not is_archived:
            query = query.where(col(Namespace.is_archived).is_(False))

        total = (
            await db.exec(select(func.count()).select_from(query.subquery()))
        ).one()

        query = query.order_by(Namespace.id)
        limit, start = get_limit_from_page_index(page, per_page)
        if limit > 0:
            query = query.offset(start).limit(limit)
        found = (await db.exec(query)).all()

        owners = await UserService.get_users_by_ids({n.owner_id for n in found}, db)
        namespaces: dict[int, NamespaceWithLists] = {}
        for namespace in found:
            item = NamespaceWithLists.model_validate(namespace)
            owner = owners.get(namespace.owner_id)
            if owner is not None:
                item.owner = UserResponse.model_validate(owner)
            namespaces[namespace.id] = item

        namespace_ids = list(namespaces)
        lists = []
        if namespace_ids:
            list_query = select(TodoList).where(
                col(TodoList.namespace_id).in_(namespace_ids)
            )
            if not is_archived:
                list_query = list_query.where(col(TodoList.is_archived).is_(False))
            lists = list((await db.exec(list_query.order_by(TodoList.id))).all())

        # Shared lists
        shared_query = select(TodoList).where(
            permissions.directly_shared_lists_condition(doer.id)
        )
        if not is_archived:
            shared_query = shared_query.where(col(TodoList.is_archived).is_(False))
        shared_lists = (await db.exec(shared_query.order_by(TodoList.id))).all()

        list_responses = await ListService.add_list_details(lists, db)
        for shared in await ListService.add_list_details(shared_lists, db):
            shared.namespace_id = SHARED_LISTS_PSEUDO_NAMESPACE_ID
            list_responses.append(shared)

        if shared_lists:
            shared_namespace = shared_lists_pseudo_namespace()
            shared_namespace.owner = doer_response
            namespaces[shared_namespace.id] = shared_namespace

        # Favorites
        favorites_namespace = favorites_pseudo_namespace()
        favorites_namespace.owner = doer_response
        favorites_list = favorites_pseudo_list()
        favorites_list.owner = doer_response
        favorites_namespace.lists.append(favorites_list)
        namespaces[favorites_namespace.id] = favorites_namespace

        for todo_list in list_responses:
            if todo_list.is_favorite:
                favorites_namespace.lists.append(todo_list)
            namespaces[todo_list.namespace_id].lists.append(todo_list)

        favorite_tasks = 0
        if namespace_ids:
            favorite_tasks = await ListService.count_favorite_tasks(
                select(TodoList.id).where(col(TodoList.namespace_id).in_(namespace_ids)),
                db,
            )
        if favorite_tasks == 0:
            favorites_namespace.lists = [
                l for l in favorites_namespace.lists if l.id != FAVORITES_PSEUDO_LIST_ID
            ]
        if not favorites_namespace.lists:
            del namespaces[favorites_namespace.id]

        # Saved filters
        saved_filters = await SavedFilterService.get_for_user(doer, db)
        if saved_filters:
            filters_namespace = saved_filters_pseudo_namespace()
            filters_namespace.owner = doer_response
            filters_namespace.lists = [
                SavedFilterService.to_list(f, doer) for f in saved_filters
            ]
            namespaces[filters_namespace.id] = filters_namespace

        result = sorted(namespaces.values(), key=lambda n: n.id)
        return result, len(result), total

    @staticmethod
    async def get_lists(
        namespace_id: int, auth: Auth, db: AsyncSession
    ) -> list[ListResponse]:
        """The lists of a namespace, resolving the pseudo namespaces for the doer"""
        doer = await UserService.get_from_auth(auth, db)

        if namespace_id == SHARED_LISTS_PSEUDO_NAMESPACE_ID:
            result = await db.exec(
                select(TodoList)
                .where(permissions.directly_shared_lists_condition(doer.id))
                .order_by(TodoList.id)
            )
            return await ListService.add_list_details(result.all(), db)

        if namespace_id == FAVORITES_PSEUDO_NAMESPACE_ID:
            result = await db.exec(
                select(TodoList)
                .where(
                    permissions.accessible_lists_condition(doer.id),
                    col(TodoList.is_favorite).is_(True),
                )
                .order_by(TodoList.id)
            )
            favorites = favorites_pseudo_list()
            favorites.owner = UserResponse.model_validate(doer)
            return [favorites] + await ListService.add_list_details(result.all(), db)

        if namespace_id == SAVED_FILTERS_PSEUDO_NAMESPACE_ID:
            return [
                SavedFilterService.to_list(f, doer)
                for f in await SavedFilterService.get_for_user(doer, db)
            ]

        namespace = await NamespaceService.get_simple_by_id(namespace_id, db)
        lists = await ListService.get_lists_by_namespace_id(namespace.id, db)
        return await ListService.add_list_details(lists, db)

    @staticmethod
    async def create(
        data: NamespaceCreate, auth: Auth, db: AsyncSession
    ) -> NamespaceResponse:
        if not data.title:
            raise ErrNamespaceNameCannotBeEmpty()

        owner = await UserService.get_from_auth(auth, db)
        namespace = Namespace.model_validate(data, update={"owner_id": owner.id})
        db.add(namespace)
        await db.commit()
        await db.refresh(namespace)

        await metrics.update_count(1, metrics.NAMESPACE_COUNT_KEY)
        return await NamespaceService._with_owner(namespace, db)

    @staticmethod
    async def update(
        namespace_id: int, data: NamespaceUpdate, db: AsyncSession
    ) -> NamespaceResponse:
        fields = data.model_fields_set
        if "title" in fields and not data.title:
            raise ErrNamespaceNameCannotBeEmpty(namespace_id=namespace_id)

        namespace = await NamespaceService.get_simple_by_id(namespace_id, db)

        # An archived namespace can only be un-archived
        if namespace.is_archived and (
            "is_archived" not in fields or data.is_archived
        ):
            raise ErrNamespaceIsArchived(namespace_id=namespace_id)

        if data.owner_id is not None:
            owner = await UserService.get_user_by_id(data.owner_id, db)
            namespace.owner_id = owner.id

        if "title" in fields:
            namespace.title = data.title
        if data.description:
            namespace.description = data.description
        if "hex_color" in fields:
            namespace.hex_color = data.hex_color
        if "is_archived" in fields:
            namespace.is_archived = data.is_archived

        namespace.touch()
        await db.commit()
        await db.refresh(namespace)
        return await NamespaceService._with_owner(namespace, db)

    @staticmethod
    async def delete(namespace_id: int, db: AsyncSession):
        namespace = await NamespaceService.get_simple_by_id(namespace_id, db)

        lists = await ListService.get_lists_by_namespace_id(namespace.id, db)
        await ListService.delete_lists(lists, db)

        for model in (TeamNamespace, NamespaceUser):
            rows = await db.exec(select(model).where(model.namespace_id == namespace.id))
            for row in rows.all():
                await db.delete(row)

        await db.flush()
        await db.delete(namespace)
        await db.commit()

        await metrics.update_count(-1, metrics.NAMESPACE_COUNT_KEY)

    # Rights

    @staticmethod
    async def _right(namespace_id: int, auth: Auth, db: AsyncSession) -> Right | None:
        namespace = await NamespaceService.get_simple_by_id(namespace_id, db)
        return await permissions.namespace_right(auth.id, namespace, db)

    @staticmethod
    async def can_read(namespace_id: int, auth: Auth, db: AsyncSession) -> bool:
        if isinstance(auth, LinkSharing):
            return False
        if namespace_id in PSEUDO_NAMESPACE_IDS:
            return True
        return await NamespaceService._right(namespace_id, auth, db) is not None

    @staticmethod
    async def can_write(namespace_id: int, auth: Auth, db: AsyncSession) -> bool:
        if isinstance(auth, LinkSharing) or namespace_id < 0:
            return False
        right = await NamespaceService._right(namespace_id, auth, db)
        return right is not None and right >= Right.WRITE

    @staticmethod
    async def is_admin(namespace_id: int, auth: Auth, db: AsyncSession) -> bool:
        if isinstance(auth, LinkSharing) or namespace_id < 0:
            return False
        return await NamespaceService._right(namespace_id, auth, db) == Right.ADMIN

    @staticmethod
    async def can_create(auth: Auth, db: AsyncSession) -> bool:
        # Every user can have namespaces
        return not isinstance(auth, LinkSharing)

    @staticmethod
    async def can_update(namespace_id: int, auth: Auth, db: AsyncSession) -> bool:
        return await NamespaceService.is_admin(namespace_id, auth, db)

    @staticmethod
    async def can_delete(namespace_id: int, auth: Auth, db: AsyncSession) -> bool:
        return await NamespaceService.is_admin(namespace_id, auth, db)
