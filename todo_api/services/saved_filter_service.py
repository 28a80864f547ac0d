from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from todo_api.core.errors import (
    ErrSavedFilterDoesNotExist,
    ErrSavedFilterNotAvailableForLinkShare,
)
from todo_api.models.auth import Auth
from todo_api.models.link_sharing import LinkSharing
from todo_api.models.namespace import SAVED_FILTERS_PSEUDO_NAMESPACE_ID
from todo_api.models.saved_filter import (
    SavedFilter,
    SavedFilterCreate,
    SavedFilterResponse,
    SavedFilterUpdate,
)
from todo_api.models.task import TaskFilter
from todo_api.models.todo_list import ListResponse, get_list_id_from_saved_filter_id
from todo_api.models.user import UserResponse
from todo_api.services.user_service import UserService


class SavedFilterService:
    @staticmethod
    async def get_by_id(filter_id: int, db: AsyncSession) -> SavedFilter:
        saved_filter = await db.get(SavedFilter, filter_id) if filter_id > 0 else None
        if not saved_filter:
            raise ErrSavedFilterDoesNotExist(filter_id=filter_id)
        return saved_filter

    @staticmethod
    async def get_for_user(auth: Auth, db: AsyncSession) -> list[SavedFilter]:
        """All saved filters of the acting user, link shares never have any"""
        if isinstance(auth, LinkSharing):
            return []
        result = await db.exec(
            select(SavedFilter)
            .where(SavedFilter.owner_id == auth.id)
            .order_by(SavedFilter.id)
        )
        return result.all()

    @staticmethod
    def task_filter(saved_filter: SavedFilter) -> TaskFilter:
        return TaskFilter.model_validate(saved_filter.filters or {})

    @staticmethod
    def to_response(saved_filter: SavedFilter, owner=None) -> SavedFilterResponse:
        response = SavedFilterResponse(
            id=saved_filter.id,
            title=saved_filter.title,
            description=saved_filter.description,
            filters=SavedFilterService.task_filter(saved_filter),
            created_at=saved_filter.created_at,
            updated_at=saved_filter.updated_at,
        )
        if owner is not None:
            response.owner = UserResponse.model_validate(owner)
        return response

    @staticmethod
    def to_list(saved_filter: SavedFilter, owner=None) -> ListResponse:
        """Represent a saved filter as a pseudo list"""
        return ListResponse(
            id=get_list_id_from_saved_filter_id(saved_filter.id),
            title=saved_filter.title,
            description=saved_filter.description,
            namespace_id=SAVED_FILTERS_PSEUDO_NAMESPACE_ID,
            owner=UserResponse.model_validate(owner) if owner is not None else None,
            created_at=saved_filter.created_at,
            updated_at=saved_filter.updated_at,
        )

    @staticmethod
    async def create(
        data: SavedFilterCreate, auth: Auth, db: AsyncSession
    ) -> SavedFilterResponse:
        if isinstance(auth, LinkSharing):
            raise ErrSavedFilterNotAvailableForLinkShare()
        owner = await UserService.get_from_auth(auth, db)
        saved_filter = SavedFilter(
            title=data.title,
            description=data.description,
            filters=data.filters.model_dump(),
            owner_id=owner.id,
        )
        db.add(saved_filter)
        await db.commit()
        await db.refresh(saved_filter)
        return SavedFilterService.to_response(saved_filter, owner)

    @staticmethod
    async def read_one(filter_id: int, db: AsyncSession) -> SavedFilterResponse:
        saved_filter = await SavedFilterService.get_by_id(filter_id, db)
        owner = await UserService.get_user_by_id(saved_filter.owner_id, db)
        return SavedFilterService.to_response(saved_filter, owner)

    @staticmethod
    async def update(
        filter_id: int, data: SavedFilterUpdate, db: AsyncSession
    ) -> SavedFilterResponse:
        saved_filter = await SavedFilterService.get_by_id(filter_id, db)
        if data.title is not None:
            saved_filter.title = data.title
        if data.description is not None:
            saved_filter.description = data.description
        if data.filters is not None:
            saved_filter.filters = data.filters.model_dump()
        saved_filter.touch()

        await db.commit()
        await db.refresh(saved_filter)
        owner = await UserService.get_user_by_id(saved_filter.owner_id, db)
        return SavedFilterService.to_response(saved_filter, owner)

    @staticmethod
    async def delete(filter_id: int, db: AsyncSession):
        saved_filter = await SavedFilterService.get_by_id(filter_id, db)
        await db.delete(saved_filter)
        await db.commit()

    # Rights: only the owner may do anything with a saved filter

    @staticmethod
    async def _is_owner(filter_id: int, auth: Auth, db: AsyncSession) -> bool:
        if isinstance(auth, LinkSharing):
            raise ErrSavedFilterNotAvailableForLinkShare()
        saved_filter = await SavedFilterService.get_by_id(filter_id, db)
        return saved_filter.owner_id == auth.id

    @staticmethod
    async def can_create(auth: Auth, db: AsyncSession) -> bool:
        if isinstance(auth, LinkSharing):
            raise ErrSavedFilterNotAvailableForLinkShare()
        return True

    can_read = _is_owner
    can_update = _is_owner
    can_delete = _is_owner
