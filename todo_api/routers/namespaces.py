from fastapi import APIRouter, Depends, Query, Response, status
from sqlmodel.ext.asyncio.session import AsyncSession

from todo_api.core.auth import AuthDep, check_right
from todo_api.core.pagination import PageDep
from todo_api.database import get_db
from todo_api.models.namespace import (
    NamespaceCreate,
    NamespaceResponse,
    NamespaceUpdate,
    NamespaceWithLists,
)
from todo_api.models.todo_list import ListCreate, ListResponse
from todo_api.services.list_service import ListService
from todo_api.services.namespace_service import NamespaceService

router = APIRouter(prefix="/api/v1/namespaces", tags=["namespaces"])


@router.get("", response_model=list[NamespaceWithLists])
async def get_namespaces(
    response: Response,
    auth: AuthDep,
    params: PageDep,
    is_archived: bool = Query(default=False),
    db: AsyncSession = Depends(get_db),
):
    """All namespaces of the user with their lists, pseudo namespaces first"""
    namespaces, count, total = await NamespaceService.read_all(
        auth, db, params.search, params.page, params.per_page, is_archived
    )
    params.set_headers(response, total, count)
    return namespaces


@router.post("", response_model=NamespaceResponse, status_code=status.HTTP_201_CREATED)
async def create_namespace(
    data: NamespaceCreate, auth: AuthDep, db: AsyncSession = Depends(get_db)
):
    check_right(await NamespaceService.can_create(auth, db))
    return await NamespaceService.create(data, auth, db)


@router.get("/{namespace_id}", response_model=NamespaceResponse)
async def get_namespace(
    namespace_id: int, auth: AuthDep, db: AsyncSession = Depends(get_db)
):
    check_right(await NamespaceService.can_read(namespace_id, auth, db))
    return await NamespaceService.read_one(namespace_id, auth, db)


@router.patch("/{namespace_id}", response_model=NamespaceResponse)
async def update_namespace(
    namespace_id: int,
    data: NamespaceUpdate,
    auth: AuthDep,
    db: AsyncSession = Depends(get_db),
):
    check_right(await NamespaceService.can_update(namespace_id, auth, db))
    return await NamespaceService.update(namespace_id, data, db)


@router.delete("/{namespace_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_namespace(
    namespace_id: int, auth: AuthDep, db: AsyncSession = Depends(get_db)
):
    check_right(await NamespaceService.can_delete(namespace_id, auth, db))
    await NamespaceService.delete(namespace_id, db)


@router.get("/{namespace_id}/lists", response_model=list[ListResponse])
async def get_namespace_lists(
    namespace_id: int, auth: AuthDep, db: AsyncSession = Depends(get_db)
):
    check_right(await NamespaceService.can_read(namespace_id, auth, db))
    return await NamespaceService.get_lists(namespace_id, auth, db)


@router.post(
    "/{namespace_id}/lists",
    response_model=ListResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_list(
    namespace_id: int,
    data: ListCreate,
    auth: AuthDep,
    db: AsyncSession = Depends(get_db),
):
    """Create a new list in a namespace"""
    check_right(await ListService.can_create(namespace_id, auth, db))
    return await ListService.create(data, namespace_id, auth, db)
