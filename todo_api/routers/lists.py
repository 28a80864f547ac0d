from fastapi import APIRouter, Depends, Query, Response, status
from sqlmodel.ext.asyncio.session import AsyncSession

from todo_api.core.auth import AuthDep, check_right
from todo_api.core.pagination import PageDep
from todo_api.database import get_db
from todo_api.models.todo_list import ListResponse, ListUpdate
from todo_api.services.list_service import ListService

router = APIRouter(prefix="/api/v1/lists", tags=["lists"])


@router.get("", response_model=list[ListResponse])
async def get_lists(
    response: Response,
    auth: AuthDep,
    params: PageDep,
    is_archived: bool = Query(default=False),
    db: AsyncSession = Depends(get_db),
):
    lists, count, total = await ListService.read_all(
        auth, db, params.search, params.page, params.per_page, is_archived
    )
    params.set_headers(response, total, count)
    return lists


@router.get("/{list_id}", response_model=ListResponse)
async def get_list(list_id: int, auth: AuthDep, db: AsyncSession = Depends(get_db)):
    can_read, _ = await ListService.can_read(list_id, auth, db)
    check_right(can_read)
    return await ListService.read_one(list_id, auth, db)


@router.patch("/{list_id}", response_model=ListResponse)
async def update_list(
    list_id: int, data: ListUpdate, auth: AuthDep, db: AsyncSession = Depends(get_db)
):
    check_right(await ListService.can_update(list_id, data, auth, db))
    return await ListService.update(list_id, data, db)


@router.delete("/{list_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_list(list_id: int, auth: AuthDep, db: AsyncSession = Depends(get_db)):
    check_right(await ListService.can_delete(list_id, auth, db))
    await ListService.delete(list_id, db)
