from fastapi import APIRouter, Depends, Response, status
from sqlmodel.ext.asyncio.session import AsyncSession

from todo_api.core.auth import AuthDep, check_right
from todo_api.core.pagination import PageDep
from todo_api.database import get_db
from todo_api.models.link_sharing import LinkSharingCreate, LinkSharingResponse
from todo_api.services.link_share_service import LinkShareService

router = APIRouter(prefix="/api/v1/lists/{list_id}/shares", tags=["link shares"])


@router.get("", response_model=list[LinkSharingResponse])
async def get_link_shares(
    list_id: int,
    response: Response,
    auth: AuthDep,
    params: PageDep,
    db: AsyncSession = Depends(get_db),
):
    check_right(await LinkShareService.can_read(list_id, auth, db))
    shares, count, total = await LinkShareService.read_all(
        list_id, db, params.search, params.page, params.per_page
    )
    params.set_headers(response, total, count)
    return shares


@router.post(
    "", response_model=LinkSharingResponse, status_code=status.HTTP_201_CREATED
)
async def create_link_share(
    list_id: int,
    data: LinkSharingCreate,
    auth: AuthDep,
    db: AsyncSession = Depends(get_db),
):
    """Share a list through a public link"""
    check_right(await LinkShareService.can_create(list_id, data.right, auth, db))
    return await LinkShareService.create(list_id, data, auth, db)


@router.get("/{share_id}", response_model=LinkSharingResponse)
async def get_link_share(
    list_id: int, share_id: int, auth: AuthDep, db: AsyncSession = Depends(get_db)
):
    check_right(await LinkShareService.can_read(list_id, auth, db))
    return await LinkShareService.read_one(list_id, share_id, db)


@router.delete("/{share_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_link_share(
    list_id: int, share_id: int, auth: AuthDep, db: AsyncSession = Depends(get_db)
):
    check_right(await LinkShareService.can_delete(list_id, share_id, auth, db))
    await LinkShareService.delete(list_id, share_id, db)
