from fastapi import APIRouter, Depends, status
from sqlmodel.ext.asyncio.session import AsyncSession

from todo_api.core.auth import AuthDep, check_right
from todo_api.core.errors import ErrBucketDoesNotBelongToList
from todo_api.database import get_db
from todo_api.models.bucket import BucketCreate, BucketResponse, BucketUpdate
from todo_api.services.bucket_service import BucketService

router = APIRouter(prefix="/api/v1/lists/{list_id}/buckets", tags=["buckets"])


async def _check_bucket_in_list(bucket_id: int, list_id: int, db: AsyncSession):
    bucket = await BucketService.get_by_id(bucket_id, db)
    if bucket.list_id != list_id:
        raise ErrBucketDoesNotBelongToList(bucket_id=bucket_id, list_id=list_id)


@router.get("", response_model=list[BucketResponse])
async def get_buckets(list_id: int, auth: AuthDep, db: AsyncSession = Depends(get_db)):
    """All kanban buckets of a list with their tasks"""
    check_right(await BucketService.can_read(list_id, auth, db))
    return await BucketService.read_all(list_id, db)


@router.post("", response_model=BucketResponse, status_code=status.HTTP_201_CREATED)
async def create_bucket(
    list_id: int, data: BucketCreate, auth: AuthDep, db: AsyncSession = Depends(get_db)
):
    check_right(await BucketService.can_create(list_id, auth, db))
    return await BucketService.create(list_id, data, auth, db)


@router.patch("/{bucket_id}", response_model=BucketResponse)
async def update_bucket(
    list_id: int,
    bucket_id: int,
    data: BucketUpdate,
    auth: AuthDep,
    db: AsyncSession = Depends(get_db),
):
    await _check_bucket_in_list(bucket_id, list_id, db)
    check_right(await BucketService.can_update(bucket_id, auth, db))
    return await BucketService.update(bucket_id, data, db)


@router.delete("/{bucket_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_bucket(
    list_id: int, bucket_id: int, auth: AuthDep, db: AsyncSession = Depends(get_db)
):
    await _check_bucket_in_list(bucket_id, list_id, db)
    check_right(await BucketService.can_delete(bucket_id, auth, db))
    await BucketService.delete(bucket_id, db)
