from fastapi import APIRouter, Depends, status
from sqlmodel.ext.asyncio.session import AsyncSession

from todo_api.core.auth import AuthDep, check_right
from todo_api.database import get_db
from todo_api.models.saved_filter import (
    SavedFilterCreate,
    SavedFilterResponse,
    SavedFilterUpdate,
)
from todo_api.services.saved_filter_service import SavedFilterService

router = APIRouter(prefix="/api/v1/filters", tags=["filters"])


@router.post("", response_model=SavedFilterResponse, status_code=status.HTTP_201_CREATED)
async def create_saved_filter(
    data: SavedFilterCreate, auth: AuthDep, db: AsyncSession = Depends(get_db)
):
    check_right(await SavedFilterService.can_create(auth, db))
    return await SavedFilterService.create(data, auth, db)


@router.get("/{filter_id}", response_model=SavedFilterResponse)
async def get_saved_filter(
    filter_id: int, auth: AuthDep, db: AsyncSession = Depends(get_db)
):
    check_right(await SavedFilterService.can_read(filter_id, auth, db))
    return await SavedFilterService.read_one(filter_id, db)


@router.patch("/{filter_id}", response_model=SavedFilterResponse)
async def update_saved_filter(
    filter_id: int,
    data: SavedFilterUpdate,
    auth: AuthDep,
    db: AsyncSession = Depends(get_db),
):
    check_right(await SavedFilterService.can_update(filter_id, auth, db))
    return await SavedFilterService.update(filter_id, data, db)


@router.delete("/{filter_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_saved_filter(
    filter_id: int, auth: AuthDep, db: AsyncSession = Depends(get_db)
):
    check_right(await SavedFilterService.can_delete(filter_id, auth, db))
    await SavedFilterService.delete(filter_id, db)
