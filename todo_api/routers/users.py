from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from todo_api.core.auth import UserDep
from todo_api.core.pagination import PageDep
from todo_api.database import get_db
from todo_api.models.common import Message
from todo_api.models.user import CurrentUserResponse, PasswordUpdate, UserResponse
from todo_api.services.user_service import UserService

router = APIRouter(prefix="/api/v1", tags=["users"])


@router.get("/user", response_model=CurrentUserResponse)
async def current_user(user: UserDep, db: AsyncSession = Depends(get_db)):
    return await UserService.get_user_by_id(user.id, db)


@router.post("/user/password", response_model=Message)
async def update_password(
    data: PasswordUpdate, user: UserDep, db: AsyncSession = Depends(get_db)
):
    await UserService.update_password(user, data, db)
    return Message(message="The password was updated successfully.")


@router.get("/users", response_model=list[UserResponse])
async def search_users(
    user: UserDep, params: PageDep, db: AsyncSession = Depends(get_db)
):
    """Search users by their username"""
    return await UserService.search(params.search, db, params.page, params.per_page)
