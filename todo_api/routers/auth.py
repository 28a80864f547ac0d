from fastapi import APIRouter, Depends, status
from sqlmodel.ext.asyncio.session import AsyncSession

from todo_api.core.auth import AuthDep
from todo_api.core.security import new_link_share_token, new_user_token
from todo_api.database import get_db
from todo_api.models.common import Message
from todo_api.models.link_sharing import LinkShareAuth, LinkShareToken, LinkSharing
from todo_api.models.user import (
    EmailConfirm,
    PasswordReset,
    PasswordTokenRequest,
    Token,
    UserLogin,
    UserRegister,
    UserResponse,
)
from todo_api.services.link_share_service import LinkShareService
from todo_api.services.user_service import UserService

router = APIRouter(prefix="/api/v1", tags=["auth"])


@router.post(
    "/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED
)
async def register(data: UserRegister, db: AsyncSession = Depends(get_db)):
    """Create a new user account"""
    return await UserService.register(data, db)


@router.post("/login", response_model=Token)
async def login(data: UserLogin, db: AsyncSession = Depends(get_db)):
    user = await UserService.check_user_credentials(data, db)
    return Token(token=new_user_token(user))


@router.post("/user/token", response_model=Token)
async def renew_token(auth: AuthDep, db: AsyncSession = Depends(get_db)):
    """Issue a fresh token for whoever is logged in"""
    if isinstance(auth, LinkSharing):
        share = await LinkShareService.get_by_id(auth.id, db)
        return Token(token=new_link_share_token(share))
    user = await UserService.get_user_by_id(auth.id, db)
    return Token(token=new_user_token(user))


@router.post("/email/confirm", response_model=Message)
async def confirm_email(data: EmailConfirm, db: AsyncSession = Depends(get_db)):
    await UserService.confirm_email(data, db)
    return Message(message="The email was confirmed successfully.")


@router.post("/user/password/token", response_model=Message)
async def request_password_reset_token(
    data: PasswordTokenRequest, db: AsyncSession = Depends(get_db)
):
    await UserService.request_password_reset_token(data, db)
    return Message(message="Token was sent.")


@router.post("/user/password/reset", response_model=Message)
async def reset_password(data: PasswordReset, db: AsyncSession = Depends(get_db)):
    await UserService.reset_password(data, db)
    return Message(message="The password was updated successfully.")


@router.post("/shares/{share_hash}/auth", response_model=LinkShareToken)
async def authenticate_link_share(
    share_hash: str, data: LinkShareAuth, db: AsyncSession = Depends(get_db)
):
    """Get a token for a link share"""
    return await LinkShareService.authenticate(share_hash, data.password, db)
