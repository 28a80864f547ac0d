from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel.ext.asyncio.session import AsyncSession
from typing_extensions import Annotated

from todo_api import metrics
from todo_api.core.config import get_settings
from todo_api.core.errors import ErrGenericForbidden, ErrInvalidToken, ErrUserDoesNotExist
from todo_api.core.security import AUTH_TYPE_LINK_SHARE, decode_token
from todo_api.database import get_db
from todo_api.models.auth import Auth
from todo_api.models.link_sharing import LinkSharing
from todo_api.models.user import User

bearer = HTTPBearer(auto_error=False)


async def get_auth(
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
    db: AsyncSession = Depends(get_db),
) -> Auth:
    """Resolve the bearer token into the acting user or link share"""
    if creds is None or not creds.credentials:
        raise ErrInvalidToken("Missing bearer token.")

    claims = decode_token(creds.credentials)

    if claims["type"] == AUTH_TYPE_LINK_SHARE:
        share = await db.get(LinkSharing, claims["id"])
        if share is None or share.hash != claims.get("hash"):
            raise ErrInvalidToken()
        return share

    user = await db.get(User, claims["id"])
    if user is None:
        raise ErrUserDoesNotExist(user_id=claims["id"])

    if get_settings().enable_metrics:
        await metrics.set_user_active(user.id)
    return user


async def get_current_user(auth: Auth = Depends(get_auth)) -> User:
    """Like get_auth, but link shares are not allowed"""
    if isinstance(auth, LinkSharing):
        raise ErrGenericForbidden()
    return auth


AuthDep = Annotated[Auth, Depends(get_auth)]
UserDep = Annotated[User, Depends(get_current_user)]
DbDep = Annotated[AsyncSession, Depends(get_db)]


def check_right(allowed: bool):
    """Turn a failed rights check into a 403"""
    if not allowed:
        raise ErrGenericForbidden()
