import secrets
import string
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt

from todo_api.core.config import get_settings
from todo_api.core.errors import ErrInvalidToken

AUTH_TYPE_USER = 1
AUTH_TYPE_LINK_SHARE = 2

JWT_ALGORITHM = "HS256"

_RANDOM_ALPHABET = string.ascii_letters + string.digits


def hash_password(password: str) -> str:
    """Hash a password using bcrypt"""
    salt = bcrypt.gensalt(rounds=12)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash"""
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed hash
        return False


def make_random_string(length: int) -> str:
    return "".join(secrets.choice(_RANDOM_ALPHABET) for _ in range(length))


def _encode(claims: dict) -> str:
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload = {
        **claims,
        "iat": now,
        "exp": now + timedelta(seconds=settings.jwt_ttl_seconds),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=JWT_ALGORITHM)


def new_user_token(user) -> str:
    """Issue a JWT for a user"""
    return _encode(
        {"type": AUTH_TYPE_USER, "id": user.id, "username": user.username}
    )


def new_link_share_token(share) -> str:
    """Issue a JWT for a link share"""
    return _encode(
        {
            "type": AUTH_TYPE_LINK_SHARE,
            "id": share.id,
            "hash": share.hash,
            "list_id": share.list_id,
            "right": int(share.right),
        }
    )


def decode_token(token: str) -> dict:
    """Verify and decode a JWT, raising ErrInvalidToken when it can't be trusted"""
    try:
        claims = jwt.decode(
            token, get_settings().jwt_secret, algorithms=[JWT_ALGORITHM]
        )
    except jwt.ExpiredSignatureError:
        raise ErrInvalidToken("The token has expired.")
    except jwt.InvalidTokenError:
        raise ErrInvalidToken()

    if claims.get("type") not in (AUTH_TYPE_USER, AUTH_TYPE_LINK_SHARE) or not isinstance(
        claims.get("id"), int
    ):
        raise ErrInvalidToken()
    return claims
