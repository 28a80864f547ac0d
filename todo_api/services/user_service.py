from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from todo_api import metrics
from todo_api.core.config import get_settings
from todo_api.core.errors import (
    ErrEmailNotConfirmed,
    ErrEmptyNewPassword,
    ErrGenericForbidden,
    ErrInvalidEmailConfirmToken,
    ErrInvalidPasswordResetToken,
    ErrNoPasswordResetToken,
    ErrNoUsernamePassword,
    ErrRegistrationDisabled,
    ErrUserDoesNotExist,
    ErrUserEmailExists,
    ErrUsernameExists,
    ErrWrongUsernameOrPassword,
)
from todo_api.core.pagination import get_limit_from_page_index
from todo_api.core.security import hash_password, make_random_string, verify_password
from todo_api.mail import send_mail_with_template
from todo_api.models.auth import Auth
from todo_api.models.link_sharing import LinkSharing
from todo_api.models.user import (
    EmailConfirm,
    PasswordReset,
    PasswordTokenRequest,
    PasswordUpdate,
    User,
    UserLogin,
    UserRegister,
)

PASSWORD_RESET_TOKEN_LENGTH = 400
EMAIL_CONFIRM_TOKEN_LENGTH = 64


class UserService:
    @staticmethod
    async def get_user_by_id(user_id: int, db: AsyncSession) -> User:
        if not user_id or user_id < 1:
            raise ErrUserDoesNotExist(user_id=user_id)
        user = await db.get(User, user_id)
        if not user:
            raise ErrUserDoesNotExist(user_id=user_id)
        return user

    @staticmethod
    async def get_user_by_username(username: str, db: AsyncSession) -> User:
        if not username:
            raise ErrUserDoesNotExist(username=username)
        result = await db.exec(select(User).where(User.username == username))
        user = result.first()
        if not user:
            raise ErrUserDoesNotExist(username=username)
        return user

    @staticmethod
    async def get_users_by_ids(ids, db: AsyncSession) -> dict[int, User]:
        ids = {i for i in ids if i}
        if not ids:
            return {}
        result = await db.exec(select(User).where(col(User.id).in_(ids)))
        return {u.id: u for u in result.all()}

    @staticmethod
    async def get_from_auth(auth: Auth, db: AsyncSession) -> User:
        """Resolve the acting user, link shares have none."""
        if isinstance(auth, LinkSharing):
            raise ErrGenericForbidden()
        return await UserService.get_user_by_id(auth.id, db)

    @staticmethod
    async def search(
        search: str, db: AsyncSession, page: int = -1, per_page: int = 0
    ) -> list[User]:
        query = select(User).where(col(User.username).contains(search)).order_by(User.id)
        limit, start = get_limit_from_page_index(page, per_page)
        if limit > 0:
            query = query.offset(start).limit(limit)
        result = await db.exec(query)
        return result.all()

    @staticmethod
    async def register(data: UserRegister, db: AsyncSession) -> User:
        settings = get_settings()
        if not settings.enable_registration:
            raise ErrRegistrationDisabled()

        if not data.username or not data.password or not data.email:
            raise ErrNoUsernamePassword()

        existing = await db.exec(select(User).where(User.username == data.username))
        if existing.first():
            raise ErrUsernameExists(username=data.username)

        existing = await db.exec(select(User).where(User.email == data.email))
        if existing.first():
            raise ErrUserEmailExists(email=data.email)

        user = User(
            username=data.username,
            email=data.email,
            password=hash_password(data.password),
        )
        # Users need to confirm their email before logging in when mails can be sent
        if settings.mailer_enabled:
            user.is_active = False
            user.email_confirm_token = make_random_string(EMAIL_CONFIRM_TOKEN_LENGTH)

        db.add(user)
        await db.commit()
        await db.refresh(user)

        await metrics.update_count(1, metrics.USER_COUNT_KEY)

        if user.email_confirm_token:
            send_mail_with_template(
                user.email,
                "Please confirm your email address",
                "confirm-email",
                {"username": user.username, "token": user.email_confirm_token},
            )
        return user

    @staticmethod
    async def confirm_email(data: EmailConfirm, db: AsyncSession) -> User:
        if not data.token:
            raise ErrInvalidEmailConfirmToken()
        result = await db.exec(
            select(User).where(User.email_confirm_token == data.token)
        )
        user = result.first()
        if not user:
            raise ErrInvalidEmailConfirmToken()

        user.is_active = True
        user.email_confirm_token = None
        user.touch()
        await db.commit()
        await db.refresh(user)
        return user

    @staticmethod
    async def check_user_credentials(data: UserLogin, db: AsyncSession) -> User:
        if not data.username or not data.password:
            raise ErrNoUsernamePassword()

        result = await db.exec(select(User).where(User.username == data.username))
        user = result.first()
        if not user or not verify_password(data.password, user.password):
            raise ErrWrongUsernameOrPassword()

        if not user.is_active and user.email_confirm_token:
            raise ErrEmailNotConfirmed(user_id=user.id)
        return user

    @staticmethod
    async def request_password_reset_token(
        data: PasswordTokenRequest, db: AsyncSession
    ):
        if not data.email:
            raise ErrNoUsernamePassword()

        result = await db.exec(select(User).where(User.email == data.email))
        user = result.first()
        if not user:
            raise ErrUserDoesNotExist(email=data.email)

        user.password_reset_token = make_random_string(PASSWORD_RESET_TOKEN_LENGTH)
        await db.commit()

        send_mail_with_template(
            user.email,
            "Reset your password",
            "reset-password",
            {"username": user.username, "token": user.password_reset_token},
        )
        return user

    @staticmethod
    async def reset_password(data: PasswordReset, db: AsyncSession) -> User:
        if not data.new_password:
            raise ErrNoUsernamePassword()
        if not data.token:
            raise ErrNoPasswordResetToken()

        result = await db.exec(
            select(User).where(User.password_reset_token == data.token)
        )
        user = result.first()
        if not user:
            raise ErrInvalidPasswordResetToken()

        user.password = hash_password(data.new_password)
        user.password_reset_token = None
        user.touch()
        await db.commit()

        send_mail_with_template(
            user.email,
            "Your password was changed",
            "password-changed",
            {"username": user.username},
        )
        return user

    @staticmethod
    async def update_password(user: User, data: PasswordUpdate, db: AsyncSession):
        if not data.new_password:
            raise ErrEmptyNewPassword()
        user = await UserService.get_user_by_id(user.id, db)
        if not verify_password(data.old_password, user.password):
            raise ErrWrongUsernameOrPassword()

        user.password = hash_password(data.new_password)
        user.touch()
        await db.commit()
