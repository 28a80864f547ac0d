from datetime import datetime

from sqlmodel import Field, SQLModel

from todo_api.models.common import Timestamps


class User(Timestamps, table=True):
    """Database model"""

    __tablename__ = "users"

    id: int | None = Field(default=None, primary_key=True)
    username: str = Field(max_length=250, unique=True, index=True)
    email: str = Field(default="", max_length=250, index=True)
    password: str = Field(default="", max_length=250)
    is_active: bool = Field(default=True)
    password_reset_token: str | None = Field(default=None, max_length=450)
    email_confirm_token: str | None = Field(default=None, max_length=450)


class UserResponse(SQLModel):
    """Public representation of a user"""

    id: int
    username: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class CurrentUserResponse(UserResponse):
    """The authenticated user, including the email address"""

    email: str


class UserRegister(SQLModel):
    username: str = Field(default="", max_length=250)
    email: str = Field(default="", max_length=250)
    password: str = Field(default="")


class UserLogin(SQLModel):
    username: str = ""
    password: str = ""


class EmailConfirm(SQLModel):
    token: str = ""


class PasswordTokenRequest(SQLModel):
    email: str = Field(default="", max_length=250)


class PasswordReset(SQLModel):
    # The previously issued reset token.
    token: str = ""
    new_password: str = ""


class PasswordUpdate(SQLModel):
    old_password: str = ""
    new_password: str = ""


class Token(SQLModel):
    token: str
