"""Shares of namespaces and lists with teams and individual users."""

from datetime import datetime

from sqlmodel import Field, SQLModel

from todo_api.models.common import Right, Timestamps
from todo_api.models.team import TeamResponse
from todo_api.models.user import UserResponse


class TeamNamespace(Timestamps, table=True):
    __tablename__ = "team_namespaces"

    id: int | None = Field(default=None, primary_key=True)
    team_id: int = Field(index=True, foreign_key="teams.id")
    namespace_id: int = Field(index=True, foreign_key="namespaces.id")
    right: int = Field(default=Right.READ)


class NamespaceUser(Timestamps, table=True):
    __tablename__ = "users_namespace"

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(index=True, foreign_key="users.id")
    namespace_id: int = Field(index=True, foreign_key="namespaces.id")
    right: int = Field(default=Right.READ)


class TeamList(Timestamps, table=True):
    __tablename__ = "team_list"

    id: int | None = Field(default=None, primary_key=True)
    team_id: int = Field(index=True, foreign_key="teams.id")
    list_id: int = Field(index=True, foreign_key="lists.id")
    right: int = Field(default=Right.READ)


class ListUser(Timestamps, table=True):
    __tablename__ = "users_list"

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(index=True, foreign_key="users.id")
    list_id: int = Field(index=True, foreign_key="lists.id")
    right: int = Field(default=Right.READ)


class TeamShareCreate(SQLModel):
    team_id: int
    right: int = Right.READ


class UserShareCreate(SQLModel):
    username: str
    right: int = Right.READ


class ShareUpdate(SQLModel):
    right: int


class TeamShareResponse(SQLModel):
    """A share of a namespace or list with a team"""

    id: int
    team_id: int
    right: int
    created_at: datetime
    updated_at: datetime


class UserShareResponse(SQLModel):
    """A share of a namespace or list with a single user"""

    id: int
    user_id: int
    right: int
    created_at: datetime
    updated_at: datetime


class TeamWithRight(TeamResponse):
    right: int


class UserWithRight(UserResponse):
    right: int
