from datetime import datetime
from enum import IntEnum

from sqlmodel import Field, SQLModel

from todo_api.models.common import Right, Timestamps
from todo_api.models.user import UserResponse


class SharingType(IntEnum):
    UNDEFINED = 0
    WITHOUT_PASSWORD = 1
    WITH_PASSWORD = 2


class LinkSharing(Timestamps, table=True):
    """A public link giving access to a single list"""

    __tablename__ = "link_sharing"

    id: int | None = Field(default=None, primary_key=True)
    hash: str = Field(max_length=40, unique=True, index=True)
    list_id: int = Field(index=True, foreign_key="lists.id")
    right: int = Field(default=Right.READ)
    sharing_type: int = Field(default=SharingType.UNDEFINED)
    password: str = Field(default="", max_length=250)
    shared_by_id: int = Field(index=True, foreign_key="users.id")


class LinkSharingCreate(SQLModel):
    right: int = Right.READ
    sharing_type: int = SharingType.WITHOUT_PASSWORD
    password: str = ""


class LinkSharingResponse(SQLModel):
    id: int
    hash: str
    list_id: int
    right: int
    sharing_type: int
    shared_by: UserResponse | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class LinkShareAuth(SQLModel):
    password: str = ""


class LinkShareToken(SQLModel):
    token: str
    list_id: int
