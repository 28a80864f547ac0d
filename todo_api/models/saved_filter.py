from datetime import datetime

from sqlalchemy import JSON, Text
from sqlmodel import Field, SQLModel

from todo_api.models.common import Timestamps
from todo_api.models.task import TaskFilter
from todo_api.models.user import UserResponse


class SavedFilter(Timestamps, table=True):
    """A task filter stored by a user, shown as a pseudo list"""

    __tablename__ = "saved_filters"

    id: int | None = Field(default=None, primary_key=True)
    title: str = Field(max_length=250)
    description: str = Field(default="", sa_type=Text)
    filters: dict = Field(default_factory=dict, sa_type=JSON)
    owner_id: int = Field(index=True, foreign_key="users.id")


class SavedFilterCreate(SQLModel):
    title: str = Field(min_length=1, max_length=250)
    description: str = ""
    filters: TaskFilter = TaskFilter()


class SavedFilterUpdate(SQLModel):
    title: str | None = Field(default=None, min_length=1, max_length=250)
    description: str | None = None
    filters: TaskFilter | None = None


class SavedFilterResponse(SQLModel):
    id: int
    title: str
    description: str
    filters: TaskFilter
    owner: UserResponse | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
