from datetime import datetime

from sqlmodel import Field, SQLModel

from todo_api.models.common import Timestamps
from todo_api.models.task import TaskResponse
from todo_api.models.user import UserResponse

DEFAULT_BUCKET_TITLE = "Backlog"


class Bucket(Timestamps, table=True):
    """A kanban column of a list"""

    __tablename__ = "buckets"

    id: int | None = Field(default=None, primary_key=True)
    title: str = Field(max_length=250)
    list_id: int = Field(index=True, foreign_key="lists.id")
    created_by_id: int = Field(foreign_key="users.id")


class BucketCreate(SQLModel):
    title: str = Field(min_length=1, max_length=250)


class BucketUpdate(SQLModel):
    title: str = Field(min_length=1, max_length=250)


class BucketResponse(SQLModel):
    id: int
    title: str
    list_id: int
    created_by: UserResponse | None = None
    tasks: list[TaskResponse] = []
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
