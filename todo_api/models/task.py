from datetime import datetime

from sqlalchemy import DateTime, Text
from sqlmodel import Field, SQLModel

from todo_api.models.common import Timestamps, get_utc_now
from todo_api.models.user import UserResponse


class TaskBase(SQLModel):
    """Base model with shared fields"""

    title: str = Field(default="", max_length=250)
    description: str = Field(default="", sa_type=Text)
    done: bool = Field(default=False, index=True)
    due_date: datetime | None = Field(default=None, sa_type=DateTime(timezone=True))
    start_date: datetime | None = Field(
        default=None, sa_type=DateTime(timezone=True)
    )
    end_date: datetime | None = Field(default=None, sa_type=DateTime(timezone=True))
    priority: int = Field(default=0, ge=0)
    percent_done: float = Field(default=0, ge=0, le=1)
    hex_color: str = Field(default="", max_length=6)
    is_favorite: bool = Field(default=False)
    position: float = Field(default=0)


class Task(TaskBase, Timestamps, table=True):
    """Database model"""

    __tablename__ = "tasks"

    id: int | None = Field(default=None, primary_key=True)
    list_id: int = Field(index=True, foreign_key="lists.id")
    index: int = Field(default=0)
    created_by_id: int = Field(foreign_key="users.id")
    bucket_id: int | None = Field(default=None, index=True)
    done_at: datetime | None = Field(default=None, sa_type=DateTime(timezone=True))


class TaskCreate(TaskBase):
    """Schema for creating a task"""

    bucket_id: int | None = None


class TaskUpdate(SQLModel):
    """Schema for updating a task - all fields optional"""

    title: str | None = Field(default=None, min_length=1, max_length=250)
    description: str | None = None
    done: bool | None = None
    due_date: datetime | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    priority: int | None = Field(default=None, ge=0)
    percent_done: float | None = Field(default=None, ge=0, le=1)
    hex_color: str | None = Field(default=None, max_length=6)
    is_favorite: bool | None = None
    position: float | None = None
    bucket_id: int | None = None
    list_id: int | None = None


class TaskResponse(TaskBase):
    """Schema for task responses"""

    id: int
    list_id: int
    index: int
    identifier: str = ""
    bucket_id: int | None = None
    done_at: datetime | None = None
    created_by: UserResponse | None = None
    assignees: list[UserResponse] = []
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TaskAssignee(SQLModel, table=True):
    """A user assigned to a task"""

    __tablename__ = "task_assignees"

    id: int | None = Field(default=None, primary_key=True)
    task_id: int = Field(index=True, foreign_key="tasks.id")
    user_id: int = Field(index=True, foreign_key="users.id")
    created_at: datetime = Field(
        default_factory=get_utc_now,
        sa_type=DateTime(timezone=True),
    )


class TaskAssigneeCreate(SQLModel):
    user_id: int


class BulkAssignees(SQLModel):
    """Replaces all assignees of a task with the given users"""

    assignees: list[int] = []


class TaskFilter(SQLModel):
    """Sorting and filtering parameters of a task collection"""

    sort_by: list[str] = []
    order_by: list[str] = []
    filter_by: list[str] = []
    filter_value: list[str] = []
    filter_comparator: list[str] = []
    filter_concat: str = "and"
    filter_include_nulls: bool = False
