from datetime import datetime

from sqlalchemy import Text
from sqlmodel import Field, SQLModel

from todo_api.models.common import Timestamps, get_utc_now
from todo_api.models.user import UserResponse

FAVORITES_PSEUDO_LIST_ID = -1


class ListBase(SQLModel):
    """Base model with shared fields"""

    title: str = Field(default="", max_length=250)
    description: str = Field(default="", sa_type=Text)
    identifier: str = Field(default="", max_length=10)
    hex_color: str = Field(default="", max_length=6)
    is_archived: bool = Field(default=False)
    is_favorite: bool = Field(default=False)


class TodoList(ListBase, Timestamps, table=True):
    """Database model"""

    __tablename__ = "lists"

    id: int | None = Field(default=None, primary_key=True)
    namespace_id: int = Field(index=True, foreign_key="namespaces.id")
    owner_id: int = Field(index=True, foreign_key="users.id")


class ListCreate(ListBase):
    """Schema for creating a list"""

    pass


class ListUpdate(ListBase):
    """Schema for updating a list, moving it when namespace_id is set"""

    namespace_id: int | None = None


class ListResponse(ListBase):
    """Schema for list responses"""

    id: int
    namespace_id: int
    owner: UserResponse | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


def favorites_pseudo_list() -> ListResponse:
    from todo_api.models.namespace import FAVORITES_PSEUDO_NAMESPACE_ID

    now = get_utc_now()
    return ListResponse(
        id=FAVORITES_PSEUDO_LIST_ID,
        title="Favorites",
        description="This list has all tasks marked as favorites.",
        namespace_id=FAVORITES_PSEUDO_NAMESPACE_ID,
        is_favorite=True,
        created_at=now,
        updated_at=now,
    )


def get_list_id_from_saved_filter_id(filter_id: int) -> int:
    list_id = filter_id * -1 - 1
    # Saved filters are always < -1, so anything above is not a filter
    if list_id > -1:
        return 0
    return list_id


def get_saved_filter_id_from_list_id(list_id: int) -> int:
    filter_id = list_id * -1 - 1
    if filter_id < 1:
        return 0
    return filter_id
