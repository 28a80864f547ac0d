from datetime import datetime

from sqlalchemy import Text
from sqlmodel import Field, SQLModel

from todo_api.models.common import Timestamps, get_utc_now
from todo_api.models.todo_list import ListResponse
from todo_api.models.user import UserResponse

SHARED_LISTS_PSEUDO_NAMESPACE_ID = -1
FAVORITES_PSEUDO_NAMESPACE_ID = -2
SAVED_FILTERS_PSEUDO_NAMESPACE_ID = -3


class NamespaceBase(SQLModel):
    """Base model with shared fields"""

    title: str = Field(default="", max_length=250)
    description: str = Field(default="", sa_type=Text)
    hex_color: str = Field(default="", max_length=6)
    is_archived: bool = Field(default=False)


class Namespace(NamespaceBase, Timestamps, table=True):
    """Database model"""

    __tablename__ = "namespaces"

    id: int | None = Field(default=None, primary_key=True)
    owner_id: int = Field(index=True, foreign_key="users.id")


class NamespaceCreate(NamespaceBase):
    """Schema for creating a namespace"""

    pass


class NamespaceUpdate(NamespaceBase):
    """Schema for updating a namespace. Passing an owner id transfers it."""

    owner_id: int | None = None


class NamespaceResponse(NamespaceBase):
    """Schema for namespace responses"""

    id: int
    owner: UserResponse | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class NamespaceWithLists(NamespaceResponse):
    """A namespace together with the lists visible in it"""

    lists: list[ListResponse] = []


def _pseudo_namespace(id: int, title: str, description: str) -> NamespaceWithLists:
    now = get_utc_now()
    return NamespaceWithLists(
        id=id, title=title, description=description, created_at=now, updated_at=now
    )


def shared_lists_pseudo_namespace() -> NamespaceWithLists:
    return _pseudo_namespace(
        SHARED_LISTS_PSEUDO_NAMESPACE_ID,
        "Shared Lists",
        "Lists of other users shared with you via teams or directly.",
    )


def favorites_pseudo_namespace() -> NamespaceWithLists:
    return _pseudo_namespace(
        FAVORITES_PSEUDO_NAMESPACE_ID, "Favorites", "Favorite lists and tasks."
    )


def saved_filters_pseudo_namespace() -> NamespaceWithLists:
    return _pseudo_namespace(
        SAVED_FILTERS_PSEUDO_NAMESPACE_ID, "Filters", "Saved filters."
    )


PSEUDO_NAMESPACE_IDS = (
    SHARED_LISTS_PSEUDO_NAMESPACE_ID,
    FAVORITES_PSEUDO_NAMESPACE_ID,
    SAVED_FILTERS_PSEUDO_NAMESPACE_ID,
)
