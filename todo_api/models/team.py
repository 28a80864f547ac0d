from datetime import datetime

from sqlalchemy import DateTime, Text
from sqlmodel import Field, SQLModel

from todo_api.models.common import Timestamps, get_utc_now
from todo_api.models.user import UserResponse


class TeamBase(SQLModel):
    """Base model with shared fields"""

    name: str = Field(default="", max_length=250)
    description: str = Field(default="", sa_type=Text)


class Team(TeamBase, Timestamps, table=True):
    """Database model"""

    __tablename__ = "teams"

    id: int | None = Field(default=None, primary_key=True)
    created_by_id: int = Field(index=True, foreign_key="users.id")


class TeamMember(SQLModel, table=True):
    """Membership of a user in a team"""

    __tablename__ = "team_members"

    id: int | None = Field(default=None, primary_key=True)
    team_id: int = Field(index=True, foreign_key="teams.id")
    user_id: int = Field(index=True, foreign_key="users.id")
    admin: bool = Field(default=False)
    created_at: datetime = Field(
        default_factory=get_utc_now, sa_type=DateTime(timezone=True)
    )


class TeamCreate(TeamBase):
    pass


class TeamUpdate(TeamBase):
    pass


class TeamMemberCreate(SQLModel):
    username: str
    admin: bool = False


class TeamUser(UserResponse):
    """A team member as returned with a team"""

    admin: bool = False


class TeamMemberResponse(SQLModel):
    id: int
    team_id: int
    username: str
    admin: bool
    created_at: datetime


class TeamResponse(TeamBase):
    """Schema for team responses"""

    id: int
    created_by: UserResponse | None = None
    members: list[TeamUser] = []
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
