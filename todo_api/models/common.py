from datetime import datetime, timezone
from enum import IntEnum

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


def get_utc_now():
    """Helper function to get current UTC time with timezone"""
    return datetime.now(timezone.utc)


class Right(IntEnum):
    """Access level granted through a share."""

    READ = 0
    WRITE = 1
    ADMIN = 2

    @classmethod
    def is_valid(cls, value: int) -> bool:
        return value in cls._value2member_map_


class Timestamps(SQLModel):
    """Creation and modification timestamps shared by most tables"""

    created_at: datetime = Field(
        default_factory=get_utc_now,
        sa_type=DateTime(timezone=True),
        nullable=False,
    )
    updated_at: datetime = Field(
        default_factory=get_utc_now,
        sa_type=DateTime(timezone=True),
        nullable=False,
    )

    def touch(self):
        self.updated_at = get_utc_now()


class Message(SQLModel):
    message: str
