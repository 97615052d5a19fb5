"""Account models"""

import datetime

from sqlalchemy import func
from sqlmodel import SQLModel, Field, Column

from .common import CamelModel
from .types import UtcAwareDateTime, utcnow

FRIEND_CODE_PATTERN = r"^[A-Z]{3}[0-9]{3}$"


class User(SQLModel, CamelModel, table=True):
    __tablename__ = "users"

    id: int | None = Field(default=None, primary_key=True)
    username: str = Field(index=True, unique=True)
    password_hash: str
    friend_code: str = Field(index=True, unique=True, max_length=6)
    avatar_url: str | None = None
    created_at: datetime.datetime = Field(
        default_factory=utcnow,
        sa_column=Column(UtcAwareDateTime(), nullable=False),
    )
    updated_at: datetime.datetime | None = Field(
        default=None,
        sa_column=Column(UtcAwareDateTime(), onupdate=func.now(), nullable=True),
    )

    def __str__(self):
        return self.username
