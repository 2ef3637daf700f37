from typing import Optional

from sqlmodel import Field, SQLModel

from app.timestamps import now_timestamp


class User(SQLModel, table=True):
    """An account that owns projects. ``admin`` unlocks the user lookup routes."""

    __tablename__ = "user"

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(unique=True, index=True)
    name: str
    password_hash: str
    created: str = Field(default_factory=now_timestamp)
    profile_pic: str = Field(default="")
    admin: bool = Field(default=False)
    premium: bool = Field(default=False)
