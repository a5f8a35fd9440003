import unicodedata
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_identifier(value: str) -> str:
    """Case-insensitive comparison key for emails and usernames"""
    return unicodedata.normalize("NFKC", value).casefold()


class UserBase(SQLModel):
    """Public profile fields"""
    username: str = Field(..., min_length=2, max_length=40)
    display_name: str = Field(..., min_length=1, max_length=120)
    profile_picture_url: Optional[str] = Field(default=None)
    description: Optional[str] = Field(default=None)


class User(UserBase, table=True):
    """Account record. email and username are unique regardless of case (see normalize_identifier)."""
    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(..., max_length=320)
    # normalize_identifier(email) and normalize_identifier(username); casefold can lengthen text
    email_normalized: str = Field(..., unique=True, index=True)
    username_normalized: str = Field(..., unique=True, index=True)
    hashed_password: str
    api_token: Optional[str] = Field(default=None, unique=True, index=True)
    type: str = Field(default="")
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))

    @property
    def created_at_ms(self) -> int:
        """created_at as milliseconds since the epoch"""
        created_at = self.created_at
        # sqlite hands back naive datetimes; they are stored as UTC
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        return int(created_at.timestamp() * 1000)

