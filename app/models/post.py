"""
Post model. Posts are owned by the feed; accounts only need to count them.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field

from app.models.user import utcnow


class Post(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    created_by: int = Field(foreign_key="user.id", index=True)
    content: str = Field(..., max_length=5000)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
