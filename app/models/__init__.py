"""
Models package initialization
"""

from .user import User
from .follow import UserFollow
from .post import Post

__all__ = ["User", "UserFollow", "Post"]
