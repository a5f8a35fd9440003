from typing import Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake case in python, camelCase on the wire"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserRegister(CamelModel):
    email: str
    username: str = Field(..., min_length=2, max_length=40)
    display_name: str = Field(..., min_length=1, max_length=120)
    password: str = Field(..., min_length=8, max_length=200)


class UserLogin(CamelModel):
    # email or username
    username: str
    password: str


class UserExport(CamelModel):
    """
    Public projection of a user.

    is_following / is_following_back are only set when a different user is
    looking at the profile, api_token only when the caller allowed it.
    Routes serialize with exclude_unset so unset fields are left out.
    """
    id: int
    username: str
    display_name: str
    profile_picture_url: Optional[str] = None
    description: Optional[str] = None
    created_at: int = Field(..., description="milliseconds since the epoch")
    follower_count: int
    following_count: int
    post_count: int
    is_following: Optional[bool] = None
    is_following_back: Optional[bool] = None
    api_token: Optional[str] = None
