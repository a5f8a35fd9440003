"""
User operations:
- Registration with case-insensitive email/username uniqueness
- Password login by email or username
- API token validation
- Profile projection with follow counts and relationship flags
"""
import logging
from typing import Optional

from sqlalchemy import select, or_, case
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    EmailInUseError,
    UsernameInUseError,
    UnknownUserError,
    InvalidPasswordError,
    ServiceError,
)
from app.core.security import hash_password, check_password, generate_api_token
from app.crud.follow import count_followers, count_following, get_relationship
from app.crud.post import count_posts_by_user
from app.models.user import User, normalize_identifier
from app.schemas.user import UserExport

logger = logging.getLogger(__name__)


async def get_user_by_id(session: AsyncSession, user_id: int) -> Optional[User]:
    result = await session.execute(
        select(User).where(User.id == user_id)
    )
    return result.scalars().first()


async def get_user_by_email(session: AsyncSession, email: str) -> Optional[User]:
    """Case-insensitive email lookup"""
    result = await session.execute(
        select(User).where(User.email_normalized == normalize_identifier(email))
    )
    return result.scalars().first()


async def get_user_by_username(session: AsyncSession, username: str) -> Optional[User]:
    """Case-insensitive username lookup"""
    result = await session.execute(
        select(User).where(User.username_normalized == normalize_identifier(username))
    )
    return result.scalars().first()


async def get_user_by_email_or_username(session: AsyncSession, identifier: str) -> Optional[User]:
    """Retrieve user by email or username, preferring the email match"""
    identifier = normalize_identifier(identifier)
    email_match = User.email_normalized == identifier
    result = await session.execute(
        select(User)
        .where(or_(email_match, User.username_normalized == identifier))
        .order_by(case((email_match, 0), else_=1))
        .limit(1)
    )
    return result.scalars().first()


async def get_user_by_api_token(session: AsyncSession, api_token: str) -> Optional[User]:
    result = await session.execute(
        select(User).where(User.api_token == api_token)
    )
    return result.scalars().first()


async def validate_api_token(session: AsyncSession, api_token: Optional[str]) -> Optional[User]:
    """Resolve a bearer token to its user; None when nobody holds it"""
    if not api_token:
        return None
    return await get_user_by_api_token(session, api_token)


async def _conflict_error(session: AsyncSession, email: str, username: str) -> Optional[ServiceError]:
    """Which uniqueness rule an existing row breaks, if any"""
    result = await session.execute(
        select(User.id).where(User.email_normalized == normalize_identifier(email))
    )
    if result.first() is not None:
        return EmailInUseError()

    result = await session.execute(
        select(User.id).where(User.username_normalized == normalize_identifier(username))
    )
    if result.first() is not None:
        return UsernameInUseError()

    return None


async def register_user(
    session: AsyncSession,
    email: str,
    username: str,
    display_name: str,
    password: str,
    type: str = ""
) -> User:
    """
    Create a user if email and username are not in use (case insensitive).

    The lookups give the friendly error in the common case; the unique indexes
    decide when two registrations race, and their violation is reported the
    same way.
    """
    if await get_user_by_email(session, email):
        raise EmailInUseError()

    if await get_user_by_username(session, username):
        raise UsernameInUseError()

    db_user = User(
        email=email,
        username=username,
        email_normalized=normalize_identifier(email),
        username_normalized=normalize_identifier(username),
        display_name=display_name,
        hashed_password=await hash_password(password),
        type=type,
        api_token=await generate_api_token(session),
    )

    session.add(db_user)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        conflict = await _conflict_error(session, email, username)
        if conflict is None:
            raise
        logger.info(f"Registration for {username!r} lost a uniqueness race: {conflict.detail}")
        raise conflict

    await session.refresh(db_user)
    logger.info(f"Registered user {db_user.id} ({db_user.username})")
    return db_user


async def login_user(session: AsyncSession, identifier: str, password: str) -> User:
    """Retrieve the user by email or username and validate the password"""
    user = await get_user_by_email_or_username(session, identifier)
    if user is None:
        logger.warning(f"Login attempt for non-existent user: {identifier}")
        raise UnknownUserError()

    if not await check_password(password, user.hashed_password):
        logger.warning(f"Failed login attempt for user: {user.id}")
        raise InvalidPasswordError()

    return user


def build_user_export(
    user: User,
    include_api_token: bool,
    follower_count: int,
    following_count: int,
    post_count: int,
    is_following: Optional[bool] = None,
    is_following_back: Optional[bool] = None
) -> UserExport:
    """Assemble the projection from already computed aggregates"""
    data = {
        "id": user.id,
        "username": user.username,
        "display_name": user.display_name,
        "profile_picture_url": user.profile_picture_url,
        "description": user.description,
        "created_at": user.created_at_ms,
        "follower_count": follower_count,
        "following_count": following_count,
        "post_count": post_count,
    }
    # flags stay unset (not False) when they do not apply
    if is_following is not None:
        data["is_following"] = is_following
    if is_following_back is not None:
        data["is_following_back"] = is_following_back
    if include_api_token:
        data["api_token"] = user.api_token

    return UserExport(**data)


async def export_user(
    session: AsyncSession,
    user: User,
    include_api_token: bool = False,
    requester: Optional[User] = None
) -> UserExport:
    """
    Public view of user as seen by requester.

    Relationship flags are computed only for a requester other than the user
    and are then always concrete booleans.
    """
    follower_count = await count_followers(session, user.id)
    following_count = await count_following(session, user.id)
    post_count = await count_posts_by_user(session, user.id)

    is_following = None
    is_following_back = None
    if requester is not None and requester.id != user.id:
        is_following, is_following_back = await get_relationship(session, user, requester)

    return build_user_export(
        user,
        include_api_token,
        follower_count,
        following_count,
        post_count,
        is_following,
        is_following_back
    )
