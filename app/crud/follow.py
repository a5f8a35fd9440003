import logging
from typing import Optional, Tuple

from sqlalchemy import select, delete, func, and_, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import SelfFollowForbiddenError
from app.models.follow import UserFollow
from app.models.user import User

logger = logging.getLogger(__name__)


async def count_followers(session: AsyncSession, user_id: int) -> int:
    """Number of users following user_id"""
    result = await session.execute(
        select(func.count()).select_from(UserFollow).where(UserFollow.followed_id == user_id)
    )
    return result.scalar_one()


async def count_following(session: AsyncSession, user_id: int) -> int:
    """Number of users user_id follows"""
    result = await session.execute(
        select(func.count()).select_from(UserFollow).where(UserFollow.follower_id == user_id)
    )
    return result.scalar_one()


async def get_follow(session: AsyncSession, follower_id: int, followed_id: int) -> Optional[UserFollow]:
    result = await session.execute(
        select(UserFollow).where(
            UserFollow.follower_id == follower_id,
            UserFollow.followed_id == followed_id
        )
    )
    return result.scalars().first()


async def get_relationship(session: AsyncSession, user: User, requester: User) -> Tuple[bool, bool]:
    """
    Return (is_following, is_following_back) between requester and user:
    is_following is requester -> user, is_following_back is user -> requester.
    """
    result = await session.execute(
        select(UserFollow).where(
            or_(
                and_(UserFollow.follower_id == requester.id, UserFollow.followed_id == user.id),
                and_(UserFollow.follower_id == user.id, UserFollow.followed_id == requester.id),
            )
        )
    )

    is_following = False
    is_following_back = False
    for relation in result.scalars().all():
        if relation.follower_id == requester.id and relation.followed_id == user.id:
            is_following = True
        elif relation.follower_id == user.id and relation.followed_id == requester.id:
            is_following_back = True

    return is_following, is_following_back


async def follow_user(session: AsyncSession, follower: User, followed: User) -> None:
    """Create the follower -> followed edge unless it already exists"""
    follower_id, followed_id = follower.id, followed.id
    if await get_follow(session, follower_id, followed_id):
        return

    session.add(UserFollow(follower_id=follower_id, followed_id=followed_id))
    try:
        await session.commit()
    except IntegrityError:
        # a concurrent request inserted the same edge first
        await session.rollback()
        if await get_follow(session, follower_id, followed_id) is None:
            raise
        # rollback expired every loaded instance
        await session.refresh(follower)
        await session.refresh(followed)
        return

    logger.info(f"User {follower_id} followed user {followed_id}")


async def unfollow_user(session: AsyncSession, follower: User, followed: User) -> None:
    """Delete the follower -> followed edge; a missing edge is fine"""
    result = await session.execute(
        delete(UserFollow).where(
            UserFollow.follower_id == follower.id,
            UserFollow.followed_id == followed.id
        )
    )
    await session.commit()

    if result.rowcount:
        logger.info(f"User {follower.id} unfollowed user {followed.id}")


async def set_follow(session: AsyncSession, follow: bool, follower: User, followed: User) -> None:
    """Follow (follow=True) or unfollow (follow=False). Both directions are idempotent."""
    if follower.id == followed.id:
        raise SelfFollowForbiddenError()

    if follow:
        await follow_user(session, follower, followed)
    else:
        await unfollow_user(session, follower, followed)
