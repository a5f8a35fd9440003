from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.post import Post


async def count_posts_by_user(session: AsyncSession, user_id: int) -> int:
    """Number of posts authored by the user"""
    result = await session.execute(
        select(func.count()).select_from(Post).where(Post.created_by == user_id)
    )
    return result.scalar_one()
