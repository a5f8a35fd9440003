import logging
from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_optional_user, get_target_user
from app.core.exceptions import StoreError
from app.crud.follow import set_follow
from app.crud.user import export_user
from app.db.database import get_db
from app.models.user import User
from app.schemas.user import UserExport

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/me", response_model=UserExport, response_model_exclude_unset=True)
async def read_current_user(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await export_user(db, current_user, include_api_token=True)


@router.get("/{user_id}", response_model=UserExport, response_model_exclude_unset=True)
async def read_user(
    requester: Optional[User] = Depends(get_optional_user),
    target: User = Depends(get_target_user),
    db: AsyncSession = Depends(get_db)
):
    """Profile of user_id; relationship flags are filled in for a signed-in viewer"""
    return await export_user(db, target, requester=requester)


async def _follow_unfollow(follow: bool, actor: User, target: User, db: AsyncSession) -> UserExport:
    actor_id, target_id = actor.id, target.id
    try:
        await set_follow(db, follow, actor, target)
        return await export_user(db, target, requester=actor)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception(f"{'Follow' if follow else 'Unfollow'} {actor_id} -> {target_id} failed: {e}")
        raise StoreError()


@router.post("/{user_id}/follow", response_model=UserExport, response_model_exclude_unset=True)
async def follow_user(
    current_user: User = Depends(get_current_user),
    target: User = Depends(get_target_user),
    db: AsyncSession = Depends(get_db)
):
    return await _follow_unfollow(True, current_user, target, db)


@router.delete("/{user_id}/unfollow", response_model=UserExport, response_model_exclude_unset=True)
async def unfollow_user(
    current_user: User = Depends(get_current_user),
    target: User = Depends(get_target_user),
    db: AsyncSession = Depends(get_db)
):
    return await _follow_unfollow(False, current_user, target, db)
