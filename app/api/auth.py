"""
Registration and login endpoints
"""

import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import registration_input, login_input
from app.core.exceptions import StoreError
from app.crud.user import register_user, login_user, export_user
from app.db.database import get_db
from app.schemas.user import UserExport, UserRegister, UserLogin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/register",
    response_model=UserExport,
    response_model_exclude_unset=True,
    status_code=status.HTTP_201_CREATED
)
async def register(
    user_in: UserRegister = Depends(registration_input),
    db: AsyncSession = Depends(get_db)
):
    """Create an account and return it with its API token"""
    try:
        user = await register_user(
            db,
            email=user_in.email,
            username=user_in.username,
            display_name=user_in.display_name,
            password=user_in.password
        )
        return await export_user(db, user, include_api_token=True)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception(f"Registration failed: {e}")
        raise StoreError()


@router.post("/login", response_model=UserExport, response_model_exclude_unset=True)
async def login(
    credentials: UserLogin = Depends(login_input),
    db: AsyncSession = Depends(get_db)
):
    """Exchange email or username and password for the account and its API token"""
    try:
        user = await login_user(db, credentials.username, credentials.password)
        return await export_user(db, user, include_api_token=True)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception(f"Login failed: {e}")
        raise StoreError()
