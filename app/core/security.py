import logging
import uuid
from typing import Optional

import anyio
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import TokenGenerationError
from app.models.user import User

logger = logging.getLogger(__name__)

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.PASSWORD_HASH_ROUNDS
)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


async def hash_password(password: str) -> str:
    """bcrypt is CPU bound, keep it off the event loop"""
    return await anyio.to_thread.run_sync(get_password_hash, password)


async def check_password(plain_password: str, hashed_password: str) -> bool:
    return await anyio.to_thread.run_sync(verify_password, plain_password, hashed_password)


def new_token() -> str:
    return str(uuid.uuid4())


async def generate_api_token(session: AsyncSession, max_attempts: Optional[int] = None) -> str:
    """
    Return a random opaque token that no user holds yet.
    The check does not reserve the token; the unique index on user.api_token
    stays the final guard.
    """
    attempts = settings.API_TOKEN_MAX_ATTEMPTS if max_attempts is None else max_attempts

    for attempt in range(attempts):
        candidate = new_token()
        result = await session.execute(
            select(User.id).where(User.api_token == candidate)
        )
        if result.first() is None:
            return candidate
        logger.warning(f"API token collision on attempt {attempt + 1}/{attempts}")

    logger.error(f"Unable to generate a unique API token after {attempts} attempts")
    raise TokenGenerationError()
