"""
Request pipeline stages shared by the routers.

Each dependency resolves one domain object (actor, target user, validated
body) and hands it to the next stage through FastAPI's dependency graph.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import Body, Depends, Path, status
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    MissingCredentialsError,
    InvalidCredentialsError,
    MissingFieldsError,
    InvalidFieldError,
    UnknownUserError,
)
from app.crud.user import validate_api_token, get_user_by_id
from app.db.database import get_db
from app.models.user import User
from app.schemas.user import UserRegister, UserLogin
from app.utils.validators import is_email_valid, is_string_valid

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "

# ids are int4 in postgres; larger values cannot name a row
MAX_USER_ID = 2**31 - 1

api_token_header = APIKeyHeader(
    name="Authorization",
    auto_error=False,
    description="Bearer <apiToken>"
)


async def _resolve_bearer(db: AsyncSession, authorization: str) -> User:
    if not authorization.startswith(BEARER_PREFIX):
        raise InvalidCredentialsError()

    user = await validate_api_token(db, authorization[len(BEARER_PREFIX):])
    if user is None:
        logger.warning("Request with an unknown API token")
        raise InvalidCredentialsError()
    return user


async def get_current_user(
    authorization: Optional[str] = Depends(api_token_header),
    db: AsyncSession = Depends(get_db)
) -> User:
    """Require a valid bearer token"""
    if not authorization:
        raise MissingCredentialsError()
    return await _resolve_bearer(db, authorization)


async def get_optional_user(
    authorization: Optional[str] = Depends(api_token_header),
    db: AsyncSession = Depends(get_db)
) -> Optional[User]:
    """Like get_current_user, but no header at all means anonymous"""
    if not authorization:
        return None
    return await _resolve_bearer(db, authorization)


async def get_target_user(
    user_id: int = Path(..., description="Numeric user id"),
    db: AsyncSession = Depends(get_db)
) -> User:
    """The user addressed by the path"""
    if not 1 <= user_id <= MAX_USER_ID:
        raise UnknownUserError(status_code=status.HTTP_404_NOT_FOUND)

    user = await get_user_by_id(db, user_id)
    if user is None:
        raise UnknownUserError(status_code=status.HTTP_404_NOT_FOUND)
    return user


def _require_keys(payload: Optional[Dict[str, Any]], keys) -> Dict[str, Any]:
    payload = payload or {}
    # empty values count as missing
    if not all(payload.get(key) for key in keys):
        raise MissingFieldsError()
    return payload


async def registration_input(payload: Optional[Dict[str, Any]] = Body(None)) -> UserRegister:
    payload = _require_keys(payload, ["email", "username", "displayName", "password"])

    if not is_email_valid(payload["email"]):
        raise InvalidFieldError("email")
    if not is_string_valid(payload["username"], 2, 40):
        raise InvalidFieldError("username")
    if not is_string_valid(payload["displayName"], 1, 120):
        raise InvalidFieldError("displayName")
    if not is_string_valid(payload["password"], 8, 200):
        raise InvalidFieldError("password")

    return UserRegister(
        email=payload["email"],
        username=payload["username"],
        display_name=payload["displayName"],
        password=payload["password"],
    )


async def login_input(payload: Optional[Dict[str, Any]] = Body(None)) -> UserLogin:
    payload = _require_keys(payload, ["username", "password"])

    for key in ("username", "password"):
        if not isinstance(payload[key], str):
            raise InvalidFieldError(key)

    return UserLogin(username=payload["username"], password=payload["password"])
