from fastapi import HTTPException, status, Header
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from uuid import UUID
import logging
import jwt

from ..config import settings
from ..services.profile_service import ProfileService

logger = logging.getLogger(__name__)

profile_service = ProfileService()


def decode_user_id(token: str) -> UUID:
    """Read the user id from the token's subject claim"""
    payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    return UUID(str(payload["sub"]))


async def get_current_user_id(authorization: Optional[str] = Header(None)) -> UUID:
    """Extract user ID from JWT token"""
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid authorization header"
        )

    try:
        return decode_user_id(authorization[len("Bearer "):])
    except (jwt.PyJWTError, KeyError, ValueError) as e:
        logger.warning(f"Rejected token: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token"
        )


async def ensure_premium(user_id: UUID, db: AsyncSession) -> UUID:
    """Allow only premium members through"""
    if not await profile_service.is_premium(user_id, db):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="This feature is available for Premium users only"
        )
    return user_id
