from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
import logging
from uuid import UUID

from ..database import get_db
from ..schemas.profile import (
    ProfileCreateRequest,
    ProfilePreferences,
    ProfileResponse,
    PremiumStatusResponse
)
from ..services.profile_service import ProfileService
from ..utils.auth import get_current_user_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/profiles", tags=["profiles"])

profile_service = ProfileService()


async def _get_profile_or_404(user_id: UUID, db: AsyncSession):
    profile = await profile_service.get_profile(user_id, db)
    if not profile:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Profile not found"
        )
    return profile


@router.post("", response_model=ProfileResponse, status_code=status.HTTP_201_CREATED)
async def create_profile(
    profile_data: ProfileCreateRequest,
    db: AsyncSession = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id)
):
    """Create the current user's profile after signup"""
    try:
        profile = await profile_service.create_profile(user_id, profile_data, db)

        if not profile:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Profile already exists"
            )

        return ProfileResponse.model_validate(profile)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to create profile: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create profile"
        )


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(
    db: AsyncSession = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id)
):
    """Get the current user's profile"""
    profile = await _get_profile_or_404(user_id, db)
    return ProfileResponse.model_validate(profile)


@router.put("/me/preferences", response_model=ProfileResponse)
async def update_preferences(
    preferences: ProfilePreferences,
    db: AsyncSession = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id)
):
    """Replace the current user's ride preferences"""
    try:
        profile = await profile_service.update_preferences(user_id, preferences, db)

        if not profile:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Profile not found"
            )

        return ProfileResponse.model_validate(profile)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to update preferences: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update preferences"
        )


@router.get("/me/premium", response_model=PremiumStatusResponse)
async def get_premium_status(
    db: AsyncSession = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id)
):
    """Premium and verified flags for the current user"""
    profile = await _get_profile_or_404(user_id, db)
    return PremiumStatusResponse(is_premium=profile.is_premium, is_verified=profile.is_verified)


@router.post("/me/upgrade", response_model=dict)
async def upgrade_to_premium(
    db: AsyncSession = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id)
):
    """Upgrade the current user to premium"""
    try:
        success = await profile_service.upgrade_to_premium(user_id, db)

        if success:
            return {"message": "Upgraded to premium"}
        else:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Profile not found"
            )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to upgrade profile: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to upgrade to premium"
        )
