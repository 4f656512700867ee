from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
from typing import Optional
import logging
from uuid import UUID

from ..models.profile import Profile
from ..schemas.profile import ProfileCreateRequest, ProfilePreferences

logger = logging.getLogger(__name__)


class ProfileService:

    async def create_profile(
        self,
        user_id: UUID,
        profile_data: ProfileCreateRequest,
        db: AsyncSession
    ) -> Optional[Profile]:
        """Create the profile row for a newly signed-up user"""
        try:
            existing = await self.get_profile(user_id, db)
            if existing:
                logger.warning(f"Profile {user_id} already exists")
                return None

            profile = Profile(
                id=user_id,
                full_name=profile_data.full_name,
                email=profile_data.email,
                phone=profile_data.phone,
                avatar_url=profile_data.avatar_url,
                preferences=(
                    profile_data.preferences.model_dump(exclude_none=True)
                    if profile_data.preferences else None
                ),
                is_premium=False,
                is_verified=False,
                eco_coins=0,
                total_rides=0,
                co2_saved=0.0,
            )

            db.add(profile)
            await db.commit()
            await db.refresh(profile)

            logger.info(f"Created profile {user_id}")
            return profile

        except Exception as e:
            await db.rollback()
            logger.error(f"Failed to create profile: {e}")
            raise

    async def get_profile(self, user_id: UUID, db: AsyncSession) -> Optional[Profile]:
        """Get profile by user ID"""
        try:
            stmt = select(Profile).where(Profile.id == user_id)
            result = await db.execute(stmt)
            return result.scalar_one_or_none()
        except Exception as e:
            logger.error(f"Failed to get profile {user_id}: {e}")
            raise

    async def update_preferences(
        self,
        user_id: UUID,
        preferences: ProfilePreferences,
        db: AsyncSession
    ) -> Optional[Profile]:
        """Replace the user's ride preferences"""
        try:
            profile = await self.get_profile(user_id, db)
            if not profile:
                return None

            profile.preferences = preferences.model_dump(exclude_none=True)
            await db.commit()
            await db.refresh(profile)

            logger.info(f"Updated preferences for profile {user_id}")
            return profile

        except Exception as e:
            await db.rollback()
            logger.error(f"Failed to update preferences: {e}")
            raise

    async def upgrade_to_premium(self, user_id: UUID, db: AsyncSession) -> bool:
        """Flag the profile as premium"""
        try:
            stmt = (
                update(Profile)
                .where(Profile.id == user_id)
                .values(is_premium=True)
            )
            result = await db.execute(stmt)

            if result.rowcount == 0:
                logger.warning(f"Profile {user_id} not found for premium upgrade")
                return False

            await db.commit()

            logger.info(f"Upgraded profile {user_id} to premium")
            return True

        except Exception as e:
            await db.rollback()
            logger.error(f"Failed to upgrade profile: {e}")
            raise

    async def is_premium(self, user_id: UUID, db: AsyncSession) -> bool:
        profile = await self.get_profile(user_id, db)
        return bool(profile and profile.is_premium)
