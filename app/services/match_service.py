from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, desc, or_
from typing import Optional, List
import logging
from uuid import UUID

from ..models.match import Match, MatchStatus
from ..models.profile import Profile
from ..models.ride import Ride, RideStatus, RideType
from ..schemas.match import DriverMatchResponse, MatchRideSummary, MatchRiderSummary
from ..config import settings
from .ride_service import RideService
from .transitions import is_valid_match_transition

logger = logging.getLogger(__name__)

OPEN_MATCH_STATUSES = (MatchStatus.PENDING, MatchStatus.ACCEPTED)


class MatchService:
    def __init__(self):
        self.ride_service = RideService()

    async def request_ride(self, rider_id: UUID, ride_id: UUID, db: AsyncSession) -> Optional[Match]:
        """Ask to join a ride offer; the offer's owner becomes the driver"""
        try:
            ride = await self.ride_service.get_ride_by_id(ride_id, db)
            if not ride or ride.type != RideType.OFFER or ride.status != RideStatus.ACTIVE:
                logger.warning(f"Ride {ride_id} not open for requests")
                return None

            if ride.user_id == rider_id:
                logger.warning(f"Rider {rider_id} cannot request their own ride {ride_id}")
                return None

            existing_stmt = select(Match.id).where(
                Match.ride_id == ride_id,
                Match.rider_id == rider_id,
                Match.status.in_(OPEN_MATCH_STATUSES)
            )
            if (await db.execute(existing_stmt)).first() is not None:
                logger.warning(f"Rider {rider_id} already has an open request on ride {ride_id}")
                return None

            match = Match(
                rider_id=rider_id,
                driver_id=ride.user_id,
                ride_id=ride_id,
                # TODO: replace the placeholder with the matching adapter's score once requests carry it
                match_score=settings.placeholder_match_score,
                status=MatchStatus.PENDING
            )

            db.add(match)
            await db.commit()
            await db.refresh(match)

            logger.info(f"Created match {match.id} for ride {ride_id}")
            return match

        except Exception as e:
            await db.rollback()
            logger.error(f"Failed to request ride: {e}")
            raise

    async def get_match_by_id(self, match_id: UUID, db: AsyncSession) -> Optional[Match]:
        """Get match by ID"""
        try:
            stmt = select(Match).where(Match.id == match_id)
            result = await db.execute(stmt)
            return result.scalar_one_or_none()
        except Exception as e:
            logger.error(f"Failed to get match {match_id}: {e}")
            raise

    async def update_match_status(
        self,
        match_id: UUID,
        new_status: MatchStatus,
        db: AsyncSession
    ) -> bool:
        """Update match status; accepting marks an active ride as matched"""
        try:
            match = await self.get_match_by_id(match_id, db)
            if not match:
                logger.warning(f"Match {match_id} not found")
                return False

            if not is_valid_match_transition(match.status, new_status):
                logger.warning(f"Invalid match transition: {match.status} -> {new_status}")
                return False

            stmt = (
                update(Match)
                .where(Match.id == match_id)
                .values(status=new_status)
            )
            await db.execute(stmt)
            await db.commit()

            if new_status == MatchStatus.ACCEPTED:
                ride = await self.ride_service.get_ride_by_id(match.ride_id, db)
                if ride and ride.status == RideStatus.ACTIVE:
                    await self.ride_service.update_ride_status(ride.id, RideStatus.MATCHED, db)

            logger.info(f"Updated match {match_id} status to {new_status}")
            return True

        except Exception as e:
            await db.rollback()
            logger.error(f"Failed to update match status: {e}")
            raise

    async def get_driver_matches(
        self,
        driver_id: UUID,
        db: AsyncSession,
        pending_only: bool = False
    ) -> List[DriverMatchResponse]:
        """Incoming requests on the driver's rides with ride and rider details"""
        try:
            stmt = (
                select(Match, Ride, Profile)
                .join(Ride, Ride.id == Match.ride_id)
                .outerjoin(Profile, Profile.id == Match.rider_id)
                .where(Match.driver_id == driver_id)
                .order_by(desc(Match.created_at))
            )
            if pending_only:
                stmt = stmt.where(Match.status == MatchStatus.PENDING)

            result = await db.execute(stmt)

            matches = []
            for match, ride, rider in result.all():
                response = DriverMatchResponse.model_validate(match)
                response.ride = MatchRideSummary(
                    pickup_location=ride.pickup_location,
                    dropoff_location=ride.dropoff_location,
                    departure_time=ride.departure_time
                )
                if rider:
                    response.rider = MatchRiderSummary(full_name=rider.full_name, email=rider.email)
                matches.append(response)
            return matches

        except Exception as e:
            logger.error(f"Failed to get driver matches: {e}")
            raise

    async def get_user_matches(self, user_id: UUID, db: AsyncSession) -> List[Match]:
        """All matches where the user is rider or driver"""
        try:
            stmt = (
                select(Match)
                .where(or_(Match.rider_id == user_id, Match.driver_id == user_id))
                .order_by(desc(Match.created_at))
            )
            result = await db.execute(stmt)
            return list(result.scalars().all())
        except Exception as e:
            logger.error(f"Failed to get user matches: {e}")
            raise
