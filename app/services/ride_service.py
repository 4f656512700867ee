from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, desc, func, or_
from typing import Optional, List, Tuple
import logging
from uuid import UUID
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal

from ..models.match import Match, MatchStatus, CONFIRMED_MATCH_STATUSES
from ..models.ride import Ride, RideStatus, RideType
from ..schemas.ride import RideCreateRequest, RideResponse, DashboardResponse
from ..config import settings
from .transitions import is_valid_ride_transition

logger = logging.getLogger(__name__)

RECENT_RIDES_LIMIT = 5


class RideService:

    def price_cap_for_route(self, pickup_location: str, dropoff_location: str) -> Decimal:
        """Maximum price per seat allowed on a route"""
        pickup = pickup_location.lower()
        dropoff = dropoff_location.lower()
        for route, cap in settings.route_price_caps.items():
            origin, _, destination = route.partition("|")
            if origin in pickup and destination in dropoff:
                return Decimal(str(cap))
        return Decimal(str(settings.default_price_cap))

    async def create_ride(
        self,
        user_id: UUID,
        ride_data: RideCreateRequest,
        db: AsyncSession
    ) -> Ride:
        """Create a new ride offer or request"""
        try:
            price = None
            if ride_data.price is not None:
                cap = self.price_cap_for_route(ride_data.pickup_location, ride_data.dropoff_location)
                price = min(ride_data.price, cap)

            ride = Ride(
                user_id=user_id,
                type=ride_data.type,
                pickup_location=ride_data.pickup_location,
                pickup_lat=ride_data.pickup_lat,
                pickup_lng=ride_data.pickup_lng,
                dropoff_location=ride_data.dropoff_location,
                dropoff_lat=ride_data.dropoff_lat,
                dropoff_lng=ride_data.dropoff_lng,
                departure_time=ride_data.departure_time,
                available_seats=ride_data.available_seats,
                price=price,
                preferences=ride_data.preferences or None,
                status=RideStatus.ACTIVE
            )

            db.add(ride)
            await db.commit()
            await db.refresh(ride)

            logger.info(f"Created {ride.type} ride {ride.id} for user {user_id}")
            return ride

        except Exception as e:
            await db.rollback()
            logger.error(f"Failed to create ride: {e}")
            raise

    async def get_ride_by_id(self, ride_id: UUID, db: AsyncSession) -> Optional[Ride]:
        """Get ride by ID"""
        try:
            stmt = select(Ride).where(Ride.id == ride_id)
            result = await db.execute(stmt)
            return result.scalar_one_or_none()
        except Exception as e:
            logger.error(f"Failed to get ride {ride_id}: {e}")
            raise

    async def search_offers(
        self,
        db: AsyncSession,
        origin: Optional[str] = None,
        destination: Optional[str] = None,
        day: Optional[date] = None,
        exclude_user_id: Optional[UUID] = None,
        limit: Optional[int] = None
    ) -> List[Ride]:
        """Active ride offers, newest first"""
        try:
            stmt = select(Ride).where(
                Ride.type == RideType.OFFER,
                Ride.status == RideStatus.ACTIVE
            )

            if origin:
                stmt = stmt.where(Ride.pickup_location.ilike(f"%{origin}%"))
            if destination:
                stmt = stmt.where(Ride.dropoff_location.ilike(f"%{destination}%"))
            if day:
                start = datetime.combine(day, time.min, tzinfo=timezone.utc)
                stmt = stmt.where(
                    Ride.departure_time >= start,
                    Ride.departure_time < start + timedelta(days=1)
                )
            if exclude_user_id:
                stmt = stmt.where(Ride.user_id != exclude_user_id)

            stmt = stmt.order_by(desc(Ride.created_at))
            if limit:
                stmt = stmt.limit(limit)

            result = await db.execute(stmt)
            return list(result.scalars().all())

        except Exception as e:
            logger.error(f"Failed to search ride offers: {e}")
            raise

    async def has_accepted_match(self, ride_id: UUID, rider_id: UUID, db: AsyncSession) -> bool:
        stmt = select(Match.id).where(
            Match.ride_id == ride_id,
            Match.rider_id == rider_id,
            Match.status.in_(CONFIRMED_MATCH_STATUSES)
        )
        result = await db.execute(stmt)
        return result.first() is not None

    async def get_accepted_rider_ids(self, ride_id: UUID, db: AsyncSession) -> List[UUID]:
        """Riders holding an accepted or completed match on the ride"""
        stmt = select(Match.rider_id).where(
            Match.ride_id == ride_id,
            Match.status.in_(CONFIRMED_MATCH_STATUSES)
        )
        result = await db.execute(stmt)
        return list(dict.fromkeys(result.scalars().all()))

    async def can_change_status(
        self,
        ride: Ride,
        actor_id: UUID,
        new_status: RideStatus,
        db: AsyncSession
    ) -> bool:
        """Check whether the actor may move the ride to the new status"""
        if new_status == RideStatus.MATCHED:
            # Only through a driver accepting a match
            return False
        if ride.user_id == actor_id:
            return True
        if new_status == RideStatus.COMPLETED:
            return await self.has_accepted_match(ride.id, actor_id, db)
        return False

    async def update_ride_status(
        self,
        ride_id: UUID,
        new_status: RideStatus,
        db: AsyncSession
    ) -> bool:
        """Update ride status"""
        try:
            # Get current ride
            ride = await self.get_ride_by_id(ride_id, db)
            if not ride:
                logger.warning(f"Ride {ride_id} not found")
                return False

            # Validate status transition
            if not is_valid_ride_transition(ride.status, new_status):
                logger.warning(f"Invalid status transition: {ride.status} -> {new_status}")
                return False

            stmt = (
                update(Ride)
                .where(Ride.id == ride_id)
                .values(status=new_status)
            )

            await db.execute(stmt)
            await db.commit()

            logger.info(f"Updated ride {ride_id} status to {new_status}")
            return True

        except Exception as e:
            await db.rollback()
            logger.error(f"Failed to update ride status: {e}")
            raise

    async def get_user_rides(
        self,
        user_id: UUID,
        limit: int = 20,
        offset: int = 0,
        db: AsyncSession = None
    ) -> Tuple[List[Ride], int]:
        """Get rides owned by a user with pagination"""
        try:
            stmt = (
                select(Ride)
                .where(Ride.user_id == user_id)
                .order_by(desc(Ride.created_at))
                .limit(limit)
                .offset(offset)
            )
            result = await db.execute(stmt)
            rides = result.scalars().all()

            count_stmt = select(func.count()).select_from(Ride).where(Ride.user_id == user_id)
            count_result = await db.execute(count_stmt)
            total = count_result.scalar_one()

            return list(rides), total

        except Exception as e:
            logger.error(f"Failed to get user rides: {e}")
            raise

    async def get_dashboard(self, user_id: UUID, db: AsyncSession) -> DashboardResponse:
        """Ride and match counts for the user's dashboard"""
        try:
            rides_stmt = (
                select(Ride)
                .where(Ride.user_id == user_id)
                .order_by(desc(Ride.created_at))
            )
            rides = list((await db.execute(rides_stmt)).scalars().all())

            matches_stmt = select(Match).where(
                or_(Match.rider_id == user_id, Match.driver_id == user_id)
            )
            matches = list((await db.execute(matches_stmt)).scalars().all())

            return DashboardResponse(
                total_rides=len(rides),
                active_rides=sum(1 for ride in rides if ride.status == RideStatus.ACTIVE),
                completed_rides=sum(1 for ride in rides if ride.status == RideStatus.COMPLETED),
                total_matches=len(matches),
                has_pending_matches=any(
                    match.driver_id == user_id and match.status == MatchStatus.PENDING
                    for match in matches
                ),
                recent_rides=[RideResponse.model_validate(ride) for ride in rides[:RECENT_RIDES_LIMIT]],
                match_status_by_ride={
                    str(match.ride_id): match.status
                    for match in matches
                    if match.rider_id == user_id
                },
            )

        except Exception as e:
            logger.error(f"Failed to build dashboard for {user_id}: {e}")
            raise
