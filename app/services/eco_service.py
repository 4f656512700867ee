"""Eco coins and CO2 estimates; profile aggregates are recomputed from rides and matches."""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_, desc, func
from typing import Dict, Iterable, Mapping, Optional, Tuple
import logging
from uuid import UUID

from ..models.match import Match, CONFIRMED_MATCH_STATUSES
from ..models.profile import Profile
from ..models.ride import Ride, RideStatus
from ..schemas.eco import CommunityImpactResponse, EcoWalletResponse, LeaderboardEntry
from ..config import settings

logger = logging.getLogger(__name__)


def is_shared_ride(match: Match, ride_status: Optional[RideStatus]) -> bool:
    """An accepted or completed match on a completed ride between two different people"""
    return (
        match.status in CONFIRMED_MATCH_STATUSES
        and ride_status == RideStatus.COMPLETED
        and match.rider_id != match.driver_id
    )


def count_shared_rides(matches: Iterable[Match], ride_statuses: Mapping[UUID, RideStatus]) -> int:
    return sum(1 for match in matches if is_shared_ride(match, ride_statuses.get(match.ride_id)))


def coin_progress(shared_rides: int, rides_per_coin: Optional[int] = None) -> Tuple[int, int]:
    """Return (coins, rides remaining to the next coin).

    Remaining is never 0: on an exact multiple the next coin is a full
    cycle away.
    """
    rides_per_coin = rides_per_coin or settings.rides_per_eco_coin
    return shared_rides // rides_per_coin, rides_per_coin - (shared_rides % rides_per_coin)


def co2_saved(completed_rides: int) -> float:
    """Estimated kg of CO2 saved, using a fixed distance per ride"""
    return completed_rides * settings.average_ride_distance_km * settings.co2_kg_per_km


class EcoService:

    async def count_user_shared_rides(self, user_id: UUID, db: AsyncSession) -> int:
        """Count the user's shared rides as rider or driver"""
        stmt = select(Match).where(
            or_(Match.rider_id == user_id, Match.driver_id == user_id),
            Match.status.in_(CONFIRMED_MATCH_STATUSES),
        )
        result = await db.execute(stmt)
        matches = list(result.scalars().all())
        if not matches:
            return 0

        ride_ids = list({match.ride_id for match in matches})
        rides_stmt = select(Ride.id, Ride.status).where(Ride.id.in_(ride_ids))
        rides_result = await db.execute(rides_stmt)
        ride_statuses = {ride_id: status for ride_id, status in rides_result.all()}

        return count_shared_rides(matches, ride_statuses)

    async def count_completed_rides(self, db: AsyncSession, user_id: Optional[UUID] = None) -> int:
        """Count completed rides, for one owner or across all users"""
        stmt = select(func.count()).select_from(Ride).where(Ride.status == RideStatus.COMPLETED)
        if user_id is not None:
            stmt = stmt.where(Ride.user_id == user_id)
        result = await db.execute(stmt)
        return result.scalar_one()

    async def reconcile_wallet(self, user_id: UUID, db: AsyncSession) -> Optional[EcoWalletResponse]:
        """Recompute the user's eco aggregates and persist them on the profile"""
        try:
            stmt = select(Profile).where(Profile.id == user_id)
            result = await db.execute(stmt)
            profile = result.scalar_one_or_none()
            if not profile:
                logger.warning(f"Profile {user_id} not found for wallet reconciliation")
                return None

            shared_rides = await self.count_user_shared_rides(user_id, db)
            total_rides = await self.count_completed_rides(db, user_id=user_id)
            coins, remaining = coin_progress(shared_rides)
            saved = co2_saved(total_rides)

            profile.eco_coins = coins
            profile.total_rides = total_rides
            profile.co2_saved = saved
            await db.commit()

            rides_per_coin = settings.rides_per_eco_coin
            logger.info(f"Reconciled wallet for {user_id}: {coins} coins from {shared_rides} shared rides")
            return EcoWalletResponse(
                eco_coins=coins,
                shared_rides=shared_rides,
                rides_to_next_coin=remaining,
                progress_percent=(shared_rides % rides_per_coin) * 100 // rides_per_coin,
                total_rides=total_rides,
                co2_saved=saved,
            )

        except Exception as e:
            await db.rollback()
            logger.error(f"Failed to reconcile wallet for {user_id}: {e}")
            raise

    async def reconcile_wallets(self, user_ids: Iterable[UUID], db: AsyncSession) -> Dict[UUID, EcoWalletResponse]:
        """Reconcile each distinct user once; users without a profile are skipped"""
        wallets = {}
        for user_id in dict.fromkeys(user_ids):
            wallet = await self.reconcile_wallet(user_id, db)
            if wallet:
                wallets[user_id] = wallet
        return wallets

    async def get_leaderboard(self, db: AsyncSession, limit: Optional[int] = None) -> list[LeaderboardEntry]:
        """Profiles with the most eco coins"""
        stmt = (
            select(Profile)
            .order_by(desc(Profile.eco_coins))
            .limit(limit or settings.leaderboard_size)
        )
        result = await db.execute(stmt)
        return [LeaderboardEntry.model_validate(profile) for profile in result.scalars().all()]

    async def get_community_impact(self, db: AsyncSession) -> CommunityImpactResponse:
        """CO2 saved by every completed ride on the platform"""
        completed = await self.count_completed_rides(db)
        return CommunityImpactResponse(completed_rides=completed, co2_saved=co2_saved(completed))
