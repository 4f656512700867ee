from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
import logging
from uuid import UUID

from ..database import get_db
from ..models.match import MatchStatus
from ..schemas.match import (
    MatchCreateRequest,
    MatchStatusUpdateRequest,
    MatchResponse,
    DriverMatchResponse,
    MatchListResponse
)
from ..services.match_service import MatchService
from ..services.ride_service import RideService
from ..services.eco_service import EcoService
from ..services.event_service import EventService
from ..utils.auth import get_current_user_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/matches", tags=["matches"])

# Service instances
match_service = MatchService()
ride_service = RideService()
eco_service = EcoService()
event_service = EventService()

DRIVER_DECISIONS = (MatchStatus.ACCEPTED, MatchStatus.DECLINED)


@router.post("", response_model=MatchResponse, status_code=status.HTTP_201_CREATED)
async def request_ride(
    match_data: MatchCreateRequest,
    db: AsyncSession = Depends(get_db),
    rider_id: UUID = Depends(get_current_user_id)
):
    """Request a seat on a ride offer"""
    try:
        ride = await ride_service.get_ride_by_id(match_data.ride_id, db)

        if not ride:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Ride not found"
            )

        if ride.user_id == rider_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cannot request your own ride"
            )

        match = await match_service.request_ride(rider_id, match_data.ride_id, db)

        if not match:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Ride is not open for requests"
            )

        await event_service.notify_match_requested({
            "match_id": str(match.id),
            "ride_id": str(match.ride_id),
            "rider_id": str(match.rider_id),
            "driver_id": str(match.driver_id)
        })

        return MatchResponse.model_validate(match)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to request ride: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to send ride request"
        )


@router.get("", response_model=MatchListResponse)
async def get_my_matches(
    db: AsyncSession = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id)
):
    """Matches where the current user is rider or driver"""
    try:
        matches = await match_service.get_user_matches(user_id, db)

        return MatchListResponse(
            matches=[DriverMatchResponse.model_validate(match) for match in matches],
            count=len(matches)
        )

    except Exception as e:
        logger.error(f"Failed to get matches: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve matches"
        )


@router.get("/incoming", response_model=MatchListResponse)
async def get_incoming_matches(
    pending_only: bool = False,
    db: AsyncSession = Depends(get_db),
    driver_id: UUID = Depends(get_current_user_id)
):
    """Ride requests received on the current user's offers"""
    try:
        matches = await match_service.get_driver_matches(driver_id, db, pending_only=pending_only)

        return MatchListResponse(matches=matches, count=len(matches))

    except Exception as e:
        logger.error(f"Failed to get incoming matches: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve match requests"
        )


@router.put("/{match_id}/status", response_model=dict)
async def update_match_status(
    match_id: UUID,
    status_data: MatchStatusUpdateRequest,
    db: AsyncSession = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id)
):
    """Accept or decline a request (driver), or mark an accepted match completed"""
    try:
        match = await match_service.get_match_by_id(match_id, db)

        if not match:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Match not found"
            )

        if status_data.status in DRIVER_DECISIONS and match.driver_id != user_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only the driver can accept or decline a request"
            )

        if user_id not in (match.rider_id, match.driver_id):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied"
            )

        success = await match_service.update_match_status(match_id, status_data.status, db)

        if not success:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid status transition"
            )

        await event_service.notify_match_status_updated({
            "match_id": str(match_id),
            "ride_id": str(match.ride_id),
            "rider_id": str(match.rider_id),
            "driver_id": str(match.driver_id),
            "new_status": status_data.status.value
        })

        if status_data.status == MatchStatus.COMPLETED:
            wallets = await eco_service.reconcile_wallets([match.rider_id, match.driver_id], db)
            await event_service.notify_wallets_reconciled(wallets)

        return {"message": f"Match status updated to {status_data.status.value}"}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to update match status: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update match"
        )
