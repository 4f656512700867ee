from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
import logging
from uuid import UUID
from datetime import date

from ..database import get_db
from ..models.ride import Ride, RideStatus
from ..schemas.ride import (
    RideCreateRequest,
    RideStatusUpdateRequest,
    RideResponse,
    RideListResponse,
    DashboardResponse
)
from ..services.ride_service import RideService
from ..services.eco_service import EcoService
from ..services.event_service import EventService
from ..utils.auth import get_current_user_id, ensure_premium

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/rides", tags=["rides"])

# Service instances
ride_service = RideService()
eco_service = EcoService()
event_service = EventService()


async def _apply_status_change(
    ride: Ride,
    new_status: RideStatus,
    user_id: UUID,
    db: AsyncSession
) -> dict:
    """Check the actor, persist the transition and refresh what depends on it"""
    if not await ride_service.can_change_status(ride, user_id, new_status, db):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not allowed to change this ride's status"
        )

    previous_status = ride.status
    success = await ride_service.update_ride_status(ride.id, new_status, db)
    if not success:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid status transition"
        )

    await event_service.notify_ride_status_updated({
        "ride_id": str(ride.id),
        "owner_id": str(ride.user_id),
        "changed_by": str(user_id),
        "previous_status": previous_status,
        "new_status": new_status
    })

    if new_status == RideStatus.COMPLETED:
        participants = [ride.user_id] + await ride_service.get_accepted_rider_ids(ride.id, db)
        wallets = await eco_service.reconcile_wallets(participants, db)
        await event_service.notify_wallets_reconciled(wallets)

    return {"message": f"Ride status updated to {new_status.value}"}


@router.post("", response_model=RideResponse, status_code=status.HTTP_201_CREATED)
async def create_ride(
    ride_data: RideCreateRequest,
    db: AsyncSession = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id)
):
    """Offer a ride or post a ride request"""
    try:
        ride = await ride_service.create_ride(user_id, ride_data, db)

        await event_service.publish_ride_event("ride_created", {
            "ride_id": str(ride.id),
            "user_id": str(user_id),
            "type": ride.type,
            "pickup_location": ride.pickup_location,
            "dropoff_location": ride.dropoff_location,
            "departure_time": ride.departure_time.isoformat()
        })

        return RideResponse.model_validate(ride)

    except Exception as e:
        logger.error(f"Failed to create ride: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create ride"
        )


@router.get("/offers", response_model=RideListResponse)
async def search_offers(
    origin: Optional[str] = None,
    destination: Optional[str] = None,
    day: Optional[date] = None,
    db: AsyncSession = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id)
):
    """Search active ride offers; filtering by day is a premium feature"""
    if day is not None:
        await ensure_premium(user_id, db)

    try:
        rides = await ride_service.search_offers(
            db, origin=origin, destination=destination, day=day
        )

        return RideListResponse(
            rides=[RideResponse.model_validate(ride) for ride in rides],
            total=len(rides)
        )

    except Exception as e:
        logger.error(f"Failed to search rides: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to search rides"
        )


@router.get("/mine", response_model=RideListResponse)
async def get_my_rides(
    limit: int = 20,
    offset: int = 0,
    db: AsyncSession = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id)
):
    """Get rides owned by the current user"""
    try:
        rides, total = await ride_service.get_user_rides(user_id, limit, offset, db)

        return RideListResponse(
            rides=[RideResponse.model_validate(ride) for ride in rides],
            total=total
        )

    except Exception as e:
        logger.error(f"Failed to get ride history: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve rides"
        )


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(
    db: AsyncSession = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id)
):
    """Ride and match summary for the current user"""
    try:
        return await ride_service.get_dashboard(user_id, db)
    except Exception as e:
        logger.error(f"Failed to get dashboard: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve dashboard"
        )


@router.get("/{ride_id}", response_model=RideResponse)
async def get_ride(
    ride_id: UUID,
    db: AsyncSession = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id)
):
    """Get ride details"""
    try:
        ride = await ride_service.get_ride_by_id(ride_id, db)

        if not ride:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Ride not found"
            )

        return RideResponse.model_validate(ride)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to get ride: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve ride"
        )


@router.put("/{ride_id}/status", response_model=dict)
async def update_ride_status(
    ride_id: UUID,
    status_data: RideStatusUpdateRequest,
    db: AsyncSession = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id)
):
    """Start, complete or cancel a ride"""
    try:
        ride = await ride_service.get_ride_by_id(ride_id, db)

        if not ride:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Ride not found"
            )

        return await _apply_status_change(ride, status_data.status, user_id, db)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to update ride status: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update ride status"
        )


@router.post("/{ride_id}/cancel", response_model=dict)
async def cancel_ride(
    ride_id: UUID,
    db: AsyncSession = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id)
):
    """Cancel a ride (owner only)"""
    try:
        ride = await ride_service.get_ride_by_id(ride_id, db)

        if not ride:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Ride not found"
            )

        return await _apply_status_change(ride, RideStatus.CANCELLED, user_id, db)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to cancel ride: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to cancel ride"
        )
