from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
import logging
from uuid import UUID

from ..database import get_db
from ..schemas.matching import RideSearchRequest, MatchSearchResponse
from ..schemas.ride import RideResponse
from ..services.matching_service import MatchingService
from ..services.ride_service import RideService
from ..utils.auth import get_current_user_id
from ..utils.completion_client import CompletionConfigError, CompletionServiceError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/matching", tags=["matching"])

matching_service = MatchingService()
ride_service = RideService()


@router.post("/search", response_model=MatchSearchResponse)
async def search_matches(
    search_data: RideSearchRequest,
    db: AsyncSession = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id)
):
    """Score active ride offers against a ride request"""
    try:
        rides = await ride_service.search_offers(db, exclude_user_id=user_id)
        offers = [RideResponse.model_validate(ride) for ride in rides]

        matches = await matching_service.match_rides(search_data, offers)

        return MatchSearchResponse(matches=matches, candidates=len(offers))

    except CompletionConfigError as e:
        logger.error(f"Matching unavailable: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Ride matching is not configured"
        )
    except CompletionServiceError as e:
        logger.error(f"Error matching rides: {e}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to find matching rides"
        )
    except Exception as e:
        logger.error(f"Error matching rides: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to find matching rides"
        )
