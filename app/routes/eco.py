from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
import logging
from uuid import UUID

from ..database import get_db
from ..schemas.eco import (
    CostComparisonRequest,
    CostComparisonResponse,
    EcoWalletResponse,
    LeaderboardResponse,
    CommunityImpactResponse
)
from ..services.cost_service import compare_costs
from ..services.eco_service import EcoService
from ..utils.auth import get_current_user_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/eco", tags=["eco"])

eco_service = EcoService()


@router.get("/wallet", response_model=EcoWalletResponse)
async def get_wallet(
    db: AsyncSession = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id)
):
    """Recompute and return the current user's eco wallet"""
    try:
        wallet = await eco_service.reconcile_wallet(user_id, db)

        if not wallet:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Profile not found"
            )

        return wallet

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to get eco wallet: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve eco wallet"
        )


@router.get("/leaderboard", response_model=LeaderboardResponse)
async def get_leaderboard(db: AsyncSession = Depends(get_db)):
    """Users with the most eco coins"""
    try:
        entries = await eco_service.get_leaderboard(db)
        return LeaderboardResponse(entries=entries)
    except Exception as e:
        logger.error(f"Failed to get leaderboard: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve leaderboard"
        )


@router.get("/impact", response_model=CommunityImpactResponse)
async def get_community_impact(db: AsyncSession = Depends(get_db)):
    """CO2 saved across all completed rides"""
    try:
        return await eco_service.get_community_impact(db)
    except Exception as e:
        logger.error(f"Failed to get community impact: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve community impact"
        )


@router.post("/cost-comparison", response_model=CostComparisonResponse)
async def cost_comparison(comparison_data: CostComparisonRequest):
    """Monthly cost of driving alone versus carpooling"""
    comparison = compare_costs(
        comparison_data.daily_distance_km,
        comparison_data.days_per_week,
        comparison_data.fuel_type
    )

    if comparison is None:
        return CostComparisonResponse(
            comparison=None,
            message="Distance and days per week must be positive; no computation performed"
        )

    return CostComparisonResponse(comparison=comparison, message="Cost comparison computed")
