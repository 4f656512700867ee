from pydantic import BaseModel, Field
from typing import Optional
import enum


class FuelType(str, enum.Enum):
    PETROL = "petrol"
    DIESEL = "diesel"
    CNG = "cng"


# Request schemas
class CostComparisonRequest(BaseModel):
    daily_distance_km: float = Field(..., le=2000)
    days_per_week: int = Field(5, le=7)
    fuel_type: FuelType = FuelType.PETROL


# Response schemas
class CostBreakdown(BaseModel):
    monthly_distance: float
    fuel_cost: float
    toll: float
    parking: float
    maintenance: float


class CostComparison(BaseModel):
    personal_cost: float
    carpool_cost: float
    savings: float
    breakdown: CostBreakdown


class CostComparisonResponse(BaseModel):
    comparison: Optional[CostComparison] = None
    message: str


class EcoWalletResponse(BaseModel):
    eco_coins: int
    shared_rides: int
    rides_to_next_coin: int
    progress_percent: int
    total_rides: int
    co2_saved: float


class LeaderboardEntry(BaseModel):
    full_name: str
    eco_coins: int

    class Config:
        from_attributes = True


class LeaderboardResponse(BaseModel):
    entries: list[LeaderboardEntry]


class CommunityImpactResponse(BaseModel):
    completed_rides: int
    co2_saved: float
