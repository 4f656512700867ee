from pydantic import BaseModel, Field, UUID4, field_validator
from typing import Dict, Optional
from datetime import datetime
from decimal import Decimal
from ..models.ride import RideStatus, RideType
from ..models.match import MatchStatus


# Request schemas
class RideCreateRequest(BaseModel):
    type: RideType = RideType.OFFER
    pickup_location: str = Field(..., max_length=500)
    pickup_lat: float = Field(0.0, ge=-90, le=90)
    pickup_lng: float = Field(0.0, ge=-180, le=180)
    dropoff_location: str = Field(..., max_length=500)
    dropoff_lat: float = Field(0.0, ge=-90, le=90)
    dropoff_lng: float = Field(0.0, ge=-180, le=180)
    departure_time: datetime
    available_seats: int = Field(1, ge=1, le=8)
    price: Optional[Decimal] = Field(None, ge=0, le=1000)
    preferences: Optional[str] = Field(None, max_length=1000)

    @field_validator("pickup_location", "dropoff_location")
    @classmethod
    def location_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("location is required")
        return value


class RideStatusUpdateRequest(BaseModel):
    status: RideStatus


# Response schemas
class RideResponse(BaseModel):
    id: UUID4
    user_id: UUID4
    type: RideType
    pickup_location: str
    pickup_lat: float
    pickup_lng: float
    dropoff_location: str
    dropoff_lat: float
    dropoff_lng: float
    departure_time: datetime
    available_seats: Optional[int] = None
    price: Optional[Decimal] = None
    preferences: Optional[str] = None
    status: RideStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RideListResponse(BaseModel):
    rides: list[RideResponse]
    total: int


class DashboardResponse(BaseModel):
    total_rides: int
    active_rides: int
    completed_rides: int
    total_matches: int
    has_pending_matches: bool
    recent_rides: list[RideResponse]
    # ride id -> status of the caller's rider match on it
    match_status_by_ride: Dict[str, MatchStatus]
