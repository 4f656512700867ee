from pydantic import BaseModel, Field, UUID4
from typing import Optional
from datetime import datetime
from ..models.match import MatchStatus


# Request schemas
class MatchCreateRequest(BaseModel):
    ride_id: UUID4


class MatchStatusUpdateRequest(BaseModel):
    status: MatchStatus


# Response schemas
class MatchResponse(BaseModel):
    id: UUID4
    rider_id: UUID4
    driver_id: UUID4
    ride_id: UUID4
    match_score: int = Field(..., ge=0, le=100)
    status: MatchStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MatchRideSummary(BaseModel):
    pickup_location: str
    dropoff_location: str
    departure_time: datetime


class MatchRiderSummary(BaseModel):
    full_name: str
    email: str


class DriverMatchResponse(MatchResponse):
    ride: Optional[MatchRideSummary] = None
    rider: Optional[MatchRiderSummary] = None


class MatchListResponse(BaseModel):
    matches: list[DriverMatchResponse]
    count: int
