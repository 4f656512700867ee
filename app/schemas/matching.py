from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from .ride import RideResponse


class RideSearchRequest(BaseModel):
    pickup_location: str = Field(..., min_length=1, max_length=500)
    pickup_lat: float = Field(0.0, ge=-90, le=90)
    pickup_lng: float = Field(0.0, ge=-180, le=180)
    dropoff_location: str = Field(..., min_length=1, max_length=500)
    dropoff_lat: float = Field(0.0, ge=-90, le=90)
    dropoff_lng: float = Field(0.0, ge=-180, le=180)
    departure_time: Optional[datetime] = None
    preferences: Optional[str] = Field(None, max_length=1000)


class MatchSuggestion(BaseModel):
    ride: RideResponse
    score: int = Field(..., ge=0, le=100)


class MatchSearchResponse(BaseModel):
    matches: list[MatchSuggestion]
    candidates: int
