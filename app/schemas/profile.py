from pydantic import BaseModel, Field, UUID4
from typing import Optional
from datetime import datetime


class ProfilePreferences(BaseModel):
    music: Optional[str] = Field(None, max_length=100)
    pets: Optional[bool] = None
    smoking: Optional[bool] = None
    personality: Optional[str] = Field(None, max_length=100)


# Request schemas
class ProfileCreateRequest(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., max_length=320, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    phone: Optional[str] = Field(None, max_length=40)
    avatar_url: Optional[str] = Field(None, max_length=500)
    preferences: Optional[ProfilePreferences] = None


# Response schemas
class ProfileResponse(BaseModel):
    id: UUID4
    full_name: str
    email: str
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    is_premium: bool
    is_verified: bool
    eco_coins: int
    total_rides: int
    co2_saved: float
    preferences: Optional[ProfilePreferences] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PremiumStatusResponse(BaseModel):
    is_premium: bool
    is_verified: bool
