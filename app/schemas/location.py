from pydantic import BaseModel
from typing import Optional, Union


class LocationSuggestion(BaseModel):
    place_id: Union[int, str]
    display_name: str
    lat: float
    lon: float
    type: Optional[str] = None
    importance: Optional[float] = None


class LocationSearchResponse(BaseModel):
    suggestions: list[LocationSuggestion]
    count: int
