from fastapi import APIRouter, Query
import logging

from ..schemas.location import LocationSearchResponse
from ..utils.geocoding_client import geocoding_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/locations", tags=["locations"])


@router.get("/search", response_model=LocationSearchResponse)
async def search_locations(q: str = Query(..., max_length=200)):
    """Autocomplete suggestions for a place name"""
    suggestions = await geocoding_client.search(q)
    return LocationSearchResponse(suggestions=suggestions, count=len(suggestions))
