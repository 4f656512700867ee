import httpx
import logging
from typing import List, Optional
from pydantic import ValidationError
from ..config import settings
from ..schemas.location import LocationSuggestion

logger = logging.getLogger(__name__)


class GeocodingClient:
    """Place search for location autocomplete (Nominatim-style API)"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url or settings.geocoding_url
        self.transport = transport

    async def search(self, query: str) -> List[LocationSuggestion]:
        """Search places matching the query; failures yield no suggestions"""
        query = query.strip()
        if len(query) < settings.geocoding_min_query_length:
            return []

        params = {
            "format": "json",
            "q": query,
            "limit": settings.geocoding_limit,
            "addressdetails": 1,
        }
        headers = {"User-Agent": settings.geocoding_user_agent}

        try:
            async with httpx.AsyncClient(
                transport=self.transport, timeout=settings.geocoding_timeout
            ) as client:
                response = await client.get(self.base_url, params=params, headers=headers)
                response.raise_for_status()
                results = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Error searching locations: {e}")
            return []

        suggestions = []
        for item in results if isinstance(results, list) else []:
            try:
                suggestions.append(LocationSuggestion.model_validate(item))
            except ValidationError as e:
                logger.warning(f"Skipping malformed geocoding result: {e}")
        return suggestions


# Global geocoding client instance
geocoding_client = GeocodingClient()
