import json
import logging
from typing import Any, Dict, List, Optional, Sequence

from ..schemas.matching import MatchSuggestion, RideSearchRequest
from ..schemas.ride import RideResponse
from ..utils.completion_client import CompletionClient, completion_client

logger = logging.getLogger(__name__)


MATCHING_SYSTEM_PROMPT = """You are a ride-matching assistant for Carpool Companion.
Your job is to analyze ride requests and match them with available ride offers based on:
1. Location proximity (within 5km is ideal)
2. Time compatibility (±30 minutes window)
3. Ride preferences and compatibility
4. Available seats

Return a JSON array of matched rides with compatibility scores (0-100)."""


def build_matching_prompt(request: RideSearchRequest, offers: Sequence[RideResponse]) -> str:
    """Describe the request and embed the candidate offers as JSON"""
    candidates = [offer.model_dump(mode="json") for offer in offers]
    departure = request.departure_time.isoformat() if request.departure_time else "Any time"

    return (
        "Match this ride request:\n"
        f"- Pickup: {request.pickup_location} ({request.pickup_lat}, {request.pickup_lng})\n"
        f"- Dropoff: {request.dropoff_location} ({request.dropoff_lat}, {request.dropoff_lng})\n"
        f"- Time: {departure}\n"
        f"- Preferences: {request.preferences or 'None'}\n"
        "\n"
        "Available rides:\n"
        f"{json.dumps(candidates, indent=2)}\n"
        "\n"
        'Return only a JSON array of matches with scores, shaped like [{"ride": "<ride id>", "score": 0-100}].'
    )


def _strip_code_fence(reply: str) -> str:
    text = reply.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        if text.rstrip().endswith("```"):
            text = text.rstrip()[:-3]
    return text.strip()


def _entry_ride_id(entry: Dict[str, Any]) -> Optional[str]:
    ride = entry.get("ride")
    if isinstance(ride, dict):
        ride = ride.get("id")
    if ride is None:
        ride = entry.get("ride_id", entry.get("id"))
    return str(ride) if ride is not None else None


def _coerce_score(value: Any) -> Optional[int]:
    try:
        score = int(round(float(value)))
    except (TypeError, ValueError, OverflowError):
        return None
    return max(0, min(100, score))


def parse_match_reply(reply: str, offers: Sequence[RideResponse]) -> List[MatchSuggestion]:
    """Turn the completion text into scored suggestions.

    Anything that is not a JSON array degrades to an empty list. Entries
    that do not name one of the offered rides are dropped.
    """
    try:
        data = json.loads(_strip_code_fence(reply))
    except ValueError:
        logger.warning("Matching reply was not valid JSON; returning no matches")
        return []

    if not isinstance(data, list):
        logger.warning("Matching reply was not a JSON array; returning no matches")
        return []

    offers_by_id = {str(offer.id): offer for offer in offers}
    suggestions: List[MatchSuggestion] = []
    seen = set()

    for entry in data:
        if not isinstance(entry, dict):
            continue
        ride_id = _entry_ride_id(entry)
        offer = offers_by_id.get(ride_id)
        if offer is None or ride_id in seen:
            continue
        score = _coerce_score(entry.get("score", entry.get("match_score")))
        if score is None:
            continue
        seen.add(ride_id)
        suggestions.append(MatchSuggestion(ride=offer, score=score))

    suggestions.sort(key=lambda suggestion: suggestion.score, reverse=True)
    return suggestions


class MatchingService:
    def __init__(self, client: Optional[CompletionClient] = None):
        self.client = client or completion_client

    async def match_rides(
        self,
        request: RideSearchRequest,
        offers: Sequence[RideResponse],
    ) -> List[MatchSuggestion]:
        """Score candidate offers for a ride request with the completion service"""
        self.client.require_api_key()
        if not offers:
            return []

        reply = await self.client.complete([
            {"role": "system", "content": MATCHING_SYSTEM_PROMPT},
            {"role": "user", "content": build_matching_prompt(request, offers)},
        ])

        suggestions = parse_match_reply(reply, offers)
        logger.info(f"Matched {len(suggestions)} of {len(offers)} candidate rides")
        return suggestions
