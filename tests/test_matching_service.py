import json
import uuid
from datetime import datetime, timezone

import httpx
import pytest

from app.models.ride import RideStatus, RideType
from app.schemas.matching import RideSearchRequest
from app.schemas.ride import RideResponse
from app.services.matching_service import (
    MATCHING_SYSTEM_PROMPT,
    MatchingService,
    build_matching_prompt,
    parse_match_reply,
)
from app.utils.completion_client import (
    CompletionClient,
    CompletionConfigError,
    CompletionServiceError,
)


def make_offer(pickup="Sector 18, Noida"):
    return RideResponse(
        id=uuid.uuid4(),
        user_id=uuid.uuid4(),
        type=RideType.OFFER,
        pickup_location=pickup,
        pickup_lat=28.57,
        pickup_lng=77.32,
        dropoff_location="Cyber City, Gurgaon",
        dropoff_lat=28.49,
        dropoff_lng=77.09,
        departure_time=datetime(2026, 10, 20, 8, 30, tzinfo=timezone.utc),
        available_seats=2,
        status=RideStatus.ACTIVE,
    )


REQUEST = RideSearchRequest(
    pickup_location="Sector 18, Noida",
    pickup_lat=28.57,
    pickup_lng=77.32,
    dropoff_location="Cyber City, Gurgaon",
    dropoff_lat=28.49,
    dropoff_lng=77.09,
    departure_time=datetime(2026, 10, 20, 8, 45, tzinfo=timezone.utc),
    preferences="no smoking",
)


def completion_reply(content, status_code=200):
    def handler(request):
        return httpx.Response(status_code, json={"choices": [{"message": {"content": content}}]})
    return handler


def test_prompt_embeds_request_and_candidates():
    offers = [make_offer(), make_offer("Botanical Garden, Noida")]
    prompt = build_matching_prompt(REQUEST, offers)

    assert "Sector 18, Noida (28.57, 77.32)" in prompt
    assert "no smoking" in prompt
    assert str(offers[1].id) in prompt
    assert "5km" in MATCHING_SYSTEM_PROMPT
    assert "30 minutes" in MATCHING_SYSTEM_PROMPT


def test_parse_orders_by_score_and_resolves_ids():
    first, second = make_offer(), make_offer()
    reply = json.dumps([
        {"ride": str(first.id), "score": 40},
        {"ride": {"id": str(second.id)}, "score": 92.6},
    ])

    suggestions = parse_match_reply(reply, [first, second])

    assert [suggestion.ride.id for suggestion in suggestions] == [second.id, first.id]
    assert [suggestion.score for suggestion in suggestions] == [93, 40]


def test_parse_clamps_scores_and_drops_unknown_rides():
    offer = make_offer()
    reply = json.dumps([
        {"ride_id": str(offer.id), "score": 140},
        {"ride": str(uuid.uuid4()), "score": 99},
        {"ride": str(offer.id), "score": 10},
        "not an object",
    ])

    suggestions = parse_match_reply(reply, [offer])

    assert len(suggestions) == 1
    assert suggestions[0].score == 100


def test_parse_unwraps_code_fence():
    offer = make_offer()
    reply = f'```json\n[{{"ride": "{offer.id}", "score": 77}}]\n```'

    assert parse_match_reply(reply, [offer])[0].score == 77


@pytest.mark.parametrize("reply", ["Sure! Here are your matches.", '{"ride": 1}', "", "[{"])
def test_malformed_reply_yields_no_matches(reply):
    assert parse_match_reply(reply, [make_offer()]) == []


@pytest.mark.anyio
async def test_match_rides_sends_system_and_user_prompts():
    offer = make_offer()
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        seen["auth"] = request.headers["Authorization"]
        content = json.dumps([{"ride": str(offer.id), "score": 88}])
        return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})

    client = CompletionClient(api_key="test-key", transport=httpx.MockTransport(handler))
    suggestions = await MatchingService(client).match_rides(REQUEST, [offer])

    assert suggestions[0].score == 88
    assert seen["auth"] == "Bearer test-key"
    assert [message["role"] for message in seen["body"]["messages"]] == ["system", "user"]
    assert seen["body"]["max_tokens"] == 1000


@pytest.mark.anyio
async def test_non_json_reply_is_empty_not_an_error():
    client = CompletionClient(
        api_key="test-key",
        transport=httpx.MockTransport(completion_reply("I could not find anything.")),
    )
    assert await MatchingService(client).match_rides(REQUEST, [make_offer()]) == []


@pytest.mark.anyio
async def test_missing_key_fails_before_any_request():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json={})

    client = CompletionClient(api_key="", transport=httpx.MockTransport(handler))

    with pytest.raises(CompletionConfigError):
        await MatchingService(client).match_rides(REQUEST, [])
    assert calls == []


@pytest.mark.anyio
async def test_service_error_propagates():
    client = CompletionClient(
        api_key="test-key",
        transport=httpx.MockTransport(completion_reply("[]", status_code=429)),
    )

    with pytest.raises(CompletionServiceError) as exc_info:
        await MatchingService(client).match_rides(REQUEST, [make_offer()])
    assert exc_info.value.status_code == 429


def test_overflowing_scores_are_dropped():
    offers = [make_offer(), make_offer("Botanical Garden, Noida")]
    reply = (
        f'[{{"ride": "{offers[0].id}", "score": Infinity}}, '
        f'{{"ride": "{offers[1].id}", "score": 1e400}}, '
        f'{{"ride": "{offers[1].id}", "score": NaN}}]'
    )

    assert parse_match_reply(reply, offers) == []


def test_overflowing_score_keeps_the_other_entries():
    offers = [make_offer(), make_offer("Botanical Garden, Noida")]
    reply = f'[{{"ride": "{offers[0].id}", "score": 70}}, {{"ride": "{offers[1].id}", "score": -Infinity}}]'

    suggestions = parse_match_reply(reply, offers)

    assert [s.ride.id for s in suggestions] == [offers[0].id]
    assert suggestions[0].score == 70
