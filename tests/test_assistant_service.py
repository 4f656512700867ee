import json
import uuid

import httpx
import pytest

from app.config import settings
from app.schemas.assistant import ChatMessage, ChatRequest
from app.services.assistant_service import FALLBACK_REPLY, AssistantService
from app.utils.completion_client import CompletionClient, CompletionConfigError
from factories import add_ride

pytestmark = pytest.mark.anyio


def recording_client(sent, response=None):
    def handler(request):
        sent.append(json.loads(request.content))
        if response is not None:
            return response
        return httpx.Response(200, json={"choices": [{"message": {"content": "Try the 8:30 ride."}}]})

    return CompletionClient(api_key="k", transport=httpx.MockTransport(handler))


def context_rides(system_prompt, label):
    for line in system_prompt.splitlines():
        if line.startswith(label):
            return json.loads(line[len(label):])
    raise AssertionError(f"{label!r} missing from system prompt")


async def test_system_prompt_carries_recent_and_available_rides(db_session):
    user_id = uuid.uuid4()
    for _ in range(7):
        await add_ride(db_session, user_id)
    for _ in range(12):
        await add_ride(db_session, uuid.uuid4())

    sent = []
    response = await AssistantService(recording_client(sent)).chat(
        user_id, ChatRequest(message="Any rides to Gurgaon tomorrow?"), db_session
    )

    assert response.reply == "Try the 8:30 ride."
    assert not response.degraded

    messages = sent[0]["messages"]
    assert messages[0]["role"] == "system"
    assert str(user_id) in messages[0]["content"]
    user_rides = context_rides(messages[0]["content"], "- User's recent rides: ")
    available = context_rides(messages[0]["content"], "- Available rides: ")
    assert len(user_rides) == 5
    assert all(ride["user_id"] == str(user_id) for ride in user_rides)
    assert len(available) == 10
    assert messages[-1] == {"role": "user", "content": "Any rides to Gurgaon tomorrow?"}


async def test_history_is_trimmed_to_latest_messages(db_session):
    history = [
        ChatMessage(role="user" if i % 2 == 0 else "assistant", content=f"message {i}")
        for i in range(7)
    ]

    sent = []
    await AssistantService(recording_client(sent)).chat(
        uuid.uuid4(), ChatRequest(message="And now?", history=history), db_session
    )

    messages = sent[0]["messages"]
    assert [m["content"] for m in messages[1:-1]] == [f"message {i}" for i in range(2, 7)]


async def test_zero_history_size_sends_no_history(db_session, monkeypatch):
    monkeypatch.setattr(settings, "assistant_history_size", 0)
    history = [ChatMessage(role="user", content="earlier question")]

    sent = []
    await AssistantService(recording_client(sent)).chat(
        uuid.uuid4(), ChatRequest(message="Hello", history=history), db_session
    )

    assert [m["role"] for m in sent[0]["messages"]] == ["system", "user"]


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, json={"error": "overloaded"}),
        httpx.Response(200, text="<html>gateway</html>"),
    ],
)
async def test_service_failure_returns_apology(db_session, response):
    sent = []
    reply = await AssistantService(recording_client(sent, response)).chat(
        uuid.uuid4(), ChatRequest(message="Hello"), db_session
    )

    assert reply.reply == FALLBACK_REPLY
    assert reply.degraded


async def test_missing_key_fails_before_any_call(db_session):
    sent = []
    client = recording_client(sent)
    client.api_key = ""

    with pytest.raises(CompletionConfigError):
        await AssistantService(client).chat(uuid.uuid4(), ChatRequest(message="Hello"), db_session)
    assert sent == []
