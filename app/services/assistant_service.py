from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from typing import Optional
import json
import logging
from uuid import UUID

from ..models.ride import Ride
from ..schemas.assistant import ChatRequest, ChatResponse
from ..schemas.ride import RideResponse
from ..config import settings
from ..utils.completion_client import CompletionClient, CompletionServiceError, completion_client
from .ride_service import RideService

logger = logging.getLogger(__name__)

USER_RIDES_CONTEXT = 5
AVAILABLE_RIDES_CONTEXT = 10

FALLBACK_REPLY = (
    "I'm sorry, I'm having trouble responding right now. "
    "Please try again later or use the regular features of the app."
)


def build_system_prompt(user_id: UUID, user_rides: list[RideResponse], available_rides: list[RideResponse]) -> str:
    user_rides_json = json.dumps([ride.model_dump(mode="json") for ride in user_rides])
    available_json = json.dumps([ride.model_dump(mode="json") for ride in available_rides])
    return (
        "You are a helpful AI assistant for Carpool Companion, a ride-sharing platform.\n"
        "Your role is to help users with:\n"
        "1. Finding rides based on their needs\n"
        "2. Offering rides\n"
        "3. General carpooling advice\n"
        "4. Understanding the platform features\n"
        "\n"
        "Context about the user:\n"
        f"- User ID: {user_id}\n"
        f"- User's recent rides: {user_rides_json}\n"
        f"- Available rides: {available_json}\n"
        "\n"
        "Be helpful, friendly, and provide specific actionable advice. If users ask about specific rides,\n"
        "reference the available rides data. If they want to offer or request a ride, guide them to the\n"
        "appropriate forms."
    )


class AssistantService:
    def __init__(self, client: Optional[CompletionClient] = None):
        self.client = client or completion_client
        self.ride_service = RideService()

    async def chat(self, user_id: UUID, chat_data: ChatRequest, db: AsyncSession) -> ChatResponse:
        """Answer a chat message with the user's rides as context"""
        self.client.require_api_key()

        user_rides_stmt = (
            select(Ride)
            .where(Ride.user_id == user_id)
            .order_by(desc(Ride.created_at))
            .limit(USER_RIDES_CONTEXT)
        )
        user_rides = (await db.execute(user_rides_stmt)).scalars().all()
        available_rides = await self.ride_service.search_offers(db, limit=AVAILABLE_RIDES_CONTEXT)

        history_size = settings.assistant_history_size
        history = chat_data.history[-history_size:] if history_size > 0 else []
        messages = [
            {
                "role": "system",
                "content": build_system_prompt(
                    user_id,
                    [RideResponse.model_validate(ride) for ride in user_rides],
                    [RideResponse.model_validate(ride) for ride in available_rides],
                ),
            },
            *({"role": message.role, "content": message.content} for message in history),
            {"role": "user", "content": chat_data.message},
        ]

        try:
            reply = await self.client.complete(messages)
        except CompletionServiceError as e:
            logger.error(f"Error getting AI response: {e}")
            return ChatResponse(reply=FALLBACK_REPLY, degraded=True)

        return ChatResponse(reply=reply)
