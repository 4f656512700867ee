from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
import logging
from uuid import UUID

from ..database import get_db
from ..schemas.assistant import ChatRequest, ChatResponse
from ..services.assistant_service import AssistantService
from ..utils.auth import get_current_user_id
from ..utils.completion_client import CompletionConfigError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/assistant", tags=["assistant"])

assistant_service = AssistantService()


@router.post("/chat", response_model=ChatResponse)
async def chat(
    chat_data: ChatRequest,
    db: AsyncSession = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id)
):
    """Ask the carpool assistant a question"""
    try:
        return await assistant_service.chat(user_id, chat_data, db)
    except CompletionConfigError as e:
        logger.error(f"Assistant unavailable: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Assistant is not configured"
        )
    except Exception as e:
        logger.error(f"Failed to answer chat message: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get a reply from the assistant"
        )
