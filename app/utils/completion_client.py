import httpx
import logging
from typing import Any, Dict, List, Optional
from ..config import settings

logger = logging.getLogger(__name__)

EMPTY_REPLY = "No response from AI"


class CompletionConfigError(RuntimeError):
    """The completion service credential is not configured"""


class CompletionServiceError(RuntimeError):
    """The completion service answered with an error or could not be reached"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class CompletionClient:
    """Chat-completion calls against an OpenAI-compatible endpoint.

    A new HTTP client is opened per call; nothing is kept between calls.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        model: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.completion_api_key
        self.api_url = api_url or settings.completion_api_url
        self.model = model or settings.completion_model
        self.transport = transport

    def require_api_key(self) -> str:
        """Return the credential or fail before any network call"""
        if not self.api_key:
            raise CompletionConfigError("Completion API key not configured")
        return self.api_key

    async def complete(self, messages: List[Dict[str, str]]) -> str:
        """Send a conversation and return the first choice's text"""
        api_key = self.require_api_key()

        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": settings.completion_temperature,
            "max_tokens": settings.completion_max_tokens,
        }
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient(
                transport=self.transport, timeout=settings.completion_timeout
            ) as client:
                response = await client.post(self.api_url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"Completion service call failed: {e}")
            raise CompletionServiceError(f"Completion service unreachable: {e}") from e

        if response.is_error:
            logger.error(f"Completion service error: {response.status_code}")
            raise CompletionServiceError(
                f"Completion service error: {response.status_code}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
            choices = data.get("choices") or []
            if not choices:
                return EMPTY_REPLY
            content = (choices[0].get("message") or {}).get("content")
        except (ValueError, AttributeError, TypeError, IndexError) as e:
            logger.error(f"Unreadable completion response: {e}")
            raise CompletionServiceError("Completion service returned an unreadable response") from e

        if content is not None and not isinstance(content, str):
            raise CompletionServiceError("Completion service returned non-text content")
        return content or EMPTY_REPLY


# Global completion client instance
completion_client = CompletionClient()
