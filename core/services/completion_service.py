import asyncio
import logging
from typing import List, Optional

import aiohttp

from config import settings
from core.errors import MalformedResponse, TransportError, UpstreamUnavailable
from models.schemas import Turn

logger = logging.getLogger(__name__)


class CompletionService:
    """OpenAI-compatible chat completions client.

    Raises UpstreamUnavailable, TransportError or MalformedResponse; callers
    are expected to fall back rather than surface these.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.OPENAI_API_KEY
        self.api_url = api_url or settings.OPENAI_API_URL
        self.model = model or settings.OPENAI_MODEL
        self.temperature = settings.COMPLETION_TEMPERATURE
        self.max_tokens = settings.COMPLETION_MAX_TOKENS
        self._request_timeout = timeout_seconds or settings.COMPLETION_TIMEOUT_SECONDS

    @property
    def available(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    def _build_payload(self, system_prompt: str, history: List[Turn]) -> dict:
        messages = [{"role": "system", "content": system_prompt}]
        messages.extend(turn.as_message() for turn in history)
        return {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }

    async def complete(self, system_prompt: str, history: List[Turn]) -> str:
        """Generate the assistant's next reply for the given history"""
        if not self.available:
            raise UpstreamUnavailable("Completion service credential is not configured")

        payload = self._build_payload(system_prompt, history)
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    self.api_url,
                    json=payload,
                    timeout=aiohttp.ClientTimeout(total=self._request_timeout),
                    headers=headers,
                ) as response:
                    if response.status != 200:
                        error_text = await response.text()
                        raise TransportError(
                            f"Completion API error {response.status}: {error_text[:200]}",
                            status=response.status,
                        )
                    try:
                        data = await response.json(content_type=None)
                    except ValueError as e:
                        raise MalformedResponse(f"Completion response is not JSON: {e}") from e
        except asyncio.TimeoutError as e:
            raise TransportError(f"Completion API timeout after {self._request_timeout}s") from e
        except aiohttp.ClientError as e:
            raise TransportError(f"Completion API transport error: {e}") from e

        return self._extract_text(data)

    @staticmethod
    def _extract_text(data) -> str:
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise MalformedResponse(f"No message content in completion response: {str(data)[:200]}") from e
        if not isinstance(content, str) or not content.strip():
            raise MalformedResponse("Completion response content is empty")
        return content.strip()


completion_service = CompletionService()
