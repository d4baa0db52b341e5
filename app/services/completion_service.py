"""Gemini-backed chat completion service."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

from google import genai
from google.genai import types

from app.config import Settings
from app.utils.exceptions import CompletionError

logger = logging.getLogger(__name__)

# Gemini has no "assistant" role; prior model turns are sent as "model".
_GEMINI_ROLES = {"user": "user", "assistant": "model"}


@dataclass(frozen=True)
class ChatMessage:
    role: str  # "system", "user" or "assistant"
    content: str


class CompletionService:
    """Sends a role-tagged message list to Gemini and returns the text completion."""

    def __init__(self, settings: Settings, client: Optional[genai.Client] = None) -> None:
        self._settings = settings
        self._client = client

    @property
    def client(self) -> genai.Client:
        """Get or create Gemini client (lazy initialization)."""
        if self._client is None:
            if not self._settings.gemini_api_key:
                raise CompletionError("GEMINI_API_KEY is not configured")
            self._client = genai.Client(api_key=self._settings.gemini_api_key)
        return self._client

    async def complete(self, messages: Sequence[ChatMessage], temperature: float) -> str:
        """
        Run one completion.

        Raises:
            CompletionError: If the API call fails or returns no text
        """
        system_instruction, contents = self._to_gemini_contents(messages)
        config = types.GenerateContentConfig(
            system_instruction=system_instruction,
            temperature=temperature,
            max_output_tokens=self._settings.gemini_max_tokens,
        )

        def _sync_call() -> Any:
            return self.client.models.generate_content(
                model=self._settings.gemini_model,
                contents=contents,
                config=config,
            )

        try:
            response = await asyncio.to_thread(_sync_call)
        except CompletionError:
            raise
        except Exception as e:
            logger.error(f"Gemini API error: {str(e)}", exc_info=True)
            raise CompletionError(f"Gemini API error: {str(e)}") from e

        text = getattr(response, "text", None)
        if not isinstance(text, str) or not text.strip():
            candidates = getattr(response, "candidates", None) or []
            finish_reason = getattr(candidates[0], "finish_reason", None) if candidates else None
            logger.warning("Gemini returned empty response", extra={"finish_reason": str(finish_reason)})
            raise CompletionError("Gemini returned empty response")

        logger.debug("Gemini raw response:\n%s", text)
        return text

    @staticmethod
    def _to_gemini_contents(messages: Sequence[ChatMessage]) -> tuple[Optional[str], List[types.Content]]:
        system_parts: List[str] = []
        contents: List[types.Content] = []
        for message in messages:
            if message.role == "system":
                system_parts.append(message.content)
                continue
            role = _GEMINI_ROLES.get(message.role)
            if role is None:
                raise CompletionError(f"Unsupported message role: {message.role}")
            contents.append(types.Content(role=role, parts=[types.Part(text=message.content)]))

        if not contents:
            raise CompletionError("At least one user message is required")

        system_instruction = "\n\n".join(system_parts) if system_parts else None
        return system_instruction, contents
