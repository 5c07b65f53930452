"""
OpenAI chat LLM client.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Sequence

import openai
from openai import OpenAI

from grounded_qa.config import settings
from grounded_qa.errors import CompletionServiceError, InvalidResponse, ServiceCallError
from grounded_qa.retry import call_with_retry, translate_openai_error

if TYPE_CHECKING:
    from grounded_qa.rag.memory import ConversationTurn

DEFAULT_LLM_MODEL = settings.llm_model_name
DEFAULT_TEMPERATURE = settings.llm_temperature

logger = logging.getLogger(__name__)


def build_messages(
    system_instruction: str, history: Sequence["ConversationTurn"], user_prompt: str
) -> List[Dict[str, Any]]:
    messages: List[Dict[str, Any]] = [{"role": "system", "content": system_instruction}]
    messages.extend({"role": turn.role, "content": turn.text} for turn in history)
    messages.append({"role": "user", "content": user_prompt})
    return messages


class LLMClient:
    def __init__(
        self,
        model: str = DEFAULT_LLM_MODEL,
        temperature: float = DEFAULT_TEMPERATURE,
        client: OpenAI | None = None,
        timeout: float = settings.service_timeout_sec,
        max_retries: int = settings.service_max_retries,
        retry_base_delay: float = settings.service_retry_base_delay_sec,
        retry_max_delay: float = settings.service_retry_max_delay_sec,
    ) -> None:
        self.model = model
        self.temperature = temperature
        self.max_retries = max_retries
        self.retry_base_delay = retry_base_delay
        self.retry_max_delay = retry_max_delay
        api_key = settings.openai_api_key.get_secret_value() if settings.openai_api_key else None
        self.client = client or OpenAI(api_key=api_key, timeout=timeout, max_retries=0)

    def complete(
        self, system_instruction: str, history: Sequence["ConversationTurn"], user_prompt: str
    ) -> str:
        messages = build_messages(system_instruction, history, user_prompt)
        try:
            return call_with_retry(
                lambda: self._chat(messages),
                operation="completion",
                max_retries=self.max_retries,
                base_delay=self.retry_base_delay,
                max_delay=self.retry_max_delay,
            )
        except ServiceCallError as exc:
            logger.error("Completion request failed", extra={"model": self.model, "error": str(exc)})
            raise CompletionServiceError(str(exc)) from exc

    def _chat(self, messages: List[Dict[str, Any]]) -> str:
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                temperature=self.temperature,
                messages=messages,
            )
        except openai.OpenAIError as exc:
            raise translate_openai_error("completion", exc, InvalidResponse) from exc

        if not response.choices:
            raise InvalidResponse("completion", "response has no choices")
        choice = response.choices[0].message
        return choice.content or ""


__all__ = ["LLMClient", "build_messages", "DEFAULT_LLM_MODEL", "DEFAULT_TEMPERATURE"]
