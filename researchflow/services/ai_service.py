"""AI writing-action service: canned fixtures (mock) or a hosted-LLM relay.

The mock variant answers every task from :mod:`researchflow.services.ai_tasks`
after a short random delay.  The relay variant forwards the caller content
verbatim to the provider serving the task's family and extracts the first
text field of the response.
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

import httpx

from researchflow.config import LLMModel, Settings, model_for_family
from researchflow.errors import ResearchFlowError, ValidationError
from researchflow.services.ai_tasks import (
    RELAY_TEXT_FIELDS,
    REPLACEMENT_TASKS,
    mock_response,
    task_family,
)

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"
NO_KEY_MESSAGE = "No API key set. Please add ANTHROPIC_API_KEY or OPENAI_API_KEY."

_PROVIDER_LABELS = {"anthropic": "Claude", "openai": "OpenAI"}


@dataclass
class AIRequest:
    """One AI request as received by ``POST /api/ai``."""

    task: str
    content: str = ""
    word_target: Optional[int] = None
    field: Optional[str] = None
    notes: Optional[str] = None


def extract_anthropic_text(data: Any) -> Optional[str]:
    """First text block of a messages-API response."""
    if not isinstance(data, dict):
        return None
    for block in data.get("content") or []:
        if isinstance(block, dict) and isinstance(block.get("text"), str):
            return block["text"]
    return None


def extract_openai_text(data: Any) -> Optional[str]:
    """``choices[0].message.content`` of a chat-completions response."""
    if not isinstance(data, dict):
        return None
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    message = first.get("message")
    if isinstance(message, dict) and isinstance(message.get("content"), str):
        return message["content"]
    return None


class AIService:
    """Answer AI requests in the configured mode."""

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Args:
            settings: Application settings (mode, keys, delays, timeout)
            transport: Optional httpx transport for the relay (tests)
            sleep: Coroutine used for the mock delay
        """
        self.settings = settings
        self._transport = transport
        self._sleep = sleep

    async def run(self, request: AIRequest) -> dict[str, Any]:
        """Answer *request*.

        Raises:
            ValidationError: If the task is missing
            UnsupportedTaskError: If the task is unknown
            ResearchFlowError: If no provider serves the task's family
        """
        if not request.task:
            raise ValidationError("Missing task")
        family = task_family(request.task)

        if self.settings.ai_mode == "relay":
            text, fallback = await self._relay(family, request.content)
            return self._relay_response(request.task, text, fallback)

        low, high = self.settings.mock_delay
        delay = random.uniform(low, high)
        if delay > 0:
            await self._sleep(delay)
        return mock_response(
            request.task,
            text=request.content,
            word_target=request.word_target,
            field=request.field,
            notes=request.notes,
        )

    # ── Relay ─────────────────────────────────────────────────────────

    @staticmethod
    def _relay_response(task: str, text: str, fallback: bool = False) -> dict[str, Any]:
        """Wrap relay text in the fields the editor reads.

        Placeholder answers (no key, no text) carry ``fallback`` and never
        a ``revised`` field, so they cannot replace section content.
        """
        response: dict[str, Any] = {"result": text}
        if fallback:
            response["fallback"] = True
            return response
        if task in REPLACEMENT_TASKS:
            response["revised"] = text
        elif task in RELAY_TEXT_FIELDS:
            response[RELAY_TEXT_FIELDS[task]] = text
        return response

    async def _relay(self, family: str, content: str) -> tuple[str, bool]:
        model = model_for_family(family)
        if model is None:
            raise ResearchFlowError(f"No provider configured for {family} tasks")

        api_key = self.settings.api_key_for(model.provider_id)
        if not api_key:
            return NO_KEY_MESSAGE, True

        if model.provider_id == "anthropic":
            headers = {
                "x-api-key": api_key,
                "anthropic-version": ANTHROPIC_VERSION,
                "content-type": "application/json",
            }
            body = {
                "model": model.id,
                "max_tokens": model.max_output or 500,
                "messages": [{"role": "user", "content": content}],
            }
            extract = extract_anthropic_text
        else:
            headers = {
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            }
            body = {
                "model": model.id,
                "messages": [{"role": "user", "content": content}],
            }
            extract = extract_openai_text

        data = await self._post(model, headers, body)
        text = extract(data)
        if text is None:
            label = _PROVIDER_LABELS.get(model.provider_id, model.provider_name)
            return f"{label} returned no text.", True
        return text, False

    async def _post(self, model: LLMModel, headers: dict[str, str], body: dict[str, Any]) -> Any:
        async with httpx.AsyncClient(
            timeout=self.settings.ai_timeout, transport=self._transport
        ) as client:
            response = await client.post(model.base_url, headers=headers, json=body)
        logger.info("Relayed to %s (%s): HTTP %d", model.provider_id, model.id, response.status_code)
        return response.json()
