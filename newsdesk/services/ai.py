from __future__ import annotations
from typing import Any, Awaitable, Callable, Dict, Optional, Sequence
import asyncio
import json
import logging

from newsdesk.errors import LLMError
from newsdesk.services.providers import LLMProvider
from newsdesk.services.validate import validate_against_schema

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3
# Seconds to wait before the 2nd, 3rd, ... attempt
BACKOFF_S: Sequence[float] = (1.0, 2.0, 4.0)

class LLMClient:
    """Schema-validated structured generation on top of a provider.

    The client does no input windowing; callers truncate prompts.
    """

    def __init__(
        self,
        provider: LLMProvider,
        max_attempts: int = MAX_ATTEMPTS,
        backoff: Sequence[float] = BACKOFF_S,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.provider = provider
        self.max_attempts = max(1, max_attempts)
        self.backoff = tuple(backoff)
        self._sleep = sleep

    def _delay(self, attempt: int) -> float:
        if not self.backoff:
            return 0.0
        return self.backoff[min(attempt - 1, len(self.backoff) - 1)]

    async def generate_structured(
        self,
        system_prompt: str,
        user_prompt: str,
        schema: Dict[str, Any],
        *,
        temperature: float = 0.3,
        model: Optional[str] = None,
    ) -> Dict[str, Any]:
        provider_schema = self.provider.adapt_schema(schema)
        last_error: Optional[BaseException] = None

        for attempt in range(self.max_attempts):
            if attempt > 0:
                await self._sleep(self._delay(attempt))
            try:
                text = await self.provider.complete(
                    system_prompt, user_prompt,
                    response_schema=provider_schema, temperature=temperature, model=model,
                )
                if not text or not text.strip():
                    raise LLMError("empty response")
                try:
                    data = json.loads(text)
                except json.JSONDecodeError as e:
                    raise LLMError(f"response is not JSON: {e}") from e
                valid, errors = validate_against_schema(data, schema)
                if not valid:
                    raise LLMError("response failed schema validation: " + "; ".join(errors[:5]))
                return data
            except Exception as e:
                last_error = e
                logger.warning("%s attempt %d/%d failed: %s", self.provider.name, attempt + 1, self.max_attempts, e)

        raise LLMError(f"LLM call failed after {self.max_attempts} attempts: {last_error}") from last_error

    async def generate_text(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        temperature: float = 0.3,
        model: Optional[str] = None,
    ) -> str:
        text = await self.provider.complete(system_prompt, user_prompt, temperature=temperature, model=model)
        if not text or not text.strip():
            raise LLMError(f"Empty response from {self.provider.name}")
        return text
