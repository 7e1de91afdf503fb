"""
OpenAI-backed correction service.

The client is injected so callers control its lifetime and tests can
substitute a stub; create_openai_service() builds one from ServiceConfig.
"""

from __future__ import annotations

import logging

from openai import AsyncOpenAI, OpenAIError

from cinearchive.config import ServiceConfig
from cinearchive.exceptions import ConfigurationError, CorrectionServiceError
from cinearchive.models import RawPayload
from cinearchive.service.base import CorrectionService, ServiceReply
from cinearchive.service.prompts import SYSTEM_PROMPT, build_user_prompt

logger = logging.getLogger(__name__)


class OpenAICorrectionService(CorrectionService):
    def __init__(
        self,
        client: AsyncOpenAI,
        model: str,
        *,
        temperature: float = 0.1,
        max_tokens: int = 16000,
    ) -> None:
        self._client = client
        self.model = model
        self._temperature = temperature
        self._max_tokens = max_tokens

    async def request_corrections(self, text: str) -> ServiceReply:
        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                temperature=self._temperature,
                max_tokens=self._max_tokens,
                response_format={"type": "json_object"},
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": build_user_prompt(text)},
                ],
            )
        except OpenAIError as e:
            raise CorrectionServiceError(f"OpenAI request failed: {e}", model=self.model) from e

        usage = response.usage
        choice = response.choices[0] if response.choices else None
        content = choice.message.content if choice and choice.message else None
        if choice is not None and choice.finish_reason == "length":
            logger.warning("Service reply hit the %d token limit and is truncated", self._max_tokens)

        return ServiceReply(
            raw=RawPayload(content or ""),
            model=self.model,
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
        )


def create_openai_service(config: ServiceConfig | None = None) -> OpenAICorrectionService:
    """
    Create an OpenAI correction service.

    Args:
        config: Connection settings; read from the environment if None.

    Raises:
        ConfigurationError: If no API key is configured.
    """
    config = config or ServiceConfig.from_env()
    if not config.api_key:
        raise ConfigurationError("OPENAI_API_KEY environment variable is not set")

    return OpenAICorrectionService(
        AsyncOpenAI(api_key=config.api_key),
        config.model,
        temperature=config.temperature,
        max_tokens=config.max_tokens,
    )
