"""Model-completion capability used by the standalone backend."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

import anthropic

from taurus_ai.broker.errors import CompletionFailedError
from taurus_ai.config import TaurusConfig, default_config

logger = logging.getLogger(__name__)

Turn = Tuple[str, str]


class AnthropicCompletionClient:
    """
    One-shot completions over ``anthropic.AsyncAnthropic``.

    ``complete`` takes ordered ``(role, text)`` turns and returns every text
    segment of the reply in order. Provider failures are raised as
    ``CompletionFailedError`` carrying the provider's message.
    """

    def __init__(
        self,
        api_key: str,
        *,
        config: TaurusConfig = default_config,
        client: Optional[anthropic.AsyncAnthropic] = None,
    ) -> None:
        self.config = config
        self._client = client or anthropic.AsyncAnthropic(api_key=api_key)

    async def complete(self, turns: Sequence[Turn], model: Optional[str] = None) -> List[str]:
        model_id = model or self.config.default_model
        messages = [{"role": role, "content": text} for role, text in turns]
        try:
            response = await self._client.messages.create(
                model=model_id,
                max_tokens=self.config.max_tokens,
                messages=messages,
            )
        except anthropic.APIError as exc:
            logger.warning("Completion failed model=%s", model_id, extra={"error": str(exc)})
            raise CompletionFailedError(str(exc)) from exc

        return [
            block.text
            for block in response.content
            if getattr(block, "type", None) == "text"
        ]

    async def aclose(self) -> None:
        await self._client.close()


def build_completion_client(config: TaurusConfig = default_config) -> Optional[AnthropicCompletionClient]:
    """Return a completion client when a credential is configured, else None."""
    if not config.anthropic_api_key:
        return None
    return AnthropicCompletionClient(config.anthropic_api_key, config=config)
