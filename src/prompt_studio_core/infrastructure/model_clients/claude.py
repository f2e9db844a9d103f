"""
Anthropic Claude model client
"""

import os
import time
from typing import AsyncIterator

import anthropic
from anthropic import AsyncAnthropic

from prompt_studio_core.domain.errors import MissingApiKeyError
from prompt_studio_core.domain.value_objects import (
    ChunkType,
    ModelDescriptor,
    ModelResponse,
    RunParameters,
    StreamChunk,
    Usage,
)
from prompt_studio_core.infrastructure.model_clients.base import (
    ModelClient,
    resolve_options,
    translate_errors,
)

_NETWORK_ERRORS = (anthropic.APIConnectionError,)
_API_ERRORS = (anthropic.APIStatusError, anthropic.APIResponseValidationError)


class ClaudeClient(ModelClient):
    """Claude client using the Anthropic API"""

    def __init__(
        self,
        model: ModelDescriptor,
        api_key: str | None = None,
        timeout_seconds: int = 120,
        default_max_tokens: int = 4096,
    ):
        """
        Args:
            model: Model descriptor (e.g. claude-sonnet-4-5-20250929)
            api_key: Anthropic API key (falls back to environment variable if not specified)
            timeout_seconds: Transport timeout in seconds (default: 120)
            default_max_tokens: Max tokens when the caller gives none (default: 4096)
        """
        self.model = model
        self.api_key = api_key or os.environ.get("ANTHROPIC_API_KEY")
        self.default_max_tokens = default_max_tokens

        if not self.api_key:
            raise MissingApiKeyError("anthropic")

        self.client = AsyncAnthropic(api_key=self.api_key, timeout=float(timeout_seconds))

    def _request_kwargs(self, prompt: str, parameters: RunParameters | None) -> dict:
        options = resolve_options(self.model, parameters, self.default_max_tokens)
        kwargs: dict = {
            "model": self.model.name,
            "max_tokens": options.max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        if options.system_prompt:
            kwargs["system"] = options.system_prompt
        if options.thinking_budget:
            # Extended thinking needs room beyond the budget and rejects a custom temperature
            kwargs["thinking"] = {"type": "enabled", "budget_tokens": options.thinking_budget}
            kwargs["max_tokens"] = max(options.max_tokens, options.thinking_budget + 1024)
        elif options.temperature is not None:
            kwargs["temperature"] = options.temperature
        return kwargs

    async def stream(
        self,
        prompt: str,
        parameters: RunParameters | None = None,
    ) -> AsyncIterator[StreamChunk]:
        kwargs = self._request_kwargs(prompt, parameters)
        with translate_errors("anthropic", _NETWORK_ERRORS, _API_ERRORS):
            async with self.client.messages.stream(**kwargs) as stream:
                async for event in stream:
                    if event.type != "content_block_delta":
                        continue
                    if event.delta.type == "text_delta":
                        yield StreamChunk(ChunkType.CONTENT_DELTA, text=event.delta.text)
                    elif event.delta.type == "thinking_delta":
                        yield StreamChunk(ChunkType.THINKING_DELTA, text=event.delta.thinking)
                final = await stream.get_final_message()

        yield StreamChunk(
            ChunkType.DONE,
            usage=Usage(
                input_tokens=getattr(final.usage, "input_tokens", 0) or 0,
                output_tokens=getattr(final.usage, "output_tokens", 0) or 0,
            ),
            finish_reason=final.stop_reason or "unknown",
        )

    async def generate(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> ModelResponse:
        kwargs = self._request_kwargs(
            prompt,
            RunParameters(temperature=temperature, max_tokens=max_tokens, system_prompt=system_prompt),
        )
        start_time = time.time()
        with translate_errors("anthropic", _NETWORK_ERRORS, _API_ERRORS):
            response = await self.client.messages.create(**kwargs)
        latency_ms = int((time.time() - start_time) * 1000)

        output = "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        ).strip()

        return ModelResponse(
            output=output,
            latency_ms=latency_ms,
            model_name=self.model.id,
            input_tokens=getattr(response.usage, "input_tokens", 0) or 0,
            output_tokens=getattr(response.usage, "output_tokens", 0) or 0,
        )
