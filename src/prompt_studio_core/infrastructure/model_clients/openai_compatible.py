"""
OpenAI-compatible API model client

Serves OpenAI itself and every provider exposing the same chat
completions endpoint (Mistral, DeepSeek, Perplexity, local Ollama).
"""

import os
import time
from typing import AsyncIterator

import openai
from openai import AsyncOpenAI

from prompt_studio_core.domain.constants import PROVIDER_BASE_URLS, PROVIDER_ENV_KEYS
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

_NETWORK_ERRORS = (openai.APIConnectionError,)
_API_ERRORS = (openai.APIStatusError, openai.APIResponseValidationError)

# Providers that report usage on the final chunk when asked to
_USAGE_IN_STREAM = {"openai", "deepseek", "ollama"}


class OpenAICompatibleClient(ModelClient):
    """Client for OpenAI and OpenAI-compatible chat completions endpoints"""

    def __init__(
        self,
        model: ModelDescriptor,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout_seconds: int = 120,
        default_max_tokens: int = 4096,
    ):
        """
        Args:
            model: Model descriptor (e.g. gpt-5-mini, deepseek-reasoner, ollama-qwen3-8b)
            api_key: API key (falls back to the provider's environment variable if not specified)
            base_url: Endpoint (falls back to the provider's known endpoint if not specified)
            timeout_seconds: Transport timeout in seconds (default: 120)
            default_max_tokens: Max tokens when the caller gives none (default: 4096)
        """
        self.model = model
        self.provider = model.provider
        self.default_max_tokens = default_max_tokens

        # Configuration priority: argument > environment variable > default value
        if self.provider == "ollama":
            api_key = api_key or "ollama"
        else:
            api_key = api_key or os.environ.get(PROVIDER_ENV_KEYS.get(self.provider, ""), "")
        if not api_key:
            raise MissingApiKeyError(self.provider)

        self.base_url = base_url or PROVIDER_BASE_URLS.get(self.provider)
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=self.base_url,
            timeout=float(timeout_seconds),
        )

    def _request_kwargs(self, prompt: str, parameters: RunParameters | None) -> dict:
        options = resolve_options(self.model, parameters, self.default_max_tokens)
        messages = []
        if options.system_prompt:
            messages.append({"role": "system", "content": options.system_prompt})
        messages.append({"role": "user", "content": prompt})

        kwargs: dict = {"model": self.model.name, "messages": messages}
        # OpenAI's current models take max_completion_tokens; compatible servers still use max_tokens
        if self.provider == "openai":
            kwargs["max_completion_tokens"] = options.max_tokens
        else:
            kwargs["max_tokens"] = options.max_tokens
        if options.temperature is not None:
            kwargs["temperature"] = options.temperature
        return kwargs

    async def stream(
        self,
        prompt: str,
        parameters: RunParameters | None = None,
    ) -> AsyncIterator[StreamChunk]:
        kwargs = self._request_kwargs(prompt, parameters)
        if self.provider in _USAGE_IN_STREAM:
            kwargs["stream_options"] = {"include_usage": True}

        usage = Usage()
        finish_reason = "unknown"
        with translate_errors(self.provider, _NETWORK_ERRORS, _API_ERRORS):
            response = await self.client.chat.completions.create(stream=True, **kwargs)
            async for chunk in response:
                if chunk.usage:
                    usage = Usage(
                        input_tokens=chunk.usage.prompt_tokens or 0,
                        output_tokens=chunk.usage.completion_tokens or 0,
                    )
                if not chunk.choices:
                    continue
                choice = chunk.choices[0]
                if choice.finish_reason:
                    finish_reason = choice.finish_reason
                delta = choice.delta
                # DeepSeek reports reasoning as reasoning_content, Ollama as reasoning
                reasoning = getattr(delta, "reasoning_content", None) or getattr(delta, "reasoning", None)
                if reasoning:
                    yield StreamChunk(ChunkType.THINKING_DELTA, text=reasoning)
                if delta.content:
                    yield StreamChunk(ChunkType.CONTENT_DELTA, text=delta.content)

        yield StreamChunk(ChunkType.DONE, usage=usage, finish_reason=finish_reason)

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
        with translate_errors(self.provider, _NETWORK_ERRORS, _API_ERRORS):
            response = await self.client.chat.completions.create(**kwargs)
        latency_ms = int((time.time() - start_time) * 1000)

        output = (response.choices[0].message.content or "").strip()

        # Retrieve token usage
        input_tokens = 0
        output_tokens = 0
        if response.usage:
            input_tokens = response.usage.prompt_tokens or 0
            output_tokens = response.usage.completion_tokens or 0

        return ModelResponse(
            output=output,
            latency_ms=latency_ms,
            model_name=self.model.id,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
        )
