"""
Google Gemini (Google GenAI SDK) model client
"""

import os
import time
from typing import AsyncIterator

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai.types import GenerateContentConfig, HttpOptions, ThinkingConfig

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

_NETWORK_ERRORS = (httpx.TransportError,)
_API_ERRORS = (genai_errors.APIError,)


def _usage_from(metadata) -> Usage:
    if not metadata:
        return Usage()
    return Usage(
        input_tokens=getattr(metadata, "prompt_token_count", 0) or 0,
        output_tokens=getattr(metadata, "candidates_token_count", 0) or 0,
    )


class GeminiClient(ModelClient):
    """Model client using the Google GenAI SDK with an API key"""

    def __init__(
        self,
        model: ModelDescriptor,
        api_key: str | None = None,
        timeout_seconds: int = 120,
        default_max_tokens: int = 4096,
    ):
        """
        Args:
            model: Model descriptor (e.g. gemini-2.5-pro, gemini-2.5-flash)
            api_key: Google API key (falls back to environment variable if not specified)
            timeout_seconds: Transport timeout in seconds (default: 120)
            default_max_tokens: Max tokens when the caller gives none (default: 4096)
        """
        self.model = model
        self.api_key = api_key or os.environ.get("GOOGLE_GENERATIVE_AI_API_KEY")
        self.default_max_tokens = default_max_tokens

        if not self.api_key:
            raise MissingApiKeyError("google")

        # Timeout is configured via HttpOptions, in milliseconds
        self.client = genai.Client(
            api_key=self.api_key,
            http_options=HttpOptions(timeout=timeout_seconds * 1000),
        )

    def _config(self, parameters: RunParameters | None) -> GenerateContentConfig:
        options = resolve_options(self.model, parameters, self.default_max_tokens)
        config = GenerateContentConfig(max_output_tokens=options.max_tokens)
        if options.temperature is not None:
            config.temperature = options.temperature
        if options.system_prompt:
            config.system_instruction = options.system_prompt
        if options.thinking_budget:
            config.thinking_config = ThinkingConfig(
                include_thoughts=True,
                thinking_budget=options.thinking_budget,
            )
        return config

    async def stream(
        self,
        prompt: str,
        parameters: RunParameters | None = None,
    ) -> AsyncIterator[StreamChunk]:
        config = self._config(parameters)
        usage = Usage()
        finish_reason = "unknown"
        with translate_errors("google", _NETWORK_ERRORS, _API_ERRORS):
            response = await self.client.aio.models.generate_content_stream(
                model=self.model.name,
                contents=prompt,
                config=config,
            )
            async for chunk in response:
                if chunk.usage_metadata:
                    usage = _usage_from(chunk.usage_metadata)
                if not chunk.candidates:
                    continue
                candidate = chunk.candidates[0]
                if candidate.finish_reason:
                    finish_reason = str(candidate.finish_reason.value).lower()
                if not candidate.content or not candidate.content.parts:
                    continue
                for part in candidate.content.parts:
                    if not part.text:
                        continue
                    if part.thought:
                        yield StreamChunk(ChunkType.THINKING_DELTA, text=part.text)
                    else:
                        yield StreamChunk(ChunkType.CONTENT_DELTA, text=part.text)

        yield StreamChunk(ChunkType.DONE, usage=usage, finish_reason=finish_reason)

    async def generate(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> ModelResponse:
        config = self._config(
            RunParameters(temperature=temperature, max_tokens=max_tokens, system_prompt=system_prompt)
        )
        start_time = time.time()
        with translate_errors("google", _NETWORK_ERRORS, _API_ERRORS):
            response = await self.client.aio.models.generate_content(
                model=self.model.name,
                contents=prompt,
                config=config,
            )
        latency_ms = int((time.time() - start_time) * 1000)

        usage = _usage_from(getattr(response, "usage_metadata", None))
        return ModelResponse(
            output=(response.text or "").strip(),
            latency_ms=latency_ms,
            model_name=self.model.id,
            input_tokens=usage.input_tokens,
            output_tokens=usage.output_tokens,
        )
