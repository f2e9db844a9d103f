"""
Model client base class

Defines the abstract async client inherited by all provider clients and
the capability-aware shaping of generation parameters they share.
"""

from __future__ import annotations

import contextlib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import AsyncIterator, Iterator

from prompt_studio_core.domain.constants import DEFAULT_THINKING_BUDGET
from prompt_studio_core.domain.errors import TransportError
from prompt_studio_core.domain.value_objects import (
    ErrorKind,
    ModelDescriptor,
    ModelResponse,
    RunParameters,
    StreamChunk,
)


@dataclass(frozen=True)
class GenerationOptions:
    """Parameters actually sent to a provider"""
    max_tokens: int
    temperature: float | None = None
    system_prompt: str | None = None
    thinking_budget: int | None = None


def resolve_options(
    model: ModelDescriptor,
    parameters: RunParameters | None,
    default_max_tokens: int = 4096,
) -> GenerationOptions:
    """
    Shape the user's parameters to what the model supports

    - temperature is sent only when supported, clamped to the model's range
    - max tokens is capped at the model's output limit
    - the system prompt is dropped for models without system prompt support
    - a thinking budget is set only when thinking is requested and supported
    """
    parameters = parameters or RunParameters()
    caps = model.capabilities

    temperature = None
    if parameters.temperature is not None and caps.supports_temperature and caps.temperature_range:
        temperature = caps.temperature_range.clamp(parameters.temperature)

    max_tokens = parameters.max_tokens or default_max_tokens
    if caps.supports_max_tokens and caps.max_output_tokens:
        max_tokens = min(max_tokens, caps.max_output_tokens)

    system_prompt = None
    if parameters.system_prompt and caps.supports_system_prompt:
        system_prompt = parameters.system_prompt

    thinking_budget = None
    if parameters.thinking and parameters.thinking.enabled and caps.supports_thinking:
        thinking_budget = parameters.thinking.budget or DEFAULT_THINKING_BUDGET

    return GenerationOptions(
        max_tokens=max_tokens,
        temperature=temperature,
        system_prompt=system_prompt,
        thinking_budget=thinking_budget,
    )


@contextlib.contextmanager
def translate_errors(
    provider: str,
    network_errors: tuple[type[BaseException], ...],
    api_errors: tuple[type[BaseException], ...],
) -> Iterator[None]:
    """Re-raise SDK exceptions as TransportError with the matching ErrorKind"""
    try:
        yield
    except network_errors as e:
        raise TransportError(str(e), kind=ErrorKind.NETWORK_ERROR, provider=provider) from e
    except api_errors as e:
        raise TransportError(str(e), kind=ErrorKind.API_ERROR, provider=provider) from e


class ModelClient(ABC):
    """Abstract base class for model clients"""

    model: ModelDescriptor

    @abstractmethod
    def stream(
        self,
        prompt: str,
        parameters: RunParameters | None = None,
    ) -> AsyncIterator[StreamChunk]:
        """
        Stream the response to a prompt

        Yields content and thinking deltas in arrival order, then exactly
        one DONE chunk carrying usage. Failures are raised.
        """

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> ModelResponse:
        """Send a prompt and retrieve the complete response"""
