"""
Model client factory

Creates the appropriate client instance based on the model's provider.
"""

from __future__ import annotations

from prompt_studio_core.domain.errors import ConfigurationError
from prompt_studio_core.domain.value_objects import ModelDescriptor
from prompt_studio_core.infrastructure.model_clients.base import ModelClient
from prompt_studio_core.infrastructure.model_clients.claude import ClaudeClient
from prompt_studio_core.infrastructure.model_clients.google_genai import GeminiClient
from prompt_studio_core.infrastructure.model_clients.openai_compatible import OpenAICompatibleClient
from prompt_studio_core.infrastructure.ollama_discovery import ollama_root
from prompt_studio_core.studio_config import StudioConfig, load_config

_OPENAI_COMPATIBLE = ("openai", "mistral", "deepseek", "perplexity")


def create_client(
    model: ModelDescriptor,
    api_key: str | None = None,
    config: StudioConfig | None = None,
) -> ModelClient:
    """
    Create the appropriate client based on the model's provider

    Args:
        model: Model descriptor
        api_key: Resolved API key (clients fall back to the environment if not provided)
        config: StudioConfig (loads from env if not provided)

    Returns:
        ModelClient: The appropriate client instance

    Raises:
        MissingApiKeyError: No key is available for a cloud provider
        ConfigurationError: The provider is not supported
    """
    if config is None:
        config = load_config()

    timeout = config.execution.timeout_seconds
    max_tokens = config.execution.default_max_tokens

    if model.provider == "anthropic":
        return ClaudeClient(model, api_key, timeout_seconds=timeout, default_max_tokens=max_tokens)
    elif model.provider == "google":
        return GeminiClient(model, api_key, timeout_seconds=timeout, default_max_tokens=max_tokens)
    elif model.provider == "ollama":
        return OpenAICompatibleClient(
            model,
            base_url=f"{ollama_root(config.ollama.base_url)}/v1",
            timeout_seconds=timeout,
            default_max_tokens=max_tokens,
        )
    elif model.provider in _OPENAI_COMPATIBLE:
        return OpenAICompatibleClient(model, api_key, timeout_seconds=timeout, default_max_tokens=max_tokens)
    raise ConfigurationError(f"Unsupported provider: {model.provider}", {"model_id": model.id})
