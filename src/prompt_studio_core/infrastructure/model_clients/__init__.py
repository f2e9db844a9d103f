"""
Model client package

Provides a unified streaming interface to each LLM provider.
"""

from prompt_studio_core.infrastructure.model_clients.base import ModelClient, resolve_options
from prompt_studio_core.infrastructure.model_clients.factory import create_client
from prompt_studio_core.domain.value_objects import ModelResponse, StreamChunk

__all__ = ["ModelClient", "ModelResponse", "StreamChunk", "create_client", "resolve_options"]
