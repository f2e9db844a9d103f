"""
Domain Errors

Exception hierarchy shared by the stores, model clients and use cases.
"""

from typing import Any

from prompt_studio_core.domain.value_objects import ErrorKind


class PromptStudioError(Exception):
    """Base exception for all prompt studio errors"""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message


class ConfigurationError(PromptStudioError):
    """Configuration is invalid or missing"""
    pass


class MissingApiKeyError(ConfigurationError):
    """No API key is available for a provider"""

    def __init__(self, provider: str):
        super().__init__(f"No API key configured for provider '{provider}'")
        self.provider = provider


class UnknownModelError(ConfigurationError):
    """The model id is not in the registry"""

    def __init__(self, model_id: str):
        super().__init__(f"Unknown model: {model_id}")
        self.model_id = model_id


class TransportError(PromptStudioError):
    """A remote call failed during execution or evaluation"""

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.API_ERROR,
        provider: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, context)
        self.kind = kind
        self.provider = provider


class EvaluationParseError(PromptStudioError):
    """The judge response could not be parsed as JSON"""

    def __init__(self, message: str, raw_response: str = ""):
        super().__init__(message)
        self.raw_response = raw_response


class ValidationError(PromptStudioError):
    """An operation would violate an invariant"""
    pass
