"""
Domain Layer

Defines constants, entities, value objects and errors that form the core
of the prompt studio. Has no dependencies on external libraries.
"""

from prompt_studio_core.domain.constants import (
    DEFAULT_JUDGE_MODEL,
    EVALUATION_SCALE_MAX,
    EVALUATION_SCALE_MIN,
    PROVIDER_PRIORITY,
    PROVIDERS,
)
from prompt_studio_core.domain.entities import (
    CompletedRun,
    EvaluationResult,
    EvaluationSnapshot,
    Example,
    FailedRun,
    IdleRun,
    PromptConfiguration,
    RunState,
    RunStatus,
    SettledRun,
    Snapshot,
    StreamingRun,
    VersionEntry,
)
from prompt_studio_core.domain.errors import (
    ConfigurationError,
    EvaluationParseError,
    MissingApiKeyError,
    PromptStudioError,
    TransportError,
    UnknownModelError,
    ValidationError,
)
from prompt_studio_core.domain.value_objects import (
    ChunkType,
    ErrorKind,
    ModelCapabilities,
    ModelDescriptor,
    ModelResponse,
    ModelSource,
    Polarity,
    RunParameters,
    StreamChunk,
    TemperatureRange,
    ThinkingConfig,
    Usage,
)

__all__ = [
    # constants
    "DEFAULT_JUDGE_MODEL",
    "EVALUATION_SCALE_MAX",
    "EVALUATION_SCALE_MIN",
    "PROVIDER_PRIORITY",
    "PROVIDERS",
    # entities
    "CompletedRun",
    "EvaluationResult",
    "EvaluationSnapshot",
    "Example",
    "FailedRun",
    "IdleRun",
    "PromptConfiguration",
    "RunState",
    "RunStatus",
    "SettledRun",
    "Snapshot",
    "StreamingRun",
    "VersionEntry",
    # errors
    "ConfigurationError",
    "EvaluationParseError",
    "MissingApiKeyError",
    "PromptStudioError",
    "TransportError",
    "UnknownModelError",
    "ValidationError",
    # value objects
    "ChunkType",
    "ErrorKind",
    "ModelCapabilities",
    "ModelDescriptor",
    "ModelResponse",
    "ModelSource",
    "Polarity",
    "RunParameters",
    "StreamChunk",
    "TemperatureRange",
    "ThinkingConfig",
    "Usage",
]
