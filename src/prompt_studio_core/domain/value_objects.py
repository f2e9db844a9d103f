"""
Domain Value Objects

Defines immutable data structures representing values such as model
descriptors, model responses, stream chunks, and run parameters.
"""

from dataclasses import dataclass
from enum import Enum


class ModelSource(str, Enum):
    """Where a model descriptor came from"""
    STATIC = "static"
    DISCOVERED = "discovered"


class ErrorKind(str, Enum):
    """Why a model run failed"""
    MISSING_API_KEY = "missing_api_key"
    API_ERROR = "api_error"
    NETWORK_ERROR = "network_error"
    UNKNOWN = "unknown"


class Polarity(str, Enum):
    """Whether an example shows output to aim for or to avoid"""
    POSITIVE = "positive"
    NEGATIVE = "negative"


class ChunkType(str, Enum):
    """Kind of message carried on an execution stream"""
    CONTENT_DELTA = "content_delta"
    THINKING_DELTA = "thinking_delta"
    DONE = "done"


@dataclass(frozen=True)
class TemperatureRange:
    """Allowed temperature interval for a model"""
    min: float
    max: float
    default: float

    def clamp(self, value: float) -> float:
        return max(self.min, min(self.max, value))


@dataclass(frozen=True)
class ModelCapabilities:
    """Feature flags and limits of a model"""
    supports_streaming: bool = True
    supports_thinking: bool = False
    supports_temperature: bool = True
    temperature_range: TemperatureRange | None = None
    supports_system_prompt: bool = True
    supports_max_tokens: bool = True
    max_output_tokens: int | None = None


@dataclass(frozen=True)
class ModelDescriptor:
    """Immutable catalog entry for one model"""
    id: str
    provider: str
    name: str
    display_name: str
    context_window: int
    capabilities: ModelCapabilities
    tier: int = 2
    is_default: bool = False
    source: ModelSource = ModelSource.STATIC


@dataclass(frozen=True)
class ThinkingConfig:
    """Extended thinking request"""
    enabled: bool = False
    budget: int | None = None


@dataclass(frozen=True)
class RunParameters:
    """User-selected generation parameters"""
    temperature: float | None = None
    max_tokens: int | None = None
    thinking: ThinkingConfig | None = None
    system_prompt: str | None = None


@dataclass(frozen=True)
class Usage:
    """Token usage reported at the end of a stream"""
    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


@dataclass(frozen=True)
class StreamChunk:
    """One message on an execution stream"""
    type: ChunkType
    text: str = ""
    usage: Usage | None = None
    finish_reason: str | None = None


@dataclass
class ModelResponse:
    """Model response"""
    output: str
    latency_ms: int
    model_name: str
    input_tokens: int = 0
    output_tokens: int = 0
