"""
Prompt Studio Configuration

Manages loading from environment variables and default values, and
resolves provider API keys.
"""

import os
from dataclasses import dataclass, field, asdict

from prompt_studio_core.domain.constants import (
    DEFAULT_JUDGE_MODEL,
    JUDGE_MAX_TOKENS,
    JUDGE_TEMPERATURE,
    LOCAL_PROVIDERS,
    PROVIDER_ENV_KEYS,
    PROVIDERS,
)


def _env_bool(key: str, default: bool) -> bool:
    """Convert an environment variable to bool"""
    val = os.environ.get(key)
    if val is None:
        return default
    return val.lower() in ("true", "1", "yes")


def _env_int(key: str, default: int) -> int:
    """Convert an environment variable to int"""
    val = os.environ.get(key)
    if val is None:
        return default
    try:
        return int(val)
    except ValueError:
        raise ValueError(f"The value '{val}' of environment variable '{key}' cannot be converted to an integer.")


def _env_float(key: str, default: float) -> float:
    """Convert an environment variable to float"""
    val = os.environ.get(key)
    if val is None:
        return default
    try:
        return float(val)
    except ValueError:
        raise ValueError(f"The value '{val}' of environment variable '{key}' cannot be converted to a number.")


def _env_str(key: str, default: str) -> str:
    """Get an environment variable as a string"""
    return os.environ.get(key, default)


@dataclass
class ProviderKeysConfig:
    """API keys per cloud provider (empty string = not configured)"""
    openai: str = ""
    anthropic: str = ""
    google: str = ""
    mistral: str = ""
    deepseek: str = ""
    perplexity: str = ""

    def get(self, provider: str) -> str:
        return getattr(self, provider, "") or ""


@dataclass
class OllamaConfig:
    """Local Ollama server configuration"""
    base_url: str = "http://localhost:11434"
    discovery_timeout_seconds: float = 5.0
    discover_on_startup: bool = False


@dataclass
class ExecutionConfig:
    """Model execution configuration"""
    timeout_seconds: int = 120
    default_max_tokens: int = 4096


@dataclass
class EvaluationConfig:
    """LLM judge configuration"""
    judge_model: str = DEFAULT_JUDGE_MODEL
    temperature: float = JUDGE_TEMPERATURE
    max_tokens: int = JUDGE_MAX_TOKENS


@dataclass
class StudioConfig:
    """Overall prompt studio configuration"""
    providers: ProviderKeysConfig = field(default_factory=ProviderKeysConfig)
    ollama: OllamaConfig = field(default_factory=OllamaConfig)
    execution: ExecutionConfig = field(default_factory=ExecutionConfig)
    evaluation: EvaluationConfig = field(default_factory=EvaluationConfig)

    def to_dict(self) -> dict:
        """Convert to dictionary format (API keys are masked)"""
        data = asdict(self)
        data["providers"] = {
            name: ("***" if value else "") for name, value in data["providers"].items()
        }
        return {"studio_config": data}

    @classmethod
    def from_dict(cls, data: dict) -> "StudioConfig":
        """Create from dictionary (handles presence/absence of studio_config key)"""
        config_data = data.get("studio_config", data)
        return cls(
            providers=ProviderKeysConfig(**config_data.get("providers", {})),
            ollama=OllamaConfig(**config_data.get("ollama", {})),
            execution=ExecutionConfig(**config_data.get("execution", {})),
            evaluation=EvaluationConfig(**config_data.get("evaluation", {})),
        )


def load_config() -> StudioConfig:
    """
    Load configuration from environment variables

    Uses default values when environment variables are not set.

    Returns:
        StudioConfig
    """
    providers = ProviderKeysConfig(
        **{name: _env_str(env_key, "") for name, env_key in PROVIDER_ENV_KEYS.items()}
    )
    ollama = OllamaConfig(
        base_url=_env_str("OLLAMA_BASE_URL", "http://localhost:11434"),
        discovery_timeout_seconds=_env_float("OLLAMA_DISCOVERY_TIMEOUT_SECONDS", 5.0),
        discover_on_startup=_env_bool("OLLAMA_DISCOVER_ON_STARTUP", False),
    )
    execution = ExecutionConfig(
        timeout_seconds=_env_int("STUDIO_TIMEOUT_SECONDS", 120),
        default_max_tokens=_env_int("STUDIO_DEFAULT_MAX_TOKENS", 4096),
    )
    evaluation = EvaluationConfig(
        judge_model=_env_str("STUDIO_JUDGE_MODEL", DEFAULT_JUDGE_MODEL),
        temperature=_env_float("STUDIO_JUDGE_TEMPERATURE", JUDGE_TEMPERATURE),
        max_tokens=_env_int("STUDIO_JUDGE_MAX_TOKENS", JUDGE_MAX_TOKENS),
    )
    return StudioConfig(
        providers=providers,
        ollama=ollama,
        execution=execution,
        evaluation=evaluation,
    )


class ApiKeyResolver:
    """
    Resolves the API key to use for a provider

    A key set at runtime (e.g. entered by the user) wins over the key
    loaded from the environment.
    """

    def __init__(self, config: StudioConfig | None = None) -> None:
        self._config = config or StudioConfig()
        self._user_keys: dict[str, str] = {}

    def set_key(self, provider: str, key: str) -> None:
        self._user_keys[provider] = key

    def resolve(self, provider: str) -> str | None:
        """Return the key for the provider, or None when nothing is configured"""
        user_key = self._user_keys.get(provider, "").strip()
        if user_key:
            return user_key
        env_key = self._config.providers.get(provider).strip()
        return env_key or None

    def is_configured(self, provider: str) -> bool:
        if provider in LOCAL_PROVIDERS:
            return True
        return self.resolve(provider) is not None

    def configured_providers(self) -> list[str]:
        return [p for p in PROVIDERS if self.is_configured(p)]
