"""
Domain Constants

Centrally manages constants shared across the prompt studio.
"""

# Provider identifiers
PROVIDERS = [
    "openai",
    "anthropic",
    "google",
    "mistral",
    "deepseek",
    "perplexity",
    "ollama",
]

# Preferred order when picking the best available model
PROVIDER_PRIORITY = [
    "anthropic",
    "openai",
    "google",
    "deepseek",
    "mistral",
    "perplexity",
    "ollama",
]

# Environment variable holding each provider's API key
PROVIDER_ENV_KEYS = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "google": "GOOGLE_GENERATIVE_AI_API_KEY",
    "mistral": "MISTRAL_API_KEY",
    "deepseek": "DEEPSEEK_API_KEY",
    "perplexity": "PERPLEXITY_API_KEY",
}

# Local providers need no API key
LOCAL_PROVIDERS = {"ollama"}

# OpenAI-compatible endpoints
PROVIDER_BASE_URLS = {
    "openai": None,
    "mistral": "https://api.mistral.ai/v1",
    "deepseek": "https://api.deepseek.com/v1",
    "perplexity": "https://api.perplexity.ai",
}

# Evaluation scale and judge defaults
EVALUATION_SCALE_MIN = 0
EVALUATION_SCALE_MAX = 100
DEFAULT_JUDGE_MODEL = "claude-sonnet-4-5-20250929"
JUDGE_TEMPERATURE = 0.3
JUDGE_MAX_TOKENS = 4096

# Anthropic extended thinking budget when none is given
DEFAULT_THINKING_BUDGET = 10000

# Version label used for a Run action
RUN_VERSION_LABEL = "Run"

# Export schema version
EXPORT_VERSION = "1.1"
