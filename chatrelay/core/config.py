"""
Configuration management via environment variables.

This module loads configuration from .env file using python-dotenv.
All configuration values are accessed through the Settings class.

Provider credentials are optional: a vendor without a configured key is
simply left out of the provider router instead of failing at call time.
"""
import os
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv


# Load .env file from project root
# This must happen before accessing os.environ
env_path = Path(__file__).parent.parent.parent / ".env"
load_dotenv(env_path)


DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful AI assistant. Be conversational, informative, and engaging."
)

DEFAULT_PROVIDER_ORDER = "openai,anthropic,gemini,grok,openrouter,zai,groq"

# Values shipped in example .env files; treated as "not configured"
PLACEHOLDER_KEYS = {
    "sk-your-openai-api-key-here",
    "sk-ant-REDACTED",
    "your-gemini-api-key-here",
    "your-openrouter-api-key-here",
    "your-xai-api-key-here",
    "your-z-ai-api-key-here",
    "your-groq-api-key-here",
}


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    frozen=True makes the dataclass immutable, preventing accidental
    modification of settings at runtime.

    Attributes:
        app_name: Application identifier for logging
        app_env: Environment name (development, staging, production)
        log_level: Logging verbosity (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for log files (None = <project>/logs)
        database_url: SQLAlchemy connection string for persistent storage
        memory_persistent: Use the SQL conversation store instead of in-memory
        provider_order: Vendor names in fallback order
        llm_temperature: Sampling temperature sent to every vendor
        llm_max_tokens: Response length cap sent to every vendor
        llm_timeout_seconds: Per-candidate request timeout
        context_window: Number of prior messages included in a prompt
        system_prompt: System directive prepended to every prompt
    """
    # Application settings
    app_name: str
    app_env: str
    log_level: str
    log_dir: Optional[str]

    # Database settings
    database_url: str
    memory_persistent: bool

    # Provider credentials (None = vendor disabled)
    openai_api_key: Optional[str]
    anthropic_api_key: Optional[str]
    gemini_api_key: Optional[str]
    xai_api_key: Optional[str]
    openrouter_api_key: Optional[str]
    zai_api_key: Optional[str]
    groq_api_key: Optional[str]

    # Provider models
    openai_models: Tuple[str, ...]
    anthropic_model: str
    gemini_model: str
    grok_model: str
    openrouter_model: str
    zai_model: str
    groq_models: Tuple[str, ...]
    provider_order: Tuple[str, ...]

    # Sampling / routing
    llm_temperature: float
    llm_max_tokens: int
    llm_timeout_seconds: float

    # Context assembly
    context_window: int
    system_prompt: str

    # Safety settings
    rate_limit_per_minute: int
    enable_audit_logging: bool

    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.app_env.lower() == "development"

    def configured_providers(self) -> Tuple[str, ...]:
        """Vendor names (in routing order) that have a usable credential."""
        keys = {
            "openai": self.openai_api_key,
            "anthropic": self.anthropic_api_key,
            "gemini": self.gemini_api_key,
            "grok": self.xai_api_key,
            "openrouter": self.openrouter_api_key,
            "zai": self.zai_api_key,
            "groq": self.groq_api_key,
        }
        return tuple(name for name in self.provider_order if keys.get(name))


def _get_env(key: str, default: Optional[str] = None) -> str:
    """
    Get environment variable with optional default.

    Args:
        key: Environment variable name
        default: Default value if not set

    Returns:
        Environment variable value

    Raises:
        ValueError: If required variable is not set and no default provided
    """
    value = os.environ.get(key, default)
    if value is None:
        raise ValueError(
            f"Required environment variable '{key}' is not set. "
            f"Please check your .env file."
        )
    return value


def _get_secret(key: str) -> Optional[str]:
    """Read an optional credential; blank and placeholder values count as unset."""
    value = os.environ.get(key, "").strip()
    if not value or value in PLACEHOLDER_KEYS:
        return None
    return value


def _get_list(key: str, default: str) -> Tuple[str, ...]:
    """Parse a comma-separated environment variable; blank values use the default."""
    def split(raw: str) -> Tuple[str, ...]:
        return tuple(item.strip() for item in raw.split(",") if item.strip())

    return split(_get_env(key, default)) or split(default)


def normalize_database_url(database_url: str) -> str:
    """
    Fix dialect prefixes so SQLAlchemy picks the right driver.

    - postgres://  -> postgresql://
    - mysql://     -> mysql+pymysql://
    - ssl-mode=... query parameter is stripped (not understood by pymysql)
    """
    if database_url.startswith("postgres://"):
        database_url = database_url.replace("postgres://", "postgresql://", 1)
    if database_url.startswith("mysql://"):
        database_url = database_url.replace("mysql://", "mysql+pymysql://", 1)

    if "ssl-mode=" in database_url:
        database_url = re.sub(r"[?&]ssl-mode=[^&]+", "", database_url)
        if "?" not in database_url and "&" in database_url:
            database_url = database_url.replace("&", "?", 1)

    return database_url


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Settings are read once at startup; call ``get_settings.cache_clear()``
    to force a re-read (tests do this after patching the environment).

    Returns:
        Settings instance with all configuration values
    """
    database_url = normalize_database_url(
        _get_env("DATABASE_URL", "sqlite:///./chatrelay.db")
    )

    return Settings(
        # Application
        app_name=_get_env("APP_NAME", "ChatRelay"),
        app_env=_get_env("APP_ENV", "development"),
        log_level=_get_env("LOG_LEVEL", "INFO"),
        log_dir=os.environ.get("LOG_DIR") or None,

        # Database
        database_url=database_url,
        memory_persistent=_get_env("MEMORY_PERSISTENT", "false").lower() == "true",

        # Credentials
        openai_api_key=_get_secret("OPENAI_API_KEY"),
        anthropic_api_key=_get_secret("ANTHROPIC_API_KEY"),
        gemini_api_key=_get_secret("GEMINI_API_KEY"),
        xai_api_key=_get_secret("XAI_API_KEY"),
        openrouter_api_key=_get_secret("OPENROUTER_API_KEY"),
        zai_api_key=_get_secret("Z_AI_API_KEY"),
        groq_api_key=_get_secret("GROQ_API_KEY"),

        # Models
        openai_models=_get_list(
            "OPENAI_MODELS", "gpt-4o-mini,gpt-4o,gpt-4-turbo,gpt-4,gpt-3.5-turbo"
        ),
        anthropic_model=_get_env("ANTHROPIC_MODEL", "claude-3-5-haiku-20241022"),
        gemini_model=_get_env("GEMINI_MODEL", "gemini-1.5-flash"),
        grok_model=_get_env("GROK_MODEL", "grok-beta"),
        openrouter_model=_get_env("OPENROUTER_MODEL", "anthropic/claude-3-haiku"),
        zai_model=_get_env("Z_AI_MODEL", "glm-4.5"),
        groq_models=_get_list(
            "GROQ_MODELS", "llama-3.3-70b-versatile,llama-3.1-8b-instant"
        ),
        provider_order=_get_list("PROVIDER_ORDER", DEFAULT_PROVIDER_ORDER),

        # Sampling
        llm_temperature=float(_get_env("LLM_TEMPERATURE", "0.7")),
        llm_max_tokens=int(_get_env("LLM_MAX_TOKENS", "1000")),
        llm_timeout_seconds=float(_get_env("LLM_TIMEOUT_SECONDS", "30")),

        # Context
        context_window=int(_get_env("CONTEXT_WINDOW", "10")),
        system_prompt=_get_env("SYSTEM_PROMPT", DEFAULT_SYSTEM_PROMPT),

        # Safety
        rate_limit_per_minute=int(_get_env("RATE_LIMIT_PER_MINUTE", "30")),
        enable_audit_logging=_get_env("ENABLE_AUDIT_LOGGING", "true").lower() == "true",
    )
