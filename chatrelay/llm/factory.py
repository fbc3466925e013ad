"""
Router construction from configuration.

Providers are built once from Settings. A vendor without a credential is
left out of the candidate list instead of failing later at call time.
"""
from typing import List, Optional

from chatrelay.core.config import Settings, get_settings
from chatrelay.core.logging_config import get_logger
from chatrelay.llm.providers import PROVIDER_CLASSES, BaseProvider
from chatrelay.llm.router import ProviderRouter

logger = get_logger(__name__)


def _provider_config(settings: Settings, name: str):
    """(api_key, models) for a vendor name."""
    return {
        "openai": (settings.openai_api_key, settings.openai_models),
        "anthropic": (settings.anthropic_api_key, (settings.anthropic_model,)),
        "gemini": (settings.gemini_api_key, (settings.gemini_model,)),
        "grok": (settings.xai_api_key, (settings.grok_model,)),
        "openrouter": (settings.openrouter_api_key, (settings.openrouter_model,)),
        "zai": (settings.zai_api_key, (settings.zai_model,)),
        "groq": (settings.groq_api_key, settings.groq_models),
    }.get(name, (None, ()))


def build_providers(settings: Optional[Settings] = None) -> List[BaseProvider]:
    """
    Instantiate every configured provider in PROVIDER_ORDER.

    Unknown vendor names in PROVIDER_ORDER are logged and skipped.
    """
    settings = settings or get_settings()
    providers: List[BaseProvider] = []

    for name in settings.provider_order:
        provider_class = PROVIDER_CLASSES.get(name)
        if provider_class is None:
            logger.warning(f"Unknown provider '{name}' in PROVIDER_ORDER, skipping")
            continue

        api_key, models = _provider_config(settings, name)
        if not api_key:
            logger.debug(f"Provider '{name}' has no credential, excluded")
            continue

        models = tuple(m for m in models if m and m.strip())
        if not models:
            logger.warning(f"Provider '{name}' has no models configured, skipping")
            continue

        providers.append(
            provider_class(
                api_key=api_key,
                models=models,
                temperature=settings.llm_temperature,
                max_tokens=settings.llm_max_tokens,
                timeout=settings.llm_timeout_seconds,
            )
        )

    if not providers:
        logger.warning("No AI provider credentials configured; chat requests will fail")

    return providers


def build_router(settings: Optional[Settings] = None) -> ProviderRouter:
    """Build the provider router for the given (or global) settings."""
    return ProviderRouter.from_providers(build_providers(settings))
