"""
LLM module - Language model integration.

This module handles all provider interactions:
- errors.py    : ProviderError and error classification
- providers.py : one adapter per vendor (OpenAI, Anthropic, Gemini, Grok,
                 OpenRouter, Z.AI, Groq)
- router.py    : ordered fallback across (provider, model) candidates
- factory.py   : router construction from Settings
- prompts/     : fixed prompt strings
"""
from chatrelay.llm.errors import ErrorKind, ProviderError, classify_error
from chatrelay.llm.providers import BaseProvider, PROVIDER_CLASSES
from chatrelay.llm.router import Candidate, FallbackAction, ProviderRouter, decide
from chatrelay.llm.factory import build_providers, build_router

__all__ = [
    "ErrorKind",
    "ProviderError",
    "classify_error",
    "BaseProvider",
    "PROVIDER_CLASSES",
    "Candidate",
    "FallbackAction",
    "ProviderRouter",
    "decide",
    "build_providers",
    "build_router",
]
