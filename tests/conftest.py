"""Shared test fixtures for the ChatRelay test suite.

Provides conversation stores for both backends, scripted fake providers
and vendor-style exceptions, so no test ever reaches a real AI vendor.
"""

import os
import tempfile

# Must be set before chatrelay.core.config / chatrelay.api.main are imported
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="chatrelay-test-logs-"))
os.environ["MEMORY_PERSISTENT"] = "false"
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"

from dataclasses import replace
from typing import Any, Dict, List, Optional, Sequence, Union

import pytest

from chatrelay.core.config import get_settings
from chatrelay.core.rate_limiter import reset_rate_limiter
from chatrelay.database.connection import DatabaseConnection
from chatrelay.database.init_db import drop_conversation_tables, init_conversation_tables
from chatrelay.llm.providers import BaseProvider
from chatrelay.llm.router import ProviderRouter
from chatrelay.memory import reset_conversation_store
from chatrelay.memory.manager import InMemoryConversationStore
from chatrelay.memory.persistent import SQLConversationStore
from chatrelay.services.chat_service import ChatOrchestrator, reset_chat_orchestrator
from chatrelay.services.context_service import ContextAssembler

PROVIDER_KEY_VARS = (
    "OPENAI_API_KEY",
    "ANTHROPIC_API_KEY",
    "GEMINI_API_KEY",
    "XAI_API_KEY",
    "OPENROUTER_API_KEY",
    "Z_AI_API_KEY",
    "GROQ_API_KEY",
)


# ============================================================================
# Test Isolation: Singletons and Environment
# ============================================================================


@pytest.fixture(autouse=True)
def reset_singletons():
    """Drop cached settings and module singletons around every test."""
    get_settings.cache_clear()
    reset_rate_limiter()
    reset_chat_orchestrator()
    reset_conversation_store()
    yield
    get_settings.cache_clear()
    reset_rate_limiter()
    reset_chat_orchestrator()
    reset_conversation_store()


@pytest.fixture
def clean_env(monkeypatch):
    """Environment without any provider credentials."""
    for var in PROVIDER_KEY_VARS:
        monkeypatch.delenv(var, raising=False)
    get_settings.cache_clear()
    return monkeypatch


@pytest.fixture
def settings(clean_env):
    """Settings with no credentials; override fields with dataclasses.replace."""
    return get_settings()


# ============================================================================
# Fake Providers
# ============================================================================


class VendorError(Exception):
    """Mimics an SDK exception carrying an HTTP status code."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ScriptedProvider(BaseProvider):
    """Provider whose answer per model is scripted: a string, None or an exception."""

    def __init__(
        self,
        name: str = "fake",
        models: Sequence[str] = ("fake-model",),
        script: Optional[Dict[str, Union[str, None, Exception]]] = None,
    ):
        self.name = name
        self.script = script or {}
        self.calls: List[Dict[str, Any]] = []
        super().__init__(api_key="test-key", models=models, client=object())

    def _complete(self, turns, model):
        self.calls.append({"model": model, "turns": [dict(t) for t in turns]})
        outcome = self.script.get(model, f"Hello from {self.name}/{model}")
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def vendor_error():
    """Factory for vendor-style exceptions: vendor_error("msg", status_code=429)."""
    return VendorError


@pytest.fixture
def make_provider():
    """Factory for scripted providers."""
    return ScriptedProvider


@pytest.fixture
def fake_provider() -> ScriptedProvider:
    return ScriptedProvider(name="openai", models=("gpt-4o-mini",), script={"gpt-4o-mini": "Hi there!"})


@pytest.fixture
def router(fake_provider) -> ProviderRouter:
    return ProviderRouter.from_providers([fake_provider])


# ============================================================================
# Stores
# ============================================================================


@pytest.fixture
def memory_store() -> InMemoryConversationStore:
    return InMemoryConversationStore()


@pytest.fixture
def sql_db():
    db = DatabaseConnection("sqlite:///:memory:")
    init_conversation_tables(db)
    yield db
    drop_conversation_tables(db)
    db.close()


@pytest.fixture
def sql_store(sql_db) -> SQLConversationStore:
    return SQLConversationStore(sql_db)


@pytest.fixture(params=["memory", "sql"])
def store(request):
    """Runs a test against both store backends."""
    if request.param == "memory":
        yield InMemoryConversationStore()
        return
    db = DatabaseConnection("sqlite:///:memory:")
    init_conversation_tables(db)
    yield SQLConversationStore(db)
    db.close()


# ============================================================================
# Orchestrator
# ============================================================================


@pytest.fixture
def assembler(store) -> ContextAssembler:
    return ContextAssembler(store, window=10)


@pytest.fixture
def orchestrator(store, assembler, router) -> ChatOrchestrator:
    return ChatOrchestrator(store=store, assembler=assembler, router=router)


@pytest.fixture
def with_settings(settings):
    """Build a Settings variant: with_settings(openai_api_key="sk-test")."""

    def _build(**overrides):
        return replace(settings, **overrides)

    return _build
