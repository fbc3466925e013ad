"""Tests for building the router from settings."""

from unittest.mock import patch

from chatrelay.llm.factory import build_providers, build_router
from chatrelay.llm.providers import AnthropicProvider, OpenAIProvider


class TestBuildProviders:
    """Vendors without credentials are left out."""

    def test_no_credentials_no_providers(self, settings) -> None:
        assert build_providers(settings) == []
        assert build_router(settings).candidates == []

    def test_configured_vendors_in_order(self, with_settings) -> None:
        settings = with_settings(
            openai_api_key="sk-test",
            anthropic_api_key="sk-ant-test",
            provider_order=("anthropic", "openai"),
            openai_models=("gpt-4o-mini", "gpt-4o"),
        )

        with patch("chatrelay.llm.providers.OpenAI"), patch("chatrelay.llm.providers.anthropic"):
            providers = build_providers(settings)

        assert [type(p) for p in providers] == [AnthropicProvider, OpenAIProvider]
        assert providers[1].models == ("gpt-4o-mini", "gpt-4o")

    def test_sampling_settings_injected(self, with_settings) -> None:
        settings = with_settings(
            openai_api_key="sk-test",
            provider_order=("openai",),
            llm_temperature=0.2,
            llm_max_tokens=256,
            llm_timeout_seconds=7.0,
        )

        with patch("chatrelay.llm.providers.OpenAI"):
            (provider,) = build_providers(settings)

        assert provider.temperature == 0.2
        assert provider.max_tokens == 256
        assert provider.timeout == 7.0

    def test_unknown_vendor_skipped(self, with_settings) -> None:
        settings = with_settings(openai_api_key="sk-test", provider_order=("mystery", "openai"))

        with patch("chatrelay.llm.providers.OpenAI"):
            providers = build_providers(settings)

        assert [p.name for p in providers] == ["openai"]

    def test_vendor_without_models_skipped(self, with_settings) -> None:
        settings = with_settings(
            openai_api_key="sk-test",
            anthropic_api_key="sk-ant-test",
            provider_order=("openai", "anthropic"),
            openai_models=(),
            anthropic_model="  ",
        )

        with patch("chatrelay.llm.providers.OpenAI"), patch("chatrelay.llm.providers.anthropic"):
            assert build_providers(settings) == []
            assert build_router(settings).candidates == []

    def test_router_candidates(self, with_settings) -> None:
        settings = with_settings(
            openai_api_key="sk-test",
            provider_order=("openai",),
            openai_models=("gpt-4o-mini", "gpt-4o"),
        )

        with patch("chatrelay.llm.providers.OpenAI"):
            router = build_router(settings)

        assert [c.label for c in router.candidates] == ["openai/gpt-4o-mini", "openai/gpt-4o"]
