"""Tests for vendor adapters with mocked SDK clients."""

from types import SimpleNamespace
from unittest.mock import MagicMock, Mock, patch

import pytest

from chatrelay.llm.errors import ErrorKind, ProviderError
from chatrelay.llm.prompts import DEFAULT_PERSONA, FALLBACK_RESPONSE
from chatrelay.llm.providers import (
    AnthropicProvider,
    GeminiProvider,
    GrokProvider,
    GroqProvider,
    OpenAIProvider,
    OpenRouterProvider,
    ZAIProvider,
    split_system,
)


def openai_completion(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def anthropic_response(*texts):
    return SimpleNamespace(content=[SimpleNamespace(type="text", text=t) for t in texts])


class TestSplitSystem:
    """System content is separated from conversational turns."""

    def test_extracts_system(self) -> None:
        system, turns = split_system([
            {"role": "system", "content": "Be brief."},
            {"role": "user", "content": "Hi"},
        ])
        assert system == "Be brief."
        assert turns == [{"role": "user", "content": "Hi"}]

    def test_persona_when_missing(self) -> None:
        system, turns = split_system([{"role": "user", "content": "Hi"}])
        assert system == DEFAULT_PERSONA
        assert len(turns) == 1


class TestOpenAICompatible:
    """OpenAI, Grok, OpenRouter and Z.AI share one protocol."""

    def test_system_turn_stays_inline(self) -> None:
        client = Mock()
        client.chat.completions.create.return_value = openai_completion("Hello!")
        provider = OpenAIProvider("sk-test", models=("gpt-4o-mini",), client=client)

        text = provider.generate([
            {"role": "system", "content": "Be brief."},
            {"role": "user", "content": "Hi"},
        ])

        assert text == "Hello!"
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["messages"][0] == {"role": "system", "content": "Be brief."}
        assert kwargs["temperature"] == 0.7
        assert kwargs["max_tokens"] == 1000

    def test_persona_prepended_without_system(self) -> None:
        provider = OpenAIProvider("sk-test", models=("gpt-4o-mini",), client=Mock())
        messages = provider.to_vendor_messages([{"role": "user", "content": "Hi"}])
        assert messages[0] == {"role": "system", "content": DEFAULT_PERSONA}

    def test_explicit_model(self) -> None:
        client = Mock()
        client.chat.completions.create.return_value = openai_completion("ok")
        provider = OpenAIProvider("sk-test", models=("gpt-4o-mini", "gpt-4o"), client=client)

        provider.generate([{"role": "user", "content": "Hi"}], model="gpt-4o")

        assert client.chat.completions.create.call_args.kwargs["model"] == "gpt-4o"

    @pytest.mark.parametrize("content", [None, "", "   "])
    def test_empty_completion_uses_fallback(self, content) -> None:
        client = Mock()
        client.chat.completions.create.return_value = openai_completion(content)
        provider = OpenAIProvider("sk-test", models=("gpt-4o-mini",), client=client)

        assert provider.generate([{"role": "user", "content": "Hi"}]) == FALLBACK_RESPONSE

    def test_no_choices_uses_fallback(self) -> None:
        client = Mock()
        client.chat.completions.create.return_value = SimpleNamespace(choices=[])
        provider = OpenAIProvider("sk-test", models=("gpt-4o-mini",), client=client)

        assert provider.generate([{"role": "user", "content": "Hi"}]) == FALLBACK_RESPONSE

    def test_vendor_exception_is_wrapped(self, vendor_error) -> None:
        client = Mock()
        client.chat.completions.create.side_effect = vendor_error("Rate limit", status_code=429)
        provider = GrokProvider("xai-test", models=("grok-beta",), client=client)

        with pytest.raises(ProviderError) as exc_info:
            provider.generate([{"role": "user", "content": "Hi"}])

        assert exc_info.value.kind is ErrorKind.RATE_LIMITED
        assert exc_info.value.provider == "grok"
        assert exc_info.value.model == "grok-beta"

    @pytest.mark.parametrize(
        ("provider_class", "base_url"),
        [
            (OpenAIProvider, "https://api.openai.com/v1"),
            (GrokProvider, "https://api.x.ai/v1"),
            (OpenRouterProvider, "https://openrouter.ai/api/v1"),
            (ZAIProvider, "https://api.z.ai/api/paas/v4"),
        ],
    )
    def test_client_construction(self, provider_class, base_url) -> None:
        with patch("chatrelay.llm.providers.OpenAI") as mock_openai:
            provider_class("key", models=("m",), timeout=12.0)

        mock_openai.assert_called_once_with(
            api_key="key", base_url=base_url, timeout=12.0, max_retries=0
        )

    def test_groq_uses_its_sdk(self) -> None:
        with patch("chatrelay.llm.providers.Groq") as mock_groq:
            provider = GroqProvider("gsk-test", models=("llama-3.3-70b-versatile",))

        mock_groq.assert_called_once_with(api_key="gsk-test", timeout=30.0, max_retries=0)
        assert provider.client is mock_groq.return_value

    def test_models_required(self) -> None:
        with pytest.raises(ValueError):
            OpenAIProvider("sk-test", models=(), client=Mock())


class TestAnthropic:
    """System goes to the system parameter; the conversation opens with a user turn."""

    def test_system_extracted(self) -> None:
        client = Mock()
        client.messages.create.return_value = anthropic_response("Hello", " there")
        provider = AnthropicProvider("sk-ant", models=("claude-3-5-haiku-20241022",), client=client)

        text = provider.generate([
            {"role": "system", "content": "Be brief."},
            {"role": "user", "content": "Hi"},
        ])

        assert text == "Hello there"
        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["system"] == "Be brief."
        assert kwargs["messages"] == [{"role": "user", "content": "Hi"}]
        assert all(m["role"] != "system" for m in kwargs["messages"])

    def test_empty_conversation_gets_opener(self) -> None:
        provider = AnthropicProvider("sk-ant", models=("c",), client=Mock())
        system, messages = provider.to_vendor_messages([{"role": "system", "content": "S"}])
        assert system == "S"
        assert messages == [{"role": "user", "content": "Hello"}]

    def test_assistant_first_gets_user_opener(self) -> None:
        provider = AnthropicProvider("sk-ant", models=("c",), client=Mock())
        _, messages = provider.to_vendor_messages([
            {"role": "assistant", "content": "Earlier answer"},
            {"role": "user", "content": "Follow-up"},
        ])
        assert messages[0] == {"role": "user", "content": "Please respond to my previous message."}
        assert messages[1]["role"] == "assistant"

    def test_persona_without_system(self) -> None:
        provider = AnthropicProvider("sk-ant", models=("c",), client=Mock())
        system, _ = provider.to_vendor_messages([{"role": "user", "content": "Hi"}])
        assert system == DEFAULT_PERSONA

    def test_non_text_blocks_ignored(self) -> None:
        client = Mock()
        client.messages.create.return_value = SimpleNamespace(content=[
            SimpleNamespace(type="tool_use", text="ignored"),
        ])
        provider = AnthropicProvider("sk-ant", models=("c",), client=client)

        assert provider.generate([{"role": "user", "content": "Hi"}]) == FALLBACK_RESPONSE

    def test_auth_error_classified(self, vendor_error) -> None:
        client = Mock()
        client.messages.create.side_effect = vendor_error("invalid x-api-key", status_code=401)
        provider = AnthropicProvider("sk-ant", models=("c",), client=client)

        with pytest.raises(ProviderError) as exc_info:
            provider.generate([{"role": "user", "content": "Hi"}])
        assert exc_info.value.kind is ErrorKind.UNAUTHORIZED


class TestGemini:
    """Assistant turns map to the model role; system goes to system_instruction."""

    def test_role_mapping(self) -> None:
        with patch("chatrelay.llm.providers.genai"):
            provider = GeminiProvider("g-key", models=("gemini-1.5-flash",))

        system, contents = provider.to_vendor_messages([
            {"role": "system", "content": "Be brief."},
            {"role": "user", "content": "Hi"},
            {"role": "assistant", "content": "Hello"},
            {"role": "user", "content": "Again"},
        ])

        assert system == "Be brief."
        assert [c["role"] for c in contents] == ["user", "model", "user"]
        assert contents[1]["parts"] == ["Hello"]

    def test_generate(self) -> None:
        with patch("chatrelay.llm.providers.genai") as mock_genai:
            model_instance = MagicMock()
            model_instance.generate_content.return_value = SimpleNamespace(text="Bonjour")
            mock_genai.GenerativeModel.return_value = model_instance

            provider = GeminiProvider("g-key", models=("gemini-1.5-flash",), timeout=5.0)
            text = provider.generate([{"role": "user", "content": "Hi"}])

        assert text == "Bonjour"
        mock_genai.configure.assert_called_once_with(api_key="g-key")
        mock_genai.GenerativeModel.assert_called_once_with(
            model_name="gemini-1.5-flash", system_instruction=DEFAULT_PERSONA
        )
        call = model_instance.generate_content.call_args
        assert call.kwargs["request_options"] == {"timeout": 5.0}

    def test_blocked_response_uses_fallback(self) -> None:
        class Blocked:
            @property
            def text(self):
                raise ValueError("no parts")

        with patch("chatrelay.llm.providers.genai") as mock_genai:
            mock_genai.GenerativeModel.return_value.generate_content.return_value = Blocked()
            provider = GeminiProvider("g-key", models=("gemini-1.5-flash",))
            text = provider.generate([{"role": "user", "content": "Hi"}])

        assert text == FALLBACK_RESPONSE
