"""
Provider adapters - one class per AI vendor.

Each adapter turns a normalized list of {role, content} turns into one
completion string:
- translate the turns into the vendor's request shape
- call the vendor with fixed sampling parameters and a timeout
- normalize the answer (empty completion -> fallback sentence)
- wrap every vendor exception into a classified ProviderError

SDK clients are built once per adapter with retries disabled; retrying is
the router's job.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence, Tuple

import anthropic
import google.generativeai as genai
from groq import Groq
from openai import OpenAI

from chatrelay.core.logging_config import get_logger
from chatrelay.llm.errors import ProviderError
from chatrelay.llm.prompts.chat_prompts import (
    ASSISTANT_FIRST_OPENER,
    DEFAULT_PERSONA,
    EMPTY_CONVERSATION_OPENER,
    FALLBACK_RESPONSE,
)

logger = get_logger(__name__)

Turn = Dict[str, str]


def split_system(turns: Sequence[Turn]) -> Tuple[str, List[Turn]]:
    """
    Separate system content from conversational turns.

    The last system turn wins; the persona is used when there is none.

    Returns:
        (system_text, user/assistant turns in order)
    """
    system = ""
    conversation: List[Turn] = []
    for turn in turns:
        if turn["role"] == "system":
            system = turn["content"]
        elif turn["role"] in ("user", "assistant"):
            conversation.append({"role": turn["role"], "content": turn["content"]})
    return system or DEFAULT_PERSONA, conversation


class BaseProvider(ABC):
    """
    Abstract provider adapter.

    Subclasses implement _complete(); generate() adds error wrapping and
    response normalization.
    """

    name: str = "base"

    def __init__(
        self,
        api_key: str,
        models: Sequence[str],
        temperature: float = 0.7,
        max_tokens: int = 1000,
        timeout: float = 30.0,
        client: Any = None,
    ):
        if not models:
            raise ValueError(f"{self.name}: at least one model is required")
        self.api_key = api_key
        self.models: Tuple[str, ...] = tuple(models)
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.client = client if client is not None else self._build_client()

    @property
    def default_model(self) -> str:
        return self.models[0]

    def _build_client(self) -> Any:
        """Create the vendor SDK client (None when the SDK is module-level)."""
        return None

    def generate(self, turns: Sequence[Turn], model: Optional[str] = None) -> str:
        """
        Produce one completion for the given turns.

        Args:
            turns: Ordered {role, content} turns, system first
            model: Model identifier (defaults to the adapter's first model)

        Returns:
            Completion text, never empty

        Raises:
            ProviderError: On any transport, auth or vendor failure
        """
        target = model or self.default_model
        logger.debug(f"Calling {self.name}/{target} with {len(turns)} turns")
        try:
            text = self._complete(list(turns), target)
        except Exception as e:
            raise ProviderError.from_exception(e, provider=self.name, model=target) from e
        return self._normalize(text)

    @abstractmethod
    def _complete(self, turns: List[Turn], model: str) -> Optional[str]:
        """Call the vendor and return the raw completion text."""
        ...

    def _normalize(self, text: Optional[str]) -> str:
        if not text or not text.strip():
            logger.warning(f"{self.name} returned an empty completion")
            return FALLBACK_RESPONSE
        return text

    def __repr__(self) -> str:
        return f"{type(self).__name__}(models={list(self.models)})"


class OpenAICompatibleProvider(BaseProvider):
    """Adapter for vendors speaking the OpenAI chat-completions protocol."""

    name = "openai-compatible"
    base_url: Optional[str] = None

    def _build_client(self) -> Any:
        return OpenAI(
            api_key=self.api_key,
            base_url=self.base_url,
            timeout=self.timeout,
            max_retries=0,
        )

    def to_vendor_messages(self, turns: Sequence[Turn]) -> List[Turn]:
        """System turns stay in-line; the persona is prepended when absent."""
        messages = [{"role": t["role"], "content": t["content"]} for t in turns]
        if not any(m["role"] == "system" for m in messages):
            messages.insert(0, {"role": "system", "content": DEFAULT_PERSONA})
        return messages

    def _complete(self, turns: List[Turn], model: str) -> Optional[str]:
        completion = self.client.chat.completions.create(
            model=model,
            messages=self.to_vendor_messages(turns),
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        if not completion.choices:
            return None
        return completion.choices[0].message.content


class OpenAIProvider(OpenAICompatibleProvider):
    name = "openai"
    base_url = "https://api.openai.com/v1"


class GrokProvider(OpenAICompatibleProvider):
    name = "grok"
    base_url = "https://api.x.ai/v1"


class OpenRouterProvider(OpenAICompatibleProvider):
    name = "openrouter"
    base_url = "https://openrouter.ai/api/v1"


class ZAIProvider(OpenAICompatibleProvider):
    name = "zai"
    base_url = "https://api.z.ai/api/paas/v4"


class GroqProvider(OpenAICompatibleProvider):
    """Groq speaks the same protocol through its own SDK."""

    name = "groq"

    def _build_client(self) -> Any:
        return Groq(api_key=self.api_key, timeout=self.timeout, max_retries=0)


class AnthropicProvider(BaseProvider):
    """
    Adapter for the Anthropic Messages API.

    Anthropic takes the system prompt as a separate parameter and requires
    the conversation to open with a user turn.
    """

    name = "anthropic"

    def _build_client(self) -> Any:
        return anthropic.Anthropic(
            api_key=self.api_key,
            timeout=self.timeout,
            max_retries=0,
        )

    def to_vendor_messages(self, turns: Sequence[Turn]) -> Tuple[str, List[Turn]]:
        system, conversation = split_system(turns)

        if not conversation:
            conversation.append({"role": "user", "content": EMPTY_CONVERSATION_OPENER})

        if conversation[0]["role"] != "user":
            conversation.insert(0, {"role": "user", "content": ASSISTANT_FIRST_OPENER})

        return system, conversation

    def _complete(self, turns: List[Turn], model: str) -> Optional[str]:
        system, messages = self.to_vendor_messages(turns)
        response = self.client.messages.create(
            model=model,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            system=system,
            messages=messages,
        )
        return "".join(
            block.text for block in response.content
            if getattr(block, "type", None) == "text"
        )


class GeminiProvider(BaseProvider):
    """
    Adapter for Google Gemini via google-generativeai.

    System content goes to ``system_instruction``; assistant turns are
    sent with the ``model`` role.
    """

    name = "gemini"

    def _build_client(self) -> Any:
        genai.configure(api_key=self.api_key)
        return None

    def to_vendor_messages(self, turns: Sequence[Turn]) -> Tuple[str, List[Dict[str, Any]]]:
        system, conversation = split_system(turns)
        contents = [
            {
                "role": "model" if turn["role"] == "assistant" else "user",
                "parts": [turn["content"]],
            }
            for turn in conversation
        ]
        if not contents:
            contents.append({"role": "user", "parts": [EMPTY_CONVERSATION_OPENER]})
        return system, contents

    def _complete(self, turns: List[Turn], model: str) -> Optional[str]:
        system, contents = self.to_vendor_messages(turns)

        model_instance = genai.GenerativeModel(
            model_name=model,
            system_instruction=system,
        )
        response = model_instance.generate_content(
            contents,
            generation_config=genai.types.GenerationConfig(
                temperature=self.temperature,
                max_output_tokens=self.max_tokens,
            ),
            request_options={"timeout": self.timeout},
        )

        # .text raises ValueError when the candidate carries no text part
        try:
            return response.text
        except ValueError:
            logger.debug(f"Gemini response without text part: {response!r}"[:200])
            return None


PROVIDER_CLASSES = {
    "openai": OpenAIProvider,
    "anthropic": AnthropicProvider,
    "gemini": GeminiProvider,
    "grok": GrokProvider,
    "openrouter": OpenRouterProvider,
    "zai": ZAIProvider,
    "groq": GroqProvider,
}
