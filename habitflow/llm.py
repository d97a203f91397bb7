"""LLM provider abstraction — one adapter per vendor, one chat contract.

The AI insight feature only needs "send these messages, get text back".
OpenAI, DeepSeek, Qwen (DashScope) and Gemini all speak the OpenAI chat
completions protocol, so they share OpenAIProvider with different base URLs.
Anthropic has its own SDK and message shape.

Usage:
    from habitflow.llm import get_client
    client = get_client()                    # AI_PROVIDER from config
    client = get_client("deepseek", api_key) # explicit vendor
    response = client.chat(messages)
"""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass

from habitflow.config import AI_PROVIDER, AI_API_KEY, AI_MODEL, AI_BASE_URL

log = logging.getLogger(__name__)


@dataclass
class LLMResponse:
    """Unified response from any LLM provider."""
    content: str = ""
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    model: str = ""
    finish_reason: str = ""


@dataclass(frozen=True)
class ProviderPreset:
    sdk: str               # "openai" | "anthropic"
    default_model: str
    base_url: str = ""


PROVIDERS: dict[str, ProviderPreset] = {
    "openai": ProviderPreset("openai", "gpt-3.5-turbo"),
    "deepseek": ProviderPreset("openai", "deepseek-chat", "https://api.deepseek.com/v1"),
    "qwen": ProviderPreset(
        "openai", "qwen-turbo", "https://dashscope.aliyuncs.com/compatible-mode/v1",
    ),
    "gemini": ProviderPreset(
        "openai", "gemini-1.5-flash",
        "https://generativelanguage.googleapis.com/v1beta/openai/",
    ),
    "claude": ProviderPreset("anthropic", "claude-3-haiku-20240307"),
}
# Accept the SDK name as an alias for the vendor
PROVIDERS["anthropic"] = PROVIDERS["claude"]


class LLMProvider(ABC):
    """Abstract base class for LLM providers."""

    @abstractmethod
    def chat(self, messages: list[dict], temperature: float = 0.7,
             max_tokens: int = 1024) -> LLMResponse:
        """Send a chat completion request."""
        ...

    @abstractmethod
    def provider_name(self) -> str:
        ...


def _is_reasoning_model(model: str) -> bool:
    """o1/o3/o4-style models reject temperature and use max_completion_tokens."""
    return bool(re.search(r"(^o\d|[/-]o\d)", model, re.IGNORECASE))


class OpenAIProvider(LLMProvider):
    """OpenAI chat completions, or any endpoint that speaks the same protocol."""

    def __init__(self, api_key: str, model: str, base_url: str = "",
                 name: str = "openai"):
        from openai import OpenAI
        self._model = model
        self._name = name
        kwargs: dict = {"api_key": api_key}
        if base_url:
            kwargs["base_url"] = base_url
        self._client = OpenAI(**kwargs)

    def provider_name(self) -> str:
        return self._name

    def chat(self, messages: list[dict], temperature: float = 0.7,
             max_tokens: int = 1024) -> LLMResponse:
        kwargs: dict = {"model": self._model, "messages": messages}
        if _is_reasoning_model(self._model):
            kwargs["max_completion_tokens"] = max_tokens
        else:
            kwargs["temperature"] = temperature
            kwargs["max_tokens"] = max_tokens

        resp = self._client.chat.completions.create(**kwargs)
        choice = resp.choices[0]
        usage = resp.usage
        return LLMResponse(
            content=choice.message.content or "",
            prompt_tokens=usage.prompt_tokens if usage else 0,
            completion_tokens=usage.completion_tokens if usage else 0,
            total_tokens=usage.total_tokens if usage else 0,
            model=self._model,
            finish_reason=choice.finish_reason or "",
        )


class AnthropicProvider(LLMProvider):
    """Anthropic Claude API provider."""

    def __init__(self, api_key: str, model: str, base_url: str = ""):
        import anthropic
        self._model = model
        kwargs: dict = {"api_key": api_key}
        if base_url:
            kwargs["base_url"] = base_url
        self._client = anthropic.Anthropic(**kwargs)

    def provider_name(self) -> str:
        return "claude"

    @staticmethod
    def split_system(messages: list[dict]) -> tuple[str, list[dict]]:
        """Anthropic takes the system prompt separately from the conversation."""
        system_parts = []
        conversation = []
        for m in messages:
            if m["role"] == "system":
                system_parts.append(m["content"])
            else:
                conversation.append(m)
        return "\n".join(system_parts).strip(), conversation

    def chat(self, messages: list[dict], temperature: float = 0.7,
             max_tokens: int = 1024) -> LLMResponse:
        system_msg, conversation = self.split_system(messages)
        kwargs = dict(
            model=self._model,
            messages=conversation,
            max_tokens=max_tokens,
            temperature=temperature,
        )
        if system_msg:
            kwargs["system"] = system_msg

        resp = self._client.messages.create(**kwargs)
        content = "".join(block.text for block in resp.content if block.type == "text")
        usage = resp.usage
        return LLMResponse(
            content=content,
            prompt_tokens=usage.input_tokens if usage else 0,
            completion_tokens=usage.output_tokens if usage else 0,
            total_tokens=(usage.input_tokens + usage.output_tokens) if usage else 0,
            model=self._model,
            finish_reason=resp.stop_reason or "",
        )


# ═══════════════════════════════════════════════════════════════════════════
# Factory
# ═══════════════════════════════════════════════════════════════════════════

_cached_clients: dict[tuple[str, str], LLMProvider] = {}  # keyed by (provider, api_key)


def make_client(provider: str, api_key: str, model: str = "",
                base_url: str = "") -> LLMProvider:
    """Instantiate a fresh provider adapter for a vendor name."""
    preset = PROVIDERS.get(provider)
    if preset is None:
        raise ValueError(
            f"Unknown provider: {provider!r}. "
            f"Supported: {', '.join(sorted(PROVIDERS))}"
        )
    if not api_key:
        raise ValueError(
            f"An API key is required for provider {provider!r}. "
            "Set AI_API_KEY in your .env file."
        )
    model = model or preset.default_model
    base_url = base_url or preset.base_url

    if preset.sdk == "anthropic":
        return AnthropicProvider(api_key=api_key, model=model, base_url=base_url)
    return OpenAIProvider(api_key=api_key, model=model, base_url=base_url, name=provider)


def get_client(provider: str = "", api_key: str = "") -> LLMProvider:
    """Get (or create) the client for a vendor. Defaults come from config.

    Clients are cached per (provider, api_key), so a new key gets a new client.
    """
    provider = (provider or AI_PROVIDER).lower()
    api_key = api_key or AI_API_KEY
    cache_key = (provider, api_key)
    if cache_key in _cached_clients:
        return _cached_clients[cache_key]

    # AI_MODEL / AI_BASE_URL only apply to the configured vendor
    configured = provider == AI_PROVIDER.lower()
    model = AI_MODEL if configured else ""
    client = make_client(
        provider,
        api_key,
        model=model,
        base_url=AI_BASE_URL if configured else "",
    )
    log.info("LLM: provider=%s model=%s", provider,
             model or PROVIDERS[provider].default_model)
    _cached_clients[cache_key] = client
    return client
