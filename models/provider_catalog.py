"""Static catalog of supported AI providers, their models, and per-token pricing."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Tuple

from models.errors import UnknownProviderError


@dataclass(frozen=True)
class ProviderInfo:
    """One catalog entry.

    Attributes:
        key: Stable identifier used by sessions (e.g. "openai").
        name: Display name.
        models: Supported model identifiers, in display order.
        cost_per_token: Price of a single token in USD.
    """

    key: str
    name: str
    models: Tuple[str, ...]
    cost_per_token: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "name": self.name,
            "models": list(self.models),
            "cost_per_token": self.cost_per_token,
        }


DEFAULT_PROVIDERS: Tuple[ProviderInfo, ...] = (
    ProviderInfo("openai", "OpenAI", ("gpt-4", "gpt-4-turbo", "gpt-3.5-turbo"), 0.00003),
    ProviderInfo("anthropic", "Anthropic", ("claude-3-opus", "claude-3-sonnet", "claude-3-haiku"), 0.000015),
    ProviderInfo("google", "Google", ("gemini-pro", "gemini-pro-vision"), 0.000125),
    ProviderInfo("cohere", "Cohere", ("command", "command-light"), 0.000015),
    ProviderInfo(
        "huggingface",
        "Hugging Face",
        ("meta-llama/Llama-2-70b-chat-hf", "mistralai/Mixtral-8x7B-Instruct-v0.1"),
        0.0000008,
    ),
)


class ProviderCatalog:
    """Read-only lookup over provider entries, supplied once at startup."""

    def __init__(self, providers: Iterable[ProviderInfo] = DEFAULT_PROVIDERS) -> None:
        entries = {provider.key: provider for provider in providers}
        if not entries:
            raise ValueError("Provider catalog requires at least one provider.")
        self._providers: Mapping[str, ProviderInfo] = MappingProxyType(entries)

    def keys(self) -> List[str]:
        return list(self._providers)

    def get(self, key: str) -> ProviderInfo:
        """Return the provider entry or raise UnknownProviderError."""
        provider = self._providers.get(key)
        if provider is None:
            raise UnknownProviderError(key)
        return provider

    def require_model(self, key: str, model: str) -> ProviderInfo:
        """Return the provider entry if it offers `model`, else raise UnknownProviderError."""
        provider = self.get(key)
        if model not in provider.models:
            raise UnknownProviderError(key, model)
        return provider

    def default_model(self, key: str) -> str:
        return self.get(key).models[0]

    def as_dict(self) -> Dict[str, Dict[str, Any]]:
        return {key: provider.to_dict() for key, provider in self._providers.items()}

    def __contains__(self, key: object) -> bool:
        return key in self._providers
