"""Registry of completion backends."""

from typing import Any

from ..provider import CompletionProvider
from .openai import OpenAIProvider

PROVIDERS: dict[str, type[CompletionProvider]] = {
    "openai": OpenAIProvider,
}


def create_provider(name: str, **config: Any) -> CompletionProvider:
    """Create a completion provider by name.

    Raises:
        ValueError: If the provider is unknown
        TypeError: If ``api_key`` is missing from config
    """
    provider_class = PROVIDERS.get(name.lower())
    if provider_class is None:
        raise ValueError(
            f"Unsupported provider: {name}. "
            f"Supported providers: {', '.join(sorted(PROVIDERS))}"
        )
    if "api_key" not in config:
        raise TypeError(f"{provider_class.__name__} requires 'api_key' in config")
    return provider_class(**config)
