from typing import Any

from .base import ModelGateway
from .providers import GeminiGateway


def create_gateway(provider: str, **config: Any) -> ModelGateway:
    """Create a model gateway instance.

    This factory function hides the instantiation logic for different providers.

    Args:
        provider: Provider type ('gemini')
        **config: Provider-specific configuration
            For Gemini:
                - api_key: str | None (required key, may be None; checked on first send)
                - model: str (default: 'gemini-2.5-flash')
                - system_instruction: str | None
                - tools: list of tool specs
                - enable_search: bool (default: True)
                - enable_code_execution: bool (default: True)

    Returns:
        Initialized gateway instance

    Raises:
        ValueError: If provider type is not supported
        TypeError: If required configuration is missing

    Examples:
        >>> gateway = create_gateway(
        ...     "gemini",
        ...     api_key="...",
        ...     model="gemini-2.5-flash"
        ... )
    """
    provider_lower = provider.lower()

    if provider_lower == "gemini":
        if "api_key" not in config:
            raise TypeError("Gemini gateway requires 'api_key' in config")
        return GeminiGateway(**config)

    raise ValueError(
        f"Unsupported provider: {provider}. "
        f"Supported providers: 'gemini'"
    )
