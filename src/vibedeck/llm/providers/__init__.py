"""Model gateway implementations."""

from .gemini import GeminiGateway

__all__ = ["GeminiGateway"]
