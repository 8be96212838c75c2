"""Provider adapters, one per supported backend."""

from .anthropic import AnthropicProvider
from .base import AIProvider, strip_code_fences
from .gemini import GeminiProvider
from .openai import OpenAIProvider

__all__ = [
    "AIProvider",
    "AnthropicProvider",
    "GeminiProvider",
    "OpenAIProvider",
    "strip_code_fences",
]
