"""Provider factory and the default-provider service."""

import logging
import threading

from learnloop.ai.errors import MissingCredentialError, UnsupportedBackendError
from learnloop.ai.providers import AIProvider, AnthropicProvider, GeminiProvider, OpenAIProvider
from learnloop.config.settings import Settings, get_settings
from learnloop.models.generation import BackendId

logger = logging.getLogger(__name__)

PROVIDER_CLASSES: dict[BackendId, type[AIProvider]] = {
    BackendId.GEMINI: GeminiProvider,
    BackendId.OPENAI: OpenAIProvider,
    BackendId.ANTHROPIC: AnthropicProvider,
}


def parse_backend(backend: BackendId | str) -> BackendId:
    """
    Resolve a backend identifier.

    Raises:
        UnsupportedBackendError: If the identifier names no known backend
    """
    try:
        return BackendId(backend)
    except ValueError:
        raise UnsupportedBackendError(str(backend)) from None


def credential_key(backend: BackendId) -> str:
    """Name of the environment variable holding a backend's API key."""
    return f"{backend.value.upper()}_API_KEY"


class ProviderFactory:
    """
    Builds provider adapters and owns the default provider.

    One factory is created at startup and handed to the agents and services
    that need it. The default provider is resolved from settings on first use
    and kept for the factory's lifetime.
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self._default: AIProvider | None = None
        self._lock = threading.Lock()

    def create(
        self, backend: BackendId | str, api_key: str, model: str | None = None
    ) -> AIProvider:
        """
        Create an adapter for a backend.

        Args:
            backend: Backend identifier
            api_key: API key for the backend
            model: Optional model override (adapter default otherwise)

        Returns:
            New provider adapter
        """
        provider_cls = PROVIDER_CLASSES[parse_backend(backend)]
        return provider_cls(api_key, model)

    def get_default(self) -> AIProvider:
        """
        Get the provider configured by ``AI_PROVIDER``.

        Raises:
            UnsupportedBackendError: If AI_PROVIDER names no known backend
            MissingCredentialError: If the configured backend has no API key
        """
        if self._default is not None:
            return self._default

        with self._lock:
            if self._default is None:
                backend = parse_backend(self.settings.ai_provider)
                api_key = self.settings.credentials()[backend]
                if not api_key:
                    raise MissingCredentialError(credential_key(backend))
                self._default = self.create(
                    backend, api_key, self.settings.configured_model(backend)
                )
                logger.info("Default AI provider: %r", self._default)
        return self._default

    def reset(self) -> None:
        """Forget the cached default provider."""
        with self._lock:
            self._default = None
