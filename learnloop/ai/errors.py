"""Error taxonomy for provider adapters and the fallback orchestrator."""

from learnloop.errors import LearnLoopError


class AIError(LearnLoopError):
    """Base class for AI generation errors."""


class UnsupportedBackendError(AIError):
    """The factory was asked for a backend it has no adapter for."""

    def __init__(self, backend: str):
        self.backend = backend
        super().__init__(f"Unsupported AI provider type: {backend}")


class MissingCredentialError(AIError):
    """The configured default backend has no API key."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"{key} is required")


class NoProviderAvailableError(AIError):
    """No tier has a credential, so nothing can be attempted."""

    def __init__(self):
        super().__init__("No AI provider API keys available")


class ProviderAPIError(AIError):
    """A backend answered with a failure."""

    def __init__(self, backend: str, body: str, status_code: int | None = None):
        self.backend = backend
        self.body = body
        self.status_code = status_code
        status = f" ({status_code})" if status_code is not None else ""
        super().__init__(f"{backend} API error{status}: {body}")


class EmptyResponseError(AIError):
    """A backend succeeded but returned no extractable text."""

    def __init__(self, backend: str):
        self.backend = backend
        super().__init__(f"No response from {backend} API")


class ResponseParseError(AIError):
    """A JSON operation got text that does not parse as JSON."""

    def __init__(self, backend: str, raw_text: str, reason: str):
        self.backend = backend
        self.raw_text = raw_text
        super().__init__(f"Failed to parse JSON response from {backend}: {reason}")


class AllAttemptsFailedError(AIError):
    """The fallback loop ended without a result or a recorded error."""

    def __init__(self):
        super().__init__("All model attempts failed")
