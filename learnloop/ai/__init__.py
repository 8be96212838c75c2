"""AI generation: provider adapters, tiered fallback and quality gating."""

from .errors import (
    AIError,
    AllAttemptsFailedError,
    EmptyResponseError,
    MissingCredentialError,
    NoProviderAvailableError,
    ProviderAPIError,
    ResponseParseError,
    UnsupportedBackendError,
)
from .factory import ProviderFactory
from .fallback import generate_with_fallback
from .quality import (
    QualityCheck,
    default_quality_check,
    evaluation_quality_check,
    instances_quality_check,
)
from .tiers import MODEL_TIERS, available_tiers

__all__ = [
    "AIError",
    "AllAttemptsFailedError",
    "EmptyResponseError",
    "MissingCredentialError",
    "NoProviderAvailableError",
    "ProviderAPIError",
    "ResponseParseError",
    "UnsupportedBackendError",
    "ProviderFactory",
    "generate_with_fallback",
    "QualityCheck",
    "default_quality_check",
    "evaluation_quality_check",
    "instances_quality_check",
    "MODEL_TIERS",
    "available_tiers",
]
