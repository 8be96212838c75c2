"""Static catalog of model tiers used to order the fallback chain."""

from collections.abc import Iterable, Mapping

from learnloop.models.generation import BackendId, ModelTier

MODEL_TIERS: tuple[ModelTier, ...] = (
    # Cheapest tier
    ModelTier(backend=BackendId.GEMINI, model_name="gemini-1.5-flash", relative_cost=1, expected_quality=7),
    ModelTier(backend=BackendId.OPENAI, model_name="gpt-4o-mini", relative_cost=2, expected_quality=7),
    ModelTier(backend=BackendId.ANTHROPIC, model_name="claude-3-haiku-20240307", relative_cost=3, expected_quality=7),
    # Mid tier
    ModelTier(backend=BackendId.GEMINI, model_name="gemini-2.5-flash-preview-09-2025", relative_cost=4, expected_quality=8),
    ModelTier(backend=BackendId.OPENAI, model_name="gpt-3.5-turbo", relative_cost=5, expected_quality=8),
    ModelTier(backend=BackendId.GEMINI, model_name="gemini-1.5-pro", relative_cost=6, expected_quality=9),
    # Premium tier
    ModelTier(backend=BackendId.OPENAI, model_name="gpt-4o", relative_cost=7, expected_quality=9),
    ModelTier(backend=BackendId.ANTHROPIC, model_name="claude-3-5-sonnet-20241022", relative_cost=8, expected_quality=9),
    # Best tier
    ModelTier(backend=BackendId.OPENAI, model_name="gpt-4-turbo", relative_cost=9, expected_quality=10),
    ModelTier(backend=BackendId.ANTHROPIC, model_name="claude-3-opus-20240229", relative_cost=10, expected_quality=10),
)


def has_credential(credentials: Mapping[BackendId | str, str | None], backend: BackendId) -> bool:
    """Whether a non-empty key is present for a backend (enum or plain string key)."""
    return bool(credentials.get(backend) or credentials.get(backend.value))


def available_tiers(
    credentials: Mapping[BackendId | str, str | None],
    tiers: Iterable[ModelTier] = MODEL_TIERS,
) -> list[ModelTier]:
    """
    Get the tiers that can be tried, cheapest first.

    Tiers whose backend has no credential are dropped. Ties in cost keep
    their catalog order.

    Args:
        credentials: API key per backend
        tiers: Tier catalog to select from

    Returns:
        Trial order for the fallback chain
    """
    usable = [tier for tier in tiers if has_credential(credentials, tier.backend)]
    return sorted(usable, key=lambda tier: tier.relative_cost)
