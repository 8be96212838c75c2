"""Tiered AI generation: start with the cheapest model, upgrade if needed."""

import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from learnloop.ai.errors import AllAttemptsFailedError, NoProviderAvailableError
from learnloop.ai.factory import ProviderFactory
from learnloop.ai.quality import QualityCheck, default_quality_check
from learnloop.ai.tiers import MODEL_TIERS, available_tiers
from learnloop.models.generation import (
    BackendId,
    FallbackOutcome,
    GenerationRequest,
    ModelTier,
)

logger = logging.getLogger(__name__)

AttemptCallback = Callable[[ModelTier, int], None]


def _api_key(credentials: Mapping[BackendId | str, str | None], backend: BackendId) -> str:
    return credentials.get(backend) or credentials.get(backend.value) or ""


async def generate_with_fallback(
    request: GenerationRequest | str,
    *,
    credentials: Mapping[BackendId | str, str | None],
    quality_check: QualityCheck = default_quality_check,
    min_quality_score: float = 6,
    max_attempts: int = 5,
    on_attempt: AttemptCallback | None = None,
    factory: ProviderFactory | None = None,
    tiers: Iterable[ModelTier] = MODEL_TIERS,
) -> FallbackOutcome:
    """
    Generate JSON, trying model tiers cheapest-first until one is good enough.

    Each tier is attempted in turn. A provider or quality gate failure moves
    on to the next tier unless it was the last permitted attempt, in which
    case the error is raised. A result that the quality gate accepts with at least
    ``min_quality_score`` is returned at once; otherwise it is kept and the
    next tier is tried. When attempts run out the last result is returned as
    a best effort, so callers needing a hard floor must inspect
    ``quality_score``.

    Args:
        request: Generation request, or a bare prompt
        credentials: API key per backend; backends without one are skipped
        quality_check: Gate scoring each result
        min_quality_score: Score (1-10) that ends the search
        max_attempts: Maximum number of tiers to try
        on_attempt: Called with (tier, attempt number) before each attempt
        factory: Factory building the adapters
        tiers: Tier catalog

    Returns:
        The accepted (or best-effort) result with its provenance

    Raises:
        NoProviderAvailableError: If no tier has a credential
        AIError: The error of the final attempt when every attempt failed
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")
    if isinstance(request, str):
        request = GenerationRequest(prompt=request)
    factory = factory or ProviderFactory()

    sorted_tiers = available_tiers(credentials, tiers)
    if not sorted_tiers:
        raise NoProviderAvailableError()

    attempt_limit = min(max_attempts, len(sorted_tiers))
    options = request.options()
    last_error: Exception | None = None
    last_result: Any = None
    has_result = False

    for attempt in range(attempt_limit):
        tier = sorted_tiers[attempt]
        is_last = attempt == attempt_limit - 1

        if on_attempt:
            on_attempt(tier, attempt + 1)
        logger.info(
            "Attempt %d/%d with %s/%s",
            attempt + 1,
            attempt_limit,
            tier.backend.value,
            tier.model_name,
        )

        try:
            provider = factory.create(
                tier.backend, _api_key(credentials, tier.backend), tier.model_name
            )
            if request.image_data:
                result = await provider.generate_json_with_image(
                    request.prompt, request.image_data, options
                )
            else:
                result = await provider.generate_json(request.prompt, options)
            quality = await quality_check(result, request.prompt)
        except Exception as e:
            last_error = e
            logger.warning(
                "Attempt %d with %s/%s failed: %s",
                attempt + 1,
                tier.backend.value,
                tier.model_name,
                e,
            )
            if is_last:
                raise
            continue

        outcome = FallbackOutcome(
            result=result,
            model_used=tier.model_name,
            backend_used=tier.backend,
            attempts_made=attempt + 1,
            quality_score=quality.score,
        )

        if quality.is_valid and (quality.score or 0) >= min_quality_score:
            return outcome

        # Not good enough, but keep it in case we run out of attempts
        last_result = result
        has_result = True
        logger.info(
            "%s/%s scored %s (%s)",
            tier.backend.value,
            tier.model_name,
            quality.score,
            quality.reason,
        )

        if is_last:
            logger.warning(
                "No tier met quality %d; returning best-effort result from %s",
                min_quality_score,
                tier.model_name,
            )
            return outcome

    # Unreachable while the loop above returns or raises on its last attempt
    logger.error("Fallback loop ended without returning; check the attempt bookkeeping")
    if has_result:
        cheapest = sorted_tiers[0]
        return FallbackOutcome(
            result=last_result,
            model_used=cheapest.model_name,
            backend_used=cheapest.backend,
            attempts_made=len(sorted_tiers),
        )
    if last_error is not None:
        raise last_error
    raise AllAttemptsFailedError()
