"""Quality gates that score generation results."""

import json
from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import ValidationError

from learnloop.models.generation import InstanceList, QualityVerdict, QuestionEvaluation

QualityCheck = Callable[[Any, str], Awaitable[QualityVerdict]]

# Compact results are assumed to be placeholders
MIN_CONTENT_LENGTH = 50
ACCEPTABLE_SCORE = 6


def _truthy(value: Any) -> bool:
    # JSON truthiness: empty arrays and objects still count as present
    if value is None or value is False or value == "":
        return False
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value != 0
    return True


def _serialized_length(result: Any) -> int:
    return len(json.dumps(result, separators=(",", ":"), ensure_ascii=False, default=str))


async def default_quality_check(result: Any, prompt: str) -> QualityVerdict:
    """
    Heuristic gate for JSON generation results.

    Scores structure rather than content: a question template shape
    (``templateText`` + ``variables``) and metadata (``title`` +
    ``concepts``) raise the base score of 5, while empty or very short
    results are rejected outright.

    Args:
        result: Parsed JSON returned by a provider
        prompt: Prompt that produced the result

    Returns:
        Verdict with a 1-10 score
    """
    if not isinstance(result, (dict, list)):
        return QualityVerdict(is_valid=False, score=1, reason="Invalid response format")

    if len(result) == 0:
        return QualityVerdict(is_valid=False, score=2, reason="Empty response")

    score = 5
    if isinstance(result, dict):
        if _truthy(result.get("templateText")) and _truthy(result.get("variables")):
            score += 2
        if _truthy(result.get("title")) and _truthy(result.get("concepts")):
            score += 1

    if _serialized_length(result) <= MIN_CONTENT_LENGTH:
        return QualityVerdict(
            is_valid=False, score=3, reason="Response too short or incomplete"
        )

    is_valid = score >= ACCEPTABLE_SCORE
    return QualityVerdict(
        is_valid=is_valid,
        score=min(10, score),
        reason="Quality acceptable" if is_valid else "Quality below threshold",
    )


async def evaluation_quality_check(result: Any, prompt: str) -> QualityVerdict:
    """Gate for question evaluations: the payload must have the evaluation shape."""
    try:
        QuestionEvaluation.model_validate(result)
    except ValidationError as e:
        return QualityVerdict(
            is_valid=False,
            score=1,
            reason=f"Malformed evaluation: {e.error_count()} error(s)",
        )
    return QualityVerdict(is_valid=True, score=8, reason="Evaluation well formed")


async def instances_quality_check(result: Any, prompt: str) -> QualityVerdict:
    """Gate for question instances: at least one well-formed instance."""
    try:
        instances = InstanceList.model_validate(result).instances
    except ValidationError as e:
        return QualityVerdict(
            is_valid=False,
            score=1,
            reason=f"Malformed instances: {e.error_count()} error(s)",
        )
    if not instances:
        return QualityVerdict(is_valid=False, score=2, reason="No instances")
    return QualityVerdict(is_valid=True, score=8, reason="Instances well formed")
