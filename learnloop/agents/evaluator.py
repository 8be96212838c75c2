"""Evaluator Agent - AI review of generated questions."""

import logging
from collections.abc import Mapping

from pydantic import ValidationError

from learnloop.ai.errors import ResponseParseError
from learnloop.ai.factory import ProviderFactory
from learnloop.ai.fallback import generate_with_fallback
from learnloop.ai.quality import evaluation_quality_check
from learnloop.errors import ContentNotFoundError
from learnloop.models.content import ReviewerType
from learnloop.models.generation import BackendId, GenerationRequest, QuestionEvaluation
from learnloop.services.review import ReviewOutcome, submit_review
from learnloop.store.base import QuestionStore

logger = logging.getLogger(__name__)

EVALUATOR_SYSTEM_PROMPT = """You are an experienced teacher reviewing questions before students see them.
Be strict: a question that cannot be solved from its own text is not valid."""


def build_evaluation_prompt(question_text: str) -> str:
    """Build the evaluation prompt for a question."""
    return f"""Evaluate this question: "{question_text}".
Consider: clarity, solvability, educational value, age-appropriateness.
Return JSON {{ "score": number (1-10), "isSolvable": boolean, "feedback": "string", "isValid": boolean }}"""


async def evaluate_question(
    store: QuestionStore,
    question_id: str,
    *,
    factory: ProviderFactory,
    credentials: Mapping[BackendId | str, str | None] | None = None,
    max_attempts: int = 2,
) -> tuple[QuestionEvaluation, ReviewOutcome]:
    """
    Evaluator Agent: let a model review a question.

    The verdict is submitted like any other review, so it is audited and a
    rejection cascades to the question's variation and template.

    Args:
        store: Question store
        question_id: Question to evaluate
        factory: Provider factory
        credentials: API key per backend (defaults to the configured keys)
        max_attempts: Maximum tiers to try, capped by MAX_FALLBACK_ATTEMPTS

    Returns:
        The model's evaluation and the resulting review outcome

    Raises:
        ContentNotFoundError: If the question does not exist
        ResponseParseError: If the accepted result is not an evaluation
    """
    question = await store.find_question_by_id(question_id)
    if question is None:
        raise ContentNotFoundError("question", question_id)

    settings = factory.settings
    outcome = await generate_with_fallback(
        GenerationRequest(
            prompt=build_evaluation_prompt(question.question_text),
            system_instruction=EVALUATOR_SYSTEM_PROMPT,
            temperature=settings.default_temperature,
        ),
        credentials=credentials if credentials is not None else settings.credentials(),
        quality_check=evaluation_quality_check,
        min_quality_score=settings.min_quality_score,
        max_attempts=settings.attempt_limit(max_attempts),
        factory=factory,
    )

    try:
        evaluation = QuestionEvaluation.model_validate(outcome.result)
    except ValidationError as e:
        raise ResponseParseError(outcome.backend_used.value, str(outcome.result), str(e)) from e

    logger.info(
        "%s scored question %s at %d (valid=%s)",
        outcome.model_used,
        question_id,
        evaluation.score,
        evaluation.is_valid,
    )

    review = await submit_review(
        store,
        question_id,
        reviewer_id=f"ai:{outcome.model_used}",
        is_valid=evaluation.is_valid,
        reviewer_type=ReviewerType.AI,
        score=evaluation.score,
        feedback=evaluation.feedback,
    )
    return evaluation, review
