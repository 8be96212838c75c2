"""Instance Generator Agent - Turns a template into concrete, answerable questions."""

import json
import logging
import random
from collections.abc import Mapping

from pydantic import BaseModel, Field, ValidationError

from learnloop.ai.errors import ResponseParseError
from learnloop.ai.factory import ProviderFactory
from learnloop.ai.fallback import AttemptCallback, generate_with_fallback
from learnloop.ai.quality import instances_quality_check
from learnloop.errors import ContentNotFoundError, FormulaError
from learnloop.formula import evaluate_formula, format_answer, render_question, sample_values
from learnloop.models.content import (
    GeneratedQuestion,
    QuestionTemplate,
    QuestionVariation,
    ReviewStatus,
)
from learnloop.models.generation import (
    BackendId,
    FallbackOutcome,
    GenerationRequest,
    InstanceList,
)
from learnloop.store.base import QuestionStore

logger = logging.getLogger(__name__)

# Answer stored when a template's formula cannot be evaluated
FORMULA_ERROR_ANSWER = "Error"


class InstanceBatch(BaseModel):
    """Questions created by one generation run."""

    questions: list[GeneratedQuestion] = Field(default_factory=list)
    outcome: FallbackOutcome | None = Field(
        None,
        description="Fallback provenance when the questions came from a model",
    )


def generate_local_instances(
    template: QuestionTemplate,
    text: str,
    count: int,
    variation_id: str | None = None,
    rng: random.Random | None = None,
) -> list[GeneratedQuestion]:
    """
    Instance a template locally by sampling variables and evaluating its formula.

    Args:
        template: Template with an answer formula
        text: Phrasing to interpolate
        count: Number of questions
        variation_id: Variation the questions belong to
        rng: Random source

    Returns:
        New pending questions (not yet stored)
    """
    rng = rng or random.Random()
    questions = []
    for _ in range(count):
        values = sample_values(template.variables, rng)
        try:
            answer = format_answer(evaluate_formula(template.answer_formula, values))
        except FormulaError as e:
            logger.warning("Formula of template %s failed: %s", template.id, e)
            answer = FORMULA_ERROR_ANSWER

        questions.append(
            GeneratedQuestion(
                template_id=template.id,
                variation_id=variation_id,
                question_text=render_question(text, values),
                values=values,
                concepts=list(template.concepts),
                curriculum_tags=[tag.model_copy() for tag in template.curriculum_tags],
                calculated_answer=answer,
            )
        )
    return questions


def build_instances_prompt(template: QuestionTemplate, text: str, count: int) -> str:
    """
    Build the prompt asking a model for question instances.

    Args:
        template: Template being instanced
        text: Phrasing to instance
        count: Number of instances wanted

    Returns:
        Prompt text
    """
    variables = json.dumps([v.model_dump(mode="json", exclude_none=True) for v in template.variables])
    return f"""I have a question template.
Template Text: "{text}"
Variables Schema: {variables}
Please generate {count} distinct, solvable, valid instances.
Return JSON {{ "instances": [{{ "values": {{...}}, "questionText": "...", "answer": "..." }}] }}"""


async def generate_instances(
    store: QuestionStore,
    template_id: str,
    *,
    factory: ProviderFactory,
    count: int = 5,
    variation_text: str | None = None,
    credentials: Mapping[BackendId | str, str | None] | None = None,
    rng: random.Random | None = None,
    max_attempts: int = 3,
    on_attempt: AttemptCallback | None = None,
) -> InstanceBatch:
    """
    Instance Generator Agent: create pending questions from a template.

    Templates with an answer formula are instanced locally; the rest are
    instanced by a model through the tier fallback. Every question starts
    pending review.

    Args:
        store: Question store
        template_id: Template to instance
        factory: Provider factory
        count: Number of questions
        variation_text: Alternative phrasing; stored as a new variation when it
            differs from the template text
        credentials: API key per backend (defaults to the configured keys)
        rng: Random source for local instancing
        max_attempts: Maximum tiers to try, capped by MAX_FALLBACK_ATTEMPTS
        on_attempt: Progress callback for model instancing

    Returns:
        The stored questions, with provenance when a model was used

    Raises:
        ContentNotFoundError: If the template does not exist
        ResponseParseError: If the model returned no usable instances
    """
    if count < 1:
        raise ValueError("count must be at least 1")

    template = await store.find_template_by_id(template_id)
    if template is None:
        raise ContentNotFoundError("template", template_id)

    text = variation_text or template.template_text
    variation = None
    if variation_text and variation_text != template.template_text:
        variation = QuestionVariation(template_id=template_id, variation_text=variation_text)
    variation_id = variation.id if variation else None

    outcome = None
    if template.answer_formula and template.answer_formula.strip():
        questions = generate_local_instances(template, text, count, variation_id, rng)
    else:
        settings = factory.settings
        outcome = await generate_with_fallback(
            GenerationRequest(
                prompt=build_instances_prompt(template, text, count),
                temperature=settings.default_temperature,
            ),
            credentials=credentials if credentials is not None else settings.credentials(),
            quality_check=instances_quality_check,
            min_quality_score=settings.min_quality_score,
            max_attempts=settings.attempt_limit(max_attempts),
            on_attempt=on_attempt,
            factory=factory,
        )
        try:
            instances = InstanceList.model_validate(outcome.result).instances
        except ValidationError as e:
            raise ResponseParseError(outcome.backend_used.value, str(outcome.result), str(e)) from e
        if not instances:
            raise ResponseParseError(outcome.backend_used.value, str(outcome.result), "no instances")

        questions = [
            GeneratedQuestion(
                template_id=template_id,
                variation_id=variation_id,
                question_text=instance.question_text,
                values=instance.values,
                concepts=list(template.concepts),
                curriculum_tags=[tag.model_copy() for tag in template.curriculum_tags],
                calculated_answer=instance.answer,
                status=ReviewStatus.PENDING,
            )
            for instance in instances
        ]

    # Stored only once generation succeeded
    if variation is not None:
        await store.insert_variation(variation)
        logger.info("Created variation %s for template %s", variation.id, template_id)
    for question in questions:
        await store.insert_question(question)

    logger.info(
        "Generated %d question(s) for template %s (%s)",
        len(questions),
        template_id,
        "local" if outcome is None else f"{outcome.backend_used.value}/{outcome.model_used}",
    )
    return InstanceBatch(questions=questions, outcome=outcome)
