"""Template Structurer Agent - Drafts a question template from a topic or an image."""

import logging
from collections.abc import Mapping

from pydantic import ValidationError

from learnloop.ai.errors import ResponseParseError
from learnloop.ai.factory import ProviderFactory
from learnloop.ai.fallback import AttemptCallback, generate_with_fallback
from learnloop.models.generation import (
    BackendId,
    FallbackOutcome,
    GenerationRequest,
    TemplateStructure,
)

logger = logging.getLogger(__name__)

STRUCTURE_SYSTEM_PROMPT = """You are an expert teacher who writes reusable question templates.

A template is "question as code": the wording contains {variables} that are sampled
to produce many distinct, solvable questions of the same kind."""

STRUCTURE_FORMAT = """
Return a JSON object with:
- title: Short title.
- templateText: The primary question text with variables in {curly} braces.
- variants: An array of strings (at least 2) with alternative phrasings of the same question using the same variables.
- answerFormula: An arithmetic expression over the variable names that calculates the answer
     (e.g. "a + b" or "round(price * (1 - discount / 100), 2)"). Allowed functions: abs, round, min, max, sqrt, floor, ceil.
     Use null when the answer cannot be calculated this way.
- variables: Array of objects [{ name, type ("number"|"text"|"choice"), min, max, precision, options }].
- concepts: Array of strings.
- curriculumTags: Array of objects with { subject (Mathematics, Science, etc), yearGroup (e.g. "Year 9", "Year 12"), topicPath (Array of strings e.g. ["Algebra", "Linear Equations"]) }.
     IMPORTANT: For yearGroup, strictly use UK format "Year X" (1-13).
"""


def build_structure_prompt(topic: str | None, has_image: bool) -> str:
    """
    Build the template structuring prompt.

    Args:
        topic: Topic to write a template for (a hint when an image is given)
        has_image: Whether an example question image accompanies the prompt

    Returns:
        Prompt text
    """
    if has_image:
        prompt = (
            "Analyze this image of a question. Extract the underlying concept, "
            f'structure, and variables.\nTopic hint: "{topic or ""}".\n'
        )
    else:
        prompt = f'Create a detailed question template for the topic: "{topic}".\n'
    return prompt + STRUCTURE_FORMAT


async def generate_template_structure(
    topic: str | None = None,
    image: str | None = None,
    *,
    factory: ProviderFactory,
    credentials: Mapping[BackendId | str, str | None] | None = None,
    min_quality_score: int | None = None,
    max_attempts: int = 3,
    on_attempt: AttemptCallback | None = None,
) -> tuple[TemplateStructure, FallbackOutcome]:
    """
    Template Structurer Agent: draft a template from a topic or an example image.

    The request goes through the tier fallback, so the cheapest model that
    produces a well-formed template is used.

    Args:
        topic: Topic of the template
        image: Example question as a data URI or base64 PNG
        factory: Provider factory
        credentials: API key per backend (defaults to the configured keys)
        min_quality_score: Quality that ends the fallback (defaults to settings)
        max_attempts: Maximum tiers to try, capped by MAX_FALLBACK_ATTEMPTS
        on_attempt: Progress callback

    Returns:
        The parsed template draft and the fallback provenance

    Raises:
        ValueError: If neither a topic nor an image is given
        ResponseParseError: If the accepted result is not a template
    """
    if not topic and not image:
        raise ValueError("Topic or image required")

    settings = factory.settings
    request = GenerationRequest(
        prompt=build_structure_prompt(topic, image is not None),
        image_data=image,
        system_instruction=STRUCTURE_SYSTEM_PROMPT,
        temperature=settings.default_temperature,
    )

    outcome = await generate_with_fallback(
        request,
        credentials=credentials if credentials is not None else settings.credentials(),
        min_quality_score=min_quality_score or settings.min_quality_score,
        max_attempts=settings.attempt_limit(max_attempts),
        on_attempt=on_attempt,
        factory=factory,
    )

    try:
        structure = TemplateStructure.model_validate(outcome.result)
    except ValidationError as e:
        raise ResponseParseError(outcome.backend_used.value, str(outcome.result), str(e)) from e

    logger.info(
        "Structured template %r with %s/%s (score %s)",
        structure.title,
        outcome.backend_used.value,
        outcome.model_used,
        outcome.quality_score,
    )
    return structure, outcome
