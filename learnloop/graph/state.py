"""State carried through the cascade workflow."""

from enum import Enum
from typing import TypedDict

from learnloop.models.content import GeneratedQuestion


class AncestorOutcome(str, Enum):
    """What a cascade step did to a variation or template."""

    KEPT = "kept"
    DELETED = "deleted"
    ALREADY_GONE = "already_gone"


class CascadeState(TypedDict):
    """State of one cascade run, triggered by a rejected question."""

    question_id: str
    question: GeneratedQuestion | None
    deleted_question_ids: list[str]
    deleted_variation_ids: list[str]
    deleted_template_ids: list[str]
    variation_outcome: AncestorOutcome | None
    template_outcome: AncestorOutcome | None


def create_initial_state(question_id: str) -> CascadeState:
    """
    Create the initial state for a cascade run.

    Args:
        question_id: The rejected question

    Returns:
        Fresh cascade state
    """
    return CascadeState(
        question_id=question_id,
        question=None,
        deleted_question_ids=[],
        deleted_variation_ids=[],
        deleted_template_ids=[],
        variation_outcome=None,
        template_outcome=None,
    )
