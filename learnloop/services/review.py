"""Review submission: audit record, status transition and cascade."""

import logging

from pydantic import BaseModel, Field

from learnloop.errors import ContentNotFoundError
from learnloop.graph.workflow import run_cascade
from learnloop.models.content import QuestionReview, ReviewerType, ReviewStatus
from learnloop.store.base import QuestionStore

logger = logging.getLogger(__name__)


class ReviewOutcome(BaseModel):
    """What a submitted review changed."""

    review: QuestionReview
    status: ReviewStatus
    status_changed: bool
    deleted_question_ids: list[str] = Field(default_factory=list)
    deleted_variation_ids: list[str] = Field(default_factory=list)
    deleted_template_ids: list[str] = Field(default_factory=list)


async def submit_review(
    store: QuestionStore,
    question_id: str,
    reviewer_id: str,
    is_valid: bool,
    reviewer_type: ReviewerType = ReviewerType.HUMAN,
    score: int | None = None,
    feedback: str = "",
) -> ReviewOutcome:
    """
    Record a review decision for a generated question.

    The review is always appended to the audit trail. A rejection moves the
    question to rejected (from pending or approved), deletes it and then any
    variation or template left with no approved questions. Approval moves a
    pending question to approved and never cascades; approving a question
    that is already final changes nothing.

    Args:
        store: Question store
        question_id: Question under review
        reviewer_id: Who reviewed it
        is_valid: The verdict
        reviewer_type: Human, AI or external API reviewer
        score: Optional 1-10 score
        feedback: Reviewer comments (the rejection reason on rejection)

    Returns:
        Review outcome including everything the cascade deleted

    Raises:
        ContentNotFoundError: If the question does not exist
    """
    question = await store.find_question_by_id(question_id)
    if question is None:
        raise ContentNotFoundError("question", question_id)

    review = QuestionReview(
        question_id=question_id,
        reviewer_id=reviewer_id,
        reviewer_type=reviewer_type,
        is_valid=is_valid,
        score=score,
        feedback=feedback,
    )
    await store.insert_review(review)

    if is_valid and question.status != ReviewStatus.PENDING:
        logger.info(
            "Question %s is already %s; review %s recorded without a status change",
            question_id,
            question.status.value,
            review.id,
        )
        return ReviewOutcome(review=review, status=question.status, status_changed=False)

    previous_status = question.status
    status = ReviewStatus.APPROVED if is_valid else ReviewStatus.REJECTED
    await store.update_question_status(
        question_id,
        status,
        reviewer_id=reviewer_id,
        rejection_reason=None if is_valid else feedback,
    )
    logger.info("Question %s %s by %s", question_id, status.value, reviewer_id)

    outcome = ReviewOutcome(
        review=review, status=status, status_changed=previous_status != status
    )
    if not is_valid:
        final_state = await run_cascade(store, question_id)
        outcome.deleted_question_ids = final_state["deleted_question_ids"]
        outcome.deleted_variation_ids = final_state["deleted_variation_ids"]
        outcome.deleted_template_ids = final_state["deleted_template_ids"]

    return outcome
