"""Persistence interface consumed by the agents, services and cascade."""

from typing import Protocol

from learnloop.models.content import (
    GeneratedQuestion,
    PracticeSession,
    QuestionReview,
    QuestionTemplate,
    QuestionVariation,
    ReviewStatus,
    StudentAttempt,
    StudentProgress,
)


class QuestionStore(Protocol):
    """
    Document store holding templates, variations, questions and reviews.

    Hard deletes return False when the document was already gone so that
    concurrent cascades can race on the same ancestor without failing.
    """

    # Templates
    async def insert_template(self, template: QuestionTemplate) -> str: ...

    async def find_template_by_id(self, template_id: str) -> QuestionTemplate | None: ...

    async def list_templates(self, include_deleted: bool = False) -> list[QuestionTemplate]: ...

    async def count_approved_for_template(self, template_id: str) -> int: ...

    async def soft_delete_template(self, template_id: str) -> bool: ...

    async def restore_template(self, template_id: str) -> bool: ...

    async def hard_delete_template(self, template_id: str) -> bool: ...

    # Variations
    async def insert_variation(self, variation: QuestionVariation) -> str: ...

    async def find_variations_by_template(self, template_id: str) -> list[QuestionVariation]: ...

    async def count_approved_for_variation(self, variation_id: str) -> int: ...

    async def hard_delete_variation(self, variation_id: str) -> bool: ...

    # Questions
    async def insert_question(self, question: GeneratedQuestion) -> str: ...

    async def find_question_by_id(self, question_id: str) -> GeneratedQuestion | None: ...

    async def list_questions(
        self,
        template_id: str | None = None,
        variation_id: str | None = None,
        status: ReviewStatus | None = None,
    ) -> list[GeneratedQuestion]: ...

    async def update_question_status(
        self,
        question_id: str,
        status: ReviewStatus,
        reviewer_id: str | None = None,
        rejection_reason: str | None = None,
    ) -> bool: ...

    async def record_question_attempt(self, question_id: str) -> bool: ...

    async def hard_delete_question(self, question_id: str) -> bool: ...

    # Reviews
    async def insert_review(self, review: QuestionReview) -> str: ...

    async def list_reviews(self, question_id: str) -> list[QuestionReview]: ...

    # Practice
    async def insert_attempt(self, attempt: StudentAttempt) -> str: ...

    async def list_attempts(self, student_id: str) -> list[StudentAttempt]: ...

    async def insert_session(self, session: PracticeSession) -> str: ...

    async def list_progress(self, student_id: str) -> list[StudentProgress]: ...

    async def save_progress(self, progress: StudentProgress) -> None: ...
