"""In-process document store with optional JSON file persistence."""

import json
import logging
from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, Field

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

logger = logging.getLogger(__name__)


class StoreSnapshot(BaseModel):
    """Serializable copy of every collection."""

    templates: list[QuestionTemplate] = Field(default_factory=list)
    variations: list[QuestionVariation] = Field(default_factory=list)
    questions: list[GeneratedQuestion] = Field(default_factory=list)
    reviews: list[QuestionReview] = Field(default_factory=list)
    attempts: list[StudentAttempt] = Field(default_factory=list)
    sessions: list[PracticeSession] = Field(default_factory=list)
    progress: list[StudentProgress] = Field(default_factory=list)


def _newest_first(items):
    return sorted(items, key=lambda item: item.created_at, reverse=True)


class InMemoryStore:
    """
    Dictionary-backed implementation of the question store.

    Documents are copied on the way in and out so callers never share
    mutable state with the store.
    """

    def __init__(self, snapshot: StoreSnapshot | None = None):
        snapshot = snapshot or StoreSnapshot()
        self.templates = {t.id: t for t in snapshot.templates}
        self.variations = {v.id: v for v in snapshot.variations}
        self.questions = {q.id: q for q in snapshot.questions}
        self.reviews: list[QuestionReview] = list(snapshot.reviews)
        self.attempts: list[StudentAttempt] = list(snapshot.attempts)
        self.sessions = {s.id: s for s in snapshot.sessions}
        self.progress = {(p.student_id, p.curriculum_tag_id): p for p in snapshot.progress}

    # ========== PERSISTENCE ==========

    @classmethod
    def load(cls, path: str | Path) -> "InMemoryStore":
        """
        Load a store from a JSON snapshot.

        A missing file gives an empty store.
        """
        path = Path(path)
        if not path.exists():
            return cls()
        with open(path, "r", encoding="utf-8") as f:
            snapshot = StoreSnapshot.model_validate(json.load(f))
        logger.debug("Loaded store from %s", path)
        return cls(snapshot)

    def snapshot(self) -> StoreSnapshot:
        """Get a serializable copy of the store."""
        return StoreSnapshot(
            templates=list(self.templates.values()),
            variations=list(self.variations.values()),
            questions=list(self.questions.values()),
            reviews=list(self.reviews),
            attempts=list(self.attempts),
            sessions=list(self.sessions.values()),
            progress=list(self.progress.values()),
        )

    def save(self, path: str | Path) -> Path:
        """Write the store to a JSON snapshot."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.snapshot().model_dump(mode="json"), f, indent=2, ensure_ascii=False)
        logger.debug("Saved store to %s", path)
        return path

    # ========== TEMPLATE OPERATIONS ==========

    async def insert_template(self, template: QuestionTemplate) -> str:
        self.templates[template.id] = template.model_copy(deep=True)
        return template.id

    async def find_template_by_id(self, template_id: str) -> QuestionTemplate | None:
        template = self.templates.get(template_id)
        return template.model_copy(deep=True) if template else None

    async def list_templates(self, include_deleted: bool = False) -> list[QuestionTemplate]:
        templates = [
            t for t in self.templates.values() if include_deleted or not t.is_deleted
        ]
        return [t.model_copy(deep=True) for t in _newest_first(templates)]

    async def count_approved_for_template(self, template_id: str) -> int:
        return sum(
            1
            for q in self.questions.values()
            if q.template_id == template_id and q.status == ReviewStatus.APPROVED
        )

    async def soft_delete_template(self, template_id: str) -> bool:
        template = self.templates.get(template_id)
        if template is None:
            return False
        template.deleted_at = datetime.now()
        return True

    async def restore_template(self, template_id: str) -> bool:
        template = self.templates.get(template_id)
        if template is None:
            return False
        template.deleted_at = None
        template.updated_at = datetime.now()
        return True

    async def hard_delete_template(self, template_id: str) -> bool:
        return self.templates.pop(template_id, None) is not None

    # ========== VARIATION OPERATIONS ==========

    async def insert_variation(self, variation: QuestionVariation) -> str:
        self.variations[variation.id] = variation.model_copy(deep=True)
        return variation.id

    async def find_variations_by_template(self, template_id: str) -> list[QuestionVariation]:
        variations = [v for v in self.variations.values() if v.template_id == template_id]
        return [v.model_copy(deep=True) for v in _newest_first(variations)]

    async def count_approved_for_variation(self, variation_id: str) -> int:
        return sum(
            1
            for q in self.questions.values()
            if q.variation_id == variation_id and q.status == ReviewStatus.APPROVED
        )

    async def hard_delete_variation(self, variation_id: str) -> bool:
        return self.variations.pop(variation_id, None) is not None

    # ========== QUESTION OPERATIONS ==========

    async def insert_question(self, question: GeneratedQuestion) -> str:
        self.questions[question.id] = question.model_copy(deep=True)
        return question.id

    async def find_question_by_id(self, question_id: str) -> GeneratedQuestion | None:
        question = self.questions.get(question_id)
        return question.model_copy(deep=True) if question else None

    async def list_questions(
        self,
        template_id: str | None = None,
        variation_id: str | None = None,
        status: ReviewStatus | None = None,
    ) -> list[GeneratedQuestion]:
        questions = [
            q
            for q in self.questions.values()
            if (template_id is None or q.template_id == template_id)
            and (variation_id is None or q.variation_id == variation_id)
            and (status is None or q.status == status)
        ]
        return [q.model_copy(deep=True) for q in _newest_first(questions)]

    async def update_question_status(
        self,
        question_id: str,
        status: ReviewStatus,
        reviewer_id: str | None = None,
        rejection_reason: str | None = None,
    ) -> bool:
        question = self.questions.get(question_id)
        if question is None:
            return False
        question.status = status
        question.reviewed_at = datetime.now()
        question.reviewer_id = reviewer_id
        question.rejection_reason = (
            rejection_reason if status == ReviewStatus.REJECTED else None
        )
        return True

    async def record_question_attempt(self, question_id: str) -> bool:
        question = self.questions.get(question_id)
        if question is None:
            return False
        question.attempt_count += 1
        question.last_attempted_at = datetime.now()
        return True

    async def hard_delete_question(self, question_id: str) -> bool:
        return self.questions.pop(question_id, None) is not None

    # ========== REVIEW OPERATIONS ==========

    async def insert_review(self, review: QuestionReview) -> str:
        self.reviews.append(review)
        return review.id

    async def list_reviews(self, question_id: str) -> list[QuestionReview]:
        return _newest_first([r for r in self.reviews if r.question_id == question_id])

    # ========== PRACTICE OPERATIONS ==========

    async def insert_attempt(self, attempt: StudentAttempt) -> str:
        self.attempts.append(attempt.model_copy(deep=True))
        return attempt.id

    async def list_attempts(self, student_id: str) -> list[StudentAttempt]:
        attempts = [a for a in self.attempts if a.student_id == student_id]
        return [a.model_copy(deep=True) for a in _newest_first(attempts)]

    async def insert_session(self, session: PracticeSession) -> str:
        self.sessions[session.id] = session.model_copy(deep=True)
        return session.id

    async def list_progress(self, student_id: str) -> list[StudentProgress]:
        return [
            p.model_copy(deep=True)
            for (owner, _), p in self.progress.items()
            if owner == student_id
        ]

    async def save_progress(self, progress: StudentProgress) -> None:
        key = (progress.student_id, progress.curriculum_tag_id)
        self.progress[key] = progress.model_copy(deep=True)
