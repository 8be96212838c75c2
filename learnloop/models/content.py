"""Pydantic models for authored content, reviews and student practice."""

import uuid
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def _new_id() -> str:
    return str(uuid.uuid4())


class ReviewStatus(str, Enum):
    """Review state of a variation or generated question."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ReviewerType(str, Enum):
    """Who produced a review."""

    HUMAN = "human"
    AI = "ai"
    API = "api"


class TemplateStatus(str, Enum):
    """Authoring state of a template."""

    DRAFT = "draft"
    ACTIVE = "active"
    ARCHIVED = "archived"


class VariableType(str, Enum):
    """Kinds of template variables."""

    NUMBER = "number"
    TEXT = "text"
    CHOICE = "choice"


class MasteryLevel(str, Enum):
    """Student mastery of a curriculum tag."""

    BEGINNER = "beginner"
    DEVELOPING = "developing"
    PROFICIENT = "proficient"
    MASTERED = "mastered"


class SessionStatus(str, Enum):
    """Practice session lifecycle."""

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class VariableDefinition(BaseModel):
    """A variable that a template samples when it is instanced."""

    name: str = Field(..., min_length=1, pattern=r"^[A-Za-z_][A-Za-z0-9_]*$")
    type: VariableType = VariableType.NUMBER
    min: float | None = None
    max: float | None = None
    options: list[str] | None = None
    precision: int | None = Field(None, ge=0, le=10, description="Decimal places")


class CurriculumTag(BaseModel):
    """Curriculum position of a template or question."""

    id: str = Field(default_factory=_new_id)
    subject: str = Field(..., min_length=1)
    year_group: str | None = Field(
        None,
        validation_alias=AliasChoices("yearGroup", "year_group"),
        description='UK format, e.g. "Year 9"',
    )
    topic_path: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("topicPath", "topic_path"),
    )

    def matches(self, other: "CurriculumTag") -> bool:
        """Same subject, year group and top-level topic."""
        return (
            self.subject == other.subject
            and self.year_group == other.year_group
            and self.topic_path[:1] == other.topic_path[:1]
        )


class QuestionTemplate(BaseModel):
    """An authored, parameterized question."""

    id: str = Field(default_factory=_new_id)
    title: str = Field(..., min_length=1)
    template_text: str = Field(..., min_length=1, description="Primary phrasing")
    variants: list[str] = Field(
        default_factory=list,
        description="Alternative phrasings using the same variables",
    )
    answer_formula: str | None = Field(
        None,
        description="Arithmetic expression over the variable names",
    )
    variables: list[VariableDefinition] = Field(default_factory=list)
    concepts: list[str] = Field(default_factory=list)
    curriculum_tags: list[CurriculumTag] = Field(default_factory=list)
    created_by: str = "system"
    status: TemplateStatus = TemplateStatus.DRAFT
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
    deleted_at: datetime | None = Field(
        None,
        description="Set while the template is soft-deleted",
    )

    @property
    def is_deleted(self) -> bool:
        """Whether the template is tombstoned."""
        return self.deleted_at is not None


class QuestionVariation(BaseModel):
    """One concrete phrasing of a template."""

    id: str = Field(default_factory=_new_id)
    template_id: str
    variation_text: str = Field(..., min_length=1)
    status: ReviewStatus = ReviewStatus.PENDING
    created_at: datetime = Field(default_factory=datetime.now)
    approved_at: datetime | None = None
    rejected_at: datetime | None = None
    rejection_reason: str | None = None


class GeneratedQuestion(BaseModel):
    """A fully instantiated, answerable question."""

    id: str = Field(default_factory=_new_id)
    template_id: str
    variation_id: str | None = None
    question_text: str = Field(..., min_length=1)
    values: dict[str, Any] = Field(default_factory=dict)
    concepts: list[str] = Field(default_factory=list)
    curriculum_tags: list[CurriculumTag] = Field(default_factory=list)
    calculated_answer: str | None = None
    status: ReviewStatus = ReviewStatus.PENDING
    created_at: datetime = Field(default_factory=datetime.now)
    reviewed_at: datetime | None = None
    reviewer_id: str | None = None
    rejection_reason: str | None = None
    attempt_count: int = Field(default=0, ge=0)
    last_attempted_at: datetime | None = None


class QuestionReview(BaseModel):
    """Append-only audit record of a review decision."""

    id: str = Field(default_factory=_new_id)
    question_id: str
    reviewer_id: str
    reviewer_type: ReviewerType = ReviewerType.HUMAN
    is_valid: bool
    score: int | None = Field(None, ge=1, le=10)
    feedback: str = ""
    created_at: datetime = Field(default_factory=datetime.now)

    model_config = ConfigDict(frozen=True)


class StudentAttempt(BaseModel):
    """A student's answer to one question."""

    id: str = Field(default_factory=_new_id)
    student_id: str
    question_id: str
    session_id: str | None = None
    answer: str
    is_correct: bool
    time_spent: float = Field(default=0.0, ge=0.0, description="Seconds")
    created_at: datetime = Field(default_factory=datetime.now)


class PracticeSession(BaseModel):
    """An adaptive practice session handed to a student."""

    id: str = Field(default_factory=_new_id)
    student_id: str
    curriculum_tags: list[CurriculumTag] = Field(default_factory=list)
    question_ids: list[str] = Field(default_factory=list)
    status: SessionStatus = SessionStatus.IN_PROGRESS
    started_at: datetime = Field(default_factory=datetime.now)
    completed_at: datetime | None = None
    score: float | None = None


class StudentProgress(BaseModel):
    """Per-tag accuracy and mastery of one student."""

    student_id: str
    curriculum_tag_id: str
    total_attempts: int = Field(default=0, ge=0)
    correct_attempts: int = Field(default=0, ge=0)
    mastery_level: MasteryLevel = MasteryLevel.BEGINNER
    last_practiced_at: datetime | None = None

    @field_validator("correct_attempts")
    @classmethod
    def validate_correct_attempts(cls, v: int, info) -> int:
        """Correct attempts cannot exceed the total."""
        total = info.data.get("total_attempts")
        if total is not None and v > total:
            raise ValueError("correct_attempts cannot exceed total_attempts")
        return v

    @property
    def accuracy(self) -> float:
        """Share of correct attempts (0.0 when never attempted)."""
        if self.total_attempts == 0:
            return 0.0
        return self.correct_attempts / self.total_attempts
