"""Data models for content, reviews, practice and AI generation."""

from .content import (
    CurriculumTag,
    GeneratedQuestion,
    MasteryLevel,
    PracticeSession,
    QuestionReview,
    QuestionTemplate,
    QuestionVariation,
    ReviewerType,
    ReviewStatus,
    SessionStatus,
    StudentAttempt,
    StudentProgress,
    TemplateStatus,
    VariableDefinition,
    VariableType,
)
from .generation import (
    BackendId,
    FallbackOutcome,
    GeneratedInstance,
    GenerateOptions,
    GenerationRequest,
    InstanceList,
    ModelTier,
    QualityVerdict,
    # Structured output models
    QuestionEvaluation,
    TemplateStructure,
)

__all__ = [
    "CurriculumTag",
    "GeneratedQuestion",
    "MasteryLevel",
    "PracticeSession",
    "QuestionReview",
    "QuestionTemplate",
    "QuestionVariation",
    "ReviewerType",
    "ReviewStatus",
    "SessionStatus",
    "StudentAttempt",
    "StudentProgress",
    "TemplateStatus",
    "VariableDefinition",
    "VariableType",
    "BackendId",
    "FallbackOutcome",
    "GeneratedInstance",
    "GenerateOptions",
    "GenerationRequest",
    "InstanceList",
    "ModelTier",
    "QualityVerdict",
    "QuestionEvaluation",
    "TemplateStructure",
]
