"""Pydantic models for AI generation: tiers, requests, verdicts and outcomes."""

from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from learnloop.models.content import CurriculumTag, VariableDefinition


class BackendId(str, Enum):
    """AI backends with a provider adapter."""

    GEMINI = "gemini"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


class ModelTier(BaseModel):
    """One (backend, model) pairing with its relative cost and expected quality."""

    backend: BackendId
    model_name: str = Field(..., min_length=1)
    relative_cost: float = Field(..., ge=0.0, description="Lower is cheaper")
    expected_quality: int = Field(..., ge=1, le=10)

    model_config = ConfigDict(frozen=True, protected_namespaces=())


class GenerateOptions(BaseModel):
    """Per-call options understood by every provider adapter."""

    system_instruction: str | None = None
    temperature: float = Field(default=0.7, ge=0.0, le=1.0)
    max_tokens: int | None = Field(default=None, ge=1)
    model: str | None = None


class GenerationRequest(BaseModel):
    """A natural-language generation request passed through the fallback chain."""

    prompt: str = Field(..., min_length=1)
    image_data: str | None = Field(
        None,
        description="Image as a data URI or raw base64 string",
    )
    system_instruction: str | None = None
    temperature: float | None = Field(None, ge=0.0, le=1.0)
    max_tokens: int | None = Field(None, ge=1)

    model_config = ConfigDict(frozen=True)

    def options(self) -> GenerateOptions:
        """Build the adapter options for this request."""
        values: dict[str, Any] = {"system_instruction": self.system_instruction}
        if self.temperature is not None:
            values["temperature"] = self.temperature
        if self.max_tokens is not None:
            values["max_tokens"] = self.max_tokens
        return GenerateOptions(**values)


class QualityVerdict(BaseModel):
    """Quality gate decision for one generation attempt."""

    is_valid: bool
    score: float | None = Field(None, ge=1, le=10)
    reason: str | None = None


class FallbackOutcome(BaseModel):
    """Result of the tier fallback together with its provenance."""

    result: Any
    model_used: str
    backend_used: BackendId
    attempts_made: int = Field(..., ge=1)
    quality_score: float | None = None

    model_config = ConfigDict(protected_namespaces=())


# Structured output models for LLM responses


class TemplateStructure(BaseModel):
    """Question template draft returned by the structuring prompt."""

    title: str = Field(..., min_length=1)
    template_text: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("templateText", "template_text"),
    )
    variants: list[str] = Field(default_factory=list)
    answer_formula: str | None = Field(
        None,
        validation_alias=AliasChoices("answerFormula", "answer_formula"),
    )
    variables: list[VariableDefinition] = Field(default_factory=list)
    concepts: list[str] = Field(default_factory=list)
    curriculum_tags: list[CurriculumTag] = Field(
        default_factory=list,
        validation_alias=AliasChoices("curriculumTags", "curriculum_tags"),
    )


class GeneratedInstance(BaseModel):
    """One AI-generated question instance."""

    values: dict[str, Any] = Field(default_factory=dict)
    question_text: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("questionText", "question_text"),
    )
    answer: str | None = None

    @field_validator("answer", mode="before")
    @classmethod
    def stringify_answer(cls, v: Any) -> Any:
        """Store numeric answers as text."""
        if v is None or isinstance(v, str):
            return v
        return str(v)


class InstanceList(BaseModel):
    """List of instances from the instance generation prompt."""

    instances: list[GeneratedInstance]


class QuestionEvaluation(BaseModel):
    """AI reviewer verdict on a generated question."""

    score: int = Field(..., ge=1, le=10)
    is_solvable: bool = Field(
        ...,
        validation_alias=AliasChoices("isSolvable", "is_solvable"),
    )
    feedback: str = ""
    is_valid: bool = Field(
        ...,
        validation_alias=AliasChoices("isValid", "is_valid"),
    )
