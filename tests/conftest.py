"""Shared test fixtures and configuration for pytest."""

from collections.abc import Iterator
from typing import Any

import pytest
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage
from langchain_core.outputs import ChatGeneration, ChatResult
from pydantic import Field

from learnloop.ai.factory import PROVIDER_CLASSES, ProviderFactory, parse_backend
from learnloop.ai.providers import AIProvider
from learnloop.config.settings import Settings
from learnloop.models import (
    BackendId,
    CurriculumTag,
    GeneratedQuestion,
    QuestionTemplate,
    QuestionVariation,
    ReviewStatus,
    VariableDefinition,
    VariableType,
)
from learnloop.store import InMemoryStore

ENV_KEYS = (
    "AI_PROVIDER",
    "GEMINI_API_KEY",
    "GEMINI_MODEL",
    "OPENAI_API_KEY",
    "OPENAI_MODEL",
    "ANTHROPIC_API_KEY",
    "ANTHROPIC_MODEL",
    "MIN_QUALITY_SCORE",
    "MAX_FALLBACK_ATTEMPTS",
    "DEFAULT_TEMPERATURE",
    "STORE_PATH",
)


class RecordingChatModel(BaseChatModel):
    """
    Chat model that replays scripted responses and records its calls.

    Each call consumes the next response; the last one is repeated. A
    response that is an exception is raised instead of returned.
    """

    responses: list[Any] = Field(default_factory=lambda: [""])
    calls: list[list[BaseMessage]] = Field(default_factory=list)

    @property
    def _llm_type(self) -> str:
        return "recording"

    def _generate(self, messages, stop=None, run_manager=None, **kwargs) -> ChatResult:
        self.calls.append(list(messages))
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return ChatResult(generations=[ChatGeneration(message=AIMessage(content=response))])


class ScriptedFactory(ProviderFactory):
    """
    Provider factory whose adapters talk to recording chat models.

    Responses are scripted per model name; models without a script fail like
    an unreachable backend.
    """

    def __init__(self, settings: Settings, scripts: dict[str, list[Any]] | None = None):
        super().__init__(settings)
        self.scripts = scripts or {}
        self.created: list[tuple[BackendId, str, str]] = []
        self.chat_models: dict[str, RecordingChatModel] = {}

    def create(self, backend, api_key, model=None) -> AIProvider:
        backend = parse_backend(backend)
        provider_cls = PROVIDER_CLASSES[backend]
        name = model or provider_cls.default_model
        script = self.scripts.get(name, [ConnectionError(f"{name} unreachable")])
        chat_model = self.chat_models.setdefault(name, RecordingChatModel(responses=list(script)))
        self.created.append((backend, name, api_key))
        return provider_cls(api_key, name, chat_model=chat_model)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep real API keys and settings out of the tests."""
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    yield


@pytest.fixture
def settings() -> Settings:
    """Settings with a key for every backend."""
    return Settings(
        _env_file=None,
        GEMINI_API_KEY="gemini-key",
        OPENAI_API_KEY="openai-key",
        ANTHROPIC_API_KEY="anthropic-key",
    )


@pytest.fixture
def credentials(settings: Settings) -> dict[BackendId, str | None]:
    """API key per backend."""
    return settings.credentials()


@pytest.fixture
def good_template_json() -> dict[str, Any]:
    """A template-shaped result the default quality gate accepts."""
    return {
        "title": "Percentage discount",
        "templateText": "A coat costs £{price}. It is reduced by {discount}%. What is the sale price?",
        "variants": [
            "Find the sale price of a £{price} coat with {discount}% off.",
            "A £{price} coat is discounted by {discount}%. How much does it cost now?",
        ],
        "answerFormula": "round(price * (1 - discount / 100), 2)",
        "variables": [
            {"name": "price", "type": "number", "min": 20, "max": 200, "precision": 0},
            {"name": "discount", "type": "number", "min": 5, "max": 50, "precision": 0},
        ],
        "concepts": ["percentages", "money"],
        "curriculumTags": [
            {"subject": "Mathematics", "yearGroup": "Year 8", "topicPath": ["Number", "Percentages"]}
        ],
    }


@pytest.fixture
def maths_tag() -> CurriculumTag:
    """Curriculum tag shared by the sample content."""
    return CurriculumTag(
        id="tag-percentages",
        subject="Mathematics",
        year_group="Year 8",
        topic_path=["Number", "Percentages"],
    )


@pytest.fixture
def sample_template(maths_tag: CurriculumTag) -> QuestionTemplate:
    """Template with an answer formula."""
    return QuestionTemplate(
        id="tpl-1",
        title="Adding numbers",
        template_text="What is {a} + {b}?",
        answer_formula="a + b",
        variables=[
            VariableDefinition(name="a", type=VariableType.NUMBER, min=1, max=10),
            VariableDefinition(name="b", type=VariableType.NUMBER, min=1, max=10),
        ],
        concepts=["addition"],
        curriculum_tags=[maths_tag],
    )


@pytest.fixture
def store(sample_template: QuestionTemplate, maths_tag: CurriculumTag) -> InMemoryStore:
    """
    Store seeded with one template, one variation and three questions.

    q-direct belongs to the template directly; q-var-1 and q-var-2 belong
    to the variation. Every question is pending.
    """
    store = InMemoryStore()
    store.templates[sample_template.id] = sample_template
    store.variations["var-1"] = QuestionVariation(
        id="var-1",
        template_id=sample_template.id,
        variation_text="Add {a} and {b}.",
    )
    for question_id, variation_id, text in (
        ("q-direct", None, "What is 2 + 3?"),
        ("q-var-1", "var-1", "Add 4 and 5."),
        ("q-var-2", "var-1", "Add 1 and 1."),
    ):
        store.questions[question_id] = GeneratedQuestion(
            id=question_id,
            template_id=sample_template.id,
            variation_id=variation_id,
            question_text=text,
            curriculum_tags=[maths_tag],
            calculated_answer="5",
            status=ReviewStatus.PENDING,
        )
    return store


@pytest.fixture
def make_chat_model():
    """Build a recording chat model from scripted responses."""

    def _make(*responses: Any) -> RecordingChatModel:
        return RecordingChatModel(responses=list(responses) or [""])

    return _make


@pytest.fixture
def make_factory(settings: Settings):
    """Build a scripted provider factory from responses keyed by model name."""

    def _make(scripts: dict[str, list[Any]] | None = None) -> ScriptedFactory:
        return ScriptedFactory(settings, scripts)

    return _make
