"""Tests for the Evaluator Agent."""

import json

import pytest

from learnloop.agents.evaluator import build_evaluation_prompt, evaluate_question
from learnloop.ai.errors import ProviderAPIError
from learnloop.errors import ContentNotFoundError
from learnloop.models import ReviewerType, ReviewStatus

FLASH = "gemini-1.5-flash"
MINI = "gpt-4o-mini"

APPROVE = json.dumps({"score": 8, "isSolvable": True, "feedback": "Clear and solvable", "isValid": True})
REJECT = json.dumps({"score": 3, "isSolvable": False, "feedback": "Missing a value", "isValid": False})


class TestBuildEvaluationPrompt:
    """Test prompt construction."""

    def test_includes_question_and_criteria(self):
        """Test that the prompt names the question and criteria."""
        prompt = build_evaluation_prompt("What is 2 + 3?")

        assert 'Evaluate this question: "What is 2 + 3?"' in prompt
        assert "age-appropriateness" in prompt
        assert '"isSolvable"' in prompt


@pytest.mark.asyncio
class TestEvaluateQuestion:
    """Test AI review of questions."""

    async def test_approval(self, store, make_factory, credentials):
        """Test that a valid verdict approves the question."""
        factory = make_factory({FLASH: [APPROVE]})

        evaluation, outcome = await evaluate_question(
            store, "q-direct", factory=factory, credentials=credentials
        )

        assert evaluation.score == 8
        assert outcome.status == ReviewStatus.APPROVED
        assert (await store.find_question_by_id("q-direct")).reviewer_id == f"ai:{FLASH}"

    async def test_review_is_recorded_as_ai(self, store, make_factory, credentials):
        """Test that the verdict is audited as an AI review."""
        factory = make_factory({FLASH: [APPROVE]})

        await evaluate_question(store, "q-direct", factory=factory, credentials=credentials)

        [review] = await store.list_reviews("q-direct")
        assert review.reviewer_type == ReviewerType.AI
        assert review.reviewer_id == f"ai:{FLASH}"
        assert review.score == 8
        assert review.feedback == "Clear and solvable"

    async def test_rejection_cascades(self, store, make_factory, credentials):
        """Test that an invalid verdict rejects and cascades."""
        factory = make_factory({FLASH: [REJECT]})

        _, outcome = await evaluate_question(store, "q-direct", factory=factory, credentials=credentials)

        assert outcome.status == ReviewStatus.REJECTED
        assert outcome.deleted_question_ids == ["q-direct"]
        assert outcome.deleted_template_ids == ["tpl-1"]

    async def test_malformed_evaluation_escalates(self, store, make_factory, credentials):
        """Test that a malformed verdict moves to the next tier."""
        factory = make_factory({FLASH: [json.dumps({"verdict": "fine"})], MINI: [APPROVE]})

        _, outcome = await evaluate_question(store, "q-direct", factory=factory, credentials=credentials)

        assert outcome.review.reviewer_id == f"ai:{MINI}"
        assert len(factory.created) == 2

    async def test_at_most_two_attempts(self, store, make_factory, credentials):
        """Test the default attempt limit for evaluations."""
        factory = make_factory({FLASH: [json.dumps({"verdict": "fine"})]})

        with pytest.raises(ProviderAPIError):
            await evaluate_question(store, "q-direct", factory=factory, credentials=credentials)

        assert len(factory.created) == 2
        assert (await store.find_question_by_id("q-direct")).status == ReviewStatus.PENDING

    async def test_unknown_question(self, store, make_factory, credentials):
        """Test that evaluating a missing question raises before any call."""
        factory = make_factory()

        with pytest.raises(ContentNotFoundError):
            await evaluate_question(store, "missing", factory=factory, credentials=credentials)

        assert factory.created == []
