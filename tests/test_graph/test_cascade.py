"""Tests for the cascading deletion workflow."""

import asyncio

import pytest

from learnloop.graph.state import AncestorOutcome
from learnloop.graph.workflow import evaluate_template, evaluate_variation, run_cascade
from learnloop.models import ReviewStatus


def approve(store, question_id):
    store.questions[question_id].status = ReviewStatus.APPROVED


@pytest.mark.asyncio
class TestRunCascade:
    """Test the full cascade for a rejected question."""

    async def test_nothing_approved_deletes_everything(self, store):
        """Test that the last unapproved chain is removed up to the template."""
        state = await run_cascade(store, "q-var-1")

        assert state["deleted_question_ids"] == ["q-var-1"]
        assert state["deleted_variation_ids"] == ["var-1"]
        assert state["deleted_template_ids"] == ["tpl-1"]
        assert "q-var-1" not in store.questions
        assert "var-1" not in store.variations
        assert "tpl-1" not in store.templates

    async def test_approved_sibling_keeps_variation_and_template(self, store):
        """Test that an approved question in the variation stops the cascade."""
        approve(store, "q-var-2")

        state = await run_cascade(store, "q-var-1")

        assert state["variation_outcome"] == AncestorOutcome.KEPT
        assert state["template_outcome"] is None
        assert "var-1" in store.variations
        assert "tpl-1" in store.templates

    async def test_approved_direct_question_keeps_template(self, store):
        """Test that the template survives through a question outside the variation."""
        approve(store, "q-direct")

        state = await run_cascade(store, "q-var-1")

        assert state["variation_outcome"] == AncestorOutcome.DELETED
        assert state["template_outcome"] == AncestorOutcome.KEPT
        assert "var-1" not in store.variations
        assert "tpl-1" in store.templates

    async def test_direct_question_evaluates_template(self, store):
        """Test that a question without a variation goes straight to the template."""
        approve(store, "q-var-2")

        state = await run_cascade(store, "q-direct")

        assert state["variation_outcome"] is None
        assert state["template_outcome"] == AncestorOutcome.KEPT
        assert "tpl-1" in store.templates

    async def test_template_deleted_when_no_approved_questions(self, store):
        """Test that a direct rejection can delete the template."""
        state = await run_cascade(store, "q-direct")

        assert state["template_outcome"] == AncestorOutcome.DELETED
        assert state["deleted_template_ids"] == ["tpl-1"]
        # Only documents on the rejected path are touched
        assert "var-1" in store.variations

    async def test_missing_question_is_a_no_op(self, store):
        """Test that cascading a gone question changes nothing."""
        state = await run_cascade(store, "does-not-exist")

        assert state["deleted_question_ids"] == []
        assert state["deleted_template_ids"] == []
        assert "tpl-1" in store.templates

    async def test_rerun_is_idempotent(self, store):
        """Test that running the same cascade twice deletes nothing new."""
        await run_cascade(store, "q-var-1")
        state = await run_cascade(store, "q-var-1")

        assert state["deleted_question_ids"] == []
        assert state["deleted_variation_ids"] == []
        assert state["deleted_template_ids"] == []

    async def test_variation_already_gone_still_checks_template(self, store):
        """Test that a variation deleted by someone else does not block the cascade."""
        del store.variations["var-1"]

        state = await run_cascade(store, "q-var-1")

        assert state["variation_outcome"] == AncestorOutcome.ALREADY_GONE
        assert state["template_outcome"] == AncestorOutcome.DELETED

    async def test_soft_deleted_template_is_evaluated(self, store):
        """Test that tombstoned templates are still removed when emptied."""
        await store.soft_delete_template("tpl-1")

        await run_cascade(store, "q-direct")

        assert "tpl-1" not in store.templates

    async def test_concurrent_cascades_delete_each_ancestor_once(self, store):
        """Test that racing rejections report each deletion exactly once."""
        states = await asyncio.gather(
            run_cascade(store, "q-var-1"),
            run_cascade(store, "q-var-2"),
        )

        deleted_variations = [v for s in states for v in s["deleted_variation_ids"]]
        deleted_templates = [t for s in states for t in s["deleted_template_ids"]]
        assert deleted_variations == ["var-1"]
        assert deleted_templates == ["tpl-1"]
        assert store.questions.keys() == {"q-direct"}


@pytest.mark.asyncio
class TestAncestorSteps:
    """Test the individual idempotent steps."""

    async def test_evaluate_variation_outcomes(self, store):
        """Test kept, deleted and already-gone variations."""
        approve(store, "q-var-1")
        assert await evaluate_variation(store, "var-1") == AncestorOutcome.KEPT

        store.questions["q-var-1"].status = ReviewStatus.REJECTED
        assert await evaluate_variation(store, "var-1") == AncestorOutcome.DELETED
        assert await evaluate_variation(store, "var-1") == AncestorOutcome.ALREADY_GONE

    async def test_evaluate_template_outcomes(self, store):
        """Test kept, deleted and already-gone templates."""
        approve(store, "q-direct")
        assert await evaluate_template(store, "tpl-1") == AncestorOutcome.KEPT

        store.questions["q-direct"].status = ReviewStatus.PENDING
        assert await evaluate_template(store, "tpl-1") == AncestorOutcome.DELETED
        assert await evaluate_template(store, "tpl-1") == AncestorOutcome.ALREADY_GONE
