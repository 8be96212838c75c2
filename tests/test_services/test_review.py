"""Tests for review submission."""

import pytest

from learnloop.errors import ContentNotFoundError
from learnloop.models import ReviewerType, ReviewStatus
from learnloop.services.review import submit_review


@pytest.mark.asyncio
class TestSubmitReview:
    """Test status transitions, audit records and cascades."""

    async def test_approve(self, store):
        """Test that approval sets status and reviewer without deleting anything."""
        outcome = await submit_review(store, "q-var-1", "alice", is_valid=True, score=9)

        assert outcome.status == ReviewStatus.APPROVED
        assert outcome.status_changed is True
        assert outcome.deleted_question_ids == []

        question = await store.find_question_by_id("q-var-1")
        assert question.status == ReviewStatus.APPROVED
        assert question.reviewer_id == "alice"
        assert question.reviewed_at is not None
        assert question.rejection_reason is None

    async def test_reject_cascades(self, store):
        """Test that rejection deletes the question and emptied ancestors."""
        outcome = await submit_review(
            store, "q-var-1", "alice", is_valid=False, feedback="Ambiguous wording"
        )

        assert outcome.status == ReviewStatus.REJECTED
        assert outcome.deleted_question_ids == ["q-var-1"]
        assert outcome.deleted_variation_ids == ["var-1"]
        assert outcome.deleted_template_ids == ["tpl-1"]
        assert await store.find_question_by_id("q-var-1") is None

    async def test_reject_with_approved_sibling(self, store):
        """Test that approved work protects the variation."""
        await submit_review(store, "q-var-2", "alice", is_valid=True)

        outcome = await submit_review(store, "q-var-1", "bob", is_valid=False)

        assert outcome.deleted_question_ids == ["q-var-1"]
        assert outcome.deleted_variation_ids == []
        assert outcome.deleted_template_ids == []
        assert "var-1" in store.variations

    async def test_review_is_audited(self, store):
        """Test that every review is recorded with its details."""
        outcome = await submit_review(
            store,
            "q-direct",
            "ai:gpt-4o-mini",
            is_valid=True,
            reviewer_type=ReviewerType.AI,
            score=8,
            feedback="Clear",
        )

        reviews = await store.list_reviews("q-direct")
        assert reviews == [outcome.review]
        assert reviews[0].reviewer_type == ReviewerType.AI
        assert reviews[0].score == 8
        assert reviews[0].feedback == "Clear"

    async def test_audit_survives_cascade(self, store):
        """Test that rejection reviews outlive the deleted question."""
        await submit_review(store, "q-var-1", "alice", is_valid=False)

        reviews = await store.list_reviews("q-var-1")
        assert len(reviews) == 1
        assert reviews[0].is_valid is False

    async def test_second_approval_is_only_recorded(self, store):
        """Test that approving an approved question changes nothing."""
        await submit_review(store, "q-direct", "alice", is_valid=True)

        outcome = await submit_review(store, "q-direct", "bob", is_valid=True)

        assert outcome.status_changed is False
        assert outcome.status == ReviewStatus.APPROVED
        assert (await store.find_question_by_id("q-direct")).reviewer_id == "alice"
        assert len(await store.list_reviews("q-direct")) == 2

    async def test_rejecting_only_approved_question_deletes_template(self, store):
        """Test that rejecting a template's only approved question removes the template."""
        del store.questions["q-var-1"], store.questions["q-var-2"], store.variations["var-1"]
        await submit_review(store, "q-direct", "alice", is_valid=True)

        outcome = await submit_review(store, "q-direct", "bob", is_valid=False, feedback="Wrong")

        assert outcome.status == ReviewStatus.REJECTED
        assert outcome.status_changed is True
        assert outcome.deleted_question_ids == ["q-direct"]
        assert outcome.deleted_template_ids == ["tpl-1"]
        assert await store.find_question_by_id("q-direct") is None
        assert await store.find_template_by_id("tpl-1") is None

    async def test_rejecting_one_of_two_approved_keeps_variation(self, store):
        """Test that the remaining approved question protects its variation."""
        await submit_review(store, "q-var-1", "alice", is_valid=True)
        await submit_review(store, "q-var-2", "alice", is_valid=True)

        outcome = await submit_review(store, "q-var-1", "bob", is_valid=False)

        assert outcome.deleted_question_ids == ["q-var-1"]
        assert outcome.deleted_variation_ids == []
        assert outcome.deleted_template_ids == []
        assert "var-1" in store.variations
        assert "tpl-1" in store.templates
        assert (await store.find_question_by_id("q-var-2")).status == ReviewStatus.APPROVED


    async def test_unknown_question_raises(self, store):
        """Test that reviewing a missing question fails without an audit record."""
        with pytest.raises(ContentNotFoundError) as exc_info:
            await submit_review(store, "missing", "alice", is_valid=True)

        assert str(exc_info.value) == "Question not found: missing"
        assert store.reviews == []

    async def test_invalid_score_rejected(self, store):
        """Test that scores outside 1-10 are refused."""
        with pytest.raises(ValueError):
            await submit_review(store, "q-direct", "alice", is_valid=True, score=11)
