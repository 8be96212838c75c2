"""Tests for the Typer CLI."""

import pytest
from typer.testing import CliRunner

from learnloop.cli.app import app
from learnloop.config.settings import get_settings
from learnloop.models import ReviewStatus
from learnloop.store import InMemoryStore

runner = CliRunner()


@pytest.fixture
def store_path(tmp_path, monkeypatch: pytest.MonkeyPatch, store):
    """Point the CLI at a store file seeded with the sample content."""
    path = tmp_path / "learnloop.json"
    store.save(path)
    monkeypatch.setenv("STORE_PATH", str(path))
    monkeypatch.setenv("GEMINI_API_KEY", "g-key")
    get_settings.cache_clear()
    yield path
    get_settings.cache_clear()


class TestCommands:
    """Test the CLI commands against a store file."""

    def test_info(self, store_path):
        """Test that info shows configured providers."""
        result = runner.invoke(app, ["info"])

        assert result.exit_code == 0
        assert "LearnLoop" in result.output
        assert "gemini" in result.output

    def test_tiers(self, store_path):
        """Test that tiers lists the catalog."""
        result = runner.invoke(app, ["tiers"])

        assert result.exit_code == 0
        assert "gemini-1.5-flash" in result.output

    def test_templates(self, store_path):
        """Test that templates lists stored templates."""
        result = runner.invoke(app, ["templates"])

        assert result.exit_code == 0
        assert "tpl-1" in result.output

    def test_generate_locally(self, store_path):
        """Test that generate stores new pending questions."""
        result = runner.invoke(app, ["generate", "tpl-1", "-n", "3"])

        assert result.exit_code == 0
        assert "Generated locally" in result.output
        assert len(InMemoryStore.load(store_path).questions) == 6

    def test_review_reject_cascades(self, store_path):
        """Test that rejecting from the CLI deletes emptied ancestors."""
        result = runner.invoke(app, ["review", "q-direct", "--reject", "-f", "Wrong answer"])

        assert result.exit_code == 0
        saved = InMemoryStore.load(store_path)
        assert "q-direct" not in saved.questions
        assert "tpl-1" not in saved.templates

    def test_review_approve(self, store_path):
        """Test that approving from the CLI persists the status."""
        result = runner.invoke(app, ["review", "q-var-1", "--approve"])

        assert result.exit_code == 0
        assert InMemoryStore.load(store_path).questions["q-var-1"].status == ReviewStatus.APPROVED

    def test_delete_and_restore_template(self, store_path):
        """Test the soft delete round trip."""
        assert runner.invoke(app, ["delete-template", "tpl-1"]).exit_code == 0
        assert InMemoryStore.load(store_path).templates["tpl-1"].is_deleted

        assert runner.invoke(app, ["restore-template", "tpl-1"]).exit_code == 0
        assert not InMemoryStore.load(store_path).templates["tpl-1"].is_deleted

    def test_unknown_question_fails(self, store_path):
        """Test that errors exit with status 1."""
        result = runner.invoke(app, ["review", "missing", "--approve"])

        assert result.exit_code == 1
        assert "Question not found: missing" in result.output

    def test_practice_and_answer(self, store_path):
        """Test a practice session followed by an answer."""
        runner.invoke(app, ["review", "q-direct", "--approve"])

        practice = runner.invoke(app, ["practice", "student-1"])
        answer = runner.invoke(app, ["answer", "student-1", "q-direct", "5"])

        assert practice.exit_code == 0
        assert "What is 2 + 3?" in practice.output
        assert answer.exit_code == 0
        assert "Correct!" in answer.output
