"""Tests for the profile CLI commands."""

import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from click.testing import CliRunner

from src.cli import main
from src.personalization.computer import compute_profile
from src.personalization.errors import ProfileNotFoundError
from src.personalization.schemas import ProfileRecord
from src.personalization.validation import parse_response


# ── Fixtures ──────────────────────────────────────────────


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def quiz_file(tmp_path, sample_quiz):
    path = tmp_path / "quiz.json"
    path.write_text(json.dumps(sample_quiz))
    return str(path)


def _mock_db():
    """Create a mock Database that works as async context."""
    db = AsyncMock()
    db.__aenter__.return_value = db
    db.__aexit__.return_value = False
    return db


# ── compute-profile ──────────────────────────────────────


class TestComputeProfile:
    """Tests for `compute-profile`."""

    def test_prints_profile(self, runner, quiz_file):
        result = runner.invoke(main, ["compute-profile", quiz_file])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["explanationStyle"] == "technical_efficient"
        assert data["riskTolerance"]["overall"] == pytest.approx(4.4)
        assert "age_26_40" in data["profileTags"]

    def test_reads_stdin(self, runner, sample_quiz):
        result = runner.invoke(main, ["compute-profile", "-"], input=json.dumps(sample_quiz))

        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["computationVersion"]

    def test_with_insights(self, runner, quiz_file):
        result = runner.invoke(main, ["compute-profile", quiz_file, "--insights"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert set(data) == {"profile", "insights"}
        assert data["insights"]["explanationStyle"]["style"] == "technical_efficient"

    def test_invalid_quiz(self, runner, make_quiz):
        quiz = make_quiz(drop=["demographics.ageRange"])
        result = runner.invoke(main, ["compute-profile", "-"], input=json.dumps(quiz))

        assert result.exit_code == 1
        assert "Invalid quiz response" in result.output

    def test_invalid_json(self, runner):
        result = runner.invoke(main, ["compute-profile", "-"], input="{not json")

        assert result.exit_code == 1
        assert "invalid JSON" in result.output


# ── submit / insights / recompute-stale ──────────────────


class TestStoredProfiles:
    """Tests for commands backed by the profile store."""

    def test_submit(self, runner, quiz_file, sample_quiz):
        record = ProfileRecord(
            user_id="user_001",
            response=parse_response(sample_quiz),
            profile=compute_profile(sample_quiz),
            updated_at=datetime(2026, 3, 1, tzinfo=timezone.utc),
        )
        service = AsyncMock()
        service.submit = AsyncMock(return_value=record)

        with patch("src.storage.database.Database", return_value=_mock_db()), \
             patch("src.personalization.repository.PostgresProfileRepository"), \
             patch("src.personalization.service.PersonalizationService", return_value=service):
            result = runner.invoke(main, ["submit", "user_001", quiz_file])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["userId"] == "user_001"
        assert data["updatedAt"].startswith("2026-03-01")
        service.submit.assert_awaited_once_with("user_001", sample_quiz)

    def test_insights_missing_user(self, runner):
        service = AsyncMock()
        service.insights = AsyncMock(side_effect=ProfileNotFoundError("ghost"))

        with patch("src.storage.database.Database", return_value=_mock_db()), \
             patch("src.personalization.repository.PostgresProfileRepository"), \
             patch("src.personalization.service.PersonalizationService", return_value=service):
            result = runner.invoke(main, ["insights", "ghost"])

        assert result.exit_code == 1
        assert "ghost" in result.output

    def test_insights_token_for_other_user(self, runner):
        from src.auth.identity import StaticTokenVerifier

        service = AsyncMock()
        verifier = StaticTokenVerifier({"tok-a": "user_001"})

        with patch("src.auth.identity.StaticTokenVerifier", return_value=verifier), \
             patch("src.storage.database.Database", return_value=_mock_db()), \
             patch("src.personalization.repository.PostgresProfileRepository"), \
             patch("src.personalization.service.PersonalizationService", return_value=service):
            result = runner.invoke(main, ["insights", "user_002", "--token", "tok-a"])

        assert result.exit_code == 1
        assert "Not authorized" in result.output
        service.insights.assert_not_called()

    def test_recompute_stale(self, runner):
        service = AsyncMock()
        service.recompute_stale = AsyncMock(return_value=2)

        with patch("src.storage.database.Database", return_value=_mock_db()), \
             patch("src.personalization.repository.PostgresProfileRepository"), \
             patch("src.personalization.service.PersonalizationService", return_value=service):
            result = runner.invoke(main, ["recompute-stale"])

        assert result.exit_code == 0
        assert "Recomputed 2 stale profile(s)" in result.output

    def test_stats_marks_stale_versions(self, runner):
        repo = AsyncMock()
        repo.count_by_version = AsyncMock(return_value={"0.9": 3, "1.0": 12})

        with patch("src.storage.database.Database", return_value=_mock_db()), \
             patch("src.personalization.repository.PostgresProfileRepository", return_value=repo):
            result = runner.invoke(main, ["stats"])

        assert result.exit_code == 0
        assert "Stored profiles: 15" in result.output
        assert "v0.9: 3  (stale)" in result.output
        assert "v1.0: 12\n" in result.output

    def test_init_db(self, runner):
        repo = AsyncMock()

        with patch("src.storage.database.Database", return_value=_mock_db()), \
             patch("src.personalization.repository.PostgresProfileRepository", return_value=repo):
            result = runner.invoke(main, ["init-db"])

        assert result.exit_code == 0
        assert "Database initialized successfully" in result.output
        repo.create_table.assert_awaited_once()


class TestHealth:
    def test_healthy(self, runner):
        db = _mock_db()
        db.health_check = AsyncMock(return_value=True)

        with patch("src.storage.database.Database", return_value=db):
            result = runner.invoke(main, ["health"])

        assert result.exit_code == 0
        assert "postgres: True" in result.output
        db.close.assert_awaited_once()

    def test_connection_refused(self, runner):
        db = _mock_db()
        db.connect = AsyncMock(side_effect=OSError("connection refused"))

        with patch("src.storage.database.Database", return_value=db):
            result = runner.invoke(main, ["health"])

        assert result.exit_code == 1
        assert "postgres: False" in result.output


class TestServeMetrics:
    @staticmethod
    def _interrupt(coro):
        coro.close()
        raise KeyboardInterrupt

    def test_starts_server_on_port(self, runner):
        metrics = MagicMock()

        with patch("src.cli.get_metrics", return_value=metrics), \
             patch("src.cli.asyncio.run", side_effect=self._interrupt):
            result = runner.invoke(main, ["serve-metrics", "--port", "9123"])

        assert result.exit_code == 0, result.output
        metrics.start_server.assert_called_once_with(9123)
        assert "Metrics server stopped" in result.output

    def test_defaults_to_settings_port(self, runner):
        metrics = MagicMock()

        with patch("src.cli.get_metrics", return_value=metrics), \
             patch("src.cli.asyncio.run", side_effect=self._interrupt):
            result = runner.invoke(main, ["serve-metrics"])

        assert result.exit_code == 0, result.output
        metrics.start_server.assert_called_once_with(None)
