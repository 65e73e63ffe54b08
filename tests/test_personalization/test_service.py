"""Tests for PersonalizationService."""

from dataclasses import replace

import pytest

from src.personalization.config import PersonalizationConfig
from src.personalization.errors import ProfileNotFoundError, ValidationError
from src.personalization.service import PersonalizationService
from src.personalization.weights import COMPUTATION_VERSION


@pytest.fixture
def service(memory_repo, computer):
    return PersonalizationService(memory_repo, computer=computer)


def _with_version(record, version):
    return replace(
        record,
        profile=record.profile.model_copy(update={"computation_version": version}),
    )


class TestSubmit:
    @pytest.mark.asyncio
    async def test_submit_stores_profile(self, service, memory_repo, sample_quiz):
        record = await service.submit("user_001", sample_quiz)

        assert record.user_id == "user_001"
        assert record.profile.explanation_style == "technical_efficient"
        assert record.profile.computation_version == COMPUTATION_VERSION
        assert (await memory_repo.get("user_001")) is record

    @pytest.mark.asyncio
    async def test_invalid_submission_not_stored(self, service, memory_repo, make_quiz):
        with pytest.raises(ValidationError) as exc_info:
            await service.submit("user_001", make_quiz(drop=["demographics.occupation"]))

        assert exc_info.value.field == "demographics.occupation"
        assert len(memory_repo) == 0

    @pytest.mark.asyncio
    async def test_resubmit_replaces(self, service, memory_repo, sample_quiz, make_quiz):
        await service.submit("user_001", sample_quiz)
        await service.submit("user_001", make_quiz({"demographics.ageRange": "over_55"}))

        record = await memory_repo.get("user_001")
        assert len(memory_repo) == 1
        assert record.response.demographics.age_range == "over_55"


class TestUpdateSection:
    @pytest.mark.asyncio
    async def test_update_recomputes_in_full(self, service, sample_quiz):
        before = await service.submit("user_001", sample_quiz)

        after = await service.update_section(
            "user_001",
            "riskPreferences",
            {
                "privacy": {"overallImportance": "extremely_important"},
            },
        )

        assert after.response.risk_preferences.privacy.overall_importance == "extremely_important"
        assert after.profile.risk_tolerance.privacy < before.profile.risk_tolerance.privacy
        assert "privacy_extremely_important" in after.profile.profile_tags
        # the original profile object is left untouched
        assert "privacy_very_important" in before.profile.profile_tags

    @pytest.mark.asyncio
    async def test_update_unknown_user(self, service):
        with pytest.raises(ProfileNotFoundError):
            await service.update_section("ghost", "demographics", {"ageRange": "18_25"})

    @pytest.mark.asyncio
    async def test_update_unknown_section(self, service, sample_quiz):
        await service.submit("user_001", sample_quiz)

        with pytest.raises(ValidationError) as exc_info:
            await service.update_section("user_001", "preferences", {})
        assert exc_info.value.field == "section"

    @pytest.mark.asyncio
    async def test_invalid_update_keeps_stored_record(self, service, memory_repo, sample_quiz):
        original = await service.submit("user_001", sample_quiz)

        with pytest.raises(ValidationError):
            await service.update_section("user_001", "demographics", {"ageRange": "ancient"})

        assert (await memory_repo.get("user_001")) is original


class TestGet:
    @pytest.mark.asyncio
    async def test_get_missing(self, service):
        assert await service.get("nobody") is None

    @pytest.mark.asyncio
    async def test_get_current_is_not_recomputed(self, service, memory_repo, sample_record):
        await memory_repo.put(sample_record)
        assert await service.get("user_001") is sample_record

    @pytest.mark.asyncio
    async def test_stale_profile_recomputed_on_read(self, service, memory_repo, sample_record):
        await memory_repo.put(_with_version(sample_record, "0.9"))

        record = await service.get("user_001")

        assert record.profile.computation_version == COMPUTATION_VERSION
        assert (await memory_repo.get("user_001")).profile.computation_version == COMPUTATION_VERSION

    @pytest.mark.asyncio
    async def test_stale_read_disabled(self, memory_repo, computer, sample_record):
        service = PersonalizationService(
            memory_repo,
            computer=computer,
            config=PersonalizationConfig(recompute_stale_on_read=False),
        )
        await memory_repo.put(_with_version(sample_record, "0.9"))

        record = await service.get("user_001")
        assert record.profile.computation_version == "0.9"


class TestDeleteAndList:
    @pytest.mark.asyncio
    async def test_delete(self, service, sample_quiz):
        await service.submit("user_001", sample_quiz)

        assert await service.delete("user_001") is True
        assert await service.delete("user_001") is False

    @pytest.mark.asyncio
    async def test_list(self, service, sample_quiz):
        for user_id in ("b", "a"):
            await service.submit(user_id, sample_quiz)

        assert [r.user_id for r in await service.list()] == ["a", "b"]
        assert [r.user_id for r in await service.list(limit=1, offset=1)] == ["b"]


class TestInsights:
    @pytest.mark.asyncio
    async def test_insights(self, service, sample_quiz):
        await service.submit("user_001", sample_quiz)

        insights = await service.insights("user_001")
        assert insights["computationVersion"] == COMPUTATION_VERSION
        assert insights["explanationStyle"]["style"] == "technical_efficient"

    @pytest.mark.asyncio
    async def test_insights_unknown_user(self, service):
        with pytest.raises(ProfileNotFoundError):
            await service.insights("ghost")


class TestRecomputeStale:
    @pytest.mark.asyncio
    async def test_recomputes_only_stale(self, memory_repo, computer, sample_record):
        service = PersonalizationService(
            memory_repo,
            computer=computer,
            config=PersonalizationConfig(list_page_size=2),
        )
        await memory_repo.put(replace(sample_record, user_id="current"))
        for user_id in ("old_a", "old_b", "old_c"):
            await memory_repo.put(_with_version(replace(sample_record, user_id=user_id), "0.9"))

        count = await service.recompute_stale()

        assert count == 3
        for record in await memory_repo.list():
            assert record.profile.computation_version == COMPUTATION_VERSION

    @pytest.mark.asyncio
    async def test_nothing_stale(self, service, sample_quiz):
        await service.submit("user_001", sample_quiz)
        assert await service.recompute_stale() == 0
