"""Personalization service: quiz submission, section updates and profile storage.

Orchestrates validation, ProfileComputer and a ProfileRepository. The
profile is always recomputed in full from the complete current response;
a stored ComputedProfile is never patched.
"""

from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

import structlog

from src.observability.metrics import get_metrics
from src.personalization.computer import ProfileComputer
from src.personalization.config import PersonalizationConfig
from src.personalization.errors import ProfileNotFoundError, ValidationError
from src.personalization.insights import build_insights
from src.personalization.repository import ProfileRepository
from src.personalization.schemas import ProfileRecord, RawPersonalizationResponse
from src.personalization.validation import merge_section, parse_response

logger = structlog.get_logger(__name__)


class PersonalizationService:
    """
    Manages personalization profiles for users.

    Methods:
      - ``submit(user_id, raw)``: validate, compute and store a full quiz response
      - ``update_section(user_id, section, data)``: merge one section, recompute in full
      - ``get(user_id)``: stored record, recomputed first if stale
      - ``delete(user_id)`` / ``list()``
      - ``insights(user_id)``: dashboard summary
      - ``recompute_stale()``: bring every stored profile to the current version

    Args:
        repository: Storage backend.
        computer: Profile computer (defaults to ProfileComputer()).
        config: Service configuration (defaults to PersonalizationConfig()).
    """

    def __init__(
        self,
        repository: ProfileRepository,
        computer: ProfileComputer | None = None,
        config: PersonalizationConfig | None = None,
    ) -> None:
        self._repository = repository
        self._computer = computer or ProfileComputer()
        self._config = config or PersonalizationConfig()

    def _validate(self, user_id: str, raw: Mapping[str, Any]) -> RawPersonalizationResponse:
        try:
            return parse_response(raw)
        except ValidationError as e:
            get_metrics().profile_validation_failures.labels(field=e.field or "").inc()
            logger.warning(
                "Quiz response rejected",
                user_id=user_id,
                field=e.field,
                problems=len(e.errors),
            )
            raise

    async def _store(
        self,
        user_id: str,
        response: RawPersonalizationResponse,
        trigger: str,
    ) -> ProfileRecord:
        profile = self._computer.compute(response)
        record = await self._repository.put(
            ProfileRecord(
                user_id=user_id,
                response=response,
                profile=profile,
                updated_at=datetime.now(timezone.utc),
            )
        )
        get_metrics().profiles_computed.labels(trigger=trigger).inc()
        logger.info(
            "Profile computed",
            user_id=user_id,
            trigger=trigger,
            version=profile.computation_version,
            explanation_style=profile.explanation_style,
            overall_tolerance=profile.risk_tolerance.overall,
        )
        return record

    async def submit(self, user_id: str, raw: Mapping[str, Any]) -> ProfileRecord:
        """
        Validate a complete quiz response and store its computed profile.

        Replaces any existing record for the user.

        Raises:
            ValidationError: If the response is incomplete or out of domain.
        """
        response = self._validate(user_id, raw)
        return await self._store(user_id, response, trigger="submit")

    async def update_section(
        self,
        user_id: str,
        section: str,
        data: Mapping[str, Any],
    ) -> ProfileRecord:
        """
        Update one quiz section and regenerate the profile from the full response.

        Args:
            user_id: Owner of the stored profile.
            section: One of demographics, digitalBehavior, riskPreferences,
                contextualFactors.
            data: camelCase keys to replace within that section.

        Raises:
            ProfileNotFoundError: No stored profile for ``user_id``.
            ValidationError: Unknown section or invalid merged response.
        """
        existing = await self._repository.get(user_id)
        if existing is None:
            raise ProfileNotFoundError(user_id)

        try:
            response = merge_section(existing.response, section, data)
        except ValidationError as e:
            get_metrics().profile_validation_failures.labels(field=e.field or "").inc()
            logger.warning("Section update rejected", user_id=user_id, section=section, field=e.field)
            raise

        return await self._store(user_id, response, trigger="update")

    async def get(self, user_id: str) -> ProfileRecord | None:
        """Return the stored record, recomputing it first if its version is stale."""
        record = await self._repository.get(user_id)
        if record is None:
            return None

        if self._config.recompute_stale_on_read and record.profile.is_stale(self._computer.version):
            logger.info(
                "Recomputing stale profile",
                user_id=user_id,
                stored_version=record.profile.computation_version,
                current_version=self._computer.version,
            )
            record = await self._store(user_id, record.response, trigger="stale")
        return record

    async def delete(self, user_id: str) -> bool:
        deleted = await self._repository.delete(user_id)
        if deleted:
            logger.info("Profile deleted", user_id=user_id)
        else:
            logger.warning("Profile not found for deletion", user_id=user_id)
        return deleted

    async def list(self, *, limit: int | None = None, offset: int = 0) -> list[ProfileRecord]:
        return await self._repository.list(
            limit=limit or self._config.list_page_size,
            offset=offset,
        )

    async def insights(self, user_id: str) -> dict[str, Any]:
        """Dashboard insights for a user's current profile.

        Raises:
            ProfileNotFoundError: No stored profile for ``user_id``.
        """
        record = await self.get(user_id)
        if record is None:
            raise ProfileNotFoundError(user_id)
        return build_insights(record.response, record.profile)

    async def recompute_stale(self) -> int:
        """
        Recompute every stored profile whose computation_version is outdated.

        Returns:
            Number of profiles recomputed.
        """
        page_size = self._config.list_page_size
        stale: list[ProfileRecord] = []
        offset = 0
        while True:
            page = await self._repository.list(limit=page_size, offset=offset)
            stale.extend(r for r in page if r.profile.is_stale(self._computer.version))
            if len(page) < page_size:
                break
            offset += page_size

        # Recompute after scanning so rewrites cannot shift the pages being read
        for record in stale:
            await self._store(record.user_id, record.response, trigger="stale")

        logger.info("Stale profiles recomputed", count=len(stale), version=self._computer.version)
        return len(stale)
