"""Personalization: quiz validation and the profile computation engine.

Components:
- RawPersonalizationResponse / ComputedProfile: quiz input and numeric profile
- parse_response: validation raising the domain ValidationError
- ProfileComputer / compute_profile: pure profile computation
- build_insights: dashboard summary of a computed profile
- ProfileRepository (+ in-memory and PostgreSQL implementations)
- PersonalizationService: submit / update / get / delete / recompute-stale
"""

from src.personalization.computer import ProfileComputer, compute_profile
from src.personalization.config import PersonalizationConfig
from src.personalization.errors import FieldProblem, ProfileNotFoundError, ValidationError
from src.personalization.insights import build_insights
from src.personalization.repository import (
    InMemoryProfileRepository,
    PostgresProfileRepository,
    ProfileRepository,
)
from src.personalization.schemas import (
    QUIZ_SECTIONS,
    AlertThresholds,
    ComputedProfile,
    ProfileRecord,
    RawPersonalizationResponse,
    RiskTolerance,
)
from src.personalization.service import PersonalizationService
from src.personalization.validation import merge_section, parse_response
from src.personalization.weights import COMPUTATION_VERSION

__all__ = [
    "AlertThresholds",
    "COMPUTATION_VERSION",
    "ComputedProfile",
    "FieldProblem",
    "InMemoryProfileRepository",
    "PersonalizationConfig",
    "PersonalizationService",
    "PostgresProfileRepository",
    "ProfileComputer",
    "ProfileNotFoundError",
    "ProfileRecord",
    "ProfileRepository",
    "QUIZ_SECTIONS",
    "RawPersonalizationResponse",
    "RiskTolerance",
    "ValidationError",
    "build_insights",
    "compute_profile",
    "merge_section",
    "parse_response",
]
