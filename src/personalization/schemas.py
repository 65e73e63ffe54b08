"""Schema definitions for quiz responses and computed profiles.

RawPersonalizationResponse mirrors the four-section personalization quiz.
JSON keys are camelCase as submitted by the quiz; attributes are snake_case.
Unknown keys are rejected so that typos surface as validation errors.

ComputedProfile is the immutable numeric output of ProfileComputer. Its
camelCase JSON form is also the persisted record shape.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.personalization.weights import COMPUTATION_VERSION

AgeRange = Literal["under_18", "18_25", "26_40", "41_55", "over_55", "prefer_not_to_say"]

Occupation = Literal[
    "legal_compliance",
    "healthcare",
    "financial_services",
    "technology",
    "education",
    "creative_freelancer",
    "student",
    "retired",
    "business_owner",
    "government",
    "nonprofit",
    "other",
    "prefer_not_to_say",
]

ReadingFrequency = Literal["never", "skim_occasionally", "read_important", "read_thoroughly"]
ComfortLevel = Literal["beginner", "intermediate", "advanced", "expert"]
PreferredExplanationStyle = Literal[
    "simple_language",
    "balanced_technical",
    "technical_detailed",
    "bullet_summaries",
    "comprehensive_analysis",
]

UsageActivity = Literal[
    "social_media",
    "work_productivity",
    "shopping_financial",
    "research_learning",
    "creative_content",
    "gaming",
    "dating_relationships",
    "healthcare_medical",
    "travel_booking",
    "education_courses",
]
SignupFrequency = Literal["multiple_weekly", "weekly", "monthly", "rarely"]
DeviceUsage = Literal["mobile_primary", "desktop_primary", "tablet_primary", "mixed_usage"]

PrivacyImportance = Literal[
    "extremely_important", "very_important", "moderately_important", "not_very_important"
]
SensitiveDataType = Literal[
    "financial_information",
    "personal_communications",
    "location_data",
    "browsing_habits",
    "photos_media",
    "professional_information",
    "health_data",
    "social_connections",
    "biometric_data",
    "purchase_history",
]
ComfortChoice = Literal["comfortable", "cautious", "uncomfortable"]

PaymentApproach = Literal["very_cautious", "cautious", "moderate", "relaxed"]
FeeImpact = Literal["significant", "moderate", "minimal"]
FinancialSituation = Literal[
    "student_limited",
    "stable_employment",
    "high_income",
    "business_owner",
    "retired_fixed",
    "prefer_not_to_say",
]
SubscriptionChoice = Literal["avoid", "cautious", "acceptable"]
PriceChangeNotice = Literal["strict_notice", "reasonable_notice", "flexible"]

ArbitrationComfort = Literal["strongly_prefer_courts", "prefer_courts", "neutral", "acceptable"]
LiabilityTolerance = Literal[
    "want_full_protection", "reasonable_limitations", "business_standard", "minimal_concern"
]
KnowledgeLevel = Literal["expert", "intermediate", "basic", "none"]
PreviousIssues = Literal["no_issues", "minor_problems", "moderate_problems", "serious_problems"]

DependentStatus = Literal[
    "just_myself", "spouse_partner", "children_dependents", "employees_team", "clients_customers"
]
SpecialCircumstance = Literal[
    "small_business_owner",
    "content_creator",
    "handles_sensitive_data",
    "frequent_international",
    "regulated_industry",
    "accessibility_needs",
    "non_native_speaker",
    "elderly_or_vulnerable",
]
InterruptionTiming = Literal[
    "only_severe", "moderate_and_high", "any_concerning", "only_when_committing"
]
EducationalContent = Literal["yes_teach_rights", "occasionally_important", "just_analysis"]

ExplanationStyle = Literal[
    "simple_protective", "balanced_educational", "technical_efficient", "comprehensive_cautious"
]

QUIZ_SECTIONS: tuple[str, ...] = (
    "demographics",
    "digitalBehavior",
    "riskPreferences",
    "contextualFactors",
)

CountryCode = Annotated[str, Field(pattern=r"^[A-Z]{2}$")]


class _QuizModel(BaseModel):
    """Base for quiz sections: camelCase keys, frozen, no unknown keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        frozen=True,
    )


# ── demographics ──────────────────────────────────────────


class Jurisdiction(_QuizModel):
    primary_country: CountryCode
    primary_state: str | None = None
    frequent_travel: bool = False
    is_expatriate: bool = False
    multiple_jurisdictions: list[CountryCode] = Field(default_factory=list)


class Demographics(_QuizModel):
    age_range: AgeRange
    jurisdiction: Jurisdiction
    occupation: Occupation


# ── digitalBehavior ───────────────────────────────────────


class TechSophistication(_QuizModel):
    reading_frequency: ReadingFrequency
    comfort_level: ComfortLevel
    preferred_explanation_style: PreferredExplanationStyle | None = None


class UsagePatterns(_QuizModel):
    primary_activities: list[UsageActivity] = Field(min_length=1, max_length=5)
    signup_frequency: SignupFrequency
    device_usage: DeviceUsage


class DigitalBehavior(_QuizModel):
    tech_sophistication: TechSophistication
    usage_patterns: UsagePatterns


# ── riskPreferences ───────────────────────────────────────


class SensitiveDataPriority(_QuizModel):
    data_type: SensitiveDataType
    priority_level: int = Field(ge=1, le=10)


class DataProcessingComfort(_QuizModel):
    domestic_processing: ComfortChoice
    international_transfers: ComfortChoice
    third_party_sharing: ComfortChoice
    ai_processing: ComfortChoice
    long_term_storage: ComfortChoice


class PrivacyPreferences(_QuizModel):
    overall_importance: PrivacyImportance
    sensitive_data_types: list[SensitiveDataPriority] = Field(default_factory=list, max_length=20)
    data_processing_comfort: DataProcessingComfort | None = None


class SubscriptionTolerance(_QuizModel):
    auto_renewal: SubscriptionChoice
    free_trial_to_subscription: SubscriptionChoice
    price_changes: PriceChangeNotice


class FinancialPreferences(_QuizModel):
    payment_approach: PaymentApproach
    fee_impact: FeeImpact
    financial_situation: FinancialSituation
    subscription_tolerance: SubscriptionTolerance | None = None


class LegalKnowledge(_QuizModel):
    contract_law: KnowledgeLevel
    privacy_law: KnowledgeLevel
    consumer_rights: KnowledgeLevel


class LegalPreferences(_QuizModel):
    arbitration_comfort: ArbitrationComfort
    liability_tolerance: LiabilityTolerance
    legal_knowledge: LegalKnowledge | None = None
    previous_issues: PreviousIssues


class RiskPreferences(_QuizModel):
    privacy: PrivacyPreferences
    financial: FinancialPreferences
    legal: LegalPreferences


# ── contextualFactors ─────────────────────────────────────


class AlertPreferences(_QuizModel):
    interruption_timing: InterruptionTiming
    educational_content: EducationalContent
    alert_frequency_limit: int = Field(ge=1, le=50)
    learning_mode: bool


class ContextualFactors(_QuizModel):
    dependent_status: DependentStatus
    special_circumstances: list[SpecialCircumstance] = Field(default_factory=list)
    alert_preferences: AlertPreferences


class RawPersonalizationResponse(_QuizModel):
    """A complete personalization quiz response (four fixed sections)."""

    demographics: Demographics
    digital_behavior: DigitalBehavior
    risk_preferences: RiskPreferences
    contextual_factors: ContextualFactors

    def to_json_dict(self) -> dict[str, Any]:
        """camelCase, JSON-compatible form (as submitted by the quiz)."""
        return self.model_dump(mode="json", by_alias=True)


# ── Computed profile ──────────────────────────────────────


class _ProfileModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class RiskTolerance(_ProfileModel):
    """Risk tolerance per category, 0 (protective) to 10 (tolerant)."""

    privacy: float = Field(ge=0.0, le=10.0)
    financial: float = Field(ge=0.0, le=10.0)
    legal: float = Field(ge=0.0, le=10.0)
    overall: float = Field(ge=0.0, le=10.0)


class AlertThresholds(_ProfileModel):
    """Score at or above which a category alerts the user."""

    privacy: float = Field(ge=0.0, le=10.0)
    liability: float = Field(ge=0.0, le=10.0)
    termination: float = Field(ge=0.0, le=10.0)
    payment: float = Field(ge=0.0, le=10.0)
    overall: float = Field(ge=0.0, le=10.0)


class ComputedProfile(_ProfileModel):
    """Point-in-time numeric personalization profile.

    Never mutated: a changed quiz response produces a new ComputedProfile.
    """

    risk_tolerance: RiskTolerance
    alert_thresholds: AlertThresholds
    explanation_style: ExplanationStyle
    profile_tags: tuple[str, ...] = ()
    computed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    computation_version: str = COMPUTATION_VERSION

    def is_stale(self, current_version: str = COMPUTATION_VERSION) -> bool:
        """True if computed under a different rule set than ``current_version``."""
        return self.computation_version != current_version

    def to_record(self) -> dict[str, Any]:
        """JSON-compatible persisted representation (camelCase keys)."""
        return self.model_dump(mode="json", by_alias=True)


@dataclass
class ProfileRecord:
    """A stored quiz response together with the profile derived from it.

    Attributes:
        user_id: Identifier of the quiz owner.
        response: The full, validated quiz response.
        profile: Profile computed from ``response``.
        updated_at: When the record was last written.
    """

    user_id: str
    response: RawPersonalizationResponse
    profile: ComputedProfile
    updated_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    def __post_init__(self) -> None:
        if not self.user_id:
            raise ValueError("user_id must be a non-empty string")
