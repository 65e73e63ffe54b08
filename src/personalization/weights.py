"""Versioned design constants for profile computation.

Every table below feeds ProfileComputer. The values are product decisions,
not user-visible settings: changing any of them changes computed profiles,
so COMPUTATION_VERSION must be bumped in the same change. Stored profiles
carrying an older version are then detected and recomputed.

Risk tolerance is on a 0-10 scale where higher means more tolerant (less
protective). Multipliers below 1.0 therefore make a profile more protective.
"""

COMPUTATION_VERSION = "1.0"

SCORE_MIN = 0.0
SCORE_MAX = 10.0

# ── Base tolerance per category ───────────────────────────

# riskPreferences.privacy.overallImportance
PRIVACY_BASE: dict[str, float] = {
    "extremely_important": 2.0,
    "very_important": 4.0,
    "moderately_important": 6.0,
    "not_very_important": 8.0,
}

# riskPreferences.financial.paymentApproach
FINANCIAL_BASE: dict[str, float] = {
    "very_cautious": 2.0,
    "cautious": 4.0,
    "moderate": 6.0,
    "relaxed": 8.0,
}

# riskPreferences.legal.arbitrationComfort
LEGAL_BASE: dict[str, float] = {
    "strongly_prefer_courts": 2.0,
    "prefer_courts": 4.0,
    "neutral": 6.0,
    "acceptable": 8.0,
}

# ── Multipliers (applied to every category) ───────────────

AGE_FACTORS: dict[str, float] = {
    "under_18": 0.7,
    "18_25": 0.9,
    "26_40": 1.0,
    "41_55": 1.05,
    "over_55": 0.8,
    "prefer_not_to_say": 1.0,
}

OCCUPATION_FACTORS: dict[str, float] = {
    "legal_compliance": 1.2,
    "healthcare": 0.95,
    "financial_services": 1.1,
    "technology": 1.1,
    "education": 1.0,
    "creative_freelancer": 1.0,
    "student": 0.85,
    "retired": 0.8,
    "business_owner": 1.05,
    "government": 1.0,
    "nonprofit": 0.95,
    "other": 1.0,
    "prefer_not_to_say": 1.0,
}

DEPENDENT_FACTORS: dict[str, float] = {
    "just_myself": 1.0,
    "spouse_partner": 0.9,
    "children_dependents": 0.8,
    "employees_team": 0.85,
    "clients_customers": 0.8,
}

# Combined multiplicatively over the selected circumstances
SPECIAL_CIRCUMSTANCE_FACTORS: dict[str, float] = {
    "small_business_owner": 0.9,
    "content_creator": 1.0,
    "handles_sensitive_data": 0.85,
    "frequent_international": 1.0,
    "regulated_industry": 0.85,
    "accessibility_needs": 1.0,
    "non_native_speaker": 1.0,
    "elderly_or_vulnerable": 0.7,
}
SPECIAL_CIRCUMSTANCE_FLOOR = 0.7

# ── Alert thresholds ──────────────────────────────────────

# contextualFactors.alertPreferences.interruptionTiming.
# threshold = 10 - tolerance * adjustment * frequency, so a larger
# adjustment lowers the threshold (alerts fire more readily).
ALERT_PREFERENCE_ADJUSTMENTS: dict[str, float] = {
    "any_concerning": 1.2,
    "moderate_and_high": 1.0,
    "only_when_committing": 0.9,
    "only_severe": 0.8,
}

# alertFrequencyLimit maps linearly onto [MIN, MAX], inverted: a higher
# daily limit gives a smaller adjustment and so a slightly higher threshold.
ALERT_FREQUENCY_LIMIT_RANGE = (1, 50)
FREQUENCY_ADJUSTMENT_RANGE = (0.9, 1.1)

# threshold name -> risk tolerance score it is derived from
THRESHOLD_RELATED_CATEGORY: dict[str, str] = {
    "privacy": "privacy",
    "liability": "legal",
    "termination": "legal",
    "payment": "financial",
    "overall": "overall",
}

# ── Explanation style ─────────────────────────────────────

SIMPLE_LANGUAGE_CIRCUMSTANCES = frozenset({
    "non_native_speaker",
    "elderly_or_vulnerable",
})

PREFERRED_STYLE_MAP: dict[str, str] = {
    "simple_language": "simple_protective",
    "balanced_technical": "balanced_educational",
    "technical_detailed": "technical_efficient",
    "bullet_summaries": "technical_efficient",
    "comprehensive_analysis": "comprehensive_cautious",
}

# Occupations without an entry fall through to the age default
OCCUPATION_STYLE_DEFAULTS: dict[str, str] = {
    "legal_compliance": "technical_efficient",
    "technology": "technical_efficient",
    "healthcare": "comprehensive_cautious",
    "financial_services": "comprehensive_cautious",
    "government": "comprehensive_cautious",
    "student": "simple_protective",
    "retired": "simple_protective",
}

AGE_STYLE_DEFAULTS: dict[str, str] = {
    "under_18": "simple_protective",
    "18_25": "balanced_educational",
    "26_40": "balanced_educational",
    "41_55": "balanced_educational",
    "over_55": "simple_protective",
    "prefer_not_to_say": "balanced_educational",
}
