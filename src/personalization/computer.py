"""
Profile computation engine.

Turns a validated quiz response into a ComputedProfile: per-category risk
tolerance, alert thresholds, an explanation style and profile tags.

Usage:
    from src.personalization.computer import ProfileComputer

    computer = ProfileComputer()
    profile = computer.compute(raw_quiz_dict)
    print(profile.risk_tolerance.privacy, profile.explanation_style)

The computer is pure: no I/O, no logging, no shared state. The only
non-deterministic field is ``computed_at``, which callers may pin.
"""

from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import Any

from src.personalization import weights
from src.personalization.schemas import (
    AlertThresholds,
    ComputedProfile,
    RawPersonalizationResponse,
    RiskTolerance,
)
from src.personalization.validation import parse_response


def _clamp(value: float, low: float = weights.SCORE_MIN, high: float = weights.SCORE_MAX) -> float:
    return max(low, min(high, value))


class ProfileComputer:
    """
    Derives a ComputedProfile from a RawPersonalizationResponse.

    Risk tolerance per category:
        tolerance = clamp(base × age × occupation × dependents × circumstances, 0, 10)

    where ``base`` comes from the category's own quiz answer
    (privacy.overallImportance, financial.paymentApproach,
    legal.arbitrationComfort) and the four multipliers are shared.
    ``overall`` is the mean of the three, rounded to one decimal.

    Alert thresholds are the complement of the related tolerance:
        threshold = clamp(10 − tolerance × alert_preference × frequency, 0, 10)

    All tables live in ``src.personalization.weights`` and are stamped into
    the profile through ``computation_version``.
    """

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        """
        Args:
            clock: Source of ``computed_at`` timestamps (defaults to UTC now).
        """
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def version(self) -> str:
        return weights.COMPUTATION_VERSION

    def compute(
        self,
        response: RawPersonalizationResponse | Mapping[str, Any],
        computed_at: datetime | None = None,
    ) -> ComputedProfile:
        """
        Compute a full profile from a quiz response.

        Args:
            response: Validated response, or a raw camelCase mapping which is
                validated first.
            computed_at: Timestamp to record (defaults to the clock).

        Returns:
            A new, immutable ComputedProfile.

        Raises:
            ValidationError: If ``response`` is a mapping that fails validation.
        """
        response = parse_response(response)

        risk_tolerance = self.compute_risk_tolerance(response)

        return ComputedProfile(
            risk_tolerance=risk_tolerance,
            alert_thresholds=self.compute_alert_thresholds(response, risk_tolerance),
            explanation_style=self.select_explanation_style(response),
            profile_tags=tuple(self.generate_profile_tags(response)),
            computed_at=computed_at or self._clock(),
            computation_version=self.version,
        )

    # ── Risk tolerance ───────────────────────────────────

    def compute_risk_tolerance(self, response: RawPersonalizationResponse) -> RiskTolerance:
        """Per-category tolerance on a 0-10 scale (higher = more tolerant)."""
        demographics = response.demographics
        prefs = response.risk_preferences
        context = response.contextual_factors

        age = weights.AGE_FACTORS[demographics.age_range]
        occupation = weights.OCCUPATION_FACTORS[demographics.occupation]
        dependents = weights.DEPENDENT_FACTORS[context.dependent_status]
        circumstances = self.special_circumstance_factor(context.special_circumstances)

        def _tolerance(base: float) -> float:
            return round(_clamp(base * age * occupation * dependents * circumstances), 1)

        privacy = _tolerance(weights.PRIVACY_BASE[prefs.privacy.overall_importance])
        financial = _tolerance(weights.FINANCIAL_BASE[prefs.financial.payment_approach])
        legal = _tolerance(weights.LEGAL_BASE[prefs.legal.arbitration_comfort])

        return RiskTolerance(
            privacy=privacy,
            financial=financial,
            legal=legal,
            overall=round((privacy + financial + legal) / 3, 1),
        )

    @staticmethod
    def special_circumstance_factor(circumstances: list[str]) -> float:
        """Product of per-circumstance multipliers, floored.

        Each distinct circumstance counts once regardless of repeats.
        """
        factor = 1.0
        for circumstance in dict.fromkeys(circumstances):
            factor *= weights.SPECIAL_CIRCUMSTANCE_FACTORS[circumstance]
        return max(weights.SPECIAL_CIRCUMSTANCE_FLOOR, factor)

    # ── Alert thresholds ─────────────────────────────────

    @staticmethod
    def frequency_adjustment(alert_frequency_limit: int) -> float:
        """Map the daily alert limit onto the frequency adjustment range.

        Limit 1 gives the maximum adjustment (lowest thresholds), limit 50
        the minimum (highest thresholds).
        """
        limit_min, limit_max = weights.ALERT_FREQUENCY_LIMIT_RANGE
        adj_min, adj_max = weights.FREQUENCY_ADJUSTMENT_RANGE
        limit = max(limit_min, min(limit_max, alert_frequency_limit))
        position = (limit - limit_min) / (limit_max - limit_min)
        return adj_max - position * (adj_max - adj_min)

    def compute_alert_thresholds(
        self,
        response: RawPersonalizationResponse,
        risk_tolerance: RiskTolerance,
    ) -> AlertThresholds:
        """Thresholds inversely related to tolerance, modulated by alert cadence."""
        alert_prefs = response.contextual_factors.alert_preferences
        preference = weights.ALERT_PREFERENCE_ADJUSTMENTS[alert_prefs.interruption_timing]
        frequency = self.frequency_adjustment(alert_prefs.alert_frequency_limit)

        thresholds = {
            name: round(
                _clamp(10.0 - getattr(risk_tolerance, related) * preference * frequency),
                1,
            )
            for name, related in weights.THRESHOLD_RELATED_CATEGORY.items()
        }
        return AlertThresholds(**thresholds)

    # ── Explanation style ────────────────────────────────

    def select_explanation_style(self, response: RawPersonalizationResponse) -> str:
        """First matching rule wins: circumstances, explicit choice, occupation, age."""
        circumstances = response.contextual_factors.special_circumstances
        if weights.SIMPLE_LANGUAGE_CIRCUMSTANCES.intersection(circumstances):
            return "simple_protective"

        preferred = response.digital_behavior.tech_sophistication.preferred_explanation_style
        if preferred is not None:
            return weights.PREFERRED_STYLE_MAP[preferred]

        occupation_style = weights.OCCUPATION_STYLE_DEFAULTS.get(response.demographics.occupation)
        if occupation_style is not None:
            return occupation_style

        return weights.AGE_STYLE_DEFAULTS[response.demographics.age_range]

    # ── Profile tags ─────────────────────────────────────

    def generate_profile_tags(self, response: RawPersonalizationResponse) -> list[str]:
        """
        Deterministic ``category_value`` tags in fixed section order.

        Order: demographics, preferences, usage, context. Multi-select
        answers contribute one tag per selection in selection order; any
        repeated tag keeps its first position.
        """
        demographics = response.demographics
        tech = response.digital_behavior.tech_sophistication
        usage = response.digital_behavior.usage_patterns
        prefs = response.risk_preferences
        context = response.contextual_factors

        tags = [
            f"age_{demographics.age_range}",
            f"occupation_{demographics.occupation}",
            f"jurisdiction_{demographics.jurisdiction.primary_country}",
            f"tech_{tech.comfort_level}",
            f"reading_{tech.reading_frequency}",
            f"privacy_{prefs.privacy.overall_importance}",
            f"payment_{prefs.financial.payment_approach}",
            f"financial_{prefs.financial.financial_situation}",
            f"arbitration_{prefs.legal.arbitration_comfort}",
        ]
        tags.extend(f"usage_{activity}" for activity in usage.primary_activities)
        tags.append(f"dependents_{context.dependent_status}")
        tags.extend(f"special_{item}" for item in context.special_circumstances)
        tags.append(f"alerts_{context.alert_preferences.interruption_timing}")

        return list(dict.fromkeys(tags))


_default_computer = ProfileComputer()


def compute_profile(raw: RawPersonalizationResponse | Mapping[str, Any]) -> ComputedProfile:
    """Validate a quiz response and compute its profile.

    Raises:
        ValidationError: If the response is incomplete or out of domain.
    """
    return _default_computer.compute(raw)
