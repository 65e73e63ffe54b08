"""Human-readable summaries of a computed profile for the user dashboard.

Pure functions over a quiz response and its ComputedProfile. Nothing here
feeds back into scoring.
"""

from typing import Any

from src.personalization.schemas import (
    AlertThresholds,
    ComputedProfile,
    RawPersonalizationResponse,
    RiskTolerance,
)

STYLE_DESCRIPTIONS: dict[str, str] = {
    "simple_protective": "Simple language with protective guidance",
    "balanced_educational": "Balanced approach with educational content",
    "technical_efficient": "Technical details for efficient review",
    "comprehensive_cautious": "Comprehensive analysis with cautious approach",
}

# Daily alert limit above which important warnings risk being drowned out
HIGH_ALERT_FREQUENCY_LIMIT = 20


def _tolerance_level(score: float) -> str:
    if score <= 3:
        return "Low"
    if score <= 7:
        return "Moderate"
    return "High"


def _overall_level(score: float) -> str:
    if score <= 3:
        return "Conservative"
    if score <= 7:
        return "Balanced"
    return "Risk-Tolerant"


def _alert_sensitivity(threshold: float) -> str:
    if threshold <= 3:
        return "High Sensitivity"
    if threshold <= 6:
        return "Moderate Sensitivity"
    return "Low Sensitivity"


def summarize_risk_profile(risk_tolerance: RiskTolerance) -> dict[str, dict[str, Any]]:
    summary = {
        category: {"level": _tolerance_level(score), "score": score}
        for category, score in (
            ("privacy", risk_tolerance.privacy),
            ("financial", risk_tolerance.financial),
            ("legal", risk_tolerance.legal),
        )
    }
    summary["overall"] = {
        "level": _overall_level(risk_tolerance.overall),
        "score": risk_tolerance.overall,
    }
    return summary


def summarize_alert_configuration(thresholds: AlertThresholds) -> dict[str, str]:
    return {name: _alert_sensitivity(value) for name, value in thresholds.model_dump().items()}


def build_recommendations(
    response: RawPersonalizationResponse,
    profile: ComputedProfile,
) -> list[dict[str, str]]:
    """Suggest settings changes when answers and computed profile disagree."""
    recommendations: list[dict[str, str]] = []

    importance = response.risk_preferences.privacy.overall_importance
    if profile.risk_tolerance.privacy < 3 and importance != "extremely_important":
        recommendations.append({
            "type": "threshold_adjustment",
            "message": "Consider adjusting privacy settings for more relevant alerts",
        })

    limit = response.contextual_factors.alert_preferences.alert_frequency_limit
    if limit > HIGH_ALERT_FREQUENCY_LIMIT:
        recommendations.append({
            "type": "alert_frequency",
            "message": "High alert frequency limit may cause important warnings to be missed",
        })

    return recommendations


def identify_strengths(response: RawPersonalizationResponse) -> list[str]:
    strengths: list[str] = []
    if response.digital_behavior.tech_sophistication.reading_frequency != "never":
        strengths.append("Actively reviews terms and conditions")
    if response.risk_preferences.privacy.overall_importance in (
        "extremely_important",
        "very_important",
    ):
        strengths.append("Strong privacy awareness")
    return strengths


def suggest_improvements(response: RawPersonalizationResponse) -> list[dict[str, str]]:
    suggestions: list[dict[str, str]] = []
    if response.digital_behavior.tech_sophistication.reading_frequency == "never":
        suggestions.append({
            "area": "engagement",
            "suggestion": "Consider reviewing key sections of important terms and conditions",
        })

    knowledge = response.risk_preferences.legal.legal_knowledge
    if knowledge is not None and knowledge.contract_law == "none":
        suggestions.append({
            "area": "education",
            "suggestion": "Learn about basic contract law and consumer rights",
        })
    return suggestions


def build_insights(
    response: RawPersonalizationResponse,
    profile: ComputedProfile,
) -> dict[str, Any]:
    """
    Assemble the dashboard insight payload for one user.

    Args:
        response: The quiz response the profile was computed from.
        profile: The computed profile.

    Returns:
        Dict with riskProfileSummary, alertConfiguration, explanationStyle,
        recommendations, profileStrengths and improvementSuggestions.
    """
    style = profile.explanation_style
    return {
        "riskProfileSummary": summarize_risk_profile(profile.risk_tolerance),
        "alertConfiguration": summarize_alert_configuration(profile.alert_thresholds),
        "explanationStyle": {
            "style": style,
            "description": STYLE_DESCRIPTIONS.get(style, "Balanced approach"),
        },
        "recommendations": build_recommendations(response, profile),
        "profileStrengths": identify_strengths(response),
        "improvementSuggestions": suggest_improvements(response),
        "computationVersion": profile.computation_version,
    }
