"""Maps a computed profile onto AI pass parameters and alert thresholds.

Pure field selection through lookup tables; no state, no arithmetic.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from src.analysis.schemas import TRACKED_CATEGORIES
from src.personalization.schemas import ComputedProfile

DEFAULT_EXPLANATION_STYLE = "balanced_educational"


@dataclass(frozen=True)
class StyleParameters:
    analysis_depth: str
    warning_tone: str
    technical_detail: str


STYLE_PARAMETERS: dict[str, StyleParameters] = {
    "simple_protective": StyleParameters("comprehensive", "protective", "minimal"),
    "balanced_educational": StyleParameters("standard", "informative", "moderate"),
    "technical_efficient": StyleParameters("targeted", "factual", "high"),
    "comprehensive_cautious": StyleParameters("comprehensive", "cautious", "high"),
}


@dataclass(frozen=True)
class PassParameters:
    """
    Parameters handed to each AI analysis pass.

    Attributes:
        explanation_style: One of the four explanation styles.
        analysis_depth: comprehensive, standard or targeted.
        warning_tone: protective, informative, factual or cautious.
        technical_detail: minimal, moderate or high.
        profile_tags: The profile's tags, in profile order.
        threshold_hints: Category → alert threshold from the profile.
    """

    explanation_style: str = DEFAULT_EXPLANATION_STYLE
    analysis_depth: str = "standard"
    warning_tone: str = "informative"
    technical_detail: str = "moderate"
    profile_tags: tuple[str, ...] = ()
    threshold_hints: dict[str, float] = field(default_factory=dict)

    @property
    def personalized(self) -> bool:
        return bool(self.threshold_hints)

    def to_dict(self) -> dict[str, Any]:
        return {
            "explanation_style": self.explanation_style,
            "analysis_depth": self.analysis_depth,
            "warning_tone": self.warning_tone,
            "technical_detail": self.technical_detail,
            "profile_tags": list(self.profile_tags),
            "threshold_hints": dict(self.threshold_hints),
        }


class ContextAdapter:
    """Translates a ComputedProfile for the analysis side."""

    @staticmethod
    def pass_parameters(profile: Optional[ComputedProfile] = None) -> PassParameters:
        """Parameters for an AI pass; balanced defaults without a profile."""
        if profile is None:
            return PassParameters()

        style = STYLE_PARAMETERS[profile.explanation_style]
        return PassParameters(
            explanation_style=profile.explanation_style,
            analysis_depth=style.analysis_depth,
            warning_tone=style.warning_tone,
            technical_detail=style.technical_detail,
            profile_tags=tuple(profile.profile_tags),
            threshold_hints=ContextAdapter.alert_thresholds(profile),
        )

    @staticmethod
    def alert_thresholds(profile: ComputedProfile) -> dict[str, float]:
        """Category → threshold, plus ``overall``."""
        thresholds = profile.alert_thresholds
        mapping = {category: getattr(thresholds, category) for category in TRACKED_CATEGORIES}
        mapping["overall"] = thresholds.overall
        return mapping
