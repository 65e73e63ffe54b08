"""Data containers for multi-pass document risk analysis.

An AnalysisPass is one AI scoring of a document. The aggregator combines
any number of passes into an AggregatedResult.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

# Categories every pass is asked to score, in canonical output order
TRACKED_CATEGORIES: tuple[str, ...] = ("privacy", "liability", "termination", "payment")

RISK_LEVELS: tuple[str, ...] = ("low", "medium", "high")


class InsufficientDataError(Exception):
    """No analysis pass is available to aggregate.

    Surfaced to callers as "analysis unavailable"; never retried by the
    aggregator.
    """


@dataclass(frozen=True)
class CategoryScore:
    """A single category's score from one pass."""

    score: float
    confidence: float = 1.0

    def __post_init__(self) -> None:
        if not (0.0 <= self.score <= 10.0):
            raise ValueError(f"Score must be 0-10, got {self.score}")
        if not (0.0 <= self.confidence <= 1.0):
            raise ValueError(f"Confidence must be 0-1, got {self.confidence}")


def _text(value: Any, field_name: str) -> Optional[str]:
    """A free-text field: a string or absent."""
    if value is None or isinstance(value, str):
        return value
    raise ValueError(f"{field_name} must be a string, got {type(value).__name__}")


def _text_list(value: Any, field_name: str) -> list[str]:
    """A list-of-text field. A bare string counts as one item; non-string items are skipped."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return [item for item in value if isinstance(item, str)]
    raise ValueError(f"{field_name} must be a list of strings, got {type(value).__name__}")


@dataclass
class AnalysisPass:
    """
    One independent AI scoring of a document.

    Only ``categories`` feeds the numeric aggregation; the text fields are
    carried through to the aggregated insights unweighted.
    """

    categories: dict[str, CategoryScore]
    summary: str = ""
    key_points: list[str] = field(default_factory=list)
    document_type: Optional[str] = None
    jurisdiction: Optional[str] = None
    regulatory_flags: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    pass_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], pass_id: Optional[str] = None) -> "AnalysisPass":
        """
        Build a pass from the JSON shape an AI pass returns.

        Example:
            {
              "categories": {"privacy": {"score": 7.5, "confidence": 0.8}},
              "confidence": 0.9,
              "summary": "...",
              "keyPoints": ["..."]
            }

        A category without its own ``confidence`` inherits the top-level
        ``confidence`` (default 1.0). Both snake_case and camelCase keys are
        accepted for the text fields.

        Raises:
            ValueError: If categories are missing, a score is out of range, or a
                text field has the wrong type.
            TypeError: If a category entry is not a mapping or number.
        """
        raw_categories = data.get("categories")
        if not isinstance(raw_categories, Mapping):
            raise ValueError("Analysis pass must contain a 'categories' mapping")

        default_confidence = float(data.get("confidence", 1.0))
        categories: dict[str, CategoryScore] = {}
        for name, entry in raw_categories.items():
            if isinstance(entry, Mapping):
                categories[str(name)] = CategoryScore(
                    score=float(entry["score"]),
                    confidence=float(entry.get("confidence", default_confidence)),
                )
            elif isinstance(entry, (int, float)) and not isinstance(entry, bool):
                categories[str(name)] = CategoryScore(float(entry), default_confidence)
            else:
                raise TypeError(f"Invalid entry for category {name!r}: {entry!r}")

        def _get(snake: str, camel: str, default: Any = None) -> Any:
            if snake in data:
                return data[snake]
            return data.get(camel, default)

        return cls(
            categories=categories,
            summary=_text(data.get("summary"), "summary") or "",
            key_points=_text_list(_get("key_points", "keyPoints"), "key_points"),
            document_type=_text(_get("document_type", "documentType"), "document_type"),
            jurisdiction=_text(data.get("jurisdiction"), "jurisdiction"),
            regulatory_flags=_text_list(_get("regulatory_flags", "regulatoryFlags"), "regulatory_flags"),
            recommendations=_text_list(data.get("recommendations"), "recommendations"),
            pass_id=pass_id or _get("pass_id", "passId"),
        )


@dataclass(frozen=True)
class AggregatedCategory:
    """
    Aggregated view of one category across passes.

    Attributes:
        score: Confidence-weighted mean score.
        confidence: Mean confidence of the contributing passes.
        passes_contributing: Number of passes that reported the category.
        alert: ``score >= threshold`` when a profile was supplied, else None.
    """

    score: float
    confidence: float
    passes_contributing: int
    alert: Optional[bool] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "confidence": self.confidence,
            "passes_contributing": self.passes_contributing,
            "alert": self.alert,
        }


@dataclass
class AggregatedResult:
    """The single analysis produced by combining one or more passes."""

    categories: dict[str, AggregatedCategory]
    overall_risk_score: float
    risk_level: str
    passes_received: int
    overall_alert: Optional[bool] = None
    omitted_categories: list[str] = field(default_factory=list)
    summaries: list[str] = field(default_factory=list)
    key_points: list[str] = field(default_factory=list)
    regulatory_flags: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    primary_document_type: Optional[str] = None
    primary_jurisdiction: Optional[str] = None
    computation_version: Optional[str] = None

    def __post_init__(self) -> None:
        if self.risk_level not in RISK_LEVELS:
            raise ValueError(f"Invalid risk level: {self.risk_level}")
        if self.passes_received < 1:
            raise ValueError("An aggregated result needs at least one pass")

    @property
    def personalized(self) -> bool:
        return self.overall_alert is not None

    def to_dict(self) -> dict[str, Any]:
        """JSON-compatible representation."""
        return {
            "categories": {name: cat.to_dict() for name, cat in self.categories.items()},
            "overall_risk_score": self.overall_risk_score,
            "risk_level": self.risk_level,
            "passes_received": self.passes_received,
            "overall_alert": self.overall_alert,
            "omitted_categories": list(self.omitted_categories),
            "summaries": list(self.summaries),
            "key_points": list(self.key_points),
            "regulatory_flags": list(self.regulatory_flags),
            "recommendations": list(self.recommendations),
            "primary_document_type": self.primary_document_type,
            "primary_jurisdiction": self.primary_jurisdiction,
            "computation_version": self.computation_version,
        }
