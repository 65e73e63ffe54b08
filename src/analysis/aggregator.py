"""
Confidence-weighted aggregation of multiple AI analysis passes.

Combines an unordered, possibly partial set of passes into one result:
per-category weighted scores, a weighted overall risk score, a discrete
risk level, and, when a computed profile is supplied, personalized alert
flags layered on top of the unchanged numeric scores.

Usage:
    from src.analysis.aggregator import AnalysisAggregator
    from src.analysis.schemas import AnalysisPass, CategoryScore

    aggregator = AnalysisAggregator()
    passes = [
        AnalysisPass({"privacy": CategoryScore(8.0, 0.9)}),
        AnalysisPass({"privacy": CategoryScore(4.0, 0.2)}),
    ]
    result = aggregator.aggregate(passes)
    print(result.categories["privacy"].score, result.risk_level)

The aggregator is pure: no I/O, no logging, no retries. All sums go through
``math.fsum`` so the result does not depend on pass order.
"""

import math
from collections import Counter
from collections.abc import Iterable, Sequence
from typing import Optional

from src.analysis.config import DEFAULT_CATEGORY_WEIGHTS, AnalysisConfig
from src.analysis.context import ContextAdapter
from src.analysis.schemas import (
    TRACKED_CATEGORIES,
    AggregatedCategory,
    AggregatedResult,
    AnalysisPass,
    CategoryScore,
    InsufficientDataError,
)
from src.personalization.schemas import ComputedProfile


def _dedupe(items: Iterable[str]) -> list[str]:
    """Non-empty strings in first-seen order, without repeats."""
    return list(dict.fromkeys(item for item in items if item))


def _majority(values: Iterable[Optional[str]]) -> Optional[str]:
    """Most common non-empty value; ties go to the alphabetically first."""
    counts = Counter(v for v in values if v)
    if not counts:
        return None
    return min(counts, key=lambda v: (-counts[v], v))


class AnalysisAggregator:
    """
    Combines analysis passes into an AggregatedResult.

    Per category, over the passes reporting it:
        score      = Σ(score × confidence) / Σ(confidence)
        confidence = mean(confidence)

    A category no pass reported is left out of the result entirely.

    Args:
        category_weights: Weight per tracked category for the overall score
            (must sum to 1.0). Defaults to privacy/liability 0.3,
            termination/payment 0.2.
        low_risk_below: Overall scores below this are "low".
        high_risk_from: Overall scores at or above this are "high".
    """

    def __init__(
        self,
        category_weights: Optional[dict[str, float]] = None,
        low_risk_below: float = 4.0,
        high_risk_from: float = 7.0,
    ) -> None:
        weights = dict(category_weights if category_weights is not None else DEFAULT_CATEGORY_WEIGHTS)
        if not math.isclose(math.fsum(weights.values()), 1.0, abs_tol=1e-9):
            raise ValueError(f"Category weights must sum to 1.0, got {math.fsum(weights.values())}")
        if low_risk_below > high_risk_from:
            raise ValueError("low_risk_below must not exceed high_risk_from")

        self.category_weights = weights
        self.low_risk_below = low_risk_below
        self.high_risk_from = high_risk_from

    @classmethod
    def from_config(cls, config: AnalysisConfig) -> "AnalysisAggregator":
        return cls(
            category_weights=config.category_weights,
            low_risk_below=config.low_risk_below,
            high_risk_from=config.high_risk_from,
        )

    def aggregate(
        self,
        passes: Sequence[AnalysisPass],
        profile: Optional[ComputedProfile] = None,
    ) -> AggregatedResult:
        """
        Aggregate whatever passes arrived into a single result.

        Args:
            passes: One or more passes, in any order. Fewer than requested is
                fine; the per-category ``passes_contributing`` records it.
            profile: Optional computed profile for personalized alert flags.

        Returns:
            AggregatedResult with categories in canonical order.

        Raises:
            InsufficientDataError: If ``passes`` is empty or no pass reports
                any category.
        """
        if not passes:
            raise InsufficientDataError("No analysis passes to aggregate")

        reported: dict[str, list[CategoryScore]] = {}
        for analysis_pass in passes:
            for name, category_score in analysis_pass.categories.items():
                reported.setdefault(name, []).append(category_score)

        if not reported:
            raise InsufficientDataError("No analysis pass reported any category")

        order = [c for c in TRACKED_CATEGORIES if c in reported]
        order.extend(sorted(c for c in reported if c not in TRACKED_CATEGORIES))

        categories = {name: self.aggregate_category(reported[name]) for name in order}
        overall = self.compute_overall({name: cat.score for name, cat in categories.items()})

        overall_alert: Optional[bool] = None
        if profile is not None:
            thresholds = ContextAdapter.alert_thresholds(profile)
            categories = {
                name: AggregatedCategory(
                    score=cat.score,
                    confidence=cat.confidence,
                    passes_contributing=cat.passes_contributing,
                    alert=cat.score >= thresholds.get(name, thresholds["overall"]),
                )
                for name, cat in categories.items()
            }
            overall_alert = overall >= thresholds["overall"]

        return AggregatedResult(
            categories=categories,
            overall_risk_score=overall,
            risk_level=self.classify_risk_level(overall),
            passes_received=len(passes),
            overall_alert=overall_alert,
            omitted_categories=[c for c in TRACKED_CATEGORIES if c not in reported],
            summaries=_dedupe(p.summary for p in passes),
            key_points=_dedupe(point for p in passes for point in p.key_points),
            regulatory_flags=_dedupe(flag for p in passes for flag in p.regulatory_flags),
            recommendations=_dedupe(rec for p in passes for rec in p.recommendations),
            primary_document_type=_majority(p.document_type for p in passes),
            primary_jurisdiction=_majority(p.jurisdiction for p in passes),
            computation_version=profile.computation_version if profile is not None else None,
        )

    @staticmethod
    def aggregate_category(scores: Sequence[CategoryScore]) -> AggregatedCategory:
        """Confidence-weighted mean of one category's scores.

        If every confidence is zero the weights carry no information and the
        plain mean is used.
        """
        if not scores:
            raise InsufficientDataError("No pass reported this category")

        total_confidence = math.fsum(s.confidence for s in scores)
        if total_confidence > 0:
            score = math.fsum(s.score * s.confidence for s in scores) / total_confidence
        else:
            score = math.fsum(s.score for s in scores) / len(scores)

        return AggregatedCategory(
            score=score,
            confidence=total_confidence / len(scores),
            passes_contributing=len(scores),
        )

    def compute_overall(self, category_scores: dict[str, float]) -> float:
        """
        Weighted overall risk score over the categories present.

        Weights are renormalized over the weighted categories present.
        Categories without a weight do not count, unless no weighted
        category is present at all, in which case every present category
        counts equally.
        """
        weighted = {
            name: self.category_weights[name]
            for name in category_scores
            if self.category_weights.get(name, 0.0) > 0.0
        }
        if not weighted:
            weighted = {name: 1.0 for name in category_scores}

        total_weight = math.fsum(weighted.values())
        return math.fsum(category_scores[name] * w for name, w in weighted.items()) / total_weight

    def classify_risk_level(self, score: float) -> str:
        """Lower bound of each band is inclusive."""
        if score < self.low_risk_below:
            return "low"
        if score < self.high_risk_from:
            return "medium"
        return "high"


_default_aggregator = AnalysisAggregator()


def aggregate_analysis(
    passes: Sequence[AnalysisPass],
    profile: Optional[ComputedProfile] = None,
) -> AggregatedResult:
    """Aggregate passes with the default weights and risk bands.

    Raises:
        InsufficientDataError: If there is nothing to aggregate.
    """
    return _default_aggregator.aggregate(passes, profile)
