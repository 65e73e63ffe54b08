"""Shared fixtures for analysis tests."""

import pytest

from src.analysis.aggregator import AnalysisAggregator
from src.analysis.config import AnalysisConfig
from src.analysis.schemas import AnalysisPass, CategoryScore
from src.personalization.computer import ProfileComputer


def _make_pass(scores: dict[str, tuple[float, float]], **kwargs) -> AnalysisPass:
    """Build a pass from {category: (score, confidence)}."""
    return AnalysisPass(
        categories={name: CategoryScore(s, c) for name, (s, c) in scores.items()},
        **kwargs,
    )


@pytest.fixture
def make_pass():
    return _make_pass


@pytest.fixture
def aggregator():
    return AnalysisAggregator()


@pytest.fixture
def analysis_config():
    return AnalysisConfig(pass_count=3, pass_timeout=0.5)


@pytest.fixture
def sample_profile(sample_quiz):
    return ProfileComputer().compute(sample_quiz)


@pytest.fixture
def three_passes():
    return [
        _make_pass(
            {
                "privacy": (8.0, 0.9),
                "liability": (6.0, 0.8),
                "termination": (5.0, 0.7),
                "payment": (3.0, 0.9),
            },
            summary="Broad data sharing with partners.",
            key_points=["Shares data with advertisers", "Binding arbitration"],
            document_type="terms_of_service",
            jurisdiction="US-CA",
            regulatory_flags=["CCPA"],
            pass_id="p1",
        ),
        _make_pass(
            {
                "privacy": (6.0, 0.5),
                "liability": (7.0, 0.6),
                "termination": (4.0, 0.5),
                "payment": (2.0, 0.8),
            },
            summary="Moderate privacy exposure.",
            key_points=["Binding arbitration", "Unilateral changes"],
            document_type="terms_of_service",
            jurisdiction="US-CA",
            pass_id="p2",
        ),
        _make_pass(
            {
                "privacy": (4.0, 0.2),
                "liability": (5.0, 0.4),
                "termination": (6.0, 0.3),
                "payment": (4.0, 0.6),
            },
            summary="",
            document_type="privacy_policy",
            jurisdiction="US-NY",
            regulatory_flags=["CCPA", "GDPR"],
            recommendations=["Opt out of data sharing"],
            pass_id="p3",
        ),
    ]
