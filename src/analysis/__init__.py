"""Multi-pass document risk analysis.

Components:
- AnalysisPass / AggregatedResult: one AI scoring and the combined result
- AnalysisAggregator / aggregate_analysis: confidence-weighted aggregation
- ContextAdapter: computed profile → pass parameters and alert thresholds
- LLMPassClient: OpenAI / Anthropic pass client behind circuit breakers
- MultiPassDriver: concurrent passes with per-pass timeouts
"""

from src.analysis.aggregator import AnalysisAggregator, aggregate_analysis
from src.analysis.circuit_breaker import CircuitOpenError, CircuitState, GenericCircuitBreaker
from src.analysis.config import AnalysisConfig
from src.analysis.context import ContextAdapter, PassParameters
from src.analysis.driver import MultiPassDriver, PassClient
from src.analysis.llm_client import LLMPassClient
from src.analysis.schemas import (
    TRACKED_CATEGORIES,
    AggregatedCategory,
    AggregatedResult,
    AnalysisPass,
    CategoryScore,
    InsufficientDataError,
)

__all__ = [
    "AggregatedCategory",
    "AggregatedResult",
    "AnalysisAggregator",
    "AnalysisConfig",
    "AnalysisPass",
    "CategoryScore",
    "CircuitOpenError",
    "CircuitState",
    "ContextAdapter",
    "GenericCircuitBreaker",
    "InsufficientDataError",
    "LLMPassClient",
    "MultiPassDriver",
    "PassClient",
    "PassParameters",
    "TRACKED_CATEGORIES",
    "aggregate_analysis",
]
