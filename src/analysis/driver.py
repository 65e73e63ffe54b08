"""
Multi-pass analysis driver.

Issues N independent AI passes for one document concurrently, each bounded
by a timeout, and aggregates whichever passes arrived.

Usage:
    from src.analysis.driver import MultiPassDriver
    from src.analysis.llm_client import LLMPassClient

    driver = MultiPassDriver(LLMPassClient(config), config=config)
    result = await driver.analyze(document_text, profile=profile)
    print(result.risk_level, result.passes_received)

A pass that times out, raises, is cancelled or returns nothing is dropped
and counted; it never fails the analysis on its own. The driver does not
retry. When no pass arrives, InsufficientDataError reaches the caller.
"""

import asyncio
import time
from typing import Optional, Protocol

import structlog

from src.analysis.aggregator import AnalysisAggregator
from src.analysis.circuit_breaker import CircuitOpenError
from src.analysis.config import AnalysisConfig
from src.analysis.context import ContextAdapter, PassParameters
from src.analysis.schemas import AggregatedResult, AnalysisPass, InsufficientDataError
from src.observability.metrics import get_metrics
from src.personalization.schemas import ComputedProfile

logger = structlog.get_logger(__name__)


class PassClient(Protocol):
    """Anything that can run one analysis pass over a document."""

    async def score_pass(
        self,
        document_text: str,
        pass_number: int,
        params: PassParameters,
    ) -> Optional[AnalysisPass]: ...


def failure_reason(outcome: BaseException | None) -> str:
    """Metric label for a pass that produced no usable result."""
    if outcome is None:
        return "invalid"
    if isinstance(outcome, asyncio.TimeoutError):
        return "timeout"
    if isinstance(outcome, asyncio.CancelledError):
        return "cancelled"
    if isinstance(outcome, CircuitOpenError):
        return "circuit_open"
    return "error"


class MultiPassDriver:
    """
    Fans out analysis passes and hands the survivors to the aggregator.

    Args:
        client: Pass client (e.g. LLMPassClient).
        config: Analysis configuration (defaults to AnalysisConfig()).
        aggregator: Aggregator (defaults to one built from ``config``).
    """

    def __init__(
        self,
        client: PassClient,
        config: Optional[AnalysisConfig] = None,
        aggregator: Optional[AnalysisAggregator] = None,
    ) -> None:
        self._client = client
        self._config = config or AnalysisConfig()
        self._aggregator = aggregator or AnalysisAggregator.from_config(self._config)
        self._metrics = get_metrics()

    async def _run_pass(
        self,
        document_text: str,
        pass_number: int,
        params: PassParameters,
    ) -> Optional[AnalysisPass]:
        start = time.monotonic()
        try:
            return await asyncio.wait_for(
                self._client.score_pass(document_text, pass_number, params),
                timeout=self._config.pass_timeout,
            )
        finally:
            self._metrics.pass_latency.observe(time.monotonic() - start)

    async def collect_passes(
        self,
        document_text: str,
        params: PassParameters,
        pass_count: int,
    ) -> list[AnalysisPass]:
        """
        Run ``pass_count`` passes concurrently and return those that arrived.

        Returned passes are in pass-number order. Cancelling the caller
        cancels every outstanding pass.
        """
        self._metrics.passes_requested.inc(pass_count)
        tasks = [
            asyncio.create_task(
                self._run_pass(document_text, number, params),
                name=f"analysis_pass_{number}",
            )
            for number in range(1, pass_count + 1)
        ]

        try:
            outcomes = await asyncio.gather(*tasks, return_exceptions=True)
        except asyncio.CancelledError:
            for task in tasks:
                task.cancel()
            raise

        arrived: list[AnalysisPass] = []
        for number, outcome in enumerate(outcomes, start=1):
            if isinstance(outcome, AnalysisPass):
                arrived.append(outcome)
                continue
            if isinstance(outcome, BaseException) and not isinstance(
                outcome, (Exception, asyncio.CancelledError)
            ):
                raise outcome

            reason = failure_reason(outcome if isinstance(outcome, BaseException) else None)
            self._metrics.pass_failures.labels(reason=reason).inc()
            logger.warning(
                "Analysis pass dropped",
                pass_number=number,
                reason=reason,
                error=str(outcome) if isinstance(outcome, BaseException) else None,
            )

        self._metrics.passes_completed.inc(len(arrived))
        return arrived

    async def analyze(
        self,
        document_text: str,
        profile: Optional[ComputedProfile] = None,
        pass_count: Optional[int] = None,
    ) -> AggregatedResult:
        """
        Analyze a document with multiple independent passes.

        Args:
            document_text: Text of the terms and conditions.
            profile: Optional computed profile for personalization.
            pass_count: Passes to issue (defaults to config.pass_count).

        Returns:
            Aggregated result over the passes that arrived.

        Raises:
            InsufficientDataError: If no pass produced a usable result.
            ValueError: If ``pass_count`` is less than 1.
        """
        count = pass_count if pass_count is not None else self._config.pass_count
        if count < 1:
            raise ValueError(f"pass_count must be at least 1, got {count}")

        params = ContextAdapter.pass_parameters(profile)
        start = time.monotonic()

        passes = await self.collect_passes(document_text, params, count)
        self._metrics.passes_per_analysis.observe(len(passes))

        try:
            result = self._aggregator.aggregate(passes, profile)
        except InsufficientDataError:
            self._metrics.analyses_unavailable.inc()
            logger.error("Analysis unavailable", passes_requested=count, passes_received=len(passes))
            raise

        elapsed = time.monotonic() - start
        self._metrics.analysis_latency.observe(elapsed)
        self._metrics.risk_levels.labels(risk_level=result.risk_level).inc()
        logger.info(
            "Document analyzed",
            passes_requested=count,
            passes_received=result.passes_received,
            risk_level=result.risk_level,
            overall_risk_score=round(result.overall_risk_score, 2),
            personalized=result.personalized,
            elapsed_ms=round(elapsed * 1000, 1),
        )
        return result
