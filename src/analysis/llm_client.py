"""LLM adapter that produces one AnalysisPass per call.

Supports OpenAI (JSON mode) and Anthropic (tool use) with lazy SDK
initialization and per-provider circuit breakers. SDK imports are deferred
to first use so the package imports cleanly without API keys configured.
"""

import json
import logging
from typing import Any

from src.analysis.circuit_breaker import GenericCircuitBreaker
from src.analysis.config import AnalysisConfig
from src.analysis.context import DEFAULT_EXPLANATION_STYLE, PassParameters
from src.analysis.prompts import ANALYSIS_PROMPT, PROFILE_CONTEXT, SYSTEM_PROMPTS
from src.analysis.schemas import TRACKED_CATEGORIES, AnalysisPass

logger = logging.getLogger(__name__)

_CATEGORY_SCHEMA = {
    "type": "object",
    "properties": {
        "score": {"type": "number", "minimum": 0, "maximum": 10},
        "confidence": {"type": "number", "minimum": 0, "maximum": 1},
    },
    "required": ["score", "confidence"],
}

SUBMIT_ANALYSIS_TOOL = {
    "name": "submit_analysis",
    "description": "Submit the risk analysis of the document",
    "input_schema": {
        "type": "object",
        "properties": {
            "categories": {
                "type": "object",
                "properties": {name: _CATEGORY_SCHEMA for name in TRACKED_CATEGORIES},
                "required": list(TRACKED_CATEGORIES),
            },
            "summary": {"type": "string"},
            "key_points": {"type": "array", "items": {"type": "string"}},
            "document_type": {"type": "string"},
            "jurisdiction": {"type": "string"},
            "regulatory_flags": {"type": "array", "items": {"type": "string"}},
            "recommendations": {"type": "array", "items": {"type": "string"}},
        },
        "required": ["categories", "summary"],
    },
}


class LLMPassClient:
    """Runs single analysis passes against the configured provider.

    Features:
    - Lazy SDK initialization (import on first use)
    - Per-provider circuit breakers; CircuitOpenError propagates to the caller
    - Graceful fallback to None on a malformed response

    Args:
        config: Analysis configuration with provider, API keys and models.
    """

    def __init__(self, config: AnalysisConfig) -> None:
        self._config = config
        self._openai_client: Any = None
        self._anthropic_client: Any = None
        self._breakers = {
            provider: GenericCircuitBreaker(
                failure_threshold=config.circuit_failure_threshold,
                recovery_timeout=config.circuit_recovery_timeout,
                name=provider,
            )
            for provider in ("openai", "anthropic")
        }

    @property
    def provider(self) -> str:
        return self._config.llm_provider

    @property
    def breaker(self) -> GenericCircuitBreaker:
        """Circuit breaker of the active provider."""
        return self._breakers[self.provider]

    def _get_openai_client(self) -> Any:
        if self._openai_client is None:
            import openai

            api_key = self._config.openai_api_key
            self._openai_client = openai.AsyncOpenAI(
                api_key=api_key.get_secret_value() if api_key else None,
                timeout=self._config.llm_timeout,
            )
        return self._openai_client

    def _get_anthropic_client(self) -> Any:
        if self._anthropic_client is None:
            import anthropic

            api_key = self._config.anthropic_api_key
            self._anthropic_client = anthropic.AsyncAnthropic(
                api_key=api_key.get_secret_value() if api_key else None,
                timeout=self._config.llm_timeout,
            )
        return self._anthropic_client

    def build_prompt(self, document_text: str, pass_number: int, params: PassParameters) -> str:
        profile_context = ""
        if params.personalized:
            profile_context = PROFILE_CONTEXT.format(
                profile_tags=", ".join(params.profile_tags) or "none",
                threshold_hints=", ".join(
                    f"{name} {value:g}" for name, value in params.threshold_hints.items()
                ),
            )
        return ANALYSIS_PROMPT.format(
            pass_number=pass_number,
            analysis_depth=params.analysis_depth,
            warning_tone=params.warning_tone,
            technical_detail=params.technical_detail,
            profile_context=profile_context,
            document_text=document_text[: self._config.max_document_chars],
        )

    async def score_pass(
        self,
        document_text: str,
        pass_number: int,
        params: PassParameters,
    ) -> AnalysisPass | None:
        """Run one independent analysis pass.

        Args:
            document_text: Full document text (truncated to max_document_chars).
            pass_number: 1-based pass index, used in the prompt and pass_id.
            params: Style and profile parameters for the prompt.

        Returns:
            AnalysisPass, or None if the response could not be parsed.

        Raises:
            CircuitOpenError: If the provider's circuit is open.
        """
        prompt = self.build_prompt(document_text, pass_number, params)
        system = SYSTEM_PROMPTS.get(params.explanation_style, SYSTEM_PROMPTS[DEFAULT_EXPLANATION_STYLE])
        pass_id = f"{self.provider}-{pass_number}"

        if self.provider == "anthropic":
            return await self.breaker.call(self._call_anthropic, system, prompt, pass_id)
        return await self.breaker.call(self._call_openai, system, prompt, pass_id)

    async def _call_openai(self, system: str, prompt: str, pass_id: str) -> AnalysisPass | None:
        client = self._get_openai_client()
        response = await client.chat.completions.create(
            model=self._config.openai_model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            response_format={"type": "json_object"},
        )
        return self._parse_pass_response(response.choices[0].message.content, pass_id)

    async def _call_anthropic(self, system: str, prompt: str, pass_id: str) -> AnalysisPass | None:
        client = self._get_anthropic_client()
        response = await client.messages.create(
            model=self._config.anthropic_model,
            max_tokens=2048,
            system=system,
            messages=[{"role": "user", "content": prompt}],
            tools=[SUBMIT_ANALYSIS_TOOL],
            tool_choice={"type": "tool", "name": "submit_analysis"},
        )
        for block in response.content:
            if block.type == "tool_use" and block.name == "submit_analysis":
                return self._parse_pass_response(json.dumps(block.input), pass_id)
        logger.warning("Anthropic response contained no tool_use block")
        return None

    def _parse_pass_response(self, raw: str | None, pass_id: str) -> AnalysisPass | None:
        """Parse raw JSON into an AnalysisPass, or None if malformed."""
        if not raw:
            return None
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Failed to parse %s response as JSON", pass_id)
            return None
        if not isinstance(data, dict):
            logger.warning("Response for %s is not a JSON object", pass_id)
            return None

        try:
            return AnalysisPass.from_dict(data, pass_id=pass_id)
        except (KeyError, ValueError, TypeError) as e:
            logger.warning("Failed to validate %s response: %s", pass_id, e)
            return None

    async def close(self) -> None:
        """Clean up SDK clients."""
        if self._openai_client is not None:
            await self._openai_client.close()
            self._openai_client = None
        if self._anthropic_client is not None:
            await self._anthropic_client.close()
            self._anthropic_client = None
