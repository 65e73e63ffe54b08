"""Configuration for multi-pass document analysis.

Provides Pydantic settings for pass fan-out, category weights, risk bands,
LLM provider selection and circuit breaker tuning. All settings can be
overridden via ANALYSIS_* environment variables.
"""

import math
from typing import Literal

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.analysis.schemas import TRACKED_CATEGORIES

DEFAULT_CATEGORY_WEIGHTS: dict[str, float] = {
    "privacy": 0.3,
    "liability": 0.3,
    "termination": 0.2,
    "payment": 0.2,
}


class AnalysisConfig(BaseSettings):
    """Configuration for the multi-pass analysis pipeline.

    Settings can be overridden via environment variables prefixed with ANALYSIS_.

    Example:
        ANALYSIS_PASS_COUNT=5
        ANALYSIS_LLM_PROVIDER=anthropic
        ANALYSIS_ANTHROPIC_API_KEY=sk-ant-...
    """

    model_config = SettingsConfigDict(
        env_prefix="ANALYSIS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Pass fan-out
    pass_count: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Independent AI passes issued per document",
    )
    pass_timeout: float = Field(
        default=45.0,
        gt=0.0,
        le=300.0,
        description="Seconds to wait for a single pass before dropping it",
    )

    # Aggregation
    category_weights: dict[str, float] = Field(
        default_factory=lambda: dict(DEFAULT_CATEGORY_WEIGHTS),
        description="Weight of each tracked category in the overall risk score",
    )
    low_risk_below: float = Field(
        default=4.0,
        ge=0.0,
        le=10.0,
        description="Overall scores below this are 'low'",
    )
    high_risk_from: float = Field(
        default=7.0,
        ge=0.0,
        le=10.0,
        description="Overall scores at or above this are 'high'",
    )

    # LLM provider
    llm_provider: Literal["openai", "anthropic"] = Field(
        default="openai",
        description="Provider used for analysis passes",
    )
    openai_api_key: SecretStr | None = Field(
        default=None,
        description="OpenAI API key",
    )
    anthropic_api_key: SecretStr | None = Field(
        default=None,
        description="Anthropic API key",
    )
    openai_model: str = Field(
        default="gpt-4o-mini",
        description="OpenAI model for analysis passes",
    )
    anthropic_model: str = Field(
        default="claude-sonnet-4-5-20250929",
        description="Anthropic model for analysis passes",
    )
    max_document_chars: int = Field(
        default=60_000,
        ge=1_000,
        description="Document text beyond this length is truncated before prompting",
    )
    llm_timeout: float = Field(
        default=30.0,
        ge=5.0,
        le=120.0,
        description="Timeout in seconds for LLM API calls",
    )

    # Circuit breaker settings
    circuit_failure_threshold: int = Field(
        default=5,
        ge=1,
        description="Consecutive failures before opening circuit",
    )
    circuit_recovery_timeout: float = Field(
        default=60.0,
        ge=5.0,
        description="Seconds before attempting recovery attempt",
    )

    @field_validator("category_weights")
    @classmethod
    def _check_weights(cls, v: dict[str, float]) -> dict[str, float]:
        unknown = set(v) - set(TRACKED_CATEGORIES)
        if unknown:
            raise ValueError(f"Unknown categories in weights: {sorted(unknown)}")
        if any(w < 0 for w in v.values()):
            raise ValueError("Category weights must be non-negative")
        if not math.isclose(math.fsum(v.values()), 1.0, abs_tol=1e-9):
            raise ValueError(f"Category weights must sum to 1.0, got {math.fsum(v.values())}")
        return v

    @model_validator(mode="after")
    def _check_bands(self) -> "AnalysisConfig":
        if self.low_risk_below > self.high_risk_from:
            raise ValueError("low_risk_below must not exceed high_risk_from")
        return self
