"""Personalization service configuration.

Controls how the service treats stored profiles. All settings can be
overridden via ``PERSONALIZATION_*`` environment variables. The computation
tables themselves are versioned constants in ``weights.py``, not settings.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PersonalizationConfig(BaseSettings):
    """Configuration for the personalization service."""

    model_config = SettingsConfigDict(
        env_prefix="PERSONALIZATION_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    recompute_stale_on_read: bool = Field(
        default=True,
        description="Recompute and persist profiles computed under an older version when read",
    )
    list_page_size: int = Field(
        default=100,
        ge=1,
        le=1000,
        description="Page size used when scanning stored profiles",
    )
