"""Storage layer: asyncpg connection management for profile persistence."""

from src.storage.database import Database

__all__ = ["Database"]
