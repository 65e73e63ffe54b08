"""Shared fixtures for personalization tests."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from src.personalization.computer import ProfileComputer
from src.personalization.repository import InMemoryProfileRepository
from src.personalization.schemas import ProfileRecord
from src.personalization.validation import parse_response

FIXED_TIME = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def computer():
    """ProfileComputer with a pinned clock."""
    return ProfileComputer(clock=lambda: FIXED_TIME)


@pytest.fixture
def sample_response(sample_quiz):
    return parse_response(sample_quiz)


@pytest.fixture
def sample_profile(computer, sample_response):
    return computer.compute(sample_response)


@pytest.fixture
def sample_record(sample_response, sample_profile):
    return ProfileRecord(
        user_id="user_001",
        response=sample_response,
        profile=sample_profile,
        updated_at=FIXED_TIME,
    )


@pytest.fixture
def memory_repo():
    return InMemoryProfileRepository()


@pytest.fixture
def mock_database():
    """Mock Database with async fetch methods."""
    db = AsyncMock()
    db.execute = AsyncMock(return_value="DELETE 1")
    db.fetchrow = AsyncMock()
    db.fetch = AsyncMock(return_value=[])
    db.fetchval = AsyncMock()
    return db
