"""Domain errors raised by quiz validation and the personalization service."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class FieldProblem:
    """A single problem found in a quiz response.

    Attributes:
        field: Dotted path of the offending field (e.g. ``demographics.ageRange``).
        value: The submitted value, or None when the field is missing.
        message: Human-readable description naming the field.
    """

    field: str
    value: Any
    message: str


class ValidationError(ValueError):
    """Raised when a quiz response is incomplete or out of domain.

    Always recoverable by asking the user to resubmit; never retried.
    ``field`` and ``value`` describe the first problem, ``errors`` holds all.
    """

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        errors: list[FieldProblem] | None = None,
    ) -> None:
        super().__init__(message)
        self.field = field
        self.value = value
        self.errors = errors or []


class ProfileNotFoundError(LookupError):
    """Raised when no stored profile exists for a user."""

    def __init__(self, user_id: str) -> None:
        super().__init__(f"Personalization profile not found: {user_id!r}")
        self.user_id = user_id
