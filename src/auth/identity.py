"""
Credential verification for profile owners.

The personalization engines never see credentials. Callers resolve a
credential to a UserIdentity through a CredentialVerifier, then pass the
identity's user_id to the service. Provider-specific adapters (hosted
identity services, signed tokens) implement the same protocol.
"""

import hmac
from dataclasses import dataclass
from typing import Protocol

from src.config.settings import get_settings

DEV_USER_ID = "dev-user"


class AuthenticationError(Exception):
    """Raised when a credential is missing or not recognized."""


@dataclass(frozen=True)
class UserIdentity:
    """An authenticated caller.

    Attributes:
        user_id: Stable identifier used as the profile key.
        provider: Name of the adapter that verified the credential.
    """

    user_id: str
    provider: str

    def __post_init__(self) -> None:
        if not self.user_id:
            raise ValueError("user_id must be a non-empty string")


class CredentialVerifier(Protocol):
    """Anything that can turn a credential into a UserIdentity."""

    async def verify_credential(self, credential: str | None) -> UserIdentity: ...


def parse_token_map(raw: str) -> dict[str, str]:
    """Parse ``token=user_id`` pairs separated by commas."""
    tokens: dict[str, str] = {}
    for entry in raw.split(","):
        entry = entry.strip()
        if not entry:
            continue
        token, sep, user_id = entry.partition("=")
        if not sep or not token.strip() or not user_id.strip():
            raise ValueError(f"Invalid auth token entry: {entry!r}")
        tokens[token.strip()] = user_id.strip()
    return tokens


class StaticTokenVerifier:
    """
    Verifies bearer tokens against a fixed token-to-user table.

    With no tokens configured every caller is the development user,
    matching local runs without an identity provider.

    Args:
        tokens: Mapping of token to user_id. Defaults to Settings.auth_tokens.
    """

    provider = "static"

    def __init__(self, tokens: dict[str, str] | None = None) -> None:
        if tokens is None:
            tokens = parse_token_map(get_settings().auth_tokens)
        self._tokens = tokens

    async def verify_credential(self, credential: str | None) -> UserIdentity:
        if not self._tokens:
            return UserIdentity(user_id=DEV_USER_ID, provider="dev-mode")

        if not credential:
            raise AuthenticationError("Missing credential")

        for token, user_id in self._tokens.items():
            if hmac.compare_digest(token.encode(), credential.encode()):
                return UserIdentity(user_id=user_id, provider=self.provider)
        raise AuthenticationError("Invalid credential")
