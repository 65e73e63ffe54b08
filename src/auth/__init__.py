"""Caller identity: one credential-verification capability with pluggable adapters."""

from src.auth.identity import (
    AuthenticationError,
    CredentialVerifier,
    StaticTokenVerifier,
    UserIdentity,
)

__all__ = [
    "AuthenticationError",
    "CredentialVerifier",
    "StaticTokenVerifier",
    "UserIdentity",
]
