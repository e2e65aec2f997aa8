"""Bearer token verification strategies.

A bearer credential is either a token we signed ourselves or an identity
token issued by Firebase (e.g. after Google sign-in). Verifiers are tried in
order and the first one that accepts the token wins.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any

from google.auth import exceptions as google_exceptions
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token

from taskflow.core.config import Settings, get_settings
from taskflow.core.security import decode_token

logger = logging.getLogger(__name__)

LOCAL_PROVIDER = "local"
FIREBASE_PROVIDER = "firebase"


@dataclass
class VerifiedIdentity:
    """Subject extracted from a verified token."""

    provider: str
    subject: str
    email: str | None = None
    name: str | None = None
    claims: dict[str, Any] = field(default_factory=dict)


class TokenVerificationError(Exception):
    """Raised when a verifier rejects a token."""

    def __init__(self, provider: str, message: str, cause: Exception | None = None):
        self.provider = provider
        self.message = message
        self.cause = cause
        super().__init__(f"[{provider}] {message}")


class TokenVerifier(ABC):
    """Abstract base class for token verification strategies."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name for identification."""
        ...

    @property
    @abstractmethod
    def is_available(self) -> bool:
        """Check if the verifier is configured."""
        ...

    @abstractmethod
    async def verify(self, token: str) -> VerifiedIdentity:
        """Verify ``token`` and return the identity it carries.

        Raises:
            TokenVerificationError: If the token is not valid for this verifier
        """
        ...


class LocalTokenVerifier(TokenVerifier):
    """Verifies access tokens signed with our own secret."""

    @property
    def name(self) -> str:
        return LOCAL_PROVIDER

    @property
    def is_available(self) -> bool:
        return True

    async def verify(self, token: str) -> VerifiedIdentity:
        payload = decode_token(token)
        if payload is None:
            raise TokenVerificationError(self.name, "Invalid or expired token")
        if payload.get("type") != "access":
            raise TokenVerificationError(self.name, "Invalid token type")
        subject = payload.get("sub")
        if not subject:
            raise TokenVerificationError(self.name, "Token has no subject")
        return VerifiedIdentity(provider=self.name, subject=str(subject), claims=payload)


class FirebaseTokenVerifier(TokenVerifier):
    """Verifies Firebase ID tokens using Google's public certificates."""

    def __init__(self, project_id: str | None = None):
        settings = get_settings()
        self._project_id = project_id or settings.firebase_project_id
        self._request = google_requests.Request()

    @property
    def name(self) -> str:
        return FIREBASE_PROVIDER

    @property
    def is_available(self) -> bool:
        return bool(self._project_id)

    async def verify(self, token: str) -> VerifiedIdentity:
        if not self.is_available:
            raise TokenVerificationError(self.name, "Firebase project not configured")
        try:
            claims = await asyncio.to_thread(
                id_token.verify_firebase_token,
                token,
                self._request,
                self._project_id,
            )
        except (ValueError, google_exceptions.GoogleAuthError) as e:
            raise TokenVerificationError(self.name, "Token verification failed", e)

        if not claims:
            raise TokenVerificationError(self.name, "Token verification failed")
        subject = claims.get("user_id") or claims.get("sub")
        if not subject:
            raise TokenVerificationError(self.name, "Token has no subject")
        return VerifiedIdentity(
            provider=self.name,
            subject=subject,
            email=claims.get("email"),
            name=claims.get("name"),
            claims=claims,
        )


async def verify_bearer_token(token: str, verifiers: list[TokenVerifier]) -> VerifiedIdentity:
    """Try each available verifier in order.

    Raises:
        TokenVerificationError: If no verifier accepts the token
    """
    last_error: TokenVerificationError | None = None
    for verifier in verifiers:
        if not verifier.is_available:
            continue
        try:
            return await verifier.verify(token)
        except TokenVerificationError as e:
            logger.debug("Verifier %s rejected token: %s", verifier.name, e.message)
            last_error = e

    if last_error is None:
        raise TokenVerificationError("none", "No token verifier available")
    raise last_error


@lru_cache
def get_external_verifier() -> TokenVerifier:
    """Verifier for externally issued identity tokens (cached)."""
    return FirebaseTokenVerifier()


def get_token_verifiers() -> list[TokenVerifier]:
    """Verification chain for bearer tokens: local first, external second."""
    return [LocalTokenVerifier(), get_external_verifier()]


def describe_verifiers(settings: Settings) -> list[str]:
    """Names of the verifiers that are configured, for startup logging."""
    verifiers: list[TokenVerifier] = [LocalTokenVerifier(), FirebaseTokenVerifier(settings.firebase_project_id)]
    return [v.name for v in verifiers if v.is_available]
