"""Password hashing and federated ID-token verification."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
import logging
from typing import Any

from bcrypt import checkpw, gensalt, hashpw
from google.auth import exceptions as google_exceptions
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token

from ..core.config import Settings
from ..core.errors import InvalidCredentialsError, StoreUnavailableError, UnauthenticatedError

logger = logging.getLogger(__name__)

GOOGLE_PROVIDER = "google"
GOOGLE_ISSUERS = {"accounts.google.com", "https://accounts.google.com"}


@dataclass(slots=True, frozen=True)
class FederatedClaims:
    email: str
    name: str | None = None


def hash_password(password: str, rounds: int = 12) -> str:
    return hashpw(password.encode("utf-8"), gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, password_hash: str | None) -> bool:
    if not password_hash:
        return False
    try:
        return checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is malformed")
        return False


def _verify_google_token(token: str, client_id: str) -> dict[str, Any]:
    return id_token.verify_oauth2_token(token, google_requests.Request(), client_id)


async def verify_federated_token(provider: str, token: str, settings: Settings) -> FederatedClaims:
    """Verify a provider-issued ID token and return the identity it asserts.

    Only Google is supported. Raises ``InvalidCredentialsError`` for a token
    that fails verification.
    """

    if provider != GOOGLE_PROVIDER:
        raise UnauthenticatedError(f"Sign-in provider '{provider}' is not supported.")
    if not settings.google_client_id:
        raise UnauthenticatedError("Google sign-in is not configured.")

    try:
        idinfo = await asyncio.to_thread(_verify_google_token, token, settings.google_client_id)
    except google_exceptions.TransportError as exc:
        raise StoreUnavailableError("Could not reach Google to verify the sign-in.") from exc
    except (ValueError, google_exceptions.GoogleAuthError) as exc:
        logger.info("Rejected Google ID token: %s", exc)
        raise InvalidCredentialsError("Invalid Google ID token.") from exc

    if idinfo.get("iss") not in GOOGLE_ISSUERS:
        raise InvalidCredentialsError("Invalid Google ID token issuer.")
    email = str(idinfo.get("email", "")).strip().lower()
    if not email or not idinfo.get("email_verified"):
        raise InvalidCredentialsError("Google account has no verified email.")
    return FederatedClaims(email=email, name=idinfo.get("name") or None)
