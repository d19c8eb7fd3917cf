"""Service-level tests for credential-checked sign-up and sign-in."""
from __future__ import annotations

import pytest

from gidana.core.errors import AccountExistsError, InvalidCredentialsError, UnauthenticatedError
from gidana.models import Account
from gidana.models.account import Role
from gidana.services import auth as auth_service
from gidana.services.credentials import hash_password, verify_federated_token, verify_password
from gidana.services.identity import make_identity


def test_password_hashes_verify_only_the_original_password() -> None:
    hashed = hash_password("s3cret-password", rounds=4)

    assert hashed != "s3cret-password"
    assert verify_password("s3cret-password", hashed)
    assert not verify_password("S3cret-password", hashed)
    assert not verify_password("s3cret-password", None)
    assert not verify_password("s3cret-password", "not-a-bcrypt-hash")


@pytest.mark.asyncio
async def test_sign_up_stores_hash_and_rejects_duplicates(session, settings, seed) -> None:
    identity = await auth_service.sign_up(
        session,
        email="Boss@Example.com",
        password="s3cret-password",
        display_name="Boss",
        role=Role.LANDLORD,
        settings=settings,
    )

    stored = await seed.fetch(Account, identity.account_id)
    assert stored.role == "landlord"
    assert stored.password_hash and stored.password_hash != "s3cret-password"

    with pytest.raises(AccountExistsError):
        await auth_service.sign_up(
            session,
            email="boss@example.com",
            password="other-password",
            display_name="Intruder",
            role=Role.TENANT,
            settings=settings,
        )

    stored = await seed.fetch(Account, identity.account_id)
    assert stored.role == "landlord"
    assert stored.display_name == "Boss"


@pytest.mark.asyncio
async def test_authenticate_password(session, settings, seed) -> None:
    created = await auth_service.sign_up(
        session,
        email="ada@example.com",
        password="s3cret-password",
        display_name="Ada",
        role=Role.TENANT,
        settings=settings,
    )

    identity = await auth_service.authenticate_password(
        session, email=" ADA@example.com", password="s3cret-password", settings=settings
    )
    assert identity.account_id == created.account_id
    assert identity.display_name == "Ada"

    with pytest.raises(InvalidCredentialsError):
        await auth_service.authenticate_password(session, email="ada@example.com", password="wrong", settings=settings)


@pytest.mark.asyncio
async def test_account_without_password_cannot_use_password_sign_in(session, settings, seed) -> None:
    await seed.account(make_identity("ada@example.com").account_id)

    with pytest.raises(InvalidCredentialsError):
        await auth_service.authenticate_password(session, email="ada@example.com", password="", settings=settings)


@pytest.mark.asyncio
async def test_federated_identity_comes_from_verified_claims(settings, google_tokens) -> None:
    google_tokens["good-token"] = {
        "iss": "https://accounts.google.com",
        "email": " Ada@Example.com",
        "email_verified": True,
        "name": "Ada",
    }

    identity = await auth_service.authenticate_federated("google", "good-token", settings)

    assert identity == make_identity("ada@example.com", provider="google", display_name="Ada")
    assert identity.allows_implicit_signup


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "claims",
    [
        {"iss": "https://evil.example.com", "email": "ada@example.com", "email_verified": True},
        {"iss": "accounts.google.com", "email": "ada@example.com", "email_verified": False},
        {"iss": "accounts.google.com", "email_verified": True},
    ],
)
async def test_federated_claims_must_be_trustworthy(settings, google_tokens, claims) -> None:
    google_tokens["token"] = claims

    with pytest.raises(InvalidCredentialsError):
        await verify_federated_token("google", "token", settings)


@pytest.mark.asyncio
async def test_federated_sign_in_rejects_unknown_or_unconfigured_providers(settings, google_tokens) -> None:
    unconfigured = settings.model_copy(update={"google_client_id": None})

    with pytest.raises(InvalidCredentialsError):
        await verify_federated_token("google", "forged", settings)
    with pytest.raises(UnauthenticatedError):
        await verify_federated_token("facebook", "anything", settings)
    with pytest.raises(UnauthenticatedError):
        await verify_federated_token("google", "anything", unconfigured)
