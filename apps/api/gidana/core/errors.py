"""Error kinds surfaced by the core components.

Every store failure is converted to one of these at the component boundary,
so the session router and the HTTP layer only ever see a resolved kind.
"""
from __future__ import annotations

from fastapi import status


class GidanaError(Exception):
    """Base class for domain errors with an HTTP mapping."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "error"
    default_message: str = "Request failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class UnauthenticatedError(GidanaError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "unauthenticated"
    default_message = "Sign in to continue."


class InvalidCredentialsError(UnauthenticatedError):
    code = "invalid_credentials"
    default_message = "Email or password is incorrect."


class NotFoundError(GidanaError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    default_message = "Not found."


class PropertyNotFoundError(NotFoundError):
    code = "property_not_found"
    default_message = "Property not found. Please check the code provided by your landlord."


class UnitNotFoundError(NotFoundError):
    code = "unit_not_found"
    default_message = "Unit not found."


class AccountNotFoundError(NotFoundError):
    code = "account_not_found"
    default_message = "Account not found."


class UnitAlreadyClaimedError(GidanaError):
    """The unit was taken before our conditional write landed."""

    status_code = status.HTTP_409_CONFLICT
    code = "already_claimed"
    default_message = "This unit has just been taken by someone else."

    def __init__(self, unit_id: str, message: str | None = None) -> None:
        super().__init__(message)
        self.unit_id = unit_id


class AccountNotEligibleError(GidanaError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "not_eligible"
    default_message = "This account cannot perform that action."


class StoreUnavailableError(GidanaError):
    """Transient store failure after bounded retries."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "unavailable"
    default_message = "Connection error. Please try again."


class MalformedDocumentError(GidanaError):
    status_code = 422
    code = "malformed"
    default_message = "Stored record is missing required fields."


class OrphanedClaimError(GidanaError):
    """The unit is ours but the account linkage could not be written yet."""

    status_code = status.HTTP_202_ACCEPTED
    code = "claim_pending"
    default_message = "Your unit is reserved. Linking will finish on your next sign-in."

    def __init__(self, unit_id: str, message: str | None = None) -> None:
        super().__init__(message)
        self.unit_id = unit_id


class AccountExistsError(GidanaError):
    status_code = status.HTTP_409_CONFLICT
    code = "account_exists"
    default_message = "An account with this email already exists. Please sign in."


class PaymentReferenceConflictError(GidanaError):
    status_code = status.HTTP_409_CONFLICT
    code = "reference_conflict"
    default_message = "This payment reference belongs to another payment."
