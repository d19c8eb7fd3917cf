"""Expose ORM models."""
from .account import Account, Role
from .payment import Payment
from .property import Property
from .unit import Unit, UnitStatus

__all__ = [
    "Account",
    "Payment",
    "Property",
    "Role",
    "Unit",
    "UnitStatus",
]
