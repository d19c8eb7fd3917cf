"""Schemas for session resolution and routing."""
from __future__ import annotations

import enum

from pydantic import BaseModel

from .documents import AccountSnapshot


class View(str, enum.Enum):
    SPLASH = "splash"
    LANDING = "landing"
    AUTH = "auth"
    TENANT_LINKING = "tenant_linking"
    TENANT_DASHBOARD = "tenant_dashboard"
    LANDLORD_DASHBOARD = "landlord_dashboard"
    ERROR = "error"


class NavigationIntent(str, enum.Enum):
    LANDING = "landing"
    AUTH = "auth"


class SessionView(BaseModel):
    view: View
    authenticated: bool
    account: AccountSnapshot | None = None
    needs_linking: bool = False
    repaired: bool = False
