"""Pydantic request/response schemas used by the API.

Schemas keep API input/output shapes stable. Format rules (email syntax,
alphanumeric usernames) are checked by `RegistrationService` so they can
be reported together with uniqueness conflicts.
"""

from pydantic import BaseModel
from typing import Optional


class RegisterIn(BaseModel):
    """Payload for the registration endpoint."""
    email: str
    username: str
    password: str
    full_name: Optional[str] = None


class LoginIn(BaseModel):
    """Payload for the login endpoint."""
    username: str
    password: str


class UserOut(BaseModel):
    """Public user representation; never carries the password hash."""
    id: int
    email: str
    username: str
    full_name: Optional[str] = None


class DashboardOut(BaseModel):
    full_name: Optional[str] = None
    username: str
