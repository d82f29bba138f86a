"""SQLModel data models.

This module defines the application's database tables using SQLModel.
Table names match the relational schema in `migrations/` so the app can
run against a database bootstrapped either way.
"""

from typing import Optional
from sqlalchemy import Index, func
from sqlmodel import SQLModel, Field
from datetime import datetime, timezone


class User(SQLModel, table=True):
    """A registered user.

    Fields:
    - `email`, `username`: unique across all users
    - `password`: hashed password string (never store plaintext)
    """
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True, nullable=False, unique=True)
    username: str = Field(index=True, nullable=False, unique=True)
    password: str
    full_name: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


# Emails and usernames are unique regardless of case.
Index("ux_users_email_lower", func.lower(User.email), unique=True)
Index("ux_users_username_lower", func.lower(User.username), unique=True)


class Course(SQLModel, table=True):
    """A course record. Content fields are opaque to the backend."""
    __tablename__ = "courses"

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    description: Optional[str] = None
    content: Optional[str] = None


class LoginSession(SQLModel, table=True):
    """Server-side session keyed by the opaque id stored in the cookie.

    The user fields are a snapshot taken at login time.
    """
    __tablename__ = "sessions"

    session_id: str = Field(primary_key=True, max_length=64)
    user_id: int = Field(foreign_key="users.id", index=True)
    username: str
    email: str
    full_name: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
