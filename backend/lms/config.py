"""Application settings and validation."""

import os
from pathlib import Path

BASE = Path(__file__).resolve().parent.parent


class Settings:
    ENV: str
    DATABASE_URL: str
    SESSION_COOKIE_NAME: str
    COOKIE_SECURE: bool
    ALLOW_INSECURE_COOKIES: bool
    PASSWORD_HASH_ROUNDS: int
    LOGIN_RATE_LIMIT_PER_MIN: int
    LOGIN_RATE_LIMIT_WINDOW_SECONDS: int
    ALLOW_DEV_CORS: bool
    LOG_LEVEL: str

    def __init__(self, **overrides):
        self.ENV = os.getenv("ENV", "dev").lower()
        self.DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{BASE / 'app.db'}")
        self.SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "session_id")
        self.COOKIE_SECURE = os.getenv("COOKIE_SECURE", "false").lower() == "true"
        self.ALLOW_INSECURE_COOKIES = os.getenv("ALLOW_INSECURE_COOKIES", "false").lower() == "true"
        self.PASSWORD_HASH_ROUNDS = int(os.getenv("PASSWORD_HASH_ROUNDS", "29000"))
        self.LOGIN_RATE_LIMIT_PER_MIN = int(os.getenv("LOGIN_RATE_LIMIT_PER_MIN", "30"))
        self.LOGIN_RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("LOGIN_RATE_LIMIT_WINDOW_SECONDS", "60"))
        self.ALLOW_DEV_CORS = os.getenv("ALLOW_DEV_CORS", "true").lower() == "true"
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        # explicit values win over the environment (used by tests and scripts)
        for key, value in overrides.items():
            if not hasattr(self, key):
                raise TypeError(f"unknown setting: {key}")
            setattr(self, key, value)
        self._validate()

    def _validate(self):
        if self.ENV != "dev" and not self.ALLOW_INSECURE_COOKIES and not self.COOKIE_SECURE:
            raise RuntimeError("COOKIE_SECURE must be enabled in non-dev environments")
        if self.PASSWORD_HASH_ROUNDS < 1000:
            raise RuntimeError("PASSWORD_HASH_ROUNDS must be at least 1000")
        if self.LOGIN_RATE_LIMIT_PER_MIN < 1 or self.LOGIN_RATE_LIMIT_WINDOW_SECONDS < 1:
            raise RuntimeError("login rate limit values must be positive")
