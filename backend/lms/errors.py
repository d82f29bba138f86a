"""Error taxonomy shared by services and HTTP handlers.

Services raise these exceptions; `lms.main` registers handlers that turn
them into responses. Each error carries the HTTP status it maps to and a
public message that is safe to show to clients.
"""

from typing import Dict, List


class AppError(Exception):
    """Base class for errors that map directly onto an HTTP response."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    """Bad input or a uniqueness conflict, reported per field."""
    status_code = 400

    def __init__(self, errors: List[Dict[str, str]]):
        super().__init__("; ".join(e["msg"] for e in errors) or "Invalid request")
        self.errors = errors

    @staticmethod
    def field(path: str, msg: str, location: str = "body") -> Dict[str, str]:
        return {"path": path, "msg": msg, "location": location}


class Unauthorized(AppError):
    """Bad credentials or missing session. The message stays generic."""
    status_code = 401


class ServerError(AppError):
    """Store or hashing failure. Details are logged, never returned."""
    status_code = 500

    def __init__(self, message: str = "Server Error"):
        super().__init__(message)


class RateLimited(AppError):
    status_code = 429

    def __init__(self, retry_after: int):
        super().__init__(f"rate limit exceeded; retry after {retry_after}s")
        self.retry_after = retry_after
