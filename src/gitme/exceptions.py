"""Exception hierarchy for gitme.

Refresh-level failures are always one of these; anything else is a bug and
is allowed to propagate.
"""

from typing import Optional


class GitmeError(Exception):
    """Base class for all gitme errors."""
    
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NetworkError(GitmeError):
    """The request never produced an HTTP response (DNS, TLS, timeout...)."""


class ApiError(GitmeError):
    """GitHub answered with a structured error (rate limit, not found, ...)."""
    
    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
    
    @property
    def is_rate_limited(self) -> bool:
        return self.status_code in (403, 429) and "rate limit" in self.message.lower()


class DataShapeError(GitmeError):
    """A response is missing a required field or has an unexpected shape."""
    
    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class ConfigError(GitmeError):
    """Invalid configuration edit (duplicate or unknown repository)."""
