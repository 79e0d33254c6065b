from __future__ import annotations


class CohortMatchError(Exception):
    """Base class for errors raised by the matching core and its stores."""


class NotFound(CohortMatchError):
    """Raised when a referenced member code has no profile."""

    def __init__(self, code: str) -> None:
        super().__init__(f"No profile found for code {code!r}")
        self.code = code


class InvalidInput(CohortMatchError):
    """Raised for empty or malformed codes and unsupported swipe directions."""


class StoreUnavailable(CohortMatchError):
    """Raised when a backing store cannot be read or written."""
