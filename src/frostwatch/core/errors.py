"""Domain errors raised by Frostwatch services.

Services raise these; the API layer maps them onto HTTP responses.
"""

from __future__ import annotations


class FrostwatchError(Exception):
    """Base exception for all domain failures."""


class InvalidLocationError(FrostwatchError, ValueError):
    """Raised when coordinates fall outside the valid latitude/longitude ranges."""


class InvalidCommentError(FrostwatchError, ValueError):
    """Raised when a comment is empty or exceeds the length limit."""


class DuplicateVoteError(FrostwatchError):
    """Raised when an identity casts the same vote type twice on one report."""


class DuplicateReportFlagError(FrostwatchError):
    """Raised when an identity flags the same comment more than once."""


class ReportNotFoundError(FrostwatchError, LookupError):
    """Raised when a report id does not resolve to a live report."""


class CommentNotFoundError(FrostwatchError, LookupError):
    """Raised when a comment id does not resolve to a stored comment."""


class StorageUnavailableError(FrostwatchError):
    """Raised when the backing store fails or cannot be reached."""


class LocationUnavailableError(FrostwatchError):
    """Raised when no location could be determined for the caller.

    Never fatal: callers degrade to the idle (no location) state.
    """
