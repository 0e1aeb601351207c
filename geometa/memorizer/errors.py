"""Exceptions raised by the memorizer core."""

from __future__ import annotations


class MemorizerError(Exception):
    """Base class for memorizer failures."""


class InvalidGradeError(MemorizerError, ValueError):
    """Raised when a review quality is not an integer between 0 and 5."""


class InvalidStateError(MemorizerError, ValueError):
    """Raised when a schedule carries an unrecognized state."""


class UnknownCardError(MemorizerError, LookupError):
    """Raised when grading a location that does not exist."""
