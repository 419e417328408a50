"""
Exception types for the two failure classes that are not diagnostics.

Lexical and syntax problems are reported as data (malformed tokens and
Diagnostic records). Exceptions are reserved for:

- input acquisition failures, raised before any analysis starts
- internal invariant violations, which indicate a defect in the analyzer
"""

from typing import Optional


class SourceAcquisitionError(Exception):
    """Raised when source text cannot be obtained from a file or stream."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class InternalError(Exception):
    """
    Base class for analyzer defects.

    Never raised for malformed user input; seeing one means a bug.
    """


class ScannerInvariantError(InternalError):
    """The scanner failed to make forward progress."""

    def __init__(self, offset: int):
        super().__init__(f"scanner made no progress at offset {offset}")
        self.offset = offset


class TokenStreamExhausted(InternalError):
    """A token was requested past the end of the stream."""


class CoverageError(InternalError):
    """Token spans do not partition the source text."""
