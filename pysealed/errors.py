"""
Errors raised by sealed type declarations and exhaustiveness checks.

Both kinds are detected when the offending construct is defined, never when
it runs.
"""

from typing import Any, List, Optional, Sequence


class SealedError(Exception):
    """Base class for pysealed diagnostics."""

    kind = 'error'

    def __init__(self, message: str, location: Optional[str] = None, kind: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.location = location
        if kind is not None:
            self.kind = kind

    def __str__(self):
        if self.location:
            return f"{self.location}: {self.message}"
        return self.message


class ScopeViolation(SealedError):
    """A variant was declared outside its sealed type's defining boundary."""

    kind = 'scope-violation'

    def __init__(self, message: str, sealed_type: Any = None, variant: Any = None,
                 module: Optional[str] = None, location: Optional[str] = None):
        super().__init__(message, location)
        self.sealed_type = sealed_type
        self.variant = variant
        self.module = module


class InexhaustiveMatch(SealedError):
    """A match over a closed type omits a variant and has no wildcard arm."""

    kind = 'inexhaustive-match'

    def __init__(self, message: str, subject: Any = None,
                 uncovered: Sequence[str] = (), location: Optional[str] = None):
        super().__init__(message, location)
        self.subject = subject
        self.uncovered: List[str] = list(uncovered)
