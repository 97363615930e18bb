"""
Registry of accepted match checks.

Every checked construct (a function decorated with @exhaustive or a
MatchExpression) registers here after its first check. Declaring a new
variant of a sealed class re-runs the checks that read that class's variant
set. Entries are held weakly and vanish with the construct they describe.
"""

import weakref
from typing import Any, List

from .logger import logger


class MatchRegistry:
    """Weak registry of checkable constructs.

    An entry must provide ``check() -> bool``, a ``consulted`` set of sealed
    classes and a ``describe()`` string.
    """

    def __init__(self):
        self._entries: List[weakref.ref] = []

    def register(self, entry: Any):
        self._prune()
        self._entries.append(weakref.ref(entry))
        logger.debug(f"Registered match check {entry.describe()}")

    def entries(self) -> List[Any]:
        self._prune()
        return [e for e in (ref() for ref in self._entries) if e is not None]

    def entries_for(self, sealed_type) -> List[Any]:
        return [e for e in self.entries() if sealed_type in e.consulted]

    def recheck(self, sealed_type) -> bool:
        """Re-run every check that consulted ``sealed_type``.

        Raises the first InexhaustiveMatch in raising mode; otherwise returns
        False if any check now fails.
        """
        ok = True
        for entry in self.entries_for(sealed_type):
            logger.debug(f"Re-checking {entry.describe()} after new variant of {sealed_type.__name__}")
            if not entry.check():
                ok = False
        return ok

    def _prune(self):
        self._entries = [ref for ref in self._entries if ref() is not None]

    def clear(self):
        self._entries.clear()


_match_registry = MatchRegistry()


def get_match_registry() -> MatchRegistry:
    """Get the global MatchRegistry singleton."""
    return _match_registry
