"""
pysealed - sealed class hierarchies with definition-time exhaustiveness checks
"""

from .errors import SealedError, ScopeViolation, InexhaustiveMatch
from .sealed import (
    sealed,
    is_sealed,
    sealed_info,
    variants_of,
    variant_for,
    tag_of,
    SealedInfo,
)
from .decorators import exhaustive
from .match_expr import MatchExpression, MatchArm, WILDCARD
from .logger import (
    logger,
    LogLevel,
    set_log_level,
    set_raise_on_error,
    collecting_errors,
)

__version__ = '0.1.0'

__all__ = [
    'SealedError',
    'ScopeViolation',
    'InexhaustiveMatch',
    'sealed',
    'is_sealed',
    'sealed_info',
    'variants_of',
    'variant_for',
    'tag_of',
    'SealedInfo',
    'exhaustive',
    'MatchExpression',
    'MatchArm',
    'WILDCARD',
    'logger',
    'LogLevel',
    'set_log_level',
    'set_raise_on_error',
    'collecting_errors',
]
