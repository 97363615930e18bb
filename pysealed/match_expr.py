"""
Match expressions over closed types

A MatchExpression is an ordered list of (class, handler) arms over a subject
type, optionally ending in a wildcard arm. It is checked for exhaustiveness
when constructed, re-checked whenever a new variant of a type it consulted
is declared, and dispatches through the variant tag table when called.

Example:
    greet = MatchExpression(Mammal, {
        Human: lambda h: f"Hello {h.name}",
        Cat: lambda c: f"Hello {c.name}",
    })
    greet(Cat("Lucy"))  # "Hello Lucy"
"""

import inspect
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from .builder import DispatchBuilder, DispatchPlan, NO_ARM, plan_dispatch
from .errors import InexhaustiveMatch
from .logger import logger
from .match_exhaustive import (
    NormalizedPattern,
    PatternMatrix,
    PatternNormalizer,
    PatternRow,
    is_exhaustive,
    report_inexhaustive,
)
from .registry import get_match_registry
from .sealed import is_sealed, variant_for, sealed_info
from .type_info import RuntimeTypeInfo
from .utils import find_caller_frame


class _Wildcard:
    def __repr__(self):
        return '_'


WILDCARD = _Wildcard()


@dataclass
class MatchArm:
    pattern: Optional[type]  # None for the wildcard arm
    handler: Callable[[Any], Any]

    def takes(self, cls: type) -> bool:
        return self.pattern is None or issubclass(cls, self.pattern)


ArmSpec = Union[Mapping[Any, Callable], Iterable[Tuple[Any, Callable]]]


class MatchExpression:
    """Checked multi-arm match over a value of ``subject_type``.

    Args:
        subject_type: Class of the values being matched
        arms: Mapping or sequence of (class or WILDCARD, handler) pairs, in order
        otherwise: Handler for the wildcard arm, appended after ``arms``
        name: Name used in diagnostics and lowered IR
    """

    def __init__(self, subject_type: type, arms: ArmSpec, otherwise: Optional[Callable] = None,
                 name: Optional[str] = None):
        if not inspect.isclass(subject_type):
            raise TypeError(f"Match subject must be a class, got {subject_type!r}")

        self.subject_type = subject_type
        self.name = name or f"match_{subject_type.__name__}"
        self.arms: List[MatchArm] = []

        items = arms.items() if isinstance(arms, Mapping) else arms
        for pattern, handler in items:
            self.arms.append(self._make_arm(pattern, handler))
        if otherwise is not None:
            self.arms.append(self._make_arm(WILDCARD, otherwise))

        frame = find_caller_frame()
        self.location = f"{frame.f_code.co_filename}:{frame.f_lineno}" if frame else None
        self.consulted = set()
        self.exhaustive: Optional[bool] = None
        self._plan: Optional[DispatchPlan] = None
        self._cache: Dict[type, Optional[MatchArm]] = {}

        self.check()
        get_match_registry().register(self)

    def _make_arm(self, pattern, handler) -> MatchArm:
        if not callable(handler):
            raise TypeError(f"Handler for {pattern!r} in {self.name} is not callable")
        if pattern is WILDCARD:
            return MatchArm(None, handler)
        if not inspect.isclass(pattern):
            raise TypeError(f"Arm pattern must be a class or WILDCARD, got {pattern!r}")
        return MatchArm(pattern, handler)

    def describe(self) -> str:
        return f"{self.name} ({self.location})" if self.location else self.name

    def _matrix(self, types: RuntimeTypeInfo) -> PatternMatrix:
        normalizer = PatternNormalizer(types)
        rows = []
        seen = set()
        for index, arm in enumerate(self.arms):
            if arm.pattern is None:
                pattern = NormalizedPattern.wildcard(self.subject_type)
            else:
                if arm.pattern in seen:
                    logger.warning(f"Arm {index} of {self.describe()} repeats {arm.pattern.__name__} "
                                   f"and can never run")
                seen.add(arm.pattern)
                if not (issubclass(arm.pattern, self.subject_type)
                        or issubclass(self.subject_type, arm.pattern)):
                    logger.warning(f"Arm {arm.pattern.__name__} of {self.describe()} can never match "
                                   f"a {self.subject_type.__name__}")
                pattern = normalizer.normalize_class(arm.pattern, self.subject_type)
            rows.append(PatternRow([pattern], False, None, index))
        return PatternMatrix(rows, [self.subject_type])

    def check(self) -> bool:
        """Check the arms against the subject's variant set."""
        types = RuntimeTypeInfo()
        matrix = self._matrix(types)
        exhaustive, uncovered = is_exhaustive(matrix, types)
        if not exhaustive:
            report_inexhaustive([self.subject_type], uncovered, types, location=self.location)
        self._plan = plan_dispatch(self.name, self.subject_type, matrix, types)
        self._cache.clear()
        self.consulted = types.consulted
        self.exhaustive = exhaustive
        return exhaustive

    @property
    def plan(self) -> DispatchPlan:
        return self._plan

    def lower(self, builder: Optional[DispatchBuilder] = None):
        """Lower the tag table to LLVM IR; returns the ir.Function."""
        builder = builder or DispatchBuilder(f"{self.name}.module")
        return builder.add_plan(self.plan)

    def _scan(self, cls: type) -> Optional[MatchArm]:
        for arm in self.arms:
            if arm.takes(cls):
                return arm
        return None

    def arm_for(self, cls: type) -> Optional[MatchArm]:
        """First arm that takes values of ``cls``."""
        if cls in self._cache:
            return self._cache[cls]

        arm = None
        resolved = False
        if is_sealed(self.subject_type):
            variant = variant_for(cls, self.subject_type)
            if variant is not None:
                index = self.plan.lookup(sealed_info(self.subject_type).variants.index(variant))
                if index >= 0:
                    arm = self.arms[index]
                    resolved = True
                elif index == NO_ARM:
                    resolved = True
        if not resolved:
            arm = self._scan(cls)

        self._cache[cls] = arm
        return arm

    def __call__(self, value):
        if not isinstance(value, self.subject_type):
            raise TypeError(f"{self.name} expects a {self.subject_type.__name__}, "
                            f"got {type(value).__name__}")
        arm = self.arm_for(type(value))
        if arm is None:
            msg = f"No arm of {self.describe()} matches {type(value).__name__}"
            raise InexhaustiveMatch(msg, subject=self.subject_type,
                                    uncovered=[f"{type(value).__name__}()"])
        return arm.handler(value)

    def __repr__(self):
        return f"<MatchExpression {self.name} over {self.subject_type.__name__} with {len(self.arms)} arms>"
