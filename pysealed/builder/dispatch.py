"""
Dispatch plans: a match over a closed type as a table from variant tag to arm.

A plan is what a ``switch`` over the tag needs. Each entry is the index of
the first arm that takes every value of that variant, RUNTIME_TEST when an
earlier arm only takes some of them (guards, sub-patterns, subclasses), or
NO_ARM when nothing handles the variant.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional

from ..match_exhaustive import (
    PatternKind,
    PatternMatrix,
    TypeInfo,
    expand_or_rows,
)


RUNTIME_TEST = -1
NO_ARM = -2


@dataclass
class DispatchPlan:
    name: str
    subject_name: str
    variant_names: List[str] = field(default_factory=list)
    arm_for_tag: List[int] = field(default_factory=list)
    default_arm: Optional[int] = None

    @property
    def all_tags_routed(self) -> bool:
        """Every tag reaches an arm or a runtime test; says nothing about coverage."""
        return self.default_arm is not None or NO_ARM not in self.arm_for_tag

    def lookup(self, tag: Optional[int]) -> int:
        if tag is None or not 0 <= tag < len(self.arm_for_tag):
            return self.default_arm if self.default_arm is not None else NO_ARM
        return self.arm_for_tag[tag]


def _entry_for(matrix: PatternMatrix, tag: int) -> int:
    for row in matrix.rows:
        first = row.patterns[0]
        if first.is_wildcard():
            return RUNTIME_TEST if row.has_guard else row.arm_index
        if first.kind == PatternKind.CONSTRUCTOR:
            if first.constructor_tag != tag:
                continue
            if row.has_guard or not all(s.is_wildcard() for s in first.sub_patterns):
                return RUNTIME_TEST
            return row.arm_index
        if first.kind == PatternKind.PARTIAL:
            # Cannot tell which variants it takes
            return RUNTIME_TEST
        # Literals never equal a variant instance
    return NO_ARM


def plan_dispatch(name: str, subject_type: Any, matrix: PatternMatrix,
                  types: TypeInfo) -> DispatchPlan:
    """Build the tag table of a single-subject match matrix."""
    plan = DispatchPlan(name=name, subject_name=types.type_name(subject_type))
    if len(matrix.column_types) != 1:
        raise ValueError("dispatch plans need a single-subject match")

    matrix = expand_or_rows(matrix)
    for row in matrix.rows:
        if row.patterns[0].is_wildcard() and not row.has_guard:
            plan.default_arm = row.arm_index
            break

    if types.is_finite(subject_type):
        for tag, ctor_name, _sub_types in sorted(types.get_all_constructors(subject_type)):
            plan.variant_names.append(ctor_name)
            plan.arm_for_tag.append(_entry_for(matrix, tag))
    return plan
