"""
Match exhaustiveness checking

This module implements exhaustiveness checking for match constructs using
a pattern matrix algorithm (Maranget-style).

Key design decisions:
- Every finite type (bool, Enum, sealed class) is split into its constructors;
  a sealed variant that is itself sealed is a constructor with one sub-column
  of its own type, so nested hierarchies are handled by the same recursion
- Guards are treated as potentially False (conservative but sound)
- Wildcard and variable bindings are equivalent for exhaustiveness
- Type questions go through a TypeInfo oracle so the same algorithm runs on
  live classes and on statically scanned source
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Any
from enum import Enum as PyEnum
import ast

from .errors import InexhaustiveMatch
from .logger import logger


# Upper bound on reported witnesses per match
MAX_WITNESSES = 8


class PatternKind(PyEnum):
    """Kinds of normalized patterns"""
    WILDCARD = "wildcard"      # _ or variable binding
    LITERAL = "literal"        # concrete value (42, "x", None, ...)
    CONSTRUCTOR = "constructor"  # bool value, enum member or sealed variant
    OR = "or"                  # disjunction of patterns
    PARTIAL = "partial"        # matches some values that cannot be enumerated


@dataclass
class NormalizedPattern:
    """Normalized pattern for exhaustiveness checking.

    Captures pattern semantics without AST-specific details.
    """
    kind: PatternKind
    # For LITERAL: the value
    value: Optional[Any] = None
    # For CONSTRUCTOR: tag/variant info + sub-patterns
    constructor_tag: Optional[int] = None
    constructor_name: Optional[str] = None
    sub_patterns: List['NormalizedPattern'] = field(default_factory=list)
    # For OR: list of alternatives
    alternatives: List['NormalizedPattern'] = field(default_factory=list)
    # Type information for this pattern position
    type_info: Optional[Any] = None

    @staticmethod
    def wildcard(type_info: Any = None) -> 'NormalizedPattern':
        return NormalizedPattern(kind=PatternKind.WILDCARD, type_info=type_info)

    @staticmethod
    def literal(value: Any, type_info: Any = None) -> 'NormalizedPattern':
        return NormalizedPattern(kind=PatternKind.LITERAL, value=value, type_info=type_info)

    @staticmethod
    def partial(type_info: Any = None) -> 'NormalizedPattern':
        return NormalizedPattern(kind=PatternKind.PARTIAL, type_info=type_info)

    @staticmethod
    def constructor(tag: int, name: str, subs: List['NormalizedPattern'],
                    type_info: Any = None) -> 'NormalizedPattern':
        return NormalizedPattern(
            kind=PatternKind.CONSTRUCTOR,
            constructor_tag=tag,
            constructor_name=name,
            sub_patterns=subs or [],
            type_info=type_info
        )

    @staticmethod
    def or_pattern(alternatives: List['NormalizedPattern'],
                   type_info: Any = None) -> 'NormalizedPattern':
        return NormalizedPattern(
            kind=PatternKind.OR,
            alternatives=alternatives,
            type_info=type_info
        )

    def is_wildcard(self) -> bool:
        return self.kind == PatternKind.WILDCARD


@dataclass
class PatternRow:
    """A row in the pattern matrix (one case clause)."""
    patterns: List[NormalizedPattern]  # One per column (subject component)
    has_guard: bool = False
    original_case: Optional[Any] = None  # ast.match_case for error reporting
    arm_index: int = -1  # position of the case clause or arm


@dataclass
class PatternMatrix:
    """Matrix of patterns for exhaustiveness checking.

    Rows = case clauses
    Columns = subject components (for multi-subject matches and sub-patterns)
    """
    rows: List[PatternRow]
    column_types: List[Any]  # Type of each column

    def is_empty(self) -> bool:
        """No rows = no patterns."""
        return len(self.rows) == 0


class TypeInfo:
    """Oracle answering type questions for exhaustiveness checking.

    Types are opaque to the algorithm; ``None`` stands for an unknown type,
    which is never finite.
    """

    def is_finite(self, t) -> bool:
        raise NotImplementedError

    def is_bool(self, t) -> bool:
        return False

    def type_name(self, t) -> str:
        if t is None:
            return 'unknown'
        return getattr(t, '__name__', str(t))

    def get_all_constructors(self, t) -> List[Tuple[int, str, List[Any]]]:
        """Return (tag, name, sub_types) for every constructor of a finite type."""
        raise NotImplementedError

    def get_constructor_sub_types(self, t, tag: int) -> List[Any]:
        for ctor_tag, _name, sub_types in self.get_all_constructors(t):
            if ctor_tag == tag:
                return list(sub_types)
        return []

    def describe_constructor(self, t, tag: int, sub_witnesses: List[str]) -> str:
        raise NotImplementedError

    # Pattern resolution

    def resolve_class(self, node: ast.expr):
        """Resolve the class named in a class pattern, or None."""
        return None

    def resolve_member(self, node: ast.expr) -> Optional[Tuple[Any, int]]:
        """Resolve a value pattern naming an enum member to (enum type, tag)."""
        return None

    def covers(self, cls, subject) -> bool:
        """True if every value of ``subject`` is an instance of ``cls``."""
        return cls is not None and cls is subject

    def variant_tag_for(self, cls, subject) -> Optional[int]:
        """Tag of the direct variant of sealed ``subject`` that ``cls`` is or descends from."""
        return None

    def variant_of(self, subject, tag: int):
        raise NotImplementedError

    def is_sealed(self, t) -> bool:
        return False

    def match_fields(self, cls) -> List[str]:
        """Positional sub-pattern field names (``__match_args__``)."""
        return []


def format_witness(witness: List[str]) -> str:
    if len(witness) == 1:
        return witness[0]
    return '(' + ', '.join(witness) + ')'


def is_exhaustive(matrix: PatternMatrix, types: TypeInfo) -> Tuple[bool, List[str]]:
    """Check if pattern matrix is exhaustive.

    Guarded rows never count towards coverage.

    Returns (is_exhaustive, list_of_uncovered_patterns).
    """
    unguarded = PatternMatrix([r for r in matrix.rows if not r.has_guard], matrix.column_types)
    witnesses = find_uncovered(unguarded, types)
    return (len(witnesses) == 0, [format_witness(w) for w in witnesses])


def find_uncovered(matrix: PatternMatrix, types: TypeInfo) -> List[List[str]]:
    """Return witness vectors (one string per column) of values no row matches."""
    n_cols = len(matrix.column_types)
    if n_cols == 0:
        # No columns left = exhaustive if any row survived
        return [] if matrix.rows else [[]]

    if matrix.is_empty():
        return [['_'] * n_cols]

    matrix = expand_or_rows(matrix)
    col_type = matrix.column_types[0]

    if types.is_finite(col_type):
        used = {r.patterns[0].constructor_tag for r in matrix.rows
                if r.patterns[0].kind == PatternKind.CONSTRUCTOR}
        witnesses = []
        default_witnesses = None
        for tag, _name, sub_types in types.get_all_constructors(col_type):
            arity = len(sub_types)
            if tag in used:
                specialized = specialize(matrix, types, col_type, tag)
                for w in find_uncovered(specialized, types):
                    head = types.describe_constructor(col_type, tag, w[:arity])
                    witnesses.append([head] + w[arity:])
            else:
                # No row names this constructor: only catch-all rows reach it
                if default_witnesses is None:
                    default_witnesses = find_uncovered(specialize_default(matrix), types)
                for w in default_witnesses:
                    head = types.describe_constructor(col_type, tag, ['_'] * arity)
                    witnesses.append([head] + w)
            if len(witnesses) >= MAX_WITNESSES:
                return witnesses[:MAX_WITNESSES]
        return witnesses

    # Infinite or open type: only catch-all rows can cover the column
    remaining = specialize_default(matrix)
    return [['_'] + w for w in find_uncovered(remaining, types)][:MAX_WITNESSES]


def expand_or_rows(matrix: PatternMatrix) -> PatternMatrix:
    """Split rows whose first pattern is an or-pattern into one row per alternative."""
    if not any(r.patterns[0].kind == PatternKind.OR for r in matrix.rows):
        return matrix

    def flatten(p: NormalizedPattern) -> List[NormalizedPattern]:
        if p.kind != PatternKind.OR:
            return [p]
        result = []
        for alt in p.alternatives:
            result.extend(flatten(alt))
        return result

    new_rows = []
    for row in matrix.rows:
        for alt in flatten(row.patterns[0]):
            new_rows.append(PatternRow([alt] + row.patterns[1:], row.has_guard, row.original_case, row.arm_index))
    return PatternMatrix(new_rows, matrix.column_types)


def specialize(matrix: PatternMatrix, types: TypeInfo, col_type: Any,
               constructor_tag: int) -> PatternMatrix:
    """Specialize matrix for a specific constructor.

    - Keep rows where first column matches constructor or is wildcard
    - Replace first column with constructor's sub-patterns
    """
    new_rows = []
    sub_types = types.get_constructor_sub_types(col_type, constructor_tag)
    arity = len(sub_types)

    for row in matrix.rows:
        first = row.patterns[0]

        if first.kind == PatternKind.CONSTRUCTOR and first.constructor_tag == constructor_tag:
            subs = list(first.sub_patterns[:arity])
            while len(subs) < arity:
                subs.append(NormalizedPattern.wildcard(sub_types[len(subs)]))
            new_rows.append(PatternRow(subs + row.patterns[1:], row.has_guard, row.original_case, row.arm_index))

        elif first.is_wildcard():
            # Wildcard matches any constructor: expand with wildcards for sub-patterns
            wildcards = [NormalizedPattern.wildcard(t) for t in sub_types]
            new_rows.append(PatternRow(wildcards + row.patterns[1:], row.has_guard, row.original_case, row.arm_index))
        # Otherwise: row doesn't match this constructor

    return PatternMatrix(new_rows, list(sub_types) + matrix.column_types[1:])


def specialize_default(matrix: PatternMatrix) -> PatternMatrix:
    """Default specialization: keep rows with wildcard in first column."""
    new_rows = []
    for row in matrix.rows:
        if row.patterns[0].is_wildcard():
            new_rows.append(PatternRow(row.patterns[1:], row.has_guard, row.original_case, row.arm_index))

    return PatternMatrix(new_rows, matrix.column_types[1:])


class PatternNormalizer:
    """Convert AST patterns and arm classes to normalized form."""

    def __init__(self, types: TypeInfo):
        self.types = types

    def normalize(self, pattern: ast.pattern, subject_type: Any) -> NormalizedPattern:
        """Convert AST pattern to normalized form."""

        # MatchAs: wildcard or binding (possibly with sub-pattern)
        if isinstance(pattern, ast.MatchAs):
            if pattern.pattern is None:
                # case _: or case x: - both are wildcards for exhaustiveness
                return NormalizedPattern.wildcard(subject_type)
            return self.normalize(pattern.pattern, subject_type)

        # MatchSingleton: True, False, None
        if isinstance(pattern, ast.MatchSingleton):
            if self.types.is_bool(subject_type) and isinstance(pattern.value, bool):
                tag = 1 if pattern.value else 0
                return NormalizedPattern.constructor(tag, str(pattern.value), [], subject_type)
            return NormalizedPattern.literal(pattern.value, subject_type)

        # MatchValue: enum member or literal value
        if isinstance(pattern, ast.MatchValue):
            member = self.types.resolve_member(pattern.value)
            if member is not None:
                enum_type, tag = member
                if enum_type is subject_type:
                    return NormalizedPattern.constructor(tag, str(tag), [], subject_type)
                return NormalizedPattern.partial(subject_type)
            if isinstance(pattern.value, ast.Constant):
                return NormalizedPattern.literal(pattern.value.value, subject_type)
            return NormalizedPattern.partial(subject_type)

        # MatchOr: expand into alternatives
        if isinstance(pattern, ast.MatchOr):
            alts = [self.normalize(p, subject_type) for p in pattern.patterns]
            return NormalizedPattern.or_pattern(alts, subject_type)

        # MatchClass: variant pattern
        if isinstance(pattern, ast.MatchClass):
            cls = self.types.resolve_class(pattern.cls)
            if cls is None:
                logger.warning(f"Cannot resolve class pattern '{ast.unparse(pattern.cls)}'",
                               node=pattern)
                return NormalizedPattern.partial(subject_type)
            keywords = list(zip(pattern.kwd_attrs, pattern.kwd_patterns))
            return self.normalize_class(cls, subject_type, pattern.patterns, keywords)

        # Sequence, mapping and star patterns never cover a closed type
        return NormalizedPattern.partial(subject_type)

    def normalize_class(self, cls: Any, subject_type: Any,
                        positional=(), keywords=()) -> NormalizedPattern:
        """Normalize a class pattern ``cls(*positional, **keywords)`` against a subject type."""
        types = self.types
        if subject_type is None:
            return NormalizedPattern.partial(subject_type)

        # cls(...) where every subject value is a cls instance
        if types.covers(cls, subject_type):
            subs = [self.normalize(p, None) for p in positional]
            subs += [self.normalize(p, None) for _attr, p in keywords]
            if all(s.is_wildcard() for s in subs):
                return NormalizedPattern.wildcard(subject_type)
            return NormalizedPattern.partial(subject_type)

        tag = types.variant_tag_for(cls, subject_type)
        if tag is None:
            return NormalizedPattern.partial(subject_type)

        variant = types.variant_of(subject_type, tag)
        name = types.type_name(variant)
        if types.is_sealed(variant):
            # Nested hierarchy: one sub-column typed by the variant itself
            inner = self.normalize_class(cls, variant, positional, keywords)
            return NormalizedPattern.constructor(tag, name, [inner], subject_type)

        if cls is not variant:
            # Subclass of a non-sealed variant covers only part of it
            return NormalizedPattern.partial(subject_type)

        fields = types.match_fields(variant)
        sub_types = types.get_constructor_sub_types(subject_type, tag)
        subs = [NormalizedPattern.wildcard(t) for t in sub_types]
        if len(positional) > len(fields):
            return NormalizedPattern.partial(subject_type)
        for i, sub_pat in enumerate(positional):
            subs[i] = self.normalize(sub_pat, sub_types[i])
        for attr, sub_pat in keywords:
            if attr in fields:
                idx = fields.index(attr)
                subs[idx] = self.normalize(sub_pat, sub_types[idx])
            elif not self.normalize(sub_pat, None).is_wildcard():
                # Refutable pattern on an attribute we cannot enumerate
                return NormalizedPattern.partial(subject_type)
        return NormalizedPattern.constructor(tag, name, subs, subject_type)

    def case_rows(self, pattern: ast.pattern, subject_types: List[Any]) -> List[List[NormalizedPattern]]:
        """Normalize one case pattern into matrix rows (or-patterns over tuples split)."""
        if len(subject_types) == 1:
            return [[self.normalize(pattern, subject_types[0])]]

        if isinstance(pattern, ast.MatchAs):
            if pattern.pattern is None:
                return [[NormalizedPattern.wildcard(t) for t in subject_types]]
            return self.case_rows(pattern.pattern, subject_types)

        if isinstance(pattern, ast.MatchOr):
            rows = []
            for alt in pattern.patterns:
                rows.extend(self.case_rows(alt, subject_types))
            return rows

        if (isinstance(pattern, ast.MatchSequence)
                and len(pattern.patterns) == len(subject_types)
                and not any(isinstance(p, ast.MatchStar) for p in pattern.patterns)):
            return [[self.normalize(p, t) for p, t in zip(pattern.patterns, subject_types)]]

        return [[NormalizedPattern.partial(t) for t in subject_types]]


def build_match_matrix(node: ast.Match, subject_types: List[Any], types: TypeInfo) -> PatternMatrix:
    """Pattern matrix of a match statement, one row per case (or-patterns over tuples split)."""
    normalizer = PatternNormalizer(types)
    rows = []
    for index, case in enumerate(node.cases):
        has_guard = case.guard is not None
        for row_patterns in normalizer.case_rows(case.pattern, subject_types):
            rows.append(PatternRow(row_patterns, has_guard, case, index))
    return PatternMatrix(rows, list(subject_types))


def check_match_exhaustiveness(node: ast.Match, subject_types: List[Any],
                               types: TypeInfo) -> bool:
    """Check if a match statement is exhaustive.

    Reports InexhaustiveMatch through the logger if not (raising by default).

    Args:
        node: ast.Match node
        subject_types: List of types for subjects (None for unknown)
        types: Type oracle used to resolve patterns and enumerate variants
    """
    # Fast path: unguarded catch-all = exhaustive
    for case in node.cases:
        pattern = case.pattern
        if isinstance(pattern, ast.MatchAs) and pattern.pattern is None:
            if case.guard is None:
                return True

    matrix = build_match_matrix(node, subject_types, types)
    exhaustive, uncovered = is_exhaustive(matrix, types)
    if exhaustive:
        return True

    has_guards = any(c.guard is not None for c in node.cases)
    report_inexhaustive(subject_types, uncovered, types, node=node, has_guards=has_guards)
    return False


def report_inexhaustive(subject_types: List[Any], uncovered: List[str], types: TypeInfo,
                        node=None, has_guards: bool = False, location: Optional[str] = None):
    """Build the InexhaustiveMatch message and hand it to the logger."""
    if len(subject_types) == 1:
        subject_name = types.type_name(subject_types[0])
        subject = subject_types[0]
    else:
        subject_name = '(' + ', '.join(types.type_name(t) for t in subject_types) + ')'
        subject = tuple(subject_types)

    msg = f"Non-exhaustive match over {subject_name}."
    if uncovered:
        msg += f" Uncovered cases: {', '.join(uncovered)}"

    open_types = [t for t in subject_types if t is not None and not types.is_finite(t)]
    if open_types:
        names = ', '.join(types.type_name(t) for t in open_types)
        msg += (f"\nNote: {names} is not a closed type, so values outside the listed cases may exist. "
                "Add a wildcard case (_).")
    if has_guards:
        msg += "\nNote: Guard conditions (if clauses) are treated as potentially False. "
        msg += "Add a wildcard case (_) to ensure exhaustiveness."

    err = InexhaustiveMatch(msg, subject=subject, uncovered=uncovered, location=location)
    logger.error(msg, node=node, exc=err)
