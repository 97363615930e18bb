"""
Static checking of source trees

Runs the same exhaustiveness algorithm as the decorators, but over class
declarations read from source instead of live classes. Nothing is imported.
"""

import ast
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..builder import DispatchPlan, plan_dispatch
from ..decorators.exhaustive import MatchCollector, annotation_for, subject_expressions
from ..errors import ScopeViolation, SealedError
from ..logger import collecting_errors, logger, source_context
from ..match_exhaustive import TypeInfo, build_match_matrix, check_match_exhaustiveness
from .index import BOOL, ClassDecl, EnumMember, ProjectIndex, iter_python_files


class StaticTypeInfo(TypeInfo):
    """Type oracle over indexed declarations, resolving names from one module."""

    def __init__(self, index: ProjectIndex, module: str):
        self.index = index
        self.module = module

    def is_bool(self, t) -> bool:
        return t is BOOL

    def is_sealed(self, t) -> bool:
        return isinstance(t, ClassDecl) and t.sealed

    def is_finite(self, t) -> bool:
        if t is BOOL:
            return True
        return isinstance(t, ClassDecl) and (t.sealed or t.is_enum)

    def type_name(self, t) -> str:
        if t is None:
            return 'unknown'
        return t.name

    def get_all_constructors(self, t) -> List[Tuple[int, str, List[Any]]]:
        if t is BOOL:
            return [(1, "True", []), (0, "False", [])]
        if not isinstance(t, ClassDecl):
            return []
        if t.is_enum:
            return [(i, name, []) for i, name in enumerate(t.members)]
        if t.sealed:
            return [(tag, v.name, self._variant_sub_types(v)) for tag, v in enumerate(t.variants)]
        return []

    def _variant_sub_types(self, variant: ClassDecl) -> List[Any]:
        if variant.sealed:
            return [variant]
        result = []
        for name in variant.match_args():
            annotation = variant.field_annotation(name)
            resolved = self.index.resolve(annotation, variant.module) if annotation is not None else None
            result.append(resolved if resolved is BOOL or isinstance(resolved, ClassDecl) else None)
        return result

    def describe_constructor(self, t, tag: int, sub_witnesses: List[str]) -> str:
        if t is BOOL:
            return "True" if tag == 1 else "False"
        if t.is_enum:
            return f"{t.name}.{t.members[tag]}"

        variant = self.variant_of(t, tag)
        if variant.sealed:
            if sub_witnesses and sub_witnesses[0] != '_':
                return sub_witnesses[0]
            return f"{variant.name}()"
        parts = [f"{f}={w}" for f, w in zip(variant.match_args(), sub_witnesses) if w != '_']
        return f"{variant.name}({', '.join(parts)})"

    def resolve_class(self, node: ast.expr):
        resolved = self.index.resolve(node, self.module)
        if resolved is BOOL or isinstance(resolved, ClassDecl):
            return resolved
        return None

    def resolve_member(self, node: ast.expr) -> Optional[Tuple[Any, int]]:
        resolved = self.index.resolve(node, self.module)
        if isinstance(resolved, EnumMember):
            return resolved.decl, resolved.index
        return None

    def covers(self, cls, subject) -> bool:
        if cls is None or subject is None:
            return False
        if cls is subject:
            return True
        return isinstance(subject, ClassDecl) and any(a is cls for a in subject.ancestors())

    def variant_tag_for(self, cls, subject) -> Optional[int]:
        if not self.is_sealed(subject) or not isinstance(cls, ClassDecl):
            return None
        lineage = [cls] + cls.ancestors()
        for tag, variant in enumerate(subject.variants):
            if any(c is variant for c in lineage):
                return tag
        return None

    def variant_of(self, subject, tag: int):
        return subject.variants[tag]

    def match_fields(self, cls) -> List[str]:
        if isinstance(cls, ClassDecl):
            return cls.match_args()
        return []


@dataclass
class CheckReport:
    """Outcome of a static check.

    Attributes:
        diagnostics: Every ScopeViolation and InexhaustiveMatch found
        plans: Dispatch plans of single-subject matches over closed types, per source file
        checked: Number of match statements checked
    """
    diagnostics: List[SealedError] = field(default_factory=list)
    plans: Dict[str, List[DispatchPlan]] = field(default_factory=dict)
    checked: int = 0

    @property
    def ok(self) -> bool:
        return not self.diagnostics


def _scope_violations(index: ProjectIndex):
    for decl in index.classes():
        for base in decl.base_decls:
            if not base.sealed or base.boundary_contains(decl.module):
                continue
            path = index.modules[decl.module].path
            boundary = f"package {base.boundary}" if base.boundary else f"module {base.module}"
            msg = (f"Cannot declare {decl.qualname} as a variant of sealed class {base.name} "
                   f"in {decl.module}: variants must be declared in {boundary}")
            err = ScopeViolation(msg, sealed_type=base.name, variant=decl.name,
                                 module=decl.module, location=f"{path}:{decl.lineno}")
            logger.error(msg, exc=err)


def _is_checked_subject(t) -> bool:
    return t is BOOL or isinstance(t, ClassDecl)


def _match_name(module: str, funcs, position: int) -> str:
    scope = '.'.join(f.name for f in funcs) or '<module>'
    return f"{module}.{scope}.match{position}"


def check_index(index: ProjectIndex, report: CheckReport):
    """Check every module in an index, appending to ``report``."""
    index.finalize()
    _scope_violations(index)

    for module_name, info in index.modules.items():
        types = StaticTypeInfo(index, module_name)
        collector = MatchCollector()
        collector.visit(info.tree)

        with source_context(info.path, 0):
            for position, (node, funcs) in enumerate(collector.matches):
                subject_types = []
                for expr in subject_expressions(node):
                    annotation = annotation_for(expr.id, funcs) if isinstance(expr, ast.Name) else None
                    subject_types.append(types.resolve_class(annotation) if annotation is not None else None)

                # Matches over builtin or third-party types are left to the author
                if not any(_is_checked_subject(t) for t in subject_types):
                    continue

                report.checked += 1
                logger.debug(f"Checking match in {module_name}", node=node,
                             subjects=[types.type_name(t) for t in subject_types])
                check_match_exhaustiveness(node, subject_types, types)

                if len(subject_types) == 1 and types.is_finite(subject_types[0]):
                    matrix = build_match_matrix(node, subject_types, types)
                    plan = plan_dispatch(_match_name(module_name, funcs, position),
                                         subject_types[0], matrix, types)
                    report.plans.setdefault(info.path, []).append(plan)


def check_paths(paths: List[str]) -> CheckReport:
    """Index files and directories, then check them without raising.

    Syntax errors in a file are reported as diagnostics of kind 'syntax-error'.
    """
    report = CheckReport()
    index = ProjectIndex()
    with collecting_errors(quiet=True) as errors:
        for path in paths:
            for filename in iter_python_files(path):
                try:
                    index.add_file(filename)
                except SyntaxError as e:
                    err = SealedError(f"Cannot parse: {e.msg}", kind='syntax-error',
                                      location=f"{filename}:{e.lineno}")
                    logger.error(err.message, exc=err)
        check_index(index, report)
        report.diagnostics.extend(errors)
    return report
