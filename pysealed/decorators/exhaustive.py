# -*- coding: utf-8 -*-
import ast
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..match_exhaustive import check_match_exhaustiveness
from ..registry import get_match_registry
from ..type_info import RuntimeTypeInfo
from ..utils import (
    find_caller_frame,
    get_all_accessible_symbols,
    get_function_file_and_source,
    get_function_start_line,
)
from ..logger import logger, source_context


_FunctionNode = (ast.FunctionDef, ast.AsyncFunctionDef)


class MatchCollector(ast.NodeVisitor):
    """Collect match statements with the chain of functions enclosing them."""

    def __init__(self):
        self.matches: List[Tuple[ast.Match, List[ast.AST]]] = []
        self._funcs: List[ast.AST] = []

    def visit_FunctionDef(self, node):
        self._funcs.append(node)
        self.generic_visit(node)
        self._funcs.pop()

    visit_AsyncFunctionDef = visit_FunctionDef

    def visit_Match(self, node):
        self.matches.append((node, list(self._funcs)))
        self.generic_visit(node)


def local_annotations(func_node) -> Dict[str, ast.expr]:
    """Annotations of parameters and annotated assignments in one function body.

    Nested functions are not searched; the first annotation of a name wins.
    """
    annotations: Dict[str, ast.expr] = {}
    args = func_node.args
    for arg in args.posonlyargs + args.args + args.kwonlyargs:
        if arg.annotation is not None:
            annotations.setdefault(arg.arg, arg.annotation)

    stack = list(func_node.body)
    while stack:
        node = stack.pop(0)
        if isinstance(node, _FunctionNode) or isinstance(node, ast.ClassDef):
            continue
        if isinstance(node, ast.AnnAssign) and isinstance(node.target, ast.Name):
            annotations.setdefault(node.target.id, node.annotation)
        stack.extend(ast.iter_child_nodes(node))
    return annotations


def annotation_for(name: str, funcs: List[ast.AST]) -> Optional[ast.expr]:
    """Find the annotation of ``name`` in the innermost enclosing function that has one."""
    for func_node in reversed(funcs):
        annotations = local_annotations(func_node)
        if name in annotations:
            return annotations[name]
    return None


def subject_expressions(node: ast.Match) -> List[ast.expr]:
    if isinstance(node.subject, ast.Tuple):
        return list(node.subject.elts)
    return [node.subject]


class CheckedFunction:
    """A function whose match statements are checked for exhaustiveness.

    Attributes:
        qualname: Qualified name of the function
        source_file: File the function was read from
        start_line: First line of the function (decorators included)
        matches: (match node, enclosing function nodes) pairs
        consulted: Sealed classes read by the last successful check
        exhaustive: Result of the last check, None before the first one
    """

    def __init__(self, qualname: str, func_ast, namespace: Mapping[str, Any],
                 source_file: str, start_line: int):
        self.qualname = qualname
        self.func_ast = func_ast
        self.namespace = namespace
        self.source_file = source_file
        self.start_line = start_line
        collector = MatchCollector()
        collector.visit(func_ast)
        self.matches = collector.matches
        self.consulted = set()
        self.exhaustive: Optional[bool] = None

    def describe(self) -> str:
        return f"{self.qualname} ({self.source_file}:{self.start_line})"

    def subject_types(self, node: ast.Match, funcs, types: RuntimeTypeInfo) -> List[Any]:
        result = []
        for expr in subject_expressions(node):
            subject_type = None
            if isinstance(expr, ast.Name):
                annotation = annotation_for(expr.id, funcs)
                if annotation is not None:
                    subject_type = types.resolve_class(annotation)
            result.append(subject_type)
        return result

    def check(self) -> bool:
        """Check every match statement; raises InexhaustiveMatch in raising mode."""
        types = RuntimeTypeInfo(self.namespace)
        ok = True
        with source_context(self.source_file, self.start_line - 1):
            for node, funcs in self.matches:
                subject_types = self.subject_types(node, funcs, types)
                logger.debug(f"Checking match in {self.qualname}", node=node,
                             subjects=[types.type_name(t) for t in subject_types])
                if not check_match_exhaustiveness(node, subject_types, types):
                    ok = False
        self.consulted = types.consulted
        self.exhaustive = ok
        return ok


def exhaustive(func=None):
    """
    Check every match statement in a function when it is defined.

    The subject of each match gets its type from a parameter annotation or
    an annotated local assignment. Matches over sealed classes, enums and
    bool must cover every value or have a wildcard case; matches over any
    other type need a wildcard case.

    Raises:
        InexhaustiveMatch: at definition time, for the first incomplete match
    """
    if func is None:
        return exhaustive

    if isinstance(func, (staticmethod, classmethod)):
        exhaustive(func.__func__)
        return func

    caller_frame = find_caller_frame()
    source_file, source_code = get_function_file_and_source(func)
    start_line = get_function_start_line(func)

    try:
        func_ast = ast.parse(source_code).body[0]
    except SyntaxError as e:
        raise RuntimeError(f"Failed to parse function {func.__name__}: {e}")
    if not isinstance(func_ast, _FunctionNode):
        raise RuntimeError(f"Expected FunctionDef, got {type(func_ast).__name__}")

    namespace = get_all_accessible_symbols(func, caller_frame)
    checked = CheckedFunction(func.__qualname__, func_ast, namespace, source_file, start_line)
    checked.check()

    func.__pysealed_check__ = checked
    get_match_registry().register(checked)
    return func
