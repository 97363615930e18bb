"""
Type oracle over live Python objects.

Finite types are ``bool``, ``Enum`` subclasses (except ``Flag``) and sealed
classes; everything else is open and needs a wildcard arm.
"""

import ast
import enum
import inspect
import typing
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .match_exhaustive import TypeInfo
from .sealed import is_sealed, sealed_info


def _is_enum(t) -> bool:
    return inspect.isclass(t) and issubclass(t, enum.Enum) and not issubclass(t, enum.Flag)


class RuntimeTypeInfo(TypeInfo):
    """Answers exhaustiveness questions about classes that exist at runtime.

    Attributes:
        namespace: Mapping used to resolve names in patterns and annotations
        consulted: Sealed classes whose variant set was read; a new variant
            in any of them invalidates the result
    """

    def __init__(self, namespace: Optional[Mapping[str, Any]] = None):
        self.namespace = namespace if namespace is not None else {}
        self.consulted = set()
        self._ctor_cache: Dict[Any, List[Tuple[int, str, List[Any]]]] = {}

    def is_bool(self, t) -> bool:
        return t is bool

    def is_sealed(self, t) -> bool:
        return is_sealed(t)

    def is_finite(self, t) -> bool:
        if t is None:
            return False
        return t is bool or _is_enum(t) or is_sealed(t)

    def get_all_constructors(self, t) -> List[Tuple[int, str, List[Any]]]:
        if t in self._ctor_cache:
            return self._ctor_cache[t]

        if t is bool:
            result = [(1, "True", []), (0, "False", [])]
        elif _is_enum(t):
            result = [(i, member.name, []) for i, member in enumerate(t)]
        elif is_sealed(t):
            self.consulted.add(t)
            result = [(tag, v.__name__, self._variant_sub_types(v))
                      for tag, v in enumerate(sealed_info(t).variants)]
        else:
            result = []

        self._ctor_cache[t] = result
        return result

    def _variant_sub_types(self, variant) -> List[Any]:
        if is_sealed(variant):
            return [variant]
        fields = self.match_fields(variant)
        if not fields:
            return []
        hints = self.field_types(variant)
        return [hints.get(f) for f in fields]

    def field_types(self, cls) -> Dict[str, Any]:
        """Annotated field types that are classes; anything else counts as unknown."""
        try:
            hints = typing.get_type_hints(cls)
        except (NameError, TypeError, AttributeError):
            # Unresolvable forward reference: every field counts as unknown
            return {}
        # Option[int] counts as Option
        hints = {name: typing.get_origin(h) or h for name, h in hints.items()}
        return {name: h for name, h in hints.items() if inspect.isclass(h)}

    def describe_constructor(self, t, tag: int, sub_witnesses: List[str]) -> str:
        if t is bool:
            return "True" if tag == 1 else "False"

        if _is_enum(t):
            return f"{t.__name__}.{list(t)[tag].name}"

        variant = self.variant_of(t, tag)
        if is_sealed(variant):
            if sub_witnesses and sub_witnesses[0] != '_':
                return sub_witnesses[0]
            return f"{variant.__name__}()"
        fields = self.match_fields(variant)
        parts = [f"{f}={w}" for f, w in zip(fields, sub_witnesses) if w != '_']
        return f"{variant.__name__}({', '.join(parts)})"

    def resolve_expr(self, node: ast.expr) -> Any:
        """Evaluate a dotted name (or a string holding one) against the namespace."""
        if isinstance(node, ast.Name):
            return self.namespace.get(node.id)
        if isinstance(node, ast.Attribute):
            base = self.resolve_expr(node.value)
            if base is None:
                return None
            return getattr(base, node.attr, None)
        if isinstance(node, ast.Constant) and isinstance(node.value, str):
            try:
                parsed = ast.parse(node.value, mode='eval').body
            except SyntaxError:
                return None
            return self.resolve_expr(parsed)
        if isinstance(node, ast.Subscript):
            return self.resolve_expr(node.value)
        return None

    def resolve_class(self, node: ast.expr):
        obj = self.resolve_expr(node)
        return obj if inspect.isclass(obj) else None

    def resolve_member(self, node: ast.expr) -> Optional[Tuple[Any, int]]:
        obj = self.resolve_expr(node)
        if isinstance(obj, enum.Enum) and _is_enum(type(obj)):
            return type(obj), list(type(obj)).index(obj)
        return None

    def covers(self, cls, subject) -> bool:
        return inspect.isclass(cls) and inspect.isclass(subject) and issubclass(subject, cls)

    def variant_tag_for(self, cls, subject) -> Optional[int]:
        info = sealed_info(subject)
        if info is None or not inspect.isclass(cls):
            return None
        self.consulted.add(subject)
        for tag, variant in enumerate(info.variants):
            if issubclass(cls, variant):
                return tag
        return None

    def variant_of(self, subject, tag: int):
        return sealed_info(subject).variants[tag]

    def match_fields(self, cls) -> List[str]:
        return list(getattr(cls, '__match_args__', ()))
