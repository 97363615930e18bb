"""
Source index for static checking

Parses Python files without importing them and records, per module:
- class declarations (sealed decorator and boundary, enum members,
  dataclass fields and __match_args__, base expressions)
- import bindings, absolute and relative

Names are then resolved across every indexed module.
"""

import ast
import os
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set, Union


_ENUM_BASES = {'Enum', 'IntEnum', 'StrEnum'}


class _BoolType:
    """Stand-in for the builtin ``bool`` in static analysis."""
    name = 'bool'

    def __repr__(self):
        return 'bool'


BOOL = _BoolType()


@dataclass
class ModuleRef:
    name: str


@dataclass
class EnumMember:
    decl: 'ClassDecl'
    index: int


@dataclass(eq=False)
class ClassDecl:
    name: str
    qualname: str
    module: str
    node: ast.ClassDef
    sealed: bool = False
    boundary: Optional[str] = None
    is_enum: bool = False
    is_dataclass: bool = False
    dataclass_match_args: bool = True
    members: List[str] = field(default_factory=list)
    explicit_match_args: Optional[List[str]] = None
    own_fields: List[str] = field(default_factory=list)
    annotations: Dict[str, ast.expr] = field(default_factory=dict)
    base_decls: List['ClassDecl'] = field(default_factory=list)
    variants: List['ClassDecl'] = field(default_factory=list)

    @property
    def lineno(self) -> int:
        return self.node.lineno

    def boundary_contains(self, module: str) -> bool:
        if self.boundary is None:
            return module == self.module
        return module == self.boundary or module.startswith(self.boundary + '.')

    def ancestors(self) -> List['ClassDecl']:
        seen: List['ClassDecl'] = []
        stack = list(self.base_decls)
        while stack:
            decl = stack.pop()
            if any(decl is s for s in seen):
                continue
            seen.append(decl)
            stack.extend(decl.base_decls)
        return seen

    def match_args(self) -> List[str]:
        if self.explicit_match_args is not None:
            return list(self.explicit_match_args)
        if self.is_dataclass and self.dataclass_match_args:
            return self.dataclass_fields()
        for base in self.base_decls:
            inherited = base.match_args()
            if inherited:
                return inherited
        return []

    def dataclass_fields(self) -> List[str]:
        fields: List[str] = []
        for base in reversed(self.base_decls):
            if base.is_dataclass:
                for name in base.dataclass_fields():
                    if name not in fields:
                        fields.append(name)
        for name in self.own_fields:
            if name not in fields:
                fields.append(name)
        return fields

    def field_annotation(self, name: str) -> Optional[ast.expr]:
        if name in self.annotations:
            return self.annotations[name]
        for base in self.base_decls:
            found = base.field_annotation(name)
            if found is not None:
                return found
        return None


@dataclass
class ModuleInfo:
    name: str
    path: str
    tree: ast.Module
    classes: Dict[str, ClassDecl] = field(default_factory=dict)
    all_classes: List[ClassDecl] = field(default_factory=list)
    imports: Dict[str, str] = field(default_factory=dict)
    is_package: bool = False

    @property
    def package(self) -> str:
        if self.is_package:
            return self.name
        return self.name.rpartition('.')[0]


def module_name_for(path: str) -> str:
    """Dotted module name of a file, climbing through directories that hold __init__.py."""
    path = os.path.abspath(path)
    directory, filename = os.path.split(path)
    stem = os.path.splitext(filename)[0]
    parts = [] if stem == '__init__' else [stem]
    while os.path.exists(os.path.join(directory, '__init__.py')):
        directory, package = os.path.split(directory)
        parts.insert(0, package)
        if not package:
            break
    return '.'.join(parts) or stem


def iter_python_files(path: str) -> Iterable[str]:
    """A file path itself, or every .py file below a directory in sorted order."""
    if os.path.isfile(path):
        yield path
        return
    for root, dirs, files in os.walk(path):
        dirs[:] = sorted(d for d in dirs if not d.startswith('.') and d != '__pycache__')
        for filename in sorted(files):
            if filename.endswith('.py'):
                yield os.path.join(root, filename)


def _decorator_name(expr: ast.expr) -> Optional[str]:
    if isinstance(expr, ast.Call):
        expr = expr.func
    if isinstance(expr, ast.Name):
        return expr.id
    if isinstance(expr, ast.Attribute):
        return expr.attr
    return None


def _keyword_constant(expr: ast.expr, name: str):
    if isinstance(expr, ast.Call):
        for kw in expr.keywords:
            if kw.arg == name and isinstance(kw.value, ast.Constant):
                return kw.value.value
    return None


def _base_name(expr: ast.expr) -> Optional[str]:
    if isinstance(expr, ast.Name):
        return expr.id
    if isinstance(expr, ast.Attribute):
        return expr.attr
    return None


def _is_classvar(annotation: ast.expr) -> bool:
    target = annotation.value if isinstance(annotation, ast.Subscript) else annotation
    return _base_name(target) == 'ClassVar'


class _DeclCollector(ast.NodeVisitor):
    def __init__(self, info: ModuleInfo):
        self.info = info
        self._scope: List[str] = []

    def visit_FunctionDef(self, node):
        self._scope.append(node.name + '.<locals>')
        self.generic_visit(node)
        self._scope.pop()

    visit_AsyncFunctionDef = visit_FunctionDef

    def visit_ClassDef(self, node):
        qualname = '.'.join(self._scope + [node.name])
        decl = ClassDecl(name=node.name, qualname=qualname, module=self.info.name, node=node)

        for dec in node.decorator_list:
            dec_name = _decorator_name(dec)
            if dec_name == 'sealed':
                decl.sealed = True
                decl.boundary = _keyword_constant(dec, 'boundary')
            elif dec_name == 'dataclass':
                decl.is_dataclass = True
                if _keyword_constant(dec, 'match_args') is False:
                    decl.dataclass_match_args = False

        decl.is_enum = any(_base_name(b) in _ENUM_BASES for b in node.bases)

        for stmt in node.body:
            if isinstance(stmt, ast.AnnAssign) and isinstance(stmt.target, ast.Name):
                decl.annotations[stmt.target.id] = stmt.annotation
                if not _is_classvar(stmt.annotation):
                    decl.own_fields.append(stmt.target.id)
                if decl.is_enum and stmt.value is not None and not stmt.target.id.startswith('_'):
                    decl.members.append(stmt.target.id)
            elif isinstance(stmt, ast.Assign):
                for target in stmt.targets:
                    if not isinstance(target, ast.Name):
                        continue
                    if target.id == '__match_args__' and isinstance(stmt.value, (ast.Tuple, ast.List)):
                        decl.explicit_match_args = [
                            e.value for e in stmt.value.elts
                            if isinstance(e, ast.Constant) and isinstance(e.value, str)
                        ]
                    elif decl.is_enum and not target.id.startswith('_'):
                        if target.id not in decl.members:
                            decl.members.append(target.id)

        self.info.all_classes.append(decl)
        if not self._scope:
            self.info.classes[node.name] = decl

        self._scope.append(node.name)
        self.generic_visit(node)
        self._scope.pop()

    def visit_Import(self, node):
        for alias in node.names:
            if alias.asname:
                self.info.imports[alias.asname] = alias.name
            else:
                top = alias.name.split('.')[0]
                self.info.imports[top] = top

    def visit_ImportFrom(self, node):
        base = node.module or ''
        if node.level:
            package_parts = self.info.package.split('.') if self.info.package else []
            if node.level > 1:
                package_parts = package_parts[:len(package_parts) - (node.level - 1)]
            base = '.'.join(package_parts + ([node.module] if node.module else []))
        for alias in node.names:
            if alias.name == '*':
                continue
            self.info.imports[alias.asname or alias.name] = f"{base}:{alias.name}"


Resolved = Union[ClassDecl, ModuleRef, EnumMember, _BoolType, None]


class ProjectIndex:
    """All indexed modules, with cross-module name resolution."""

    def __init__(self):
        self.modules: Dict[str, ModuleInfo] = {}
        self._finalized = False

    def add_source(self, source: str, path: str, module_name: Optional[str] = None) -> ModuleInfo:
        tree = ast.parse(source, filename=path)
        name = module_name or module_name_for(path)
        info = ModuleInfo(name=name, path=path, tree=tree,
                          is_package=os.path.basename(path) == '__init__.py')
        _DeclCollector(info).visit(tree)
        self.modules[name] = info
        self._finalized = False
        return info

    def add_file(self, path: str, module_name: Optional[str] = None) -> ModuleInfo:
        with open(path, 'r', encoding='utf-8') as f:
            source = f.read()
        return self.add_source(source, path, module_name)

    def add_path(self, path: str) -> List[ModuleInfo]:
        return [self.add_file(p) for p in iter_python_files(path)]

    def classes(self) -> Iterable[ClassDecl]:
        for info in self.modules.values():
            yield from info.all_classes

    def resolve(self, expr: ast.expr, module: str) -> Resolved:
        """Resolve a dotted name (or a string holding one) as seen from ``module``."""
        info = self.modules.get(module)
        if info is None:
            return None

        if isinstance(expr, ast.Constant) and isinstance(expr.value, str):
            try:
                parsed = ast.parse(expr.value, mode='eval').body
            except SyntaxError:
                return None
            return self.resolve(parsed, module)

        if isinstance(expr, ast.Subscript):
            # Option[int] names the Option class
            return self.resolve(expr.value, module)

        if isinstance(expr, ast.Name):
            if expr.id in info.classes:
                return info.classes[expr.id]
            if expr.id in info.imports:
                return self._resolve_import(info.imports[expr.id])
            for decl in info.all_classes:
                if decl.name == expr.id:
                    return decl
            if expr.id == 'bool':
                return BOOL
            return None

        if isinstance(expr, ast.Attribute):
            base = self.resolve(expr.value, module)
            if isinstance(base, ModuleRef):
                dotted = f"{base.name}.{expr.attr}"
                if dotted in self.modules:
                    return ModuleRef(dotted)
                target = self.modules.get(base.name)
                if target is not None:
                    return target.classes.get(expr.attr)
                return None
            if isinstance(base, ClassDecl) and base.is_enum and expr.attr in base.members:
                return EnumMember(base, base.members.index(expr.attr))
            return None

        return None

    def _resolve_import(self, target: str, seen: Optional[Set[str]] = None) -> Resolved:
        if ':' not in target:
            return ModuleRef(target)
        module, _, attr = target.partition(':')
        dotted = f"{module}.{attr}" if module else attr
        if dotted in self.modules:
            return ModuleRef(dotted)
        info = self.modules.get(module)
        if info is None:
            return None
        if attr in info.classes:
            return info.classes[attr]
        if attr in info.imports:
            # Re-export through another import; import cycles resolve to nothing
            seen = seen if seen is not None else set()
            if target in seen:
                return None
            seen.add(target)
            return self._resolve_import(info.imports[attr], seen)
        return None

    def finalize(self):
        """Link base classes and variant sets once every module is indexed."""
        if self._finalized:
            return
        for decl in self.classes():
            decl.base_decls = []
            decl.variants = []
        for decl in self.classes():
            for base in decl.node.bases:
                resolved = self.resolve(base, decl.module)
                if isinstance(resolved, ClassDecl) and resolved is not decl:
                    decl.base_decls.append(resolved)
                    if resolved.sealed and resolved.boundary_contains(decl.module):
                        resolved.variants.append(decl)
        self._finalized = True
