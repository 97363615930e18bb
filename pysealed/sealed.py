"""
Sealed class declarations

@sealed closes a class hierarchy:
- Direct subclasses (variants) must be declared inside the defining boundary,
  the module of the sealed class by default, or a package given explicitly
- Variants get integer tags in declaration order, starting at 0
- The sealed class itself cannot be instantiated; variants can, any number
  of times
- Declaring a variant re-runs every registered match check over the type

Example:
    @sealed
    class Mammal:
        def __init__(self, name):
            self.name = name

    class Cat(Mammal): pass
    class Human(Mammal): pass
"""

import inspect
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .errors import ScopeViolation, SealedError
from .logger import logger
from .utils import find_caller_frame


_SEALED_ATTR = '__sealed__'


@dataclass
class SealedInfo:
    """Variant set of one sealed class.

    Stored in the class ``__dict__`` so variants do not inherit it.
    """
    root: type
    boundary: str
    package: bool = False
    variants: List[type] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.root.__name__

    @property
    def tags(self) -> Dict[type, int]:
        return {v: i for i, v in enumerate(self.variants)}

    @property
    def variant_names(self) -> List[str]:
        return [v.__name__ for v in self.variants]

    def contains_module(self, module: str) -> bool:
        if module == self.boundary:
            return True
        return self.package and module.startswith(self.boundary + '.')


def is_sealed(cls) -> bool:
    return inspect.isclass(cls) and _SEALED_ATTR in cls.__dict__


def sealed_info(cls) -> Optional[SealedInfo]:
    if not inspect.isclass(cls):
        return None
    return cls.__dict__.get(_SEALED_ATTR)


def variants_of(cls) -> Tuple[type, ...]:
    """Direct variants of a sealed class, in tag order."""
    info = sealed_info(cls)
    if info is None:
        raise TypeError(f"'{getattr(cls, '__name__', cls)}' is not a sealed class")
    return tuple(info.variants)


def variant_for(value_or_cls, sealed_type) -> Optional[type]:
    """Return the direct variant of ``sealed_type`` a value (or class) belongs to."""
    info = sealed_info(sealed_type)
    if info is None:
        raise TypeError(f"'{getattr(sealed_type, '__name__', sealed_type)}' is not a sealed class")
    cls = value_or_cls if inspect.isclass(value_or_cls) else type(value_or_cls)
    for klass in cls.__mro__:
        if klass in info.variants:
            return klass
    return None


def tag_of(value_or_cls, sealed_type) -> int:
    """Tag of the variant a value (or class) belongs to."""
    variant = variant_for(value_or_cls, sealed_type)
    if variant is None:
        raise TypeError(f"{value_or_cls!r} is not a variant of sealed type '{sealed_type.__name__}'")
    return sealed_info(sealed_type).variants.index(variant)


def _declaration_site() -> Optional[str]:
    frame = find_caller_frame()
    if frame is None:
        return None
    return f"{frame.f_code.co_filename}:{frame.f_lineno}"


def _declare_variant(root: type, sub: type):
    info = sealed_info(root)
    module = sub.__module__

    if not info.contains_module(module):
        where = f"package '{info.boundary}'" if info.package else f"module '{info.boundary}'"
        msg = (f"Cannot declare '{sub.__qualname__}' as a variant of sealed type "
               f"'{root.__qualname__}' in module '{module}': variants must be declared in {where}")
        err = ScopeViolation(msg, sealed_type=root, variant=sub, module=module,
                             location=_declaration_site())
        logger.error(msg, exc=err)
        return

    for i, existing in enumerate(info.variants):
        # Redefinition (e.g. dataclass(slots=True) rebuilding the class) replaces the old one
        if existing.__qualname__ == sub.__qualname__ and existing.__module__ == module:
            info.variants[i] = sub
            logger.debug(f"Replaced variant {sub.__qualname__} of {root.__qualname__}")
            return

    info.variants.append(sub)
    logger.debug(f"Declared variant {sub.__qualname__} of {root.__qualname__}",
                 tag=len(info.variants) - 1)

    from .registry import get_match_registry
    try:
        get_match_registry().recheck(root)
    except SealedError:
        info.variants.remove(sub)
        # Rebuild the tables of checks that ran while sub was a variant
        for entry in get_match_registry().entries_for(root):
            entry.check()
        raise


def _make_subclass_hook(root: type, original):
    def __init_subclass__(sub, **kwargs):
        if original is not None:
            original.__func__(sub, **kwargs)
        else:
            super(root, sub).__init_subclass__(**kwargs)
        if root in sub.__bases__:
            _declare_variant(root, sub)
    return classmethod(__init_subclass__)


def _install_abstract_guard(root: type):
    base_new = root.__new__

    def __new__(klass, *args, **kwargs):
        if klass is root:
            raise TypeError(f"Cannot instantiate sealed type '{root.__name__}'; "
                            f"instantiate one of its variants")
        if base_new is object.__new__:
            return base_new(klass)
        return base_new(klass, *args, **kwargs)

    root.__new__ = staticmethod(__new__)


def sealed(cls=None, *, boundary: Optional[str] = None):
    """
    Close a class hierarchy to the variants declared inside its boundary.

    Args:
        cls: Class to seal
        boundary: Package whose modules may declare variants. Defaults to
            the class's own module only.
    """
    if cls is None:
        def decorator(c):
            return sealed(c, boundary=boundary)
        return decorator

    if not inspect.isclass(cls):
        raise TypeError(f"@sealed can only decorate classes, got {cls!r}")
    if is_sealed(cls):
        return cls

    info = SealedInfo(root=cls, boundary=boundary or cls.__module__, package=boundary is not None)
    setattr(cls, _SEALED_ATTR, info)
    cls.__init_subclass__ = _make_subclass_hook(cls, cls.__dict__.get('__init_subclass__'))
    _install_abstract_guard(cls)

    # Subclasses that existed before sealing
    for sub in cls.__subclasses__():
        if cls in sub.__bases__:
            _declare_variant(cls, sub)

    logger.debug(f"Sealed {cls.__qualname__}", boundary=info.boundary)
    return cls
