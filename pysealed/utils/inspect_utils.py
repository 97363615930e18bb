# -*- coding: utf-8 -*-
import builtins
from collections import ChainMap
import inspect
import textwrap


def get_function_source_with_inspect(func):
    source = inspect.getsource(func)
    dedented_source = textwrap.dedent(source)
    return dedented_source


def get_function_file_with_inspect(func):
    try:
        source_file = inspect.getfile(func)
        return source_file
    except (OSError, TypeError):
        return None


def get_function_file_and_source(func):
    source_file = get_function_file_with_inspect(func)
    try:
        source_code = get_function_source_with_inspect(func)
    except (OSError, TypeError) as e:
        raise RuntimeError(f"Cannot get source code for function {func.__name__}: {e}")

    return source_file or '<unknown>', source_code


def get_function_start_line(func):
    """First source line of the function, decorators included."""
    try:
        return inspect.getsourcelines(func)[1]
    except (OSError, TypeError):
        return func.__code__.co_firstlineno


def get_all_accessible_symbols(func, caller_frame=None):
    """
    Collect every name a function's body could refer to when it is defined.

    Lookup order: closure variables, the defining frame's locals, module
    globals, builtins. Module globals stay live so names bound later in the
    module are visible to re-checks.
    """
    layers = []
    if func.__closure__:
        nonlocals = {}
        for name, cell in zip(func.__code__.co_freevars, func.__closure__):
            try:
                nonlocals[name] = cell.cell_contents
            except ValueError:
                # Cell not bound yet (e.g. the function refers to itself)
                continue
        layers.append(nonlocals)
    if caller_frame is not None and caller_frame.f_code.co_name != '<module>':
        layers.append(dict(caller_frame.f_locals))
    layers.append(func.__globals__)
    layers.append(vars(builtins))
    return ChainMap(*layers)
