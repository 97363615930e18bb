"""
Static checking: index source trees and check them without importing.
"""

from .index import ProjectIndex, ClassDecl, ModuleInfo, module_name_for, iter_python_files
from .checker import StaticTypeInfo, CheckReport, check_index, check_paths

__all__ = [
    'ProjectIndex',
    'ClassDecl',
    'ModuleInfo',
    'module_name_for',
    'iter_python_files',
    'StaticTypeInfo',
    'CheckReport',
    'check_index',
    'check_paths',
]
