from .frame_utils import find_caller_frame
from .inspect_utils import (
    get_function_file_and_source,
    get_function_start_line,
    get_all_accessible_symbols,
)

__all__ = [
    'find_caller_frame',
    'get_function_file_and_source',
    'get_function_start_line',
    'get_all_accessible_symbols',
]
