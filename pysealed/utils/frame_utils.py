import inspect
import os


_PACKAGE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__))) + os.sep


def _is_internal(filename: str) -> bool:
    filename_norm = os.path.abspath(filename)
    # Import machinery frames sit between a class statement and the module being imported
    if filename.startswith('<frozen') or 'importlib' in filename_norm:
        return True
    return filename_norm.startswith(_PACKAGE_DIR)


def find_caller_frame():
    """
    Find the first frame outside the pysealed package.

    Returns:
        Frame object or None if not found
    """
    frame = inspect.currentframe()
    temp_frame = frame.f_back if frame else None

    while temp_frame:
        if not _is_internal(temp_frame.f_code.co_filename):
            return temp_frame
        temp_frame = temp_frame.f_back

    return None
