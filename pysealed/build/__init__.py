from .output_manager import OutputManager, default_output_dir

__all__ = [
    'OutputManager',
    'default_output_dir',
]
