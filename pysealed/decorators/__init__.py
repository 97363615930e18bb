from .exhaustive import exhaustive, CheckedFunction

__all__ = ['exhaustive', 'CheckedFunction']
