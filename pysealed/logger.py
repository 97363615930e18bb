"""
Logger for pysealed diagnostics

Thin layer over the standard ``logging`` module:
- Messages are prefixed with ``file:line`` when an AST node is given
- Keyword fields are appended as ``key=value``
- ``error`` raises at the definition site by default; with
  ``set_raise_on_error(False)`` errors are logged and collected instead so a
  batch run can report all of them
"""

import logging
import os
import sys
from contextlib import contextmanager
from enum import IntEnum
from typing import Any, List, Optional

from .errors import SealedError


class LogLevel(IntEnum):
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR


def _env_level(default: LogLevel) -> LogLevel:
    name = os.environ.get('PYSEALED_LOG_LEVEL', '').strip().upper()
    if name in LogLevel.__members__:
        return LogLevel[name]
    return default


class SealedLogger:
    """Logger with source context and raise-or-collect error handling."""

    def __init__(self, name: str = 'pysealed'):
        self._log = logging.getLogger(name)
        if not self._log.handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(logging.Formatter('[%(name)s] %(levelname)s %(message)s'))
            self._log.addHandler(handler)
            self._log.propagate = False
        self._log.setLevel(_env_level(LogLevel.WARNING))
        self.raise_on_error = os.environ.get('PYSEALED_RAISE_ON_ERROR', '1') != '0'
        self.source_file: Optional[str] = None
        self.line_offset = 0
        self.errors: List[SealedError] = []
        self.quiet_errors = False

    def location(self, node=None) -> Optional[str]:
        """Render ``file:line`` for an AST node in the current source context."""
        if node is None:
            return None
        lineno = getattr(node, 'lineno', None)
        if lineno is None:
            return self.source_file
        filename = self.source_file or '<unknown>'
        return f"{filename}:{lineno + self.line_offset}"

    def _format(self, msg: str, node=None, fields=None) -> str:
        loc = self.location(node)
        text = f"{loc}: {msg}" if loc else msg
        if fields:
            extras = ' '.join(f"{k}={v}" for k, v in fields.items())
            text = f"{text} ({extras})"
        return text

    def debug(self, msg: str, node=None, **fields):
        if self._log.isEnabledFor(logging.DEBUG):
            self._log.debug(self._format(msg, node, fields))

    def info(self, msg: str, node=None, **fields):
        if self._log.isEnabledFor(logging.INFO):
            self._log.info(self._format(msg, node, fields))

    def warning(self, msg: str, node=None, **fields):
        self._log.warning(self._format(msg, node, fields))

    def error(self, msg: str, node=None, exc_type=None, exc: Optional[SealedError] = None,
              **fields) -> SealedError:
        """Report an error.

        Raises ``exc`` (or ``exc_type(msg)``) when raising is enabled, otherwise
        logs it, records it in ``errors`` and returns it.
        """
        loc = self.location(node)
        if exc is None:
            exc = (exc_type or SealedError)(msg)
        if loc and getattr(exc, 'location', None) is None:
            exc.location = loc
        text = self._format(msg, node, fields)
        if loc is None and exc.location:
            text = f"{exc.location}: {text}"
        if self.raise_on_error:
            self._log.debug(text)
            raise exc
        self._log.log(logging.DEBUG if self.quiet_errors else logging.ERROR, text)
        self.errors.append(exc)
        return exc

    def reset_errors(self):
        self.errors.clear()


logger = SealedLogger()


def set_log_level(level: LogLevel):
    logger._log.setLevel(int(level))


def set_raise_on_error(enabled: bool):
    logger.raise_on_error = bool(enabled)


def set_source_context(source_file: Optional[str], line_offset: int = 0):
    """Set the file and line offset used to locate AST nodes in messages."""
    logger.source_file = source_file
    logger.line_offset = line_offset


@contextmanager
def source_context(source_file: Optional[str], line_offset: int = 0):
    saved = (logger.source_file, logger.line_offset)
    set_source_context(source_file, line_offset)
    try:
        yield logger
    finally:
        set_source_context(*saved)


@contextmanager
def collecting_errors(quiet: bool = False):
    """Collect errors instead of raising them for the duration of the block.

    Yields the list the errors reported inside the block are appended to.
    With ``quiet`` the errors are logged at DEBUG only; the caller reports them.
    """
    saved = (logger.raise_on_error, logger.errors, logger.quiet_errors)
    logger.raise_on_error = False
    logger.errors = []
    logger.quiet_errors = quiet
    try:
        yield logger.errors
    finally:
        logger.raise_on_error, logger.errors, logger.quiet_errors = saved
