"""
Error kinds raised by the decode layer.

Every error carries an optional ``source`` (file, archive entry or element
name) so callers can report which input failed. Nothing here is ever logged
or turned into a process exit by the library itself.
"""

import copy
from typing import Optional


class TangoImportError(Exception):
    """Base class for all import errors."""

    def __init__(self, message: str, *, source: Optional[str] = None):
        super().__init__(message)
        self.source = source


class NotFoundError(TangoImportError, FileNotFoundError):
    """A file or archive entry does not exist.

    Also a ``FileNotFoundError``, so generic "does not exist" checks work.
    """

    @classmethod
    def for_path(cls, path: str) -> "NotFoundError":
        return cls(f"import file `{path}` not found", source=path)


class FormatError(TangoImportError, ValueError):
    """Archive container or text line does not match its expected format."""


class SchemaError(TangoImportError):
    """The expected XML root element never appeared."""


class DecodeError(TangoImportError):
    """A record element could not be bound to its record shape."""


class InvalidRecordError(TangoImportError):
    """A decoded record is missing its required identifier."""


class XMLSyntaxError(TangoImportError):
    """Malformed XML in the token stream."""

    def __init__(self, message: str, line: int = 0, *, source: Optional[str] = None):
        if line:
            message = f"XML syntax error on line {line}: {message}"
        else:
            message = f"XML syntax error: {message}"
        super().__init__(message, source=source)
        self.line = line


def with_context(err: TangoImportError, context: str) -> TangoImportError:
    """Return a copy of ``err`` (same kind and source) with ``context`` prefixed to its message."""
    wrapped = copy.copy(err)
    wrapped.args = (f"{context}: {err}",)
    return wrapped
