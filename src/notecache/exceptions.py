"""Custom exceptions for notecache.

Provides a structured exception hierarchy with error codes and
machine-readable error information. Every failure an operation can hit
is one of these; the CLI prints the message and exits non-zero.
"""
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(Enum):
    """Error codes for machine-readable error identification."""

    # Note errors (1xxx)
    NOTE_NOT_FOUND = 1001
    NOTE_VALIDATION_FAILED = 1002
    MALFORMED_ID = 1003

    # Cache errors (4xxx)
    CACHE_OPEN_FAILED = 4001
    CACHE_DECODE_FAILED = 4002
    CACHE_CREATE_FAILED = 4003
    CACHE_ENCODE_FAILED = 4004

    # Export / import errors (45xx)
    EXPORT_CREATE_FAILED = 4501
    EXPORT_WRITE_FAILED = 4502
    IMPORT_READ_FAILED = 4503
    JSON_ENCODE_FAILED = 4504
    JSON_DECODE_FAILED = 4505

    # Configuration errors (6xxx)
    CONFIG_INVALID = 6001
    HOME_DIR_NOT_FOUND = 6002

    # Path errors (7xxx)
    PATH_CANONICALIZE_FAILED = 7001
    RELATIVE_PATH_FAILED = 7002


class NotesError(Exception):
    """Base exception for all notecache errors.

    Attributes:
        message: Human-readable error message
        code: Machine-readable error code
        details: Additional context about the error
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.NOTE_VALIDATION_FAILED,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to a dictionary for serialization."""
        return {
            "error": self.__class__.__name__,
            "code": self.code.value,
            "code_name": self.code.name,
            "message": self.message,
            "details": self.details
        }

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"[{self.code.name}] {self.message} ({detail_str})"
        return f"[{self.code.name}] {self.message}"


def _format_note_id(note_id: int) -> str:
    return f"{note_id:016X}"


class NoteNotFoundError(NotesError):
    """Raised when no note with the given id is in the cache."""

    def __init__(self, note_id: int, message: Optional[str] = None):
        super().__init__(
            message or f"no note with id '{_format_note_id(note_id)}' found",
            code=ErrorCode.NOTE_NOT_FOUND,
            details={"note_id": _format_note_id(note_id)}
        )
        self.note_id = note_id


class NoteValidationError(NotesError):
    """Raised when note data fails validation."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        code: ErrorCode = ErrorCode.NOTE_VALIDATION_FAILED
    ):
        details = {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)[:100]  # Truncate for safety

        super().__init__(message, code=code, details=details)
        self.field = field
        self.value = value


class MalformedIdError(NoteValidationError):
    """Raised when a note id cannot be parsed as hexadecimal."""

    def __init__(self, value: str):
        super().__init__(
            "id could not be parsed",
            field="id",
            value=value,
            code=ErrorCode.MALFORMED_ID
        )


class CacheError(NotesError):
    """Raised when the notes cache cannot be read or written."""

    _MESSAGES = {
        ErrorCode.CACHE_OPEN_FAILED: "failed to open the notes cache",
        ErrorCode.CACHE_DECODE_FAILED: "failed to decode the notes cache",
        ErrorCode.CACHE_CREATE_FAILED: "failed to create the notes cache",
        ErrorCode.CACHE_ENCODE_FAILED: "failed to encode the notes cache",
    }

    def __init__(
        self,
        code: ErrorCode,
        path: Optional[str] = None,
        message: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if path:
            details["path"] = path
        if original_error:
            details["original_error"] = str(original_error)[:200]

        super().__init__(
            message or self._MESSAGES.get(code, "notes cache error"),
            code=code,
            details=details
        )
        self.path = path
        self.original_error = original_error


class CacheNotFoundError(CacheError):
    """Raised when an operation needs an existing cache and there is none."""

    def __init__(self, path: Optional[str] = None):
        super().__init__(
            ErrorCode.CACHE_OPEN_FAILED,
            path=path,
            message="no cache of notes exists yet"
        )


class ExchangeError(NotesError):
    """Raised for export and import file errors."""

    _MESSAGES = {
        ErrorCode.EXPORT_CREATE_FAILED: "failed to create export file",
        ErrorCode.EXPORT_WRITE_FAILED: "failed to write export file",
        ErrorCode.IMPORT_READ_FAILED: "failed to read import file",
        ErrorCode.JSON_ENCODE_FAILED: "failed to encode json",
        ErrorCode.JSON_DECODE_FAILED: "failed to decode json",
    }

    def __init__(
        self,
        code: ErrorCode,
        path: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if path:
            details["path"] = path
        if original_error:
            details["original_error"] = str(original_error)[:200]

        super().__init__(self._MESSAGES[code], code=code, details=details)
        self.path = path
        self.original_error = original_error


class CanonicalizeError(NotesError):
    """Raised when a path cannot be resolved to an existing absolute path."""

    def __init__(self, path: str, original_error: Optional[Exception] = None):
        details = {}
        if original_error:
            details["original_error"] = str(original_error)[:200]

        super().__init__(
            f"failed to canonicalize path '{path}'",
            code=ErrorCode.PATH_CANONICALIZE_FAILED,
            details=details
        )
        self.path = path


class RelativePathError(NotesError):
    """Raised when a note body cannot be expressed relative to a directory."""

    def __init__(self, note_id: int, base: Optional[str] = None):
        details = {}
        if base:
            details["base"] = base

        super().__init__(
            f"failed to get relative path of note '{_format_note_id(note_id)}'",
            code=ErrorCode.RELATIVE_PATH_FAILED,
            details=details
        )
        self.note_id = note_id


class ConfigurationError(NotesError):
    """Raised for configuration-related errors."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        code: ErrorCode = ErrorCode.CONFIG_INVALID
    ):
        details = {}
        if config_key:
            details["config_key"] = config_key

        super().__init__(message, code=code, details=details)
        self.config_key = config_key
