"""Custom exceptions for notenav.

Provides a structured exception hierarchy with error codes and
machine-readable error information for better error handling.
"""
from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorCode(Enum):
    """Error codes for machine-readable error identification."""

    # Note errors (1xxx)
    NOTE_NOT_FOUND = 1001

    # Sidebar errors (2xxx)
    SIDEBAR_ITEM_NOT_FOUND = 2001
    SIDEBAR_PROCESSING_FAILED = 2002

    # Hierarchy errors (3xxx)
    NOTES_OMITTED = 3001
    TREE_MISMATCH = 3002

    # Storage errors (4xxx)
    STORAGE_READ_FAILED = 4001
    DUPLICATE_NOTE_ID = 4002

    # Configuration errors (6xxx)
    CONFIG_INVALID = 6001
    CONFIG_MISSING = 6002

    # Validation errors (7xxx)
    VALIDATION_FAILED = 7001


class NoteNavError(Exception):
    """Base exception for all notenav errors.

    Attributes:
        message: Human-readable error message
        code: Machine-readable error code
        details: Additional context about the error
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.VALIDATION_FAILED,
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


class NoteNotFoundError(NoteNavError):
    """Raised when a note cannot be found in the note graph."""

    def __init__(self, note_id: str, message: Optional[str] = None):
        super().__init__(
            message or f'No note found in engine for "{note_id}"',
            code=ErrorCode.NOTE_NOT_FOUND,
            details={"note_id": note_id}
        )
        self.note_id = note_id


class SidebarConfigError(NoteNavError):
    """Raised when a sidebar configuration has the wrong shape.

    ``location`` is the path of keys/indices to the first offending value,
    e.g. ``"defaultSidebar.0.items"``.
    """

    def __init__(
        self,
        message: str,
        location: Optional[str] = None,
        code: ErrorCode = ErrorCode.CONFIG_INVALID
    ):
        details = {}
        if location:
            details["location"] = location

        super().__init__(message, code=code, details=details)
        self.location = location


class SidebarItemNotFoundError(NoteNavError):
    """Raised when a sidebar item references a note that does not exist."""

    def __init__(self, reference: str):
        super().__init__(
            f"SidebarItem `{reference}` does not exist",
            code=ErrorCode.SIDEBAR_ITEM_NOT_FOUND,
            details={"reference": reference}
        )
        self.reference = reference


class SidebarProcessingError(NoteNavError):
    """Raised when processing a sidebar item fails for an unexpected reason."""

    def __init__(
        self,
        message: str = "Error when processing sidebarItem",
        original_error: Optional[Exception] = None
    ):
        details = {}
        if original_error:
            details["original_error"] = str(original_error)[:200]

        super().__init__(
            message, code=ErrorCode.SIDEBAR_PROCESSING_FAILED, details=details
        )
        self.original_error = original_error


class NotesOmittedError(NoteNavError):
    """Non-fatal error listing note ids that were dropped while sorting.

    The caller still receives a usable ordering of the remaining ids.
    """

    def __init__(self, omitted: List[str]):
        super().__init__(
            "Omitted sorting note ids not found in noteDict",
            code=ErrorCode.NOTES_OMITTED,
            details={"omitted": list(omitted)}
        )
        self.omitted: List[str] = list(omitted)


class TreeMismatchError(NoteNavError):
    """Raised (or returned) when two trees are not structurally identical."""

    def __init__(self, message: str):
        super().__init__(message, code=ErrorCode.TREE_MISMATCH)


class ConfigurationError(NoteNavError):
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


class StorageError(NoteNavError):
    """Raised when notes cannot be read from a vault."""

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        code: ErrorCode = ErrorCode.STORAGE_READ_FAILED,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if path:
            # Only the file name; full paths stay out of error payloads
            details["path_hint"] = path.replace("\\", "/").split("/")[-1]
        if original_error:
            details["original_error"] = str(original_error)[:200]

        super().__init__(message, code=code, details=details)
        self.path = path
        self.original_error = original_error
