"""
seqlen Error Classes - Standardized exceptions and error handling

Every failure of a statistics run maps to one of these classes. All of them
are fatal to the run: nothing is retried and no partial result is produced.

Usage:
    from seqlen.errors import (
        SeqLenError, UnsupportedFormatError, MalformedRecordError,
        CorruptContainerError, IoFailureError, EmptyInputError
    )

    try:
        report = analyze_file("reads.fq.gz")
    except MalformedRecordError as e:
        print(f"Bad record: {e}")
        print(f"Details: {e.details}")
"""

import sys
import traceback
from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorCategory(Enum):
    """Categories for error classification"""
    FORMAT = "format"
    RECORD = "record"
    CONTAINER = "container"
    FILE_SYSTEM = "file_system"
    INPUT = "input"
    VALIDATION = "validation"
    CONFIGURATION = "configuration"
    UNKNOWN = "unknown"


class SeqLenError(Exception):
    """
    Base exception for all seqlen errors.

    Provides structured error information including:
    - Error message
    - Error code
    - Category
    - Details (offsets, paths, record indices)
    - Suggested fixes
    """

    default_code = "SEQLEN_ERROR"
    default_category = ErrorCategory.UNKNOWN

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        category: Optional[ErrorCategory] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.category = category or self.default_category
        self.details = details or {}
        self.suggestions = suggestions or []
        self.cause = cause

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for JSON serialization"""
        result = {
            "error": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "category": self.category.value,
        }
        if self.details:
            result["details"] = self.details
        if self.suggestions:
            result["suggestions"] = self.suggestions
        if self.cause:
            result["cause"] = str(self.cause)
        return result

    def format_message(self, verbose: bool = False) -> str:
        """Format error message for display"""
        lines = [f"[{self.code}] {self.message}"]

        if verbose:
            if self.details:
                lines.append("Details:")
                for key, value in self.details.items():
                    lines.append(f"  {key}: {value}")

            if self.suggestions:
                lines.append("Suggestions:")
                for suggestion in self.suggestions:
                    lines.append(f"  - {suggestion}")

            if self.cause:
                lines.append(f"Caused by: {self.cause}")

        return "\n".join(lines)


class UnsupportedFormatError(SeqLenError):
    """The file type could not be determined or is not handled"""
    default_code = "UNSUPPORTED_FORMAT"
    default_category = ErrorCategory.FORMAT

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        detected: Optional[str] = None,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        if path:
            details["path"] = path
        if detected:
            details["detected"] = detected
        super().__init__(message, details=details, **kwargs)


class MalformedRecordError(SeqLenError):
    """A record violates the structure of its text format"""
    default_code = "MALFORMED_RECORD"
    default_category = ErrorCategory.RECORD

    def __init__(
        self,
        message: str,
        record_index: Optional[int] = None,
        offset: Optional[int] = None,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        if record_index is not None:
            details["record_index"] = record_index
        if offset is not None:
            details["offset"] = offset
        super().__init__(message, details=details, **kwargs)
        self.record_index = record_index
        self.offset = offset


class NotFastaFormatError(MalformedRecordError):
    """Sequence content appears before any FASTA header line"""
    default_code = "NOT_FASTA_FORMAT"


class CorruptContainerError(SeqLenError):
    """Binary container or compressed stream failed integrity checks"""
    default_code = "CORRUPT_CONTAINER"
    default_category = ErrorCategory.CONTAINER

    def __init__(
        self,
        message: str,
        offset: Optional[int] = None,
        record_index: Optional[int] = None,
        path: Optional[str] = None,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        if offset is not None:
            details["offset"] = offset
        if record_index is not None:
            details["record_index"] = record_index
        if path:
            details["path"] = path
        super().__init__(message, details=details, **kwargs)
        self.offset = offset
        self.record_index = record_index


class IoFailureError(SeqLenError):
    """The underlying file could not be opened or read"""
    default_code = "IO_FAILURE"
    default_category = ErrorCategory.FILE_SYSTEM

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        operation: Optional[str] = None,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        if path:
            details["path"] = path
        if operation:
            details["operation"] = operation
        super().__init__(message, details=details, **kwargs)


class EmptyInputError(SeqLenError):
    """No qualifying records, so no statistic is defined"""
    default_code = "EMPTY_INPUT"
    default_category = ErrorCategory.INPUT

    def __init__(self, message: str, path: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if path:
            details["path"] = path
        super().__init__(message, details=details, **kwargs)


class ValidationError(SeqLenError):
    """Invalid argument value"""
    default_code = "VALIDATION_ERROR"
    default_category = ErrorCategory.VALIDATION

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Any = None,
        expected: Optional[str] = None,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)
        if expected:
            details["expected"] = expected
        super().__init__(message, details=details, **kwargs)


class ConfigurationError(SeqLenError):
    """Error in configuration settings"""
    default_code = "CONFIG_ERROR"
    default_category = ErrorCategory.CONFIGURATION

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_file: Optional[str] = None,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        if config_key:
            details["config_key"] = config_key
        if config_file:
            details["config_file"] = config_file
        super().__init__(message, details=details, **kwargs)


# Error handling utilities

def format_exception(exc: Exception, verbose: bool = False) -> str:
    """Format an exception for display"""
    if isinstance(exc, SeqLenError):
        return exc.format_message(verbose=verbose)

    if verbose:
        return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return str(exc)


def handle_error(
    exc: Exception,
    exit_code: int = 1,
    verbose: bool = False
) -> None:
    """
    Standard error handler for the command line: print and exit.

    Args:
        exc: The exception to handle
        exit_code: Process exit status
        verbose: Whether to show details and suggestions
    """
    message = format_exception(exc, verbose=verbose)

    # SeqLenError messages already carry their code
    if isinstance(exc, SeqLenError):
        prefix = "Error"
    else:
        prefix = f"Error [{type(exc).__name__}]"

    print(f"{prefix}: {message}", file=sys.stderr)
    sys.exit(exit_code)
