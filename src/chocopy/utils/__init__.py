"""
ChocoPy Utilities Package.

Common utilities for error handling and diagnostics.
"""

from chocopy.utils.diagnostics import (
    ERROR_DESCRIPTIONS,
    Diagnostic,
    DiagnosticCollector,
    DiagnosticKind,
    DiagnosticLevel,
    ErrorCode,
    SourceSpan,
    levenshtein_distance,
    suggest_similar,
)
from chocopy.utils.errors import (
    ChocoPyError,
    ParserError,
    SerializationError,
)

__all__ = [
    # Errors
    "ChocoPyError",
    "ParserError",
    "SerializationError",
    # Error codes
    "ErrorCode",
    "ERROR_DESCRIPTIONS",
    # Core diagnostic types
    "DiagnosticKind",
    "DiagnosticLevel",
    "SourceSpan",
    "Diagnostic",
    "DiagnosticCollector",
    # String similarity utilities
    "levenshtein_distance",
    "suggest_similar",
]
