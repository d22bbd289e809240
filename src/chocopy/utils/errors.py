"""
Exception types for the ChocoPy frontend.

Expected problems in a program (bad tokens, syntax errors, type errors) are
reported as diagnostics, not raised. The exceptions here are for the few
places where unwinding is the natural control flow.
"""

from typing import Optional

from chocopy.utils.diagnostics import SourceSpan


class ChocoPyError(Exception):
    """Base exception for all ChocoPy frontend errors."""

    def __init__(self, message: str, span: Optional[SourceSpan] = None) -> None:
        self.message = message
        self.span = span
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.span is None:
            return self.message
        return f"[{self.span}] {self.message}"


class ParserError(ChocoPyError):
    """
    Raised inside the parser to abandon the current statement.

    The parser always catches it at a statement boundary and turns it into
    a syntax diagnostic, so it never escapes ``Parser.parse``.
    """

    def __init__(
        self,
        message: str,
        span: Optional[SourceSpan] = None,
        code: Optional[str] = None,
    ) -> None:
        self.code = code
        super().__init__(message, span)


class SerializationError(ChocoPyError):
    """Raised when a compilation result cannot be converted to JSON."""

    pass
