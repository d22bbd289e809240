"""
Diagnostics for the ChocoPy frontend.

Every problem found in a program, from a stray character to an incompatible
method override, is recorded as a ``Diagnostic`` in a ``DiagnosticCollector``.
The lexer, parser and type checker of one compilation share a single
collector; nothing is ever raised to the caller for a bad program.

Example output:
    error[E0301]: `countr` is not defined
      --> example.py:5:7
       |
     5 | print(countr)
       |       ^^^^^^
       |
       = help: did you mean `counter`?
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Iterator, Optional


# =============================================================================
# Error Codes Catalog
# =============================================================================


class ErrorCode:
    """
    Centralized catalog of error codes for ChocoPy diagnostics.

    Error codes are organized by category:
    - E01xx: Lexical errors
    - E02xx: Syntax errors
    - E03xx: Name and declaration errors
    - E04xx: Type errors
    """

    # Lexical errors: E01xx
    E0101 = "E0101"  # invalid character
    E0102 = "E0102"  # unterminated string
    E0103 = "E0103"  # invalid string character or escape
    E0104 = "E0104"  # invalid integer literal
    E0105 = "E0105"  # integer literal out of range
    E0106 = "E0106"  # inconsistent dedent

    # Syntax errors: E02xx
    E0201 = "E0201"  # unexpected token
    E0202 = "E0202"  # missing token
    E0203 = "E0203"  # invalid expression
    E0204 = "E0204"  # invalid assignment target
    E0205 = "E0205"  # misplaced declaration
    E0206 = "E0206"  # empty body
    E0207 = "E0207"  # unexpected indent
    E0208 = "E0208"  # invalid literal in declaration
    E0209 = "E0209"  # nesting too deep

    # Name errors: E03xx
    E0301 = "E0301"  # undefined name
    E0302 = "E0302"  # duplicate declaration
    E0303 = "E0303"  # shadowed class name
    E0304 = "E0304"  # not a global variable
    E0305 = "E0305"  # not a nonlocal variable
    E0306 = "E0306"  # assignment to undeclared variable
    E0307 = "E0307"  # unknown class in annotation
    E0308 = "E0308"  # undefined super-class
    E0309 = "E0309"  # super-class is not a class
    E0310 = "E0310"  # cannot extend special class
    E0311 = "E0311"  # attribute redefined
    E0312 = "E0312"  # invalid method receiver

    # Type errors: E04xx
    E0401 = "E0401"  # type mismatch
    E0402 = "E0402"  # incompatible operand types
    E0403 = "E0403"  # wrong number of arguments
    E0404 = "E0404"  # not callable
    E0405 = "E0405"  # member not found
    E0406 = "E0406"  # not indexable
    E0407 = "E0407"  # non-integer index
    E0408 = "E0408"  # not iterable
    E0409 = "E0409"  # invalid condition
    E0410 = "E0410"  # incompatible override
    E0411 = "E0411"  # return outside function
    E0412 = "E0412"  # missing return
    E0413 = "E0413"  # invalid multiple assignment
    E0414 = "E0414"  # immutable string


# Error code descriptions for documentation
ERROR_DESCRIPTIONS: dict[str, str] = {
    ErrorCode.E0101: "invalid character",
    ErrorCode.E0102: "unterminated string",
    ErrorCode.E0103: "invalid string character or escape",
    ErrorCode.E0104: "invalid integer literal",
    ErrorCode.E0105: "integer literal out of range",
    ErrorCode.E0106: "inconsistent dedent",
    ErrorCode.E0201: "unexpected token",
    ErrorCode.E0202: "missing token",
    ErrorCode.E0203: "invalid expression",
    ErrorCode.E0204: "invalid assignment target",
    ErrorCode.E0205: "misplaced declaration",
    ErrorCode.E0206: "empty body",
    ErrorCode.E0207: "unexpected indent",
    ErrorCode.E0208: "invalid literal in declaration",
    ErrorCode.E0209: "nesting too deep",
    ErrorCode.E0301: "undefined name",
    ErrorCode.E0302: "duplicate declaration",
    ErrorCode.E0303: "shadowed class name",
    ErrorCode.E0304: "not a global variable",
    ErrorCode.E0305: "not a nonlocal variable",
    ErrorCode.E0306: "assignment to undeclared variable",
    ErrorCode.E0307: "unknown class in annotation",
    ErrorCode.E0308: "undefined super-class",
    ErrorCode.E0309: "super-class is not a class",
    ErrorCode.E0310: "cannot extend special class",
    ErrorCode.E0311: "attribute redefined",
    ErrorCode.E0312: "invalid method receiver",
    ErrorCode.E0401: "type mismatch",
    ErrorCode.E0402: "incompatible operand types",
    ErrorCode.E0403: "wrong number of arguments",
    ErrorCode.E0404: "not callable",
    ErrorCode.E0405: "member not found",
    ErrorCode.E0406: "not indexable",
    ErrorCode.E0407: "non-integer index",
    ErrorCode.E0408: "not iterable",
    ErrorCode.E0409: "invalid condition",
    ErrorCode.E0410: "incompatible override",
    ErrorCode.E0411: "return outside function",
    ErrorCode.E0412: "missing return",
    ErrorCode.E0413: "invalid multiple assignment",
    ErrorCode.E0414: "immutable string",
}


# =============================================================================
# Diagnostic Types
# =============================================================================


class DiagnosticKind(Enum):
    """The pipeline stage class a diagnostic belongs to."""

    LEXICAL = "lexical"
    SYNTAX = "syntax"
    NAME = "name"
    TYPE = "type"

    @classmethod
    def for_code(cls, code: str) -> "DiagnosticKind":
        """Derive the kind from an error code's category."""
        category = code[1:3]
        return {
            "01": cls.LEXICAL,
            "02": cls.SYNTAX,
            "03": cls.NAME,
        }.get(category, cls.TYPE)


class DiagnosticLevel(Enum):
    """Severity level of a diagnostic message."""

    ERROR = "error"
    WARNING = "warning"

    def color_code(self) -> str:
        """Get ANSI color code for this level."""
        colors = {
            DiagnosticLevel.ERROR: "\033[91m",  # Red
            DiagnosticLevel.WARNING: "\033[93m",  # Yellow
        }
        return colors.get(self, "")


@dataclass(frozen=True, slots=True)
class SourceSpan:
    """
    A span of source code, representing a range of characters.

    Attributes:
        start_line: 1-indexed starting line number
        start_col: 1-indexed starting column number
        end_line: 1-indexed ending line number
        end_col: 1-indexed ending column number (exclusive)
        filename: Optional filename for display
    """

    start_line: int
    start_col: int
    end_line: int
    end_col: int
    filename: str = "<input>"

    @classmethod
    def from_location(
        cls, line: int, col: int, length: int = 1, filename: str = "<input>"
    ) -> "SourceSpan":
        """Create a span from a single location with a given length."""
        return cls(
            start_line=line,
            start_col=col,
            end_line=line,
            end_col=col + length,
            filename=filename,
        )

    def __str__(self) -> str:
        return f"{self.filename}:{self.start_line}:{self.start_col}"

    @property
    def is_multiline(self) -> bool:
        """Check if this span covers multiple lines."""
        return self.start_line != self.end_line

    @property
    def length(self) -> int:
        """Get the length of the span on a single line."""
        if self.is_multiline:
            return 1
        return max(1, self.end_col - self.start_col)

    @property
    def start(self) -> tuple[int, int]:
        return (self.start_line, self.start_col)

    @property
    def end(self) -> tuple[int, int]:
        return (self.end_line, self.end_col)

    def to(self, other: "SourceSpan") -> "SourceSpan":
        """Return the span running from the start of self to the end of other."""
        return SourceSpan(
            self.start_line, self.start_col, other.end_line, other.end_col, self.filename
        )

    def contains(self, other: "SourceSpan") -> bool:
        """Check whether other lies entirely within this span."""
        return self.start <= other.start and other.end <= self.end

    def contains_position(self, line: int, col: int) -> bool:
        """Check whether the 1-indexed position falls inside this span."""
        return self.start <= (line, col) < self.end

    def as_list(self) -> list[int]:
        """The [start_line, start_col, end_line, end_col] form used on the wire."""
        return [self.start_line, self.start_col, self.end_line, self.end_col]


@dataclass
class Diagnostic:
    """
    A single recorded problem with its source location.

    Attributes:
        code: Error code (e.g., "E0301")
        level: Severity level
        message: The diagnostic message
        span: Where in the source the problem is
        kind: Lexical, syntax, name or type
        notes: Additional notes to display
        helps: Help messages with suggestions
    """

    code: str
    level: DiagnosticLevel
    message: str
    span: Optional[SourceSpan] = None
    kind: DiagnosticKind = DiagnosticKind.TYPE
    notes: list[str] = field(default_factory=list)
    helps: list[str] = field(default_factory=list)

    @property
    def syntax(self) -> bool:
        """True for problems found before type checking."""
        return self.kind in (DiagnosticKind.LEXICAL, DiagnosticKind.SYNTAX)

    @property
    def is_error(self) -> bool:
        return self.level == DiagnosticLevel.ERROR

    def render(self, source_code: str, use_color: bool = True) -> str:
        """
        Render this diagnostic as a formatted string.

        Args:
            source_code: The original source code for context
            use_color: Whether to use ANSI color codes

        Returns:
            A formatted multi-line string representation
        """
        lines: list[str] = []
        source_lines = source_code.splitlines()

        reset = "\033[0m" if use_color else ""
        bold = "\033[1m" if use_color else ""
        level_color = self.level.color_code() if use_color else ""
        blue = "\033[94m" if use_color else ""
        green = "\033[92m" if use_color else ""

        # Header line: error[E0301]: `x` is not defined
        lines.append(
            f"{level_color}{bold}{self.level.value}[{self.code}]{reset}: "
            f"{bold}{self.message}{reset}"
        )

        if self.span is not None:
            lines.append(f"  {blue}-->{reset} {self.span}")

            line_num = self.span.start_line
            if 1 <= line_num <= len(source_lines):
                source_line = source_lines[line_num - 1].expandtabs(1)
                lines.append(f"   {blue}|{reset}")
                lines.append(f"{blue}{line_num:3} |{reset} {source_line}")
                padding = " " * (self.span.start_col - 1)
                underline = "^" * self.span.length
                lines.append(f"   {blue}|{reset} {padding}{level_color}{underline}{reset}")
                lines.append(f"   {blue}|{reset}")

        for note in self.notes:
            lines.append(f"   {blue}={reset} {bold}note:{reset} {note}")

        for help_msg in self.helps:
            lines.append(f"   {blue}={reset} {green}help:{reset} {help_msg}")

        return "\n".join(lines)

    def to_simple_message(self) -> str:
        """Get a simple one-line message, prefixed with the location."""
        if self.span is None:
            return f"[{self.code}] {self.message}"
        return f"{self.span.start_line}:{self.span.start_col}: [{self.code}] {self.message}"


# =============================================================================
# Diagnostic Collector
# =============================================================================


class DiagnosticCollector:
    """
    Append-only, ordered collection of diagnostics for one compilation.

    Records are kept in insertion order, which is traversal order. The
    collector never reorders, filters or discards what it was given.

    Usage:
        diagnostics = DiagnosticCollector("example.py")
        diagnostics.error(ErrorCode.E0301, "`x` is not defined", span)
        if diagnostics.has_errors():
            print(diagnostics.render_all(source))
    """

    def __init__(self, filename: str = "<input>") -> None:
        self.filename = filename
        self._diagnostics: list[Diagnostic] = []

    @property
    def diagnostics(self) -> list[Diagnostic]:
        """A copy of the recorded diagnostics, in insertion order."""
        return list(self._diagnostics)

    def add(self, diagnostic: Diagnostic) -> Diagnostic:
        """Append a diagnostic to the collection."""
        self._diagnostics.append(diagnostic)
        return diagnostic

    def extend(self, diagnostics: Iterable[Diagnostic]) -> None:
        for diagnostic in diagnostics:
            self.add(diagnostic)

    def error(
        self,
        code: str,
        message: str,
        span: Optional[SourceSpan] = None,
        *,
        helps: Optional[list[str]] = None,
        notes: Optional[list[str]] = None,
    ) -> Diagnostic:
        """Record an error diagnostic; the kind follows from the code."""
        return self.add(
            Diagnostic(
                code=code,
                level=DiagnosticLevel.ERROR,
                message=message,
                span=span,
                kind=DiagnosticKind.for_code(code),
                notes=notes or [],
                helps=helps or [],
            )
        )

    def warning(self, code: str, message: str, span: Optional[SourceSpan] = None) -> Diagnostic:
        """Record a warning diagnostic."""
        return self.add(
            Diagnostic(
                code=code,
                level=DiagnosticLevel.WARNING,
                message=message,
                span=span,
                kind=DiagnosticKind.for_code(code),
            )
        )

    def has_errors(self) -> bool:
        """Check if any error diagnostics have been recorded."""
        return any(d.is_error for d in self._diagnostics)

    def error_count(self) -> int:
        return sum(1 for d in self._diagnostics if d.is_error)

    def warning_count(self) -> int:
        return sum(1 for d in self._diagnostics if d.level == DiagnosticLevel.WARNING)

    def render_all(self, source: str, use_color: bool = True) -> str:
        """Render all diagnostics as a single string."""
        return "\n\n".join(d.render(source, use_color) for d in self._diagnostics)

    def __len__(self) -> int:
        return len(self._diagnostics)

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(list(self._diagnostics))


# =============================================================================
# String Similarity (Levenshtein Distance)
# =============================================================================


def levenshtein_distance(s1: str, s2: str) -> int:
    """
    Calculate the Levenshtein (edit) distance between two strings.

    The Levenshtein distance is the minimum number of single-character
    edits (insertions, deletions, or substitutions) required to change
    one string into the other.
    """
    if len(s1) < len(s2):
        return levenshtein_distance(s2, s1)

    if len(s2) == 0:
        return len(s1)

    previous_row = list(range(len(s2) + 1))

    for i, c1 in enumerate(s1):
        current_row = [i + 1]
        for j, c2 in enumerate(s2):
            insertions = previous_row[j + 1] + 1
            deletions = current_row[j] + 1
            substitutions = previous_row[j] + (c1 != c2)
            current_row.append(min(insertions, deletions, substitutions))
        previous_row = current_row

    return previous_row[-1]


def suggest_similar(
    name: str,
    candidates: Iterable[str],
    max_distance: int = 2,
    max_suggestions: int = 3,
) -> list[str]:
    """
    Find similar names from a list of candidates.

    Args:
        name: The name to find suggestions for
        candidates: Valid names to compare against
        max_distance: Maximum edit distance to consider (default 2)
        max_suggestions: Maximum number of suggestions to return

    Returns:
        List of similar names, sorted by similarity (closest first)
    """
    scored = []
    for candidate in set(candidates):
        if candidate == name or abs(len(candidate) - len(name)) > max_distance:
            continue

        distance = levenshtein_distance(name.lower(), candidate.lower())
        if distance <= max_distance:
            scored.append((candidate, distance))

    # Closest first, alphabetical for ties
    scored.sort(key=lambda x: (x[1], x[0]))

    return [candidate for candidate, _ in scored[:max_suggestions]]
