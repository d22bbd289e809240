"""
ChocoPy Lexer (Tokenizer).

Transforms ChocoPy source code into a stream of tokens. Block structure is
carried by NEWLINE, INDENT and DEDENT tokens computed from a stack of
indentation widths, as in Python.

Malformed input never stops the lexer: each problem is recorded in the
diagnostics collector and lexing resumes at the next plausible token.
"""

from __future__ import annotations

import logging
from typing import Iterator, Optional

from chocopy.compiler.tokens import (
    DOUBLE_CHAR_TOKENS,
    KEYWORDS,
    SINGLE_CHAR_TOKENS,
    Token,
    TokenType,
)
from chocopy.utils.diagnostics import DiagnosticCollector, ErrorCode, SourceSpan

logger = logging.getLogger(__name__)

TAB_WIDTH = 8
MAX_INTEGER = 2**31 - 1

ESCAPE_SEQUENCES: dict[str, str] = {
    "\\": "\\",
    '"': '"',
    "n": "\n",
    "t": "\t",
}


def _is_identifier_start(char: str) -> bool:
    return char == "_" or (char.isascii() and char.isalpha())


def _is_identifier_char(char: str) -> bool:
    return char == "_" or (char.isascii() and char.isalnum())


def is_identifier(text: str) -> bool:
    """Check whether text is a well-formed ChocoPy identifier."""
    return (
        bool(text)
        and _is_identifier_start(text[0])
        and all(_is_identifier_char(c) for c in text[1:])
    )


class Lexer:
    """
    Tokenizer for ChocoPy source code.

    The lexer supports:
    - Indentation-sensitive blocks (tabs advance to the next multiple of 8)
    - Identifiers, keywords and the reserved Python keywords
    - Decimal integer literals up to 2**31 - 1
    - Double-quoted string literals with \\\\, \\", \\n and \\t escapes
    - Comments starting with #

    Usage:
        lexer = Lexer(source_code)
        tokens = lexer.tokenize()
        for diagnostic in lexer.diagnostics:
            ...
    """

    def __init__(
        self,
        source: str,
        filename: str = "<input>",
        diagnostics: Optional[DiagnosticCollector] = None,
    ) -> None:
        """
        Initialize the lexer with source code.

        Args:
            source: The ChocoPy source code to tokenize
            filename: Filename recorded in token spans
            diagnostics: Collector shared with later stages; a new one is
                created when omitted
        """
        self.source = source.replace("\r\n", "\n").replace("\r", "\n")
        self.filename = filename
        self.diagnostics = diagnostics if diagnostics is not None else DiagnosticCollector(filename)
        self.pos = 0
        self.line = 1
        self.column = 1
        self.tokens: list[Token] = []

        self._indent_stack: list[tuple[int, bool]] = [(0, True)]
        self._at_line_start = True
        self._line_has_tokens = False

    @property
    def _current_char(self) -> Optional[str]:
        """Return the current character or None if at end."""
        if self.pos >= len(self.source):
            return None
        return self.source[self.pos]

    @property
    def _peek_char(self) -> Optional[str]:
        """Return the next character without consuming it."""
        peek_pos = self.pos + 1
        if peek_pos >= len(self.source):
            return None
        return self.source[peek_pos]

    def _advance(self) -> str:
        """Consume and return the current character."""
        char = self.source[self.pos]
        self.pos += 1

        if char == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1

        return char

    def _span_from(self, line: int, column: int) -> SourceSpan:
        """Span from the given start to the current position."""
        return SourceSpan(line, column, self.line, self.column, self.filename)

    def _point(self) -> SourceSpan:
        """Zero-width span at the current position."""
        return SourceSpan(self.line, self.column, self.line, self.column, self.filename)

    def _emit(self, token_type: TokenType, value: object, span: SourceSpan) -> None:
        self.tokens.append(Token(token_type, value, span))
        if token_type not in (TokenType.INDENT, TokenType.DEDENT):
            self._line_has_tokens = True

    # -------------------------------------------------------------------------
    # Layout
    # -------------------------------------------------------------------------

    def _handle_line_start(self) -> None:
        """
        Measure the indentation of a physical line.

        Blank and comment-only lines are consumed without producing tokens.
        Otherwise INDENT or DEDENT tokens are emitted to bring the stack in
        line with the new width.
        """
        width = 0
        while self._current_char is not None and self._current_char in " \t":
            if self._current_char == "\t":
                width = (width // TAB_WIDTH + 1) * TAB_WIDTH
            else:
                width += 1
            self._advance()

        if self._current_char == "#":
            self._skip_comment()

        if self._current_char is None:
            return
        if self._current_char == "\n":
            self._advance()
            return

        self._at_line_start = False
        self._line_has_tokens = False

        top = self._indent_stack[-1][0]
        if width > top:
            self._indent_stack.append((width, True))
            self._emit(
                TokenType.INDENT,
                None,
                SourceSpan(self.line, 1, self.line, self.column, self.filename),
            )
            return

        while width < self._indent_stack[-1][0]:
            _, real = self._indent_stack.pop()
            if real:
                self._emit(TokenType.DEDENT, None, self._point())

        if width > self._indent_stack[-1][0]:
            # Matches no enclosing level: stay at the level just reached and
            # treat this width as an alias of it until it is dedented again.
            self.diagnostics.error(
                ErrorCode.E0106,
                "Unindent does not match any outer indentation level",
                SourceSpan(self.line, 1, self.line, self.column, self.filename),
            )
            self._indent_stack.append((width, False))

    def _skip_comment(self) -> None:
        """Skip single-line comments starting with #."""
        while self._current_char is not None and self._current_char != "\n":
            self._advance()

    def _finish(self) -> None:
        """Close the last logical line and all open blocks."""
        if self._line_has_tokens:
            self._emit(TokenType.NEWLINE, "\n", self._point())
            self._line_has_tokens = False
        while len(self._indent_stack) > 1:
            _, real = self._indent_stack.pop()
            if real:
                self._emit(TokenType.DEDENT, None, self._point())
        self._emit(TokenType.EOF, None, self._point())

    # -------------------------------------------------------------------------
    # Literals and names
    # -------------------------------------------------------------------------

    def _read_string(self) -> None:
        """
        Read a double-quoted string literal.

        Recoverable problems (bad escapes, characters outside printable
        ASCII, a missing closing quote) are recorded and the literal is
        still emitted with whatever value could be decoded.
        """
        start_line, start_col = self.line, self.column
        self._advance()  # opening quote
        value_chars: list[str] = []
        clean = True

        while True:
            char = self._current_char
            if char is None or char == "\n":
                self.diagnostics.error(
                    ErrorCode.E0102,
                    "Unterminated string literal",
                    self._span_from(start_line, start_col),
                )
                self._emit(TokenType.STRING, "".join(value_chars), self._span_from(start_line, start_col))
                return

            if char == '"':
                self._advance()
                break

            if char == "\\":
                escape_line, escape_col = self.line, self.column
                self._advance()
                escaped = self._current_char
                if escaped is None or escaped == "\n":
                    continue
                self._advance()
                if escaped in ESCAPE_SEQUENCES:
                    value_chars.append(ESCAPE_SEQUENCES[escaped])
                else:
                    clean = False
                    self.diagnostics.error(
                        ErrorCode.E0103,
                        f"Invalid escape sequence: \\{escaped}",
                        self._span_from(escape_line, escape_col),
                    )
                continue

            if not 32 <= ord(char) <= 126:
                clean = False
                char_line, char_col = self.line, self.column
                self._advance()
                self.diagnostics.error(
                    ErrorCode.E0103,
                    f"Invalid character in string literal: {char!r}",
                    self._span_from(char_line, char_col),
                )
                continue

            value_chars.append(self._advance())

        value = "".join(value_chars)
        token_type = TokenType.IDSTRING if clean and is_identifier(value) else TokenType.STRING
        self._emit(token_type, value, self._span_from(start_line, start_col))

    def _read_number(self) -> None:
        """Read a decimal integer literal."""
        start_line, start_col = self.line, self.column
        digits: list[str] = []
        while self._current_char is not None and self._current_char.isdigit() and self._current_char.isascii():
            digits.append(self._advance())

        text = "".join(digits)
        value = int(text)
        span = self._span_from(start_line, start_col)

        if len(text) > 1 and text[0] == "0":
            self.diagnostics.error(
                ErrorCode.E0104,
                f"Invalid integer literal: {text} (leading zeros are not allowed)",
                span,
            )
        elif value > MAX_INTEGER:
            self.diagnostics.error(
                ErrorCode.E0105,
                f"Integer literal is too large: {text}",
                span,
            )

        self._emit(TokenType.INTEGER, value, span)

    def _read_identifier_or_keyword(self) -> None:
        """
        Read an identifier or keyword.

        Identifiers start with an ASCII letter or underscore and contain
        letters, digits, and underscores.
        """
        start_line, start_col = self.line, self.column
        id_chars: list[str] = []

        while self._current_char is not None and _is_identifier_char(self._current_char):
            id_chars.append(self._advance())

        identifier = "".join(id_chars)
        span = self._span_from(start_line, start_col)
        self._emit(KEYWORDS.get(identifier, TokenType.IDENTIFIER), identifier, span)

    def _read_operator(self) -> bool:
        """Try to read an operator or delimiter; return False if none starts here."""
        start_line, start_col = self.line, self.column
        char = self._current_char
        pair = char + (self._peek_char or "")

        if pair in DOUBLE_CHAR_TOKENS:
            self._advance()
            self._advance()
            self._emit(DOUBLE_CHAR_TOKENS[pair], pair, self._span_from(start_line, start_col))
            return True

        if char in SINGLE_CHAR_TOKENS:
            self._advance()
            self._emit(SINGLE_CHAR_TOKENS[char], char, self._span_from(start_line, start_col))
            return True

        return False

    def _starts_token(self) -> bool:
        char = self._current_char
        if char is None or char in " \t\n#\"":
            return True
        if _is_identifier_start(char) or (char.isascii() and char.isdigit()):
            return True
        pair = char + (self._peek_char or "")
        return pair in DOUBLE_CHAR_TOKENS or char in SINGLE_CHAR_TOKENS

    def _skip_invalid(self) -> None:
        """Skip a run of characters that cannot start any token."""
        start_line, start_col = self.line, self.column
        chars = [self._advance()]
        while not self._starts_token():
            chars.append(self._advance())

        text = "".join(chars)
        self.diagnostics.error(
            ErrorCode.E0101,
            f"Invalid character{'s' if len(text) > 1 else ''}: {text!r}",
            self._span_from(start_line, start_col),
        )

    # -------------------------------------------------------------------------
    # Driver
    # -------------------------------------------------------------------------

    def tokenize(self) -> list[Token]:
        """
        Tokenize the entire source code.

        Returns:
            A list of all tokens including the final EOF token.
        """
        self.tokens = []
        self.pos = 0
        self.line = 1
        self.column = 1
        self._indent_stack = [(0, True)]
        self._at_line_start = True
        self._line_has_tokens = False

        while self._current_char is not None:
            if self._at_line_start:
                self._handle_line_start()
                continue

            char = self._current_char
            if char in " \t":
                self._advance()
            elif char == "#":
                self._skip_comment()
            elif char == "\n":
                if self._line_has_tokens:
                    self._emit(
                        TokenType.NEWLINE,
                        "\n",
                        SourceSpan(self.line, self.column, self.line, self.column + 1, self.filename),
                    )
                    self._line_has_tokens = False
                self._advance()
                self._at_line_start = True
            elif char == '"':
                self._read_string()
            elif char.isascii() and char.isdigit():
                self._read_number()
            elif _is_identifier_start(char):
                self._read_identifier_or_keyword()
            elif not self._read_operator():
                self._skip_invalid()

        self._finish()
        logger.debug("Lexed %d tokens from %s", len(self.tokens), self.filename)
        return self.tokens

    def __iter__(self) -> Iterator[Token]:
        """Iterate over tokens (tokenizes on first use)."""
        if not self.tokens:
            self.tokenize()
        return iter(self.tokens)


def tokenize(source: str, filename: str = "<input>") -> list[Token]:
    """
    Convenience function to tokenize source code.

    Lexical diagnostics are dropped; use ``Lexer`` directly to see them.
    """
    return Lexer(source, filename).tokenize()
