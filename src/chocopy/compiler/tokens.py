"""
Token definitions for the ChocoPy lexer.

This module defines all token types recognized by ChocoPy, including the
layout tokens (NEWLINE, INDENT, DEDENT) that carry block structure.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any

from chocopy.utils.diagnostics import SourceSpan


class TokenType(Enum):
    """Enumeration of all token types in ChocoPy."""

    # End of file
    EOF = auto()

    # Layout
    NEWLINE = auto()
    INDENT = auto()
    DEDENT = auto()

    # Literals
    INTEGER = auto()
    STRING = auto()
    IDSTRING = auto()  # "Name", usable as a string or a class annotation

    # Identifiers
    IDENTIFIER = auto()

    # Keywords
    FALSE = auto()
    NONE = auto()
    TRUE = auto()
    AND = auto()
    AS = auto()
    ASSERT = auto()
    ASYNC = auto()
    AWAIT = auto()
    BREAK = auto()
    CLASS = auto()
    CONTINUE = auto()
    DEF = auto()
    DEL = auto()
    ELIF = auto()
    ELSE = auto()
    EXCEPT = auto()
    FINALLY = auto()
    FOR = auto()
    FROM = auto()
    GLOBAL = auto()
    IF = auto()
    IMPORT = auto()
    IN = auto()
    IS = auto()
    LAMBDA = auto()
    NONLOCAL = auto()
    NOT = auto()
    OR = auto()
    PASS = auto()
    RAISE = auto()
    RETURN = auto()
    TRY = auto()
    WHILE = auto()
    WITH = auto()
    YIELD = auto()

    # Arithmetic operators
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    DOUBLE_SLASH = auto()
    PERCENT = auto()

    # Comparison operators
    LT = auto()
    GT = auto()
    LE = auto()
    GE = auto()
    EQ = auto()
    NE = auto()

    # Delimiters
    ASSIGN = auto()
    LPAREN = auto()
    RPAREN = auto()
    LBRACKET = auto()
    RBRACKET = auto()
    COMMA = auto()
    COLON = auto()
    DOT = auto()
    ARROW = auto()  # ->


# Every Python keyword is reserved, even those ChocoPy does not use
KEYWORDS: dict[str, TokenType] = {
    "False": TokenType.FALSE,
    "None": TokenType.NONE,
    "True": TokenType.TRUE,
    "and": TokenType.AND,
    "as": TokenType.AS,
    "assert": TokenType.ASSERT,
    "async": TokenType.ASYNC,
    "await": TokenType.AWAIT,
    "break": TokenType.BREAK,
    "class": TokenType.CLASS,
    "continue": TokenType.CONTINUE,
    "def": TokenType.DEF,
    "del": TokenType.DEL,
    "elif": TokenType.ELIF,
    "else": TokenType.ELSE,
    "except": TokenType.EXCEPT,
    "finally": TokenType.FINALLY,
    "for": TokenType.FOR,
    "from": TokenType.FROM,
    "global": TokenType.GLOBAL,
    "if": TokenType.IF,
    "import": TokenType.IMPORT,
    "in": TokenType.IN,
    "is": TokenType.IS,
    "lambda": TokenType.LAMBDA,
    "nonlocal": TokenType.NONLOCAL,
    "not": TokenType.NOT,
    "or": TokenType.OR,
    "pass": TokenType.PASS,
    "raise": TokenType.RAISE,
    "return": TokenType.RETURN,
    "try": TokenType.TRY,
    "while": TokenType.WHILE,
    "with": TokenType.WITH,
    "yield": TokenType.YIELD,
}

# Single character operators
SINGLE_CHAR_TOKENS: dict[str, TokenType] = {
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.STAR,
    "%": TokenType.PERCENT,
    "<": TokenType.LT,
    ">": TokenType.GT,
    "=": TokenType.ASSIGN,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
    ",": TokenType.COMMA,
    ":": TokenType.COLON,
    ".": TokenType.DOT,
}

# Two character operators (checked before single char)
DOUBLE_CHAR_TOKENS: dict[str, TokenType] = {
    "//": TokenType.DOUBLE_SLASH,
    "==": TokenType.EQ,
    "!=": TokenType.NE,
    "<=": TokenType.LE,
    ">=": TokenType.GE,
    "->": TokenType.ARROW,
}

LAYOUT_TOKENS = frozenset({TokenType.NEWLINE, TokenType.INDENT, TokenType.DEDENT, TokenType.EOF})


@dataclass(slots=True)
class Token:
    """
    Represents a single token from the source code.

    Attributes:
        type: The type of this token
        value: The int for INTEGER, the decoded text for STRING and
            IDSTRING, the lexeme otherwise
        span: Source span of this token
    """

    type: TokenType
    value: Any
    span: SourceSpan

    def __repr__(self) -> str:
        if self.value is not None:
            return f"Token({self.type.name}, {self.value!r}, {self.span.start_line}:{self.span.start_col})"
        return f"Token({self.type.name}, {self.span.start_line}:{self.span.start_col})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Token):
            return self.type == other.type and self.value == other.value
        if isinstance(other, TokenType):
            return self.type == other
        return NotImplemented

    @property
    def is_layout(self) -> bool:
        """Check if this token only carries block structure."""
        return self.type in LAYOUT_TOKENS

    @property
    def is_literal(self) -> bool:
        """Check if this token represents a literal value."""
        return self.type in {
            TokenType.INTEGER,
            TokenType.STRING,
            TokenType.IDSTRING,
            TokenType.TRUE,
            TokenType.FALSE,
            TokenType.NONE,
        }

    @property
    def is_keyword(self) -> bool:
        return self.type in _KEYWORD_TYPES

    @property
    def lexeme(self) -> str:
        """Human readable rendering for error messages."""
        if self.type == TokenType.NEWLINE:
            return "newline"
        if self.type == TokenType.INDENT:
            return "indent"
        if self.type == TokenType.DEDENT:
            return "dedent"
        if self.type == TokenType.EOF:
            return "end of file"
        if self.type in (TokenType.STRING, TokenType.IDSTRING):
            return f'"{self.value}"'
        return str(self.value)


_KEYWORD_TYPES = frozenset(KEYWORDS.values())
