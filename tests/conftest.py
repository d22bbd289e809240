"""
Pytest configuration and shared fixtures for ChocoPy tests.
"""

import pytest

from chocopy.compiler import CompilationPipeline, CompilationResult
from chocopy.compiler.ast_nodes import Program
from chocopy.compiler.lexer import Lexer
from chocopy.compiler.parser import Parser
from chocopy.compiler.tokens import Token
from chocopy.compiler.type_checker import TypeChecker
from chocopy.utils.diagnostics import DiagnosticCollector


@pytest.fixture
def lexer_factory():
    """Factory fixture for creating lexers."""

    def _create_lexer(source: str, filename: str = "test.py") -> Lexer:
        return Lexer(source, filename)

    return _create_lexer


@pytest.fixture
def parser_factory():
    """Factory fixture for creating parsers from source."""

    def _create_parser(source: str) -> Parser:
        diagnostics = DiagnosticCollector("test.py")
        tokens = Lexer(source, "test.py", diagnostics).tokenize()
        return Parser(tokens, "test.py", diagnostics)

    return _create_parser


@pytest.fixture
def tokenize(lexer_factory):
    """Fixture to tokenize source code."""

    def _tokenize(source: str) -> list[Token]:
        lexer = lexer_factory(source)
        return lexer.tokenize()

    return _tokenize


@pytest.fixture
def parse(parser_factory):
    """Fixture to parse source code into AST."""

    def _parse(source: str) -> Program:
        parser = parser_factory(source)
        return parser.parse()

    return _parse


@pytest.fixture
def check(parse):
    """Fixture to parse and type check source code."""

    def _check(source: str) -> Program:
        return TypeChecker("test.py").check(parse(source))

    return _check


@pytest.fixture
def error_messages(check):
    """Fixture returning the diagnostic messages of a checked program."""

    def _messages(source: str) -> list[str]:
        return [d.message for d in check(source).errors]

    return _messages


@pytest.fixture
def compile_source():
    """Fixture to run the full pipeline."""

    def _compile(source: str) -> CompilationResult:
        return CompilationPipeline(filename="test.py").compile(source)

    return _compile
