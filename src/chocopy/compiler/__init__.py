"""
ChocoPy Compiler Package.

This package contains the compiler frontend components:
- Lexer: Tokenizes ChocoPy source code
- Parser: Produces an Abstract Syntax Tree from tokens
- AST: Node definitions for the syntax tree
- TypeChecker: Type inference and checking
- Serialize: JSON form of ASTs, types and diagnostics
- CompilationPipeline: Unified interface over all stages

The host-boundary functions ``parse``, ``typecheck`` and ``compile`` take
source text and return JSON strings.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from chocopy.compiler.ast_nodes import ASTVisitor, BaseASTVisitor, Node, Program, walk
from chocopy.compiler.lexer import Lexer, tokenize
from chocopy.compiler.parser import Parser
from chocopy.compiler.scopes import Frame, FrameKind, Symbol, SymbolKind, SymbolTable
from chocopy.compiler.serialize import diagnostic_to_dict, dumps, to_dict
from chocopy.compiler.tokens import Token, TokenType
from chocopy.compiler.type_checker import TypeChecker, type_check
from chocopy.compiler.types import (
    ClassHierarchy,
    ClassValueType,
    FuncType,
    ListValueType,
    ValueType,
)
from chocopy.utils.diagnostics import Diagnostic, DiagnosticCollector
from chocopy.utils.errors import SerializationError

logger = logging.getLogger(__name__)


@dataclass
class CompilationResult:
    """
    Complete result of the compilation pipeline.

    Attributes:
        untyped_ast: The parsed program, never touched by the checker
        typed_ast: The same source parsed and checked, or None when type
            checking is disabled
        errors: Diagnostics of the last stage that ran, in traversal order
    """

    untyped_ast: Program
    typed_ast: Optional[Program] = None
    errors: list[Diagnostic] = field(default_factory=list)

    def __str__(self) -> str:
        lines = ["Compilation Result:"]
        lines.append(f"  Has Errors: {self.has_errors}")
        if self.errors:
            lines.append(f"  Errors: {len(self.errors)}")
            for err in self.errors[:5]:
                lines.append(f"    - {err.to_simple_message()}")
            if len(self.errors) > 5:
                lines.append(f"    ... and {len(self.errors) - 5} more")
        return "\n".join(lines)

    @property
    def has_errors(self) -> bool:
        """True iff any diagnostic was recorded."""
        return bool(self.errors)

    def to_dict(self) -> dict[str, Any]:
        return {
            "untypedAst": to_dict(self.untyped_ast),
            "typedAst": to_dict(self.typed_ast),
            "errors": [diagnostic_to_dict(d) for d in self.errors],
            "hasErrors": self.has_errors,
        }


# =============================================================================
# Compilation Pipeline
# =============================================================================


class CompilationPipeline:
    """
    Unified compilation pipeline for ChocoPy.

    The pipeline performs the following stages:
    1. Lexing - Tokenize source code
    2. Parsing - Build Abstract Syntax Tree
    3. Type Checking - Infer and verify types (optional)

    Each call builds fresh lexer, parser and checker state, so one pipeline
    may be used for any number of independent compilations.

    Example:
        pipeline = CompilationPipeline()
        result = pipeline.compile(source_code)
        for error in result.errors:
            print(error.to_simple_message())

    Attributes:
        check_types: Enable type checking phase
        filename: Filename recorded in diagnostics
    """

    def __init__(self, check_types: bool = True, filename: str = "<input>") -> None:
        self.check_types = check_types
        self.filename = filename

    def parse(self, source: str) -> Program:
        """
        Lex and parse source.

        Returns:
            The untyped Program; its ``errors`` hold lexical and syntax
            diagnostics
        """
        diagnostics = DiagnosticCollector(self.filename)
        tokens = Lexer(source, self.filename, diagnostics).tokenize()
        program = Parser(tokens, self.filename, diagnostics).parse()
        logger.debug("Parsed %s with %d diagnostic(s)", self.filename, len(diagnostics))
        return program

    def typecheck(self, source: str) -> Program:
        """Parse source and type check the result."""
        program = self.parse(source)
        return TypeChecker(self.filename).check(program)

    def compile(self, source: str) -> CompilationResult:
        """
        Execute the full compilation pipeline.

        The untyped and typed trees come from separate parses of the same
        source, so checking never alters the untyped result.
        """
        untyped = self.parse(source)
        if not self.check_types:
            return CompilationResult(untyped_ast=untyped, errors=list(untyped.errors))

        typed = self.typecheck(source)
        result = CompilationResult(untyped_ast=untyped, typed_ast=typed, errors=list(typed.errors))
        logger.info(
            "Compiled %s: %d diagnostic(s)",
            self.filename,
            len(result.errors),
        )
        return result

    def compile_file(self, path: Path | str) -> CompilationResult:
        """Read a file and compile its contents."""
        path = Path(path)
        source = path.read_text(encoding="utf-8")
        return CompilationPipeline(self.check_types, str(path)).compile(source)


# =============================================================================
# Host boundary
# =============================================================================


def _serialization_failure(error: Exception) -> str:
    message = str(error)
    if not message.startswith("Serialization failed"):
        message = f"Serialization failed: {message}"
    return json.dumps({"error": message})


def parse(source: str) -> str:
    """Parse source and return the untyped AST as JSON."""
    program = CompilationPipeline().parse(source)
    try:
        return dumps(program)
    except SerializationError as e:
        return _serialization_failure(e)


def typecheck(source: str) -> str:
    """Parse and check source and return the typed AST as JSON."""
    program = CompilationPipeline().typecheck(source)
    try:
        return dumps(program)
    except SerializationError as e:
        return _serialization_failure(e)


def compile(source: str) -> str:
    """
    Run both stages and return all artifacts as one JSON object::

        {"untypedAst": ..., "typedAst": ..., "errors": [...], "hasErrors": bool}
    """
    result = CompilationPipeline().compile(source)
    try:
        return json.dumps(result.to_dict())
    except (SerializationError, TypeError, ValueError, RecursionError) as e:
        return _serialization_failure(e)


def compile_source(source: str, filename: str = "<input>") -> CompilationResult:
    """
    Compile ChocoPy source with default settings.

    For more control, use CompilationPipeline directly.
    """
    return CompilationPipeline(filename=filename).compile(source)


__all__ = [
    # Pipeline
    "CompilationPipeline",
    "CompilationResult",
    "compile_source",
    # Host boundary
    "parse",
    "typecheck",
    "compile",
    # Stages
    "Lexer",
    "Parser",
    "TypeChecker",
    "tokenize",
    "type_check",
    "Token",
    "TokenType",
    # AST
    "Node",
    "Program",
    "ASTVisitor",
    "BaseASTVisitor",
    "walk",
    # Types and scopes
    "ValueType",
    "ClassValueType",
    "ListValueType",
    "FuncType",
    "ClassHierarchy",
    "SymbolTable",
    "Symbol",
    "SymbolKind",
    "Frame",
    "FrameKind",
    # Serialization
    "to_dict",
    "dumps",
]
