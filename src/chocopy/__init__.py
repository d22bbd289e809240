"""
ChocoPy - a compiler frontend for the ChocoPy teaching language.

ChocoPy is a statically typed subset of Python. This package lexes and
parses ChocoPy source into an AST, type checks it, and reports every
lexical, syntax, name and type problem as a diagnostic instead of stopping
at the first one.
"""

from chocopy.compiler import CompilationPipeline, CompilationResult, compile_source
from chocopy.compiler.lexer import Lexer
from chocopy.compiler.parser import Parser
from chocopy.compiler.type_checker import TypeChecker

__version__ = "0.1.0"
__all__ = [
    "CompilationPipeline",
    "CompilationResult",
    "compile_source",
    "Lexer",
    "Parser",
    "TypeChecker",
]
