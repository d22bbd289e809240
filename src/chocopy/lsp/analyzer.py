"""
Document analysis for the ChocoPy LSP.

A DocumentAnalyzer holds the result of checking one version of a document
and answers position-based queries against it.
"""

from typing import Optional

from lsprotocol import types

from chocopy.compiler.ast_nodes import Expression, Identifier, Program, walk
from chocopy.compiler.types import FuncType
from chocopy.lsp.diagnostics import DiagnosticProvider, span_to_range


class DocumentAnalyzer:
    """
    Analyzes one ChocoPy document for IDE features.

    Usage:
        analyzer = DocumentAnalyzer(source, uri)
        analyzer.analyze()
        analyzer.diagnostics        # list[types.Diagnostic]
        analyzer.get_hover(0, 4)    # types.Hover | None
    """

    def __init__(self, source: str, uri: str) -> None:
        self.source = source
        self.uri = uri
        self.program: Optional[Program] = None
        self.diagnostics: list[types.Diagnostic] = []

    def analyze(self) -> None:
        """Run the compiler over the document."""
        provider = DiagnosticProvider(self.source, self.uri)
        self.diagnostics = provider.get_diagnostics()
        self.program = provider.program

    def expression_at(self, line: int, character: int) -> Optional[Expression]:
        """
        Find the innermost typed expression at a position.

        Args:
            line: 0-indexed line number
            character: 0-indexed character position
        """
        if self.program is None:
            return None

        found: Optional[Expression] = None
        for node in walk(self.program):
            if (
                isinstance(node, Expression)
                and node.inferred_type is not None
                and node.span.contains_position(line + 1, character + 1)
            ):
                # Pre-order: later matches are nested in earlier ones
                found = node
        return found

    def get_hover(self, line: int, character: int) -> Optional[types.Hover]:
        """
        Get hover information at a position.

        Returns:
            The inferred type of the innermost expression, or None
        """
        expr = self.expression_at(line, character)
        if expr is None:
            return None

        inferred = expr.inferred_type
        if isinstance(expr, Identifier):
            if isinstance(inferred, FuncType):
                text = f"def {expr.name}{inferred}"
            else:
                text = f"{expr.name}: {inferred}"
        else:
            text = str(inferred)

        return types.Hover(
            contents=types.MarkupContent(
                kind=types.MarkupKind.Markdown,
                value=f"```chocopy\n{text}\n```",
            ),
            range=span_to_range(expr.span),
        )
