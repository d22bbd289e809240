"""
Diagnostic generation for the ChocoPy LSP.

This module converts compiler diagnostics into LSP-compatible diagnostic
messages for display in editors.
"""

from typing import Optional

from lsprotocol import types

from chocopy.compiler import CompilationPipeline
from chocopy.compiler.ast_nodes import Program
from chocopy.utils.diagnostics import Diagnostic as CompilerDiagnostic
from chocopy.utils.diagnostics import DiagnosticLevel, SourceSpan

SEVERITY_MAP = {
    DiagnosticLevel.ERROR: types.DiagnosticSeverity.Error,
    DiagnosticLevel.WARNING: types.DiagnosticSeverity.Warning,
}


def span_to_range(span: Optional[SourceSpan]) -> types.Range:
    """Convert a 1-indexed, end-exclusive span to a 0-indexed LSP range."""
    if span is None:
        return types.Range(
            start=types.Position(line=0, character=0),
            end=types.Position(line=0, character=1),
        )
    return types.Range(
        start=types.Position(line=max(0, span.start_line - 1), character=max(0, span.start_col - 1)),
        end=types.Position(line=max(0, span.end_line - 1), character=max(0, span.end_col - 1)),
    )


def to_lsp_diagnostic(diag: CompilerDiagnostic) -> types.Diagnostic:
    """
    Convert a compiler diagnostic to an LSP diagnostic.

    Notes and help messages are appended to the message text.
    """
    message_parts = [diag.message]
    for note in diag.notes:
        message_parts.append(f"note: {note}")
    for help_msg in diag.helps:
        message_parts.append(f"help: {help_msg}")

    return types.Diagnostic(
        range=span_to_range(diag.span),
        message="\n".join(message_parts),
        severity=SEVERITY_MAP.get(diag.level, types.DiagnosticSeverity.Error),
        source="chocopy",
        code=diag.code,
    )


class DiagnosticProvider:
    """
    Generates LSP diagnostics from ChocoPy source code.

    The provider runs the lexer, parser and type checker once and keeps the
    typed program for later hover queries.
    """

    def __init__(self, source: str, uri: str) -> None:
        self.source = source
        self.uri = uri
        self.program: Optional[Program] = None

    def get_diagnostics(self) -> list[types.Diagnostic]:
        """
        Get all diagnostics for the document.

        Returns:
            List of LSP diagnostic objects, in the order the compiler
            reported them
        """
        self.program = CompilationPipeline(filename=self.uri).typecheck(self.source)
        return [to_lsp_diagnostic(d) for d in self.program.errors]


def get_diagnostics_for_document(source: str, uri: str) -> list[types.Diagnostic]:
    """
    Convenience function to get diagnostics for a document.

    Args:
        source: The ChocoPy source code
        uri: The document URI

    Returns:
        List of LSP diagnostics
    """
    provider = DiagnosticProvider(source, uri)
    return provider.get_diagnostics()
