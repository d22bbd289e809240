"""
ChocoPy Language Server Protocol (LSP) implementation.

This package provides an LSP server for the ChocoPy language, enabling IDE
features such as:
- Error diagnostics, published as documents change
- Hover information with inferred types

Usage:
    # Start the LSP server (stdio mode)
    chocopy-lsp

    # Or run as a module
    python -m chocopy.lsp
"""

from chocopy.lsp.server import ChocoPyLanguageServer, create_server, main

__all__ = [
    "ChocoPyLanguageServer",
    "create_server",
    "main",
]
