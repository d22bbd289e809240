"""
ChocoPy Language Server Protocol (LSP) Server.

This module implements an LSP server for the ChocoPy language using pygls
(Python Language Server). It provides:

- Document synchronization (open, change, save, close)
- Diagnostics (lexical, syntax, name and type errors)
- Hover information with inferred types

Usage:
    # Start the server in stdio mode (for IDE integration)
    chocopy-lsp

    # Start in TCP mode (for debugging)
    chocopy-lsp --tcp --port 2087
"""

import argparse
import logging
from typing import Optional

from lsprotocol import types
from pygls.lsp.server import LanguageServer

from chocopy import __version__
from chocopy.lsp.analyzer import DocumentAnalyzer

logger = logging.getLogger("chocopy-lsp")


class ChocoPyLanguageServer(LanguageServer):
    """
    Language Server Protocol implementation for ChocoPy.

    This class handles LSP requests and notifications, keeping one analyzer
    per open document.
    """

    def __init__(self) -> None:
        """Initialize the ChocoPy language server."""
        super().__init__(
            name="chocopy-lsp",
            version=f"v{__version__}",
        )

        # Document analyzers cache (uri -> analyzer)
        self._analyzers: dict[str, DocumentAnalyzer] = {}

    def get_analyzer(self, uri: str) -> Optional[DocumentAnalyzer]:
        return self._analyzers.get(uri)

    def analyze_document(self, uri: str, text: str) -> DocumentAnalyzer:
        """Analyze a document and cache the result."""
        analyzer = DocumentAnalyzer(text, uri)
        analyzer.analyze()
        self._analyzers[uri] = analyzer
        return analyzer

    def _publish_diagnostics(self, uri: str, diagnostics: list[types.Diagnostic]) -> None:
        """Publish diagnostics to the client."""
        self.text_document_publish_diagnostics(
            types.PublishDiagnosticsParams(uri=uri, diagnostics=diagnostics)
        )

    def _refresh(self, uri: str) -> None:
        doc = self.workspace.get_text_document(uri)
        analyzer = self.analyze_document(uri, doc.source)
        self._publish_diagnostics(uri, analyzer.diagnostics)

    # =========================================================================
    # Document Synchronization
    # =========================================================================

    def _on_did_open(self, params: types.DidOpenTextDocumentParams) -> None:
        """Handle document open notification."""
        document = params.text_document
        logger.info("Document opened: %s", document.uri)

        analyzer = self.analyze_document(document.uri, document.text)
        self._publish_diagnostics(document.uri, analyzer.diagnostics)

    def _on_did_change(self, params: types.DidChangeTextDocumentParams) -> None:
        """Handle document change notification."""
        uri = params.text_document.uri
        logger.debug("Document changed: %s", uri)
        self._refresh(uri)

    def _on_did_save(self, params: types.DidSaveTextDocumentParams) -> None:
        """Handle document save notification."""
        uri = params.text_document.uri
        logger.info("Document saved: %s", uri)
        self._refresh(uri)

    def _on_did_close(self, params: types.DidCloseTextDocumentParams) -> None:
        """Handle document close notification."""
        uri = params.text_document.uri
        logger.info("Document closed: %s", uri)

        self._analyzers.pop(uri, None)
        self._publish_diagnostics(uri, [])

    # =========================================================================
    # Hover
    # =========================================================================

    def _on_hover(self, params: types.HoverParams) -> Optional[types.Hover]:
        """Handle hover request."""
        analyzer = self.get_analyzer(params.text_document.uri)
        if analyzer is None:
            return None
        return analyzer.get_hover(params.position.line, params.position.character)


def create_server() -> ChocoPyLanguageServer:
    """Create and configure a ChocoPy language server instance."""
    server = ChocoPyLanguageServer()

    # Handlers are plain functions: pygls sets attributes on each one
    @server.feature(types.TEXT_DOCUMENT_DID_OPEN)
    def did_open(ls: ChocoPyLanguageServer, params: types.DidOpenTextDocumentParams) -> None:
        ls._on_did_open(params)

    @server.feature(types.TEXT_DOCUMENT_DID_CHANGE)
    def did_change(ls: ChocoPyLanguageServer, params: types.DidChangeTextDocumentParams) -> None:
        ls._on_did_change(params)

    @server.feature(types.TEXT_DOCUMENT_DID_SAVE)
    def did_save(ls: ChocoPyLanguageServer, params: types.DidSaveTextDocumentParams) -> None:
        ls._on_did_save(params)

    @server.feature(types.TEXT_DOCUMENT_DID_CLOSE)
    def did_close(ls: ChocoPyLanguageServer, params: types.DidCloseTextDocumentParams) -> None:
        ls._on_did_close(params)

    @server.feature(types.TEXT_DOCUMENT_HOVER)
    def hover(ls: ChocoPyLanguageServer, params: types.HoverParams) -> Optional[types.Hover]:
        return ls._on_hover(params)

    @server.feature(types.INITIALIZED)
    def on_initialized(
        params: types.InitializedParams,  # noqa: ARG001
    ) -> None:
        """Handle initialized notification."""
        logger.info("ChocoPy Language Server initialized successfully")

    @server.feature(types.SHUTDOWN)
    def on_shutdown(
        params: None,  # noqa: ARG001
    ) -> None:
        """Handle shutdown request."""
        logger.info("Shutting down ChocoPy Language Server")

    return server


def main(argv: Optional[list[str]] = None) -> None:
    """
    Main entry point for the ChocoPy language server.

    Starts the server in stdio mode for IDE integration, or in TCP mode.
    """
    parser = argparse.ArgumentParser(
        description="ChocoPy Language Server",
        prog="chocopy-lsp",
    )
    parser.add_argument(
        "--tcp",
        action="store_true",
        help="Start server in TCP mode instead of stdio",
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host to bind to in TCP mode (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=2087,
        help="Port to listen on in TCP mode (default: 2087)",
    )
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        default="info",
        help="Logging level (default: info)",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    server = create_server()

    if args.tcp:
        logger.info("Starting ChocoPy LSP in TCP mode on %s:%s", args.host, args.port)
        server.start_tcp(args.host, args.port)
    else:
        logger.info("Starting ChocoPy LSP in stdio mode")
        server.start_io()


if __name__ == "__main__":
    main()
