"""
Entry point for running the ChocoPy LSP server as a module.

Usage:
    python -m chocopy.lsp
    python -m chocopy.lsp --tcp --port 2087
"""

from chocopy.lsp.server import main

if __name__ == "__main__":
    main()
