"""
ChocoPy Command-Line Interface.

Provides commands to inspect and check ChocoPy programs.

Usage:
    chocopy tokens input.py         # Token stream (debug)
    chocopy parse input.py          # Untyped AST as JSON
    chocopy typecheck input.py      # Typed AST as JSON
    chocopy compile input.py        # {untypedAst, typedAst, errors, hasErrors}
    chocopy check input.py          # Rendered diagnostics

A file name of ``-`` reads the program from standard input.

Exit status: 0 when the program has no diagnostics, 1 when it has some,
2 when the input cannot be read or the result cannot be serialized.
"""

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from chocopy import __version__
from chocopy.compiler import CompilationPipeline
from chocopy.compiler.lexer import Lexer
from chocopy.compiler.serialize import dumps
from chocopy.utils.diagnostics import Diagnostic, DiagnosticCollector
from chocopy.utils.errors import SerializationError

logger = logging.getLogger("chocopy")

EXIT_OK = 0
EXIT_DIAGNOSTICS = 1
EXIT_FAILURE = 2


# =============================================================================
# ANSI Color Codes for Terminal Output
# =============================================================================


class Colors:
    """ANSI escape codes for colored terminal output."""

    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BOLD = "\033[1m"
    RESET = "\033[0m"

    enabled = True

    @classmethod
    def disable(cls) -> None:
        """Disable all colors (for non-TTY output)."""
        cls.RED = ""
        cls.GREEN = ""
        cls.YELLOW = ""
        cls.BOLD = ""
        cls.RESET = ""
        cls.enabled = False


def _init_colors(no_color: bool = False) -> None:
    """Disable colors if requested, not a TTY, or NO_COLOR is set."""
    if no_color or not sys.stdout.isatty() or os.environ.get("NO_COLOR"):
        Colors.disable()


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="chocopy",
        description="ChocoPy - lexer, parser and type checker for the ChocoPy language",
    )

    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Logging level (default: WARNING)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    tokens_parser = subparsers.add_parser("tokens", help="Print the token stream")
    tokens_parser.add_argument("input", type=str, help="Input ChocoPy file, or - for stdin")

    for name, help_text in (
        ("parse", "Print the untyped AST as JSON"),
        ("typecheck", "Print the typed AST as JSON"),
        ("compile", "Print both ASTs and all diagnostics as JSON"),
    ):
        json_parser = subparsers.add_parser(name, help=help_text)
        json_parser.add_argument("input", type=str, help="Input ChocoPy file, or - for stdin")
        json_parser.add_argument(
            "--indent",
            type=int,
            default=None,
            help="Indent JSON output by this many spaces",
        )

    check_parser = subparsers.add_parser(
        "check",
        help="Check a program and print its diagnostics",
    )
    check_parser.add_argument("input", type=str, help="Input ChocoPy file, or - for stdin")

    return parser


def read_source(name: str) -> tuple[str, str]:
    """
    Read a program from a file or, for ``-``, from standard input.

    Returns:
        The filename to report and the source text

    Raises:
        OSError: If the file cannot be read
    """
    if name == "-":
        return "<stdin>", sys.stdin.read()
    path = Path(name)
    return str(path), path.read_text(encoding="utf-8")


def _print_diagnostics(diagnostics: list[Diagnostic], source: str) -> None:
    for diagnostic in diagnostics:
        print(diagnostic.render(source, use_color=Colors.enabled), file=sys.stderr)
        print(file=sys.stderr)


def _status(diagnostics: list[Diagnostic]) -> int:
    return EXIT_DIAGNOSTICS if diagnostics else EXIT_OK


def cmd_tokens(filename: str, source: str, args: argparse.Namespace) -> int:
    """Handle the tokens command (debug)."""
    collector = DiagnosticCollector(filename)
    tokens = Lexer(source, filename, collector).tokenize()
    for token in tokens:
        print(token)
    _print_diagnostics(collector.diagnostics, source)
    return _status(collector.diagnostics)


def cmd_parse(filename: str, source: str, args: argparse.Namespace) -> int:
    """Handle the parse command."""
    program = CompilationPipeline(filename=filename).parse(source)
    print(dumps(program, indent=args.indent))
    return _status(program.errors)


def cmd_typecheck(filename: str, source: str, args: argparse.Namespace) -> int:
    """Handle the typecheck command."""
    program = CompilationPipeline(filename=filename).typecheck(source)
    print(dumps(program, indent=args.indent))
    return _status(program.errors)


def cmd_compile(filename: str, source: str, args: argparse.Namespace) -> int:
    """Handle the compile command."""
    result = CompilationPipeline(filename=filename).compile(source)
    print(json.dumps(result.to_dict(), indent=args.indent))
    return _status(result.errors)


def cmd_check(filename: str, source: str, args: argparse.Namespace) -> int:
    """Handle the check command."""
    program = CompilationPipeline(filename=filename).typecheck(source)
    if not program.errors:
        print(f"{Colors.GREEN}[ok]{Colors.RESET} {filename} (no errors)")
        return EXIT_OK

    _print_diagnostics(program.errors, source)
    count = len(program.errors)
    print(
        f"{Colors.RED}[!!]{Colors.RESET} {filename}: "
        f"{count} error{'s' if count != 1 else ''}"
    )
    return EXIT_DIAGNOSTICS


COMMAND_HANDLERS = {
    "tokens": cmd_tokens,
    "parse": cmd_parse,
    "typecheck": cmd_typecheck,
    "compile": cmd_compile,
    "check": cmd_check,
}


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    _init_colors(args.no_color)

    if args.command is None:
        parser.print_help()
        return EXIT_OK

    handler = COMMAND_HANDLERS[args.command]
    try:
        filename, source = read_source(args.input)
    except OSError as e:
        print(f"{Colors.RED}Error:{Colors.RESET} cannot read {args.input}: {e}", file=sys.stderr)
        return EXIT_FAILURE

    logger.debug("Running %s on %s", args.command, filename)
    try:
        return handler(filename, source, args)
    except SerializationError as e:
        print(f"{Colors.RED}Error:{Colors.RESET} {e.message}", file=sys.stderr)
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
