"""
Symbol table for the ChocoPy type checker.

Scopes are an explicit stack of frames. A frame is pushed when checking
enters a scope-introducing construct (the program, a class body, a function
body, or a branch with a narrowed variable) and popped when it leaves it.
Lookup walks the stack from the innermost frame outward.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Iterator, Optional

from chocopy.compiler.types import ValueType
from chocopy.utils.diagnostics import SourceSpan


class SymbolKind(Enum):
    """What a name is bound to."""

    VARIABLE = auto()
    PARAMETER = auto()
    FUNCTION = auto()
    CLASS = auto()
    GLOBAL_REF = auto()  # global x
    NONLOCAL_REF = auto()  # nonlocal x
    NARROWED = auto()  # x inside the then-branch of `if x is None`

    @property
    def is_variable(self) -> bool:
        return self in (
            SymbolKind.VARIABLE,
            SymbolKind.PARAMETER,
            SymbolKind.GLOBAL_REF,
            SymbolKind.NONLOCAL_REF,
            SymbolKind.NARROWED,
        )


class FrameKind(Enum):
    GLOBAL = auto()
    CLASS = auto()
    FUNCTION = auto()
    BLOCK = auto()


@dataclass
class Symbol:
    """
    A name bound in a frame.

    Attributes:
        name: The bound identifier
        type: Declared type (the signature for functions)
        kind: What sort of binding this is
        span: Where the binding was declared
    """

    name: str
    type: ValueType
    kind: SymbolKind
    span: Optional[SourceSpan] = None


@dataclass
class Frame:
    """One level of the scope stack."""

    kind: FrameKind
    name: str = ""
    symbols: dict[str, Symbol] = field(default_factory=dict)

    def __contains__(self, name: str) -> bool:
        return name in self.symbols

    def get(self, name: str) -> Optional[Symbol]:
        return self.symbols.get(name)


class SymbolTable:
    """
    Manages the stack of frames for one checking pass.

    Usage:
        table = SymbolTable()
        with table.scope(FrameKind.FUNCTION, "f"):
            table.define(Symbol("x", INT_TYPE, SymbolKind.PARAMETER))
            table.lookup("x")
    """

    def __init__(self) -> None:
        self._frames: list[Frame] = [Frame(FrameKind.GLOBAL, "global")]

    @property
    def current_frame(self) -> Frame:
        return self._frames[-1]

    @property
    def global_frame(self) -> Frame:
        return self._frames[0]

    @property
    def depth(self) -> int:
        return len(self._frames)

    def enter_scope(self, kind: FrameKind, name: str = "") -> Frame:
        """Push a new frame."""
        frame = Frame(kind, name)
        self._frames.append(frame)
        return frame

    def exit_scope(self) -> None:
        """Pop the innermost frame; the global frame is never popped."""
        if len(self._frames) > 1:
            self._frames.pop()

    @contextmanager
    def scope(self, kind: FrameKind, name: str = "") -> Iterator[Frame]:
        frame = self.enter_scope(kind, name)
        try:
            yield frame
        finally:
            self.exit_scope()

    def define(self, symbol: Symbol) -> None:
        """Bind a symbol in the innermost frame."""
        self.current_frame.symbols[symbol.name] = symbol

    def _scope_frame_index(self) -> int:
        """Index of the innermost frame that is not a narrowing block."""
        index = len(self._frames) - 1
        while index > 0 and self._frames[index].kind == FrameKind.BLOCK:
            index -= 1
        return index

    @property
    def scope_frame(self) -> Frame:
        """The frame of the function (or program) currently being checked."""
        return self._frames[self._scope_frame_index()]

    @property
    def in_function(self) -> bool:
        return self.scope_frame.kind == FrameKind.FUNCTION

    def lookup(self, name: str) -> Optional[Symbol]:
        """
        Resolve a name as read from the innermost scope.

        Class frames do not take part: attributes are only reachable through
        an object, never as bare names.
        """
        for frame in reversed(self._frames):
            if frame.kind == FrameKind.CLASS:
                continue
            symbol = frame.get(name)
            if symbol is not None:
                return symbol
        return None

    def lookup_local(self, name: str) -> Optional[Symbol]:
        """Resolve a name declared in the current function or program frame."""
        return self.scope_frame.get(name)

    def lookup_global(self, name: str) -> Optional[Symbol]:
        return self.global_frame.get(name)

    def lookup_nonlocal(self, name: str) -> Optional[Symbol]:
        """
        Resolve a name in the enclosing function frames, skipping the current
        one and the global frame.
        """
        for frame in reversed(self._frames[1:self._scope_frame_index()]):
            if frame.kind != FrameKind.FUNCTION:
                continue
            symbol = frame.get(name)
            if symbol is not None:
                return symbol
        return None

    def narrow(self, name: str, type_: ValueType) -> None:
        """Refine the type of name in the current narrowing block."""
        self.define(Symbol(name, type_, SymbolKind.NARROWED))

    def forget_narrowing(self, name: str) -> None:
        """Drop narrowings of name above the current function frame."""
        for frame in self._frames[self._scope_frame_index() + 1:]:
            symbol = frame.get(name)
            if symbol is not None and symbol.kind == SymbolKind.NARROWED:
                del frame.symbols[name]

    def visible_names(self) -> list[str]:
        """All names visible from the innermost scope, innermost first."""
        seen: dict[str, None] = {}
        for frame in reversed(self._frames):
            if frame.kind == FrameKind.CLASS:
                continue
            for name in frame.symbols:
                seen.setdefault(name)
        return list(seen)
