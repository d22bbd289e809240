"""
Static types of the ChocoPy type system.

The value types are classes (including the specials ``int``, ``bool``,
``str``, ``object``, ``<None>`` and ``<Empty>``) and lists of a value type.
Function signatures are ``FuncType``. ``UnknownType`` is what the checker
assigns after it has reported a problem; it is compatible with every type so
that one mistake does not cascade into more diagnostics.

The subtyping (<=), assignability (<=a) and join relations all depend on the
class hierarchy of the program being checked, so they live on
``ClassHierarchy``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Iterator, Optional


class ValueType(ABC):
    """
    Base class for all types in the ChocoPy type system.

    Types are immutable. Equality is structural for lists and nominal for
    classes.
    """

    @abstractmethod
    def __str__(self) -> str:
        """Return the type as written in diagnostics, e.g. ``[int]``."""

    @abstractmethod
    def __eq__(self, other: object) -> bool:
        pass

    @abstractmethod
    def __hash__(self) -> int:
        pass

    @property
    def is_special(self) -> bool:
        """True for int, bool and str, the types None cannot inhabit."""
        return False

    @property
    def is_list(self) -> bool:
        return False


@dataclass(frozen=True, eq=False)
class ClassValueType(ValueType):
    """A class type, identified by name."""

    class_name: str

    def __str__(self) -> str:
        return self.class_name

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ClassValueType):
            return False
        return self.class_name == other.class_name

    def __hash__(self) -> int:
        return hash(("class", self.class_name))

    @property
    def is_special(self) -> bool:
        return self.class_name in SPECIAL_CLASSES


@dataclass(frozen=True, eq=False)
class ListValueType(ValueType):
    """A list whose elements have ``element_type``."""

    element_type: ValueType

    def __str__(self) -> str:
        return f"[{self.element_type}]"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ListValueType):
            return False
        return self.element_type == other.element_type

    def __hash__(self) -> int:
        return hash(("list", self.element_type))

    @property
    def is_list(self) -> bool:
        return True


@dataclass(frozen=True, eq=False)
class FuncType(ValueType):
    """
    A function or method signature.

    Methods include their ``self`` parameter in ``parameters``.
    """

    parameters: tuple[ValueType, ...]
    return_type: ValueType

    def __str__(self) -> str:
        params_str = ", ".join(str(t) for t in self.parameters)
        return f"({params_str}) -> {self.return_type}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FuncType):
            return False
        return self.parameters == other.parameters and self.return_type == other.return_type

    def __hash__(self) -> int:
        return hash(("function", self.parameters, self.return_type))


@dataclass(frozen=True, eq=False)
class UnknownType(ValueType):
    """The error type: assigned to a node after a diagnostic was reported."""

    def __str__(self) -> str:
        return "<Unknown>"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, UnknownType)

    def __hash__(self) -> int:
        return hash("unknown")


SPECIAL_CLASSES = frozenset({"int", "bool", "str"})

INT_TYPE = ClassValueType("int")
BOOL_TYPE = ClassValueType("bool")
STR_TYPE = ClassValueType("str")
OBJECT_TYPE = ClassValueType("object")
NONE_TYPE = ClassValueType("<None>")
EMPTY_TYPE = ClassValueType("<Empty>")
UNKNOWN_TYPE = UnknownType()


def is_unknown(t: Optional[ValueType]) -> bool:
    return t is None or isinstance(t, UnknownType)


# =============================================================================
# Class Hierarchy
# =============================================================================


@dataclass
class ClassInfo:
    """
    Everything the checker knows about one class.

    ``attributes`` and ``methods`` include inherited members.
    """

    name: str
    super_class: Optional[str]
    attributes: dict[str, ValueType] = field(default_factory=dict)
    methods: dict[str, FuncType] = field(default_factory=dict)

    @property
    def value_type(self) -> ClassValueType:
        return ClassValueType(self.name)

    def has_member(self, name: str) -> bool:
        return name in self.attributes or name in self.methods


class ClassHierarchy:
    """
    The classes of one program, with the relations between their types.

    Usage:
        hierarchy = ClassHierarchy()
        hierarchy.add(ClassInfo("Animal", "object"))
        hierarchy.is_assignable(NONE_TYPE, ClassValueType("Animal"))  # True
    """

    def __init__(self) -> None:
        self._classes: dict[str, ClassInfo] = {}
        init = FuncType((OBJECT_TYPE,), NONE_TYPE)
        self.add(ClassInfo("object", None, methods={"__init__": init}))
        for name in ("int", "bool", "str"):
            self.add(ClassInfo(name, "object", methods={"__init__": init}))

    def add(self, info: ClassInfo) -> None:
        self._classes[info.name] = info

    def get(self, name: str) -> Optional[ClassInfo]:
        return self._classes.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._classes

    def __iter__(self) -> Iterator[ClassInfo]:
        return iter(self._classes.values())

    def ancestors(self, name: str) -> list[str]:
        """The class itself followed by its superclass chain up to object."""
        chain: list[str] = []
        current: Optional[str] = name
        while current is not None and current not in chain:
            chain.append(current)
            info = self._classes.get(current)
            current = info.super_class if info else ("object" if current != "object" else None)
        return chain

    def is_subtype(self, sub: ValueType, sup: ValueType) -> bool:
        """The <= relation: reflexive, follows superclass chains, object on top."""
        if is_unknown(sub) or is_unknown(sup):
            return True
        if sub == sup:
            return True
        if sup == OBJECT_TYPE:
            return not isinstance(sub, FuncType)
        if isinstance(sub, ClassValueType) and isinstance(sup, ClassValueType):
            return sup.class_name in self.ancestors(sub.class_name)
        return False

    def is_assignable(self, source: ValueType, target: ValueType) -> bool:
        """
        The <=a relation: may a value of type source be stored where target
        is expected?
        """
        if self.is_subtype(source, target):
            return True
        if source == NONE_TYPE:
            return not target.is_special and not isinstance(target, FuncType)
        if source == EMPTY_TYPE:
            return target.is_list
        if isinstance(source, ListValueType) and isinstance(target, ListValueType):
            return source.element_type == NONE_TYPE and self.is_assignable(
                NONE_TYPE, target.element_type
            )
        return False

    def join(self, a: ValueType, b: ValueType) -> ValueType:
        """Least upper bound of two types."""
        if is_unknown(a):
            return b
        if is_unknown(b):
            return a
        if self.is_assignable(a, b):
            return b
        if self.is_assignable(b, a):
            return a
        if isinstance(a, ClassValueType) and isinstance(b, ClassValueType):
            b_chain = set(self.ancestors(b.class_name))
            for name in self.ancestors(a.class_name):
                if name in b_chain:
                    return ClassValueType(name)
        return OBJECT_TYPE
