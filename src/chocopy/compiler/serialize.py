"""
JSON serialization of ASTs, types and diagnostics.

Every node becomes an object tagged with its variant name::

    {"kind": "BinaryExpr", "location": [1, 1, 1, 6],
     "left": {...}, "operator": "+", "right": {...},
     "inferredType": {"kind": "ClassValueType", "className": "int"}}

Field names are the camelCase forms of the dataclass fields. ``inferredType``
and ``errorMsg`` are present only when set. Locations are
``[start_line, start_col, end_line, end_col]`` with an exclusive end column.
"""

from __future__ import annotations

import json
from dataclasses import fields
from enum import Enum
from typing import Any, Optional

from chocopy.compiler.ast_nodes import Node, Program
from chocopy.compiler.types import ClassValueType, FuncType, ListValueType, ValueType
from chocopy.utils.diagnostics import Diagnostic, SourceSpan
from chocopy.utils.errors import SerializationError

# Fields whose wire name is not their camelCase form
FIELD_NAMES = {
    "list_expr": "list",
    "type_annotation": "type",
}

_METADATA_FIELDS = ("span", "error_msg", "inferred_type", "recovered")
_NO_LOCATION = [0, 0, 0, 0]


def camel_case(name: str) -> str:
    """Convert a snake_case field name to camelCase."""
    first, *rest = name.split("_")
    return first + "".join(part.title() for part in rest)


def _location(span: Optional[SourceSpan]) -> list[int]:
    return span.as_list() if span is not None else list(_NO_LOCATION)


def type_to_dict(value_type: ValueType) -> dict[str, Any]:
    """Serialize a static type."""
    if isinstance(value_type, ListValueType):
        return {"kind": "ListValueType", "elementType": type_to_dict(value_type.element_type)}
    if isinstance(value_type, FuncType):
        return {
            "kind": "FuncType",
            "parameters": [type_to_dict(p) for p in value_type.parameters],
            "returnType": type_to_dict(value_type.return_type),
        }
    if isinstance(value_type, ClassValueType):
        return {"kind": "ClassValueType", "className": value_type.class_name}
    # <Unknown> is written like a class so consumers only see two shapes
    return {"kind": "ClassValueType", "className": str(value_type)}


def diagnostic_to_dict(diagnostic: Diagnostic) -> dict[str, Any]:
    """Serialize a diagnostic as a CompilerError record."""
    return {
        "kind": "CompilerError",
        "location": _location(diagnostic.span),
        "message": diagnostic.message,
        "syntax": diagnostic.syntax,
        "category": diagnostic.kind.value,
        "code": diagnostic.code,
        "severity": diagnostic.level.value,
    }


def errors_to_dict(diagnostics: list[Diagnostic]) -> dict[str, Any]:
    """Serialize a program's diagnostics as an Errors record."""
    return {
        "kind": "Errors",
        "location": list(_NO_LOCATION),
        "errors": [diagnostic_to_dict(d) for d in diagnostics],
    }


def node_to_dict(node: Node) -> dict[str, Any]:
    """Serialize an AST node and its subtree."""
    result: dict[str, Any] = {"kind": node.kind, "location": _location(node.span)}

    for f in fields(node):
        if f.name in _METADATA_FIELDS:
            continue
        value = getattr(node, f.name)
        key = FIELD_NAMES.get(f.name, camel_case(f.name))
        if isinstance(node, Program) and f.name == "errors":
            result[key] = errors_to_dict(value)
        else:
            result[key] = to_dict(value)

    inferred_type = getattr(node, "inferred_type", None)
    if inferred_type is not None:
        result["inferredType"] = type_to_dict(inferred_type)
    if node.error_msg is not None:
        result["errorMsg"] = node.error_msg
    return result


def to_dict(obj: Any) -> Any:
    """
    Convert a compiler object to plain JSON-compatible data.

    Raises:
        SerializationError: If obj contains something with no JSON form
    """
    if obj is None or isinstance(obj, (bool, int, str)):
        return obj
    if isinstance(obj, Node):
        return node_to_dict(obj)
    if isinstance(obj, ValueType):
        return type_to_dict(obj)
    if isinstance(obj, Diagnostic):
        return diagnostic_to_dict(obj)
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (list, tuple)):
        return [to_dict(item) for item in obj]
    raise SerializationError(f"Cannot serialize object of type {type(obj).__name__}")


def dumps(obj: Any, indent: Optional[int] = None) -> str:
    """
    Serialize a compiler object to a JSON string.

    Raises:
        SerializationError: If serialization fails
    """
    try:
        return json.dumps(to_dict(obj), indent=indent)
    except (TypeError, ValueError, RecursionError) as e:
        raise SerializationError(f"Serialization failed: {e}") from e
