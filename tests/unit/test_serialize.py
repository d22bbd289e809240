"""
Unit tests for JSON serialization of ASTs, types and diagnostics.
"""

import json

import pytest

from chocopy.compiler.serialize import camel_case, dumps, to_dict, type_to_dict
from chocopy.compiler.types import (
    INT_TYPE,
    NONE_TYPE,
    UNKNOWN_TYPE,
    FuncType,
    ListValueType,
)
from chocopy.utils.errors import SerializationError


class TestTypes:
    def test_class_type(self):
        assert type_to_dict(INT_TYPE) == {"kind": "ClassValueType", "className": "int"}

    def test_list_type(self):
        assert type_to_dict(ListValueType(INT_TYPE)) == {
            "kind": "ListValueType",
            "elementType": {"kind": "ClassValueType", "className": "int"},
        }

    def test_func_type(self):
        assert type_to_dict(FuncType((INT_TYPE,), NONE_TYPE)) == {
            "kind": "FuncType",
            "parameters": [{"kind": "ClassValueType", "className": "int"}],
            "returnType": {"kind": "ClassValueType", "className": "<None>"},
        }

    def test_unknown_type(self):
        assert type_to_dict(UNKNOWN_TYPE) == {"kind": "ClassValueType", "className": "<Unknown>"}


class TestNodes:
    """Node records."""

    def test_camel_case(self):
        assert camel_case("then_body") == "thenBody"
        assert camel_case("name") == "name"
        assert camel_case("super_class") == "superClass"

    def test_untyped_program(self, parse):
        data = to_dict(parse("x = 1 + 2\n"))
        assert data["kind"] == "Program"
        assert data["declarations"] == []
        assert data["errors"] == {"kind": "Errors", "location": [0, 0, 0, 0], "errors": []}

        stmt = data["statements"][0]
        assert stmt["kind"] == "AssignStmt"
        assert stmt["location"] == [1, 1, 1, 10]
        assert stmt["targets"] == [{"kind": "Identifier", "location": [1, 1, 1, 2], "name": "x"}]
        assert stmt["value"]["operator"] == "+"
        assert "inferredType" not in stmt["value"]
        assert "errorMsg" not in stmt

    def test_renamed_fields(self, parse):
        program = parse("x: [int] = None\nx[0]\n")
        data = to_dict(program)
        typed_var = data["declarations"][0]["var"]
        assert set(typed_var) == {"kind", "location", "identifier", "type"}
        assert typed_var["type"]["kind"] == "ListType"
        assert typed_var["type"]["elementType"] == {
            "kind": "ClassType",
            "location": [1, 5, 1, 8],
            "className": "int",
        }
        index = data["statements"][0]["expr"]
        assert set(index) >= {"list", "index"}

    def test_func_def_fields(self, parse):
        data = to_dict(parse("def f(a: int) -> int:\n    return a\n"))
        func = data["declarations"][0]
        assert func["kind"] == "FuncDef"
        assert set(func) == {
            "kind",
            "location",
            "name",
            "params",
            "returnType",
            "declarations",
            "statements",
        }

    def test_typed_program(self, check):
        data = to_dict(check("x: int = 0\nx = x + 1\n"))
        value = data["statements"][0]["value"]
        assert value["inferredType"] == {"kind": "ClassValueType", "className": "int"}
        assert value["left"]["inferredType"] == {"kind": "ClassValueType", "className": "int"}

    def test_error_message_recorded(self, check):
        data = to_dict(check('x: int = "a"\n'))
        decl = data["declarations"][0]
        assert decl["errorMsg"] == "Type mismatch: expected `int` but got `str`"
        error = data["errors"]["errors"][0]
        assert error == {
            "kind": "CompilerError",
            "location": [1, 1, 1, 13],
            "message": "Type mismatch: expected `int` but got `str`",
            "syntax": False,
            "category": "type",
            "code": "E0401",
            "severity": "error",
        }

    def test_syntax_error_record(self, parse):
        data = to_dict(parse("1 < 2 < 3\n"))
        error = data["errors"]["errors"][0]
        assert error["syntax"] is True
        assert error["category"] == "syntax"


class TestDumps:
    def test_dumps_is_json(self, check):
        text = dumps(check("print(1)\n"))
        assert json.loads(text)["kind"] == "Program"

    def test_indent(self, parse):
        assert "\n" in dumps(parse("x = 1\n"), indent=2)

    def test_unknown_object(self):
        with pytest.raises(SerializationError):
            to_dict(object())

    def test_dumps_wraps_failure(self):
        with pytest.raises(SerializationError, match="Cannot serialize"):
            dumps({"not": "a node"})
