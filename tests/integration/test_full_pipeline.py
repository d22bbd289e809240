"""
Integration tests for the complete ChocoPy compilation pipeline.

These tests drive the host-boundary functions and the pipeline end to end,
from source text to JSON.
"""

import json

import pytest

import chocopy.compiler as compiler
from chocopy.compiler import CompilationPipeline, compile_source
from chocopy.compiler.ast_nodes import Expression, walk
from chocopy.compiler.types import INT_TYPE, UnknownType
from chocopy.utils.diagnostics import ErrorCode
from chocopy.utils.errors import SerializationError

LINKED_LIST = """\
class Node(object):
    value: int = 0
    next: "Node" = None

    def __init__(self: "Node"):
        pass

class LinkedList(object):
    head: Node = None
    size: int = 0

    def push(self: "LinkedList", value: int) -> "LinkedList":
        node: Node = None
        node = Node()
        node.value = value
        node.next = self.head
        self.head = node
        self.size = self.size + 1
        return self

    def total(self: "LinkedList") -> int:
        result: int = 0
        current: Node = None
        current = self.head
        while not (current is None):
            result = result + current.value
            current = current.next
        return result

def fib(n: int) -> int:
    if n < 2:
        return n
    else:
        return fib(n - 1) + fib(n - 2)

def label(n: int) -> str:
    words: [str] = None
    words = ["zero", "one", "many"]
    return words[n if n < 2 else 2]

items: LinkedList = None
i: int = 0
items = LinkedList()
for i in [1, 2, 3]:
    items.push(fib(i))
print(items.total())
print(label(items.size))
print(len("abc") == 3 and not False)
"""


class TestCompilationPipeline:
    """Test the full compilation pipeline."""

    def test_valid_program(self, compile_source):
        result = compile_source(LINKED_LIST)
        assert not result.has_errors, [e.message for e in result.errors]
        assert result.typed_ast is not None

    def test_valid_program_has_no_unknown_types(self, compile_source):
        result = compile_source(LINKED_LIST)
        for node in walk(result.typed_ast):
            if isinstance(node, Expression) and node.inferred_type is not None:
                assert not isinstance(node.inferred_type, UnknownType)

    def test_untyped_ast_is_not_annotated(self, compile_source):
        result = compile_source(LINKED_LIST)
        for node in walk(result.untyped_ast):
            if isinstance(node, Expression):
                assert node.inferred_type is None
            assert node.error_msg is None

    def test_typed_ast_is_separate_tree(self, compile_source):
        result = compile_source("x: int = 0\nx = 1\n")
        assert result.typed_ast is not result.untyped_ast
        assert result.typed_ast.statements[0].value.inferred_type is not None
        assert result.untyped_ast.statements[0].value.inferred_type is None

    def test_parse_only_pipeline(self):
        result = CompilationPipeline(check_types=False).compile('x: int = "a"\n')
        assert result.typed_ast is None
        assert not result.has_errors

    def test_compile_file(self, tmp_path):
        path = tmp_path / "prog.py"
        path.write_text("print(y)\n", encoding="utf-8")
        result = CompilationPipeline().compile_file(path)
        assert result.errors[0].span.filename == str(path)

    def test_inconsistent_dedent_single_diagnostic(self, compile_source):
        result = compile_source("if True:\n    x = 1\n  y = 2\nz = 3\n")
        syntax_errors = [e for e in result.errors if e.syntax]
        assert [e.code for e in syntax_errors] == [ErrorCode.E0106]
        assert syntax_errors[0].span.start_line == 3
        assert len(result.untyped_ast.statements) == 3

    def test_inconsistent_indent_in_function_single_diagnostic(self, compile_source):
        source = "def f() -> int:\n    x: int = 1\n      return x\nprint(f())\n"
        result = compile_source(source)
        assert [e.code for e in result.errors] == [ErrorCode.E0207]
        assert result.errors[0].span.start_line == 3

    def test_long_expression_within_limit_checks(self, compile_source):
        result = compile_source("x: int = 0\nx = " + " + ".join(["1"] * 90) + "\n")
        assert not result.has_errors
        assert result.typed_ast.statements[0].value.inferred_type == INT_TYPE

    def test_result_str(self, compile_source):
        text = str(compile_source("print(y)\n"))
        assert "Has Errors: True" in text
        assert "[E0301]" in text

    @pytest.mark.parametrize(
        "source",
        [
            "",
            "\n\n\n",
            "def",
            "class A(object)\n",
            "x = = = 1\n",
            "if True:\n\tpass\n  else\n",
            '"unterminated\n',
            "@@@ $$$ ```\n",
            "    indented\n",
            "(((((((((\n",
            "def f(:\n    return\n  x\n",
        ],
    )
    def test_never_raises(self, source):
        data = json.loads(compiler.compile(source))
        assert set(data) == {"untypedAst", "typedAst", "errors", "hasErrors"}
        assert data["hasErrors"] == bool(data["errors"])


class TestHostBoundary:
    """The parse / typecheck / compile JSON functions."""

    def test_parse_json(self):
        data = json.loads(compiler.parse("x = 1\n"))
        assert data["kind"] == "Program"
        assert "inferredType" not in data["statements"][0]["value"]

    def test_typecheck_json(self):
        data = json.loads(compiler.typecheck("x: int = 0\nx = 1\n"))
        assert data["statements"][0]["value"]["inferredType"] == {
            "kind": "ClassValueType",
            "className": "int",
        }

    def test_compile_json(self):
        data = json.loads(compiler.compile('x: int = "a"\nprint(y)\n'))
        assert data["hasErrors"] is True
        assert [e["code"] for e in data["errors"]] == ["E0401", "E0301"]
        assert data["errors"][0]["kind"] == "CompilerError"
        assert data["untypedAst"]["kind"] == "Program"
        assert data["typedAst"]["errors"]["kind"] == "Errors"
        assert "errorMsg" not in data["untypedAst"]["declarations"][0]
        assert "errorMsg" in data["typedAst"]["declarations"][0]

    @pytest.mark.parametrize(
        "expression",
        [" + ".join(["1"] * 250), "(" * 400 + "1" + ")" * 400],
    )
    def test_deep_expression_reported_as_diagnostic(self, expression):
        source = f"x: int = 0\nx = {expression}\n"

        data = json.loads(compiler.compile(source))
        assert data["hasErrors"] is True
        assert [e["code"] for e in data["errors"]] == ["E0209"]

        assert json.loads(compiler.parse(source))["statements"] == []
        typed = json.loads(compiler.typecheck(source))
        assert typed["errors"]["errors"][0]["code"] == "E0209"

    def test_compile_is_deterministic(self):
        assert compiler.compile(LINKED_LIST) == compiler.compile(LINKED_LIST)

    def test_parse_failure_reported_as_json(self, monkeypatch):
        def failing_dumps(obj, indent=None):
            raise SerializationError("Serialization failed: boom")

        monkeypatch.setattr(compiler, "dumps", failing_dumps)
        assert json.loads(compiler.parse("x = 1\n")) == {"error": "Serialization failed: boom"}
        assert json.loads(compiler.typecheck("x = 1\n")) == {"error": "Serialization failed: boom"}

    def test_compile_failure_reported_as_json(self, monkeypatch):
        def failing_to_dict(obj):
            raise SerializationError("cycle")

        monkeypatch.setattr(compiler, "to_dict", failing_to_dict)
        assert json.loads(compiler.compile("x = 1\n")) == {"error": "Serialization failed: cycle"}

    def test_compile_source_helper(self):
        result = compile_source("print(1)\n", filename="hello.py")
        assert result.errors == []
        assert result.to_dict()["hasErrors"] is False
