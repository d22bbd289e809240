"""
Unit tests for the ChocoPy Parser.
"""

import pytest

from chocopy.compiler.ast_nodes import (
    AssignStmt,
    BinaryExpr,
    BinaryOperator,
    BooleanLiteral,
    CallExpr,
    ClassDef,
    ClassType,
    ExprStmt,
    ForStmt,
    FuncDef,
    GlobalDecl,
    IfExpr,
    IfStmt,
    IndexExpr,
    IntegerLiteral,
    ListExpr,
    ListType,
    MemberExpr,
    MethodCallExpr,
    NoneLiteral,
    NonLocalDecl,
    Program,
    ReturnStmt,
    StringLiteral,
    UnaryExpr,
    UnaryOperator,
    VarDef,
    WhileStmt,
    walk,
)
from chocopy.compiler.lexer import tokenize as tokenize_source
from chocopy.compiler.parser import MAX_NESTING_DEPTH
from chocopy.compiler.parser import parse as parse_tokens
from chocopy.utils.diagnostics import ErrorCode


def expr_of(program: Program):
    """The expression of the first statement of a program."""
    stmt = program.statements[0]
    assert isinstance(stmt, ExprStmt)
    return stmt.expr


def codes_of(program: Program) -> list[str]:
    return [d.code for d in program.errors]


class TestParserBasics:
    """Basic parser functionality tests."""

    def test_empty_program(self, parse):
        """Empty source should produce an empty program."""
        program = parse("")
        assert isinstance(program, Program)
        assert program.declarations == []
        assert program.statements == []
        assert program.errors == []

    def test_multiple_statements(self, parse):
        program = parse("x = 1\ny = 2\nprint(x)\n")
        assert len(program.statements) == 3
        assert program.errors == []

    def test_module_function(self):
        program = parse_tokens(tokenize_source("x: int = 1\nx = 2\n"))
        assert len(program.declarations) == 1
        assert len(program.statements) == 1

    def test_literals(self, parse):
        program = parse('1\nTrue\nFalse\nNone\n"s"\n[1, 2]\n')
        kinds = [type(s.expr) for s in program.statements]
        assert kinds == [
            IntegerLiteral,
            BooleanLiteral,
            BooleanLiteral,
            NoneLiteral,
            StringLiteral,
            ListExpr,
        ]


class TestParserDeclarations:
    """Variable, function and class definitions."""

    def test_var_def(self, parse):
        program = parse("x: int = 42\n")
        decl = program.declarations[0]
        assert isinstance(decl, VarDef)
        assert decl.var.identifier.name == "x"
        assert isinstance(decl.var.type_annotation, ClassType)
        assert decl.var.type_annotation.class_name == "int"
        assert decl.value.value == 42

    def test_nested_list_type(self, parse):
        decl = parse("x: [[int]] = None\n").declarations[0]
        outer = decl.var.type_annotation
        assert isinstance(outer, ListType)
        assert isinstance(outer.element_type, ListType)
        assert outer.element_type.element_type.class_name == "int"

    def test_idstring_type(self, parse):
        decl = parse('x: "Node" = None\n').declarations[0]
        assert decl.var.type_annotation.class_name == "Node"

    def test_var_def_requires_literal(self, parse):
        program = parse("x: int = 1 + 2\n")
        assert codes_of(program) == [ErrorCode.E0201]

    def test_var_def_rejects_expression_start(self, parse):
        program = parse("x: int = y\n")
        assert codes_of(program) == [ErrorCode.E0208]

    def test_func_def(self, parse):
        program = parse("def add(a: int, b: int) -> int:\n    return a + b\n")
        func = program.declarations[0]
        assert isinstance(func, FuncDef)
        assert func.name.name == "add"
        assert [p.identifier.name for p in func.params] == ["a", "b"]
        assert func.return_type.class_name == "int"
        assert isinstance(func.statements[0], ReturnStmt)

    def test_missing_return_type_is_none(self, parse):
        func = parse("def f():\n    pass\n").declarations[0]
        assert isinstance(func.return_type, ClassType)
        assert func.return_type.class_name == "<None>"

    def test_function_local_declarations(self, parse):
        source = (
            "def f():\n"
            "    global x\n"
            "    nonlocal y\n"
            "    z: int = 0\n"
            "    def g():\n"
            "        pass\n"
            "    pass\n"
        )
        func = parse(source).declarations[0]
        kinds = [type(d) for d in func.declarations]
        assert kinds == [GlobalDecl, NonLocalDecl, VarDef, FuncDef]

    def test_class_def(self, parse):
        source = (
            "class A(object):\n"
            "    x: int = 0\n"
            '    def __init__(self: "A"):\n'
            "        pass\n"
        )
        program = parse(source)
        cls = program.declarations[0]
        assert isinstance(cls, ClassDef)
        assert cls.name.name == "A"
        assert cls.super_class.name == "object"
        assert [type(d) for d in cls.declarations] == [VarDef, FuncDef]
        assert program.errors == []

    def test_class_with_pass(self, parse):
        program = parse("class A(object):\n    pass\n")
        assert program.declarations[0].declarations == []
        assert program.errors == []


class TestParserStatements:
    """Statement forms."""

    def test_multiple_assignment(self, parse):
        stmt = parse("a = b = 1\n").statements[0]
        assert isinstance(stmt, AssignStmt)
        assert [t.name for t in stmt.targets] == ["a", "b"]
        assert stmt.value.value == 1

    def test_member_and_index_targets(self, parse):
        stmt = parse("a.b = c[0] = 1\n").statements[0]
        assert isinstance(stmt.targets[0], MemberExpr)
        assert isinstance(stmt.targets[1], IndexExpr)

    def test_invalid_target(self, parse):
        program = parse("1 = x\n")
        assert codes_of(program) == [ErrorCode.E0204]
        assert program.statements == []

    def test_elif_nests_if(self, parse):
        source = "if a:\n    pass\nelif b:\n    pass\nelse:\n    pass\n"
        stmt = parse(source).statements[0]
        assert isinstance(stmt, IfStmt)
        assert len(stmt.else_body) == 1
        inner = stmt.else_body[0]
        assert isinstance(inner, IfStmt)
        assert inner.condition.name == "b"

    def test_while_and_for(self, parse):
        program = parse("while x:\n    x = False\nfor i in [1]:\n    print(i)\n")
        assert isinstance(program.statements[0], WhileStmt)
        loop = program.statements[1]
        assert isinstance(loop, ForStmt)
        assert loop.identifier.name == "i"
        assert isinstance(loop.body[0], ExprStmt)

    def test_bare_return(self, parse):
        func = parse("def f():\n    return\n").declarations[0]
        assert func.statements[0].value is None


class TestParserExpressions:
    """Precedence and associativity."""

    def test_multiplication_binds_tighter(self, parse):
        expr = expr_of(parse("1 + 2 * 3\n"))
        assert expr.operator == BinaryOperator.ADD
        assert expr.right.operator == BinaryOperator.MUL

    def test_subtraction_is_left_associative(self, parse):
        expr = expr_of(parse("1 - 2 - 3\n"))
        assert expr.operator == BinaryOperator.SUB
        assert isinstance(expr.left, BinaryExpr)
        assert expr.right.value == 3

    def test_negation_binds_tighter_than_multiplication(self, parse):
        expr = expr_of(parse("-1 * 2\n"))
        assert expr.operator == BinaryOperator.MUL
        assert isinstance(expr.left, UnaryExpr)
        assert expr.left.operator == UnaryOperator.NEG

    def test_not_binds_tighter_than_and(self, parse):
        expr = expr_of(parse("not a and b\n"))
        assert expr.operator == BinaryOperator.AND
        assert isinstance(expr.left, UnaryExpr)
        assert expr.left.operator == UnaryOperator.NOT

    def test_and_binds_tighter_than_or(self, parse):
        expr = expr_of(parse("a or b and c\n"))
        assert expr.operator == BinaryOperator.OR
        assert expr.right.operator == BinaryOperator.AND

    def test_comparison_above_arithmetic(self, parse):
        expr = expr_of(parse("1 + 2 == 3\n"))
        assert expr.operator == BinaryOperator.EQ
        assert expr.left.operator == BinaryOperator.ADD

    def test_conditional_is_right_associative(self, parse):
        expr = expr_of(parse("a if b else c if d else e\n"))
        assert isinstance(expr, IfExpr)
        assert expr.condition.name == "b"
        assert expr.then_expr.name == "a"
        assert isinstance(expr.else_expr, IfExpr)
        assert expr.else_expr.condition.name == "d"

    def test_chained_comparison_rejected(self, parse):
        program = parse("1 < 2 < 3\n")
        assert codes_of(program) == [ErrorCode.E0203]
        assert program.errors[0].message == "Comparison operators cannot be chained"

    def test_postfix_chain(self, parse):
        expr = expr_of(parse("a.b[0].c\n"))
        assert isinstance(expr, MemberExpr)
        assert expr.member.name == "c"
        assert isinstance(expr.object, IndexExpr)
        assert isinstance(expr.object.list_expr, MemberExpr)

    def test_call_and_method_call(self, parse):
        program = parse("f(1, 2)\na.b(1)\n")
        call = expr_of(program)
        assert isinstance(call, CallExpr)
        assert call.function.name == "f"
        assert len(call.args) == 2

        method_call = program.statements[1].expr
        assert isinstance(method_call, MethodCallExpr)
        assert method_call.method.object.name == "a"
        assert method_call.method.member.name == "b"
        assert method_call.args[0].value == 1

    def test_only_names_can_be_called(self, parse):
        program = parse("a[0](1)\n")
        assert codes_of(program) == [ErrorCode.E0203]
        assert program.errors[0].message == "Only functions, classes and methods can be called"

    def test_parenthesized(self, parse):
        expr = expr_of(parse("(1 + 2) * 3\n"))
        assert expr.operator == BinaryOperator.MUL
        assert expr.left.operator == BinaryOperator.ADD


class TestParserLocations:
    """Source spans of nodes."""

    def test_statement_and_expression_spans(self, parse):
        stmt = parse("x = 1 + 2\n").statements[0]
        assert stmt.span.as_list() == [1, 1, 1, 10]
        assert stmt.targets[0].span.as_list() == [1, 1, 1, 2]
        assert stmt.value.span.as_list() == [1, 5, 1, 10]

    def test_program_span_covers_source(self, parse):
        program = parse("x = 1\ny = 2\n")
        assert program.span.start == (1, 1)
        assert program.span.end_line == 2

    def test_child_spans_nested_in_parent(self, parse):
        expr = expr_of(parse("f(a.b, [1, 2])\n"))
        for arg in expr.args:
            assert expr.span.contains(arg.span)

    def test_every_span_nested_in_its_parent(self, parse):
        source = (
            "class A(object):\n"
            "    x: [int] = None\n"
            '    def m(self: "A", i: int) -> int:\n'
            "        return (self.x[i] + -i) * 2\n"
            "a: A = None\n"
            "a = A()\n"
            "if not (a is None) and a.m(0) > 1:\n"
            '    print([a.x[0], len("ab")][1] if True else 3)\n'
            "while False:\n"
            "    a.x[0] = a.m(1)\n"
        )
        program = parse(source)
        assert program.errors == []
        for node in walk(program):
            for child in node.children():
                assert node.span.contains(child.span), (node.kind, child.kind)


class TestParserRecovery:
    """Errors are recorded and parsing continues."""

    def test_recovers_at_next_line(self, parse):
        program = parse("x = (1 +\ny = 2\n")
        assert codes_of(program) == [ErrorCode.E0203]
        assert program.errors[0].span.start_line == 1
        assert len(program.statements) == 1
        assert program.statements[0].targets[0].name == "y"

    def test_recovers_inside_function_body(self, parse):
        source = "def f() -> int:\n    x = = 1\n    return 1\nprint(1)\n"
        program = parse(source)
        assert len(program.errors) == 1
        func = program.declarations[0]
        assert [type(s) for s in func.statements] == [ReturnStmt]
        assert len(program.statements) == 1

    def test_declaration_after_statement(self, parse):
        program = parse("print(1)\nx: int = 1\n")
        assert codes_of(program) == [ErrorCode.E0205]
        assert program.declarations == []
        assert len(program.statements) == 1

    def test_declaration_after_statement_in_function(self, parse):
        program = parse("def f():\n    print(1)\n    x: int = 1\n")
        assert codes_of(program) == [ErrorCode.E0205]
        assert program.declarations[0].declarations == []

    def test_declaration_in_block(self, parse):
        program = parse("while True:\n    x: int = 1\n    pass\n")
        assert codes_of(program) == [ErrorCode.E0205]
        assert program.errors[0].message == "Declarations are not allowed here"

    def test_function_needs_a_statement(self, parse):
        program = parse("def f():\n    x: int = 1\nprint(1)\n")
        assert codes_of(program) == [ErrorCode.E0206]
        assert program.errors[0].message == "Function `f` must contain at least one statement"
        assert len(program.statements) == 1

    def test_statement_in_class_body(self, parse):
        program = parse("class A(object):\n    x = 1\n")
        assert codes_of(program) == [ErrorCode.E0205]
        assert program.declarations[0].declarations == []

    def test_nested_class_rejected(self, parse):
        source = "def f():\n    class A(object):\n        pass\n    pass\n"
        program = parse(source)
        assert codes_of(program) == [ErrorCode.E0205]
        assert program.errors[0].message == "Classes can only be defined at the top level"
        assert program.declarations[0].declarations == []

    def test_recovered_function_is_flagged(self, parse):
        program = parse("def f() -> int:\n    x = = 1\n    return 1\n")
        assert program.declarations[0].recovered

    def test_clean_function_is_not_flagged(self, parse):
        program = parse("def f() -> int:\n    return 1\n")
        assert not program.declarations[0].recovered

    def test_unexpected_indent(self, parse):
        program = parse("x = 1\n    y = 2\nz = 3\n")
        assert codes_of(program) == [ErrorCode.E0207]
        assert [s.targets[0].name for s in program.statements] == ["x", "z"]

    @pytest.mark.parametrize(
        "source",
        [
            "def",
            "class",
            "x = [1, 2\n",
            "if x\n    pass\n",
            "def f(:\n",
            ")))",
            "x: = 1\n",
            "for in x:\n    pass\n",
            "a.\n",
        ],
    )
    def test_garbage_never_raises(self, parse, source):
        program = parse(source)
        assert isinstance(program, Program)
        assert program.errors


class TestParserNesting:
    """Trees deeper than MAX_NESTING_DEPTH are rejected with one diagnostic."""

    @pytest.mark.parametrize(
        "expression",
        [
            "(" * 400 + "1" + ")" * 400,
            "[" * 300 + "]" * 300,
            "-" * 300 + "1",
            " + ".join(["1"] * 250),
            "a" + ".b" * 250,
            "f" + "[0]" * 250,
        ],
    )
    def test_too_deep_expression(self, parse, expression):
        program = parse(f"x = {expression}\ny = 2\n")
        assert codes_of(program) == [ErrorCode.E0209]
        assert program.errors[0].message == (
            f"Code is nested too deeply (the limit is {MAX_NESTING_DEPTH} levels)"
        )
        assert [s.targets[0].name for s in program.statements] == ["y"]

    def test_long_chain_within_limit(self, parse):
        program = parse("x = " + " + ".join(["1"] * 90) + "\n")
        assert program.errors == []
        depth = 0
        expr = program.statements[0].value
        while isinstance(expr, BinaryExpr):
            expr = expr.left
            depth += 1
        assert depth == 89

    def test_too_deep_blocks(self, parse):
        lines = ["    " * level + "while True:" for level in range(120)]
        lines.append("    " * 120 + "pass")
        program = parse("\n".join(lines) + "\nx = 1\n")
        assert codes_of(program) == [ErrorCode.E0209]
        assert [type(s) for s in program.statements] == [WhileStmt, AssignStmt]

    def test_depth_is_restored_after_error(self, parse):
        deep = "(" * 200 + "1" + ")" * 200
        source = f"x = {deep}\ny = {deep}\nz = " + " + ".join(["1"] * 90) + "\n"
        program = parse(source)
        assert codes_of(program) == [ErrorCode.E0209, ErrorCode.E0209]
        assert [s.targets[0].name for s in program.statements] == ["z"]

    def test_too_deep_type_annotation(self, parse):
        program = parse("x: " + "[" * 300 + "int" + "]" * 300 + " = None\ny: int = 1\n")
        assert codes_of(program) == [ErrorCode.E0209]
        assert [d.var.identifier.name for d in program.declarations] == ["y"]
