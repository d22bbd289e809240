"""
Abstract Syntax Tree (AST) node definitions for ChocoPy.

Every node is a dataclass carrying a ``kind`` tag (the variant name used in
serialized output), the source span it was parsed from and an optional
``error_msg`` set when a diagnostic is attached to it. Expression nodes also
carry ``inferred_type``, which is empty after parsing and filled in by the
type checker. The parser is the only producer of nodes; the checker only
writes the annotation fields.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar, Iterator, Optional, Union

from chocopy.utils.diagnostics import Diagnostic, SourceSpan

if TYPE_CHECKING:
    from chocopy.compiler.types import ValueType


@dataclass(slots=True)
class Node(ABC):
    """Base class for all AST nodes."""

    kind: ClassVar[str] = "Node"

    span: SourceSpan = field(kw_only=True)
    error_msg: Optional[str] = field(default=None, kw_only=True)

    @abstractmethod
    def accept(self, visitor: "ASTVisitor") -> Any:
        """Accept a visitor for tree traversal."""

    def children(self) -> Iterator["Node"]:
        """Direct child nodes, in source order."""
        for f in fields(self):
            if f.name in ("span", "error_msg", "inferred_type"):
                continue
            value = getattr(self, f.name)
            if isinstance(value, Node):
                yield value
            elif isinstance(value, list):
                for item in value:
                    if isinstance(item, Node):
                        yield item


class ASTVisitor(ABC):
    """
    Visitor pattern base class for AST traversal.

    Implement this to create custom AST processors.
    """

    def visit(self, node: Node) -> Any:
        """Dispatch to the appropriate visit method."""
        return node.accept(self)


# -----------------------------------------------------------------------------
# Type Annotations
# -----------------------------------------------------------------------------


@dataclass(slots=True)
class TypeAnnotation(Node):
    """Base class for written type annotations."""


@dataclass(slots=True)
class ClassType(TypeAnnotation):
    """
    A class name used as a type.

    Examples:
        int, str, Node, "Node"
    """

    kind: ClassVar[str] = "ClassType"

    class_name: str

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_class_type(self)


@dataclass(slots=True)
class ListType(TypeAnnotation):
    """
    A list type annotation.

    Example:
        [int], [[Node]]
    """

    kind: ClassVar[str] = "ListType"

    element_type: TypeAnnotation

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_list_type(self)


# -----------------------------------------------------------------------------
# Expressions
# -----------------------------------------------------------------------------


@dataclass(slots=True)
class Expression(Node):
    """Base class for all expressions."""

    inferred_type: Optional["ValueType"] = field(default=None, kw_only=True)


class BinaryOperator(Enum):
    """Binary operator types, valued by their source spelling."""

    # Arithmetic
    ADD = "+"
    SUB = "-"
    MUL = "*"
    FLOOR_DIV = "//"
    MOD = "%"

    # Comparison
    EQ = "=="
    NE = "!="
    LT = "<"
    GT = ">"
    LE = "<="
    GE = ">="
    IS = "is"

    # Logical
    AND = "and"
    OR = "or"

    @property
    def is_arithmetic(self) -> bool:
        return self in (
            BinaryOperator.ADD,
            BinaryOperator.SUB,
            BinaryOperator.MUL,
            BinaryOperator.FLOOR_DIV,
            BinaryOperator.MOD,
        )

    @property
    def is_comparison(self) -> bool:
        return self in (
            BinaryOperator.EQ,
            BinaryOperator.NE,
            BinaryOperator.LT,
            BinaryOperator.GT,
            BinaryOperator.LE,
            BinaryOperator.GE,
            BinaryOperator.IS,
        )


class UnaryOperator(Enum):
    """Unary operator types."""

    NEG = "-"
    NOT = "not"


@dataclass(slots=True)
class Identifier(Expression):
    """A reference to a named variable, function or class."""

    kind: ClassVar[str] = "Identifier"

    name: str

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_identifier(self)


@dataclass(slots=True)
class IntegerLiteral(Expression):
    kind: ClassVar[str] = "IntegerLiteral"

    value: int

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_integer_literal(self)


@dataclass(slots=True)
class BooleanLiteral(Expression):
    kind: ClassVar[str] = "BooleanLiteral"

    value: bool

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_boolean_literal(self)


@dataclass(slots=True)
class StringLiteral(Expression):
    kind: ClassVar[str] = "StringLiteral"

    value: str

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_string_literal(self)


@dataclass(slots=True)
class NoneLiteral(Expression):
    kind: ClassVar[str] = "NoneLiteral"

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_none_literal(self)


Literal = Union[IntegerLiteral, BooleanLiteral, StringLiteral, NoneLiteral]


@dataclass(slots=True)
class ListExpr(Expression):
    """
    A list display.

    Example:
        [1, 2, 3], []
    """

    kind: ClassVar[str] = "ListExpr"

    elements: list[Expression]

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_list_expr(self)


@dataclass(slots=True)
class BinaryExpr(Expression):
    """
    A binary operation expression.

    Example:
        a + b, x is None, p and q
    """

    kind: ClassVar[str] = "BinaryExpr"

    left: Expression
    operator: BinaryOperator
    right: Expression

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_binary_expr(self)


@dataclass(slots=True)
class UnaryExpr(Expression):
    """
    A unary operation expression.

    Example:
        -x, not flag
    """

    kind: ClassVar[str] = "UnaryExpr"

    operator: UnaryOperator
    operand: Expression

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_unary_expr(self)


@dataclass(slots=True)
class IfExpr(Expression):
    """
    A conditional expression.

    Example:
        a if a > b else b
    """

    kind: ClassVar[str] = "IfExpr"

    condition: Expression
    then_expr: Expression
    else_expr: Expression

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_if_expr(self)


@dataclass(slots=True)
class MemberExpr(Expression):
    """
    Attribute access on an object.

    Example:
        self.name
    """

    kind: ClassVar[str] = "MemberExpr"

    object: Expression
    member: Identifier

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_member_expr(self)


@dataclass(slots=True)
class IndexExpr(Expression):
    """
    Indexing into a list or string.

    Example:
        items[i], "abc"[0]
    """

    kind: ClassVar[str] = "IndexExpr"

    list_expr: Expression
    index: Expression

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_index_expr(self)


@dataclass(slots=True)
class CallExpr(Expression):
    """
    A call of a global function or a class constructor.

    Example:
        print(x), Node(3)
    """

    kind: ClassVar[str] = "CallExpr"

    function: Identifier
    args: list[Expression]

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_call_expr(self)


@dataclass(slots=True)
class MethodCallExpr(Expression):
    """
    A method call.

    Example:
        animal.speak(), self.next.push(1)
    """

    kind: ClassVar[str] = "MethodCallExpr"

    method: MemberExpr
    args: list[Expression]

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_method_call_expr(self)


# -----------------------------------------------------------------------------
# Statements
# -----------------------------------------------------------------------------


@dataclass(slots=True)
class Statement(Node):
    """Base class for all statements."""


@dataclass(slots=True)
class ExprStmt(Statement):
    kind: ClassVar[str] = "ExprStmt"

    expr: Expression

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_expr_stmt(self)


@dataclass(slots=True)
class AssignStmt(Statement):
    """
    An assignment to one or more targets.

    Example:
        x = y = 0
    """

    kind: ClassVar[str] = "AssignStmt"

    targets: list[Expression]
    value: Expression

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_assign_stmt(self)


@dataclass(slots=True)
class IfStmt(Statement):
    """
    An if statement. ``elif`` clauses are a nested IfStmt as the only
    element of ``else_body``.
    """

    kind: ClassVar[str] = "IfStmt"

    condition: Expression
    then_body: list[Statement]
    else_body: list[Statement] = field(default_factory=list)

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_if_stmt(self)


@dataclass(slots=True)
class WhileStmt(Statement):
    kind: ClassVar[str] = "WhileStmt"

    condition: Expression
    body: list[Statement]

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_while_stmt(self)


@dataclass(slots=True)
class ForStmt(Statement):
    """
    A for loop over the elements of a list or the characters of a string.

    Example:
        for x in items:
    """

    kind: ClassVar[str] = "ForStmt"

    identifier: Identifier
    iterable: Expression
    body: list[Statement]

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_for_stmt(self)


@dataclass(slots=True)
class ReturnStmt(Statement):
    kind: ClassVar[str] = "ReturnStmt"

    value: Optional[Expression] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_return_stmt(self)


# -----------------------------------------------------------------------------
# Declarations
# -----------------------------------------------------------------------------


@dataclass(slots=True)
class Declaration(Node):
    """Base class for declarations."""


@dataclass(slots=True)
class TypedVar(Node):
    """
    A name with a type annotation, as in a variable definition or parameter.

    Example:
        x: int
    """

    kind: ClassVar[str] = "TypedVar"

    identifier: Identifier
    type_annotation: TypeAnnotation

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_typed_var(self)


@dataclass(slots=True)
class VarDef(Declaration):
    """
    A variable definition with its literal initial value.

    Example:
        count: int = 0
    """

    kind: ClassVar[str] = "VarDef"

    var: TypedVar
    value: Expression

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_var_def(self)


@dataclass(slots=True)
class FuncDef(Declaration):
    """
    A function or method definition.

    A missing ``->`` annotation is represented by ``ClassType("<None>")``.
    ``recovered`` is set when a syntax error dropped part of the body.
    """

    kind: ClassVar[str] = "FuncDef"

    name: Identifier
    params: list[TypedVar]
    return_type: TypeAnnotation
    declarations: list[Declaration]
    statements: list[Statement]
    recovered: bool = field(default=False, kw_only=True)

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_func_def(self)


@dataclass(slots=True)
class ClassDef(Declaration):
    """
    A class definition.

    Example:
        class Dog(Animal):
    """

    kind: ClassVar[str] = "ClassDef"

    name: Identifier
    super_class: Identifier
    declarations: list[Declaration]

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_class_def(self)


@dataclass(slots=True)
class GlobalDecl(Declaration):
    kind: ClassVar[str] = "GlobalDecl"

    variable: Identifier

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_global_decl(self)


@dataclass(slots=True)
class NonLocalDecl(Declaration):
    kind: ClassVar[str] = "NonLocalDecl"

    variable: Identifier

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_nonlocal_decl(self)


# -----------------------------------------------------------------------------
# Program
# -----------------------------------------------------------------------------


@dataclass(slots=True)
class Program(Node):
    """
    The root node of a ChocoPy program.

    Owns the whole tree and the diagnostics collected for it so far.
    """

    kind: ClassVar[str] = "Program"

    declarations: list[Declaration]
    statements: list[Statement]
    errors: list[Diagnostic] = field(default_factory=list)

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_program(self)


def walk(node: Node) -> Iterator[Node]:
    """Yield node and all of its descendants in pre-order."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(list(current.children())))


# -----------------------------------------------------------------------------
# Visitor with default implementations
# -----------------------------------------------------------------------------


class BaseASTVisitor(ASTVisitor):
    """
    Base visitor with default implementations that traverse children.

    Subclass this and override specific visit_* methods as needed.
    """

    def generic_visit(self, node: Node) -> Any:
        for child in node.children():
            self.visit(child)

    def visit_program(self, node: Program) -> Any:
        return self.generic_visit(node)

    # Types
    def visit_class_type(self, node: ClassType) -> Any:
        pass

    def visit_list_type(self, node: ListType) -> Any:
        return self.generic_visit(node)

    # Declarations
    def visit_typed_var(self, node: TypedVar) -> Any:
        return self.generic_visit(node)

    def visit_var_def(self, node: VarDef) -> Any:
        return self.generic_visit(node)

    def visit_func_def(self, node: FuncDef) -> Any:
        return self.generic_visit(node)

    def visit_class_def(self, node: ClassDef) -> Any:
        return self.generic_visit(node)

    def visit_global_decl(self, node: GlobalDecl) -> Any:
        return self.generic_visit(node)

    def visit_nonlocal_decl(self, node: NonLocalDecl) -> Any:
        return self.generic_visit(node)

    # Statements
    def visit_expr_stmt(self, node: ExprStmt) -> Any:
        return self.generic_visit(node)

    def visit_assign_stmt(self, node: AssignStmt) -> Any:
        return self.generic_visit(node)

    def visit_if_stmt(self, node: IfStmt) -> Any:
        return self.generic_visit(node)

    def visit_while_stmt(self, node: WhileStmt) -> Any:
        return self.generic_visit(node)

    def visit_for_stmt(self, node: ForStmt) -> Any:
        return self.generic_visit(node)

    def visit_return_stmt(self, node: ReturnStmt) -> Any:
        return self.generic_visit(node)

    # Expressions
    def visit_identifier(self, node: Identifier) -> Any:
        pass

    def visit_integer_literal(self, node: IntegerLiteral) -> Any:
        pass

    def visit_boolean_literal(self, node: BooleanLiteral) -> Any:
        pass

    def visit_string_literal(self, node: StringLiteral) -> Any:
        pass

    def visit_none_literal(self, node: NoneLiteral) -> Any:
        pass

    def visit_list_expr(self, node: ListExpr) -> Any:
        return self.generic_visit(node)

    def visit_binary_expr(self, node: BinaryExpr) -> Any:
        return self.generic_visit(node)

    def visit_unary_expr(self, node: UnaryExpr) -> Any:
        return self.generic_visit(node)

    def visit_if_expr(self, node: IfExpr) -> Any:
        return self.generic_visit(node)

    def visit_member_expr(self, node: MemberExpr) -> Any:
        return self.generic_visit(node)

    def visit_index_expr(self, node: IndexExpr) -> Any:
        return self.generic_visit(node)

    def visit_call_expr(self, node: CallExpr) -> Any:
        return self.generic_visit(node)

    def visit_method_call_expr(self, node: MethodCallExpr) -> Any:
        return self.generic_visit(node)
