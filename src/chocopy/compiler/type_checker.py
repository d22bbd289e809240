"""
Type Checker for ChocoPy.

This module performs static type checking on the AST:
- Declaration pass: registers builtins, every top-level class, function and
  global variable before any body is checked, so top-level definitions may
  refer to each other regardless of order
- Checking pass: infers a type for every expression and validates
  assignments, calls, returns, conditions, iteration and indexing
- Class checking: superclass rules, attribute redefinition and method
  override compatibility
- Narrowing: inside the then-branch of ``x is None`` the variable ``x``
  reads as ``<None>``

Every problem is recorded in the diagnostics collector and on the offending
node's ``error_msg``. After an error the node receives a fallback type
(``int`` for arithmetic, ``bool`` for comparisons and logic, ``<Unknown>``
otherwise), and ``<Unknown>`` is compatible with everything, so a single
mistake produces a single diagnostic.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from functools import reduce
from typing import Iterator, Optional

from chocopy.compiler.ast_nodes import (
    AssignStmt,
    BaseASTVisitor,
    BinaryExpr,
    BinaryOperator,
    BooleanLiteral,
    CallExpr,
    ClassDef,
    ClassType,
    Declaration,
    Expression,
    ExprStmt,
    ForStmt,
    FuncDef,
    GlobalDecl,
    Identifier,
    IfExpr,
    IfStmt,
    IndexExpr,
    IntegerLiteral,
    ListExpr,
    ListType,
    MemberExpr,
    MethodCallExpr,
    Node,
    NoneLiteral,
    NonLocalDecl,
    Program,
    ReturnStmt,
    Statement,
    StringLiteral,
    TypeAnnotation,
    UnaryExpr,
    UnaryOperator,
    VarDef,
    WhileStmt,
)
from chocopy.compiler.scopes import FrameKind, Symbol, SymbolKind, SymbolTable
from chocopy.compiler.types import (
    BOOL_TYPE,
    EMPTY_TYPE,
    INT_TYPE,
    NONE_TYPE,
    OBJECT_TYPE,
    SPECIAL_CLASSES,
    STR_TYPE,
    UNKNOWN_TYPE,
    ClassHierarchy,
    ClassInfo,
    ClassValueType,
    FuncType,
    ListValueType,
    ValueType,
    is_unknown,
)
from chocopy.utils.diagnostics import DiagnosticCollector, ErrorCode, suggest_similar

logger = logging.getLogger(__name__)


# Builtin functions available in the global scope
BUILTIN_FUNCTIONS: dict[str, FuncType] = {
    "print": FuncType((OBJECT_TYPE,), NONE_TYPE),
    "len": FuncType((OBJECT_TYPE,), INT_TYPE),
    "input": FuncType((), STR_TYPE),
}

# Variables assignable from an inner scope once declared there
_ASSIGNABLE_KINDS = (
    SymbolKind.VARIABLE,
    SymbolKind.PARAMETER,
    SymbolKind.GLOBAL_REF,
    SymbolKind.NONLOCAL_REF,
)


def returns_on_all_paths(statements: list[Statement]) -> bool:
    """True when every path through statements ends in a return."""
    for stmt in statements:
        if isinstance(stmt, ReturnStmt):
            return True
        if (
            isinstance(stmt, IfStmt)
            and returns_on_all_paths(stmt.then_body)
            and returns_on_all_paths(stmt.else_body)
        ):
            return True
    return False


class TypeChecker(BaseASTVisitor):
    """
    Static type checker for ChocoPy programs.

    Visitor methods for expressions return the inferred type; ``_infer``
    stores it on the node. Statement and declaration visitors return None.

    Usage:
        checker = TypeChecker()
        program = checker.check(program)
        for diagnostic in program.errors:
            print(diagnostic.to_simple_message())
    """

    def __init__(
        self,
        filename: str = "<input>",
        diagnostics: Optional[DiagnosticCollector] = None,
    ) -> None:
        """
        Initialize the type checker.

        Args:
            filename: Filename for error reporting
            diagnostics: Collector that already holds the parse diagnostics
                of the program; when omitted the program's own ``errors``
                seed a new collector
        """
        self.filename = filename
        self.diagnostics = diagnostics
        self.symbol_table = SymbolTable()
        self.classes = ClassHierarchy()

        # Every class name usable in an annotation, declared later or not
        self._class_names: set[str] = set(SPECIAL_CLASSES) | {"object"}
        self._annotation_types: dict[int, ValueType] = {}
        self._return_types: list[ValueType] = []

    # -------------------------------------------------------------------------
    # Entry point
    # -------------------------------------------------------------------------

    def check(self, program: Program) -> Program:
        """
        Type check a program in place.

        Args:
            program: The AST produced by the parser

        Returns:
            The same Program, with ``inferred_type`` filled in on its
            expressions and ``errors`` holding parse and check diagnostics
        """
        if self.diagnostics is None:
            self.diagnostics = DiagnosticCollector(self.filename)
            self.diagnostics.extend(program.errors)
        before = len(self.diagnostics)

        self.visit(program)

        program.errors = self.diagnostics.diagnostics
        logger.debug(
            "Type checked %s: %d new diagnostic(s)",
            self.filename,
            len(self.diagnostics) - before,
        )
        return program

    def visit_program(self, node: Program) -> None:
        self._register_builtins()
        self._class_names.update(
            decl.name.name for decl in node.declarations if isinstance(decl, ClassDef)
        )

        # Declaration pass
        for decl in node.declarations:
            self._declare_global(decl)

        # Checking pass
        for decl in node.declarations:
            self.visit(decl)
        for stmt in node.statements:
            self.visit(stmt)

    def _register_builtins(self) -> None:
        """Register built-in classes and functions in the global frame."""
        for info in self.classes:
            self.symbol_table.define(Symbol(info.name, info.value_type, SymbolKind.CLASS))
        for name, signature in BUILTIN_FUNCTIONS.items():
            self.symbol_table.define(Symbol(name, signature, SymbolKind.FUNCTION))

    # -------------------------------------------------------------------------
    # Error reporting
    # -------------------------------------------------------------------------

    def _error(
        self,
        code: str,
        message: str,
        node: Node,
        helps: Optional[list[str]] = None,
    ) -> None:
        """Record an error on node; a node keeps only its first error."""
        if node.error_msg is not None:
            return
        node.error_msg = message
        self.diagnostics.error(code, message, node.span, helps=helps)

    def _error_undefined_variable(self, node: Identifier) -> None:
        """Record an undefined name error with suggestions."""
        suggestions = suggest_similar(node.name, self.symbol_table.visible_names())
        helps = [f"did you mean `{s}`?" for s in suggestions]
        self._error(ErrorCode.E0301, f"`{node.name}` is not defined", node, helps=helps)

    def _error_type_mismatch(self, expected: ValueType, actual: ValueType, node: Node) -> None:
        self._error(
            ErrorCode.E0401,
            f"Type mismatch: expected `{expected}` but got `{actual}`",
            node,
        )

    def _error_wrong_args(self, expected: int, got: int, node: Node) -> None:
        self._error(
            ErrorCode.E0403,
            f"Wrong number of arguments: expected {expected} but got {got}",
            node,
        )

    # -------------------------------------------------------------------------
    # Declarations
    # -------------------------------------------------------------------------

    def _resolve_annotation(self, node: TypeAnnotation) -> ValueType:
        """
        Convert a type annotation to a ValueType.

        Results are cached per node so that an annotation resolved in both
        passes reports an unknown class only once.
        """
        cached = self._annotation_types.get(id(node))
        if cached is not None:
            return cached

        resolved: ValueType
        if isinstance(node, ListType):
            resolved = ListValueType(self._resolve_annotation(node.element_type))
        elif isinstance(node, ClassType):
            if node.class_name == str(NONE_TYPE):
                resolved = NONE_TYPE
            elif node.class_name in self._class_names:
                resolved = ClassValueType(node.class_name)
            else:
                self._error(
                    ErrorCode.E0307,
                    f"Invalid type annotation: there is no class named `{node.class_name}`",
                    node,
                )
                resolved = UNKNOWN_TYPE
        else:
            resolved = UNKNOWN_TYPE

        self._annotation_types[id(node)] = resolved
        return resolved

    def _signature(self, node: FuncDef) -> FuncType:
        return FuncType(
            tuple(self._resolve_annotation(p.type_annotation) for p in node.params),
            self._resolve_annotation(node.return_type),
        )

    def _declare_name(self, identifier: Identifier, type_: ValueType, kind: SymbolKind) -> bool:
        """
        Bind a name in the innermost frame.

        Returns:
            False if the name clashes with an existing binding or a class
        """
        name = identifier.name
        frame = self.symbol_table.current_frame
        existing = frame.get(name)

        if existing is not None:
            if existing.kind == SymbolKind.CLASS and kind != SymbolKind.CLASS:
                self._error(ErrorCode.E0303, f"Cannot shadow class name `{name}`", identifier)
            else:
                self._error(
                    ErrorCode.E0302,
                    f"Duplicate declaration of `{name}` in the same scope",
                    identifier,
                )
            return False

        if frame.kind == FrameKind.FUNCTION and name in self._class_names:
            self._error(ErrorCode.E0303, f"Cannot shadow class name `{name}`", identifier)
            return False

        self.symbol_table.define(Symbol(name, type_, kind, identifier.span))
        return True

    def _declare_global(self, decl: Declaration) -> None:
        if isinstance(decl, ClassDef):
            self._declare_class(decl)
        elif isinstance(decl, FuncDef):
            self._declare_name(decl.name, self._signature(decl), SymbolKind.FUNCTION)
        elif isinstance(decl, VarDef):
            self._declare_name(
                decl.var.identifier,
                self._resolve_annotation(decl.var.type_annotation),
                SymbolKind.VARIABLE,
            )

    def _resolve_super_class(self, node: ClassDef) -> ClassInfo:
        """Look up the superclass of node, reporting invalid ones."""
        super_name = node.super_class.name
        object_info = self.classes.get("object")

        if super_name in SPECIAL_CLASSES:
            self._error(
                ErrorCode.E0310,
                f"Cannot extend special class `{super_name}`",
                node.super_class,
            )
            return object_info

        info = self.classes.get(super_name)
        if info is not None:
            return info

        if self.symbol_table.lookup_global(super_name) is None:
            self._error(
                ErrorCode.E0308,
                f"Super-class `{super_name}` is not defined",
                node.super_class,
            )
        else:
            self._error(
                ErrorCode.E0309,
                f"Super-class `{super_name}` is not a class",
                node.super_class,
            )
        return object_info

    def _declare_class(self, node: ClassDef) -> None:
        """Register a class with its inherited and own members."""
        name = node.name.name
        parent = self._resolve_super_class(node)
        declared = self._declare_name(node.name, ClassValueType(name), SymbolKind.CLASS)

        info = ClassInfo(
            name,
            parent.name,
            attributes=dict(parent.attributes),
            methods=dict(parent.methods),
        )

        with self.symbol_table.scope(FrameKind.CLASS, name):
            for decl in node.declarations:
                if isinstance(decl, VarDef):
                    self._declare_attribute(info, decl)
                elif isinstance(decl, FuncDef):
                    self._declare_method(info, decl)

        if declared:
            self.classes.add(info)

    def _declare_attribute(self, info: ClassInfo, decl: VarDef) -> None:
        identifier = decl.var.identifier
        attr_type = self._resolve_annotation(decl.var.type_annotation)
        if not self._declare_name(identifier, attr_type, SymbolKind.VARIABLE):
            return
        if info.has_member(identifier.name):
            self._error(
                ErrorCode.E0311,
                f"Cannot redefine attribute `{identifier.name}`",
                identifier,
            )
            return
        info.attributes[identifier.name] = attr_type

    def _declare_method(self, info: ClassInfo, decl: FuncDef) -> None:
        name = decl.name.name
        signature = self._signature(decl)
        if not self._declare_name(decl.name, signature, SymbolKind.FUNCTION):
            return

        if not signature.parameters or signature.parameters[0] != info.value_type:
            self._error(
                ErrorCode.E0312,
                f"First parameter of method `{name}` must be of the enclosing class `{info.name}`",
                decl.name,
            )
        elif name in info.attributes:
            self._error(ErrorCode.E0311, f"Cannot redefine attribute `{name}`", decl.name)
        elif name in info.methods and not self._is_compatible_override(
            info.methods[name], signature
        ):
            self._error(
                ErrorCode.E0410,
                f"Method `{name}` is overridden with an incompatible type signature",
                decl.name,
            )

        info.methods[name] = signature

    def _is_compatible_override(self, inherited: FuncType, override: FuncType) -> bool:
        """
        Check an override against the inherited signature.

        The arity must match, parameters after ``self`` are contravariant and
        the return type is covariant.
        """
        if len(inherited.parameters) != len(override.parameters):
            return False
        for super_param, sub_param in zip(inherited.parameters[1:], override.parameters[1:]):
            if not self.classes.is_assignable(super_param, sub_param):
                return False
        return self.classes.is_assignable(override.return_type, inherited.return_type)

    def _declare_locals(self, node: FuncDef) -> None:
        """Bind the local declarations of a function body."""
        for decl in node.declarations:
            if isinstance(decl, VarDef):
                self._declare_name(
                    decl.var.identifier,
                    self._resolve_annotation(decl.var.type_annotation),
                    SymbolKind.VARIABLE,
                )
            elif isinstance(decl, FuncDef):
                self._declare_name(decl.name, self._signature(decl), SymbolKind.FUNCTION)
            elif isinstance(decl, GlobalDecl):
                name = decl.variable.name
                symbol = self.symbol_table.lookup_global(name)
                if symbol is None or symbol.kind != SymbolKind.VARIABLE:
                    self._error(ErrorCode.E0304, f"`{name}` is not a global variable", decl)
                else:
                    self._declare_name(decl.variable, symbol.type, SymbolKind.GLOBAL_REF)
            elif isinstance(decl, NonLocalDecl):
                name = decl.variable.name
                symbol = self.symbol_table.lookup_nonlocal(name)
                if symbol is None or symbol.kind not in (SymbolKind.VARIABLE, SymbolKind.PARAMETER):
                    self._error(ErrorCode.E0305, f"`{name}` is not a nonlocal variable", decl)
                else:
                    self._declare_name(decl.variable, symbol.type, SymbolKind.NONLOCAL_REF)

    # -------------------------------------------------------------------------
    # Declaration checking
    # -------------------------------------------------------------------------

    def visit_var_def(self, node: VarDef) -> None:
        declared = self._resolve_annotation(node.var.type_annotation)
        actual = self._infer(node.value)
        if not self.classes.is_assignable(actual, declared):
            self._error_type_mismatch(declared, actual, node)

    def visit_class_def(self, node: ClassDef) -> None:
        for decl in node.declarations:
            if isinstance(decl, (VarDef, FuncDef)):
                self.visit(decl)

    def visit_func_def(self, node: FuncDef) -> None:
        signature = self._signature(node)

        with self.symbol_table.scope(FrameKind.FUNCTION, node.name.name):
            for param, param_type in zip(node.params, signature.parameters):
                self._declare_name(param.identifier, param_type, SymbolKind.PARAMETER)
            self._declare_locals(node)

            self._return_types.append(signature.return_type)
            try:
                for decl in node.declarations:
                    if isinstance(decl, (VarDef, FuncDef)):
                        self.visit(decl)
                for stmt in node.statements:
                    self.visit(stmt)
            finally:
                self._return_types.pop()

        return_type = signature.return_type
        # A body cut short by a syntax error is not checked for missing returns
        if (
            not node.recovered
            and not is_unknown(return_type)
            and not self.classes.is_assignable(NONE_TYPE, return_type)
            and not returns_on_all_paths(node.statements)
        ):
            self._error(
                ErrorCode.E0412,
                f"Not all paths in `{node.name.name}` have a return statement",
                node.name,
            )

    def visit_global_decl(self, node: GlobalDecl) -> None:
        pass

    def visit_nonlocal_decl(self, node: NonLocalDecl) -> None:
        pass

    # -------------------------------------------------------------------------
    # Statements
    # -------------------------------------------------------------------------

    def visit_expr_stmt(self, node: ExprStmt) -> None:
        self._infer(node.expr)

    def visit_assign_stmt(self, node: AssignStmt) -> None:
        value_type = self._infer(node.value)

        if len(node.targets) > 1 and value_type == ListValueType(NONE_TYPE):
            self._error(
                ErrorCode.E0413,
                "Right-hand side of a multiple assignment may not be `[<None>]`",
                node,
            )

        for target in node.targets:
            target_type = self._check_assign_target(target)
            if target_type is not None and not self.classes.is_assignable(value_type, target_type):
                self._error_type_mismatch(target_type, value_type, node)

    def _check_assign_target(self, target: Expression) -> Optional[ValueType]:
        """
        Check that target may be assigned and return its declared type.

        Returns:
            None when the target itself is in error
        """
        if isinstance(target, Identifier):
            symbol = self.symbol_table.lookup_local(target.name)
            if symbol is None or symbol.kind not in _ASSIGNABLE_KINDS:
                self._error(
                    ErrorCode.E0306,
                    f"Cannot assign to `{target.name}` because it is not explicitly "
                    "declared in this scope",
                    target,
                )
                target.inferred_type = UNKNOWN_TYPE
                return None
            self.symbol_table.forget_narrowing(target.name)
            target.inferred_type = symbol.type
            return symbol.type

        if isinstance(target, IndexExpr):
            container = self._infer(target.list_expr)
            self._check_index(target.index)
            if container == STR_TYPE:
                self._error(
                    ErrorCode.E0414,
                    "Cannot assign to an index of `str`: strings are immutable",
                    target,
                )
                target.inferred_type = STR_TYPE
                return None
            target.inferred_type = self._element_type(target, container)
            if target.error_msg is not None or is_unknown(target.inferred_type):
                return None
            return target.inferred_type

        target_type = self._infer(target)
        if target.error_msg is not None:
            return None
        return target_type

    def visit_if_stmt(self, node: IfStmt) -> None:
        self._check_condition(node.condition)
        with self._narrowing(self._narrowing_target(node.condition)):
            for stmt in node.then_body:
                self.visit(stmt)
        for stmt in node.else_body:
            self.visit(stmt)

    def visit_while_stmt(self, node: WhileStmt) -> None:
        self._check_condition(node.condition)
        for stmt in node.body:
            self.visit(stmt)

    def visit_for_stmt(self, node: ForStmt) -> None:
        iterable_type = self._infer(node.iterable)

        element_type: Optional[ValueType]
        if iterable_type == STR_TYPE:
            element_type = STR_TYPE
        elif isinstance(iterable_type, ListValueType):
            element_type = iterable_type.element_type
        elif iterable_type == EMPTY_TYPE or is_unknown(iterable_type):
            element_type = None
        else:
            self._error(
                ErrorCode.E0408,
                f"Cannot iterate over type `{iterable_type}`",
                node.iterable,
            )
            element_type = None

        var_type = self._check_assign_target(node.identifier)
        if (
            var_type is not None
            and element_type is not None
            and not self.classes.is_assignable(element_type, var_type)
        ):
            self._error_type_mismatch(var_type, element_type, node.identifier)

        for stmt in node.body:
            self.visit(stmt)

    def visit_return_stmt(self, node: ReturnStmt) -> None:
        if not self._return_types:
            if node.value is not None:
                self._infer(node.value)
            self._error(ErrorCode.E0411, "Return statement cannot appear at the top level", node)
            return

        expected = self._return_types[-1]
        if node.value is None:
            if not self.classes.is_assignable(NONE_TYPE, expected):
                self._error(
                    ErrorCode.E0401,
                    f"Expected return type `{expected}` but the function returns `None`",
                    node,
                )
            return

        actual = self._infer(node.value)
        if not self.classes.is_assignable(actual, expected):
            self._error_type_mismatch(expected, actual, node)

    # -------------------------------------------------------------------------
    # Narrowing
    # -------------------------------------------------------------------------

    def _narrowing_target(self, condition: Expression) -> Optional[str]:
        """
        Name of the variable a condition proves to be None, if any.

        Only ``x is None`` and ``None is x`` narrow, and only for variables
        whose declared type admits None.
        """
        if not isinstance(condition, BinaryExpr) or condition.operator != BinaryOperator.IS:
            return None

        if isinstance(condition.right, NoneLiteral):
            candidate = condition.left
        elif isinstance(condition.left, NoneLiteral):
            candidate = condition.right
        else:
            return None
        if not isinstance(candidate, Identifier):
            return None

        symbol = self.symbol_table.lookup(candidate.name)
        if symbol is None or not symbol.kind.is_variable:
            return None
        if is_unknown(symbol.type) or not self.classes.is_assignable(NONE_TYPE, symbol.type):
            return None
        return candidate.name

    @contextmanager
    def _narrowing(self, name: Optional[str]) -> Iterator[None]:
        if name is None:
            yield
            return
        with self.symbol_table.scope(FrameKind.BLOCK, f"narrow {name}"):
            self.symbol_table.narrow(name, NONE_TYPE)
            yield

    # -------------------------------------------------------------------------
    # Expressions
    # -------------------------------------------------------------------------

    def _infer(self, expr: Expression) -> ValueType:
        """Infer the type of expr and record it on the node."""
        inferred = self.visit(expr)
        if inferred is None:
            inferred = UNKNOWN_TYPE
        expr.inferred_type = inferred
        return inferred

    def _check_condition(self, condition: Expression) -> None:
        condition_type = self._infer(condition)
        if not is_unknown(condition_type) and condition_type != BOOL_TYPE:
            self._error(
                ErrorCode.E0409,
                f"Condition must be `bool`, but this expression is `{condition_type}`",
                condition,
            )

    def _check_index(self, index: Expression) -> None:
        index_type = self._infer(index)
        if not is_unknown(index_type) and index_type != INT_TYPE:
            self._error(
                ErrorCode.E0407,
                f"Index must be `int`, but this expression is `{index_type}`",
                index,
            )

    def _element_type(self, node: IndexExpr, container: ValueType) -> ValueType:
        if isinstance(container, ListValueType):
            return container.element_type
        if not is_unknown(container):
            self._error(ErrorCode.E0406, f"Cannot index into type `{container}`", node)
        return UNKNOWN_TYPE

    def _class_info(self, type_: ValueType) -> Optional[ClassInfo]:
        if isinstance(type_, ClassValueType):
            return self.classes.get(type_.class_name)
        return None

    def visit_integer_literal(self, node: IntegerLiteral) -> ValueType:
        return INT_TYPE

    def visit_boolean_literal(self, node: BooleanLiteral) -> ValueType:
        return BOOL_TYPE

    def visit_string_literal(self, node: StringLiteral) -> ValueType:
        return STR_TYPE

    def visit_none_literal(self, node: NoneLiteral) -> ValueType:
        return NONE_TYPE

    def visit_identifier(self, node: Identifier) -> ValueType:
        symbol = self.symbol_table.lookup(node.name)
        if symbol is None:
            self._error_undefined_variable(node)
            return UNKNOWN_TYPE
        if not symbol.kind.is_variable:
            self._error(
                ErrorCode.E0301,
                f"`{node.name}` is not a variable in this scope",
                node,
            )
            return UNKNOWN_TYPE
        return symbol.type

    def visit_list_expr(self, node: ListExpr) -> ValueType:
        if not node.elements:
            return EMPTY_TYPE
        element_types = [self._infer(element) for element in node.elements]
        return ListValueType(reduce(self.classes.join, element_types))

    def visit_unary_expr(self, node: UnaryExpr) -> ValueType:
        operand = self._infer(node.operand)
        expected = INT_TYPE if node.operator == UnaryOperator.NEG else BOOL_TYPE
        if not is_unknown(operand) and operand != expected:
            self._error(
                ErrorCode.E0402,
                f"Cannot apply `{node.operator.value}` to type `{operand}`",
                node,
            )
        return expected

    def visit_binary_expr(self, node: BinaryExpr) -> ValueType:
        left = self._infer(node.left)
        right = self._infer(node.right)
        op = node.operator

        result = self._binary_result(op, left, right)
        if result is not None:
            return result

        if not is_unknown(left) and not is_unknown(right):
            self._error(
                ErrorCode.E0402,
                f"Cannot use `{op.value}` with `{left}` and `{right}`",
                node,
            )
        return self._binary_fallback(op, left, right)

    def _binary_result(
        self, op: BinaryOperator, left: ValueType, right: ValueType
    ) -> Optional[ValueType]:
        """The result type of a well-typed binary expression, else None."""
        if op == BinaryOperator.ADD:
            if left == INT_TYPE and right == INT_TYPE:
                return INT_TYPE
            if left == STR_TYPE and right == STR_TYPE:
                return STR_TYPE
            if left == EMPTY_TYPE and (right.is_list or right == EMPTY_TYPE):
                return right
            if right == EMPTY_TYPE and left.is_list:
                return left
            if isinstance(left, ListValueType) and isinstance(right, ListValueType):
                return ListValueType(self.classes.join(left.element_type, right.element_type))
            return None

        if op.is_arithmetic:
            if left == INT_TYPE and right == INT_TYPE:
                return INT_TYPE
            return None

        if op in (BinaryOperator.EQ, BinaryOperator.NE):
            if left == right and left in (INT_TYPE, BOOL_TYPE, STR_TYPE):
                return BOOL_TYPE
            return None

        if op == BinaryOperator.IS:
            if left.is_special or right.is_special or is_unknown(left) or is_unknown(right):
                return None
            return BOOL_TYPE

        if op.is_comparison:
            if left == INT_TYPE and right == INT_TYPE:
                return BOOL_TYPE
            return None

        # and / or
        if left == BOOL_TYPE and right == BOOL_TYPE:
            return BOOL_TYPE
        return None

    def _binary_fallback(self, op: BinaryOperator, left: ValueType, right: ValueType) -> ValueType:
        if op == BinaryOperator.ADD:
            if INT_TYPE in (left, right):
                return INT_TYPE
            if STR_TYPE in (left, right):
                return STR_TYPE
            return UNKNOWN_TYPE
        if op.is_arithmetic:
            return INT_TYPE
        return BOOL_TYPE

    def visit_if_expr(self, node: IfExpr) -> ValueType:
        self._check_condition(node.condition)
        with self._narrowing(self._narrowing_target(node.condition)):
            then_type = self._infer(node.then_expr)
        else_type = self._infer(node.else_expr)
        return self.classes.join(then_type, else_type)

    def visit_member_expr(self, node: MemberExpr) -> ValueType:
        object_type = self._infer(node.object)
        if is_unknown(object_type):
            return UNKNOWN_TYPE

        info = self._class_info(object_type)
        if info is None:
            self._error(
                ErrorCode.E0405,
                f"Cannot access a member of type `{object_type}`",
                node,
            )
            return UNKNOWN_TYPE

        attr_type = info.attributes.get(node.member.name)
        if attr_type is None:
            self._error(
                ErrorCode.E0405,
                f"Class `{info.name}` has no attribute named `{node.member.name}`",
                node,
            )
            return UNKNOWN_TYPE
        return attr_type

    def visit_index_expr(self, node: IndexExpr) -> ValueType:
        container = self._infer(node.list_expr)
        self._check_index(node.index)
        if container == STR_TYPE:
            return STR_TYPE
        return self._element_type(node, container)

    def _check_arguments(
        self,
        node: Expression,
        parameters: tuple[ValueType, ...],
        arg_types: list[ValueType],
    ) -> None:
        """Check argument count and types against parameters (self excluded)."""
        if len(parameters) != len(arg_types):
            self._error_wrong_args(len(parameters), len(arg_types), node)
            return
        for position, (expected, actual) in enumerate(zip(parameters, arg_types), start=1):
            if not self.classes.is_assignable(actual, expected):
                self._error(
                    ErrorCode.E0401,
                    f"Argument {position} has type `{actual}` but the parameter "
                    f"expects `{expected}`",
                    node,
                )
                return

    def visit_call_expr(self, node: CallExpr) -> ValueType:
        arg_types = [self._infer(arg) for arg in node.args]
        callee = node.function
        symbol = self.symbol_table.lookup(callee.name)

        if symbol is None:
            self._error_undefined_variable(callee)
            callee.inferred_type = UNKNOWN_TYPE
            return UNKNOWN_TYPE

        if symbol.kind == SymbolKind.CLASS:
            info = self.classes.get(callee.name)
            if info is None:
                callee.inferred_type = UNKNOWN_TYPE
                return UNKNOWN_TYPE
            init = info.methods["__init__"]
            constructor = FuncType(init.parameters[1:], info.value_type)
            callee.inferred_type = constructor
            self._check_arguments(node, constructor.parameters, arg_types)
            return info.value_type

        if symbol.kind == SymbolKind.FUNCTION and isinstance(symbol.type, FuncType):
            callee.inferred_type = symbol.type
            self._check_arguments(node, symbol.type.parameters, arg_types)
            return symbol.type.return_type

        callee.inferred_type = symbol.type
        self._error(ErrorCode.E0404, f"`{callee.name}` is not a function or class", node)
        return UNKNOWN_TYPE

    def visit_method_call_expr(self, node: MethodCallExpr) -> ValueType:
        member = node.method
        object_type = self._infer(member.object)
        arg_types = [self._infer(arg) for arg in node.args]

        if is_unknown(object_type):
            member.inferred_type = UNKNOWN_TYPE
            return UNKNOWN_TYPE

        info = self._class_info(object_type)
        if info is None:
            self._error(
                ErrorCode.E0405,
                f"Cannot access a member of type `{object_type}`",
                member,
            )
            member.inferred_type = UNKNOWN_TYPE
            return UNKNOWN_TYPE

        method = info.methods.get(member.member.name)
        if method is None:
            self._error(
                ErrorCode.E0405,
                f"Class `{info.name}` has no method named `{member.member.name}`",
                member,
            )
            member.inferred_type = UNKNOWN_TYPE
            return UNKNOWN_TYPE

        member.inferred_type = method
        self._check_arguments(node, method.parameters[1:], arg_types)
        return method.return_type


def type_check(program: Program, filename: str = "<input>") -> Program:
    """
    Convenience function to type check a parsed program.

    Args:
        program: The AST produced by the parser

    Returns:
        The same Program, annotated, with all diagnostics in ``errors``
    """
    return TypeChecker(filename).check(program)
