"""
ChocoPy Parser.

A recursive descent parser that transforms a token stream into an Abstract
Syntax Tree (AST). Statements are parsed by recursive descent and
expressions by precedence climbing.

Syntax errors never abort the parse. A failing statement raises
``ParserError`` internally; the enclosing statement loop records it as a
diagnostic, skips to the next statement boundary and carries on, so every
input yields a complete Program.
"""

from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Callable, Optional, TypeVar, Union

from chocopy.compiler.ast_nodes import (
    AssignStmt,
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
    NoneLiteral,
    NonLocalDecl,
    Program,
    ReturnStmt,
    Statement,
    StringLiteral,
    TypeAnnotation,
    TypedVar,
    UnaryExpr,
    UnaryOperator,
    VarDef,
    WhileStmt,
)
from chocopy.compiler.tokens import Token, TokenType
from chocopy.utils.diagnostics import DiagnosticCollector, ErrorCode, SourceSpan
from chocopy.utils.errors import ParserError

logger = logging.getLogger(__name__)


# Operator precedence levels (higher = tighter binding)
class Precedence:
    """
    Operator precedence levels.

    Comparisons are non-associative, the conditional expression is
    right-associative and every other binary operator is left-associative.
    """

    NONE = 0
    CONDITIONAL = 1     # a if c else b
    OR = 2              # or
    AND = 3             # and
    NOT = 4             # not (prefix)
    COMPARISON = 5      # == != < > <= >= is
    ADDITIVE = 6        # + -
    MULTIPLICATIVE = 7  # * // %
    UNARY = 8           # - (prefix)
    POSTFIX = 9         # () [] .


# Map token types to binary operators
BINARY_OP_MAP: dict[TokenType, BinaryOperator] = {
    # Arithmetic
    TokenType.PLUS: BinaryOperator.ADD,
    TokenType.MINUS: BinaryOperator.SUB,
    TokenType.STAR: BinaryOperator.MUL,
    TokenType.DOUBLE_SLASH: BinaryOperator.FLOOR_DIV,
    TokenType.PERCENT: BinaryOperator.MOD,
    # Comparison
    TokenType.EQ: BinaryOperator.EQ,
    TokenType.NE: BinaryOperator.NE,
    TokenType.LT: BinaryOperator.LT,
    TokenType.GT: BinaryOperator.GT,
    TokenType.LE: BinaryOperator.LE,
    TokenType.GE: BinaryOperator.GE,
    TokenType.IS: BinaryOperator.IS,
    # Logical
    TokenType.AND: BinaryOperator.AND,
    TokenType.OR: BinaryOperator.OR,
}

# Map token types to their precedence
PRECEDENCE_MAP: dict[TokenType, int] = {
    TokenType.IF: Precedence.CONDITIONAL,
    TokenType.OR: Precedence.OR,
    TokenType.AND: Precedence.AND,
    TokenType.EQ: Precedence.COMPARISON,
    TokenType.NE: Precedence.COMPARISON,
    TokenType.LT: Precedence.COMPARISON,
    TokenType.GT: Precedence.COMPARISON,
    TokenType.LE: Precedence.COMPARISON,
    TokenType.GE: Precedence.COMPARISON,
    TokenType.IS: Precedence.COMPARISON,
    TokenType.PLUS: Precedence.ADDITIVE,
    TokenType.MINUS: Precedence.ADDITIVE,
    TokenType.STAR: Precedence.MULTIPLICATIVE,
    TokenType.DOUBLE_SLASH: Precedence.MULTIPLICATIVE,
    TokenType.PERCENT: Precedence.MULTIPLICATIVE,
    TokenType.LPAREN: Precedence.POSTFIX,
    TokenType.LBRACKET: Precedence.POSTFIX,
    TokenType.DOT: Precedence.POSTFIX,
}

LITERAL_TOKENS = frozenset(
    {
        TokenType.INTEGER,
        TokenType.STRING,
        TokenType.IDSTRING,
        TokenType.TRUE,
        TokenType.FALSE,
        TokenType.NONE,
    }
)

# Deepest syntax tree the parser will build. Later stages walk the tree
# recursively, one Python frame or more per level.
MAX_NESTING_DEPTH = 100

T = TypeVar("T")


def nested(method: Callable[..., T]) -> Callable[..., T]:
    """Run a parse method one level deeper, restoring the depth afterwards."""

    @wraps(method)
    def wrapper(self: "Parser", *args: Any, **kwargs: Any) -> T:
        saved_depth = self._depth
        try:
            self._nest()
            return method(self, *args, **kwargs)
        finally:
            self._depth = saved_depth

    return wrapper


class Parser:
    """
    Recursive descent parser for ChocoPy.

    Parses a list of tokens into an Abstract Syntax Tree.

    Usage:
        parser = Parser(tokens)
        program = parser.parse()
        for diagnostic in program.errors:
            ...
    """

    def __init__(
        self,
        tokens: list[Token],
        filename: str = "<input>",
        diagnostics: Optional[DiagnosticCollector] = None,
    ) -> None:
        """
        Initialize the parser.

        Args:
            tokens: List of tokens from the lexer, ending with EOF
            filename: Filename for error reporting
            diagnostics: Collector shared with the lexer; a new one is
                created when omitted
        """
        self.tokens = tokens
        self.pos = 0
        self._filename = filename
        self._depth = 0
        self.diagnostics = diagnostics if diagnostics is not None else DiagnosticCollector(filename)

    # -------------------------------------------------------------------------
    # Token Navigation
    # -------------------------------------------------------------------------

    @property
    def _current(self) -> Token:
        """Get the current token."""
        if self.pos >= len(self.tokens):
            return self.tokens[-1]  # EOF
        return self.tokens[self.pos]

    @property
    def _previous(self) -> Token:
        """Get the previous token."""
        return self.tokens[self.pos - 1] if self.pos > 0 else self.tokens[0]

    def _peek(self, offset: int = 1) -> Token:
        """Peek at a token ahead of the current position."""
        pos = self.pos + offset
        if pos >= len(self.tokens):
            return self.tokens[-1]
        return self.tokens[pos]

    def _is_at_end(self) -> bool:
        return self._current.type == TokenType.EOF

    def _check(self, *types: TokenType) -> bool:
        """Check if the current token is one of the given types."""
        return self._current.type in types

    def _advance(self) -> Token:
        """Consume and return the current token."""
        token = self._current
        if not self._is_at_end():
            self.pos += 1
        return token

    def _match(self, *types: TokenType) -> bool:
        """Consume current token if it matches one of the given types."""
        if self._check(*types):
            self._advance()
            return True
        return False

    def _expect(self, token_type: TokenType, what: str) -> Token:
        """Consume current token if it matches, else raise a syntax error."""
        if self._check(token_type):
            return self._advance()
        raise self._error(f"Expected {what}, found {self._describe(self._current)}", code=ErrorCode.E0202)

    def _last_significant(self) -> Token:
        """The most recently consumed token that is not layout."""
        index = self.pos - 1
        while index > 0 and self.tokens[index].is_layout:
            index -= 1
        return self.tokens[max(index, 0)]

    def _span_from(self, start: Union[Token, SourceSpan]) -> SourceSpan:
        """Span from the start of start to the end of the last consumed token."""
        start_span = start.span if isinstance(start, Token) else start
        end = self._last_significant().span
        if end.end < start_span.start:
            return start_span
        return start_span.to(end)

    # -------------------------------------------------------------------------
    # Errors and Recovery
    # -------------------------------------------------------------------------

    @staticmethod
    def _describe(token: Token) -> str:
        if token.is_layout:
            return token.lexeme
        return f"`{token.lexeme}`"

    def _error(
        self,
        message: str,
        span: Optional[SourceSpan] = None,
        code: str = ErrorCode.E0201,
    ) -> ParserError:
        """Create a parser error located at span, or at the current token."""
        return ParserError(message, span=span or self._current.span, code=code)

    def _record(self, error: ParserError) -> None:
        self.diagnostics.error(error.code or ErrorCode.E0201, error.message, error.span)

    def _nest(self) -> None:
        """Descend one level into the tree being built."""
        self._depth += 1
        if self._depth > MAX_NESTING_DEPTH:
            raise self._error(
                f"Code is nested too deeply (the limit is {MAX_NESTING_DEPTH} levels)",
                code=ErrorCode.E0209,
            )

    def _synchronize(self) -> None:
        """
        Recover from a parse error by skipping to the next statement.

        Tokens are discarded up to and including the next NEWLINE at the
        current nesting depth, together with any indented block that follows
        it. A DEDENT closing the enclosing block is left for the caller.
        """
        depth = 0
        while not self._is_at_end():
            token = self._current
            if token.type == TokenType.INDENT:
                depth += 1
                self._advance()
            elif token.type == TokenType.DEDENT:
                if depth == 0:
                    return
                depth -= 1
                self._advance()
                if depth == 0:
                    return
            elif token.type == TokenType.NEWLINE:
                self._advance()
                if depth == 0 and not self._check(TokenType.INDENT):
                    return
            else:
                self._advance()

    def _recover(self, error: ParserError, start_pos: int) -> None:
        """Record error and resynchronize, always making progress."""
        self._record(error)
        self._synchronize()
        if self.pos == start_pos and not self._check(TokenType.DEDENT, TokenType.EOF):
            self._advance()

    # -------------------------------------------------------------------------
    # Program
    # -------------------------------------------------------------------------

    def parse(self) -> Program:
        """
        Parse the entire program.

        Returns:
            The root Program node. Its ``errors`` hold every diagnostic
            recorded so far by this compilation, lexical ones included.
        """
        declarations: list[Declaration] = []
        statements: list[Statement] = []
        start_span = self._current.span

        while not self._is_at_end():
            start_pos = self.pos
            try:
                if self._check(TokenType.DEDENT):
                    self._advance()
                    continue
                if self._at_declaration_start():
                    decl = self._parse_declaration(top_level=True)
                    if statements:
                        self.diagnostics.error(
                            ErrorCode.E0205,
                            "Declarations must come before statements",
                            decl.span,
                        )
                    else:
                        declarations.append(decl)
                else:
                    stmt = self._parse_statement()
                    if stmt is not None:
                        statements.append(stmt)
            except ParserError as e:
                self._recover(e, start_pos)

        if self.pos > 0:
            span = self._span_from(start_span)
        else:
            span = SourceSpan(1, 1, 1, 1, self._filename)

        program = Program(declarations, statements, span=span)
        program.errors = self.diagnostics.diagnostics
        logger.debug(
            "Parsed %d declarations and %d statements with %d diagnostics",
            len(declarations),
            len(statements),
            len(program.errors),
        )
        return program

    # -------------------------------------------------------------------------
    # Declaration Parsing
    # -------------------------------------------------------------------------

    def _at_declaration_start(self) -> bool:
        if self._check(TokenType.DEF, TokenType.CLASS):
            return True
        return self._check(TokenType.IDENTIFIER) and self._peek().type == TokenType.COLON

    def _parse_declaration(self, top_level: bool = False) -> Optional[Declaration]:
        """Parse a declaration; a class nested below the top level is dropped."""
        if self._check(TokenType.DEF):
            return self._parse_func_def()
        if self._check(TokenType.CLASS):
            decl = self._parse_class_def()
            if not top_level:
                self.diagnostics.error(
                    ErrorCode.E0205,
                    "Classes can only be defined at the top level",
                    decl.span,
                )
                return None
            return decl
        return self._parse_var_def()

    def _parse_identifier(self, what: str = "an identifier") -> Identifier:
        token = self._expect(TokenType.IDENTIFIER, what)
        return Identifier(token.value, span=token.span)

    def _parse_typed_var(self) -> TypedVar:
        """Parse ``name: type``."""
        identifier = self._parse_identifier()
        self._expect(TokenType.COLON, "`:` after variable name")
        annotation = self._parse_type()
        return TypedVar(identifier, annotation, span=self._span_from(identifier.span))

    @nested
    def _parse_type(self) -> TypeAnnotation:
        """
        Parse a type annotation.

        Handles:
            int, Node        - class names
            "Node"           - class names written as strings
            [int], [[Node]]  - list types
        """
        token = self._current
        if self._match(TokenType.IDENTIFIER, TokenType.IDSTRING):
            return ClassType(token.value, span=token.span)
        if self._match(TokenType.LBRACKET):
            element = self._parse_type()
            self._expect(TokenType.RBRACKET, "`]` to close list type")
            return ListType(element, span=self._span_from(token))
        raise self._error(f"Expected a type annotation, found {self._describe(token)}")

    def _parse_literal(self) -> Expression:
        """Parse the literal initializer of a variable definition."""
        token = self._current
        if token.type in LITERAL_TOKENS:
            return self._parse_primary()
        raise self._error(
            f"Expected a literal value, found {self._describe(token)}",
            code=ErrorCode.E0208,
        )

    def _parse_var_def(self) -> VarDef:
        """Parse ``name: type = literal``."""
        start = self._current
        var = self._parse_typed_var()
        self._expect(TokenType.ASSIGN, "`=` in variable definition")
        value = self._parse_literal()
        node = VarDef(var, value, span=self._span_from(start))
        self._expect_newline()
        return node

    @nested
    def _parse_func_def(self) -> FuncDef:
        """
        Parse a function or method definition.

        The body holds global, nonlocal, variable and nested function
        declarations followed by at least one statement.
        """
        start = self._advance()  # def
        name = self._parse_identifier("a function name")
        self._expect(TokenType.LPAREN, "`(` after function name")

        params: list[TypedVar] = []
        if not self._check(TokenType.RPAREN):
            params.append(self._parse_typed_var())
            while self._match(TokenType.COMMA):
                params.append(self._parse_typed_var())
        rparen = self._expect(TokenType.RPAREN, "`)` after parameters")

        if self._match(TokenType.ARROW):
            return_type = self._parse_type()
        else:
            return_type = ClassType("<None>", span=rparen.span)

        self._expect(TokenType.COLON, "`:` after function signature")
        self._expect(TokenType.NEWLINE, "newline after `:`")
        self._expect(TokenType.INDENT, "an indented function body")

        declarations: list[Declaration] = []
        statements: list[Statement] = []
        saw_statement = False
        errors_before = len(self.diagnostics)

        while not self._check(TokenType.DEDENT, TokenType.EOF):
            start_pos = self.pos
            try:
                if self._check(TokenType.GLOBAL, TokenType.NONLOCAL) or self._at_declaration_start():
                    decl = self._parse_function_declaration()
                    if decl is None:
                        continue
                    if saw_statement:
                        self.diagnostics.error(
                            ErrorCode.E0205,
                            "Declarations must come before statements",
                            decl.span,
                        )
                    else:
                        declarations.append(decl)
                    continue
                saw_statement = True
                stmt = self._parse_statement()
                if stmt is not None:
                    statements.append(stmt)
            except ParserError as e:
                self._recover(e, start_pos)
        self._match(TokenType.DEDENT)

        recovered = len(self.diagnostics) > errors_before
        if not saw_statement and not recovered:
            self.diagnostics.error(
                ErrorCode.E0206,
                f"Function `{name.name}` must contain at least one statement",
                name.span,
            )

        return FuncDef(
            name,
            params,
            return_type,
            declarations,
            statements,
            span=self._span_from(start),
            recovered=recovered,
        )

    def _parse_function_declaration(self) -> Optional[Declaration]:
        if self._check(TokenType.GLOBAL, TokenType.NONLOCAL):
            start = self._advance()
            variable = self._parse_identifier()
            span = self._span_from(start)
            self._expect_newline()
            if start.type == TokenType.GLOBAL:
                return GlobalDecl(variable, span=span)
            return NonLocalDecl(variable, span=span)
        return self._parse_declaration()

    def _parse_class_def(self) -> ClassDef:
        """Parse ``class Name(Super):`` and its attribute and method definitions."""
        start = self._advance()  # class
        name = self._parse_identifier("a class name")
        self._expect(TokenType.LPAREN, "`(` after class name")
        super_class = self._parse_identifier("a super-class name")
        self._expect(TokenType.RPAREN, "`)` after super-class")
        self._expect(TokenType.COLON, "`:` after class header")
        self._expect(TokenType.NEWLINE, "newline after `:`")
        self._expect(TokenType.INDENT, "an indented class body")

        declarations: list[Declaration] = []
        while not self._check(TokenType.DEDENT, TokenType.EOF):
            start_pos = self.pos
            try:
                if self._match(TokenType.PASS):
                    self._expect_newline()
                elif self._at_declaration_start():
                    decl = self._parse_declaration()
                    if decl is not None:
                        declarations.append(decl)
                else:
                    raise self._error(
                        "Only attribute and method definitions are allowed in a class body",
                        code=ErrorCode.E0205,
                    )
            except ParserError as e:
                self._recover(e, start_pos)
        self._match(TokenType.DEDENT)

        return ClassDef(name, super_class, declarations, span=self._span_from(start))

    # -------------------------------------------------------------------------
    # Statement Parsing
    # -------------------------------------------------------------------------

    def _expect_newline(self) -> None:
        if not self._match(TokenType.NEWLINE) and not self._is_at_end():
            raise self._error(f"Expected end of line, found {self._describe(self._current)}")

    def _parse_statement(self) -> Optional[Statement]:
        """Parse one statement; ``pass`` yields None."""
        if self._check(TokenType.INDENT):
            raise self._error("Unexpected indent", code=ErrorCode.E0207)
        if self._check(TokenType.IF):
            return self._parse_if()
        if self._check(TokenType.WHILE):
            return self._parse_while()
        if self._check(TokenType.FOR):
            return self._parse_for()
        if self._at_declaration_start():
            raise self._error(
                "Declarations are not allowed here",
                code=ErrorCode.E0205,
            )

        stmt = self._parse_simple_statement()
        self._expect_newline()
        return stmt

    def _parse_simple_statement(self) -> Optional[Statement]:
        start = self._current

        if self._match(TokenType.PASS):
            return None

        if self._match(TokenType.RETURN):
            value = None
            if not self._check(TokenType.NEWLINE, TokenType.EOF):
                value = self._parse_expression()
            return ReturnStmt(value, span=self._span_from(start))

        expr = self._parse_expression()
        if not self._check(TokenType.ASSIGN):
            return ExprStmt(expr, span=self._span_from(start))

        chain = [expr]
        while self._match(TokenType.ASSIGN):
            chain.append(self._parse_expression())
        targets, value = chain[:-1], chain[-1]
        for target in targets:
            if not isinstance(target, (Identifier, MemberExpr, IndexExpr)):
                raise self._error(
                    "Invalid assignment target: only names, attributes and list elements can be assigned",
                    span=target.span,
                    code=ErrorCode.E0204,
                )
        return AssignStmt(targets, value, span=self._span_from(start))

    @nested
    def _parse_block(self) -> list[Statement]:
        """Parse ``NEWLINE INDENT stmt+ DEDENT`` after a compound header."""
        self._expect(TokenType.NEWLINE, "newline after `:`")
        self._expect(TokenType.INDENT, "an indented block")

        statements: list[Statement] = []
        while not self._check(TokenType.DEDENT, TokenType.EOF):
            start_pos = self.pos
            try:
                stmt = self._parse_statement()
                if stmt is not None:
                    statements.append(stmt)
            except ParserError as e:
                self._recover(e, start_pos)
        self._match(TokenType.DEDENT)
        return statements

    def _parse_if(self) -> IfStmt:
        """Parse an if statement; ``elif`` becomes a nested IfStmt."""
        start = self._advance()  # if / elif
        condition = self._parse_expression()
        self._expect(TokenType.COLON, "`:` after condition")
        then_body = self._parse_block()

        else_body: list[Statement] = []
        if self._check(TokenType.ELIF):
            else_body = [self._parse_if()]
        elif self._match(TokenType.ELSE):
            self._expect(TokenType.COLON, "`:` after `else`")
            else_body = self._parse_block()

        return IfStmt(condition, then_body, else_body, span=self._span_from(start))

    def _parse_while(self) -> WhileStmt:
        start = self._advance()
        condition = self._parse_expression()
        self._expect(TokenType.COLON, "`:` after condition")
        body = self._parse_block()
        return WhileStmt(condition, body, span=self._span_from(start))

    def _parse_for(self) -> ForStmt:
        start = self._advance()
        identifier = self._parse_identifier("a loop variable")
        self._expect(TokenType.IN, "`in` after loop variable")
        iterable = self._parse_expression()
        self._expect(TokenType.COLON, "`:` after for clause")
        body = self._parse_block()
        return ForStmt(identifier, iterable, body, span=self._span_from(start))

    # -------------------------------------------------------------------------
    # Expression Parsing
    # -------------------------------------------------------------------------

    @nested
    def _parse_expression(self, min_precedence: int = Precedence.NONE) -> Expression:
        """
        Parse an expression using precedence climbing.

        Only operators binding tighter than min_precedence are consumed.
        """
        start_span = self._current.span
        left = self._parse_prefix(min_precedence)

        while True:
            token = self._current
            precedence = PRECEDENCE_MAP.get(token.type, Precedence.NONE)
            if precedence <= min_precedence:
                break

            # Each operator wraps left in one more node
            self._nest()
            if precedence == Precedence.POSTFIX:
                left = self._parse_postfix(left, start_span)
            elif token.type == TokenType.IF:
                # Right-associative: the else branch may itself be conditional
                self._advance()
                condition = self._parse_expression(Precedence.CONDITIONAL)
                self._expect(TokenType.ELSE, "`else` in conditional expression")
                else_expr = self._parse_expression(Precedence.NONE)
                left = IfExpr(condition, left, else_expr, span=self._span_from(start_span))
            else:
                self._advance()
                right = self._parse_expression(precedence)
                left = BinaryExpr(
                    left,
                    BINARY_OP_MAP[token.type],
                    right,
                    span=self._span_from(start_span),
                )
                if precedence == Precedence.COMPARISON and PRECEDENCE_MAP.get(
                    self._current.type
                ) == Precedence.COMPARISON:
                    raise self._error(
                        "Comparison operators cannot be chained",
                        code=ErrorCode.E0203,
                    )

        return left

    def _parse_prefix(self, min_precedence: int) -> Expression:
        """Parse a prefix expression (unary operators or a primary)."""
        start = self._current

        if self._match(TokenType.MINUS):
            operand = self._parse_expression(Precedence.MULTIPLICATIVE)
            return UnaryExpr(UnaryOperator.NEG, operand, span=self._span_from(start))

        if self._check(TokenType.NOT):
            if min_precedence >= Precedence.NOT:
                raise self._error(
                    "`not` must be parenthesized here",
                    code=ErrorCode.E0203,
                )
            self._advance()
            operand = self._parse_expression(Precedence.NOT)
            return UnaryExpr(UnaryOperator.NOT, operand, span=self._span_from(start))

        return self._parse_primary()

    def _parse_postfix(self, left: Expression, start_span: SourceSpan) -> Expression:
        """Parse a member access, index or call applied to left."""
        if self._match(TokenType.DOT):
            member = self._parse_identifier("an attribute name after `.`")
            member_expr = MemberExpr(left, member, span=self._span_from(start_span))
            if self._match(TokenType.LPAREN):
                args = self._parse_arguments()
                return MethodCallExpr(member_expr, args, span=self._span_from(start_span))
            return member_expr

        if self._match(TokenType.LBRACKET):
            index = self._parse_expression()
            self._expect(TokenType.RBRACKET, "`]` after index")
            return IndexExpr(left, index, span=self._span_from(start_span))

        # Call
        lparen = self._advance()
        if not isinstance(left, Identifier):
            raise self._error(
                "Only functions, classes and methods can be called",
                span=lparen.span,
                code=ErrorCode.E0203,
            )
        args = self._parse_arguments()
        return CallExpr(left, args, span=self._span_from(start_span))

    def _parse_arguments(self) -> list[Expression]:
        """Parse a comma-separated argument list after `(`, consuming `)`."""
        args = self._parse_expression_list(TokenType.RPAREN)
        self._expect(TokenType.RPAREN, "`)` after arguments")
        return args

    def _parse_expression_list(self, end_token: TokenType) -> list[Expression]:
        """Parse a comma-separated list of expressions."""
        elements: list[Expression] = []

        if not self._check(end_token):
            elements.append(self._parse_expression())
            while self._match(TokenType.COMMA):
                elements.append(self._parse_expression())

        return elements

    def _parse_primary(self) -> Expression:
        """Parse literals, names, parenthesized expressions and list displays."""
        token = self._current

        if self._match(TokenType.IDENTIFIER):
            return Identifier(token.value, span=token.span)
        if self._match(TokenType.INTEGER):
            return IntegerLiteral(token.value, span=token.span)
        if self._match(TokenType.STRING, TokenType.IDSTRING):
            return StringLiteral(token.value, span=token.span)
        if self._match(TokenType.TRUE):
            return BooleanLiteral(True, span=token.span)
        if self._match(TokenType.FALSE):
            return BooleanLiteral(False, span=token.span)
        if self._match(TokenType.NONE):
            return NoneLiteral(span=token.span)

        if self._match(TokenType.LPAREN):
            expr = self._parse_expression()
            self._expect(TokenType.RPAREN, "`)` to close parenthesized expression")
            return expr

        if self._match(TokenType.LBRACKET):
            elements = self._parse_expression_list(TokenType.RBRACKET)
            self._expect(TokenType.RBRACKET, "`]` to close list")
            return ListExpr(elements, span=self._span_from(token))

        if token.is_keyword:
            raise self._error(f"Unexpected keyword `{token.value}`", code=ErrorCode.E0203)
        raise self._error(
            f"Expected an expression, found {self._describe(token)}",
            code=ErrorCode.E0203,
        )


def parse(tokens: list[Token], filename: str = "<input>") -> Program:
    """
    Convenience function to parse tokens into an AST.

    Args:
        tokens: List of tokens from the lexer

    Returns:
        The root Program node
    """
    return Parser(tokens, filename).parse()
