"""
Recursive-descent parser for SharpScript.

The parser never raises on malformed input: every problem is recorded as a
`ParseError`, logged, and replaced by a `NullLiteral` so that partially
valid programs (and REPL lines) still evaluate.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from . import nodes as n
from .lexer import Token, TokenType, tokenize

logger = logging.getLogger(__name__)

IncludeLoader = Callable[[str], Optional[Sequence[n.Node]]]


class IncludeError(Exception):
    """Raised by an include loader when a file cannot be included."""


_COMPOUND_ASSIGN = {
    TokenType.ASSIGN: n.AssignOp.SET,
    TokenType.PLUS_ASSIGN: n.AssignOp.ADD,
    TokenType.MINUS_ASSIGN: n.AssignOp.SUB,
    TokenType.MUL_ASSIGN: n.AssignOp.MUL,
    TokenType.DIV_ASSIGN: n.AssignOp.DIV,
    TokenType.MOD_ASSIGN: n.AssignOp.MOD,
}

# `add x = 5` is `x += 5`
_KEYWORD_ASSIGN = {
    TokenType.ADD: n.AssignOp.ADD,
    TokenType.SUB: n.AssignOp.SUB,
    TokenType.MUL: n.AssignOp.MUL,
    TokenType.DIV: n.AssignOp.DIV,
    TokenType.MOD: n.AssignOp.MOD,
}

# Binary precedence levels, loosest first.
_BINARY_LEVELS = (
    (TokenType.OR,),
    (TokenType.AND,),
    (TokenType.EQ, TokenType.NEQ),
    (TokenType.LT, TokenType.GT, TokenType.LTE, TokenType.GTE),
    (TokenType.ADD, TokenType.SUB),
    (TokenType.MUL, TokenType.DIV, TokenType.MOD),
)

_NAME_TOKENS = (TokenType.IDENTIFIER, TokenType.HELP)


@dataclass(frozen=True)
class ParseError:
    message: str
    line: int
    column: int

    def __str__(self) -> str:
        return f"Parse error at line {self.line}, column {self.column}: {self.message}"


class Parser:
    def __init__(self, tokens: Sequence[Token], include_loader: IncludeLoader | None = None):
        self.tokens = list(tokens)
        if not self.tokens or self.tokens[-1].type is not TokenType.EOF:
            last = self.tokens[-1] if self.tokens else None
            self.tokens.append(
                Token(TokenType.EOF, None, last.line if last else 1, last.column if last else 1)
            )
        self.pos = 0
        self.include_loader = include_loader
        self.errors: List[ParseError] = []

    # ----- token helpers -----

    @property
    def current(self) -> Token:
        return self.tokens[self.pos]

    def _peek(self, offset: int = 1) -> Token:
        index = min(self.pos + offset, len(self.tokens) - 1)
        return self.tokens[index]

    def _check(self, *types: TokenType) -> bool:
        return self.current.type in types

    def _advance(self) -> Token:
        token = self.current
        if token.type is not TokenType.EOF:
            self.pos += 1
        return token

    def _accept(self, token_type: TokenType) -> bool:
        if self._check(token_type):
            self._advance()
            return True
        return False

    def _expect(self, token_type: TokenType) -> bool:
        if self._accept(token_type):
            return True
        self._error(f"expected '{token_type.value}', found {self._describe(self.current)}")
        return False

    def _describe(self, token: Token) -> str:
        if token.type is TokenType.EOF:
            return "end of input"
        return f"'{token.value}'"

    def _error(self, message: str, token: Token | None = None) -> n.NullLiteral:
        token = token or self.current
        error = ParseError(message, token.line, token.column)
        self.errors.append(error)
        logger.warning("%s", error)
        return n.NullLiteral()

    def _expect_name(self, what: str) -> Optional[str]:
        if self._check(*_NAME_TOKENS):
            return self._advance().value
        self._error(f"expected {what}, found {self._describe(self.current)}")
        return None

    # ----- entry point -----

    def parse_program(self) -> n.Program:
        statements: List[n.Node] = []
        while not self._check(TokenType.EOF):
            statements.extend(self._parse_statement_or_include())
            self._accept(TokenType.SEMICOLON)
        return n.Program(tuple(statements))

    def _parse_statement_or_include(self) -> List[n.Node]:
        if self._check(TokenType.INCLUDE):
            token = self._advance()
            if self.include_loader is None:
                self._error(f"cannot include {token.value!r}: no include loader", token)
                return []
            try:
                included = self.include_loader(token.value)
            except IncludeError as exc:
                self._error(str(exc), token)
                return []
            return list(included or ())
        return [self.parse_statement()]

    # ----- statements -----

    def parse_statement(self) -> n.Node:
        token = self.current
        tt = token.type

        if tt is TokenType.SEMICOLON:
            self._advance()
            return n.NullLiteral()
        if tt is TokenType.ERROR:
            self._advance()
            return self._error(f"unexpected character {token.value!r}", token)
        if tt is TokenType.LBRACE:
            return self._parse_block()
        if tt is TokenType.NAMESPACE:
            return self._parse_namespace()
        if tt is TokenType.ENUM:
            return self._parse_enum()
        if tt in (TokenType.CLASS, TokenType.STRUCT):
            return self._parse_class()
        if tt in (TokenType.CONST, TokenType.INSERT):
            return self._parse_declaration()
        if tt is TokenType.IF:
            return self._parse_if()
        if tt is TokenType.WHILE:
            return self._parse_while()
        if tt is TokenType.FOR:
            return self._parse_for()
        if tt is TokenType.FUNCTION and self._peek().type in _NAME_TOKENS:
            return self._parse_function()
        if tt is TokenType.RETURN:
            return self._parse_return()
        if tt is TokenType.BREAK:
            self._advance()
            return n.Break()
        if tt is TokenType.CONTINUE:
            self._advance()
            return n.Continue()
        if tt is TokenType.MATCH:
            return self._parse_match()
        if tt is TokenType.TRY:
            return self._parse_try()
        if tt in _KEYWORD_ASSIGN and self._peek().type is TokenType.IDENTIFIER:
            self._advance()
            name = self._advance().value
            self._expect(TokenType.ASSIGN)
            return n.Assign(name, self.parse_expression(), _KEYWORD_ASSIGN[tt])
        if tt is TokenType.IDENTIFIER:
            simple = self._try_parse_simple_assignment()
            if simple is not None:
                return simple
        return self.parse_expression()

    def _try_parse_simple_assignment(self) -> Optional[n.Node]:
        """`x = e`, `x op= e`, `x++`, `x--`, `x[i] = e`; None if not an assignment."""
        nxt = self._peek().type
        if nxt in _COMPOUND_ASSIGN:
            name = self._advance().value
            op = _COMPOUND_ASSIGN[self._advance().type]
            return n.Assign(name, self.parse_expression(), op)
        if nxt in (TokenType.INC, TokenType.DEC):
            name = self._advance().value
            op = n.AssignOp.ADD if self._advance().type is TokenType.INC else n.AssignOp.SUB
            return n.Assign(name, n.NumberLiteral(1.0), op)
        if nxt is TokenType.LBRACKET:
            start = self.pos
            error_count = len(self.errors)
            name = self._advance().value
            indices: List[n.Node] = []
            while self._accept(TokenType.LBRACKET):
                indices.append(self.parse_expression())
                self._expect(TokenType.RBRACKET)
            if self._check(*_COMPOUND_ASSIGN):
                op = _COMPOUND_ASSIGN[self._advance().type]
                return n.IndexAssign(name, tuple(indices), self.parse_expression(), op)
            # plain index expression; rewind and let the expression parser have it
            del self.errors[error_count:]
            self.pos = start
        return None

    def _parse_simple_statement(self) -> Optional[n.Node]:
        if self._check(TokenType.SEMICOLON, TokenType.RPAREN):
            return None
        if self._check(TokenType.CONST, TokenType.INSERT):
            return self._parse_declaration()
        if self._check(TokenType.IDENTIFIER):
            simple = self._try_parse_simple_assignment()
            if simple is not None:
                return simple
        return self.parse_expression()

    def _parse_declaration(self) -> n.Node:
        op = n.AssignOp.CONST if self._advance().type is TokenType.CONST else n.AssignOp.INSERT
        name = self._expect_name("identifier after declaration keyword")
        if name is None:
            return n.NullLiteral()
        type_name = None
        if self._accept(TokenType.COLON):
            if self._check(TokenType.NULL, TokenType.FUNCTION, TokenType.CLASS, *_NAME_TOKENS):
                type_name = self._advance().value
            else:
                self._error("expected type name after ':'")
        if not self._expect(TokenType.ASSIGN):
            return n.NullLiteral()
        return n.Assign(name, self.parse_expression(), op, type_name)

    def _parse_block(self) -> n.Block:
        if not self._expect(TokenType.LBRACE):
            return n.Block()
        statements: List[n.Node] = []
        while not self._check(TokenType.RBRACE, TokenType.EOF):
            statements.extend(self._parse_statement_or_include())
            self._accept(TokenType.SEMICOLON)
        self._expect(TokenType.RBRACE)
        return n.Block(tuple(statements))

    def _parse_condition(self) -> n.Node:
        self._expect(TokenType.LPAREN)
        condition = self.parse_expression()
        self._expect(TokenType.RPAREN)
        self._accept(TokenType.ARROW)
        return condition

    def _parse_if(self) -> n.If:
        self._advance()
        condition = self._parse_condition()
        then_block = self._parse_block()
        else_block: Optional[n.Node] = None
        if self._accept(TokenType.ELSE):
            self._accept(TokenType.ARROW)
            if self._check(TokenType.IF):
                else_block = self._parse_if()
            else:
                else_block = self._parse_block()
        return n.If(condition, then_block, else_block)

    def _parse_while(self) -> n.While:
        self._advance()
        condition = self._parse_condition()
        return n.While(condition, self._parse_block())

    def _parse_for(self) -> n.Node:
        self._advance()
        self._expect(TokenType.LPAREN)
        if self._check(TokenType.IDENTIFIER) and self._peek().type is TokenType.IN:
            var = self._advance().value
            self._advance()
            collection = self.parse_expression()
            self._expect(TokenType.RPAREN)
            self._accept(TokenType.ARROW)
            return n.ForIn(var, collection, self._parse_block())

        init = self._parse_simple_statement()
        self._expect(TokenType.SEMICOLON)
        condition = None if self._check(TokenType.SEMICOLON) else self.parse_expression()
        self._expect(TokenType.SEMICOLON)
        increment = self._parse_simple_statement()
        self._expect(TokenType.RPAREN)
        self._accept(TokenType.ARROW)
        return n.For(init, condition, increment, self._parse_block())

    def _parse_params(self) -> tuple:
        self._expect(TokenType.LPAREN)
        params: List[n.Param] = []
        if self._accept(TokenType.VOID):
            self._expect(TokenType.RPAREN)
            self._accept(TokenType.ARROW)
            return ()
        while self._check(*_NAME_TOKENS):
            name = self._advance().value
            default = self.parse_expression() if self._accept(TokenType.ASSIGN) else None
            params.append(n.Param(name, default))
            if not self._accept(TokenType.COMMA):
                break
        self._expect(TokenType.RPAREN)
        self._accept(TokenType.ARROW)
        return tuple(params)

    def _parse_function(self) -> n.FunctionDecl:
        self._advance()
        name = self._advance().value
        params = self._parse_params()
        return n.FunctionDecl(name, params, self._parse_block())

    def _parse_return(self) -> n.Return:
        self._advance()
        if self._check(TokenType.RBRACE, TokenType.EOF, TokenType.SEMICOLON):
            return n.Return()
        return n.Return(self.parse_expression())

    def _parse_namespace(self) -> n.Node:
        self._advance()
        name = self._expect_name("namespace name")
        if name is None:
            return n.NullLiteral()
        return n.Namespace(name, self._parse_block())

    def _parse_enum(self) -> n.Node:
        self._advance()
        name = self._expect_name("enum name")
        if name is None:
            return n.NullLiteral()
        self._expect(TokenType.LBRACE)
        members: List[n.EnumMember] = []
        while not self._check(TokenType.RBRACE, TokenType.EOF):
            member = self._expect_name("enum member")
            if member is None:
                break
            value = self.parse_expression() if self._accept(TokenType.ASSIGN) else None
            members.append(n.EnumMember(member, value))
            self._accept(TokenType.COMMA)
        self._expect(TokenType.RBRACE)
        return n.EnumDecl(name, tuple(members))

    def _parse_class(self) -> n.Node:
        self._advance()
        name = self._expect_name("class name")
        if name is None:
            return n.NullLiteral()
        base = None
        if self._accept(TokenType.COLON):
            base = self._expect_name("base class name")
        return n.ClassDecl(name, base, self._parse_block())

    def _parse_case_body(self) -> n.Node:
        if self._check(TokenType.LBRACE):
            body = self._parse_block()
            self._accept(TokenType.SEMICOLON)
            return body
        statements: List[n.Node] = []
        while not self._check(TokenType.CASE, TokenType.DEFAULT, TokenType.RBRACE, TokenType.EOF):
            statements.append(self.parse_statement())
            self._accept(TokenType.SEMICOLON)
        return n.Block(tuple(statements))

    def _parse_match(self) -> n.Match:
        self._advance()
        self._expect(TokenType.LPAREN)
        subject = self.parse_expression()
        self._expect(TokenType.RPAREN)
        self._expect(TokenType.LBRACE)
        cases: List[n.MatchCase] = []
        default: Optional[n.Node] = None
        while not self._check(TokenType.RBRACE, TokenType.EOF):
            if self._accept(TokenType.CASE):
                pattern = self.parse_expression()
                self._expect(TokenType.COLON)
                cases.append(n.MatchCase(pattern, self._parse_case_body()))
            elif self._accept(TokenType.DEFAULT):
                self._expect(TokenType.COLON)
                default = self._parse_case_body()
            else:
                self._error(f"expected 'case' or 'default', found {self._describe(self.current)}")
                self._advance()
        self._expect(TokenType.RBRACE)
        return n.Match(subject, tuple(cases), default)

    def _parse_try(self) -> n.TryCatch:
        self._advance()
        try_block = self._parse_block()
        error_var = None
        catch_block = None
        finally_block = None
        if self._accept(TokenType.CATCH):
            if self._accept(TokenType.LPAREN):
                if not self._check(TokenType.RPAREN):
                    error_var = self._expect_name("catch variable")
                self._expect(TokenType.RPAREN)
            catch_block = self._parse_block()
        if self._accept(TokenType.FINALLY):
            finally_block = self._parse_block()
        if catch_block is None and finally_block is None:
            self._error("expected 'catch' or 'finally' after try block")
        return n.TryCatch(try_block, error_var, catch_block, finally_block)

    # ----- expressions -----

    def parse_expression(self) -> n.Node:
        return self._parse_binary(0)

    def _parse_binary(self, level: int) -> n.Node:
        if level >= len(_BINARY_LEVELS):
            return self._parse_unary()
        left = self._parse_binary(level + 1)
        while self._check(*_BINARY_LEVELS[level]):
            op = self._advance().type.value
            left = n.BinaryOp(op, left, self._parse_binary(level + 1))
        return left

    def _parse_unary(self) -> n.Node:
        if self._check(TokenType.NOT, TokenType.SUB):
            op = self._advance().type.value
            return n.UnaryOp(op, self._parse_unary())
        return self._parse_postfix()

    def _parse_postfix(self) -> n.Node:
        node = self._parse_primary()
        while self._accept(TokenType.LBRACKET):
            index = self.parse_expression()
            self._expect(TokenType.RBRACKET)
            node = n.Index(node, index)
        return node

    def _parse_args(self) -> tuple:
        self._expect(TokenType.LPAREN)
        args: List[n.Node] = []
        while not self._check(TokenType.RPAREN, TokenType.EOF):
            args.append(self.parse_expression())
            if not self._accept(TokenType.COMMA):
                break
        self._expect(TokenType.RPAREN)
        return tuple(args)

    def _parse_primary(self) -> n.Node:
        token = self.current
        tt = token.type

        if tt is TokenType.NUMBER:
            self._advance()
            try:
                return n.NumberLiteral(float(token.value))
            except ValueError:
                return self._error(f"malformed number {token.value!r}", token)
        if tt is TokenType.STRING:
            self._advance()
            return n.StringLiteral(token.value)
        if tt in (TokenType.TRUE, TokenType.FALSE):
            self._advance()
            return n.BooleanLiteral(tt is TokenType.TRUE)
        if tt is TokenType.NULL:
            self._advance()
            return n.NullLiteral()
        if tt is TokenType.LBRACKET:
            self._advance()
            elements: List[n.Node] = []
            while not self._check(TokenType.RBRACKET, TokenType.EOF):
                elements.append(self.parse_expression())
                if not self._accept(TokenType.COMMA):
                    break
            self._expect(TokenType.RBRACKET)
            return n.ArrayLiteral(tuple(elements))
        if tt is TokenType.LBRACE:
            return self._parse_map()
        if tt is TokenType.FUNCTION:
            self._advance()
            params = self._parse_params()
            return n.Lambda(params, self._parse_block())
        if tt in _NAME_TOKENS:
            self._advance()
            name = token.value
            if tt is TokenType.HELP and not self._check(TokenType.LPAREN):
                return n.Identifier(name)
            if tt is TokenType.HELP:
                name = "system.help"
            if self._check(TokenType.LPAREN):
                return n.Call(name, self._parse_args())
            return n.Identifier(name)
        if tt is TokenType.LPAREN:
            self._advance()
            expr = self.parse_expression()
            self._expect(TokenType.RPAREN)
            return expr

        self._advance()
        return self._error(f"unexpected token {self._describe(token)}", token)

    def _parse_map(self) -> n.MapLiteral:
        self._advance()
        keys: List[n.Node] = []
        values: List[n.Node] = []
        while not self._check(TokenType.RBRACE, TokenType.EOF):
            if self._check(TokenType.IDENTIFIER) and self._peek().type is TokenType.COLON:
                keys.append(n.StringLiteral(self._advance().value))
            else:
                keys.append(self.parse_expression())
            self._expect(TokenType.COLON)
            values.append(self.parse_expression())
            if not self._accept(TokenType.COMMA):
                break
        self._expect(TokenType.RBRACE)
        return n.MapLiteral(tuple(keys), tuple(values))


def parse(
    source: str, include_loader: IncludeLoader | None = None
) -> tuple[n.Program, List[ParseError]]:
    """Parse `source` into a Program; returns the tree and the recorded errors."""
    parser = Parser(tokenize(source), include_loader=include_loader)
    program = parser.parse_program()
    return program, parser.errors
