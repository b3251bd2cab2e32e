from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterator, List, Optional


class TokenType(enum.Enum):
    NUMBER = "number"
    STRING = "string"
    IDENTIFIER = "identifier"
    INCLUDE = "include"

    # keywords
    IF = "if"
    ELSE = "else"
    WHILE = "while"
    FOR = "for"
    IN = "in"
    FUNCTION = "function"
    VOID = "void"
    RETURN = "return"
    BREAK = "break"
    CONTINUE = "continue"
    CONST = "const"
    NAMESPACE = "namespace"
    ENUM = "enum"
    CLASS = "class"
    STRUCT = "struct"
    TRUE = "true"
    FALSE = "false"
    NULL = "null"
    MATCH = "match"
    CASE = "case"
    DEFAULT = "default"
    TRY = "try"
    CATCH = "catch"
    FINALLY = "finally"
    HELP = "help"

    # operators
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    MOD = "%"
    EQ = "=="
    NEQ = "!="
    LT = "<"
    GT = ">"
    LTE = "<="
    GTE = ">="
    AND = "&&"
    OR = "||"
    NOT = "!"
    ASSIGN = "="
    PLUS_ASSIGN = "+="
    MINUS_ASSIGN = "-="
    MUL_ASSIGN = "*="
    DIV_ASSIGN = "/="
    MOD_ASSIGN = "%="
    INC = "++"
    DEC = "--"
    ARROW = "=>"
    INSERT = "&insert"

    # punctuation
    LPAREN = "("
    RPAREN = ")"
    LBRACE = "{"
    RBRACE = "}"
    LBRACKET = "["
    RBRACKET = "]"
    COMMA = ","
    SEMICOLON = ";"
    COLON = ":"

    ERROR = "<error>"
    EOF = "<eof>"


KEYWORDS = {
    "if": TokenType.IF,
    "else": TokenType.ELSE,
    "while": TokenType.WHILE,
    "for": TokenType.FOR,
    "in": TokenType.IN,
    "function": TokenType.FUNCTION,
    "void": TokenType.VOID,
    "return": TokenType.RETURN,
    "break": TokenType.BREAK,
    "continue": TokenType.CONTINUE,
    "const": TokenType.CONST,
    "namespace": TokenType.NAMESPACE,
    "enum": TokenType.ENUM,
    "class": TokenType.CLASS,
    "struct": TokenType.STRUCT,
    "true": TokenType.TRUE,
    "false": TokenType.FALSE,
    "null": TokenType.NULL,
    "match": TokenType.MATCH,
    "case": TokenType.CASE,
    "default": TokenType.DEFAULT,
    "try": TokenType.TRY,
    "catch": TokenType.CATCH,
    "finally": TokenType.FINALLY,
    "help": TokenType.HELP,
    # word spellings of the arithmetic operators
    "add": TokenType.ADD,
    "sub": TokenType.SUB,
    "mul": TokenType.MUL,
    "div": TokenType.DIV,
    "mod": TokenType.MOD,
}

# Longest operators first so "==" wins over "=".
_OPERATORS = sorted(
    (
        TokenType.EQ,
        TokenType.NEQ,
        TokenType.LTE,
        TokenType.GTE,
        TokenType.AND,
        TokenType.OR,
        TokenType.PLUS_ASSIGN,
        TokenType.MINUS_ASSIGN,
        TokenType.MUL_ASSIGN,
        TokenType.DIV_ASSIGN,
        TokenType.MOD_ASSIGN,
        TokenType.INC,
        TokenType.DEC,
        TokenType.ARROW,
        TokenType.ADD,
        TokenType.SUB,
        TokenType.MUL,
        TokenType.DIV,
        TokenType.MOD,
        TokenType.LT,
        TokenType.GT,
        TokenType.NOT,
        TokenType.ASSIGN,
        TokenType.LPAREN,
        TokenType.RPAREN,
        TokenType.LBRACE,
        TokenType.RBRACE,
        TokenType.LBRACKET,
        TokenType.RBRACKET,
        TokenType.COMMA,
        TokenType.SEMICOLON,
        TokenType.COLON,
    ),
    key=lambda t: -len(t.value),
)

_ESCAPES = {"n": "\n", "t": "\t", '"': '"', "\\": "\\"}


@dataclass(frozen=True)
class Token:
    type: TokenType
    value: Optional[str]
    line: int
    column: int

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"


class Lexer:
    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.line = 1
        self.column = 1

    def _peek(self, offset: int = 0) -> str:
        index = self.pos + offset
        if index >= len(self.source):
            return ""
        return self.source[index]

    def _advance(self) -> str:
        ch = self._peek()
        if not ch:
            return ""
        self.pos += 1
        if ch == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return ch

    def _skip_trivia(self) -> None:
        while True:
            ch = self._peek()
            if ch and ch.isspace():
                self._advance()
                continue
            if ch == "#" and not self.source.startswith("#include", self.pos):
                while self._peek() not in ("\n", ""):
                    self._advance()
                continue
            return

    def _read_number(self) -> Token:
        line, column, start = self.line, self.column, self.pos
        while self._peek().isdigit() or self._peek() == ".":
            self._advance()
        return Token(TokenType.NUMBER, self.source[start : self.pos], line, column)

    def _read_string(self) -> Token:
        line, column = self.line, self.column
        self._advance()  # opening quote
        chars: List[str] = []
        while self._peek() not in ('"', ""):
            ch = self._advance()
            if ch == "\\" and self._peek() in _ESCAPES:
                chars.append(_ESCAPES[self._advance()])
            else:
                chars.append(ch)
        if self._peek() == '"':
            self._advance()
        return Token(TokenType.STRING, "".join(chars), line, column)

    def _read_identifier(self) -> Token:
        line, column, start = self.line, self.column, self.pos
        while self._peek() and (self._peek().isalnum() or self._peek() in "_."):
            self._advance()
        text = self.source[start : self.pos]
        return Token(KEYWORDS.get(text, TokenType.IDENTIFIER), text, line, column)

    def _read_include(self) -> Token:
        line, column = self.line, self.column
        for _ in "#include":
            self._advance()
        while self._peek() in (" ", "\t"):
            self._advance()
        if self._peek() != '"':
            while self._peek() not in ("\n", ""):
                self._advance()
            return Token(TokenType.ERROR, "#include", line, column)
        path = self._read_string()
        return Token(TokenType.INCLUDE, path.value, line, column)

    def next_token(self) -> Token:
        self._skip_trivia()
        ch = self._peek()
        if not ch:
            return Token(TokenType.EOF, None, self.line, self.column)
        if ch.isdigit():
            return self._read_number()
        if ch == '"':
            return self._read_string()
        if ch.isalpha() or ch == "_":
            return self._read_identifier()
        if ch == "#":
            return self._read_include()

        line, column = self.line, self.column
        if self.source.startswith("&insert", self.pos):
            for _ in "&insert":
                self._advance()
            return Token(TokenType.INSERT, "&insert", line, column)
        for token_type in _OPERATORS:
            if self.source.startswith(token_type.value, self.pos):
                for _ in token_type.value:
                    self._advance()
                return Token(token_type, token_type.value, line, column)

        self._advance()
        return Token(TokenType.ERROR, ch, line, column)

    def __iter__(self) -> Iterator[Token]:
        while True:
            token = self.next_token()
            yield token
            if token.type is TokenType.EOF:
                return


def tokenize(source: str) -> List[Token]:
    """Return every token of `source`, ending with a single EOF token."""
    return list(Lexer(source))
