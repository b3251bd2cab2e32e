from __future__ import annotations

from sharpscript import TokenType, tokenize


def _types(source: str) -> list[TokenType]:
    return [token.type for token in tokenize(source)]


def test_declaration_tokens():
    tokens = tokenize('&insert total: number = 2.5; # trailing comment')
    assert [(t.type, t.value) for t in tokens] == [
        (TokenType.INSERT, "&insert"),
        (TokenType.IDENTIFIER, "total"),
        (TokenType.COLON, ":"),
        (TokenType.IDENTIFIER, "number"),
        (TokenType.ASSIGN, "="),
        (TokenType.NUMBER, "2.5"),
        (TokenType.SEMICOLON, ";"),
        (TokenType.EOF, None),
    ]


def test_dotted_identifiers_are_single_tokens():
    tokens = tokenize("system.history.add(x)")
    assert tokens[0].type is TokenType.IDENTIFIER
    assert tokens[0].value == "system.history.add"


def test_longest_operator_wins():
    assert _types("a += 1 == b => c++ <= d") == [
        TokenType.IDENTIFIER,
        TokenType.PLUS_ASSIGN,
        TokenType.NUMBER,
        TokenType.EQ,
        TokenType.IDENTIFIER,
        TokenType.ARROW,
        TokenType.IDENTIFIER,
        TokenType.INC,
        TokenType.LTE,
        TokenType.IDENTIFIER,
        TokenType.EOF,
    ]


def test_word_operators_share_symbol_tokens():
    assert _types("a add b mod c") == [
        TokenType.IDENTIFIER,
        TokenType.ADD,
        TokenType.IDENTIFIER,
        TokenType.MOD,
        TokenType.IDENTIFIER,
        TokenType.EOF,
    ]


def test_string_escapes_and_unterminated_string():
    tokens = tokenize(r'"a\n\t\"b\\" "open')
    assert tokens[0].value == 'a\n\t"b\\'
    assert tokens[1].type is TokenType.STRING
    assert tokens[1].value == "open"


def test_include_directive_and_comments():
    tokens = tokenize('#include "lib/util.sharp"\n# just a comment\nx')
    assert tokens[0].type is TokenType.INCLUDE
    assert tokens[0].value == "lib/util.sharp"
    assert tokens[1].type is TokenType.IDENTIFIER
    assert tokens[1].line == 3


def test_unknown_characters_become_error_tokens():
    tokens = tokenize("a @ b")
    assert tokens[1].type is TokenType.ERROR
    assert tokens[1].value == "@"
    assert (tokens[1].line, tokens[1].column) == (1, 3)
