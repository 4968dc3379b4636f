"""Lexer tests — token forms, keyword boundaries, comments and positions."""

import pytest

from scenelang.lexer import tokenize, TokenType, KEYWORDS
from scenelang.errors import LexicalError, ErrorKind


def _types(source):
    return [t.type for t in tokenize(source)]


class TestWords:
    """Identifiers, reserved keywords and the whole-token boundary."""

    def test_keyword_is_recognized(self):
        """draw( lexes as a keyword followed by a parenthesis."""
        assert _types("draw(x)") == [
            TokenType.KEYWORD, TokenType.LPAREN, TokenType.IDENT,
            TokenType.RPAREN, TokenType.EOF,
        ]

    def test_keyword_prefix_is_identifier(self):
        """A longer word that starts with a keyword is an identifier."""
        tokens = tokenize("drawing sphere2 _cube local_x")
        assert [t.type for t in tokens[:-1]] == [TokenType.IDENT] * 4
        assert [t.value for t in tokens[:-1]] == ["drawing", "sphere2", "_cube", "local_x"]

    def test_all_reserved_words(self):
        for word in KEYWORDS:
            tok = tokenize(word)[0]
            assert tok.type == TokenType.KEYWORD, word

    def test_contextual_words_are_identifiers(self):
        """Control-flow words and color names are matched by the parser, not reserved."""
        for word in ("if", "then", "while", "do", "end", "call", "set", "camera",
                     "light", "rgb", "texture", "red", "white"):
            assert tokenize(word)[0].type == TokenType.IDENT, word

    def test_keywords_are_case_sensitive(self):
        assert tokenize("Draw")[0].type == TokenType.IDENT


class TestNumbers:
    """digit+ ('.' digit+)? not followed by a letter."""

    def test_integer_and_fraction(self):
        tokens = tokenize("20 1.5 007")
        assert [(t.type, t.value) for t in tokens[:-1]] == [
            (TokenType.NUMBER, "20"),
            (TokenType.NUMBER, "1.5"),
            (TokenType.NUMBER, "007"),
        ]

    def test_number_followed_by_letter_fails(self):
        with pytest.raises(LexicalError) as exc:
            tokenize("x = 20x")
        assert exc.value.kind == ErrorKind.LEXICAL_ERROR
        assert exc.value.location.column == 5

    def test_number_followed_by_underscore_splits(self):
        tokens = tokenize("20_x")
        assert [(t.type, t.value) for t in tokens[:-1]] == [
            (TokenType.NUMBER, "20"),
            (TokenType.IDENT, "_x"),
        ]

    def test_trailing_dot_is_not_part_of_number(self):
        with pytest.raises(LexicalError):
            tokenize("1.")

    def test_leading_minus_is_separate(self):
        assert _types("-3") == [TokenType.MINUS, TokenType.NUMBER, TokenType.EOF]


class TestStrings:
    """Single- or double-quoted, no escapes."""

    def test_single_and_double_quotes(self):
        tokens = tokenize("'union' \"it's\"")
        assert tokens[0].type == TokenType.STRING
        assert tokens[0].value == "'union'"
        assert tokens[1].value == "\"it's\""

    def test_backslash_is_literal(self):
        assert tokenize(r"'a\n'")[0].value == r"'a\n'"

    def test_unterminated_string(self):
        with pytest.raises(LexicalError) as exc:
            tokenize("texture('floor.png)")
        assert "Unterminated" in exc.value.message
        assert exc.value.location.offset == 8


class TestTrivia:
    """Whitespace and // comments between tokens."""

    def test_comment_to_end_of_line(self):
        tokens = tokenize("a // ignored ) (\nb")
        assert [t.value for t in tokens[:-1]] == ["a", "b"]

    def test_unterminated_comment_at_end_of_input(self):
        assert _types("a // no newline") == [TokenType.IDENT, TokenType.EOF]

    def test_single_slash_is_division(self):
        assert _types("a / b") == [TokenType.IDENT, TokenType.SLASH, TokenType.IDENT, TokenType.EOF]

    def test_unexpected_character(self):
        with pytest.raises(LexicalError) as exc:
            tokenize("draw(a) @")
        assert "'@'" in exc.value.message

    def test_empty_input(self):
        assert _types("") == [TokenType.EOF]
        assert _types("  \n\t// only a comment") == [TokenType.EOF]


class TestLocations:

    def test_line_column_offset(self):
        tokens = tokenize("a\n  b", filename="x.scene")
        b = tokens[1]
        assert (b.location.line, b.location.column, b.location.offset) == (2, 3, 4)
        assert str(b.location) == "x.scene:2:3"

    def test_token_to_dict(self):
        d = tokenize("cube")[0].to_dict()
        assert d == {"type": "KEYWORD", "value": "cube", "line": 1, "column": 1, "offset": 0}
