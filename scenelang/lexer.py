"""Scene Lexer — Tokenizer with line/column tracking.

Skips whitespace and `//` line comments between tokens; no whitespace may
appear inside a token. Words are read by maximal munch, so a keyword is
only recognized when the next character cannot continue an identifier
(`drawing` is an identifier, `draw` is a keyword).
"""

from __future__ import annotations

import math
import string
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional

from scenelang.errors import SourceLocation, lexical_error, LexicalError


class TokenType(Enum):
    # Words
    IDENT = auto()
    KEYWORD = auto()

    # Literals
    NUMBER = auto()
    STRING = auto()

    # Operators
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    SLASH = auto()
    PERCENT = auto()
    LT = auto()
    GT = auto()
    ASSIGN = auto()

    # Delimiters
    LPAREN = auto()
    RPAREN = auto()
    COMMA = auto()

    # Special
    EOF = auto()


# Reserved words: never valid as identifiers.
KEYWORDS: frozenset[str] = frozenset({
    "local",
    "function",
    "scale", "rotate", "translate",
    "draw", "display", "append",
    "sphere", "plane", "csg", "cube",
})

TRANSFORMATIONS = ("scale", "rotate", "translate")
COMMANDS = ("draw", "display", "append")
OBJECTS = ("sphere", "plane", "csg", "cube")
COLOR_NAMES = ("red", "orange", "yellow", "green", "blue", "purple", "black", "white")

_SYMBOLS: dict[str, TokenType] = {
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.STAR,
    "/": TokenType.SLASH,
    "%": TokenType.PERCENT,
    "<": TokenType.LT,
    ">": TokenType.GT,
    "=": TokenType.ASSIGN,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    ",": TokenType.COMMA,
}

_WHITESPACE = (" ", "\t", "\r", "\n")
_LETTERS = frozenset(string.ascii_letters)
_DIGITS = frozenset(string.digits)
_WORD_START = _LETTERS | {"_"}
_WORD_CHARS = _LETTERS | _DIGITS | {"_"}


@dataclass(frozen=True)
class Token:
    type: TokenType
    value: str
    location: SourceLocation

    @property
    def is_word(self) -> bool:
        return self.type in (TokenType.IDENT, TokenType.KEYWORD)

    def describe(self) -> str:
        """Human-readable form used in error messages."""
        if self.type == TokenType.EOF:
            return "end of input"
        if self.type == TokenType.STRING:
            return f"string {self.value}"
        return f"'{self.value}'"

    def to_dict(self) -> dict:
        return {
            "type": self.type.name,
            "value": self.value,
            "line": self.location.line,
            "column": self.location.column,
            "offset": self.location.offset,
        }

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, {self.location})"


class Lexer:
    """Tokenizer for scene source code."""

    def __init__(self, source: str, filename: str = "<stdin>"):
        self.source = source
        self.filename = filename
        self.pos = 0
        self.line = 1
        self.column = 1

    def _loc(self) -> SourceLocation:
        return SourceLocation(self.line, self.column, self.filename, self.pos)

    def _peek(self) -> Optional[str]:
        if self.pos < len(self.source):
            return self.source[self.pos]
        return None

    def _peek_ahead(self, offset: int = 1) -> Optional[str]:
        idx = self.pos + offset
        if idx < len(self.source):
            return self.source[idx]
        return None

    def _advance(self) -> str:
        ch = self.source[self.pos]
        self.pos += 1
        if ch == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return ch

    def _skip_whitespace_and_comments(self) -> None:
        while self.pos < len(self.source):
            ch = self.source[self.pos]
            if ch in _WHITESPACE:
                self._advance()
            elif ch == "/" and self._peek_ahead() == "/":
                # Runs to end of line or end of input.
                while self.pos < len(self.source) and self.source[self.pos] != "\n":
                    self._advance()
            else:
                break

    def _read_string(self) -> Token:
        loc = self._loc()
        quote = self._advance()
        start = self.pos
        while self.pos < len(self.source):
            if self.source[self.pos] == quote:
                value = self.source[start:self.pos]
                self._advance()
                return Token(TokenType.STRING, quote + value + quote, loc)
            self._advance()
        raise LexicalError(lexical_error("Unterminated string literal", loc))

    def _read_number(self) -> Token:
        loc = self._loc()
        start = self.pos
        while self._peek() in _DIGITS:
            self._advance()
        if self._peek() == "." and self._peek_ahead() in _DIGITS:
            self._advance()
            while self._peek() in _DIGITS:
                self._advance()
        value = self.source[start:self.pos]
        if self._peek() in _LETTERS:
            raise LexicalError(lexical_error(
                f"Number literal '{value}' is immediately followed by letter '{self._peek()}'",
                loc,
            ))
        if not math.isfinite(float(value)):
            raise LexicalError(lexical_error(
                f"Number literal '{value[:20]}...' is too large", loc,
            ))
        return Token(TokenType.NUMBER, value, loc)

    def _read_word(self) -> Token:
        loc = self._loc()
        start = self.pos
        while self._peek() in _WORD_CHARS:
            self._advance()
        value = self.source[start:self.pos]
        token_type = TokenType.KEYWORD if value in KEYWORDS else TokenType.IDENT
        return Token(token_type, value, loc)

    def tokenize(self) -> list[Token]:
        tokens: list[Token] = []
        while self.pos < len(self.source):
            self._skip_whitespace_and_comments()
            if self.pos >= len(self.source):
                break

            ch = self.source[self.pos]
            loc = self._loc()

            if ch in ("'", '"'):
                tokens.append(self._read_string())
            elif ch in _DIGITS:
                tokens.append(self._read_number())
            elif ch in _WORD_START:
                tokens.append(self._read_word())
            elif ch in _SYMBOLS:
                self._advance()
                tokens.append(Token(_SYMBOLS[ch], ch, loc))
            else:
                raise LexicalError(lexical_error(f"Unexpected character {ch!r}", loc))

        tokens.append(Token(TokenType.EOF, "", self._loc()))
        return tokens


def tokenize(source: str, filename: str = "<stdin>") -> list[Token]:
    """Convenience function to tokenize scene source code."""
    return Lexer(source, filename).tokenize()
