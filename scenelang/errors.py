"""Structured error objects for the scene language front end.

Every error is machine-readable: a kind, a message, a source location and
a details mapping. A failed parse raises exactly one ParseError carrying
one SceneError; no partial program is ever returned.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class ErrorKind(Enum):
    LEXICAL_ERROR = "lexical_error"
    SYNTAX_ERROR = "syntax_error"
    RESERVED_WORD = "reserved_word"
    TRAILING_INPUT = "trailing_input"


@dataclass(frozen=True)
class SourceLocation:
    line: int
    column: int
    file: str = "<stdin>"
    offset: int = 0

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.column}"


@dataclass
class SceneError:
    kind: ErrorKind
    message: str
    location: Optional[SourceLocation] = None
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "kind": self.kind.value,
            "message": self.message,
        }
        if self.location:
            d["location"] = {
                "file": self.location.file,
                "line": self.location.line,
                "column": self.location.column,
                "offset": self.location.offset,
            }
        if self.details:
            d["details"] = self.details
        return d

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def __str__(self) -> str:
        loc = f" at {self.location}" if self.location else ""
        return f"[{self.kind.value}]{loc}: {self.message}"


def lexical_error(
    message: str,
    location: Optional[SourceLocation] = None,
) -> SceneError:
    return SceneError(
        kind=ErrorKind.LEXICAL_ERROR,
        message=message,
        location=location,
    )


def syntax_error(
    message: str,
    location: Optional[SourceLocation] = None,
    expected: Optional[list[str]] = None,
    found: Optional[str] = None,
    unclosed: Optional[list[str]] = None,
) -> SceneError:
    details: dict[str, Any] = {}
    if expected:
        details["expected"] = expected
    if found is not None:
        details["found"] = found
    if unclosed:
        details["unclosed"] = unclosed
    return SceneError(
        kind=ErrorKind.SYNTAX_ERROR,
        message=message,
        location=location,
        details=details,
    )


def reserved_word_error(
    word: str,
    location: Optional[SourceLocation] = None,
) -> SceneError:
    return SceneError(
        kind=ErrorKind.RESERVED_WORD,
        message=f"Reserved word '{word}' used as identifier",
        location=location,
        details={"word": word, "expected": ["identifier"], "found": word},
    )


def trailing_input_error(
    found: str,
    location: SourceLocation,
) -> SceneError:
    return SceneError(
        kind=ErrorKind.TRAILING_INPUT,
        message=f"Unexpected trailing input at position {location.offset}",
        location=location,
        details={"found": found},
    )


class ParseError(Exception):
    """Exception wrapping the single SceneError of a failed parse."""

    def __init__(self, error: SceneError):
        self.error = error
        super().__init__(str(error))

    @property
    def kind(self) -> ErrorKind:
        return self.error.kind

    @property
    def location(self) -> Optional[SourceLocation]:
        return self.error.location

    @property
    def message(self) -> str:
        return self.error.message

    def to_dict(self) -> dict[str, Any]:
        return self.error.to_dict()

    def to_json(self, indent: int = 2) -> str:
        return self.error.to_json(indent=indent)


class LexicalError(ParseError):
    """A character sequence matches no token form."""


class SceneSyntaxError(ParseError):
    """No alternative matched at a required position."""


class ReservedWordError(SceneSyntaxError):
    """A reserved keyword appeared where an identifier is declared."""


class TrailingInputError(SceneSyntaxError):
    """The statement list ended before the input did."""
