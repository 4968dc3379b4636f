"""scenelang — front end for a procedural 3D scene description language."""

__version__ = "0.1.0"

from scenelang.errors import (
    ErrorKind, SourceLocation, SceneError,
    ParseError, LexicalError, SceneSyntaxError, ReservedWordError, TrailingInputError,
)
from scenelang.lexer import Token, TokenType, tokenize
from scenelang.parser import parse, parse_expression
from scenelang.printer import format_program, format_expression
from scenelang.loader import load_scene
