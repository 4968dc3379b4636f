"""Scene AST Node definitions.

The tree is immutable once produced: nodes are frozen dataclasses and
child sequences are tuples. Locations are carried on every node but are
excluded from equality, so two parses of differently formatted source
compare equal when their structure does.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields, is_dataclass
from enum import Enum
from typing import Any, Optional

from scenelang.errors import SourceLocation


# Operation tags accepted by csg(...) in the downstream evaluator.
CSG_OPERATIONS = ("union", "intersection", "difference")

ARITHMETIC_OPERATORS = ("+", "-", "*", "/", "%")
COMPARISON_OPERATORS = ("<", ">")


class Color(Enum):
    RED = "red"
    ORANGE = "orange"
    YELLOW = "yellow"
    GREEN = "green"
    BLUE = "blue"
    PURPLE = "purple"
    BLACK = "black"
    WHITE = "white"

    @property
    def rgb(self) -> tuple[float, float, float]:
        return _COLOR_RGB[self]


_COLOR_RGB: dict[Color, tuple[float, float, float]] = {
    Color.RED: (1.0, 0.0, 0.0),
    Color.ORANGE: (1.0, 0.5, 0.0),
    Color.YELLOW: (1.0, 1.0, 0.0),
    Color.GREEN: (0.0, 1.0, 0.0),
    Color.BLUE: (0.0, 0.0, 1.0),
    Color.PURPLE: (1.0, 0.0, 1.0),
    Color.BLACK: (0.0, 0.0, 0.0),
    Color.WHITE: (1.0, 1.0, 1.0),
}


class ObjectKind(Enum):
    SPHERE = "sphere"
    PLANE = "plane"
    CSG = "csg"
    CUBE = "cube"


class TransformKind(Enum):
    SCALE = "scale"
    ROTATE = "rotate"
    TRANSLATE = "translate"


class CommandKind(Enum):
    DRAW = "draw"
    DISPLAY = "display"
    APPEND = "append"


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Expr:
    location: Optional[SourceLocation] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class NumberLiteral(Expr):
    value: float = 0.0


@dataclass(frozen=True)
class ColorName(Expr):
    color: Color = Color.BLACK


@dataclass(frozen=True)
class ColorRGB(Expr):
    """rgb(r, g, b)"""
    r: Expr = field(default_factory=Expr)
    g: Expr = field(default_factory=Expr)
    b: Expr = field(default_factory=Expr)


@dataclass(frozen=True)
class Vector(Expr):
    """<x, y, z>"""
    x: Expr = field(default_factory=Expr)
    y: Expr = field(default_factory=Expr)
    z: Expr = field(default_factory=Expr)


@dataclass(frozen=True)
class TextureRef(Expr):
    """texture(path)"""
    path: Expr = field(default_factory=Expr)


@dataclass(frozen=True)
class ObjectConstructor(Expr):
    """sphere(...) | plane(...) | csg(...) | cube(...)"""
    kind: ObjectKind = ObjectKind.SPHERE
    args: tuple[Expr, ...] = ()


@dataclass(frozen=True)
class Parenthesized(Expr):
    expr: Expr = field(default_factory=Expr)


@dataclass(frozen=True)
class StringLiteral(Expr):
    value: str = ""
    quote: str = field(default="'", compare=False)


@dataclass(frozen=True)
class IdentifierRef(Expr):
    name: str = ""


@dataclass(frozen=True)
class Negate(Expr):
    operand: Expr = field(default_factory=Expr)


@dataclass(frozen=True)
class BinaryOp(Expr):
    left: Expr = field(default_factory=Expr)
    op: str = ""
    right: Expr = field(default_factory=Expr)


# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Statement:
    location: Optional[SourceLocation] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class Assignment(Statement):
    name: str = ""
    value: Expr = field(default_factory=Expr)
    is_local: bool = False


@dataclass(frozen=True)
class Transformation(Statement):
    """scale|rotate|translate (x, y, z) <statement>"""
    kind: TransformKind = TransformKind.TRANSLATE
    args: tuple[Expr, Expr, Expr] = (Expr(), Expr(), Expr())
    body: Statement = field(default_factory=Statement)


@dataclass(frozen=True)
class FunctionDef(Statement):
    name: str = ""
    params: tuple[str, ...] = ()
    body: tuple[Statement, ...] = ()


@dataclass(frozen=True)
class FunctionCall(Statement):
    """call name(args)"""
    name: str = ""
    args: tuple[Expr, ...] = ()


@dataclass(frozen=True)
class IfStmt(Statement):
    condition: Expr = field(default_factory=Expr)
    body: tuple[Statement, ...] = ()


@dataclass(frozen=True)
class WhileStmt(Statement):
    condition: Expr = field(default_factory=Expr)
    body: tuple[Statement, ...] = ()


@dataclass(frozen=True)
class DoStmt(Statement):
    body: tuple[Statement, ...] = ()


@dataclass(frozen=True)
class Command(Statement):
    """draw(...) | display(...) | append(...)"""
    name: CommandKind = CommandKind.DRAW
    args: tuple[Expr, ...] = ()


@dataclass(frozen=True)
class AppendLight(Statement):
    args: tuple[Expr, ...] = ()


@dataclass(frozen=True)
class SetCamera(Statement):
    value: Expr = field(default_factory=Expr)


# ---------------------------------------------------------------------------
# Program (root node)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Program:
    """Top-level statements in execution (and draw) order."""
    statements: tuple[Statement, ...] = ()
    filename: str = field(default="<stdin>", compare=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "node": "Program",
            "filename": self.filename,
            "statements": [to_dict(s) for s in self.statements],
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------

def to_dict(node: Any) -> Any:
    """Convert a node (or a value inside one) to plain JSON-ready data."""
    if isinstance(node, Program):
        return node.to_dict()
    if isinstance(node, Enum):
        return node.value
    if isinstance(node, (tuple, list)):
        return [to_dict(item) for item in node]
    if isinstance(node, (Expr, Statement)):
        d: dict[str, Any] = {"node": type(node).__name__}
        for f in fields(node):
            if f.name == "location":
                continue
            d[f.name] = to_dict(getattr(node, f.name))
        if node.location is not None:
            d["location"] = {"line": node.location.line, "column": node.location.column}
        return d
    if is_dataclass(node):
        raise TypeError(f"Not an AST node: {type(node).__name__}")
    return node
