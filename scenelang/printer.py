"""Scene Printer — AST back to canonical source text.

Output re-parses to a structurally identical program:

    parse(format_program(parse(source))) == parse(source)

Parentheses the parser saw are kept as Parenthesized nodes and printed as
such; extra parentheses are only inserted for hand-built trees whose shape
would otherwise change on re-parse.
"""

from __future__ import annotations

import math
from decimal import Decimal

from scenelang.ast_nodes import (
    Program, Statement, Assignment, Transformation, FunctionDef, FunctionCall,
    IfStmt, WhileStmt, DoStmt, Command, AppendLight, SetCamera,
    Expr, NumberLiteral, ColorName, ColorRGB, Vector, TextureRef,
    ObjectConstructor, Parenthesized, StringLiteral, IdentifierRef,
    Negate, BinaryOp, COMPARISON_OPERATORS,
)

_PRECEDENCE = {"+": 1, "-": 1, "*": 2, "/": 2, "%": 2}


def format_program(program: Program, indent: int = 4) -> str:
    lines: list[str] = []
    for stmt in program.statements:
        lines.extend(_statement_lines(stmt, indent))
    return "\n".join(lines) + "\n" if lines else ""


def format_statement(stmt: Statement, indent: int = 4) -> str:
    return "\n".join(_statement_lines(stmt, indent))


def format_expression(expr: Expr) -> str:
    """Format an expression in value position (no top-level comparison)."""
    return _expr(expr)


def format_condition(expr: Expr) -> str:
    """Format a loop or conditional guard; a single comparison is allowed at the root."""
    if isinstance(expr, BinaryOp) and expr.op in COMPARISON_OPERATORS:
        return f"{_expr(expr.left)} {expr.op} {_expr(expr.right)}"
    return _expr(expr)


# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------

def _statement_lines(stmt: Statement, indent: int) -> list[str]:
    if isinstance(stmt, Assignment):
        prefix = "local " if stmt.is_local else ""
        return [f"{prefix}{stmt.name} = {_expr(stmt.value)}"]

    if isinstance(stmt, Transformation):
        head = f"{stmt.kind.value}({_args(stmt.args)})"
        body = _statement_lines(stmt.body, indent)
        return [f"{head} {body[0]}"] + body[1:]

    if isinstance(stmt, FunctionDef):
        head = f"function {stmt.name}({', '.join(stmt.params)})"
        return _block(head, stmt.body, indent)

    if isinstance(stmt, FunctionCall):
        return [f"call {stmt.name}({_args(stmt.args)})"]

    if isinstance(stmt, IfStmt):
        return _block(f"if {format_condition(stmt.condition)} then", stmt.body, indent)

    if isinstance(stmt, WhileStmt):
        return _block(f"while {format_condition(stmt.condition)} do", stmt.body, indent)

    if isinstance(stmt, DoStmt):
        return _block("do", stmt.body, indent)

    if isinstance(stmt, Command):
        return [f"{stmt.name.value}({_args(stmt.args)})"]

    if isinstance(stmt, AppendLight):
        return [f"append light({_args(stmt.args)})"]

    if isinstance(stmt, SetCamera):
        return [f"set camera({_expr(stmt.value)})"]

    raise TypeError(f"Cannot format statement of type {type(stmt).__name__}")


def _block(head: str, body: tuple[Statement, ...], indent: int) -> list[str]:
    pad = " " * indent
    lines = [head]
    for stmt in body:
        lines.extend(pad + line for line in _statement_lines(stmt, indent))
    lines.append("end")
    return lines


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------

def _args(args: tuple[Expr, ...]) -> str:
    return ", ".join(_expr(a) for a in args)


def _expr(expr: Expr) -> str:
    if isinstance(expr, NumberLiteral):
        return _number(expr.value)

    if isinstance(expr, ColorName):
        return expr.color.value

    if isinstance(expr, ColorRGB):
        return f"rgb({_args((expr.r, expr.g, expr.b))})"

    if isinstance(expr, Vector):
        return f"<{_args((expr.x, expr.y, expr.z))}>"

    if isinstance(expr, TextureRef):
        return f"texture({_expr(expr.path)})"

    if isinstance(expr, ObjectConstructor):
        return f"{expr.kind.value}({_args(expr.args)})"

    if isinstance(expr, Parenthesized):
        return f"({_expr(expr.expr)})"

    if isinstance(expr, StringLiteral):
        return _string(expr)

    if isinstance(expr, IdentifierRef):
        return expr.name

    if isinstance(expr, Negate):
        operand = _expr(expr.operand)
        if isinstance(expr.operand, (BinaryOp, Negate)):
            operand = f"({operand})"
        return f"-{operand}"

    if isinstance(expr, BinaryOp):
        if expr.op in COMPARISON_OPERATORS:
            raise ValueError(f"Comparison '{expr.op}' is only allowed at the root of a condition")
        prec = _PRECEDENCE[expr.op]
        left = _expr(expr.left)
        if isinstance(expr.left, BinaryOp) and _PRECEDENCE.get(expr.left.op, 0) < prec:
            left = f"({left})"
        right = _expr(expr.right)
        if isinstance(expr.right, BinaryOp) and _PRECEDENCE.get(expr.right.op, 0) <= prec:
            right = f"({right})"
        return f"{left} {expr.op} {right}"

    raise TypeError(f"Cannot format expression of type {type(expr).__name__}")


def _number(value: float) -> str:
    if not math.isfinite(value) or value < 0:
        raise ValueError(f"Number literal {value!r} has no source form")
    if value == int(value):
        return str(int(value))
    text = format(Decimal(repr(value)), "f")
    return text.rstrip("0").rstrip(".")


def _string(expr: StringLiteral) -> str:
    quotes = [expr.quote] + [q for q in ("'", '"') if q != expr.quote]
    for quote in quotes:
        if quote not in expr.value:
            return f"{quote}{expr.value}{quote}"
    raise ValueError("String literal contains both quote characters")
