"""Scene Parser — ordered-choice recursive-descent parser.

Parses the token stream into an AST. Alternatives are tried in a fixed
order and the first one that matches wins; a failed alternative restores
the cursor and hands over to the next one. Rule results are memoized per
token position (packrat parsing), which keeps backtracking linear.

Grammar:
  program          = statement_list EOF
  statement_list   = statement*
  statement        = set_camera | append_light | do | if | while | call
                   | function | command | assignment | transformation
  set_camera       = "set" "camera" "(" expression ")"
  append_light     = "append" "light" "(" param_list ")"
  do               = "do" statement_list "end"
  if               = "if" bool_expression "then" statement_list "end"
  while            = "while" bool_expression "do" statement_list "end"
  call             = "call" id "(" param_list ")"
  function         = "function" id "(" (id ","?)* ")" statement_list "end"
  command          = ("draw" | "display" | "append") "(" param_list ")"
  assignment       = "local"? id "=" expression
  transformation   = ("scale" | "rotate" | "translate")
                     "(" expression "," expression "," expression ")" statement
  param_list       = (expression ","?)*
  bool_expression  = expression (("<" | ">") expression)?
  expression       = mult_expression (("+" | "-") mult_expression)*
  mult_expression  = neg_expression (("*" | "/" | "%") neg_expression)*
  neg_expression   = "-"? value
  value            = number | color_name | rgb | vector | texture | "(" expression ")"
                   | object | string | id
"""

from __future__ import annotations

import contextlib
import functools
import logging
import sys
from typing import Callable, Iterator, NoReturn, Optional, TypeVar

from scenelang.lexer import (
    Token, TokenType, tokenize,
    TRANSFORMATIONS, COMMANDS, OBJECTS, COLOR_NAMES,
)
from scenelang.ast_nodes import (
    Program, Statement, Assignment, Transformation, FunctionDef, FunctionCall,
    IfStmt, WhileStmt, DoStmt, Command, AppendLight, SetCamera,
    Expr, NumberLiteral, ColorName, ColorRGB, Vector, TextureRef,
    ObjectConstructor, Parenthesized, StringLiteral, IdentifierRef,
    Negate, BinaryOp,
    Color, ObjectKind, TransformKind, CommandKind,
)
from scenelang.errors import (
    SourceLocation, SceneSyntaxError, ReservedWordError, TrailingInputError,
    syntax_error, reserved_word_error, trailing_input_error,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

_SYMBOL_NAMES: dict[TokenType, str] = {
    TokenType.PLUS: "'+'",
    TokenType.MINUS: "'-'",
    TokenType.STAR: "'*'",
    TokenType.SLASH: "'/'",
    TokenType.PERCENT: "'%'",
    TokenType.LT: "'<'",
    TokenType.GT: "'>'",
    TokenType.ASSIGN: "'='",
    TokenType.LPAREN: "'('",
    TokenType.RPAREN: "')'",
    TokenType.COMMA: "','",
    TokenType.EOF: "end of input",
}

# Python frames needed per token of nesting; a parenthesis level costs
# about twelve frames over two tokens.
_FRAMES_PER_TOKEN = 8
_MAX_RECURSION_LIMIT = 10_000

_ADDITIVE = (TokenType.PLUS, TokenType.MINUS)
_MULTIPLICATIVE = (TokenType.STAR, TokenType.SLASH, TokenType.PERCENT)
_COMPARISON = (TokenType.LT, TokenType.GT)


class _Backtrack(Exception):
    """The current alternative did not match; try the next one."""


_FAILED = object()


def _memoized(rule: Callable[[Parser], T]) -> Callable[[Parser], T]:
    """Cache a rule's outcome at each token position."""
    name = rule.__name__

    @functools.wraps(rule)
    def wrapper(self: Parser) -> T:
        if not self.memoize:
            return rule(self)
        key = (name, self.pos)
        entry = self._memo.get(key)
        if entry is not None:
            self.memo_hits += 1
            if entry is _FAILED:
                raise _Backtrack()
            node, end = entry
            self.pos = end
            return node
        try:
            node = rule(self)
        except _Backtrack:
            self._memo[key] = _FAILED
            raise
        self._memo[key] = (node, self.pos)
        return node

    return wrapper


class Parser:
    """Ordered-choice recursive-descent parser for scene scripts."""

    def __init__(self, tokens: list[Token], filename: str = "<stdin>", memoize: bool = True):
        self.tokens = tokens
        self.pos = 0
        self.filename = filename
        self.memoize = memoize
        self.memo_hits = 0
        self._memo: dict[tuple[str, int], object] = {}
        # Farthest failure seen so far: token index, expected forms, notes.
        self._farthest = -1
        self._expected: set[str] = set()
        self._notes: list[str] = []

    def _current(self) -> Token:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return self.tokens[-1]  # EOF

    def _peek(self) -> TokenType:
        return self._current().type

    def _peek_ahead(self, offset: int = 1) -> TokenType:
        idx = min(self.pos + offset, len(self.tokens) - 1)
        return self.tokens[idx].type

    def _loc(self) -> SourceLocation:
        return self._current().location

    def _advance(self) -> Token:
        tok = self._current()
        if self.pos < len(self.tokens) - 1:
            self.pos += 1
        return tok

    def _fail(self, expected: str, note: Optional[str] = None) -> NoReturn:
        if self.pos > self._farthest:
            self._farthest = self.pos
            self._expected = set()
            self._notes = []
        if self.pos == self._farthest:
            self._expected.add(expected)
            if note and note not in self._notes:
                self._notes.append(note)
        raise _Backtrack()

    def _expect(self, tt: TokenType) -> Token:
        if self._peek() != tt:
            self._fail(_SYMBOL_NAMES[tt])
        return self._advance()

    def _match(self, tt: TokenType) -> Optional[Token]:
        if self._peek() == tt:
            return self._advance()
        return None

    def _word(self, word: str) -> Token:
        tok = self._current()
        if not (tok.is_word and tok.value == word):
            self._fail(f"'{word}'")
        return self._advance()

    def _peek_word(self, word: str) -> bool:
        tok = self._current()
        return tok.is_word and tok.value == word

    def _keyword(self, choices: tuple[str, ...], label: str) -> Token:
        tok = self._current()
        if tok.type != TokenType.KEYWORD or tok.value not in choices:
            self._fail(label)
        return self._advance()

    def _identifier(self) -> str:
        if self._peek() != TokenType.IDENT:
            self._fail("identifier")
        return self._advance().value

    def _declared_name(self) -> str:
        """An identifier in a position no other alternative can claim."""
        tok = self._current()
        if tok.type == TokenType.KEYWORD:
            raise ReservedWordError(reserved_word_error(tok.value, tok.location))
        return self._identifier()

    def _choice(self, *alternatives: Callable[[], T]) -> T:
        start = self.pos
        for alternative in alternatives:
            try:
                return alternative()
            except _Backtrack:
                self.pos = start
        raise _Backtrack()

    # -------------------------------------------------------------------
    # Top-level
    # -------------------------------------------------------------------

    @contextlib.contextmanager
    def _nesting_guard(self) -> Iterator[None]:
        """Give deeply nested input room on the stack; report anything deeper as a syntax error."""
        old_limit = sys.getrecursionlimit()
        wanted = min(old_limit + _FRAMES_PER_TOKEN * len(self.tokens), _MAX_RECURSION_LIMIT)
        if wanted > old_limit:
            sys.setrecursionlimit(wanted)
        try:
            yield
        except RecursionError:
            tok = self._current()
            raise SceneSyntaxError(syntax_error(
                f"Nesting too deep to parse, found {tok.describe()}",
                tok.location, found=tok.describe(),
            )) from None
        finally:
            sys.setrecursionlimit(old_limit)

    def parse(self) -> Program:
        with self._nesting_guard():
            statements = self._statement_list()
        if self._peek() != TokenType.EOF:
            raise self._leftover_error()
        logger.debug(
            "parsed %d top-level statements from %s (memo entries=%d, hits=%d)",
            len(statements), self.filename, len(self._memo), self.memo_hits,
        )
        return Program(statements=statements, filename=self.filename)

    def parse_bool_expression(self) -> Expr:
        try:
            with self._nesting_guard():
                expr = self._bool_expression()
        except _Backtrack:
            raise self._farthest_error() from None
        if self._peek() != TokenType.EOF:
            raise self._leftover_error()
        return expr

    def _leftover_error(self) -> SceneSyntaxError:
        tok = self._current()
        if self._farthest > self.pos:
            return self._farthest_error()
        return TrailingInputError(trailing_input_error(tok.describe(), tok.location))

    def _farthest_error(self) -> SceneSyntaxError:
        tok = self.tokens[max(self._farthest, 0)]
        expected = sorted(self._expected)
        message = f"Expected {_join_expected(expected)}, found {tok.describe()}"
        for note in self._notes:
            message += f"; {note}"
        return SceneSyntaxError(syntax_error(
            message, tok.location,
            expected=expected, found=tok.describe(), unclosed=list(self._notes),
        ))

    # -------------------------------------------------------------------
    # Statements
    # -------------------------------------------------------------------

    @_memoized
    def _statement_list(self) -> tuple[Statement, ...]:
        stmts: list[Statement] = []
        while True:
            start = self.pos
            try:
                stmts.append(self._statement())
            except _Backtrack:
                self.pos = start
                return tuple(stmts)

    @_memoized
    def _statement(self) -> Statement:
        start = self.pos
        before = set(self._expected) if self._farthest == start else set()
        try:
            return self._choice(
                self._set_camera,
                self._append_light,
                self._do,
                self._if,
                self._while,
                self._call,
                self._function,
                self._command,
                self._assignment,
                self._transformation,
            )
        except _Backtrack:
            if self._farthest == start:
                self._expected = before | {"statement"}
            raise

    def _set_camera(self) -> SetCamera:
        loc = self._loc()
        self._word("set")
        self._word("camera")
        self._expect(TokenType.LPAREN)
        value = self._expression()
        self._expect(TokenType.RPAREN)
        return SetCamera(value=value, location=loc)

    def _append_light(self) -> AppendLight:
        loc = self._loc()
        self._keyword(("append",), "'append'")
        self._word("light")
        self._expect(TokenType.LPAREN)
        args = self._param_list()
        self._expect(TokenType.RPAREN)
        return AppendLight(args=args, location=loc)

    def _do(self) -> DoStmt:
        loc = self._loc()
        opener = self._word("do")
        body = self._statement_list()
        self._block_end(opener)
        return DoStmt(body=body, location=loc)

    def _if(self) -> IfStmt:
        loc = self._loc()
        opener = self._word("if")
        condition = self._bool_expression()
        self._word("then")
        body = self._statement_list()
        self._block_end(opener)
        return IfStmt(condition=condition, body=body, location=loc)

    def _while(self) -> WhileStmt:
        loc = self._loc()
        opener = self._word("while")
        condition = self._bool_expression()
        self._word("do")
        body = self._statement_list()
        self._block_end(opener)
        return WhileStmt(condition=condition, body=body, location=loc)

    def _block_end(self, opener: Token) -> None:
        if self._peek_word("end"):
            self._advance()
            return
        loc = opener.location
        self._fail("'end'", note=(
            f"unclosed '{opener.value}' opened at line {loc.line}, column {loc.column}"
        ))

    def _call(self) -> FunctionCall:
        loc = self._loc()
        self._word("call")
        name = self._declared_name()
        self._expect(TokenType.LPAREN)
        args = self._param_list()
        self._expect(TokenType.RPAREN)
        return FunctionCall(name=name, args=args, location=loc)

    def _function(self) -> FunctionDef:
        loc = self._loc()
        opener = self._keyword(("function",), "'function'")
        name = self._declared_name()
        self._expect(TokenType.LPAREN)
        params: list[str] = []
        while self._current().is_word:
            params.append(self._declared_name())
            self._match(TokenType.COMMA)
        self._expect(TokenType.RPAREN)
        body = self._statement_list()
        self._block_end(opener)
        return FunctionDef(name=name, params=tuple(params), body=body, location=loc)

    def _command(self) -> Command:
        loc = self._loc()
        name = self._keyword(COMMANDS, "command").value
        self._expect(TokenType.LPAREN)
        args = self._param_list()
        self._expect(TokenType.RPAREN)
        return Command(name=CommandKind(name), args=args, location=loc)

    def _assignment(self) -> Assignment:
        loc = self._loc()
        self._reject_reserved_target()
        is_local = False
        if self._peek_word("local"):
            self._advance()
            is_local = True
            self._reject_reserved_target()
        name = self._identifier()
        self._expect(TokenType.ASSIGN)
        value = self._expression()
        return Assignment(name=name, value=value, is_local=is_local, location=loc)

    def _reject_reserved_target(self) -> None:
        tok = self._current()
        if tok.type == TokenType.KEYWORD and self._peek_ahead() == TokenType.ASSIGN:
            raise ReservedWordError(reserved_word_error(tok.value, tok.location))

    def _transformation(self) -> Transformation:
        loc = self._loc()
        kind = self._keyword(TRANSFORMATIONS, "transformation").value
        args = self._triple()
        body = self._statement()
        return Transformation(kind=TransformKind(kind), args=args, body=body, location=loc)

    def _triple(self) -> tuple[Expr, Expr, Expr]:
        self._expect(TokenType.LPAREN)
        x = self._expression()
        self._expect(TokenType.COMMA)
        y = self._expression()
        self._expect(TokenType.COMMA)
        z = self._expression()
        self._expect(TokenType.RPAREN)
        return (x, y, z)

    @_memoized
    def _param_list(self) -> tuple[Expr, ...]:
        args: list[Expr] = []
        while True:
            start = self.pos
            try:
                args.append(self._expression())
            except _Backtrack:
                self.pos = start
                return tuple(args)
            self._match(TokenType.COMMA)

    # -------------------------------------------------------------------
    # Expressions (precedence climbing)
    # -------------------------------------------------------------------

    @_memoized
    def _bool_expression(self) -> Expr:
        left = self._expression()
        if self._peek() in _COMPARISON:
            start = self.pos
            try:
                tok = self._advance()
                right = self._expression()
            except _Backtrack:
                self.pos = start
                return left
            return BinaryOp(left=left, op=tok.value, right=right, location=tok.location)
        return left

    @_memoized
    def _expression(self) -> Expr:
        return self._binary_chain(self._mult_expression, _ADDITIVE)

    @_memoized
    def _mult_expression(self) -> Expr:
        return self._binary_chain(self._neg_expression, _MULTIPLICATIVE)

    def _binary_chain(self, operand: Callable[[], Expr], operators: tuple[TokenType, ...]) -> Expr:
        left = operand()
        while self._peek() in operators:
            start = self.pos
            try:
                tok = self._advance()
                right = operand()
            except _Backtrack:
                self.pos = start
                break
            left = BinaryOp(left=left, op=tok.value, right=right, location=tok.location)
        return left

    @_memoized
    def _neg_expression(self) -> Expr:
        if self._peek() == TokenType.MINUS:
            loc = self._loc()
            self._advance()
            operand = self._value()
            return Negate(operand=operand, location=loc)
        return self._value()

    @_memoized
    def _value(self) -> Expr:
        return self._choice(
            self._number,
            self._color_name,
            self._rgb,
            self._vector,
            self._texture,
            self._parenthesized,
            self._object,
            self._string,
            self._identifier_ref,
        )

    def _number(self) -> NumberLiteral:
        if self._peek() != TokenType.NUMBER:
            self._fail("number")
        tok = self._advance()
        return NumberLiteral(value=float(tok.value), location=tok.location)

    def _color_name(self) -> ColorName:
        tok = self._current()
        if tok.type != TokenType.IDENT or tok.value not in COLOR_NAMES:
            self._fail("color name")
        self._advance()
        return ColorName(color=Color(tok.value), location=tok.location)

    def _rgb(self) -> ColorRGB:
        loc = self._loc()
        self._word("rgb")
        r, g, b = self._triple()
        return ColorRGB(r=r, g=g, b=b, location=loc)

    def _vector(self) -> Vector:
        loc = self._loc()
        self._expect(TokenType.LT)
        x = self._expression()
        self._expect(TokenType.COMMA)
        y = self._expression()
        self._expect(TokenType.COMMA)
        z = self._expression()
        self._expect(TokenType.GT)
        return Vector(x=x, y=y, z=z, location=loc)

    def _texture(self) -> TextureRef:
        loc = self._loc()
        self._word("texture")
        self._expect(TokenType.LPAREN)
        path = self._expression()
        self._expect(TokenType.RPAREN)
        return TextureRef(path=path, location=loc)

    def _parenthesized(self) -> Parenthesized:
        loc = self._loc()
        self._expect(TokenType.LPAREN)
        expr = self._expression()
        self._expect(TokenType.RPAREN)
        return Parenthesized(expr=expr, location=loc)

    def _object(self) -> ObjectConstructor:
        loc = self._loc()
        name = self._keyword(OBJECTS, "object").value
        self._expect(TokenType.LPAREN)
        args = self._param_list()
        self._expect(TokenType.RPAREN)
        return ObjectConstructor(kind=ObjectKind(name), args=args, location=loc)

    def _string(self) -> StringLiteral:
        if self._peek() != TokenType.STRING:
            self._fail("string")
        tok = self._advance()
        return StringLiteral(value=tok.value[1:-1], quote=tok.value[0], location=tok.location)

    def _identifier_ref(self) -> IdentifierRef:
        loc = self._loc()
        return IdentifierRef(name=self._identifier(), location=loc)


def _join_expected(expected: list[str]) -> str:
    if not expected:
        return "more input"
    if len(expected) == 1:
        return expected[0]
    return "one of " + ", ".join(expected)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def parse(source: str, filename: str = "<stdin>", memoize: bool = True) -> Program:
    """Parse scene source code into an AST."""
    tokens = tokenize(source, filename)
    parser = Parser(tokens, filename, memoize=memoize)
    return parser.parse()


def parse_expression(source: str, filename: str = "<stdin>") -> Expr:
    """Parse a single (optionally comparing) expression spanning the whole input."""
    tokens = tokenize(source, filename)
    return Parser(tokens, filename).parse_bool_expression()
