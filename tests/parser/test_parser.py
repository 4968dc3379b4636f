"""Parser tests — expressions, statements and whole programs."""

import dataclasses
import json
import os

import pytest

from scenelang.parser import parse, parse_expression
from scenelang.ast_nodes import (
    Program, Assignment, Transformation, FunctionDef, FunctionCall,
    IfStmt, WhileStmt, DoStmt, Command, AppendLight, SetCamera,
    NumberLiteral, ColorName, ColorRGB, Vector, TextureRef,
    ObjectConstructor, Parenthesized, StringLiteral, IdentifierRef,
    Negate, BinaryOp,
    Color, ObjectKind, TransformKind, CommandKind, to_dict,
)

EXAMPLES = os.path.join(os.path.dirname(__file__), "..", "..", "examples")


def num(v):
    return NumberLiteral(value=v)


def ref(name):
    return IdentifierRef(name=name)


def binop(left, op, right):
    return BinaryOp(left=left, op=op, right=right)


# ===================================================================
# Expressions
# ===================================================================


class TestPrecedence:
    """Binding strength: unary minus > * / % > + - > comparison."""

    def test_multiplication_binds_tighter(self):
        assert parse_expression("2 + 3 * 4") == binop(num(2), "+", binop(num(3), "*", num(4)))

    def test_unary_minus_binds_tightest(self):
        assert parse_expression("-2 * 3") == binop(Negate(operand=num(2)), "*", num(3))

    def test_additive_is_left_associative(self):
        assert parse_expression("1 - 2 - 3") == binop(binop(num(1), "-", num(2)), "-", num(3))

    def test_multiplicative_is_left_associative(self):
        assert parse_expression("8 / 4 % 3 * 2") == binop(
            binop(binop(num(8), "/", num(4)), "%", num(3)), "*", num(2),
        )

    def test_comparison_wraps_arithmetic(self):
        assert parse_expression("a + 1 < b * 2") == binop(
            binop(ref("a"), "+", num(1)), "<", binop(ref("b"), "*", num(2)),
        )

    def test_parentheses_are_kept(self):
        assert parse_expression("(1 + 2) * 3") == binop(
            Parenthesized(expr=binop(num(1), "+", num(2))), "*", num(3),
        )

    def test_minus_of_parenthesized(self):
        assert parse_expression("-(a)") == Negate(operand=Parenthesized(expr=ref("a")))


class TestValues:
    """Each form of the value rule."""

    def test_number(self):
        assert parse_expression("1.25") == num(1.25)

    def test_color_name_beats_identifier(self):
        assert parse_expression("red") == ColorName(color=Color.RED)
        assert parse_expression("redder") == ref("redder")

    def test_color_rgb_values(self):
        assert Color.ORANGE.rgb == (1.0, 0.5, 0.0)
        assert Color.PURPLE.rgb == (1.0, 0.0, 1.0)

    def test_rgb(self):
        assert parse_expression("rgb(1, 0.5, x)") == ColorRGB(r=num(1), g=num(0.5), b=ref("x"))

    def test_rgb_without_arguments_is_identifier(self):
        assert parse_expression("rgb") == ref("rgb")

    def test_vector(self):
        assert parse_expression("<1, -2, a + 3>") == Vector(
            x=num(1), y=Negate(operand=num(2)), z=binop(ref("a"), "+", num(3)),
        )

    def test_vector_compared(self):
        expr = parse_expression("<1, 2, 3> > x")
        assert expr.op == ">"
        assert isinstance(expr.left, Vector)

    def test_texture(self):
        assert parse_expression("texture('floor.png')") == TextureRef(
            path=StringLiteral(value="floor.png"),
        )

    def test_object_constructor(self):
        assert parse_expression("sphere(<0, 0, 0>, 1)") == ObjectConstructor(
            kind=ObjectKind.SPHERE,
            args=(Vector(x=num(0), y=num(0), z=num(0)), num(1)),
        )

    def test_param_list_commas_are_optional(self):
        expr = parse_expression("csg(a b 'union',)")
        assert expr.kind == ObjectKind.CSG
        assert expr.args == (ref("a"), ref("b"), StringLiteral(value="union"))

    def test_empty_param_list(self):
        assert parse_expression("cube()") == ObjectConstructor(kind=ObjectKind.CUBE, args=())

    def test_strings(self):
        assert parse_expression('"x y"') == StringLiteral(value="x y")
        assert parse_expression("'x'").quote == "'"

    def test_color_times_number(self):
        assert parse_expression("white * 0.5") == binop(ColorName(color=Color.WHITE), "*", num(0.5))


# ===================================================================
# Statements
# ===================================================================


class TestAssignment:

    def test_keyword_prefix_identifier(self):
        program = parse("drawing = 5")
        assert program.statements == (Assignment(name="drawing", value=num(5)),)

    def test_local(self):
        stmt = parse("local offset = size / 2").statements[0]
        assert stmt.is_local is True
        assert stmt.name == "offset"

    def test_contextual_word_as_variable(self):
        """`do` starts a block, but `do = 5` still parses as an assignment."""
        assert parse("do = 5").statements == (Assignment(name="do", value=num(5)),)
        assert parse("end = 1").statements[0].name == "end"

    def test_assigning_to_color_name(self):
        assert parse("red = 2").statements[0].name == "red"


class TestBlocks:
    """if / while / do / function blocks closed by end."""

    def test_if(self):
        program = parse("if 1 < 2 then draw(cube(1)) end")
        assert len(program.statements) == 1
        stmt = program.statements[0]
        assert isinstance(stmt, IfStmt)
        assert stmt.condition == binop(num(1), "<", num(2))
        assert stmt.body == (
            Command(name=CommandKind.DRAW, args=(ObjectConstructor(kind=ObjectKind.CUBE, args=(num(1),)),)),
        )

    def test_if_without_comparison(self):
        assert parse("if x then end").statements == (IfStmt(condition=ref("x"), body=()),)

    def test_while(self):
        stmt = parse("while i < 3 do i = i + 1 end").statements[0]
        assert isinstance(stmt, WhileStmt)
        assert stmt.body == (Assignment(name="i", value=binop(ref("i"), "+", num(1))),)

    def test_do(self):
        stmt = parse("do a = 1 b = 2 end").statements[0]
        assert isinstance(stmt, DoStmt)
        assert [s.name for s in stmt.body] == ["a", "b"]

    def test_nested_blocks(self):
        stmt = parse("while a < b do if c then do end end end").statements[0]
        assert isinstance(stmt.body[0], IfStmt)
        assert stmt.body[0].body == (DoStmt(body=()),)

    def test_function(self):
        stmt = parse("function f(a, b) draw(a) end").statements[0]
        assert stmt == FunctionDef(
            name="f", params=("a", "b"),
            body=(Command(name=CommandKind.DRAW, args=(ref("a"),)),),
        )

    def test_function_params_without_commas(self):
        assert parse("function f(a b c) end").statements[0].params == ("a", "b", "c")

    def test_function_without_params(self):
        assert parse("function f() end").statements[0].params == ()


class TestCommands:

    def test_call(self):
        assert parse("call f(1, 2)").statements == (FunctionCall(name="f", args=(num(1), num(2))),)

    def test_append_light(self):
        stmt = parse("append light(<0,0,-35>, white * 0.5, 100)").statements[0]
        assert isinstance(stmt, AppendLight)
        assert len(stmt.args) == 3
        assert stmt.args[2] == num(100)

    def test_plain_append(self):
        stmt = parse("append(sphere(1))").statements[0]
        assert stmt == Command(
            name=CommandKind.APPEND,
            args=(ObjectConstructor(kind=ObjectKind.SPHERE, args=(num(1),)),),
        )

    def test_append_of_variable_named_light(self):
        stmt = parse("append(light)").statements[0]
        assert stmt == Command(name=CommandKind.APPEND, args=(ref("light"),))

    def test_display(self):
        assert parse("display()").statements[0].name == CommandKind.DISPLAY

    def test_set_camera(self):
        stmt = parse("set camera(<0, 0, -100>)").statements[0]
        assert isinstance(stmt, SetCamera)
        assert isinstance(stmt.value, Vector)


class TestTransformation:
    """A transformation owns exactly one following statement."""

    def test_single_statement_body(self):
        stmt = parse("scale(1, 2, 3) draw(x)").statements[0]
        assert stmt == Transformation(
            kind=TransformKind.SCALE,
            args=(num(1), num(2), num(3)),
            body=Command(name=CommandKind.DRAW, args=(ref("x"),)),
        )

    def test_binds_only_next_statement(self):
        program = parse("translate(1, 0, 0) draw(a) draw(b)")
        assert len(program.statements) == 2
        assert isinstance(program.statements[0], Transformation)
        assert isinstance(program.statements[1], Command)

    def test_do_block_body(self):
        stmt = parse("rotate(0, 90, 0) do draw(a) draw(b) end").statements[0]
        assert stmt.kind == TransformKind.ROTATE
        assert isinstance(stmt.body, DoStmt)
        assert len(stmt.body.body) == 2

    def test_nested_transformations(self):
        stmt = parse("translate(0,0,1) scale(2,2,2) draw(a)").statements[0]
        assert stmt.body.kind == TransformKind.SCALE
        assert isinstance(stmt.body.body, Command)


# ===================================================================
# Programs
# ===================================================================


class TestProgram:

    def test_empty(self):
        assert parse("").statements == ()
        assert parse("// nothing here\n").statements == ()

    def test_order_is_preserved(self):
        program = parse("a = 1\nb = 2\nc = 3")
        assert [s.name for s in program.statements] == ["a", "b", "c"]

    def test_filename_and_locations(self):
        program = parse("x = 1\n  draw(x)", filename="s.scene")
        assert program.filename == "s.scene"
        loc = program.statements[1].location
        assert (loc.line, loc.column, loc.file) == (2, 3, "s.scene")

    def test_locations_do_not_affect_equality(self):
        assert parse("x=1") == parse("\n\n   x   =   1")

    def test_nodes_are_immutable(self):
        stmt = parse("x = 1").statements[0]
        with pytest.raises(dataclasses.FrozenInstanceError):
            stmt.name = "y"

    def test_memoization_does_not_change_result(self):
        with open(os.path.join(EXAMPLES, "fractal.scene")) as f:
            source = f.read()
        assert parse(source, memoize=True) == parse(source, memoize=False)

    def test_to_json(self):
        data = json.loads(parse("draw(sphere(1, red))").to_json())
        stmt = data["statements"][0]
        assert stmt["node"] == "Command"
        assert stmt["name"] == "draw"
        assert stmt["args"][0]["kind"] == "sphere"
        assert stmt["args"][0]["args"][1] == {
            "node": "ColorName", "color": "red", "location": {"line": 1, "column": 16},
        }

    def test_to_dict_of_expression(self):
        assert to_dict(num(1)) == {"node": "NumberLiteral", "value": 1}


class TestExampleScenes:
    """The bundled example scenes parse."""

    def test_globes(self):
        with open(os.path.join(EXAMPLES, "globes.scene")) as f:
            program = parse(f.read())
        kinds = [type(s).__name__ for s in program.statements]
        assert kinds == ["Command", "Assignment", "Assignment", "Command", "AppendLight", "SetCamera"]
        csg = program.statements[3].args[0]
        assert csg.kind == ObjectKind.CSG
        assert csg.args[2] == StringLiteral(value="difference")

    def test_recursive_function(self):
        with open(os.path.join(EXAMPLES, "fractal.scene")) as f:
            program = parse(f.read())
        func = next(s for s in program.statements
                    if isinstance(s, FunctionDef) and s.name == "drawHollowCube")
        assert func.params == ("depth",)
        (if_stmt,) = func.body
        assert isinstance(if_stmt, IfStmt)
        (do_stmt,) = if_stmt.body
        assert isinstance(do_stmt, DoStmt)
        assert len(do_stmt.body) == 4
        for call in do_stmt.body:
            assert call == FunctionCall(
                name="drawHollowCube", args=(binop(ref("depth"), "+", num(1)),),
            )
