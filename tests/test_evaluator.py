"""
Unit tests for expression evaluation and promotion rules.
"""

import math

import pytest
from xmlfunc import (
    build, build_argdefs, evaluate, parse_document, Number, NumberKind,
    Const, ArgRef, Unary, UnaryKind, EvaluationError,
)
from xmlfunc.number import INT64_MAX, INT64_MIN


ARGLIST = '<arglist><arg type="int" name="i"/><arg type="double" name="x"/></arglist>'


def run(markup: str, args=(3, 2.5), arglist: str = ARGLIST) -> Number:
    argdefs = build_argdefs(parse_document(arglist)[0])
    root = build(parse_document(markup)[0], argdefs)
    return evaluate(root, argdefs.bind(list(args)))


class TestLeaves:
    """Test constants and argument references."""

    @pytest.mark.parametrize("value", [Number.integer(4), Number.real(-1.25)])
    def test_constant_ignores_arguments(self, value):
        assert evaluate(Const(value), []) == value
        assert evaluate(Const(value), [Number.integer(9)]) == value

    def test_argument_reference(self):
        """ArgRef(1) over [Integer, Float] slots and [3, 2.5] yields FLOAT 2.5."""
        result = run('<arg index="1"/>')
        assert result.kind is NumberKind.FLOAT
        assert result.float_value == 2.5

    def test_tree_not_mutated(self):
        """neg and abs work on copies, never on constants in the tree."""
        const = Const(Number.integer(5))
        node = Unary(UnaryKind.NEG, const)
        assert evaluate(node, []).int_value == -5
        assert evaluate(node, []).int_value == -5
        assert const.value == Number.integer(5)

    def test_arguments_not_mutated(self):
        args = [Number.integer(5)]
        evaluate(Unary(UnaryKind.NEG, ArgRef(0)), args)
        assert args[0] == Number.integer(5)


class TestVariadic:
    """Test add and mult promotion."""

    def test_all_integer_add(self):
        result = run('<add><int value="2"/><int value="3"/><int value="4"/></add>')
        assert result == Number.integer(9)

    def test_mixed_add(self):
        result = run('<add><int value="2"/><double value="3.0"/><int value="4"/></add>')
        assert result.kind is NumberKind.FLOAT
        assert result.float_value == 9.0

    def test_mult_with_arguments(self):
        result = run('<mult arg1="i" arg2="x"/>')
        assert result.kind is NumberKind.FLOAT
        assert result.float_value == 7.5

    def test_integer_mult(self):
        assert run('<mult arg1="i" arg2="4"/>') == Number.integer(12)

    def test_single_operand(self):
        assert run('<add arg1="i"/>') == Number.integer(3)

    def test_integer_overflow_wraps(self):
        result = run(f'<add arg1="{INT64_MAX}" arg2="1"/>')
        assert result.int_value == INT64_MIN
        assert result.kind is NumberKind.INTEGER

    def test_float_accumulator_uses_float_values(self):
        """The float result sums float representations, not truncated integers."""
        result = run('<add arg1="1.5" arg2="1.5"/>')
        assert result.float_value == 3.0
        assert result.int_value == 3


class TestBinary:
    """Test sub, div, mod, pow and atan2."""

    def test_integer_division_truncates(self):
        assert run('<div arg1="7" arg2="2"/>') == Number.integer(3)
        assert run('<div arg1="-7" arg2="2"/>') == Number.integer(-3)

    def test_float_division(self):
        result = run('<div arg1="7.0" arg2="2"/>')
        assert result.kind is NumberKind.FLOAT
        assert result.float_value == 3.5

    def test_integer_modulo_follows_dividend(self):
        assert run('<mod arg1="-7" arg2="2"/>') == Number.integer(-1)
        assert run('<mod arg1="7" arg2="-2"/>') == Number.integer(1)

    def test_float_modulo_is_fmod(self):
        result = run('<mod arg1="-7.0" arg2="2"/>')
        assert result.kind is NumberKind.FLOAT
        assert result.float_value == math.fmod(-7.0, 2.0)
        assert result.float_value == -1.0

    def test_integer_subtraction(self):
        assert run('<sub arg1="i" arg2="5"/>') == Number.integer(-2)

    def test_float_subtraction(self):
        result = run('<sub arg1="x" arg2="1"/>')
        assert result.kind is NumberKind.FLOAT
        assert result.float_value == 1.5

    def test_pow_is_always_float(self):
        result = run('<pow arg1="2" arg2="10"/>')
        assert result.kind is NumberKind.FLOAT
        assert result.float_value == 1024.0

    def test_atan2_is_always_float(self):
        result = run('<atan2 arg1="1" arg2="1"/>')
        assert result.kind is NumberKind.FLOAT
        assert result.float_value == pytest.approx(math.pi / 4)

    def test_integer_division_by_zero(self):
        with pytest.raises(EvaluationError) as exc:
            run('<div arg1="1" arg2="0"/>')
        assert exc.value.code == "E401"

    def test_integer_modulo_by_zero(self):
        with pytest.raises(EvaluationError) as exc:
            run('<mod arg1="1" arg2="0"/>')
        assert exc.value.code == "E401"

    def test_float_division_by_zero(self):
        """Float division follows IEEE-754."""
        assert run('<div arg1="1.0" arg2="0"/>').float_value == math.inf
        assert math.isnan(run('<mod arg1="1.0" arg2="0"/>').float_value)

    def test_min_divided_by_minus_one_wraps(self):
        assert run(f'<div arg1="{INT64_MIN}" arg2="-1"/>') == Number.integer(INT64_MIN)


class TestUnary:
    """Test single-operand operators."""

    def test_neg_preserves_kind(self):
        assert run('<neg arg="i"/>') == Number.integer(-3)
        assert run('<neg arg="x"/>') == Number.real(-2.5)

    def test_abs_preserves_kind(self):
        assert run('<abs arg="-4"/>') == Number.integer(4)
        assert run('<abs arg="-4.5"/>') == Number.real(4.5)

    @pytest.mark.parametrize("tag,operand,expected", [
        ("sin", "0", 0.0),
        ("cos", "0", 1.0),
        ("tan", "0", 0.0),
        ("asin", "1", math.pi / 2),
        ("acos", "1", 0.0),
        ("atan", "1", math.pi / 4),
        ("deg", "3.141592653589793", 180.0),
        ("rad", "180", math.pi),
        ("sqrt", "16", 4.0),
        ("exp", "0", 1.0),
        ("ln", "1", 0.0),
        ("log", "1000", 3.0),
    ])
    def test_float_functions(self, tag, operand, expected):
        """Transcendental operators produce floats even for integer operands."""
        result = run(f'<{tag} arg="{operand}"/>')
        assert result.kind is NumberKind.FLOAT
        assert result.float_value == pytest.approx(expected)

    def test_log_with_base(self):
        assert run('<log arg="8" base="2"/>').float_value == pytest.approx(3.0)

    def test_ieee_domain_errors(self):
        """Domain errors give NaN and infinities rather than exceptions."""
        assert math.isnan(run('<sqrt arg="-1"/>').float_value)
        assert run('<ln arg="0"/>').float_value == -math.inf
        assert run('<exp arg="1000"/>').float_value == math.inf

    def test_non_finite_result_integer_is_zero(self):
        result = run('<sqrt arg="-1"/>')
        assert result.int_value == 0


class TestNested:
    """Test composed expressions."""

    def test_circle_area(self):
        markup = '<mult arg1="3.141592653589793"><pow arg1="x" arg2="2"/></mult>'
        assert run(markup).float_value == pytest.approx(math.pi * 6.25)

    def test_integer_pipeline(self):
        markup = '<add arg1="1"><mult arg1="i" arg2="i"/><neg><int value="2"/></neg></add>'
        assert run(markup) == Number.integer(8)
