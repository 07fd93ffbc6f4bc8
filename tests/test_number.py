"""
Unit tests for dual-representation numbers.
"""

import math

import numpy as np
import pytest

from xmlfunc import Number, NumberKind
from xmlfunc.number import INT64_MIN, INT64_MAX, wrap_int, truncate_float


class TestConstruction:
    """Test Number constructors."""

    def test_integer(self):
        n = Number.integer(3)
        assert n.kind is NumberKind.INTEGER
        assert n.int_value == 3
        assert n.float_value == 3.0
        assert n.is_integer

    def test_real_truncates_toward_zero(self):
        """The integer representation of a float truncates toward zero."""
        assert Number.real(2.7).int_value == 2
        assert Number.real(-2.7).int_value == -2
        assert Number.real(-2.7).float_value == -2.7
        assert not Number.real(2.7).is_integer

    def test_non_finite_float_has_zero_integer(self):
        assert Number.real(math.inf).int_value == 0
        assert Number.real(-math.inf).int_value == 0
        assert Number.real(math.nan).int_value == 0

    def test_of_int_and_float(self):
        assert Number.of(4) == Number.integer(4)
        assert Number.of(4.0) == Number.real(4.0)

    def test_of_numpy_scalars(self):
        """NumPy scalars are accepted as ints and floats."""
        assert Number.of(np.int64(7)) == Number.integer(7)
        assert Number.of(np.float64(1.5)) == Number.real(1.5)

    def test_of_number_copies(self):
        original = Number.integer(5)
        copied = Number.of(original)
        assert copied == original
        assert copied is not original

    def test_of_rejects_bool(self):
        with pytest.raises(TypeError):
            Number.of(True)

    def test_of_rejects_strings(self):
        with pytest.raises(TypeError):
            Number.of("1")

    def test_value_follows_kind(self):
        assert Number.integer(3).value == 3
        assert isinstance(Number.integer(3).value, int)
        assert Number.real(3.0).value == 3.0
        assert isinstance(Number.real(3.0).value, float)

    def test_conversions(self):
        n = Number.real(2.5)
        assert int(n) == 2
        assert float(n) == 2.5
        assert str(Number.integer(-4)) == "-4"


class TestIntegerWidth:
    """Test signed 64-bit wrapping."""

    def test_wrap_in_range(self):
        assert wrap_int(0) == 0
        assert wrap_int(INT64_MAX) == INT64_MAX
        assert wrap_int(INT64_MIN) == INT64_MIN

    def test_wrap_overflow(self):
        assert wrap_int(INT64_MAX + 1) == INT64_MIN
        assert wrap_int(INT64_MIN - 1) == INT64_MAX

    def test_integer_constructor_wraps(self):
        assert Number.integer(2 ** 63).int_value == INT64_MIN
        assert Number.integer(2 ** 64 + 5).int_value == 5

    def test_truncate_large_float_wraps(self):
        assert truncate_float(2.0 ** 64) == 0
        assert truncate_float(-0.5) == 0


class TestInPlaceTransforms:
    """Test negate() and abs()."""

    def test_negate_in_place(self):
        n = Number.integer(5)
        result = n.negate()
        assert result is n
        assert n.int_value == -5
        assert n.float_value == -5.0
        assert n.kind is NumberKind.INTEGER

    def test_negate_float(self):
        n = Number.real(2.5).negate()
        assert n.float_value == -2.5
        assert n.int_value == -2

    def test_negate_min_wraps(self):
        """Negating the most negative integer wraps to itself."""
        assert Number.integer(INT64_MIN).negate().int_value == INT64_MIN

    def test_abs(self):
        n = Number.real(-2.5).abs()
        assert n.float_value == 2.5
        assert n.int_value == 2
        assert n.kind is NumberKind.FLOAT
        assert Number.integer(-7).abs() == Number.integer(7)

    def test_copy_is_independent(self):
        original = Number.integer(3)
        copied = original.copy()
        copied.negate()
        assert original.int_value == 3
