"""
Dual-representation numeric values.

A `Number` always carries both an integer and a floating-point
representation. Its `kind` decides which one is authoritative when an
operator chooses between integer and floating-point arithmetic.

The integer representation is a signed 64-bit two's-complement integer:
every integer produced by a literal, an operator or a float truncation is
wrapped into [-2**63, 2**63 - 1].
"""

import math
import numbers
from dataclasses import dataclass
from enum import Enum
from typing import Union

INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1
_UINT64_MASK = (1 << 64) - 1


class NumberKind(Enum):
    """Authoritative representation of a Number."""
    INTEGER = "integer"
    FLOAT = "float"


def wrap_int(value: int) -> int:
    """Wrap an arbitrary Python int into the signed 64-bit range."""
    value &= _UINT64_MASK
    if value > INT64_MAX:
        value -= 1 << 64
    return value


def truncate_float(value: float) -> int:
    """Truncate a float toward zero into the integer representation.

    Non-finite values have no integer counterpart and map to 0.
    """
    if not math.isfinite(value):
        return 0
    return wrap_int(int(value))


@dataclass
class Number:
    """
    A numeric value with both integer and float representations.

    Use the constructors rather than building instances directly:
        Number.integer(3)    # kind INTEGER, 3 / 3.0
        Number.real(2.5)     # kind FLOAT, 2 / 2.5
        Number.of(x)         # from a Number, int or float
    """
    kind: NumberKind
    int_value: int
    float_value: float

    @classmethod
    def integer(cls, value: int) -> "Number":
        """Create an integer-kind number."""
        ival = wrap_int(int(value))
        return cls(NumberKind.INTEGER, ival, float(ival))

    @classmethod
    def real(cls, value: float) -> "Number":
        """Create a float-kind number."""
        fval = float(value)
        return cls(NumberKind.FLOAT, truncate_float(fval), fval)

    @classmethod
    def of(cls, value: Union["Number", int, float]) -> "Number":
        """Coerce a Number, int or float into a new Number.

        Raises:
            TypeError: for booleans and non-numeric values
        """
        if isinstance(value, Number):
            return value.copy()
        if isinstance(value, bool):
            raise TypeError("bool is not a valid Number value")
        if isinstance(value, numbers.Integral):
            return cls.integer(int(value))
        if isinstance(value, numbers.Real):
            return cls.real(float(value))
        raise TypeError(f"cannot convert {type(value).__name__} to Number")

    @property
    def is_integer(self) -> bool:
        return self.kind is NumberKind.INTEGER

    @property
    def value(self) -> Union[int, float]:
        """The authoritative representation as a plain Python number."""
        return self.int_value if self.is_integer else self.float_value

    def __int__(self) -> int:
        return self.int_value

    def __float__(self) -> float:
        return self.float_value

    def copy(self) -> "Number":
        return Number(self.kind, self.int_value, self.float_value)

    def negate(self) -> "Number":
        """Negate both representations in place; returns self."""
        self.int_value = wrap_int(-self.int_value)
        self.float_value = -self.float_value
        return self

    def abs(self) -> "Number":
        """Take the absolute value of both representations in place; returns self."""
        self.int_value = wrap_int(abs(self.int_value))
        self.float_value = abs(self.float_value)
        return self

    def __str__(self) -> str:
        return str(self.value)
