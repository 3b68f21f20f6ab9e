"""
trts/rational.py - Exact Rational Without Reduction

A numerator/denominator pair of Python ints. Two rules hold for every value
produced by arithmetic:

- Zero rule: numerator == 0 if and only if denominator == 0. The zero value
  is 0/0, which doubles as the "undefined" marker.
- No reduction: components are never divided by a common factor. 2/4 stays
  2/4 and compares structurally unequal to 1/2.

Rational() is 0/1, the defined starting value before any transform runs;
from_ints() and all operations collapse a zero numerator to 0/0. The zero
value is the additive identity: its 0 denominator is never multiplied into
a sum or difference.
"""

import sys
from dataclasses import dataclass

# Unreduced components pass CPython's default 4300-digit int/str limit within
# two ticks; "N/D" rendering must never fail.
if hasattr(sys, "set_int_max_str_digits"):
    sys.set_int_max_str_digits(0)


class DivisionByZero(ZeroDivisionError):
    """Divisor numerator is zero."""


def _sgn(value: int) -> int:
    return (value > 0) - (value < 0)


@dataclass(frozen=True)
class Rational:
    """Immutable exact rational; equality compares raw components."""
    num: int = 0
    den: int = 1

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def from_ints(cls, num: int, den: int) -> "Rational":
        """Build num/den, enforcing the zero rule."""
        if num == 0:
            return cls(0, 0)
        return cls(num, den)

    @classmethod
    def zero(cls) -> "Rational":
        return cls(0, 0)

    @classmethod
    def parse(cls, text: str) -> "Rational":
        """
        Parse "N/D" (arbitrary precision, optional sign on either part).

        Raises:
            ValueError: if text is not two base-10 integers around one slash
        """
        if not isinstance(text, str) or text.count("/") != 1:
            raise ValueError(f"expected 'N/D', got {text!r}")
        num_text, den_text = (part.strip() for part in text.split("/"))
        if not num_text or not den_text:
            raise ValueError(f"expected 'N/D', got {text!r}")
        try:
            num = int(num_text, 10)
            den = int(den_text, 10)
        except ValueError:
            raise ValueError(f"expected 'N/D', got {text!r}") from None
        return cls.from_ints(num, den)

    # -------------------------------------------------------------------------
    # Predicates
    # -------------------------------------------------------------------------

    def is_zero(self) -> bool:
        return self.num == 0

    def is_undefined(self) -> bool:
        """Denominator is zero (the 0/0 sentinel, or an infinite seed)."""
        return self.den == 0

    def sign(self) -> int:
        """Sign of the value; the denominator's sign counts."""
        if self.den == 0:
            return _sgn(self.num)
        return _sgn(self.num) * _sgn(self.den)

    # -------------------------------------------------------------------------
    # Arithmetic
    # -------------------------------------------------------------------------

    def add(self, other: "Rational") -> "Rational":
        """Sum by cross multiplication; a zero operand contributes nothing."""
        if self.is_zero():
            return Rational.from_ints(other.num, other.den)
        if other.is_zero():
            return Rational.from_ints(self.num, self.den)
        return Rational.from_ints(self.num * other.den + other.num * self.den,
                                  self.den * other.den)

    def sub(self, other: "Rational") -> "Rational":
        if self.is_zero():
            return other.neg()
        if other.is_zero():
            return Rational.from_ints(self.num, self.den)
        return Rational.from_ints(self.num * other.den - other.num * self.den,
                                  self.den * other.den)

    def mul(self, other: "Rational") -> "Rational":
        return Rational.from_ints(self.num * other.num, self.den * other.den)

    def div(self, other: "Rational") -> "Rational":
        """
        self / other. Only the divisor's numerator is consulted.

        Raises:
            DivisionByZero: other.num == 0
        """
        if other.num == 0:
            raise DivisionByZero(f"{self} / {other}")
        return Rational.from_ints(self.num * other.den, self.den * other.num)

    def neg(self) -> "Rational":
        return Rational.from_ints(-self.num, self.den)

    def abs(self) -> "Rational":
        return Rational.from_ints(abs(self.num), abs(self.den))

    def delta(self, previous: "Rational") -> "Rational":
        """Change from previous to self."""
        return self.sub(previous)

    def mod(self, modulus: "Rational") -> "Rational":
        """
        self - modulus * floor(self / modulus).

        A zero modulus returns self unchanged instead of failing. This is
        deliberately more lenient than div(); koppa wrapping relies on it.
        """
        if modulus.is_zero():
            return self
        quotient = self.div(modulus).floor()
        return self.sub(modulus.mul(quotient))

    def mod_numerator(self, bound: int) -> "Rational":
        """Reduce |num| modulo bound keeping the sign; denominator untouched."""
        if bound <= 0:
            return self
        wrapped = abs(self.num) % bound
        if self.num < 0:
            wrapped = -wrapped
        return Rational.from_ints(wrapped, self.den)

    # -------------------------------------------------------------------------
    # Integer rounding (values with a zero denominator pass through)
    # -------------------------------------------------------------------------

    def floor(self) -> "Rational":
        if self.den == 0:
            return self
        return Rational.from_ints(self.num // self.den, 1)

    def ceil(self) -> "Rational":
        if self.den == 0:
            return self
        return Rational.from_ints(-((-self.num) // self.den), 1)

    def round(self) -> "Rational":
        """Nearest integer, halves rounded up."""
        if self.den == 0:
            return self
        return Rational.from_ints((2 * self.num + self.den) // (2 * self.den), 1)

    # -------------------------------------------------------------------------
    # Comparison
    # -------------------------------------------------------------------------

    def cmp(self, other: "Rational") -> int:
        """
        -1, 0 or 1 as self <, =, > other, by cross multiplication.

        The zero value orders as 0: against a nonzero value the result is
        the sign of that value (negated when the zero is on the left).
        """
        if self.is_zero() and other.is_zero():
            return 0
        if self.is_zero():
            return -other.sign()
        if other.is_zero():
            return self.sign()
        lhs = self.num * other.den
        rhs = other.num * self.den
        orientation = _sgn(self.den * other.den) or 1
        return _sgn(lhs - rhs) * orientation

    # -------------------------------------------------------------------------
    # Conversions
    # -------------------------------------------------------------------------

    def to_float(self) -> float:
        """Float snapshot for analysis only; never fed back into the engine."""
        if self.den == 0:
            return 0.0 if self.num == 0 else float("inf") * _sgn(self.num)
        try:
            return self.num / self.den
        except OverflowError:
            return float("inf") * self.sign()

    def __str__(self) -> str:
        return f"{self.num}/{self.den}"

    # Operator sugar for the arithmetic above
    __add__ = add
    __sub__ = sub
    __mul__ = mul
    __truediv__ = div
    __neg__ = neg
    __abs__ = abs
