"""
tests/test_rational.py - Tests for Exact Rational Without Reduction

Validates:
- Zero rule on construction and after every operation
- Components are never reduced
- DivisionByZero on zero divisors, lenient mod
- Sign-corrected comparison and integer rounding
- N/D parsing and float snapshots
"""

import pytest

from trts.rational import Rational, DivisionByZero


def r(num, den):
    return Rational.from_ints(num, den)


# =============================================================================
# CONSTRUCTION
# =============================================================================

class TestConstruction:
    """Tests for zero rule on construction."""

    def test_default_is_zero_over_one(self):
        """Rational() is the 0/1 initial value."""
        assert Rational() == Rational(0, 1)

    def test_from_ints_collapses_zero(self):
        """Zero numerator forces zero denominator."""
        assert r(0, 5) == Rational(0, 0), "0/5 should collapse to 0/0"
        assert r(0, 5).is_zero()
        assert r(0, 5).is_undefined()

    def test_zero_helper(self):
        """Rational.zero() is 0/0."""
        assert Rational.zero() == Rational(0, 0)

    def test_structural_equality(self):
        """2/4 and 1/2 are different values."""
        assert r(2, 4) != r(1, 2)
        assert r(2, 4) == Rational(2, 4)


# =============================================================================
# ARITHMETIC
# =============================================================================

class TestArithmetic:
    """Tests for add/sub/mul/div/neg/abs."""

    def test_add_cross_multiplies(self):
        """1/2 + 1/3 = 5/6."""
        assert r(1, 2).add(r(1, 3)) == r(5, 6)

    def test_add_never_reduces(self):
        """1/2 + 1/2 = 4/4, not 1/1."""
        result = r(1, 2) + r(1, 2)
        assert (result.num, result.den) == (4, 4), f"Got {result}"

    def test_sub_to_zero_collapses(self):
        """1/2 - 1/2 produces 0/0."""
        assert r(1, 2).sub(r(1, 2)) == Rational.zero()

    def test_zero_is_additive_identity(self):
        """x + 0/0 = x, 0/0 + x = x, x - 0/0 = x, 0/0 - x = -x."""
        x = r(3, 4)
        zero = Rational.zero()
        assert x.add(zero) == x
        assert zero.add(x) == x
        assert x.sub(zero) == x
        assert zero.sub(x) == r(-3, 4)

    def test_mul(self):
        """2/3 * 5/7 = 10/21."""
        assert r(2, 3).mul(r(5, 7)) == r(10, 21)

    def test_mul_by_zero(self):
        """Anything times 0/0 is 0/0."""
        assert r(2, 3).mul(Rational.zero()) == Rational.zero()

    def test_div(self):
        """(2/3) / (5/7) = 14/15."""
        assert r(2, 3).div(r(5, 7)) == r(14, 15)

    def test_div_by_zero_raises(self):
        """Zero divisor raises DivisionByZero (a ZeroDivisionError)."""
        with pytest.raises(DivisionByZero):
            r(1, 2).div(Rational.zero())
        assert issubclass(DivisionByZero, ZeroDivisionError)

    def test_neg_and_abs(self):
        """Negation flips the numerator, abs clears both signs."""
        assert -r(3, 4) == r(-3, 4)
        assert abs(r(-3, -4)) == r(3, 4)

    def test_delta(self):
        """delta is current minus previous."""
        assert r(3, 1).delta(r(1, 1)) == r(2, 1)


# =============================================================================
# MOD / ROUNDING
# =============================================================================

class TestModAndRounding:
    """Tests for mod, mod_numerator, floor, ceil, round."""

    def test_mod(self):
        """7/1 mod 3/1 = 1/1."""
        assert r(7, 1).mod(r(3, 1)) == r(1, 1)

    def test_mod_zero_modulus_returns_dividend(self):
        """A zero modulus leaves the dividend unchanged."""
        x = r(7, 2)
        assert x.mod(Rational.zero()) is x

    def test_mod_numerator_keeps_sign(self):
        """-7/2 wrapped by 3 gives -1/2."""
        assert r(-7, 2).mod_numerator(3) == r(-1, 2)

    def test_mod_numerator_to_zero(self):
        """6/5 wrapped by 3 collapses to 0/0."""
        assert r(6, 5).mod_numerator(3) == Rational.zero()

    def test_mod_numerator_disabled(self):
        """Bound 0 is a no-op."""
        x = r(7, 2)
        assert x.mod_numerator(0) == x

    def test_floor_ceil(self):
        """Floor and ceil on negative halves."""
        assert r(-7, 2).floor() == r(-4, 1)
        assert r(-7, 2).ceil() == r(-3, 1)
        assert r(7, 2).ceil() == r(4, 1)

    def test_round_half_up(self):
        """Halves round toward positive infinity."""
        assert r(5, 2).round() == r(3, 1)
        assert r(-5, 2).round() == r(-2, 1)
        assert r(7, 3).round() == r(2, 1)

    def test_round_zero_denominator_passthrough(self):
        """Values with a zero denominator are returned unchanged."""
        assert Rational.zero().round() == Rational.zero()


# =============================================================================
# COMPARISON
# =============================================================================

class TestComparison:
    """Tests for sign and cmp."""

    def test_sign_counts_denominator(self):
        """1/-2 is negative."""
        assert Rational(1, -2).sign() == -1
        assert r(-1, -2).sign() == 1

    def test_cmp_basic(self):
        """1/3 < 1/2 without reduction."""
        assert r(1, 3).cmp(r(1, 2)) == -1
        assert r(1, 2).cmp(r(1, 3)) == 1
        assert r(2, 4).cmp(r(1, 2)) == 0

    def test_cmp_negative_denominator(self):
        """1/-2 is below 1/3."""
        assert Rational(1, -2).cmp(r(1, 3)) == -1

    def test_cmp_against_zero(self):
        """The zero value sits between negatives and positives."""
        zero = Rational.zero()
        assert zero.cmp(r(1, 2)) == -1
        assert zero.cmp(r(-1, 2)) == 1
        assert r(1, 2).cmp(zero) == 1
        assert r(-1, 2).cmp(zero) == -1
        assert zero.cmp(zero) == 0


# =============================================================================
# PARSE / CONVERSIONS
# =============================================================================

class TestConversions:
    """Tests for parse, __str__, to_float."""

    def test_parse_with_spaces_and_sign(self):
        """' -3 / 4 ' parses to -3/4."""
        assert Rational.parse(" -3 / 4 ") == r(-3, 4)

    def test_parse_zero(self):
        """0/7 parses to the zero value."""
        assert Rational.parse("0/7") == Rational.zero()

    @pytest.mark.parametrize("text", ["3", "1/2/3", "a/b", "/4", ""])
    def test_parse_rejects(self, text):
        """Malformed text raises ValueError."""
        with pytest.raises(ValueError):
            Rational.parse(text)

    def test_parse_arbitrary_precision(self):
        """Big components survive parsing exactly."""
        big = 10 ** 60 + 7
        assert Rational.parse(f"{big}/3").num == big

    def test_str(self):
        """Rendered as N/D."""
        assert str(r(-3, 4)) == "-3/4"
        assert str(Rational.zero()) == "0/0"

    def test_to_float(self):
        """Float snapshots for analysis."""
        assert r(3, 4).to_float() == 0.75
        assert Rational.zero().to_float() == 0.0

    def test_to_float_saturates(self):
        """Huge values give +/-inf instead of raising."""
        assert r(10 ** 400, 1).to_float() == float("inf")
        assert r(-10 ** 400, 1).to_float() == float("-inf")
        assert Rational(1, 0).to_float() == float("inf")

    def test_frozen(self):
        """Rational is immutable."""
        x = r(1, 2)
        with pytest.raises(AttributeError):
            x.num = 5
