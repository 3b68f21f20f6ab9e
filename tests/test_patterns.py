"""
tests/test_patterns.py - Tests for Pattern Detection and Ratio Triggers
"""

import pytest

from trts.constants import RatioTriggerMode
from trts.patterns import (
    has_pattern_component,
    is_fibonacci,
    is_perfect_power,
    is_prime_signed,
    is_twin_prime,
    pattern_hits,
    prime_count,
    ratio_in_range,
    ratio_threshold_outside,
)
from trts.rational import Rational
from trts.types_config import TRTSConfig
from trts.types_state import TRTSState


def r(num, den):
    return Rational.from_ints(num, den)


class TestIntegerPredicates:
    """Tests for the integer checks."""

    @pytest.mark.parametrize("value,expected", [
        (2, True), (7, True), (-7, True), (1, False), (0, False), (-1, False), (9, False),
    ])
    def test_is_prime_signed(self, value, expected):
        """Primality of the magnitude."""
        assert is_prime_signed(value) is expected

    def test_large_prime(self):
        """Mersenne prime 2^127 - 1."""
        assert is_prime_signed(2 ** 127 - 1)

    @pytest.mark.parametrize("value,expected", [
        (0, True), (1, True), (2, True), (8, True), (144, True), (9, False), (-8, False),
    ])
    def test_is_fibonacci(self, value, expected):
        """5n^2 +/- 4 square test."""
        assert is_fibonacci(value) is expected

    @pytest.mark.parametrize("value,expected", [
        (8, True), (9, True), (32, True), (12, False), (1, False), (0, False),
    ])
    def test_is_perfect_power(self, value, expected):
        """b**e with e >= 2."""
        assert is_perfect_power(value) is expected

    def test_is_twin_prime(self):
        """5 pairs with 3 and 7; 23 has no twin."""
        assert is_twin_prime(5)
        assert not is_twin_prime(23)
        assert not is_twin_prime(9)


class TestPatternHits:
    """Tests for rational component checks."""

    def test_numerator_prime_only_by_default(self):
        """Optional detectors stay off unless enabled."""
        assert pattern_hits(TRTSConfig(), r(5, 8)) == {"num_prime"}

    def test_denominator_check(self):
        """Denominators are inspected on request."""
        config = TRTSConfig()
        assert has_pattern_component(config, r(4, 7), check_num=True, check_den=True)
        assert not has_pattern_component(config, r(4, 7))

    def test_enabled_detectors(self):
        """Twin prime, Fibonacci and perfect power toggles."""
        config = TRTSConfig(twin_prime_trigger=True, fibonacci_trigger=True,
                            perfect_power_trigger=True)
        assert pattern_hits(config, r(5, 1)) == {"num_prime", "num_twin_prime", "num_fibonacci"}
        assert "num_perfect_power" in pattern_hits(config, r(8, 1))
        assert "den_perfect_power" in pattern_hits(config, r(1, 9), check_num=False, check_den=True)

    def test_prime_count(self):
        """Counts prime numerators among upsilon, beta, koppa."""
        state = TRTSState.from_config(TRTSConfig())
        state.upsilon, state.beta, state.koppa = r(2, 1), r(4, 1), r(5, 1)
        assert prime_count(state) == 2


class TestRatioTriggers:
    """Tests for exact ratio windows."""

    def _state(self, upsilon, beta):
        state = TRTSState.from_config(TRTSConfig())
        state.upsilon, state.beta = upsilon, beta
        return state

    def test_golden_window(self):
        """8/5 is inside (3/2, 17/10); 3/2 itself is excluded."""
        config = TRTSConfig(ratio_trigger_mode=RatioTriggerMode.GOLDEN)
        assert ratio_in_range(config, self._state(r(8, 5), r(1, 1)))
        assert not ratio_in_range(config, self._state(r(3, 2), r(1, 1)))

    def test_none_mode(self):
        """NONE never triggers."""
        assert not ratio_in_range(TRTSConfig(), self._state(r(8, 5), r(1, 1)))

    def test_zero_beta(self):
        """An undefined ratio never triggers."""
        config = TRTSConfig(ratio_trigger_mode=RatioTriggerMode.GOLDEN)
        assert not ratio_in_range(config, self._state(r(8, 5), Rational.zero()))

    def test_custom_requires_toggle(self):
        """CUSTOM uses the configured bounds only when enabled."""
        config = TRTSConfig(ratio_trigger_mode=RatioTriggerMode.CUSTOM,
                            ratio_custom_lower=r(1, 1), ratio_custom_upper=r(3, 1))
        state = self._state(r(2, 1), r(1, 1))
        assert not ratio_in_range(config, state)
        enabled = TRTSConfig(ratio_trigger_mode=RatioTriggerMode.CUSTOM, ratio_custom_range=True,
                             ratio_custom_lower=r(1, 1), ratio_custom_upper=r(3, 1))
        assert ratio_in_range(enabled, state)

    def test_threshold(self):
        """|ratio| outside [1/2, 2] fires the safety trigger."""
        config = TRTSConfig(ratio_threshold_psi=True)
        assert ratio_threshold_outside(config, self._state(r(5, 1), r(1, 1)))
        assert ratio_threshold_outside(config, self._state(r(-1, 3), r(1, 1)))
        assert not ratio_threshold_outside(config, self._state(r(1, 1), r(1, 1)))
        assert not ratio_threshold_outside(TRTSConfig(), self._state(r(5, 1), r(1, 1)))
