"""
trts/patterns.py - Pattern Detection and Ratio Triggers

Evaluation-only checks that decide when the rho latch is set and when the
memory phase requests a psi fire. Nothing here mutates state.
"""

from typing import Optional, Set, Tuple

from sympy import integer_nthroot, isprime, perfect_power

from .constants import (
    RATIO_SAFETY_LOWER,
    RATIO_SAFETY_UPPER,
    RATIO_WINDOWS,
    RatioTriggerMode,
)
from .rational import Rational
from .types_config import TRTSConfig
from .types_state import TRTSState


# =============================================================================
# INTEGER PREDICATES
# =============================================================================

def is_prime_signed(value: int) -> bool:
    """Probabilistic primality of |value|; magnitudes below 2 are not prime."""
    magnitude = abs(value)
    return magnitude >= 2 and bool(isprime(magnitude))


def is_square(value: int) -> bool:
    if value < 0:
        return False
    return integer_nthroot(value, 2)[1]


def is_fibonacci(value: int) -> bool:
    """n >= 0 is Fibonacci iff 5n^2 + 4 or 5n^2 - 4 is a perfect square."""
    if value < 0:
        return False
    if value <= 1:
        return True
    base = 5 * value * value
    return is_square(base + 4) or is_square(base - 4)


def is_perfect_power(value: int) -> bool:
    """value = b**e for some e >= 2; values <= 1 never qualify."""
    if value <= 1:
        return False
    return perfect_power(value) is not False


def is_twin_prime(value: int) -> bool:
    """value is prime and value + 2 or value - 2 is prime as well."""
    if not is_prime_signed(value):
        return False
    return is_prime_signed(value + 2) or is_prime_signed(value - 2)


# =============================================================================
# RATIONAL PATTERN CHECKS
# =============================================================================

def pattern_hits(config: TRTSConfig, value: Rational,
                 check_num: bool = True, check_den: bool = False) -> Set[str]:
    """
    Names of every enabled pattern found in value's components.

    Args:
        config: TRTSConfig with the optional trigger toggles
        value: Rational to inspect
        check_num: Inspect the numerator
        check_den: Inspect the denominator

    Returns:
        Set of hit names, e.g. {"num_prime", "den_fibonacci"}
    """
    hits = set()

    if check_num:
        num = value.num
        if is_prime_signed(num):
            hits.add("num_prime")
        if config.twin_prime_trigger and is_twin_prime(num):
            hits.add("num_twin_prime")
        if config.fibonacci_trigger and is_fibonacci(abs(num)):
            hits.add("num_fibonacci")
        if config.perfect_power_trigger and is_perfect_power(abs(num)):
            hits.add("num_perfect_power")

    if check_den:
        den = value.den
        if is_prime_signed(den):
            hits.add("den_prime")
        if config.fibonacci_trigger and is_fibonacci(den):
            hits.add("den_fibonacci")
        if config.perfect_power_trigger and is_perfect_power(den):
            hits.add("den_perfect_power")

    return hits


def has_pattern_component(config: TRTSConfig, value: Rational,
                          check_num: bool = True, check_den: bool = False) -> bool:
    """True when any single enabled check hits."""
    return bool(pattern_hits(config, value, check_num, check_den))


def prime_count(state: TRTSState) -> int:
    """How many of upsilon, beta, koppa have a prime numerator magnitude."""
    return sum(1 for r in (state.upsilon, state.beta, state.koppa)
               if is_prime_signed(r.num))


# =============================================================================
# RATIO TRIGGERS
# =============================================================================

def current_ratio(state: TRTSState) -> Optional[Rational]:
    """upsilon / beta, or None while beta is the zero value."""
    if state.beta.is_zero():
        return None
    return state.upsilon.div(state.beta)


def ratio_bounds(config: TRTSConfig) -> Optional[Tuple[Rational, Rational]]:
    """Exclusive (lower, upper) window for the configured ratio trigger."""
    mode = config.ratio_trigger_mode
    if mode is RatioTriggerMode.CUSTOM:
        if not config.ratio_custom_range:
            return None
        return config.ratio_custom_lower, config.ratio_custom_upper
    if mode not in RATIO_WINDOWS:
        return None
    lower, upper = RATIO_WINDOWS[mode]
    return Rational.from_ints(*lower), Rational.from_ints(*upper)


def ratio_in_range(config: TRTSConfig, state: TRTSState) -> bool:
    """upsilon/beta lies strictly inside the configured constant window."""
    if config.ratio_trigger_mode is RatioTriggerMode.NONE:
        return False
    ratio = current_ratio(state)
    bounds = ratio_bounds(config)
    if ratio is None or bounds is None:
        return False
    lower, upper = bounds
    return ratio.cmp(lower) > 0 and ratio.cmp(upper) < 0


def ratio_threshold_outside(config: TRTSConfig, state: TRTSState) -> bool:
    """|upsilon/beta| has left the safety band [1/2, 2]."""
    if not config.ratio_threshold_psi:
        return False
    ratio = current_ratio(state)
    if ratio is None:
        return False
    magnitude = ratio.abs()
    return (magnitude.cmp(Rational.from_ints(*RATIO_SAFETY_LOWER)) < 0
            or magnitude.cmp(Rational.from_ints(*RATIO_SAFETY_UPPER)) > 0)
