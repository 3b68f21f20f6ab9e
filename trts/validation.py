"""
trts/validation.py - Invariant Auditing

Checks the register state at microtick boundaries. Findings are returned as
violation dicts; the scheduler records them and never aborts the run.
"""

from typing import List

from .constants import KOPPA_STACK_CAPACITY, NO_SAMPLE_INDEX
from .rational import Rational
from .types_state import TRTSState


def satisfies_zero_rule(value: Rational) -> bool:
    """numerator == 0 if and only if denominator == 0."""
    return (value.num == 0) == (value.den == 0)


def check_zero_rule(state: TRTSState) -> List[str]:
    """
    Names of every register that breaks the zero rule.

    Args:
        state: TRTSState to audit

    Returns:
        List of register names (empty when the state is sound)
    """
    return [name for name, value in state.registers().items()
            if not satisfies_zero_rule(value)]


def validate_state(state: TRTSState, tick: int, microtick: int) -> List[dict]:
    """Audit zero rule, history bound and sample index."""
    violations = []

    for name in check_zero_rule(state):
        value = state.registers()[name]
        violations.append({
            "tick": tick,
            "microtick": microtick,
            "type": "zero_rule_violation",
            "register": name,
            "value": str(value),
        })

    if state.koppa_stack_size > KOPPA_STACK_CAPACITY:
        violations.append({
            "tick": tick,
            "microtick": microtick,
            "type": "koppa_stack_overflow",
            "size": state.koppa_stack_size,
        })

    index = state.koppa_sample_index
    if index != NO_SAMPLE_INDEX and not 0 <= index < state.koppa_stack_size:
        violations.append({
            "tick": tick,
            "microtick": microtick,
            "type": "koppa_sample_out_of_range",
            "index": index,
        })

    return violations
