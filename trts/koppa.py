"""
trts/koppa.py - Koppa Accrual

Called on every M and R microtick. Decides whether koppa mutates and always
refreshes the sampled koppa value that sinks report.
"""

from .constants import (
    KOPPA_SAMPLE_SLOTS,
    KOPPA_STACK_CAPACITY,
    NO_SAMPLE_INDEX,
    KoppaMode,
    KoppaTrigger,
)
from .rational import Rational
from .types_config import TRTSConfig
from .types_state import TRTSState


def koppa_stack_push(state: TRTSState, value: Rational) -> None:
    """Append to history; when full, shift everything down and drop slot 0."""
    if state.koppa_stack_size == KOPPA_STACK_CAPACITY:
        state.koppa_stack = state.koppa_stack[1:] + [value]
    else:
        state.koppa_stack.append(value)


def koppa_update_sample(config: TRTSConfig, state: TRTSState, microtick: int) -> None:
    """Sample current koppa, or a history slot at microticks 5 and 11."""
    state.koppa_sample = state.koppa
    state.koppa_sample_index = NO_SAMPLE_INDEX
    if not config.multi_level_koppa:
        return
    slot = KOPPA_SAMPLE_SLOTS.get(microtick)
    if slot is not None and state.koppa_stack_size > slot:
        state.koppa_sample = state.koppa_stack[slot]
        state.koppa_sample_index = slot


def koppa_triggered(config: TRTSConfig, state: TRTSState, psi_fired: bool,
                    is_memory_step: bool) -> bool:
    trigger = config.koppa_trigger
    if trigger is KoppaTrigger.ON_PSI:
        return psi_fired
    if trigger is KoppaTrigger.ON_MU_AFTER_PSI:
        return is_memory_step and not psi_fired and state.psi_was_recent
    return is_memory_step


def koppa_accrue(config: TRTSConfig, state: TRTSState, psi_fired: bool,
                 is_memory_step: bool, microtick: int) -> bool:
    """
    Apply the configured koppa operation if the trigger holds.

    Args:
        config: TRTSConfig
        state: TRTSState (mutated in place)
        psi_fired: Psi fired earlier in this microtick
        is_memory_step: Called from the M phase
        microtick: Current microtick (drives history sampling)

    Returns:
        True if koppa was mutated
    """
    triggered = koppa_triggered(config, state, psi_fired, is_memory_step)

    # Stays set until reset; ON_MU_AFTER_PSI keeps firing until the next psi.
    if psi_fired:
        state.psi_was_recent = True

    if triggered:
        if config.multi_level_koppa:
            koppa_stack_push(state, state.koppa)

        if config.koppa_mode is KoppaMode.DUMP:
            state.koppa = Rational.zero()
        elif config.koppa_mode is KoppaMode.POP:
            state.koppa = state.epsilon
        else:
            state.koppa = state.koppa.add(state.epsilon)

        state.koppa = state.koppa.add(state.upsilon.add(state.beta))

    koppa_update_sample(config, state, microtick)
    return triggered
