"""
trts/psi.py - Psi Transform

Inversion-exchange of the registers, fired from the memory phase.

A burst of several fires is NOT atomic: each successful exchange stays
committed and the burst stops at the first failure.
"""

from .constants import PsiMode
from .patterns import prime_count
from .types_config import TRTSConfig
from .types_state import TRTSState


# =============================================================================
# TRANSFORM SHAPES
# =============================================================================

def standard_psi(state: TRTSState) -> bool:
    """(upsilon, beta) -> (beta/upsilon, upsilon/beta). No mutation on failure."""
    ups, beta = state.upsilon, state.beta
    if ups.is_zero() or beta.is_zero():
        return False
    new_upsilon = beta.div(ups)
    new_beta = ups.div(beta)
    if new_upsilon.is_undefined() or new_beta.is_undefined():
        return False
    state.upsilon = new_upsilon
    state.beta = new_beta
    return True


def triple_psi(state: TRTSState) -> bool:
    """(upsilon, beta, koppa) -> (beta/koppa, koppa/upsilon, koppa/beta)."""
    ups, beta, koppa = state.upsilon, state.beta, state.koppa
    if ups.is_zero() or beta.is_zero() or koppa.is_zero():
        return False
    new_upsilon = beta.div(koppa)
    new_beta = koppa.div(ups)
    new_koppa = koppa.div(beta)
    if any(r.is_undefined() for r in (new_upsilon, new_beta, new_koppa)):
        return False
    state.upsilon = new_upsilon
    state.beta = new_beta
    state.koppa = new_koppa
    return True


# =============================================================================
# PSI TRANSFORM
# =============================================================================

def psi_strength(config: TRTSConfig, state: TRTSState) -> int:
    """Repetitions for this call: prime numerators among the registers, min 1."""
    if config.psi_strength and state.rho_pending:
        return max(1, prime_count(state))
    return 1


def use_triple(config: TRTSConfig, state: TRTSState, iteration: int,
               strength: int) -> bool:
    if config.triple_psi:
        return True
    if config.conditional_triple_psi and prime_count(state) >= 3:
        return True
    return strength >= 3 and iteration >= strength - 3


def psi_transform(config: TRTSConfig, state: TRTSState) -> bool:
    """
    Fire psi up to `strength` times.

    Eligible only while the rho latch is set or the psi mode fires on every
    memory step. The first successful exchange clears the latch.

    Args:
        config: TRTSConfig
        state: TRTSState (mutated in place)

    Returns:
        True if at least one exchange happened
    """
    state.psi_recent = False
    state.psi_triple_recent = False
    state.psi_strength_applied = False

    if not (state.rho_pending or config.psi_mode is PsiMode.MSTEP):
        return False

    strength = psi_strength(config, state)
    state.psi_strength_applied = strength > 1

    fired = False
    for iteration in range(strength):
        triple = use_triple(config, state, iteration, strength)
        ok = triple_psi(state) if triple else standard_psi(state)
        if not ok:
            break
        if not fired:
            state.rho_pending = False
        fired = True
        state.psi_recent = True
        if triple:
            state.psi_triple_recent = True

    return fired
