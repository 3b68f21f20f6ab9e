"""
trts/engine.py - Engine Step

Atomic update of upsilon and beta on E-phase microticks (1, 4, 7, 10).
Every new value is computed into locals first; the state is written only
when both registers succeeded. On failure the only change is the
dual_engine_last_step flag (cleared) plus the triangle ratios, which are
refreshed either way.
"""

from typing import Optional, Tuple

from .constants import (
    ASYMMETRIC_CASCADE,
    KOPPA_GATE_MULTI_BELOW,
    KOPPA_GATE_SLIDE_BELOW,
    KOPPA_STACK_CAPACITY,
    EngineMode,
    SignFlipMode,
    TrackMode,
)
from .rational import Rational
from .types_config import TRTSConfig
from .types_state import TRTSState


_SHARED_TRACK = {
    EngineMode.ADD: TrackMode.ADD,
    EngineMode.MULTI: TrackMode.MULTI,
    EngineMode.SLIDE: TrackMode.SLIDE,
    EngineMode.DELTA_ADD: TrackMode.ADD,
}


# =============================================================================
# TRACK MODE SELECTION
# =============================================================================

def stack_depth_track(depth: int) -> TrackMode:
    """Track override keyed by koppa history depth."""
    if depth <= 1:
        return TrackMode.ADD
    if depth <= 3:
        return TrackMode.MULTI
    if depth == KOPPA_STACK_CAPACITY:
        return TrackMode.SLIDE
    return TrackMode.ADD


def koppa_gate_track(koppa: Rational) -> TrackMode:
    """Track override keyed by |koppa numerator|."""
    magnitude = abs(koppa.num)
    if magnitude < KOPPA_GATE_SLIDE_BELOW:
        return TrackMode.SLIDE
    if magnitude < KOPPA_GATE_MULTI_BELOW:
        return TrackMode.MULTI
    return TrackMode.ADD


def select_track_modes(config: TRTSConfig, state: TRTSState,
                       microtick: int) -> Tuple[TrackMode, TrackMode]:
    """
    Resolve the (upsilon, beta) track modes for this step.

    Overrides apply in fixed precedence: asymmetric cascade, then stack
    depth, then koppa gate. A later enabled rule wins.

    Args:
        config: TRTSConfig
        state: Current TRTSState (read only)
        microtick: E-phase microtick number

    Returns:
        Tuple of (upsilon_mode, beta_mode)
    """
    if config.dual_track:
        ups_mode, beta_mode = config.upsilon_track, config.beta_track
    else:
        ups_mode = beta_mode = _SHARED_TRACK[config.engine_mode]

    if config.asymmetric_cascade and microtick in ASYMMETRIC_CASCADE:
        ups_mode, beta_mode = ASYMMETRIC_CASCADE[microtick]

    if config.stack_depth_modes:
        ups_mode = beta_mode = stack_depth_track(state.koppa_stack_size)

    if config.koppa_gated_engine:
        ups_mode = beta_mode = koppa_gate_track(state.koppa)

    return ups_mode, beta_mode


# =============================================================================
# TRACK FORMULAS
# =============================================================================

def apply_track(mode: TrackMode, current: Rational, counterpart: Rational,
                koppa: Rational) -> Optional[Rational]:
    """
    New register value under one track formula.

    Returns:
        The new value, or None when SLIDE cannot divide
    """
    if mode is TrackMode.ADD:
        return current.add(counterpart).add(koppa)

    if mode is TrackMode.MULTI:
        return current.mul(counterpart.add(koppa))

    # SLIDE
    if koppa.is_zero() or koppa.is_undefined():
        return None
    total = current.add(counterpart)
    if total.is_undefined():
        return None
    return total.div(koppa)


# =============================================================================
# MODULATIONS
# =============================================================================

def sign_flip(config: TRTSConfig, polarity: bool) -> Tuple[bool, bool]:
    """
    Decide whether to negate both new values.

    Returns:
        Tuple of (flip_now, new_polarity)
    """
    if config.sign_flip_mode is SignFlipMode.ALWAYS:
        return True, True
    if config.sign_flip_mode is SignFlipMode.ALTERNATE:
        flip_now = not polarity
        return flip_now, flip_now
    return False, False


def _ratio_or_zero(numerator: Rational, divisor: Rational) -> Rational:
    if divisor.is_zero():
        return Rational.from_ints(0, 1)
    return numerator.div(divisor)


def update_triangle(config: TRTSConfig, state: TRTSState) -> None:
    """Refresh phi/epsilon, prev_upsilon/phi and epsilon/prev_upsilon."""
    if not config.epsilon_phi_triangle:
        return
    state.triangle_phi_over_epsilon = _ratio_or_zero(state.phi, state.epsilon)
    state.triangle_prev_over_phi = _ratio_or_zero(state.previous_upsilon, state.phi)
    state.triangle_epsilon_over_prev = _ratio_or_zero(state.epsilon,
                                                      state.previous_upsilon)


def apply_modular_wrap(config: TRTSConfig, state: TRTSState) -> None:
    """Post-commit wrap of koppa by beta and of numerators by modulus_bound."""
    if not config.modular_wrap:
        return

    if config.koppa_wrap_threshold > 0 and abs(state.koppa.num) > config.koppa_wrap_threshold:
        state.koppa = state.koppa.mod(state.beta)

    if config.modulus_bound > 0:
        state.upsilon = state.upsilon.mod_numerator(config.modulus_bound)
        state.beta = state.beta.mod_numerator(config.modulus_bound)
        state.koppa = state.koppa.mod_numerator(config.modulus_bound)


# =============================================================================
# ENGINE STEP
# =============================================================================

def engine_step(config: TRTSConfig, state: TRTSState, microtick: int) -> bool:
    """
    Attempt one atomic update of upsilon and beta.

    Args:
        config: TRTSConfig
        state: TRTSState (mutated only on success, see module docstring)
        microtick: E-phase microtick number (1, 4, 7 or 10)

    Returns:
        True if the new values were committed
    """
    ups_before = state.upsilon
    beta_before = state.beta

    ups_mode, beta_mode = select_track_modes(config, state, microtick)

    delta_upsilon = ups_before.delta(state.previous_upsilon)
    delta_beta = beta_before.delta(state.previous_beta)

    if not config.dual_track and config.engine_mode is EngineMode.DELTA_ADD:
        new_upsilon = ups_before.add(delta_upsilon)
        new_beta = beta_before.add(delta_beta)
    else:
        new_upsilon = apply_track(ups_mode, ups_before, beta_before, state.koppa)
        new_beta = apply_track(beta_mode, beta_before, ups_before, state.koppa)

    success = new_upsilon is not None and new_beta is not None

    if success and config.delta_cross_propagation:
        new_upsilon = new_upsilon.add(delta_beta)
        new_beta = new_beta.add(delta_upsilon)
        if config.delta_koppa_offset:
            new_upsilon = new_upsilon.add(state.koppa)
            new_beta = new_beta.add(state.koppa)

    polarity = state.sign_flip_polarity
    if success:
        flip_now, polarity = sign_flip(config, state.sign_flip_polarity)
        if flip_now:
            new_upsilon = new_upsilon.neg()
            new_beta = new_beta.neg()

    update_triangle(config, state)

    if not success:
        state.dual_engine_last_step = False
        return False

    state.upsilon = new_upsilon
    state.beta = new_beta
    state.sign_flip_polarity = polarity
    state.dual_engine_last_step = config.dual_track
    state.delta_upsilon = new_upsilon.delta(ups_before)
    state.delta_beta = new_beta.delta(beta_before)
    state.previous_upsilon = ups_before
    state.previous_beta = beta_before

    apply_modular_wrap(config, state)
    return True
