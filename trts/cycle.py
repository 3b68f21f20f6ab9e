"""
trts/cycle.py - Simulation Scheduler

Main entry points: simulate_microtick, simulate_stream, run_simulation,
run_multiverse.

Each tick runs microticks 1..11. The phase is a pure function of the
microtick number: {1,4,7,10} -> E, {2,5,8,11} -> M, {3,6,9} -> R. After
every microtick the state is audited and a frozen Snapshot is handed to
each observer. A run always completes all ticks; arithmetic failures inside
the engine or psi only mean that step did not happen.
"""

from typing import Callable, Iterable, List, Tuple, Union

from receipts import emit_receipt

from .constants import (
    E_MICROTICKS,
    FORCED_EMISSION_MICROTICK,
    M_MICROTICKS,
    MICROTICKS_PER_TICK,
    NO_SAMPLE_INDEX,
    PSI_STACK_DEPTHS,
    Mt10Behavior,
    Phase,
    PrimeTarget,
    PsiMode,
)
from .engine import engine_step
from .koppa import koppa_accrue
from .patterns import has_pattern_component, ratio_in_range, ratio_threshold_outside
from .psi import psi_transform
from .types_config import TRTSConfig
from .types_result import MicrotickEvents, RunResult, Snapshot
from .types_state import StateSnapshot, TRTSState
from .validation import validate_state

Observer = Callable[[Snapshot], None]


def phase_for(microtick: int) -> Phase:
    """
    Phase of a microtick.

    Raises:
        ValueError: microtick outside 1..11
    """
    if microtick in E_MICROTICKS:
        return Phase.E
    if microtick in M_MICROTICKS:
        return Phase.M
    if 1 <= microtick <= MICROTICKS_PER_TICK:
        return Phase.R
    raise ValueError(f"microtick must be in 1..{MICROTICKS_PER_TICK}, got {microtick}")


def psi_requested(config: TRTSConfig, state: TRTSState) -> bool:
    """Request decision of the configured psi mode (before ratio triggers)."""
    if config.psi_mode is PsiMode.RHO_ONLY:
        return state.rho_pending
    if config.psi_mode is PsiMode.INHIBIT_RHO:
        return not state.rho_pending
    return True


def psi_stack_allowed(config: TRTSConfig, state: TRTSState) -> bool:
    """Stack-depth gating: psi only at history depth 2 or 4 when enabled."""
    if not config.stack_depth_modes:
        return True
    return state.koppa_stack_size in PSI_STACK_DEPTHS


def _clear_transients(state: TRTSState) -> None:
    state.ratio_triggered_recent = False
    state.psi_triple_recent = False
    state.dual_engine_last_step = False
    state.ratio_threshold_recent = False
    state.psi_strength_applied = False
    state.koppa_sample = state.koppa
    state.koppa_sample_index = NO_SAMPLE_INDEX


def _latch(state: TRTSState) -> None:
    state.rho_pending = True
    state.rho_latched = True


# =============================================================================
# MICROTICK
# =============================================================================

def simulate_microtick(config: TRTSConfig, state: TRTSState, tick: int,
                       microtick: int) -> MicrotickEvents:
    """
    Run one microtick of the scheduler.

    Args:
        config: TRTSConfig
        state: TRTSState (mutated in place)
        tick: 1-based tick number
        microtick: 1..11

    Returns:
        MicrotickEvents describing what happened
    """
    phase = phase_for(microtick)
    state.tick = tick
    _clear_transients(state)

    rho_event = False
    psi_fired = False
    mu_zero = False
    forced_emission = False

    if phase is Phase.E:
        state.epsilon = state.upsilon
        engine_step(config, state, microtick)

        if (config.prime_target is PrimeTarget.NEW_UPSILON
                and has_pattern_component(config, state.upsilon)):
            _latch(state)
            rho_event = True

        if microtick == FORCED_EMISSION_MICROTICK:
            forced_emission = True
            if config.mt10_behavior is Mt10Behavior.FORCED_PSI:
                _latch(state)
                rho_event = True

    elif phase is Phase.M:
        mu_zero = state.beta.is_zero()

        if (config.prime_target is PrimeTarget.MEMORY
                and has_pattern_component(config, state.beta, check_num=True, check_den=True)):
            _latch(state)
            rho_event = True

        stack_allowed = psi_stack_allowed(config, state)
        request = psi_requested(config, state)

        if ratio_in_range(config, state):
            state.ratio_triggered_recent = True
            request = True
        if ratio_threshold_outside(config, state):
            state.ratio_threshold_recent = True
            request = True

        if request and stack_allowed:
            psi_fired = psi_transform(config, state)
        else:
            state.psi_recent = False

        koppa_accrue(config, state, psi_fired, True, microtick)
        state.rho_latched = False

    else:
        koppa_accrue(config, state, False, False, microtick)
        state.psi_recent = False
        state.rho_latched = False

    return MicrotickEvents(
        rho_event=rho_event,
        psi_fired=psi_fired,
        mu_zero=mu_zero,
        forced_emission=forced_emission,
    )


# =============================================================================
# RUN LOOP
# =============================================================================

def _as_observers(observer: Union[None, Observer, Iterable[Observer]]) -> Tuple[Observer, ...]:
    if observer is None:
        return ()
    if callable(observer):
        return (observer,)
    return tuple(observer)


def simulate_stream(config: TRTSConfig,
                    observer: Union[None, Observer, Iterable[Observer]] = None
                    ) -> Tuple[StateSnapshot, List[dict]]:
    """
    Run config.ticks ticks, feeding every Snapshot to the observer(s).

    Observers receive immutable snapshots; assigning to one raises
    dataclasses.FrozenInstanceError, so an observer can never alter the run.

    Args:
        config: TRTSConfig
        observer: None, one callable, or an iterable of callables

    Returns:
        Tuple of (final StateSnapshot, list of invariant violations)
    """
    observers = _as_observers(observer)
    state = TRTSState.from_config(config)
    violations = []

    for tick in range(1, config.ticks + 1):
        for microtick in range(1, MICROTICKS_PER_TICK + 1):
            events = simulate_microtick(config, state, tick, microtick)
            violations.extend(validate_state(state, tick, microtick))

            if observers:
                snapshot = Snapshot(
                    tick=tick,
                    microtick=microtick,
                    phase=phase_for(microtick),
                    state=state.snapshot(),
                    events=events,
                )
                for notify in observers:
                    notify(snapshot)

    return state.snapshot(), violations


class _EventCounter:
    """Observer tallying event flags for RunResult.statistics."""

    def __init__(self, record: bool):
        self.record = record
        self.snapshots = []
        self.counts = {
            "rho_events": 0,
            "psi_fired": 0,
            "psi_triple": 0,
            "psi_strength_applied": 0,
            "mu_zero": 0,
            "forced_emissions": 0,
            "ratio_triggered": 0,
            "ratio_threshold": 0,
            "dual_engine_steps": 0,
        }

    def __call__(self, snapshot: Snapshot) -> None:
        events, st = snapshot.events, snapshot.state
        self.counts["rho_events"] += events.rho_event
        self.counts["psi_fired"] += events.psi_fired
        self.counts["psi_triple"] += st.psi_triple_recent
        self.counts["psi_strength_applied"] += st.psi_strength_applied
        self.counts["mu_zero"] += events.mu_zero
        self.counts["forced_emissions"] += events.forced_emission
        self.counts["ratio_triggered"] += st.ratio_triggered_recent
        self.counts["ratio_threshold"] += st.ratio_threshold_recent
        self.counts["dual_engine_steps"] += st.dual_engine_last_step
        if self.record:
            self.snapshots.append(snapshot)


def run_simulation(config: TRTSConfig, observers: Iterable[Observer] = (),
                   record: bool = True) -> RunResult:
    """
    Run complete simulation.

    Args:
        config: TRTSConfig with parameters
        observers: Extra callables that receive every Snapshot
        record: Keep every Snapshot in RunResult.snapshots

    Returns:
        RunResult with final state, snapshots, statistics, violations and
        receipts
    """
    receipts = [emit_receipt("trts_run_start", {
        "scenario": config.scenario_name,
        "ticks": config.ticks,
        "engine_mode": config.engine_mode.value,
        "psi_mode": config.psi_mode.value,
        "koppa_mode": config.koppa_mode.value,
        "upsilon_seed": str(config.upsilon_seed),
        "beta_seed": str(config.beta_seed),
        "koppa_seed": str(config.koppa_seed),
    })]

    counter = _EventCounter(record)
    final_state, violations = simulate_stream(config, [counter, *observers])

    statistics = dict(counter.counts)
    statistics["microticks"] = config.ticks * MICROTICKS_PER_TICK
    statistics["violations"] = len(violations)

    receipts.append(emit_receipt("trts_run_complete", {
        "scenario": config.scenario_name,
        "upsilon": str(final_state.upsilon),
        "beta": str(final_state.beta),
        "koppa": str(final_state.koppa),
        "koppa_stack_size": final_state.koppa_stack_size,
        **statistics,
    }))

    return RunResult(
        final_state=final_state,
        snapshots=counter.snapshots,
        statistics=statistics,
        violations=violations,
        receipts=receipts,
        config=config,
    )


def run_multiverse(configs: List[TRTSConfig]) -> List[RunResult]:
    """
    Run multiple simulations in sequence.

    Args:
        configs: List of TRTSConfig objects

    Returns:
        List of RunResult objects
    """
    results = []
    for config in configs:
        result = run_simulation(config)
        results.append(result)
    return results
