"""
trts - Exact-Rational Propagation Engine

Public API for the tick/microtick simulator.
Flat, focused files. One file = one responsibility.
"""

# =============================================================================
# ARITHMETIC
# =============================================================================
from .rational import Rational, DivisionByZero

# =============================================================================
# TYPES (Dataclasses)
# =============================================================================
from .types_config import (
    TRTSConfig,
    SCENARIO_DEFAULT,
    SCENARIO_END_TO_END,
    SCENARIO_GOLDEN,
    SCENARIO_TRIPLE_CASCADE,
    SCENARIO_REFINE_BASE,
    MANDATORY_SCENARIOS,
    SCENARIOS,
)
from .types_state import TRTSState, StateSnapshot
from .types_result import MicrotickEvents, Snapshot, RunResult

# =============================================================================
# CONSTANTS
# =============================================================================
from .constants import (
    EngineMode,
    TrackMode,
    PsiMode,
    KoppaMode,
    KoppaTrigger,
    PrimeTarget,
    Mt10Behavior,
    SignFlipMode,
    RatioTriggerMode,
    Phase,
    MICROTICKS_PER_TICK,
    KOPPA_STACK_CAPACITY,
    RECEIPT_SCHEMA,
)

# =============================================================================
# CORE SIMULATION
# =============================================================================
from .cycle import (
    phase_for,
    simulate_microtick,
    simulate_stream,
    run_simulation,
    run_multiverse,
)
from .engine import engine_step
from .psi import standard_psi, triple_psi, psi_transform
from .koppa import koppa_accrue, koppa_stack_push, koppa_update_sample
from .patterns import (
    has_pattern_component,
    ratio_in_range,
    ratio_threshold_outside,
    prime_count,
)

# =============================================================================
# VALIDATION, ANALYSIS, EXPORT
# =============================================================================
from .validation import check_zero_rule, validate_state
from .analysis import RunSummary, InMemoryObserver, analyze_run, psi_type_label, constant_value
from .export import (
    EVENTS_HEADER,
    VALUES_HEADER,
    CsvSink,
    MinimalCsvSink,
    write_run_csv,
    snapshot_digest,
    summary_to_dict,
    generate_report,
)

__all__ = [
    # Arithmetic
    "Rational",
    "DivisionByZero",
    # Types
    "TRTSConfig",
    "TRTSState",
    "StateSnapshot",
    "MicrotickEvents",
    "Snapshot",
    "RunResult",
    # Scenarios
    "SCENARIO_DEFAULT",
    "SCENARIO_END_TO_END",
    "SCENARIO_GOLDEN",
    "SCENARIO_TRIPLE_CASCADE",
    "SCENARIO_REFINE_BASE",
    "MANDATORY_SCENARIOS",
    "SCENARIOS",
    # Constants
    "EngineMode",
    "TrackMode",
    "PsiMode",
    "KoppaMode",
    "KoppaTrigger",
    "PrimeTarget",
    "Mt10Behavior",
    "SignFlipMode",
    "RatioTriggerMode",
    "Phase",
    "MICROTICKS_PER_TICK",
    "KOPPA_STACK_CAPACITY",
    "RECEIPT_SCHEMA",
    # Core
    "phase_for",
    "simulate_microtick",
    "simulate_stream",
    "run_simulation",
    "run_multiverse",
    "engine_step",
    "standard_psi",
    "triple_psi",
    "psi_transform",
    "koppa_accrue",
    "koppa_stack_push",
    "koppa_update_sample",
    "has_pattern_component",
    "ratio_in_range",
    "ratio_threshold_outside",
    "prime_count",
    # Validation / analysis / export
    "check_zero_rule",
    "validate_state",
    "RunSummary",
    "InMemoryObserver",
    "analyze_run",
    "psi_type_label",
    "constant_value",
    "EVENTS_HEADER",
    "VALUES_HEADER",
    "CsvSink",
    "MinimalCsvSink",
    "write_run_csv",
    "snapshot_digest",
    "summary_to_dict",
    "generate_report",
]
