"""
trts/constants.py - Modes, Phases and Tuning Constants

Every closed set of variants the engine understands, plus the numeric
thresholds shared by the scheduler, the pattern detectors and the analysis
collaborator. Centralized for tuning.
Pure data, no behavior.
"""

from enum import Enum

# =============================================================================
# MODE ENUMERATIONS
# Member order matches the integer codes used by legacy configuration files.
# =============================================================================


class EngineMode(Enum):
    """Shared engine formula selected when dual-track is off."""
    ADD = "add"
    MULTI = "multi"
    SLIDE = "slide"
    DELTA_ADD = "delta_add"


class TrackMode(Enum):
    """Per-register formula applied by the engine step."""
    ADD = "add"
    MULTI = "multi"
    SLIDE = "slide"


class PsiMode(Enum):
    """How the memory phase requests a psi fire."""
    MSTEP = "mstep"              # every memory step
    RHO_ONLY = "rho_only"        # only while the rho latch is set
    MSTEP_RHO = "mstep_rho"      # always requested, fires only with the latch
    INHIBIT_RHO = "inhibit_rho"  # requested only while the latch is clear


class KoppaMode(Enum):
    """Operation applied to koppa when accrual triggers."""
    DUMP = "dump"
    POP = "pop"
    ACCUMULATE = "accumulate"


class KoppaTrigger(Enum):
    """When koppa accrual mutates the register."""
    ON_PSI = "on_psi"
    ON_MU_AFTER_PSI = "on_mu_after_psi"
    ON_ALL_MU = "on_all_mu"


class PrimeTarget(Enum):
    """Which register pattern detection inspects."""
    MEMORY = "memory"
    NEW_UPSILON = "new_upsilon"


class Mt10Behavior(Enum):
    """Microtick 10 handling."""
    EMISSION_ONLY = "emission_only"
    FORCED_PSI = "forced_psi"


class SignFlipMode(Enum):
    NONE = "none"
    ALWAYS = "always"
    ALTERNATE = "alternate"


class RatioTriggerMode(Enum):
    """Named windows around known constants for the upsilon/beta ratio."""
    NONE = "none"
    GOLDEN = "golden"
    SQRT2 = "sqrt2"
    PLASTIC = "plastic"
    CUSTOM = "custom"


class Phase(Enum):
    E = "E"  # engine step
    M = "M"  # memory: trigger + psi + accrual
    R = "R"  # accrual only


# Legacy variant names that older configuration files carry but the engine
# does not implement.
UNSUPPORTED_VARIANTS = frozenset({
    "forced_engine",
    "forced_koppa",
    "feedback_oscillator",
    "fibonacci_gate",
    "ratio_snapshot_logging",
    "epsilon_phi_swap",
    "beta_mod_koppa_wrap",
})

# =============================================================================
# TICK / MICROTICK SCHEDULE
# =============================================================================

MICROTICKS_PER_TICK = 11
E_MICROTICKS = frozenset({1, 4, 7, 10})
M_MICROTICKS = frozenset({2, 5, 8, 11})
R_MICROTICKS = frozenset({3, 6, 9})
FORCED_EMISSION_MICROTICK = 10

# Hardwired (upsilon, beta) track overrides for the asymmetric cascade
ASYMMETRIC_CASCADE = {
    1: (TrackMode.MULTI, TrackMode.ADD),
    4: (TrackMode.ADD, TrackMode.SLIDE),
    7: (TrackMode.SLIDE, TrackMode.MULTI),
    10: (TrackMode.ADD, TrackMode.ADD),
}

# =============================================================================
# KOPPA HISTORY
# =============================================================================

KOPPA_STACK_CAPACITY = 4
KOPPA_SAMPLE_SLOTS = {5: 2, 11: 0}  # microtick -> history slot
NO_SAMPLE_INDEX = -1
PSI_STACK_DEPTHS = frozenset({2, 4})  # depths that allow psi under stack gating

# =============================================================================
# ENGINE GATES
# =============================================================================

KOPPA_GATE_SLIDE_BELOW = 10
KOPPA_GATE_MULTI_BELOW = 100

# =============================================================================
# RATIO TRIGGER WINDOWS (exclusive bounds, as (num, den) pairs)
# =============================================================================

RATIO_WINDOWS = {
    RatioTriggerMode.GOLDEN: ((3, 2), (17, 10)),
    RatioTriggerMode.SQRT2: ((13, 10), (3, 2)),
    RatioTriggerMode.PLASTIC: ((6, 5), (7, 5)),
}

RATIO_SAFETY_LOWER = (1, 2)  # |upsilon/beta| below this fires
RATIO_SAFETY_UPPER = (2, 1)  # |upsilon/beta| above this fires

# =============================================================================
# ANALYSIS CONSTANTS
# =============================================================================

KNOWN_CONSTANTS = (
    ("phi", 1.6180339887498948482),         # golden ratio
    ("rho", 1.3247179572447458000),         # plastic number
    ("delta_s", 1.4655712318767680267),     # supergolden ratio
    ("tribonacci", 1.8392867552141611326),
    ("plastic", 1.3247179572447458000),
    ("sqrt2", 1.4142135623730950488),
    ("silver", 2.4142135623730950488),      # 1 + sqrt2
)

CONVERGENCE_DELTA = 1e-5        # first tick this close to a constant
CLASSIFICATION_DELTA = 1e-4     # closest constant needed for Convergent(...)
DIVERGENCE_MAGNITUDE = 10 ** 9  # register numerator/denominator magnitude
DIVERGENCE_RANGE = 1.0e6
FIXED_POINT_RANGE = 1.0e-9
FIXED_POINT_STEP = 1.0e-12
OSCILLATION_RANGE = 100.0
STACK_HISTOGRAM_SIZE = KOPPA_STACK_CAPACITY + 1

RECEIPT_SCHEMA = [
    "trts_run_start",
    "trts_run_complete",
    "trts_config_loaded",
    "trts_refine_generation",
]
