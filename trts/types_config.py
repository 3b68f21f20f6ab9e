"""
trts/types_config.py - TRTSConfig Dataclass and Scenario Presets

Immutable configuration for simulation runs. The core never re-reads it
mid-run.
Frozen dataclass, no behavior beyond derived flags.
"""

from dataclasses import dataclass, field

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
)
from .rational import Rational


@dataclass(frozen=True)
class TRTSConfig:
    """Simulation configuration (immutable)."""
    # Modes
    engine_mode: EngineMode = EngineMode.ADD
    upsilon_track: TrackMode = TrackMode.ADD
    beta_track: TrackMode = TrackMode.ADD
    psi_mode: PsiMode = PsiMode.MSTEP
    koppa_mode: KoppaMode = KoppaMode.ACCUMULATE
    koppa_trigger: KoppaTrigger = KoppaTrigger.ON_ALL_MU
    prime_target: PrimeTarget = PrimeTarget.MEMORY
    mt10_behavior: Mt10Behavior = Mt10Behavior.FORCED_PSI
    sign_flip_mode: SignFlipMode = SignFlipMode.NONE
    ratio_trigger_mode: RatioTriggerMode = RatioTriggerMode.NONE

    # Feature toggles (all off by default)
    dual_track: bool = False
    triple_psi: bool = False
    multi_level_koppa: bool = False
    asymmetric_cascade: bool = False
    conditional_triple_psi: bool = False
    koppa_gated_engine: bool = False
    delta_cross_propagation: bool = False
    delta_koppa_offset: bool = False  # only honoured with delta_cross_propagation
    ratio_threshold_psi: bool = False
    stack_depth_modes: bool = False
    epsilon_phi_triangle: bool = False
    modular_wrap: bool = False
    psi_strength: bool = False
    ratio_custom_range: bool = False
    twin_prime_trigger: bool = False
    fibonacci_trigger: bool = False
    perfect_power_trigger: bool = False

    # Seeds
    upsilon_seed: Rational = field(default_factory=lambda: Rational.from_ints(1, 1))
    beta_seed: Rational = field(default_factory=lambda: Rational.from_ints(1, 1))
    koppa_seed: Rational = field(default_factory=Rational.zero)
    ratio_custom_lower: Rational = field(default_factory=Rational.zero)
    ratio_custom_upper: Rational = field(default_factory=Rational.zero)

    # Run length and wrap bounds (0 = disabled)
    ticks: int = 10
    koppa_wrap_threshold: int = 0
    modulus_bound: int = 0

    scenario_name: str = "DEFAULT"


# =============================================================================
# SCENARIO PRESETS
# =============================================================================

SCENARIO_DEFAULT = TRTSConfig()

# Shared ADD track, psi every memory step, accumulate on every memory step.
SCENARIO_END_TO_END = TRTSConfig(
    engine_mode=EngineMode.ADD,
    psi_mode=PsiMode.MSTEP,
    koppa_mode=KoppaMode.ACCUMULATE,
    koppa_trigger=KoppaTrigger.ON_ALL_MU,
    upsilon_seed=Rational.from_ints(1, 1),
    beta_seed=Rational.from_ints(1, 1),
    koppa_seed=Rational.zero(),
    ticks=1,
    scenario_name="END_TO_END"
)

SCENARIO_GOLDEN = TRTSConfig(
    upsilon_seed=Rational.from_ints(3, 2),
    beta_seed=Rational.from_ints(5, 3),
    koppa_seed=Rational.from_ints(1, 1),
    ratio_trigger_mode=RatioTriggerMode.GOLDEN,
    ticks=2,
    scenario_name="GOLDEN"
)

SCENARIO_TRIPLE_CASCADE = TRTSConfig(
    engine_mode=EngineMode.MULTI,
    psi_mode=PsiMode.MSTEP_RHO,
    triple_psi=True,
    multi_level_koppa=True,
    asymmetric_cascade=True,
    conditional_triple_psi=True,
    psi_strength=True,
    upsilon_seed=Rational.from_ints(2, 1),
    beta_seed=Rational.from_ints(3, 1),
    koppa_seed=Rational.from_ints(5, 1),
    ticks=1,
    scenario_name="TRIPLE_CASCADE"
)

# Baseline every search candidate starts from
SCENARIO_REFINE_BASE = TRTSConfig(
    koppa_trigger=KoppaTrigger.ON_ALL_MU,
    prime_target=PrimeTarget.MEMORY,
    mt10_behavior=Mt10Behavior.FORCED_PSI,
    koppa_seed=Rational.from_ints(1, 1),
    ticks=2,
    scenario_name="REFINE_BASE"
)

MANDATORY_SCENARIOS = [
    "DEFAULT",
    "END_TO_END",
    "GOLDEN",
    "TRIPLE_CASCADE",
    "REFINE_BASE",
]

SCENARIOS = {
    "DEFAULT": SCENARIO_DEFAULT,
    "END_TO_END": SCENARIO_END_TO_END,
    "GOLDEN": SCENARIO_GOLDEN,
    "TRIPLE_CASCADE": SCENARIO_TRIPLE_CASCADE,
    "REFINE_BASE": SCENARIO_REFINE_BASE,
}
