"""
trts/types_state.py - TRTSState and StateSnapshot Dataclasses

Mutable register state owned by the scheduler for one run, and the frozen
snapshot handed to observers.
"""

from dataclasses import dataclass, field
from typing import List, Tuple

from .constants import NO_SAMPLE_INDEX
from .rational import Rational
from .types_config import TRTSConfig


def _zero() -> Rational:
    return Rational.zero()


# =============================================================================
# SNAPSHOT (read-only view passed to observers)
# =============================================================================

@dataclass(frozen=True)
class StateSnapshot:
    """Immutable copy of every register and flag at a microtick boundary."""
    upsilon: Rational
    beta: Rational
    koppa: Rational
    epsilon: Rational
    phi: Rational
    previous_upsilon: Rational
    previous_beta: Rational
    delta_upsilon: Rational
    delta_beta: Rational
    triangle_phi_over_epsilon: Rational
    triangle_prev_over_phi: Rational
    triangle_epsilon_over_prev: Rational
    koppa_stack: Tuple[Rational, ...]
    koppa_sample: Rational
    koppa_sample_index: int
    rho_pending: bool
    rho_latched: bool
    psi_recent: bool
    psi_was_recent: bool
    psi_triple_recent: bool
    psi_strength_applied: bool
    ratio_triggered_recent: bool
    ratio_threshold_recent: bool
    dual_engine_last_step: bool
    sign_flip_polarity: bool
    tick: int

    @property
    def koppa_stack_size(self) -> int:
        return len(self.koppa_stack)


# =============================================================================
# TRTSSTATE DATACLASS
# =============================================================================

@dataclass
class TRTSState:
    """Mutable simulation state."""
    # Primary registers
    upsilon: Rational = field(default_factory=Rational)
    beta: Rational = field(default_factory=Rational)
    koppa: Rational = field(default_factory=Rational)

    # Supplementary registers
    epsilon: Rational = field(default_factory=Rational)
    phi: Rational = field(default_factory=Rational)

    # Shadows and deltas
    previous_upsilon: Rational = field(default_factory=Rational)
    previous_beta: Rational = field(default_factory=Rational)
    delta_upsilon: Rational = field(default_factory=Rational)
    delta_beta: Rational = field(default_factory=Rational)

    # Triangle ratios
    triangle_phi_over_epsilon: Rational = field(default_factory=Rational)
    triangle_prev_over_phi: Rational = field(default_factory=Rational)
    triangle_epsilon_over_prev: Rational = field(default_factory=Rational)

    # Koppa history (oldest first, at most KOPPA_STACK_CAPACITY entries)
    koppa_stack: List[Rational] = field(default_factory=list)
    koppa_sample: Rational = field(default_factory=Rational)
    koppa_sample_index: int = NO_SAMPLE_INDEX

    # Event flags
    rho_pending: bool = False
    rho_latched: bool = False
    psi_recent: bool = False
    psi_was_recent: bool = False  # koppa's memory of a psi fire, see koppa.py
    psi_triple_recent: bool = False
    psi_strength_applied: bool = False
    ratio_triggered_recent: bool = False
    ratio_threshold_recent: bool = False
    dual_engine_last_step: bool = False
    sign_flip_polarity: bool = False

    tick: int = 0

    @property
    def koppa_stack_size(self) -> int:
        return len(self.koppa_stack)

    def reset(self, config: TRTSConfig) -> None:
        """Load seeds from config and clear every flag, history and delta."""
        self.upsilon = config.upsilon_seed
        self.beta = config.beta_seed
        self.koppa = config.koppa_seed
        self.epsilon = _zero()
        self.phi = _zero()
        self.previous_upsilon = self.upsilon
        self.previous_beta = self.beta
        self.delta_upsilon = _zero()
        self.delta_beta = _zero()
        self.triangle_phi_over_epsilon = _zero()
        self.triangle_prev_over_phi = _zero()
        self.triangle_epsilon_over_prev = _zero()
        self.koppa_stack = []
        self.koppa_sample = _zero()
        self.koppa_sample_index = NO_SAMPLE_INDEX
        self.rho_pending = False
        self.rho_latched = False
        self.psi_recent = False
        self.psi_was_recent = False
        self.psi_triple_recent = False
        self.psi_strength_applied = False
        self.ratio_triggered_recent = False
        self.ratio_threshold_recent = False
        self.dual_engine_last_step = False
        self.sign_flip_polarity = False
        self.tick = 0

    @classmethod
    def from_config(cls, config: TRTSConfig) -> "TRTSState":
        state = cls()
        state.reset(config)
        return state

    def registers(self) -> dict:
        """Every rational-valued field by name (history entries included)."""
        values = {
            "upsilon": self.upsilon,
            "beta": self.beta,
            "koppa": self.koppa,
            "epsilon": self.epsilon,
            "phi": self.phi,
            "previous_upsilon": self.previous_upsilon,
            "previous_beta": self.previous_beta,
            "delta_upsilon": self.delta_upsilon,
            "delta_beta": self.delta_beta,
            "triangle_phi_over_epsilon": self.triangle_phi_over_epsilon,
            "triangle_prev_over_phi": self.triangle_prev_over_phi,
            "triangle_epsilon_over_prev": self.triangle_epsilon_over_prev,
            "koppa_sample": self.koppa_sample,
        }
        for i, value in enumerate(self.koppa_stack):
            values[f"koppa_stack{i}"] = value
        return values

    def snapshot(self) -> StateSnapshot:
        return StateSnapshot(
            upsilon=self.upsilon,
            beta=self.beta,
            koppa=self.koppa,
            epsilon=self.epsilon,
            phi=self.phi,
            previous_upsilon=self.previous_upsilon,
            previous_beta=self.previous_beta,
            delta_upsilon=self.delta_upsilon,
            delta_beta=self.delta_beta,
            triangle_phi_over_epsilon=self.triangle_phi_over_epsilon,
            triangle_prev_over_phi=self.triangle_prev_over_phi,
            triangle_epsilon_over_prev=self.triangle_epsilon_over_prev,
            koppa_stack=tuple(self.koppa_stack),
            koppa_sample=self.koppa_sample,
            koppa_sample_index=self.koppa_sample_index,
            rho_pending=self.rho_pending,
            rho_latched=self.rho_latched,
            psi_recent=self.psi_recent,
            psi_was_recent=self.psi_was_recent,
            psi_triple_recent=self.psi_triple_recent,
            psi_strength_applied=self.psi_strength_applied,
            ratio_triggered_recent=self.ratio_triggered_recent,
            ratio_threshold_recent=self.ratio_threshold_recent,
            dual_engine_last_step=self.dual_engine_last_step,
            sign_flip_polarity=self.sign_flip_polarity,
            tick=self.tick,
        )
