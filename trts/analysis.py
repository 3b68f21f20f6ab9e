"""
trts/analysis.py - Run Analysis

Read-only statistics over a run, collected through an in-memory observer.
Floats are snapshots of exact rationals taken for reporting only; nothing
computed here is written back into the engine.
"""

from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np

from .constants import (
    CLASSIFICATION_DELTA,
    CONVERGENCE_DELTA,
    DIVERGENCE_MAGNITUDE,
    DIVERGENCE_RANGE,
    FIXED_POINT_RANGE,
    FIXED_POINT_STEP,
    KNOWN_CONSTANTS,
    OSCILLATION_RANGE,
    STACK_HISTOGRAM_SIZE,
)
from .cycle import simulate_stream
from .rational import Rational
from .types_config import TRTSConfig
from .types_result import Snapshot


@dataclass
class RunSummary:
    """Statistics of one run."""
    # Final ratio
    ratio_defined: bool = False
    final_ratio: Optional[Rational] = None
    final_ratio_str: str = ""
    final_ratio_snapshot: float = 0.0

    # Convergence
    closest_constant: str = "None"
    closest_delta: float = float("inf")
    convergence_tick: Optional[int] = None

    # Classification
    pattern: str = "null"
    classification: str = "Null"

    # History depth
    stack_histogram: List[int] = field(default_factory=lambda: [0] * STACK_HISTOGRAM_SIZE)
    average_stack_depth: float = 0.0
    stack_max_depth: int = 0
    stack_summary: str = "avg=0.00 []"

    # Events
    total_samples: int = 0
    total_ticks: int = 0
    psi_events: int = 0
    psi_triple_count: int = 0
    rho_events: int = 0
    mu_zero_events: int = 0
    psi_spacing_mean: float = 0.0
    psi_spacing_stddev: float = 0.0

    # Ratio statistics (upsilon / beta)
    ratio_mean: float = 0.0
    ratio_variance: float = 0.0
    ratio_stddev: float = 0.0
    ratio_range: float = 0.0

    # Register magnitudes (upsilon and beta)
    max_numerator_magnitude: int = 0
    max_denominator_magnitude: int = 0


# =============================================================================
# OBSERVER
# =============================================================================

class InMemoryObserver:
    """Observer collecting everything RunSummary needs; never touches state."""

    def __init__(self):
        self.summary = RunSummary()
        self.ratios: List[float] = []
        self.psi_indices: List[int] = []
        self.stack_sum = 0
        self.max_step = 0.0
        self.sign_changes = 0
        self.best_delta = float("inf")
        self.best_constant: Optional[str] = None

    def __call__(self, snapshot: Snapshot) -> None:
        summary = self.summary
        st = snapshot.state
        events = snapshot.events

        summary.total_ticks = max(summary.total_ticks, snapshot.tick)
        summary.total_samples += 1

        if events.psi_fired:
            summary.psi_events += 1
            self.psi_indices.append(snapshot.index)
        if st.psi_triple_recent:
            summary.psi_triple_count += 1
        if events.rho_event:
            summary.rho_events += 1
        if events.mu_zero:
            summary.mu_zero_events += 1

        depth = min(st.koppa_stack_size, STACK_HISTOGRAM_SIZE - 1)
        summary.stack_histogram[depth] += 1
        summary.stack_max_depth = max(summary.stack_max_depth, st.koppa_stack_size)
        self.stack_sum += depth

        summary.max_numerator_magnitude = max(
            summary.max_numerator_magnitude, abs(st.upsilon.num), abs(st.beta.num))
        summary.max_denominator_magnitude = max(
            summary.max_denominator_magnitude, abs(st.upsilon.den), abs(st.beta.den))

        if st.beta.is_zero():
            return
        ratio = st.upsilon.div(st.beta)
        value = ratio.to_float()

        summary.ratio_defined = True
        summary.final_ratio = ratio
        summary.final_ratio_str = str(ratio)
        summary.final_ratio_snapshot = value

        if self.ratios:
            previous = self.ratios[-1]
            self.max_step = max(self.max_step, abs(value - previous))
            if (value > 0.0 > previous) or (value < 0.0 < previous):
                self.sign_changes += 1
        self.ratios.append(value)

        for name, constant in KNOWN_CONSTANTS:
            delta = abs(value - constant)
            if delta < self.best_delta:
                self.best_delta = delta
                self.best_constant = name
            if delta < CONVERGENCE_DELTA and summary.convergence_tick is None:
                summary.convergence_tick = snapshot.tick

    def finalize(self) -> RunSummary:
        """Derive spreads, spacing, stack summary and classification."""
        summary = self.summary

        if self.ratios:
            samples = np.asarray(self.ratios, dtype=np.float64)
            summary.ratio_mean = float(np.mean(samples))
            summary.ratio_range = float(np.ptp(samples))
            if samples.size > 1:
                summary.ratio_variance = float(np.var(samples, ddof=1))
                summary.ratio_stddev = float(np.sqrt(summary.ratio_variance))

        if len(self.psi_indices) > 1:
            spacing = np.diff(np.asarray(self.psi_indices, dtype=np.float64))
            summary.psi_spacing_mean = float(np.mean(spacing))
            if spacing.size > 1:
                summary.psi_spacing_stddev = float(np.std(spacing, ddof=1))

        summary.stack_summary = stack_summary(summary, self.stack_sum)

        if self.best_constant is not None:
            summary.closest_constant = self.best_constant
            summary.closest_delta = self.best_delta

        summary.pattern, summary.classification = classify(
            summary, self.max_step, self.sign_changes, len(self.ratios))
        return summary


# =============================================================================
# DERIVED FIELDS
# =============================================================================

def stack_summary(summary: RunSummary, stack_sum: int) -> str:
    """History depth digest, e.g. avg=1.25 [0:3,1:2,2:0,3:0,4:0]."""
    if summary.total_samples == 0:
        return "avg=0.00 []"
    summary.average_stack_depth = stack_sum / summary.total_samples
    buckets = ",".join(f"{depth}:{count}"
                       for depth, count in enumerate(summary.stack_histogram))
    return f"avg={summary.average_stack_depth:.2f} [{buckets}]"


def classify(summary: RunSummary, max_step: float, sign_changes: int,
             ratio_count: int):
    """
    Pattern and classification labels of a finished run.

    Returns:
        Tuple of (pattern, classification), e.g. ("stable", "Convergent(phi)")
    """
    if not summary.ratio_defined:
        return "null", "Null"

    divergent = (summary.ratio_range > DIVERGENCE_RANGE
                 or summary.max_numerator_magnitude > DIVERGENCE_MAGNITUDE
                 or summary.max_denominator_magnitude > DIVERGENCE_MAGNITUDE)
    if divergent:
        return "divergent", "Chaotic"

    if summary.ratio_range < FIXED_POINT_RANGE and max_step < FIXED_POINT_STEP:
        return "fixed point", "FixedPoint"

    if summary.ratio_range < OSCILLATION_RANGE and sign_changes > ratio_count // 3:
        return "oscillating", "Oscillating"

    if summary.closest_delta < CLASSIFICATION_DELTA:
        return "stable", f"Convergent({summary.closest_constant})"
    return "stable", "Stable"


# =============================================================================
# ENTRY POINTS
# =============================================================================

def analyze_run(config: TRTSConfig) -> RunSummary:
    """
    Simulate config with an in-memory observer and summarise the run.

    Args:
        config: TRTSConfig

    Returns:
        RunSummary
    """
    observer = InMemoryObserver()
    simulate_stream(config, observer)
    return observer.finalize()


def psi_type_label(config: TRTSConfig) -> str:
    return "3-way" if config.triple_psi else "2-way"


def constant_value(name: str) -> Optional[float]:
    """Value of a known constant by name, None when unknown."""
    for known, value in KNOWN_CONSTANTS:
        if known == name:
            return value
    return None
