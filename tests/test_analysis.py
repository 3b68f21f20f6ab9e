"""
tests/test_analysis.py - Tests for Run Analysis

Validates:
- Event counts, spacing and ratio statistics of a real run
- Stack depth histogram digest
- Classification rules on synthetic summaries
"""

import math

from trts.analysis import (
    RunSummary,
    analyze_run,
    classify,
    constant_value,
    psi_type_label,
    stack_summary,
)
from trts.types_config import SCENARIO_END_TO_END, TRTSConfig


# =============================================================================
# REAL RUN
# =============================================================================

class TestAnalyzeRun:
    """Tests for analyze_run on the end-to-end scenario."""

    def test_counts(self):
        """Psi fires on every memory step; one tick, eleven samples."""
        summary = analyze_run(SCENARIO_END_TO_END)
        assert summary.total_samples == 11
        assert summary.total_ticks == 1
        assert summary.psi_events == 4, f"psi events = {summary.psi_events}"
        assert summary.rho_events >= 1
        assert summary.mu_zero_events == 0

    def test_psi_spacing(self):
        """Memory steps 2, 5, 8, 11 are three microticks apart."""
        summary = analyze_run(SCENARIO_END_TO_END)
        assert summary.psi_spacing_mean == 3.0
        assert summary.psi_spacing_stddev == 0.0

    def test_ratio_statistics(self):
        """Upsilon and beta stay structurally equal, so the ratio is 1."""
        summary = analyze_run(SCENARIO_END_TO_END)
        assert summary.ratio_defined
        assert summary.final_ratio.num == summary.final_ratio.den
        assert summary.final_ratio_snapshot == 1.0
        assert summary.ratio_mean == 1.0
        assert summary.ratio_variance == 0.0
        assert summary.ratio_range == 0.0
        assert summary.convergence_tick is None

    def test_closest_constant(self):
        """Among the known constants, rho is nearest to 1."""
        summary = analyze_run(SCENARIO_END_TO_END)
        assert summary.closest_constant == "rho"
        assert math.isclose(summary.closest_delta, 0.3247179572447458)

    def test_stack_histogram_without_history(self):
        """No multi-level koppa keeps every sample at depth 0."""
        summary = analyze_run(SCENARIO_END_TO_END)
        assert summary.stack_histogram == [11, 0, 0, 0, 0]
        assert summary.stack_summary == "avg=0.00 [0:11,1:0,2:0,3:0,4:0]"

    def test_magnitudes_classify_as_divergent(self):
        """Unreduced components pass 10^9 within one tick."""
        summary = analyze_run(SCENARIO_END_TO_END)
        assert summary.max_numerator_magnitude > 10 ** 9
        assert (summary.pattern, summary.classification) == ("divergent", "Chaotic")


# =============================================================================
# DERIVED FIELDS
# =============================================================================

class TestStackSummary:
    """Tests for the depth digest."""

    def test_digest(self):
        """Average and per-depth counts."""
        summary = RunSummary(total_samples=4, stack_histogram=[1, 1, 2, 0, 0])
        text = stack_summary(summary, 5)
        assert text == "avg=1.25 [0:1,1:1,2:2,3:0,4:0]"
        assert summary.average_stack_depth == 1.25

    def test_empty(self):
        """No samples gives the empty digest."""
        assert stack_summary(RunSummary(), 0) == "avg=0.00 []"


class TestClassify:
    """Tests for classification rules."""

    def test_null(self):
        """Undefined ratio is Null."""
        assert classify(RunSummary(), 0.0, 0, 0) == ("null", "Null")

    def test_divergent(self):
        """Large magnitudes are Chaotic."""
        summary = RunSummary(ratio_defined=True, max_denominator_magnitude=10 ** 10)
        assert classify(summary, 0.0, 0, 5) == ("divergent", "Chaotic")

    def test_fixed_point(self):
        """Flat ratio with tiny steps."""
        summary = RunSummary(ratio_defined=True, ratio_range=0.0)
        assert classify(summary, 0.0, 0, 5) == ("fixed point", "FixedPoint")

    def test_oscillating(self):
        """Bounded range with frequent sign changes."""
        summary = RunSummary(ratio_defined=True, ratio_range=50.0)
        assert classify(summary, 10.0, 5, 9) == ("oscillating", "Oscillating")

    def test_convergent(self):
        """Close to a named constant."""
        summary = RunSummary(ratio_defined=True, ratio_range=0.5,
                             closest_constant="phi", closest_delta=1e-5)
        assert classify(summary, 0.1, 0, 9) == ("stable", "Convergent(phi)")

    def test_stable(self):
        """Bounded but not near any constant."""
        summary = RunSummary(ratio_defined=True, ratio_range=0.5, closest_delta=0.1)
        assert classify(summary, 0.1, 0, 9) == ("stable", "Stable")


class TestHelpers:
    """Tests for labels and constants."""

    def test_psi_type_label(self):
        assert psi_type_label(TRTSConfig()) == "2-way"
        assert psi_type_label(TRTSConfig(triple_psi=True)) == "3-way"

    def test_constant_value(self):
        assert math.isclose(constant_value("phi"), 1.618033988749895)
        assert constant_value("unknown") is None
