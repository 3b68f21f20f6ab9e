"""
tests/test_self_refine.py - Tests for Configuration Search

Validates:
- Seeded randomness is reproducible
- Mutations keep denominators positive
- Scoring formula
- evolve() contracts: StopRule on empty population, one receipt per generation
- save_best output

Every search here is kept to one tick so runs stay small.
"""

import json
import random

import pytest

from receipts import StopRule
from self_refine import (
    Candidate,
    EvolutionOptions,
    evaluate_candidate,
    evolve,
    mutate_config,
    mutate_seed,
    randomize_config,
    save_best,
    score_summary,
)
from trts.analysis import RunSummary
from trts.constants import RECEIPT_SCHEMA
from trts.rational import Rational
from trts.types_config import SCENARIO_END_TO_END


TINY = dict(generations=2, population=2, elite=1, seed=7, tick_range=(1, 1))


class TestRandomize:
    """Tests for randomize_config and mutations."""

    def test_reproducible(self):
        """Same seed, same candidate."""
        a = randomize_config(random.Random(3), tick_range=(1, 1))
        b = randomize_config(random.Random(3), tick_range=(1, 1))
        assert a == b

    def test_ranges(self):
        """Seeds in 1..8, koppa 1/1, ticks from the range."""
        rng = random.Random(11)
        for _ in range(20):
            config = randomize_config(rng, tick_range=(1, 2))
            assert 1 <= config.ticks <= 2
            assert 1 <= config.upsilon_seed.num <= 8
            assert 1 <= config.beta_seed.den <= 8
            assert config.koppa_seed == Rational.from_ints(1, 1)

    def test_mutate_seed_keeps_denominator_positive(self):
        """A 1 denominator is never decremented."""
        rng = random.Random(0)
        value = Rational.from_ints(3, 1)
        for _ in range(50):
            value = mutate_seed(rng, value)
            assert value.is_zero() or value.den >= 1

    def test_mutate_seed_from_zero(self):
        """The zero value mutates as 0/1, never producing a zero denominator."""
        rng = random.Random(1)
        for _ in range(20):
            value = mutate_seed(rng, Rational.zero())
            assert value.is_zero() or value.den >= 1

    def test_mutate_config_keeps_other_fields(self):
        """Mutation touches only modes, triple psi and the two seeds."""
        rng = random.Random(5)
        base = randomize_config(rng, tick_range=(1, 1))
        mutated = mutate_config(rng, base)
        assert mutated.ticks == base.ticks
        assert mutated.koppa_seed == base.koppa_seed


class TestScore:
    """Tests for score_summary."""

    def test_formula(self):
        """Distance penalty plus event rewards minus spreads."""
        summary = RunSummary(ratio_defined=True, final_ratio_snapshot=1.5,
                             psi_events=10, rho_events=4,
                             psi_spacing_stddev=2.0, ratio_variance=1.0)
        score = score_summary(summary, 1.0)
        assert score == pytest.approx(-0.5 + 1.0 + 0.2 - 0.02 - 0.01)

    def test_undefined_ratio(self):
        """No distance term without a ratio."""
        summary = RunSummary(psi_events=1)
        assert score_summary(summary, 1.0) == pytest.approx(0.1)

    def test_evaluate_caches(self):
        """A candidate is simulated once."""
        candidate = Candidate(config=SCENARIO_END_TO_END)
        first = evaluate_candidate(candidate, 1.0)
        summary = candidate.summary
        assert evaluate_candidate(candidate, 1.0) == first
        assert candidate.summary is summary
        assert candidate.evaluated


class TestEvolve:
    """Tests for the search loop."""

    def test_empty_population(self):
        """An empty population is a contract breach."""
        with pytest.raises(StopRule):
            evolve(EvolutionOptions(population=0))

    def test_unknown_strategy(self):
        """Unknown strategies are rejected."""
        with pytest.raises(ValueError):
            evolve(EvolutionOptions(strategy="annealing", **TINY))

    def test_generation_bests_and_receipts(self):
        """One best per generation plus the final best; one receipt each."""
        ledger = []
        bests = evolve(EvolutionOptions(**TINY), ledger=ledger)

        assert len(bests) == 3
        assert all(c.evaluated for c in bests)
        assert [rec["generation"] for rec in ledger] == [0, 1]
        assert all(rec["receipt_type"] == "trts_refine_generation" for rec in ledger)
        assert ledger[0]["receipt_type"] in RECEIPT_SCHEMA

    def test_elite_survives(self):
        """Hill climbing never loses the best score."""
        bests = evolve(EvolutionOptions(**TINY))
        assert bests[1].score >= bests[0].score

    def test_reproducible(self):
        """Same seed, same scores."""
        a = [c.score for c in evolve(EvolutionOptions(**TINY))]
        b = [c.score for c in evolve(EvolutionOptions(**TINY))]
        assert a == b

    def test_random_restart(self):
        """The restart strategy runs too."""
        bests = evolve(EvolutionOptions(strategy="random-restart", **TINY))
        assert len(bests) == 3


class TestSaveBest:
    """Tests for save_best."""

    def test_writes_json(self, tmp_path):
        """Score, loadable config and summary are written."""
        candidate = Candidate(config=SCENARIO_END_TO_END)
        evaluate_candidate(candidate, 1.0)
        path = tmp_path / "best.json"

        data = save_best(candidate, str(path))
        on_disk = json.loads(path.read_text())
        assert on_disk["score"] == data["score"]
        assert on_disk["config"]["tick_count"] == 1
        assert on_disk["summary"]["psi_events"] == 4
