"""
self_refine.py - Configuration Search (elite hill-climb)

Searches the TRTS configuration space for runs whose final upsilon/beta
ratio lands near a named constant while keeping psi and rho activity high.

Each generation: evaluate every candidate, keep the elite, refill the rest
with mutated copies of elite parents. Randomness comes only from a seeded
random.Random; the engine itself stays deterministic.
"""

import json
import math
import random
from dataclasses import dataclass, replace
from pathlib import Path
from typing import List, Optional, Tuple

import config_schema
from receipts import emit_receipt, StopRule
from trts.analysis import RunSummary, analyze_run, constant_value
from trts.constants import EngineMode, KoppaMode, PsiMode
from trts.export import summary_to_dict
from trts.rational import Rational
from trts.types_config import SCENARIO_REFINE_BASE, TRTSConfig


# =============================================================================
# CONSTANTS
# =============================================================================

DEFAULT_GENERATIONS = 10
DEFAULT_POPULATION = 8
DEFAULT_ELITE = 2
DEFAULT_TARGET = "rho"
DEFAULT_TICK_RANGE = (1, 2)     # inclusive; unreduced rationals grow ~1000x in digits per tick
SEED_COMPONENT_RANGE = (1, 8)   # inclusive range for random seed num/den

STRATEGIES = ("hill-climb", "random-restart")

# Score weights
PSI_WEIGHT = 0.1
RHO_WEIGHT = 0.05
SPACING_PENALTY = 0.01
VARIANCE_PENALTY = 0.01

ENGINE_MODES = list(EngineMode)
PSI_MODES = list(PsiMode)
KOPPA_MODES = list(KoppaMode)


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass
class EvolutionOptions:
    """Search parameters."""
    generations: int = DEFAULT_GENERATIONS
    population: int = DEFAULT_POPULATION
    elite: int = DEFAULT_ELITE
    seed: Optional[int] = None
    strategy: str = "hill-climb"
    target: str = DEFAULT_TARGET
    tick_range: Tuple[int, int] = DEFAULT_TICK_RANGE


@dataclass
class Candidate:
    """One configuration under evaluation."""
    config: TRTSConfig
    summary: Optional[RunSummary] = None
    score: float = 0.0
    evaluated: bool = False


# =============================================================================
# RECEIPT TYPE 1: trts_refine_generation
# =============================================================================

# --- SCHEMA ---
TRTS_REFINE_GENERATION_SCHEMA = {
    "receipt_type": "trts_refine_generation",
    "ts": "ISO8601",
    "tenant_id": "str",
    "generation": "int",
    "best_score": "float",
    "psi_events": "int",
    "rho_events": "int",
    "final_ratio": "str N/D or null",
    "payload_hash": "str (SHA256:BLAKE3)"
}


# --- EMIT ---
def emit_generation_receipt(generation: int, best: Candidate) -> dict:
    """Emit trts_refine_generation receipt for the best candidate of a generation."""
    summary = best.summary
    return emit_receipt("trts_refine_generation", {
        "generation": generation,
        "best_score": best.score,
        "psi_events": summary.psi_events if summary else 0,
        "rho_events": summary.rho_events if summary else 0,
        "final_ratio": summary.final_ratio_str if summary and summary.ratio_defined else None,
    })


# =============================================================================
# CORE FUNCTION 1: randomize_config
# =============================================================================

def _random_seed(rng: random.Random) -> Rational:
    low, high = SEED_COMPONENT_RANGE
    return Rational.from_ints(rng.randint(low, high), rng.randint(low, high))


def randomize_config(rng: random.Random, base: TRTSConfig = SCENARIO_REFINE_BASE,
                     tick_range: Tuple[int, int] = DEFAULT_TICK_RANGE) -> TRTSConfig:
    """
    Draw a random candidate around the search baseline.

    Args:
        rng: Seeded random source
        base: Baseline config (koppa seed, triggers, mt10 behavior)
        tick_range: Inclusive (min, max) tick count

    Returns:
        New TRTSConfig
    """
    return replace(
        base,
        engine_mode=rng.choice(ENGINE_MODES),
        psi_mode=rng.choice(PSI_MODES),
        koppa_mode=rng.choice(KOPPA_MODES),
        triple_psi=rng.random() < 0.5,
        multi_level_koppa=rng.random() < 0.5,
        ticks=rng.randint(*tick_range),
        upsilon_seed=_random_seed(rng),
        beta_seed=_random_seed(rng),
        koppa_seed=Rational.from_ints(1, 1),
        scenario_name="REFINE_CANDIDATE",
    )


# =============================================================================
# CORE FUNCTION 2: mutate_config
# =============================================================================

def mutate_seed(rng: random.Random, value: Rational) -> Rational:
    """Nudge one component by 1; the denominator never drops below 1."""
    num, den = value.num, value.den or 1  # 0/0 mutates as 0/1
    choice = rng.randrange(4)
    if choice == 0:
        return Rational.from_ints(num + 1, den)
    if choice == 1:
        return Rational.from_ints(num - 1, den)
    if choice == 2:
        if den > 1:
            return Rational.from_ints(num, den - 1)
        return value
    return Rational.from_ints(num, den + 1)


def mutate_config(rng: random.Random, config: TRTSConfig) -> TRTSConfig:
    """Apply 1 to 3 random point mutations."""
    for _ in range(rng.randint(1, 3)):
        choice = rng.randrange(6)
        if choice == 0:
            config = replace(config, engine_mode=rng.choice(ENGINE_MODES))
        elif choice == 1:
            config = replace(config, psi_mode=rng.choice(PSI_MODES))
        elif choice == 2:
            config = replace(config, koppa_mode=rng.choice(KOPPA_MODES))
        elif choice == 3:
            config = replace(config, triple_psi=not config.triple_psi)
        elif choice == 4:
            config = replace(config, upsilon_seed=mutate_seed(rng, config.upsilon_seed))
        else:
            config = replace(config, beta_seed=mutate_seed(rng, config.beta_seed))
    return config


# =============================================================================
# CORE FUNCTION 3: score_summary
# =============================================================================

def score_summary(summary: RunSummary, target_value: Optional[float]) -> float:
    """
    Fitness of a run.

    score = -|ratio - target| + 0.1 * psi + 0.05 * rho
            - 0.01 * spacing_stddev - 0.01 * ratio_variance

    The ratio term is skipped when the ratio is undefined or the target
    unknown. Overflowed statistics score -inf so candidates stay sortable.
    """
    score = 0.0
    if summary.ratio_defined and target_value is not None:
        score -= abs(summary.final_ratio_snapshot - target_value)
    score += summary.psi_events * PSI_WEIGHT
    score += summary.rho_events * RHO_WEIGHT
    score -= summary.psi_spacing_stddev * SPACING_PENALTY
    score -= summary.ratio_variance * VARIANCE_PENALTY
    if math.isnan(score):
        return float("-inf")
    return score


def evaluate_candidate(candidate: Candidate, target_value: Optional[float]) -> float:
    """Simulate and score once; later calls reuse the cached score."""
    if candidate.evaluated:
        return candidate.score
    candidate.summary = analyze_run(candidate.config)
    candidate.score = score_summary(candidate.summary, target_value)
    candidate.evaluated = True
    return candidate.score


# =============================================================================
# CORE FUNCTION 4: evolve
# =============================================================================

def evolve(options: EvolutionOptions, ledger: Optional[list] = None) -> List[Candidate]:
    """
    Run the search.

    Args:
        options: EvolutionOptions
        ledger: Optional list receiving one receipt per generation

    Returns:
        Best candidate of each generation (in order), followed by the best
        candidate of the final population

    Raises:
        StopRule: If the population is empty
        ValueError: If the strategy is unknown
    """
    if options.population <= 0:
        raise StopRule(f"population must be positive, got {options.population}")
    if options.strategy not in STRATEGIES:
        raise ValueError(f"unknown strategy '{options.strategy}' (expected one of: {', '.join(STRATEGIES)})")

    elite_count = options.elite
    if elite_count <= 0 or elite_count > options.population:
        elite_count = 1

    rng = random.Random(options.seed)
    target_value = constant_value(options.target)

    population = [
        Candidate(config=randomize_config(rng, tick_range=options.tick_range))
        for _ in range(options.population)
    ]
    bests = []

    for generation in range(options.generations):
        for candidate in population:
            evaluate_candidate(candidate, target_value)
        population.sort(key=lambda c: c.score, reverse=True)

        best = population[0]
        bests.append(best)
        receipt = emit_generation_receipt(generation, best)
        if ledger is not None:
            ledger.append(receipt)

        next_population = population[:elite_count]
        while len(next_population) < options.population:
            if options.strategy == "random-restart":
                config = randomize_config(rng, tick_range=options.tick_range)
            else:
                parent = population[rng.randrange(elite_count)]
                config = mutate_config(rng, parent.config)
            next_population.append(Candidate(config=config))
        population = next_population

    for candidate in population:
        evaluate_candidate(candidate, target_value)
    population.sort(key=lambda c: c.score, reverse=True)
    bests.append(population[0])

    return bests


# =============================================================================
# CORE FUNCTION 5: save_best
# =============================================================================

def save_best(candidate: Candidate, path: str) -> dict:
    """
    Write the winning candidate as JSON.

    Args:
        candidate: Evaluated Candidate
        path: Output file path

    Returns:
        dict that was written
    """
    summary = candidate.summary or RunSummary()
    data = {
        "score": candidate.score,
        "config": config_schema.to_dict(candidate.config),
        "summary": summary_to_dict(summary),
    }
    Path(path).write_text(json.dumps(data, indent=2))
    return data
