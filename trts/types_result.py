"""
trts/types_result.py - Microtick Events, Snapshots and RunResult

Immutable containers emitted by the scheduler.
"""

from dataclasses import dataclass

from .constants import MICROTICKS_PER_TICK, Phase
from .types_config import TRTSConfig
from .types_state import StateSnapshot


@dataclass(frozen=True)
class MicrotickEvents:
    """What happened during one microtick."""
    rho_event: bool = False
    psi_fired: bool = False
    mu_zero: bool = False
    forced_emission: bool = False


@dataclass(frozen=True)
class Snapshot:
    """One observer emission: position in the run plus a frozen state copy."""
    tick: int
    microtick: int
    phase: Phase
    state: StateSnapshot
    events: MicrotickEvents

    @property
    def index(self) -> int:
        """Linearised microtick position, 1-based."""
        return (self.tick - 1) * MICROTICKS_PER_TICK + self.microtick


@dataclass(frozen=True)
class RunResult:
    """Immutable simulation result."""
    final_state: StateSnapshot
    snapshots: list
    statistics: dict
    violations: list
    receipts: list
    config: TRTSConfig
