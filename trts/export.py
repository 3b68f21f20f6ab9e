"""
trts/export.py - CSV Sinks and Run Export

Observers that write snapshots as CSV, plus digest and report helpers.
Column layout of events.csv / values.csv is fixed so downstream notebooks
keep working; absent history slots are written as 0,0.
"""

import csv
import json
from dataclasses import asdict
from pathlib import Path
from typing import Iterable, List, Optional, TextIO, Tuple, Union

from receipts import dual_hash

from .analysis import RunSummary
from .constants import KOPPA_STACK_CAPACITY, RECEIPT_SCHEMA
from .cycle import simulate_stream
from .types_config import MANDATORY_SCENARIOS, TRTSConfig
from .types_result import RunResult, Snapshot
from .types_state import StateSnapshot


EVENTS_HEADER = [
    "tick", "mt", "phase", "rho_event", "psi_fired", "mu_zero",
    "forced_emission", "ratio_triggered", "triple_psi", "dual_engine",
    "koppa_sample_index", "ratio_threshold", "psi_strength", "sign_flip",
]

_VALUE_FIELDS = [
    ("upsilon", "upsilon"),
    ("beta", "beta"),
    ("koppa", "koppa"),
    ("koppa_sample", "koppa_sample"),
    ("prev_upsilon", "previous_upsilon"),
    ("prev_beta", "previous_beta"),
]

_TAIL_FIELDS = [
    ("delta_upsilon", "delta_upsilon"),
    ("delta_beta", "delta_beta"),
    ("triangle_phi_over_epsilon", "triangle_phi_over_epsilon"),
    ("triangle_prev_over_phi", "triangle_prev_over_phi"),
    ("triangle_epsilon_over_prev", "triangle_epsilon_over_prev"),
]


def _pair(prefix: str) -> List[str]:
    return [f"{prefix}_num", f"{prefix}_den"]


_STACK_COLUMNS = [column for i in range(KOPPA_STACK_CAPACITY)
                  for column in _pair(f"koppa_stack{i}")]

VALUES_HEADER = (
    ["tick", "mt"]
    + [column for prefix, _ in _VALUE_FIELDS for column in _pair(prefix)]
    + _STACK_COLUMNS
    + ["koppa_stack_size"]
    + [column for prefix, _ in _TAIL_FIELDS for column in _pair(prefix)]
)

MINIMAL_HEADER = (
    ["tick", "mt"]
    + _pair("upsilon") + _pair("beta") + _pair("koppa")
    + _STACK_COLUMNS
    + ["koppa_stack_size"]
)


# =============================================================================
# ROWS
# =============================================================================

def _stack_cells(state: StateSnapshot) -> List[int]:
    cells = []
    for i in range(KOPPA_STACK_CAPACITY):
        if i < state.koppa_stack_size:
            cells.extend([state.koppa_stack[i].num, state.koppa_stack[i].den])
        else:
            cells.extend([0, 0])
    return cells


def events_row(snapshot: Snapshot) -> list:
    st, ev = snapshot.state, snapshot.events
    return [
        snapshot.tick, snapshot.microtick, snapshot.phase.value,
        int(ev.rho_event), int(ev.psi_fired), int(ev.mu_zero),
        int(ev.forced_emission),
        int(st.ratio_triggered_recent), int(st.psi_triple_recent),
        int(st.dual_engine_last_step), st.koppa_sample_index,
        int(st.ratio_threshold_recent), int(st.psi_strength_applied),
        int(st.sign_flip_polarity),
    ]


def values_row(snapshot: Snapshot) -> list:
    st = snapshot.state
    row = [snapshot.tick, snapshot.microtick]
    for _, attr in _VALUE_FIELDS:
        value = getattr(st, attr)
        row.extend([value.num, value.den])
    row.extend(_stack_cells(st))
    row.append(st.koppa_stack_size)
    for _, attr in _TAIL_FIELDS:
        value = getattr(st, attr)
        row.extend([value.num, value.den])
    return row


def minimal_row(snapshot: Snapshot) -> list:
    st = snapshot.state
    row = [snapshot.tick, snapshot.microtick]
    for value in (st.upsilon, st.beta, st.koppa):
        row.extend([value.num, value.den])
    row.extend(_stack_cells(st))
    row.append(st.koppa_stack_size)
    return row


# =============================================================================
# SINKS
# =============================================================================

class CsvSink:
    """
    Observer writing events.csv and values.csv into a directory.

    Use as a context manager so both files are closed after the run:

        with CsvSink(out_dir) as sink:
            simulate_stream(config, sink)
    """

    EVENTS_FILE = "events.csv"
    VALUES_FILE = "values.csv"

    def __init__(self, out_dir: Union[str, Path]):
        self.out_dir = Path(out_dir)
        self.events_path = self.out_dir / self.EVENTS_FILE
        self.values_path = self.out_dir / self.VALUES_FILE
        self._events_fh = None
        self._values_fh = None
        self._events = None
        self._values = None
        self.rows_written = 0

    def open(self) -> "CsvSink":
        self.out_dir.mkdir(parents=True, exist_ok=True)
        self._events_fh = open(self.events_path, "w", newline="")
        self._values_fh = open(self.values_path, "w", newline="")
        self._events = csv.writer(self._events_fh)
        self._values = csv.writer(self._values_fh)
        self._events.writerow(EVENTS_HEADER)
        self._values.writerow(VALUES_HEADER)
        return self

    def close(self) -> None:
        for fh in (self._events_fh, self._values_fh):
            if fh is not None:
                fh.close()
        self._events_fh = self._values_fh = None

    def __enter__(self) -> "CsvSink":
        return self.open()

    def __exit__(self, *exc) -> None:
        self.close()

    def __call__(self, snapshot: Snapshot) -> None:
        self._events.writerow(events_row(snapshot))
        self._values.writerow(values_row(snapshot))
        self.rows_written += 1


class MinimalCsvSink:
    """Observer writing the compact register + history layout to a stream."""

    def __init__(self, stream: TextIO):
        self._writer = csv.writer(stream, lineterminator="\n")
        self._writer.writerow(MINIMAL_HEADER)
        self.rows_written = 0

    def __call__(self, snapshot: Snapshot) -> None:
        self._writer.writerow(minimal_row(snapshot))
        self.rows_written += 1


def write_run_csv(config: TRTSConfig, out_dir: Union[str, Path]) -> Tuple[Path, Path]:
    """
    Simulate config and write events.csv / values.csv.

    Args:
        config: TRTSConfig
        out_dir: Directory to create or reuse

    Returns:
        Tuple of (events_path, values_path)
    """
    with CsvSink(out_dir) as sink:
        simulate_stream(config, sink)
    return sink.events_path, sink.values_path


# =============================================================================
# DIGESTS AND REPORTS
# =============================================================================

def snapshot_digest(snapshots: Iterable[Snapshot]) -> str:
    """Dual hash over the rendered events and values rows of a run."""
    lines = []
    for snapshot in snapshots:
        lines.append(",".join(str(cell) for cell in events_row(snapshot)))
        lines.append(",".join(str(cell) for cell in values_row(snapshot)))
    return dual_hash("\n".join(lines))


def summary_to_dict(summary: RunSummary) -> dict:
    """JSON-ready RunSummary (the final ratio as "N/D", inf as None)."""
    data = asdict(summary)
    data["final_ratio"] = str(summary.final_ratio) if summary.final_ratio is not None else None
    if data["closest_delta"] == float("inf"):
        data["closest_delta"] = None
    return data


def generate_report(result: RunResult) -> str:
    """
    Generate human-readable summary.

    Args:
        result: RunResult to summarize

    Returns:
        str: Report text
    """
    st = result.final_state
    stats = result.statistics
    lines = [
        "=== TRTS RUN REPORT ===",
        f"Scenario: {result.config.scenario_name}",
        f"Ticks: {result.config.ticks}",
        f"Final upsilon: {st.upsilon}",
        f"Final beta: {st.beta}",
        f"Final koppa: {st.koppa}",
        f"Koppa history depth: {st.koppa_stack_size}",
        f"Psi fires: {stats['psi_fired']}",
        f"Rho events: {stats['rho_events']}",
        f"Violations: {len(result.violations)}",
        "",
        "Pass/Fail: " + ("PASS" if len(result.violations) == 0 else "FAIL")
    ]

    return "\n".join(lines)


def export_model_details(output_path: Optional[str] = None) -> dict:
    """
    Export the engine's scenario list and receipt types.

    Args:
        output_path: Optional file path to write JSON export

    Returns:
        dict: scenarios, receipt schema, stack capacity and dual_hash
    """
    model = {
        "name": "TRTS Propagation Engine",
        "scenarios": MANDATORY_SCENARIOS,
        "receipt_schemas": RECEIPT_SCHEMA,
        "koppa_stack_capacity": KOPPA_STACK_CAPACITY,
        "events_header": EVENTS_HEADER,
        "values_header": VALUES_HEADER,
    }
    model["dual_hash"] = dual_hash(json.dumps(model, sort_keys=True))

    if output_path:
        with open(output_path, "w") as f:
            json.dump(model, f, indent=2)

    return model
