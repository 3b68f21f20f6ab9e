"""
tests/test_export.py - Tests for CSV Sinks and Run Export

Validates:
- events.csv / values.csv layout and row counts
- Minimal go-time layout on a stream
- JSON-ready summaries, reports and model details
"""

import csv
import io
import json

from trts.analysis import analyze_run
from trts.cycle import run_simulation, simulate_stream
from trts.export import (
    EVENTS_HEADER,
    MINIMAL_HEADER,
    VALUES_HEADER,
    CsvSink,
    MinimalCsvSink,
    export_model_details,
    generate_report,
    summary_to_dict,
    write_run_csv,
)
from trts.types_config import SCENARIO_END_TO_END


def read_rows(path):
    with open(path, newline="") as fh:
        return list(csv.reader(fh))


class TestHeaders:
    """Tests for the fixed column layout."""

    def test_values_header_layout(self):
        """Registers, four history pairs, size, deltas and triangle."""
        assert VALUES_HEADER[:4] == ["tick", "mt", "upsilon_num", "upsilon_den"]
        assert "koppa_stack3_den" in VALUES_HEADER
        assert "koppa_stack_size" in VALUES_HEADER
        assert VALUES_HEADER[-1] == "triangle_epsilon_over_prev_den"
        assert len(VALUES_HEADER) == 2 + 12 + 8 + 1 + 10

    def test_events_header(self):
        """Event flags follow tick, mt, phase."""
        assert EVENTS_HEADER[:3] == ["tick", "mt", "phase"]
        assert len(EVENTS_HEADER) == 14


class TestCsvSink:
    """Tests for the directory sink."""

    def test_write_run_csv(self, tmp_path):
        """One header plus one row per microtick in each file."""
        events_path, values_path = write_run_csv(SCENARIO_END_TO_END, tmp_path / "out")

        events = read_rows(events_path)
        values = read_rows(values_path)
        assert events[0] == EVENTS_HEADER
        assert values[0] == VALUES_HEADER
        assert len(events) == 12
        assert len(values) == 12
        assert all(len(row) == len(VALUES_HEADER) for row in values)

    def test_first_rows(self, tmp_path):
        """First microtick is an E step with upsilon = 2/1."""
        events_path, values_path = write_run_csv(SCENARIO_END_TO_END, tmp_path)
        events = read_rows(events_path)
        values = read_rows(values_path)

        assert events[1][:3] == ["1", "1", "E"]
        assert values[1][2:6] == ["2", "1", "2", "1"]
        # history slots absent without multi-level koppa
        stack_start = VALUES_HEADER.index("koppa_stack0_num")
        assert values[1][stack_start:stack_start + 8] == ["0"] * 8

    def test_sink_counts_rows(self, tmp_path):
        """rows_written tracks the observer calls."""
        with CsvSink(tmp_path) as sink:
            run_simulation(SCENARIO_END_TO_END, observers=[sink], record=False)
        assert sink.rows_written == 11
        assert sink.events_path.exists()


class TestMinimalCsvSink:
    """Tests for the go-time stream sink."""

    def test_stream_rows(self):
        """Header plus eleven rows."""
        stream = io.StringIO()
        sink = MinimalCsvSink(stream)
        simulate_stream(SCENARIO_END_TO_END, sink)

        lines = stream.getvalue().splitlines()
        assert lines[0] == ",".join(MINIMAL_HEADER)
        assert len(lines) == 12
        assert lines[1].startswith("1,1,2,1,2,1,0,0")
        assert sink.rows_written == 11


class TestSummaryAndReports:
    """Tests for JSON and text exports."""

    def test_summary_to_dict_is_json_ready(self):
        """final_ratio becomes N/D text."""
        data = summary_to_dict(analyze_run(SCENARIO_END_TO_END))
        text = json.dumps(data)
        assert isinstance(data["final_ratio"], str)
        assert "/" in data["final_ratio"]
        assert json.loads(text)["psi_events"] == 4

    def test_report(self):
        """Report names the scenario and passes."""
        report = generate_report(run_simulation(SCENARIO_END_TO_END))
        assert "Scenario: END_TO_END" in report
        assert "Pass/Fail: PASS" in report

    def test_model_details(self, tmp_path):
        """Model export lists scenarios and is written to disk."""
        path = tmp_path / "model.json"
        model = export_model_details(str(path))
        assert "END_TO_END" in model["scenarios"]
        assert model["koppa_stack_capacity"] == 4
        assert json.loads(path.read_text())["dual_hash"] == model["dual_hash"]
