"""Tests for solution and validation formatters and the JSON exporter."""

from __future__ import annotations

import json
from dataclasses import replace

import pytest

from cutplan.application.config import MaterialBalance, ValidationResult
from cutplan.domain import OptimizerConfig, Panel, Piece, Problem, Solution
from cutplan.engine import ProgressSnapshot, optimize
from cutplan.infrastructure import (
    JsonExporter,
    ProgressFormatter,
    SolutionFormatter,
    ValidationFormatter,
    scale_area,
    scale_length,
    solution_to_dict,
    validation_to_dict,
)


@pytest.fixture
def solved(two_doors_problem: Problem) -> Solution:
    """The two doors problem, solved."""
    return optimize(two_doors_problem, OptimizerConfig(parallelism=1))


@pytest.fixture
def unsolved() -> Solution:
    """A plan with one piece that fits nowhere."""
    problem = Problem.of(
        panels=[Panel(id="sheet", width=500, height=500)],
        pieces=[
            Piece(id="small", width=250, height=500),
            Piece(id="huge", width=900, height=900),
        ],
    )
    return optimize(problem, OptimizerConfig(parallelism=1))


class TestScaling:
    """Tests for unit conversion helpers."""

    def test_whole_values_stay_integers(self) -> None:
        assert scale_length(48_000, 1000) == 48
        assert isinstance(scale_length(48_000, 1000), int)

    def test_fractions(self) -> None:
        assert scale_length(23_875, 1000) == pytest.approx(23.875)
        assert scale_area(2_500_000, 1000) == pytest.approx(2.5)


class TestSolutionFormatter:
    """Tests for the text report."""

    def test_summary(self, solved: Solution) -> None:
        report = SolutionFormatter().format(solved)
        assert "CUTTING PLAN" in report
        assert "Status:          complete" in report
        assert "Total waste:     0" in report
        assert "Utilization:     100.0%" in report

    def test_sheet_table(self, solved: Solution) -> None:
        report = SolutionFormatter().format(solved)
        assert "SHEET 1: sheet#1 (2000 x 1000, default)" in report
        assert report.count("door") == 2

    def test_cuts_listed_on_request(self, solved: Solution) -> None:
        assert "Cuts:" not in SolutionFormatter().format(solved).split("SHEET 1")[1]
        report = SolutionFormatter(show_cuts=True).format(solved)
        assert "vertical" in report

    def test_unplaced_section(self, unsolved: Solution) -> None:
        report = SolutionFormatter().format(unsolved)
        assert "UNPLACED PIECES" in report
        assert "huge" in report
        assert "(fits no panel)" in report

    def test_scaled_output(self, solved: Solution) -> None:
        report = SolutionFormatter().format(solved, scale=10)
        assert "(200 x 100, default)" in report

    def test_edge_banding_line(self, solved: Solution) -> None:
        banded = replace(solved, edge_banding={"oak": 2500, "pvc": 40})
        report = SolutionFormatter().format(banded, scale=10)
        assert "Edge banding:    oak: 250, pvc: 4" in report

    def test_no_edge_banding_line_without_banding(self, solved: Solution) -> None:
        assert "Edge banding" not in SolutionFormatter().format(solved)


class TestProgressFormatter:
    """Tests for progress lines."""

    def test_without_best(self) -> None:
        snapshot = ProgressSnapshot(
            states_explored=42,
            cache_entries=7,
            cache_hit_ratio=0.25,
            best_waste_so_far=None,
            elapsed_time=1.5,
        )
        line = ProgressFormatter().format(snapshot)
        assert "states" in line and "42" in line
        assert "25% hits" in line
        assert line.endswith("best waste -")

    def test_with_best_scaled(self) -> None:
        snapshot = ProgressSnapshot(
            states_explored=1,
            cache_entries=1,
            cache_hit_ratio=0.0,
            best_waste_so_far=250,
            elapsed_time=0.1,
        )
        assert ProgressFormatter().format(snapshot, scale=10).endswith("best waste 2.5")


class TestSolutionToDict:
    """Tests for the JSON document."""

    def test_summary_fields(self, solved: Solution) -> None:
        data = solution_to_dict(solved)
        assert data["status"] == "complete"
        assert data["feasible"] is True
        assert data["total_waste"] == 0
        assert data["total_cuts"] == 1
        assert data["panel_usage"] == {"default": 1}
        assert data["unplaced"] == {}
        assert data["no_fit"] == []
        assert data["edge_banding"] == {}

    def test_sheets(self, solved: Solution) -> None:
        (sheet,) = solution_to_dict(solved)["sheets"]
        assert sheet["id"] == "sheet#1"
        assert len(sheet["placements"]) == 2
        assert sheet["cuts"][0]["axis"] == "vertical"
        assert sheet["offcuts"] == []

    def test_scale_applied(self, solved: Solution) -> None:
        (sheet,) = solution_to_dict(solved, scale=1000)["sheets"]
        assert sheet["width"] == 2
        placement = sheet["placements"][0]
        assert placement["width"] == 1

    def test_edge_banding_scaled(self, solved: Solution) -> None:
        banded = replace(solved, edge_banding={"oak": 2505})
        data = solution_to_dict(banded, scale=10)
        assert data["edge_banding"] == {"oak": pytest.approx(250.5)}

    def test_unplaced(self, unsolved: Solution) -> None:
        data = solution_to_dict(unsolved)
        assert data["status"] == "infeasible"
        assert data["unplaced"] == {"huge": 1}
        assert data["no_fit"] == ["huge"]
        assert data["biggest_offcut_area"] == 125_000


class TestJsonExporter:
    """Tests for the JSON exporter."""

    def test_export_is_valid_json(self, solved: Solution) -> None:
        output = JsonExporter().export(solved)
        assert json.loads(output) == solution_to_dict(solved)


# =============================================================================
# Validation Report Tests
# =============================================================================


@pytest.fixture
def short_of_oak() -> ValidationResult:
    """A result whose oak pieces need more area than the oak stock."""
    result = ValidationResult(
        materials=[
            MaterialBalance("mdf", 1, 500_000, 1, 1_000_000),
            MaterialBalance("oak", 4, 1_200_000, 1, 960_000),
        ],
        scale=10,
    )
    return result.add_warning("pieces", "Not enough oak", suggestion="Add oak")


class TestValidationFormatter:
    """Tests for the text validation report."""

    def test_material_table(self, short_of_oak: ValidationResult) -> None:
        lines = ValidationFormatter().format(short_of_oak).splitlines()
        assert lines[0] == "MATERIAL BALANCE"
        oak = next(line for line in lines if line.startswith("oak"))
        assert oak.split() == ["oak", "4", "12000", "1", "9600", "2400"]
        mdf = next(line for line in lines if line.startswith("mdf"))
        assert mdf.split()[-1] == "0"

    def test_warnings_and_verdict(self, short_of_oak: ValidationResult) -> None:
        report = ValidationFormatter().format(short_of_oak)
        assert "  pieces: Not enough oak" in report
        assert "    Suggestion: Add oak" in report
        assert report.endswith("Validation passed with 1 warning(s)")

    def test_errors_without_balance(self) -> None:
        result = ValidationResult().add_error("pieces[0].width", "too small", -10)
        report = ValidationFormatter().format(result)
        assert "MATERIAL BALANCE" not in report
        assert "    Value: -10" in report
        assert report.endswith("Validation failed: 1 error(s), 0 warning(s)")

    def test_clean(self) -> None:
        report = ValidationFormatter().format(ValidationResult())
        assert report == "Validation passed. Configuration is valid."


class TestValidationToDict:
    """Tests for the JSON validation document."""

    def test_materials_scaled(self, short_of_oak: ValidationResult) -> None:
        data = validation_to_dict(short_of_oak)
        assert data["is_valid"] is True
        assert data["materials"][1] == {
            "material": "oak",
            "pieces": 4,
            "demand_area": 12_000,
            "sheets": 1,
            "stock_area": 9_600,
            "shortfall": 2_400,
        }
        assert data["warnings"] == [
            {"path": "pieces", "message": "Not enough oak", "suggestion": "Add oak"}
        ]
        assert json.loads(json.dumps(data)) == data
