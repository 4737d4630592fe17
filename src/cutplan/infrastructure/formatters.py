"""Output formatters and exporters for cutting plans.

Formatters take integer-unit results (solutions, validation balances)
together with the scale factor used by the configuration adapter, and
report lengths and areas back in configuration units.
"""

from __future__ import annotations

import json
from typing import Any

from cutplan.application.config.validator import MaterialBalance, ValidationResult
from cutplan.domain.solution import SheetLayout, Solution
from cutplan.domain.value_objects import Cut, Panel, Placement
from cutplan.engine.control import ProgressSnapshot


def scale_length(value: int, scale: int = 1) -> int | float:
    """Convert an integer length to configuration units.

    Whole values stay integers so JSON output does not grow spurious
    ``.0`` suffixes.
    """
    if value % scale == 0:
        return value // scale
    return value / scale


def scale_area(value: int, scale: int = 1) -> int | float:
    return scale_length(value, scale * scale)


class SolutionFormatter:
    """Formats a solution as a plain-text cutting report.

    The report has a summary block, one placement table per sheet and, when
    pieces could not be placed, a list of them.
    """

    def __init__(self, show_cuts: bool = False) -> None:
        """Initialize formatter.

        Args:
            show_cuts: Whether to list the cuts of each sheet.
        """
        self._show_cuts = show_cuts

    def format(self, solution: Solution, scale: int = 1) -> str:
        """Format a solution as a report."""
        lines = self._format_summary(solution, scale)

        for index, layout in enumerate(solution.layouts(), start=1):
            lines.append("")
            lines.extend(self._format_sheet(index, layout, scale))

        if solution.unplaced:
            lines.append("")
            lines.append("UNPLACED PIECES")
            lines.append("-" * 70)
            for piece_id, count in sorted(solution.unplaced.items()):
                note = " (fits no panel)" if piece_id in solution.no_fit else ""
                lines.append(f"  {piece_id:<30} x{count}{note}")

        return "\n".join(lines)

    def _format_summary(self, solution: Solution, scale: int) -> list[str]:
        lines = [
            "CUTTING PLAN",
            "=" * 70,
            f"Status:          {solution.status.value}"
            f"{'' if solution.exhaustive else ' (search not exhaustive)'}",
            f"Sheets used:     {len(solution.sheets)}",
            f"Pieces placed:   {len(solution.placements)}",
            f"Cuts:            {solution.total_cuts}",
            f"Total waste:     {scale_area(solution.total_waste, scale)}",
            f"Kerf loss:       {scale_area(solution.total_kerf_loss, scale)}",
            f"Utilization:     {solution.utilization:.1%}",
            f"Biggest offcut:  {scale_area(solution.biggest_offcut_area, scale)}",
            f"States explored: {solution.states_explored}",
            f"Elapsed:         {solution.elapsed:.2f}s",
        ]
        if solution.panel_usage:
            usage = ", ".join(
                f"{material}: {count}"
                for material, count in sorted(solution.panel_usage.items())
            )
            lines.append(f"Panel usage:     {usage}")
        if solution.edge_banding:
            banding = ", ".join(
                f"{material}: {scale_length(length, scale)}"
                for material, length in solution.edge_banding.items()
            )
            lines.append(f"Edge banding:    {banding}")
        return lines

    def _format_sheet(self, index: int, layout: SheetLayout, scale: int) -> list[str]:
        sheet = layout.sheet
        width = scale_length(sheet.width, scale)
        height = scale_length(sheet.height, scale)
        lines = [
            f"SHEET {index}: {sheet.id} ({width} x {height}, {sheet.material})"
            f" - {layout.piece_count} pieces, {layout.waste_percentage:.1f}% waste",
            "-" * 70,
            f"{'Piece':<24} {'X':>8} {'Y':>8} {'Width':>8} {'Height':>8} {'Rot':>4}",
        ]
        for placement in layout.placements:
            lines.append(
                f"{placement.piece_id:<24} "
                f"{scale_length(placement.x, scale):>8} "
                f"{scale_length(placement.y, scale):>8} "
                f"{scale_length(placement.width, scale):>8} "
                f"{scale_length(placement.height, scale):>8} "
                f"{'yes' if placement.rotated else '':>4}"
            )
        if self._show_cuts and layout.cuts:
            lines.append("  Cuts:")
            for number, cut in enumerate(layout.cuts, start=1):
                lines.append(
                    f"  {number:>3}. {cut.axis.value:<10} at "
                    f"{scale_length(cut.position, scale)} "
                    f"(length {scale_length(cut.length, scale)})"
                )
        return lines


class ProgressFormatter:
    """Formats progress snapshots as one-line status messages."""

    def format(self, snapshot: ProgressSnapshot, scale: int = 1) -> str:
        best = (
            "-"
            if snapshot.best_waste_so_far is None
            else scale_area(snapshot.best_waste_so_far, scale)
        )
        return (
            f"[{snapshot.elapsed_time:6.1f}s] states {snapshot.states_explored:>9} "
            f"cache {snapshot.cache_entries:>8} "
            f"({snapshot.cache_hit_ratio:.0%} hits) best waste {best}"
        )


class ValidationFormatter:
    """Formats a validation result as a material balance report."""

    def format(self, result: ValidationResult) -> str:
        """Format the balance table, the findings and a closing verdict."""
        lines: list[str] = []
        if result.materials:
            lines.extend(self._format_materials(result.materials, result.scale))
            lines.append("")

        if result.errors:
            lines.append("Errors:")
            for error in result.errors:
                lines.append(f"  {error.path}: {error.message}")
                if error.value is not None:
                    lines.append(f"    Value: {error.value!r}")
            lines.append("")

        if result.warnings:
            lines.append("Warnings:")
            for warning in result.warnings:
                lines.append(f"  {warning.path}: {warning.message}")
                if warning.suggestion:
                    lines.append(f"    Suggestion: {warning.suggestion}")
            lines.append("")

        if result.errors:
            lines.append(
                f"Validation failed: {len(result.errors)} error(s), "
                f"{len(result.warnings)} warning(s)"
            )
        elif result.warnings:
            lines.append(f"Validation passed with {len(result.warnings)} warning(s)")
        else:
            lines.append("Validation passed. Configuration is valid.")
        return "\n".join(lines)

    def _format_materials(
        self, balances: list[MaterialBalance], scale: int
    ) -> list[str]:
        lines = [
            "MATERIAL BALANCE",
            "=" * 70,
            f"{'Material':<16} {'Pieces':>7} {'Demand':>12} "
            f"{'Sheets':>7} {'Stock':>12} {'Shortfall':>11}",
        ]
        for balance in balances:
            lines.append(
                f"{balance.material:<16} {balance.piece_count:>7} "
                f"{scale_area(balance.demand_area, scale):>12} "
                f"{balance.sheet_count:>7} "
                f"{scale_area(balance.stock_area, scale):>12} "
                f"{scale_area(balance.shortfall, scale):>11}"
            )
        return lines


def _placement_to_dict(placement: Placement, scale: int) -> dict[str, Any]:
    return {
        "piece_id": placement.piece_id,
        "sheet_id": placement.panel_id,
        "x": scale_length(placement.x, scale),
        "y": scale_length(placement.y, scale),
        "width": scale_length(placement.width, scale),
        "height": scale_length(placement.height, scale),
        "rotated": placement.rotated,
    }


def _cut_to_dict(cut: Cut, scale: int) -> dict[str, Any]:
    return {
        "panel_id": cut.panel_id,
        "sheet_id": cut.sheet_id,
        "axis": cut.axis.value,
        "position": scale_length(cut.position, scale),
        "length": scale_length(cut.length, scale),
        "kerf": scale_length(cut.kerf, scale),
    }


def _panel_to_dict(panel: Panel, scale: int) -> dict[str, Any]:
    return {
        "id": panel.id,
        "sheet_id": panel.sheet_id,
        "x": scale_length(panel.x, scale),
        "y": scale_length(panel.y, scale),
        "width": scale_length(panel.width, scale),
        "height": scale_length(panel.height, scale),
        "material": panel.material,
        "reusable": panel.reusable,
    }


def solution_to_dict(solution: Solution, scale: int = 1) -> dict[str, Any]:
    """Convert a solution to a JSON-serializable document.

    Args:
        solution: The solution to convert.
        scale: Integer units per configuration unit.

    Returns:
        Dictionary with summary fields, per-sheet layouts, cuts and
        leftovers, with lengths in configuration units.
    """
    sheets = []
    for layout in solution.layouts():
        sheets.append(
            {
                "id": layout.sheet.id,
                "material": layout.sheet.material,
                "width": scale_length(layout.sheet.width, scale),
                "height": scale_length(layout.sheet.height, scale),
                "waste_percentage": round(layout.waste_percentage, 2),
                "placements": [
                    _placement_to_dict(p, scale) for p in layout.placements
                ],
                "cuts": [_cut_to_dict(c, scale) for c in layout.cuts],
                "offcuts": [_panel_to_dict(o, scale) for o in layout.offcuts],
            }
        )

    return {
        "status": solution.status.value,
        "feasible": solution.feasible,
        "exhaustive": solution.exhaustive,
        "total_waste": scale_area(solution.total_waste, scale),
        "total_kerf_loss": scale_area(solution.total_kerf_loss, scale),
        "total_cuts": solution.total_cuts,
        "utilization": round(solution.utilization, 4),
        "biggest_offcut_area": scale_area(solution.biggest_offcut_area, scale),
        "panel_usage": solution.panel_usage,
        "edge_banding": {
            material: scale_length(length, scale)
            for material, length in solution.edge_banding.items()
        },
        "states_explored": solution.states_explored,
        "elapsed": round(solution.elapsed, 3),
        "unplaced": dict(sorted(solution.unplaced.items())),
        "no_fit": list(solution.no_fit),
        "sheets": sheets,
    }


def validation_to_dict(result: ValidationResult) -> dict[str, Any]:
    """Convert a validation result to a JSON-serializable document."""
    return {
        "is_valid": result.is_valid,
        "errors": [
            {"path": e.path, "message": e.message, "value": e.value}
            for e in result.errors
        ],
        "warnings": [
            {"path": w.path, "message": w.message, "suggestion": w.suggestion}
            for w in result.warnings
        ],
        "materials": [
            {
                "material": b.material,
                "pieces": b.piece_count,
                "demand_area": scale_area(b.demand_area, result.scale),
                "sheets": b.sheet_count,
                "stock_area": scale_area(b.stock_area, result.scale),
                "shortfall": scale_area(b.shortfall, result.scale),
            }
            for b in result.materials
        ],
    }


class JsonExporter:
    """Exports solutions as JSON."""

    def export(self, solution: Solution, scale: int = 1) -> str:
        """Export a solution as a JSON string."""
        return json.dumps(solution_to_dict(solution, scale), indent=2)
