"""Tests for the cut plan domain value objects and problem model.

Tests cover:
- Panel and Piece validation and derived properties
- Grain direction rotation
- Placement edges
- OptimizerConfig validation
- Problem validation
"""

from __future__ import annotations

import pytest

from cutplan.domain import (
    Cut,
    EdgeBanding,
    GrainDirection,
    InvalidInputError,
    OptimizerConfig,
    OptimizationPriority,
    OriginKind,
    Panel,
    Piece,
    PieceOrder,
    Placement,
    Problem,
    SplitAxis,
)


# =============================================================================
# GrainDirection Tests
# =============================================================================


class TestGrainDirection:
    """Tests for GrainDirection enum."""

    def test_rotation_swaps_axes(self) -> None:
        """Rotating a grain direction swaps width and height."""
        assert GrainDirection.ALONG_WIDTH.rotated() is GrainDirection.ALONG_HEIGHT
        assert GrainDirection.ALONG_HEIGHT.rotated() is GrainDirection.ALONG_WIDTH

    def test_no_grain_is_rotation_invariant(self) -> None:
        assert GrainDirection.NONE.rotated() is GrainDirection.NONE

    def test_values_are_strings(self) -> None:
        assert GrainDirection("along_width") is GrainDirection.ALONG_WIDTH


# =============================================================================
# Panel Tests
# =============================================================================


class TestPanel:
    """Tests for Panel dataclass."""

    def test_defaults(self) -> None:
        """Test a stock panel's default values."""
        panel = Panel(id="sheet", width=2440, height=1220)
        assert panel.material == "default"
        assert panel.grain is GrainDirection.NONE
        assert panel.origin is OriginKind.STOCK
        assert panel.quantity == 1
        assert panel.reusable is True

    def test_area(self) -> None:
        panel = Panel(id="sheet", width=2440, height=1220)
        assert panel.area == 2440 * 1220

    def test_shape_key_ignores_identity(self) -> None:
        """Panels with equal shape keys are interchangeable."""
        a = Panel(id="a", width=100, height=50, x=10, sheet_id="s#1")
        b = Panel(id="b", width=100, height=50, x=70, sheet_id="s#2")
        assert a.shape_key == b.shape_key

    def test_shape_key_includes_material_and_grain(self) -> None:
        plain = Panel(id="a", width=100, height=50)
        oak = Panel(id="b", width=100, height=50, material="oak")
        grained = Panel(id="c", width=100, height=50, grain=GrainDirection.ALONG_WIDTH)
        assert len({plain.shape_key, oak.shape_key, grained.shape_key}) == 3

    @pytest.mark.parametrize("width,height", [(0, 100), (100, 0), (-5, 100)])
    def test_non_positive_dimensions_rejected(self, width: int, height: int) -> None:
        with pytest.raises(InvalidInputError) as exc_info:
            Panel(id="sheet", width=width, height=height)
        assert exc_info.value.field == "dimensions"

    def test_empty_id_rejected(self) -> None:
        with pytest.raises(InvalidInputError):
            Panel(id="", width=100, height=100)

    def test_zero_quantity_rejected(self) -> None:
        with pytest.raises(InvalidInputError, match="quantity"):
            Panel(id="sheet", width=100, height=100, quantity=0)

    def test_negative_offset_rejected(self) -> None:
        with pytest.raises(InvalidInputError):
            Panel(id="sheet", width=100, height=100, x=-1)

    def test_is_frozen(self) -> None:
        panel = Panel(id="sheet", width=100, height=100)
        with pytest.raises(AttributeError):
            panel.width = 200  # type: ignore[misc]


# =============================================================================
# Piece Tests
# =============================================================================


class TestPiece:
    """Tests for Piece dataclass."""

    def test_areas(self) -> None:
        piece = Piece(id="shelf", width=600, height=300, quantity=4)
        assert piece.area == 180_000
        assert piece.total_area == 720_000

    def test_rotation_defers_to_run_policy(self) -> None:
        assert Piece(id="shelf", width=600, height=300).rotatable is None

    def test_display_name_prefers_label(self) -> None:
        assert Piece(id="p1", width=1, height=1, label="Door").display_name == "Door"
        assert Piece(id="p1", width=1, height=1).display_name == "p1"

    def test_invalid_dimensions_rejected(self) -> None:
        with pytest.raises(InvalidInputError, match="positive"):
            Piece(id="shelf", width=600, height=0)

    def test_invalid_quantity_rejected(self) -> None:
        with pytest.raises(InvalidInputError) as exc_info:
            Piece(id="shelf", width=600, height=300, quantity=0)
        assert exc_info.value.field == "quantity"

    def test_invalid_input_is_value_error(self) -> None:
        """InvalidInputError can be caught as a plain ValueError."""
        with pytest.raises(ValueError):
            Piece(id="shelf", width=-1, height=300)

    def test_edge_banding_lengths_per_material(self) -> None:
        banding = EdgeBanding(top="oak", bottom="oak", left="pvc")
        assert banding.lengths(600, 300) == {"oak": 1200, "pvc": 300}

    def test_bare_edges_have_no_banding(self) -> None:
        assert EdgeBanding().lengths(600, 300) == {}
        assert Piece(id="shelf", width=600, height=300).edge_banding is None


# =============================================================================
# Placement and Cut Tests
# =============================================================================


class TestPlacement:
    """Tests for Placement dataclass."""

    def test_edges(self) -> None:
        placement = Placement(
            piece_id="door", panel_id="sheet#1", x=100, y=50, width=400, height=300
        )
        assert placement.right_edge == 500
        assert placement.top_edge == 350
        assert placement.area == 120_000

    def test_negative_position_rejected(self) -> None:
        with pytest.raises(ValueError, match="non-negative"):
            Placement(piece_id="door", panel_id="s", x=-1, y=0, width=1, height=1)


class TestCut:
    """Tests for Cut dataclass."""

    def test_kerf_loss(self) -> None:
        cut = Cut(
            panel_id="sheet#1",
            sheet_id="sheet#1",
            axis=SplitAxis.VERTICAL,
            position=600,
            length=1000,
            kerf=3,
            first=None,
            second=None,
        )
        assert cut.kerf_loss == 3000


# =============================================================================
# OptimizerConfig Tests
# =============================================================================


class TestOptimizerConfig:
    """Tests for OptimizerConfig validation."""

    def test_defaults(self) -> None:
        config = OptimizerConfig()
        assert config.kerf == 0
        assert config.allow_rotation is True
        assert config.use_cache is True
        assert config.piece_order is PieceOrder.AREA
        assert config.optimization_priority is OptimizationPriority.LEAST_WASTE
        assert config.workers >= 1

    def test_explicit_parallelism(self) -> None:
        assert OptimizerConfig(parallelism=3).workers == 3

    @pytest.mark.parametrize(
        "field,value",
        [
            ("kerf", -1),
            ("time_budget", 0),
            ("step_budget", 0),
            ("parallelism", 0),
            ("min_useful_area", -1),
            ("split_depth", -1),
            ("cache_max_entries", 0),
            ("cache_shards", 0),
            ("progress_interval", 0),
        ],
    )
    def test_invalid_values_rejected(self, field: str, value: float) -> None:
        with pytest.raises(InvalidInputError) as exc_info:
            OptimizerConfig(**{field: value})
        assert exc_info.value.field == field


# =============================================================================
# Problem Tests
# =============================================================================


class TestProblem:
    """Tests for Problem validation and totals."""

    def test_sequences_become_tuples(self) -> None:
        problem = Problem(
            panels=[Panel(id="s", width=10, height=10)],  # type: ignore[arg-type]
            pieces=[Piece(id="p", width=5, height=5)],  # type: ignore[arg-type]
        )
        assert isinstance(problem.panels, tuple)
        assert isinstance(problem.pieces, tuple)

    def test_totals(self, two_doors_problem: Problem) -> None:
        assert two_doors_problem.requested == {"door": 2}
        assert two_doors_problem.total_piece_area == 2_000_000
        assert two_doors_problem.total_stock_area == 2_000_000

    def test_valid_problem_passes(self, two_doors_problem: Problem) -> None:
        two_doors_problem.validate()

    def test_no_pieces_rejected(self) -> None:
        problem = Problem.of(panels=[Panel(id="s", width=10, height=10)], pieces=[])
        with pytest.raises(InvalidInputError, match="no pieces"):
            problem.validate()

    def test_no_panels_rejected(self) -> None:
        problem = Problem.of(panels=[], pieces=[Piece(id="p", width=5, height=5)])
        with pytest.raises(InvalidInputError, match="no panels"):
            problem.validate()

    def test_duplicate_piece_ids_rejected(self) -> None:
        problem = Problem.of(
            panels=[Panel(id="s", width=10, height=10)],
            pieces=[Piece(id="p", width=5, height=5), Piece(id="p", width=4, height=4)],
        )
        with pytest.raises(InvalidInputError, match="Duplicate"):
            problem.validate()

    def test_offcut_panels_rejected_as_input(self) -> None:
        problem = Problem.of(
            panels=[Panel(id="s", width=10, height=10, origin=OriginKind.OFFCUT)],
            pieces=[Piece(id="p", width=5, height=5)],
        )
        with pytest.raises(InvalidInputError):
            problem.validate()
