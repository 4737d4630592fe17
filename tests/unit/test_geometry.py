"""Tests for geometric predicates: orientation, grain and fit checks."""

from __future__ import annotations

import pytest

from cutplan.domain import (
    GrainDirection,
    Panel,
    Piece,
    Placement,
    can_rotate,
    dimension_fits,
    effective_dimensions,
    fits,
    grain_compatible,
    orientations,
    overlaps,
)


def _placement(x: int, y: int, w: int, h: int, sheet: str = "s#1") -> Placement:
    return Placement(piece_id="p", panel_id=sheet, x=x, y=y, width=w, height=h)


class TestEffectiveDimensions:
    """Tests for effective_dimensions and can_rotate."""

    def test_unrotated(self) -> None:
        piece = Piece(id="p", width=600, height=300)
        assert effective_dimensions(piece, False) == (600, 300)

    def test_rotated_swaps(self) -> None:
        piece = Piece(id="p", width=600, height=300)
        assert effective_dimensions(piece, True) == (300, 600)

    def test_explicit_flag_overrides_default(self) -> None:
        assert can_rotate(Piece(id="p", width=1, height=2, rotatable=False), True) is False
        assert can_rotate(Piece(id="p", width=1, height=2, rotatable=True), False) is True

    def test_default_applies_when_unset(self) -> None:
        piece = Piece(id="p", width=1, height=2)
        assert can_rotate(piece, True) is True
        assert can_rotate(piece, False) is False


class TestDimensionFits:
    """Tests for the kerf-aware single dimension check."""

    def test_exact_match_needs_no_kerf(self) -> None:
        assert dimension_fits(1000, 1000, kerf=3)

    def test_smaller_needs_room_for_kerf(self) -> None:
        assert dimension_fits(997, 1000, kerf=3)
        assert not dimension_fits(998, 1000, kerf=3)

    def test_larger_never_fits(self) -> None:
        assert not dimension_fits(1001, 1000, kerf=0)


class TestGrainCompatibility:
    """Tests for grain alignment."""

    def test_no_grain_on_either_side_is_free(self) -> None:
        piece = Piece(id="p", width=2, height=1, grain=GrainDirection.ALONG_WIDTH)
        panel = Panel(id="s", width=10, height=10)
        assert grain_compatible(piece, panel, rotated=True)

    def test_aligned_grain(self) -> None:
        piece = Piece(id="p", width=2, height=1, grain=GrainDirection.ALONG_WIDTH)
        panel = Panel(id="s", width=10, height=10, grain=GrainDirection.ALONG_WIDTH)
        assert grain_compatible(piece, panel, rotated=False)
        assert not grain_compatible(piece, panel, rotated=True)

    def test_rotation_realigns_grain(self) -> None:
        piece = Piece(id="p", width=2, height=1, grain=GrainDirection.ALONG_HEIGHT)
        panel = Panel(id="s", width=10, height=10, grain=GrainDirection.ALONG_WIDTH)
        assert grain_compatible(piece, panel, rotated=True)


class TestOrientations:
    """Tests for the admissible orientation set."""

    def test_both_orientations(self) -> None:
        piece = Piece(id="p", width=300, height=200)
        panel = Panel(id="s", width=1000, height=1000)
        assert orientations(piece, panel) == (False, True)

    def test_square_piece_has_one_orientation(self) -> None:
        piece = Piece(id="p", width=300, height=300)
        panel = Panel(id="s", width=1000, height=1000)
        assert orientations(piece, panel) == (False,)

    def test_only_rotated_fits(self) -> None:
        piece = Piece(id="p", width=800, height=300)
        panel = Panel(id="s", width=400, height=1000)
        assert orientations(piece, panel) == (True,)

    def test_non_rotatable_piece(self) -> None:
        piece = Piece(id="p", width=800, height=300, rotatable=False)
        panel = Panel(id="s", width=400, height=1000)
        assert orientations(piece, panel) == ()

    def test_run_policy_disables_rotation(self) -> None:
        piece = Piece(id="p", width=800, height=300)
        panel = Panel(id="s", width=400, height=1000)
        assert orientations(piece, panel, default_rotatable=False) == ()

    def test_material_mismatch(self) -> None:
        piece = Piece(id="p", width=100, height=100, material="oak")
        panel = Panel(id="s", width=1000, height=1000, material="mdf")
        assert not fits(piece, panel)

    def test_scrap_panel_accepts_nothing(self) -> None:
        piece = Piece(id="p", width=10, height=10)
        panel = Panel(id="s", width=1000, height=1000, reusable=False)
        assert not fits(piece, panel)

    def test_grain_forces_orientation_even_when_rotatable(self) -> None:
        piece = Piece(id="p", width=800, height=300, grain=GrainDirection.ALONG_WIDTH)
        panel = Panel(id="s", width=400, height=1000, grain=GrainDirection.ALONG_WIDTH)
        assert not fits(piece, panel)

    def test_kerf_blocks_near_fit(self) -> None:
        piece = Piece(id="p", width=999, height=500)
        panel = Panel(id="s", width=1000, height=1000)
        assert fits(piece, panel, kerf=1)
        assert not fits(piece, panel, kerf=2, default_rotatable=False)


class TestOverlaps:
    """Tests for placement overlap detection."""

    def test_disjoint(self) -> None:
        assert not overlaps(_placement(0, 0, 10, 10), _placement(20, 0, 10, 10))

    def test_shared_edge_is_not_overlap(self) -> None:
        assert not overlaps(_placement(0, 0, 10, 10), _placement(10, 0, 10, 10))

    @pytest.mark.parametrize("x,y", [(5, 5), (0, 0), (9, 9)])
    def test_overlapping(self, x: int, y: int) -> None:
        assert overlaps(_placement(0, 0, 10, 10), _placement(x, y, 10, 10))

    def test_different_sheets_never_overlap(self) -> None:
        assert not overlaps(_placement(0, 0, 10, 10), _placement(0, 0, 10, 10, "s#2"))
