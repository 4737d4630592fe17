"""Pure geometric predicates for pieces, panels and placements.

Nothing here validates input: dimensions are already known to be positive
because Panel and Piece reject anything else at construction time.

Constraints (material group, rotation, grain, size) are evaluated as a flat
set of predicates by ``orientations``. A new constraint kind is a new
predicate added there, not a subclass.
"""

from __future__ import annotations

from cutplan.domain.value_objects import GrainDirection, Panel, Piece, Placement


def effective_dimensions(piece: Piece, rotated: bool) -> tuple[int, int]:
    """Width and height of a piece as placed.

    Rotation swaps the two dimensions for fit checking only; the Piece
    itself is never changed.
    """
    if rotated:
        return piece.height, piece.width
    return piece.width, piece.height


def can_rotate(piece: Piece, default_rotatable: bool = True) -> bool:
    """Whether a piece may be turned 90 degrees.

    An explicit ``rotatable`` flag on the piece wins over the run default.
    """
    if piece.rotatable is None:
        return default_rotatable
    return piece.rotatable


def effective_grain(piece: Piece, rotated: bool) -> GrainDirection:
    """Grain direction of a piece as placed."""
    return piece.grain.rotated() if rotated else piece.grain


def grain_compatible(piece: Piece, panel: Panel, rotated: bool) -> bool:
    """Check that the piece's grain lines up with the panel's grain.

    Either side having no grain leaves orientation unconstrained.
    """
    if piece.grain is GrainDirection.NONE or panel.grain is GrainDirection.NONE:
        return True
    return effective_grain(piece, rotated) is panel.grain


def dimension_fits(piece_dim: int, panel_dim: int, kerf: int) -> bool:
    """Check one dimension against one panel dimension.

    An exact match needs no cut. Anything smaller needs a cut, so the
    piece plus the blade width must fit inside the panel.
    """
    return piece_dim == panel_dim or piece_dim + kerf <= panel_dim


def orientations(
    piece: Piece,
    panel: Panel,
    kerf: int = 0,
    default_rotatable: bool = True,
) -> tuple[bool, ...]:
    """Admissible orientations of a piece on a panel.

    Returns:
        Tuple of ``rotated`` flags in preference order (unrotated first).
        Square pieces never report a rotated orientation since it would be
        identical to the unrotated one.
    """
    if piece.material != panel.material or not panel.reusable:
        return ()

    candidates = [False]
    if piece.width != piece.height and can_rotate(piece, default_rotatable):
        candidates.append(True)

    admissible: list[bool] = []
    for rotated in candidates:
        if not grain_compatible(piece, panel, rotated):
            continue
        width, height = effective_dimensions(piece, rotated)
        if dimension_fits(width, panel.width, kerf) and dimension_fits(
            height, panel.height, kerf
        ):
            admissible.append(rotated)
    return tuple(admissible)


def fits(
    piece: Piece,
    panel: Panel,
    kerf: int = 0,
    default_rotatable: bool = True,
) -> bool:
    """Check whether a piece fits on a panel in any admissible orientation."""
    return bool(orientations(piece, panel, kerf, default_rotatable))


def overlaps(a: Placement, b: Placement) -> bool:
    """Check whether two placements on the same sheet overlap.

    Rectangles that only share an edge do not overlap. Placements on
    different sheets never overlap.
    """
    if a.panel_id != b.panel_id:
        return False
    return (
        a.x < b.right_edge
        and b.x < a.right_edge
        and a.y < b.top_edge
        and b.y < a.top_edge
    )
