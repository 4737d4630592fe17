"""Immutable value objects for guillotine cutting.

All lengths are integers expressed in a single fixed-point unit. Callers
that start from decimal input scale it at the configuration boundary (see
``cutplan.application.config.adapter``).

All dataclasses are frozen to ensure thread safety and hashability; search
workers share Panel and Piece instances without synchronization.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from cutplan.domain.errors import InvalidInputError

DEFAULT_MATERIAL = "default"


class GrainDirection(str, Enum):
    """Direction of the material grain.

    For a panel this is the direction the grain runs on the sheet. For a
    piece it is the direction the grain must run in the piece's unrotated
    orientation.

    Attributes:
        NONE: No grain, any orientation is acceptable.
        ALONG_WIDTH: Grain runs parallel to the width (x axis).
        ALONG_HEIGHT: Grain runs parallel to the height (y axis).
    """

    NONE = "none"
    ALONG_WIDTH = "along_width"
    ALONG_HEIGHT = "along_height"

    def rotated(self) -> GrainDirection:
        """Grain direction after a 90 degree rotation."""
        if self is GrainDirection.ALONG_WIDTH:
            return GrainDirection.ALONG_HEIGHT
        if self is GrainDirection.ALONG_HEIGHT:
            return GrainDirection.ALONG_WIDTH
        return self


class OriginKind(str, Enum):
    """Where a panel came from."""

    STOCK = "stock"
    OFFCUT = "offcut"


class SplitAxis(str, Enum):
    """Orientation of a guillotine cut line.

    A HORIZONTAL cut runs along the x axis across the full panel width and
    separates a bottom child from a top child. A VERTICAL cut runs along the
    y axis across the full panel height and separates a left child from a
    right child.
    """

    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


@dataclass(frozen=True)
class Panel:
    """A rectangular piece of material available for cutting.

    Stock panels come from the input inventory and carry the number of
    units available. Offcut panels are produced by cuts and record the
    panel they were cut from and their offset inside the stock sheet.

    Attributes:
        id: Panel identity. Stock sheet instances are named ``<stock>#<n>``
            and offcuts extend their parent's id.
        width: Width in length units.
        height: Height in length units.
        material: Material group key. Pieces only go onto panels of the
            same material.
        grain: Grain direction of the material.
        origin: Stock or offcut.
        quantity: Units available (stock inventory only).
        parent_id: Id of the panel this offcut was cut from.
        sheet_id: Id of the stock sheet instance this panel lives on.
        x: Horizontal offset of the panel inside its sheet.
        y: Vertical offset of the panel inside its sheet.
        reusable: False for offcuts too small to be worth keeping.
    """

    id: str
    width: int
    height: int
    material: str = DEFAULT_MATERIAL
    grain: GrainDirection = GrainDirection.NONE
    origin: OriginKind = OriginKind.STOCK
    quantity: int = 1
    parent_id: str | None = None
    sheet_id: str | None = None
    x: int = 0
    y: int = 0
    reusable: bool = True

    def __post_init__(self) -> None:
        if not self.id:
            raise InvalidInputError("Panel id must not be empty", field="id")
        if self.width <= 0 or self.height <= 0:
            raise InvalidInputError(
                f"Panel '{self.id}' dimensions must be positive "
                f"(got {self.width}x{self.height})",
                field="dimensions",
            )
        if self.quantity < 1:
            raise InvalidInputError(
                f"Panel '{self.id}' quantity must be at least 1", field="quantity"
            )
        if self.x < 0 or self.y < 0:
            raise InvalidInputError(
                f"Panel '{self.id}' offset must be non-negative", field="offset"
            )

    @property
    def area(self) -> int:
        """Area of one unit of this panel."""
        return self.width * self.height

    @property
    def shape_key(self) -> tuple[int, int, str, str]:
        """Identity-free key; panels with equal keys are interchangeable."""
        return (self.width, self.height, self.material, self.grain.value)


@dataclass(frozen=True)
class EdgeBanding:
    """Banding materials applied to the edges of a piece.

    Edges are named in the piece's unrotated orientation. An edge set to
    ``None`` is left bare.
    """

    top: str | None = None
    left: str | None = None
    bottom: str | None = None
    right: str | None = None

    def lengths(self, width: int, height: int) -> dict[str, int]:
        """Banding length per material for one unit of a width x height piece."""
        totals: dict[str, int] = {}
        for material, length in (
            (self.top, width),
            (self.left, height),
            (self.bottom, width),
            (self.right, height),
        ):
            if material:
                totals[material] = totals.get(material, 0) + length
        return totals


@dataclass(frozen=True)
class Piece:
    """A required rectangular piece.

    Attributes:
        id: Piece identity.
        width: Width in length units (unrotated).
        height: Height in length units (unrotated).
        quantity: Number of identical units required.
        material: Material group key.
        grain: Required grain direction in the unrotated orientation.
        rotatable: Whether the piece may be turned 90 degrees. ``None``
            defers to the run's default rotation policy.
        label: Optional human-readable label.
        edge_banding: Banding to apply to the piece's edges after cutting.
    """

    id: str
    width: int
    height: int
    quantity: int = 1
    material: str = DEFAULT_MATERIAL
    grain: GrainDirection = GrainDirection.NONE
    rotatable: bool | None = None
    label: str | None = None
    edge_banding: EdgeBanding | None = None

    def __post_init__(self) -> None:
        if not self.id:
            raise InvalidInputError("Piece id must not be empty", field="id")
        if self.width <= 0 or self.height <= 0:
            raise InvalidInputError(
                f"Piece '{self.id}' dimensions must be positive "
                f"(got {self.width}x{self.height})",
                field="dimensions",
            )
        if self.quantity < 1:
            raise InvalidInputError(
                f"Piece '{self.id}' quantity must be at least 1", field="quantity"
            )

    @property
    def area(self) -> int:
        """Area of a single unit."""
        return self.width * self.height

    @property
    def total_area(self) -> int:
        """Area of all required units."""
        return self.area * self.quantity

    @property
    def display_name(self) -> str:
        return self.label or self.id


@dataclass(frozen=True)
class Placement:
    """A piece unit placed on a stock sheet.

    Coordinates are relative to the sheet's bottom-left corner.

    Attributes:
        piece_id: Id of the placed piece.
        panel_id: Id of the stock sheet instance holding the piece.
        x: Horizontal position of the piece's left edge.
        y: Vertical position of the piece's bottom edge.
        width: Effective width as placed.
        height: Effective height as placed.
        rotated: True if the piece was turned 90 degrees.
        kerf_right: Kerf width consumed along the piece's right edge.
        kerf_top: Kerf width consumed along the piece's top edge.
    """

    piece_id: str
    panel_id: str
    x: int
    y: int
    width: int
    height: int
    rotated: bool = False
    kerf_right: int = 0
    kerf_top: int = 0

    def __post_init__(self) -> None:
        if self.x < 0 or self.y < 0:
            raise ValueError("Position coordinates must be non-negative")

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def right_edge(self) -> int:
        """X coordinate of the piece's right edge."""
        return self.x + self.width

    @property
    def top_edge(self) -> int:
        """Y coordinate of the piece's top edge."""
        return self.y + self.height


@dataclass(frozen=True)
class Cut:
    """A single full-length guillotine cut through a panel.

    The blade removes ``kerf`` units of material along the cut line; the
    two children sit on either side of it. A child of zero area is not
    materialized and is reported as ``None``.

    Attributes:
        panel_id: Id of the panel being split.
        sheet_id: Id of the stock sheet instance the panel lives on.
        axis: Orientation of the cut line.
        position: Absolute coordinate (y for horizontal, x for vertical) of
            the near edge of the kerf.
        length: Length of the cut line.
        kerf: Blade width.
        first: Bottom (horizontal) or left (vertical) child.
        second: Top (horizontal) or right (vertical) child.
    """

    panel_id: str
    sheet_id: str
    axis: SplitAxis
    position: int
    length: int
    kerf: int
    first: Panel | None
    second: Panel | None

    @property
    def kerf_loss(self) -> int:
        """Area removed by the blade."""
        return self.kerf * self.length
