"""Pydantic schemas for cut plan configuration files.

A configuration file lists the stock panels, the required pieces and the
optimizer settings. Lengths may be given with decimals; the adapter scales
them to integers before the optimizer sees them.
"""

from collections import Counter
from decimal import Decimal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from cutplan.domain.problem import OptimizationPriority, PieceOrder
from cutplan.domain.value_objects import DEFAULT_MATERIAL, GrainDirection

# Supported schema versions for configuration files
# Version 1.0: Initial schema with panels, pieces and optimizer settings
SUPPORTED_VERSIONS: frozenset[str] = frozenset({"1.0"})

# Maximum number of decimal places kept when scaling lengths to integers
MAX_DECIMAL_PLACES = 4


class PanelConfigSchema(BaseModel):
    """Configuration for a stock panel.

    Attributes:
        id: Unique panel identifier.
        width: Panel width.
        height: Panel height.
        quantity: Number of identical sheets available.
        material: Material group; pieces only go onto panels of their group.
        grain: Direction of the grain on the sheet.
    """

    model_config = ConfigDict(extra="forbid")

    id: str = Field(..., min_length=1)
    width: Decimal = Field(..., gt=0, description="Panel width")
    height: Decimal = Field(..., gt=0, description="Panel height")
    quantity: int = Field(default=1, ge=1, description="Sheets available")
    material: str = Field(default=DEFAULT_MATERIAL, min_length=1)
    grain: GrainDirection = GrainDirection.NONE


class EdgeBandingSchema(BaseModel):
    """Banding material per piece edge, in the unrotated orientation.

    Attributes:
        top: Banding for the top edge.
        left: Banding for the left edge.
        bottom: Banding for the bottom edge.
        right: Banding for the right edge.
    """

    model_config = ConfigDict(extra="forbid")

    top: str | None = Field(default=None, min_length=1)
    left: str | None = Field(default=None, min_length=1)
    bottom: str | None = Field(default=None, min_length=1)
    right: str | None = Field(default=None, min_length=1)


class PieceConfigSchema(BaseModel):
    """Configuration for a required piece.

    Attributes:
        id: Unique piece identifier.
        width: Piece width.
        height: Piece height.
        quantity: Number of identical units required.
        material: Material group.
        grain: Required grain direction in the unrotated orientation.
        rotatable: Whether the piece may be rotated; null uses the
            ``allow_rotation`` setting.
        label: Optional human-readable name.
        edge_banding: Optional banding applied to the piece edges.
    """

    model_config = ConfigDict(extra="forbid")

    id: str = Field(..., min_length=1)
    width: Decimal = Field(..., gt=0, description="Piece width")
    height: Decimal = Field(..., gt=0, description="Piece height")
    quantity: int = Field(default=1, ge=1, description="Units required")
    material: str = Field(default=DEFAULT_MATERIAL, min_length=1)
    grain: GrainDirection = GrainDirection.NONE
    rotatable: bool | None = None
    label: str | None = Field(default=None, max_length=100)
    edge_banding: EdgeBandingSchema | None = None


class OptimizerSettingsSchema(BaseModel):
    """Optimizer settings.

    Attributes:
        kerf: Saw blade width, in the same unit as panel dimensions.
        allow_rotation: Default rotation policy for pieces.
        time_budget: Wall-clock budget in seconds.
        step_budget: Optional cap on explored search states.
        parallelism: Worker threads; null uses the number of CPUs.
        min_useful_area: Offcuts with a smaller area are scrapped.
        split_depth: Search levels expanded before fanning out to workers.
        use_cache: Whether the memo cache is used.
        cache_max_entries: Optional cap on memo cache entries.
        piece_order: Piece selection heuristic.
        optimization_priority: Rank plans by least waste or fewest cuts first.
        progress_interval: Seconds between progress reports.
    """

    model_config = ConfigDict(extra="forbid")

    kerf: Decimal = Field(default=Decimal(0), ge=0, description="Blade width")
    allow_rotation: bool = True
    time_budget: float = Field(default=10.0, gt=0, le=3600, description="Seconds")
    step_budget: int | None = Field(default=None, ge=1)
    parallelism: int | None = Field(default=None, ge=1, le=256)
    min_useful_area: Decimal = Field(default=Decimal(0), ge=0)
    split_depth: int = Field(default=1, ge=0, le=4)
    use_cache: bool = True
    cache_max_entries: int | None = Field(default=None, ge=1)
    piece_order: PieceOrder = PieceOrder.AREA
    optimization_priority: OptimizationPriority = OptimizationPriority.LEAST_WASTE
    progress_interval: float = Field(default=0.5, gt=0, le=60)


class CutPlanConfiguration(BaseModel):
    """Root configuration model.

    Attributes:
        schema_version: Version string in format "major.minor".
        panels: Stock inventory (at least one panel).
        pieces: Required pieces (at least one piece).
        settings: Optimizer settings.

    Example:
        >>> config = CutPlanConfiguration(
        ...     schema_version="1.0",
        ...     panels=[PanelConfigSchema(id="sheet", width=2440, height=1220)],
        ...     pieces=[PieceConfigSchema(id="door", width=600, height=400)],
        ... )
    """

    model_config = ConfigDict(extra="forbid")

    schema_version: str = Field(..., pattern=r"^\d+\.\d+$")
    panels: list[PanelConfigSchema] = Field(..., min_length=1)
    pieces: list[PieceConfigSchema] = Field(..., min_length=1)
    settings: OptimizerSettingsSchema = Field(default_factory=OptimizerSettingsSchema)

    @field_validator("schema_version")
    @classmethod
    def validate_supported_version(cls, v: str) -> str:
        """Validate that the schema version is supported.

        Newer minor versions of a supported major version are accepted.
        """
        if v in SUPPORTED_VERSIONS:
            return v

        major_version = int(v.split(".")[0])
        supported_majors = {int(sv.split(".")[0]) for sv in SUPPORTED_VERSIONS}
        if major_version in supported_majors:
            return v

        raise ValueError(
            f"Unsupported schema version '{v}'. "
            f"Supported versions: {sorted(SUPPORTED_VERSIONS)}"
        )

    @model_validator(mode="after")
    def validate_unique_ids(self) -> "CutPlanConfiguration":
        """Reject duplicate panel or piece ids."""
        for kind, items in (("panel", self.panels), ("piece", self.pieces)):
            counts = Counter(item.id for item in items)
            duplicates = sorted(i for i, n in counts.items() if n > 1)
            if duplicates:
                raise ValueError(f"Duplicate {kind} ids: {', '.join(duplicates)}")
        return self
