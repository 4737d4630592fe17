"""Adapter from CutPlanConfiguration to the optimizer's domain objects.

Configuration lengths may carry decimals; the optimizer works on integers.
The adapter picks one scale factor for the whole problem (a power of ten
large enough to make every length integral, up to MAX_DECIMAL_PLACES) and
converts every length with it, so results can be scaled back exactly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from cutplan.application.config.schemas import (
    MAX_DECIMAL_PLACES,
    CutPlanConfiguration,
    OptimizerSettingsSchema,
    PanelConfigSchema,
    PieceConfigSchema,
)
from cutplan.domain.problem import OptimizerConfig, Problem
from cutplan.domain.value_objects import EdgeBanding, Panel, Piece

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScaledProblem:
    """A problem in integer units together with its scale factor.

    Attributes:
        problem: Panels and pieces with integer dimensions.
        config: Optimizer configuration with integer kerf and area.
        scale: Integer units per configuration unit.
    """

    problem: Problem
    config: OptimizerConfig
    scale: int = 1

    def to_length(self, value: int) -> float:
        """Convert an integer length back to configuration units."""
        return value / self.scale

    def to_area(self, value: int) -> float:
        """Convert an integer area back to configuration units."""
        return value / (self.scale * self.scale)


def decimal_places(value: Decimal) -> int:
    """Number of significant decimal places of a value.

    Examples:
        >>> decimal_places(Decimal("600.50"))
        1
        >>> decimal_places(Decimal("1000"))
        0
    """
    exponent = value.normalize().as_tuple().exponent
    if not isinstance(exponent, int):
        return 0
    return max(0, -exponent)


def scale_for(values: Iterable[Decimal]) -> int:
    """Smallest power of ten that makes every value integral.

    Capped at ``10 ** MAX_DECIMAL_PLACES``; finer values are rounded.
    """
    places = max((decimal_places(v) for v in values), default=0)
    if places > MAX_DECIMAL_PLACES:
        logger.warning(
            "Lengths use %d decimal places; rounding to %d",
            places,
            MAX_DECIMAL_PLACES,
        )
        places = MAX_DECIMAL_PLACES
    return 10**places


def to_units(value: Decimal, scale: int) -> int:
    """Convert a configuration value to integer units (half-up rounding)."""
    return int((value * scale).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def config_to_panels(
    panels: Iterable[PanelConfigSchema], scale: int
) -> tuple[Panel, ...]:
    return tuple(
        Panel(
            id=panel.id,
            width=to_units(panel.width, scale),
            height=to_units(panel.height, scale),
            quantity=panel.quantity,
            material=panel.material,
            grain=panel.grain,
        )
        for panel in panels
    )


def config_to_pieces(
    pieces: Iterable[PieceConfigSchema], scale: int
) -> tuple[Piece, ...]:
    return tuple(
        Piece(
            id=piece.id,
            width=to_units(piece.width, scale),
            height=to_units(piece.height, scale),
            quantity=piece.quantity,
            material=piece.material,
            grain=piece.grain,
            rotatable=piece.rotatable,
            label=piece.label,
            edge_banding=(
                EdgeBanding(**piece.edge_banding.model_dump())
                if piece.edge_banding is not None
                else None
            ),
        )
        for piece in pieces
    )


def settings_to_optimizer_config(
    settings: OptimizerSettingsSchema, scale: int = 1
) -> OptimizerConfig:
    """Convert optimizer settings to an OptimizerConfig in integer units."""
    return OptimizerConfig(
        kerf=to_units(settings.kerf, scale),
        allow_rotation=settings.allow_rotation,
        time_budget=settings.time_budget,
        step_budget=settings.step_budget,
        parallelism=settings.parallelism,
        min_useful_area=to_units(settings.min_useful_area, scale * scale),
        split_depth=settings.split_depth,
        use_cache=settings.use_cache,
        cache_max_entries=settings.cache_max_entries,
        piece_order=settings.piece_order,
        optimization_priority=settings.optimization_priority,
        progress_interval=settings.progress_interval,
    )


def config_to_problem(config: CutPlanConfiguration) -> ScaledProblem:
    """Convert a validated configuration to an integer-unit problem.

    Args:
        config: A validated CutPlanConfiguration instance.

    Returns:
        ScaledProblem holding the problem, the optimizer configuration and
        the scale factor used.

    Raises:
        InvalidInputError: If a length rounds to zero at the chosen scale.
    """
    lengths = [config.settings.kerf]
    for item in (*config.panels, *config.pieces):
        lengths.extend((item.width, item.height))
    scale = scale_for(lengths)

    problem = Problem(
        panels=config_to_panels(config.panels, scale),
        pieces=config_to_pieces(config.pieces, scale),
    )
    logger.debug(
        "Adapted config: %d panels, %d pieces, scale %d",
        len(problem.panels),
        len(problem.pieces),
        scale,
    )
    return ScaledProblem(
        problem=problem,
        config=settings_to_optimizer_config(config.settings, scale),
        scale=scale,
    )
