"""Validation structures and cutting feasibility advisories.

Schema validation happens when a configuration is loaded. This module adds
checks that need the whole problem: pieces that fit no panel, material
groups without stock and demand exceeding the available stock area. It
also tallies a per-material balance of demanded against stocked area.
"""

from dataclasses import dataclass, field
from typing import Any

from cutplan.application.config.adapter import config_to_problem
from cutplan.application.config.loader import ConfigError
from cutplan.application.config.schemas import CutPlanConfiguration
from cutplan.domain.errors import InvalidInputError
from cutplan.domain.geometry import fits
from cutplan.domain.problem import Problem


@dataclass
class ValidationError:
    """A blocking validation error.

    Attributes:
        path: JSON path to the invalid field (e.g., "pieces[0].width")
        message: Human-readable description of the error
        value: The invalid value that caused the error
    """

    path: str
    message: str
    value: Any = None


@dataclass
class ValidationWarning:
    """A non-blocking validation warning.

    The configuration can still be optimized, but the plan will not be
    complete or the user should double-check the input.

    Attributes:
        path: JSON path to the concerning field
        message: Human-readable description of the concern
        suggestion: Optional suggested remediation
    """

    path: str
    message: str
    suggestion: str | None = None


@dataclass(frozen=True)
class MaterialBalance:
    """Demanded and stocked area of one material, in integer units.

    Attributes:
        material: Material group key.
        piece_count: Piece units requested in this material.
        demand_area: Total area of those units.
        sheet_count: Stock sheets available in this material.
        stock_area: Total area of those sheets.
    """

    material: str
    piece_count: int
    demand_area: int
    sheet_count: int
    stock_area: int

    @property
    def shortfall(self) -> int:
        """Area the pieces need beyond what the stock provides."""
        return max(0, self.demand_area - self.stock_area)


def material_balance(problem: Problem) -> list[MaterialBalance]:
    """Balance of every material named by a panel or a piece, by name."""
    materials = {p.material for p in problem.panels} | {
        p.material for p in problem.pieces
    }
    balances = []
    for material in sorted(materials):
        pieces = [p for p in problem.pieces if p.material == material]
        panels = [p for p in problem.panels if p.material == material]
        balances.append(
            MaterialBalance(
                material=material,
                piece_count=sum(p.quantity for p in pieces),
                demand_area=sum(p.total_area for p in pieces),
                sheet_count=sum(p.quantity for p in panels),
                stock_area=sum(p.area * p.quantity for p in panels),
            )
        )
    return balances


@dataclass
class ValidationResult:
    """Container for validation errors and warnings.

    Attributes:
        errors: Blocking validation errors
        warnings: Non-blocking validation warnings
        materials: Material balances, empty when the problem cannot be built
        scale: Integer units per configuration unit of the balances
    """

    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[ValidationWarning] = field(default_factory=list)
    materials: list[MaterialBalance] = field(default_factory=list)
    scale: int = 1

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    @property
    def has_warnings(self) -> bool:
        return len(self.warnings) > 0

    @property
    def exit_code(self) -> int:
        """CLI exit code: 0 clean, 1 errors, 2 warnings only."""
        if self.errors:
            return 1
        if self.warnings:
            return 2
        return 0

    @classmethod
    def from_config_error(cls, error: ConfigError) -> "ValidationResult":
        """Result for a configuration that could not be loaded.

        Schema failures keep one error per invalid field; file and JSON
        failures become a single error against the file.
        """
        result = cls()
        if error.error_type == "validation" and error.details:
            for detail in error.details:
                result.add_error(
                    detail["path"] or "(root)", detail["message"], detail.get("value")
                )
        else:
            result.add_error(str(error.path or "(config)"), error.message)
        return result

    def add_error(
        self, path: str, message: str, value: Any = None
    ) -> "ValidationResult":
        self.errors.append(ValidationError(path=path, message=message, value=value))
        return self

    def add_warning(
        self, path: str, message: str, suggestion: str | None = None
    ) -> "ValidationResult":
        self.warnings.append(
            ValidationWarning(path=path, message=message, suggestion=suggestion)
        )
        return self


def validate_config(config: CutPlanConfiguration) -> ValidationResult:
    """Check a loaded configuration for problems the schema cannot see.

    Args:
        config: A schema-valid configuration.

    Returns:
        ValidationResult with errors (the problem cannot be built),
        warnings (the plan will leave pieces unplaced) and the balance of
        each material.
    """
    result = ValidationResult()
    try:
        scaled = config_to_problem(config)
    except InvalidInputError as e:
        return result.add_error(e.field or "(root)", e.message)

    problem = scaled.problem
    settings = scaled.config
    result.materials = material_balance(problem)
    result.scale = scaled.scale
    materials = {panel.material for panel in problem.panels}

    for index, piece in enumerate(problem.pieces):
        path = f"pieces[{index}]"
        if piece.material not in materials:
            result.add_warning(
                f"{path}.material",
                f"No panel of material '{piece.material}' for piece '{piece.id}'",
                suggestion="Add a panel of this material or change the piece material",
            )
            continue
        if any(
            fits(piece, p, settings.kerf, settings.allow_rotation)
            for p in problem.panels
        ):
            continue
        rotated_fit = not settings.allow_rotation and any(
            fits(piece, p, settings.kerf, True) for p in problem.panels
        )
        result.add_warning(
            path,
            f"Piece '{piece.id}' fits no panel in any admissible orientation",
            suggestion=(
                "Allow rotation for this piece"
                if rotated_fit and piece.rotatable is None
                else "Use a larger panel or a smaller kerf"
            ),
        )

    for balance in result.materials:
        if balance.sheet_count and balance.shortfall:
            result.add_warning(
                "pieces",
                f"Pieces of material '{balance.material}' need more area than the "
                f"stock provides ({scaled.to_area(balance.demand_area)} > "
                f"{scaled.to_area(balance.stock_area)})",
                suggestion="Add more panels of this material",
            )

    return result
