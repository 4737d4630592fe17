"""Configuration schema and loading system for cut plans.

This package provides JSON-based configuration loading and validation for
cutting problems: Pydantic models for schema validation, a loader with
comprehensive error handling, and an adapter producing the optimizer's
integer-unit Problem and OptimizerConfig.

Example:
    >>> from pathlib import Path
    >>> from cutplan.application.config import load_config, config_to_problem
    >>>
    >>> config = load_config(Path("kitchen.json"))
    >>> scaled = config_to_problem(config)
    >>> scaled.problem.pieces[0].width
    600
"""

from cutplan.application.config.adapter import (
    ScaledProblem,
    config_to_problem,
    settings_to_optimizer_config,
)
from cutplan.application.config.loader import (
    ConfigError,
    load_config,
    load_config_from_dict,
)
from cutplan.application.config.schemas import (
    MAX_DECIMAL_PLACES,
    SUPPORTED_VERSIONS,
    CutPlanConfiguration,
    EdgeBandingSchema,
    OptimizerSettingsSchema,
    PanelConfigSchema,
    PieceConfigSchema,
)
from cutplan.application.config.validator import (
    MaterialBalance,
    ValidationError,
    ValidationResult,
    ValidationWarning,
    material_balance,
    validate_config,
)

__all__ = [
    "ConfigError",
    "CutPlanConfiguration",
    "EdgeBandingSchema",
    "MAX_DECIMAL_PLACES",
    "MaterialBalance",
    "OptimizerSettingsSchema",
    "PanelConfigSchema",
    "PieceConfigSchema",
    "SUPPORTED_VERSIONS",
    "ScaledProblem",
    "ValidationError",
    "ValidationResult",
    "ValidationWarning",
    "config_to_problem",
    "load_config",
    "load_config_from_dict",
    "material_balance",
    "settings_to_optimizer_config",
    "validate_config",
]
