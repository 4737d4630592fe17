"""Infrastructure layer - output formatters and exporters."""

from .formatters import (
    JsonExporter,
    ProgressFormatter,
    SolutionFormatter,
    ValidationFormatter,
    scale_area,
    scale_length,
    solution_to_dict,
    validation_to_dict,
)

__all__ = [
    "JsonExporter",
    "ProgressFormatter",
    "SolutionFormatter",
    "ValidationFormatter",
    "scale_area",
    "scale_length",
    "solution_to_dict",
    "validation_to_dict",
]
