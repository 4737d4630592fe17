"""Typer CLI for cut plan optimization."""

import json
import logging
from decimal import Decimal
from pathlib import Path
from typing import Annotated, Any

import typer
from pydantic import ValidationError as PydanticValidationError

from cutplan.application.config import (
    ConfigError,
    OptimizerSettingsSchema,
    ValidationResult,
    config_to_problem,
    load_config,
    validate_config,
)
from cutplan.domain import InvalidInputError, OptimizationPriority, RunStatus
from cutplan.engine import ProgressSnapshot, RunCoordinator
from cutplan.infrastructure import (
    JsonExporter,
    ProgressFormatter,
    SolutionFormatter,
    ValidationFormatter,
    validation_to_dict,
)

app = typer.Typer(
    name="cutplan",
    help="Plan guillotine cuts of rectangular pieces from stock panels.",
)


def _apply_overrides(
    settings: OptimizerSettingsSchema, overrides: dict[str, Any]
) -> OptimizerSettingsSchema:
    """Merge command-line overrides into the configuration settings.

    The merged settings are validated again so a bad override is reported
    like a bad configuration value.
    """
    if not overrides:
        return settings
    return OptimizerSettingsSchema.model_validate(
        {**settings.model_dump(), **overrides}
    )


@app.command()
def optimize(
    config_file: Annotated[
        Path,
        typer.Argument(help="Path to the JSON configuration file"),
    ],
    time_budget: Annotated[
        float | None,
        typer.Option("--time-budget", "-t", help="Search time budget in seconds"),
    ] = None,
    workers: Annotated[
        int | None,
        typer.Option("--workers", "-w", help="Number of search worker threads"),
    ] = None,
    kerf: Annotated[
        float | None,
        typer.Option("--kerf", "-k", help="Saw blade width, in configuration units"),
    ] = None,
    steps: Annotated[
        int | None,
        typer.Option("--steps", help="Maximum number of search states to explore"),
    ] = None,
    priority: Annotated[
        OptimizationPriority | None,
        typer.Option("--priority", help="Rank plans by least waste or fewest cuts"),
    ] = None,
    output_format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format: text, json"),
    ] = "text",
    output_file: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the plan to a file"),
    ] = None,
    show_progress: Annotated[
        bool,
        typer.Option("--progress", help="Report search progress on stderr"),
    ] = False,
    show_cuts: Annotated[
        bool,
        typer.Option("--cuts", help="List the cuts of each sheet (text format)"),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Compute a cutting plan for a configuration file.

    Exit codes:
        0 - Every piece was placed
        1 - The configuration or input is invalid
        2 - The plan is partial or no complete plan exists

    Example:
        cutplan optimize kitchen.json --time-budget 30 --format json
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if output_format not in ("text", "json"):
        typer.echo(
            f"Error: Unknown format '{output_format}'. Use 'text' or 'json'.",
            err=True,
        )
        raise typer.Exit(code=1)

    overrides: dict[str, Any] = {}
    if time_budget is not None:
        overrides["time_budget"] = time_budget
    if workers is not None:
        overrides["parallelism"] = workers
    if kerf is not None:
        overrides["kerf"] = Decimal(str(kerf))
    if steps is not None:
        overrides["step_budget"] = steps
    if priority is not None:
        overrides["optimization_priority"] = priority

    try:
        config = load_config(config_file)
        config = config.model_copy(
            update={"settings": _apply_overrides(config.settings, overrides)}
        )
        scaled = config_to_problem(config)
    except ConfigError as e:
        typer.echo(f"Configuration error: {e.message}", err=True)
        for detail in e.details:
            if "path" in detail:
                typer.echo(f"  {detail['path']}: {detail.get('message')}", err=True)
        raise typer.Exit(code=1)
    except PydanticValidationError as e:
        typer.echo("Invalid option:", err=True)
        for error in e.errors():
            field = ".".join(str(part) for part in error["loc"])
            typer.echo(f"  {field}: {error['msg']}", err=True)
        raise typer.Exit(code=1)
    except InvalidInputError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    progress_formatter = ProgressFormatter()

    def report(snapshot: ProgressSnapshot) -> None:
        typer.echo(progress_formatter.format(snapshot, scaled.scale), err=True)

    coordinator = RunCoordinator(
        scaled.config, report if show_progress else None
    )
    try:
        solution = coordinator.run(scaled.problem)
    except InvalidInputError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    if output_format == "json":
        output = JsonExporter().export(solution, scaled.scale)
    else:
        output = SolutionFormatter(show_cuts=show_cuts).format(solution, scaled.scale)

    if output_file is not None:
        output_file.write_text(output + "\n")
        typer.echo(f"Cutting plan written to {output_file}")
    else:
        typer.echo(output)

    if solution.status is not RunStatus.COMPLETE:
        raise typer.Exit(code=2)


@app.command()
def validate(
    config_file: Annotated[
        Path,
        typer.Argument(help="Path to the JSON configuration file to validate"),
    ],
    output_format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format: text, json"),
    ] = "text",
) -> None:
    """Check a configuration and report the stock balance of each material.

    Reports schema errors, pieces that fit no panel and materials whose
    pieces need more area than their stock provides.

    Exit codes:
        0 - Configuration is valid with no warnings
        1 - Configuration has errors (cannot be used)
        2 - Configuration is valid but has warnings

    Example:
        cutplan validate kitchen.json
    """
    if output_format not in ("text", "json"):
        typer.echo(
            f"Error: Unknown format '{output_format}'. Use 'text' or 'json'.",
            err=True,
        )
        raise typer.Exit(code=1)

    try:
        result = validate_config(load_config(config_file))
    except ConfigError as e:
        result = ValidationResult.from_config_error(e)

    if output_format == "json":
        typer.echo(json.dumps(validation_to_dict(result), indent=2))
    else:
        typer.echo(f"Validating {config_file}...")
        typer.echo()
        typer.echo(ValidationFormatter().format(result))

    raise typer.Exit(code=result.exit_code)


if __name__ == "__main__":
    app()
