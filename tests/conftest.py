"""Pytest configuration and shared fixtures for cut plan tests."""

from __future__ import annotations

import pytest

from cutplan.domain import OptimizerConfig, Panel, Piece, Problem

# =============================================================================
# Shared problem fixtures
# =============================================================================


@pytest.fixture
def sequential_config() -> OptimizerConfig:
    """Deterministic single-worker configuration with a generous budget."""
    return OptimizerConfig(parallelism=1, time_budget=30.0)


@pytest.fixture
def two_doors_problem() -> Problem:
    """Two 1000x1000 doors on one 2000x1000 sheet: a perfect fit."""
    return Problem.of(
        panels=[Panel(id="sheet", width=2000, height=1000)],
        pieces=[Piece(id="door", width=1000, height=1000, quantity=2)],
    )


@pytest.fixture
def mixed_problem() -> Problem:
    """A small two-material problem with grain and rotation constraints."""
    return Problem.of(
        panels=[
            Panel(id="oak", width=1200, height=800, quantity=2, material="oak"),
            Panel(id="mdf", width=1000, height=1000, material="mdf"),
        ],
        pieces=[
            Piece(id="shelf", width=600, height=300, quantity=3, material="oak"),
            Piece(
                id="front",
                width=400,
                height=700,
                material="oak",
                rotatable=False,
            ),
            Piece(id="back", width=900, height=500, material="mdf"),
        ],
    )
