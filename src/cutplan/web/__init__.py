"""FastAPI REST API for cut plan optimization.

This module provides a REST API for computing cutting plans, running
optimization jobs in the background and validating configurations.

Usage:
    uvicorn cutplan.web:app --reload
"""

from cutplan.web.app import app, create_app

__all__ = ["app", "create_app"]
