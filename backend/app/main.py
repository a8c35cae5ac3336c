"""Application wiring: logging from settings and a configured solver."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from app.config import Settings, settings
from app.core.logging import setup_logging
from app.schemas.grid import GridSolveRequest, GridSolveResponse
from app.services.flow_service import solve_grid_request

logger = logging.getLogger(__name__)


@dataclass
class GridBalanceApp:
    settings: Settings

    def solve(self, payload: GridSolveRequest | dict[str, Any]) -> GridSolveResponse:
        """Validate ``payload`` if needed and run it with this app's settings."""
        if not isinstance(payload, GridSolveRequest):
            payload = GridSolveRequest.model_validate(payload)
        return solve_grid_request(payload, settings=self.settings)


def create_app(app_settings: Settings | None = None) -> GridBalanceApp:
    """Configure logging from ``app_settings`` and return the app.

    Production always logs JSON; ``debug`` overrides ``log_level`` with DEBUG.
    """
    app_settings = app_settings or settings
    setup_logging(
        json_format=app_settings.log_json or app_settings.environment == "production",
        level=logging.DEBUG if app_settings.debug else app_settings.log_level.upper(),
    )
    logger.info(
        "%s ready (environment=%s, debug=%s)",
        app_settings.app_name,
        app_settings.environment,
        app_settings.debug,
    )
    return GridBalanceApp(settings=app_settings)
