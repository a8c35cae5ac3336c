"""Solve a grid request: schemas in, engine run, response out."""

from __future__ import annotations

import logging
import time

from app.config import Settings, settings as default_settings
from app.core.logging import solve_scope
from app.schemas.grid import (
    BusChangeActionSchema,
    GridActionSchema,
    GridConfigSchema,
    GridSolveRequest,
    GridSolveResponse,
    HVDCActionSchema,
    IslandSummary,
    LineFlowResponse,
    RedispatchActionSchema,
)
from engine.network.actions import (
    BusChangeAction,
    GridAction,
    HVDCSetpointAction,
    RedispatchAction,
    apply_actions,
)
from engine.network.dc_flow import solve_grid
from engine.network.grid_model import (
    GeneratorNode,
    GridConfig,
    HVDCLine,
    LoadNode,
    PSTLine,
    RegularLine,
    SubstationNode,
)
from engine.network.preparation import ConfigurationError, prepare_grid

logger = logging.getLogger(__name__)


def build_grid_config(schema: GridConfigSchema) -> GridConfig:
    """Convert a validated grid schema into the engine's editable config."""
    return GridConfig(
        generators=tuple(GeneratorNode(**g.model_dump()) for g in schema.nodes.generators),
        loads=tuple(LoadNode(**ld.model_dump()) for ld in schema.nodes.loads),
        substations=tuple(SubstationNode(**s.model_dump()) for s in schema.nodes.substations),
        regular_lines=tuple(RegularLine(**line.model_dump()) for line in schema.lines.regular),
        pst_lines=tuple(PSTLine(**line.model_dump()) for line in schema.lines.pst),
        hvdc_lines=tuple(HVDCLine(**line.model_dump()) for line in schema.lines.hvdc),
    )


def build_actions(schemas: list[GridActionSchema]) -> list[GridAction]:
    """Convert action schemas, keeping their order."""
    actions: list[GridAction] = []
    for a in schemas:
        if isinstance(a, RedispatchActionSchema):
            actions.append(RedispatchAction(node_key=a.node_key, power=a.power))
        elif isinstance(a, BusChangeActionSchema):
            actions.append(BusChangeAction(
                substation_key=a.substation_key, line_key=a.line_key, bus=a.bus,
            ))
        elif isinstance(a, HVDCActionSchema):
            actions.append(HVDCSetpointAction(hvdc_key=a.hvdc_key, flow=a.flow))
        else:
            raise TypeError(f"Unknown action schema: {a!r}")
    return actions


def solve_grid_request(
    request: GridSolveRequest,
    settings: Settings = default_settings,
) -> GridSolveResponse:
    """Run the DC power flow for a request.

    Unbalanced or singular islands are reported in ``unsolved_lines``.

    Raises:
        ConfigurationError: the network is structurally malformed; nothing
            is returned for any line.
    """
    with solve_scope() as solve_id:
        return _solve(request, settings, solve_id)


def _solve(request: GridSolveRequest, settings: Settings, solve_id: str) -> GridSolveResponse:
    start = time.perf_counter()

    config = apply_actions(build_grid_config(request.grid), build_actions(request.actions))
    try:
        grid = prepare_grid(
            config,
            ghost_reactance=settings.hvdc_ghost_reactance,
            ghost_limit_mw=settings.hvdc_ghost_limit_mw,
        )
    except ConfigurationError as exc:
        logger.error("Invalid grid configuration (%s): %s", exc.reason.value, exc)
        raise

    result = solve_grid(grid, pivot_tolerance=settings.pivot_tolerance)
    duration_ms = round((time.perf_counter() - start) * 1000, 1)

    for report in result.islands:
        logger.info(
            "Island %d: %s (%d nodes, %d lines, net %s MW)",
            report.index,
            report.status.value,
            len(report.node_keys),
            len(report.line_keys),
            report.net_power_mw,
            extra={
                "island": report.index,
                "status": report.status.value,
                "net_power_mw": report.net_power_mw,
                "line_count": len(report.line_keys),
            },
        )

    lines = {
        key: LineFlowResponse(**flow.to_dict())
        for key, flow in result.lines.items()
    }
    logger.info(
        "Solved %d/%d islands, %d line flows in %.1fms",
        result.solved_island_count,
        len(result.islands),
        len(lines),
        duration_ms,
        extra={"line_count": len(lines), "duration_ms": duration_ms},
    )

    return GridSolveResponse(
        solve_id=solve_id,
        balance_mw=config.balance_mw,
        lines=lines,
        unsolved_lines=result.unsolved_line_keys,
        skipped_lines=result.skipped_line_keys,
        islands=[
            IslandSummary(
                index=r.index,
                status=r.status.value,
                net_power_mw=r.net_power_mw,
                node_keys=r.node_keys,
                line_keys=r.line_keys,
            )
            for r in result.islands
        ],
        overloaded_lines=[key for key, flow in result.lines.items() if flow.overloaded],
        duration_ms=duration_ms,
    )
