"""DC (linearized) power flow per island.

Assumptions: V ≈ 1.0 pu, sin(θij) ≈ θij, losses and Q neglected.
Line flow: P_ij = (θ_i − θ_j − φ_ij) / X_ij, with φ the phase shift of a PST.

Per island:
1. Balance gate: injections must sum to exactly 0 MW (no slack absorption)
2. Assemble the susceptance matrix B and the phase-shift vector s
3. Drop the reference node (island index 0, θ = 0)
4. Solve B_red × θ_red = P_red + s_red with Gauss-Jordan elimination
5. Derive flows in pu and MW, flag |P| > limit as overloaded

An island that fails the gate or is singular is left out of the results;
the rest of the network is still solved. An HVDC link is reported under its
own key once both of its ghost lines have a flow.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterable

import numpy as np

from engine.network.actions import GridAction, apply_actions
from engine.network.grid_model import GridConfig, LineFlowResult, SolverGridConfig
from engine.network.islands import split_islands
from engine.network.linear_solver import PIVOT_TOLERANCE, SingularMatrixError, gauss_jordan_solve
from engine.network.per_unit import S_BASE_MVA, deg_to_rad, mw_to_pu, pu_to_mw
from engine.network.preparation import (
    GHOST_LINE_LIMIT_MW,
    GHOST_LINE_REACTANCE,
    hvdc_ghost_line_keys,
    prepare_grid,
)

logger = logging.getLogger(__name__)

REFERENCE_INDEX = 0


class IslandStatus(str, Enum):
    SOLVED = "solved"
    IMBALANCED = "imbalanced"
    SINGULAR = "singular"


@dataclass
class IslandSolution:
    """Outcome of solving one island."""
    status: IslandStatus
    net_power_mw: float
    theta: np.ndarray | None = None  # rad, indexed by island node id
    flows: dict[str, LineFlowResult] = field(default_factory=dict)


@dataclass
class IslandReport:
    """Summary of one island of a grid solve."""
    index: int
    node_keys: list[str]
    line_keys: list[str]
    status: IslandStatus
    net_power_mw: float


@dataclass
class GridFlowResult:
    """Merged results of all islands."""
    lines: dict[str, LineFlowResult] = field(default_factory=dict)
    islands: list[IslandReport] = field(default_factory=list)

    @property
    def unsolved_line_keys(self) -> list[str]:
        """Lines of islands that were not solved."""
        return [
            key
            for report in self.islands
            if report.status != IslandStatus.SOLVED
            for key in report.line_keys
        ]

    @property
    def skipped_line_keys(self) -> list[str]:
        """Lines of solved islands left without a flow (non-positive reactance)."""
        return [
            key
            for report in self.islands
            if report.status == IslandStatus.SOLVED
            for key in report.line_keys
            if key not in self.lines
        ]

    @property
    def solved_island_count(self) -> int:
        return sum(1 for r in self.islands if r.status == IslandStatus.SOLVED)


def analyze_island(
    island: SolverGridConfig,
    pivot_tolerance: float = PIVOT_TOLERANCE,
) -> IslandSolution:
    """Solve the DC flow of one connected island."""
    n = island.n_node
    net_power_mw = island.net_power_mw

    # No auto-balance: an island mid-edit is simply not solved
    if net_power_mw != 0:
        logger.warning(
            "Island is not balanced, net power is %s MW",
            net_power_mw,
            extra={"status": IslandStatus.IMBALANCED.value, "net_power_mw": net_power_mw},
        )
        return IslandSolution(status=IslandStatus.IMBALANCED, net_power_mw=net_power_mw)

    p_pu = np.array([mw_to_pu(node.power) for node in island.nodes], dtype=np.float64)

    B = np.zeros((n, n))
    s = np.zeros(n)  # constant term from phase shifters (pu)
    for line in island.lines:
        if line.reactance <= 0:
            continue
        i = line.node_from_id
        j = line.node_to_id
        b = 1.0 / line.reactance

        B[i, i] += b
        B[j, j] += b
        B[i, j] -= b
        B[j, i] -= b

        # b·(θi − θj − φ): the −b·φ term moves to the right-hand side
        phi = deg_to_rad(line.phase_deg)
        if phi != 0:
            s[i] += b * phi
            s[j] -= b * phi

    mask = np.array([k for k in range(n) if k != REFERENCE_INDEX], dtype=int)
    B_red = B[np.ix_(mask, mask)]
    p_red = p_pu[mask] + s[mask]

    try:
        theta_red = gauss_jordan_solve(B_red, p_red, pivot_tolerance=pivot_tolerance)
    except SingularMatrixError as exc:
        logger.warning(
            "Island solve failed: %s",
            exc,
            extra={"status": IslandStatus.SINGULAR.value, "net_power_mw": net_power_mw},
        )
        return IslandSolution(status=IslandStatus.SINGULAR, net_power_mw=net_power_mw)

    theta = np.zeros(n)
    theta[mask] = theta_red

    return IslandSolution(
        status=IslandStatus.SOLVED,
        net_power_mw=net_power_mw,
        theta=theta,
        flows=line_flows(island, theta),
    )


def line_flows(island: SolverGridConfig, theta: np.ndarray) -> dict[str, LineFlowResult]:
    """Per-line DC flows for solved bus angles ``theta``."""
    flows: dict[str, LineFlowResult] = {}
    for line in island.lines:
        if line.reactance <= 0:
            logger.warning("Line %s has non-positive reactance, no flow computed", line.key)
            continue
        phi = deg_to_rad(line.phase_deg)
        d_theta = float(theta[line.node_from_id] - theta[line.node_to_id])
        flow_pu = (d_theta - phi) / line.reactance
        flow_mw = pu_to_mw(flow_pu)
        flows[line.key] = LineFlowResult(
            line=line,
            d_theta=d_theta,
            phi=phi,
            flow_pu=flow_pu,
            flow_mw=flow_mw,
            overloaded=abs(flow_mw) > line.limit,
        )
    return flows


def solve_island(
    island: SolverGridConfig,
    pivot_tolerance: float = PIVOT_TOLERANCE,
) -> dict[str, LineFlowResult] | None:
    """Line key → flow for one island, or None if it is unbalanced or singular."""
    solution = analyze_island(island, pivot_tolerance=pivot_tolerance)
    if solution.status != IslandStatus.SOLVED:
        return None
    return solution.flows


def hvdc_link_flows(flows: dict[str, LineFlowResult]) -> dict[str, LineFlowResult]:
    """Flow of each HVDC link keyed by the link itself.

    The link carries exactly its set-point, which is the flow on its
    ``_line_in`` ghost line; the entry runs from the real from-end to the real
    to-end. Links with an unsolved side are left out.
    """
    links: dict[str, LineFlowResult] = {}
    for flow in flows.values():
        hvdc_key = flow.line.hvdc_key
        if hvdc_key is None:
            continue
        in_key, out_key = hvdc_ghost_line_keys(hvdc_key)
        if flow.key != in_key or out_key not in flows:
            continue
        line_out = flows[out_key].line
        link = replace(
            flow.line,
            key=hvdc_key,
            node_to_key=line_out.node_to_key,
            bus_to=line_out.bus_to,
            node_to_id=line_out.node_to_id,
        )
        links[hvdc_key] = replace(flow, line=link)
    return links


def solve_grid(
    grid: SolverGridConfig,
    pivot_tolerance: float = PIVOT_TOLERANCE,
) -> GridFlowResult:
    """Split ``grid`` into islands, solve each one and merge the flows."""
    result = GridFlowResult()
    for index, island in enumerate(split_islands(grid)):
        solution = analyze_island(island, pivot_tolerance=pivot_tolerance)
        # Line keys are unique, islands never collide
        result.lines.update(solution.flows)
        result.islands.append(IslandReport(
            index=index,
            node_keys=[node.full_key for node in island.nodes],
            line_keys=[line.key for line in island.lines],
            status=solution.status,
            net_power_mw=solution.net_power_mw,
        ))

    result.lines.update(hvdc_link_flows(result.lines))

    logger.debug(
        "DC flow: %d/%d islands solved, %d lines (S_base=%.0f MVA)",
        result.solved_island_count,
        len(result.islands),
        len(result.lines),
        S_BASE_MVA,
    )
    return result


def run_simulation(
    config: GridConfig,
    actions: Iterable[GridAction] = (),
    pivot_tolerance: float = PIVOT_TOLERANCE,
    ghost_reactance: float = GHOST_LINE_REACTANCE,
    ghost_limit_mw: float = GHOST_LINE_LIMIT_MW,
) -> dict[str, LineFlowResult]:
    """Apply ``actions`` to ``config``, prepare the solver graph and solve it.

    A missing line key in the result means its island could not be solved.

    Raises:
        ConfigurationError: the network is structurally malformed.
    """
    grid = prepare_grid(
        apply_actions(config, actions),
        ghost_reactance=ghost_reactance,
        ghost_limit_mw=ghost_limit_mw,
    )
    return solve_grid(grid, pivot_tolerance=pivot_tolerance).lines
