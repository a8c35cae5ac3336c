"""Flatten an editable network description into a solver graph.

- generators and loads become one node each (power +generation / -load);
- each HVDC link becomes two ghost injection nodes joined to its real
  endpoints by two near-ideal ghost lines, so the two AC sides only see
  fixed injections;
- a substation contributes one node per bus that some AC line uses;
- every line endpoint is resolved to exactly one node id.
"""

from __future__ import annotations

from collections import defaultdict
from enum import Enum

from engine.network.grid_model import (
    GridConfig,
    HVDCLine,
    LineKind,
    NodeKind,
    PSTLine,
    RegularLine,
    SolverGridConfig,
    SolverLine,
    SolverNode,
)

GHOST_LINE_REACTANCE = 1e-4   # pu
GHOST_LINE_LIMIT_MW = 1e9


class ConfigurationErrorReason(str, Enum):
    ENDPOINT_NOT_FOUND = "endpoint-not-found"
    ENDPOINT_AMBIGUOUS = "endpoint-ambiguous"
    DUPLICATE_KEY = "duplicate-key"
    INVALID_BUS_COUNT = "invalid-bus-count"


class ConfigurationError(ValueError):
    """Structurally malformed network; aborts the whole computation."""

    def __init__(self, reason: ConfigurationErrorReason, message: str, key: str | None = None):
        super().__init__(message)
        self.reason = reason
        self.key = key


def node_full_key(node_key: str, bus: int | None = None) -> str:
    """Identity of a solver node: bare key, or ``<key>_bus<N>`` for a substation bus."""
    if not bus:
        return node_key
    return f"{node_key}_bus{bus}"


def hvdc_ghost_node_keys(hvdc_key: str) -> tuple[str, str]:
    return f"{hvdc_key}_node_in", f"{hvdc_key}_node_out"


def hvdc_ghost_line_keys(hvdc_key: str) -> tuple[str, str]:
    return f"{hvdc_key}_line_in", f"{hvdc_key}_line_out"


def prepare_grid(
    config: GridConfig,
    ghost_reactance: float = GHOST_LINE_REACTANCE,
    ghost_limit_mw: float = GHOST_LINE_LIMIT_MW,
) -> SolverGridConfig:
    """Build the solver graph for ``config``.

    Node order: generators, loads, HVDC ghost nodes, substation buses.
    Line order: regular, PST, HVDC ghost lines.

    Raises:
        ConfigurationError: a line endpoint matches no node or several nodes,
            two nodes share a full key, or a substation bus count is invalid.
    """
    ac_lines: list[RegularLine | PSTLine] = [*config.regular_lines, *config.pst_lines]

    # Substation buses that some AC line actually uses
    connected_buses: set[str] = set()
    for line in ac_lines:
        connected_buses.add(node_full_key(line.node_from_key, line.bus_from))
        connected_buses.add(node_full_key(line.node_to_key, line.bus_to))

    nodes: list[SolverNode] = []

    def add_node(full_key: str, key: str, kind: NodeKind, power: float, bus: int = 0) -> None:
        nodes.append(SolverNode(
            id=len(nodes), full_key=full_key, key=key, kind=kind, power=power, bus=bus,
        ))

    for gen in config.generators:
        add_node(node_full_key(gen.key), gen.key, NodeKind.GENERATOR, gen.generation)

    for load in config.loads:
        add_node(node_full_key(load.key), load.key, NodeKind.LOAD, -load.load)

    # HVDC: in-ghost withdraws F on the from side, out-ghost injects F on the
    # to side. A negative F flips both signs, the pair still sums to 0.
    ghost_lines: list[tuple[HVDCLine, str, int, str, int, str]] = []
    for hvdc in config.hvdc_lines:
        key_in, key_out = hvdc_ghost_node_keys(hvdc.key)
        line_in, line_out = hvdc_ghost_line_keys(hvdc.key)
        add_node(key_in, hvdc.key, NodeKind.LOAD, -hvdc.set_flow)
        add_node(key_out, hvdc.key, NodeKind.GENERATOR, hvdc.set_flow)
        ghost_lines.append((hvdc, hvdc.node_from_key, hvdc.bus_from, key_in, 0, line_in))
        ghost_lines.append((hvdc, key_out, 0, hvdc.node_to_key, hvdc.bus_to, line_out))

    for sub in config.substations:
        if isinstance(sub.buses, bool) or not isinstance(sub.buses, int) or sub.buses < 1:
            raise ConfigurationError(
                ConfigurationErrorReason.INVALID_BUS_COUNT,
                f"Substation {sub.key} has invalid bus count {sub.buses!r}",
                key=sub.key,
            )
        for bus in range(1, sub.buses + 1):
            full_key = node_full_key(sub.key, bus)
            if full_key in connected_buses:
                add_node(full_key, sub.key, NodeKind.SUBSTATION, 0.0, bus=bus)

    lookup: dict[str, list[int]] = defaultdict(list)
    for node in nodes:
        lookup[node.full_key].append(node.id)

    lines: list[SolverLine] = []
    for line in ac_lines:
        kind = LineKind.PST if isinstance(line, PSTLine) else LineKind.REGULAR
        lines.append(SolverLine(
            key=line.key,
            kind=kind,
            name=line.name,
            node_from_key=line.node_from_key,
            bus_from=line.bus_from,
            node_to_key=line.node_to_key,
            bus_to=line.bus_to,
            reactance=line.reactance,
            limit=line.limit,
            node_from_id=_resolve(lookup, line.key, line.node_from_key, line.bus_from),
            node_to_id=_resolve(lookup, line.key, line.node_to_key, line.bus_to),
            phase_deg=line.phase_deg or 0.0,
            shift_min=line.shift_min or 0.0,
            shift_max=line.shift_max or 0.0,
        ))

    for hvdc, from_key, bus_from, to_key, bus_to, line_key in ghost_lines:
        lines.append(SolverLine(
            key=line_key,
            kind=LineKind.HVDC,
            name=hvdc.name,
            hvdc_key=hvdc.key,
            node_from_key=from_key,
            bus_from=bus_from,
            node_to_key=to_key,
            bus_to=bus_to,
            reactance=ghost_reactance,
            limit=ghost_limit_mw,
            node_from_id=_resolve(lookup, line_key, from_key, bus_from),
            node_to_id=_resolve(lookup, line_key, to_key, bus_to),
        ))

    for full_key, ids in lookup.items():
        if len(ids) > 1:
            raise ConfigurationError(
                ConfigurationErrorReason.DUPLICATE_KEY,
                f"Nodes {ids} share the key {full_key}",
                key=full_key,
            )

    return SolverGridConfig(nodes=nodes, lines=lines)


def _resolve(lookup: dict[str, list[int]], line_key: str, node_key: str, bus: int) -> int:
    full_key = node_full_key(node_key, bus)
    ids = lookup.get(full_key, [])
    if not ids:
        raise ConfigurationError(
            ConfigurationErrorReason.ENDPOINT_NOT_FOUND,
            f"Line {line_key}: cannot find node {node_key}, bus {bus}",
            key=line_key,
        )
    if len(ids) > 1:
        raise ConfigurationError(
            ConfigurationErrorReason.ENDPOINT_AMBIGUOUS,
            f"Line {line_key}: multiple matches for node {node_key}, bus {bus}",
            key=line_key,
        )
    return ids[0]
