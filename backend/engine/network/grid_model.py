"""Grid data model for the DC power flow.

Two layers live here:

- the editable network description (generators, loads, substations with a
  number of buses, regular/PST/HVDC lines), as authored for a scenario;
- the flattened solver graph (``SolverGridConfig``) with dense integer node
  ids, produced by ``engine.network.preparation.prepare_grid``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class NodeKind(str, Enum):
    GENERATOR = "generator"
    LOAD = "load"
    SUBSTATION = "substation"


class LineKind(str, Enum):
    REGULAR = "regular"
    PST = "pst"
    HVDC = "hvdc"


# ----------------------------------------------------------------------
# Editable network description
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class GeneratorNode:
    """Generator with a positive MW output."""
    key: str
    generation: float
    x: float = 0.0
    y: float = 0.0
    name: str | None = None
    allow_redispatch: bool = False
    redispatch_min: float | None = None
    redispatch_max: float | None = None


@dataclass(frozen=True)
class LoadNode:
    """Load with a positive MW consumption."""
    key: str
    load: float
    x: float = 0.0
    y: float = 0.0
    name: str | None = None
    allow_redispatch: bool = False
    redispatch_min: float | None = None
    redispatch_max: float | None = None


@dataclass(frozen=True)
class SubstationNode:
    """Substation split into ``buses`` bus bars numbered from 1."""
    key: str
    buses: int = 1
    x: float = 0.0
    y: float = 0.0
    name: str | None = None


@dataclass(frozen=True)
class RegularLine:
    """AC line. Bus 0 addresses a generator/load, 1..N a substation bus."""
    key: str
    node_from_key: str
    bus_from: int
    node_to_key: str
    bus_to: int
    reactance: float  # per-unit on S_base
    limit: float      # MW
    name: str | None = None
    phase_deg: float | None = None
    shift_min: float | None = None
    shift_max: float | None = None


@dataclass(frozen=True)
class PSTLine:
    """Line with a phase-shifting transformer (fixed angle offset)."""
    key: str
    node_from_key: str
    bus_from: int
    node_to_key: str
    bus_to: int
    reactance: float
    limit: float
    phase_deg: float
    shift_min: float
    shift_max: float
    name: str | None = None


@dataclass(frozen=True)
class HVDCLine:
    """DC link with a controlled set-point, positive from ``node_from`` to ``node_to``."""
    key: str
    node_from_key: str
    bus_from: int
    node_to_key: str
    bus_to: int
    set_flow: float
    flow_min: float
    flow_max: float
    name: str | None = None


@dataclass(frozen=True)
class GridConfig:
    """Editable network description of one scenario."""
    generators: tuple[GeneratorNode, ...] = ()
    loads: tuple[LoadNode, ...] = ()
    substations: tuple[SubstationNode, ...] = ()
    regular_lines: tuple[RegularLine, ...] = ()
    pst_lines: tuple[PSTLine, ...] = ()
    hvdc_lines: tuple[HVDCLine, ...] = ()

    @property
    def balance_mw(self) -> float:
        """Total generation minus total load (MW), summed in list order."""
        total = 0.0
        for g in self.generators:
            total += g.generation
        for ld in self.loads:
            total -= ld.load
        return total


# ----------------------------------------------------------------------
# Flattened solver graph
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class SolverNode:
    """Node of the flattened graph; ``id`` equals its list position."""
    id: int
    full_key: str
    key: str
    kind: NodeKind
    power: float  # MW, + generation / - load / 0 substation
    bus: int = 0


@dataclass(frozen=True)
class SolverLine:
    """Line of the flattened graph with resolved endpoint ids."""
    key: str
    kind: LineKind
    node_from_key: str
    bus_from: int
    node_to_key: str
    bus_to: int
    reactance: float
    limit: float
    node_from_id: int
    node_to_id: int
    phase_deg: float = 0.0
    shift_min: float = 0.0
    shift_max: float = 0.0
    name: str | None = None
    hvdc_key: str | None = None  # set on the two ghost lines of an HVDC link


@dataclass
class SolverGridConfig:
    """Solver-ready graph (whole network or one island)."""
    nodes: list[SolverNode] = field(default_factory=list)
    lines: list[SolverLine] = field(default_factory=list)

    @property
    def n_node(self) -> int:
        return len(self.nodes)

    @property
    def net_power_mw(self) -> float:
        """Node injections summed left to right in node order.

        The balance gate compares this value with 0 exactly, so the order of
        the additions is part of the result.
        """
        return sum(node.power for node in self.nodes)


@dataclass
class LineFlowResult:
    """DC flow on one line of a solved island."""
    line: SolverLine
    d_theta: float    # θ_from − θ_to (rad)
    phi: float        # phase shift (rad)
    flow_pu: float
    flow_mw: float
    overloaded: bool

    @property
    def key(self) -> str:
        return self.line.key

    @property
    def loading_pct(self) -> float:
        """|flow| as % of the line limit (0 for an unlimited/zero limit)."""
        if self.line.limit <= 0:
            return 0.0
        return abs(self.flow_mw) / self.line.limit * 100.0

    def to_dict(self) -> dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            "key": self.line.key,
            "kind": self.line.kind.value,
            "name": self.line.name,
            "node_from_key": self.line.node_from_key,
            "bus_from": self.line.bus_from,
            "node_to_key": self.line.node_to_key,
            "bus_to": self.line.bus_to,
            "reactance": self.line.reactance,
            "limit": self.line.limit,
            "phase_deg": self.line.phase_deg,
            "d_theta": self.d_theta,
            "phi": self.phi,
            "flow_pu": self.flow_pu,
            "flow_mw": self.flow_mw,
            "overloaded": self.overloaded,
            "loading_pct": round(self.loading_pct, 1),
        }
