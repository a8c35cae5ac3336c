"""Grid actions and their application to an editable network description.

Actions are a closed set of frozen dataclasses. ``apply_actions`` builds a new
``GridConfig`` from a base scenario and an ordered action list; for every
target the last matching action wins.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Iterable, Union

from engine.network.grid_model import GridConfig, HVDCLine, PSTLine, RegularLine

logger = logging.getLogger(__name__)


class ActionKind(str, Enum):
    REDISPATCH = "redispatch"
    BUS_CHANGE = "buschange"
    HVDC = "hvdc"


@dataclass(frozen=True)
class RedispatchAction:
    """Set a generator's generation or a load's consumption (MW)."""
    node_key: str
    power: float
    kind: ClassVar[ActionKind] = ActionKind.REDISPATCH


@dataclass(frozen=True)
class BusChangeAction:
    """Move the end of ``line_key`` sitting on ``substation_key`` to another bus."""
    substation_key: str
    line_key: str
    bus: int
    kind: ClassVar[ActionKind] = ActionKind.BUS_CHANGE


@dataclass(frozen=True)
class HVDCSetpointAction:
    """Set the controlled flow of an HVDC link (MW, signed)."""
    hvdc_key: str
    flow: float
    kind: ClassVar[ActionKind] = ActionKind.HVDC


GridAction = Union[RedispatchAction, BusChangeAction, HVDCSetpointAction]

_AnyLine = Union[RegularLine, PSTLine, HVDCLine]


@dataclass
class _ResolvedActions:
    """Final value per target after the whole action log has been read."""
    redispatch: dict[str, float] = dataclasses.field(default_factory=dict)
    buses: dict[tuple[str, str], int] = dataclasses.field(default_factory=dict)
    hvdc_flows: dict[str, float] = dataclasses.field(default_factory=dict)


def resolve_actions(actions: Iterable[GridAction]) -> _ResolvedActions:
    """Collapse an ordered action log to one value per target key."""
    resolved = _ResolvedActions()
    for action in actions:
        if isinstance(action, RedispatchAction):
            resolved.redispatch[action.node_key] = action.power
        elif isinstance(action, BusChangeAction):
            resolved.buses[(action.substation_key, action.line_key)] = action.bus
        elif isinstance(action, HVDCSetpointAction):
            resolved.hvdc_flows[action.hvdc_key] = action.flow
        else:
            raise TypeError(f"Unknown grid action: {action!r}")
    return resolved


def apply_actions(config: GridConfig, actions: Iterable[GridAction]) -> GridConfig:
    """Return a new config with the action log applied.

    The base config is left untouched. Actions whose target does not exist
    are ignored.
    """
    resolved = resolve_actions(actions)

    generators = tuple(
        dataclasses.replace(g, generation=resolved.redispatch[g.key])
        if g.key in resolved.redispatch else g
        for g in config.generators
    )
    loads = tuple(
        dataclasses.replace(ld, load=resolved.redispatch[ld.key])
        if ld.key in resolved.redispatch else ld
        for ld in config.loads
    )
    hvdc_lines = tuple(
        dataclasses.replace(h, set_flow=resolved.hvdc_flows[h.key])
        if h.key in resolved.hvdc_flows else h
        for h in config.hvdc_lines
    )

    new_config = GridConfig(
        generators=generators,
        loads=loads,
        substations=config.substations,
        regular_lines=tuple(_change_bus(line, resolved.buses) for line in config.regular_lines),
        pst_lines=tuple(_change_bus(line, resolved.buses) for line in config.pst_lines),
        hvdc_lines=tuple(_change_bus(line, resolved.buses) for line in hvdc_lines),
    )
    _log_unmatched(config, resolved)
    return new_config


def _change_bus(line: _AnyLine, buses: dict[tuple[str, str], int]) -> _AnyLine:
    changes = {}
    bus_from = buses.get((line.node_from_key, line.key))
    if bus_from is not None:
        changes["bus_from"] = bus_from
    bus_to = buses.get((line.node_to_key, line.key))
    if bus_to is not None:
        changes["bus_to"] = bus_to
    if not changes:
        return line
    return dataclasses.replace(line, **changes)


def _log_unmatched(config: GridConfig, resolved: _ResolvedActions) -> None:
    node_keys = {g.key for g in config.generators} | {ld.key for ld in config.loads}
    for key in resolved.redispatch.keys() - node_keys:
        logger.debug("Redispatch action: no generator or load with key %s", key)

    hvdc_keys = {h.key for h in config.hvdc_lines}
    for key in resolved.hvdc_flows.keys() - hvdc_keys:
        logger.debug("HVDC action: no HVDC line with key %s", key)

    endpoints = {
        (node_key, line.key)
        for line in (*config.regular_lines, *config.pst_lines, *config.hvdc_lines)
        for node_key in (line.node_from_key, line.node_to_key)
    }
    for substation_key, line_key in resolved.buses.keys() - endpoints:
        logger.debug(
            "Bus change action: line %s has no end on substation %s",
            line_key, substation_key,
        )
