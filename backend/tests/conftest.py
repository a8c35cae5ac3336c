"""Shared test fixtures for GridBalance engine and app tests."""

from __future__ import annotations

import pytest

from engine.network.actions import RedispatchAction
from engine.network.grid_model import (
    GeneratorNode,
    GridConfig,
    HVDCLine,
    LoadNode,
    RegularLine,
    SubstationNode,
)


# ======================================================================
# Tutorial network: 4 generators, 4 loads, 4 substations, 12 lines
# ======================================================================

@pytest.fixture
def tutorial_grid() -> GridConfig:
    """Balanced 12-line network (generation 200 MW = load 200 MW).

    gen4/load4 form their own island through line12.
    """
    generators = (
        GeneratorNode(key="gen1", generation=90, x=100, y=200,
                      allow_redispatch=True, redispatch_min=50, redispatch_max=120),
        GeneratorNode(key="gen2", generation=90, x=200, y=100),
        GeneratorNode(key="gen3", generation=10, x=500, y=200,
                      allow_redispatch=True, redispatch_min=10, redispatch_max=50),
        GeneratorNode(key="gen4", generation=10, x=100, y=400),
    )
    loads = (
        LoadNode(key="load1", load=170, x=700, y=600,
                 allow_redispatch=True, redispatch_min=100, redispatch_max=250),
        LoadNode(key="load2", load=10, x=600, y=700),
        LoadNode(key="load3", load=10, x=600, y=300),
        LoadNode(key="load4", load=10, x=100, y=500),
    )
    substations = (
        SubstationNode(key="sub1", buses=1, x=250, y=250),
        SubstationNode(key="sub2", buses=1, x=300, y=500),
        SubstationNode(key="sub3", buses=1, x=500, y=300),
        SubstationNode(key="sub4", buses=1, x=550, y=550),
    )
    lines = (
        RegularLine("line1", "gen1", 0, "sub1", 1, reactance=0.1, limit=100),
        RegularLine("line2", "gen2", 0, "sub1", 1, reactance=0.1, limit=100),
        RegularLine("line3", "sub2", 1, "sub1", 1, reactance=0.1, limit=100),
        RegularLine("line4", "sub3", 1, "sub1", 1, reactance=0.2, limit=100),
        RegularLine("line5", "sub2", 1, "sub3", 1, reactance=0.1, limit=100),
        RegularLine("line6", "sub2", 1, "sub4", 1, reactance=0.1, limit=100),
        RegularLine("line7", "sub3", 1, "sub4", 1, reactance=0.1, limit=100),
        RegularLine("line8", "sub4", 1, "load1", 0, reactance=0.1, limit=200),
        RegularLine("line9", "sub4", 1, "load2", 0, reactance=0.1, limit=50),
        RegularLine("line10", "sub3", 1, "gen3", 0, reactance=0.1, limit=50),
        RegularLine("line11", "sub3", 1, "load3", 0, reactance=0.1, limit=20),
        RegularLine("line12", "gen4", 0, "load4", 0, reactance=0.1, limit=15),
    )
    return GridConfig(
        generators=generators,
        loads=loads,
        substations=substations,
        regular_lines=lines,
    )


@pytest.fixture
def tutorial_actions() -> list[RedispatchAction]:
    """Scenario actions shipped with the tutorial network (still balanced)."""
    return [
        RedispatchAction(node_key="gen1", power=80),
        RedispatchAction(node_key="load1", power=160),
    ]


# ======================================================================
# HVDC network: ring through two 3-bus substations plus a DC link
# ======================================================================

@pytest.fixture
def hvdc_grid() -> GridConfig:
    """gen1 (50 MW) and load1 (50 MW) on a ring, HVDC link sub1/1 → sub2/2 at 10 MW."""
    return GridConfig(
        generators=(GeneratorNode(key="gen1", generation=50, x=100, y=100),),
        loads=(LoadNode(key="load1", load=50, x=700, y=700),),
        substations=(
            SubstationNode(key="sub1", buses=3, x=700, y=100),
            SubstationNode(key="sub2", buses=3, x=100, y=700),
        ),
        regular_lines=(
            RegularLine("line1", "gen1", 0, "sub1", 1, reactance=0.1, limit=100),
            RegularLine("line2", "gen1", 0, "sub2", 2, reactance=0.1, limit=100),
            RegularLine("line3", "sub1", 1, "load1", 0, reactance=0.1, limit=100),
            RegularLine("line4", "sub2", 2, "load1", 0, reactance=0.1, limit=100),
        ),
        hvdc_lines=(
            HVDCLine("hvdc1", "sub1", 1, "sub2", 2, set_flow=10, flow_min=-100, flow_max=100),
        ),
    )


# ======================================================================
# Schema payloads
# ======================================================================

@pytest.fixture
def hvdc_payload() -> dict:
    """Same network as ``hvdc_grid`` as a raw request payload."""
    return {
        "grid": {
            "nodes": {
                "generators": [{"key": "gen1", "generation": 50, "x": 100, "y": 100}],
                "loads": [{"key": "load1", "load": 50, "x": 700, "y": 700}],
                "substations": [
                    {"key": "sub1", "buses": 3, "x": 700, "y": 100},
                    {"key": "sub2", "buses": 3, "x": 100, "y": 700},
                ],
            },
            "lines": {
                "regular": [
                    {"key": "line1", "node_from_key": "gen1", "bus_from": 0,
                     "node_to_key": "sub1", "bus_to": 1, "reactance": 0.1, "limit": 100},
                    {"key": "line2", "node_from_key": "gen1", "bus_from": 0,
                     "node_to_key": "sub2", "bus_to": 2, "reactance": 0.1, "limit": 100},
                    {"key": "line3", "node_from_key": "sub1", "bus_from": 1,
                     "node_to_key": "load1", "bus_to": 0, "reactance": 0.1, "limit": 100},
                    {"key": "line4", "node_from_key": "sub2", "bus_from": 2,
                     "node_to_key": "load1", "bus_to": 0, "reactance": 0.1, "limit": 100},
                ],
                "hvdc": [
                    {"key": "hvdc1", "node_from_key": "sub1", "bus_from": 1,
                     "node_to_key": "sub2", "bus_to": 2, "set_flow": 10,
                     "flow_min": -100, "flow_max": 100},
                ],
            },
        },
        "actions": [],
    }
