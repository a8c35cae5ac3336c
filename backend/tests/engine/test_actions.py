"""Tests for engine.network.actions — building the solver input from an action log."""

from __future__ import annotations

import pytest

from engine.network.actions import (
    ActionKind,
    BusChangeAction,
    HVDCSetpointAction,
    RedispatchAction,
    apply_actions,
    resolve_actions,
)


def _by_key(items):
    return {item.key: item for item in items}


class TestApplyActions:
    """Tests for apply_actions."""

    def test_no_actions_is_identity(self, tutorial_grid):
        assert apply_actions(tutorial_grid, []) == tutorial_grid

    def test_redispatch_generator_and_load(self, tutorial_grid, tutorial_actions):
        config = apply_actions(tutorial_grid, tutorial_actions)
        assert _by_key(config.generators)["gen1"].generation == 80
        assert _by_key(config.loads)["load1"].load == 160
        # Untouched nodes keep their values
        assert _by_key(config.generators)["gen2"].generation == 90
        assert _by_key(config.loads)["load2"].load == 10

    def test_base_config_unchanged(self, tutorial_grid, tutorial_actions):
        apply_actions(tutorial_grid, tutorial_actions)
        assert _by_key(tutorial_grid.generators)["gen1"].generation == 90
        assert _by_key(tutorial_grid.loads)["load1"].load == 170

    def test_last_action_wins(self, tutorial_grid):
        """Later actions on the same target replace earlier ones."""
        actions = [
            RedispatchAction(node_key="gen1", power=50),
            RedispatchAction(node_key="gen2", power=70),
            RedispatchAction(node_key="gen1", power=110),
        ]
        config = apply_actions(tutorial_grid, actions)
        assert _by_key(config.generators)["gen1"].generation == 110
        assert _by_key(config.generators)["gen2"].generation == 70

    def test_redispatch_replaces_not_accumulates(self, tutorial_grid):
        actions = [RedispatchAction("load2", 5), RedispatchAction("load2", 5)]
        config = apply_actions(tutorial_grid, actions)
        assert _by_key(config.loads)["load2"].load == 5

    def test_unknown_target_ignored(self, tutorial_grid):
        actions = [
            RedispatchAction(node_key="nope", power=1),
            HVDCSetpointAction(hvdc_key="nope", flow=1),
            BusChangeAction(substation_key="sub1", line_key="line12", bus=2),
        ]
        assert apply_actions(tutorial_grid, actions) == tutorial_grid

    def test_bus_change_to_end(self, hvdc_grid):
        """line3 leaves sub1 from bus 1; moving it to bus 3 rewrites bus_from."""
        config = apply_actions(hvdc_grid, [BusChangeAction("sub1", "line3", 3)])
        line3 = _by_key(config.regular_lines)["line3"]
        assert line3.bus_from == 3
        assert line3.bus_to == 0
        # Other lines on sub1 stay put
        assert _by_key(config.regular_lines)["line1"].bus_to == 1

    def test_bus_change_on_to_side(self, hvdc_grid):
        config = apply_actions(hvdc_grid, [BusChangeAction("sub2", "line2", 1)])
        assert _by_key(config.regular_lines)["line2"].bus_to == 1

    def test_bus_change_last_wins(self, hvdc_grid):
        actions = [BusChangeAction("sub1", "line1", 2), BusChangeAction("sub1", "line1", 3)]
        config = apply_actions(hvdc_grid, actions)
        assert _by_key(config.regular_lines)["line1"].bus_to == 3

    def test_bus_change_on_hvdc(self, hvdc_grid):
        config = apply_actions(hvdc_grid, [BusChangeAction("sub2", "hvdc1", 3)])
        assert config.hvdc_lines[0].bus_to == 3

    def test_hvdc_setpoint(self, hvdc_grid):
        actions = [HVDCSetpointAction("hvdc1", -20), HVDCSetpointAction("hvdc1", 30)]
        config = apply_actions(hvdc_grid, actions)
        assert config.hvdc_lines[0].set_flow == 30
        assert hvdc_grid.hvdc_lines[0].set_flow == 10

    def test_unknown_action_type(self, tutorial_grid):
        with pytest.raises(TypeError, match="Unknown grid action"):
            apply_actions(tutorial_grid, [object()])


class TestResolveActions:

    def test_kinds(self):
        assert RedispatchAction("g", 1).kind == ActionKind.REDISPATCH
        assert BusChangeAction("s", "l", 1).kind == ActionKind.BUS_CHANGE
        assert HVDCSetpointAction("h", 1).kind == ActionKind.HVDC
        assert ActionKind.BUS_CHANGE.value == "buschange"

    def test_one_value_per_target(self):
        resolved = resolve_actions([
            RedispatchAction("g", 1),
            BusChangeAction("s", "l", 1),
            RedispatchAction("g", 2),
            BusChangeAction("s", "l", 2),
            BusChangeAction("t", "l", 1),
        ])
        assert resolved.redispatch == {"g": 2}
        assert resolved.buses == {("s", "l"): 2, ("t", "l"): 1}
        assert resolved.hvdc_flows == {}


class TestGridBalance:

    def test_balanced(self, tutorial_grid):
        assert tutorial_grid.balance_mw == 0

    def test_after_redispatch(self, tutorial_grid):
        config = apply_actions(tutorial_grid, [RedispatchAction("load1", 160)])
        assert config.balance_mw == 10
