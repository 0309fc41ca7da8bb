"""
Tests for simulation/net_builder.py: net extraction, naming and label colors.
"""

import math

from tests.conftest import build_model, make_component, make_wire
from simulation.net_builder import (
    build_nets,
    build_pin_net_map,
    build_point_net_map,
    net_at,
    normalize_net_color,
    normalize_point,
    resolve_net_colors,
    resolve_net_names,
)


def _names_by_pin(model):
    nets = build_nets(model)
    naming = resolve_net_names(model, nets)
    return build_pin_net_map(nets, naming.names), naming


class TestNormalizePoint:
    def test_rounds_float_drift(self):
        assert normalize_point(1.0000000001, 2.0) == normalize_point(1.0, 2.0)

    def test_negative_zero_folds(self):
        x, _ = normalize_point(-0.0, 0.0)
        assert math.copysign(1.0, x) == 1.0

    def test_invalid_input(self):
        assert normalize_point("a", 1) is None
        assert normalize_point(float("nan"), 1) is None
        assert normalize_point(float("inf"), 1) is None


class TestBuildNets:
    def test_wire_joins_pins(self, source_resistor_model):
        nets = build_nets(source_resistor_model)
        assert len(nets) == 2
        members = [sorted(net.component_ids()) for net in nets]
        assert ["NET1", "R1", "V1"] in members
        assert ["GND1", "R1", "V1"] in members

    def test_partition_no_point_in_two_nets(self, divider_model):
        nets = build_nets(divider_model)
        seen = set()
        for net in nets:
            for point in net.points:
                assert point not in seen
                seen.add(point)

    def test_unwired_pin_is_singleton_net(self):
        model = build_model([make_component("R", "R1", "1k", [(0, 0), (2, 0)])])
        nets = build_nets(model)
        assert len(nets) == 2
        assert all(len(net.pins) == 1 for net in nets)

    def test_wire_without_pins_is_dropped(self):
        model = build_model(
            [make_component("R", "R1", "1k", [(0, 0), (2, 0)])],
            [make_wire("W1", (10, 10), (12, 10))],
        )
        assert len(build_nets(model)) == 2

    def test_wire_interior_point_connects(self):
        model = build_model(
            [
                make_component("R", "R1", "1k", [(2, 0), (2, 2)]),
                make_component("R", "R2", "1k", [(4, 0), (4, 2)]),
            ],
            [make_wire("W1", (0, 0), (2, 0), (4, 0))],
        )
        pin_map, _ = _names_by_pin(model)
        assert pin_map[("R1", "1")] == pin_map[("R2", "1")]

    def test_zero_length_segment_ignored(self):
        model = build_model(
            [make_component("R", "R1", "1k", [(0, 0), (0, 2)])],
            [make_wire("W1", (0, 0), (0, 0), (3, 0))],
        )
        nets = build_nets(model)
        assert len(nets) == 2

    def test_probes_and_text_do_not_join_nets(self):
        model = build_model(
            [
                make_component("R", "R1", "1k", [(0, 0), (0, 2)]),
                make_component("PV", "PV1", "", [(5, 5)]),
                make_component("TEXT", "T1", "note", [(6, 6)]),
            ]
        )
        ids = {cid for net in build_nets(model) for cid in net.component_ids()}
        assert ids == {"R1"}


class TestNetNames:
    def test_ground_and_label(self, source_resistor_model):
        pin_map, naming = _names_by_pin(source_resistor_model)
        assert pin_map[("V1", "1")] == "in"
        assert pin_map[("V1", "2")] == "0"
        assert naming.compile_errors == []
        assert naming.named_node_signals == ["v(in)"]

    def test_auto_names_top_to_bottom(self):
        model = build_model(
            [
                make_component("R", "R1", "1k", [(0, 4), (2, 4)]),
                make_component("R", "R2", "1k", [(0, 0), (2, 0)]),
            ]
        )
        pin_map, _ = _names_by_pin(model)
        assert pin_map[("R2", "1")] == "N1"
        assert pin_map[("R2", "2")] == "N2"
        assert pin_map[("R1", "1")] == "N3"

    def test_pin_named_gnd_grounds_net(self):
        component = make_component("R", "R1", "1k", [(0, 0), (0, 2)])
        component.pins[1].name = "gnd"
        pin_map, _ = _names_by_pin(build_model([component]))
        assert pin_map[("R1", "2")] == "0"

    def test_reserved_label_reported(self):
        model = build_model(
            [
                make_component("R", "R1", "1k", [(0, 0), (0, 2)]),
                make_component("NET", "NET1", "", [(0, 0)], name="GND"),
            ]
        )
        pin_map, naming = _names_by_pin(model)
        assert pin_map[("R1", "1")] == "N1"
        assert any("reserved" in error for error in naming.compile_errors)

    def test_conflicting_labels_first_wins(self):
        model = build_model(
            [
                make_component("R", "R1", "1k", [(0, 0), (0, 2)]),
                make_component("NET", "NET1", "", [(0, 0)], name="alpha"),
                make_component("NET", "NET2", "", [(0, 0)], name="beta"),
            ]
        )
        pin_map, naming = _names_by_pin(model)
        assert pin_map[("R1", "1")] == "alpha"
        assert len(naming.compile_errors) == 1
        assert "alpha" in naming.compile_errors[0] and "beta" in naming.compile_errors[0]

    def test_same_label_on_two_nets_shares_name(self):
        model = build_model(
            [
                make_component("R", "R1", "1k", [(0, 0), (0, 2)]),
                make_component("R", "R2", "1k", [(6, 0), (6, 2)]),
                make_component("NET", "NET1", "", [(0, 0)], name="Out"),
                make_component("NET", "NET2", "", [(6, 0)], name="out"),
            ]
        )
        pin_map, naming = _names_by_pin(model)
        assert pin_map[("R1", "1")] == "Out"
        assert pin_map[("R2", "1")] == "Out"
        assert naming.named_node_signals == ["v(Out)"]

    def test_auto_name_skips_label_in_use(self):
        model = build_model(
            [
                make_component("R", "R1", "1k", [(0, 0), (0, 2)]),
                make_component("R", "R2", "1k", [(0, 4), (0, 6)]),
                make_component("NET", "NET1", "", [(0, 2)], name="n1"),
            ]
        )
        pin_map, naming = _names_by_pin(model)
        assert pin_map[("R1", "2")] == "n1"
        assert pin_map[("R1", "1")] == "N2"
        names = [pin_map[("R1", "1")], pin_map[("R1", "2")], pin_map[("R2", "1")], pin_map[("R2", "2")]]
        assert len({name.lower() for name in names}) == 4
        assert naming.compile_errors == []


class TestPointLookup:
    def test_net_at_wire_point(self, divider_model):
        nets = build_nets(divider_model)
        names = resolve_net_names(divider_model, nets).names
        point_map = build_point_net_map(nets, names)
        assert net_at(point_map, 8, 2) == "out"
        assert net_at(point_map, 8.0000001, 2) == "out"
        assert net_at(point_map, 100, 100) is None


def _labelled_pair(first_color=None, second_color=None):
    """Two unwired nets that share the label "out", plus one unlabelled net."""
    first = make_component("NET", "NET1", "", [(0, 0)], name="out")
    second = make_component("NET", "NET2", "", [(6, 0)], name="OUT")
    first.net_color, second.net_color = first_color, second_color
    return build_model(
        [
            make_component("R", "R1", "1k", [(0, 0), (0, 2)]),
            make_component("R", "R2", "1k", [(6, 0), (6, 2)]),
            first,
            second,
        ],
        [make_wire("W1", (6, 0), (10, 0)), make_wire("W2", (0, 2), (6, 2))],
    )


class TestNetColors:
    def test_palette_only(self):
        assert normalize_net_color(" #DA1E28 ") == "#da1e28"
        assert normalize_net_color("#123456") is None
        assert normalize_net_color(None) is None

    def test_shared_label_spreads_color(self):
        wire_colors, net_colors = resolve_net_colors(_labelled_pair("#DA1E28"))
        assert wire_colors == {"W1": "#da1e28"}
        assert net_colors == {"NET1": "#da1e28", "NET2": "#da1e28"}

    def test_first_colored_label_wins(self):
        _, net_colors = resolve_net_colors(_labelled_pair("#da1e28", "#24a148"))
        assert set(net_colors.values()) == {"#da1e28"}

    def test_off_palette_color_ignored(self):
        assert resolve_net_colors(_labelled_pair("#123456")) == ({}, {})

    def test_empty_model(self):
        assert resolve_net_colors(build_model()) == ({}, {})
