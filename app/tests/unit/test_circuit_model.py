"""Tests for the pure-Python data models."""

import pytest
from models.circuit import CircuitModel
from models.component import ComponentData, PinData, parse_spdt_switch_value
from models.net import NetData, PinRef, generate_net_label
from models.wire import WireData
from tests.conftest import build_model, make_component, make_wire


class TestComponentData:
    def test_type_is_normalized(self):
        component = ComponentData("r1", " r ")
        assert component.component_type == "R"
        assert component.name == "r1"

    def test_categories(self):
        assert ComponentData("PV1", "PV").is_probe
        assert not ComponentData("PV1", "PV").is_electrical
        assert ComponentData("GND1", "GND").is_label
        assert ComponentData("GND1", "GND").is_electrical
        assert not ComponentData("T1", "TEXT").is_electrical

    def test_get_pin_by_id_or_name(self):
        component = make_component("SW", "SW1", "", [(0, 0), (2, 0), (2, 2)])
        assert component.get_pin("b").point == (2, 2)
        assert component.get_pin("Z") is None

    def test_midpoint(self):
        assert make_component("R", "R1", "", [(0, 0), (0, 2)]).midpoint() == (0.0, 1.0)
        assert make_component("PV", "PV1", "", [(0, 0)]).midpoint() is None

    def test_round_trip(self):
        component = ComponentData(
            "NET1", "NET", "", [PinData("n", "n", 1.5, 2.0)], rotation=90, name="out", net_color="#ff0000",
        )
        data = component.to_dict()
        assert data["name"] == "out"
        assert data["netColor"] == "#ff0000"
        restored = ComponentData.from_dict(data)
        assert restored == component

    def test_default_name_not_serialized(self):
        assert "name" not in ComponentData("R1", "R").to_dict()


class TestSwitchValue:
    def test_defaults(self):
        assert parse_spdt_switch_value("") == {
            "active_throw": "A", "ron": "0", "roff": None, "show_ron": False, "show_roff": False,
        }

    def test_tokens(self):
        parsed = parse_spdt_switch_value("b, ron=10; roff=1Meg showron showroff=false")
        assert parsed["active_throw"] == "B"
        assert parsed["ron"] == "10"
        assert parsed["roff"] == "1Meg"
        assert parsed["show_ron"] is True
        assert parsed["show_roff"] is False

    @pytest.mark.parametrize("value", ["ron=", "showron=maybe", "c", "gain=2"])
    def test_rejects(self, value):
        with pytest.raises(ValueError):
            parse_spdt_switch_value(value)


class TestWireData:
    def test_points_become_floats(self):
        wire = WireData("W1", [(0, 1)])
        assert wire.points == [(0.0, 1.0)]

    def test_segments_skip_zero_length(self):
        wire = make_wire("W1", (0, 0), (0, 0), (2, 0), (2, 3))
        assert wire.segments() == [((0.0, 0.0), (2.0, 0.0)), ((2.0, 0.0), (2.0, 3.0))]

    def test_round_trip(self):
        wire = make_wire("W1", (0, 0), (2, 0))
        assert WireData.from_dict(wire.to_dict()) == wire


class TestNetData:
    def test_labels(self):
        assert generate_net_label(3) == "N3"

    def test_membership(self):
        net = NetData("net0", [(0.0, 0.0)], [PinRef("R1", "1", "1", 0.0, 0.0), PinRef("R1", "2", "2", 0.0, 0.0)])
        assert net.component_ids() == ["R1"]
        assert NetData("empty").anchor() == (0.0, 0.0)


class TestCircuitModel:
    def test_insertion_order(self, divider_model):
        assert list(divider_model.components) == ["V1", "R1", "R2", "GND1", "NET1", "PV1"]

    def test_remove_wire(self, divider_model):
        assert divider_model.remove_wire("W2").wire_id == "W2"
        assert divider_model.remove_wire("W2") is None
        assert divider_model.get_wire("W2") is None

    def test_next_id_skips_taken(self):
        model = build_model([make_component("R", "R1", "", [(0, 0)]), make_component("R", "R2", "", [(1, 0)])])
        assert model.next_id("R") == "R3"
        assert model.next_id("R") == "R4"

    def test_analysis_block_only_when_set(self, source_resistor_model):
        assert "analysis" not in source_resistor_model.to_dict()
        source_resistor_model.preamble = ".temp 50"
        assert source_resistor_model.to_dict()["analysis"]["preamble"] == ".temp 50"

    def test_round_trip(self, divider_model):
        divider_model.analysis_kind = "dc"
        divider_model.analysis_config = {"dc": {"source": "V1", "start": 0, "stop": 1, "step": 0.1}}
        restored = CircuitModel.from_dict(divider_model.to_dict())
        assert restored.to_dict() == divider_model.to_dict()

    def test_clear(self, divider_model):
        divider_model.analysis_kind = "ac"
        divider_model.clear()
        assert divider_model.components == {}
        assert divider_model.wires == []
        assert divider_model.analysis_kind == "op"
