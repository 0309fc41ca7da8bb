"""Tests for simulation/result_parser.py."""

import numpy as np
import pytest
from simulation.result_parser import ResultParser, SimulationResult


class TestOpResults:
    def test_nodes_and_currents(self):
        result = ResultParser.parse_op_results({
            "plot": "op1",
            "nodes": [{"name": "in", "value": 5}, {"name": "out", "value": "2.5"}],
            "currents": [{"name": "v1#branch", "value": -0.005}],
        })
        assert result.kind == "op"
        assert result.plot == "op1"
        assert result.signal_names == ["in", "out", "v1#branch"]
        assert result.value("V(out)") == pytest.approx(2.5)
        assert result.value("i(v1)") == pytest.approx(-0.005)

    def test_complex_values(self):
        result = ResultParser.parse_op_results({
            "nodes": [
                {"name": "a", "value": {"real": 1.0, "imag": 2.0}},
                {"name": "b", "value": {"real": 3.0, "imag": 0.0}},
                {"name": "c", "value": [4.0, 0.5]},
            ],
        })
        assert result.values["a"] == complex(1.0, 2.0)
        assert result.values["b"] == 3.0
        assert result.values["c"] == complex(4.0, 0.5)

    def test_blank_names_skipped(self):
        result = ResultParser.parse_op_results({"nodes": [{"name": " ", "value": 1}]})
        assert result.values == {}

    def test_bad_value_returns_none(self):
        assert ResultParser.parse_op_results({"nodes": [{"name": "a", "value": "volts"}]}) is None


class TestSweptResults:
    def test_transient(self):
        result = ResultParser.parse_transient_results({
            "x": [0, 1, 2],
            "traces": {"v(out)": [0, 1, 2], "tran1.i(v1)": [0, -1, -2]},
        })
        assert result.kind == "tran"
        np.testing.assert_array_equal(result.x, [0.0, 1.0, 2.0])
        np.testing.assert_array_equal(result.trace("i(v1)"), [0.0, -1.0, -2.0])
        assert result.find_name("v:out") == "v(out)"

    def test_truncates_to_shortest(self):
        result = ResultParser.parse_dc_results({"x": [0, 1, 2, 3], "traces": {"v(a)": [1, 2]}})
        assert len(result.x) == 2
        assert len(result.traces["v(a)"]) == 2

    def test_empty_trace_truncates_everything(self):
        result = ResultParser.parse_dc_results({"x": [0, 1], "traces": {"v(a)": []}})
        assert len(result.x) == 0
        assert len(result.traces["v(a)"]) == 0

    def test_no_traces(self):
        result = ResultParser.parse_dc_results({"x": [0, 1]})
        assert result.traces == {}
        assert len(result.x) == 2

    def test_missing_trace(self):
        result = ResultParser.parse_dc_results({"x": [0], "traces": {"v(a)": [1]}})
        assert result.trace("v(b)") is None
        assert result.find_name("") is None

    def test_non_numeric_returns_none(self):
        assert ResultParser.parse_transient_results({"x": ["a"], "traces": {}}) is None


class TestAcResults:
    def test_magnitude_and_phase(self):
        result = ResultParser.parse_ac_results({
            "freq": [1, 10, 100],
            "magnitude": {"v(out)": [1.0, 0.9, 0.5]},
            "phase": {"v(out)": [0.0, -10.0, -45.0]},
        })
        assert result.kind == "ac"
        np.testing.assert_array_equal(result.x, [1.0, 10.0, 100.0])
        np.testing.assert_array_equal(result.phase["v(out)"], [0.0, -10.0, -45.0])
        assert result.signal_names == ["v(out)"]


class TestDispatch:
    @pytest.mark.parametrize("kind", ["op", "dc", "tran", "ac"])
    def test_known_kinds(self, kind):
        assert isinstance(ResultParser.parse(kind, {}), SimulationResult)

    def test_unknown_kind(self):
        assert ResultParser.parse("noise", {}) is None

    def test_payload_must_be_dict(self):
        assert ResultParser.parse("op", ["v(out)"]) is None
