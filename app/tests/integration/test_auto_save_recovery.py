"""
Crash recovery: debounced autosave followed by recovery in a fresh session.
"""

import pytest
from controllers.circuit_controller import CircuitController
from controllers.engine_context import EngineContext
from controllers.file_controller import FileController


@pytest.fixture
def recovery_file(tmp_path):
    return tmp_path / "state" / "recovery.json"


def _session(recovery_file, fake_timers):
    circuit = CircuitController()
    files = FileController(circuit_ctrl=circuit, autosave_file=recovery_file, timer_factory=fake_timers)
    circuit.add_observer(files.on_model_changed)
    return circuit, files


def test_edits_recovered_after_crash(recovery_file, fake_timers):
    circuit, files = _session(recovery_file, fake_timers)
    circuit.add_component("V", [(0, 0), (0, 2)], "5")
    circuit.add_component("R", [(2, 0), (2, 2)], "1k")
    circuit.add_component("GND", [(0, 2)])
    circuit.add_wire([(0, 0), (2, 0)])
    circuit.add_wire([(0, 2), (2, 2)])
    fake_timers.timers[0].fire()
    expected = EngineContext(circuit.model).compile().netlist_text

    # New session after a crash
    circuit2, files2 = _session(recovery_file, fake_timers)
    assert files2.has_auto_save()
    assert files2.load_auto_save() == ""
    assert EngineContext(circuit2.model).compile().netlist_text == expected


def test_recovery_remembers_source_file(recovery_file, fake_timers, tmp_path):
    circuit, files = _session(recovery_file, fake_timers)
    circuit.add_component("R", [(0, 0), (0, 2)], "1k")
    files.save_circuit(tmp_path / "lab.json")
    circuit.update_component_value("R1", "2k")
    fake_timers.timers[0].fire()

    circuit2, files2 = _session(recovery_file, fake_timers)
    assert files2.load_auto_save() == str(tmp_path / "lab.json")
    assert files2.current_file == tmp_path / "lab.json"
    assert circuit2.model.components["R1"].value == "2k"


def test_clean_exit_clears_recovery(recovery_file, fake_timers):
    circuit, files = _session(recovery_file, fake_timers)
    circuit.add_component("R", [(0, 0), (0, 2)], "1k")
    fake_timers.timers[0].fire()
    files.clear_auto_save()

    _, files2 = _session(recovery_file, fake_timers)
    assert not files2.has_auto_save()
    assert files2.load_auto_save() is None
