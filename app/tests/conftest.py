"""
Shared test fixtures for the schematic engine test suite.

All fixtures build pure-Python model objects (no Qt dependencies).
Coordinates are grid units.
"""

import os
import sys
from pathlib import Path

# Run Qt headless when no display is available (pytest-qt creates a QApplication).
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

# Ensure app/ is on sys.path so bare imports (models, simulation, controllers)
# work when running individual test files (e.g., python -m pytest app/tests/unit/test_foo.py).
_app_dir = str(Path(__file__).resolve().parent.parent)
if _app_dir not in sys.path:
    sys.path.insert(0, _app_dir)

import pytest
from models.circuit import CircuitModel
from models.component import DEFAULT_PIN_NAMES, ComponentData, PinData
from models.wire import WireData


def make_component(component_type, component_id, value="", pins=(), name=None):
    """Helper to create a ComponentData with pins at the given points."""
    pin_names = DEFAULT_PIN_NAMES.get(component_type, [])
    pin_list = []
    for index, (x, y) in enumerate(pins):
        pin_name = pin_names[index] if index < len(pin_names) else str(index + 1)
        pin_list.append(PinData(pin_id=pin_name, name=pin_name, x=x, y=y))
    return ComponentData(
        component_id=component_id,
        component_type=component_type,
        value=value,
        pins=pin_list,
        name=name,
    )


def make_wire(wire_id, *points):
    """Helper to create a WireData from (x, y) points."""
    return WireData(wire_id=wire_id, points=list(points))


def build_model(components=(), wires=()):
    model = CircuitModel()
    for component in components:
        model.add_component(component)
    for wire in wires:
        model.add_wire(wire)
    return model


class FakeSignal:
    """Stand-in for a Qt signal: connect() + emit()."""

    def __init__(self):
        self._slots = []

    def connect(self, slot):
        self._slots.append(slot)

    def emit(self):
        for slot in list(self._slots):
            slot()


class FakeTimer:
    """QTimer lookalike driven by the test instead of an event loop."""

    def __init__(self):
        self.timeout = FakeSignal()
        self.single_shot = False
        self.interval = None
        self.active = False
        self.start_count = 0

    def setSingleShot(self, value):
        self.single_shot = value

    def start(self, interval):
        self.interval = interval
        self.active = True
        self.start_count += 1

    def stop(self):
        self.active = False

    def isActive(self):
        return self.active

    def fire(self):
        """Simulate the timer expiring."""
        if self.active:
            if self.single_shot:
                self.active = False
            self.timeout.emit()


@pytest.fixture
def fake_timers():
    """Timer factory that records every timer it builds."""
    timers = []

    def factory():
        timer = FakeTimer()
        timers.append(timer)
        return timer

    factory.timers = timers
    return factory


@pytest.fixture
def source_resistor_model():
    """
    V1 (5) and R1 (1k) in parallel between "in" and ground.

        (0,0) --W1-- (4,0)      net "in" (NET label at (0,0))
          V1           R1
        (0,2) --W2-- (4,2)      ground (GND at (0,2))
    """
    return build_model(
        components=[
            make_component("V", "V1", "5", [(0, 0), (0, 2)]),
            make_component("R", "R1", "1k", [(4, 0), (4, 2)]),
            make_component("GND", "GND1", "", [(0, 2)]),
            make_component("NET", "NET1", "", [(0, 0)], name="in"),
        ],
        wires=[
            make_wire("W1", (0, 0), (4, 0)),
            make_wire("W2", (0, 2), (4, 2)),
        ],
    )


@pytest.fixture
def divider_model():
    """
    V1 -- R1 -- out -- R2 -- ground, with a voltage probe on "out".

        (0,0) --W1-- (4,0)        net N1 (auto name)
          V1           R1
                     (4,2) --W2-- (8,2)   net "out" (NET label at (8,2))
                                    R2
        (0,4) --W3--------------- (8,4)   ground (GND at (0,4))

    PV1 sits on (8,2).
    """
    return build_model(
        components=[
            make_component("V", "V1", "10", [(0, 0), (0, 4)]),
            make_component("R", "R1", "1k", [(4, 0), (4, 2)]),
            make_component("R", "R2", "2k", [(8, 2), (8, 4)]),
            make_component("GND", "GND1", "", [(0, 4)]),
            make_component("NET", "NET1", "", [(8, 2)], name="out"),
            make_component("PV", "PV1", "", [(8, 2)]),
        ],
        wires=[
            make_wire("W1", (0, 0), (4, 0)),
            make_wire("W2", (4, 2), (8, 2)),
            make_wire("W3", (0, 4), (8, 4)),
        ],
    )
