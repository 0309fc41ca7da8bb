"""
ComponentData - Pure Python data model for schematic components.

This module contains no Qt dependencies. Pins carry their own absolute
grid coordinates; only electrical pin locations matter to the engine,
symbol geometry is the renderer's business.

Component types use short schematic codes as canonical identifiers:
'R', 'C', 'L', 'V', 'I', 'SW', 'VM', 'AM', 'PV', 'PD', 'PI', 'PP',
'GND', 'NET', 'TEXT'
"""

import re
from dataclasses import dataclass, field
from typing import Optional

COMPONENT_TYPES = [
    "R",
    "C",
    "L",
    "V",
    "I",
    "SW",
    "VM",
    "AM",
    "PV",
    "PD",
    "PI",
    "PP",
    "GND",
    "NET",
    "TEXT",
]

# Measurement-only components: they observe signals but emit no netlist line
PROBE_TYPES = frozenset({"PV", "PD", "PI", "PP"})

# Components that never touch the net graph
NON_ELECTRICAL_TYPES = frozenset({"TEXT"}) | PROBE_TYPES

# Components that shape nets but are not circuit elements
LABEL_TYPES = frozenset({"GND", "NET", "TEXT"})

# Default values used when the component value is empty
DEFAULT_VALUES = {
    "R": "1k",
    "C": "1u",
    "L": "1m",
    "V": "1",
    "I": "1",
}

# Default pin names per component type
DEFAULT_PIN_NAMES = {
    "GND": ["gnd"],
    "NET": ["n"],
    "PV": ["P"],
    "PI": ["P"],
    "PP": ["P"],
    "PD": ["P+", "P-"],
    "SW": ["C", "A", "B"],
    "TEXT": [],
}


def normalize_type(component_type) -> str:
    """Return the canonical upper-case type code."""
    return str(component_type or "").strip().upper()


@dataclass
class PinData:
    """A component pin placed at an absolute schematic coordinate."""

    pin_id: str
    name: str
    x: float
    y: float

    @property
    def point(self) -> tuple[float, float]:
        return (self.x, self.y)

    def to_dict(self) -> dict:
        return {"id": self.pin_id, "name": self.name, "x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data: dict) -> "PinData":
        pin_id = str(data.get("id", ""))
        return cls(
            pin_id=pin_id,
            name=str(data.get("name", pin_id)),
            x=float(data.get("x", 0.0)),
            y=float(data.get("y", 0.0)),
        )


@dataclass
class ComponentData:
    """
    Pure Python data class representing a placed schematic component.

    The ``component_id`` is stable across edits and is the join key for
    every index the engine builds. ``name`` is the display name; for NET
    label components it is the label text.
    """

    component_id: str
    component_type: str
    value: str = ""
    pins: list[PinData] = field(default_factory=list)
    rotation: int = 0
    name: Optional[str] = None
    net_color: Optional[str] = None

    def __post_init__(self):
        self.component_type = normalize_type(self.component_type)
        self.value = "" if self.value is None else str(self.value)
        if self.name is None:
            self.name = self.component_id

    @property
    def is_probe(self) -> bool:
        return self.component_type in PROBE_TYPES

    @property
    def is_electrical(self) -> bool:
        return self.component_type not in NON_ELECTRICAL_TYPES

    @property
    def is_label(self) -> bool:
        return self.component_type in LABEL_TYPES

    def get_pin(self, key: str) -> Optional[PinData]:
        """Find a pin by id, then by name (case-insensitive)."""
        wanted = str(key).strip().upper()
        for pin in self.pins:
            if pin.pin_id.strip().upper() == wanted:
                return pin
        for pin in self.pins:
            if pin.name.strip().upper() == wanted:
                return pin
        return None

    def midpoint(self) -> Optional[tuple[float, float]]:
        """Center between the first two pins, or None for fewer than two."""
        if len(self.pins) < 2:
            return None
        first, second = self.pins[0], self.pins[1]
        return ((first.x + second.x) / 2.0, (first.y + second.y) / 2.0)

    def translate(self, dx: float, dy: float) -> None:
        for pin in self.pins:
            pin.x += dx
            pin.y += dy

    def to_dict(self) -> dict:
        data = {
            "id": self.component_id,
            "type": self.component_type,
            "value": self.value,
            "pins": [pin.to_dict() for pin in self.pins],
            "rotation": self.rotation,
        }
        if self.name != self.component_id:
            data["name"] = self.name
        if self.net_color:
            data["netColor"] = self.net_color
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "ComponentData":
        component_id = str(data["id"])
        return cls(
            component_id=component_id,
            component_type=data["type"],
            value=data.get("value", ""),
            pins=[PinData.from_dict(pin) for pin in data.get("pins", [])],
            rotation=int(data.get("rotation", 0) or 0),
            name=data.get("name", component_id),
            net_color=data.get("netColor"),
        )

    def __repr__(self) -> str:
        return (
            f"ComponentData(id={self.component_id!r}, type={self.component_type!r}, "
            f"value={self.value!r}, pins={len(self.pins)})"
        )


_BOOLEAN_TRUE = {"1", "true", "on", "yes"}
_BOOLEAN_FALSE = {"0", "false", "off", "no"}


def _parse_switch_boolean(name: str, raw: str) -> bool:
    normalized = raw.strip().lower()
    if not normalized:
        raise ValueError(f"Switch token '{name}=' requires a boolean value.")
    if normalized in _BOOLEAN_TRUE:
        return True
    if normalized in _BOOLEAN_FALSE:
        return False
    raise ValueError(f"Switch token '{name}=' must be true/false.")


def parse_spdt_switch_value(value) -> dict:
    """Parse the value text of a single-pole double-throw switch.

    Accepted tokens (separated by whitespace, commas or semicolons):
    ``A``/``B`` (active throw), ``ron=<value>``, ``roff=<value>``,
    ``showron``/``hideron``, ``showroff``/``hideroff`` and the boolean
    forms ``showron=<bool>``/``showroff=<bool>``.

    Returns:
        dict with keys: active_throw, ron, roff (None when open),
        show_ron, show_roff

    Raises:
        ValueError: For unknown tokens or empty assignments.
    """
    tokens = [token for token in re.split(r"[\s,;]+", str(value or "")) if token]
    result = {
        "active_throw": "A",
        "ron": "0",
        "roff": None,
        "show_ron": False,
        "show_roff": False,
    }
    for token in tokens:
        lowered = token.lower()
        if lowered in ("a", "b"):
            result["active_throw"] = lowered.upper()
        elif lowered in ("showron", "hideron"):
            result["show_ron"] = lowered == "showron"
        elif lowered in ("showroff", "hideroff"):
            result["show_roff"] = lowered == "showroff"
        elif "=" in token:
            key, _, raw = token.partition("=")
            key = key.lower()
            if key in ("ron", "roff"):
                if not raw.strip():
                    raise ValueError(f"Switch token '{key}=' requires a value.")
                result[key] = raw.strip()
            elif key in ("showron", "showroff"):
                result["show_" + key[4:]] = _parse_switch_boolean(key, raw)
            else:
                raise ValueError(_unknown_switch_token(token))
        else:
            raise ValueError(_unknown_switch_token(token))
    return result


def _unknown_switch_token(token: str) -> str:
    return (
        f"Unknown switch token '{token}'. Allowed tokens: A, B, ron=<value>, "
        "roff=<value>, showron/showroff, hideron/hideroff."
    )
