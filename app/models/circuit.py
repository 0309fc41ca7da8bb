"""
CircuitModel - Central data store for schematic state.

This module contains no Qt dependencies. It holds components and wires
in insertion order; connectivity is derived from it on demand and never
cached here.
"""

from dataclasses import dataclass, field
from typing import Optional

from .component import ComponentData
from .wire import WireData

DEFAULT_ANALYSIS_KIND = "op"


@dataclass
class CircuitModel:
    """
    Central data store holding the schematic.

    Components are keyed by id and iterate in insertion order, which is
    the order the compiler emits lines in.
    """

    components: dict[str, ComponentData] = field(default_factory=dict)
    wires: list[WireData] = field(default_factory=list)
    component_counter: dict[str, int] = field(default_factory=dict)

    # Analysis configuration
    analysis_kind: str = DEFAULT_ANALYSIS_KIND
    analysis_config: dict = field(default_factory=dict)
    preamble: str = ""

    # --- Component operations ---

    def add_component(self, component: ComponentData) -> None:
        """Add a component to the schematic."""
        self.components[component.component_id] = component

    def remove_component(self, component_id: str) -> Optional[ComponentData]:
        """Remove a component; wires stay, since connectivity is geometric."""
        return self.components.pop(component_id, None)

    # --- Wire operations ---

    def add_wire(self, wire: WireData) -> None:
        self.wires.append(wire)

    def get_wire(self, wire_id: str) -> Optional[WireData]:
        for wire in self.wires:
            if wire.wire_id == wire_id:
                return wire
        return None

    def remove_wire(self, wire_id: str) -> Optional[WireData]:
        """Remove a wire by id and return it (None if absent)."""
        for index, wire in enumerate(self.wires):
            if wire.wire_id == wire_id:
                del self.wires[index]
                return wire
        return None

    # --- Circuit operations ---

    def clear(self) -> None:
        """Clear all schematic data."""
        self.components.clear()
        self.wires.clear()
        self.component_counter.clear()
        self.analysis_kind = DEFAULT_ANALYSIS_KIND
        self.analysis_config = {}
        self.preamble = ""

    def next_id(self, prefix: str) -> str:
        """Allocate the next free id for a prefix (R1, R2, W1...)."""
        count = self.component_counter.get(prefix, 0) + 1
        existing = set(self.components) | {w.wire_id for w in self.wires}
        while f"{prefix}{count}" in existing:
            count += 1
        self.component_counter[prefix] = count
        return f"{prefix}{count}"

    # --- Serialization ---

    def to_dict(self) -> dict:
        """Serialize the schematic to a JSON-compatible dictionary."""
        data = {
            "components": [c.to_dict() for c in self.components.values()],
            "wires": [w.to_dict() for w in self.wires],
            "counters": self.component_counter.copy(),
        }
        if self.analysis_kind != DEFAULT_ANALYSIS_KIND or self.analysis_config or self.preamble:
            data["analysis"] = {
                "kind": self.analysis_kind,
                "config": self.analysis_config.copy(),
                "preamble": self.preamble,
            }
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "CircuitModel":
        model = cls()
        model.component_counter = data.get("counters", {}).copy()
        for comp_data in data.get("components", []):
            model.add_component(ComponentData.from_dict(comp_data))
        for wire_data in data.get("wires", []):
            model.add_wire(WireData.from_dict(wire_data))
        analysis = data.get("analysis", {})
        model.analysis_kind = analysis.get("kind", DEFAULT_ANALYSIS_KIND)
        model.analysis_config = dict(analysis.get("config", {}))
        model.preamble = analysis.get("preamble", "")
        return model
