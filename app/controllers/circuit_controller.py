"""
CircuitController - Orchestrates component and wire CRUD operations.

This module contains no Qt dependencies. It manages the CircuitModel
and notifies views of changes through an observer pattern.
"""

import logging
from typing import Any, Callable, Optional

from models.circuit import CircuitModel
from models.component import DEFAULT_PIN_NAMES, ComponentData, PinData, normalize_type
from models.wire import WireData

logger = logging.getLogger(__name__)

# Id prefixes for generated ids
ID_PREFIXES = {"GND": "GND", "NET": "NET", "TEXT": "T"}


class CircuitController:
    """
    Controller for schematic component and wire operations.

    Manages the CircuitModel and notifies registered observers when
    the model changes. Every mutation is followed by a ``model_changed``
    event, which is what the engine context listens to.

    Observer events:
        component_added (ComponentData) - A new component was added
        component_removed (str) - A component was removed (by ID)
        component_moved (ComponentData) - A component was moved
        component_value_changed (ComponentData) - A component's value changed
        component_renamed (ComponentData) - A component's display name changed
        wire_added (WireData) - A new wire was added
        wire_removed (str) - A wire was removed (by ID)
        wire_routed (WireData) - A wire's points were replaced
        circuit_cleared (None) - The entire circuit was cleared
        model_loaded (None) - A new model was installed
        model_changed (str) - Any of the above; data is the specific event
    """

    def __init__(self, model: Optional[CircuitModel] = None):
        self.model = model or CircuitModel()
        self._observers: list[Callable[[str, Any], None]] = []

    def add_observer(self, callback: Callable[[str, Any], None]) -> None:
        """Register a callback for model change events."""
        if callback not in self._observers:
            self._observers.append(callback)

    def remove_observer(self, callback: Callable[[str, Any], None]) -> None:
        """Unregister a previously registered callback."""
        if callback in self._observers:
            self._observers.remove(callback)

    def _notify(self, event: str, data: Any) -> None:
        """Notify all observers of a model change."""
        for observer in self._observers:
            try:
                observer(event, data)
            except (TypeError, AttributeError, RuntimeError) as e:
                logger.error("Error notifying observer: %s", e)

    def _changed(self, event: str, data: Any) -> None:
        self._notify(event, data)
        self._notify("model_changed", event)

    # --- Component operations ---

    def add_component(self, component_type: str, pin_positions: list[tuple[float, float]],
                      value: str = "", name: Optional[str] = None,
                      component_id: Optional[str] = None) -> ComponentData:
        """
        Create and add a new component to the schematic.

        Args:
            component_type: Type code ("R", "PV", "GND"...).
            pin_positions: Absolute pin coordinates, in pin order.
            value: Component value text.
            name: Display name (label text for NET components).
            component_id: Explicit id; generated (R1, R2...) when omitted.

        Returns:
            The newly created ComponentData.
        """
        ctype = normalize_type(component_type)
        if component_id is None:
            component_id = self.model.next_id(ID_PREFIXES.get(ctype, ctype))
        elif component_id in self.model.components:
            raise ValueError(f"Component id '{component_id}' already exists")

        pin_names = DEFAULT_PIN_NAMES.get(ctype, [])
        pins = []
        for index, (x, y) in enumerate(pin_positions):
            pin_name = pin_names[index] if index < len(pin_names) else str(index + 1)
            pins.append(PinData(pin_id=pin_name, name=pin_name, x=float(x), y=float(y)))

        component = ComponentData(
            component_id=component_id,
            component_type=ctype,
            value=value,
            pins=pins,
            name=name,
        )
        self.model.add_component(component)
        self._changed("component_added", component)
        return component

    def remove_component(self, component_id: str) -> None:
        """Remove a component. Wires stay where they are."""
        if self.model.remove_component(component_id) is None:
            return
        self._changed("component_removed", component_id)

    def move_component(self, component_id: str, dx: float, dy: float) -> None:
        """Translate a component and its pins."""
        component = self.model.components.get(component_id)
        if component is None:
            return
        component.translate(dx, dy)
        self._changed("component_moved", component)

    def update_component_value(self, component_id: str, value: str) -> None:
        """Update a component's value (probe target id for PI/PP)."""
        component = self.model.components.get(component_id)
        if component is None:
            return
        component.value = value
        self._changed("component_value_changed", component)

    def rename_component(self, component_id: str, name: str) -> None:
        component = self.model.components.get(component_id)
        if component is None:
            return
        component.name = name
        self._changed("component_renamed", component)

    # --- Wire operations ---

    def add_wire(self, points: list[tuple[float, float]], wire_id: Optional[str] = None) -> WireData:
        """
        Create and add a new wire polyline.

        Returns:
            The newly created WireData.
        """
        if wire_id is None:
            wire_id = self.model.next_id("W")
        wire = WireData(wire_id=wire_id, points=[(float(x), float(y)) for x, y in points])
        self.model.add_wire(wire)
        self._changed("wire_added", wire)
        return wire

    def remove_wire(self, wire_id: str) -> None:
        """Remove a wire by id."""
        if self.model.remove_wire(wire_id) is None:
            return
        self._changed("wire_removed", wire_id)

    def update_wire_points(self, wire_id: str, points: list[tuple[float, float]]) -> None:
        """Replace a wire's routing path."""
        wire = self.model.get_wire(wire_id)
        if wire is None:
            return
        wire.points = [(float(x), float(y)) for x, y in points]
        self._changed("wire_routed", wire)

    # --- Circuit operations ---

    def clear_circuit(self) -> None:
        """Clear the entire schematic."""
        self.model.clear()
        self._changed("circuit_cleared", None)

    def load_model(self, model: CircuitModel) -> None:
        """
        Replace the schematic contents with another model's.

        Updates the current model in place (preserving the reference so
        views and the engine context stay connected).
        """
        self.model.clear()
        self.model.components = model.components
        self.model.wires = model.wires
        self.model.component_counter = model.component_counter
        self.model.analysis_kind = model.analysis_kind
        self.model.analysis_config = model.analysis_config
        self.model.preamble = model.preamble
        self._changed("model_loaded", None)

    def set_analysis(self, kind: str, config: Optional[dict] = None, preamble: Optional[str] = None) -> None:
        self.model.analysis_kind = kind
        if config is not None:
            self.model.analysis_config = dict(config)
        if preamble is not None:
            self.model.preamble = preamble
        self._changed("analysis_changed", kind)
