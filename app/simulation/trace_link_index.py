"""
simulation/trace_link_index.py

Joins signals (plot traces, table rows, probes) to schematic elements.

The index is built in one pass from a compile result and the probe
descriptors, and is read-only afterwards. Callers never patch it: when
the schematic or the netlist changes they drop it and build a new one
(see ``controllers.engine_context``).
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from .net_builder import normalize_point
from .signal_tokens import KIND_CURRENT, current, encode, voltage

logger = logging.getLogger(__name__)


@dataclass
class LinkTargets:
    """Schematic elements a signal projects onto."""

    component_ids: set = field(default_factory=set)
    wire_ids: set = field(default_factory=set)

    def update(self, other: "LinkTargets") -> None:
        self.component_ids |= other.component_ids
        self.wire_ids |= other.wire_ids

    def __bool__(self) -> bool:
        return bool(self.component_ids or self.wire_ids)


def _append_unique(mapping: dict, key, value) -> None:
    bucket = mapping.setdefault(key, [])
    if value not in bucket:
        bucket.append(value)


class TraceLinkIndex:
    """
    Four joins rebuilt together:

    - net name -> component ids
    - net name -> wire ids
    - component id -> signals
    - current token -> component ids

    Net keys are lower-case so they compare like signal tokens.
    """

    def __init__(self):
        self.net_components: dict[str, list[str]] = {}
        self.net_wires: dict[str, list[str]] = {}
        self.component_signals: dict[str, list] = {}
        self.current_components: dict[str, list[str]] = {}
        self.component_nets: dict[str, list[str]] = {}
        self.wire_nets: dict[str, str] = {}
        # Probe ids per token they observe (any kind)
        self.probe_components: dict[str, list[str]] = {}
        self._eligible_ids: list[str] = []

    @classmethod
    def build(cls, model, compile_result, probes=None) -> "TraceLinkIndex":
        """
        Build the index.

        Args:
            model: The schematic the compile came from.
            compile_result: A ``CompileResult`` (needs ``pin_net_map``,
                ``component_lines`` and ``point_net_map``).
            probes: A ``ProbeResolution`` or a dict of descriptors.
        """
        index = cls()

        # Nets to components
        for (component_id, _pin_id), net_name in compile_result.pin_net_map.items():
            key = net_name.lower()
            _append_unique(index.net_components, key, component_id)
            _append_unique(index.component_nets, component_id, key)
            component = model.components.get(component_id)
            if component is not None and component.component_type == "NET":
                _append_unique(index.component_signals, component_id, voltage(net_name))

        # Emitted components: element and device current spellings
        for component_id, line in compile_result.component_lines.items():
            for signal in (current(line.netlist_id), current(component_id)):
                _append_unique(index.component_signals, component_id, signal)
                _append_unique(index.current_components, signal.token, component_id)

        # Probes observe on behalf of their own id
        descriptors = getattr(probes, "descriptors", probes) or {}
        for probe_id, descriptor in descriptors.items():
            for signal in descriptor.signals:
                _append_unique(index.component_signals, probe_id, signal)
                _append_unique(index.probe_components, signal.token, probe_id)

        # Wires to nets: all points of one wire share a net, first hit wins
        point_net_map = compile_result.point_net_map
        for wire in model.wires:
            for x, y in wire.points:
                net_name = point_net_map.get(normalize_point(x, y))
                if net_name:
                    index.wire_nets[wire.wire_id] = net_name.lower()
                    _append_unique(index.net_wires, net_name.lower(), wire.wire_id)
                    break

        index._eligible_ids = [
            c.component_id for c in model.components.values()
            if c.is_electrical and not c.is_label
        ]
        logger.debug(
            "Trace link index: %d nets, %d wires, %d current tokens",
            len(index.net_components), len(index.wire_nets), len(index.current_components),
        )
        return index

    # --- Queries ---

    def resolve_targets_for_signal(self, signal) -> LinkTargets:
        """Components and wires a signal projects onto; empty for unknowns."""
        signal = encode(signal)
        targets = LinkTargets()
        if signal is None:
            return targets
        if signal.kind == KIND_CURRENT:
            targets.component_ids.update(self.current_components.get(signal.token, []))
        else:
            for net in signal.nets:
                targets.component_ids.update(self.net_components.get(net, []))
                targets.wire_ids.update(self.net_wires.get(net, []))
        targets.component_ids.update(self.probe_components.get(signal.token, []))
        return targets

    def resolve_targets_for_signals(self, signals: Iterable) -> LinkTargets:
        targets = LinkTargets()
        for signal in signals:
            targets.update(self.resolve_targets_for_signal(signal))
        return targets

    def signals_for_component(self, component_id: str) -> list:
        return list(self.component_signals.get(component_id, []))

    def signals_for_wire(self, wire_id: str) -> list:
        net = self.net_for_wire(wire_id)
        return [voltage(net)] if net else []

    def net_for_wire(self, wire_id: str) -> Optional[str]:
        return self.wire_nets.get(wire_id)

    def nets_for_component(self, component_id: str) -> list[str]:
        return list(self.component_nets.get(component_id, []))

    def fallback_component(self) -> Optional[str]:
        """
        First non-probe, non-label component in schematic order.

        Used only when a trace-driven selection projects to nothing, so
        that something on the canvas still reacts to the click.
        """
        return self._eligible_ids[0] if self._eligible_ids else None
