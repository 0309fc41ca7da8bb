"""
simulation/probe_resolver.py

Works out what each measurement-only component (PV, PD, PI, PP) observes.

Probes never appear in the netlist. Voltage probes read the net under
their pins; current and power probes attach to a target component,
either the one stored in their value or, failing that, the nearest
two-pin component whose pin midpoint lies within snap tolerance.

Resolution failures are data: an ``invalid`` flag and a ``?`` label.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Union

import numpy as np

from .constants import PROBE_SNAP_TOLERANCE_SQ
from .net_builder import build_nets, build_point_net_map, net_at, resolve_net_names
from .signal_tokens import current, current_vector_name, dedupe_case_insensitive, differential, voltage

logger = logging.getLogger(__name__)

# Targets measured by their own element current (branch of the emitted line)
SOURCE_LIKE_TYPES = frozenset({"V", "I", "SW", "AM"})


@dataclass(frozen=True)
class Resolved:
    component_id: str
    distance_sq: float = 0.0


@dataclass(frozen=True)
class Unresolved:
    reason: str = ""


TargetResolution = Union[Resolved, Unresolved]


@dataclass
class ProbeDescriptor:
    """What one probe measures. Rebuilt on every compile, never persisted."""

    component_id: str
    probe_type: str
    label: str
    net_a: Optional[str] = None
    net_b: Optional[str] = None
    target_id: Optional[str] = None
    current_signals: list = field(default_factory=list)
    voltage_signal: Optional[object] = None
    # Simulator spellings, ready for a .save line
    save_signals: list[str] = field(default_factory=list)
    invalid: bool = False

    @property
    def signals(self) -> list:
        """Every signal this probe observes, voltage first."""
        found = [self.voltage_signal] if self.voltage_signal is not None else []
        return found + list(self.current_signals)


@dataclass
class ProbeResolution:
    descriptors: dict = field(default_factory=dict)
    save_signals: list[str] = field(default_factory=list)


def _primary_pin(probe):
    return probe.get_pin("P") or (probe.pins[0] if probe.pins else None)


def is_eligible_target(component, component_lines: dict) -> bool:
    """Non-probe, non-label, two-pin component that produced a netlist line."""
    if component is None or component.is_probe or component.is_label:
        return False
    if len(component.pins) < 2:
        return False
    return component.component_id in component_lines


def nearest_target(model, probe, component_lines: dict,
                   tolerance_sq: float = PROBE_SNAP_TOLERANCE_SQ) -> TargetResolution:
    """
    Find the eligible component whose pin midpoint is closest to the
    probe's primary pin.

    Ties go to the earlier component in schematic order. Anything farther
    than ``tolerance_sq`` (squared grid units) is no target at all.
    """
    pin = _primary_pin(probe)
    if pin is None:
        return Unresolved("probe has no pins")

    candidate_ids = []
    midpoints = []
    for component in model.components.values():
        if component.component_id == probe.component_id:
            continue
        if not is_eligible_target(component, component_lines):
            continue
        candidate_ids.append(component.component_id)
        midpoints.append(component.midpoint())
    if not candidate_ids:
        return Unresolved("no eligible components")

    centers = np.asarray(midpoints, dtype=float)
    distances = np.sum((centers - np.array([pin.x, pin.y], dtype=float)) ** 2, axis=1)
    best = int(np.argmin(distances))
    best_distance = float(distances[best])
    if best_distance > tolerance_sq:
        return Unresolved(f"nearest component is {best_distance:g} units² away")
    return Resolved(candidate_ids[best], best_distance)


def resolve_target(model, probe, component_lines: dict,
                   tolerance_sq: float = PROBE_SNAP_TOLERANCE_SQ) -> TargetResolution:
    """Stored target if still valid, else the nearest-midpoint search."""
    stored = str(probe.value or "").strip()
    if stored and is_eligible_target(model.components.get(stored), component_lines):
        return Resolved(stored)
    if stored:
        logger.debug("Probe %s: stored target %r is stale", probe.component_id, stored)
    return nearest_target(model, probe, component_lines, tolerance_sq)


def current_signal_for(target, component_line):
    """Element current for sources and switches, device current otherwise."""
    if target.component_type in SOURCE_LIKE_TYPES:
        return current(component_line.netlist_id)
    return current(target.component_id)


def _resolve_voltage_probe(probe, point_net_map):
    pin = _primary_pin(probe)
    net = net_at(point_net_map, pin.x, pin.y) if pin is not None else None
    descriptor = ProbeDescriptor(probe.component_id, probe.component_type, label=probe.name or probe.component_id)
    if not net:
        return descriptor
    signal = voltage(net)
    descriptor.net_a = net
    descriptor.voltage_signal = signal
    descriptor.label = signal.label
    descriptor.save_signals = [signal.spice]
    return descriptor


def _resolve_differential_probe(probe, point_net_map):
    pos_pin = probe.get_pin("P+") or (probe.pins[0] if len(probe.pins) > 0 else None)
    neg_pin = probe.get_pin("P-") or (probe.pins[1] if len(probe.pins) > 1 else None)
    net_a = net_at(point_net_map, pos_pin.x, pos_pin.y) if pos_pin is not None else None
    net_b = net_at(point_net_map, neg_pin.x, neg_pin.y) if neg_pin is not None else None
    descriptor = ProbeDescriptor(probe.component_id, probe.component_type, label="V(?)",
                                 net_a=net_a, net_b=net_b)
    if not net_a or not net_b:
        descriptor.invalid = True
        return descriptor
    signal = differential(net_a, net_b)
    descriptor.voltage_signal = signal
    descriptor.label = signal.label
    descriptor.save_signals = [signal.spice]
    return descriptor


def _resolve_target_probe(model, probe, component_lines, tolerance_sq):
    is_power = probe.component_type == "PP"
    unknown_label = "P(?)" if is_power else "I(?)"
    descriptor = ProbeDescriptor(probe.component_id, probe.component_type, label=unknown_label)

    resolution = resolve_target(model, probe, component_lines, tolerance_sq)
    if isinstance(resolution, Unresolved):
        logger.debug("Probe %s: no target (%s)", probe.component_id, resolution.reason)
        descriptor.invalid = True
        return descriptor

    target = model.components[resolution.component_id]
    line = component_lines[target.component_id]
    signal = current_signal_for(target, line)
    descriptor.target_id = target.component_id
    descriptor.net_a, descriptor.net_b = line.net_a, line.net_b

    if is_power:
        if not line.net_a or not line.net_b:
            descriptor.invalid = True
            return descriptor
        descriptor.voltage_signal = differential(line.net_a, line.net_b)
        descriptor.label = f"P({target.component_id})"
        descriptor.current_signals = [signal]
        descriptor.save_signals = [descriptor.voltage_signal.spice, current_vector_name(line.netlist_id)]
    else:
        descriptor.label = f"I({target.component_id})"
        descriptor.current_signals = [signal]
        descriptor.save_signals = [current_vector_name(line.netlist_id)]
    return descriptor


def resolve_probes(model, component_lines: dict, point_net_map: Optional[dict] = None,
                   tolerance_sq: float = PROBE_SNAP_TOLERANCE_SQ) -> ProbeResolution:
    """
    Build a descriptor for every probe in the schematic.

    Args:
        model: The schematic.
        component_lines: ``CompileResult.component_lines``.
        point_net_map: Normalized point -> net name; rebuilt from the
            model when omitted.

    Returns:
        ProbeResolution with descriptors keyed by probe id (schematic
        order) and the flat case-insensitively deduplicated save list.
    """
    if point_net_map is None:
        nets = build_nets(model)
        point_net_map = build_point_net_map(nets, resolve_net_names(model, nets).names)

    resolution = ProbeResolution()
    all_save = []
    for component in model.components.values():
        ctype = component.component_type
        if ctype == "PV":
            descriptor = _resolve_voltage_probe(component, point_net_map)
        elif ctype == "PD":
            descriptor = _resolve_differential_probe(component, point_net_map)
        elif ctype in ("PI", "PP"):
            descriptor = _resolve_target_probe(model, component, component_lines, tolerance_sq)
        else:
            continue
        resolution.descriptors[component.component_id] = descriptor
        all_save.extend(descriptor.save_signals)

    resolution.save_signals = dedupe_case_insensitive(all_save)
    return resolution
