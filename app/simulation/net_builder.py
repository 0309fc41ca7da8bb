"""
simulation/net_builder.py

Derives electrical nets from a schematic.

Every distinct normalized coordinate touched by a wire point or an
electrical pin is a graph node; consecutive points of one wire are an
edge. Connected components that contain at least one pin are nets.
Nothing is cached here: callers rebuild after every model mutation.
"""

import logging
import math
from dataclasses import dataclass, field

from models.net import NetData, PinRef, generate_net_label

from .constants import COORD_PRECISION, GROUND_NET, NET_COLOR_PALETTE, RESERVED_NODE_NAMES

logger = logging.getLogger(__name__)


def normalize_point(x, y):
    """Round a coordinate pair so float drift does not split nets.

    Returns None for non-numeric or non-finite input.
    """
    try:
        fx, fy = float(x), float(y)
    except (TypeError, ValueError):
        return None
    if not (math.isfinite(fx) and math.isfinite(fy)):
        return None
    # "+ 0.0" folds -0.0 into 0.0
    return (round(fx, COORD_PRECISION) + 0.0, round(fy, COORD_PRECISION) + 0.0)


def is_ground_pin(component, pin_name: str) -> bool:
    """A pin grounds its net if it belongs to GND or is named 0/gnd."""
    if component is None:
        return False
    if component.component_type == "GND":
        return True
    return str(pin_name or "").strip().lower() in RESERVED_NODE_NAMES


def build_nets(model) -> list[NetData]:
    """
    Compute the nets of a schematic.

    Args:
        model: CircuitModel (or anything with ``components`` dict and
            ``wires`` list).

    Returns:
        Nets in discovery order, ids ``N1``, ``N2``... A pin with no
        incident wire is its own singleton net; wire fragments touching
        no pin are dropped.
    """
    pins_at: dict[tuple[float, float], list[PinRef]] = {}
    edges: dict[tuple[float, float], set] = {}

    def ensure(point):
        if point not in edges:
            edges[point] = set()
            pins_at[point] = []
        return point

    for wire in model.wires:
        for a, b in wire.segments():
            start, end = normalize_point(*a), normalize_point(*b)
            if start is None or end is None:
                continue
            ensure(start)
            ensure(end)
            if start != end:
                edges[start].add(end)
                edges[end].add(start)

    for component in model.components.values():
        if not component.is_electrical:
            continue
        for pin in component.pins:
            point = normalize_point(pin.x, pin.y)
            if point is None:
                continue
            ensure(point)
            pins_at[point].append(
                PinRef(
                    component_id=component.component_id,
                    pin_id=pin.pin_id,
                    name=pin.name,
                    x=point[0],
                    y=point[1],
                )
            )

    visited = set()
    nets = []
    for start in edges:
        if start in visited:
            continue
        visited.add(start)
        stack = [start]
        points = []
        pins = []
        while stack:
            current = stack.pop()
            points.append(current)
            pins.extend(pins_at[current])
            for neighbor in edges[current]:
                if neighbor not in visited:
                    visited.add(neighbor)
                    stack.append(neighbor)
        if pins:
            nets.append(NetData(net_id=f"N{len(nets) + 1}", points=points, pins=pins))

    logger.debug("Built %d nets from %d wires", len(nets), len(model.wires))
    return nets


@dataclass
class NetNaming:
    """Display names chosen for a set of nets."""

    # net_id -> display name
    names: dict[str, str] = field(default_factory=dict)
    compile_errors: list[str] = field(default_factory=list)
    # v(<label>) for every user-labelled net, first spelling per label
    named_node_signals: list[str] = field(default_factory=list)


def _sorted_nets(nets: list[NetData]) -> list[NetData]:
    return sorted(nets, key=lambda net: (net.anchor()[1], net.anchor()[0]))


def _label_text(component) -> str:
    return str(component.name if component.name is not None else component.component_id).strip()


def resolve_net_names(model, nets: list[NetData]) -> NetNaming:
    """
    Assign each net its display name.

    Ground nets are always "0". Other nets take the text of a NET label
    component touching them, else an automatic name N1, N2... allocated
    top-to-bottom, left-to-right and never equal to a label in use. When
    one net carries several distinct labels the first one in component
    order wins and the conflict is reported; reserved labels ("0", "gnd")
    are reported and ignored.
    """
    naming = NetNaming()
    components = model.components
    component_order = {cid: index for index, cid in enumerate(components)}
    candidates: dict[str, str] = {}
    unnamed: list[NetData] = []

    for net in _sorted_nets(nets):
        grounded = any(
            is_ground_pin(components.get(pin.component_id), pin.name) for pin in net.pins
        )
        if grounded:
            naming.names[net.net_id] = GROUND_NET
            continue
        unnamed.append(net)

        label_components = [
            components[cid] for cid in net.component_ids()
            if cid in components and components[cid].component_type == "NET"
        ]
        label_components.sort(key=lambda c: component_order.get(c.component_id, 0))

        distinct: dict[str, str] = {}
        for component in label_components:
            text = _label_text(component)
            if text and text.lower() not in distinct:
                distinct[text.lower()] = text
        if not distinct:
            continue

        reserved = [text for key, text in distinct.items() if key in RESERVED_NODE_NAMES]
        if reserved:
            naming.compile_errors.append(
                f'Named node label "{reserved[0]}" is reserved; use a different label.'
            )
            continue
        if len(distinct) > 1:
            naming.compile_errors.append(
                "Named node conflict: one net has multiple labels "
                f"({', '.join(distinct.values())})."
            )
        candidates[net.net_id] = next(iter(distinct.values()))

    labels_in_use = {label.lower() for label in candidates.values()}
    auto_index = 1
    for net in unnamed:
        name = generate_net_label(auto_index)
        while name.lower() in labels_in_use:
            auto_index += 1
            name = generate_net_label(auto_index)
        naming.names[net.net_id] = name
        auto_index += 1

    canonical_by_key: dict[str, str] = {}
    for net in _sorted_nets(nets):
        label = candidates.get(net.net_id)
        if label is None:
            continue
        canonical = canonical_by_key.setdefault(label.lower(), label)
        naming.names[net.net_id] = canonical

    naming.named_node_signals = [f"v({label})" for label in canonical_by_key.values()]
    return naming


def build_pin_net_map(nets: list[NetData], names: dict[str, str]) -> dict[tuple[str, str], str]:
    """Map (component_id, pin_id) to the pin's net name."""
    pin_net_map = {}
    for net in nets:
        name = names.get(net.net_id)
        if not name:
            continue
        for pin in net.pins:
            pin_net_map[pin.key] = name
    return pin_net_map


def build_point_net_map(nets: list[NetData], names: dict[str, str]) -> dict[tuple[float, float], str]:
    """Map every normalized point of every net to the net name."""
    point_map = {}
    for net in nets:
        name = names.get(net.net_id)
        if not name:
            continue
        for point in net.points:
            point_map[point] = name
    return point_map


def net_at(point_net_map: dict, x, y):
    """Net name at a coordinate, or None."""
    point = normalize_point(x, y)
    if point is None:
        return None
    return point_net_map.get(point)


def normalize_net_color(value):
    """Lower-cased palette color, or None for anything off the palette."""
    if not isinstance(value, str):
        return None
    color = value.strip().lower()
    return color if color in NET_COLOR_PALETTE else None


def resolve_net_colors(model, nets=None) -> tuple[dict[str, str], dict[str, str]]:
    """
    Spread NET label colors over the nets they name.

    Nets carrying the same label text (case-insensitive) are linked even
    when no wire joins them, so a color set on one label paints every
    label and wire of that name. The first colored label in component
    order wins for each linked group.

    Args:
        model: CircuitModel.
        nets: Nets from ``build_nets``; built from the model when omitted.

    Returns:
        (wire_colors, net_colors): wire id -> color, and NET label
        component id -> color.
    """
    if nets is None:
        nets = build_nets(model)
    if not nets:
        return {}, {}
    components = model.components

    point_to_net = {}
    for index, net in enumerate(nets):
        for point in net.points:
            point_to_net[point] = index

    parent = list(range(len(nets)))

    def find(i):
        while parent[i] != i:
            parent[i] = parent[parent[i]]
            i = parent[i]
        return i

    def union(a, b):
        ra, rb = find(a), find(b)
        if ra != rb:
            parent[rb] = ra

    def is_label(component):
        return component is not None and component.component_type == "NET"

    # Link nets that share a label
    first_net_by_label = {}
    for index, net in enumerate(nets):
        keys = {}
        for pin in net.pins:
            component = components.get(pin.component_id)
            if is_label(component):
                key = _label_text(component).lower()
                if key:
                    keys[key] = None
        for key in keys:
            if key in first_net_by_label:
                union(index, first_net_by_label[key])
            else:
                first_net_by_label[key] = index

    color_by_root = {}
    for component in components.values():
        if not is_label(component) or not component.pins:
            continue
        color = normalize_net_color(component.net_color)
        if color is None:
            continue
        pin = component.pins[0]
        index = point_to_net.get(normalize_point(pin.x, pin.y))
        if index is None:
            continue
        color_by_root.setdefault(find(index), color)

    net_colors = {}
    for index, net in enumerate(nets):
        color = color_by_root.get(find(index))
        if color is None:
            continue
        for pin in net.pins:
            if is_label(components.get(pin.component_id)):
                net_colors[pin.component_id] = color

    wire_colors = {}
    for wire in model.wires:
        for raw in wire.points:
            index = point_to_net.get(normalize_point(*raw))
            if index is None:
                continue
            color = color_by_root.get(find(index))
            if color:
                wire_colors[wire.wire_id] = color
                break

    return wire_colors, net_colors
