"""Project a schematic selection onto the compiled netlist text.

Component selections light up whole lines; wire selections light up only
the node columns carrying the wire's net, so a value that happens to
read like a net name is never marked.
"""

import re
from dataclasses import dataclass, field

from .netlist_generator import KIND_COMPONENT

_TOKEN_RE = re.compile(r"\S+")


@dataclass
class TextSpan:
    line: int
    start: int
    end: int


@dataclass
class NetlistHighlight:
    lines: set = field(default_factory=set)
    spans: list = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.lines or self.spans)


def node_spans(text: str, node_count: int, net: str) -> list[tuple[int, int]]:
    """Character spans of node columns (1..node_count) equal to ``net``."""
    spans = []
    for column, match in enumerate(_TOKEN_RE.finditer(text)):
        if column == 0:
            continue
        if column > node_count:
            break
        if match.group(0).lower() == net:
            spans.append((match.start(), match.end()))
    return spans


def highlight_netlist(compile_result, component_ids=(), wire_ids=(), index=None, extra_nets=None):
    """
    Compute netlist lines and spans for a schematic selection.

    Args:
        compile_result: The current ``CompileResult``.
        component_ids: Selected component ids.
        wire_ids: Selected wire ids.
        index: The ``TraceLinkIndex`` built from the same compile; nets of
            wires and of components without a line come from it.
        extra_nets: Optional ``{component_id: [net, ...]}`` for
            components with no pins in the net graph (probes).
    """
    highlight = NetlistHighlight()
    text_lines = compile_result.lines
    component_entries = [e for e in compile_result.line_map if e.kind == KIND_COMPONENT]
    extra_nets = extra_nets or {}

    for component_id in component_ids:
        direct = [e.line for e in component_entries if e.component_id == component_id]
        if direct:
            highlight.lines.update(direct)
            continue
        nets = set(index.nets_for_component(component_id)) if index is not None else set()
        nets.update(n.lower() for n in extra_nets.get(component_id, []) if n)
        for entry in component_entries:
            if nets.intersection(n.lower() for n in entry.nets):
                highlight.lines.add(entry.line)

    for wire_id in wire_ids:
        net = index.net_for_wire(wire_id) if index is not None else None
        if not net:
            continue
        for entry in component_entries:
            text = text_lines[entry.line - 1]
            for start, end in node_spans(text, len(entry.nets), net):
                highlight.spans.append(TextSpan(entry.line, start, end))

    highlight.spans.sort(key=lambda span: (span.line, span.start))
    return highlight
