"""
HighlightController - Cross-links selection and hover between views.

This module contains no Qt dependencies. The schematic canvas, the plot,
the result table and the netlist text view all show the same signals;
this controller keeps one selection and one hover per source, projects
them onto schematic ids through the trace link index, and publishes a
single merged highlight.

Every input becomes a ``HighlightTargetSet``; ``merge()`` combines them.
Hover state is kept raw and filtered against the selection only when
the sets are built, so the published result depends on which inputs are
active and never on the order they arrived in.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional

from simulation.constants import (
    HOVER_COLORS,
    MODE_HOVER,
    MODE_SELECTION,
    SELECTION_COLOR,
    SOURCE_PLOT,
    SOURCE_SCHEMATIC,
    SOURCE_TABLE,
)
from simulation.netlist_highlighter import highlight_netlist
from simulation.signal_tokens import encode

logger = logging.getLogger(__name__)

_MODE_ORDER = {MODE_SELECTION: 0, MODE_HOVER: 1}
# Sources that publish signals; the netlist view only consumes
_SIGNAL_SOURCES = (SOURCE_PLOT, SOURCE_TABLE)


@dataclass(frozen=True)
class HighlightTargetSet:
    """Schematic ids one input wants highlighted, in one color."""

    component_ids: frozenset = frozenset()
    wire_ids: frozenset = frozenset()
    color: str = SELECTION_COLOR
    mode: str = MODE_SELECTION
    source: str = SOURCE_SCHEMATIC

    def is_empty(self) -> bool:
        return not self.component_ids and not self.wire_ids

    def sort_key(self):
        return (
            _MODE_ORDER.get(self.mode, 2),
            self.source,
            self.color,
            tuple(sorted(self.component_ids)),
            tuple(sorted(self.wire_ids)),
        )


@dataclass(frozen=True)
class MergedHighlight:
    """Payload handed to the canvas, plots and tables."""

    component_ids: frozenset = frozenset()
    wire_ids: frozenset = frozenset()
    entries: tuple = ()


def merge(sets: Iterable[HighlightTargetSet]) -> MergedHighlight:
    """
    Combine highlight sets into one payload.

    Empty and duplicate sets are dropped; entries are sorted so the
    result is the same for any ordering or grouping of the inputs.
    """
    entries = sorted({s for s in sets if not s.is_empty()}, key=HighlightTargetSet.sort_key)
    component_ids = frozenset().union(*(e.component_ids for e in entries))
    wire_ids = frozenset().union(*(e.wire_ids for e in entries))
    return MergedHighlight(component_ids=component_ids, wire_ids=wire_ids, entries=tuple(entries))


@dataclass
class _InputState:
    """Raw state of one input: signals plus directly picked schematic ids."""

    signals: list = field(default_factory=list)
    component_ids: set = field(default_factory=set)
    wire_ids: set = field(default_factory=set)
    source: str = SOURCE_SCHEMATIC

    def is_empty(self) -> bool:
        return not self.signals and not self.component_ids and not self.wire_ids


def _encode_all(signals) -> list:
    if isinstance(signals, str):
        signals = [signals]
    encoded = []
    for raw in signals or []:
        signal = encode(raw)
        if signal is not None and signal not in encoded:
            encoded.append(signal)
    return encoded


def _toggle(items: list, values) -> list:
    result = list(items)
    for value in values:
        if value in result:
            result.remove(value)
        else:
            result.append(value)
    return result


class HighlightController:
    """
    Selection and hover coordination.

    Observer events:
        highlight_changed (MergedHighlight) - Rendered highlight changed
        netlist_highlight_changed (NetlistHighlight) - Netlist text projection
        canvas_selection_cleared (None) - Empty click; canvas must drop its selection
    """

    def __init__(self, context):
        self.context = context
        self._selection = _InputState()
        self._hover: dict[str, _InputState] = {}
        self._observers: list[Callable[[str, Any], None]] = []
        context.add_observer(self._on_context_event)

    def add_observer(self, callback: Callable[[str, Any], None]) -> None:
        if callback not in self._observers:
            self._observers.append(callback)

    def remove_observer(self, callback: Callable[[str, Any], None]) -> None:
        if callback in self._observers:
            self._observers.remove(callback)

    def _notify(self, event: str, data: Any) -> None:
        for observer in self._observers:
            try:
                observer(event, data)
            except (TypeError, AttributeError, RuntimeError) as e:
                logger.error("Error notifying observer: %s", e)

    def _on_context_event(self, event: str, data: Any) -> None:
        if event == "model_reset":
            self.reset()

    # --- Schematic input ---

    def _schematic_signals(self, component_ids, wire_ids) -> list:
        index = self.context.get_index()
        signals = []
        for component_id in component_ids:
            signals.extend(index.signals_for_component(component_id))
        for wire_id in wire_ids:
            signals.extend(index.signals_for_wire(wire_id))
        return _encode_all(signals)

    def select_schematic(self, component_ids=(), wire_ids=(), modifier: bool = False) -> MergedHighlight:
        """Canvas click on components/wires. ``modifier`` toggles instead of replacing."""
        component_ids, wire_ids = list(component_ids), list(wire_ids)
        if not component_ids and not wire_ids and not modifier:
            return self.click_empty()
        if modifier:
            self._toggle_schematic(component_ids, wire_ids)
        else:
            signals = self._schematic_signals(component_ids, wire_ids)
            self._selection = _InputState(signals, set(component_ids), set(wire_ids), SOURCE_SCHEMATIC)
        return self.publish()

    def _toggle_schematic(self, component_ids, wire_ids) -> None:
        """
        Toggle each clicked element into or out of the selection.

        An element counts as selected when its id is picked or when all of
        its signals already are. Picked elements left with none of their
        signals selected are dropped afterwards, so ids and signals agree.
        """
        state = self._selection
        clicked = [(state.component_ids, cid, self._schematic_signals([cid], [])) for cid in component_ids]
        clicked += [(state.wire_ids, wid, self._schematic_signals([], [wid])) for wid in wire_ids]
        for picked, element_id, element_signals in clicked:
            covered = bool(element_signals) and all(s in state.signals for s in element_signals)
            if element_id in picked or covered:
                picked.discard(element_id)
                state.signals = [s for s in state.signals if s not in element_signals]
            else:
                picked.add(element_id)
                state.signals += [s for s in element_signals if s not in state.signals]

        selected = set(state.signals)

        def still_selected(signals) -> bool:
            return not signals or bool(selected.intersection(signals))

        state.component_ids = {
            cid for cid in state.component_ids if still_selected(self._schematic_signals([cid], []))
        }
        state.wire_ids = {
            wid for wid in state.wire_ids if still_selected(self._schematic_signals([], [wid]))
        }

    def hover_schematic(self, component_ids=(), wire_ids=()) -> MergedHighlight:
        component_ids, wire_ids = list(component_ids), list(wire_ids)
        signals = self._schematic_signals(component_ids, wire_ids)
        self._set_hover(SOURCE_SCHEMATIC, _InputState(signals, set(component_ids), set(wire_ids), SOURCE_SCHEMATIC))
        return self.publish()

    # --- Plot / table input ---

    def select_signals(self, source: str, signals, modifier: bool = False) -> MergedHighlight:
        """Trace or table-row click. ``signals`` may use any spelling."""
        if source not in _SIGNAL_SOURCES:
            raise ValueError(f"Source '{source}' cannot select signals")
        encoded = _encode_all(signals)
        if modifier:
            self._selection.signals = _toggle(self._selection.signals, encoded)
            self._selection.source = source
        else:
            self._selection = _InputState(encoded, set(), set(), source)
        return self.publish()

    def hover_signals(self, source: str, signals) -> MergedHighlight:
        if source not in _SIGNAL_SOURCES:
            raise ValueError(f"Source '{source}' cannot hover signals")
        self._set_hover(source, _InputState(_encode_all(signals), set(), set(), source))
        return self.publish()

    def _set_hover(self, source: str, state: _InputState) -> None:
        if state.is_empty():
            self._hover.pop(source, None)
        else:
            self._hover[source] = state

    def clear_hover(self, source: Optional[str] = None) -> MergedHighlight:
        if source is None:
            self._hover.clear()
        else:
            self._hover.pop(source, None)
        return self.publish()

    def clear_selection(self) -> MergedHighlight:
        self._selection = _InputState()
        return self.publish()

    def click_empty(self) -> MergedHighlight:
        """Click on empty space: clear the selection, canvas included."""
        self._selection = _InputState()
        self._notify("canvas_selection_cleared", None)
        return self.publish()

    def reset(self) -> None:
        """Drop all selection and hover state (model cleared or replaced)."""
        self._selection = _InputState()
        self._hover.clear()
        self._notify("highlight_changed", MergedHighlight())

    # --- Queries ---

    @property
    def selected_signals(self) -> list:
        return list(self._selection.signals)

    def hovered_signals(self, source: Optional[str] = None) -> list:
        """Hover signals not already selected."""
        states = [self._hover[source]] if source in self._hover else (
            list(self._hover.values()) if source is None else []
        )
        selected = set(self._selection.signals)
        hovered = []
        for state in states:
            for signal in state.signals:
                if signal not in selected and signal not in hovered:
                    hovered.append(signal)
        return hovered

    def selected_tokens(self) -> list[str]:
        return [signal.token for signal in self._selection.signals]

    def hovered_tokens(self) -> list[str]:
        return sorted(signal.token for signal in self.hovered_signals())

    # --- Projection ---

    def _project_selection(self, index) -> HighlightTargetSet:
        state = self._selection
        targets = index.resolve_targets_for_signals(state.signals)
        component_ids = set(state.component_ids) | targets.component_ids
        wire_ids = set(state.wire_ids) | targets.wire_ids
        if not component_ids and not wire_ids and state.signals and state.source != SOURCE_SCHEMATIC:
            fallback = index.fallback_component()
            if fallback is not None:
                logger.debug("Selection %s matched nothing; falling back to %s",
                             [s.token for s in state.signals], fallback)
                component_ids.add(fallback)
        return HighlightTargetSet(frozenset(component_ids), frozenset(wire_ids),
                                  SELECTION_COLOR, MODE_SELECTION, state.source)

    def _project_hover(self, index, source: str, state: _InputState,
                       selection: Optional[HighlightTargetSet] = None) -> HighlightTargetSet:
        selected = set(self._selection.signals)
        signals = [s for s in state.signals if s not in selected]
        targets = index.resolve_targets_for_signals(signals)
        component_ids = state.component_ids | targets.component_ids
        wire_ids = state.wire_ids | targets.wire_ids
        # Selection wins over hover on the canvas too
        if selection is not None:
            component_ids = component_ids - selection.component_ids
            wire_ids = wire_ids - selection.wire_ids
        return HighlightTargetSet(
            frozenset(component_ids),
            frozenset(wire_ids),
            HOVER_COLORS.get(source, SELECTION_COLOR),
            MODE_HOVER,
            source,
        )

    def highlight_sets(self) -> list[HighlightTargetSet]:
        """One target set per active input."""
        index = self.context.get_index()
        sets = []
        selection = None
        if not self._selection.is_empty():
            selection = self._project_selection(index)
            sets.append(selection)
        for source, state in self._hover.items():
            sets.append(self._project_hover(index, source, state, selection))
        return sets

    def merged(self) -> MergedHighlight:
        return merge(self.highlight_sets())

    def netlist_highlight(self):
        """Selection projected onto the netlist text (netlist view only consumes)."""
        index = self.context.get_index()
        selection = self._project_selection(index) if not self._selection.is_empty() else None
        probes = self.context.get_probes().descriptors
        extra_nets = {pid: [d.net_a, d.net_b] for pid, d in probes.items()}
        return highlight_netlist(
            self.context.compile(),
            component_ids=sorted(selection.component_ids) if selection else (),
            wire_ids=sorted(selection.wire_ids) if selection else (),
            index=index,
            extra_nets=extra_nets,
        )

    def publish(self) -> MergedHighlight:
        """Recompute and push the merged highlight to every view."""
        merged = self.merged()
        self._notify("highlight_changed", merged)
        self._notify("netlist_highlight_changed", self.netlist_highlight())
        return merged

