"""
EngineContext - Owns the derived state computed from a schematic.

This module contains no Qt dependencies. One context holds the compile
result, the probe descriptors, the trace link index and the NET label
colors for one model. All of them are produced together by ``rebuild()``
and dropped together by ``invalidate()``; nothing else writes them.
"""

import logging
from typing import Any, Callable, Optional

from simulation.constants import DEFAULT_NETLIST_TITLE
from simulation.errors import MissingCollaboratorError
from simulation.net_builder import resolve_net_colors
from simulation.netlist_generator import CompileResult, NetlistGenerator
from simulation.probe_resolver import ProbeResolution, resolve_probes
from simulation.trace_link_index import TraceLinkIndex

logger = logging.getLogger(__name__)

# Model events that also reset highlight state
RESET_EVENTS = frozenset({"circuit_cleared", "model_loaded"})


class EngineContext:
    """
    Derived engine state for one schematic model.

    Observer events:
        engine_invalidated (None) - Cached compile/index were dropped
        engine_rebuilt (CompileResult) - A fresh compile is available
        model_reset (None) - The model was cleared or replaced
    """

    def __init__(self, model=None, title: str = DEFAULT_NETLIST_TITLE):
        self.model = model
        self.title = title
        self._compile_result: Optional[CompileResult] = None
        self._probes: Optional[ProbeResolution] = None
        self._index: Optional[TraceLinkIndex] = None
        self._net_colors: Optional[tuple[dict, dict]] = None
        self._observers: list[Callable[[str, Any], None]] = []

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

    # --- Lifecycle ---

    @property
    def is_valid(self) -> bool:
        return self._compile_result is not None

    def invalidate(self) -> None:
        """Drop compile result, probes, index and net colors together."""
        was_valid = self.is_valid
        self._compile_result = None
        self._probes = None
        self._index = None
        self._net_colors = None
        if was_valid:
            self._notify("engine_invalidated", None)

    def rebuild(self) -> CompileResult:
        """Compile, resolve probes and build the index in one pass."""
        if self.model is None:
            raise MissingCollaboratorError("EngineContext has no schematic model")
        model = self.model
        generator = NetlistGenerator(model, title=self.title)
        section = generator.compile_components()
        probes = resolve_probes(model, section.component_lines, section.point_net_map)
        result = generator.generate(
            analysis_kind=model.analysis_kind,
            analysis_config=model.analysis_config,
            preamble=model.preamble,
            save_signals=probes.save_signals,
            section=section,
        )
        index = TraceLinkIndex.build(model, result, probes)

        self._compile_result = result
        self._probes = probes
        self._index = index
        self._net_colors = resolve_net_colors(model, result.nets)
        logger.debug(
            "Rebuilt engine state: %d lines, %d probes, %d messages",
            len(result.line_map), len(probes.descriptors), len(result.messages),
        )
        self._notify("engine_rebuilt", result)
        return result

    def compile(self) -> CompileResult:
        """Current compile result, rebuilding if invalidated."""
        if self._compile_result is None:
            self.rebuild()
        return self._compile_result

    def compile_for(self, analysis_kind: str) -> CompileResult:
        """
        Compile for a specific analysis kind.

        The model's own kind uses the cached result; any other kind is a
        one-off compile that leaves the cache untouched.
        """
        if self.model is None:
            raise MissingCollaboratorError("EngineContext has no schematic model")
        if analysis_kind == self.model.analysis_kind:
            return self.compile()
        probes = self.get_probes()
        model = self.model
        return NetlistGenerator(model, title=self.title).generate(
            analysis_kind=analysis_kind,
            analysis_config=model.analysis_config,
            preamble=model.preamble,
            save_signals=probes.save_signals,
        )

    def get_probes(self) -> ProbeResolution:
        if self._probes is None:
            self.rebuild()
        return self._probes

    def get_index(self) -> TraceLinkIndex:
        if self._index is None:
            self.rebuild()
        return self._index

    def get_net_colors(self) -> tuple[dict, dict]:
        """(wire id -> color, NET label id -> color) for labels that carry a color."""
        if self._net_colors is None:
            self.rebuild()
        return self._net_colors

    def set_model(self, model) -> None:
        self.model = model
        self.invalidate()
        self._notify("model_reset", None)

    def on_model_changed(self, event: str, data: Any) -> None:
        """Observer for CircuitController events."""
        if event == "model_changed":
            self.invalidate()
            if data in RESET_EVENTS:
                self._notify("model_reset", None)

    # --- Convenience queries ---

    def signal_labels(self) -> dict[str, str]:
        """Token -> display label for every probe signal."""
        labels = {}
        for descriptor in self.get_probes().descriptors.values():
            if descriptor.invalid:
                continue
            for signal in descriptor.signals:
                labels.setdefault(signal.token, descriptor.label)
        return labels
