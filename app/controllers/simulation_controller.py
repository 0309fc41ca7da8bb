"""
SimulationController - Orchestrates the simulation pipeline.

This module contains no Qt dependencies beyond the debounce timer, which
is injected. It coordinates compilation (through the EngineContext),
run de-duplication, the simulator worker call, and result parsing.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from simulation.constants import RUN_DEBOUNCE_MS
from simulation.errors import MissingCollaboratorError
from simulation.result_parser import ResultParser
from simulation.signal_selection import build_series, preferred_signals
from simulation.signal_tokens import normalize_save_signals

from .debounce import Debouncer

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Result of one simulator request."""

    success: bool
    analysis_kind: str = ""
    data: Any = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    error: str = ""
    netlist: str = ""
    signals: list[str] = field(default_factory=list)
    series: list = field(default_factory=list)
    skipped: bool = False


def normalize_netlist_text(text: str) -> str:
    """Drop blanks and comments, collapse whitespace, lower-case."""
    lines = []
    for line in str(text or "").splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("*"):
            continue
        lines.append(re.sub(r"\s+", " ", stripped).lower())
    return "\n".join(lines)


def run_signature(kind: str, netlist_text: str, signals) -> tuple:
    """Identity of a run request; equal signatures need no new run."""
    normalized_signals = tuple(sorted({str(s).strip().lower() for s in signals or [] if str(s).strip()}))
    return (kind, normalize_netlist_text(netlist_text), normalized_signals)


class SimulationController:
    """
    Controller for the simulation pipeline.

    Coordinates: compile -> signature check -> worker -> parse results

    Observer events:
        simulation_started (dict) - Request handed to the worker
        simulation_skipped (str) - Nothing changed since the last run of that kind
        simulation_completed (RunResult) - Finished, successfully or not
    """

    def __init__(self, context, worker: Optional[Callable[[dict], dict]] = None,
                 timer_factory=None, debounce_ms: int = RUN_DEBOUNCE_MS):
        self.context = context
        self.worker = worker
        self._observers: list[Callable[[str, Any], None]] = []
        self._last_signatures: dict[str, tuple] = {}
        self._pending_kind: Optional[str] = None
        self._pending_force = False
        self._debouncer = Debouncer(debounce_ms, self._on_debounce, timer_factory)

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

    # --- Triggering ---

    def request_run(self, kind: Optional[str] = None, force: bool = False) -> None:
        """Schedule a run; repeated requests inside the debounce window coalesce."""
        self._pending_kind = kind
        self._pending_force = self._pending_force or force
        self._debouncer.trigger()

    def cancel_pending(self) -> None:
        self._debouncer.cancel()
        self._pending_force = False

    def on_model_changed(self, event: str, data: Any) -> None:
        """Observer for CircuitController events: re-run after edits settle."""
        if event == "model_changed":
            self.request_run()

    def _on_debounce(self) -> None:
        kind, force = self._pending_kind, self._pending_force
        self._pending_kind, self._pending_force = None, False
        self.run(kind, force=force)

    # --- Pipeline ---

    def requested_signals(self, compile_result) -> list[str]:
        """Signals asked of the worker: user save list, named nodes, probes."""
        config = self.context.model.analysis_config or {}
        user = (config.get("save") or {}).get("signals") or []
        probe_signals = self.context.get_probes().save_signals
        return normalize_save_signals(list(user) + compile_result.named_node_signals + probe_signals)

    def run(self, kind: Optional[str] = None, force: bool = False) -> RunResult:
        """
        Compile and run one analysis now.

        Raises:
            MissingCollaboratorError: If no worker was supplied.
        """
        if self.worker is None:
            raise MissingCollaboratorError("SimulationController has no simulator worker")
        kind = kind or self.context.model.analysis_kind
        compiled = self.context.compile_for(kind)

        errors = compiled.compile_errors + compiled.analysis_errors
        if errors:
            result = RunResult(
                success=False,
                analysis_kind=kind,
                errors=errors,
                warnings=list(compiled.warnings),
                error="; ".join(errors),
                netlist=compiled.netlist_text,
            )
            self._notify("simulation_completed", result)
            return result

        signals = self.requested_signals(compiled)
        signature = run_signature(kind, compiled.netlist_text, signals)
        if not force and self._last_signatures.get(kind) == signature:
            logger.debug("Skipping %s run; netlist and signals unchanged", kind)
            self._notify("simulation_skipped", kind)
            return RunResult(success=True, analysis_kind=kind, netlist=compiled.netlist_text,
                             signals=signals, skipped=True)
        self._last_signatures[kind] = signature

        request = {"kind": kind, "netlist": compiled.netlist_text, "signals": signals}
        self._notify("simulation_started", request)
        try:
            payload = self.worker(request)
        except (RuntimeError, OSError, ValueError) as e:
            logger.error("Simulator worker failed: %s", e)
            # Failed runs must not suppress a retry of the same netlist
            self._last_signatures.pop(kind, None)
            result = RunResult(success=False, analysis_kind=kind, error=f"Simulation failed: {e}",
                               netlist=compiled.netlist_text, signals=signals,
                               warnings=list(compiled.warnings))
            self._notify("simulation_completed", result)
            return result

        result = self._parse_results(kind, payload, compiled, signals)
        self._notify("simulation_completed", result)
        return result

    def _parse_results(self, kind, payload, compiled, signals) -> RunResult:
        if isinstance(payload, dict) and payload.get("error"):
            self._last_signatures.pop(kind, None)
            return RunResult(success=False, analysis_kind=kind, error=str(payload["error"]),
                             netlist=compiled.netlist_text, signals=signals)

        data = ResultParser.parse(kind, payload)
        if data is None:
            self._last_signatures.pop(kind, None)
            return RunResult(success=False, analysis_kind=kind,
                             error=f"Could not parse {kind} results.",
                             netlist=compiled.netlist_text, signals=signals)

        series = []
        if kind != "op":
            config = self.context.model.analysis_config or {}
            user = (config.get("save") or {}).get("signals") or []
            names = preferred_signals(
                data.signal_names,
                named_node_signals=compiled.named_node_signals,
                probe_signals=self.context.get_probes().save_signals,
                user_signals=user,
            )
            series = build_series(data.x, data.traces, names, self.context.signal_labels())

        return RunResult(
            success=True,
            analysis_kind=kind,
            data=data,
            warnings=list(compiled.warnings),
            netlist=compiled.netlist_text,
            signals=signals,
            series=series,
        )
