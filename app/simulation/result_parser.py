"""
simulation/result_parser.py

Normalizes simulator worker replies into SimulationResult objects.

Reply shapes per analysis kind:

    op:       {"nodes": [{"name", "value"}], "currents": [{"name", "value"}]}
    dc/tran:  {"x": [...], "traces": {name: [...]}}
    ac:       {"freq": [...], "magnitude": {name: [...]}, "phase": {name: [...]}}

Op values are real numbers or ``{"real", "imag"}`` pairs.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from .signal_tokens import encode

logger = logging.getLogger(__name__)


@dataclass
class SimulationResult:
    """One parsed simulator reply."""

    kind: str
    x: Optional[np.ndarray] = None
    traces: dict = field(default_factory=dict)
    phase: dict = field(default_factory=dict)
    values: dict = field(default_factory=dict)
    plot: str = ""

    @property
    def signal_names(self) -> list[str]:
        return list(self.values) if self.kind == "op" else list(self.traces)

    def find_name(self, signal) -> Optional[str]:
        """Vector name whose token equals ``signal``'s token."""
        wanted = encode(signal)
        if wanted is None:
            return None
        for name in self.signal_names:
            if encode(name) == wanted:
                return name
        return None

    def trace(self, signal) -> Optional[np.ndarray]:
        name = self.find_name(signal)
        return self.traces.get(name) if name is not None else None

    def value(self, signal):
        name = self.find_name(signal)
        return self.values.get(name) if name is not None else None


def _op_value(raw):
    if isinstance(raw, dict):
        real = float(raw.get("real", 0.0))
        imag = float(raw.get("imag", 0.0))
        return complex(real, imag) if imag else real
    if isinstance(raw, (list, tuple)) and raw:
        return _op_value({"real": raw[0], "imag": raw[1] if len(raw) > 1 else 0.0})
    if raw is None:
        return None
    return float(raw)


def _trace_arrays(raw: dict, length: int) -> dict:
    arrays = {}
    for name, values in (raw or {}).items():
        data = np.asarray(values, dtype=float)
        arrays[str(name)] = data[:length]
    return arrays


class ResultParser:
    """Parses simulator worker replies"""

    @staticmethod
    def parse_op_results(payload):
        """Collect node voltages and branch currents from an op reply."""
        try:
            values = {}
            for group in ("nodes", "currents"):
                for entry in payload.get(group, []):
                    name = str(entry.get("name", "")).strip()
                    if name:
                        values[name] = _op_value(entry.get("value"))
            return SimulationResult(kind="op", values=values, plot=payload.get("plot", ""))
        except (AttributeError, TypeError, ValueError) as e:
            logger.warning("Could not parse op results: %s", e)
            return None

    @staticmethod
    def _parse_swept(kind, payload):
        try:
            x = np.asarray(payload.get("x", []), dtype=float)
            raw = payload.get("traces", {})
            length = min([len(x)] + [len(v) for v in raw.values()]) if raw else len(x)
            return SimulationResult(
                kind=kind,
                x=x[:length],
                traces=_trace_arrays(raw, length),
                plot=payload.get("plot", ""),
            )
        except (AttributeError, TypeError, ValueError) as e:
            logger.warning("Could not parse %s results: %s", kind, e)
            return None

    @staticmethod
    def parse_dc_results(payload):
        """Parse DC sweep results"""
        return ResultParser._parse_swept("dc", payload)

    @staticmethod
    def parse_transient_results(payload):
        """Parse transient analysis results"""
        return ResultParser._parse_swept("tran", payload)

    @staticmethod
    def parse_ac_results(payload):
        """Parse AC sweep results (magnitude and phase per signal)"""
        try:
            freq = np.asarray(payload.get("freq", []), dtype=float)
            magnitude = payload.get("magnitude", {})
            phase = payload.get("phase", {})
            lengths = [len(freq)] + [len(v) for v in magnitude.values()]
            length = min(lengths) if magnitude else len(freq)
            return SimulationResult(
                kind="ac",
                x=freq[:length],
                traces=_trace_arrays(magnitude, length),
                phase=_trace_arrays(phase, length),
                plot=payload.get("plot", ""),
            )
        except (AttributeError, TypeError, ValueError) as e:
            logger.warning("Could not parse ac results: %s", e)
            return None

    @staticmethod
    def parse(kind, payload):
        """Dispatch on analysis kind. Returns None for unknown kinds or bad payloads."""
        parsers = {
            "op": ResultParser.parse_op_results,
            "dc": ResultParser.parse_dc_results,
            "tran": ResultParser.parse_transient_results,
            "ac": ResultParser.parse_ac_results,
        }
        parser = parsers.get(kind)
        if parser is None or not isinstance(payload, dict):
            logger.warning("No parser for %r reply", kind)
            return None
        return parser(payload)
