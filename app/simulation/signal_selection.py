"""
simulation/signal_selection.py

Decides which simulator vectors are shown, and in what order.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np

from .signal_tokens import encode, is_all_signals


@dataclass
class Series:
    """One plottable trace."""

    name: str
    token: str
    label: str
    x: np.ndarray
    y: np.ndarray


def _short_name(name) -> str:
    text = str(name or "")
    return text.rsplit(".", 1)[-1].lower()


def _is_current_name(short: str) -> bool:
    return "#branch" in short or short.startswith("i(")


def _is_voltage_name(short: str) -> bool:
    if short.startswith("v("):
        return True
    return not _is_current_name(short) and not short.startswith("@") and "[" not in short and "#" not in short


def resolve_requested_signals(requested, available) -> list[str]:
    """
    Match requested spellings against available vector names by token.

    A wildcard (``all``/``*``) anywhere in ``requested`` selects every
    available vector. Unmatched requests are dropped; each vector is
    returned once, in request order.
    """
    available = list(available or [])
    if isinstance(requested, str):
        requested = [requested]
    requested = list(requested or [])
    if any(is_all_signals(r) for r in requested):
        return available

    by_token = {}
    for name in available:
        signal = encode(name)
        if signal is not None:
            by_token.setdefault(signal.token, name)

    resolved = []
    for raw in requested:
        signal = encode(raw)
        match = by_token.get(signal.token) if signal is not None else None
        if match is not None and match not in resolved:
            resolved.append(match)
    return resolved


def pick_default_signals(available) -> list[str]:
    """in/out pair, else the first two voltages, else one current, else the first vector."""
    available = list(available or [])
    if not available:
        return []
    shorts = [(name, _short_name(name)) for name in available]
    in_signal = next((n for n, s in shorts if s in ("v(in)", "in")), None)
    out_signal = next((n for n, s in shorts if s in ("v(out)", "out")), None)
    if in_signal and out_signal and in_signal != out_signal:
        return [in_signal, out_signal]
    voltages = [n for n, s in shorts if _is_voltage_name(s)]
    if voltages:
        return voltages[:2]
    current_name = next((n for n, s in shorts if s.startswith("i(")), None)
    if current_name:
        return [current_name]
    return [available[0]]


def preferred_signals(available, named_node_signals=(), probe_signals=(), user_signals=()) -> list[str]:
    """
    Order the vectors to display.

    An explicit user save list wins. Otherwise named nodes and probe
    signals come first; with neither, fall back to ``pick_default_signals``.
    """
    user_signals = [s for s in (user_signals or []) if str(s or "").strip()]
    if user_signals and not all(is_all_signals(s) for s in user_signals):
        return resolve_requested_signals(user_signals, available)
    preferred = resolve_requested_signals(list(named_node_signals) + list(probe_signals), available)
    return preferred or pick_default_signals(available)


def build_series(x, traces: dict, names=None, labels: Optional[dict] = None) -> list[Series]:
    """
    Turn an x vector and named trace arrays into Series, truncated to a
    common length.

    Args:
        x: Sweep values.
        traces: Vector name -> values.
        names: Vector names to include, in order (default: all).
        labels: Optional token -> display label overrides (probe labels).
    """
    labels = labels or {}
    x_data = np.asarray(x if x is not None else [], dtype=float)
    series = []
    for name in (names if names is not None else list(traces)):
        if name not in traces:
            continue
        y_data = np.asarray(traces[name], dtype=float)
        length = min(len(x_data), len(y_data))
        signal = encode(name)
        token = signal.token if signal is not None else str(name)
        label = labels.get(token) or (signal.label if signal is not None else str(name))
        series.append(Series(name=name, token=token, label=label, x=x_data[:length], y=y_data[:length]))
    return series
