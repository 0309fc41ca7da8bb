"""
simulation/signal_tokens.py

Canonical signal identifiers.

Simulator vectors, plot traces, result-table rows and probes all spell
the same quantity differently (``V(out)``, ``v:out``, ``I(R1)``,
``@r1[i]``, ``v1#branch``). Everything is funnelled through ``encode``
into one of three frozen types, and downstream code compares tokens:

    v:<net>            single-ended voltage
    vd:<pos>,<neg>     differential voltage (neg "0" collapses to v:<pos>)
    i:<target>         branch or device current

Tokens are lower-case and whitespace-free.
"""

import re
from dataclasses import dataclass
from typing import Iterable, Optional, Union

from .constants import ALL_SIGNALS_TOKENS, GROUND_NET

KIND_VOLTAGE = "v"
KIND_DIFFERENTIAL = "vd"
KIND_CURRENT = "i"

_DIFFERENTIAL_RE = re.compile(r"^v\(([^(),]+),([^(),]+)\)$")
_SUBTRACTION_RE = re.compile(r"^v\(([^()]+)\)-v\(([^()]+)\)$")
_VOLTAGE_RE = re.compile(r"^v\(([^(),]+)\)$")
_CURRENT_RE = re.compile(r"^i\(([^()]+)\)$")
_DEVICE_CURRENT_RE = re.compile(r"^@([^\[\]]+)\[(?:i|current)\]$")
_BRANCH_RE = re.compile(r"^(.+)#branch$")
# ngspice prefixes vectors from non-current plots: tran1.v(out)
_PLOT_PREFIX_RE = re.compile(r"^(?:op|dc|tran|ac)\d+\.(.+)$")


@dataclass(frozen=True)
class VoltageSignal:
    net: str
    kind = KIND_VOLTAGE

    @property
    def token(self) -> str:
        return f"v:{self.net}"

    @property
    def spice(self) -> str:
        return f"v({self.net})"

    @property
    def label(self) -> str:
        return f"V({self.net})"

    @property
    def nets(self) -> tuple[str, ...]:
        return (self.net,)


@dataclass(frozen=True)
class DifferentialSignal:
    pos: str
    neg: str
    kind = KIND_DIFFERENTIAL

    @property
    def token(self) -> str:
        return f"vd:{self.pos},{self.neg}"

    @property
    def spice(self) -> str:
        return f"v({self.pos},{self.neg})"

    @property
    def label(self) -> str:
        return f"V({self.pos},{self.neg})"

    @property
    def nets(self) -> tuple[str, ...]:
        return (self.pos, self.neg)


@dataclass(frozen=True)
class CurrentSignal:
    target: str
    kind = KIND_CURRENT

    @property
    def token(self) -> str:
        return f"i:{self.target}"

    @property
    def spice(self) -> str:
        return f"i({self.target})"

    @property
    def label(self) -> str:
        return f"I({self.target})"

    @property
    def nets(self) -> tuple[str, ...]:
        return ()


Signal = Union[VoltageSignal, DifferentialSignal, CurrentSignal]


def _compact(raw) -> str:
    return re.sub(r"\s+", "", str(raw or "")).lower()


def voltage(net: str) -> VoltageSignal:
    return VoltageSignal(_compact(net))


def differential(pos: str, neg: str) -> Signal:
    """Build a differential signal; a ground-referenced one is single-ended."""
    pos, neg = _compact(pos), _compact(neg)
    if neg == GROUND_NET:
        return VoltageSignal(pos)
    return DifferentialSignal(pos, neg)


def current(target: str) -> CurrentSignal:
    return CurrentSignal(_compact(target))


def _encode_compact(compact: str) -> tuple[Signal, bool]:
    """Return (signal, recognized) for already-compacted text."""
    prefixed = _PLOT_PREFIX_RE.match(compact)
    if prefixed:
        compact = prefixed.group(1)

    if compact.startswith("vd:"):
        parts = compact[3:].split(",")
        if len(parts) == 2 and all(parts):
            return differential(parts[0], parts[1]), True
        return VoltageSignal(compact), False
    if compact.startswith("v:") and len(compact) > 2:
        body = compact[2:]
        parts = body.split(",")
        if len(parts) == 2 and all(parts):
            return differential(parts[0], parts[1]), True
        return VoltageSignal(body), True
    if compact.startswith("i:") and len(compact) > 2:
        return CurrentSignal(compact[2:]), True

    match = _DIFFERENTIAL_RE.match(compact) or _SUBTRACTION_RE.match(compact)
    if match:
        return differential(match.group(1), match.group(2)), True
    match = _VOLTAGE_RE.match(compact)
    if match:
        return VoltageSignal(match.group(1)), True
    match = _CURRENT_RE.match(compact) or _DEVICE_CURRENT_RE.match(compact) or _BRANCH_RE.match(compact)
    if match:
        return CurrentSignal(match.group(1)), True

    # Anything else is taken as a bare net name
    return VoltageSignal(compact), False


def encode(raw) -> Optional[Signal]:
    """
    Canonicalize any supported signal spelling.

    Args:
        raw: Signal text (``V(out)``, ``v(a)-v(b)``, ``@r1[i]``...) or an
            already-encoded signal, which is returned unchanged.

    Returns:
        The signal, or None for empty text.
    """
    if isinstance(raw, (VoltageSignal, DifferentialSignal, CurrentSignal)):
        return raw
    compact = _compact(raw)
    if not compact:
        return None
    signal, _ = _encode_compact(compact)
    return signal


def decode(token) -> Optional[Signal]:
    """Parse a canonical token (or any spelling ``encode`` accepts)."""
    return encode(token)


def to_token(raw) -> str:
    """Shortcut for ``encode(raw).token``; empty string for empty input."""
    signal = encode(raw)
    return signal.token if signal is not None else ""


def is_recognized(raw) -> bool:
    """True when ``raw`` matched an explicit spelling rather than the net-name fallback."""
    if isinstance(raw, (VoltageSignal, DifferentialSignal, CurrentSignal)):
        return True
    compact = _compact(raw)
    if not compact:
        return False
    return _encode_compact(compact)[1]


def tokens_equal(first, second) -> bool:
    a, b = encode(first), encode(second)
    return a is not None and a == b


def is_all_signals(raw) -> bool:
    return str(raw or "").strip().lower() in ALL_SIGNALS_TOKENS


def current_vector_name(netlist_id: str) -> str:
    """
    Simulator vector name for the current through an emitted element.

    Voltage sources expose a branch current ``i(v1)``; every other device
    is read through its ``@name[i]`` accessor.
    """
    name = str(netlist_id or "").strip().lower()
    if name.startswith("v"):
        return f"i({name})"
    return f"@{name}[i]"


def dedupe_case_insensitive(entries: Iterable) -> list[str]:
    """Drop blanks and case-insensitive duplicates, keeping the first spelling."""
    seen = set()
    unique = []
    for entry in entries:
        text = str(entry or "").strip()
        if not text:
            continue
        key = text.lower()
        if key in seen:
            continue
        seen.add(key)
        unique.append(text)
    return unique


def _expand_save_signal(text: str) -> list[str]:
    compact = _compact(text)
    match = _DIFFERENTIAL_RE.match(compact)
    if match:
        pos, neg = match.groups()
        if neg == GROUND_NET:
            return [text, f"v({pos})"]
        return [text, f"v({pos})-v({neg})"]
    match = _SUBTRACTION_RE.match(compact)
    if match:
        pos, neg = match.groups()
        if neg == GROUND_NET:
            return [text, f"v({pos})"]
        return [text, f"v({pos},{neg})"]
    return [text]


def normalize_save_signals(signals) -> list[str]:
    """
    Expand differential spellings into their equivalent forms and dedupe.

    ``v(a,b)`` adds ``v(a)-v(b)`` (or ``v(a)`` when ``b`` is ground) and
    vice versa, so the simulator can answer whichever form it supports.
    """
    if not signals:
        return []
    if isinstance(signals, str):
        signals = [signals]
    expanded = []
    for signal in signals:
        text = str(signal or "").strip()
        if text:
            expanded.extend(_expand_save_signal(text))
    return dedupe_case_insensitive(expanded)
