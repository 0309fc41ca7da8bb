"""
simulation/netlist_generator.py

Compiles a schematic into SPICE netlist text with a source map back to
schematic elements.

Output layout, one statement per line:

    * <title>
    <preamble lines>
    <component lines>
    <analysis directives>
    .end
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from models.component import DEFAULT_VALUES, parse_spdt_switch_value

from .constants import ANALYSIS_KINDS, DEFAULT_NETLIST_TITLE, END_DIRECTIVE, GROUND_NET
from .net_builder import build_nets, build_pin_net_map, build_point_net_map, resolve_net_names
from .signal_tokens import dedupe_case_insensitive, is_all_signals

logger = logging.getLogger(__name__)

KIND_COMPONENT = "component"
KIND_DIRECTIVE = "directive"

SOURCE_TITLE = "title"
SOURCE_PREAMBLE = "preamble"
SOURCE_ANALYSIS = "analysis"
SOURCE_END = "end"

# Types that never produce a netlist line
_SKIPPED_TYPES = frozenset({"GND", "NET", "TEXT", "PV", "PD", "PI", "PP"})


@dataclass
class LineMapEntry:
    """Provenance of one emitted netlist line (1-based ``line``)."""

    line: int
    kind: str
    component_id: Optional[str] = None
    component_type: Optional[str] = None
    netlist_id: Optional[str] = None
    nets: list[str] = field(default_factory=list)
    source: Optional[str] = None
    analysis_kind: Optional[str] = None


@dataclass
class ComponentLine:
    """The primary line emitted for a two-terminal component."""

    netlist_id: str
    component_type: str
    net_a: Optional[str]
    net_b: Optional[str]
    value: Optional[str]


@dataclass
class ComponentSection:
    """Connectivity plus component lines; input to the probe resolver."""

    nets: list = field(default_factory=list)
    net_names: dict = field(default_factory=dict)
    pin_net_map: dict = field(default_factory=dict)
    point_net_map: dict = field(default_factory=dict)
    # (text, metadata) pairs; line numbers are assigned at assembly
    lines: list = field(default_factory=list)
    component_lines: dict = field(default_factory=dict)
    compile_errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    named_node_signals: list[str] = field(default_factory=list)


@dataclass
class CompileResult:
    """Everything one compile produces. Built once, never mutated afterwards."""

    netlist_text: str
    line_map: list[LineMapEntry]
    net_names: dict
    pin_net_map: dict
    component_lines: dict
    warnings: list[str]
    compile_errors: list[str]
    analysis_errors: list[str]
    named_node_signals: list[str]
    analysis_kind: str = "op"
    nets: list = field(default_factory=list)
    point_net_map: dict = field(default_factory=dict)
    save_signals: list[str] = field(default_factory=list)

    @property
    def messages(self) -> list[str]:
        """Compile errors, analysis errors and warnings as one flat list."""
        return list(self.compile_errors) + list(self.analysis_errors) + list(self.warnings)

    @property
    def lines(self) -> list[str]:
        return self.netlist_text.split("\n") if self.netlist_text else []

    def entry_for_line(self, line: int) -> Optional[LineMapEntry]:
        for entry in self.line_map:
            if entry.line == line:
                return entry
        return None

    def lines_for_component(self, component_id: str) -> list[int]:
        return [e.line for e in self.line_map if e.component_id == component_id]


def normalize_spice_value(value: str) -> str:
    """SPICE reads "M" as milli; a user typing uppercase M means mega."""
    if value.endswith("M"):
        return value[:-1] + "Meg"
    return value


def ensure_prefixed_id(prefix: str, value: str) -> str:
    base = str(value or "").strip()
    if not base:
        return prefix
    if base.upper().startswith(prefix.upper()):
        return base
    return f"{prefix}{base}"


def _field(config: dict, key: str, default: str = "") -> str:
    value = config.get(key) if isinstance(config, dict) else None
    if value is None:
        return default
    return str(value).strip()


def build_save_directive(save_signals, fallback_signals) -> str:
    """
    Build the ``.save`` line.

    The user's list wins unless it is empty or only a wildcard, in which
    case the fallback list is used.
    """
    tokens = [str(s).strip() for s in (save_signals or []) if str(s or "").strip()]
    fallback = [str(s).strip() for s in (fallback_signals or []) if str(s or "").strip()]
    wildcard_only = bool(tokens) and all(is_all_signals(t) for t in tokens)
    if (not tokens or wildcard_only) and fallback:
        chosen = fallback
    else:
        chosen = tokens or fallback
    if not chosen:
        return ""
    return ".save " + " ".join(chosen)


def build_analysis_directives(kind: str, config: Optional[dict], fallback_signals=None):
    """
    Build the directive lines for one analysis kind.

    Returns:
        (lines, errors). Incomplete configuration yields an error string
        and suppresses the directive; it never raises.
    """
    config = config if isinstance(config, dict) else {}
    fallback = [s for s in (fallback_signals or []) if s]
    save_config = config.get("save") if isinstance(config.get("save"), dict) else {}
    user_signals = save_config.get("signals") or []
    lines = []
    errors = []

    def append_save(fallback_tokens):
        save_line = build_save_directive(user_signals, fallback_tokens)
        if save_line:
            lines.append(save_line)

    if kind == "op":
        lines.append(".op")
    elif kind == "dc":
        dc = config.get("dc") or {}
        source = _field(dc, "source")
        start, stop, step = _field(dc, "start"), _field(dc, "stop"), _field(dc, "step")
        if not source:
            errors.append("DC sweep requires a source (e.g., V1).")
        if not start or not stop or not step:
            errors.append("DC sweep needs start, stop, and step values.")
        if not errors:
            append_save(fallback)
            lines.append(f".dc {source} {start} {stop} {step}")
    elif kind == "tran":
        tran = config.get("tran") or {}
        step, stop = _field(tran, "step"), _field(tran, "stop")
        if not step or not stop:
            errors.append("TRAN analysis needs step and stop time.")
        else:
            start = _field(tran, "start", "0") or "0"
            max_step = _field(tran, "maxStep")
            append_save(fallback or ["all"])
            lines.append(f".tran {step} {stop} {start}" + (f" {max_step}" if max_step else ""))
    elif kind == "ac":
        ac = config.get("ac") or {}
        points, start, stop = _field(ac, "points"), _field(ac, "start"), _field(ac, "stop")
        if not points or not start or not stop:
            errors.append("AC analysis needs sweep points, start freq, and stop freq.")
        else:
            sweep = _field(ac, "sweep", "dec") or "dec"
            append_save(fallback or ["all"])
            lines.append(f".ac {sweep} {points} {start} {stop}")
    else:
        logger.warning("Unknown analysis kind %r; falling back to .op", kind)
        lines.append(".op")

    return lines, errors


def _strip_terminators(lines: list[str]) -> list[str]:
    return [line for line in lines if line.strip().lower() != END_DIRECTIVE]


def preamble_lines(text: str) -> list[str]:
    """Non-blank preamble lines with any ``.end`` removed."""
    lines = [line.rstrip() for line in str(text or "").splitlines()]
    return _strip_terminators([line for line in lines if line.strip()])


class NetlistGenerator:
    """Generates SPICE netlists from a schematic model."""

    def __init__(self, model, title: str = DEFAULT_NETLIST_TITLE):
        self.model = model
        self.title = title

    # --- Component section ---

    def compile_components(self) -> ComponentSection:
        """Build nets, name them and emit one line per electrical component."""
        nets = build_nets(self.model)
        naming = resolve_net_names(self.model, nets)
        section = ComponentSection(
            nets=nets,
            net_names=dict(naming.names),
            pin_net_map=build_pin_net_map(nets, naming.names),
            point_net_map=build_point_net_map(nets, naming.names),
            compile_errors=list(naming.compile_errors),
            named_node_signals=list(naming.named_node_signals),
        )

        used_ids: set[str] = set()
        next_suffix: dict[str, int] = {}

        for component in self.model.components.values():
            ctype = component.component_type
            if ctype in _SKIPPED_TYPES or not component.is_electrical:
                continue
            raw_lines = self._emit_component(component, section)
            for index, raw in enumerate(raw_lines):
                text = self._with_unique_id(raw, used_ids, next_suffix)
                segments = text.split()
                nets_on_line = [n for n in segments[1:3] if n]
                meta = {
                    "kind": KIND_COMPONENT,
                    "component_id": component.component_id,
                    "component_type": ctype,
                    "netlist_id": segments[0],
                    "nets": nets_on_line,
                }
                section.lines.append((text, meta))
                if index == 0:
                    section.component_lines[component.component_id] = ComponentLine(
                        netlist_id=segments[0],
                        component_type=ctype,
                        net_a=segments[1] if len(segments) > 1 else None,
                        net_b=segments[2] if len(segments) > 2 else None,
                        value=segments[-1] if len(segments) > 3 else None,
                    )

        if GROUND_NET not in section.net_names.values():
            section.warnings.append("No ground reference found; add a GND symbol.")
        return section

    def _pin_nets(self, component, section, pins):
        return [section.pin_net_map.get((component.component_id, pin.pin_id)) for pin in pins]

    def _two_terminal(self, component, section, prefix: Optional[str], fallback: str):
        if len(component.pins) < 2:
            section.compile_errors.append(
                f"Component '{component.component_id}' needs two pins to be emitted."
            )
            return None
        first, second = self._pin_nets(component, section, component.pins[:2])
        if not first or not second:
            section.compile_errors.append(
                f"Component '{component.component_id}' has a pin without a net."
            )
            return None
        value = normalize_spice_value(component.value) if component.value else fallback
        if not value:
            return None
        label = component.component_id.strip() or f"{prefix or component.component_type}{first}"
        if prefix:
            label = ensure_prefixed_id(prefix, label)
        return f"{label} {first} {second} {value}"

    def _emit_component(self, component, section) -> list[str]:
        ctype = component.component_type
        if ctype in DEFAULT_VALUES:
            line = self._two_terminal(component, section, None, DEFAULT_VALUES[ctype])
            return [line] if line else []
        if ctype == "VM":
            # An ideal voltmeter is an open circuit
            if not component.value:
                return []
            line = self._two_terminal(component, section, "R", "1Meg")
            return [line] if line else []
        if ctype == "AM":
            if component.value:
                line = self._two_terminal(component, section, "R", "0")
            else:
                line = self._two_terminal(component, section, "V", "0")
            return [line] if line else []
        if ctype == "SW":
            return self._emit_switch(component, section)
        section.compile_errors.append(
            f"Component '{component.component_id}' has unsupported type '{ctype}'."
        )
        return []

    def _emit_switch(self, component, section) -> list[str]:
        pins = self._resolve_switch_pins(component)
        if pins is None:
            section.compile_errors.append(f"Switch '{component.component_id}' is missing C/A/B pins.")
            return []
        try:
            parsed = parse_spdt_switch_value(component.value)
        except ValueError as e:
            section.compile_errors.append(f"Switch '{component.component_id}' value parse error: {e}")
            return []

        active = parsed["active_throw"]
        inactive = "B" if active == "A" else "A"
        center_net, active_net, inactive_net = self._pin_nets(
            component, section, [pins["C"], pins[active], pins[inactive]]
        )
        base_id = component.component_id.strip()
        lines = []
        ron = normalize_spice_value(str(parsed["ron"]))
        if center_net and active_net and ron:
            lines.append(f"{ensure_prefixed_id('R', base_id + active)} {center_net} {active_net} {ron}")
        if parsed["roff"] is not None:
            roff = normalize_spice_value(str(parsed["roff"]))
            if center_net and inactive_net and roff:
                lines.append(f"{ensure_prefixed_id('R', base_id + inactive)} {center_net} {inactive_net} {roff}")
        return lines

    @staticmethod
    def _resolve_switch_pins(component):
        if len(component.pins) < 3:
            return None
        used = []

        def pick(token):
            for pin in component.pins:
                if pin in used:
                    continue
                if (pin.pin_id or pin.name).strip().upper() == token:
                    used.append(pin)
                    return pin
            return None

        def pick_next():
            for pin in component.pins:
                if pin not in used:
                    used.append(pin)
                    return pin
            return None

        resolved = {}
        for token in ("C", "A", "B"):
            resolved[token] = pick(token) or pick_next()
        if not all(resolved.values()):
            return None
        return resolved

    @staticmethod
    def _with_unique_id(line: str, used: set, next_suffix: dict) -> str:
        segments = line.split()
        base = segments[0] or "X"
        key = base.upper()
        if key not in used:
            used.add(key)
            next_suffix.setdefault(key, 2)
            return line.strip()
        suffix = next_suffix.get(key, 2)
        while True:
            candidate = f"{base}_{suffix}"
            suffix += 1
            if candidate.upper() not in used:
                used.add(candidate.upper())
                next_suffix[key] = suffix
                segments[0] = candidate
                return " ".join(segments)

    # --- Assembly ---

    def generate(
        self,
        analysis_kind: str = "op",
        analysis_config: Optional[dict] = None,
        preamble: str = "",
        save_signals=None,
        section: Optional[ComponentSection] = None,
    ) -> CompileResult:
        """
        Generate the complete netlist.

        Args:
            analysis_kind: "op", "dc", "tran" or "ac".
            analysis_config: Analysis record keyed by kind plus "save".
            preamble: Free text inserted after the title line.
            save_signals: Extra simulator vectors to save (probe signals).
            section: A section from ``compile_components`` to reuse.
        """
        config = analysis_config if isinstance(analysis_config, dict) else {}
        if section is None:
            section = self.compile_components()

        fallback = dedupe_case_insensitive(list(section.named_node_signals) + list(save_signals or []))
        analysis_lines, analysis_errors = build_analysis_directives(analysis_kind, config, fallback)
        analysis_lines = _strip_terminators(analysis_lines)

        component_entries = [(text, dict(meta)) for text, meta in section.lines]
        component_lines = dict(section.component_lines)
        if analysis_kind in ("tran", "ac"):
            self._apply_source_override(component_entries, component_lines, config.get(analysis_kind) or {})

        pending = [(f"* {self.title}", {"kind": KIND_DIRECTIVE, "source": SOURCE_TITLE})]
        pending.extend(
            (line, {"kind": KIND_DIRECTIVE, "source": SOURCE_PREAMBLE})
            for line in preamble_lines(preamble)
        )
        pending.extend(component_entries)
        directive_kind = analysis_kind if analysis_kind in ANALYSIS_KINDS else "op"
        pending.extend(
            (line, {"kind": KIND_DIRECTIVE, "source": SOURCE_ANALYSIS, "analysis_kind": directive_kind})
            for line in analysis_lines
        )
        pending.append((END_DIRECTIVE, {"kind": KIND_DIRECTIVE, "source": SOURCE_END}))

        line_map = [LineMapEntry(line=number, **meta) for number, (_, meta) in enumerate(pending, start=1)]
        return CompileResult(
            netlist_text="\n".join(text for text, _ in pending),
            line_map=line_map,
            net_names=dict(section.net_names),
            pin_net_map=dict(section.pin_net_map),
            component_lines=component_lines,
            warnings=list(section.warnings),
            compile_errors=list(section.compile_errors),
            analysis_errors=analysis_errors,
            named_node_signals=list(section.named_node_signals),
            analysis_kind=analysis_kind,
            nets=list(section.nets),
            point_net_map=dict(section.point_net_map),
            save_signals=list(save_signals or []),
        )

    @staticmethod
    def _apply_source_override(entries: list, component_lines: dict, kind_config: dict) -> None:
        """Swap the value field of the named source; silently a no-op when absent."""
        source = _field(kind_config, "source")
        value = _field(kind_config, "sourceValue")
        if not source or not value:
            return
        for index, (text, meta) in enumerate(entries):
            segments = text.split()
            if not segments or segments[0].lower() != source.lower():
                continue
            node_count = len(meta.get("nets", []))
            new_text = " ".join(segments[: 1 + node_count] + [value])
            entries[index] = (new_text, meta)
            component_id = meta.get("component_id")
            existing = component_lines.get(component_id)
            if existing is not None and existing.netlist_id == segments[0]:
                component_lines[component_id] = ComponentLine(
                    netlist_id=existing.netlist_id,
                    component_type=existing.component_type,
                    net_a=existing.net_a,
                    net_b=existing.net_b,
                    value=value,
                )
            return
        logger.debug("Source override: no line for source %r", source)


def compile_netlist(model, analysis_kind: str = "op", analysis_config=None, preamble: str = "",
                    save_signals=None, title: str = DEFAULT_NETLIST_TITLE) -> CompileResult:
    """Compile a schematic in one call."""
    return NetlistGenerator(model, title=title).generate(
        analysis_kind=analysis_kind,
        analysis_config=analysis_config,
        preamble=preamble,
        save_signals=save_signals,
    )
