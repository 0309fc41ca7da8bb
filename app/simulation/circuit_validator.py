"""
simulation/circuit_validator.py

Electrical rule check before simulation, with no Qt dependencies.
"""

from .constants import GROUND_NET
from .net_builder import build_nets, resolve_net_names


def validate_circuit(model, analysis_kind="op", analysis_config=None):
    """
    Validate a schematic before simulation.

    Args:
        model: CircuitModel
        analysis_kind: str ("op", "dc", "tran", "ac")
        analysis_config: Optional analysis record; used for the DC sweep
            source check.

    Returns:
        (is_valid, errors, warnings) where:
            is_valid: bool - False if any errors found
            errors: list[str] - problems that block simulation
            warnings: list[str] - non-blocking issues
    """
    errors = []
    warnings = []
    components = model.components

    # 1. Circuit must have elements beyond ground and net labels
    elements = [c for c in components.values() if c.is_electrical and not c.is_label]
    if not elements:
        errors.append("Circuit has no components. Add at least one component to simulate.")
        return False, errors, warnings

    # 2. Must have a ground reference
    nets = build_nets(model)
    names = resolve_net_names(model, nets).names
    if GROUND_NET not in names.values():
        errors.append("Missing ground reference.")

    # 3. A non-ground pin alone in its net is unconnected
    for net in nets:
        if len(net.pins) != 1 or names.get(net.net_id) == GROUND_NET:
            continue
        pin = net.pins[0]
        component = components.get(pin.component_id)
        if component is None or component.is_label:
            continue
        warnings.append(f"Unconnected pin {pin.component_id}.{pin.name or pin.pin_id}.")

    # 4. Analysis-specific checks
    sources = [c for c in elements if c.component_type in ("V", "I")]
    if analysis_kind == "dc":
        dc = (analysis_config or {}).get("dc") or {}
        source = str(dc.get("source") or "").strip().lower()
        if source and not any(c.component_id.lower() == source for c in sources):
            errors.append(f"DC sweep source '{dc.get('source')}' is not in the circuit.")

    if not sources:
        warnings.append(
            "Circuit has no voltage or current sources. "
            "The simulation may not produce meaningful results."
        )

    is_valid = len(errors) == 0
    return is_valid, errors, warnings
