"""
Pure Python data models for the schematic engine.

This package contains Qt-free data classes that represent schematic
elements. All models use only Python standard library types.
"""

from .circuit import CircuitModel
from .component import (
    COMPONENT_TYPES,
    DEFAULT_VALUES,
    LABEL_TYPES,
    NON_ELECTRICAL_TYPES,
    PROBE_TYPES,
    ComponentData,
    PinData,
)
from .net import NetData, PinRef
from .wire import WireData

__all__ = [
    "CircuitModel",
    "ComponentData",
    "PinData",
    "COMPONENT_TYPES",
    "DEFAULT_VALUES",
    "LABEL_TYPES",
    "NON_ELECTRICAL_TYPES",
    "PROBE_TYPES",
    "WireData",
    "NetData",
    "PinRef",
]
