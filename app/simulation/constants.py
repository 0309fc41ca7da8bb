"""
constants.py - Centralized constants for the engine.

This file is the SINGLE SOURCE OF TRUTH for:
- Coordinate normalization and probe snapping
- Debounce delays for simulator runs and autosave
- Highlight colors per input source and mode
- Netlist text defaults
"""

# Coordinates are rounded to this many decimals before keying
COORD_PRECISION = 6

# Probe target search: squared grid-unit distance from the probe pin
# to a candidate's pin midpoint
PROBE_SNAP_TOLERANCE_SQ = 1.0

# Debounce settings
RUN_DEBOUNCE_MS = 200          # Coalesce edits before invoking the simulator
AUTOSAVE_DEBOUNCE_MS = 350     # Coalesce edits before writing the recovery file

# Netlist text
DEFAULT_NETLIST_TITLE = "schematic"
END_DIRECTIVE = ".end"
GROUND_NET = "0"
RESERVED_NODE_NAMES = frozenset({"0", "gnd"})
ALL_SIGNALS_TOKENS = frozenset({"all", "*"})

ANALYSIS_KINDS = ("op", "dc", "tran", "ac")

# Highlight input sources
SOURCE_SCHEMATIC = "schematic"
SOURCE_PLOT = "plot"
SOURCE_TABLE = "table"
SOURCE_NETLIST = "netlist"
HIGHLIGHT_SOURCES = (SOURCE_SCHEMATIC, SOURCE_PLOT, SOURCE_TABLE, SOURCE_NETLIST)

MODE_SELECTION = "selection"
MODE_HOVER = "hover"

# Highlight colors (hex strings)
SELECTION_COLOR = "#ff832b"
HOVER_COLORS = {
    SOURCE_SCHEMATIC: "#4d8bff",
    SOURCE_PLOT: "#8a3ffc",
    SOURCE_TABLE: "#24a148",
    SOURCE_NETLIST: "#007d79",
}

# Colors a NET label may carry; anything else is ignored
NET_COLOR_PALETTE = (
    "#1d1d1f", "#808080", "#4d8bff", "#0043ce", "#104b22", "#24a148",
    "#007d79", "#139c9c", "#f1c21b", "#ff832b", "#8f4b00", "#da1e28",
    "#8a151b", "#ff7eb6", "#8a3ffc", "#5722a1",
)
