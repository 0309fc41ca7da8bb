"""
FileController - Handles schematic file I/O and crash recovery.

File dialog interaction is the responsibility of the view layer.
"""

import json
import logging
from pathlib import Path
from typing import Optional

from models.circuit import CircuitModel
from simulation.constants import AUTOSAVE_DEBOUNCE_MS

from .debounce import Debouncer

logger = logging.getLogger(__name__)

AUTOSAVE_FILE = ".autosave_recovery.json"


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_circuit_data(data) -> None:
    """
    Validate JSON structure before loading.

    Raises ValueError with a descriptive message if anything is wrong.
    """
    if not isinstance(data, dict):
        raise ValueError("File does not contain a valid circuit object.")

    if "components" not in data or not isinstance(data["components"], list):
        raise ValueError("Missing or invalid 'components' list.")
    if "wires" not in data or not isinstance(data["wires"], list):
        raise ValueError("Missing or invalid 'wires' list.")

    comp_ids = set()
    for i, comp in enumerate(data["components"]):
        if not isinstance(comp, dict):
            raise ValueError(f"Component #{i + 1} is not an object.")
        for key in ("id", "type", "pins"):
            if key not in comp:
                raise ValueError(f"Component #{i + 1} is missing required field '{key}'.")
        if comp["id"] in comp_ids:
            raise ValueError(f"Duplicate component id '{comp['id']}'.")
        comp_ids.add(comp["id"])
        if not isinstance(comp["pins"], list):
            raise ValueError(f"Component '{comp['id']}' has invalid pin data.")
        for pin in comp["pins"]:
            if not isinstance(pin, dict) or not _is_number(pin.get("x")) or not _is_number(pin.get("y")):
                raise ValueError(f"Component '{comp['id']}' pin positions must be numeric.")

    for i, wire in enumerate(data["wires"]):
        if not isinstance(wire, dict):
            raise ValueError(f"Wire #{i + 1} is not an object.")
        for key in ("id", "points"):
            if key not in wire:
                raise ValueError(f"Wire #{i + 1} is missing required field '{key}'.")
        if not isinstance(wire["points"], list):
            raise ValueError(f"Wire '{wire['id']}' has invalid point data.")
        for point in wire["points"]:
            if not isinstance(point, dict) or not _is_number(point.get("x")) or not _is_number(point.get("y")):
                raise ValueError(f"Wire '{wire['id']}' point values must be numeric.")

    analysis = data.get("analysis")
    if analysis is not None and not isinstance(analysis, dict):
        raise ValueError("Invalid 'analysis' block.")


class FileController:
    """
    Manages schematic file I/O and crash recovery.

    Handles saving/loading schematic data as JSON and tracking the
    current file path for quick-save. Auto-save is debounced so a burst
    of edits writes the recovery file once.
    """

    def __init__(
        self,
        model: Optional[CircuitModel] = None,
        circuit_ctrl=None,
        autosave_file=None,
        timer_factory=None,
        autosave_delay_ms: int = AUTOSAVE_DEBOUNCE_MS,
    ):
        if model is None:
            model = circuit_ctrl.model if circuit_ctrl is not None else CircuitModel()
        self.model = model
        self.circuit_ctrl = circuit_ctrl
        self.current_file: Optional[Path] = None
        if autosave_file is None:
            autosave_file = Path.home() / ".spice-trace-link" / AUTOSAVE_FILE
        self._autosave_file = Path(autosave_file)
        self._autosave_debouncer = Debouncer(autosave_delay_ms, self.auto_save, timer_factory)

    def new_circuit(self) -> None:
        """Clear the schematic and reset file state."""
        if self.circuit_ctrl:
            self.circuit_ctrl.clear_circuit()
        else:
            self.model.clear()
        self.current_file = None

    def save_circuit(self, filepath) -> None:
        """
        Save schematic to JSON file.

        Raises:
            OSError: If the file cannot be written.
            TypeError: If model data is not JSON-serializable.
        """
        filepath = Path(filepath)
        data = self.model.to_dict()
        with open(filepath, "w") as f:
            json.dump(data, f, indent=2)
        self.current_file = filepath
        logger.info("Saved schematic to %s", filepath)

    def _install(self, new_model: CircuitModel) -> None:
        if self.circuit_ctrl:
            self.circuit_ctrl.load_model(new_model)
            return
        # Update current model in place (preserving reference)
        self.model.clear()
        self.model.components = new_model.components
        self.model.wires = new_model.wires
        self.model.component_counter = new_model.component_counter
        self.model.analysis_kind = new_model.analysis_kind
        self.model.analysis_config = new_model.analysis_config
        self.model.preamble = new_model.preamble

    def load_circuit(self, filepath) -> None:
        """
        Load schematic from JSON file.

        Raises:
            json.JSONDecodeError: If file is not valid JSON.
            ValueError: If file structure is invalid.
            OSError: If the file cannot be read.
        """
        filepath = Path(filepath)
        with open(filepath, "r") as f:
            data = json.load(f)

        validate_circuit_data(data)
        self._install(CircuitModel.from_dict(data))
        self.current_file = filepath
        logger.info("Loaded schematic from %s", filepath)

    def has_file(self) -> bool:
        """Return whether a current file path is set (for quick-save)."""
        return self.current_file is not None

    # ------------------------------------------------------------------
    # Auto-save and crash recovery
    # ------------------------------------------------------------------

    def schedule_auto_save(self) -> None:
        """Restart the auto-save countdown."""
        self._autosave_debouncer.trigger()

    def on_model_changed(self, event, data) -> None:
        """Observer for CircuitController events."""
        if event == "model_changed":
            self.schedule_auto_save()

    def auto_save(self) -> None:
        """Save schematic to the auto-save recovery file.

        Unlike save_circuit(), this does NOT update current_file.
        """
        try:
            data = self.model.to_dict()
            data["_autosave_source"] = str(self.current_file) if self.current_file else ""
            self._autosave_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self._autosave_file, "w") as f:
                json.dump(data, f, indent=2)
        except (OSError, TypeError) as e:
            logger.warning("Auto-save failed: %s", e)

    def has_auto_save(self) -> bool:
        """Return True if an auto-save recovery file exists."""
        return self._autosave_file.exists()

    def load_auto_save(self) -> Optional[str]:
        """Load schematic from the auto-save recovery file.

        Returns:
            The original file path (str) the auto-save was based on,
            or empty string if it was an unsaved schematic. Returns None
            on failure.
        """
        try:
            with open(self._autosave_file, "r") as f:
                data = json.load(f)

            source_path = data.pop("_autosave_source", "")
            validate_circuit_data(data)
            self._install(CircuitModel.from_dict(data))

            if source_path:
                self.current_file = Path(source_path)
            return source_path
        except (OSError, json.JSONDecodeError, ValueError) as e:
            logger.warning("Could not recover auto-save: %s", e)
            return None

    def clear_auto_save(self) -> None:
        """Delete the auto-save recovery file if it exists."""
        self._autosave_debouncer.cancel()
        try:
            self._autosave_file.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not delete auto-save file: %s", e)
