"""
WireData - Pure Python data model for schematic wires.

This module contains no Qt dependencies. A wire is an ordered polyline
of orthogonal segments; points are stored as (x, y) tuples.
"""

from dataclasses import dataclass, field


@dataclass
class WireData:
    """
    Pure Python data class representing a drawn wire.

    Connectivity is purely geometric: consecutive points are joined by a
    segment, and any coordinate shared with another wire or a pin joins
    the two electrically.
    """

    wire_id: str
    points: list[tuple[float, float]] = field(default_factory=list)

    def __post_init__(self):
        self.points = [(float(x), float(y)) for x, y in self.points]

    def segments(self) -> list[tuple[tuple[float, float], tuple[float, float]]]:
        """Return consecutive point pairs, skipping zero-length segments."""
        return [(a, b) for a, b in zip(self.points, self.points[1:]) if a != b]

    def to_dict(self) -> dict:
        return {
            "id": self.wire_id,
            "points": [{"x": x, "y": y} for x, y in self.points],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "WireData":
        return cls(
            wire_id=str(data["id"]),
            points=[(point["x"], point["y"]) for point in data.get("points", [])],
        )

    def __repr__(self) -> str:
        return f"WireData({self.wire_id}, points={len(self.points)})"
