"""
NetData - Pure Python data model for electrical nets.

This module contains no Qt dependencies. A net is derived, never stored:
the maximal set of wire points and component pins transitively joined by
wire segments and coincident coordinates. Nets are rebuilt from the
schematic on demand by ``simulation.net_builder``.
"""

from dataclasses import dataclass, field


def generate_net_label(index: int) -> str:
    """
    Generate an automatic net name: N1, N2, N3...

    Args:
        index: One-based position of the net among non-ground nets.
    """
    return f"N{index}"


@dataclass(frozen=True)
class PinRef:
    """A component pin as seen from the net graph."""

    component_id: str
    pin_id: str
    name: str
    x: float
    y: float

    @property
    def key(self) -> tuple[str, str]:
        return (self.component_id, self.pin_id)


@dataclass
class NetData:
    """
    One connected component of the schematic's point graph.

    ``points`` are the distinct normalized coordinates in traversal order;
    the first point is the net's anchor for deterministic ordering.
    """

    net_id: str
    points: list[tuple[float, float]] = field(default_factory=list)
    pins: list[PinRef] = field(default_factory=list)

    def anchor(self) -> tuple[float, float]:
        return self.points[0] if self.points else (0.0, 0.0)

    def component_ids(self) -> list[str]:
        """Component ids touching this net, first-seen order."""
        seen = []
        for pin in self.pins:
            if pin.component_id not in seen:
                seen.append(pin.component_id)
        return seen

    def __repr__(self) -> str:
        return f"NetData({self.net_id}, points={len(self.points)}, pins={len(self.pins)})"
