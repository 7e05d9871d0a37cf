"""Node footprint and the rendered-geometry capability."""

from dataclasses import dataclass
from typing import Optional, Protocol

# Nominal node footprint in world units
NODE_WIDTH = 160
NODE_HALF_WIDTH = NODE_WIDTH / 2
NODE_HEIGHT = 40

# Chrome inside/around a node, relative to its top-left
CONNECT_HANDLE_RADIUS = 11
CONNECT_HANDLE_OFFSET = 24  # below the bottom edge
DELETE_BUTTON_SIZE = 20
NODE_INSET = 8


@dataclass(frozen=True)
class Box:
    """Axis-aligned rectangle."""
    left: float
    top: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @property
    def center_x(self) -> float:
        return self.left + self.width / 2

    def contains(self, x: float, y: float) -> bool:
        return self.left <= x <= self.right and self.top <= y <= self.bottom


class GeometryProvider(Protocol):
    """Reports where nodes were actually drawn, in screen space.

    Either method may return None when nothing has been rendered yet.
    """

    def node_box(self, node_id: str) -> Optional[Box]:
        ...

    def container_box(self) -> Optional[Box]:
        ...
