"""Connector curves between parents and children."""

from dataclasses import dataclass
from typing import Optional, List, Dict, Iterable, Tuple

from familytree.geometry import Box, GeometryProvider, NODE_HALF_WIDTH, NODE_HEIGHT
from familytree.transform import Point, Viewport
from familytree.tree import Node


@dataclass(frozen=True)
class Connection:
    """A cubic curve from a parent's bottom-centre to a child's top-centre."""
    key: str
    color: str
    start: Point
    ctrl1: Point
    ctrl2: Point
    end: Point

    @property
    def path(self) -> str:
        """SVG path data for the curve."""
        return (f"M {_fmt(self.start.x)},{_fmt(self.start.y)} "
                f"C {_fmt(self.ctrl1.x)},{_fmt(self.ctrl1.y)} "
                f"{_fmt(self.ctrl2.x)},{_fmt(self.ctrl2.y)} "
                f"{_fmt(self.end.x)},{_fmt(self.end.y)}")


def _fmt(value: float) -> str:
    # 100.0 -> "100", 12.5 -> "12.5"
    return f"{value:g}" if float(value).is_integer() else repr(float(value))


def curve(key: str, color: str, start: Point, end: Point) -> Connection:
    """S-curve with both control points on the vertical midpoint."""
    mid_y = (start.y + end.y) / 2
    return Connection(
        key=key,
        color=color,
        start=start,
        ctrl1=Point(start.x, mid_y),
        ctrl2=Point(end.x, mid_y),
        end=end,
    )


def _project(viewport: Viewport, container: Box, x: float, y: float) -> Point:
    return viewport.screen_to_world((x, y), (container.left, container.top))


def _anchors_from_boxes(parent: Node, child: Node, viewport: Viewport,
                        geometry: Optional[GeometryProvider]) -> Optional[Tuple[Point, Point]]:
    if geometry is None:
        return None
    parent_box = geometry.node_box(parent.id)
    child_box = geometry.node_box(child.id)
    container = geometry.container_box()
    if parent_box is None or child_box is None or container is None:
        return None
    start = _project(viewport, container, parent_box.center_x, parent_box.bottom)
    end = _project(viewport, container, child_box.center_x, child_box.top)
    return start, end


def resolve_connection(parent: Node, child: Node, viewport: Viewport,
                       geometry: Optional[GeometryProvider] = None,
                       half_width: float = NODE_HALF_WIDTH,
                       node_height: float = NODE_HEIGHT) -> Optional[Connection]:
    if parent.has_position and child.has_position:
        start = Point(parent.x + half_width, parent.y + node_height)
        end = Point(child.x + half_width, child.y)
    else:
        anchors = _anchors_from_boxes(parent, child, viewport, geometry)
        if anchors is None:
            return None
        start, end = anchors
    return curve(f"{parent.id}-{child.id}", child.color, start, end)


def resolve_connections(nodes: Iterable[Node], viewport: Viewport,
                        geometry: Optional[GeometryProvider] = None,
                        half_width: float = NODE_HALF_WIDTH,
                        node_height: float = NODE_HEIGHT) -> List[Connection]:
    """Recompute every connector from scratch.

    Nodes with an unhashable id or parent, a missing parent, or no
    geometry yet simply get no connector on this pass.
    """
    nodes = [n for n in nodes if n.has_keys]
    by_id: Dict[str, Node] = {n.id: n for n in nodes}
    connections: List[Connection] = []
    for node in nodes:
        if node.parent is None:
            continue
        parent = by_id.get(node.parent)
        if parent is None:
            continue
        conn = resolve_connection(parent, node, viewport, geometry, half_width, node_height)
        if conn is not None:
            connections.append(conn)
    return connections


def bottom_anchor(node: Node, viewport: Viewport,
                  geometry: Optional[GeometryProvider] = None,
                  half_width: float = NODE_HALF_WIDTH,
                  node_height: float = NODE_HEIGHT) -> Optional[Point]:
    """World position of a node's bottom-centre, or None if unknown."""
    if node.has_position:
        return Point(node.x + half_width, node.y + node_height)
    if geometry is None:
        return None
    box = geometry.node_box(node.id)
    container = geometry.container_box()
    if box is None or container is None:
        return None
    return _project(viewport, container, box.center_x, box.bottom)


def rubber_band_path(source: Node, viewport: Viewport, pointer_world: Point,
                     geometry: Optional[GeometryProvider] = None) -> Optional[str]:
    """Straight preview line from a node's bottom-centre to the pointer."""
    start = bottom_anchor(source, viewport, geometry)
    if start is None:
        return None
    return (f"M {_fmt(start.x)},{_fmt(start.y)} "
            f"L {_fmt(pointer_world.x)},{_fmt(pointer_world.y)}")
