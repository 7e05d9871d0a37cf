"""Tests for connector resolution."""

from familytree.connectors import (
    bottom_anchor, curve, resolve_connections, rubber_band_path,
)
from familytree.geometry import Box
from familytree.transform import Point, Viewport
from familytree.tree import Node, PALETTE


def _pair(px=0, py=0, cx=0, cy=100):
    parent = Node(id="p", x=px, y=py, color=PALETTE[0])
    child = Node(id="c", parent="p", level=1, x=cx, y=cy, color=PALETTE[1])
    return parent, child


def test_stored_coordinates_give_direct_anchors(viewport):
    conns = resolve_connections(_pair(), viewport)
    assert len(conns) == 1
    conn = conns[0]
    assert conn.key == "p-c"
    assert conn.color == PALETTE[1]
    assert conn.start == Point(80, 40)
    assert conn.end == Point(80, 100)
    assert conn.path == "M 80,40 C 80,70 80,70 80,100"


def test_control_points_sit_on_vertical_midpoint(viewport):
    conn = resolve_connections(_pair(0, 0, 200, 160), viewport)[0]
    assert conn.ctrl1 == Point(80, 100)
    assert conn.ctrl2 == Point(280, 100)
    assert conn.path == "M 80,40 C 80,100 280,100 280,160"


def test_stored_coordinates_ignore_pan_and_zoom():
    vp = Viewport(scale=0.5, pan_x=300, pan_y=-20)
    assert resolve_connections(_pair(), vp)[0].path == "M 80,40 C 80,70 80,70 80,100"


def test_root_has_no_connector(viewport):
    assert resolve_connections([Node(id="r", x=0, y=0)], viewport) == []


def test_dangling_parent_is_omitted(viewport):
    orphan = Node(id="o", parent="gone", level=1, x=0, y=0)
    assert resolve_connections([Node(id="r", x=0, y=0), orphan], viewport) == []


def test_fallback_measures_rendered_boxes(geometry_factory):
    parent = Node(id="p")
    child = Node(id="c", parent="p", level=1, color=PALETTE[1])
    geometry = geometry_factory(
        {"p": Box(110, 60, 160, 40), "c": Box(150, 220, 160, 40)},
        Box(10, 20, 800, 600),
    )
    vp = Viewport(scale=2.0, pan_x=0, pan_y=0)
    conn = resolve_connections([parent, child], vp, geometry)[0]
    # parent bottom-centre (190, 100) and child top-centre (230, 220), less origin, / 2
    assert conn.start == Point(90, 40)
    assert conn.end == Point(110, 100)
    assert conn.color == PALETTE[1]


def test_fallback_used_when_only_one_side_positioned(geometry_factory):
    parent = Node(id="p", x=0, y=0)
    child = Node(id="c", parent="p", level=1)
    geometry = geometry_factory({"p": Box(0, 0, 160, 40), "c": Box(0, 100, 160, 40)})
    conn = resolve_connections([parent, child], Viewport(), geometry)[0]
    assert (conn.start, conn.end) == (Point(80, 40), Point(80, 100))


def test_missing_geometry_omits_connector(geometry_factory):
    parent = Node(id="p")
    child = Node(id="c", parent="p", level=1)
    assert resolve_connections([parent, child], Viewport()) == []
    only_parent = geometry_factory({"p": Box(0, 0, 160, 40)})
    assert resolve_connections([parent, child], Viewport(), only_parent) == []
    no_container = geometry_factory(
        {"p": Box(0, 0, 160, 40), "c": Box(0, 100, 160, 40)}, container=None)
    assert resolve_connections([parent, child], Viewport(), no_container) == []


def test_resolution_is_idempotent(viewport):
    nodes = list(_pair(5, 5, 60, 200))
    assert resolve_connections(nodes, viewport) == resolve_connections(nodes, viewport)


def test_curve_formats_fractions():
    conn = curve("k", "#fff", Point(0.5, 0), Point(1, 3))
    assert conn.path == "M 0.5,0 C 0.5,1.5 1,1.5 1,3"


def test_bottom_anchor_and_rubber_band(viewport, geometry_factory):
    node = Node(id="n", x=10, y=20)
    assert bottom_anchor(node, viewport) == Point(90, 60)
    assert rubber_band_path(node, viewport, Point(300, 400)) == "M 90,60 L 300,400"

    unplaced = Node(id="u")
    assert rubber_band_path(unplaced, viewport, Point(0, 0)) is None
    geometry = geometry_factory({"u": Box(0, 0, 160, 40)})
    assert rubber_band_path(unplaced, viewport, Point(5, 5), geometry) == "M 80,40 L 5,5"


def test_unusable_records_get_no_connector(viewport):
    nodes = [
        Node(id="p", x=0, y=0),
        Node(id=["p"], parent="p", level=1, x=0, y=100),
        Node(id="c", parent=["p"], level=1, x=0, y=100),
        Node(id="t", parent="p", level=1, x="0", y="100"),
    ]
    assert resolve_connections(nodes, viewport) == []
