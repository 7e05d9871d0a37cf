"""Tests for the pointer interaction state machine."""

import pytest

from familytree.geometry import Box
from familytree.interaction import (
    BUTTON_MIDDLE, BUTTON_PRIMARY, BUTTON_SECONDARY,
    Connecting, HitTarget, Idle, InteractionController, MovingNode, Panning,
    PointerEvent,
)
from familytree.transform import Point, Viewport
from familytree.tree import PALETTE, ROOT_ID, Node, TreeStore


@pytest.fixture
def controller(store, viewport):
    return InteractionController(store, viewport)


def _canvas(x, y, **kw):
    return PointerEvent(x, y, target=HitTarget.CANVAS, **kw)


def _on(node_id, target, x=0, y=0, **kw):
    return PointerEvent(x, y, target=target, node_id=node_id, **kw)


def test_starts_idle(controller):
    assert controller.state == Idle()
    assert controller.is_idle


def test_middle_button_pans_anywhere(controller, viewport):
    assert controller.pointer_down(_on(ROOT_ID, HitTarget.NODE_BODY, 10, 10, button=BUTTON_MIDDLE))
    assert isinstance(controller.state, Panning)
    controller.pointer_move(_canvas(25, 5))
    controller.pointer_move(_canvas(30, 0))
    assert (viewport.pan_x, viewport.pan_y) == (20, -10)
    controller.pointer_up(_canvas(30, 0, button=BUTTON_MIDDLE))
    assert controller.is_idle


def test_primary_with_modifier_pans(controller):
    assert controller.pointer_down(_canvas(0, 0, modifier=True))
    assert isinstance(controller.state, Panning)


def test_plain_primary_on_canvas_does_nothing(controller):
    assert controller.pointer_down(_canvas(0, 0)) is False
    assert controller.is_idle


def test_secondary_button_does_nothing(controller):
    assert controller.pointer_down(_on(ROOT_ID, HitTarget.NODE_BODY, button=BUTTON_SECONDARY)) is False
    assert controller.is_idle


@pytest.mark.parametrize("target", [HitTarget.NODE_TEXT, HitTarget.NODE_DELETE])
def test_chrome_never_starts_a_drag(controller, target):
    assert controller.pointer_down(_on(ROOT_ID, target)) is False
    assert controller.is_idle


def test_drag_node_by_world_delta(store):
    viewport = Viewport(scale=0.5, pan_x=100, pan_y=50)
    controller = InteractionController(store, viewport)
    a = store.create_child(ROOT_ID)
    start = viewport.world_to_screen((a.x + 30, a.y + 10))
    x0, y0 = a.x, a.y

    controller.pointer_down(_on(a.id, HitTarget.NODE_BODY, start.x, start.y))
    assert controller.state == MovingNode(a.id, 30, 10)
    # Move by world (10, 20) == screen (5, 10) at scale 0.5
    controller.pointer_move(_canvas(start.x + 5, start.y + 10))
    controller.pointer_up(_canvas(start.x + 5, start.y + 10))

    assert (a.x, a.y) == (pytest.approx(x0 + 10), pytest.approx(y0 + 20))
    assert controller.is_idle


def test_moving_node_updates_connectors(store, viewport):
    from familytree.connectors import resolve_connections

    controller = InteractionController(store, viewport)
    a = store.create_child(ROOT_ID)
    before = resolve_connections(store.nodes, viewport)[0]
    controller.pointer_down(_on(a.id, HitTarget.NODE_BODY, 0, 100))
    controller.pointer_up(_canvas(10, 120))
    after = resolve_connections(store.nodes, viewport)[0]
    assert after.end == Point(before.end.x + 10, before.end.y + 20)
    assert after.start == before.start


def test_connect_release_on_canvas_creates_child(controller, store):
    assert controller.pointer_down(_on(ROOT_ID, HitTarget.CONNECT_HANDLE, 80, 64))
    assert isinstance(controller.state, Connecting)
    controller.pointer_move(_canvas(200, 300))
    assert controller.state.pointer == Point(200, 300)
    assert len(store) == 1  # preview never mutates

    assert controller.pointer_up(_canvas(200, 300)) is True
    assert controller.is_idle
    assert len(store) == 2
    child = store.nodes[-1]
    assert child.parent == ROOT_ID
    assert child.level == 1
    assert child.y == store.root.y + 100
    assert child.color == PALETTE[1]


def test_connect_release_over_node_is_noop(controller, store):
    a = store.create_child(ROOT_ID)
    controller.pointer_down(_on(ROOT_ID, HitTarget.CONNECT_HANDLE))
    assert controller.pointer_up(_on(a.id, HitTarget.NODE_BODY, 0, 100)) is False
    assert len(store) == 2
    assert a.parent == ROOT_ID
    assert controller.is_idle


def test_second_child_via_drag_shares_colour(controller, store):
    for _ in range(2):
        controller.pointer_down(_on(ROOT_ID, HitTarget.CONNECT_HANDLE))
        controller.pointer_up(_canvas(500, 500))
    first, second = store.nodes[1:]
    assert first.color == second.color == PALETTE[1]


def test_preview_path_only_while_connecting(controller):
    assert controller.preview_path() is None
    controller.pointer_down(_on(ROOT_ID, HitTarget.CONNECT_HANDLE, 80, 64))
    controller.pointer_move(_canvas(120, 300))
    assert controller.preview_path() == "M 80,40 L 120,300"
    controller.pointer_up(_canvas(120, 300))
    assert controller.preview_path() is None


def test_states_are_exclusive(controller):
    controller.pointer_down(_on(ROOT_ID, HitTarget.CONNECT_HANDLE))
    assert controller.pointer_down(_canvas(0, 0, button=BUTTON_MIDDLE)) is False
    assert controller.pointer_down(_on(ROOT_ID, HitTarget.NODE_BODY)) is False
    assert isinstance(controller.state, Connecting)


def test_pointer_up_when_idle_is_noop(controller, store):
    assert controller.pointer_up(_canvas(0, 0)) is False
    assert len(store) == 1


def test_state_callback_sees_transitions(controller):
    seen = []
    controller.on_state_changed = lambda s: seen.append(type(s).__name__)
    controller.pointer_down(_canvas(0, 0, button=BUTTON_MIDDLE))
    controller.pointer_move(_canvas(5, 5))
    controller.pointer_up(_canvas(5, 5))
    assert seen == ["Panning", "Idle"]


def test_close_detaches(controller, store, viewport):
    seen = []
    controller.on_state_changed = seen.append
    controller.pointer_down(_on(ROOT_ID, HitTarget.CONNECT_HANDLE))
    controller.close()
    assert controller.is_idle
    assert controller.pointer_down(_canvas(0, 0, button=BUTTON_MIDDLE)) is False
    assert controller.pointer_up(_canvas(0, 0)) is False
    assert len(store) == 1
    assert controller.on_state_changed is None


def test_unknown_node_does_not_start_drag(controller):
    assert controller.pointer_down(_on("ghost", HitTarget.NODE_BODY)) is False
    assert controller.pointer_down(_on("ghost", HitTarget.CONNECT_HANDLE)) is False
    assert controller.is_idle


def test_container_origin_and_rendered_box_used(geometry_factory):
    store = TreeStore([Node(id="r")])
    geometry = geometry_factory({"r": Box(110, 70, 160, 40)}, Box(10, 20, 800, 600))
    controller = InteractionController(store, Viewport(), geometry)
    controller.pointer_down(_on("r", HitTarget.NODE_BODY, 130, 80))
    # Unpositioned node: grab offset measured from its rendered box
    assert controller.state == MovingNode("r", 20, 10)
    controller.pointer_up(_canvas(160, 100))
    node = store.get("r")
    assert (node.x, node.y) == (130, 70)


def test_cancel_keeps_controller_usable(controller, store):
    controller.pointer_down(_on(ROOT_ID, HitTarget.CONNECT_HANDLE))
    controller.cancel()
    assert controller.is_idle
    assert controller.preview_path() is None
    assert len(store) == 1
    assert controller.pointer_down(_canvas(0, 0, button=BUTTON_MIDDLE)) is True
    controller.pointer_up(_canvas(0, 0))
    assert controller.is_idle
