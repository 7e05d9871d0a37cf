"""Pointer-driven interaction state machine.

Exactly one of four states is active at a time:

    Idle -> Panning             middle button, or primary + modifier
    Idle -> MovingNode(id)      primary on a node body
    Idle -> Connecting(id)      primary on a node's connect handle

Every state returns to Idle on pointer release. Releasing a connect drag
over empty canvas creates a child; releasing it over a node does nothing.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Callable, Union

from familytree.connectors import rubber_band_path
from familytree.geometry import GeometryProvider
from familytree.transform import Point, Viewport
from familytree.tree import TreeStore

logger = logging.getLogger(__name__)

BUTTON_PRIMARY = 1
BUTTON_MIDDLE = 2
BUTTON_SECONDARY = 3


class HitTarget(Enum):
    """What sits under the pointer."""
    CANVAS = "canvas"
    NODE_BODY = "node_body"
    NODE_TEXT = "node_text"
    NODE_DELETE = "node_delete"
    CONNECT_HANDLE = "connect_handle"


@dataclass(frozen=True)
class PointerEvent:
    """Pointer position in screen space plus what it landed on."""
    x: float
    y: float
    button: int = BUTTON_PRIMARY
    modifier: bool = False
    target: HitTarget = HitTarget.CANVAS
    node_id: Optional[str] = None


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Panning:
    last_x: float
    last_y: float


@dataclass(frozen=True)
class MovingNode:
    node_id: str
    offset_x: float
    offset_y: float


@dataclass(frozen=True)
class Connecting:
    source_id: str
    pointer: Point


State = Union[Idle, Panning, MovingNode, Connecting]


class InteractionController:
    """Turns pointer events into viewport and tree mutations."""

    def __init__(self, store: TreeStore, viewport: Viewport,
                 geometry: Optional[GeometryProvider] = None):
        self.store = store
        self.viewport = viewport
        self.geometry = geometry
        self.state: State = Idle()
        self._closed = False

        # Callbacks
        self.on_state_changed: Optional[Callable[[State], None]] = None

    @property
    def is_idle(self) -> bool:
        return isinstance(self.state, Idle)

    def _container_origin(self):
        if self.geometry is not None:
            box = self.geometry.container_box()
            if box is not None:
                return (box.left, box.top)
        return (0.0, 0.0)

    def to_world(self, event: PointerEvent) -> Point:
        return self.viewport.screen_to_world((event.x, event.y), self._container_origin())

    def _node_origin(self, node) -> Point:
        """Where the node's top-left currently is in world space."""
        if node.has_position:
            return Point(node.x, node.y)
        if self.geometry is not None:
            box = self.geometry.node_box(node.id)
            if box is not None:
                return self.viewport.screen_to_world((box.left, box.top), self._container_origin())
        return Point(0.0, 0.0)

    def _set_state(self, state: State):
        if state == self.state:
            return
        logger.debug("Interaction %s -> %s", type(self.state).__name__, type(state).__name__)
        self.state = state
        if self.on_state_changed:
            self.on_state_changed(state)

    # ==================== Pointer events ====================

    def pointer_down(self, event: PointerEvent) -> bool:
        """Maybe start a drag. Returns True when a drag started."""
        if self._closed or not self.is_idle:
            return False

        if event.button == BUTTON_MIDDLE or (event.button == BUTTON_PRIMARY and event.modifier):
            self._set_state(Panning(event.x, event.y))
            return True

        if event.button != BUTTON_PRIMARY or event.node_id is None:
            return False

        if event.target == HitTarget.CONNECT_HANDLE:
            if event.node_id not in self.store:
                return False
            self._set_state(Connecting(event.node_id, self.to_world(event)))
            return True

        if event.target == HitTarget.NODE_BODY:
            node = self.store.get(event.node_id)
            if node is None:
                return False
            world = self.to_world(event)
            origin = self._node_origin(node)
            self._set_state(MovingNode(node.id, world.x - origin.x, world.y - origin.y))
            return True

        # Text field and delete button keep their own click behaviour
        return False

    def pointer_move(self, event: PointerEvent) -> bool:
        """Continue the active drag. Returns True when something changed."""
        if self._closed:
            return False
        state = self.state

        if isinstance(state, Panning):
            self.viewport.pan(event.x - state.last_x, event.y - state.last_y)
            self.state = Panning(event.x, event.y)
            return True

        if isinstance(state, MovingNode):
            world = self.to_world(event)
            return self.store.move(state.node_id,
                                   world.x - state.offset_x,
                                   world.y - state.offset_y)

        if isinstance(state, Connecting):
            self.state = Connecting(state.source_id, self.to_world(event))
            return True

        return False

    def pointer_up(self, event: PointerEvent) -> bool:
        """Finish the active drag. Returns True when the tree or view changed."""
        if self._closed:
            return False
        state = self.state
        if isinstance(state, Idle):
            return False

        self._set_state(Idle())

        if isinstance(state, MovingNode):
            # Position already tracks the pointer; land it exactly on release
            world = self.to_world(event)
            self.store.move(state.node_id, world.x - state.offset_x, world.y - state.offset_y)
            return True

        if isinstance(state, Connecting):
            if event.target != HitTarget.CANVAS:
                logger.debug("Connect from %s released over %s, ignored",
                             state.source_id, event.node_id)
                return False
            child = self.store.create_child(state.source_id, self.to_world(event),
                                            self.geometry, self.viewport)
            return child is not None

        return True

    # ==================== Preview ====================

    def preview_path(self) -> Optional[str]:
        """Rubber-band line while connecting; never touches the tree."""
        state = self.state
        if not isinstance(state, Connecting):
            return None
        source = self.store.get(state.source_id)
        if source is None:
            return None
        return rubber_band_path(source, self.viewport, state.pointer, self.geometry)

    # ==================== Lifetime ====================

    def cancel(self):
        """Drop any drag in progress without committing it."""
        self._set_state(Idle())

    def close(self):
        """Detach from the surface; later events are ignored."""
        self.cancel()
        self.on_state_changed = None
        self.geometry = None
        self._closed = True
