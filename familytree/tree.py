"""Node model and the mutable tree store."""

import logging
import random
import string
from dataclasses import dataclass, asdict
from typing import Optional, List, Dict, Any, Callable, Iterable, Iterator, Set

from familytree.geometry import GeometryProvider
from familytree.transform import Viewport

logger = logging.getLogger(__name__)

PALETTE = (
    "#3b82f6", "#ef4444", "#10b981", "#f59e0b",
    "#8b5cf6", "#ec4899", "#14b8a6", "#f97316",
)

ROOT_ID = "root"
CHILD_OFFSET = 100

_ID_ALPHABET = string.digits + string.ascii_lowercase


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_key(value) -> bool:
    try:
        hash(value)
    except TypeError:
        return False
    return True


@dataclass
class Node:
    """A person in the tree."""
    id: str
    name: str = ""
    parent: Optional[str] = None
    level: int = 0
    color: str = PALETTE[0]
    x: Optional[float] = None
    y: Optional[float] = None

    @property
    def is_root(self) -> bool:
        return self.parent is None

    @property
    def has_position(self) -> bool:
        return _is_number(self.x) and _is_number(self.y)

    @property
    def depth(self) -> int:
        """``level`` when it is a real integer, else 0."""
        if isinstance(self.level, int) and not isinstance(self.level, bool):
            return self.level
        return 0

    @property
    def label(self) -> str:
        return self.name if isinstance(self.name, str) else ""

    @property
    def has_keys(self) -> bool:
        """Whether ``id`` and ``parent`` can be used to look nodes up."""
        return _is_key(self.id) and _is_key(self.parent)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Node":
        # Snapshot records are taken as-is; absent fields fall back to defaults
        return cls(
            id=data.get("id"),
            name=data.get("name", ""),
            parent=data.get("parent"),
            level=data.get("level", 0),
            color=data.get("color", PALETTE[0]),
            x=data.get("x"),
            y=data.get("y"),
        )


def make_root() -> Node:
    return Node(id=ROOT_ID, name="", parent=None, level=0, color=PALETTE[0], x=0, y=0)


def sibling_color(nodes: List[Node], parent: Node, palette=PALETTE) -> str:
    """Colour for a new child of ``parent``.

    Children of one parent share the first child's colour; the first child
    takes the palette entry after its parent's.
    """
    for node in nodes:
        if node.parent == parent.id:
            return node.color
    try:
        index = palette.index(parent.color)
    except ValueError:
        index = -1
    return palette[(index + 1) % len(palette)]


def usable_nodes(nodes: Iterable[Node]) -> List[Node]:
    """Drop records whose id or parent cannot be looked up."""
    nodes = list(nodes)
    kept = [n for n in nodes if n.has_keys]
    if len(kept) != len(nodes):
        logger.warning("Skipping %d node(s) with unusable id or parent", len(nodes) - len(kept))
    return kept


class TreeStore:
    """Owns the node collection and every structural mutation on it.

    Invalid targets are refused quietly: the caller gets None, False or an
    empty list and the collection is left untouched.
    """

    def __init__(self, nodes: Optional[List[Node]] = None,
                 child_offset: float = CHILD_OFFSET):
        self._nodes: List[Node] = usable_nodes(nodes) if nodes is not None else [make_root()]
        self._issued: Set[str] = {n.id for n in self._nodes}
        self.child_offset = child_offset

        # Callbacks
        self.on_changed: Optional[Callable[[], None]] = None

    # ==================== Queries ====================

    @property
    def nodes(self) -> List[Node]:
        return list(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[Node]:
        return iter(list(self._nodes))

    def __contains__(self, node_id) -> bool:
        return self.get(node_id) is not None

    def get(self, node_id: Optional[str]) -> Optional[Node]:
        if node_id is None:
            return None
        for node in self._nodes:
            if node.id == node_id:
                return node
        return None

    @property
    def root(self) -> Optional[Node]:
        for node in self._nodes:
            if node.parent is None:
                return node
        return None

    def children_of(self, node_id: str) -> List[Node]:
        return [n for n in self._nodes if n.parent == node_id]

    def descendants_of(self, node_id: str) -> List[str]:
        """Ids below ``node_id``, depth first, rescanning the collection per level."""
        found: List[str] = []

        def collect(current: str):
            for child in self._nodes:
                if child.parent == current and child.id not in found:
                    found.append(child.id)
                    collect(child.id)

        collect(node_id)
        return found

    # ==================== Mutations ====================

    def _new_id(self) -> str:
        while True:
            suffix = "".join(random.choice(_ID_ALPHABET) for _ in range(7))
            node_id = f"node-{suffix}"
            if node_id not in self._issued:
                self._issued.add(node_id)
                return node_id

    def create_child(self, parent_id: str, drop_point=None,
                     geometry: Optional[GeometryProvider] = None,
                     viewport: Optional[Viewport] = None) -> Optional[Node]:
        """Add a child under ``parent_id`` and return it.

        The child is placed ``child_offset`` below the parent: from the
        parent's stored coordinates when it has them, otherwise from its
        rendered box, otherwise at the origin.
        """
        parent = self.get(parent_id)
        if parent is None:
            logger.warning("Refusing to create child of unknown node %r", parent_id)
            return None

        x, y = 0.0, 0.0
        if parent.has_position:
            x, y = parent.x, parent.y + self.child_offset
        elif geometry is not None:
            box = geometry.node_box(parent.id)
            container = geometry.container_box()
            if box is not None and container is not None:
                vp = viewport or Viewport()
                x = (box.center_x - container.left - vp.pan_x) / vp.scale
                y = (box.top + self.child_offset - container.top - vp.pan_y) / vp.scale

        child = Node(
            id=self._new_id(),
            name="",
            parent=parent.id,
            level=parent.depth + 1,
            color=sibling_color(self._nodes, parent),
            x=x,
            y=y,
        )
        self._nodes.append(child)
        logger.debug("Created %s under %s (dropped at %s)", child.id, parent.id, drop_point)
        self._notify_changed()
        return child

    def rename(self, node_id: str, text: str) -> bool:
        node = self.get(node_id)
        if node is None:
            return False
        node.name = text
        self._notify_changed()
        return True

    def move(self, node_id: str, x: float, y: float) -> bool:
        node = self.get(node_id)
        if node is None:
            return False
        node.x = x
        node.y = y
        self._notify_changed()
        return True

    def delete_subtree(self, node_id: str) -> List[str]:
        """Remove a node and all of its descendants. Returns removed ids."""
        node = self.get(node_id)
        if node is None:
            logger.warning("Refusing to delete unknown node %r", node_id)
            return []
        if node.is_root:
            logger.warning("Refusing to delete the root node")
            return []

        removed = [node_id] + self.descendants_of(node_id)
        doomed = set(removed)
        self._nodes = [n for n in self._nodes if n.id not in doomed]
        logger.debug("Deleted %d node(s) under %s", len(removed), node_id)
        self._notify_changed()
        return removed

    def reset(self):
        self._nodes = [make_root()]
        self._issued.add(ROOT_ID)
        logger.info("Tree reset")
        self._notify_changed()

    def replace_all(self, nodes) -> bool:
        """Swap in a whole new collection. Only lists are accepted."""
        if not isinstance(nodes, list):
            logger.warning("Refusing to replace tree with %s", type(nodes).__name__)
            return False
        self._nodes = usable_nodes(nodes)
        self._issued.update(n.id for n in self._nodes)
        logger.debug("Replaced tree with %d node(s)", len(self._nodes))
        self._notify_changed()
        return True

    def _notify_changed(self):
        if self.on_changed:
            self.on_changed()


def check_invariants(nodes: List[Node]) -> List[str]:
    """Return human readable problems with a node list (empty when sound)."""
    problems: List[str] = []
    by_id: Dict[str, Node] = {}
    for node in nodes:
        if not node.has_keys:
            problems.append(f"unusable id or parent in {node.id!r}")
            continue
        if node.id in by_id:
            problems.append(f"duplicate id {node.id!r}")
        by_id[node.id] = node

    roots = [n for n in nodes if n.parent is None]
    if len(roots) != 1:
        problems.append(f"expected exactly one root, found {len(roots)}")

    colors: Dict[str, str] = {}
    for node in nodes:
        if node.parent is None or not node.has_keys:
            continue
        parent = by_id.get(node.parent)
        if parent is None:
            problems.append(f"{node.id!r} points at missing parent {node.parent!r}")
            continue
        if node.level != parent.depth + 1:
            problems.append(f"{node.id!r} has level {node.level!r}, expected {parent.depth + 1}")
        first = colors.setdefault(node.parent, node.color)
        if node.color != first:
            problems.append(f"{node.id!r} colour differs from its siblings")
    return problems
