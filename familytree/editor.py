"""Editor state: tree, viewport, interaction and derived connectors."""

import logging
from pathlib import Path
from typing import Optional, List, Callable, Union

from familytree.connectors import Connection, resolve_connections
from familytree.geometry import GeometryProvider
from familytree.interaction import InteractionController, PointerEvent, Panning, Connecting
from familytree.settings import EditorSettings
from familytree import snapshot
from familytree.snapshot import SnapshotFormatError
from familytree.transform import Viewport
from familytree.tree import TreeStore, Node

logger = logging.getLogger(__name__)


class Editor:
    """Single owner of all editor state.

    Surfaces (the GTK canvas, the CLI, tests) read ``connections`` and
    call the operations below; ``on_changed`` tells them to redraw and
    ``on_notice`` carries user-facing messages.
    """

    def __init__(self, settings: Optional[EditorSettings] = None,
                 geometry: Optional[GeometryProvider] = None,
                 nodes: Optional[List[Node]] = None):
        self.settings = settings or EditorSettings()
        self.store = TreeStore(nodes, child_offset=self.settings.child_offset)
        self.viewport = Viewport(
            button_step=self.settings.button_zoom_step,
            wheel_step=self.settings.wheel_zoom_step,
        )
        self.interaction = InteractionController(self.store, self.viewport, geometry)
        self._connections: Optional[List[Connection]] = None

        # Callbacks
        self.on_changed: Optional[Callable[[], None]] = None
        self.on_notice: Optional[Callable[[str], None]] = None

        self.store.on_changed = self._invalidate

    @property
    def geometry(self) -> Optional[GeometryProvider]:
        return self.interaction.geometry

    @geometry.setter
    def geometry(self, provider: Optional[GeometryProvider]):
        self.interaction.geometry = provider
        self._invalidate()

    @property
    def nodes(self) -> List[Node]:
        return self.store.nodes

    @property
    def connections(self) -> List[Connection]:
        if self._connections is None:
            self._connections = resolve_connections(
                self.store.nodes, self.viewport, self.geometry)
        return self._connections

    def _invalidate(self):
        self._connections = None
        if self.on_changed:
            self.on_changed()

    def view_changed(self):
        """Call after touching the viewport directly (pan, zoom)."""
        self._invalidate()

    def _notice(self, message: str):
        if self.on_notice:
            self.on_notice(message)

    # ==================== View ====================

    def zoom_in(self):
        self.viewport.zoom_in()
        self._invalidate()

    def zoom_out(self):
        self.viewport.zoom_out()
        self._invalidate()

    def wheel(self, dy: float, modifier: bool) -> bool:
        handled = self.viewport.wheel(dy, modifier)
        if handled:
            self._invalidate()
        return handled

    # ==================== Pointer ====================

    def pointer_down(self, event: PointerEvent) -> bool:
        return self.interaction.pointer_down(event)

    def pointer_move(self, event: PointerEvent) -> bool:
        changed = self.interaction.pointer_move(event)
        if changed and isinstance(self.interaction.state, Panning):
            self._invalidate()
        elif changed and isinstance(self.interaction.state, Connecting) and self.on_changed:
            # Preview only; connectors stay valid
            self.on_changed()
        return changed

    def pointer_up(self, event: PointerEvent) -> bool:
        was_idle = self.interaction.is_idle
        changed = self.interaction.pointer_up(event)
        if not was_idle:
            # Ends a pan or clears the connect preview
            self._invalidate()
        return changed

    def preview_path(self) -> Optional[str]:
        return self.interaction.preview_path()

    # ==================== Tree ====================

    def rename(self, node_id: str, text: str) -> bool:
        return self.store.rename(node_id, text)

    def delete_node(self, node_id: str) -> List[str]:
        return self.store.delete_subtree(node_id)

    def reset(self):
        self.interaction.cancel()
        self.viewport.reset()
        self.store.reset()

    # ==================== Snapshots ====================

    def dump_snapshot(self) -> str:
        return snapshot.encode(self.store.nodes)

    def load_snapshot(self, text: Union[str, bytes]) -> bool:
        """Replace the tree with a snapshot; on bad input nothing changes."""
        try:
            nodes = snapshot.decode(text)
        except SnapshotFormatError as exc:
            logger.warning("Rejected snapshot: %s", exc)
            self._notice(str(exc))
            return False
        self.interaction.cancel()
        return self.store.replace_all(nodes)

    def load_file(self, path: Union[str, Path]) -> bool:
        try:
            nodes = snapshot.load_file(path)
        except SnapshotFormatError as exc:
            logger.warning("Rejected snapshot %s: %s", path, exc)
            self._notice(str(exc))
            return False
        except OSError as exc:
            logger.warning("Could not read %s: %s", path, exc)
            self._notice(f"Could not open {path}")
            return False
        self.interaction.cancel()
        return self.store.replace_all(nodes)

    def save_file(self, path: Union[str, Path]) -> bool:
        try:
            snapshot.save_file(path, self.store.nodes)
        except OSError as exc:
            logger.warning("Could not write %s: %s", path, exc)
            self._notice(f"Could not save {path}")
            return False
        return True
