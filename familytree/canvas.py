"""Canvas widget for drawing the family tree and driving interaction."""

import logging
import math
from typing import Optional, Dict, Tuple, Callable

import gi

gi.require_version("Gtk", "4.0")
gi.require_version("Gdk", "4.0")
from gi.repository import Gtk, Gdk

import cairo

from familytree.connectors import bottom_anchor
from familytree.editor import Editor
from familytree.export import draw_connection, draw_rounded_rect, hex_to_rgb
from familytree.geometry import (
    Box, NODE_WIDTH, NODE_HEIGHT, CONNECT_HANDLE_RADIUS, CONNECT_HANDLE_OFFSET,
    DELETE_BUTTON_SIZE, NODE_INSET,
)
from familytree.interaction import (
    HitTarget, PointerEvent, Idle, Panning, MovingNode, Connecting,
)
from familytree.settings import EditorSettings
from familytree.tree import Node

logger = logging.getLogger(__name__)

# Unpositioned nodes are stacked per level in this grid
FALLBACK_COLUMN = NODE_WIDTH + 24
FALLBACK_ROW = 100


class FamilyTreeCanvas(Gtk.DrawingArea):
    """Draws nodes and connectors and reports where it drew them."""

    COLORS = {
        'bg_primary': (1.0, 1.0, 1.0),
        'grid_dots': (0.90, 0.91, 0.92),
        'surface': (1.0, 1.0, 1.0),
        'border_subtle': (0.898, 0.906, 0.922),   # #e5e7eb
        'field_border': (0.820, 0.835, 0.859),    # #d1d5db
        'text_primary': (0.122, 0.161, 0.216),    # #1f2937
        'text_muted': (0.612, 0.639, 0.686),      # #9ca3af
        'delete_hover': (0.937, 0.267, 0.267),    # #ef4444
        'preview': (0.5, 0.5, 0.5),
    }

    def __init__(self, editor: Editor, settings: Optional[EditorSettings] = None):
        super().__init__()

        self.editor = editor
        self.settings = settings or editor.settings

        # Screen-space boxes from the last frame
        self._node_boxes: Dict[str, Box] = {}
        self._drag_start: Tuple[float, float] = (0.0, 0.0)
        self._controllers = []

        # Name editing
        self.editing_node_id: Optional[str] = None
        self.hovered: Optional[Tuple[HitTarget, Optional[str]]] = None

        # Callbacks
        self.on_zoom_changed: Optional[Callable[[int], None]] = None

        self.set_draw_func(self._on_draw)
        self.set_focusable(True)
        self.set_can_focus(True)
        self.set_hexpand(True)
        self.set_vexpand(True)

        self.editor.geometry = self
        self.editor.on_changed = self.queue_draw
        self.editor.interaction.on_state_changed = self._on_state_changed

        self._setup_event_controllers()
        self.connect("unrealize", self._on_unrealize)
        self.connect("destroy", self._on_destroy)

    # ==================== Geometry provider ====================

    def node_box(self, node_id: str) -> Optional[Box]:
        return self._node_boxes.get(node_id)

    def container_box(self) -> Optional[Box]:
        width, height = self.get_width(), self.get_height()
        if width <= 0 or height <= 0:
            return None
        # Event coordinates are widget-relative, so the origin is (0, 0)
        return Box(0, 0, width, height)

    # ==================== Event wiring ====================

    def _setup_event_controllers(self):
        """Setup mouse and keyboard event controllers."""
        drag_ctrl = Gtk.GestureDrag()
        drag_ctrl.set_button(0)  # All buttons
        drag_ctrl.connect("drag-begin", self._on_drag_begin)
        drag_ctrl.connect("drag-update", self._on_drag_update)
        drag_ctrl.connect("drag-end", self._on_drag_end)

        motion_ctrl = Gtk.EventControllerMotion()
        motion_ctrl.connect("motion", self._on_motion)

        scroll_ctrl = Gtk.EventControllerScroll()
        scroll_ctrl.set_flags(Gtk.EventControllerScrollFlags.VERTICAL)
        scroll_ctrl.connect("scroll", self._on_scroll)

        key_ctrl = Gtk.EventControllerKey()
        key_ctrl.connect("key-pressed", self._on_key_pressed)

        for ctrl in (drag_ctrl, motion_ctrl, scroll_ctrl, key_ctrl):
            self.add_controller(ctrl)
            self._controllers.append(ctrl)

    def _on_unrealize(self, widget):
        """Drop any drag in progress; the canvas may be realized again."""
        self.editor.interaction.cancel()
        self.editing_node_id = None
        self.hovered = None

    def _on_destroy(self, widget):
        """Stop listening for good."""
        for ctrl in self._controllers:
            self.remove_controller(ctrl)
        self._controllers = []
        self.editor.interaction.close()
        self.editor.on_changed = None

    def _on_state_changed(self, state):
        if isinstance(state, Panning):
            self.set_cursor_from_name("grabbing")
        elif isinstance(state, MovingNode):
            self.set_cursor_from_name("move")
        elif isinstance(state, Connecting):
            self.set_cursor_from_name("crosshair")
        else:
            self.set_cursor_from_name("default")

    def _event(self, gesture, x: float, y: float,
               hit: Optional[Tuple[HitTarget, Optional[str]]] = None) -> PointerEvent:
        button = gesture.get_current_button()
        state = gesture.get_current_event_state()
        target, node_id = hit if hit is not None else self.hit_test(x, y)
        return PointerEvent(
            x=x,
            y=y,
            button=button,
            modifier=bool(state & Gdk.ModifierType.ALT_MASK),
            target=target,
            node_id=node_id,
        )

    def _on_drag_begin(self, gesture, start_x, start_y):
        self.grab_focus()
        self._drag_start = (start_x, start_y)
        event = self._event(gesture, start_x, start_y)

        if self.editing_node_id and event.node_id != self.editing_node_id:
            self.stop_editing()

        if self.editor.pointer_down(event):
            return

        # Not a drag: clicks on node chrome
        if event.button != 1 or event.node_id is None:
            return
        if event.target == HitTarget.NODE_DELETE:
            self.editor.delete_node(event.node_id)
        elif event.target == HitTarget.NODE_TEXT:
            self.start_editing(event.node_id)

    def _on_drag_update(self, gesture, offset_x, offset_y):
        x = self._drag_start[0] + offset_x
        y = self._drag_start[1] + offset_y
        self.editor.pointer_move(self._event(gesture, x, y))

    def _on_drag_end(self, gesture, offset_x, offset_y):
        x = self._drag_start[0] + offset_x
        y = self._drag_start[1] + offset_y
        self.editor.pointer_up(self._event(gesture, x, y))

    def _on_motion(self, controller, x, y):
        hit = self.hit_test(x, y)
        if hit != self.hovered:
            self.hovered = hit
            if self.editor.interaction.is_idle:
                self.set_cursor_from_name("grab" if hit[0] == HitTarget.NODE_BODY else "default")
            self.queue_draw()

    def _on_scroll(self, controller, dx, dy):
        """Ctrl+wheel zooms; plain scrolling is left alone."""
        state = controller.get_current_event_state()
        handled = self.editor.wheel(dy, bool(state & Gdk.ModifierType.CONTROL_MASK))
        if handled and self.on_zoom_changed:
            self.on_zoom_changed(self.editor.viewport.zoom_percent)
        return handled

    def _on_key_pressed(self, controller, keyval, keycode, state):
        if not self.editing_node_id:
            return False
        node = self.editor.store.get(self.editing_node_id)
        if node is None:
            self.stop_editing()
            return False

        if keyval in (Gdk.KEY_Return, Gdk.KEY_KP_Enter, Gdk.KEY_Escape, Gdk.KEY_Tab):
            self.stop_editing()
            return True
        if keyval == Gdk.KEY_BackSpace:
            self.editor.rename(node.id, node.label[:-1])
            return True

        char = Gdk.keyval_to_unicode(keyval)
        if char and not (state & Gdk.ModifierType.CONTROL_MASK):
            text = chr(char)
            if text.isprintable():
                self.editor.rename(node.id, node.label + text)
                return True
        return False

    # ==================== Editing ====================

    def start_editing(self, node_id: str):
        self.editing_node_id = node_id
        self.grab_focus()
        self.queue_draw()

    def stop_editing(self):
        self.editing_node_id = None
        self.queue_draw()

    # ==================== Layout & hit testing ====================

    def _world_rects(self) -> Dict[str, Tuple[float, float]]:
        """Top-left world position for every node, stacking unpositioned ones."""
        slots: Dict[int, int] = {}
        rects: Dict[str, Tuple[float, float]] = {}
        for node in self.editor.store:
            if node.has_position:
                rects[node.id] = (node.x, node.y)
            else:
                column = slots.get(node.depth, 0)
                slots[node.depth] = column + 1
                rects[node.id] = (column * FALLBACK_COLUMN, node.depth * FALLBACK_ROW)
        return rects

    def _screen_box(self, wx: float, wy: float) -> Box:
        vp = self.editor.viewport
        origin = vp.world_to_screen((wx, wy))
        return Box(origin.x, origin.y, NODE_WIDTH * vp.scale, NODE_HEIGHT * vp.scale)

    def hit_test(self, x: float, y: float) -> Tuple[HitTarget, Optional[str]]:
        """What lies under a widget-relative point, topmost node first."""
        vp = self.editor.viewport
        world = vp.screen_to_world((x, y))
        rects = self._world_rects()
        for node in reversed(self.editor.store.nodes):
            nx, ny = rects[node.id]
            hx = nx + NODE_WIDTH / 2
            hy = ny + NODE_HEIGHT + CONNECT_HANDLE_OFFSET
            if math.hypot(world.x - hx, world.y - hy) <= CONNECT_HANDLE_RADIUS:
                return HitTarget.CONNECT_HANDLE, node.id
            body = Box(nx, ny, NODE_WIDTH, NODE_HEIGHT)
            if not body.contains(world.x, world.y):
                continue
            if not node.is_root and self._delete_box(nx, ny).contains(world.x, world.y):
                return HitTarget.NODE_DELETE, node.id
            if self._text_box(nx, ny, node).contains(world.x, world.y):
                return HitTarget.NODE_TEXT, node.id
            return HitTarget.NODE_BODY, node.id
        return HitTarget.CANVAS, None

    def _delete_box(self, nx: float, ny: float) -> Box:
        return Box(nx + NODE_WIDTH - NODE_INSET - DELETE_BUTTON_SIZE,
                   ny + (NODE_HEIGHT - DELETE_BUTTON_SIZE) / 2,
                   DELETE_BUTTON_SIZE, DELETE_BUTTON_SIZE)

    def _text_box(self, nx: float, ny: float, node: Node) -> Box:
        right_gap = NODE_INSET + (0 if node.is_root else DELETE_BUTTON_SIZE + 4)
        return Box(nx + NODE_INSET + 4, ny + NODE_INSET,
                   NODE_WIDTH - NODE_INSET - 4 - right_gap, NODE_HEIGHT - NODE_INSET * 2)

    # ==================== Drawing ====================

    def _on_draw(self, area, cr, width, height):
        """Main drawing function."""
        vp = self.editor.viewport
        rects = self._world_rects()
        self._node_boxes = {nid: self._screen_box(*pos) for nid, pos in rects.items()}

        cr.save()
        cr.set_source_rgb(*self.COLORS['bg_primary'])
        cr.paint()
        if self.settings.show_grid:
            self._draw_grid(cr, width, height)

        cr.translate(vp.pan_x, vp.pan_y)
        cr.scale(vp.scale, vp.scale)

        for conn in self.editor.connections:
            draw_connection(cr, conn)
        self._draw_preview(cr)

        for node in self.editor.store:
            self._draw_node(cr, node, *rects[node.id])

        cr.restore()

    def _draw_grid(self, cr, width: float, height: float):
        """Draw dot grid pattern."""
        vp = self.editor.viewport
        effective_grid = self.settings.grid_size * vp.scale
        if effective_grid < 4:
            return

        cr.save()
        cr.set_source_rgb(*self.COLORS['grid_dots'])
        x = vp.pan_x % effective_grid
        while x < width:
            y = vp.pan_y % effective_grid
            while y < height:
                cr.arc(x, y, 1.2, 0, 2 * math.pi)
                cr.fill()
                y += effective_grid
            x += effective_grid
        cr.restore()

    def _draw_preview(self, cr):
        state = self.editor.interaction.state
        if not isinstance(state, Connecting):
            return
        source = self.editor.store.get(state.source_id)
        if source is None:
            return
        start = bottom_anchor(source, self.editor.viewport, self)
        if start is None:
            return

        cr.save()
        cr.set_source_rgb(*self.COLORS['preview'])
        cr.set_line_width(2)
        cr.set_dash([5, 5])
        cr.move_to(start.x, start.y)
        cr.line_to(state.pointer.x, state.pointer.y)
        cr.stroke()
        cr.restore()

    def _draw_node(self, cr, node: Node, x: float, y: float):
        """Draw a single node card with its field, delete button and handle."""
        w, h = NODE_WIDTH, NODE_HEIGHT
        r, g, b = hex_to_rgb(node.color)
        is_editing = node.id == self.editing_node_id
        hovered_target, hovered_id = self.hovered or (None, None)

        cr.save()

        # Card
        draw_rounded_rect(cr, x, y, w, h, 8)
        cr.set_source_rgb(*self.COLORS['surface'])
        cr.fill_preserve()
        cr.set_source_rgba(r, g, b, 0.06)
        cr.fill_preserve()
        cr.set_source_rgb(*self.COLORS['border_subtle'])
        cr.set_line_width(1)
        cr.stroke()

        cr.rectangle(x, y + 2, 4, h - 4)
        cr.set_source_rgb(r, g, b)
        cr.fill()

        # Name field
        field = self._text_box(x, y, node)
        draw_rounded_rect(cr, field.left, field.top, field.width, field.height, 3)
        cr.set_source_rgb(1.0, 1.0, 1.0)
        cr.fill_preserve()
        if is_editing:
            cr.set_source_rgb(r, g, b)
            cr.set_line_width(1.5)
        else:
            cr.set_source_rgb(*self.COLORS['field_border'])
            cr.set_line_width(1)
        cr.stroke()

        text = node.label or ("Father's Name" if node.is_root else "Name")
        cr.set_source_rgb(*(self.COLORS['text_primary'] if node.label else self.COLORS['text_muted']))
        cr.select_font_face("Sans", cairo.FONT_SLANT_NORMAL, cairo.FONT_WEIGHT_NORMAL)
        cr.set_font_size(12)
        extents = cr.text_extents(text)
        text_y = field.top + field.height / 2 + extents.height / 2 - 1
        cr.move_to(field.left + 4, text_y)
        cr.show_text(text)

        if is_editing:
            caret_x = field.left + 4 + (cr.text_extents(node.label).x_advance if node.label else 0)
            cr.set_source_rgb(*self.COLORS['text_primary'])
            cr.set_line_width(1)
            cr.move_to(caret_x, field.top + 4)
            cr.line_to(caret_x, field.bottom - 4)
            cr.stroke()

        # Delete button (not on the root)
        if not node.is_root:
            box = self._delete_box(x, y)
            hot = hovered_target == HitTarget.NODE_DELETE and hovered_id == node.id
            cr.set_source_rgb(*(self.COLORS['delete_hover'] if hot else self.COLORS['text_muted']))
            cr.set_line_width(1.5)
            pad = 6
            cr.move_to(box.left + pad, box.top + pad)
            cr.line_to(box.right - pad, box.bottom - pad)
            cr.move_to(box.right - pad, box.top + pad)
            cr.line_to(box.left + pad, box.bottom - pad)
            cr.stroke()

        # Connect handle
        hx = x + w / 2
        hy = y + h + CONNECT_HANDLE_OFFSET
        cr.arc(hx, hy, CONNECT_HANDLE_RADIUS, 0, 2 * math.pi)
        hot = hovered_target == HitTarget.CONNECT_HANDLE and hovered_id == node.id
        cr.set_source_rgb(*((0.95, 0.95, 0.96) if hot else (1.0, 1.0, 1.0)))
        cr.fill_preserve()
        cr.set_source_rgb(*self.COLORS['border_subtle'])
        cr.set_line_width(1)
        cr.stroke()

        # Down-right arrow glyph
        cr.set_source_rgb(*self.COLORS['text_muted'])
        cr.set_line_width(1.5)
        cr.move_to(hx - 4, hy - 4)
        cr.line_to(hx + 4, hy + 4)
        cr.move_to(hx + 4, hy - 1)
        cr.line_to(hx + 4, hy + 4)
        cr.line_to(hx - 1, hy + 4)
        cr.stroke()

        cr.restore()
