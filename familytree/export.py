"""Render a family tree to PNG, PDF or SVG with cairo."""

import logging
import math
from typing import List, Dict, Tuple, Iterable

import cairo

from familytree.connectors import Connection, resolve_connections
from familytree.geometry import NODE_WIDTH, NODE_HEIGHT
from familytree.transform import Viewport
from familytree.tree import Node, usable_nodes

logger = logging.getLogger(__name__)

Rect = Tuple[float, float, float, float]


def hex_to_rgb(color: str, fallback=(0.5, 0.5, 0.5)) -> Tuple[float, float, float]:
    """'#3b82f6' -> (0.23, 0.51, 0.96)."""
    try:
        value = color.lstrip('#')
        r = int(value[0:2], 16) / 255
        g = int(value[2:4], 16) / 255
        b = int(value[4:6], 16) / 255
        return (r, g, b)
    except (AttributeError, ValueError, IndexError):
        return fallback


def draw_rounded_rect(cr, x: float, y: float, w: float, h: float, radius: float):
    """Draw a rounded rectangle path."""
    cr.new_path()
    cr.arc(x + w - radius, y + radius, radius, -math.pi / 2, 0)
    cr.arc(x + w - radius, y + h - radius, radius, 0, math.pi / 2)
    cr.arc(x + radius, y + h - radius, radius, math.pi / 2, math.pi)
    cr.arc(x + radius, y + radius, radius, math.pi, 3 * math.pi / 2)
    cr.close_path()


def draw_connection(cr, conn: Connection, line_width: float = 2):
    cr.set_source_rgb(*hex_to_rgb(conn.color))
    cr.set_line_width(line_width)
    cr.set_line_cap(cairo.LINE_CAP_ROUND)
    cr.move_to(conn.start.x, conn.start.y)
    cr.curve_to(conn.ctrl1.x, conn.ctrl1.y, conn.ctrl2.x, conn.ctrl2.y,
                conn.end.x, conn.end.y)
    cr.stroke()


class TreeExporter:
    """Handles exporting trees to image and document formats."""

    COLORS = {
        'bg_primary': (1.0, 1.0, 1.0),
        'border_subtle': (0.898, 0.906, 0.922),   # #e5e7eb
        'text_primary': (0.122, 0.161, 0.216),    # #1f2937
        'text_muted': (0.612, 0.639, 0.686),      # #9ca3af
    }

    PADDING = 50
    NODE_PADDING = 12

    def __init__(self, scale: float = 2.0):
        self.scale = scale

    def _origin(self, node: Node) -> Tuple[float, float]:
        return (node.x, node.y) if node.has_position else (0.0, 0.0)

    def _positions(self, nodes: Iterable[Node]) -> Dict[str, Rect]:
        return {n.id: self._origin(n) + (NODE_WIDTH, NODE_HEIGHT) for n in nodes}

    def _bounds(self, positions: Dict[str, Rect]) -> Tuple[float, float, float, float]:
        min_x = min(p[0] for p in positions.values())
        max_x = max(p[0] + p[2] for p in positions.values())
        min_y = min(p[1] for p in positions.values())
        max_y = max(p[1] + p[3] for p in positions.values())
        return min_x, min_y, max_x, max_y

    def _connections(self, nodes: List[Node]) -> List[Connection]:
        # Unpositioned nodes are drawn at the origin, connect them there too
        placed = [
            Node(n.id, n.name, n.parent, n.level, n.color, *self._origin(n))
            for n in nodes
        ]
        return resolve_connections(placed, Viewport())

    def render(self, cr, nodes: List[Node], transparent: bool = False):
        """Draw the whole tree on an already translated context."""
        if not transparent:
            cr.set_source_rgb(*self.COLORS['bg_primary'])
            cr.paint()

        for conn in self._connections(nodes):
            draw_connection(cr, conn)

        positions = self._positions(nodes)
        for node in nodes:
            self._draw_node(cr, node, positions[node.id])

    def _prepare(self, nodes: List[Node]):
        positions = self._positions(nodes)
        min_x, min_y, max_x, max_y = self._bounds(positions)
        width = max_x - min_x + self.PADDING * 2
        height = max_y - min_y + self.PADDING * 2
        return min_x, min_y, width, height

    def export_png(self, nodes: List[Node], filepath: str,
                   transparent: bool = False) -> bool:
        """Export the tree to a PNG image."""
        nodes = usable_nodes(nodes)
        if not nodes:
            return False
        min_x, min_y, width, height = self._prepare(nodes)

        surface = cairo.ImageSurface(cairo.FORMAT_ARGB32,
                                     int(width * self.scale), int(height * self.scale))
        cr = cairo.Context(surface)
        cr.scale(self.scale, self.scale)
        cr.translate(-min_x + self.PADDING, -min_y + self.PADDING)
        self.render(cr, nodes, transparent)

        surface.write_to_png(filepath)
        logger.info("Exported PNG to %s", filepath)
        return True

    def export_pdf(self, nodes: List[Node], filepath: str) -> bool:
        """Export the tree to a single-page PDF sized to fit."""
        nodes = usable_nodes(nodes)
        if not nodes:
            return False
        min_x, min_y, width, height = self._prepare(nodes)

        surface = cairo.PDFSurface(filepath, width, height)
        cr = cairo.Context(surface)
        cr.translate(-min_x + self.PADDING, -min_y + self.PADDING)
        self.render(cr, nodes)

        surface.finish()
        logger.info("Exported PDF to %s", filepath)
        return True

    def export_svg(self, nodes: List[Node], filepath: str) -> bool:
        """Export the tree to SVG."""
        nodes = usable_nodes(nodes)
        if not nodes:
            return False
        min_x, min_y, width, height = self._prepare(nodes)

        surface = cairo.SVGSurface(filepath, width, height)
        cr = cairo.Context(surface)
        cr.translate(-min_x + self.PADDING, -min_y + self.PADDING)
        self.render(cr, nodes)

        surface.finish()
        logger.info("Exported SVG to %s", filepath)
        return True

    def _draw_node(self, cr, node: Node, pos: Rect):
        """Draw a single node."""
        x, y, w, h = pos
        r, g, b = hex_to_rgb(node.color)

        # Tinted card
        draw_rounded_rect(cr, x, y, w, h, 8)
        cr.set_source_rgb(1.0, 1.0, 1.0)
        cr.fill_preserve()
        cr.set_source_rgba(r, g, b, 0.06)
        cr.fill_preserve()
        cr.set_source_rgb(*self.COLORS['border_subtle'])
        cr.set_line_width(1)
        cr.stroke()

        # Colour stripe on the left edge
        cr.rectangle(x, y + 2, 4, h - 4)
        cr.set_source_rgb(r, g, b)
        cr.fill()

        text = node.label or ("Father's Name" if node.is_root else "Name")
        if node.label:
            cr.set_source_rgb(*self.COLORS['text_primary'])
        else:
            cr.set_source_rgb(*self.COLORS['text_muted'])
        cr.select_font_face("Sans", cairo.FONT_SLANT_NORMAL,
                            cairo.FONT_WEIGHT_BOLD if node.is_root else cairo.FONT_WEIGHT_NORMAL)
        cr.set_font_size(13)

        extents = cr.text_extents(text)
        max_width = w - self.NODE_PADDING * 2
        while extents.width > max_width and len(text) > 3:
            text = text[:-4] + "..."
            extents = cr.text_extents(text)

        cr.move_to(x + self.NODE_PADDING, y + h / 2 + extents.height / 2 - 2)
        cr.show_text(text)
