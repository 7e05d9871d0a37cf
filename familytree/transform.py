"""Pan/zoom transform between screen space and world space."""

import logging
from dataclasses import dataclass
from typing import Tuple

logger = logging.getLogger(__name__)

MIN_SCALE = 0.1
MAX_SCALE = 2.0
BUTTON_ZOOM_STEP = 0.1
WHEEL_ZOOM_STEP = 0.05


@dataclass
class Point:
    """A 2D point. Which space it lives in depends on who made it."""
    x: float = 0.0
    y: float = 0.0

    def __iter__(self):
        return iter((self.x, self.y))


def clamp_scale(value: float) -> float:
    return max(MIN_SCALE, min(MAX_SCALE, value))


class Viewport:
    """Scale and pan offset applied to the canvas.

    World coordinates are what nodes store. Screen coordinates are pointer
    positions relative to the window; ``container_origin`` is the top-left
    of the canvas widget in the same space.
    """

    def __init__(self, scale: float = 1.0, pan_x: float = 0.0, pan_y: float = 0.0,
                 button_step: float = BUTTON_ZOOM_STEP,
                 wheel_step: float = WHEEL_ZOOM_STEP):
        self.scale = clamp_scale(scale)
        self.pan_x = pan_x
        self.pan_y = pan_y
        self.button_step = button_step
        self.wheel_step = wheel_step

    @property
    def position(self) -> Point:
        return Point(self.pan_x, self.pan_y)

    @property
    def zoom_percent(self) -> int:
        return int(round(self.scale * 100))

    def screen_to_world(self, screen: Tuple[float, float],
                        container_origin: Tuple[float, float] = (0.0, 0.0)) -> Point:
        sx, sy = screen
        ox, oy = container_origin
        return Point(
            (sx - ox - self.pan_x) / self.scale,
            (sy - oy - self.pan_y) / self.scale,
        )

    def world_to_screen(self, world: Tuple[float, float],
                        container_origin: Tuple[float, float] = (0.0, 0.0)) -> Point:
        wx, wy = world
        ox, oy = container_origin
        return Point(
            wx * self.scale + self.pan_x + ox,
            wy * self.scale + self.pan_y + oy,
        )

    def zoom(self, delta: float) -> float:
        """Add ``delta`` to the scale and clamp it. Returns the new scale."""
        old = self.scale
        self.scale = clamp_scale(self.scale + delta)
        if self.scale != old:
            logger.debug("Zoom %.2f -> %.2f", old, self.scale)
        return self.scale

    def zoom_in(self) -> float:
        return self.zoom(self.button_step)

    def zoom_out(self) -> float:
        return self.zoom(-self.button_step)

    def wheel(self, dy: float, modifier: bool) -> bool:
        """Handle a scroll notch.

        Only zooms while the modifier is held. Returns True when the event
        was consumed, so the caller must suppress the default scroll.
        """
        if not modifier:
            return False
        self.zoom(-self.wheel_step if dy > 0 else self.wheel_step)
        return True

    def pan(self, dx: float, dy: float):
        self.pan_x += dx
        self.pan_y += dy

    def reset(self):
        self.scale = 1.0
        self.pan_x = 0.0
        self.pan_y = 0.0
