"""Tests for the pan/zoom viewport."""

import pytest

from familytree.transform import Viewport, MIN_SCALE, MAX_SCALE, Point


def test_defaults(viewport):
    assert viewport.scale == 1.0
    assert tuple(viewport.position) == (0.0, 0.0)
    assert viewport.zoom_percent == 100


def test_screen_to_world_applies_origin_pan_and_scale():
    vp = Viewport(scale=2.0, pan_x=10, pan_y=20)
    world = vp.screen_to_world((110, 220), (50, 100))
    assert world == Point(25.0, 50.0)


@pytest.mark.parametrize("scale", [MIN_SCALE, 0.35, 1.0, 1.7, MAX_SCALE])
def test_round_trip_identity(scale):
    vp = Viewport(scale=scale, pan_x=-123.5, pan_y=42.25)
    origin = (15.0, 64.0)
    for p in [(0, 0), (123.456, -789.01), (-5000, 3000)]:
        back = vp.screen_to_world(vp.world_to_screen(p, origin), origin)
        assert back.x == pytest.approx(p[0])
        assert back.y == pytest.approx(p[1])


def test_zoom_clamps_at_max():
    vp = Viewport(scale=2.0)
    vp.zoom_in()
    assert vp.scale == 2.0


def test_zoom_clamps_at_min():
    vp = Viewport(scale=0.1)
    vp.zoom(-0.1)
    assert vp.scale == pytest.approx(0.1)


def test_constructor_clamps_scale():
    assert Viewport(scale=5).scale == MAX_SCALE
    assert Viewport(scale=0).scale == MIN_SCALE


def test_button_steps(viewport):
    viewport.zoom_in()
    assert viewport.scale == pytest.approx(1.1)
    viewport.zoom_out()
    viewport.zoom_out()
    assert viewport.scale == pytest.approx(0.9)


def test_wheel_needs_modifier(viewport):
    assert viewport.wheel(1, modifier=False) is False
    assert viewport.scale == 1.0


def test_wheel_direction(viewport):
    assert viewport.wheel(1, modifier=True) is True
    assert viewport.scale == pytest.approx(0.95)
    assert viewport.wheel(-1, modifier=True) is True
    assert viewport.wheel(-1, modifier=True) is True
    assert viewport.scale == pytest.approx(1.05)


def test_pan_is_never_clamped(viewport):
    viewport.pan(-10_000, 25_000)
    viewport.pan(5, -5)
    assert (viewport.pan_x, viewport.pan_y) == (-9995, 24995)


def test_reset(viewport):
    viewport.zoom(0.5)
    viewport.pan(30, 40)
    viewport.reset()
    assert viewport.scale == 1.0
    assert (viewport.pan_x, viewport.pan_y) == (0.0, 0.0)
