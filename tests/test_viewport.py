"""Tests for the Viewport transform: conversion, anchored zoom, pan and clamping."""
from __future__ import annotations

import math

import pytest

from models import Point, Transform
from canvas.viewport import Viewport
from settings import CanvasZoomSettings


@pytest.fixture()
def viewport():
    return Viewport(CanvasZoomSettings(), canvas_size=(800, 600))


def _close(a, b, eps=1e-9):
    return math.isclose(a[0], b[0], abs_tol=eps) and math.isclose(a[1], b[1], abs_tol=eps)


# ─────────────────────────────────────────────────────────
# Coordinate conversion
# ─────────────────────────────────────────────────────────


class TestConversion:
    @pytest.mark.parametrize("scale", [0.01, 0.25, 1.0, 3.7, 100.0])
    @pytest.mark.parametrize("p", [(0, 0), (123.5, -40), (800, 600), (-1e4, 2e4)])
    def test_screen_world_round_trip(self, viewport, scale, p):
        viewport.set_transform(Transform(scale, 17.0, -230.0))
        back = viewport.world_to_screen(viewport.screen_to_world(p))
        assert _close(back, p, eps=1e-6)

    def test_identity_transform(self, viewport):
        assert viewport.screen_to_world((10, 20)) == Point(10, 20)

    def test_offset_and_scale(self, viewport):
        viewport.set_transform(Transform(2.0, 100.0, 50.0))
        assert viewport.world_to_screen((10, 10)) == Point(120, 70)
        assert viewport.screen_to_world((120, 70)) == Point(10, 10)

    def test_viewport_bounds(self, viewport):
        viewport.set_transform(Transform(2.0, 100.0, 50.0))
        b = viewport.get_viewport_bounds()
        assert (b.left, b.top, b.right, b.bottom) == (-50, -25, 350, 275)
        assert b.width == 400
        assert b.height == 300


# ─────────────────────────────────────────────────────────
# Zoom
# ─────────────────────────────────────────────────────────


class TestZoom:
    @pytest.mark.parametrize("factor", [0.5, 0.9, 1.1, 2.0, 7.3])
    def test_zoom_at_keeps_anchor(self, viewport, factor):
        viewport.set_transform(Transform(1.3, 20.0, -40.0))
        p = (313.0, 97.0)
        before = viewport.screen_to_world(p)
        viewport.zoom_at(p, factor)
        assert _close(viewport.screen_to_world(p), before, eps=1e-9)
        assert math.isclose(viewport.scale, 1.3 * factor)

    def test_zoom_clamps_to_max(self, viewport):
        p = (400.0, 300.0)
        before = viewport.screen_to_world(p)
        viewport.zoom_at(p, 1e6)
        assert viewport.scale == 100.0
        assert _close(viewport.screen_to_world(p), before, eps=1e-9)

    def test_zoom_clamps_to_min(self, viewport):
        viewport.zoom_at((0, 0), 1e-6)
        assert viewport.scale == 0.01

    @pytest.mark.parametrize("factor", [0.0, -2.0, float("nan"), float("inf")])
    def test_invalid_factor_ignored(self, viewport, factor):
        calls = []
        viewport.on_transform_change = calls.append
        viewport.zoom_at((10, 10), factor)
        assert viewport.transform == Transform()
        assert calls == []

    def test_wheel_down_zooms_out(self, viewport):
        viewport.zoom_by_wheel((400, 300), 100.0)
        assert math.isclose(viewport.scale, math.exp(-0.1))

    def test_wheel_up_zooms_in(self, viewport):
        viewport.zoom_by_wheel((400, 300), -100.0)
        assert viewport.scale > 1.0

    def test_zoom_in_out_about_center(self, viewport):
        center_world = viewport.screen_to_world((400, 300))
        viewport.zoom_in()
        assert math.isclose(viewport.scale, 1.15)
        assert _close(viewport.screen_to_world((400, 300)), center_world)
        viewport.zoom_out()
        assert math.isclose(viewport.scale, 1.0)


class TestPinch:
    def test_pinch_zooms_about_center(self, viewport):
        viewport.pinch((400, 300), (400, 300), 200.0, 100.0)
        assert math.isclose(viewport.scale, 2.0)
        assert _close(viewport.screen_to_world((400, 300)), (400, 300))

    def test_pinch_pans_by_center_motion(self, viewport):
        viewport.pinch((410, 320), (400, 300), 100.0, 100.0)
        t = viewport.transform
        assert t.scale == 1.0
        assert (t.offset_x, t.offset_y) == (10, 20)

    @pytest.mark.parametrize("previous", [0.0, 1e-9, float("nan")])
    def test_degenerate_previous_distance_skips_zoom(self, viewport, previous):
        viewport.pinch((405, 300), (400, 300), 150.0, previous)
        t = viewport.transform
        assert t.scale == 1.0
        assert t.offset_x == 5

    def test_pinch_fires_once(self, viewport):
        calls = []
        viewport.on_transform_change = calls.append
        viewport.pinch((410, 300), (400, 300), 120.0, 100.0)
        assert len(calls) == 1


# ─────────────────────────────────────────────────────────
# Pan, reset, notifications
# ─────────────────────────────────────────────────────────


class TestPan:
    def test_pan_is_scale_independent(self, viewport):
        viewport.set_transform(Transform(4.0, 0.0, 0.0))
        viewport.pan_by(10, -5)
        t = viewport.transform
        assert (t.offset_x, t.offset_y) == (10, -5)
        assert t.scale == 4.0

    def test_reset_view_centers_origin(self, viewport):
        viewport.set_transform(Transform(3.0, -77.0, 12.0))
        viewport.reset_view()
        assert viewport.transform == Transform(1.0, 400.0, 300.0)

    def test_resize_changes_reset_center(self, viewport):
        viewport.resize(200, 100)
        viewport.reset_view()
        assert viewport.transform == Transform(1.0, 100.0, 50.0)

    def test_old_transform_is_not_mutated(self, viewport):
        old = viewport.transform
        viewport.pan_by(5, 5)
        assert old == Transform()
        assert viewport.transform is not old

    def test_no_notification_without_change(self, viewport):
        calls = []
        viewport.on_transform_change = calls.append
        viewport.pan_by(0, 0)
        assert calls == []
        viewport.pan_by(1, 0)
        assert calls == [Transform(1.0, 1.0, 0.0)]

    def test_set_transform_clamps_scale(self, viewport):
        viewport.set_transform(Transform(500.0, 1.0, 2.0))
        assert viewport.transform == Transform(100.0, 1.0, 2.0)
