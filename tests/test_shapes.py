"""Tests for shape geometry: containment per kind, handles, move and resize."""
from __future__ import annotations

import pytest
from PyQt6.QtGui import QColor, QImage, QPainter

from models import Point, ResizeHandle, ShapeKind, ShapeStyle, Transform
from canvas.shapes import Shape


def make(kind=ShapeKind.RECTANGLE, x=0.0, y=0.0, w=100.0, h=100.0, **kw):
    return Shape(id="s", kind=kind, x=x, y=y, width=w, height=h, **kw)


# ─────────────────────────────────────────────────────────
# Containment
# ─────────────────────────────────────────────────────────


class TestContains:
    def test_rectangle(self):
        r = make(w=100, h=50)
        assert r.contains_point((50, 25))
        assert not r.contains_point((150, 25))

    def test_rectangle_edges_are_inclusive(self):
        r = make(w=100, h=50)
        assert r.contains_point((0, 0))
        assert r.contains_point((100, 50))
        assert not r.contains_point((100.01, 50))

    def test_ellipse(self):
        e = make(ShapeKind.ELLIPSE)
        assert e.contains_point((50, 50))
        assert not e.contains_point((99, 99))
        assert e.contains_point((100, 50))

    def test_zero_radius_ellipse_contains_nothing(self):
        e = make(ShapeKind.ELLIPSE, w=0, h=40)
        assert not e.contains_point((0, 20))

    def test_triangle(self):
        t = make(ShapeKind.TRIANGLE)
        assert t.vertices() == (Point(50, 0), Point(0, 100), Point(100, 100))
        assert t.contains_point((50, 50))
        assert t.contains_point((50, 100))
        # Bounding box corners lie outside the triangle
        assert not t.contains_point((5, 5))
        assert not t.contains_point((95, 5))


# ─────────────────────────────────────────────────────────
# Handles
# ─────────────────────────────────────────────────────────


class TestHandles:
    def test_eight_handles_in_fixed_order(self):
        handles = make().get_handles()
        assert list(handles) == list(ResizeHandle)
        assert handles[ResizeHandle.TOP_LEFT] == Point(0, 0)
        assert handles[ResizeHandle.BOTTOM_CENTER] == Point(50, 100)
        assert handles[ResizeHandle.MIDDLE_RIGHT] == Point(100, 50)

    @pytest.mark.parametrize("kind", list(ShapeKind))
    def test_handles_follow_bounding_box_for_every_kind(self, kind):
        handles = make(kind, x=10, y=20, w=30, h=40).get_handles()
        assert handles[ResizeHandle.BOTTOM_RIGHT] == Point(40, 60)

    def test_handle_at(self):
        s = make()
        assert s.handle_at((101, 99), 5) == ResizeHandle.BOTTOM_RIGHT
        assert s.handle_at((50, 50), 5) is None


# ─────────────────────────────────────────────────────────
# Move / resize
# ─────────────────────────────────────────────────────────


class TestResize:
    def test_bottom_right_clamps_to_minimum(self):
        s = make()
        s.resize_by_handle("bottom-right", (-200, -200))
        assert (s.x, s.y, s.width, s.height) == (0, 0, 10, 10)

    def test_top_left_clamp_keeps_opposite_edge(self):
        s = make()
        s.resize_by_handle(ResizeHandle.TOP_LEFT, (200, 200))
        assert (s.width, s.height) == (10, 10)
        assert (s.x + s.width, s.y + s.height) == (100, 100)

    def test_top_left_grow(self):
        s = make()
        s.resize_by_handle(ResizeHandle.TOP_LEFT, (-10, -20))
        assert (s.x, s.y, s.width, s.height) == (-10, -20, 110, 120)

    def test_side_handle_changes_one_axis(self):
        s = make()
        s.resize_by_handle(ResizeHandle.MIDDLE_RIGHT, (30, 999))
        assert (s.x, s.y, s.width, s.height) == (0, 0, 130, 100)

    def test_unknown_handle_is_ignored(self):
        s = make()
        s.resize_by_handle("nowhere", (30, 30))
        assert (s.x, s.y, s.width, s.height) == (0, 0, 100, 100)

    def test_move(self):
        s = make()
        s.move(5, -7)
        assert (s.x, s.y) == (5, -7)

    def test_set_size_floors(self):
        s = make()
        s.set_size(3, 50)
        assert (s.width, s.height) == (10, 50)


class TestStyle:
    def test_partial_style_merge(self):
        s = make()
        s.set_style({"fill_color": "#FF0000", "unknown": 1})
        assert s.style.fill_color == "#FF0000"
        assert s.style.stroke_color == ShapeStyle().stroke_color

    def test_to_dict(self):
        d = make(ShapeKind.ELLIPSE, x=1, y=2, w=30, h=40).to_dict()
        assert d["kind"] == "ellipse"
        assert (d["x"], d["y"], d["width"], d["height"]) == (1, 2, 30, 40)
        assert d["style"]["stroke_width"] == 2.0


# ─────────────────────────────────────────────────────────
# Painting
# ─────────────────────────────────────────────────────────


def _paint(shape, transform=Transform()):
    image = QImage(100, 100, QImage.Format.Format_ARGB32)
    image.fill(QColor("#FFFFFF"))
    painter = QPainter(image)
    shape.render(painter, transform)
    painter.end()
    return image


class TestRender:
    RED = ShapeStyle(fill_color="#FF0000", stroke_color="#FF0000")

    def test_rectangle_fill(self, qapp):
        image = _paint(make(x=10, y=10, w=50, h=50, style=self.RED))
        assert image.pixelColor(35, 35) == QColor(255, 0, 0)
        assert image.pixelColor(80, 80) == QColor(255, 255, 255)

    def test_triangle_leaves_corners_empty(self, qapp):
        image = _paint(make(ShapeKind.TRIANGLE, x=10, y=10, w=50, h=50, style=self.RED))
        assert image.pixelColor(35, 45) == QColor(255, 0, 0)
        assert image.pixelColor(12, 12) == QColor(255, 255, 255)

    def test_render_uses_transform(self, qapp):
        image = _paint(make(x=0, y=0, w=10, h=10, style=self.RED), Transform(2.0, 50.0, 50.0))
        assert image.pixelColor(60, 60) == QColor(255, 0, 0)
        assert image.pixelColor(30, 30) == QColor(255, 255, 255)
