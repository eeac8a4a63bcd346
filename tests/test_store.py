"""Tests for ShapeStore: creation, hit-testing, selection and z-order."""
from __future__ import annotations

import pytest

from models import ShapeKind
from canvas.store import ShapeStore
from settings import AppSettings


@pytest.fixture()
def store():
    return ShapeStore(AppSettings())


class TestCreate:
    def test_ids_are_unique(self, store):
        a = store.create_shape(0, 0, 10, 10)
        b = store.create_shape(0, 0, 10, 10)
        assert a.id != b.id
        assert store.get(a.id) is a
        assert a.id in store
        assert len(store) == 2

    def test_uses_current_kind_and_style_copy(self, store):
        store.set_shape_kind("circle")
        store.set_style(fill_color="#00FF00")
        s = store.create_shape(0, 0, 10, 10)
        assert s.kind == ShapeKind.ELLIPSE
        assert s.style.fill_color == "#00FF00"
        store.set_style(fill_color="#0000FF")
        assert s.style.fill_color == "#00FF00"

    def test_unknown_kind_raises(self, store):
        with pytest.raises(ValueError):
            store.set_shape_kind("hexagon")

    def test_defaults_from_settings(self):
        settings = AppSettings()
        settings.canvas.shapes.default_kind = "triangle"
        settings.canvas.style.stroke_width = 5.0
        s = ShapeStore(settings).create_shape(0, 0, 20, 20)
        assert s.kind == ShapeKind.TRIANGLE
        assert s.style.stroke_width == 5.0


class TestHitTest:
    def test_topmost_wins(self, store):
        a = store.create_shape(0, 0, 100, 100)
        b = store.create_shape(50, 50, 100, 100)
        assert store.shape_at((75, 75)) is b
        assert store.shape_at((10, 10)) is a
        assert store.shape_at((500, 500)) is None

    def test_bring_to_front_changes_hit_result(self, store):
        a = store.create_shape(0, 0, 100, 100)
        store.create_shape(50, 50, 100, 100)
        store.bring_to_front(a.id)
        assert store.shape_at((75, 75)) is a
        assert store.shapes[-1] is a

    def test_send_to_back(self, store):
        store.create_shape(0, 0, 100, 100)
        b = store.create_shape(50, 50, 100, 100)
        store.select(b)
        store.send_to_back()
        assert store.shapes[0] is b
        assert store.shape_at((75, 75)) is not b

    def test_z_order_on_empty_store_is_noop(self, store):
        store.bring_to_front()
        store.send_to_back()
        assert store.shapes == []


class TestSelection:
    def test_single_selection(self, store):
        a = store.create_shape(0, 0, 10, 10)
        b = store.create_shape(20, 0, 10, 10)
        store.select(a)
        store.select(b)
        assert store.selected is b
        assert not a.selected
        assert b.selected

    def test_notifies_on_change_only(self, store):
        calls = []
        store.on_selection_change = calls.append
        a = store.create_shape(0, 0, 10, 10)
        store.select(a)
        store.select(a)
        store.deselect_all()
        store.deselect_all()
        assert calls == [a, None]

    def test_try_select_at(self, store):
        a = store.create_shape(0, 0, 10, 10)
        assert store.try_select_at((5, 5)) is a
        assert store.selected is a
        assert store.try_select_at((50, 50)) is None
        assert store.selected is None

    def test_remove_selected_clears_selection(self, store):
        calls = []
        store.on_selection_change = calls.append
        a = store.create_shape(0, 0, 10, 10)
        store.select(a)
        store.delete_selected()
        assert len(store) == 0
        assert store.selected is None
        assert calls[-1] is None

    def test_missing_targets_are_noops(self, store):
        store.delete_selected()
        store.remove_shape("shape_999")
        store.select_by_id("shape_999")
        store.apply_style_to_selected(fill_color="#123456")
        assert len(store) == 0
        assert store.style.fill_color == "#123456"

    def test_apply_style_to_selected(self, store):
        a = store.create_shape(0, 0, 10, 10)
        store.select(a)
        store.apply_style_to_selected({"stroke_width": 4.0, "opacity": 0.5})
        assert a.style.stroke_width == 4.0
        assert a.style.opacity == 0.5
        assert store.style.stroke_width == 4.0

    def test_clear(self, store):
        a = store.create_shape(0, 0, 10, 10)
        store.select(a)
        store.clear()
        assert len(store) == 0
        assert store.selected is None


class TestRender:
    def test_top_shape_painted_last(self, qapp, store):
        from PyQt6.QtGui import QColor, QImage, QPainter

        from models import Transform

        store.set_style(fill_color="#FF0000", stroke_color="#FF0000")
        store.create_shape(0, 0, 20, 20)
        store.set_style(fill_color="#0000FF", stroke_color="#0000FF")
        store.create_shape(0, 0, 20, 20)

        image = QImage(40, 40, QImage.Format.Format_ARGB32)
        image.fill(QColor("#FFFFFF"))
        painter = QPainter(image)
        store.render(painter, Transform(1.0, 0.0, 0.0))
        painter.end()
        assert image.pixelColor(10, 10) == QColor("#0000FF")

    def test_selected_handles_use_store_settings(self, qapp):
        from PyQt6.QtGui import QColor, QImage, QPainter

        from models import Transform

        settings = AppSettings()
        settings.canvas.handles.size = 16.0
        settings.canvas.handles.fill_color = "#00FF00"
        store = ShapeStore(settings)
        store.select(store.create_shape(0, 0, 20, 20))

        image = QImage(60, 60, QImage.Format.Format_ARGB32)
        image.fill(QColor("#FFFFFF"))
        painter = QPainter(image)
        store.render(painter, Transform(1.0, 20.0, 20.0))
        painter.end()
        # Inside the top-left handle, outside the shape
        assert image.pixelColor(14, 14) == QColor("#00FF00")


class TestIds:
    def test_peek_does_not_consume(self, store):
        assert store.peek_id() == store.peek_id()
        assert store.create_shape(0, 0, 10, 10).id == "shape_1"
        assert store.peek_id() == "shape_2"

    def test_explicit_next_id_advances(self, store):
        store.create_shape(0, 0, 10, 10, shape_id=store.peek_id())
        assert store.create_shape(0, 0, 10, 10).id == "shape_2"


class TestMinSize:
    @pytest.mark.parametrize("configured,effective", [(3.0, 10.0), (0.0, 10.0), (25.0, 25.0)])
    def test_config_cannot_lower_floor(self, configured, effective):
        settings = AppSettings()
        settings.canvas.shapes.min_size = configured
        store = ShapeStore(settings)
        assert store.min_size == effective
        shape = store.create_shape(0, 0, 40, 40)
        shape.set_size(1, 1)
        assert (shape.width, shape.height) == (effective, effective)
