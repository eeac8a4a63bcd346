"""
canvas/renderer.py

Paints one frame of the canvas with QPainter.

Layering, back to front: background, grid (lines or dots), axes, shapes and
selection handles. In ``fixed`` axes mode the axes are painted above the
shapes instead. The renderer only reads the frame it is handed; it never
changes the viewport or the shapes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from PyQt6.QtCore import Qt, QLineF, QPointF, QRectF
from PyQt6.QtGui import QBrush, QColor, QFont, QFontMetricsF, QPainter, QPaintDevice, QPen

from models import CanvasSize, GridInfo, Transform, ViewportBounds
from canvas.grid import (
    GridMetrics,
    dot_count,
    format_axis_number,
    grid_lines,
    grid_metrics,
    tick_values,
)
from canvas.shapes import Shape
from canvas.store import ShapeStore
from canvas.viewport import Viewport
from settings import AppSettings, get_settings
from utils import hex_to_qcolor
from debug_trace import trace

log = logging.getLogger(__name__)

# On-screen main dot spacing below which dots are not drawn
DOT_MIN_PIXELS = 8.0
# Sub-level dots are drawn smaller than main-level dots
SUB_DOT_RADIUS_RATIO = 0.6
# Labels closer than this to the canvas edge are skipped
LABEL_EDGE_MARGIN_X = 20.0
LABEL_EDGE_MARGIN_Y = 15.0
LABEL_BOX_WIDTH = 80.0


class SurfaceError(RuntimeError):
    """A paint device could not be opened for drawing."""


@dataclass(frozen=True)
class Frame:
    """Everything the renderer needs for one paint pass."""
    transform: Transform
    bounds: ViewportBounds
    canvas_size: CanvasSize
    shapes: Tuple[Shape, ...]
    metrics: GridMetrics


def build_frame(viewport: Viewport, store: ShapeStore, settings: Optional[AppSettings] = None) -> Frame:
    """Snapshot the viewport and shapes for the next paint."""
    if settings is None:
        settings = get_settings().settings
    transform = viewport.transform
    return Frame(
        transform=transform,
        bounds=viewport.get_viewport_bounds(),
        canvas_size=CanvasSize(viewport.canvas_size.width, viewport.canvas_size.height),
        shapes=tuple(store.shapes),
        metrics=grid_metrics(transform.scale, settings.grid, settings.axes),
    )


class CanvasRenderer:
    """Draws frames onto a QPainter using the grid, axes and background settings."""

    def __init__(self, settings: Optional[AppSettings] = None):
        if settings is None:
            settings = get_settings().settings
        self.settings = settings

    # ---- entry points ----

    def render_to(self, device: QPaintDevice, frame: Frame) -> None:
        """Open a painter on ``device`` and paint ``frame``.

        Raises:
            SurfaceError: If a painter cannot be started on the device.
        """
        painter = QPainter()
        if not painter.begin(device):
            log.error("Could not begin painting on %r", device)
            raise SurfaceError(f"Cannot paint on {type(device).__name__}")
        try:
            self.render(painter, frame)
        finally:
            painter.end()

    def render(self, painter: QPainter, frame: Frame) -> None:
        painter.setRenderHint(QPainter.RenderHint.Antialiasing, True)
        self._draw_background(painter, frame.canvas_size)
        self._draw_grid(painter, frame)

        fixed_axes = self.settings.axes.display_mode == "fixed"
        if not fixed_axes:
            self._draw_axes(painter, frame)
        for shape in frame.shapes:
            shape.render(painter, frame.transform, self.settings.canvas)
        if fixed_axes:
            self._draw_axes(painter, frame)

    # ---- background ----

    def _draw_background(self, painter: QPainter, size: CanvasSize) -> None:
        color = hex_to_qcolor(self.settings.background_color, QColor(Qt.GlobalColor.white))
        painter.fillRect(QRectF(0, 0, size.width, size.height), color)

    # ---- grid ----

    def _draw_grid(self, painter: QPainter, frame: Frame) -> None:
        if self.settings.grid.pattern == "dots":
            self._draw_dot_grid(painter, frame)
        else:
            self._draw_line_grid(painter, frame)

    def _draw_line_grid(self, painter: QPainter, frame: Frame) -> None:
        grid = self.settings.grid
        info: GridInfo = frame.metrics.grid
        scale = frame.transform.scale

        painter.save()
        # Sub grid first so the main grid sits on top of it
        if info.show_sub and info.sub_size * scale > grid.min_sub_pixels:
            pen = QPen(hex_to_qcolor(grid.sub_color, QColor(220, 220, 220, 128)))
            pen.setWidthF(grid.sub_line_width)
            painter.setPen(pen)
            self._draw_lines(painter, frame, info.sub_size)

        if info.main_size * scale > grid.min_sub_pixels:
            pen = QPen(hex_to_qcolor(grid.main_color, QColor(200, 200, 200, 204)))
            pen.setWidthF(grid.main_line_width)
            painter.setPen(pen)
            self._draw_lines(painter, frame, info.main_size)
        painter.restore()

    def _draw_lines(self, painter: QPainter, frame: Frame, spacing: float) -> None:
        t = frame.transform
        w, h = frame.canvas_size.width, frame.canvas_size.height
        xs, ys = grid_lines(frame.bounds, spacing)
        lines = [QLineF(x * t.scale + t.offset_x, 0, x * t.scale + t.offset_x, h) for x in xs]
        lines += [QLineF(0, y * t.scale + t.offset_y, w, y * t.scale + t.offset_y) for y in ys]
        painter.drawLines(lines)

    def _draw_dot_grid(self, painter: QPainter, frame: Frame) -> None:
        grid = self.settings.grid
        info = frame.metrics.grid
        scale = frame.transform.scale

        painter.save()
        painter.setPen(Qt.PenStyle.NoPen)
        if info.show_sub and info.sub_size * scale > DOT_MIN_PIXELS:
            painter.setBrush(QBrush(hex_to_qcolor(grid.sub_color, QColor(220, 220, 220, 128))))
            self._draw_dots(painter, frame, info.sub_size, grid.dot_radius * SUB_DOT_RADIUS_RATIO)

        if info.main_size * scale > DOT_MIN_PIXELS:
            painter.setBrush(QBrush(hex_to_qcolor(grid.main_color, QColor(200, 200, 200, 204))))
            self._draw_dots(painter, frame, info.main_size, grid.dot_radius)
        painter.restore()

    def _draw_dots(self, painter: QPainter, frame: Frame, spacing: float, radius: float) -> None:
        count = dot_count(frame.bounds, spacing)
        if count > self.settings.grid.max_dots:
            trace(f"skip {count} dots at spacing {spacing}", "RENDER")
            return
        t = frame.transform
        xs, ys = grid_lines(frame.bounds, spacing)
        for x in xs:
            sx = x * t.scale + t.offset_x
            for y in ys:
                painter.drawEllipse(QPointF(sx, y * t.scale + t.offset_y), radius, radius)

    # ---- axes ----

    def _draw_axes(self, painter: QPainter, frame: Frame) -> None:
        axes = self.settings.axes
        t = frame.transform
        size = frame.canvas_size
        origin_x, origin_y = t.offset_x, t.offset_y

        painter.save()
        axis_pen = QPen(hex_to_qcolor(axes.axis_color, QColor(100, 100, 100, 230)))
        axis_pen.setWidthF(axes.axis_width)
        painter.setPen(axis_pen)
        if 0 <= origin_y <= size.height:
            painter.drawLine(QLineF(0, origin_y, size.width, origin_y))
        if 0 <= origin_x <= size.width:
            painter.drawLine(QLineF(origin_x, 0, origin_x, size.height))

        font = QFont()
        font.setPointSizeF(axes.font_size)
        painter.setFont(font)
        self._draw_x_ticks(painter, frame, origin_y)
        self._draw_y_ticks(painter, frame, origin_x)
        self._draw_origin_label(painter, frame, origin_x, origin_y, font)
        painter.restore()

    def _draw_x_ticks(self, painter: QPainter, frame: Frame, origin_y: float) -> None:
        axes = self.settings.axes
        t = frame.transform
        w, h = frame.canvas_size.width, frame.canvas_size.height
        spacing = frame.metrics.tick_spacing
        text_h = QFontMetricsF(painter.font()).height()

        # Pin ticks and labels to the nearest edge when the axis is off-screen
        if origin_y < 0:
            tick_y1, tick_y2 = 0.0, axes.tick_length
            label_rect_y = axes.label_padding
            v_align = Qt.AlignmentFlag.AlignTop
        elif origin_y > h:
            tick_y1, tick_y2 = h - axes.tick_length, h
            label_rect_y = h - LABEL_EDGE_MARGIN_Y - text_h
            v_align = Qt.AlignmentFlag.AlignBottom
        else:
            tick_y1 = origin_y - axes.tick_length / 2
            tick_y2 = origin_y + axes.tick_length / 2
            label_rect_y = origin_y + axes.label_padding
            v_align = Qt.AlignmentFlag.AlignTop

        values = tick_values(frame.bounds.left, frame.bounds.right, spacing)
        tick_pen = QPen(hex_to_qcolor(axes.tick_color, QColor(80, 80, 80, 204)))
        tick_pen.setWidthF(1.0)
        painter.setPen(tick_pen)
        ticks = []
        for x in values:
            sx = x * t.scale + t.offset_x
            if 0 <= sx <= w:
                ticks.append(QLineF(sx, tick_y1, sx, tick_y2))
        painter.drawLines(ticks)

        painter.setPen(hex_to_qcolor(axes.label_color, QColor(60, 60, 60)))
        for x in values:
            sx = x * t.scale + t.offset_x
            if sx < LABEL_EDGE_MARGIN_X or sx > w - LABEL_EDGE_MARGIN_X:
                continue
            rect = QRectF(sx - LABEL_BOX_WIDTH / 2, label_rect_y, LABEL_BOX_WIDTH, text_h)
            painter.drawText(rect, Qt.AlignmentFlag.AlignHCenter | v_align, format_axis_number(x))

    def _draw_y_ticks(self, painter: QPainter, frame: Frame, origin_x: float) -> None:
        axes = self.settings.axes
        t = frame.transform
        w, h = frame.canvas_size.width, frame.canvas_size.height
        spacing = frame.metrics.tick_spacing
        text_h = QFontMetricsF(painter.font()).height()

        if origin_x < 0:
            tick_x1, tick_x2 = 0.0, axes.tick_length
            label_rect_x = axes.label_padding
            h_align = Qt.AlignmentFlag.AlignLeft
        elif origin_x > w:
            tick_x1, tick_x2 = w - axes.tick_length, w
            label_rect_x = w - axes.label_padding - LABEL_BOX_WIDTH
            h_align = Qt.AlignmentFlag.AlignRight
        else:
            tick_x1 = origin_x - axes.tick_length / 2
            tick_x2 = origin_x + axes.tick_length / 2
            label_rect_x = origin_x - axes.label_padding - LABEL_BOX_WIDTH
            h_align = Qt.AlignmentFlag.AlignRight

        values = tick_values(frame.bounds.top, frame.bounds.bottom, spacing)
        tick_pen = QPen(hex_to_qcolor(axes.tick_color, QColor(80, 80, 80, 204)))
        tick_pen.setWidthF(1.0)
        painter.setPen(tick_pen)
        ticks = []
        for y in values:
            sy = y * t.scale + t.offset_y
            if 0 <= sy <= h:
                ticks.append(QLineF(tick_x1, sy, tick_x2, sy))
        painter.drawLines(ticks)

        painter.setPen(hex_to_qcolor(axes.label_color, QColor(60, 60, 60)))
        for y in values:
            sy = y * t.scale + t.offset_y
            if sy < LABEL_EDGE_MARGIN_Y or sy > h - LABEL_EDGE_MARGIN_Y:
                continue
            rect = QRectF(label_rect_x, sy - text_h / 2, LABEL_BOX_WIDTH, text_h)
            # Screen y grows downwards; labels show up as positive
            painter.drawText(rect, h_align | Qt.AlignmentFlag.AlignVCenter, format_axis_number(-y))

    def _draw_origin_label(
        self,
        painter: QPainter,
        frame: Frame,
        origin_x: float,
        origin_y: float,
        font: QFont,
    ) -> None:
        w, h = frame.canvas_size.width, frame.canvas_size.height
        if not (-LABEL_EDGE_MARGIN_X <= origin_x <= w + LABEL_EDGE_MARGIN_X):
            return
        if not (-LABEL_EDGE_MARGIN_X <= origin_y <= h + LABEL_EDGE_MARGIN_X):
            return

        axes = self.settings.axes
        bold = QFont(font)
        bold.setBold(True)
        painter.setFont(bold)
        painter.setPen(hex_to_qcolor(axes.label_color, QColor(60, 60, 60)))
        text_h = QFontMetricsF(bold).height()
        right = max(LABEL_EDGE_MARGIN_Y, min(origin_x - axes.label_padding, w - LABEL_EDGE_MARGIN_Y))
        top = max(0.0, min(origin_y + axes.label_padding, h - LABEL_EDGE_MARGIN_Y))
        rect = QRectF(right - LABEL_BOX_WIDTH, top, LABEL_BOX_WIDTH, text_h)
        painter.drawText(rect, Qt.AlignmentFlag.AlignRight | Qt.AlignmentFlag.AlignTop, "0")
        painter.setFont(font)
