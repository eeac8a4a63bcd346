"""
canvas/shapes.py

Shape model: rectangle, ellipse and triangle sharing one bounding-box contract.

Kinds form a closed set. Per-kind behavior (point containment and outline
painting) is looked up by kind; handles, moving and resizing are bbox-driven
and identical for every kind.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Tuple, Union

from PyQt6.QtCore import Qt, QPointF, QRectF
from PyQt6.QtGui import QBrush, QColor, QPainter, QPen, QPolygonF

from models import Point, ResizeHandle, ShapeKind, ShapeStyle, Transform
from settings import CanvasSettings
from utils import hex_to_qcolor, to_qpointf

# Minimum width/height of any shape, in world units
MIN_SHAPE_SIZE = 10.0


class BoundingBox(NamedTuple):
    x: float
    y: float
    width: float
    height: float


@dataclass(eq=False)
class Shape:
    """A drawable shape. Identity is the ``id``; equality is object identity."""

    id: str
    kind: ShapeKind
    x: float
    y: float
    width: float
    height: float
    style: ShapeStyle = field(default_factory=ShapeStyle)
    rotation: float = 0.0  # not applied anywhere yet
    selected: bool = False
    min_size: float = field(default=MIN_SHAPE_SIZE, repr=False)

    # ---- geometry ----

    def get_bounding_box(self) -> BoundingBox:
        return BoundingBox(self.x, self.y, self.width, self.height)

    @property
    def center(self) -> Point:
        return Point(self.x + self.width / 2, self.y + self.height / 2)

    def vertices(self) -> Tuple[Point, Point, Point]:
        """Triangle vertices: apex at top-center, base on the bottom corners."""
        return (
            Point(self.x + self.width / 2, self.y),
            Point(self.x, self.y + self.height),
            Point(self.x + self.width, self.y + self.height),
        )

    def contains_point(self, point: Tuple[float, float]) -> bool:
        return _CONTAINS[self.kind](self, Point(*point))

    # ---- handles ----

    def get_handles(self) -> Dict[ResizeHandle, Point]:
        """Return the 8 resize anchors of the bounding box, in a fixed order."""
        x, y, w, h = self.x, self.y, self.width, self.height
        return {
            ResizeHandle.TOP_LEFT: Point(x, y),
            ResizeHandle.TOP_CENTER: Point(x + w / 2, y),
            ResizeHandle.TOP_RIGHT: Point(x + w, y),
            ResizeHandle.MIDDLE_LEFT: Point(x, y + h / 2),
            ResizeHandle.MIDDLE_RIGHT: Point(x + w, y + h / 2),
            ResizeHandle.BOTTOM_LEFT: Point(x, y + h),
            ResizeHandle.BOTTOM_CENTER: Point(x + w / 2, y + h),
            ResizeHandle.BOTTOM_RIGHT: Point(x + w, y + h),
        }

    def handle_at(self, world_point: Tuple[float, float], tolerance: float) -> Optional[ResizeHandle]:
        """Return the first handle within ``tolerance`` world units of the point."""
        p = Point(*world_point)
        for handle, hp in self.get_handles().items():
            if p.distance_to(hp) <= tolerance:
                return handle
        return None

    # ---- mutation ----

    def move(self, dx: float, dy: float) -> None:
        self.x += dx
        self.y += dy

    def set_position(self, x: float, y: float) -> None:
        self.x = x
        self.y = y

    def set_size(self, width: float, height: float) -> None:
        """Set the size, flooring both dimensions at the minimum."""
        self.width = max(self.min_size, width)
        self.height = max(self.min_size, height)

    def set_bounds(self, x: float, y: float, width: float, height: float) -> None:
        self.set_position(x, y)
        self.set_size(width, height)

    def resize_by_handle(self, handle: Union[ResizeHandle, str], delta: Tuple[float, float]) -> None:
        """Drag ``handle`` by a world delta, keeping the opposite side anchored.

        Dimensions are clamped to the minimum afterwards. When a low-side
        (left/top) handle is clamped, the position is shifted so the opposite
        edge stays where it was. Unknown handle names are ignored.
        """
        try:
            handle = ResizeHandle(handle)
        except ValueError:
            return
        dx, dy = delta

        if handle.moves_left:
            self.x += dx
            self.width -= dx
        elif handle.moves_right:
            self.width += dx

        if handle.moves_top:
            self.y += dy
            self.height -= dy
        elif handle.moves_bottom:
            self.height += dy

        if self.width < self.min_size:
            if handle.moves_left:
                self.x -= self.min_size - self.width
            self.width = self.min_size
        if self.height < self.min_size:
            if handle.moves_top:
                self.y -= self.min_size - self.height
            self.height = self.min_size

    def set_style(self, partial: Optional[Dict[str, Any]] = None, **kwargs: Any) -> None:
        """Merge a partial style over the current one."""
        self.style = self.style.merged(partial, **kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "rotation": self.rotation,
            "style": self.style.to_dict(),
        }

    # ---- painting ----

    def render(self, painter: QPainter, transform: Transform, canvas: Optional[CanvasSettings] = None) -> None:
        """Paint the shape (and its handles when selected) in screen space.

        ``canvas`` supplies the handle and selection look; defaults apply when omitted.
        """
        painter.save()
        painter.setOpacity(max(0.0, min(1.0, self.style.opacity)))
        pen = QPen(hex_to_qcolor(self.style.stroke_color, QColor(Qt.GlobalColor.black)))
        pen.setWidthF(self.style.stroke_width)
        painter.setPen(pen)
        painter.setBrush(QBrush(hex_to_qcolor(self.style.fill_color, QColor(Qt.GlobalColor.transparent))))
        _PAINT[self.kind](self, painter, transform)
        painter.restore()

        if self.selected:
            self.render_handles(painter, transform, canvas)

    def screen_rect(self, transform: Transform) -> QRectF:
        tl = transform.world_to_screen((self.x, self.y))
        return QRectF(tl.x, tl.y, self.width * transform.scale, self.height * transform.scale)

    def render_handles(self, painter: QPainter, transform: Transform, canvas: Optional[CanvasSettings] = None) -> None:
        """Draw the dashed selection outline and the 8 handle squares."""
        if canvas is None:
            canvas = CanvasSettings()
        # Selection color from settings. Default: #4A90D9 (blue)
        sel_pen = QPen(hex_to_qcolor(canvas.selection.outline_color, QColor("#4A90D9")), 1, Qt.PenStyle.DashLine)
        painter.save()
        painter.setPen(sel_pen)
        painter.setBrush(Qt.BrushStyle.NoBrush)
        painter.drawRect(self.screen_rect(transform))

        # Handle size from settings. Default: 8.0 pixels
        size = canvas.handles.size
        half = size / 2
        painter.setPen(QPen(hex_to_qcolor(canvas.handles.border_color, QColor("#4A90D9")), 2))
        painter.setBrush(QBrush(hex_to_qcolor(canvas.handles.fill_color, QColor(Qt.GlobalColor.white))))
        for hp in self.get_handles().values():
            sp = transform.world_to_screen(hp)
            painter.drawRect(QRectF(sp.x - half, sp.y - half, size, size))
        painter.restore()


# =============================================================================
# Per-kind containment
# =============================================================================

def _rectangle_contains(shape: Shape, p: Point) -> bool:
    return (
        shape.x <= p.x <= shape.x + shape.width
        and shape.y <= p.y <= shape.y + shape.height
    )


def _ellipse_contains(shape: Shape, p: Point) -> bool:
    rx = shape.width / 2
    ry = shape.height / 2
    if rx <= 0 or ry <= 0:
        return False
    c = shape.center
    dx = (p.x - c.x) / rx
    dy = (p.y - c.y) / ry
    return dx * dx + dy * dy <= 1


def _edge_sign(p: Point, v1: Point, v2: Point) -> float:
    return (p.x - v2.x) * (v1.y - v2.y) - (v1.x - v2.x) * (p.y - v2.y)


def _triangle_contains(shape: Shape, p: Point) -> bool:
    a, b, c = shape.vertices()
    d1 = _edge_sign(p, a, b)
    d2 = _edge_sign(p, b, c)
    d3 = _edge_sign(p, c, a)
    has_neg = d1 < 0 or d2 < 0 or d3 < 0
    has_pos = d1 > 0 or d2 > 0 or d3 > 0
    return not (has_neg and has_pos)


_CONTAINS: Dict[ShapeKind, Callable[[Shape, Point], bool]] = {
    ShapeKind.RECTANGLE: _rectangle_contains,
    ShapeKind.ELLIPSE: _ellipse_contains,
    ShapeKind.TRIANGLE: _triangle_contains,
}


# =============================================================================
# Per-kind painting
# =============================================================================

def _paint_rectangle(shape: Shape, painter: QPainter, transform: Transform) -> None:
    painter.drawRect(shape.screen_rect(transform))


def _paint_ellipse(shape: Shape, painter: QPainter, transform: Transform) -> None:
    painter.drawEllipse(shape.screen_rect(transform))


def _paint_triangle(shape: Shape, painter: QPainter, transform: Transform) -> None:
    points: List[QPointF] = [to_qpointf(transform.world_to_screen(v)) for v in shape.vertices()]
    painter.drawPolygon(QPolygonF(points))


_PAINT: Dict[ShapeKind, Callable[[Shape, QPainter, Transform], None]] = {
    ShapeKind.RECTANGLE: _paint_rectangle,
    ShapeKind.ELLIPSE: _paint_ellipse,
    ShapeKind.TRIANGLE: _paint_triangle,
}
