"""
models.py

Data models and constants for the InfiniCanvas drawing surface.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, NamedTuple, Optional, Tuple, Union


# ----------------------------
# Geometry value types
# ----------------------------

class Point(NamedTuple):
    """A 2D point, used for both world and screen coordinates."""
    x: float
    y: float

    def __sub__(self, other: "Point") -> "Point":  # type: ignore[override]
        return Point(self.x - other.x, self.y - other.y)

    def __add__(self, other: "Point") -> "Point":  # type: ignore[override]
        return Point(self.x + other.x, self.y + other.y)

    def distance_to(self, other: "Point") -> float:
        return math.hypot(self.x - other.x, self.y - other.y)


@dataclass(frozen=True)
class Transform:
    """Viewport transform mapping world to screen: ``screen = world * scale + offset``."""
    scale: float = 1.0
    offset_x: float = 0.0
    offset_y: float = 0.0

    def screen_to_world(self, p: Tuple[float, float]) -> Point:
        return Point((p[0] - self.offset_x) / self.scale, (p[1] - self.offset_y) / self.scale)

    def world_to_screen(self, p: Tuple[float, float]) -> Point:
        return Point(p[0] * self.scale + self.offset_x, p[1] * self.scale + self.offset_y)


@dataclass(frozen=True)
class ViewportBounds:
    """Visible world-space rectangle."""
    left: float
    top: float
    right: float
    bottom: float

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top


@dataclass(frozen=True)
class GridInfo:
    """Adaptive grid sizes for one scale value (world units)."""
    main_size: float
    sub_size: float
    show_sub: bool


# ----------------------------
# Shape style
# ----------------------------

STYLE_KEYS = ("fill_color", "stroke_color", "stroke_width", "opacity")


@dataclass
class ShapeStyle:
    """Fill/stroke appearance of a shape. Colors are ``#RRGGBB`` or ``#RRGGBBAA``."""
    fill_color: str = "#4A90D9"
    stroke_color: str = "#2A6BB8"
    stroke_width: float = 2.0
    opacity: float = 1.0

    def merged(self, partial: Optional[Dict[str, Any]] = None, **kwargs: Any) -> "ShapeStyle":
        """Return a copy with the given keys overridden.

        Unknown keys are ignored so callers can pass UI form dicts directly.
        """
        updates = dict(partial or {})
        updates.update(kwargs)
        known = {k: v for k, v in updates.items() if k in STYLE_KEYS and v is not None}
        return replace(self, **known)

    def to_dict(self) -> Dict[str, Any]:
        return {k: getattr(self, k) for k in STYLE_KEYS}

    @classmethod
    def from_settings(cls, style_settings) -> "ShapeStyle":
        """Build a style from a ``CanvasStyleSettings`` section."""
        return cls(
            fill_color=style_settings.fill_color,
            stroke_color=style_settings.stroke_color,
            stroke_width=style_settings.stroke_width,
            opacity=style_settings.opacity,
        )


# ----------------------------
# Enumerations
# ----------------------------

class ShapeKind(str, Enum):
    """Closed set of drawable shape kinds."""
    RECTANGLE = "rectangle"
    ELLIPSE = "ellipse"
    TRIANGLE = "triangle"


# Alternative names accepted by set_shape_kind()
KIND_ALIAS_MAP: Dict[str, ShapeKind] = {
    "rect": ShapeKind.RECTANGLE,
    "circle": ShapeKind.ELLIPSE,
    "oval": ShapeKind.ELLIPSE,
}


def resolve_kind(value: Union[str, ShapeKind]) -> ShapeKind:
    """Resolve a kind name or alias to a ShapeKind.

    Raises:
        ValueError: If the name is not a known kind or alias.
    """
    if isinstance(value, ShapeKind):
        return value
    alias = KIND_ALIAS_MAP.get(value)
    if alias is not None:
        return alias
    return ShapeKind(value)


class Mode(str, Enum):
    """Persistent gesture family governing what a pointer-down starts."""
    SELECT = "select"
    PAN = "pan"
    DRAW = "draw"


class ResizeHandle(str, Enum):
    """Bounding-box anchors used to drive a directional resize."""
    TOP_LEFT = "top-left"
    TOP_CENTER = "top-center"
    TOP_RIGHT = "top-right"
    MIDDLE_LEFT = "middle-left"
    MIDDLE_RIGHT = "middle-right"
    BOTTOM_LEFT = "bottom-left"
    BOTTOM_CENTER = "bottom-center"
    BOTTOM_RIGHT = "bottom-right"

    @property
    def moves_left(self) -> bool:
        return self.value.endswith("left")

    @property
    def moves_right(self) -> bool:
        return self.value.endswith("right")

    @property
    def moves_top(self) -> bool:
        return self.value.startswith("top")

    @property
    def moves_bottom(self) -> bool:
        return self.value.startswith("bottom")


# Cursor names reported by the interaction machine, CSS vocabulary
HANDLE_CURSORS: Dict[ResizeHandle, str] = {
    ResizeHandle.TOP_LEFT: "nw-resize",
    ResizeHandle.TOP_CENTER: "n-resize",
    ResizeHandle.TOP_RIGHT: "ne-resize",
    ResizeHandle.MIDDLE_LEFT: "w-resize",
    ResizeHandle.MIDDLE_RIGHT: "e-resize",
    ResizeHandle.BOTTOM_LEFT: "sw-resize",
    ResizeHandle.BOTTOM_CENTER: "s-resize",
    ResizeHandle.BOTTOM_RIGHT: "se-resize",
}

MODE_CURSORS: Dict[Mode, str] = {
    Mode.SELECT: "default",
    Mode.PAN: "grab",
    Mode.DRAW: "crosshair",
}


# ----------------------------
# Normalized input events
# ----------------------------

class PointerKind(str, Enum):
    DOWN = "down"
    MOVE = "move"
    UP = "up"
    LEAVE = "leave"


PRIMARY_BUTTON = 0


@dataclass(frozen=True)
class PointerEvent:
    """Pointer input in canvas-local pixel coordinates."""
    kind: PointerKind
    screen: Point
    button: int = PRIMARY_BUTTON


@dataclass(frozen=True)
class KeyEvent:
    """Key-down input. ``key`` uses DOM key names (``"Delete"``, ``"Escape"``)."""
    key: str


@dataclass(frozen=True)
class WheelEvent:
    """Wheel input. Positive ``delta_y`` scrolls down, which zooms out."""
    screen: Point
    delta_y: float


@dataclass(frozen=True)
class PinchEvent:
    """Two-finger pinch sample with the previous sample's center and distance."""
    center: Point
    previous_center: Point
    distance: float
    previous_distance: float


InputEvent = Union[PointerEvent, KeyEvent, WheelEvent, PinchEvent]


def pointer_down(x: float, y: float, button: int = PRIMARY_BUTTON) -> PointerEvent:
    return PointerEvent(PointerKind.DOWN, Point(x, y), button)


def pointer_move(x: float, y: float) -> PointerEvent:
    return PointerEvent(PointerKind.MOVE, Point(x, y))


def pointer_up(x: float, y: float) -> PointerEvent:
    return PointerEvent(PointerKind.UP, Point(x, y))


def pointer_leave(x: float, y: float) -> PointerEvent:
    return PointerEvent(PointerKind.LEAVE, Point(x, y))


@dataclass
class CanvasSize:
    """Canvas size in device-independent pixels."""
    width: float = 0.0
    height: float = 0.0

    @property
    def center(self) -> Point:
        return Point(self.width / 2, self.height / 2)

    def corners(self) -> Tuple[Point, Point]:
        return Point(0.0, 0.0), Point(self.width, self.height)

