"""
canvas/store.py

Ordered shape collection with hit-testing, single selection and z-order.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple, Union

from PyQt6.QtGui import QPainter

from models import ShapeKind, ShapeStyle, Transform, resolve_kind
from canvas.shapes import MIN_SHAPE_SIZE, Shape
from settings import AppSettings, get_settings
from debug_trace import trace


class ShapeStore:
    """
    Owns every shape on the canvas.

    List order is z-order: index 0 is at the back, the last shape is on top.
    Rendering walks the list forwards; hit-testing walks it backwards so the
    topmost shape under the point wins. At most one shape is selected.
    """

    def __init__(self, settings: Optional[AppSettings] = None):
        if settings is None:
            settings = get_settings().settings
        self._shapes: List[Shape] = []
        self._selected: Optional[Shape] = None
        self._next_id = 1
        self.settings = settings
        # Config may raise the floor but never lower it
        self.min_size: float = max(MIN_SHAPE_SIZE, settings.canvas.shapes.min_size)
        self.shape_kind: ShapeKind = resolve_kind(settings.canvas.shapes.default_kind)
        self.style: ShapeStyle = ShapeStyle.from_settings(settings.canvas.style)
        self.on_selection_change: Optional[Callable[[Optional[Shape]], None]] = None

    # ---- collection ----

    @property
    def shapes(self) -> List[Shape]:
        """Shapes in z-order, back to front (a copy)."""
        return list(self._shapes)

    def __len__(self) -> int:
        return len(self._shapes)

    def __iter__(self) -> Iterator[Shape]:
        return iter(list(self._shapes))

    def __contains__(self, shape_id: object) -> bool:
        return self.get(shape_id) is not None  # type: ignore[arg-type]

    def peek_id(self) -> str:
        """The id ``make_id`` will return next, without consuming it."""
        return f"shape_{self._next_id}"

    def make_id(self) -> str:
        """Generate a new shape id, unique within this store."""
        shape_id = self.peek_id()
        self._next_id += 1
        return shape_id

    def get(self, shape_id: Optional[str]) -> Optional[Shape]:
        for shape in self._shapes:
            if shape.id == shape_id:
                return shape
        return None

    def create_shape(
        self,
        x: float,
        y: float,
        width: float,
        height: float,
        kind: Optional[Union[ShapeKind, str]] = None,
        shape_id: Optional[str] = None,
    ) -> Shape:
        """Create a shape of the current (or given) kind with a copy of the current style.

        The size is taken as given; the minimum is enforced on later resizes.
        """
        if shape_id is None:
            shape_id = self.make_id()
        elif shape_id == self.peek_id():
            self._next_id += 1
        shape = Shape(
            id=shape_id,
            kind=resolve_kind(kind) if kind is not None else self.shape_kind,
            x=x,
            y=y,
            width=width,
            height=height,
            style=self.style.merged(),
            min_size=self.min_size,
        )
        self._shapes.append(shape)
        trace(f"create {shape.kind.value} id={shape.id} at ({x}, {y})", "STORE")
        return shape

    def add_shape(self, shape: Shape) -> None:
        """Append an existing shape on top of the stack."""
        if shape.selected:
            shape.selected = False
        self._shapes.append(shape)

    def remove_shape(self, shape_id: Optional[str]) -> None:
        """Remove a shape by id; deselects it first if it is selected."""
        shape = self.get(shape_id)
        if shape is None:
            return
        if shape is self._selected:
            self.deselect_all()
        self._shapes.remove(shape)
        trace(f"remove id={shape_id}", "STORE")

    def clear(self) -> None:
        had_selection = self._selected is not None
        self._shapes = []
        self._selected = None
        if had_selection:
            self._notify_selection_change()

    # ---- hit-testing ----

    def shape_at(self, world_point: Tuple[float, float]) -> Optional[Shape]:
        """Topmost shape containing the point, or None."""
        for shape in reversed(self._shapes):
            if shape.contains_point(world_point):
                return shape
        return None

    # ---- selection ----

    @property
    def selected(self) -> Optional[Shape]:
        return self._selected

    def select(self, shape: Shape) -> None:
        """Select ``shape`` alone. Selecting the current selection is a no-op."""
        if shape is self._selected or shape not in self._shapes:
            return
        for s in self._shapes:
            s.selected = False
        shape.selected = True
        self._selected = shape
        self._notify_selection_change()

    def select_by_id(self, shape_id: str) -> None:
        shape = self.get(shape_id)
        if shape is not None:
            self.select(shape)

    def deselect_all(self) -> None:
        if self._selected is None:
            return
        for s in self._shapes:
            s.selected = False
        self._selected = None
        self._notify_selection_change()

    def try_select_at(self, world_point: Tuple[float, float]) -> Optional[Shape]:
        """Select the topmost shape under the point, or clear the selection."""
        shape = self.shape_at(world_point)
        if shape is not None:
            self.select(shape)
        else:
            self.deselect_all()
        return shape

    def delete_selected(self) -> None:
        if self._selected is not None:
            self.remove_shape(self._selected.id)

    def _notify_selection_change(self) -> None:
        if self.on_selection_change:
            self.on_selection_change(self._selected)

    # ---- current drawing kind/style ----

    def set_shape_kind(self, kind: Union[ShapeKind, str]) -> None:
        self.shape_kind = resolve_kind(kind)

    def set_style(self, partial: Optional[Dict[str, Any]] = None, **kwargs: Any) -> None:
        """Merge into the style used for shapes created from now on."""
        self.style = self.style.merged(partial, **kwargs)

    def apply_style_to_selected(self, partial: Optional[Dict[str, Any]] = None, **kwargs: Any) -> None:
        """Restyle the selected shape and remember the style for new shapes."""
        if self._selected is not None:
            self._selected.set_style(partial, **kwargs)
        self.set_style(partial, **kwargs)

    # ---- z-order ----

    def bring_to_front(self, shape_id: Optional[str] = None) -> None:
        """Move a shape (default: the selection) to the top of the stack."""
        shape = self.get(shape_id) if shape_id is not None else self._selected
        if shape is None or self._shapes[-1] is shape:
            return
        self._shapes.remove(shape)
        self._shapes.append(shape)

    def send_to_back(self, shape_id: Optional[str] = None) -> None:
        """Move a shape (default: the selection) to the bottom of the stack."""
        shape = self.get(shape_id) if shape_id is not None else self._selected
        if shape is None or self._shapes[0] is shape:
            return
        self._shapes.remove(shape)
        self._shapes.insert(0, shape)


    # ---- painting ----

    def render(self, painter: QPainter, transform: Transform) -> None:
        for shape in self._shapes:
            shape.render(painter, transform, self.settings.canvas)
