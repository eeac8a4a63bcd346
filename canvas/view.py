"""
canvas/view.py

QWidget hosting the infinite canvas.

The widget translates Qt mouse, wheel, touch and key events into the
normalized input events of ``models`` and forwards them to the
InteractionMachine. Painting delegates to CanvasRenderer.
"""

from __future__ import annotations

import math
from typing import Callable, Dict, Optional

from PyQt6.QtCore import QEvent, Qt
from PyQt6.QtGui import QCursor, QKeyEvent, QMouseEvent, QPaintEvent, QResizeEvent, QTouchEvent, QWheelEvent
from PyQt6.QtWidgets import QWidget

from models import (
    KeyEvent,
    Mode,
    PinchEvent,
    Point,
    PointerEvent,
    PointerKind,
    ShapeKind,
    WheelEvent,
)
from canvas.interaction import InteractionMachine
from canvas.renderer import CanvasRenderer, SurfaceError, build_frame
from settings import AppSettings, get_settings
from debug_trace import trace

# Canvas cursor names mapped to Qt cursor shapes
CURSOR_SHAPES: Dict[str, Qt.CursorShape] = {
    "default": Qt.CursorShape.ArrowCursor,
    "grab": Qt.CursorShape.OpenHandCursor,
    "grabbing": Qt.CursorShape.ClosedHandCursor,
    "crosshair": Qt.CursorShape.CrossCursor,
    "move": Qt.CursorShape.SizeAllCursor,
    "nw-resize": Qt.CursorShape.SizeFDiagCursor,
    "se-resize": Qt.CursorShape.SizeFDiagCursor,
    "ne-resize": Qt.CursorShape.SizeBDiagCursor,
    "sw-resize": Qt.CursorShape.SizeBDiagCursor,
    "n-resize": Qt.CursorShape.SizeVerCursor,
    "s-resize": Qt.CursorShape.SizeVerCursor,
    "w-resize": Qt.CursorShape.SizeHorCursor,
    "e-resize": Qt.CursorShape.SizeHorCursor,
}

# Qt keys forwarded to the machine, by DOM key name
KEY_NAMES: Dict[Qt.Key, str] = {
    Qt.Key.Key_Delete: "Delete",
    Qt.Key.Key_Backspace: "Backspace",
    Qt.Key.Key_Escape: "Escape",
}

# Single-letter tool shortcuts: V select, H pan, R/C/T draw a shape kind
MODE_SHORTCUTS: Dict[Qt.Key, Mode] = {
    Qt.Key.Key_V: Mode.SELECT,
    Qt.Key.Key_H: Mode.PAN,
}
DRAW_SHORTCUTS: Dict[Qt.Key, ShapeKind] = {
    Qt.Key.Key_R: ShapeKind.RECTANGLE,
    Qt.Key.Key_C: ShapeKind.ELLIPSE,
    Qt.Key.Key_T: ShapeKind.TRIANGLE,
}

# Qt buttons mapped to DOM button numbers
BUTTONS: Dict[Qt.MouseButton, int] = {
    Qt.MouseButton.LeftButton: 0,
    Qt.MouseButton.MiddleButton: 1,
    Qt.MouseButton.RightButton: 2,
}


class CanvasView(QWidget):
    """
    Interactive canvas widget.

    Mouse and touch input go through ``machine.handle``; the view itself keeps
    only what is needed to turn two touch points into a pinch sample.
    """

    def __init__(
        self,
        machine: Optional[InteractionMachine] = None,
        settings: Optional[AppSettings] = None,
        parent=None,
    ):
        super().__init__(parent)
        if settings is None:
            settings = get_settings().settings
        self.settings = settings
        self.machine = machine if machine is not None else InteractionMachine(settings=settings)
        self.renderer = CanvasRenderer(settings)

        self.setMouseTracking(True)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
        self.setAttribute(Qt.WidgetAttribute.WA_AcceptTouchEvents, True)
        self.setMinimumSize(200, 150)

        # Last two-finger sample: (center, distance)
        self._pinch: Optional[tuple] = None
        # True while a one-finger touch is driving a pointer gesture
        self._touch_pointer = False
        self._initialized = False
        self._surface_failed = False

        # Forwarded to the hosting window
        self.on_status: Optional[Callable[[str], None]] = None
        self.on_surface_error: Optional[Callable[[SurfaceError], None]] = None
        self.on_mode_change: Optional[Callable[[Mode], None]] = None

        self.machine.on_cursor_change = self._apply_cursor
        self.machine.on_transform_change = lambda _t: self._repaint()
        self.machine.on_selection_change = lambda _s: self._repaint()
        self.machine.on_mode_change = self._mode_changed
        self.machine.on_mouse_move = self._mouse_moved
        self._apply_cursor(self.machine.cursor)

    # ---- helpers ----

    def _repaint(self) -> None:
        self.update()

    def _apply_cursor(self, name: str) -> None:
        self.setCursor(QCursor(CURSOR_SHAPES.get(name, Qt.CursorShape.ArrowCursor)))

    def _mode_changed(self, mode: Mode) -> None:
        self._report(f"Mode: {mode.value}")
        if self.on_mode_change:
            self.on_mode_change(mode)
        self.update()

    def _mouse_moved(self, world: Point) -> None:
        # World y grows downwards; report it up-positive like the axis labels
        self._report(f"X: {world.x:.1f}  Y: {-world.y:.1f}  Zoom: {self.machine.viewport.scale * 100:.0f}%")

    def _report(self, text: str) -> None:
        if self.on_status:
            self.on_status(text)

    def _send(self, event) -> None:
        self.machine.handle(event)
        self.update()

    @staticmethod
    def _local(event) -> Point:
        pos = event.position()
        return Point(pos.x(), pos.y())

    # ---- Qt events ----

    def paintEvent(self, event: QPaintEvent):
        # A surface that failed once is not retried
        if self._surface_failed:
            return
        frame = build_frame(self.machine.viewport, self.machine.store, self.settings)
        try:
            self.renderer.render_to(self, frame)
        except SurfaceError as e:
            self._surface_failed = True
            if self.on_surface_error is None:
                raise
            self.on_surface_error(e)

    def resizeEvent(self, event: QResizeEvent):
        size = event.size()
        self.machine.resize(size.width(), size.height())
        if not self._initialized:
            # Origin starts at the center of the first real size
            self.machine.reset_view()
            self._initialized = True
        super().resizeEvent(event)

    def mousePressEvent(self, event: QMouseEvent):
        button = BUTTONS.get(event.button())
        if button is None:
            super().mousePressEvent(event)
            return
        self.setFocus()
        self._send(PointerEvent(PointerKind.DOWN, self._local(event), button))
        event.accept()

    def mouseMoveEvent(self, event: QMouseEvent):
        self._send(PointerEvent(PointerKind.MOVE, self._local(event)))
        event.accept()

    def mouseReleaseEvent(self, event: QMouseEvent):
        if event.button() != Qt.MouseButton.LeftButton:
            super().mouseReleaseEvent(event)
            return
        self._send(PointerEvent(PointerKind.UP, self._local(event)))
        event.accept()

    def leaveEvent(self, event: QEvent):
        pos = self.mapFromGlobal(QCursor.pos())
        self._send(PointerEvent(PointerKind.LEAVE, Point(pos.x(), pos.y())))
        super().leaveEvent(event)

    def wheelEvent(self, event: QWheelEvent):
        """Zoom about the cursor. Qt reports scrolling down as a negative angle."""
        delta = event.angleDelta().y()
        if delta == 0:
            event.ignore()
            return
        self._send(WheelEvent(self._local(event), -float(delta)))
        event.accept()

    def event(self, event: QEvent) -> bool:
        if event.type() in (
            QEvent.Type.TouchBegin,
            QEvent.Type.TouchUpdate,
            QEvent.Type.TouchEnd,
            QEvent.Type.TouchCancel,
        ):
            return self._touch_event(event)
        return super().event(event)

    def _touch_event(self, event: QTouchEvent) -> bool:
        """One finger acts as the primary pointer; two fingers pinch."""
        points = event.points()
        ended = event.type() in (QEvent.Type.TouchEnd, QEvent.Type.TouchCancel)
        event.accept()

        if ended or len(points) != 2:
            self._pinch = None
            if len(points) == 1:
                self._touch_pointer_event(event, points[0], ended)
            elif self._touch_pointer:
                self._touch_pointer = False
                self._send(PointerEvent(PointerKind.UP, self._local(points[0])))
            return True

        # A second finger ends any one-finger gesture before pinching
        if self._touch_pointer:
            self._touch_pointer = False
            self._send(PointerEvent(PointerKind.UP, self._local(points[0])))

        a, b = points[0].position(), points[1].position()
        center = Point((a.x() + b.x()) / 2, (a.y() + b.y()) / 2)
        distance = math.hypot(a.x() - b.x(), a.y() - b.y())
        if self._pinch is not None:
            previous_center, previous_distance = self._pinch
            self._send(PinchEvent(center, previous_center, distance, previous_distance))
        self._pinch = (center, distance)
        return True

    def _touch_pointer_event(self, event: QTouchEvent, point, ended: bool) -> None:
        screen = self._local(point)
        if event.type() == QEvent.Type.TouchBegin:
            self._touch_pointer = True
            self._send(PointerEvent(PointerKind.DOWN, screen))
        elif not self._touch_pointer:
            return
        elif ended:
            self._touch_pointer = False
            kind = PointerKind.LEAVE if event.type() == QEvent.Type.TouchCancel else PointerKind.UP
            self._send(PointerEvent(kind, screen))
        else:
            self._send(PointerEvent(PointerKind.MOVE, screen))

    def keyPressEvent(self, event: QKeyEvent):
        key = event.key()
        name = KEY_NAMES.get(key)
        if name is not None:
            self._send(KeyEvent(name))
            event.accept()
            return

        # Tool shortcuts only without modifiers so Ctrl+C etc. stay free
        if event.modifiers() == Qt.KeyboardModifier.NoModifier:
            if key in MODE_SHORTCUTS:
                self.machine.set_mode(MODE_SHORTCUTS[key])
                event.accept()
                return
            if key in DRAW_SHORTCUTS:
                trace(f"draw shortcut {DRAW_SHORTCUTS[key].value}", "VIEW")
                self.machine.set_draw_kind(DRAW_SHORTCUTS[key])
                event.accept()
                return
        super().keyPressEvent(event)

    # ---- commands used by the window ----

    def reset_view(self):
        self.machine.reset_view()

    def zoom_in(self):
        self.machine.zoom_in()

    def zoom_out(self):
        self.machine.zoom_out()
