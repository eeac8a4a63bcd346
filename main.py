"""
main.py

InfiniCanvas - Main Application

PyQt6 application hosting an infinite pan/zoom canvas with:
- Select, pan and draw tools (rectangle, ellipse, triangle)
- Drag to move, handles to resize, Delete/Backspace to remove
- Adaptive background grid and coordinate axes

Usage:
    python main.py

Dependencies:
    pip install PyQt6 platformdirs tomli-w

Environment:
    INFINICANVAS_TRACE=1          enable debug tracing to stderr
    INFINICANVAS_TRACE_POINTER=1  also trace every pointer move
"""

from __future__ import annotations

import logging
import sys
from typing import Dict

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QAction, QActionGroup, QColor, QKeySequence
from PyQt6.QtWidgets import QApplication, QColorDialog, QMainWindow, QMessageBox, QToolBar

from models import Mode, ShapeKind
from canvas.renderer import SurfaceError
from canvas.view import CanvasView
from settings import SettingsManager, get_settings
from utils import hex_to_qcolor, qcolor_to_hex
from debug_trace import DEBUG_TRACE, configure_trace_logging, trace, trace_exception

log = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    """Main application window hosting the canvas.

    Args:
        settings_manager: The SettingsManager instance for application settings.
    """

    def __init__(self, settings_manager: SettingsManager):
        super().__init__()
        self.settings_manager = settings_manager
        self.setWindowTitle("InfiniCanvas")

        self.view = CanvasView(settings=settings_manager.settings)
        self.machine = self.view.machine
        self.setCentralWidget(self.view)

        self.view.on_status = lambda text: self.statusBar().showMessage(text)
        self.view.on_mode_change = self._sync_mode_actions
        self.view.on_surface_error = self._on_surface_error

        self._tool_actions: Dict[str, QAction] = {}
        self._build_toolbar()
        self._build_menu()
        self.statusBar().showMessage("V select, H pan, R/C/T draw. Wheel zooms, Delete removes.")

    def _build_toolbar(self):
        """Build the tool and style toolbar."""
        tb = QToolBar("Tools")
        self.addToolBar(tb)

        group = QActionGroup(self)
        group.setExclusive(True)

        def add_tool(text: str, key: str, tooltip: str, slot):
            # Single-letter shortcuts are handled by the canvas itself
            act = QAction(text, self)
            act.setCheckable(True)
            act.setToolTip(f"{tooltip} ({key})")
            act.triggered.connect(slot)
            group.addAction(act)
            tb.addAction(act)
            return act

        self._tool_actions[Mode.SELECT.value] = add_tool(
            "Select", "V", "Select, move and resize shapes", lambda: self._set_mode(Mode.SELECT))
        self._tool_actions[Mode.PAN.value] = add_tool(
            "Pan", "H", "Drag to move the view", lambda: self._set_mode(Mode.PAN))
        for kind, label, key in (
            (ShapeKind.RECTANGLE, "Rectangle", "R"),
            (ShapeKind.ELLIPSE, "Ellipse", "C"),
            (ShapeKind.TRIANGLE, "Triangle", "T"),
        ):
            self._tool_actions[kind.value] = add_tool(
                label, key, f"Draw a {label.lower()}", lambda _c=False, k=kind: self._draw(k))
        self._tool_actions[Mode.SELECT.value].setChecked(True)

        tb.addSeparator()

        fill_act = QAction("Fill...", self)
        fill_act.setToolTip("Fill color for the selection and new shapes")
        fill_act.triggered.connect(lambda: self._pick_color("fill_color"))
        tb.addAction(fill_act)

        stroke_act = QAction("Stroke...", self)
        stroke_act.setToolTip("Stroke color for the selection and new shapes")
        stroke_act.triggered.connect(lambda: self._pick_color("stroke_color"))
        tb.addAction(stroke_act)

        tb.addSeparator()

        front_act = QAction("Bring to Front", self)
        front_act.triggered.connect(self._bring_to_front)
        tb.addAction(front_act)

        back_act = QAction("Send to Back", self)
        back_act.triggered.connect(self._send_to_back)
        tb.addAction(back_act)

        tb.addSeparator()

        reset_act = QAction("Reset View", self)
        reset_act.setToolTip("Scale 100% with the origin at the center")
        reset_act.triggered.connect(self.view.reset_view)
        tb.addAction(reset_act)

    def _build_menu(self):
        """Build the application menu bar."""
        menubar = self.menuBar()

        file_menu = menubar.addMenu("&File")
        clear_act = QAction("Clear Canvas", self)
        clear_act.triggered.connect(self._clear)
        file_menu.addAction(clear_act)
        file_menu.addSeparator()
        exit_act = QAction("Exit", self)
        exit_act.setShortcut(QKeySequence.StandardKey.Quit)
        exit_act.triggered.connect(self.close)
        file_menu.addAction(exit_act)

        edit_menu = menubar.addMenu("&Edit")
        delete_act = QAction("Delete Selected", self)
        delete_act.triggered.connect(self._delete_selected)
        edit_menu.addAction(delete_act)

        view_menu = menubar.addMenu("&View")
        zoom_in_act = QAction("Zoom In", self)
        zoom_in_act.setShortcut(QKeySequence.StandardKey.ZoomIn)
        zoom_in_act.triggered.connect(self.view.zoom_in)
        view_menu.addAction(zoom_in_act)

        zoom_out_act = QAction("Zoom Out", self)
        zoom_out_act.setShortcut(QKeySequence.StandardKey.ZoomOut)
        zoom_out_act.triggered.connect(self.view.zoom_out)
        view_menu.addAction(zoom_out_act)

        reset_act = QAction("Reset View", self)
        reset_act.setShortcut("0")
        reset_act.triggered.connect(self.view.reset_view)
        view_menu.addAction(reset_act)

    # ---- tool actions ----

    def _set_mode(self, mode: Mode):
        self.machine.set_mode(mode)
        self.view.setFocus()

    def _draw(self, kind: ShapeKind):
        self.machine.set_draw_kind(kind)
        self._tool_actions[kind.value].setChecked(True)
        self.view.setFocus()

    def _sync_mode_actions(self, mode: Mode):
        """Keep the checked toolbar button in line with the canvas mode."""
        key = self.machine.store.shape_kind.value if mode == Mode.DRAW else mode.value
        act = self._tool_actions.get(key)
        if act is not None:
            act.setChecked(True)

    def _pick_color(self, key: str):
        current = getattr(self.machine.store.style, key)
        color = QColorDialog.getColor(
            hex_to_qcolor(current, QColor(Qt.GlobalColor.black)), self, "Choose color",
            QColorDialog.ColorDialogOption.ShowAlphaChannel,
        )
        if not color.isValid():
            return
        self.machine.apply_style_to_selected({key: qcolor_to_hex(color, include_alpha=color.alpha() < 255)})
        self.view.update()

    def _bring_to_front(self):
        self.machine.bring_to_front()
        self.view.update()

    def _send_to_back(self):
        self.machine.send_to_back()
        self.view.update()

    def _delete_selected(self):
        self.machine.delete_selected()
        self.view.update()

    def _clear(self):
        self.machine.clear()
        self.view.update()
        self.statusBar().showMessage("Canvas cleared.")

    def _on_surface_error(self, error: SurfaceError):
        log.error("Drawing surface unavailable: %s", error)
        QMessageBox.critical(self, "Drawing surface unavailable", str(error))
        QApplication.exit(1)


def main():
    """Application entry point."""
    if DEBUG_TRACE:
        configure_trace_logging()
    trace("Application starting", "MAIN")
    app = QApplication(sys.argv)

    # Load settings (use singleton to ensure single instance)
    trace("Loading settings", "MAIN")
    settings_manager = get_settings()

    # Ensure settings file has all sections
    try:
        settings_manager.ensure_file_complete()
    except OSError as e:
        log.warning("Could not write settings file %s: %s", settings_manager.get_settings_path(), e)

    trace("Creating MainWindow", "MAIN")
    w = MainWindow(settings_manager)
    w.resize(1280, 800)
    w.show()
    trace("Entering event loop", "MAIN")
    sys.exit(app.exec())


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    try:
        main()
    except Exception as e:
        trace(f"FATAL: {type(e).__name__}: {e}", "CRASH")
        trace_exception("Fatal exception")
        raise
